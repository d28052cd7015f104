from pydantic import BaseModel, Field


class CompetitorSearchRequest(BaseModel):
    industry: str = Field(..., min_length=1, max_length=200)
    product: str = Field(..., min_length=1, max_length=200)


class Competitor(BaseModel):
    name: str
    description: str
    url: str
    relevance: float = 0.0


class CompetitorSearchResponse(BaseModel):
    success: bool
    competitors: list[Competitor] = Field(default_factory=list)
    error: str | None = None
