from datetime import datetime

from pydantic import BaseModel, Field


class ReportCard(BaseModel):
    marketClarity: int = Field(..., ge=0, le=100)
    techDefensibility: int = Field(..., ge=0, le=100)
    unitEconomicLogic: int = Field(..., ge=0, le=100)
    investorReadiness: int = Field(..., ge=0, le=100)
    overallScore: float = Field(..., ge=0.0, le=100.0)
    coachabilityDelta: int
    insights: str
    isFallback: bool = False
    generatedAt: datetime | None = None


class ReportStatusResponse(BaseModel):
    sessionId: str
    status: str
    reportReady: bool
    reportCard: ReportCard | None = None
