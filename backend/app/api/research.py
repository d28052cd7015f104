from fastapi import APIRouter, Depends

from app.api.dependencies import get_fact_lookup
from app.api.errors import DOMAIN_ERRORS, to_http_exception
from app.api.security import get_current_user
from app.models.research import CompetitorSearchRequest, CompetitorSearchResponse
from app.services.fact_lookup import FactLookup

router = APIRouter(prefix="/research", tags=["Research"])


@router.post("/competitors", response_model=CompetitorSearchResponse)
def find_competitors(
    payload: CompetitorSearchRequest,
    current_user: dict = Depends(get_current_user),
    lookup: FactLookup = Depends(get_fact_lookup),
) -> CompetitorSearchResponse:
    try:
        result = lookup.find_competitors(payload.industry, payload.product)
    except DOMAIN_ERRORS as exc:
        raise to_http_exception(exc) from exc
    return CompetitorSearchResponse(**result)
