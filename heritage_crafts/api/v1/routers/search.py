from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from heritage_crafts.api.v1.dependencies import get_optional_user, get_search_service, pagination
from heritage_crafts.db.models.users import User
from heritage_crafts.features.search.schemas import SearchFiltersIn, SearchResponseOut, SuggestionOut
from heritage_crafts.features.search.services import SearchService

router = APIRouter(
    prefix="/search",
    tags=["search"],
)


@router.get("", summary="Recherche globale (artisans, cours, produits)", response_model=SearchResponseOut)
def search(
    q: str = Query("", max_length=200),
    types: Optional[List[str]] = Query(None, description="craftsman | course | product"),
    category: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort: str = Query("relevance", description="relevance | date | popularity | price_asc | price_desc"),
    language: Optional[str] = Query(None),
    page=Depends(pagination),
    user: Optional[User] = Depends(get_optional_user),
    svc: SearchService = Depends(get_search_service),
):
    filters = SearchFiltersIn(category=category, location=location, min_price=min_price, max_price=max_price)
    return svc.search(
        q,
        types=types,
        filters=filters,
        sort=sort,
        user=user,
        language=language or (user.preferred_language if user else None),
        **page,
    )


@router.get("/suggestions", summary="Suggestions d'autocomplétion", response_model=List[SuggestionOut])
def suggestions(
    q: str = Query(..., min_length=1, max_length=100),
    limit: int = Query(10, ge=1, le=50),
    svc: SearchService = Depends(get_search_service),
):
    return svc.suggestions(q, limit=limit)
