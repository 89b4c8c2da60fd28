from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

SEARCH_TYPES = ("craftsman", "course", "product")
SEARCH_SORTS = ("relevance", "date", "popularity", "price_asc", "price_desc")


class SearchFiltersIn(BaseModel):
    category: Optional[str] = None
    location: Optional[str] = None
    min_price: Optional[Decimal] = Field(default=None, ge=0)
    max_price: Optional[Decimal] = Field(default=None, ge=0)


class SearchResultOut(BaseModel):
    type: str
    id: int
    title: str
    description: str = ""
    craft_category: Optional[str] = None
    price: Optional[Decimal] = None
    image_url: Optional[str] = None
    created_at: datetime
    relevance: float
    score: float


class SearchFacetsOut(BaseModel):
    types: Dict[str, int]
    categories: Dict[str, int]


class SearchResponseOut(BaseModel):
    query: str
    items: List[SearchResultOut]
    total: int
    facets: SearchFacetsOut


class SuggestionOut(BaseModel):
    text: str
    type: str  # course | product | craftsman | category
