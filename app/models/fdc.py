"""Request payloads for the USDA FoodData Central proxy."""
from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from app.models.base import CamelModel

FDCDataType = Literal["Branded", "Foundation", "Survey (FNDDS)", "SR Legacy"]
FDCSortField = Literal[
    "dataType.keyword", "lowercaseDescription.keyword", "fdcId", "publishedDate"
]

# Energy, protein, fat, carbohydrate, fiber, sugars, sodium
DEFAULT_NUTRIENT_NUMBERS = [208, 203, 204, 205, 291, 269, 307]


class FDCSearchCriteria(CamelModel):
    query: str = Field(min_length=1, max_length=200)
    data_type: Optional[List[FDCDataType]] = Field(default=None, max_length=4)
    page_size: int = Field(default=20, ge=1, le=200)
    page_number: int = Field(default=0, ge=0)
    sort_by: Optional[FDCSortField] = "lowercaseDescription.keyword"
    sort_order: Optional[Literal["asc", "desc"]] = "asc"
    brand_owner: Optional[str] = Field(default=None, max_length=200)


class FDCFoodsRequest(CamelModel):
    fdc_ids: List[int] = Field(default_factory=list)
    format: Literal["abridged", "full"] = "abridged"
    nutrients: Optional[List[int]] = None
    save: bool = False
