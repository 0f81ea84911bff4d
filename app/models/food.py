"""Food catalog records."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.ingredient_document import ColorCode


class NutritionalInfo(CamelModel):
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None
    fiber: Optional[float] = None
    sugar: Optional[float] = None
    sodium: Optional[float] = None


class Food(CamelModel):
    id: str
    name: str
    category: ColorCode
    category_id: Optional[str] = None
    description: Optional[str] = None
    serving_size: Optional[str] = None
    portion_guidelines: Optional[str] = None
    nutritional_info: Optional[NutritionalInfo] = None
    fdc_id: Optional[int] = None
    is_global: bool = False
    source: str = "manual"
    tags: List[str] = Field(default_factory=list)
    coach_id: Optional[str] = None
    created_at: Optional[str] = None
    last_updated: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Food":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            category=row.get("category") or "yellow",
            category_id=row.get("category_id"),
            description=row.get("description"),
            serving_size=row.get("serving_size"),
            portion_guidelines=row.get("portion_guidelines"),
            nutritional_info=row.get("nutritional_info"),
            fdc_id=row.get("fdc_id"),
            is_global=bool(row.get("is_global")),
            source=row.get("source") or "manual",
            tags=row.get("tags") or [],
            coach_id=row.get("coach_id"),
            created_at=row.get("created_at"),
            last_updated=row.get("last_updated"),
        )


class FoodCreate(CamelModel):
    name: str = Field(min_length=1)
    category: ColorCode
    category_id: Optional[str] = None
    description: Optional[str] = None
    serving_size: Optional[str] = None
    portion_guidelines: Optional[str] = None
    nutritional_info: Optional[NutritionalInfo] = None
    fdc_id: Optional[int] = None
    is_global: bool = False
    source: str = "manual"
    tags: List[str] = Field(default_factory=list)


class FoodUpdate(CamelModel):
    name: Optional[str] = None
    category: Optional[ColorCode] = None
    category_id: Optional[str] = None
    description: Optional[str] = None
    serving_size: Optional[str] = None
    portion_guidelines: Optional[str] = None
    nutritional_info: Optional[NutritionalInfo] = None
    tags: Optional[List[str]] = None
