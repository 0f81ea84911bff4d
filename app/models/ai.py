"""Payloads for AI categorisation and recommendations."""
from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.ingredient_document import ColorCode

FoodGroup = Literal[
    "meat",
    "seafood",
    "plant-proteins",
    "dairy",
    "healthy-fats",
    "vegetables",
    "fruits",
    "healthy-carbs",
    "other",
]


class CategoryResult(CamelModel):
    category: FoodGroup
    confidence: float
    method: Literal["ai", "regex", "fallback"]
    reasoning: str


class FoodToCategorize(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    nutritional_info: Optional[Dict[str, Any]] = None


class CategorizeRequest(CamelModel):
    foods: List[FoodToCategorize] = Field(default_factory=list)


class QuickToggles(CamelModel):
    diabetes: bool = False
    weight_loss: bool = False
    heart_health: bool = False
    dairy_free: bool = False
    gluten_free: bool = False
    inflammation: bool = False


class FoodRecommendation(CamelModel):
    food_id: str
    food_name: str
    category: ColorCode
    reasoning: str
    confidence: float
    method: Literal["hard-rule", "ai"]


class RecommendationRequest(CamelModel):
    client_profile: str = ""
    food_ids: Optional[List[str]] = None
    quick_toggles: Optional[QuickToggles] = None


class RecommendationResponse(CamelModel):
    recommendations: List[FoodRecommendation]
    processing_time: int
    foods_processed: int
    hard_rules_applied: int
    ai_processed: int
