# app/api/ai.py
"""
AI-assisted food grouping and colour recommendations for coaches.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from app.api.deps import get_current_coach_id
from app.models.ai import CategorizeRequest, RecommendationRequest
from app.services.categorization_service import CategorizationService
from app.services.errors import ValidationError
from app.services.food_service import FoodService
from app.services.recommendation_service import RecommendationService

logger = logging.getLogger(__name__)
router = APIRouter()

categorization_service = CategorizationService()
recommendation_service = RecommendationService()
food_service = FoodService()


@router.post("/categorize")
async def categorize(body: CategorizeRequest, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    if not body.foods:
        raise ValidationError("foods array is required")
    results = await categorization_service.categorize_foods(body.foods)
    return {
        "ok": True,
        "results": {food_id: r.to_api() for food_id, r in results.items()},
        "stats": categorization_service.categorization_stats(results),
    }


@router.post("/food-recommendations")
async def food_recommendations(
    body: RecommendationRequest, coach_id: str = Depends(get_current_coach_id)
) -> Dict[str, Any]:
    if body.food_ids:
        foods = await food_service.get_many(body.food_ids)
    else:
        foods = await food_service.list_all()
    logger.info("Recommendations requested by coach %s for %d foods", coach_id, len(foods))
    response = await recommendation_service.generate_recommendations(
        body.client_profile, foods, body.quick_toggles
    )
    return {"ok": True, **response.to_api()}
