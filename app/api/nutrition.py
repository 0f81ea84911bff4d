# app/api/nutrition.py
"""
Nutrition panels from FoodData Central.
"""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter

from app.api.fdc import fdc_service
from app.models.fdc import FDCFoodsRequest
from app.services.errors import NotFoundError, ValidationError
from app.services.food_service import FoodService
from app.services.nutrition_service import NutritionService, process_fdc_nutrition

router = APIRouter()

nutrition_service = NutritionService(fdc_service)
food_service = FoodService()


@router.post("")
async def lookup_nutrition(body: FDCFoodsRequest) -> Dict[str, Any]:
    if not body.fdc_ids:
        raise ValidationError("fdcIds array is required")
    foods = await nutrition_service.fdc_service.get_foods(
        body.fdc_ids, format=body.format, nutrients=body.nutrients
    )
    return {
        "ok": True,
        "foods": foods,
        "nutrition": {str(f.get("fdcId")): process_fdc_nutrition(f) for f in foods},
    }


@router.get("/foods/{food_id}")
async def food_nutrition(food_id: str) -> Dict[str, Any]:
    food = await food_service.get_food(food_id)
    if food is None:
        raise NotFoundError("Food not found")
    return {
        "ok": True,
        "hasNutritionalData": nutrition_service.has_nutritional_data(food),
        "nutrition": await nutrition_service.get_nutritional_info(food),
    }
