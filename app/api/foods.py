# app/api/foods.py
"""
Food catalog. Reads are public (share pages resolve foodId -> name through
them); writes need a coach.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_coach_id
from app.models.food import FoodCreate, FoodUpdate
from app.services.errors import NotFoundError
from app.services.food_service import FoodService

router = APIRouter()

food_service = FoodService()


@router.get("")
async def list_foods(
    q: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
) -> Dict[str, Any]:
    if category:
        foods = await food_service.by_category(category)
    elif q:
        foods = await food_service.search(q)
    else:
        foods = await food_service.list_all()
    return {"ok": True, "foods": [f.to_api() for f in foods]}


@router.get("/{food_id}")
async def get_food(food_id: str) -> Dict[str, Any]:
    food = await food_service.get_food(food_id)
    if food is None:
        raise NotFoundError("Food not found")
    return {"ok": True, "food": food.to_api()}


@router.post("", status_code=201)
async def create_food(body: FoodCreate, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    # coaches cannot add to the shared catalog
    food = await food_service.create_food(coach_id, body.model_copy(update={"is_global": False}))
    return {"ok": True, "food": food.to_api()}


@router.patch("/{food_id}")
async def update_food(
    food_id: str, body: FoodUpdate, coach_id: str = Depends(get_current_coach_id)
) -> Dict[str, Any]:
    food = await food_service.update_food(food_id, coach_id, body)
    return {"ok": True, "food": food.to_api()}


@router.delete("/{food_id}")
async def delete_food(food_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    await food_service.delete_food(food_id, coach_id)
    return {"ok": True}
