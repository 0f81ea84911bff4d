# app/services/nutrition_service.py
"""
Per-food nutrition lookup on top of the FDC client, with an explicit cache.

The cache is owned by whoever builds the service; pass your own mapping (or a
fresh NutritionCache) to isolate tests or share a cache between services.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, MutableMapping, Optional

from app.models.fdc import DEFAULT_NUTRIENT_NUMBERS
from app.models.food import Food
from app.services.fdc_service import FDCService

logger = logging.getLogger(__name__)


class NutritionCache:
    """fdcId -> processed nutrition dict, over an injectable mapping."""

    def __init__(self, store: Optional[MutableMapping[int, Dict[str, Any]]] = None):
        self._store: MutableMapping[int, Dict[str, Any]] = store if store is not None else {}

    def get(self, fdc_id: int) -> Optional[Dict[str, Any]]:
        return self._store.get(fdc_id)

    def set(self, fdc_id: int, info: Dict[str, Any]) -> None:
        self._store[fdc_id] = info

    def invalidate(self, fdc_id: int) -> None:
        self._store.pop(fdc_id, None)

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, fdc_id: object) -> bool:
        return fdc_id in self._store


def _nutrient_amount(nutrients, number: int) -> float:
    for n in nutrients or []:
        raw = n.get("number")
        if raw is None and isinstance(n.get("nutrient"), dict):
            raw = n["nutrient"].get("number")
        if str(raw) == str(number):
            return float(n.get("amount") or 0)
    return 0.0


def process_fdc_nutrition(fdc_food: Dict[str, Any]) -> Dict[str, Any]:
    """Simplified per-100g nutrition panel from an FDC food record."""
    nutrients = fdc_food.get("foodNutrients") or []
    return {
        "calories": round(_nutrient_amount(nutrients, 208)),
        "protein": round(_nutrient_amount(nutrients, 203), 1),
        "fat": round(_nutrient_amount(nutrients, 204), 1),
        "carbs": round(_nutrient_amount(nutrients, 205), 1),
        "fiber": round(_nutrient_amount(nutrients, 291), 1),
        "sugar": round(_nutrient_amount(nutrients, 269), 1),
        "sodium": round(_nutrient_amount(nutrients, 307)),
        "servingInfo": "Per 100g",
        "source": "USDA FoodData Central",
    }


class NutritionService:

    def __init__(self, fdc_service: FDCService, cache: Optional[NutritionCache] = None):
        self.fdc_service = fdc_service
        self.cache = cache if cache is not None else NutritionCache()

    @staticmethod
    def has_nutritional_data(food: Food) -> bool:
        return bool(food.fdc_id)

    async def get_nutritional_info(self, food: Food) -> Optional[Dict[str, Any]]:
        if not food.fdc_id:
            return None
        cached = self.cache.get(food.fdc_id)
        if cached is not None:
            return cached

        fdc_foods = await self.fdc_service.get_foods(
            [food.fdc_id], format="abridged", nutrients=DEFAULT_NUTRIENT_NUMBERS
        )
        if not fdc_foods:
            logger.info("No FDC record for food %s (fdcId=%s)", food.id, food.fdc_id)
            return None

        info = process_fdc_nutrition(fdc_foods[0])
        self.cache.set(food.fdc_id, info)
        return info
