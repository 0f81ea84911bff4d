# app/services/food_service.py
"""
Food catalog (`foods` table).

Global foods are shared by every coach and cannot be edited or deleted.
Coach-added foods can only be changed by the coach who created them.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from app.models.food import Food, FoodCreate, FoodUpdate
from app.services.errors import (
    AccessDeniedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.services.store import SupabaseRepository, new_id, now_iso

logger = logging.getLogger(__name__)


def _clean_tags(tags: Optional[Iterable[str]]) -> List[str]:
    return [t.strip().lower() for t in (tags or []) if t and t.strip()]


class FoodService(SupabaseRepository):
    table_name = "foods"

    async def list_all(self) -> List[Food]:
        """Every food in the catalog, ordered by name."""
        rows = await self._call_db(lambda: self.table().select("*").order("name").execute())
        return [Food.from_row(r) for r in rows]

    async def list_global(self) -> List[Food]:
        rows = await self._call_db(
            lambda: self.table().select("*").eq("is_global", True).order("name").execute()
        )
        return [Food.from_row(r) for r in rows]

    async def list_for_coach(self, coach_id: str) -> List[Food]:
        rows = await self._call_db(
            lambda: self.table().select("*").eq("coach_id", coach_id).order("name").execute(),
            context={"coach_id": coach_id},
        )
        return [Food.from_row(r) for r in rows]

    async def get_food(self, food_id: str) -> Optional[Food]:
        row = await self._first(
            lambda: self.table().select("*").eq("id", food_id).limit(1).execute(),
            context={"food_id": food_id},
        )
        return Food.from_row(row) if row else None

    async def get_many(self, food_ids: Iterable[str]) -> List[Food]:
        ids = [str(i) for i in food_ids if i]
        if not ids:
            return []
        rows = await self._call_db(lambda: self.table().select("*").in_("id", ids).execute())
        return [Food.from_row(r) for r in rows]

    async def name_map(self) -> Dict[str, str]:
        """foodId -> display name, for rendering plans."""
        return {f.id: f.name for f in await self.list_all()}

    async def search(self, term: str) -> List[Food]:
        foods = await self.list_all()
        needle = (term or "").strip().lower()
        if not needle:
            return foods
        return [
            f
            for f in foods
            if needle in f.name.lower()
            or any(needle in t for t in f.tags)
            or (f.description and needle in f.description.lower())
        ]

    async def by_category(self, category: str) -> List[Food]:
        if category not in ("blue", "yellow", "red"):
            raise ValidationError("category must be one of blue, yellow, red")
        rows = await self._call_db(
            lambda: self.table().select("*").eq("category", category).order("name").execute()
        )
        return [Food.from_row(r) for r in rows]

    async def create_food(self, coach_id: Optional[str], data: FoodCreate) -> Food:
        name = data.name.strip()
        if not name:
            raise ValidationError("Food name is required")
        now = now_iso()
        row: Dict[str, Any] = {
            "id": new_id(),
            "name": name,
            "category": data.category,
            "category_id": data.category_id,
            "description": data.description,
            "serving_size": data.serving_size,
            "portion_guidelines": data.portion_guidelines,
            "nutritional_info": data.nutritional_info.model_dump(exclude_none=True)
            if data.nutritional_info
            else None,
            "fdc_id": data.fdc_id,
            "is_global": data.is_global,
            "source": data.source,
            "tags": _clean_tags(data.tags),
            "coach_id": coach_id,
            "created_at": now,
            "last_updated": now,
        }
        created = await self._first(lambda: self.table().insert(row).execute(), context={"name": name})
        if created is None:
            raise PersistenceError("Failed to create food")
        return Food.from_row(created)

    async def _owned_food(self, food_id: str, coach_id: str, action: str) -> Food:
        food = await self.get_food(food_id)
        if food is None:
            raise NotFoundError("Food not found")
        if food.is_global:
            raise AccessDeniedError(f"Cannot {action} global foods")
        if food.coach_id != str(coach_id):
            raise AccessDeniedError(f"Cannot {action} food belonging to another coach")
        return food

    async def update_food(self, food_id: str, coach_id: str, updates: FoodUpdate) -> Food:
        await self._owned_food(food_id, coach_id, "edit")
        payload: Dict[str, Any] = {
            k: v
            for k, v in updates.model_dump(exclude_unset=True, exclude={"tags"}).items()
            if v is not None
        }
        if "name" in payload:
            payload["name"] = payload["name"].strip()
            if not payload["name"]:
                raise ValidationError("Food name is required")
        if updates.tags is not None:
            payload["tags"] = _clean_tags(updates.tags)
        payload["last_updated"] = now_iso()
        row = await self._first(
            lambda: self.table().update(payload).eq("id", food_id).execute(),
            context={"food_id": food_id},
        )
        if row is None:
            raise NotFoundError("Food not found")
        return Food.from_row(row)

    async def delete_food(self, food_id: str, coach_id: str) -> bool:
        await self._owned_food(food_id, coach_id, "delete")
        await self._call_db(
            lambda: self.table().delete().eq("id", food_id).execute(),
            context={"food_id": food_id},
        )
        return True
