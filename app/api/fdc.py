# app/api/fdc.py
"""
USDA FoodData Central search and import for coaches.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import ValidationError as PydanticValidationError

from app.api.deps import get_current_coach_id
from app.models.fdc import FDCFoodsRequest, FDCSearchCriteria
from app.services.errors import ValidationError
from app.services.fdc_service import MAX_IDS_PER_REQUEST, FDCService
from app.services.food_service import FoodService

logger = logging.getLogger(__name__)
router = APIRouter()

fdc_service = FDCService()
food_service = FoodService()


@router.get("/search")
async def search(
    query: Optional[str] = Query(default=None),
    data_type: Optional[List[str]] = Query(default=None, alias="dataType"),
    page_size: int = Query(default=20, alias="pageSize"),
    page_number: int = Query(default=0, alias="pageNumber"),
    sort_by: Optional[str] = Query(default=None, alias="sortBy"),
    sort_order: Optional[str] = Query(default=None, alias="sortOrder"),
    brand_owner: Optional[str] = Query(default=None, alias="brandOwner"),
    enhanced: bool = Query(default=True),
    coach_id: str = Depends(get_current_coach_id),
) -> Dict[str, Any]:
    if not query or not query.strip():
        raise ValidationError("Query parameter is required")
    params: Dict[str, Any] = {
        "query": query.strip(),
        "data_type": data_type,
        "page_size": page_size,
        "page_number": page_number,
        "brand_owner": brand_owner,
    }
    if sort_by:
        params["sort_by"] = sort_by
    if sort_order:
        params["sort_order"] = sort_order
    try:
        criteria = FDCSearchCriteria(**params)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid search parameters") from exc

    if enhanced:
        foods = await fdc_service.search_foods_enhanced(criteria)
        return {"ok": True, "foods": foods, "totalHits": len(foods)}
    return {"ok": True, **await fdc_service.search_foods(criteria)}


@router.post("/foods")
async def import_foods(body: FDCFoodsRequest, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    if not body.fdc_ids:
        raise ValidationError("fdcIds array is required")
    if len(body.fdc_ids) > MAX_IDS_PER_REQUEST:
        raise ValidationError(f"At most {MAX_IDS_PER_REQUEST} fdcIds per request")

    fdc_foods = await fdc_service.get_foods(body.fdc_ids, format=body.format, nutrients=body.nutrients)
    items = [fdc_service.convert_to_food_item(f) for f in fdc_foods]
    if not body.save:
        return {"ok": True, "foods": [i.to_api() for i in items]}

    saved = [await food_service.create_food(coach_id, item) for item in items]
    logger.info("Imported %d FDC foods for coach %s", len(saved), coach_id)
    return {"ok": True, "foods": [f.to_api() for f in saved]}
