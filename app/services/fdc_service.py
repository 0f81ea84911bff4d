# app/services/fdc_service.py
"""
USDA FoodData Central (FDC) client.

- Async HTTP via httpx; the API key travels as the `api_key` query parameter.
- Search results are enriched with a colour category (blue/yellow/red), a
  confidence score, portion guidelines and tags.
- `convert_to_food_item` maps an FDC record onto a FoodCreate for the catalog.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import settings
from app.models.fdc import FDCSearchCriteria
from app.models.food import FoodCreate, NutritionalInfo
from app.services.errors import ExternalServiceError, ServiceUnavailableError

logger = logging.getLogger(__name__)

MAX_IDS_PER_REQUEST = 20

BLUE_KEYWORDS = [
    "spinach", "kale", "broccoli", "cauliflower", "asparagus",
    "salmon", "tuna", "cod", "halibut", "sardines",
    "chicken breast", "turkey breast", "egg whites",
    "bell pepper", "cucumber", "zucchini", "lettuce",
    "herbs", "spices", "tea", "water",
]
RED_KEYWORDS = [
    "candy", "chocolate", "cookies", "cake", "ice cream",
    "soda", "chips", "fries", "pizza", "burger",
    "fried", "processed", "refined", "sugar", "syrup",
    "white bread", "donut", "pastry",
]

PORTION_GUIDELINES = {
    "blue": "Unlimited - use freely as the base of meals and snacks",
    "yellow": "Moderate portions - include as part of balanced meals",
    "red": "Limited portions - occasional treats or special occasions only",
}

_PREP_TERMS_RE = re.compile(r"\b(raw|fresh|frozen|canned|dried)\b", re.IGNORECASE)
_WHOLE_FOOD_TYPES = ("Foundation", "SR Legacy")


def assign_color_category(food: Dict[str, Any]) -> str:
    description = (food.get("description") or "").lower()
    data_type = food.get("dataType")
    brand_owner = (food.get("brandOwner") or "").lower()
    ingredients = (food.get("ingredients") or "").lower()

    if any(k in description for k in RED_KEYWORDS):
        return "red"
    if any(k in description for k in BLUE_KEYWORDS):
        return "blue"
    if data_type in _WHOLE_FOOD_TYPES and ("raw" in description or "fresh" in description):
        return "blue"
    if data_type == "Branded":
        if "organic" in brand_owner or "organic" in ingredients:
            return "yellow"
        return "red"
    # everything else, including grains, nuts and legumes, sits in the middle tier
    return "yellow"


def calculate_confidence(food: Dict[str, Any]) -> float:
    confidence = 0.5
    if food.get("dataType") in _WHOLE_FOOD_TYPES:
        confidence += 0.3
    if food.get("dataType") == "Branded" and not food.get("ingredients"):
        confidence -= 0.2
    if food.get("foodNutrients"):
        confidence += 0.2
    return round(max(0.0, min(1.0, confidence)), 2)


def generate_tags(food: Dict[str, Any]) -> List[str]:
    tags: List[str] = []
    description = (food.get("description") or "").lower()
    if food.get("dataType"):
        tags.append(re.sub(r"[^a-z]", "-", food["dataType"].lower()))
    for word in ("organic", "raw", "fresh", "frozen", "canned", "dried"):
        if word in description:
            tags.append(word)
    if food.get("brandOwner"):
        tags.append("branded")
    return tags[:10]


def clean_food_name(description: str) -> str:
    return re.sub(r"\s+", " ", _PREP_TERMS_RE.sub("", description or "")).strip()


def generate_description(food: Dict[str, Any]) -> str:
    description = food.get("description") or ""
    if food.get("brandOwner"):
        description += f" ({food['brandOwner']})"
    if food.get("dataType") == "Foundation":
        description += " - USDA Foundation Food"
    return description


def generate_serving_size(food: Dict[str, Any]) -> str:
    if food.get("servingSize") and food.get("servingSizeUnit"):
        return f"{food['servingSize']} {food['servingSizeUnit']}"
    description = (food.get("description") or "").lower()
    if "vegetable" in description or "fruit" in description:
        return "1 cup"
    if "meat" in description or "fish" in description or "poultry" in description:
        return "4 oz (palm-sized portion)"
    if "nuts" in description or "seeds" in description:
        return "1 oz (small handful)"
    if "oil" in description:
        return "1 tablespoon"
    return "1 serving"


def _nutrient_number(nutrient: Dict[str, Any]) -> Optional[int]:
    # abridged results use {"number": "208"}, full results nest it under "nutrient"
    raw = nutrient.get("number")
    if raw is None and isinstance(nutrient.get("nutrient"), dict):
        raw = nutrient["nutrient"].get("number")
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None


def _nutrient_name(nutrient: Dict[str, Any]) -> str:
    name = nutrient.get("name")
    if name is None and isinstance(nutrient.get("nutrient"), dict):
        name = nutrient["nutrient"].get("name")
    return (name or "").lower()


def extract_nutritional_info(food: Dict[str, Any]) -> NutritionalInfo:
    """Calories/protein/carbs/fat/fiber from label nutrients or the nutrient list."""
    label = food.get("labelNutrients")
    if isinstance(label, dict):
        def value(key: str) -> float:
            return float((label.get(key) or {}).get("value") or 0)

        return NutritionalInfo(
            calories=value("calories"),
            protein=value("protein"),
            carbs=value("carbohydrates"),
            fat=value("fat"),
            fiber=value("fiber"),
        )

    info = {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fat": 0.0, "fiber": 0.0}
    for nutrient in food.get("foodNutrients") or []:
        number = _nutrient_number(nutrient)
        name = _nutrient_name(nutrient)
        amount = float(nutrient.get("amount") or nutrient.get("value") or 0)
        if number == 208 or "energy" in name or "calories" in name:
            info["calories"] = amount
        elif number == 203 or "protein" in name:
            info["protein"] = amount
        elif number == 205 or "carbohydrate" in name:
            info["carbs"] = amount
        elif number == 204 or "total lipid" in name or "fat" in name:
            info["fat"] = amount
        elif number == 291 or "fiber" in name:
            info["fiber"] = amount
    return NutritionalInfo(**info)


def enhance_food_item(food: Dict[str, Any]) -> Dict[str, Any]:
    category = assign_color_category(food)
    return {
        **food,
        "category": category,
        "confidence": calculate_confidence(food),
        "portionGuidelines": PORTION_GUIDELINES[category],
        "tags": generate_tags(food),
    }


class FDCService:

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.fdc_api_key
        self.base_url = (base_url or settings.fdc_base_url).rstrip("/")
        self.timeout = settings.http_timeout_seconds
        self._transport = transport
        if not self.api_key:
            logger.warning("FDCService: FDC_API_KEY not set. FDC integration will be disabled.")

    def is_available(self) -> bool:
        return bool(self.api_key)

    def _require_available(self) -> None:
        if not self.is_available():
            raise ServiceUnavailableError("FDC API service is not configured")

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        params = {**kwargs.pop("params", {}), "api_key": self.api_key}
        try:
            async with self._client() as client:
                return await client.request(method, f"{self.base_url}{path}", params=params, **kwargs)
        except httpx.HTTPError as exc:
            logger.exception("FDC request %s %s failed: %s", method, path, exc)
            raise ExternalServiceError("Food database temporarily unavailable") from exc

    @staticmethod
    def _check(resp: httpx.Response, path: str) -> None:
        if resp.status_code >= 400:
            logger.warning("FDC API error %s on %s: %s", resp.status_code, path, resp.text[:300])
            raise ExternalServiceError("Food database temporarily unavailable")

    async def search_foods(self, criteria: FDCSearchCriteria) -> Dict[str, Any]:
        self._require_available()
        params: Dict[str, Any] = {
            "query": criteria.query,
            "pageSize": criteria.page_size,
            "pageNumber": criteria.page_number,
        }
        if criteria.data_type:
            params["dataType"] = list(criteria.data_type)
        if criteria.sort_by:
            params["sortBy"] = criteria.sort_by
        if criteria.sort_order:
            params["sortOrder"] = criteria.sort_order
        if criteria.brand_owner:
            params["brandOwner"] = criteria.brand_owner

        path = "/v1/foods/search"
        resp = await self._request("GET", path, params=params)
        self._check(resp, path)
        data = resp.json()
        if not isinstance(data, dict):
            raise ExternalServiceError("Invalid search result format")
        return {
            "foodSearchCriteria": data.get("foodSearchCriteria") or {},
            "totalHits": data.get("totalHits") or 0,
            "currentPage": data.get("currentPage") or 0,
            "totalPages": data.get("totalPages") or 0,
            "foods": data.get("foods") if isinstance(data.get("foods"), list) else [],
        }

    async def search_foods_enhanced(
        self, criteria: FDCSearchCriteria, include_color_assignment: bool = True
    ) -> List[Dict[str, Any]]:
        result = await self.search_foods(criteria)
        if not include_color_assignment:
            return [dict(f) for f in result["foods"]]
        return [enhance_food_item(f) for f in result["foods"]]

    async def get_foods(
        self,
        fdc_ids: List[int],
        format: str = "abridged",
        nutrients: Optional[List[int]] = None,
    ) -> List[Dict[str, Any]]:
        self._require_available()
        body: Dict[str, Any] = {"fdcIds": list(fdc_ids), "format": format or "abridged"}
        if nutrients:
            body["nutrients"] = list(nutrients)
        path = "/v1/foods"
        resp = await self._request("POST", path, json=body)
        self._check(resp, path)
        data = resp.json()
        return data if isinstance(data, list) else []

    async def get_food(self, fdc_id: int, format: str = "abridged") -> Optional[Dict[str, Any]]:
        self._require_available()
        path = f"/v1/food/{int(fdc_id)}"
        resp = await self._request("GET", path, params={"format": format})
        if resp.status_code == 404:
            return None
        self._check(resp, path)
        return resp.json()

    def convert_to_food_item(self, fdc_food: Dict[str, Any]) -> FoodCreate:
        enhanced = enhance_food_item(fdc_food)
        return FoodCreate(
            name=clean_food_name(fdc_food.get("description") or "") or "Unnamed food",
            category=enhanced["category"],
            description=generate_description(fdc_food),
            serving_size=generate_serving_size(fdc_food),
            portion_guidelines=enhanced["portionGuidelines"],
            nutritional_info=extract_nutritional_info(fdc_food),
            fdc_id=fdc_food.get("fdcId"),
            is_global=False,
            source="fdc",
            tags=enhanced["tags"],
        )
