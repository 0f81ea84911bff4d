# app/tests/test_fdc_service.py
import json

import httpx
import pytest

from app.models.fdc import FDCSearchCriteria
from app.services.errors import ExternalServiceError, ServiceUnavailableError
from app.services.fdc_service import (
    FDCService,
    assign_color_category,
    calculate_confidence,
    clean_food_name,
    extract_nutritional_info,
    generate_serving_size,
    generate_tags,
)
from app.services.nutrition_service import NutritionCache, NutritionService, process_fdc_nutrition
from app.models.food import Food

SPINACH = {
    "fdcId": 168462,
    "description": "Spinach, raw",
    "dataType": "SR Legacy",
    "foodNutrients": [
        {"number": "208", "name": "Energy", "amount": 23},
        {"number": "203", "name": "Protein", "amount": 2.86},
        {"number": "204", "name": "Total lipid (fat)", "amount": 0.39},
        {"number": "205", "name": "Carbohydrate, by difference", "amount": 3.63},
        {"number": "291", "name": "Fiber, total dietary", "amount": 2.2},
        {"number": "269", "name": "Sugars, total", "amount": 0.42},
        {"number": "307", "name": "Sodium, Na", "amount": 79},
    ],
}


def make_service(handler, api_key="test-key"):
    return FDCService(api_key=api_key, base_url="https://fdc.test/fdc", transport=httpx.MockTransport(handler))


@pytest.mark.parametrize(
    "food,expected",
    [
        ({"description": "Chocolate chip cookies"}, "red"),
        ({"description": "Broccoli, frozen"}, "blue"),
        ({"description": "Pears, raw", "dataType": "Foundation"}, "blue"),
        ({"description": "Granola bar", "dataType": "Branded", "brandOwner": "Organic Co"}, "yellow"),
        ({"description": "Granola bar", "dataType": "Branded"}, "red"),
        ({"description": "Brown rice, cooked", "dataType": "SR Legacy"}, "yellow"),
    ],
)
def test_assign_color_category(food, expected):
    assert assign_color_category(food) == expected


def test_enrichment_helpers():
    assert calculate_confidence(SPINACH) == 1.0
    assert calculate_confidence({"dataType": "Branded"}) == 0.3
    assert generate_tags(SPINACH) == ["sr-legacy", "raw"]
    assert clean_food_name("Broccoli raw  florets") == "Broccoli florets"
    assert generate_serving_size({"servingSize": 30, "servingSizeUnit": "g"}) == "30 g"
    assert generate_serving_size({"description": "Mixed nuts"}) == "1 oz (small handful)"


def test_extract_nutritional_info_from_nutrient_list():
    info = extract_nutritional_info(SPINACH)
    assert info.calories == 23
    assert info.protein == 2.86
    assert info.fiber == 2.2


def test_extract_nutritional_info_prefers_label():
    info = extract_nutritional_info({"labelNutrients": {"calories": {"value": 120}, "fat": {"value": 4}}})
    assert info.calories == 120
    assert info.fat == 4
    assert info.protein == 0


@pytest.mark.asyncio
async def test_search_sends_criteria_and_api_key():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = request.url
        return httpx.Response(200, json={"totalHits": 1, "currentPage": 1, "totalPages": 1, "foods": [SPINACH]})

    service = make_service(handler)
    result = await service.search_foods(FDCSearchCriteria(query="spinach", page_size=5, data_type=["SR Legacy"]))

    assert seen["url"].path == "/fdc/v1/foods/search"
    params = seen["url"].params
    assert params["api_key"] == "test-key"
    assert params["query"] == "spinach"
    assert params["pageSize"] == "5"
    assert params["dataType"] == "SR Legacy"
    assert result["totalHits"] == 1
    assert result["foods"][0]["fdcId"] == 168462


@pytest.mark.asyncio
async def test_search_enhanced_adds_colour():
    service = make_service(lambda r: httpx.Response(200, json={"foods": [SPINACH]}))
    foods = await service.search_foods_enhanced(FDCSearchCriteria(query="spinach"))
    assert foods[0]["category"] == "blue"
    assert foods[0]["portionGuidelines"].startswith("Unlimited")


@pytest.mark.asyncio
async def test_get_foods_posts_ids():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[SPINACH])

    service = make_service(handler)
    foods = await service.get_foods([168462], nutrients=[208])
    assert seen["method"] == "POST"
    assert seen["body"] == {"fdcIds": [168462], "format": "abridged", "nutrients": [208]}
    assert foods == [SPINACH]


@pytest.mark.asyncio
async def test_get_food_missing_returns_none():
    service = make_service(lambda r: httpx.Response(404, json={}))
    assert await service.get_food(1) is None


@pytest.mark.asyncio
async def test_upstream_errors_are_wrapped():
    service = make_service(lambda r: httpx.Response(500, text="boom"))
    with pytest.raises(ExternalServiceError):
        await service.search_foods(FDCSearchCriteria(query="x"))

    def unreachable(request):
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(ExternalServiceError):
        await make_service(unreachable).get_foods([1])


@pytest.mark.asyncio
async def test_unconfigured_service():
    service = FDCService(api_key="")
    assert service.is_available() is False
    with pytest.raises(ServiceUnavailableError):
        await service.search_foods(FDCSearchCriteria(query="x"))


def test_convert_to_food_item():
    item = make_service(lambda r: httpx.Response(200)).convert_to_food_item(SPINACH)
    assert item.source == "fdc"
    assert item.fdc_id == 168462
    assert item.category == "blue"
    assert item.nutritional_info.calories == 23
    assert "raw" in item.tags


# --- nutrition lookups ---


def test_process_fdc_nutrition():
    info = process_fdc_nutrition(SPINACH)
    assert info["calories"] == 23
    assert info["protein"] == 2.9
    assert info["sodium"] == 79
    assert info["servingInfo"] == "Per 100g"


@pytest.mark.asyncio
async def test_nutrition_lookup_is_cached():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json=[SPINACH])

    cache = NutritionCache()
    service = NutritionService(make_service(handler), cache)
    food = Food(id="f1", name="Spinach", category="blue", fdc_id=168462)

    first = await service.get_nutritional_info(food)
    second = await service.get_nutritional_info(food)
    assert first == second
    assert len(calls) == 1
    assert 168462 in cache and len(cache) == 1

    cache.invalidate(168462)
    await service.get_nutritional_info(food)
    assert len(calls) == 2
    cache.clear()
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_nutrition_lookup_without_fdc_id():
    service = NutritionService(make_service(lambda r: httpx.Response(500)), NutritionCache({}))
    food = Food(id="f1", name="Homemade soup", category="yellow")
    assert service.has_nutritional_data(food) is False
    assert await service.get_nutritional_info(food) is None


def test_caches_are_isolated():
    a, b = NutritionCache(), NutritionCache()
    a.set(1, {"calories": 1})
    assert b.get(1) is None
