# app/tests/test_endpoints.py
"""
Health, readiness and error-shape tests for the FastAPI app.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

import main
from app.api import ai, deps, fdc, nutrition
from app.api.deps import get_current_coach_id
from app.config import database
from app.config import supabase as supabase_config
from app.models.food import Food
from app.services.categorization_service import CategorizationService
from app.services.fdc_service import FDCService
from app.services.nutrition_service import NutritionCache, NutritionService
from app.services.recommendation_service import RecommendationService


@pytest.fixture
def client():
    main.app.dependency_overrides[get_current_coach_id] = lambda: "coach-1"
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_root(client):
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_health_reports_database_state(client, monkeypatch):
    monkeypatch.setattr(main, "supabase_client", SimpleNamespace(health_check=lambda: True))
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["database"] == "connected"

    monkeypatch.setattr(main, "supabase_client", SimpleNamespace(health_check=lambda: False))
    r = client.get("/health")
    assert r.status_code == 503
    assert r.json()["status"] == "degraded"


def test_ready_uses_cached_state(client, monkeypatch):
    monkeypatch.setattr(main.app.state, "supabase_healthy", True, raising=False)
    assert client.get("/ready").json() == {"ready": True, "database": "connected"}
    monkeypatch.setattr(main.app.state, "supabase_healthy", False, raising=False)
    assert client.get("/ready").status_code == 503


def test_unexpected_errors_do_not_leak(monkeypatch):
    monkeypatch.setattr(
        deps,
        "auth_service",
        MagicMock(verify_token=AsyncMock(side_effect=RuntimeError("db password is hunter2"))),
    )
    r = TestClient(main.app, raise_server_exceptions=False).get(
        "/api/auth/me", headers={"Authorization": "Bearer x"}
    )
    assert r.status_code == 500
    assert "hunter2" not in r.text


def test_fdc_search_requires_query_and_configuration(client, monkeypatch):
    assert client.get("/api/fdc/search").status_code == 400
    monkeypatch.setattr(fdc, "fdc_service", FDCService(api_key=""))
    r = client.get("/api/fdc/search?query=kale")
    assert r.status_code == 503
    assert r.json()["error"] == "FDC API service is not configured"


def test_fdc_import_without_saving(client, monkeypatch):
    record = {"fdcId": 11, "description": "Kale, raw", "dataType": "Foundation", "foodNutrients": []}
    service = FDCService(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[record])))
    monkeypatch.setattr(fdc, "fdc_service", service)
    r = client.post("/api/fdc/foods", json={"fdcIds": [11]})
    assert r.status_code == 200
    assert r.json()["foods"][0]["category"] == "blue"
    assert client.post("/api/fdc/foods", json={"fdcIds": []}).status_code == 400


def test_nutrition_lookup(client, monkeypatch):
    record = {"fdcId": 11, "foodNutrients": [{"number": "208", "amount": 49}]}
    service = FDCService(api_key="k", transport=httpx.MockTransport(lambda r: httpx.Response(200, json=[record])))
    monkeypatch.setattr(nutrition, "nutrition_service", NutritionService(service, NutritionCache()))
    r = client.post("/api/nutrition", json={"fdcIds": [11]})
    assert r.json()["nutrition"]["11"]["calories"] == 49
    assert client.post("/api/nutrition", json={}).status_code == 400


def test_recommendations_route(client, monkeypatch):
    monkeypatch.setattr(
        ai,
        "food_service",
        MagicMock(list_all=AsyncMock(return_value=[Food(id="f1", name="Milk", category="yellow")])),
    )
    monkeypatch.setattr(ai, "recommendation_service", RecommendationService(api_key="hf"))
    r = client.post("/api/ai/food-recommendations", json={"clientProfile": "Lactose intolerant adult"})
    assert r.status_code == 200
    body = r.json()
    assert body["hardRulesApplied"] == 1
    assert body["recommendations"][0]["method"] == "hard-rule"

    r = client.post("/api/ai/food-recommendations", json={"clientProfile": "short"})
    assert r.status_code == 400


def test_database_accessor(monkeypatch):
    monkeypatch.setattr(supabase_config, "supabase_client", SimpleNamespace(client=None, diagnostics=lambda: {"host": None}))
    assert database.is_initialized() is False
    with pytest.raises(database.SupabaseClientNotInitialized):
        database.get_supabase_client()
    diag = database.get_client_diagnostics()
    assert diag["initialized"] is False
    assert diag["host"] is None


def test_categorize_route(client, monkeypatch):
    monkeypatch.setattr(ai, "categorization_service", CategorizationService(api_key=""))
    r = client.post(
        "/api/ai/categorize",
        json={"foods": [{"id": "a", "name": "Salmon"}, {"id": "b", "name": "Mystery"}]},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["results"]["a"]["category"] == "seafood"
    assert body["results"]["b"]["method"] == "fallback"
    assert body["stats"]["regexCount"] == 1
    assert client.post("/api/ai/categorize", json={"foods": []}).status_code == 400
