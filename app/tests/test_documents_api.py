# app/tests/test_documents_api.py
"""
HTTP tests for coach-authenticated routes: documents, export, clients, foods.
"""
import threading

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from conftest import document_row, food_row, ingredient

import main
from app.api import clients, deps, documents, export, foods
from app.api.deps import bearer_token, get_current_coach_id
from app.models.coach import Coach
from app.models.ingredient_document import IngredientDocument
from app.services.client_service import ClientService
from app.services.document_service import DOCUMENTS_TABLE, DocumentService
from app.services.errors import AuthenticationError
from app.services.food_service import FoodService


@pytest.fixture
def client(fake_db, monkeypatch):
    monkeypatch.setattr(documents, "document_service", DocumentService(client=fake_db))
    monkeypatch.setattr(export, "document_service", DocumentService(client=fake_db))
    monkeypatch.setattr(export, "food_service", FoodService(client=fake_db))
    monkeypatch.setattr(clients, "client_service", ClientService(client=fake_db))
    monkeypatch.setattr(foods, "food_service", FoodService(client=fake_db))
    monkeypatch.setattr(
        deps,
        "auth_service",
        MagicMock(
            get_coach_profile=AsyncMock(
                return_value=Coach(id="coach-1", email="coach@example.com", name="Sam Coach")
            )
        ),
    )
    main.app.dependency_overrides[get_current_coach_id] = lambda: "coach-1"
    yield TestClient(main.app)
    main.app.dependency_overrides.clear()


def test_routes_require_bearer_token(fake_db, monkeypatch):
    monkeypatch.setattr(
        deps,
        "auth_service",
        MagicMock(verify_token=AsyncMock(side_effect=AuthenticationError("Invalid or expired token"))),
    )
    c = TestClient(main.app)
    r = c.get("/api/documents")
    assert r.status_code == 401
    assert r.json()["ok"] is False
    r = c.get("/api/documents", headers={"Authorization": "Bearer expired"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid or expired token"


def test_bearer_token_parsing():
    assert bearer_token("Bearer abc") == "abc"
    assert bearer_token("bearer  abc ") == "abc"
    assert bearer_token("Basic abc") is None
    assert bearer_token("Bearer ") is None
    assert bearer_token(None) is None


def test_create_list_and_get_document(client, fake_db):
    r = client.post(
        "/api/documents",
        json={"clientName": "Jane", "ingredients": [ingredient("f1")]},
    )
    assert r.status_code == 201
    doc = r.json()["document"]
    assert doc["status"] == "draft"
    assert doc["shareUrl"].endswith(doc["shareToken"])

    listed = client.get("/api/documents").json()["documents"]
    assert [d["id"] for d in listed] == [doc["id"]]
    assert client.get(f"/api/documents/{doc['id']}").json()["document"]["clientName"] == "Jane"


def test_create_document_rejects_bad_ingredient(client, fake_db):
    r = client.post(
        "/api/documents",
        json={"clientName": "Jane", "ingredients": [{"foodId": "f1", "isSelected": "yes"}]},
    )
    assert r.status_code == 400
    assert r.json()["ok"] is False
    assert fake_db.rows(DOCUMENTS_TABLE) == []


def test_other_coach_document_is_not_found(client, fake_db):
    fake_db.rows(DOCUMENTS_TABLE).append(document_row(coach_id="coach-2"))
    r = client.get("/api/documents/doc-1")
    assert r.status_code == 404
    assert r.json()["error"] == "Document not found"


def test_publish_and_progress(client, fake_db):
    fake_db.rows(DOCUMENTS_TABLE).append(
        document_row(status="draft", ingredients=[ingredient("f1", checked=True), ingredient("f2", "red")])
    )
    r = client.post("/api/documents/doc-1/publish")
    assert r.json()["document"]["status"] == "published"

    progress = client.get("/api/documents/doc-1/progress").json()["progress"]
    assert progress["percentage"] == 100
    assert progress["breakdown"]["red"]["total"] == 1

    r = client.post("/api/documents/doc-1/unpublish")
    assert r.json()["document"]["status"] == "draft"


def test_regenerate_and_delete(client, fake_db):
    fake_db.rows(DOCUMENTS_TABLE).append(document_row(token="old_token_123"))
    new_token = client.post("/api/documents/doc-1/regenerate-token").json()["document"]["shareToken"]
    assert new_token != "old_token_123"
    assert client.delete("/api/documents/doc-1").json() == {"ok": True}
    assert fake_db.rows(DOCUMENTS_TABLE) == []


def test_update_document(client, fake_db):
    fake_db.rows(DOCUMENTS_TABLE).append(document_row())
    r = client.patch("/api/documents/doc-1", json={"clientName": "Janet"})
    assert r.status_code == 200
    assert r.json()["document"]["clientName"] == "Janet"
    assert r.json()["document"]["version"] == 2


def test_export_pdf(client, fake_db):
    fake_db.rows(DOCUMENTS_TABLE).append(document_row(ingredients=[ingredient("f1")]))
    fake_db.rows("foods").append(food_row("f1", "Spinach"))
    r = client.post("/api/export/pdf", json={"documentId": "doc-1"})
    assert r.status_code == 200
    assert r.content.startswith(b"%PDF")
    assert r.headers["content-disposition"].startswith('attachment; filename="nutrition-plan-jane-doe-')


def test_export_pdf_rejections(client, fake_db):
    fake_db.rows(DOCUMENTS_TABLE).append(document_row(status="draft"))
    r = client.post("/api/export/pdf", json={"documentId": "doc-1"})
    assert r.status_code == 400
    assert r.json()["error"] == "Only published documents can be exported"

    r = client.post("/api/export/pdf", json={"documentId": "missing"})
    assert r.status_code == 404
    assert r.json()["error"] == "Document not found or access denied"


def test_client_crud(client, fake_db):
    r = client.post(
        "/api/clients",
        json={"name": " Ana ", "email": "ana@example.com", "goals": ["energy", " "], "restrictions": ["dairy"]},
    )
    assert r.status_code == 201
    created = r.json()["client"]
    assert created["name"] == "Ana"
    assert created["goals"] == ["energy"]

    assert client.get("/api/clients?q=ENERGY").json()["clients"][0]["id"] == created["id"]
    r = client.patch(f"/api/clients/{created['id']}", json={"sessionNotes": "  slept badly "})
    assert r.json()["client"]["sessionNotes"] == "slept badly"
    assert client.delete(f"/api/clients/{created['id']}").json() == {"ok": True}


def test_client_of_another_coach_is_forbidden(client, fake_db):
    fake_db.rows("clients").append({"id": "c1", "coach_id": "coach-2", "name": "Other"})
    r = client.get("/api/clients/c1")
    assert r.status_code == 403


def test_foods_are_public_and_writes_are_owned(client, fake_db):
    fake_db.rows("foods").extend(
        [food_row("g1", "Broccoli"), food_row("g2", "Candy", "red", "snacks", is_global=True)]
    )
    main.app.dependency_overrides.clear()
    anon = TestClient(main.app)
    names = [f["name"] for f in anon.get("/api/foods").json()["foods"]]
    assert names == ["Broccoli", "Candy"]
    assert [f["id"] for f in anon.get("/api/foods?category=red").json()["foods"]] == ["g2"]
    assert anon.get("/api/foods?category=green").status_code == 400

    main.app.dependency_overrides[get_current_coach_id] = lambda: "coach-1"
    r = client.post("/api/foods", json={"name": "My Salad", "category": "blue", "tags": [" Greens "], "isGlobal": True})
    assert r.status_code == 201
    food = r.json()["food"]
    assert food["isGlobal"] is False
    assert food["tags"] == ["greens"]

    r = client.delete("/api/foods/g1")
    assert r.status_code == 403
    assert r.json()["error"] == "Cannot delete global foods"
    assert client.patch(f"/api/foods/{food['id']}", json={"name": "Big Salad"}).json()["food"]["name"] == "Big Salad"
    r = client.patch(f"/api/foods/{food['id']}", json={"name": "   "})
    assert r.status_code == 400
    assert r.json()["error"] == "Food name is required"


@pytest.mark.asyncio
async def test_pdf_render_runs_off_the_event_loop():
    loop_thread = threading.get_ident()
    seen = {}

    def render(doc, catalog, coach=None):
        seen["thread"] = threading.get_ident()
        seen["catalog"] = catalog
        return b"%PDF-1.4 stub"

    doc = IngredientDocument.from_row(document_row(ingredients=[ingredient("f1")]))
    catalog = MagicMock(get_many=AsyncMock(return_value=["spinach"]))
    r = await export.render_pdf_response(doc, catalog, MagicMock(generate_pdf=render))

    assert seen["thread"] != loop_thread
    assert seen["catalog"] == ["spinach"]
    catalog.get_many.assert_awaited_once_with(["f1"])
    assert r.body == b"%PDF-1.4 stub"
    assert r.headers["content-length"] == str(len(b"%PDF-1.4 stub"))
