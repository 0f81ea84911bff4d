# app/tests/conftest.py
import copy
from typing import Any, Callable, Dict, List, Optional

import pytest

from app.config.settings import settings


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    """
    Deterministic settings for every test. No external credentials: services that
    need FDC or Hugging Face get keys passed explicitly.
    """
    monkeypatch.setattr(settings, "public_base_url", "https://plans.example.com")
    monkeypatch.setattr(settings, "tracking_max_retries", 3)
    monkeypatch.setattr(settings, "fdc_api_key", None)
    monkeypatch.setattr(settings, "huggingface_api_key", None)
    return monkeypatch


# ---------------------------------------------------------------------
# Small in-memory FakeDB and FakeTable mimicking the supabase query builder
# ---------------------------------------------------------------------
class FakeTable:

    def __init__(self, db: "FakeDB", name: str):
        self.db = db
        self.name = name
        self._where: List[Callable[[Dict[str, Any]], bool]] = []
        self._operation = None
        self._limit: Optional[int] = None
        self._order: Optional[tuple] = None

    # Query building (chainable)
    def select(self, *args, **kwargs):
        return self

    def eq(self, col, val):
        self._where.append(lambda r: str(r.get(col)) == str(val))
        return self

    def is_(self, col, val):
        # only the NULL test is used
        self._where.append(lambda r: r.get(col) is None)
        return self

    def in_(self, col, values):
        allowed = {str(v) for v in values}
        self._where.append(lambda r: str(r.get(col)) in allowed)
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def insert(self, payload):
        self._operation = ("insert", payload)
        return self

    def update(self, payload):
        self._operation = ("update", payload)
        return self

    def upsert(self, payload, on_conflict=None):
        self._operation = ("upsert", payload, on_conflict or "id")
        return self

    def delete(self):
        self._operation = ("delete", None)
        return self

    def _matches(self, row: Dict[str, Any]) -> bool:
        return all(pred(row) for pred in self._where)

    def execute(self):
        self.db.calls.append((self.name, self._operation[0] if self._operation else "select"))
        if self.db.fail_with is not None:
            raise self.db.fail_with
        rows = self.db.tables.setdefault(self.name, [])
        op = self._operation

        if not op:
            found = [r for r in rows if self._matches(r)]
            if self._order:
                col, desc = self._order
                found.sort(key=lambda r: str(r.get(col) or ""), reverse=desc)
            if self._limit:
                found = found[: self._limit]
            return {"data": copy.deepcopy(found)}

        typ = op[0]
        if typ == "insert":
            payload = [op[1]] if isinstance(op[1], dict) else op[1]
            created = []
            for item in payload:
                row = copy.deepcopy(item)
                row.setdefault("id", self.db.next_id(self.name))
                rows.append(row)
                created.append(copy.deepcopy(row))
            return {"data": created}
        if typ == "update":
            hook = self.db.before_update.pop(0) if self.db.before_update else None
            if hook is not None:
                hook(self.db)
            updated = []
            for r in rows:
                if self._matches(r):
                    r.update(copy.deepcopy(op[1]))
                    updated.append(copy.deepcopy(r))
            return {"data": updated}
        if typ == "upsert":
            payload, key = op[1], op[2]
            for r in rows:
                if str(r.get(key)) == str(payload.get(key)):
                    r.update(copy.deepcopy(payload))
                    return {"data": [copy.deepcopy(r)]}
            rows.append(copy.deepcopy(payload))
            return {"data": [copy.deepcopy(payload)]}
        if typ == "delete":
            kept = [r for r in rows if not self._matches(r)]
            removed = [r for r in rows if self._matches(r)]
            self.db.tables[self.name] = kept
            return {"data": removed}
        raise ValueError(f"unsupported operation {typ}")


class FakeDB:

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.calls: List[tuple] = []
        # callables run (and consumed) right before the next update executes
        self.before_update: List[Callable[["FakeDB"], None]] = []
        self.fail_with: Optional[Exception] = None
        self._ids: Dict[str, int] = {}

    def next_id(self, table: str) -> str:
        self._ids[table] = self._ids.get(table, 0) + 1
        return f"{table}-{self._ids[table]}"

    def table(self, name: str) -> FakeTable:
        return FakeTable(self, name)

    def rows(self, name: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(name, [])

    def writes(self, name: str) -> List[str]:
        return [op for table, op in self.calls if table == name and op != "select"]


@pytest.fixture
def fake_db():
    return FakeDB()


def ingredient(food_id, color="blue", selected=True, checked=False, category_id="vegetables"):
    return {
        "foodId": food_id,
        "categoryId": category_id,
        "colorCode": color,
        "isSelected": selected,
        "clientChecked": checked,
    }


def document_row(
    doc_id="doc-1",
    token="abcDEF123_-xyz789QRST",
    status="published",
    ingredients=None,
    coach_id="coach-1",
    version=1,
    client_name="Jane Doe",
):
    return {
        "id": doc_id,
        "client_name": client_name,
        "coach_id": coach_id,
        "share_token": token,
        "ingredients": ingredients if ingredients is not None else [ingredient("f1")],
        "status": status,
        "version": version,
        "created_at": "2024-05-01T10:00:00+00:00",
        "updated_at": "2024-05-01T10:00:00+00:00",
    }


def food_row(food_id, name, category="blue", category_id="vegetables", **extra):
    row = {
        "id": food_id,
        "name": name,
        "category": category,
        "category_id": category_id,
        "tags": [],
        "is_global": True,
        "source": "manual",
    }
    row.update(extra)
    return row
