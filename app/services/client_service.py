# app/services/client_service.py
"""
Client records owned by a coach (`clients` table).

Text fields are trimmed and blank goals/restrictions dropped on every write.
Reads and writes enforce ownership: touching another coach's client raises
AccessDeniedError.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.models.client import Client, ClientCreate, ClientUpdate
from app.services.errors import (
    AccessDeniedError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.services.store import SupabaseRepository, new_id, now_iso

logger = logging.getLogger(__name__)


def _clean_list(items: Optional[List[str]]) -> List[str]:
    return [i.strip() for i in (items or []) if i and i.strip()]


class ClientService(SupabaseRepository):
    table_name = "clients"

    async def create_client(self, coach_id: str, data: ClientCreate) -> Client:
        name = data.name.strip()
        if not name:
            raise ValidationError("Client name is required")
        now = now_iso()
        row: Dict[str, Any] = {
            "id": new_id(),
            "coach_id": str(coach_id),
            "name": name,
            "session_notes": (data.session_notes or "").strip(),
            "goals": _clean_list(data.goals),
            "restrictions": _clean_list(data.restrictions),
            "created_at": now,
            "last_updated": now,
        }
        if data.email and data.email.strip():
            row["email"] = data.email.strip()
        created = await self._first(lambda: self.table().insert(row).execute(), context={"coach_id": coach_id})
        if created is None:
            raise PersistenceError("Failed to create client")
        return Client.from_row(created)

    async def list_clients(self, coach_id: str) -> List[Client]:
        rows = await self._call_db(
            lambda: self.table()
            .select("*")
            .eq("coach_id", coach_id)
            .order("last_updated", desc=True)
            .execute(),
            context={"coach_id": coach_id},
        )
        return [Client.from_row(r) for r in rows]

    async def get_client(self, client_id: str, coach_id: str) -> Client:
        row = await self._first(
            lambda: self.table().select("*").eq("id", client_id).limit(1).execute(),
            context={"client_id": client_id},
        )
        if row is None:
            raise NotFoundError("Client not found")
        client = Client.from_row(row)
        if client.coach_id != str(coach_id):
            raise AccessDeniedError("Access denied: client belongs to a different coach")
        return client

    async def update_client(self, client_id: str, coach_id: str, updates: ClientUpdate) -> Client:
        await self.get_client(client_id, coach_id)
        payload: Dict[str, Any] = {"last_updated": now_iso()}
        if updates.name is not None and updates.name.strip():
            payload["name"] = updates.name.strip()
        if updates.email is not None:
            payload["email"] = updates.email.strip()
        if updates.session_notes is not None:
            payload["session_notes"] = updates.session_notes.strip()
        if updates.goals is not None:
            payload["goals"] = _clean_list(updates.goals)
        if updates.restrictions is not None:
            payload["restrictions"] = _clean_list(updates.restrictions)
        row = await self._first(
            lambda: self.table().update(payload).eq("id", client_id).execute(),
            context={"client_id": client_id},
        )
        if row is None:
            raise NotFoundError("Client not found")
        return Client.from_row(row)

    async def delete_client(self, client_id: str, coach_id: str) -> bool:
        await self.get_client(client_id, coach_id)
        await self._call_db(
            lambda: self.table().delete().eq("id", client_id).execute(),
            context={"client_id": client_id},
        )
        return True

    async def search_clients(self, coach_id: str, term: str) -> List[Client]:
        clients = await self.list_clients(coach_id)
        needle = (term or "").strip().lower()
        if not needle:
            return clients
        return [
            c
            for c in clients
            if needle in c.name.lower()
            or (c.email and needle in c.email.lower())
            or any(needle in g.lower() for g in c.goals)
        ]
