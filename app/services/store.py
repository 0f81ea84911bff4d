# app/services/store.py
"""
Shared plumbing for services backed by the Supabase tables.

- All blocking supabase SDK calls run through asyncio.to_thread so the event
  loop is never blocked.
- SDK responses are normalized whether they arrive as an object with `.data`
  or as a dict with "data".
- Store failures surface as PersistenceError (public-safe message); the
  underlying exception is logged with whatever context the caller passes.
"""
from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from app.config.supabase import supabase_client
from app.services.errors import PersistenceError, ServiceUnavailableError

logger = logging.getLogger(__name__)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return uuid.uuid4().hex


def parse_supabase_response(resp: Any) -> Dict[str, Any]:
    """
    Turn Supabase SDK responses (object with .data or dict) into a predictable dict.
    Returns {ok, data, status_code, raw}
    """
    if resp is None:
        return {"ok": False, "data": None, "status_code": None, "raw": None}

    if hasattr(resp, "data"):
        data = getattr(resp, "data")
        status_code = getattr(resp, "status_code", None)
        return {"ok": data is not None, "data": data, "status_code": status_code, "raw": resp}

    if isinstance(resp, dict):
        data = resp.get("data")
        status_code = resp.get("status_code", resp.get("status"))
        return {"ok": data is not None, "data": data, "status_code": status_code, "raw": resp}

    return {"ok": False, "data": None, "status_code": None, "raw": str(resp)}


async def run_blocking(fn: Callable, *args, **kwargs) -> Any:
    return await asyncio.to_thread(lambda: fn(*args, **kwargs))


def version_guard(query: Any, version: Optional[int]) -> Any:
    """Restrict an update to rows still holding `version` (NULL included)."""
    if version is None:
        return query.is_("version", "null")
    return query.eq("version", version)


def next_version(version: Optional[int]) -> int:
    return (version or 0) + 1


def rows_of(data: Any) -> List[Dict[str, Any]]:
    if data is None:
        return []
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    if isinstance(data, dict):
        return [data]
    return []


class SupabaseRepository:
    """
    Base for table-backed services. Subclasses set `table_name`.

    Pass `client` explicitly in tests; otherwise the global supabase client is used.
    """

    table_name: str = ""

    def __init__(self, client: Any = None):
        self.client = client if client is not None else getattr(supabase_client, "client", None)
        if self.client is None:
            logger.warning(
                "%s: Supabase client not available. DB operations will fail.",
                type(self).__name__,
            )

    def table(self):
        return self.client.table(self.table_name)

    async def _call_db(self, fn: Callable, *args, context: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Run blocking DB function in a thread and return the affected rows.
        `fn` should invoke the supabase SDK and return its raw response.
        """
        if self.client is None:
            raise ServiceUnavailableError("Database is not configured")
        try:
            raw = await run_blocking(fn, *args)
        except Exception as exc:
            logger.exception(
                "DB call %s on %s failed context=%s: %s",
                getattr(fn, "__name__", str(fn)),
                self.table_name,
                context or {},
                exc,
            )
            raise PersistenceError() from exc
        parsed = parse_supabase_response(raw)
        return rows_of(parsed.get("data"))

    async def _first(self, fn: Callable, *args, context: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        rows = await self._call_db(fn, *args, context=context)
        return rows[0] if rows else None
