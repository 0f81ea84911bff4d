# app/services/sharing_service.py
"""
Public (unauthenticated) access to published plans via share tokens.

Every entry point checks, in order and stopping at the first failure:
  1. token format           -> ValidationError   (400 "Invalid token format")
  2. a document has it      -> NotFoundError     (404 "Not found")
  3. document is published  -> StateConflictError (403)
and the tracking update additionally:
  4. foodId is in the list  -> NotFoundError     (404 "Ingredient not found")

Tracking updates are an optimistic read-modify-write on the document row: the
matched entry gets a new `clientChecked`, every other entry and field stays as
stored, and the write only lands if `version` is unchanged since the read. A
lost race re-reads and re-applies, up to `tracking_max_retries` attempts.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.config.settings import settings
from app.models.ingredient_document import (
    DocumentStatus,
    IngredientDocument,
    PublicDocument,
    TrackingResult,
)
from app.services.document_service import DOCUMENTS_TABLE
from app.services.errors import (
    NotFoundError,
    PersistenceError,
    StateConflictError,
    ValidationError,
)
from app.services.progress import progress_report
from app.services.share_token import is_valid_token, mask_token
from app.services.store import SupabaseRepository, next_version, version_guard

logger = logging.getLogger(__name__)

_TRACKING_COLUMNS = "id,status,ingredients,version"


def _require_valid_token(token: Any) -> str:
    if not is_valid_token(token):
        raise ValidationError("Invalid token format")
    return token


class SharingService(SupabaseRepository):
    table_name = DOCUMENTS_TABLE

    def __init__(self, client: Any = None, max_retries: Optional[int] = None):
        super().__init__(client)
        self.max_retries = settings.tracking_max_retries if max_retries is None else max_retries

    async def _row_for_token(self, token: str, columns: str = "*") -> Dict[str, Any]:
        row = await self._first(
            lambda: self.table().select(columns).eq("share_token", token).limit(1).execute(),
            context={"share_token": mask_token(token)},
        )
        if row is None:
            raise NotFoundError("Not found")
        return row

    async def get_published_document(self, token: Any) -> IngredientDocument:
        token = _require_valid_token(token)
        doc = IngredientDocument.from_row(await self._row_for_token(token))
        if not doc.is_published:
            raise StateConflictError("This document is not available")
        return doc

    async def get_public_document(self, token: Any) -> PublicDocument:
        """Redacted view of a published document."""
        return PublicDocument.from_document(await self.get_published_document(token))

    async def get_public_progress(self, token: Any) -> Dict[str, Any]:
        doc = await self.get_published_document(token)
        return progress_report(doc.ingredients)

    async def update_tracking(self, token: Any, food_id: Any, client_checked: Any) -> TrackingResult:
        """
        Set `clientChecked` on one ingredient of a published document.

        Idempotent: setting the value it already holds performs no write.
        """
        token = _require_valid_token(token)
        if not isinstance(food_id, str) or not food_id.strip():
            raise ValidationError("foodId is required")
        if not isinstance(client_checked, bool):
            raise ValidationError("clientChecked must be a boolean")

        for attempt in range(1, self.max_retries + 1):
            row = await self._row_for_token(token, _TRACKING_COLUMNS)
            if row.get("status") != DocumentStatus.PUBLISHED.value:
                raise StateConflictError("Not available for updates")

            ingredients: List[Dict[str, Any]] = list(row.get("ingredients") or [])
            idx = next(
                (
                    i
                    for i, entry in enumerate(ingredients)
                    if isinstance(entry, dict) and entry.get("foodId") == food_id
                ),
                None,
            )
            if idx is None:
                raise NotFoundError("Ingredient not found")

            if ingredients[idx].get("clientChecked") is client_checked:
                return TrackingResult(food_id=food_id, client_checked=client_checked)

            ingredients[idx] = {**ingredients[idx], "clientChecked": client_checked}
            version = row.get("version")
            updated = await self._call_db(
                lambda: version_guard(
                    self.table()
                    .update({"ingredients": ingredients, "version": next_version(version)})
                    .eq("id", row["id"]),
                    version,
                ).execute(),
                context={"document_id": row.get("id"), "food_id": food_id},
            )
            if updated:
                logger.info(
                    "Tracking updated document=%s foodId=%s clientChecked=%s",
                    row.get("id"),
                    food_id,
                    client_checked,
                )
                return TrackingResult(food_id=food_id, client_checked=client_checked)

            logger.info(
                "Tracking write lost a race document=%s foodId=%s attempt=%d/%d",
                row.get("id"),
                food_id,
                attempt,
                self.max_retries,
            )

        logger.error(
            "Tracking update gave up after %d attempts document token=%s foodId=%s",
            self.max_retries,
            mask_token(token),
            food_id,
        )
        raise PersistenceError()
