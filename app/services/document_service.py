# app/services/document_service.py
"""
Coach-side operations on ingredient documents (nutrition plans).

Rows live in the `ingredient_documents` table:
    id, client_name, coach_id, share_token, ingredients (json, camelCase entries),
    status, version, created_at, updated_at

Every write made here is guarded by the row's `version` and bumps it, so a coach
edit can never silently overwrite a concurrent tracking update (or vice versa).
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.config.settings import settings
from app.models.ingredient_document import (
    DocumentCreate,
    DocumentStatus,
    DocumentUpdate,
    IngredientDocument,
    IngredientEntry,
)
from app.services.errors import (
    ConcurrentModificationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.services.share_token import generate_token, mask_token
from app.services.store import SupabaseRepository, new_id, next_version, now_iso, version_guard

logger = logging.getLogger(__name__)

DOCUMENTS_TABLE = "ingredient_documents"


def validate_ingredients(ingredients: Optional[Iterable[Any]]) -> List[IngredientEntry]:
    """Coerce raw entries into IngredientEntry models, rejecting bad shapes."""
    out: List[IngredientEntry] = []
    for idx, raw in enumerate(ingredients or []):
        if isinstance(raw, IngredientEntry):
            out.append(raw)
            continue
        try:
            out.append(IngredientEntry.model_validate(raw))
        except PydanticValidationError as exc:
            logger.info("Rejected ingredient #%d: %s", idx, exc.errors()[:1])
            raise ValidationError(f"Invalid ingredient at position {idx}") from exc
    return out


def _dump_ingredients(entries: Iterable[IngredientEntry]) -> List[Dict[str, Any]]:
    return [e.to_api() for e in entries]


class DocumentService(SupabaseRepository):
    table_name = DOCUMENTS_TABLE

    # -----------------------
    # Reads
    # -----------------------
    async def get_document_by_id(self, document_id: str) -> Optional[IngredientDocument]:
        row = await self._first(
            lambda: self.table().select("*").eq("id", document_id).limit(1).execute(),
            context={"document_id": document_id},
        )
        return IngredientDocument.from_row(row) if row else None

    async def get_document_by_share_token(self, share_token: str) -> Optional[IngredientDocument]:
        row = await self._first(
            lambda: self.table().select("*").eq("share_token", share_token).limit(1).execute(),
            context={"share_token": mask_token(share_token)},
        )
        return IngredientDocument.from_row(row) if row else None

    async def get_document(self, document_id: str, coach_id: str) -> IngredientDocument:
        """
        Document owned by `coach_id`. Raises NotFoundError both when the document
        is missing and when another coach owns it.
        """
        doc = await self.get_document_by_id(document_id)
        if doc is None or doc.coach_id != str(coach_id):
            if doc is not None:
                logger.warning(
                    "Coach %s attempted to access document %s owned by another coach",
                    coach_id,
                    document_id,
                )
            raise NotFoundError("Document not found")
        return doc

    async def list_coach_documents(self, coach_id: str, limit: int = 50) -> List[IngredientDocument]:
        rows = await self._call_db(
            lambda: self.table()
            .select("*")
            .eq("coach_id", coach_id)
            .order("updated_at", desc=True)
            .limit(limit)
            .execute(),
            context={"coach_id": coach_id},
        )
        return [IngredientDocument.from_row(r) for r in rows]

    async def search_documents(self, coach_id: str, term: str, limit: int = 20) -> List[IngredientDocument]:
        docs = await self.list_coach_documents(coach_id)
        needle = (term or "").strip().lower()
        if not needle:
            return docs[:limit]
        return [d for d in docs if needle in d.client_name.lower()][:limit]

    # -----------------------
    # Writes
    # -----------------------
    async def create_document(
        self,
        coach_id: str,
        client_name: str,
        ingredients: Optional[Iterable[Any]] = None,
        status: DocumentStatus = DocumentStatus.DRAFT,
    ) -> IngredientDocument:
        name = (client_name or "").strip()
        if not name:
            raise ValidationError("Client name is required")
        entries = validate_ingredients(ingredients)
        now = now_iso()
        row = {
            "id": new_id(),
            "client_name": name,
            "coach_id": str(coach_id),
            "share_token": generate_token(),
            "ingredients": _dump_ingredients(entries),
            "status": DocumentStatus(status).value,
            "version": 1,
            "created_at": now,
            "updated_at": now,
        }
        created = await self._first(
            lambda: self.table().insert(row).execute(),
            context={"coach_id": coach_id},
        )
        if created is None:
            logger.error("Insert for document %s returned no row", row["id"])
            raise PersistenceError("Failed to create document")
        logger.info(
            "Created document %s for coach %s token=%s",
            row["id"],
            coach_id,
            mask_token(row["share_token"]),
        )
        return IngredientDocument.from_row(created)

    async def batch_create_documents(
        self, coach_id: str, documents: Iterable[DocumentCreate]
    ) -> List[IngredientDocument]:
        created = []
        for item in documents:
            created.append(
                await self.create_document(
                    coach_id, item.client_name, item.ingredients, item.status
                )
            )
        return created

    async def _guarded_update(
        self, doc: IngredientDocument, payload: Dict[str, Any]
    ) -> IngredientDocument:
        payload = {**payload, "version": next_version(doc.version), "updated_at": now_iso()}
        row = await self._first(
            lambda: version_guard(
                self.table().update(payload).eq("id", doc.id), doc.version
            ).execute(),
            context={"document_id": doc.id},
        )
        if row is None:
            logger.info("Version conflict updating document %s (v%s)", doc.id, doc.version)
            raise ConcurrentModificationError()
        return IngredientDocument.from_row(row)

    async def update_document(
        self, document_id: str, coach_id: str, updates: DocumentUpdate
    ) -> IngredientDocument:
        doc = await self.get_document(document_id, coach_id)
        payload: Dict[str, Any] = {}
        if updates.client_name is not None:
            name = updates.client_name.strip()
            if not name:
                raise ValidationError("Client name is required")
            payload["client_name"] = name
        if updates.ingredients is not None:
            payload["ingredients"] = _dump_ingredients(validate_ingredients(updates.ingredients))
        if updates.status is not None:
            payload["status"] = DocumentStatus(updates.status).value
        if not payload:
            return doc
        return await self._guarded_update(doc, payload)

    async def publish(self, document_id: str, coach_id: str) -> IngredientDocument:
        return await self.update_document(
            document_id, coach_id, DocumentUpdate(status=DocumentStatus.PUBLISHED)
        )

    async def unpublish(self, document_id: str, coach_id: str) -> IngredientDocument:
        return await self.update_document(
            document_id, coach_id, DocumentUpdate(status=DocumentStatus.DRAFT)
        )

    async def regenerate_share_token(self, document_id: str, coach_id: str) -> IngredientDocument:
        """Issue a new token. Links built from the old token stop working."""
        doc = await self.get_document(document_id, coach_id)
        updated = await self._guarded_update(doc, {"share_token": generate_token()})
        logger.info(
            "Regenerated share token for document %s (old=%s new=%s)",
            document_id,
            mask_token(doc.share_token),
            mask_token(updated.share_token),
        )
        return updated

    async def delete_document(self, document_id: str, coach_id: str) -> bool:
        await self.get_document(document_id, coach_id)
        await self._call_db(
            lambda: self.table().delete().eq("id", document_id).execute(),
            context={"document_id": document_id},
        )
        logger.info("Deleted document %s", document_id)
        return True

    @staticmethod
    def share_url(doc: IngredientDocument) -> str:
        return f"{settings.public_base_url}/share/{doc.share_token}"

    def to_coach_view(self, doc: IngredientDocument) -> Dict[str, Any]:
        return {**doc.to_api(), "shareUrl": self.share_url(doc)}
