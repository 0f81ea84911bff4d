# app/api/documents.py
"""
Coach-side CRUD for ingredient documents, plus publish state and share links.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_current_coach_id
from app.models.ingredient_document import DocumentCreate, DocumentUpdate
from app.services.document_service import DocumentService
from app.services.progress import progress_report

logger = logging.getLogger(__name__)
router = APIRouter()

document_service = DocumentService()


def _view(doc) -> Dict[str, Any]:
    return {"ok": True, "document": document_service.to_coach_view(doc)}


@router.get("")
async def list_documents(
    q: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    coach_id: str = Depends(get_current_coach_id),
) -> Dict[str, Any]:
    if q:
        docs = await document_service.search_documents(coach_id, q, limit=min(limit, 20))
    else:
        docs = await document_service.list_coach_documents(coach_id, limit=limit)
    return {"ok": True, "documents": [document_service.to_coach_view(d) for d in docs]}


@router.post("", status_code=201)
async def create_document(body: DocumentCreate, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    doc = await document_service.create_document(
        coach_id, body.client_name, body.ingredients, body.status
    )
    return _view(doc)


@router.get("/{document_id}")
async def get_document(document_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    return _view(await document_service.get_document(document_id, coach_id))


@router.patch("/{document_id}")
async def update_document(
    document_id: str, body: DocumentUpdate, coach_id: str = Depends(get_current_coach_id)
) -> Dict[str, Any]:
    return _view(await document_service.update_document(document_id, coach_id, body))


@router.delete("/{document_id}")
async def delete_document(document_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    await document_service.delete_document(document_id, coach_id)
    return {"ok": True}


@router.post("/{document_id}/publish")
async def publish_document(document_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    return _view(await document_service.publish(document_id, coach_id))


@router.post("/{document_id}/unpublish")
async def unpublish_document(document_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    return _view(await document_service.unpublish(document_id, coach_id))


@router.post("/{document_id}/regenerate-token")
async def regenerate_token(document_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    return _view(await document_service.regenerate_share_token(document_id, coach_id))


@router.get("/{document_id}/progress")
async def document_progress(document_id: str, coach_id: str = Depends(get_current_coach_id)) -> Dict[str, Any]:
    doc = await document_service.get_document(document_id, coach_id)
    return {"ok": True, "progress": progress_report(doc.ingredients)}
