# app/api/share.py
"""
Public share-link endpoints. No authentication: the share token is the
credential, and only published documents are served.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import Response

from app.api import deps
from app.api.export import render_pdf_response
from app.services.food_service import FoodService
from app.services.pdf_service import PDFService
from app.services.sharing_service import SharingService

logger = logging.getLogger(__name__)
router = APIRouter()

sharing_service = SharingService()
food_service = FoodService()
pdf_service = PDFService()


@router.get("/{token}")
async def get_shared_document(token: str) -> Dict[str, Any]:
    doc = await sharing_service.get_public_document(token)
    return {"ok": True, "document": doc.to_api()}


@router.patch("/{token}/tracking")
async def update_tracking(token: str, request: Request) -> Dict[str, Any]:
    # body is checked by hand so that "true"/1 are rejected rather than coerced
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    if not isinstance(body, dict):
        body = {}
    result = await sharing_service.update_tracking(
        token, body.get("foodId"), body.get("clientChecked")
    )
    return {"ok": True, **result.to_api()}


@router.get("/{token}/progress")
async def get_shared_progress(token: str) -> Dict[str, Any]:
    return {"ok": True, "progress": await sharing_service.get_public_progress(token)}


@router.get("/{token}/pdf")
async def get_shared_pdf(token: str) -> Response:
    doc = await sharing_service.get_published_document(token)
    coach = await deps.auth_service.get_coach_profile(doc.coach_id) if doc.coach_id else None
    return await render_pdf_response(doc, food_service, pdf_service, coach)
