# app/api/export.py
"""
PDF export of a coach's published plan.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api import deps
from app.api.deps import get_current_coach_id
from app.models.base import CamelModel
from app.models.coach import Coach
from app.models.ingredient_document import IngredientDocument
from app.services.document_service import DocumentService
from app.services.errors import NotFoundError, ValidationError
from app.services.food_service import FoodService
from app.services.pdf_service import PDFService, generate_filename
from app.services.store import run_blocking

logger = logging.getLogger(__name__)
router = APIRouter()

document_service = DocumentService()
food_service = FoodService()
pdf_service = PDFService()


class ExportRequest(CamelModel):
    document_id: str


async def render_pdf_response(
    doc: IngredientDocument,
    foods: FoodService,
    pdf: PDFService,
    coach: Optional[Coach] = None,
) -> Response:
    food_ids = {i.food_id for i in doc.ingredients if i.is_selected and i.color_code}
    catalog = await foods.get_many(sorted(food_ids))
    # reportlab is CPU-bound; keep it off the event loop
    content = await run_blocking(pdf.generate_pdf, doc, catalog, coach=coach)
    filename = generate_filename(doc.client_name)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Length": str(len(content)),
            "Cache-Control": "no-cache, no-store, must-revalidate",
        },
    )


@router.post("/pdf")
async def export_pdf(body: ExportRequest, coach_id: str = Depends(get_current_coach_id)) -> Response:
    try:
        doc = await document_service.get_document(body.document_id, coach_id)
    except NotFoundError as exc:
        raise NotFoundError("Document not found or access denied") from exc
    if not doc.is_published:
        raise ValidationError("Only published documents can be exported")

    coach = await deps.auth_service.get_coach_profile(coach_id)
    logger.info("Exporting PDF for document %s", doc.id)
    return await render_pdf_response(doc, food_service, pdf_service, coach)
