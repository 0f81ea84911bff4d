"""
Ingredient documents (nutrition plans) and their ingredient entries.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field, StrictBool, StrictStr

from app.models.base import CamelModel

ColorCode = Literal["blue", "yellow", "red"]


class DocumentStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class IngredientEntry(CamelModel):
    """One food placed in a plan, with its colour and tracking state."""

    food_id: StrictStr = Field(min_length=1)
    category_id: StrictStr
    color_code: Optional[ColorCode] = None
    is_selected: StrictBool
    client_checked: StrictBool = False
    notes: Optional[str] = None


class IngredientDocument(CamelModel):
    """
    A coach-owned plan. Stored one row per document; ``version`` is bumped on
    every write and used as the optimistic concurrency guard.
    """

    id: str
    client_name: str
    coach_id: str
    share_token: str
    ingredients: List[IngredientEntry] = Field(default_factory=list)
    status: DocumentStatus = DocumentStatus.DRAFT
    version: Optional[int] = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "IngredientDocument":
        return cls(
            id=str(row["id"]),
            client_name=row.get("client_name") or "",
            coach_id=str(row.get("coach_id") or ""),
            share_token=row.get("share_token") or "",
            ingredients=row.get("ingredients") or [],
            status=row.get("status") or DocumentStatus.DRAFT,
            version=row.get("version"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )

    @property
    def is_published(self) -> bool:
        return self.status == DocumentStatus.PUBLISHED


class PublicDocument(CamelModel):
    """Redacted view served on share links: no coach id, token or version."""

    id: str
    client_name: str
    ingredients: List[IngredientEntry]
    status: DocumentStatus
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_document(cls, doc: IngredientDocument) -> "PublicDocument":
        return cls(
            id=doc.id,
            client_name=doc.client_name,
            ingredients=doc.ingredients,
            status=doc.status,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )


class DocumentCreate(CamelModel):
    client_name: str = Field(min_length=1)
    ingredients: List[IngredientEntry] = Field(default_factory=list)
    status: DocumentStatus = DocumentStatus.DRAFT


class DocumentUpdate(CamelModel):
    client_name: Optional[str] = None
    ingredients: Optional[List[IngredientEntry]] = None
    status: Optional[DocumentStatus] = None


class TrackingResult(CamelModel):
    food_id: str
    client_checked: bool
