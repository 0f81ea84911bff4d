"""Coach-managed client records."""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field

from app.models.base import CamelModel


class Client(CamelModel):
    id: str
    name: str
    email: Optional[str] = None
    goals: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)
    session_notes: Optional[str] = None
    coach_id: str
    created_at: Optional[str] = None
    last_updated: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Client":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            email=row.get("email"),
            goals=row.get("goals") or [],
            restrictions=row.get("restrictions") or [],
            session_notes=row.get("session_notes"),
            coach_id=str(row.get("coach_id") or ""),
            created_at=row.get("created_at"),
            last_updated=row.get("last_updated"),
        )


class ClientCreate(CamelModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    goals: List[str] = Field(default_factory=list)
    restrictions: List[str] = Field(default_factory=list)
    session_notes: Optional[str] = None


class ClientUpdate(CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    goals: Optional[List[str]] = None
    restrictions: Optional[List[str]] = None
    session_notes: Optional[str] = None
