"""Coach profile and auth payloads."""
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import Field

from app.models.base import CamelModel


class CoachPreferences(CamelModel):
    color_coding_style: str = "standard"


class Coach(CamelModel):
    id: str
    email: str
    name: str
    preferences: CoachPreferences = Field(default_factory=CoachPreferences)
    created_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Coach":
        return cls(
            id=str(row["id"]),
            email=row.get("email") or "",
            name=row.get("name") or "",
            preferences=row.get("preferences") or {},
            created_at=row.get("created_at"),
        )


class SignUpRequest(CamelModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)
    name: str = Field(min_length=1)


class LoginRequest(CamelModel):
    email: str = Field(min_length=3)
    password: str = Field(min_length=1)


class AuthSession(CamelModel):
    access_token: str
    coach: Coach
