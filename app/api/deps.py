# app/api/deps.py
"""
Shared FastAPI dependencies.

Coach-facing routes depend on `get_current_coach_id`, which reads the Supabase
access token from `Authorization: Bearer <jwt>`. Tests override the dependency
(or swap `auth_service`) instead of talking to Supabase Auth.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Header

from app.services.auth_service import AuthService
from app.services.errors import AuthenticationError

logger = logging.getLogger(__name__)

auth_service = AuthService()


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_coach_id(authorization: Optional[str] = Header(default=None)) -> str:
    token = bearer_token(authorization)
    if token is None:
        raise AuthenticationError("Missing or invalid authorization header")
    return await auth_service.verify_token(token)
