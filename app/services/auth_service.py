# app/services/auth_service.py
"""
Coach authentication backed by Supabase Auth, plus the `coaches` profile table.

Sign-up / sign-in / token verification go through the dedicated auth client so
user sessions never replace the service credentials on the data client.
SDK auth failures are translated to AuthenticationError with a friendly message.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from app.config.supabase import supabase_client
from app.models.coach import AuthSession, Coach
from app.services.errors import (
    AuthenticationError,
    PersistenceError,
    ServiceUnavailableError,
    ValidationError,
)
from app.services.store import SupabaseRepository, now_iso, run_blocking

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGES = {
    "user_not_found": "No account found with this email address.",
    "invalid_credentials": "Incorrect email or password. Please try again.",
    "user_already_exists": "An account with this email already exists.",
    "email_exists": "An account with this email already exists.",
    "weak_password": "Password should be at least 6 characters long.",
    "email_address_invalid": "Please enter a valid email address.",
    "validation_failed": "Please enter a valid email address.",
    "over_request_rate_limit": "Too many failed attempts. Please try again later.",
    "over_email_send_rate_limit": "Too many failed attempts. Please try again later.",
}
DEFAULT_AUTH_ERROR = "An error occurred during authentication. Please try again."

MIN_PASSWORD_LENGTH = 6


def friendly_auth_error(exc: Exception) -> str:
    code = getattr(exc, "code", None)
    if code in AUTH_ERROR_MESSAGES:
        return AUTH_ERROR_MESSAGES[code]
    text = str(exc).lower()
    if "already registered" in text or "already exists" in text:
        return AUTH_ERROR_MESSAGES["user_already_exists"]
    if "invalid login credentials" in text:
        return AUTH_ERROR_MESSAGES["invalid_credentials"]
    if "rate limit" in text:
        return AUTH_ERROR_MESSAGES["over_request_rate_limit"]
    return DEFAULT_AUTH_ERROR


class AuthService(SupabaseRepository):
    table_name = "coaches"

    def __init__(self, client: Any = None, auth_client: Any = None):
        super().__init__(client)
        self._auth_client = auth_client

    @property
    def auth_client(self) -> Any:
        client = self._auth_client or supabase_client.auth_client
        if client is None:
            raise ServiceUnavailableError("Authentication is not configured")
        return client

    async def sign_up(self, email: str, password: str, name: str) -> Coach:
        email = (email or "").strip().lower()
        name = (name or "").strip()
        if not email or not name:
            raise ValidationError("Email and name are required")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ValidationError(AUTH_ERROR_MESSAGES["weak_password"])

        try:
            resp = await run_blocking(
                self.auth_client.auth.sign_up, {"email": email, "password": password}
            )
        except Exception as exc:
            logger.info("Sign-up rejected for %s: %s", email, exc)
            raise AuthenticationError(friendly_auth_error(exc)) from exc

        user = getattr(resp, "user", None)
        if user is None:
            raise AuthenticationError(DEFAULT_AUTH_ERROR)

        row = {
            "id": str(user.id),
            "email": email,
            "name": name,
            "preferences": {"colorCodingStyle": "standard"},
            "created_at": now_iso(),
        }
        created = await self._first(
            lambda: self.table().upsert(row, on_conflict="id").execute(),
            context={"coach_id": row["id"]},
        )
        if created is None:
            raise PersistenceError("Failed to create coach profile")
        logger.info("Coach signed up id=%s", row["id"])
        return Coach.from_row(created)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            resp = await run_blocking(
                self.auth_client.auth.sign_in_with_password,
                {"email": (email or "").strip().lower(), "password": password},
            )
        except (httpx.HTTPError, ConnectionError, TimeoutError) as exc:
            logger.error("Auth provider unreachable during sign-in: %s", exc)
            raise ServiceUnavailableError("Authentication service is unavailable") from exc
        except Exception as exc:
            logger.info("Sign-in rejected: %s", exc)
            raise AuthenticationError(friendly_auth_error(exc)) from exc

        session = getattr(resp, "session", None)
        user = getattr(resp, "user", None)
        if session is None or user is None:
            raise AuthenticationError(AUTH_ERROR_MESSAGES["invalid_credentials"])

        coach = await self.get_coach_profile(str(user.id))
        if coach is None:
            coach = Coach(id=str(user.id), email=getattr(user, "email", "") or "", name="")
        return AuthSession(access_token=session.access_token, coach=coach)

    async def verify_token(self, access_token: Optional[str]) -> str:
        """Return the coach id for a valid access token."""
        if not access_token:
            raise AuthenticationError()
        try:
            resp = await run_blocking(self.auth_client.auth.get_user, access_token)
        except (httpx.HTTPError, ConnectionError, TimeoutError) as exc:
            logger.error("Auth provider unreachable during token check: %s", exc)
            raise ServiceUnavailableError("Authentication service is unavailable") from exc
        except Exception as exc:
            logger.info("Access token rejected: %s", exc)
            raise AuthenticationError("Invalid or expired token") from exc
        user = getattr(resp, "user", None)
        if user is None:
            raise AuthenticationError("Invalid or expired token")
        return str(user.id)

    async def get_coach_profile(self, coach_id: str) -> Optional[Coach]:
        row = await self._first(
            lambda: self.table().select("*").eq("id", coach_id).limit(1).execute(),
            context={"coach_id": coach_id},
        )
        return Coach.from_row(row) if row else None
