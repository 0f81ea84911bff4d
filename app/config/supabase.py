# app/config/supabase.py
"""
Supabase client singleton and lightweight health check.

The plan store lives in Supabase: one row per coach, client, food and ingredient
document. This module:
  - Keeps initialization synchronous (main uses run_in_executor to call health_check).
  - Validates configuration early and exposes a global SupabaseClient whose
    `.client` is the data-access client (service role key).
  - Builds a separate auth client for coach sign-in so user sessions never
    replace the service role credentials on the data client.
  - Avoids logging secrets; diagnostics return structural info only.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional

from urllib.parse import urlparse

from supabase import create_client, Client  # supabase-py
from app.config.settings import settings

logger = logging.getLogger(__name__)

# https + project ref + .supabase.co
_SUPABASE_URL_RE = re.compile(r"^https://[A-Za-z0-9\-]+\.supabase\.co/?$")

# Table touched by the health check; every deployment has it.
HEALTH_CHECK_TABLE = "ingredient_documents"


class SupabaseClient:
    """
    Lightweight wrapper around the supabase-py `Client`.

    Use:
        from app.config.supabase import supabase_client
        client = supabase_client.client  # may be None if not configured
    """

    def __init__(self) -> None:
        self._client: Optional[Client] = None
        self._auth_client: Optional[Client] = None
        self._initialized: bool = False
        self._initialize_client()

    def _validate_url(self, url: Optional[str]) -> bool:
        return bool(url and _SUPABASE_URL_RE.match(url))

    def _initialize_client(self) -> None:
        if self._initialized and self._client is not None:
            return

        supabase_url = (settings.supabase_url or "").strip()
        supabase_key = settings.supabase_service_role_key or ""

        if not supabase_url or not supabase_key:
            logger.debug(
                "Supabase credentials not present at init: url=%r key_present=%s",
                supabase_url,
                bool(supabase_key),
            )
            self._client = None
            self._initialized = True
            return

        if not self._validate_url(supabase_url):
            logger.error(
                "Supabase URL format invalid: %r. Expected https://<project>.supabase.co",
                supabase_url,
            )
            self._client = None
            self._initialized = True
            return

        try:
            self._client = create_client(supabase_url, supabase_key)
            logger.info(
                "Initialized Supabase client for host=%s", urlparse(supabase_url).netloc
            )
        except Exception as exc:
            logger.exception("Failed to initialize Supabase client: %s", exc)
            self._client = None
        self._initialized = True

    @property
    def client(self) -> Optional[Client]:
        """
        Return the underlying supabase client or None when not configured.

        Callers should not assume network connectivity; call `health_check()`
        to verify runtime connectivity.
        """
        if self._client is None and not self._initialized:
            self._initialize_client()
        return self._client

    @property
    def auth_client(self) -> Optional[Client]:
        """
        Client used for coach sign-in / sign-up. Built lazily from the anon key
        (falls back to the service role key) and kept apart from `.client`.
        """
        if self._auth_client is not None:
            return self._auth_client
        url = (settings.supabase_url or "").strip()
        key = settings.supabase_anon_key or settings.supabase_service_role_key
        if not self._validate_url(url) or not key:
            return None
        try:
            self._auth_client = create_client(url, key)
        except Exception as exc:
            logger.exception("Failed to initialize Supabase auth client: %s", exc)
            self._auth_client = None
        return self._auth_client

    def diagnostics(self) -> Dict[str, Any]:
        """
        Return non-sensitive diagnostics about the client configuration.
        Safe to include in logs or in API responses.
        """
        diag: Dict[str, Any] = {
            "configured": bool(
                settings.supabase_url and settings.supabase_service_role_key
            ),
            "client_present": self._client is not None,
            "auth_client_present": self._auth_client is not None,
            "host": None,
        }
        try:
            if settings.supabase_url:
                diag["host"] = urlparse(settings.supabase_url).netloc
        except Exception:
            diag["host"] = "parse-error"
        return diag

    def health_check(self, timeout_seconds: float = 3.0) -> bool:
        """
        Synchronous health check.

        Strategy:
          1. If no client configured -> False
          2. Run a one-row select against the documents table.
          3. Any exception, error object or HTTP status >= 400 -> False.
        """
        client = self.client
        if client is None:
            logger.debug("Supabase health_check: no client configured")
            return False

        try:
            res = client.table(HEALTH_CHECK_TABLE).select("id").limit(1).execute()
            if hasattr(res, "error") and res.error:
                logger.warning(
                    "Supabase health_check returned error object: %s",
                    getattr(res, "error"),
                )
                return False
            if (
                hasattr(res, "status_code")
                and isinstance(res.status_code, int)
                and res.status_code >= 400
            ):
                logger.warning("Supabase health_check HTTP status: %s", res.status_code)
                return False
            return True
        except Exception as exc:
            logger.exception("Exception during Supabase health_check: %s", exc)
            return False


# Single module-level instance for easy import
supabase_client = SupabaseClient()
