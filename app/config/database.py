# app/config/database.py
"""
Supabase client accessor / diagnostics.

Keep this file strictly focused on returning the already-initialized global
Supabase client (created in app.config.supabase). Fail fast and provide
diagnostic helpers so API endpoints can include useful, non-sensitive info
about the store's state.

Usage:
    from app.config.database import get_supabase_client, get_client_diagnostics

    client = get_supabase_client()
    diag = get_client_diagnostics()
"""
import logging
from typing import Any, Dict

from app.config import supabase as supabase_config

logger = logging.getLogger(__name__)


class SupabaseClientNotInitialized(RuntimeError):
    """Raised when the supabase client is not available at runtime."""

    def __init__(self, msg: str):
        super().__init__(msg)


def get_supabase_client() -> Any:
    """
    Return the initialized Supabase data client.

    Raises:
        SupabaseClientNotInitialized: if the client is missing, which means
            SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY are absent or invalid, or
            client creation failed at import time.
    """
    client = getattr(supabase_config.supabase_client, "client", None)

    if client is None:
        msg = (
            "Supabase client is not initialized. Verify SUPABASE_URL and "
            "SUPABASE_SERVICE_ROLE_KEY and check app.config.supabase logs."
        )
        logger.error(msg)
        raise SupabaseClientNotInitialized(msg)

    if not hasattr(client, "table"):
        logger.warning(
            "Supabase client exists but has no `table` attribute; "
            "this may indicate a custom wrapper or a different client library."
        )

    return client


def is_initialized() -> bool:
    """Cheap check for whether the supabase client appears initialized."""
    try:
        get_supabase_client()
        return True
    except SupabaseClientNotInitialized:
        return False


def get_client_diagnostics() -> Dict[str, Any]:
    """
    Return a small, non-sensitive diagnostics dict about the supabase client.

    Safe to include in API health responses or logs: attribute inspection only,
    no secrets and no network calls.
    """
    diag: Dict[str, Any] = {
        "initialized": False,
        "has_auth": False,
        "has_table": False,
    }
    wrapper = supabase_config.supabase_client
    client = getattr(wrapper, "client", None)
    diag["initialized"] = client is not None
    if client is not None:
        diag["has_auth"] = hasattr(client, "auth")
        diag["has_table"] = hasattr(client, "table")
    diag["has_health_check"] = hasattr(wrapper, "health_check")
    if hasattr(wrapper, "diagnostics"):
        diag.update(wrapper.diagnostics())
    return diag
