# app/services/share_token.py
"""
Share tokens: opaque, URL-safe bearer capabilities for published plans.

Tokens are drawn from ``secrets`` (the OS CSPRNG) over the alphabet
``A-Za-z0-9_-``. A default 21-character token carries ~126 bits of entropy.

``is_valid_token`` is a syntactic check only; callers still look the token up
in storage before trusting it.
"""
from __future__ import annotations

import logging
import re
import secrets
import string
from typing import Any

from app.services.errors import TokenGenerationError

logger = logging.getLogger(__name__)

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"
NUMERIC_ALPHABET = string.digits

TOKEN_CONFIG = {
    "DEFAULT_LENGTH": 21,
    "SHORT_LENGTH": 12,
    "NUMERIC_LENGTH": 8,
    "MIN_LENGTH": 8,
    "MAX_LENGTH": 50,
}

_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def generate_custom_token(alphabet: str, length: int = TOKEN_CONFIG["DEFAULT_LENGTH"]) -> str:
    """
    Random token of `length` characters drawn uniformly from `alphabet`.

    Raises:
        ValueError: non-positive length or empty alphabet.
        TokenGenerationError: the secure random source is unavailable.
    """
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    if not isinstance(length, int) or isinstance(length, bool) or length <= 0:
        raise ValueError(f"token length must be a positive integer, got {length!r}")
    try:
        return "".join(secrets.choice(alphabet) for _ in range(length))
    except NotImplementedError as exc:
        # os.urandom has no backing source on this platform
        logger.critical("Secure random source unavailable: %s", exc)
        raise TokenGenerationError() from exc


def generate_token(length: int = TOKEN_CONFIG["DEFAULT_LENGTH"]) -> str:
    return generate_custom_token(URL_SAFE_ALPHABET, length)


def generate_short_token(length: int = TOKEN_CONFIG["SHORT_LENGTH"]) -> str:
    """Compact token for QR codes. Weaker collision resistance than the default."""
    return generate_custom_token(URL_SAFE_ALPHABET, length)


def generate_numeric_token(length: int = TOKEN_CONFIG["NUMERIC_LENGTH"]) -> str:
    return generate_custom_token(NUMERIC_ALPHABET, length)


def is_valid_token(token: Any) -> bool:
    if not isinstance(token, str):
        return False
    if not TOKEN_CONFIG["MIN_LENGTH"] <= len(token) <= TOKEN_CONFIG["MAX_LENGTH"]:
        return False
    return bool(_TOKEN_RE.fullmatch(token))


def mask_token(token: Any) -> str:
    """Log-safe form of a token."""
    if not token:
        return "(empty)"
    s = str(token)
    return s if len(s) <= 8 else f"{s[:4]}...{s[-4:]}"
