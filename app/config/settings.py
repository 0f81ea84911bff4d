# app/config/settings.py
"""
Application configuration using pydantic-settings (pydantic v2 style).

This centralizes environment-driven configuration. Prefer reading values
from environment variables; do not rely on os.getenv inline defaults which
can silently hide missing configuration.
"""
from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """
    Application configuration loaded from environment.

    Relevant environment variables:
      - SUPABASE_URL
      - SUPABASE_SERVICE_ROLE_KEY
      - SUPABASE_ANON_KEY
      - FDC_API_KEY
      - HUGGINGFACE_API_KEY
      - PUBLIC_BASE_URL
      - TRACKING_MAX_RETRIES
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Supabase (document store + coach auth)
    supabase_url: Optional[str] = Field(default=None)
    supabase_service_role_key: Optional[str] = Field(default=None)
    supabase_anon_key: Optional[str] = Field(default=None)

    # USDA FoodData Central
    fdc_api_key: Optional[str] = Field(default=None)
    fdc_base_url: str = Field(default="https://api.nal.usda.gov/fdc")

    # Hugging Face inference
    huggingface_api_key: Optional[str] = Field(default=None)
    huggingface_base_url: str = Field(
        default="https://api-inference.huggingface.co/models"
    )
    categorization_model: str = Field(default="facebook/bart-large-mnli")
    recommendation_model: str = Field(default="mistralai/Mistral-7B-Instruct-v0.3")

    http_timeout_seconds: float = Field(default=20.0)

    # Sharing
    public_base_url: str = Field(default="http://localhost:3000")
    tracking_max_retries: int = Field(default=3, ge=1)

    # --- validators / post-init checks ---
    @field_validator("supabase_url", "supabase_service_role_key", "supabase_anon_key")
    @classmethod
    def maybe_strip(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip()

    @field_validator("public_base_url", "fdc_base_url", "huggingface_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")

    def model_post_init(self, __context) -> None:  # pydantic v2 hooks
        """
        Light-weight validation/notice that runs after model is constructed.
        Uses logging (not print) so messages show up in server logs.
        """
        if not self.supabase_url or not self.supabase_service_role_key:
            logger.warning(
                "Supabase credentials are not configured. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY to enable DB features."
            )
        if not self.supabase_anon_key:
            logger.info(
                "SUPABASE_ANON_KEY not set. Coach sign-in will use the service role key."
            )
        if not self.fdc_api_key:
            logger.info("FDC_API_KEY not set. USDA FoodData Central features will be disabled.")
        if not self.huggingface_api_key:
            logger.info(
                "HUGGINGFACE_API_KEY not set. AI categorization will use keyword rules only "
                "and AI recommendations will be disabled."
            )


# single exporter
settings = Settings()
