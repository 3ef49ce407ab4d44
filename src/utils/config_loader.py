"""
Application configuration loader (payments, polling, generation, CORS).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

logger = logging.getLogger(__name__)


class CampayConfig(BaseModel):
    """Payment provider configuration. Credentials come from the environment."""

    base_url: str = "https://demo.campay.net/api"
    username_env: str = "CAMPAY_APP_USER"
    password_env: str = "CAMPAY_APP_PASSWORD"
    currency: str = "XAF"
    country_code: str = "237"
    default_description: str = "Resume Builder"
    timeout_seconds: float = Field(default=20.0, gt=0)
    token_lifetime_seconds: int = Field(default=3600, ge=1)
    token_refresh_margin_seconds: int = Field(default=600, ge=0)

    def resolved_base_url(self) -> str:
        return (os.getenv("CAMPAY_BASE_URL") or self.base_url).rstrip("/")

    def has_credentials(self) -> bool:
        return bool(os.getenv(self.username_env) and os.getenv(self.password_env))


class PollingConfig(BaseModel):
    interval_seconds: float = Field(default=3.0, gt=0)
    timeout_seconds: float = Field(default=180.0, gt=0)

    @model_validator(mode="after")
    def _interval_within_budget(self) -> "PollingConfig":
        if self.interval_seconds > self.timeout_seconds:
            raise ValueError("polling.interval_seconds must not exceed polling.timeout_seconds")
        return self


class GenerationConfig(BaseModel):
    model: str = "gemini-2.0-flash"
    api_key_env: str = "GEMINI_API_KEY"
    temperature: float = Field(default=0.4, ge=0.0, le=2.0)
    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay_seconds: float = Field(default=2.0, ge=0.0)
    backoff_multiplier: float = Field(default=2.0, ge=1.0)
    max_delay_seconds: float = Field(default=30.0, ge=0.0)


class CorsConfig(BaseModel):
    frontend_url_env: str = "FRONTEND_URL"
    allow_methods: List[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: List[str] = Field(default_factory=lambda: ["Content-Type", "Authorization"])

    def resolved_origins(self) -> List[str]:
        """FRONTEND_URL with trailing slash and trailing text removed; '*' when unset."""
        raw = (os.getenv(self.frontend_url_env) or "*").strip()
        if raw == "*":
            return ["*"]
        return [raw.split(" ")[0].rstrip("/")]


class AppConfig(BaseModel):
    campay: CampayConfig = Field(default_factory=CampayConfig)
    polling: PollingConfig = Field(default_factory=PollingConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)


def load_app_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load and validate the application configuration from YAML

    Args:
        config_path: Path to config file. Defaults to config/app_config.yml

    Returns:
        Validated AppConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
    """
    if config_path is None:
        config_path = Path(__file__).parent.parent.parent / "config" / "app_config.yml"

    if not config_path.exists():
        raise FileNotFoundError(f"App config file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    try:
        cfg = AppConfig(**data)
        logger.info("Successfully loaded app config from %s", config_path)
        return cfg
    except ValidationError as e:
        logger.error("App config validation failed: %s", e)
        raise
