"""
Centralized configuration with environment variable overrides.

Model settings, breaker thresholds, cache freshness, and store credentials
are all configurable here. Nothing is hardcoded in scoring or storage logic.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from visit_analysis.logging_context import install_visit_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(visit_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _optional(env_var: str) -> Optional[str]:
    """Return the env var value, treating an empty string as unset."""
    return os.getenv(env_var) or None


@dataclass(frozen=True)
class ModelConfig:
    """Language-model completion settings."""

    api_key: Optional[str] = _optional("OPENAI_API_KEY")
    base_url: Optional[str] = _optional("OPENAI_BASE_URL")
    llm_model: str = os.getenv("LLM_MODEL", "gpt-4")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.3")
    max_tokens: int = _safe_int("LLM_MAX_TOKENS", "1000")
    timeout_seconds: float = _safe_float("LLM_TIMEOUT_SECONDS", "30.0")


@dataclass(frozen=True)
class BreakerConfig:
    """Circuit breaker thresholds for the model path."""

    max_failures: int = _safe_int("BREAKER_MAX_FAILURES", "3")
    reset_seconds: float = _safe_float("BREAKER_RESET_SECONDS", "60")


@dataclass(frozen=True)
class CacheConfig:
    """Freshness window for stored analyses."""

    max_age_hours: float = _safe_float("ANALYSIS_MAX_AGE_HOURS", "24")


@dataclass(frozen=True)
class StoreConfig:
    """Hosted Postgres REST credentials. In-memory stores are used when unset."""

    supabase_url: Optional[str] = _optional("SUPABASE_URL")
    service_role_key: Optional[str] = _optional("SUPABASE_SERVICE_ROLE_KEY")
    timeout_seconds: float = _safe_float("STORE_TIMEOUT_SECONDS", "10.0")

    @property
    def is_remote(self) -> bool:
        return bool(self.supabase_url and self.service_role_key)


@dataclass(frozen=True)
class ServerConfig:
    """HTTP server bind settings."""

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = _safe_int("PORT", "8000")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    model: ModelConfig = field(default_factory=ModelConfig)
    breaker: BreakerConfig = field(default_factory=BreakerConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "Dealership Intelligence System API")
    service_version: str = os.getenv("SERVICE_VERSION", "1.0.0")
    environment: str = os.getenv("ENVIRONMENT", "development")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if config.model.max_tokens < 1:
        raise ValueError(f"LLM_MAX_TOKENS must be >= 1, got {config.model.max_tokens}")
    if config.model.timeout_seconds <= 0:
        raise ValueError(
            f"LLM_TIMEOUT_SECONDS must be > 0, got {config.model.timeout_seconds}"
        )
    if config.breaker.max_failures < 1:
        raise ValueError(
            f"BREAKER_MAX_FAILURES must be >= 1, got {config.breaker.max_failures}"
        )
    if config.breaker.reset_seconds <= 0:
        raise ValueError(
            f"BREAKER_RESET_SECONDS must be > 0, got {config.breaker.reset_seconds}"
        )
    if config.cache.max_age_hours <= 0:
        raise ValueError(
            f"ANALYSIS_MAX_AGE_HOURS must be > 0, got {config.cache.max_age_hours}"
        )
    if config.store.timeout_seconds <= 0:
        raise ValueError(
            f"STORE_TIMEOUT_SECONDS must be > 0, got {config.store.timeout_seconds}"
        )
    if not 1 <= config.server.port <= 65535:
        raise ValueError(f"PORT must be between 1 and 65535, got {config.server.port}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_visit_id_filter()
    logger.info(
        "Configuration loaded for '%s' (%s)", config.service_name, config.environment
    )
    return config


# Singleton instance
settings = load_config()
