"""
Centralized configuration with environment variable overrides.

Business calendar settings, phone rules, backend endpoints and wizard
timings are configurable here. Nothing is hardcoded in resolver or
wizard logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


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


@dataclass(frozen=True)
class BusinessConfig:
    """Business-specific settings loaded from environment or defaults."""

    name: str = os.getenv("BUSINESS_NAME", "Salon")
    utc_offset_hours: int = _safe_int("BUSINESS_UTC_OFFSET_HOURS", "6")
    phone_country_code: str = os.getenv("PHONE_COUNTRY_CODE", "996")
    phone_subscriber_digits: int = _safe_int("PHONE_SUBSCRIBER_DIGITS", "9")
    currency_label: str = os.getenv("CURRENCY_LABEL", "som")


@dataclass(frozen=True)
class ApiConfig:
    """Booking backend endpoint and transport settings."""

    base_url: str = os.getenv("BOOKING_API_BASE_URL", "http://localhost:5000/api")
    timeout_seconds: float = _safe_float("API_TIMEOUT_SECONDS", "15")
    read_attempts: int = _safe_int("API_READ_ATTEMPTS", "3")
    retry_max_wait: float = _safe_float("API_RETRY_MAX_WAIT", "4.0")


@dataclass(frozen=True)
class WizardConfig:
    """Booking wizard timings, horizon and draft persistence."""

    horizon_days: int = _safe_int("WORKING_DATES_HORIZON_DAYS", "60")
    auto_advance_ms: int = _safe_int("SLOT_AUTO_ADVANCE_MS", "300")
    draft_store_dir: str = os.getenv("DRAFT_STORE_DIR", ".booking_drafts")
    draft_key_prefix: str = os.getenv("DRAFT_KEY_PREFIX", "booking_draft")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    wizard: WizardConfig = field(default_factory=WizardConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not -12 <= config.business.utc_offset_hours <= 14:
        raise ValueError(
            "BUSINESS_UTC_OFFSET_HOURS must be between -12 and 14, "
            f"got {config.business.utc_offset_hours}"
        )
    code = config.business.phone_country_code
    if not code or not code.isdigit():
        raise ValueError(f"PHONE_COUNTRY_CODE must be digits only, got {code!r}")
    if config.business.phone_subscriber_digits < 1:
        raise ValueError(
            "PHONE_SUBSCRIBER_DIGITS must be >= 1, "
            f"got {config.business.phone_subscriber_digits}"
        )
    if config.api.timeout_seconds <= 0:
        raise ValueError(
            f"API_TIMEOUT_SECONDS must be > 0, got {config.api.timeout_seconds}"
        )
    if config.api.read_attempts < 1:
        raise ValueError(
            f"API_READ_ATTEMPTS must be >= 1, got {config.api.read_attempts}"
        )
    if config.api.retry_max_wait < 0:
        raise ValueError(
            f"API_RETRY_MAX_WAIT must be >= 0, got {config.api.retry_max_wait}"
        )
    if config.wizard.horizon_days < 1:
        raise ValueError(
            f"WORKING_DATES_HORIZON_DAYS must be >= 1, got {config.wizard.horizon_days}"
        )
    if config.wizard.auto_advance_ms < 0:
        raise ValueError(
            f"SLOT_AUTO_ADVANCE_MS must be >= 0, got {config.wizard.auto_advance_ms}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
