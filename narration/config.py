"""
Narration service configuration.

Loads settings from environment variables. `.env_local` / `.env.local` at the
project root are read first (without overriding variables already set).
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


_ROOT = Path(__file__).parent.parent


def load_local_env() -> None:
    """Best-effort load of local dotenv files."""
    for name in (".env_local", ".env.local"):
        p = _ROOT / name
        if p.exists():
            load_dotenv(p, override=False)


def _clean_env(key: str) -> Optional[str]:
    """
    Read an env var, stripping trailing comments and whitespace.

    "5  # restarts" -> "5"
    """
    value = os.environ.get(key)
    if not value:
        return None
    if "#" in value:
        value = value.split("#")[0]
    value = value.strip()
    return value or None


def _parse_int_env(key: str, default: int) -> int:
    value = _clean_env(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _parse_float_env(key: str, default: float) -> float:
    value = _clean_env(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _parse_bool_env(key: str, default: bool) -> bool:
    value = _clean_env(key)
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")


@dataclass
class NarrationConfig:
    """Narration service configuration."""

    # Recipe data provider (e.g. http://localhost:3003)
    recipe_api_url: Optional[str] = None
    recipe_fetch_timeout_seconds: float = 10.0

    # Recognition
    recognition_locale: str = "en-US"
    recognition_max_restarts: int = 5

    # Speech output
    initial_rate: float = 1.0
    phrasebook: str = "default"

    # Control API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    @classmethod
    def from_env(cls) -> "NarrationConfig":
        """Load configuration from environment variables."""
        load_local_env()
        recipe_api_url = _clean_env("RECIPE_API_URL")
        return cls(
            recipe_api_url=recipe_api_url.rstrip("/") if recipe_api_url else None,
            recipe_fetch_timeout_seconds=_parse_float_env("RECIPE_FETCH_TIMEOUT_SECONDS", 10.0),
            recognition_locale=_clean_env("RECOGNITION_LOCALE") or "en-US",
            recognition_max_restarts=_parse_int_env("RECOGNITION_MAX_RESTARTS", 5),
            initial_rate=_parse_float_env("NARRATION_INITIAL_RATE", 1.0),
            phrasebook=_clean_env("NARRATION_PHRASEBOOK") or "default",
            api_host=_clean_env("CONTROL_API_HOST") or "0.0.0.0",
            api_port=_parse_int_env("CONTROL_API_PORT", 8000),
            log_level=(_clean_env("LOG_LEVEL") or "INFO").upper(),
            log_json=_parse_bool_env("LOG_JSON", True),
        )


def get_config() -> NarrationConfig:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = NarrationConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached config (tests and reloads)."""
    global _config
    _config = None


# Global config instance (lazy loaded)
_config: Optional[NarrationConfig] = None
