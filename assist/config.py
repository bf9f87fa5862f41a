"""Configuration loading and environment setup."""
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .utils.logging import get_logger

logger = get_logger(__name__)

load_dotenv(dotenv_path=Path.cwd() / ".env", verbose=False)
# Also try the project root in case we're running from a subdirectory
load_dotenv(dotenv_path=Path(__file__).parent.parent / ".env", verbose=False)

REQUIRED_VARS = ("DISCORD_TOKEN", "OWNER_ID")

SERVICES = ("SONARR", "RADARR", "PROWLARR", "UNRAID")


def _clean_env_value(value: Optional[str]) -> Optional[str]:
    """Strip inline ``# comments`` and whitespace from a .env value."""
    if not value:
        return value
    return value.split("#")[0].strip()


def _safe_int(value: Optional[str], default: str, var_name: str) -> int:
    """Safely convert environment variable to int, handling malformed values."""
    try:
        clean_value = _clean_env_value(value) or default
        return int(clean_value)
    except (ValueError, AttributeError):
        logger.warning(f"⚠ Invalid {var_name} value '{value}', using default {default}")
        return int(default)


def _safe_float(value: Optional[str], default: str, var_name: str) -> float:
    """Safely convert environment variable to float, handling malformed values."""
    try:
        clean_value = _clean_env_value(value) or default
        return float(clean_value)
    except (ValueError, AttributeError):
        logger.warning(f"⚠ Invalid {var_name} value '{value}', using default {default}")
        return float(default)


def _optional_int(value: Optional[str], var_name: str) -> Optional[int]:
    clean_value = _clean_env_value(value)
    if not clean_value:
        return None
    try:
        return int(clean_value)
    except ValueError:
        logger.warning(f"⚠ Invalid {var_name} value '{value}', ignoring")
        return None


def validate_required_env() -> None:
    """Validate that all required environment variables are present."""
    missing_vars = [var for var in REQUIRED_VARS if not _clean_env_value(os.getenv(var))]
    if missing_vars:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing_vars)}"
        )
    if _optional_int(os.getenv("OWNER_ID"), "OWNER_ID") is None:
        raise ConfigurationError("OWNER_ID must be a numeric Discord user id")


# Global config cache
_config_cache: Optional[Dict[str, Any]] = None
_cache_timestamp: float = 0
CACHE_TTL = 300


def load_config(force: bool = False) -> Dict[str, Any]:
    """Load configuration from environment variables with caching."""
    global _config_cache, _cache_timestamp

    current_time = time.time()
    if not force and _config_cache and (current_time - _cache_timestamp) < CACHE_TTL:
        return _config_cache

    config: Dict[str, Any] = {
        # DISCORD
        "DISCORD_TOKEN": _clean_env_value(os.getenv("DISCORD_TOKEN")),
        "OWNER_ID": _optional_int(os.getenv("OWNER_ID"), "OWNER_ID"),
        "GUILD_ID": _optional_int(os.getenv("GUILD_ID"), "GUILD_ID"),

        # NOTIFICATIONS
        "NOTIFY_ENABLED": os.getenv("NOTIFY_ENABLED", "true").lower() == "true",
        "NOTIFY_POLL_INTERVAL_S": _safe_int(os.getenv("NOTIFY_POLL_INTERVAL_S"), "60", "NOTIFY_POLL_INTERVAL_S"),
        "NOTIFY_TEMP_THRESHOLD_C": _safe_float(os.getenv("NOTIFY_TEMP_THRESHOLD_C"), "50", "NOTIFY_TEMP_THRESHOLD_C"),
        "NOTIFY_HISTORY_PAGE_SIZE": _safe_int(os.getenv("NOTIFY_HISTORY_PAGE_SIZE"), "20", "NOTIFY_HISTORY_PAGE_SIZE"),
        "NOTIFY_GRABS_CHANNEL_ID": _optional_int(os.getenv("NOTIFY_GRABS_CHANNEL_ID"), "NOTIFY_GRABS_CHANNEL_ID"),
        "NOTIFY_IMPORTS_CHANNEL_ID": _optional_int(os.getenv("NOTIFY_IMPORTS_CHANNEL_ID"), "NOTIFY_IMPORTS_CHANNEL_ID"),
        "NOTIFY_ALERTS_CHANNEL_ID": _optional_int(os.getenv("NOTIFY_ALERTS_CHANNEL_ID"), "NOTIFY_ALERTS_CHANNEL_ID"),
        # Legacy single-channel mode
        "NOTIFY_CHANNEL_ID": _optional_int(os.getenv("NOTIFY_CHANNEL_ID"), "NOTIFY_CHANNEL_ID"),
        "NOTIFY_SEND_TIMEOUT_S": _safe_float(os.getenv("NOTIFY_SEND_TIMEOUT_S"), "10", "NOTIFY_SEND_TIMEOUT_S"),

        # NETWORKING
        "HTTP_TIMEOUT_S": _safe_float(os.getenv("HTTP_TIMEOUT_S"), "10", "HTTP_TIMEOUT_S"),
        "HEALTH_TIMEOUT_S": _safe_float(os.getenv("HEALTH_TIMEOUT_S"), "5", "HEALTH_TIMEOUT_S"),

        # REQUEST FLOW
        "SELECTION_TTL_S": _safe_int(os.getenv("SELECTION_TTL_S"), "900", "SELECTION_TTL_S"),

        # LOGGING
        "LOG_LEVEL": os.getenv("LOG_LEVEL", "INFO"),
        "LOG_JSONL_PATH": os.getenv("LOG_JSONL_PATH", "logs/assist.jsonl"),
    }

    # External services: <NAME>_URL / <NAME>_KEY
    for service in SERVICES:
        config[f"{service}_URL"] = _clean_env_value(os.getenv(f"{service}_URL"))
        config[f"{service}_KEY"] = _clean_env_value(os.getenv(f"{service}_KEY"))

    _config_cache = config
    _cache_timestamp = current_time
    logger.debug(f"Configuration cached for {CACHE_TTL}s", extra={"subsys": "config"})
    return config


def service_credentials(config: Dict[str, Any], service: str) -> Optional[Tuple[str, str]]:
    """Return ``(url, key)`` for a service when both are configured."""
    url = config.get(f"{service.upper()}_URL")
    key = config.get(f"{service.upper()}_KEY")
    if url and key:
        return url, key
    return None


@dataclass(frozen=True)
class NotificationSettings:
    """Typed bundle handed to the notification service at start."""

    poll_interval_s: int = 60
    temp_threshold_c: float = 50.0
    history_page_size: int = 20
    send_timeout_s: float = 10.0
    http_timeout_s: float = 10.0
    guild_id: Optional[int] = None
    fallback_channel_id: Optional[int] = None
    grabs_channel_id: Optional[int] = None
    imports_channel_id: Optional[int] = None
    alerts_channel_id: Optional[int] = None
    sonarr: Optional[Tuple[str, str]] = None
    radarr: Optional[Tuple[str, str]] = None
    unraid: Optional[Tuple[str, str]] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "NotificationSettings":
        return cls(
            poll_interval_s=max(1, config.get("NOTIFY_POLL_INTERVAL_S", 60)),
            temp_threshold_c=config.get("NOTIFY_TEMP_THRESHOLD_C", 50.0),
            history_page_size=config.get("NOTIFY_HISTORY_PAGE_SIZE", 20),
            send_timeout_s=config.get("NOTIFY_SEND_TIMEOUT_S", 10.0),
            http_timeout_s=config.get("HTTP_TIMEOUT_S", 10.0),
            guild_id=config.get("GUILD_ID"),
            fallback_channel_id=config.get("NOTIFY_CHANNEL_ID"),
            grabs_channel_id=config.get("NOTIFY_GRABS_CHANNEL_ID"),
            imports_channel_id=config.get("NOTIFY_IMPORTS_CHANNEL_ID"),
            alerts_channel_id=config.get("NOTIFY_ALERTS_CHANNEL_ID"),
            sonarr=service_credentials(config, "sonarr"),
            radarr=service_credentials(config, "radarr"),
            unraid=service_credentials(config, "unraid"),
        )
