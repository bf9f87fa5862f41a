"""
Handles command-line interface parsing and actions.
"""
import argparse
import sys

from assist import __version__
from assist.config import load_config, validate_required_env
from assist.exceptions import ConfigurationError
from assist.utils.logging import get_logger

SENSITIVE_MARKERS = ("TOKEN", "KEY", "SECRET")


def parse_arguments(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(description="Discord assistant bot")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")
    parser.add_argument("--config-check", action="store_true", help="Validate configuration and exit.")
    parser.add_argument("--version", action="store_true", help="Show version info and exit.")
    return parser.parse_args(argv)


def show_version_info():
    """Display version and system information."""
    print(f"discord-assist - Version {__version__}")
    print(f"Python Version: {sys.version}")


def redact(key: str, value):
    if value and any(marker in key for marker in SENSITIVE_MARKERS):
        return "********"
    return value


def validate_configuration_only() -> bool:
    """Validate configuration and log the active settings. Returns success."""
    logger = get_logger(__name__)
    try:
        logger.info("--- Running Configuration-Only Validation ---", extra={"subsys": "core", "event": "config_check_start"})
        validate_required_env()
        config = load_config(force=True)
        logger.info("Configuration validation successful. The following settings are active:", extra={"subsys": "core"})
        for key, value in config.items():
            logger.info(f"  • {key}: {redact(key, value)}", extra={"subsys": "core", "event": "config_valid"})
        return True
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}", extra={"subsys": "core", "event": "config_fail"})
        return False
