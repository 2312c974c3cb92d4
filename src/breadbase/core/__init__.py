"""Configuration, logging and hooks shared by every layer."""

from breadbase.core.config import Settings, get_settings
from breadbase.core.logging import (
    bind_correlation_id,
    clear_context,
    configure_logging,
    get_logger,
    log_context,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "log_context",
    "bind_correlation_id",
    "clear_context",
]
