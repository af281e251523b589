"""Observability – structlog configuration and logger access."""
from tagcache.observability.logging.factory import configure_logging
from tagcache.observability.logging.processors import get_logger

__all__ = ["configure_logging", "get_logger"]
