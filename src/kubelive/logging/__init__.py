"""Logging configuration for kubelive."""

from kubelive.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
