"""Structured logging."""

from openx_config.logging.setup import get_logger, setup_logging, setup_logging_from_env

__all__ = ["get_logger", "setup_logging", "setup_logging_from_env"]
