"""Exceptions raised by the configuration core."""

from __future__ import annotations


class ConfigError(Exception):
    """Base class for configuration failures that abort a run."""


class LoadError(ConfigError):
    """The document could not be read or parsed.

    Raised before any diagnostics exist; the pipeline reports it alone.
    """

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to load configuration from {source}: {reason}")
        self.source = source
        self.reason = reason
