"""Configuration core: load, substitute, default, report.

The pipeline itself lives in ``openx_config.config.pipeline`` and is
re-exported from the top-level package.
"""

from openx_config.config.diagnostics import Diagnostic, ValidationReport
from openx_config.config.loader import dump_document, load_document
from openx_config.config.models import VenueConfig

__all__ = [
    "Diagnostic",
    "ValidationReport",
    "VenueConfig",
    "dump_document",
    "load_document",
]
