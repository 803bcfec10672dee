"""OpenExchange venue configuration core."""

from openx_config.config.pipeline import PipelineResult, run_pipeline
from openx_config.config.template import generate_default_document
from openx_config.errors import ConfigError, LoadError

__version__ = "0.1.0"

__all__ = [
    "ConfigError",
    "LoadError",
    "PipelineResult",
    "generate_default_document",
    "run_pipeline",
]
