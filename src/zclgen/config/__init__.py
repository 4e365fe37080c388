"""Config module exports."""

from zclgen.config.loader import load_config
from zclgen.config.models import (
    DatabaseConfig,
    GeneratorConfig,
    LoaderConfig,
    LoggingConfig,
    ZclGenConfig,
)

__all__ = [
    "load_config",
    "ZclGenConfig",
    "DatabaseConfig",
    "GeneratorConfig",
    "LoaderConfig",
    "LoggingConfig",
]
