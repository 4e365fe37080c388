"""Core module exports."""

from zclgen.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ParseError,
    ReferenceLookupError,
    SchemaValidationError,
    StoreError,
    TemplateError,
    ZclGenError,
)
from zclgen.core.logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Errors
    "ZclGenError",
    "ErrorCode",
    "ConfigError",
    "ParseError",
    "ReferenceLookupError",
    "SchemaValidationError",
    "StoreError",
    "TemplateError",
    "InternalError",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
