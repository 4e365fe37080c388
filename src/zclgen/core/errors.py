"""zclgen error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Parse
- 4xxx: Reference lookup
- 5xxx: Validation
- 6xxx: Store
- 7xxx: Template
- 9xxx: Internal

Fatality is decided by the caller, not the error type. A ParseError is fatal
for a manifest-declared file and soft for a standalone load; a
ReferenceLookupError is fatal only where a default or cluster-extension
resolution depends on it.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004

    # Parse (3xxx)
    PARSE_MALFORMED = 3001
    PARSE_MISSING_FIELD = 3002
    PARSE_AGGREGATE = 3003

    # Reference lookup (4xxx)
    REFERENCE_NOT_FOUND = 4001
    REFERENCE_DEFAULT_UNMATCHED = 4002
    REFERENCE_EXTENSION_UNATTACHED = 4003

    # Validation (5xxx)
    VALIDATION_FAILED = 5001

    # Store (6xxx)
    STORE_FAILURE = 6001

    # Template (7xxx)
    TEMPLATE_COMPILE_ERROR = 7001
    TEMPLATE_MANIFEST_ERROR = 7002
    TEMPLATE_HELPER_ERROR = 7003
    TEMPLATE_RENDER_ERROR = 7004

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True)
class ZclGenError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'PARSE_MALFORMED')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ZclGenError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ParseError(ZclGenError):
    """A source file could not be turned into an intermediate tree."""

    @property
    def path(self) -> str | None:
        return self.details.get("path")

    @classmethod
    def malformed(cls, path: str, cause: BaseException | str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_MALFORMED,
            message=f"Could not parse {path}: {cause}",
            details={"path": path, "cause": str(cause)},
        )

    @classmethod
    def missing_field(cls, path: str, field: str) -> "ParseError":
        return cls(
            code=ErrorCode.PARSE_MISSING_FIELD,
            message=f"Missing required key '{field}' in {path}",
            details={"path": path, "field": field},
        )

    @classmethod
    def aggregate(cls, failures: list["ParseError"]) -> "ParseError":
        paths = [f.path for f in failures]
        return cls(
            code=ErrorCode.PARSE_AGGREGATE,
            message=f"{len(failures)} file(s) failed to load: {', '.join(str(p) for p in paths)}",
            details={"paths": paths, "causes": [f.message for f in failures]},
        )


class ReferenceLookupError(ZclGenError):
    """A lookup by name or code found nothing."""

    @classmethod
    def not_found(cls, kind: str, key: Any) -> "ReferenceLookupError":
        return cls(
            code=ErrorCode.REFERENCE_NOT_FOUND,
            message=f"Invalid {kind}: {key}",
            details={"kind": kind, "key": str(key)},
        )

    @classmethod
    def unmatched_default(cls, category: str, value: Any) -> "ReferenceLookupError":
        return cls(
            code=ErrorCode.REFERENCE_DEFAULT_UNMATCHED,
            message=f"Default value for: {category}/{value} does not match an option.",
            details={"category": category, "value": str(value)},
        )

    @classmethod
    def unattached_extension(
        cls, cluster_code: int, manufacturer_code: int | None
    ) -> "ReferenceLookupError":
        return cls(
            code=ErrorCode.REFERENCE_EXTENSION_UNATTACHED,
            message=f"Cluster extension references unknown cluster 0x{cluster_code:04X}",
            details={"cluster_code": cluster_code, "manufacturer_code": manufacturer_code},
        )


class SchemaValidationError(ZclGenError):
    """Structural validation of a source file explicitly failed."""

    @classmethod
    def failed(cls, path: str, errors: list[str]) -> "SchemaValidationError":
        return cls(
            code=ErrorCode.VALIDATION_FAILED,
            message=f"Validation failed for {path}: {'; '.join(errors) or 'unknown reason'}",
            details={"path": path, "errors": errors},
        )


class StoreError(ZclGenError):
    """Transactional backend failure. Always triggers rollback."""

    @classmethod
    def backend(cls, operation: str, cause: BaseException) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_FAILURE,
            message=f"Store operation '{operation}' failed: {cause}",
            details={"operation": operation, "cause": str(cause)},
        )


class TemplateError(ZclGenError):
    """Template compilation or template-set loading failed."""

    @classmethod
    def compile_error(cls, name: str, reason: str, line: int | None = None) -> "TemplateError":
        return cls(
            code=ErrorCode.TEMPLATE_COMPILE_ERROR,
            message=f"Failed to compile template {name}: {reason}",
            details={"name": name, "reason": reason, "line": line},
        )

    @classmethod
    def manifest_error(cls, path: str, reason: str) -> "TemplateError":
        return cls(
            code=ErrorCode.TEMPLATE_MANIFEST_ERROR,
            message=f"Invalid template manifest {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def helper_error(cls, source: str, reason: str) -> "TemplateError":
        return cls(
            code=ErrorCode.TEMPLATE_HELPER_ERROR,
            message=f"Could not load helpers from {source}: {reason}",
            details={"source": source, "reason": reason},
        )

    @classmethod
    def render_error(cls, name: str, reason: str) -> "TemplateError":
        return cls(
            code=ErrorCode.TEMPLATE_RENDER_ERROR,
            message=f"Failed to render template {name}: {reason}",
            details={"name": name, "reason": reason},
        )


class InternalError(ZclGenError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
