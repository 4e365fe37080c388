"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (ZCLGEN__SECTION__KEY)
3. Project YAML (.zclgen/config.yaml)
4. Global YAML (~/.config/zclgen/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    ZCLGEN__<SECTION>__<KEY>=<VALUE>

Examples:
    ZCLGEN__LOGGING__LEVEL=DEBUG
    ZCLGEN__DATABASE__PATH=/tmp/zcl.db
    ZCLGEN__GENERATOR__CACHE_DIR=/tmp/zclgen-cache
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from zclgen.config.constants import GENERATION_API_VERSION

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        ZCLGEN__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every staged insert.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatabaseConfig(BaseModel):
    """Relational store configuration.

    Env vars:
        ZCLGEN__DATABASE__PATH: SQLite file backing the store
        ZCLGEN__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
    """

    path: str = Field(
        default="zclgen.db",
        description="SQLite database file. Relative paths resolve against the working directory.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )

    @field_validator("busy_timeout_ms")
    @classmethod
    def validate_busy_timeout(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"busy_timeout_ms must be >= 0, got {v}")
        return v


class CustomDeviceConfig(BaseModel):
    """Device type synthesized when a manifest sets supportCustomZclDevice."""

    domain: str = "General"
    code: int = 0xFFFF
    profile_id: int = 0xFFFF
    name: str = "ZCL-Custom"
    description: str = "Custom ZCL Device Type"


class LoaderConfig(BaseModel):
    """Metadata ingestion configuration.

    Env vars:
        ZCLGEN__LOADER__MAX_CONCURRENT_FILES: Files parsed at the same time
    """

    max_concurrent_files: int = Field(
        default=8,
        description="Upper bound on XML files read and parsed concurrently.",
    )
    custom_device: CustomDeviceConfig = Field(default_factory=CustomDeviceConfig)

    @field_validator("max_concurrent_files")
    @classmethod
    def validate_max_concurrent_files(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_concurrent_files must be >= 1, got {v}")
        return v


class GeneratorConfig(BaseModel):
    """Template engine configuration.

    Env vars:
        ZCLGEN__GENERATOR__CACHE_DIR: Directory for persisted compiled templates
        ZCLGEN__GENERATOR__API_VERSION: Generation API version mixed into cache keys
    """

    cache_dir: str | None = Field(
        default=None,
        description="Persist compiled templates here so unchanged templates are not "
        "recompiled across runs. In-memory only when unset.",
    )
    api_version: int = Field(
        default=GENERATION_API_VERSION,
        description="Bumping this invalidates every cached compiled template and output.",
    )


class ZclGenConfig(BaseModel):
    """Root configuration for zclgen."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    generator: GeneratorConfig = Field(default_factory=GeneratorConfig)
