"""Tests for zclgen configuration models and loading."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from zclgen.config import ZclGenConfig, load_config
from zclgen.config.loader import _deep_merge, _load_yaml
from zclgen.config.models import (
    DatabaseConfig,
    GeneratorConfig,
    LoaderConfig,
    LoggingConfig,
    LogOutputConfig,
)
from zclgen.core.errors import ConfigError, ErrorCode


@pytest.fixture(autouse=True)
def clean_env() -> Generator[None, None, None]:
    """Remove ZCLGEN__* env vars for clean tests."""
    orig = {k: v for k, v in os.environ.items() if k.startswith("ZCLGEN__")}
    for k in orig:
        del os.environ[k]
    yield
    for k in [k for k in os.environ if k.startswith("ZCLGEN__")]:
        del os.environ[k]
    os.environ.update(orig)


@pytest.fixture
def project_root(tmp_path: Path) -> Generator[Path, None, None]:
    """Project directory with no global config leaking in."""
    root = tmp_path / "project"
    root.mkdir()
    with patch("zclgen.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "no-global.yaml"):
        yield root


def write_project_config(root: Path, text: str) -> None:
    config_dir = root / ".zclgen"
    config_dir.mkdir(exist_ok=True)
    (config_dir / "config.yaml").write_text(text)


class TestConfigModels:
    """Configuration model validation tests."""

    @pytest.mark.parametrize("level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    def test_given_log_level_when_validated_then_accepts_standard_levels(self, level: str) -> None:
        config = ZclGenConfig(logging={"level": level})
        assert config.logging.level == level

    def test_given_invalid_log_level_when_validated_then_rejects(self) -> None:
        with pytest.raises(ValidationError):
            ZclGenConfig(logging={"level": "LOUD"})

    def test_given_relative_log_file_when_validated_then_rejects(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/zclgen.log")

    def test_given_home_log_file_when_validated_then_expands(self) -> None:
        output = LogOutputConfig(destination="~/zclgen.log")
        assert Path(output.destination).is_absolute()

    @pytest.mark.parametrize(
        ("model", "field", "value"),
        [
            (DatabaseConfig, "busy_timeout_ms", -1),
            (LoaderConfig, "max_concurrent_files", 0),
        ],
    )
    def test_given_out_of_range_value_when_validated_then_rejects(
        self, model: type, field: str, value: int
    ) -> None:
        with pytest.raises(ValidationError):
            model(**{field: value})

    def test_defaults(self) -> None:
        config = ZclGenConfig()

        assert config.database.path == "zclgen.db"
        assert config.loader.max_concurrent_files == 8
        assert config.loader.custom_device.code == 0xFFFF
        assert config.loader.custom_device.name == "ZCL-Custom"
        assert config.generator.cache_dir is None
        assert config.generator.api_version >= 1


class TestLoaderHelpers:
    def test_given_missing_file_when_load_yaml_then_empty(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "absent.yaml") == {}

    def test_given_invalid_yaml_when_load_yaml_then_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("logging:\n  level:\n    - invalid: [unclosed")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(path)

        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_nested_dicts_merge(self) -> None:
        base = {"loader": {"max_concurrent_files": 2, "custom_device": {"code": 1}}}
        override = {"loader": {"custom_device": {"code": 2}}}

        assert _deep_merge(base, override) == {
            "loader": {"max_concurrent_files": 2, "custom_device": {"code": 2}}
        }


class TestLoadConfig:
    """Configuration loading and precedence tests."""

    def test_given_no_config_files_when_load_then_uses_defaults(self, project_root: Path) -> None:
        # When
        config = load_config(project_root)

        # Then
        assert config.logging.level == "INFO"
        assert config.database.busy_timeout_ms == 30000

    def test_given_project_config_when_load_then_overrides_defaults(
        self, project_root: Path
    ) -> None:
        # Given
        write_project_config(
            project_root,
            "database:\n  path: /tmp/metadata.db\ngenerator:\n  cache_dir: /tmp/zclgen-cache\n",
        )

        # When
        config = load_config(project_root)

        # Then
        assert config.database.path == "/tmp/metadata.db"
        assert config.generator.cache_dir == "/tmp/zclgen-cache"

    def test_given_env_var_when_load_then_overrides_file(
        self, project_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given
        write_project_config(project_root, "loader:\n  max_concurrent_files: 2\n")
        monkeypatch.setenv("ZCLGEN__LOADER__MAX_CONCURRENT_FILES", "16")

        # When
        config = load_config(project_root)

        # Then
        assert config.loader.max_concurrent_files == 16

    def test_given_explicit_kwargs_when_load_then_highest_precedence(
        self, project_root: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        # Given
        monkeypatch.setenv("ZCLGEN__LOGGING__LEVEL", "ERROR")

        # When
        config = load_config(project_root, logging=LoggingConfig(level="WARNING"))

        # Then
        assert config.logging.level == "WARNING"

    def test_given_api_version_kwarg_when_load_then_generator_uses_it(
        self, project_root: Path
    ) -> None:
        config = load_config(project_root, generator=GeneratorConfig(api_version=7))

        assert config.generator.api_version == 7

    def test_given_invalid_yaml_when_load_then_raises(self, project_root: Path) -> None:
        # Given
        write_project_config(project_root, "loader: [unclosed\n")

        # When / Then
        with pytest.raises(ConfigError) as exc_info:
            load_config(project_root)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_given_invalid_value_when_load_then_names_field(self, project_root: Path) -> None:
        # Given
        write_project_config(project_root, "loader:\n  max_concurrent_files: 0\n")

        # When / Then
        with pytest.raises(ConfigError) as exc_info:
            load_config(project_root)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE
        assert "loader" in exc_info.value.details["field"]
