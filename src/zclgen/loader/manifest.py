"""Top-level metadata manifest (JSON or properties).

The manifest names the XML files to load, the root directories they are
searched in, supplementary files (manufacturer codes, schema, validation
script), free-form options with their defaults, a version string and the
custom-device flag. Both variants carry the same logical keys; the
properties variant uses comma-separated scalars under dotted keys.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from zclgen.core.errors import ParseError
from zclgen.parsers import SourceFormat, parse_source, source_format_for, split_list


def locate_relative_file(roots: list[Path], name: str | None) -> Path | None:
    """Return the first ``root / name`` that exists, scanning roots left to right."""
    if not name:
        return None
    for root in roots:
        candidate = root / name
        if candidate.exists():
            return candidate
    return None


class ManifestOptions(BaseModel):
    """``options``: text categories with their values, and bool categories."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: dict[str, list[str]] = Field(default_factory=dict)
    flags: list[str] = Field(default_factory=list, alias="bool")

    @field_validator("text", mode="before")
    @classmethod
    def split_text_values(cls, v: Any) -> Any:
        if isinstance(v, dict):
            return {category: split_list(values) for category, values in v.items()}
        return v

    @field_validator("flags", mode="before")
    @classmethod
    def split_bool_categories(cls, v: Any) -> Any:
        if v is None or isinstance(v, (str, list)):
            return split_list(v)
        return v


class ManifestDefaults(BaseModel):
    """``defaults``: category to option value.

    Text defaults stay as declared. Only a JSON number arrives as ``int``,
    which the option lookup may retry in hex form.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: dict[str, int | str] = Field(default_factory=dict)
    flags: dict[str, bool] = Field(default_factory=dict, alias="bool")


class Manifest(BaseModel):
    """Parsed manifest. Paths stay as declared until resolved against roots."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    base_dir: Path = Field(default=Path("."), exclude=True)
    xml_root: list[str] = Field(alias="xmlRoot")
    xml_file: list[str] = Field(alias="xmlFile")
    manufacturers_xml: str | None = Field(default=None, alias="manufacturersXml")
    zcl_schema: str | None = Field(default=None, alias="zclSchema")
    zcl_validation: str | None = Field(default=None, alias="zclValidation")
    version: str | None = None
    support_custom_zcl_device: bool = Field(default=False, alias="supportCustomZclDevice")
    options: ManifestOptions | None = None
    defaults: ManifestDefaults | None = None

    @field_validator("xml_root", "xml_file", mode="before")
    @classmethod
    def split_lists(cls, v: Any) -> Any:
        if isinstance(v, (str, list)):
            return split_list(v)
        return v

    @field_validator("version", mode="before")
    @classmethod
    def version_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)):
            return str(v)
        return v

    def roots(self) -> list[Path]:
        return [self.base_dir / root for root in self.xml_root]

    def locate(self, name: str | None) -> Path | None:
        return locate_relative_file(self.roots(), name)


_REQUIRED_KEYS = ("xmlRoot", "xmlFile")


def parse_manifest(data: bytes, path: Path) -> Manifest:
    """Parse manifest bytes; the format follows the file extension.

    Raises:
        ParseError: On malformed content or a missing required key.
    """
    fmt = source_format_for(path)
    if fmt is SourceFormat.XML:
        fmt = SourceFormat.PROPERTIES
    raw = parse_source(data, fmt, str(path))
    if not isinstance(raw, dict):
        raise ParseError.malformed(str(path), "manifest must be a key/value object")
    for key in _REQUIRED_KEYS:
        if key not in raw:
            raise ParseError.missing_field(str(path), key)
    try:
        return Manifest.model_validate({**raw, "base_dir": path.parent})
    except ValidationError as e:
        raise ParseError.malformed(str(path), e) from e


def read_manifest(path: Path) -> Manifest:
    """Read and parse a manifest file."""
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ParseError.malformed(str(path), e) from e
    return parse_manifest(data, path)
