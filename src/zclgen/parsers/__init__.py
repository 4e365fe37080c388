"""Parser adapters - source bytes into intermediate trees.

This module provides:
- parse_xml: markup into a Node tree
- parse_properties: Java-style properties into a nested dict
- parse_source: dispatch on SourceFormat
- split_list: comma-separated scalar or list into a list of strings
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any

from zclgen.core.errors import ParseError
from zclgen.parsers.properties import parse_properties
from zclgen.parsers.tree import Node
from zclgen.parsers.xml import parse_xml

__all__ = [
    "Node",
    "SourceFormat",
    "parse_properties",
    "parse_source",
    "parse_xml",
    "source_format_for",
    "split_list",
]


class SourceFormat(str, Enum):
    XML = "xml"
    PROPERTIES = "properties"
    JSON = "json"


def source_format_for(path: Path) -> SourceFormat:
    """Pick the format from the file extension (properties is the fallback)."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        return SourceFormat.JSON
    if suffix in (".xml", ".xsd"):
        return SourceFormat.XML
    return SourceFormat.PROPERTIES


def parse_source(data: bytes | str, fmt: SourceFormat, path: str) -> Any:
    """Parse content of the given format.

    Raises:
        ParseError: If the content cannot be parsed.
    """
    if fmt is SourceFormat.XML:
        return parse_xml(data, path)
    if fmt is SourceFormat.PROPERTIES:
        return parse_properties(data, path)
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ParseError.malformed(path, e) from e


def split_list(value: str | list[Any] | None) -> list[str]:
    """Normalize a comma-separated scalar or a list into stripped strings.

    Empty entries are dropped.
    """
    if value is None:
        return []
    items = value if isinstance(value, list) else str(value).split(",")
    return [s for s in (str(item).strip() for item in items) if s]
