"""Markup parser: XML bytes into a Node tree.

Namespaces are stripped from tags and attribute names so that ``{ns}cluster``
and ``cluster`` are the same element. Element text is kept only when it has
non-whitespace content.
"""

import xml.etree.ElementTree as ET

from zclgen.core.errors import ParseError
from zclgen.parsers.tree import Node


def _local_name(name: str) -> str:
    if name.startswith("{"):
        return name.split("}", 1)[1]
    return name


def _to_node(element: ET.Element) -> Node:
    text = element.text
    if text is not None and not text.strip():
        text = None
    return Node(
        tag=_local_name(element.tag),
        attrs={_local_name(k): v for k, v in element.attrib.items()},
        text=text,
        children=[_to_node(child) for child in element],
    )


def parse_xml(data: bytes | str, path: str) -> Node:
    """Parse XML content into a Node rooted at the document element.

    Raises:
        ParseError: If the content is not well-formed XML.
    """
    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ParseError.malformed(path, e) from e
    return _to_node(root)
