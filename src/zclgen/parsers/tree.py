"""Intermediate tree produced by the markup parser.

A ``Node`` mirrors one source element without interpreting it. Repeated and
single child elements look the same through ``all()``, and absent optional
sections are empty lists or ``None``, never errors.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field


@dataclass
class Node:
    """One markup element: tag, attributes, text and ordered children."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    text: str | None = None
    children: list[Node] = field(default_factory=list)

    def all(self, tag: str) -> list[Node]:
        """Every direct child with this tag, in source order."""
        return [child for child in self.children if child.tag == tag]

    def first(self, tag: str) -> Node | None:
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def has(self, tag: str) -> bool:
        return self.first(tag) is not None

    def text_of(self, tag: str, default: str | None = None) -> str | None:
        """Text of the first child with this tag, stripped."""
        child = self.first(tag)
        if child is None or child.text is None:
            return default
        return child.text.strip()

    def attr(self, name: str, default: str | None = None) -> str | None:
        return self.attrs.get(name, default)

    def flag(self, name: str) -> bool:
        """True only when the attribute is literally ``true``."""
        return self.attrs.get(name) == "true"

    def walk(self) -> Iterator[Node]:
        yield self
        for child in self.children:
            yield from child.walk()
