"""String casing and small template utilities.

Casing helpers split a label into words on any non-alphanumeric character
and on lower-to-upper transitions (``onOff`` -> ``on``, ``Off``), then join
the words in the requested style.
"""

import re
from typing import Any

_NON_ALNUM = re.compile(r"[^0-9A-Za-z]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def split_words(label: str | None) -> list[str]:
    if not label:
        return []
    words: list[str] = []
    for chunk in _NON_ALNUM.split(label):
        words.extend(w for w in _CAMEL_BOUNDARY.split(chunk) if w)
    return words


def as_kebab_case(label: str | None) -> str:
    """``Very Simple:Label`` -> ``very-simple-label``"""
    return "-".join(w.lower() for w in split_words(label))


def as_snake_case(label: str | None) -> str:
    """``testString`` -> ``test_string``"""
    return "_".join(w.lower() for w in split_words(label))


def as_screaming_snake_case(label: str | None) -> str:
    """``bigTestString`` -> ``BIG_TEST_STRING``"""
    return "_".join(w.upper() for w in split_words(label))


def as_spaced_lowercase(label: str | None) -> str:
    """``testString`` -> ``test string``"""
    return " ".join(w.lower() for w in split_words(label))


def as_camel_case(label: str | None, first_upper: bool = False) -> str:
    """``on off cluster`` -> ``onOffCluster`` (``OnOffCluster`` with first_upper)."""
    words = split_words(label)
    out = [w[0].upper() + w[1:].lower() for w in words]
    if out and not first_upper:
        out[0] = out[0].lower()
    return "".join(out)


def is_last_element(index: int, count: int) -> bool:
    return int(index) == int(count) - 1


def is_lowercase_equal(left: Any, right: Any) -> bool:
    if left is None or right is None:
        return left is right
    return str(left).lower() == str(right).lower()


def add_one(number: Any) -> int:
    return int(number) + 1


__all__ = [
    "add_one",
    "as_camel_case",
    "as_kebab_case",
    "as_screaming_snake_case",
    "as_snake_case",
    "as_spaced_lowercase",
    "is_last_element",
    "is_lowercase_equal",
    "split_words",
]
