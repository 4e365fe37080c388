"""Tests for casing and small template utilities."""

import pytest

from zclgen.generator.helpers.strings import (
    add_one,
    as_camel_case,
    as_kebab_case,
    as_screaming_snake_case,
    as_snake_case,
    as_spaced_lowercase,
    is_last_element,
    is_lowercase_equal,
    split_words,
)


@pytest.mark.parametrize(
    ("label", "words"),
    [
        ("onOff", ["on", "Off"]),
        ("On/off", ["On", "off"]),
        ("Very Simple:Label", ["Very", "Simple", "Label"]),
        ("level2Control", ["level2", "Control"]),
        ("ZCLVersion", ["ZCL", "Version"]),
        ("HVAC", ["HVAC"]),
        ("", []),
        (None, []),
    ],
)
def test_split_words(label: str | None, words: list[str]) -> None:
    assert split_words(label) == words


class TestCasing:
    def test_kebab(self) -> None:
        assert as_kebab_case("Very Simple:Label") == "very-simple-label"

    def test_snake(self) -> None:
        assert as_snake_case("testString") == "test_string"
        assert as_snake_case("On/off") == "on_off"
        assert as_snake_case("ZCLVersion") == "zcl_version"

    def test_screaming_snake(self) -> None:
        assert as_screaming_snake_case("bigTestString") == "BIG_TEST_STRING"

    def test_spaced_lowercase(self) -> None:
        assert as_spaced_lowercase("testString") == "test string"

    def test_camel(self) -> None:
        assert as_camel_case("on off cluster") == "onOffCluster"
        assert as_camel_case("on off cluster", first_upper=True) == "OnOffCluster"
        assert as_camel_case("OnOff") == "onOff"
        assert as_camel_case(None) == ""


class TestUtilities:
    def test_is_last_element(self) -> None:
        assert is_last_element(2, 3)
        assert not is_last_element(0, 3)

    def test_is_lowercase_equal(self) -> None:
        assert is_lowercase_equal("ABC", "abc")
        assert not is_lowercase_equal("abc", "abd")
        assert is_lowercase_equal(None, None)
        assert not is_lowercase_equal(None, "x")

    def test_add_one(self) -> None:
        assert add_one("4") == 5
        assert add_one(0) == 1
