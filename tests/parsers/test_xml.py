"""Tests for the markup parser and the Node tree."""

import pytest

from zclgen.core.errors import ErrorCode, ParseError
from zclgen.parsers import parse_xml


class TestParseXml:
    def test_builds_tree_in_source_order(self) -> None:
        root = parse_xml(
            b"<configurator><enum name='A'/><bitmap name='B'/><enum name='C'/></configurator>",
            "types.xml",
        )

        assert root.tag == "configurator"
        assert [n.attr("name") for n in root.all("enum")] == ["A", "C"]
        assert root.first("bitmap").attr("name") == "B"  # type: ignore[union-attr]

    def test_strips_namespaces_from_tags_and_attributes(self) -> None:
        root = parse_xml(
            '<c:configurator xmlns:c="urn:zcl" xmlns:x="urn:x">'
            '<c:cluster x:code="6"/></c:configurator>',
            "ns.xml",
        )

        assert root.tag == "configurator"
        cluster = root.first("cluster")
        assert cluster is not None
        assert cluster.attrs == {"code": "6"}

    def test_whitespace_only_text_is_none(self) -> None:
        root = parse_xml("<a>\n   <b> value </b>\n</a>", "t.xml")

        assert root.text is None
        assert root.text_of("b") == "value"

    def test_absent_optional_sections_are_empty(self) -> None:
        root = parse_xml("<configurator/>", "empty.xml")

        assert root.all("cluster") == []
        assert root.first("cluster") is None
        assert root.text_of("name", "fallback") == "fallback"
        assert not root.has("cluster")

    def test_flag_is_true_only_for_literal_true(self) -> None:
        root = parse_xml("<a one='true' two='TRUE' three='1'/>", "f.xml")

        assert root.flag("one")
        assert not root.flag("two")
        assert not root.flag("three")
        assert not root.flag("missing")

    def test_walk_visits_every_node(self) -> None:
        root = parse_xml("<a><b><c/></b><d/></a>", "w.xml")

        assert [n.tag for n in root.walk()] == ["a", "b", "c", "d"]

    def test_malformed_raises_parse_error_with_path(self) -> None:
        with pytest.raises(ParseError) as exc_info:
            parse_xml("<configurator><cluster></configurator>", "broken.xml")

        assert exc_info.value.code == ErrorCode.PARSE_MALFORMED
        assert exc_info.value.path == "broken.xml"
