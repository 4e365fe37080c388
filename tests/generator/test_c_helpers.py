"""Tests for byte formatting and CLI data-type helpers."""

import pytest

from zclgen.generator import GenerationScope
from zclgen.generator.helpers.c import (
    CLI_ARG_UINT8,
    CLI_ARG_UINT32,
    bitmap_data_type,
    bytes_for_value,
    enum_data_type,
    format_fixed_width,
)
from zclgen.loader import PackageContext
from zclgen.store.database import Database


class TestFormatFixedWidth:
    @pytest.mark.parametrize(
        ("value", "width", "expected"),
        [
            (0xAA, 1, "0xAA"),
            (0xAA, 2, "0x00, 0xAA"),
            ("0x1234", 2, "0x12, 0x34"),
            ("300", 1, "0x2C"),
            (-1, 2, "0xFF, 0xFF"),
            ("g", 1, "0x00"),
            ("g", -1, "1,'g'"),
            ("ab", 0, "2,'a','b'"),
        ],
    )
    def test_values(self, value: object, width: int, expected: str) -> None:
        assert format_fixed_width(value, width) == expected


class TestBytesForValue:
    @pytest.mark.asyncio
    async def test_known_fixed_width_type(self) -> None:
        assert await bytes_for_value(None, "6", "int8u") == "0x06"
        assert await bytes_for_value(None, 0x0102, "INT16U") == "0x01, 0x02"

    @pytest.mark.asyncio
    async def test_unknown_type_renders_char_codes(self) -> None:
        assert await bytes_for_value(None, None, "unknown") == "0x00"
        assert await bytes_for_value(None, "9", "unknown") == "0x39, 0x00"

    @pytest.mark.asyncio
    async def test_non_ascii_renders_utf8_bytes(self) -> None:
        assert await bytes_for_value(None, "\u20ac", "unknown") == "0xE2, 0x82, 0xAC, 0x00"

    @pytest.mark.asyncio
    async def test_no_type_returns_value(self) -> None:
        assert await bytes_for_value(None, "raw", None) == "raw"

    @pytest.mark.asyncio
    async def test_width_from_package_atomics(
        self, db: Database, loaded_package: PackageContext
    ) -> None:
        scope = GenerationScope(db, loaded_package.package_id)

        assert await bytes_for_value(scope, 0x1234, "int16u") == "0x12, 0x34"
        assert await bytes_for_value(scope, "ab", "char_string") == "0x61, 0x62, 0x00"


class TestDataTypeTags:
    @pytest.mark.asyncio
    async def test_enum_tag_from_item_count(self, db: Database, loaded_package: PackageContext) -> None:
        scope = GenerationScope(db, loaded_package.package_id)

        assert await enum_data_type(scope, "Status") == CLI_ARG_UINT8

    @pytest.mark.asyncio
    async def test_unknown_enum_renders_sentinel(
        self, db: Database, loaded_package: PackageContext
    ) -> None:
        scope = GenerationScope(db, loaded_package.package_id)

        assert await enum_data_type(scope, "patate") == "!!Invalid enum: patate"

    @pytest.mark.asyncio
    async def test_bitmap_tag_from_declared_width(
        self, db: Database, loaded_package: PackageContext
    ) -> None:
        scope = GenerationScope(db, loaded_package.package_id)

        assert await bitmap_data_type(scope, "OnOffControl") == CLI_ARG_UINT8
        assert await bitmap_data_type(scope, "Feature") == CLI_ARG_UINT32
        assert await bitmap_data_type(scope, "Nope") == "!!Invalid bitmap: Nope"
