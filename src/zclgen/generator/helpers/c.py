"""C-oriented value and type formatting helpers.

Byte lists are rendered as ``0x%02X`` joined by ``", "``, most significant
byte first.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from zclgen.core.errors import ReferenceLookupError
from zclgen.generator.registry import scoped, sentinel_on_miss
from zclgen.store import queries

if TYPE_CHECKING:
    from zclgen.generator.scope import GenerationScope

# Fixed widths (bytes) used when the package has no atomic row for a type.
FIXED_WIDTH_TYPES: dict[str, int] = {
    "boolean": 1,
    "enum8": 1,
    "enum16": 2,
    "enum32": 4,
    "single": 4,
    "double": 8,
    "utc_time": 4,
    "date": 4,
    "time_of_day": 4,
    "cluster_id": 2,
    "attribute_id": 2,
    "bacnet_oid": 4,
    "ieee_address": 8,
    "security_key": 16,
    **{f"int{8 * n}u": n for n in range(1, 9)},
    **{f"int{8 * n}s": n for n in range(1, 9)},
    **{f"bitmap{8 * n}": n for n in range(1, 9)},
    **{f"data{8 * n}": n for n in range(1, 9)},
}

CLI_ARG_UINT8 = "SL_CLI_ARG_UINT8"
CLI_ARG_UINT16 = "SL_CLI_ARG_UINT16"
CLI_ARG_UINT32 = "SL_CLI_ARG_UINT32"

_WIDTH_DIGITS = re.compile(r"(\d+)")


def _hex_bytes(number: int, width: int) -> str:
    number &= (1 << (8 * width)) - 1
    return ", ".join(f"0x{b:02X}" for b in number.to_bytes(width, "big"))


def _as_number(value: Any) -> int | None:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if value is None:
        return None
    text = str(value).strip()
    try:
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text, 10)
    except ValueError:
        return None


def format_fixed_width(value: Any, width: int) -> str:
    """Render ``value`` as exactly ``width`` bytes.

    ``width <= 0`` renders a length-prefixed character literal instead:
    ``"g", -1`` -> ``1,'g'``. A non-numeric value with a positive width
    renders a single zero byte.
    """
    width = int(width)
    if width <= 0:
        text = "" if value is None else str(value)
        return ",".join([str(len(text)), *(f"'{c}'" for c in text)])
    number = _as_number(value)
    if number is None:
        return "0x00"
    return _hex_bytes(number, width)


def _char_codes(value: Any) -> str:
    if value is None:
        return "0x00"
    codes = [f"0x{b:02X}" for b in str(value).encode("utf-8")]
    return ", ".join([*codes, "0x00"])


def type_width(type_name: str) -> int | None:
    return FIXED_WIDTH_TYPES.get(type_name.lower())


@scoped
async def bytes_for_value(scope: GenerationScope | None, value: Any, type_name: str | None) -> str:
    """Bytes of ``value`` for a declared type.

    Known fixed-width type: ``width`` bytes. Unknown type: the character
    codes of the value followed by ``0x00``. No type: the value unchanged.
    """
    if type_name is None:
        return "" if value is None else str(value)
    width = None
    if scope is not None:
        atomic = await scope.query(queries.select_atomic_by_name, type_name)
        if atomic is not None and atomic["size"] and not atomic["is_string"]:
            width = int(atomic["size"])
    if width is None:
        width = type_width(type_name)
    if width is None:
        return _char_codes(value)
    return format_fixed_width(0 if value is None else value, width)


def _tag_for_width(bits: int) -> str:
    if bits <= 8:
        return CLI_ARG_UINT8
    if bits <= 16:
        return CLI_ARG_UINT16
    return CLI_ARG_UINT32


@scoped
@sentinel_on_miss
async def enum_data_type(scope: GenerationScope, name: str) -> str:
    """Narrowest CLI integer tag that fits the enum's item count."""
    enum = await scope.query(queries.select_enum_by_name, name)
    if enum is None:
        raise ReferenceLookupError.not_found("enum", name)
    items = await scope.fetch(queries.select_enum_items, enum["id"])
    count = len(items)
    if count <= 0x100:
        return CLI_ARG_UINT8
    if count <= 0x10000:
        return CLI_ARG_UINT16
    return CLI_ARG_UINT32


@scoped
@sentinel_on_miss
async def bitmap_data_type(scope: GenerationScope, name: str) -> str:
    """CLI integer tag from the bitmap's declared width, else its field count."""
    bitmap = await scope.query(queries.select_bitmap_by_name, name)
    if bitmap is None:
        raise ReferenceLookupError.not_found("bitmap", name)
    match = _WIDTH_DIGITS.search(bitmap["type"] or "")
    if match:
        return _tag_for_width(int(match.group(1)))
    fields = await scope.fetch(queries.select_bitmap_fields, bitmap["id"])
    return _tag_for_width(len(fields))


__all__ = [
    "bitmap_data_type",
    "bytes_for_value",
    "enum_data_type",
    "format_fixed_width",
]
