"""Built-in template helpers.

- strings: casing and small utilities (also exposed as filters)
- c: byte formatting and CLI data-type tags
- zcl: type classification and package data queries
"""

from zclgen.generator.helpers import c, strings, zcl
from zclgen.generator.helpers.c import (
    bitmap_data_type,
    bytes_for_value,
    enum_data_type,
    format_fixed_width,
)
from zclgen.generator.helpers.strings import (
    add_one,
    as_camel_case,
    as_kebab_case,
    as_screaming_snake_case,
    as_snake_case,
    as_spaced_lowercase,
    is_last_element,
    is_lowercase_equal,
)
from zclgen.generator.helpers.zcl import classify_type, is_bitmap, is_enum, is_struct

BUILTIN_MODULES = (strings, c, zcl)
FILTER_MODULES = (strings,)

__all__ = [
    "BUILTIN_MODULES",
    "FILTER_MODULES",
    "add_one",
    "as_camel_case",
    "as_kebab_case",
    "as_screaming_snake_case",
    "as_snake_case",
    "as_spaced_lowercase",
    "bitmap_data_type",
    "bytes_for_value",
    "classify_type",
    "enum_data_type",
    "format_fixed_width",
    "is_bitmap",
    "is_enum",
    "is_last_element",
    "is_lowercase_equal",
    "is_struct",
]
