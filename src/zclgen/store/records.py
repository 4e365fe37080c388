"""Insertion-ready records produced by the preparers.

Each record kind carries only the fields its entity has; optional source
attributes are explicit ``None`` rather than absent keys. Child lists are in
source order and each child's ``ordinal`` is its source position.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SpecRecord:
    code: str
    description: str
    certifiable: bool = False


@dataclass
class DomainRecord:
    name: str
    spec: SpecRecord | None
    older: list[SpecRecord] = field(default_factory=list)


@dataclass
class AtomicRecord:
    atomic_identifier: int | None
    name: str
    size: int | None = None
    description: str | None = None
    is_discrete: bool = False
    is_signed: bool = False
    is_string: bool = False
    is_long: bool = False
    is_char: bool = False


@dataclass
class BitmapFieldRecord:
    name: str
    mask: int
    type: str
    ordinal: int


@dataclass
class BitmapRecord:
    name: str
    type: str | None
    fields: list[BitmapFieldRecord] = field(default_factory=list)


@dataclass
class EnumItemRecord:
    name: str
    value: int | None
    ordinal: int


@dataclass
class EnumRecord:
    name: str
    type: str | None
    items: list[EnumItemRecord] = field(default_factory=list)


@dataclass
class StructItemRecord:
    name: str
    type: str | None
    ordinal: int
    entry_type: str | None = None
    min_length: int = 0
    max_length: int | None = None
    is_writable: bool = False


@dataclass
class StructRecord:
    name: str
    items: list[StructItemRecord] = field(default_factory=list)


@dataclass
class CommandArgRecord:
    name: str
    type: str | None
    ordinal: int
    is_array: bool = False
    present_if: str | None = None
    count_arg: str | None = None
    introduced_in: str | None = None
    removed_in: str | None = None


@dataclass
class CommandRecord:
    code: int
    name: str
    manufacturer_code: int | None = None
    description: str | None = None
    source: str | None = None
    is_optional: bool = False
    introduced_in: str | None = None
    removed_in: str | None = None
    args: list[CommandArgRecord] = field(default_factory=list)


@dataclass
class AttributeRecord:
    code: int
    name: str | None
    type: str | None
    side: str | None
    manufacturer_code: int | None = None
    define: str | None = None
    min: str | None = None
    max: str | None = None
    min_length: int = 0
    max_length: int | None = None
    is_writable: bool = False
    is_optional: bool = False
    is_reportable: bool = False
    is_scene_required: bool = False
    default_value: str | None = None
    entry_type: str | None = None
    introduced_in: str | None = None
    removed_in: str | None = None


@dataclass
class ClusterRecord:
    """A cluster, a cluster extension, or a global block.

    Extensions and globals only carry ``code`` (extensions) plus their
    incremental commands and attributes.
    """

    code: int | None
    is_extension: bool = False
    name: str | None = None
    description: str | None = None
    define: str | None = None
    domain_name: str | None = None
    manufacturer_code: int | None = None
    is_singleton: bool = False
    introduced_in: str | None = None
    removed_in: str | None = None
    commands: list[CommandRecord] = field(default_factory=list)
    attributes: list[AttributeRecord] = field(default_factory=list)


@dataclass
class GlobalAttributeValueRecord:
    code: int
    side: str
    value: str | None


@dataclass
class ClusterGlobalAttributesRecord:
    cluster_code: int
    manufacturer_code: int | None
    values: list[GlobalAttributeValueRecord] = field(default_factory=list)


@dataclass
class DeviceTypeClusterRecord:
    cluster_name: str
    client: bool = False
    server: bool = False
    client_locked: bool = False
    server_locked: bool = False
    required_attributes: list[str] = field(default_factory=list)
    required_commands: list[str] = field(default_factory=list)


@dataclass
class DeviceTypeRecord:
    code: int
    name: str
    profile_id: int | None = None
    domain_name: str | None = None
    description: str | None = None
    clusters: list[DeviceTypeClusterRecord] = field(default_factory=list)


@dataclass
class OptionValueRecord:
    code: str
    label: str | None
