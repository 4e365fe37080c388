"""Preparers: parsed markup nodes into insertion-ready records.

Every function here is pure. It reads one Node and returns records from
zclgen.store.records without touching the store. Missing required fields
raise ParseError; the caller attaches the file path.

Boolean attributes are true only when literally ``"true"``. Numeric
attributes accept decimal or ``0x``-prefixed hex.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from zclgen.config.constants import CONFIGURATOR_ROOT_TAG, SIDE_CLIENT, SIDE_EITHER, SIDE_SERVER
from zclgen.core.errors import ParseError
from zclgen.parsers.tree import Node
from zclgen.store.records import (
    AtomicRecord,
    AttributeRecord,
    BitmapFieldRecord,
    BitmapRecord,
    ClusterGlobalAttributesRecord,
    ClusterRecord,
    CommandArgRecord,
    CommandRecord,
    DeviceTypeClusterRecord,
    DeviceTypeRecord,
    DomainRecord,
    EnumItemRecord,
    EnumRecord,
    GlobalAttributeValueRecord,
    OptionValueRecord,
    SpecRecord,
    StructItemRecord,
    StructRecord,
)


def parse_int(value: str | None, base: int = 10) -> int | None:
    """Parse a decimal or ``0x`` hex string; ``None`` and blanks give ``None``.

    Raises:
        ValueError: If the value is not numeric.
    """
    if value is None:
        return None
    text = value.strip()
    if not text:
        return None
    if text.lower().startswith(("0x", "-0x")):
        return int(text, 16)
    return int(text, base)


def _required_attr(node: Node, name: str) -> str:
    value = node.attr(name)
    if value is None:
        raise ParseError.missing_field(f"<{node.tag}>", name)
    return value


def _required_text(node: Node, tag: str) -> str:
    value = node.text_of(tag)
    if value is None:
        raise ParseError.missing_field(f"<{node.tag}>", tag)
    return value


def mask_to_type(mask: int) -> str:
    """Synthesize a bitmap field type from the number of bits in its mask."""
    bits = bin(mask).count("1") if mask >= 0 else 32
    if bits <= 1:
        return "bool"
    if bits <= 8:
        return "enum8"
    if bits <= 16:
        return "enum16"
    return "enum32"


# =============================================================================
# Domains & atomics
# =============================================================================


def prepare_domain(node: Node) -> DomainRecord:
    name = _required_attr(node, "name")
    spec_code = node.attr("spec")
    spec = None
    if spec_code is not None:
        spec = SpecRecord(
            code=spec_code,
            description=f"Latest {name} spec: {spec_code}",
            certifiable=node.flag("certifiable"),
        )
    older = [
        SpecRecord(
            code=_required_attr(old, "spec"),
            description=f"Older {name} spec {old.attr('spec')}",
            certifiable=old.flag("certifiable"),
        )
        for old in node.all("older")
    ]
    return DomainRecord(name=name, spec=spec, older=older)


def prepare_atomic(node: Node) -> AtomicRecord:
    return AtomicRecord(
        atomic_identifier=parse_int(node.attr("id")),
        name=_required_attr(node, "name"),
        size=parse_int(node.attr("size")),
        description=node.attr("description"),
        is_discrete=node.flag("discrete"),
        is_signed=node.flag("signed"),
        is_string=node.flag("string"),
        is_long=node.flag("long"),
        is_char=node.flag("char"),
    )


# =============================================================================
# Composite types
# =============================================================================


def prepare_bitmap(node: Node) -> BitmapRecord:
    fields = []
    for ordinal, item in enumerate(node.all("field")):
        mask = parse_int(_required_attr(item, "mask")) or 0
        fields.append(
            BitmapFieldRecord(
                name=_required_attr(item, "name"),
                mask=mask,
                type=mask_to_type(mask),
                ordinal=ordinal,
            )
        )
    return BitmapRecord(name=_required_attr(node, "name"), type=node.attr("type"), fields=fields)


def prepare_enum(node: Node) -> EnumRecord:
    items = [
        EnumItemRecord(
            name=_required_attr(item, "name"),
            value=parse_int(item.attr("value")),
            ordinal=ordinal,
        )
        for ordinal, item in enumerate(node.all("item"))
    ]
    return EnumRecord(name=_required_attr(node, "name"), type=node.attr("type"), items=items)


def prepare_struct(node: Node) -> StructRecord:
    items = [
        StructItemRecord(
            name=_required_attr(item, "name"),
            type=item.attr("type"),
            ordinal=ordinal,
            entry_type=item.attr("entryType"),
            max_length=parse_int(item.attr("length")),
            is_writable=item.flag("writable"),
        )
        for ordinal, item in enumerate(node.all("item"))
    ]
    return StructRecord(name=_required_attr(node, "name"), items=items)


# =============================================================================
# Clusters
# =============================================================================


def prepare_command(node: Node, cluster_manufacturer_code: int | None) -> CommandRecord:
    """Prepare a command; args carrying ``removedIn`` are dropped.

    A kept arg's ordinal is its index among all source args.
    """
    manufacturer_code = parse_int(node.attr("manufacturerCode"))
    if manufacturer_code is None:
        manufacturer_code = cluster_manufacturer_code
    args = [
        CommandArgRecord(
            name=_required_attr(arg, "name"),
            type=arg.attr("type"),
            ordinal=ordinal,
            is_array=arg.flag("array"),
            present_if=arg.attr("presentIf"),
            count_arg=arg.attr("countArg"),
            introduced_in=arg.attr("introducedIn"),
            removed_in=arg.attr("removedIn"),
        )
        for ordinal, arg in enumerate(node.all("arg"))
        if arg.attr("removedIn") is None
    ]
    return CommandRecord(
        code=parse_int(_required_attr(node, "code")),  # type: ignore[arg-type]
        name=_required_attr(node, "name"),
        manufacturer_code=manufacturer_code,
        description=node.text_of("description"),
        source=node.attr("source"),
        is_optional=node.flag("optional"),
        introduced_in=node.attr("introducedIn"),
        removed_in=node.attr("removedIn"),
        args=args,
    )


def prepare_attribute(node: Node, cluster_manufacturer_code: int | None) -> AttributeRecord | None:
    """Prepare an attribute, or ``None`` when it carries ``removedIn``."""
    if node.attr("removedIn") is not None:
        return None
    manufacturer_code = parse_int(node.attr("manufacturerCode"))
    if manufacturer_code is None:
        manufacturer_code = cluster_manufacturer_code
    return AttributeRecord(
        code=parse_int(_required_attr(node, "code")),  # type: ignore[arg-type]
        name=node.text.strip() if node.text else None,
        type=_required_attr(node, "type").lower(),
        side=node.attr("side"),
        manufacturer_code=manufacturer_code,
        define=node.attr("define"),
        min=node.attr("min"),
        max=node.attr("max"),
        max_length=parse_int(node.attr("length")),
        is_writable=node.flag("writable"),
        is_optional=node.flag("optional"),
        is_reportable=node.flag("reportable"),
        is_scene_required=node.flag("sceneRequired"),
        default_value=node.attr("default"),
        entry_type=node.attr("entryType"),
        introduced_in=node.attr("introducedIn"),
        removed_in=None,
    )


def prepare_cluster(node: Node, is_extension: bool = False) -> ClusterRecord:
    """Prepare a ``cluster``, ``clusterExtension`` or ``global`` element.

    Extensions and globals only carry a code attribute (optional for globals)
    plus their commands and attributes.
    """
    if is_extension:
        record = ClusterRecord(code=parse_int(node.attr("code")), is_extension=True)
    else:
        record = ClusterRecord(
            code=parse_int(_required_text(node, "code")),
            name=_required_text(node, "name"),
            description=node.text_of("description"),
            define=node.text_of("define"),
            domain_name=node.text_of("domain"),
            manufacturer_code=parse_int(node.attr("manufacturerCode")),
            is_singleton=node.flag("singleton"),
            introduced_in=node.attr("introducedIn"),
            removed_in=node.attr("removedIn"),
        )
    record.commands = [prepare_command(c, record.manufacturer_code) for c in node.all("command")]
    record.attributes = [
        attribute
        for attribute in (prepare_attribute(a, record.manufacturer_code) for a in node.all("attribute"))
        if attribute is not None
    ]
    return record


def prepare_cluster_global_attributes(node: Node) -> ClusterGlobalAttributesRecord | None:
    """Per-cluster defaults of global attributes, or ``None`` if the cluster has none.

    A default with side ``either`` becomes one client and one server value.
    """
    entries = node.all("globalAttribute")
    if not entries:
        return None
    values = []
    for entry in entries:
        code = parse_int(_required_attr(entry, "code"))
        side = _required_attr(entry, "side")
        sides = [SIDE_CLIENT, SIDE_SERVER] if side == SIDE_EITHER else [side]
        values.extend(
            GlobalAttributeValueRecord(code=code, side=s, value=entry.attr("value"))  # type: ignore[arg-type]
            for s in sides
        )
    return ClusterGlobalAttributesRecord(
        cluster_code=parse_int(_required_text(node, "code"), base=16),  # type: ignore[arg-type]
        manufacturer_code=parse_int(node.attr("manufacturerCode")),
        values=values,
    )


# =============================================================================
# Device types
# =============================================================================


def prepare_device_type(node: Node) -> DeviceTypeRecord:
    clusters = []
    for group in node.all("clusters"):
        for include in group.all("include"):
            cluster_name = include.attr("cluster")
            if cluster_name is None and include.text:
                cluster_name = include.text.strip()
            if not cluster_name:
                raise ParseError.missing_field("<include>", "cluster")
            clusters.append(
                DeviceTypeClusterRecord(
                    cluster_name=cluster_name,
                    client=include.flag("client"),
                    server=include.flag("server"),
                    client_locked=include.flag("clientLocked"),
                    server_locked=include.flag("serverLocked"),
                    required_attributes=[
                        r.text.strip() for r in include.all("requireAttribute") if r.text
                    ],
                    required_commands=[
                        r.text.strip() for r in include.all("requireCommand") if r.text
                    ],
                )
            )
    return DeviceTypeRecord(
        code=parse_int(_required_text(node, "deviceId")),  # type: ignore[arg-type]
        name=_required_text(node, "name"),
        profile_id=parse_int(node.text_of("profileId")),
        domain_name=node.text_of("domain"),
        description=node.text_of("typeName"),
        clusters=clusters,
    )


# =============================================================================
# Manufacturer codes
# =============================================================================


def prepare_manufacturer_codes(root: Node) -> list[OptionValueRecord]:
    """``<map><mapping code=".." translation=".."/></map>`` into option values."""
    return [
        OptionValueRecord(code=_required_attr(m, "code"), label=m.attr("translation"))
        for m in root.all("mapping")
    ]


# =============================================================================
# Whole file
# =============================================================================


@dataclass
class PreparedFile:
    """Every record of one ``configurator`` document, grouped by kind."""

    domains: list[DomainRecord] = field(default_factory=list)
    atomics: list[AtomicRecord] = field(default_factory=list)
    bitmaps: list[BitmapRecord] = field(default_factory=list)
    clusters: list[ClusterRecord] = field(default_factory=list)
    enums: list[EnumRecord] = field(default_factory=list)
    structs: list[StructRecord] = field(default_factory=list)
    device_types: list[DeviceTypeRecord] = field(default_factory=list)
    globals: list[ClusterRecord] = field(default_factory=list)
    cluster_extensions: list[ClusterRecord] = field(default_factory=list)
    global_attribute_defaults: list[ClusterGlobalAttributesRecord] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in self.__dataclass_fields__)


def prepare_configurator(root: Node) -> PreparedFile:
    """Prepare a parsed metadata document.

    A root other than ``configurator`` yields an empty PreparedFile.
    """
    prepared = PreparedFile()
    if root.tag != CONFIGURATOR_ROOT_TAG:
        return prepared
    prepared.domains = [prepare_domain(n) for n in root.all("domain")]
    prepared.atomics = [prepare_atomic(t) for block in root.all("atomic") for t in block.all("type")]
    prepared.bitmaps = [prepare_bitmap(n) for n in root.all("bitmap")]
    cluster_nodes = root.all("cluster")
    prepared.clusters = [prepare_cluster(n) for n in cluster_nodes]
    prepared.global_attribute_defaults = [
        defaults
        for defaults in (prepare_cluster_global_attributes(n) for n in cluster_nodes)
        if defaults is not None
    ]
    prepared.enums = [prepare_enum(n) for n in root.all("enum")]
    prepared.structs = [prepare_struct(n) for n in root.all("struct")]
    prepared.device_types = [prepare_device_type(n) for n in root.all("deviceType")]
    prepared.globals = [prepare_cluster(n, is_extension=True) for n in root.all("global")]
    prepared.cluster_extensions = [
        prepare_cluster(n, is_extension=True) for n in root.all("clusterExtension")
    ]
    return prepared
