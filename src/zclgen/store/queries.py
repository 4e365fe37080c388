"""Named insert/select operations over the metadata store.

The loader and the generation helpers go through these functions instead of
building SQL. Every function takes the ambient StoreTransaction first and the
owning package id second.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

import structlog

from zclgen.config.constants import SIDE_EITHER
from zclgen.core.errors import ReferenceLookupError
from zclgen.store.models import (
    Atomic,
    Attribute,
    Bitmap,
    BitmapField,
    Cluster,
    Command,
    CommandArg,
    DeviceType,
    DeviceTypeAttribute,
    DeviceTypeCluster,
    DeviceTypeCommand,
    Domain,
    EnumItem,
    GlobalAttributeDefault,
    Package,
    PackageOption,
    PackageType,
    PackageOptionDefault,
    Spec,
    Struct,
    StructItem,
    ZclEnum,
)

if TYPE_CHECKING:
    from sqlalchemy import RowMapping

    from zclgen.store.database import StoreTransaction
    from zclgen.store.records import (
        AtomicRecord,
        BitmapRecord,
        ClusterGlobalAttributesRecord,
        ClusterRecord,
        DeviceTypeRecord,
        DomainRecord,
        EnumRecord,
        OptionValueRecord,
        StructRecord,
    )

logger = structlog.get_logger()


# =============================================================================
# Packages
# =============================================================================


def get_package_by_path_and_crc(tx: StoreTransaction, path: str, crc: str) -> RowMapping | None:
    return tx.select_one(Package, path=path, crc=crc)


def get_package_by_id(tx: StoreTransaction, package_id: int) -> RowMapping | None:
    return tx.select_one(Package, id=package_id)


def _type_value(package_type: str | PackageType) -> str:
    return package_type.value if isinstance(package_type, PackageType) else package_type


def get_packages_by_type(tx: StoreTransaction, package_type: str | PackageType) -> list[RowMapping]:
    return tx.select_by_key(Package, type=_type_value(package_type))


def get_child_packages(
    tx: StoreTransaction, parent_id: int, package_type: str | PackageType | None = None
) -> list[RowMapping]:
    if package_type is None:
        return tx.select_by_key(Package, parent_package_ref=parent_id)
    return tx.select_by_key(Package, parent_package_ref=parent_id, type=_type_value(package_type))


def register_package(
    tx: StoreTransaction,
    path: str,
    crc: str,
    package_type: str | PackageType,
    parent_id: int | None = None,
    version: str | None = None,
) -> tuple[int, bool]:
    """Insert a package unless (path, crc) already exists.

    Returns:
        (package_id, created)
    """
    existing = get_package_by_path_and_crc(tx, path, crc)
    if existing is not None:
        return int(existing["id"]), False
    (package_id,) = tx.insert(
        Package,
        [
            {
                "path": path,
                "crc": crc,
                "type": _type_value(package_type),
                "parent_package_ref": parent_id,
                "version": version,
            }
        ],
    )
    return package_id, True


def update_package_version(tx: StoreTransaction, package_id: int, version: str) -> None:
    tx.update_where(Package, {"version": version}, id=package_id)


# =============================================================================
# Options
# =============================================================================


def insert_option_values(
    tx: StoreTransaction,
    package_id: int,
    category: str,
    values: list[OptionValueRecord],
) -> list[int]:
    """Insert option rows for a category; codes already present are skipped."""
    existing = {row["code"] for row in tx.select_by_key(PackageOption, package_ref=package_id, category=category)}
    rows = []
    for value in values:
        if value.code in existing:
            continue
        existing.add(value.code)
        rows.append(
            {"package_ref": package_id, "category": category, "code": value.code, "label": value.label}
        )
    return tx.insert(PackageOption, rows)


def select_option_value(
    tx: StoreTransaction, package_id: int, category: str, code: str
) -> RowMapping | None:
    return tx.select_one(PackageOption, package_ref=package_id, category=category, code=code)


def select_all_option_values(
    tx: StoreTransaction, package_id: int, category: str
) -> list[RowMapping]:
    return tx.select_by_key(PackageOption, package_ref=package_id, category=category)


def insert_default_option_value(
    tx: StoreTransaction, package_id: int, category: str, option_id: int
) -> int:
    existing = tx.select_one(PackageOptionDefault, package_ref=package_id, category=category)
    if existing is not None:
        tx.update_where(PackageOptionDefault, {"option_ref": option_id}, id=existing["id"])
        return int(existing["id"])
    (default_id,) = tx.insert(
        PackageOptionDefault,
        [{"package_ref": package_id, "category": category, "option_ref": option_id}],
    )
    return default_id


def select_default_option_value(
    tx: StoreTransaction, package_id: int, category: str
) -> RowMapping | None:
    default = tx.select_one(PackageOptionDefault, package_ref=package_id, category=category)
    if default is None:
        return None
    return tx.select_one(PackageOption, id=default["option_ref"])


# =============================================================================
# Domains & atomics
# =============================================================================


def insert_domains(tx: StoreTransaction, package_id: int, domains: list[DomainRecord]) -> list[int]:
    """Insert domains with their current and older spec rows."""
    domain_ids = []
    for domain in domains:
        spec_id = None
        if domain.spec is not None:
            (spec_id,) = tx.insert(
                Spec,
                [{"package_ref": package_id, "domain_name": domain.name, "is_current": True, **asdict(domain.spec)}],
            )
        tx.insert(
            Spec,
            [
                {"package_ref": package_id, "domain_name": domain.name, "is_current": False, **asdict(old)}
                for old in domain.older
            ],
        )
        domain_ids.extend(
            tx.insert(Domain, [{"package_ref": package_id, "name": domain.name, "latest_spec_ref": spec_id}])
        )
    return domain_ids


def insert_atomics(tx: StoreTransaction, package_id: int, atomics: list[AtomicRecord]) -> int:
    return tx.insert_many(Atomic, [{"package_ref": package_id, **asdict(a)} for a in atomics])


# =============================================================================
# Enums, bitmaps, structs
# =============================================================================


def insert_enums(tx: StoreTransaction, package_id: int, enums: list[EnumRecord]) -> list[int]:
    ids = tx.insert(ZclEnum, [{"package_ref": package_id, "name": e.name, "type": e.type} for e in enums])
    for enum_id, enum in zip(ids, enums, strict=True):
        tx.insert_many(EnumItem, [{"enum_ref": enum_id, **asdict(item)} for item in enum.items])
    return ids


def insert_bitmaps(tx: StoreTransaction, package_id: int, bitmaps: list[BitmapRecord]) -> list[int]:
    ids = tx.insert(Bitmap, [{"package_ref": package_id, "name": b.name, "type": b.type} for b in bitmaps])
    for bitmap_id, bitmap in zip(ids, bitmaps, strict=True):
        tx.insert_many(BitmapField, [{"bitmap_ref": bitmap_id, **asdict(f)} for f in bitmap.fields])
    return ids


def insert_structs(tx: StoreTransaction, package_id: int, structs: list[StructRecord]) -> list[int]:
    ids = tx.insert(Struct, [{"package_ref": package_id, "name": s.name} for s in structs])
    for struct_id, struct in zip(ids, structs, strict=True):
        tx.insert_many(StructItem, [{"struct_ref": struct_id, **asdict(item)} for item in struct.items])
    return ids


# =============================================================================
# Clusters, commands, attributes
# =============================================================================


def _insert_cluster_members(
    tx: StoreTransaction, package_id: int, cluster_id: int | None, cluster: ClusterRecord
) -> None:
    for command in cluster.commands:
        fields = asdict(command)
        args = fields.pop("args")
        (command_id,) = tx.insert(
            Command, [{"package_ref": package_id, "cluster_ref": cluster_id, **fields}]
        )
        tx.insert_many(CommandArg, [{"command_ref": command_id, **arg} for arg in args])
    tx.insert_many(
        Attribute,
        [
            {"package_ref": package_id, "cluster_ref": cluster_id, **asdict(attribute)}
            for attribute in cluster.attributes
        ],
    )


def insert_clusters(tx: StoreTransaction, package_id: int, clusters: list[ClusterRecord]) -> list[int]:
    """Insert base clusters with their commands, args and attributes."""
    ids = []
    for cluster in clusters:
        (cluster_id,) = tx.insert(
            Cluster,
            [
                {
                    "package_ref": package_id,
                    "code": cluster.code,
                    "manufacturer_code": cluster.manufacturer_code,
                    "name": cluster.name,
                    "description": cluster.description,
                    "define": cluster.define,
                    "domain_name": cluster.domain_name,
                    "is_singleton": cluster.is_singleton,
                    "introduced_in": cluster.introduced_in,
                    "removed_in": cluster.removed_in,
                }
            ],
        )
        _insert_cluster_members(tx, package_id, cluster_id, cluster)
        ids.append(cluster_id)
    return ids


def insert_globals(tx: StoreTransaction, package_id: int, blocks: list[ClusterRecord]) -> None:
    """Insert commands and attributes that belong to no cluster."""
    for block in blocks:
        _insert_cluster_members(tx, package_id, None, block)


def insert_cluster_extensions(
    tx: StoreTransaction, package_id: int, extensions: list[ClusterRecord]
) -> list[int]:
    """Attach extension commands/attributes to already-inserted clusters.

    Raises:
        ReferenceLookupError: If the extended cluster is not in the package.
    """
    attached = []
    for extension in extensions:
        if extension.code is None:
            raise ReferenceLookupError.not_found("cluster extension", "<missing code>")
        cluster = select_cluster_by_code(tx, package_id, extension.code)
        if cluster is None:
            raise ReferenceLookupError.unattached_extension(extension.code, extension.manufacturer_code)
        _insert_cluster_members(tx, package_id, int(cluster["id"]), extension)
        attached.append(int(cluster["id"]))
    return attached


def insert_global_attribute_defaults(
    tx: StoreTransaction,
    package_id: int,
    defaults: list[ClusterGlobalAttributesRecord],
) -> int:
    """Insert per-cluster global attribute defaults.

    A default whose cluster is not in the package is dropped and logged.
    """
    rows = []
    for default in defaults:
        cluster = select_cluster_by_code(
            tx, package_id, default.cluster_code, default.manufacturer_code, exact_manufacturer=True
        )
        if cluster is None:
            logger.warning(
                "global_attribute_default_dropped",
                package_id=package_id,
                cluster_code=default.cluster_code,
                reason="cluster not found",
            )
            continue
        for value in default.values:
            rows.append(
                {
                    "package_ref": package_id,
                    "cluster_ref": cluster["id"],
                    "code": value.code,
                    "side": value.side,
                    "manufacturer_code": default.manufacturer_code,
                    "default_value": value.value,
                }
            )
    return tx.insert_many(GlobalAttributeDefault, rows)


def select_cluster_by_code(
    tx: StoreTransaction,
    package_id: int,
    code: int,
    manufacturer_code: int | None = None,
    exact_manufacturer: bool = False,
) -> RowMapping | None:
    """Find a cluster by code, preferring the one with the given manufacturer code."""
    rows = tx.select_by_key(Cluster, package_ref=package_id, code=code)
    for row in rows:
        if row["manufacturer_code"] == manufacturer_code:
            return row
    if exact_manufacturer or not rows:
        return None
    return rows[0]


def select_all_clusters(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(Cluster, order_by="code", package_ref=package_id)


def select_attributes_by_cluster(tx: StoreTransaction, cluster_id: int) -> list[RowMapping]:
    return tx.select_by_key(Attribute, order_by="code", cluster_ref=cluster_id)


def select_commands_by_cluster(tx: StoreTransaction, cluster_id: int) -> list[RowMapping]:
    return tx.select_by_key(Command, order_by="code", cluster_ref=cluster_id)


def select_command_args(tx: StoreTransaction, command_id: int) -> list[RowMapping]:
    return tx.select_by_key(CommandArg, order_by="ordinal", command_ref=command_id)


def select_global_attributes(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(Attribute, order_by="code", package_ref=package_id, cluster_ref=None)


def select_global_attribute_defaults(
    tx: StoreTransaction, package_id: int, cluster_id: int | None = None
) -> list[RowMapping]:
    if cluster_id is None:
        return tx.select_by_key(GlobalAttributeDefault, package_ref=package_id)
    return tx.select_by_key(GlobalAttributeDefault, package_ref=package_id, cluster_ref=cluster_id)


# =============================================================================
# Device types
# =============================================================================


def insert_device_types(
    tx: StoreTransaction, package_id: int, device_types: list[DeviceTypeRecord]
) -> list[int]:
    ids = []
    for device_type in device_types:
        (device_type_id,) = tx.insert(
            DeviceType,
            [
                {
                    "package_ref": package_id,
                    "code": device_type.code,
                    "profile_id": device_type.profile_id,
                    "domain_name": device_type.domain_name,
                    "name": device_type.name,
                    "description": device_type.description,
                }
            ],
        )
        for ordinal, include in enumerate(device_type.clusters):
            (include_id,) = tx.insert(
                DeviceTypeCluster,
                [
                    {
                        "device_type_ref": device_type_id,
                        "cluster_name": include.cluster_name,
                        "include_client": include.client,
                        "include_server": include.server,
                        "lock_client": include.client_locked,
                        "lock_server": include.server_locked,
                        "ordinal": ordinal,
                    }
                ],
            )
            tx.insert_many(
                DeviceTypeAttribute,
                [
                    {"device_type_cluster_ref": include_id, "attribute_name": name}
                    for name in include.required_attributes
                ],
            )
            tx.insert_many(
                DeviceTypeCommand,
                [
                    {"device_type_cluster_ref": include_id, "command_name": name}
                    for name in include.required_commands
                ],
            )
        ids.append(device_type_id)
    return ids


def select_device_type_by_code_and_name(
    tx: StoreTransaction, package_id: int, code: int, name: str
) -> RowMapping | None:
    return tx.select_one(DeviceType, package_ref=package_id, code=code, name=name)


def select_all_device_types(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(DeviceType, order_by="code", package_ref=package_id)


def select_device_type_clusters(tx: StoreTransaction, device_type_id: int) -> list[RowMapping]:
    return tx.select_by_key(DeviceTypeCluster, order_by="ordinal", device_type_ref=device_type_id)


# =============================================================================
# Post-load reference resolution
# =============================================================================


def _by_upper(rows: list[RowMapping], column: str) -> dict[str, RowMapping]:
    index: dict[str, RowMapping] = {}
    for row in rows:
        if row[column]:
            index.setdefault(str(row[column]).upper(), row)
    return index


def resolve_device_type_references(tx: StoreTransaction, package_id: int) -> dict[str, int]:
    """Point device type directives at clusters, attributes and commands by name.

    Unresolved names keep a null reference and are counted, not raised.
    """
    stats = {"clusters": 0, "attributes": 0, "commands": 0, "unresolved": 0}
    clusters = {row["name"]: row for row in select_all_clusters(tx, package_id)}
    global_attributes = _by_upper(select_global_attributes(tx, package_id), "define")

    for device_type in select_all_device_types(tx, package_id):
        for include in select_device_type_clusters(tx, device_type["id"]):
            cluster = clusters.get(include["cluster_name"])
            if cluster is None:
                stats["unresolved"] += 1
                logger.debug(
                    "device_type_cluster_unresolved",
                    device_type=device_type["name"],
                    cluster=include["cluster_name"],
                )
                continue
            tx.update_where(DeviceTypeCluster, {"cluster_ref": cluster["id"]}, id=include["id"])
            stats["clusters"] += 1

            attributes = _by_upper(select_attributes_by_cluster(tx, cluster["id"]), "define")
            for required in tx.select_by_key(DeviceTypeAttribute, device_type_cluster_ref=include["id"]):
                key = required["attribute_name"].upper()
                attribute = attributes.get(key) or global_attributes.get(key)
                if attribute is None:
                    stats["unresolved"] += 1
                    continue
                tx.update_where(DeviceTypeAttribute, {"attribute_ref": attribute["id"]}, id=required["id"])
                stats["attributes"] += 1

            commands = _by_upper(select_commands_by_cluster(tx, cluster["id"]), "name")
            for required in tx.select_by_key(DeviceTypeCommand, device_type_cluster_ref=include["id"]):
                command = commands.get(required["command_name"].upper())
                if command is None:
                    stats["unresolved"] += 1
                    continue
                tx.update_where(DeviceTypeCommand, {"command_ref": command["id"]}, id=required["id"])
                stats["commands"] += 1
    return stats


def resolve_global_attribute_defaults(tx: StoreTransaction, package_id: int) -> int:
    """Link global attribute defaults to the attribute rows they override.

    Global attributes (no cluster) win over same-coded attributes of the cluster;
    a global attribute declared for side ``either`` matches both sides.
    """
    resolved = 0
    global_attributes: dict[tuple[int, str | None, int | None], Any] = {}
    for row in select_global_attributes(tx, package_id):
        global_attributes.setdefault((row["code"], row["side"], row["manufacturer_code"]), row)

    for default in select_global_attribute_defaults(tx, package_id):
        if default["attribute_ref"] is not None:
            continue
        attribute = global_attributes.get(
            (default["code"], default["side"], default["manufacturer_code"])
        ) or global_attributes.get((default["code"], SIDE_EITHER, default["manufacturer_code"]))
        if attribute is None:
            attribute = tx.select_one(
                Attribute,
                cluster_ref=default["cluster_ref"],
                code=default["code"],
                side=default["side"],
            )
        if attribute is None:
            continue
        tx.update_where(GlobalAttributeDefault, {"attribute_ref": attribute["id"]}, id=default["id"])
        resolved += 1
    return resolved


# =============================================================================
# Lookups used by generation helpers
# =============================================================================


def select_all_domains(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(Domain, order_by="name", package_ref=package_id)


def select_all_atomics(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(Atomic, order_by="atomic_identifier", package_ref=package_id)


def select_atomic_by_name(tx: StoreTransaction, package_id: int, name: str) -> RowMapping | None:
    for row in tx.select_by_key(Atomic, package_ref=package_id):
        if row["name"].lower() == name.lower():
            return row
    return None


def select_all_enums(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(ZclEnum, order_by="name", package_ref=package_id)


def select_enum_by_name(tx: StoreTransaction, package_id: int, name: str) -> RowMapping | None:
    return tx.select_one(ZclEnum, package_ref=package_id, name=name)


def select_enum_items(tx: StoreTransaction, enum_id: int) -> list[RowMapping]:
    return tx.select_by_key(EnumItem, order_by="ordinal", enum_ref=enum_id)


def select_all_bitmaps(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(Bitmap, order_by="name", package_ref=package_id)


def select_bitmap_by_name(tx: StoreTransaction, package_id: int, name: str) -> RowMapping | None:
    return tx.select_one(Bitmap, package_ref=package_id, name=name)


def select_bitmap_fields(tx: StoreTransaction, bitmap_id: int) -> list[RowMapping]:
    return tx.select_by_key(BitmapField, order_by="ordinal", bitmap_ref=bitmap_id)


def select_all_structs(tx: StoreTransaction, package_id: int) -> list[RowMapping]:
    return tx.select_by_key(Struct, order_by="name", package_ref=package_id)


def select_struct_by_name(tx: StoreTransaction, package_id: int, name: str) -> RowMapping | None:
    return tx.select_one(Struct, package_ref=package_id, name=name)


def select_struct_items(tx: StoreTransaction, struct_id: int) -> list[RowMapping]:
    return tx.select_by_key(StructItem, order_by="ordinal", struct_ref=struct_id)
