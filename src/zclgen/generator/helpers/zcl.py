"""Type classification and data queries over the loaded package.

Classification is total: any name yields one of enum, bitmap, struct or
unknown. ``unknown`` is an answer, not an error.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from zclgen.generator.registry import scoped
from zclgen.store import queries
from zclgen.store.models import ZclType

if TYPE_CHECKING:
    from sqlalchemy import RowMapping

    from zclgen.generator.scope import GenerationScope
    from zclgen.store.database import StoreTransaction


def _classify(tx: StoreTransaction, package_id: int, name: str | None) -> ZclType:
    if not name:
        return ZclType.UNKNOWN
    if queries.select_enum_by_name(tx, package_id, name) is not None:
        return ZclType.ENUM
    if queries.select_bitmap_by_name(tx, package_id, name) is not None:
        return ZclType.BITMAP
    if queries.select_struct_by_name(tx, package_id, name) is not None:
        return ZclType.STRUCT
    return ZclType.UNKNOWN


async def classify_type(scope: GenerationScope, name: str | None) -> ZclType:
    return await scope.query(_classify, name)


@scoped
async def zcl_type(scope: GenerationScope, name: str | None) -> str:
    """``enum``, ``bitmap``, ``struct`` or ``unknown``."""
    return (await classify_type(scope, name)).value


async def _is(scope: GenerationScope, name: str | None, kind: ZclType) -> str:
    found = await classify_type(scope, name)
    return kind.value if found is kind else ZclType.UNKNOWN.value


@scoped
async def is_enum(scope: GenerationScope, name: str | None) -> str:
    return await _is(scope, name, ZclType.ENUM)


@scoped
async def is_bitmap(scope: GenerationScope, name: str | None) -> str:
    return await _is(scope, name, ZclType.BITMAP)


@scoped
async def is_struct(scope: GenerationScope, name: str | None) -> str:
    return await _is(scope, name, ZclType.STRUCT)


# =============================================================================
# Data queries
# =============================================================================


def _rows(rows: list[RowMapping]) -> list[dict[str, Any]]:
    return [dict(row) for row in rows]


def _clusters(tx: StoreTransaction, package_id: int) -> list[dict[str, Any]]:
    clusters = _rows(queries.select_all_clusters(tx, package_id))
    for cluster in clusters:
        cluster["attributes"] = _rows(queries.select_attributes_by_cluster(tx, cluster["id"]))
        commands = _rows(queries.select_commands_by_cluster(tx, cluster["id"]))
        for command in commands:
            command["args"] = _rows(queries.select_command_args(tx, command["id"]))
        cluster["commands"] = commands
    return clusters


def _with_children(
    parents: list[RowMapping],
    children: Any,
    key: str,
    tx: StoreTransaction,
) -> list[dict[str, Any]]:
    out = _rows(parents)
    for parent in out:
        parent[key] = _rows(children(tx, parent["id"]))
    return out


@scoped
async def zcl_clusters(scope: GenerationScope) -> list[dict[str, Any]]:
    """Clusters ordered by code, each with attributes and commands (with args)."""
    return await scope.query(_clusters)


@scoped
async def zcl_global_attributes(scope: GenerationScope) -> list[dict[str, Any]]:
    return _rows(await scope.query(queries.select_global_attributes))


@scoped
async def zcl_enums(scope: GenerationScope) -> list[dict[str, Any]]:
    return await scope.query(
        lambda tx, pkg: _with_children(
            queries.select_all_enums(tx, pkg), queries.select_enum_items, "items", tx
        )
    )


@scoped
async def zcl_bitmaps(scope: GenerationScope) -> list[dict[str, Any]]:
    return await scope.query(
        lambda tx, pkg: _with_children(
            queries.select_all_bitmaps(tx, pkg), queries.select_bitmap_fields, "fields", tx
        )
    )


@scoped
async def zcl_structs(scope: GenerationScope) -> list[dict[str, Any]]:
    return await scope.query(
        lambda tx, pkg: _with_children(
            queries.select_all_structs(tx, pkg), queries.select_struct_items, "items", tx
        )
    )


@scoped
async def zcl_device_types(scope: GenerationScope) -> list[dict[str, Any]]:
    return await scope.query(
        lambda tx, pkg: _with_children(
            queries.select_all_device_types(tx, pkg),
            queries.select_device_type_clusters,
            "clusters",
            tx,
        )
    )


@scoped
async def zcl_domains(scope: GenerationScope) -> list[dict[str, Any]]:
    """Domains ordered by name."""
    return _rows(await scope.query(queries.select_all_domains))


@scoped
async def zcl_atomics(scope: GenerationScope) -> list[dict[str, Any]]:
    return _rows(await scope.query(queries.select_all_atomics))


__all__ = [
    "is_bitmap",
    "is_enum",
    "is_struct",
    "zcl_atomics",
    "zcl_bitmaps",
    "zcl_clusters",
    "zcl_device_types",
    "zcl_domains",
    "zcl_enums",
    "zcl_global_attributes",
    "zcl_structs",
    "zcl_type",
]
