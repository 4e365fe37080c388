"""Ingestion orchestrator.

Sequences manifest resolution, package registration, concurrent parsing and
three-phase insertion:

- Phase 1: domains (and their spec rows)
- Phase 2: atomics, bitmaps, clusters, enums, structs, device types, globals
- Phase 3: cluster extensions, global attribute defaults

Phase N+1 starts only after every phase-N task of every file has finished.
Cluster extensions look up clusters inserted in phase 2, so an extension can
never attach to a cluster that is not yet in the package.

The whole manifest load runs inside one store transaction. Any error rolls
it back; no partial package is ever committed.
"""

from __future__ import annotations

import asyncio
import hashlib
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from zclgen.config.constants import (
    BOOL_OPTION_FALSE,
    BOOL_OPTION_TRUE,
    CONFIGURATOR_ROOT_TAG,
    MANUFACTURER_CODES_CATEGORY,
)
from zclgen.config.models import CustomDeviceConfig, LoaderConfig
from zclgen.core.errors import (
    ParseError,
    ReferenceLookupError,
    SchemaValidationError,
    ZclGenError,
)
from zclgen.loader.manifest import Manifest, parse_manifest
from zclgen.loader.preparers import PreparedFile, prepare_configurator, prepare_manufacturer_codes
from zclgen.parsers import parse_xml
from zclgen.store import queries
from zclgen.store.models import PackageType
from zclgen.store.records import DeviceTypeRecord, OptionValueRecord

if TYPE_CHECKING:
    from zclgen.store.database import Database, StoreTransaction

log = structlog.get_logger(__name__)


def checksum(data: bytes) -> str:
    """Content checksum identifying a package (sha256 hex digest)."""
    return hashlib.sha256(data).hexdigest()


# =============================================================================
# Results
# =============================================================================


@dataclass
class PackageContext:
    """Outcome of a manifest load."""

    package_id: int
    path: Path
    crc: str
    version: str | None = None
    already_loaded: bool = False
    files: list[Path] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


Validator = Callable[[bytes], ValidationResult]


@dataclass
class StandaloneLoadResult:
    """Outcome of a standalone load. ``error`` is set only on failure."""

    succeeded: bool
    package_id: int | None = None
    error: Exception | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.succeeded:
            return {"succeeded": True, "package_id": self.package_id}
        if isinstance(self.error, ZclGenError):
            return {"succeeded": False, "error": self.error.to_dict()}
        return {"succeeded": False, "error": str(self.error)}


def default_validator(data: bytes) -> ValidationResult:
    """Accept well-formed XML whose root element is ``configurator``."""
    try:
        root = parse_xml(data, "<standalone>")
    except ParseError as e:
        return ValidationResult(is_valid=False, errors=[e.message])
    if root.tag != CONFIGURATOR_ROOT_TAG:
        return ValidationResult(
            is_valid=False,
            errors=[f"root element is <{root.tag}>, expected <{CONFIGURATOR_ROOT_TAG}>"],
        )
    return ValidationResult(is_valid=True)


# =============================================================================
# Phases
# =============================================================================


class LoadPhase(IntEnum):
    DOMAINS = 1
    TYPES = 2
    EXTENSIONS = 3


PhaseTask = Callable[[], Awaitable[Any]]


class PhasePlan:
    """Phase-tagged task lists joined by barriers."""

    def __init__(self) -> None:
        self._tasks: dict[LoadPhase, list[PhaseTask]] = {phase: [] for phase in LoadPhase}

    def add(self, phase: LoadPhase, task: PhaseTask) -> None:
        self._tasks[phase].append(task)

    def count(self, phase: LoadPhase) -> int:
        return len(self._tasks[phase])

    async def run(self) -> None:
        """Run each phase to completion before the next.

        Every task of a phase finishes even when a sibling fails; the first
        failure is raised at the barrier.
        """
        for phase in LoadPhase:
            tasks = self._tasks[phase]
            if not tasks:
                continue
            results = await asyncio.gather(*(task() for task in tasks), return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
            log.debug("phase_complete", phase=phase.name, tasks=len(tasks))


def _task(fn: Callable[..., Any], *args: Any) -> PhaseTask:
    async def run() -> Any:
        return fn(*args)

    return run


def _logged(event: str, path: Path, count: int) -> None:
    if count:
        log.debug(event, path=str(path), count=count)


def plan_file(
    plan: PhasePlan,
    tx: StoreTransaction,
    package_id: int,
    path: Path,
    prepared: PreparedFile,
) -> None:
    """Bucket one prepared file's inserts into phases."""

    def insert(event: str, fn: Callable[..., Any], records: list[Any]) -> Callable[[], Any]:
        def run() -> Any:
            result = fn(tx, package_id, records)
            _logged(event, path, len(records))
            return result

        return run

    if prepared.domains:
        plan.add(LoadPhase.DOMAINS, _task(insert("domains_loaded", queries.insert_domains, prepared.domains)))

    phase_two = [
        ("atomics_loaded", queries.insert_atomics, prepared.atomics),
        ("bitmaps_loaded", queries.insert_bitmaps, prepared.bitmaps),
        ("clusters_loaded", queries.insert_clusters, prepared.clusters),
        ("enums_loaded", queries.insert_enums, prepared.enums),
        ("structs_loaded", queries.insert_structs, prepared.structs),
        ("device_types_loaded", queries.insert_device_types, prepared.device_types),
        ("globals_loaded", queries.insert_globals, prepared.globals),
    ]
    for event, fn, records in phase_two:
        if records:
            plan.add(LoadPhase.TYPES, _task(insert(event, fn, records)))

    if prepared.cluster_extensions:
        plan.add(
            LoadPhase.EXTENSIONS,
            _task(
                insert(
                    "cluster_extensions_loaded",
                    queries.insert_cluster_extensions,
                    prepared.cluster_extensions,
                )
            ),
        )
    if prepared.global_attribute_defaults:
        plan.add(
            LoadPhase.EXTENSIONS,
            _task(
                insert(
                    "global_attribute_defaults_loaded",
                    queries.insert_global_attribute_defaults,
                    prepared.global_attribute_defaults,
                )
            ),
        )


def resolve_references(tx: StoreTransaction, package_id: int) -> None:
    """Post-load pass linking by-name and by-code references of the package."""
    stats = queries.resolve_device_type_references(tx, package_id)
    defaults = queries.resolve_global_attribute_defaults(tx, package_id)
    if stats["unresolved"]:
        log.warning("device_type_references_unresolved", package_id=package_id, count=stats["unresolved"])
    log.debug("references_resolved", package_id=package_id, global_defaults=defaults, **stats)


# =============================================================================
# Staging
# =============================================================================


def _parse_and_prepare(path: Path, data: bytes) -> PreparedFile:
    """Worker-thread half of staging: parse and prepare one XML file."""
    try:
        return prepare_configurator(parse_xml(data, str(path)))
    except ParseError as e:
        if e.path == str(path):
            raise
        raise ParseError.malformed(str(path), e.message) from e
    except ValueError as e:
        raise ParseError.malformed(str(path), e) from e


async def _read(path: Path) -> bytes:
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        raise ParseError.malformed(str(path), e) from e


async def _stage_files(
    tx: StoreTransaction,
    package_id: int,
    files: list[Path],
    max_concurrent: int,
) -> list[tuple[Path, PreparedFile]]:
    """Read, register and prepare every file concurrently.

    All files finish before failures are reported together.
    """
    sem = asyncio.Semaphore(max_concurrent)

    async def stage(path: Path) -> tuple[Path, PreparedFile]:
        async with sem:
            data = await _read(path)
            queries.register_package(tx, str(path), checksum(data), PackageType.ZCL_XML, package_id)
            prepared = await asyncio.to_thread(_parse_and_prepare, path, data)
            return path, prepared

    results = await asyncio.gather(*(stage(p) for p in files), return_exceptions=True)
    failures: list[ParseError] = []
    staged: list[tuple[Path, PreparedFile]] = []
    for path, result in zip(files, results, strict=True):
        if isinstance(result, ParseError):
            log.error("file_load_failed", path=str(path), error=result.message)
            failures.append(result)
        elif isinstance(result, BaseException):
            raise result
        else:
            staged.append(result)
    if failures:
        raise ParseError.aggregate(failures)
    return staged


# =============================================================================
# Manifest extras
# =============================================================================


async def _load_manufacturer_codes(tx: StoreTransaction, package_id: int, path: Path) -> None:
    data = await _read(path)
    root = await asyncio.to_thread(parse_xml, data, str(path))
    values = prepare_manufacturer_codes(root)
    queries.insert_option_values(tx, package_id, MANUFACTURER_CODES_CATEGORY, values)
    log.debug("manufacturer_codes_loaded", path=str(path), count=len(values))


def ensure_custom_device_type(
    tx: StoreTransaction, package_id: int, device: CustomDeviceConfig
) -> int:
    """Insert the custom device type unless the package already has it."""
    existing = queries.select_device_type_by_code_and_name(tx, package_id, device.code, device.name)
    if existing is not None:
        return int(existing["id"])
    (device_type_id,) = queries.insert_device_types(
        tx,
        package_id,
        [
            DeviceTypeRecord(
                code=device.code,
                name=device.name,
                profile_id=device.profile_id,
                domain_name=device.domain,
                description=device.description,
            )
        ],
    )
    return device_type_id


def insert_options(tx: StoreTransaction, package_id: int, manifest: Manifest) -> None:
    """Text options get lowercase codes; bool options get codes 1 and 0."""
    if manifest.options is None:
        return
    for category, values in manifest.options.text.items():
        queries.insert_option_values(
            tx, package_id, category, [OptionValueRecord(code=v.lower(), label=v) for v in values]
        )
    for category in manifest.options.flags:
        queries.insert_option_values(
            tx,
            package_id,
            category,
            [
                OptionValueRecord(code=BOOL_OPTION_TRUE, label="True"),
                OptionValueRecord(code=BOOL_OPTION_FALSE, label="False"),
            ],
        )


def insert_defaults(tx: StoreTransaction, package_id: int, manifest: Manifest) -> None:
    """Point each declared default at an existing option row.

    A text default matches the option code exactly; an integer default that
    does not match is retried as ``0x%x``.

    Raises:
        ReferenceLookupError: If a default matches no option.
    """
    if manifest.defaults is None:
        return
    for category, value in manifest.defaults.text.items():
        option = queries.select_option_value(tx, package_id, category, str(value))
        if option is None and isinstance(value, int):
            option = queries.select_option_value(tx, package_id, category, f"0x{value:x}")
        if option is None:
            raise ReferenceLookupError.unmatched_default(category, value)
        queries.insert_default_option_value(tx, package_id, category, int(option["id"]))
    for category, flag in manifest.defaults.flags.items():
        code = BOOL_OPTION_TRUE if flag else BOOL_OPTION_FALSE
        option = queries.select_option_value(tx, package_id, category, code)
        if option is None:
            raise ReferenceLookupError.unmatched_default(category, flag)
        queries.insert_default_option_value(tx, package_id, category, int(option["id"]))


async def _record_auxiliary(
    tx: StoreTransaction, package_id: int, path: Path, package_type: PackageType
) -> None:
    data = await _read(path)
    queries.register_package(tx, str(path), checksum(data), package_type, package_id)


# =============================================================================
# Entry points
# =============================================================================


async def load_metadata(
    db: Database,
    manifest_path: Path,
    config: LoaderConfig | None = None,
) -> PackageContext:
    """Load a manifest and every file it names as one package.

    Re-loading an unchanged manifest is a no-op that returns the existing
    package with ``already_loaded=True``.

    Raises:
        ParseError: A manifest-declared file could not be parsed.
        ReferenceLookupError: A default or cluster extension did not resolve.
        StoreError: The backend failed; nothing was committed.
    """
    config = config or LoaderConfig()
    manifest_path = manifest_path.resolve()
    data = await _read(manifest_path)
    crc = checksum(data)
    manifest = parse_manifest(data, manifest_path)
    package_type = (
        PackageType.ZCL_JSON if manifest_path.suffix.lower() == ".json" else PackageType.ZCL_PROPERTIES
    )

    log.info("metadata_load_started", path=str(manifest_path))
    with db.transaction() as tx:
        package_id, created = queries.register_package(tx, str(manifest_path), crc, package_type)
        context = PackageContext(
            package_id=package_id, path=manifest_path, crc=crc, version=manifest.version
        )
        if not created:
            context.already_loaded = True
            log.info("metadata_already_loaded", path=str(manifest_path), package_id=package_id)
            return context
        if manifest.version is not None:
            queries.update_package_version(tx, package_id, manifest.version)

        for name in manifest.xml_file:
            located = manifest.locate(name)
            if located is None:
                log.warning("xml_file_not_found", name=name, roots=[str(r) for r in manifest.roots()])
                context.missing_files.append(name)
            elif located not in context.files:
                context.files.append(located)

        staged = await _stage_files(tx, package_id, context.files, config.max_concurrent_files)
        plan = PhasePlan()
        for path, prepared in staged:
            plan_file(plan, tx, package_id, path, prepared)
        await plan.run()
        resolve_references(tx, package_id)

        manufacturers = manifest.locate(manifest.manufacturers_xml)
        if manufacturers is not None:
            await _load_manufacturer_codes(tx, package_id, manufacturers)
        if manifest.support_custom_zcl_device:
            ensure_custom_device_type(tx, package_id, config.custom_device)
        insert_options(tx, package_id, manifest)
        insert_defaults(tx, package_id, manifest)

        schema = manifest.locate(manifest.zcl_schema)
        validation = manifest.locate(manifest.zcl_validation)
        if schema is not None and validation is not None:
            await _record_auxiliary(tx, package_id, schema, PackageType.ZCL_SCHEMA)
            await _record_auxiliary(tx, package_id, validation, PackageType.ZCL_VALIDATION)

    log.info(
        "metadata_loaded",
        path=str(manifest_path),
        package_id=package_id,
        files=len(context.files),
        missing=len(context.missing_files),
    )
    return context


async def load_standalone_file(
    db: Database,
    path: Path,
    validator: Validator | None = None,
) -> StandaloneLoadResult:
    """Load one XML file as its own package. Never raises.

    The file runs through the same phases and post-load pass as a manifest
    load, inside its own transaction.
    """
    path = path.resolve()
    validator = validator or default_validator
    try:
        with db.transaction() as tx:
            data = await _read(path)
            package_id, created = queries.register_package(
                tx, str(path), checksum(data), PackageType.ZCL_XML_STANDALONE
            )
            if not created:
                log.info("standalone_already_loaded", path=str(path), package_id=package_id)
                return StandaloneLoadResult(succeeded=True, package_id=package_id)

            result = validator(data)
            if not result.is_valid:
                raise SchemaValidationError.failed(str(path), result.errors)

            prepared = await asyncio.to_thread(_parse_and_prepare, path, data)
            plan = PhasePlan()
            plan_file(plan, tx, package_id, path, prepared)
            await plan.run()
            resolve_references(tx, package_id)
    except Exception as e:
        log.warning("standalone_load_failed", path=str(path), error=str(e))
        return StandaloneLoadResult(succeeded=False, error=e)

    log.info("standalone_loaded", path=str(path), package_id=package_id)
    return StandaloneLoadResult(succeeded=True, package_id=package_id)
