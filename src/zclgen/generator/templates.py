"""Generation template sets.

A template set is described by a JSON manifest::

    {
      "name": "C templates",
      "version": "1.0",
      "helpers": ["zclgen.generator.helpers.c", "my_helpers.py"],
      "partials": [{"name": "header", "path": "partials/header.jinja"}],
      "templates": [{"name": "clusters", "path": "clusters.jinja", "output": "clusters.h"}]
    }

Paths are relative to the manifest. The manifest is recorded as a
``gen-templates-json`` package with one ``gen-single-template`` child per
template, both idempotent by checksum.
"""

from __future__ import annotations

import asyncio
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from zclgen.core.errors import ReferenceLookupError, TemplateError
from zclgen.generator.engine import Fingerprint, TemplateEngine
from zclgen.generator.scope import GenerationScope
from zclgen.store import queries
from zclgen.store.models import PackageType

if TYPE_CHECKING:
    from zclgen.store.database import Database

log = structlog.get_logger(__name__)


class TemplateEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    path: str
    output: str


class PartialEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    path: str


class TemplateManifest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = "templates"
    version: str | None = None
    templates: list[TemplateEntry] = Field(default_factory=list)
    partials: list[PartialEntry] = Field(default_factory=list)
    helpers: list[str] = Field(default_factory=list)

    @field_validator("version", mode="before")
    @classmethod
    def version_as_string(cls, v: Any) -> Any:
        if isinstance(v, (int, float)):
            return str(v)
        return v


@dataclass(frozen=True)
class LoadedTemplate:
    name: str
    path: Path
    output: str
    source: str
    crc: str
    package_id: int


@dataclass
class TemplateSet:
    name: str
    version: str | None
    base_dir: Path
    templates: list[LoadedTemplate] = field(default_factory=list)
    partials: dict[str, str] = field(default_factory=dict)
    helpers: list[str] = field(default_factory=list)


@dataclass
class TemplateContext:
    """A loaded template set and the package recording it."""

    content_hash: str
    package_id: int
    template_set: TemplateSet


def _read_text(path: Path, manifest_path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateError.manifest_error(str(manifest_path), f"cannot read {path}: {e}") from e


def _crc(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def load_templates(db: Database, manifest_path: Path) -> TemplateContext:
    """Read a template manifest and record it (and each template) as packages.

    Raises:
        TemplateError: If the manifest or a listed file cannot be read.
    """
    manifest_path = manifest_path.resolve()
    try:
        data = manifest_path.read_bytes()
        manifest = TemplateManifest.model_validate(json.loads(data))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise TemplateError.manifest_error(str(manifest_path), str(e)) from e
    except ValidationError as e:
        raise TemplateError.manifest_error(str(manifest_path), str(e)) from e

    base_dir = manifest_path.parent
    content_hash = _crc(data)
    template_set = TemplateSet(
        name=manifest.name,
        version=manifest.version,
        base_dir=base_dir,
        helpers=list(manifest.helpers),
    )
    for partial in manifest.partials:
        template_set.partials[partial.name] = _read_text(base_dir / partial.path, manifest_path)

    with db.transaction() as tx:
        package_id, created = queries.register_package(
            tx,
            str(manifest_path),
            content_hash,
            PackageType.GEN_TEMPLATES_JSON,
            version=manifest.version,
        )
        for entry in manifest.templates:
            path = (base_dir / entry.path).resolve()
            source = _read_text(path, manifest_path)
            crc = _crc(source.encode("utf-8"))
            template_id, _ = queries.register_package(
                tx, str(path), crc, PackageType.GEN_SINGLE_TEMPLATE, parent_id=package_id
            )
            template_set.templates.append(
                LoadedTemplate(
                    name=entry.name,
                    path=path,
                    output=entry.output,
                    source=source,
                    crc=crc,
                    package_id=template_id,
                )
            )

    log.info(
        "templates_loaded",
        path=str(manifest_path),
        package_id=package_id,
        created=created,
        count=len(template_set.templates),
    )
    return TemplateContext(content_hash=content_hash, package_id=package_id, template_set=template_set)


async def generate(
    db: Database,
    template_context: TemplateContext,
    zcl_package_id: int,
    engine: TemplateEngine,
) -> dict[str, str]:
    """Render every template of the set against a metadata package.

    Templates render concurrently; each output is cached per
    (template key, package crc, api version).

    Returns:
        Output name to rendered text.

    Raises:
        ReferenceLookupError: If the metadata package does not exist.
        TemplateError: On compile or render failure.
    """
    template_set = template_context.template_set
    for source in template_set.helpers:
        engine.load_helpers(source, template_set.base_dir)
    for name, source in template_set.partials.items():
        engine.register_partial(name, source)

    scope = GenerationScope(db, zcl_package_id)
    package = scope.read(queries.get_package_by_id, zcl_package_id)
    if package is None:
        raise ReferenceLookupError.not_found("package", zcl_package_id)

    async def render_one(template: LoadedTemplate) -> tuple[str, str]:
        compiled = engine.compile(template.source, template.name)
        fingerprint: Fingerprint = (compiled.key, package["crc"], engine.api_version)
        cached = engine.outputs.get(fingerprint)
        if cached is not None:
            log.debug("template_output_cached", name=template.name)
            return template.output, cached
        context = engine.context(
            scope,
            template_name=template.name,
            template_package_id=template.package_id,
        )
        text = await engine.render(compiled, context)
        engine.outputs.put(fingerprint, text)
        return template.output, text

    results = await asyncio.gather(*(render_one(t) for t in template_set.templates))
    log.info(
        "generation_complete",
        templates=template_context.package_id,
        package_id=zcl_package_id,
        outputs=len(results),
    )
    return dict(results)
