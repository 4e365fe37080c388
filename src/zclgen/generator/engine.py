"""Template engine: compile, cache and render Jinja templates.

Compiled templates are keyed by ``sha256(api_version + source)``, so an
unchanged template is never compiled twice by one engine. With a cache
directory configured, compiled bytecode is also persisted and reused by
later processes.

Rendering runs in Jinja's async mode. Helpers may be coroutines; each one is
awaited where it appears, so the rendered text follows source order.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jinja2
import structlog
from jinja2 import Environment, FileSystemBytecodeCache, FunctionLoader, StrictUndefined

from zclgen.config.models import GeneratorConfig
from zclgen.core.errors import TemplateError, ZclGenError
from zclgen.generator.registry import HelperRegistry

if TYPE_CHECKING:
    from zclgen.generator.scope import GenerationScope

log = structlog.get_logger(__name__)


def template_key(source: str, api_version: int) -> str:
    return hashlib.sha256(f"{api_version}\n{source}".encode()).hexdigest()


@dataclass(frozen=True)
class CompiledTemplate:
    key: str
    name: str
    template: jinja2.Template


class CompiledTemplateCache:
    """Append-only map of content key to compiled template."""

    def __init__(self) -> None:
        self._entries: dict[str, CompiledTemplate] = {}

    def get(self, key: str) -> CompiledTemplate | None:
        return self._entries.get(key)

    def put(self, compiled: CompiledTemplate) -> CompiledTemplate:
        """Store unless present; the first writer for a key wins."""
        return self._entries.setdefault(compiled.key, compiled)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


Fingerprint = tuple[str, str, int]
"""(template key, metadata package crc, api version)"""


class OutputCache:
    """Rendered text per fingerprint."""

    def __init__(self) -> None:
        self._entries: dict[Fingerprint, str] = {}

    def get(self, fingerprint: Fingerprint) -> str | None:
        return self._entries.get(fingerprint)

    def put(self, fingerprint: Fingerprint, text: str) -> None:
        self._entries[fingerprint] = text

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class TemplateEngine:
    """Owns the Jinja environment, helpers, partials and both caches.

    Usage::

        engine = TemplateEngine()
        compiled = engine.compile("{{ 'onOff' | as_snake_case }}")
        text = await engine.render(compiled, engine.context(scope))
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        helpers: HelperRegistry | None = None,
    ) -> None:
        self.config = config or GeneratorConfig()
        self.api_version = self.config.api_version
        self.helpers = helpers or HelperRegistry.with_builtins()
        self.partials: dict[str, str] = {}
        self.compiled = CompiledTemplateCache()
        self.outputs = OutputCache()

        self._bytecode_cache: FileSystemBytecodeCache | None = None
        if self.config.cache_dir:
            cache_dir = Path(self.config.cache_dir).expanduser()
            cache_dir.mkdir(parents=True, exist_ok=True)
            self._bytecode_cache = FileSystemBytecodeCache(str(cache_dir), "zclgen-%s.cache")

        self.environment = Environment(
            enable_async=True,
            loader=FunctionLoader(self._load_partial),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            autoescape=False,
        )
        self.helpers.install(self.environment)

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def _load_partial(self, name: str) -> str | None:
        return self.partials.get(name)

    def register_partial(self, name: str, source: str) -> None:
        """Make ``source`` available to ``{% include name %}``."""
        if self.partials.get(name) == source:
            return
        self.partials[name] = source
        if self.environment.cache is not None:
            self.environment.cache.clear()

    def load_helpers(self, source: str, base_dir: Path | None = None) -> list[str]:
        """Register helpers from a module path or ``.py`` file and reinstall them."""
        names = self.helpers.load(source, base_dir)
        self.helpers.install(self.environment)
        return names

    # -------------------------------------------------------------------------
    # Compile / render
    # -------------------------------------------------------------------------

    def _compile_code(self, source: str, name: str, key: str) -> Any:
        if self._bytecode_cache is None:
            return self.environment.compile(source, name)
        bucket = self._bytecode_cache.get_bucket(self.environment, key, None, source)
        if bucket.code is None:
            bucket.code = self.environment.compile(source, name)
            self._bytecode_cache.set_bucket(bucket)
        else:
            log.debug("template_bytecode_hit", name=name)
        return bucket.code

    def compile(self, source: str, name: str = "<template>") -> CompiledTemplate:
        """Compile ``source``, reusing the cached result for identical content.

        Raises:
            TemplateError: On a template syntax error.
        """
        key = template_key(source, self.api_version)
        cached = self.compiled.get(key)
        if cached is not None:
            return cached
        try:
            code = self._compile_code(source, name, key)
        except jinja2.TemplateSyntaxError as e:
            raise TemplateError.compile_error(name, e.message or str(e), e.lineno) from e
        template = self.environment.template_class.from_code(
            self.environment, code, self.environment.make_globals(None), None
        )
        log.debug("template_compiled", name=name, key=key[:12])
        return self.compiled.put(CompiledTemplate(key=key, name=name, template=template))

    def context(self, scope: GenerationScope, **extra: Any) -> dict[str, Any]:
        """Render context bound to a metadata package."""
        return {"global": scope, "package_id": scope.package_id, **extra}

    async def render(self, compiled: CompiledTemplate, context: dict[str, Any]) -> str:
        """Render a compiled template.

        Raises:
            TemplateError: If rendering fails for a reason other than a
                helper lookup miss. Other zclgen errors keep their type.
        """
        try:
            return await compiled.template.render_async(context)
        except ZclGenError:
            raise
        except Exception as e:
            raise TemplateError.render_error(compiled.name, f"{type(e).__name__}: {e}") from e

    def invalidate(self) -> None:
        """Drop compiled templates and rendered outputs."""
        self.compiled.clear()
        self.outputs.clear()
        if self.environment.cache is not None:
            self.environment.cache.clear()
        if self._bytecode_cache is not None:
            self._bytecode_cache.clear()
        log.debug("template_caches_invalidated")
