"""Helper registry.

Helpers are plain functions or coroutines. A helper marked with ``@scoped``
takes the GenerationScope as its first argument; when called from a template
the scope is read from the render context's ``global`` entry, so templates
write ``{{ enum_data_type("Status") }}``.

A helper that raises ReferenceLookupError renders ``!!<message>`` in place
instead of failing the template.
"""

from __future__ import annotations

import functools
import importlib
import importlib.util
import inspect
from collections.abc import Callable
from pathlib import Path
from types import ModuleType
from typing import Any

import structlog
from jinja2 import Environment, pass_context
from jinja2.runtime import Context

from zclgen.config.constants import INVALID_SENTINEL_PREFIX
from zclgen.core.errors import ReferenceLookupError, TemplateError

log = structlog.get_logger(__name__)

_SCOPED_ATTR = "__zclgen_scoped__"


def scoped(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a helper as taking the GenerationScope first."""
    setattr(fn, _SCOPED_ATTR, True)
    return fn


def sentinel(error: ReferenceLookupError) -> str:
    return f"{INVALID_SENTINEL_PREFIX}{error.message}"


def sentinel_on_miss(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Turn a ReferenceLookupError raised by ``fn`` into its sentinel string."""
    if inspect.iscoroutinefunction(fn):

        @functools.wraps(fn)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await fn(*args, **kwargs)
            except ReferenceLookupError as e:
                return sentinel(e)

        return async_wrapper

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ReferenceLookupError as e:
            return sentinel(e)

    return wrapper


def _bind_scope(fn: Callable[..., Any]) -> Callable[..., Any]:
    if inspect.iscoroutinefunction(fn):

        @pass_context
        async def async_bound(context: Context, *args: Any, **kwargs: Any) -> Any:
            return await fn(context["global"], *args, **kwargs)

        return async_bound

    @pass_context
    def bound(context: Context, *args: Any, **kwargs: Any) -> Any:
        return fn(context["global"], *args, **kwargs)

    return bound


def _public_callables(module: ModuleType) -> dict[str, Callable[..., Any]]:
    names = getattr(module, "__all__", None)
    if names is None:
        names = [
            name
            for name, value in vars(module).items()
            if not name.startswith("_")
            and inspect.isfunction(value)
            and value.__module__ == module.__name__
        ]
    return {name: getattr(module, name) for name in names if callable(getattr(module, name))}


class HelperRegistry:
    """Named helpers installed into a Jinja environment."""

    def __init__(self) -> None:
        self._helpers: dict[str, Callable[..., Any]] = {}
        self._filters: set[str] = set()

    @classmethod
    def with_builtins(cls) -> HelperRegistry:
        from zclgen.generator.helpers import BUILTIN_MODULES, FILTER_MODULES

        registry = cls()
        for module in BUILTIN_MODULES:
            registry.register_module(module, as_filters=module in FILTER_MODULES)
        return registry

    def __contains__(self, name: str) -> bool:
        return name in self._helpers

    def __len__(self) -> int:
        return len(self._helpers)

    def names(self) -> list[str]:
        return sorted(self._helpers)

    def register(self, name: str, fn: Callable[..., Any], as_filter: bool = False) -> None:
        """Register a helper; pure helpers may also be exposed as filters."""
        if name in self._helpers and self._helpers[name] is not fn:
            log.debug("helper_overridden", name=name)
        self._helpers[name] = fn
        if as_filter and not getattr(fn, _SCOPED_ATTR, False):
            self._filters.add(name)
        else:
            self._filters.discard(name)

    def register_module(self, module: ModuleType, as_filters: bool = False) -> list[str]:
        helpers = _public_callables(module)
        for name, fn in helpers.items():
            self.register(name, fn, as_filter=as_filters)
        return list(helpers)

    def load(self, source: str, base_dir: Path | None = None) -> list[str]:
        """Register helpers from a dotted module path or a ``.py`` file.

        Raises:
            TemplateError: If the module cannot be imported.
        """
        try:
            if source.endswith(".py"):
                path = Path(source)
                if not path.is_absolute() and base_dir is not None:
                    path = base_dir / path
                spec = importlib.util.spec_from_file_location(f"zclgen_helpers_{path.stem}", path)
                if spec is None or spec.loader is None:
                    raise TemplateError.helper_error(source, "not a loadable python file")
                module = importlib.util.module_from_spec(spec)
                spec.loader.exec_module(module)
            else:
                module = importlib.import_module(source)
        except TemplateError:
            raise
        except (ImportError, OSError, SyntaxError) as e:
            raise TemplateError.helper_error(source, str(e)) from e
        names = self.register_module(module)
        log.debug("helpers_loaded", source=source, count=len(names))
        return names

    def install(self, environment: Environment) -> None:
        """Expose every helper as a global (and filters where marked)."""
        for name, fn in self._helpers.items():
            wrapped = sentinel_on_miss(fn)
            if getattr(fn, _SCOPED_ATTR, False):
                wrapped = _bind_scope(wrapped)
            environment.globals[name] = wrapped
            if name in self._filters:
                environment.filters[name] = wrapped
