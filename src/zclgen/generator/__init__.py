"""Template-driven generation engine.

Public API:
- TemplateEngine: compile/render with helper registry and caches
- load_templates: record a template-set manifest as packages
- generate: render a template set against a metadata package
"""

from zclgen.generator.engine import CompiledTemplate, TemplateEngine
from zclgen.generator.registry import HelperRegistry, scoped
from zclgen.generator.scope import GenerationScope
from zclgen.generator.templates import TemplateContext, TemplateSet, generate, load_templates

__all__ = [
    "CompiledTemplate",
    "GenerationScope",
    "HelperRegistry",
    "TemplateContext",
    "TemplateEngine",
    "TemplateSet",
    "generate",
    "load_templates",
    "scoped",
]
