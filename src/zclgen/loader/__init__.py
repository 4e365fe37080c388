"""Metadata ingestion - manifests and XML files into the store.

Public API:
- load_metadata: full manifest load into one package
- load_standalone_file: single XML file, soft-failing
- read_manifest / locate_relative_file: manifest resolution
"""

from zclgen.loader.manifest import Manifest, locate_relative_file, read_manifest
from zclgen.loader.orchestrator import (
    LoadPhase,
    PackageContext,
    StandaloneLoadResult,
    ValidationResult,
    default_validator,
    load_metadata,
    load_standalone_file,
    resolve_references,
)

__all__ = [
    "LoadPhase",
    "Manifest",
    "PackageContext",
    "StandaloneLoadResult",
    "ValidationResult",
    "default_validator",
    "load_metadata",
    "load_standalone_file",
    "locate_relative_file",
    "read_manifest",
    "resolve_references",
]
