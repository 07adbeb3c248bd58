"""Core METIS functionality: IR value types, errors, configuration manifest."""

from . import ir
from .errors import (
    CyclicStructureError,
    ErrorContext,
    ManifestError,
    MetisError,
    StructureDocumentError,
    StructureError,
    TransformationError,
    TransformationNotReadyError,
)
from .manifest import LayoutConfig, LoggingConfig, ProjectManifest, find_manifest, load_manifest

__all__ = [
    "ir",
    "MetisError",
    "StructureError",
    "CyclicStructureError",
    "TransformationError",
    "TransformationNotReadyError",
    "StructureDocumentError",
    "ManifestError",
    "ErrorContext",
    "LayoutConfig",
    "LoggingConfig",
    "ProjectManifest",
    "find_manifest",
    "load_manifest",
]
