"""Model schema caching and diagnostics."""

from .cache import ModelSchema, SchemaCache
from .diagnostics import (
    ModelDiagnostics,
    find_duplicate_properties,
    find_dotted_properties,
    run_diagnostics,
)

__all__ = [
    "ModelSchema",
    "SchemaCache",
    "ModelDiagnostics",
    "find_duplicate_properties",
    "find_dotted_properties",
    "run_diagnostics",
]
