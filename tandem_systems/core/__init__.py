"""Core models and utilities."""

from .config import Settings, settings
from .columns import QC, ColumnFamily, ElementFlags, QualifiedColumn, parse_qualified_column
from .attributes import (
    ElementRecord,
    Present,
    Absent,
    lookup,
    resolve,
    resolve_strict,
    element_key,
    element_flags,
    element_parent,
    element_name,
    element_classification,
    element_category,
    element_system_class,
    is_system_element,
    is_deleted,
)
from .models import ModelDescriptor, SubsystemRecord, ModelElements, SystemRecord
from .errors import TandemError, TandemAPIError, ScanError

__all__ = [
    "Settings",
    "settings",
    "QC",
    "ColumnFamily",
    "ElementFlags",
    "QualifiedColumn",
    "parse_qualified_column",
    "ElementRecord",
    "Present",
    "Absent",
    "lookup",
    "resolve",
    "resolve_strict",
    "element_key",
    "element_flags",
    "element_parent",
    "element_name",
    "element_classification",
    "element_category",
    "element_system_class",
    "is_system_element",
    "is_deleted",
    "ModelDescriptor",
    "SubsystemRecord",
    "ModelElements",
    "SystemRecord",
    "TandemError",
    "TandemAPIError",
    "ScanError",
]
