"""Reporting helpers."""

from .systems_table import (
    SystemsSummary,
    build_systems_table,
    render_systems_table,
    sort_by_name,
    systems_summary,
)

__all__ = [
    "SystemsSummary",
    "build_systems_table",
    "render_systems_table",
    "sort_by_name",
    "systems_summary",
]
