"""
Terminal summary of resolved systems.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from ..core.models import SystemRecord
from ..systems.classes import SystemClassDecoder


@dataclass
class SystemsSummary:
    system_count: int
    subsystem_count: int
    element_count: int


def systems_summary(systems: Sequence[SystemRecord]) -> SystemsSummary:
    return SystemsSummary(
        system_count=len(systems),
        subsystem_count=sum(len(s.subsystems) for s in systems),
        element_count=sum(s.element_count for s in systems),
    )


def sort_by_name(systems: Sequence[SystemRecord]) -> List[SystemRecord]:
    """Case-insensitive alphabetical order."""
    return sorted(systems, key=lambda s: s.name.casefold())


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def build_systems_table(systems: Sequence[SystemRecord]) -> Table:
    decoder = SystemClassDecoder()
    summary = systems_summary(systems)

    table = Table(
        title=f"{_plural(summary.system_count, 'System')}, "
              f"{_plural(summary.subsystem_count, 'subsystem')}"
    )
    table.add_column("System", style="cyan")
    table.add_column("Classes", style="white")
    table.add_column("Elements", style="green", justify="right")
    table.add_column("Subsystems", style="yellow")
    table.add_column("System ID", style="dim")

    for system in sort_by_name(systems):
        subsystems = ", ".join(
            sub.name for sub in sorted(system.subsystems, key=lambda s: s.name.casefold())
        )
        table.add_row(
            system.name,
            ", ".join(decoder.decode(system.class_bitmask)) or "-",
            str(system.element_count),
            subsystems or "-",
            system.system_id,
        )
    return table


def render_systems_table(systems: Sequence[SystemRecord], console: Optional[Console] = None) -> None:
    """Print the systems table, or a hint when the facility has none."""
    console = console or Console()
    if not systems:
        console.print("[yellow]No systems found in the default model.[/yellow]")
        return
    console.print(build_systems_table(systems))
