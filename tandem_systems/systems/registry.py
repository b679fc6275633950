"""
System registry built from the facility's default model.

System elements without a parent become top-level systems; those with a
parent become subsystems of the top-level system whose raw key matches the
parent reference. A subsystem whose parent is not a top-level system is
dropped without error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from ..core.attributes import (
    ElementRecord,
    element_key,
    element_name,
    element_parent,
    element_system_class,
    is_system_element,
)
from ..core.keys import system_id_from_key
from ..core.models import SubsystemRecord
from .classes import coerce_bitmask

logger = logging.getLogger(__name__)

UNNAMED_SYSTEM = "Unnamed System"

SystemIdFn = Callable[[str], str]


@dataclass(frozen=True)
class SystemDefinition:
    """A top-level system as read from the default model."""

    name: str
    key: str
    system_id: str
    class_bitmask: int
    subsystems: Tuple[SubsystemRecord, ...] = ()


@dataclass(frozen=True)
class SystemRegistry:
    """Top-level systems in scan order, indexed by system id."""

    systems: Tuple[SystemDefinition, ...] = ()
    by_id: Mapping[str, SystemDefinition] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.systems)

    def get(self, system_id: str) -> Optional[SystemDefinition]:
        return self.by_id.get(system_id)

    @property
    def subsystem_count(self) -> int:
        return sum(len(s.subsystems) for s in self.systems)


def build_system_registry(
    rows: Iterable[ElementRecord],
    system_id_for: SystemIdFn = system_id_from_key,
) -> SystemRegistry:
    """
    Build the registry from a scan of the default model.

    Args:
        rows: Element records of the default model (any flags; non-system
            rows are ignored)
        system_id_for: Key -> system id transform

    Returns:
        SystemRegistry
    """
    top_level: List[ElementRecord] = []
    nested: List[ElementRecord] = []

    for row in rows:
        if not is_system_element(row) or not element_key(row):
            continue
        if element_parent(row):
            nested.append(row)
        else:
            top_level.append(row)

    subsystems_by_parent: Dict[str, List[SubsystemRecord]] = {}
    for row in nested:
        subsystem = SubsystemRecord(
            name=element_name(row) or UNNAMED_SYSTEM,
            key=element_key(row),
            parent=element_parent(row),
            class_bitmask=coerce_bitmask(element_system_class(row)),
        )
        subsystems_by_parent.setdefault(subsystem.parent, []).append(subsystem)

    systems: List[SystemDefinition] = []
    by_id: Dict[str, SystemDefinition] = {}
    for row in top_level:
        key = element_key(row)
        system = SystemDefinition(
            name=element_name(row) or UNNAMED_SYSTEM,
            key=key,
            system_id=system_id_for(key),
            class_bitmask=coerce_bitmask(element_system_class(row)),
            subsystems=tuple(subsystems_by_parent.pop(key, ())),
        )
        if system.system_id in by_id:
            logger.warning(
                f"System id collision for {key}; keeping {by_id[system.system_id].key}",
                extra={"system_id": system.system_id},
            )
            continue
        systems.append(system)
        by_id[system.system_id] = system

    orphaned = sum(len(subs) for subs in subsystems_by_parent.values())
    if orphaned:
        logger.debug(f"Dropped {orphaned} subsystems without a top-level parent")

    logger.info(
        f"Found {len(systems)} systems with "
        f"{sum(len(s.subsystems) for s in systems)} subsystems"
    )
    return SystemRegistry(systems=tuple(systems), by_id=by_id)
