"""Conversion of registry + membership state into finalized system records."""

from __future__ import annotations

from typing import List

from ..core.models import ModelElements, SystemRecord
from .membership import MembershipState
from .registry import SystemRegistry


def finalize(registry: SystemRegistry, state: MembershipState) -> List[SystemRecord]:
    """
    Build one SystemRecord per registered system, in registry order.

    ``element_count`` is the size of the system's global (cross-model)
    member set; ``elements_by_model`` keeps first-encountered model order.
    Pure: the same inputs always give equal output.
    """
    records: List[SystemRecord] = []
    for system in registry.systems:
        records.append(SystemRecord(
            name=system.name,
            key=system.key,
            system_id=system.system_id,
            class_bitmask=system.class_bitmask,
            element_count=state.element_count(system.system_id),
            subsystems=list(system.subsystems),
            elements_by_model=[
                ModelElements(
                    model_urn=entry.model_id,
                    model_name=entry.model_name,
                    keys=list(entry.keys),
                )
                for entry in state.by_model.get(system.system_id, ())
            ],
        ))
    return records
