"""
Facility systems: registry, cross-model membership and finalization.

Usage:
    from tandem_systems.systems import resolve_facility_systems

    systems = resolve_facility_systems(source)
    for system in systems:
        print(system.name, system.element_count)
"""

from .classes import SYSTEM_CLASS_NAMES, SystemClassDecoder, coerce_bitmask
from .registry import SystemDefinition, SystemRegistry, build_system_registry
from .membership import (
    MembershipState,
    ModelMembers,
    ModelScan,
    apply_model_scan,
    match_model_rows,
    referenced_system_ids,
)
from .finalize import finalize
from .resolver import ElementSource, FacilitySystemsResolver, resolve_facility_systems

__all__ = [
    "SYSTEM_CLASS_NAMES",
    "SystemClassDecoder",
    "coerce_bitmask",
    "SystemDefinition",
    "SystemRegistry",
    "build_system_registry",
    "MembershipState",
    "ModelMembers",
    "ModelScan",
    "apply_model_scan",
    "match_model_rows",
    "referenced_system_ids",
    "finalize",
    "ElementSource",
    "FacilitySystemsResolver",
    "resolve_facility_systems",
]
