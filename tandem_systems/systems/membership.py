"""
Cross-model system membership.

Elements reference systems through columns of the systems family
(``m:<systemId>`` or ``m:!<systemId>``). A reference alone is not enough:
the element's system class must share at least one class name with the
referenced system's class, so stale references never produce members.

Membership is accumulated by folding ``apply_model_scan`` over the model
scans of a facility. Each call returns a new ``MembershipState`` and leaves
its input untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Set, Tuple

from ..core.attributes import (
    ElementRecord,
    element_key,
    element_system_class,
    is_deleted,
    is_system_element,
)
from ..core.columns import ColumnFamily, parse_qualified_column
from ..core.models import ModelDescriptor
from .classes import SystemClassDecoder, coerce_bitmask
from .registry import SystemRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelScan:
    """Rows of one model, as returned by a scan."""

    model: ModelDescriptor
    rows: Tuple[ElementRecord, ...] = ()


@dataclass(frozen=True)
class ModelMembers:
    """Members of one system contributed by one model (keys in first-seen order)."""

    model_id: str
    model_name: str
    keys: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MembershipState:
    """
    Accumulated membership for all systems.

    Attributes:
        members: system id -> deduplicated element keys across all models
        by_model: system id -> per-model breakdown, in first-encountered order
        scanned_models: model ids folded into this state, in fold order
    """

    members: Mapping[str, frozenset] = field(default_factory=dict)
    by_model: Mapping[str, Tuple[ModelMembers, ...]] = field(default_factory=dict)
    scanned_models: Tuple[str, ...] = ()

    @classmethod
    def empty(cls) -> "MembershipState":
        return cls()

    def element_count(self, system_id: str) -> int:
        return len(self.members.get(system_id, ()))


def referenced_system_ids(record: ElementRecord) -> List[str]:
    """System ids referenced by a record, de-duplicated, in column order."""
    seen: List[str] = []
    for column in record:
        parsed = parse_qualified_column(column)
        if parsed is None or parsed.family != ColumnFamily.SYSTEMS:
            continue
        if parsed.code not in seen:
            seen.append(parsed.code)
    return seen


def match_model_rows(
    rows: Iterable[ElementRecord],
    registry: SystemRegistry,
    decoder: SystemClassDecoder,
) -> Dict[str, List[str]]:
    """
    Match the rows of one model against the registry.

    Returns:
        system id -> matching element keys (unique, first-seen order)
    """
    matches: Dict[str, List[str]] = {}
    seen: Dict[str, Set[str]] = {}

    for row in rows:
        if is_deleted(row) or is_system_element(row):
            continue

        key = element_key(row)
        if not key:
            continue

        element_class = coerce_bitmask(element_system_class(row))
        if not decoder.class_set(element_class):
            continue

        for system_id in referenced_system_ids(row):
            system = registry.get(system_id)
            if system is None:
                continue
            if not decoder.shares_class(element_class, system.class_bitmask):
                continue

            keys = seen.setdefault(system_id, set())
            if key not in keys:
                keys.add(key)
                matches.setdefault(system_id, []).append(key)

    return matches


def apply_model_scan(
    state: MembershipState,
    registry: SystemRegistry,
    scan: ModelScan,
    decoder: SystemClassDecoder,
) -> MembershipState:
    """
    Fold one model's scan into the membership state.

    Args:
        state: Current state (not modified)
        registry: Systems of the facility
        scan: Rows of one model
        decoder: Shared decoder for the whole resolution pass

    Returns:
        New MembershipState
    """
    matches = match_model_rows(scan.rows, registry, decoder)
    model_id = scan.model.model_id

    members = dict(state.members)
    by_model = dict(state.by_model)

    for system_id, keys in matches.items():
        members[system_id] = members.get(system_id, frozenset()) | frozenset(keys)

        breakdown = list(by_model.get(system_id, ()))
        for i, entry in enumerate(breakdown):
            if entry.model_id == model_id:
                merged = entry.keys + tuple(k for k in keys if k not in entry.keys)
                breakdown[i] = ModelMembers(model_id, entry.model_name, merged)
                break
        else:
            breakdown.append(ModelMembers(model_id, scan.model.display_name, tuple(keys)))
        by_model[system_id] = tuple(breakdown)

    logger.debug(
        f"Model {scan.model.display_name}: {sum(len(k) for k in matches.values())} "
        f"memberships across {len(matches)} systems",
        extra={"model_urn": model_id},
    )

    return MembershipState(
        members=members,
        by_model=by_model,
        scanned_models=state.scanned_models + (model_id,),
    )
