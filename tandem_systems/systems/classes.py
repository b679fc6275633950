"""
System class bitmask decoding.

Bit i of a system-class value means the element carries SYSTEM_CLASS_NAMES[i].
An element can carry several classes at once; an element belongs to a system
only when both share at least one class.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


SYSTEM_CLASS_NAMES: Tuple[str, ...] = (
    "Supply Air",
    "Return Air",
    "Exhaust Air",
    "Hydronic Supply",
    "Hydronic Return",
    "Domestic Hot Water",
    "Domestic Cold Water",
    "Sanitary",
    "Power",
    "Vent",
    "Controls",
    "Fire Protection Wet",
    "Fire Protection Dry",
    "Fire Protection Pre-Action",
    "Other Air",
    "Other",
    "Fire Protection Other",
    "Communication",
    "Data Circuit",
    "Telephone",
    "Security",
    "Fire Alarm",
    "Nurse Call",
    "Switch Topology",
    "Cable Tray Conduit",
    "Storm",
)


def coerce_bitmask(raw: Any) -> int:
    """
    Convert a raw column value to a class bitmask.

    Accepts ints, integral floats and numeric strings. Anything else
    (None, negative numbers, garbage) means "no class" and yields 0.
    """
    if raw is None or isinstance(raw, bool):
        return 0
    if isinstance(raw, int):
        return raw if raw > 0 else 0
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() and raw > 0 else 0
    if isinstance(raw, str):
        try:
            value = int(raw.strip(), 0)
        except ValueError:
            return 0
        return value if value > 0 else 0
    return 0


class SystemClassDecoder:
    """
    Memoizing bitmask -> class names decoder.

    The same handful of bitmask values recurs across thousands of elements,
    so each distinct value is decoded once per decoder instance. Use one
    decoder per resolution pass.
    """

    def __init__(self, names: Sequence[str] = SYSTEM_CLASS_NAMES):
        self.names: Tuple[str, ...] = tuple(names)
        self._cache: Dict[int, Tuple[Tuple[str, ...], FrozenSet[str]]] = {}
        self.hits = 0
        self.misses = 0

    def _entry(self, bitmask: Optional[int]) -> Tuple[Tuple[str, ...], FrozenSet[str]]:
        value = bitmask or 0
        entry = self._cache.get(value)
        if entry is not None:
            self.hits += 1
            return entry

        self.misses += 1
        decoded = tuple(
            name for i, name in enumerate(self.names)
            if value & (1 << i)
        )
        entry = (decoded, frozenset(decoded))
        self._cache[value] = entry
        return entry

    def decode(self, bitmask: Optional[int]) -> List[str]:
        """Class names whose bit is set, in table order."""
        return list(self._entry(bitmask)[0])

    def class_set(self, bitmask: Optional[int]) -> FrozenSet[str]:
        return self._entry(bitmask)[1]

    def shares_class(self, a: Optional[int], b: Optional[int]) -> bool:
        """True when the two bitmasks decode to overlapping class names."""
        return not self.class_set(a).isdisjoint(self.class_set(b))

    @property
    def cache_size(self) -> int:
        return len(self._cache)
