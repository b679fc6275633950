"""
Attribute resolution over sparse element records.

Element records map qualified columns to lists of raw values. Many logical
attributes exist as a standard column plus a user override column; the
override wins when its first value is truthy.

Two flavours are offered:

- ``resolve``: the truthy-gated convention. A falsy override (``0``, ``""``)
  falls back to the standard value. Name, classification, category and
  system class all collapse this way.
- ``resolve_strict``: override wins whenever it is present at all, keeping
  falsy values distinguishable from absence via ``Present`` / ``Absent``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Mapping, Optional, TypeVar, Union

from .columns import QC, ElementFlags

ElementRecord = Mapping[str, List[Any]]

T = TypeVar("T")


@dataclass(frozen=True)
class Present(Generic[T]):
    """A value that exists in the record, even if falsy."""

    value: T

    def __bool__(self) -> bool:
        return True

    def get(self, default: Any = None) -> T:
        return self.value


class _Absent:
    """Marker for a missing attribute."""

    _instance: Optional["_Absent"] = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Absent"

    def get(self, default: Any = None) -> Any:
        return default


Absent = _Absent()

Lookup = Union[Present[Any], _Absent]


def lookup(record: ElementRecord, column: str) -> Lookup:
    """First value of a column (a bare scalar counts as its only value), or Absent when missing or empty."""
    values = record.get(column)
    if values is None:
        return Absent
    if not isinstance(values, list):
        return Present(values)
    if not values:
        return Absent
    return Present(values[0])


def resolve(record: ElementRecord, standard_column: str, override_column: str) -> Any:
    """
    Effective value of an overridable attribute.

    Returns the override's first value if it is truthy, otherwise the
    standard column's first value, otherwise None.
    """
    override = lookup(record, override_column)
    if override and override.value:
        return override.value
    return lookup(record, standard_column).get()


def resolve_strict(record: ElementRecord, standard_column: str, override_column: str) -> Lookup:
    """Like ``resolve`` but a present override always wins, even when falsy."""
    override = lookup(record, override_column)
    if override:
        return override
    return lookup(record, standard_column)


# Typed accessors

def element_key(record: ElementRecord) -> Optional[str]:
    # "k" is the one scalar column in a scan row
    key = record.get(QC.KEY)
    if isinstance(key, list):
        key = key[0] if key else None
    return key or None


def element_flags(record: ElementRecord) -> Optional[int]:
    return lookup(record, QC.ELEMENT_FLAGS).get()


def element_parent(record: ElementRecord) -> Optional[str]:
    """Raw key of the parent element, or None for top-level elements."""
    return lookup(record, QC.PARENT).get() or None


def element_name(record: ElementRecord) -> Optional[str]:
    return resolve(record, QC.NAME, QC.OVERRIDE_NAME)


def element_classification(record: ElementRecord) -> Optional[str]:
    return resolve(record, QC.CLASSIFICATION, QC.OVERRIDE_CLASSIFICATION)


def element_category(record: ElementRecord) -> Optional[int]:
    return resolve(record, QC.CATEGORY_ID, QC.OVERRIDE_CATEGORY_ID)


def element_system_class(record: ElementRecord) -> Any:
    """Raw system-class bitmask value (not yet coerced to int)."""
    return resolve(record, QC.SYSTEM_CLASS, QC.OVERRIDE_SYSTEM_CLASS)


def has_flags(record: ElementRecord, flags: int) -> bool:
    return element_flags(record) == flags


def is_system_element(record: ElementRecord) -> bool:
    return has_flags(record, ElementFlags.SYSTEM)


def is_deleted(record: ElementRecord) -> bool:
    return has_flags(record, ElementFlags.DELETED)
