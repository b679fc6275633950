"""
Qualified column names used by Tandem element records.

A qualified column is ``<family>:<code>``; a ``!`` in front of the code marks
a user override of the standard column with the same code (``n:!n``
overrides ``n:n``).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


OVERRIDE_MARKER = "!"


class ColumnFamily:
    """Column family identifiers."""

    STANDARD = "n"
    REFS = "l"
    XREFS = "x"
    SYSTEMS = "m"
    USER_PROPERTIES = "z"


class QC:
    """Qualified columns read by this package."""

    KEY = "k"

    ELEMENT_FLAGS = "n:a"

    NAME = "n:n"
    OVERRIDE_NAME = "n:!n"

    CLASSIFICATION = "n:v"
    OVERRIDE_CLASSIFICATION = "n:!v"

    CATEGORY_ID = "n:c"
    OVERRIDE_CATEGORY_ID = "n:!c"

    SYSTEM_CLASS = "n:b"
    OVERRIDE_SYSTEM_CLASS = "n:!b"

    PARENT = "l:p"


class ElementFlags:
    """Values of the ``n:a`` column that this package distinguishes."""

    SIMPLE_ELEMENT = 0x00000000
    FAMILY_TYPE = 0x01000000
    LEVEL = 0x01000001
    STREAM = 0x01000003
    SYSTEM = 0x01000004
    DELETED = 0xFFFFFFFE


@dataclass(frozen=True)
class QualifiedColumn:
    """Structured form of a qualified column key."""

    family: str
    code: str
    is_override: bool = False

    @property
    def standard(self) -> str:
        """The non-override column name for this code."""
        return f"{self.family}:{self.code}"

    @property
    def override(self) -> str:
        """The override column name for this code."""
        return f"{self.family}:{OVERRIDE_MARKER}{self.code}"

    def __str__(self) -> str:
        return self.override if self.is_override else self.standard


@lru_cache(maxsize=65536)
def parse_qualified_column(raw: str) -> Optional[QualifiedColumn]:
    """
    Parse ``family:code`` / ``family:!code`` into a QualifiedColumn.

    Returns None for keys that are not qualified columns (``k``, empty
    family or empty code). Memoized per distinct raw key.
    """
    family, sep, code = raw.partition(":")
    if not sep or not family:
        return None

    is_override = code.startswith(OVERRIDE_MARKER)
    if is_override:
        code = code[len(OVERRIDE_MARKER):]
    if not code:
        return None

    return QualifiedColumn(family=family, code=code, is_override=is_override)


def override_of(standard_column: str) -> str:
    """``n:n`` -> ``n:!n``."""
    parsed = parse_qualified_column(standard_column)
    if parsed is None:
        raise ValueError(f"Not a qualified column: {standard_column!r}")
    return parsed.override
