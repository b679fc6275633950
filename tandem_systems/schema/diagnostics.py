"""
Schema diagnostics for user-defined properties.

Two problems are reported per model:
- duplicate properties: several ``z:`` attributes sharing category and name
- dotted properties: a ``.`` in category or name, which breaks
  ``Category.Name`` addressing
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Tuple

from ..core.columns import ColumnFamily
from .cache import Attribute, SchemaCache

USER_PREFIX = f"{ColumnFamily.USER_PROPERTIES}:"


@dataclass
class ModelDiagnostics:
    model_urn: str
    duplicates: List[List[Attribute]] = field(default_factory=list)
    dotted: List[Attribute] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return len(self.duplicates) + len(self.dotted)


def user_properties(attributes: Sequence[Attribute]) -> List[Attribute]:
    return [attr for attr in attributes if str(attr.get("id", "")).startswith(USER_PREFIX)]


def find_duplicate_properties(attributes: Sequence[Attribute]) -> List[List[Attribute]]:
    """Groups of user properties that share category and name (groups of 2+)."""
    groups: Dict[Tuple[str, str], List[Attribute]] = {}
    for attr in user_properties(attributes):
        groups.setdefault((attr.get("category"), attr.get("name")), []).append(attr)
    return [group for group in groups.values() if len(group) > 1]


def find_dotted_properties(attributes: Sequence[Attribute]) -> List[Attribute]:
    """User properties with a dot in category and/or name, tagged with ``issueType``."""
    dotted = []
    for attr in user_properties(attributes):
        in_category = "." in (attr.get("category") or "")
        in_name = "." in (attr.get("name") or "")
        if in_category or in_name:
            issue = "both" if in_category and in_name else ("category" if in_category else "name")
            dotted.append({**attr, "issueType": issue})
    return dotted


def run_diagnostics(cache: SchemaCache) -> List[ModelDiagnostics]:
    """Diagnose every cached schema; only models with issues are returned."""
    results = []
    for model_urn, schema in cache.items():
        report = ModelDiagnostics(
            model_urn=model_urn,
            duplicates=find_duplicate_properties(schema.attributes),
            dotted=find_dotted_properties(schema.attributes),
        )
        if report.issue_count:
            results.append(report)
    return results
