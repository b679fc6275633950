"""
Per-model schema cache.

Maps a model URN to its attribute list plus an id -> attribute lookup.
Cleared when switching facilities.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

Attribute = Dict[str, Any]
SchemaLoader = Callable[[str], Dict[str, Any]]


@dataclass
class ModelSchema:
    """Attributes of one model."""

    attributes: List[Attribute] = field(default_factory=list)
    lookup: Dict[str, Attribute] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Optional[Dict[str, Any]]) -> "ModelSchema":
        attributes = list((payload or {}).get("attributes") or [])
        return cls(
            attributes=attributes,
            lookup={attr["id"]: attr for attr in attributes if attr.get("id")},
        )


class SchemaCache:
    """
    Lazily loaded schemas keyed by model URN.

    Args:
        loader: model URN -> schema payload (e.g. ``TandemClient.get_schema``)
    """

    def __init__(self, loader: SchemaLoader):
        self._loader = loader
        self._schemas: Dict[str, ModelSchema] = {}

    def load(self, model_urn: str) -> ModelSchema:
        schema = self._schemas.get(model_urn)
        if schema is None:
            schema = ModelSchema.from_payload(self._loader(model_urn))
            self._schemas[model_urn] = schema
            logger.debug(f"Cached {len(schema.attributes)} attributes", extra={"model_urn": model_urn})
        return schema

    def get(self, model_urn: str) -> Optional[ModelSchema]:
        """Cached schema only; never triggers a load."""
        return self._schemas.get(model_urn)

    def property_display_name(self, model_urn: str, qualified_column: str) -> str:
        """``Category.Name`` for a qualified column, or the column itself if unknown."""
        attr = self.load(model_urn).lookup.get(qualified_column)
        if attr and attr.get("category") and attr.get("name"):
            return f"{attr['category']}.{attr['name']}"
        return qualified_column

    def clear(self) -> None:
        self._schemas.clear()

    def items(self) -> Iterator:
        return iter(self._schemas.items())

    def __contains__(self, model_urn: str) -> bool:
        return model_urn in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
