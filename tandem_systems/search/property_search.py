"""
Cross-model property search.

Finds elements whose property (addressed as ``Category.Name`` or as a raw
qualified column such as ``z:LQ``) matches a boolean, numeric or string
criterion, model by model.
"""

from __future__ import annotations

import logging
import math
import operator
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal, Optional, Sequence

import requests

from ..core.attributes import ElementRecord, element_key
from ..core.errors import TandemError
from ..core.models import ModelDescriptor, ModelElements
from ..schema.cache import Attribute, SchemaCache

logger = logging.getLogger(__name__)

Matcher = Callable[[Any], bool]

# Leading number of a property value, as in "12 kW" or "-1.5e3 Pa"
NUMBER_PREFIX = re.compile(r"\s*([-+]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?))")

NUMERIC_OPERATORS: Dict[str, Callable[[float, float], bool]] = {
    "=": operator.eq,
    "!=": operator.ne,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}


@dataclass
class SearchOptions:
    """What to match a property value against."""

    value: Any
    data_type: Literal["string", "numeric", "boolean"] = "string"
    operator: str = "="
    match_type: Literal["partial", "exact", "regex"] = "partial"
    case_sensitive: bool = False

    def describe(self) -> str:
        if self.data_type == "boolean":
            return "true" if self.value else "false"
        if self.data_type == "numeric":
            return f"{self.operator} {self.value}"
        return str(self.value)


@dataclass
class ModelSearchResult:
    model_urn: str
    model_name: str
    qualified_column: str
    elements: List[ElementRecord] = field(default_factory=list)


@dataclass
class SearchResults:
    results: List[ModelSearchResult] = field(default_factory=list)
    models_with_property: List[str] = field(default_factory=list)
    models_without_property: List[str] = field(default_factory=list)

    @property
    def total_matches(self) -> int:
        return sum(len(r.elements) for r in self.results)


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        match = NUMBER_PREFIX.match(str(value))
        if not match:
            return None
        number = float(match.group(1))
    return None if math.isnan(number) else number


def _wildcard_to_regex(pattern: str) -> str:
    # Already-regex patterns are left alone
    if pattern.startswith("^") or "[" in pattern or "(" in pattern:
        return pattern
    return pattern.replace("*", ".*").replace("?", ".")


def build_matcher(options: SearchOptions) -> Matcher:
    """Predicate over a single raw property value."""
    if options.data_type == "boolean":
        target = bool(options.value)

        def match_boolean(value: Any) -> bool:
            if isinstance(value, bool):
                return value == target
            text = str(value).lower()
            return text in (("true", "1") if target else ("false", "0"))

        return match_boolean

    if options.data_type == "numeric":
        compare = NUMERIC_OPERATORS.get(options.operator, operator.eq)
        target_number = float(options.value)

        def match_numeric(value: Any) -> bool:
            number = _as_number(value)
            return number is not None and compare(number, target_number)

        return match_numeric

    needle = str(options.value)
    flags = 0 if options.case_sensitive else re.IGNORECASE

    def fold(text: str) -> str:
        return text if options.case_sensitive else text.lower()

    if options.match_type == "regex":
        try:
            regex = re.compile(_wildcard_to_regex(needle), flags)
        except re.error as e:
            logger.warning(f"Invalid regex {needle!r} ({e}); using partial match")
        else:
            return lambda value: regex.search(str(value)) is not None

    if options.match_type == "exact":
        return lambda value: fold(str(value)) == fold(needle)

    return lambda value: fold(needle) in fold(str(value))


def element_matches(record: ElementRecord, qualified_column: str, matcher: Matcher) -> bool:
    values = record.get(qualified_column)
    if not values:
        return False
    if isinstance(values, list):
        return any(matcher(v) for v in values)
    return matcher(values)


def resolve_qualified_column(attributes: Sequence[Attribute], property_name: str) -> Optional[str]:
    """Map ``Category.Name`` (case-insensitive) to a qualified column; raw ``fam:code`` passes through."""
    wanted = property_name.lower()
    for attr in attributes:
        display = f"{attr.get('category') or 'Unknown'}.{attr.get('name') or attr.get('id')}"
        if display.lower() == wanted:
            return attr.get("id")
    if ":" in property_name:
        return property_name
    return None


def search_facility(
    client,
    models: Sequence[ModelDescriptor],
    cache: SchemaCache,
    property_name: str,
    options: SearchOptions,
) -> SearchResults:
    """
    Search every model of a facility for elements matching a property criterion.

    Models whose schema cannot be loaded, or that lack the property, are
    listed in ``models_without_property``. A model whose scan fails
    contributes no results.
    """
    matcher = build_matcher(options)
    found = SearchResults()

    for model in models:
        try:
            schema = cache.load(model.model_id)
        except (TandemError, requests.RequestException) as e:
            logger.warning(f"No schema for {model.display_name}: {e}", extra={"model_urn": model.model_id})
            found.models_without_property.append(model.display_name)
            continue

        column = resolve_qualified_column(schema.attributes, property_name)
        if not column:
            found.models_without_property.append(model.display_name)
            continue
        found.models_with_property.append(model.display_name)

        try:
            rows = client.scan(model.model_id, qualified_columns=[column])
        except (TandemError, requests.RequestException) as e:
            logger.error(f"Search scan failed: {e}", extra={"model_urn": model.model_id})
            continue

        elements = [row for row in rows if element_matches(row, column, matcher)]
        if elements:
            found.results.append(ModelSearchResult(
                model_urn=model.model_id,
                model_name=model.display_name,
                qualified_column=column,
                elements=elements,
            ))

    logger.info(
        f"Search {property_name} {options.describe()}: {found.total_matches} matches "
        f"in {len(found.results)} models"
    )
    return found


def results_to_elements_by_model(results: Sequence[ModelSearchResult]) -> List[ModelElements]:
    return [
        ModelElements(
            model_urn=r.model_urn,
            model_name=r.model_name,
            keys=[element_key(el) for el in r.elements],
        )
        for r in results
    ]
