"""Property search across facility models."""

from .property_search import (
    SearchOptions,
    SearchResults,
    ModelSearchResult,
    build_matcher,
    element_matches,
    resolve_qualified_column,
    search_facility,
    results_to_elements_by_model,
)

__all__ = [
    "SearchOptions",
    "SearchResults",
    "ModelSearchResult",
    "build_matcher",
    "element_matches",
    "resolve_qualified_column",
    "search_facility",
    "results_to_elements_by_model",
]
