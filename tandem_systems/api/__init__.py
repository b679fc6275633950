"""Tandem REST API access."""

from .client import (
    TandemClient,
    FacilityScanSource,
    default_model_urn,
    is_default_model,
    element_rows,
)

__all__ = [
    "TandemClient",
    "FacilityScanSource",
    "default_model_urn",
    "is_default_model",
    "element_rows",
]
