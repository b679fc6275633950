"""
Facility systems resolution.

Runs the full pass for one facility:

1. Scan the default model and build the system registry
2. Scan every model and fold its rows into the membership state
3. Finalize into SystemRecords

A model that fails to scan contributes nothing; it never aborts the pass.
If the default model cannot be scanned, the result is an empty list.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterator, List, Optional, Protocol, Sequence, Tuple

from ..core.attributes import ElementRecord
from ..core.errors import ScanError
from ..core.keys import system_id_from_key
from ..core.models import ModelDescriptor, SystemRecord
from ..utils.logging_config import bind
from .classes import SystemClassDecoder
from .finalize import finalize
from .membership import MembershipState, ModelScan, apply_model_scan
from .registry import SystemIdFn, SystemRegistry, build_system_registry

logger = logging.getLogger(__name__)


class ElementSource(Protocol):
    """Where element records come from."""

    def scan_primary_model(self) -> List[ElementRecord]:
        ...

    def scan_model(self, model_id: str) -> List[ElementRecord]:
        ...

    def list_models(self) -> List[ModelDescriptor]:
        ...


class FacilitySystemsResolver:
    """
    Resolve the systems of one facility.

    Args:
        source: Element source bound to the facility
        max_workers: Concurrent model scans; folding always happens on the
            calling thread in model-list order
        system_id_for: Key -> system id transform
        decoder_factory: Builds the class decoder for each pass
    """

    def __init__(
        self,
        source: ElementSource,
        max_workers: int = 1,
        system_id_for: SystemIdFn = system_id_from_key,
        decoder_factory: Callable[[], SystemClassDecoder] = SystemClassDecoder,
    ):
        self.source = source
        self.max_workers = max(1, max_workers)
        self.system_id_for = system_id_for
        self.decoder_factory = decoder_factory
        self.failed_models: List[str] = []

    def build_registry(self) -> Optional[SystemRegistry]:
        """Registry from the default model, or None if it cannot be scanned."""
        try:
            rows = self.source.scan_primary_model()
        except ScanError as e:
            logger.error(f"Default model scan failed, no systems: {e}", extra={"error_type": "ScanError"})
            return None
        return build_system_registry(rows, system_id_for=self.system_id_for)

    def list_models(self) -> List[ModelDescriptor]:
        try:
            return list(self.source.list_models())
        except ScanError as e:
            logger.error(f"Could not list facility models: {e}", extra={"error_type": "ScanError"})
            return []

    def _scan(self, model: ModelDescriptor) -> Tuple[ModelDescriptor, Optional[List[ElementRecord]]]:
        try:
            return model, self.source.scan_model(model.model_id)
        except ScanError as e:
            bind(logger, model_urn=model.model_id).warning(
                f"Skipping model {model.display_name}: {e}", extra={"error_type": "ScanError"}
            )
            return model, None

    def _scans(self, models: Sequence[ModelDescriptor]) -> Iterator[Tuple[ModelDescriptor, Optional[List[ElementRecord]]]]:
        if self.max_workers == 1 or len(models) <= 1:
            for model in models:
                yield self._scan(model)
            return

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            # map() yields in submission order
            yield from executor.map(self._scan, models)

    def resolve(self) -> List[SystemRecord]:
        """Run the full resolution pass."""
        self.failed_models = []

        registry = self.build_registry()
        if registry is None or not registry.systems:
            return []

        models = self.list_models()
        decoder = self.decoder_factory()
        state = MembershipState.empty()

        for model, rows in self._scans(models):
            if rows is None:
                self.failed_models.append(model.model_id)
                continue
            state = apply_model_scan(state, registry, ModelScan(model, tuple(rows)), decoder)

        records = finalize(registry, state)
        logger.info(
            f"Resolved {len(records)} systems over {len(state.scanned_models)}/{len(models)} models "
            f"({decoder.cache_size} distinct class masks)"
        )
        return records


def resolve_facility_systems(source: ElementSource, **kwargs) -> List[SystemRecord]:
    """Convenience wrapper: ``FacilitySystemsResolver(source, **kwargs).resolve()``."""
    return FacilitySystemsResolver(source, **kwargs).resolve()
