"""
Pytest configuration and fixtures for tandem_systems tests.

Provides reusable test fixtures for:
- Element keys and rows (system, subsystem and member elements)
- An in-memory element source with per-model failures
- Mock HTTP sessions
"""

import logging
import pytest
from pathlib import Path
from typing import Dict, List, Optional, Union
from unittest.mock import MagicMock

# Add project root to path
import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from tandem_systems.core.columns import QC, ElementFlags
from tandem_systems.core.errors import ScanError
from tandem_systems.core.keys import system_id_from_key, to_websafe
from tandem_systems.core.models import ModelDescriptor


# =============================================================================
# ROW BUILDERS
# =============================================================================

def make_key(seed: int) -> str:
    """Deterministic 20-byte short key."""
    return to_websafe(bytes([seed % 256]) * 20)


def system_row(key: str, name: str, bitmask: int, parent: Optional[str] = None, override: bool = False) -> dict:
    row = {
        QC.KEY: key,
        QC.ELEMENT_FLAGS: [ElementFlags.SYSTEM],
        QC.NAME: [name],
        (QC.OVERRIDE_SYSTEM_CLASS if override else QC.SYSTEM_CLASS): [bitmask],
    }
    if parent is not None:
        row[QC.PARENT] = [parent]
    return row


def member_row(key: str, bitmask: int, system_ids: List[str], override: bool = True) -> dict:
    row = {
        QC.KEY: key,
        QC.ELEMENT_FLAGS: [ElementFlags.SIMPLE_ELEMENT],
        QC.SYSTEM_CLASS: [bitmask],
    }
    for system_id in system_ids:
        row[f"m:!{system_id}" if override else f"m:{system_id}"] = [1]
    return row


class FakeSource:
    """In-memory element source; a model mapped to an exception fails its scan."""

    def __init__(
        self,
        primary: Union[List[dict], Exception],
        models: Dict[str, Union[List[dict], Exception]],
        labels: Optional[Dict[str, str]] = None,
    ):
        self.primary = primary
        self.models = models
        self.labels = labels or {}
        self.scanned: List[str] = []

    def scan_primary_model(self):
        if isinstance(self.primary, Exception):
            raise self.primary
        return list(self.primary)

    def scan_model(self, model_id):
        self.scanned.append(model_id)
        rows = self.models[model_id]
        if isinstance(rows, Exception):
            raise rows
        return list(rows)

    def list_models(self):
        return [
            ModelDescriptor(model_id=model_id, label=self.labels.get(model_id, model_id))
            for model_id in self.models
        ]


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def s1_id() -> str:
    """System id of the top-level system keyed "k1"."""
    return system_id_from_key("k1")


@pytest.fixture
def primary_rows() -> List[dict]:
    """One top-level system k1 (0b011) with subsystem k2 (0b001)."""
    return [
        system_row("k1", "S1", 0b011),
        system_row("k2", "S1 Branch", 0b001, parent="k1"),
    ]


@pytest.fixture
def scenario_source(primary_rows, s1_id) -> FakeSource:
    """Primary model plus M1 (member e1) and M2 (scan fails)."""
    return FakeSource(
        primary=primary_rows,
        models={
            "M1": [member_row("e1", 0b001, [s1_id])],
            "M2": ScanError("M2", "HTTP 500"),
        },
    )


@pytest.fixture
def mock_response():
    """Factory for fake ``requests.Response`` objects."""
    def _make(payload=None, status_code: int = 200, reason: str = "OK", url: str = "https://test/x"):
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 400
        response.reason = reason
        response.url = url
        response.json.return_value = payload
        return response
    return _make


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers and level back after a test reconfigures it."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
