"""
Tandem REST API client.

Thin wrapper over the endpoints this package needs: facility info, model
schema, model scans and stream values. Authentication is a bearer token
obtained elsewhere.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests
from pydantic import ValidationError

from ..core.attributes import ElementRecord, has_flags
from ..core.columns import QC, ColumnFamily, ElementFlags
from ..core.config import Settings, settings as default_settings
from ..core.errors import ScanError, TandemAPIError, TandemError
from ..core.models import ModelDescriptor
from ..utils.retry import RetryConfig, RetryableSession

logger = logging.getLogger(__name__)

FACILITY_URN_PREFIX = "urn:adsk.dtt:"
MODEL_URN_PREFIX = "urn:adsk.dtm:"


def default_model_urn(facility_urn: str) -> str:
    """The default model shares its id with the facility."""
    return facility_urn.replace(FACILITY_URN_PREFIX, MODEL_URN_PREFIX)


def is_default_model(facility_urn: Optional[str], model_urn: Optional[str]) -> bool:
    if not facility_urn or not model_urn:
        return False
    return facility_urn.replace(FACILITY_URN_PREFIX, "") == model_urn.replace(MODEL_URN_PREFIX, "")


def element_rows(payload: Any) -> List[ElementRecord]:
    """Drop the leading version entry (and anything else without a key) from a scan payload."""
    if not isinstance(payload, list):
        raise TandemError(f"Unexpected scan payload type: {type(payload).__name__}")
    return [item for item in payload if isinstance(item, dict) and QC.KEY in item]


class TandemClient:
    """
    Client for the Tandem data API.

    Args:
        access_token: Bearer token
        base_url: API base URL
        region: Optional data region header
        timeout: Per-request timeout in seconds
        retry_config: Retry behavior for transient failures
        session: Pre-built session (tests)
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        base_url: str = default_settings.base_url,
        region: Optional[str] = None,
        timeout: float = default_settings.request_timeout_sec,
        retry_config: Optional[RetryConfig] = None,
        session: Optional[RetryableSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or RetryableSession(
            token=access_token,
            region=region,
            timeout=timeout,
            config=retry_config,
        )

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "TandemClient":
        return cls(
            access_token=settings.access_token,
            base_url=settings.base_url,
            region=settings.region,
            timeout=settings.request_timeout_sec,
            retry_config=RetryConfig(max_retries=settings.max_retries),
        )

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "TandemClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _json(self, response: requests.Response) -> Any:
        if not response.ok:
            raise TandemAPIError(response.status_code, response.reason or "request failed", url=response.url)
        try:
            return response.json()
        except ValueError as e:
            raise TandemError(f"Invalid JSON from {response.url}: {e}") from e

    def get(self, path: str) -> Any:
        return self._json(self.session.get(self._url(path)))

    def post(self, path: str, payload: Dict[str, Any]) -> Any:
        return self._json(self.session.post(self._url(path), json=payload))

    # -------------------------------------------------------------------------
    # Facilities and models
    # -------------------------------------------------------------------------

    def get_facility_info(self, facility_urn: str) -> Dict[str, Any]:
        return self.get(f"twins/{facility_urn}")

    def list_models(self, facility_urn: str) -> List[ModelDescriptor]:
        """Models linked to the facility, in facility order."""
        info = self.get_facility_info(facility_urn)
        if not isinstance(info, dict):
            raise TandemError(f"Unexpected facility payload type: {type(info).__name__}")
        links = info.get("links") or []
        if not isinstance(links, list):
            raise TandemError(f"Unexpected model links type: {type(links).__name__}")
        return [
            ModelDescriptor.model_validate(link)
            for link in links
            if isinstance(link, dict) and link.get("modelId")
        ]

    def get_schema(self, model_urn: str) -> Dict[str, Any]:
        return self.get(f"modeldata/{model_urn}/schema")

    def scan(
        self,
        model_urn: str,
        families: Optional[Sequence[str]] = None,
        qualified_columns: Optional[Sequence[str]] = None,
        include_history: bool = False,
    ) -> List[ElementRecord]:
        """
        Scan element rows of a model.

        Args:
            model_urn: Model to scan
            families: Column families to return (e.g. ["n", "m"])
            qualified_columns: Specific columns to return
            include_history: Return historical values

        Returns:
            Element records (version entry removed)
        """
        payload: Dict[str, Any] = {"includeHistory": include_history}
        if families:
            payload["families"] = list(families)
        if qualified_columns:
            payload["qualifiedColumns"] = list(qualified_columns)

        rows = element_rows(self.post(f"modeldata/{model_urn}/scan", payload))
        logger.debug(f"Scanned {len(rows)} rows", extra={"model_urn": model_urn})
        return rows

    def get_element_count(self, model_urn: str) -> int:
        return len(self.scan(model_urn, families=[ColumnFamily.STANDARD]))

    # -------------------------------------------------------------------------
    # Streams
    # -------------------------------------------------------------------------

    def get_streams(self, facility_urn: str) -> List[ElementRecord]:
        """Stream elements; streams only live in the default model."""
        rows = self.scan(
            default_model_urn(facility_urn),
            families=[ColumnFamily.STANDARD, ColumnFamily.USER_PROPERTIES],
        )
        return [row for row in rows if has_flags(row, ElementFlags.STREAM)]

    def get_last_seen_stream_values(self, facility_urn: str, stream_keys: Sequence[str]) -> Dict[str, Any]:
        return self.post(
            f"timeseries/models/{default_model_urn(facility_urn)}/streams",
            {"keys": list(stream_keys)},
        )


class FacilityScanSource:
    """
    Element source for systems resolution, bound to one facility.

    Transport and payload failures surface as ScanError.
    """

    PRIMARY_FAMILIES = (ColumnFamily.STANDARD, ColumnFamily.REFS)
    MEMBER_FAMILIES = (ColumnFamily.STANDARD, ColumnFamily.SYSTEMS)

    def __init__(self, client: TandemClient, facility_urn: str):
        self.client = client
        self.facility_urn = facility_urn

    @property
    def primary_model_urn(self) -> str:
        return default_model_urn(self.facility_urn)

    def _scan(self, model_urn: str, families: Sequence[str]) -> List[ElementRecord]:
        try:
            return self.client.scan(model_urn, families=families)
        except (TandemError, ValidationError, requests.RequestException) as e:
            raise ScanError(model_urn, str(e)) from e

    def scan_primary_model(self) -> List[ElementRecord]:
        return self._scan(self.primary_model_urn, self.PRIMARY_FAMILIES)

    def scan_model(self, model_id: str) -> List[ElementRecord]:
        return self._scan(model_id, self.MEMBER_FAMILIES)

    def list_models(self) -> List[ModelDescriptor]:
        try:
            return self.client.list_models(self.facility_urn)
        except (TandemError, ValidationError, requests.RequestException) as e:
            raise ScanError(self.facility_urn, str(e)) from e
