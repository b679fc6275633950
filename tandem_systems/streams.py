"""
Stream summaries for the default model.

Streams are logical elements that carry time-series values. The summary
combines the override-aware name and classification with the last values
reported for each stream property.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from .api.client import default_model_urn
from .core.attributes import ElementRecord, element_classification, element_key, element_name
from .core.columns import ColumnFamily, parse_qualified_column
from .core.keys import to_short_key
from .schema.cache import SchemaCache

logger = logging.getLogger(__name__)

UNNAMED_STREAM = "Unnamed Stream"


@dataclass
class StreamValue:
    property_id: str
    display_name: str
    timestamp: datetime
    value: Any


@dataclass
class StreamSummary:
    key: str
    name: str
    classification: Optional[str] = None
    internal_id: Optional[str] = None
    last_values: List[StreamValue] = field(default_factory=list)


def first_user_property(record: ElementRecord) -> Optional[str]:
    for column in record:
        parsed = parse_qualified_column(column)
        if parsed is not None and parsed.family == ColumnFamily.USER_PROPERTIES:
            return column
    return None


def summarize_stream(record: ElementRecord) -> StreamSummary:
    return StreamSummary(
        key=element_key(record),
        name=element_name(record) or UNNAMED_STREAM,
        classification=element_classification(record),
        internal_id=first_user_property(record),
    )


def convert_long_keys_to_short_keys(values: Mapping[str, Any]) -> Dict[str, Any]:
    """The timeseries endpoint answers with full keys; stream rows use short keys."""
    return {to_short_key(key): value for key, value in (values or {}).items()}


def _timestamp(raw: str) -> datetime:
    return datetime.fromtimestamp(int(raw) / 1000, tz=timezone.utc)


def build_stream_summaries(
    streams: List[ElementRecord],
    last_seen: Mapping[str, Mapping[str, Mapping[str, Any]]],
    model_urn: str,
    cache: SchemaCache,
) -> List[StreamSummary]:
    """
    Args:
        streams: Stream rows of the default model
        last_seen: short key -> property id -> {epoch ms: value}
        model_urn: Default model (for property display names)
        cache: Schema cache

    Returns:
        One summary per stream, in row order
    """
    summaries = []
    for row in streams:
        summary = summarize_stream(row)
        for property_id, samples in (last_seen.get(summary.key) or {}).items():
            display_name = cache.property_display_name(model_urn, property_id)
            for raw_ts, value in samples.items():
                summary.last_values.append(StreamValue(property_id, display_name, _timestamp(raw_ts), value))
        summaries.append(summary)
    return summaries


def load_stream_summaries(client, facility_urn: str, cache: SchemaCache) -> List[StreamSummary]:
    """Fetch streams and their last values and summarize them."""
    streams = client.get_streams(facility_urn)
    if not streams:
        return []

    raw = client.get_last_seen_stream_values(facility_urn, [element_key(s) for s in streams])
    logger.info(f"Loaded {len(streams)} streams", extra={"facility_urn": facility_urn})
    return build_stream_summaries(
        streams,
        convert_long_keys_to_short_keys(raw),
        default_model_urn(facility_urn),
        cache,
    )
