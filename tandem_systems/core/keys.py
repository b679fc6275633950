"""
Element key and xref encoding.

Tandem keys are websafe base64 (``+/`` -> ``-_``, no padding):

- short key: 20-byte element id
- full key: 4-byte big-endian element flags + 20-byte element id
- xref: 16-byte model id + 24-byte full key, repeated for xref arrays
"""

from __future__ import annotations

import base64
import binascii
import zlib
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .columns import ElementFlags

MODEL_ID_SIZE = 16
ELEMENT_ID_SIZE = 20
ELEMENT_FLAGS_SIZE = 4
ELEMENT_ID_WITH_FLAGS_SIZE = ELEMENT_ID_SIZE + ELEMENT_FLAGS_SIZE
XREF_SIZE = MODEL_ID_SIZE + ELEMENT_ID_WITH_FLAGS_SIZE

MODEL_URN_PREFIX = "urn:adsk.dtm:"


def to_websafe(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def from_websafe(text: str) -> bytes:
    padded = text + "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(padded)


def to_short_key(full_key: str) -> str:
    """Strip the 4 flag bytes from a full key."""
    return to_websafe(from_websafe(full_key)[ELEMENT_FLAGS_SIZE:])


def to_full_key(short_key: str, is_logical: bool = False) -> str:
    """
    Prefix a short key with element flags.

    Logical elements (systems, levels, streams...) carry the family-type
    flags; everything else the simple-element flags. Keys that already hold
    flags are returned unchanged.
    """
    raw = from_websafe(short_key)
    if len(raw) == ELEMENT_ID_WITH_FLAGS_SIZE:
        return short_key

    flags = ElementFlags.FAMILY_TYPE if is_logical else ElementFlags.SIMPLE_ELEMENT
    return to_websafe(flags.to_bytes(ELEMENT_FLAGS_SIZE, "big") + raw)


def _decoded_key(key: str) -> Optional[bytes]:
    """Raw bytes of a websafe key, or None when the text is not a canonical encoding."""
    try:
        raw = from_websafe(key)
    except (binascii.Error, ValueError):
        return None
    return raw if raw and to_websafe(raw) == key else None


def system_id_from_key(key: str) -> str:
    """
    Identifier used as the column code of ``m:<systemId>`` membership columns.

    CRC-32 (big-endian) of the system element's full key bytes. Keys that are
    not canonical websafe base64 are hashed by their UTF-8 text instead, so
    distinct key strings never share a decoding.
    """
    raw = _decoded_key(key)
    if raw is None:
        full = b"text:" + key.encode("utf-8")
    elif len(raw) == ELEMENT_ID_WITH_FLAGS_SIZE:
        full = raw
    else:
        full = ElementFlags.FAMILY_TYPE.to_bytes(ELEMENT_FLAGS_SIZE, "big") + raw
    checksum = zlib.crc32(full) & 0xFFFFFFFF
    return to_websafe(checksum.to_bytes(4, "big"))


@dataclass(frozen=True)
class Xref:
    """A reference to an element in another model."""

    model_urn: str
    element_key: str  # full key (with flags)


def decode_xref(xref: str) -> Optional[Xref]:
    """Split a single xref into model URN and full element key; None if malformed."""
    try:
        raw = from_websafe(xref)
    except (ValueError, TypeError):
        return None

    if len(raw) < XREF_SIZE:
        return None

    model_id = to_websafe(raw[:MODEL_ID_SIZE])
    element_key = to_websafe(raw[MODEL_ID_SIZE:XREF_SIZE])
    return Xref(model_urn=f"{MODEL_URN_PREFIX}{model_id}", element_key=element_key)


def make_xref_key(model_urn: str, element_key: str) -> str:
    """Concatenate model id and element key into an xref."""
    model_id = model_urn[len(MODEL_URN_PREFIX):] if model_urn.startswith(MODEL_URN_PREFIX) else model_urn
    return to_websafe(from_websafe(model_id) + from_websafe(element_key))


def from_xref_key_array(text: Optional[str]) -> Tuple[List[str], List[str]]:
    """Split a packed xref array into parallel lists of model ids and full element keys."""
    model_keys: List[str] = []
    element_keys: List[str] = []
    if not text:
        return model_keys, element_keys

    raw = from_websafe(text)
    # Trailing partial entries are ignored
    for offset in range(0, len(raw) - XREF_SIZE + 1, XREF_SIZE):
        model_keys.append(to_websafe(raw[offset:offset + MODEL_ID_SIZE]))
        element_keys.append(to_websafe(raw[offset + MODEL_ID_SIZE:offset + XREF_SIZE]))

    return model_keys, element_keys
