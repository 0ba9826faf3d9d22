"""Decoding of the MSG.BytesExtra column.

BytesExtra is a protobuf message without a published schema. The observed
layout is::

    message BytesExtra {
        Header header = 1;          // {1: int, 2: int}
        repeated Entry entries = 3; // {1: field id, 2: string value}
    }

Entry field ids that matter: 1 = real sender wxid (chatrooms only),
3 = thumbnail path, 4 = image/video/file path.
"""

import copy
from typing import Any, List, Optional

import blackboxprotobuf

from wechat_transcript.core.diagnostics import Diagnostics
from wechat_transcript.models.chat import EXTRA_FIELD_SENDER, ExtensionEntry


# Entry values are typed as bytes so that non UTF-8 payloads do not abort
# the whole message; they are decoded with replacement below.
BYTES_EXTRA_TYPEDEF = {
    "1": {
        "type": "message",
        "name": "",
        "message_typedef": {
            "1": {"type": "int", "name": ""},
            "2": {"type": "int", "name": ""},
        },
    },
    "3": {
        "type": "message",
        "name": "",
        "message_typedef": {
            "1": {"type": "int", "name": ""},
            "2": {"type": "bytes", "name": ""},
        },
    },
}


def _to_text(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, (bytes, bytearray, memoryview)):
        return bytes(v).decode("utf-8", errors="replace")
    return str(v)


def _to_field_id(v: Any) -> Optional[int]:
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def decode_bytes_extra(
    blob: Optional[bytes], diagnostics: Optional[Diagnostics] = None
) -> List[ExtensionEntry]:
    """Decode a BytesExtra blob into ordered extension entries.

    Args:
        blob: Raw column value, may be empty or None
        diagnostics: Sink for decode failures

    Returns:
        List of ExtensionEntry in blob order, empty when the blob is empty
        or cannot be parsed
    """
    if not blob:
        return []

    diagnostics = diagnostics or Diagnostics()
    try:
        decoded, _typedef = blackboxprotobuf.decode_message(
            bytes(blob), copy.deepcopy(BYTES_EXTRA_TYPEDEF)
        )
    except Exception as e:
        diagnostics.warn("bytes_extra_decode_failed", size=len(blob), error=str(e))
        return []

    raw_entries = decoded.get("3", [])
    if isinstance(raw_entries, dict):
        # A single occurrence of a repeated field decodes to a dict
        raw_entries = [raw_entries]
    if not isinstance(raw_entries, list):
        return []

    entries: List[ExtensionEntry] = []
    for item in raw_entries:
        if not isinstance(item, dict):
            continue
        field_id = _to_field_id(item.get("1"))
        if field_id is None:
            continue
        entries.append(ExtensionEntry(field_id=field_id, value=_to_text(item.get("2"))))
    return entries


def sender_from_entries(entries: List[ExtensionEntry]) -> str:
    """Return the embedded sender wxid (field 1), or "" when absent."""
    for entry in entries:
        if entry.field_id == EXTRA_FIELD_SENDER and entry.value:
            return entry.value
    return ""
