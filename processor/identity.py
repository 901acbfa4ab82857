"""Content-derived identities for canonical timetable events."""
import base64
import struct
from datetime import datetime
from typing import Optional, Sequence

from siphash24 import siphash24

# Version 1 key. Any change to the key, the hash or the field encoding below
# re-keys every event already stored in a calendar.
IDENTITY_KEY = bytes(16)

_ABSENT = b'\x00'
_PRESENT = b'\x01'


def _encode_text(value: Optional[str]) -> bytes:
    if value is None:
        return _ABSENT
    data = value.encode('utf-8')
    return _PRESENT + struct.pack('<Q', len(data)) + data


def _encode_instant(value: datetime) -> bytes:
    return _encode_text(value.isoformat())


def _encode_groups(groups: Sequence[int]) -> bytes:
    return struct.pack('<Q', len(groups)) + b''.join(
        struct.pack('<I', group) for group in groups
    )


def compute_identity(
    start: datetime,
    end: datetime,
    code: str,
    groups: Sequence[int],
    groups_raw: Optional[str],
    title: Optional[str],
    event_type: Optional[str],
    staff: Optional[str],
    room: Optional[str],
    campus: Optional[str]
) -> str:
    """
    Generate the identity of an event from all of its content fields.

    Fields are hashed in argument order with SipHash-2-4 and the 8 digest
    bytes (little-endian) are encoded as padded base32hex, which is accepted
    as a calendar event id.

    Returns:
        16 character identity token
    """
    payload = b''.join([
        _encode_instant(start),
        _encode_instant(end),
        _encode_text(code),
        _encode_groups(groups),
        _encode_text(groups_raw),
        _encode_text(title),
        _encode_text(event_type),
        _encode_text(staff),
        _encode_text(room),
        _encode_text(campus)
    ])
    digest = siphash24(payload, key=IDENTITY_KEY).digest()
    return base64.b32hexencode(digest).decode('ascii')
