"""Conversion between the on-disk GUID encoding and ``uuid.UUID``.

GPT stores a GUID as a 128-bit little-endian integer. Its textual form splits the
value into a 32-bit, two 16-bit and one 8-byte field: the first three fields are
read little-endian, the last one is taken byte for byte. Raw bytes round-trip
either way, but only this split prints and compares like ``gdisk`` or ``sgdisk``.
"""

from __future__ import annotations

from uuid import UUID

__all__ = ['GUID_SIZE', 'decode_guid', 'encode_guid']


GUID_SIZE = 16


def decode_guid(b: bytes) -> UUID:
    """Parse a GUID from its 16-byte on-disk representation."""
    if len(b) != GUID_SIZE:
        raise ValueError(f'GUID must be {GUID_SIZE} bytes long, got {len(b)} bytes')
    return UUID(bytes_le=bytes(b))


def encode_guid(guid: UUID | str) -> bytes:
    """Get the 16-byte on-disk representation of ``guid``."""
    if not isinstance(guid, UUID):
        guid = UUID(guid)
    return guid.bytes_le
