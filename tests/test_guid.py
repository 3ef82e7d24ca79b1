"""Tests for the ``guid`` module."""

from uuid import UUID

import pytest

from gptimage.guid import decode_guid, encode_guid

# EFI system partition type as stored on disk
ESP_BYTES = bytes.fromhex('28732ac11ff8d211ba4b00a0c93ec93b')
ESP_GUID = UUID('C12A7328-F81F-11D2-BA4B-00A0C93EC93B')


def test_decode():
    """Test decoding of a well-known partition type GUID."""
    assert decode_guid(ESP_BYTES) == ESP_GUID
    assert str(decode_guid(ESP_BYTES)).upper() == 'C12A7328-F81F-11D2-BA4B-00A0C93EC93B'


@pytest.mark.parametrize('guid', [ESP_GUID, 'c12a7328-f81f-11d2-ba4b-00a0c93ec93b'])
def test_encode(guid):
    """Test encoding of a well-known partition type GUID given as ``UUID`` or
    ``str``.
    """
    assert encode_guid(guid) == ESP_BYTES


@pytest.mark.parametrize(
    'raw',
    [ESP_BYTES, bytes(range(16)), bytes(range(0xF0, 0x100)), b'\x00' * 16],
)
def test_mixed_endian_fields(raw):
    """Test that the GUID fields are derived from the little-endian 128-bit integer:
    the first three fields as little-endian words, the last eight bytes as-is.
    """
    value = int.from_bytes(raw, 'little')
    guid = decode_guid(raw)
    assert guid.time_low == value & 0xFFFFFFFF
    assert guid.time_mid == (value >> 32) & 0xFFFF
    assert guid.time_hi_version == (value >> 48) & 0xFFFF
    assert guid.bytes[8:] == (value >> 64).to_bytes(8, 'little')
    assert encode_guid(guid) == raw


@pytest.mark.parametrize('length', [0, 8, 15, 17, 32])
def test_decode_fail_length(length):
    """Test that decoding fails for anything but 16 bytes."""
    with pytest.raises(ValueError):
        decode_guid(b'\x00' * length)
