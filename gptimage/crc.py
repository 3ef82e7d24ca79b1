"""Table-driven CRC32 as used by GPT headers and partition entry arrays.

Reflected algorithm with the IEEE 802.3 parameters, the same checksum ``zlib``
computes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .typing import ReadableBuffer

__all__ = ['CRC32_TABLE', 'crc32']


POLYNOMIAL = 0xEDB88320  # reflected form of 0x04C11DB7
INITIAL = 0xFFFFFFFF
FINAL_XOR = 0xFFFFFFFF


def _make_table() -> tuple[int, ...]:
    """Return the 256 register values for every possible low byte."""
    table = []
    for index in range(256):
        value = index
        for _ in range(8):
            if value & 1:
                value = (value >> 1) ^ POLYNOMIAL
            else:
                value >>= 1
        table.append(value)
    return tuple(table)


CRC32_TABLE = _make_table()


def crc32(data: ReadableBuffer) -> int:
    """Return the CRC32 of ``data`` as an unsigned 32-bit ``int``."""
    crc = INITIAL
    for byte in memoryview(data).cast('B'):
        crc = (crc >> 8) ^ CRC32_TABLE[(crc ^ byte) & 0xFF]
    return crc ^ FINAL_XOR
