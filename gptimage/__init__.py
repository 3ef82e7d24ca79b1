"""Protective MBR and GUID partition table handling for raw disk images.

Reads and cross-checks the partition table layer of an image to locate its first
partition, and writes the partition table layer of new single-partition images.
"""

from .base import ByteRange, ValidationError
from .image import Table, new_table, write_header, write_table
from .info import GptInfo, first_partition_byte_range, gpt_info

__all__ = [
    'ByteRange',
    'GptInfo',
    'Table',
    'ValidationError',
    'first_partition_byte_range',
    'gpt_info',
    'new_table',
    'write_header',
    'write_table',
]
