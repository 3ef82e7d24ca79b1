"""Geometry of a disk image holding a single GPT partition.

The image consists of the protective MBR, the primary GPT header, the primary
partition entry array, the partition itself, the backup partition entry array and
the backup GPT header, in this order.
"""

from __future__ import annotations

from .base import LOGICAL_BLOCK_SIZE

__all__ = [
    'NUMBER_OF_PARTITION_ENTRIES',
    'SIZE_OF_PARTITION_ENTRY',
    'PARTITION_ARRAY_NUM_LBA',
    'PRIMARY_HEADER_LBA',
    'PRIMARY_PARTITION_ARRAY_LBA',
    'size_in_bytes_to_num_logical_blocks',
    'disk_size_in_lba',
    'usable_lba',
]


NUMBER_OF_PARTITION_ENTRIES = 4
SIZE_OF_PARTITION_ENTRY = 128

PRIMARY_HEADER_LBA = 1
PRIMARY_PARTITION_ARRAY_LBA = PRIMARY_HEADER_LBA + 1


def size_in_bytes_to_num_logical_blocks(size: int) -> int:
    """Return how many logical blocks are needed to hold ``size`` bytes.

    At least one logical block is returned, even for a ``size`` of 0.
    """
    if size < 0:
        raise ValueError('Size must be zero or positive')
    return max(size - 1, 0) // LOGICAL_BLOCK_SIZE + 1


PARTITION_ARRAY_NUM_LBA = size_in_bytes_to_num_logical_blocks(
    NUMBER_OF_PARTITION_ENTRIES * SIZE_OF_PARTITION_ENTRY
)


def disk_size_in_lba(partition_size_bytes: int) -> int:
    """Return the size of a disk image in logical blocks which is able to hold a
    partition of ``partition_size_bytes`` bytes.
    """
    return (
        1  # protective MBR
        + 1  # primary GPT header
        + PARTITION_ARRAY_NUM_LBA
        + size_in_bytes_to_num_logical_blocks(partition_size_bytes)
        + PARTITION_ARRAY_NUM_LBA
        + 1  # backup GPT header
    )


def usable_lba(disk_size_lba: int) -> tuple[int, int]:
    """Return a ``tuple`` of the first and last logical block which may be used by
    a partition on a disk of ``disk_size_lba`` logical blocks.

    Both values are inclusive.
    """
    first_usable = PRIMARY_PARTITION_ARRAY_LBA + PARTITION_ARRAY_NUM_LBA
    last_usable = disk_size_lba - 1 - PARTITION_ARRAY_NUM_LBA - 1
    return first_usable, last_usable
