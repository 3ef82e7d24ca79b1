"""Reading and cross-checking the partition table layer of a disk image."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .base import (
    LOGICAL_BLOCK_SIZE,
    BackupPartitionArrayDoesNotMatch,
    ByteRange,
    NoPartitions,
    UnexpectedMyLba,
)
from .gpt import GptHeader, PartitionEntry, check_mirrored, parse_partition_entry_array
from .layout import PRIMARY_HEADER_LBA
from .mbr import Mbr

if TYPE_CHECKING:
    from .typing import Source

__all__ = ['GptInfo', 'gpt_info', 'first_partition_byte_range', 'read_at']


log = logging.getLogger(__name__)


def read_at(source: Source, offset: int, size: int) -> bytes:
    """Read exactly ``size`` bytes from ``source`` starting at byte ``offset``.

    ``EOFError`` is raised if the source ends before ``size`` bytes were read.
    """
    source.seek(offset)
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = source.read(remaining)
        if not chunk:
            raise EOFError(
                f'Did not read the expected amount of bytes at offset {offset} '
                f'(expected {size} bytes, got {size - remaining} bytes)'
            )
        chunks.append(chunk)
        remaining -= len(chunk)
    return b''.join(chunks)


@dataclass(frozen=True)
class GptInfo:
    """Validated partition table layer of a disk image.

    Use ``gpt_info()`` to read it from a disk image.
    """

    mbr: Mbr
    header: GptHeader
    backup_header: GptHeader
    partition_entry_array: tuple[PartitionEntry, ...]

    def first_partition_byte_range(self) -> ByteRange:
        """Byte range of the partition described by the first partition entry."""
        if not self.partition_entry_array:
            raise NoPartitions()
        return self.partition_entry_array[0].partition_byte_range()


def gpt_info(source: Source) -> GptInfo:
    """Read the protective MBR, both GPT headers and both partition entry arrays
    from ``source`` and check them against each other.

    Every inconsistency raises; nothing is repaired.
    """
    mbr = Mbr.from_bytes(read_at(source, 0, LOGICAL_BLOCK_SIZE))

    header_offset = PRIMARY_HEADER_LBA * LOGICAL_BLOCK_SIZE
    header_block = read_at(source, header_offset, LOGICAL_BLOCK_SIZE)
    header = GptHeader.from_logical_block(header_block)
    if header.my_lba != PRIMARY_HEADER_LBA:
        raise UnexpectedMyLba(header.my_lba)
    log.debug(f'Primary GPT header: {header}')

    backup_offset = header.alternate_lba * LOGICAL_BLOCK_SIZE
    backup_block = read_at(source, backup_offset, LOGICAL_BLOCK_SIZE)
    backup_header = GptHeader.from_logical_block(backup_block)
    check_mirrored(header, backup_header)
    log.debug(f'Backup GPT header: {backup_header}')

    array_range = header.partition_entry_array_byte_range()
    partition_entry_array = parse_partition_entry_array(
        read_at(source, array_range.start, array_range.size), header
    )

    # Same shape as the primary array, only the location is the backup's.
    backup_array_start = backup_header.partition_entry_lba * LOGICAL_BLOCK_SIZE
    backup_partition_entry_array = parse_partition_entry_array(
        read_at(source, backup_array_start, array_range.size), header
    )
    if backup_partition_entry_array != partition_entry_array:
        raise BackupPartitionArrayDoesNotMatch()

    log.info(
        f'Found GPT with disk GUID {header.disk_guid} and '
        f'{len(partition_entry_array)} partition entries'
    )
    return GptInfo(mbr, header, backup_header, partition_entry_array)


def first_partition_byte_range(source: Source) -> ByteRange:
    """Byte range of the first partition of the disk image ``source``."""
    return gpt_info(source).first_partition_byte_range()
