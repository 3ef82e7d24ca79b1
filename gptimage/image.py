"""Creation of the partition table layer of a new disk image.

The layout is fixed: a single partition of a given size, preceded by the
protective MBR, the primary GPT header and the primary partition entry array, and
followed by the backup partition entry array and the backup GPT header.

Everything is built in memory before the first byte is written, so invalid
arguments never leave a half-written image behind.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from .base import LOGICAL_BLOCK_SIZE, ByteRange
from .crc import crc32
from .gpt import GptHeader, PartitionEntry, encode_partition_entry_array
from .layout import disk_size_in_lba, size_in_bytes_to_num_logical_blocks
from .mbr import Mbr

if TYPE_CHECKING:
    from .typing import SeekableSink, Sink

__all__ = ['Table', 'new_protective_mbr', 'new_table', 'write_header', 'write_table']


log = logging.getLogger(__name__)


def new_protective_mbr(partition_size_bytes: int) -> Mbr:
    """New protective MBR of a disk image able to hold a partition of
    ``partition_size_bytes`` bytes.
    """
    return Mbr.new_protective(disk_size_in_lba(partition_size_bytes))


def write_header(sink: Sink, partition_size_bytes: int) -> None:
    """Write the protective MBR of a disk image able to hold a partition of
    ``partition_size_bytes`` bytes to ``sink``.

    Only the MBR is written, at the current position of ``sink``.
    """
    mbr = new_protective_mbr(partition_size_bytes)
    log.debug(
        f'Writing protective MBR covering {mbr.partition_record_1.size_in_lba} '
        f'logical blocks'
    )
    sink.write(bytes(mbr))


@dataclass(frozen=True)
class Table:
    """Partition table layer of a single-partition disk image, ready to be
    written.

    Use ``new_table()`` to create it.
    """

    mbr: Mbr
    header: GptHeader
    backup_header: GptHeader
    partition: PartitionEntry

    def blocks(self) -> tuple[tuple[int, bytes], ...]:
        """Get the logical block address and ``bytes`` of every structure in the
        order they are written.
        """
        partition_array = encode_partition_entry_array((self.partition,))
        return (
            (0, bytes(self.mbr)),
            (self.header.my_lba, self.header.to_logical_block()),
            (self.header.partition_entry_lba, partition_array),
            (self.backup_header.partition_entry_lba, partition_array),
            (self.backup_header.my_lba, self.backup_header.to_logical_block()),
        )

    def write_to(self, sink: SeekableSink) -> None:
        """Write all structures to ``sink``. The partition itself is left
        untouched.
        """
        log.info(
            f'Writing GPT for a disk of {self.header.alternate_lba + 1} logical '
            f'blocks, disk GUID {self.header.disk_guid}, partition at LBA '
            f'{self.partition.starting_lba} to {self.partition.ending_lba}'
        )
        for lba, b in self.blocks():
            sink.seek(lba * LOGICAL_BLOCK_SIZE)
            sink.write(b)

    def partition_byte_range(self) -> ByteRange:
        """Byte range of the partition."""
        return self.partition.partition_byte_range()


def new_table(
    partition_size_bytes: int,
    *,
    disk_guid: UUID | None = None,
    partition_guid: UUID | None = None,
    partition_name: str = '',
) -> Table:
    """New partition table layer of a disk image able to hold a partition of
    ``partition_size_bytes`` bytes.

    Random GUIDs are generated for ``disk_guid`` and ``partition_guid`` if they
    are not given. Nothing is written.
    """
    if partition_size_bytes <= 0:
        raise ValueError('Partition size must be greater than 0')
    if disk_guid is None:
        disk_guid = uuid4()
    if partition_guid is None:
        partition_guid = uuid4()

    disk_size = disk_size_in_lba(partition_size_bytes)
    partition = PartitionEntry.new_first_partition(
        size_in_bytes_to_num_logical_blocks(partition_size_bytes),
        partition_guid,
        partition_name,
    )
    partition_array = encode_partition_entry_array((partition,))
    header = GptHeader.new_primary(disk_size, disk_guid, crc32(partition_array))
    return Table(
        mbr=Mbr.new_protective(disk_size),
        header=header,
        backup_header=header.backup(),
        partition=partition,
    )


def write_table(
    sink: SeekableSink,
    partition_size_bytes: int,
    *,
    disk_guid: UUID | None = None,
    partition_guid: UUID | None = None,
    partition_name: str = '',
) -> ByteRange:
    """Write the complete partition table layer of a disk image able to hold a
    partition of ``partition_size_bytes`` bytes to ``sink``.

    Writes the protective MBR, both GPT headers and both partition entry arrays.
    The partition itself is left untouched. ``sink`` is not touched if any
    argument is invalid.

    Returns the byte range of the partition.
    """
    table = new_table(
        partition_size_bytes,
        disk_guid=disk_guid,
        partition_guid=partition_guid,
        partition_name=partition_name,
    )
    table.write_to(sink)
    return table.partition_byte_range()
