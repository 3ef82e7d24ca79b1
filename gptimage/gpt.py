"""GPT headers and partition entry arrays.

See https://uefi.org/specifications.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, Flag
from typing import Iterable
from uuid import UUID

from typing_extensions import Annotated

from .base import (
    LOGICAL_BLOCK_SIZE,
    ByteRange,
    HeaderChecksumMismatch,
    HeaderDoesNotMatchBackup,
    IncorrectRevision,
    InvalidHeaderSize,
    InvalidPartitionEntrySize,
    InvalidSignature,
    PartitionEntryArrayChecksumMismatch,
    UnexpectedNonZeroValue,
)
from .bytestruct import ByteStruct
from .crc import crc32
from .layout import (
    NUMBER_OF_PARTITION_ENTRIES,
    PARTITION_ARRAY_NUM_LBA,
    PRIMARY_HEADER_LBA,
    PRIMARY_PARTITION_ARRAY_LBA,
    SIZE_OF_PARTITION_ENTRY,
    usable_lba,
)

__all__ = [
    'GptHeader',
    'PartitionEntry',
    'PartitionAttributes',
    'PartitionType',
    'check_mirrored',
    'compute_header_crc32',
    'encode_partition_entry_array',
    'parse_partition_entry_array',
]


SIGNATURE = 0x5452415020494645  # b'EFI PART' read as little-endian u64
REVISION = 0x00010000  # 1.0
MIN_HEADER_SIZE = 92
MAX_HEADER_SIZE = LOGICAL_BLOCK_SIZE

HEADER_CRC32_FIELD = slice(16, 20)
HEADER_RESERVED_OFFSET = 20

PARTITION_NAME_SIZE = 72  # 36 UTF-16 code units


def compute_header_crc32(block: bytes, header_size: int) -> int:
    """Return the CRC32 of the first ``header_size`` bytes of a GPT header
    ``block``, computed with the header's own checksum field zeroed.
    """
    header = bytearray(block[:header_size])
    header[HEADER_CRC32_FIELD] = b'\x00' * 4
    return crc32(header)


class PartitionType(Enum):
    """Common GPT partition type."""

    UNUSED = UUID('00000000-0000-0000-0000-000000000000')
    EFI_SYSTEM_PARTITION = UUID('C12A7328-F81F-11D2-BA4B-00A0C93EC93B')
    MICROSOFT_BASIC_DATA = UUID('EBD0A0A2-B9E5-4433-87C0-68B6B72699C7')
    LINUX_FILESYSTEM = UUID('0FC63DAF-8483-4772-8E79-3D69D8477DE4')


class PartitionAttributes(Flag):
    """GPT partition attribute flags.

    - Bits 0-2 are defined for all partition types.
    - Bits 3-47 are reserved for future use.
    - Bits 48-63 are defined and used by the individual partition type.
    """

    REQUIRED = 1 << 0  # required for the platform to function
    EFI_IGNORE = 1 << 1  # file system mappings will not be created
    BIOS_BOOTABLE = 1 << 2  # equivalent of MBR active flag


@dataclass(frozen=True)
class GptHeader(ByteStruct):
    """GPT header, either the primary one in LBA 1 or its backup in the last LBA.

    Use ``GptHeader.from_logical_block()`` to parse a header and
    ``GptHeader.new_primary()`` to create a fresh one.
    """

    signature: Annotated[int, 8]
    revision: Annotated[int, 4]
    header_size: Annotated[int, 4]
    header_crc32: Annotated[int, 4]
    reserved: Annotated[int, 4]
    my_lba: Annotated[int, 8]
    alternate_lba: Annotated[int, 8]
    first_usable_lba: Annotated[int, 8]
    last_usable_lba: Annotated[int, 8]
    disk_guid: Annotated[UUID, 16]
    partition_entry_lba: Annotated[int, 8]
    number_of_partition_entries: Annotated[int, 4]
    size_of_partition_entry: Annotated[int, 4]
    partition_entry_array_crc32: Annotated[int, 4]

    def validate(self) -> None:
        if self.signature != SIGNATURE:
            raise InvalidSignature(self.signature)
        if self.revision != REVISION:
            raise IncorrectRevision(self.revision)
        if not MIN_HEADER_SIZE <= self.header_size <= MAX_HEADER_SIZE:
            raise InvalidHeaderSize(self.header_size)

    @classmethod
    def from_logical_block(cls, block: bytes) -> GptHeader:
        """Parse and validate a GPT header from the logical block it resides in.

        The checks are performed in the following order, the first one failing
        raises: signature, revision, header size, header CRC32, reserved field,
        zero padding after the header.
        """
        if len(block) != LOGICAL_BLOCK_SIZE:
            raise ValueError(
                f'GPT header block must be {LOGICAL_BLOCK_SIZE} bytes long, got '
                f'{len(block)} bytes'
            )
        header = cls.from_bytes(block[: len(cls)])

        computed = compute_header_crc32(block, header.header_size)
        if computed != header.header_crc32:
            raise HeaderChecksumMismatch(computed, header.header_crc32)

        if header.reserved != 0:
            raise UnexpectedNonZeroValue(HEADER_RESERVED_OFFSET)

        for offset in range(header.header_size, LOGICAL_BLOCK_SIZE):
            if block[offset] != 0:
                raise UnexpectedNonZeroValue(offset)

        return header

    @classmethod
    def new_primary(
        cls,
        disk_size_in_lba: int,
        disk_guid: UUID,
        partition_entry_array_crc32: int = 0,
    ) -> GptHeader:
        """New primary GPT header for a disk of ``disk_size_in_lba`` logical blocks
        laid out as described in the ``layout`` module.
        """
        first_usable_lba, last_usable_lba = usable_lba(disk_size_in_lba)
        if first_usable_lba > last_usable_lba:
            raise ValueError(
                f'Disk of {disk_size_in_lba} logical blocks is too small to hold a '
                f'partition'
            )
        header = cls(
            signature=SIGNATURE,
            revision=REVISION,
            header_size=MIN_HEADER_SIZE,
            header_crc32=0,  # set below
            reserved=0,
            my_lba=PRIMARY_HEADER_LBA,
            alternate_lba=disk_size_in_lba - 1,
            first_usable_lba=first_usable_lba,
            last_usable_lba=last_usable_lba,
            disk_guid=disk_guid,
            partition_entry_lba=PRIMARY_PARTITION_ARRAY_LBA,
            number_of_partition_entries=NUMBER_OF_PARTITION_ENTRIES,
            size_of_partition_entry=SIZE_OF_PARTITION_ENTRY,
            partition_entry_array_crc32=partition_entry_array_crc32,
        )
        return header.with_checksum()

    def backup(self) -> GptHeader:
        """Return the backup header mirroring this primary header.

        The backup partition entry array is placed directly before the backup
        header, as described in the ``layout`` module.
        """
        return replace(
            self,
            my_lba=self.alternate_lba,
            alternate_lba=self.my_lba,
            partition_entry_lba=self.alternate_lba - PARTITION_ARRAY_NUM_LBA,
        ).with_checksum()

    def with_checksum(self) -> GptHeader:
        """Return a copy of the header carrying the correct header CRC32."""
        computed = compute_header_crc32(self._padded_block(), self.header_size)
        return replace(self, header_crc32=computed)

    def _padded_block(self) -> bytes:
        return bytes(self) + b'\x00' * (LOGICAL_BLOCK_SIZE - len(self))

    def to_logical_block(self) -> bytes:
        """Get the logical block holding the header, padded with zeroes."""
        return self.with_checksum()._padded_block()

    def partition_entry_array_byte_range(self) -> ByteRange:
        """Byte range of the partition entry array this header refers to."""
        start = self.partition_entry_lba * LOGICAL_BLOCK_SIZE
        size = self.size_of_partition_entry * self.number_of_partition_entries
        return ByteRange(start, start + size)


def check_mirrored(header: GptHeader, backup: GptHeader) -> None:
    """Check if ``backup`` can be considered the backup of ``header``.

    Passes if the headers point at each other from either side or share the same
    disk GUID, otherwise ``HeaderDoesNotMatchBackup`` is raised.
    """
    if (
        header.my_lba == backup.alternate_lba
        or header.alternate_lba == backup.my_lba
        or header.disk_guid == backup.disk_guid
    ):
        return
    raise HeaderDoesNotMatchBackup()


@dataclass(frozen=True)
class PartitionEntry(ByteStruct):
    """GPT partition entry.

    Entries compare equal if all of their fields are equal.
    """

    partition_type_guid: Annotated[UUID, 16]
    unique_partition_guid: Annotated[UUID, 16]
    starting_lba: Annotated[int, 8]
    ending_lba: Annotated[int, 8]
    attributes: Annotated[int, 8]
    partition_name: Annotated[str, PARTITION_NAME_SIZE]

    @classmethod
    def new_empty(cls) -> PartitionEntry:
        """New empty / unused partition entry."""
        unused = PartitionType.UNUSED.value
        return cls(unused, unused, 0, 0, 0, '')

    @classmethod
    def new_first_partition(
        cls,
        partition_size_in_lba: int,
        unique_partition_guid: UUID,
        partition_name: str = '',
    ) -> PartitionEntry:
        """New EFI system partition entry starting at the first usable logical block
        of the layout described in the ``layout`` module.
        """
        if partition_size_in_lba <= 0:
            raise ValueError(
                f'Invalid partition length {partition_size_in_lba} logical blocks, '
                f'must be greater than 0'
            )
        starting_lba = PRIMARY_PARTITION_ARRAY_LBA + PARTITION_ARRAY_NUM_LBA
        return cls(
            partition_type_guid=PartitionType.EFI_SYSTEM_PARTITION.value,
            unique_partition_guid=unique_partition_guid,
            starting_lba=starting_lba,
            ending_lba=starting_lba + partition_size_in_lba - 1,
            attributes=PartitionAttributes.REQUIRED.value,
            partition_name=partition_name,
        )

    @property
    def empty(self) -> bool:
        return self.partition_type_guid == PartitionType.UNUSED.value

    @property
    def required(self) -> bool:
        return bool(self.attributes & PartitionAttributes.REQUIRED.value)

    def partition_byte_range(self) -> ByteRange:
        """Byte range covered by the partition, ending block included."""
        return ByteRange(
            self.starting_lba * LOGICAL_BLOCK_SIZE,
            (self.ending_lba + 1) * LOGICAL_BLOCK_SIZE,
        )


def parse_partition_entry_array(
    raw: bytes, header: GptHeader
) -> tuple[PartitionEntry, ...]:
    """Parse the partition entry array ``raw`` described by ``header``.

    The CRC32 of ``raw`` is checked against the one stored in ``header`` before
    anything is decoded. Every entry slot is decoded, including unused ones.
    """
    expected_size = header.partition_entry_array_byte_range().size
    if len(raw) != expected_size:
        raise ValueError(
            f'Calculated partition array size does not match passed partition '
            f'array (expected {expected_size} bytes, got {len(raw)} bytes)'
        )

    computed = crc32(raw)
    if computed != header.partition_entry_array_crc32:
        raise PartitionEntryArrayChecksumMismatch(
            computed, header.partition_entry_array_crc32
        )

    entry_size = header.size_of_partition_entry
    if header.number_of_partition_entries and entry_size < len(PartitionEntry):
        raise InvalidPartitionEntrySize(entry_size)

    entries = []
    for index in range(header.number_of_partition_entries):
        start = index * entry_size
        entry_bytes = raw[start : start + len(PartitionEntry)]
        entries.append(PartitionEntry.from_bytes(entry_bytes))
    return tuple(entries)


def encode_partition_entry_array(
    entries: Iterable[PartitionEntry],
    number_of_entries: int = NUMBER_OF_PARTITION_ENTRIES,
) -> bytes:
    """Get ``bytes`` of a partition entry array holding ``number_of_entries``
    entries of 128 bytes, filled up with empty entries after ``entries``.
    """
    entries = tuple(entries)
    if len(entries) > number_of_entries:
        raise ValueError(
            f'Partition entry array can hold a maximum of {number_of_entries} '
            f'entries, got {len(entries)} entries'
        )
    empty = PartitionEntry.new_empty()
    padding = (empty,) * (number_of_entries - len(entries))
    return b''.join(bytes(entry) for entry in entries + padding)
