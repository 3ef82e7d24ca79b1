"""Protective MBR.

Every GPT disk carries a legacy MBR in LBA 0 holding a single partition record of
type ``0xEE`` which spans the disk. Legacy tools therefore see the disk as fully
partitioned and leave it alone.

See https://uefi.org/specifications (section "Protective MBR").
See https://wiki.osdev.org/Partition_Table.
"""

from __future__ import annotations

from dataclasses import dataclass

from typing_extensions import Annotated

from .base import LOGICAL_BLOCK_SIZE, InvalidMbrSignature
from .bytestruct import ByteStruct

__all__ = ['Mbr', 'MbrPartitionRecord']


BOOT_CODE_SIZE = 440
PARTITION_RECORD_COUNT = 4
SIGNATURE = 0xAA55

OS_TYPE_EMPTY = 0x00
OS_TYPE_GPT_PROTECTIVE = 0xEE

# CHS addressing is meaningless for GPT disks, the fields hold sentinel values.
PROTECTIVE_STARTING_CHS = 0x000200  # head 0, sector 2, cylinder 0
MAX_ENDING_CHS = 0xFFFFFF
MAX_SIZE_IN_LBA = 0xFFFFFFFF


@dataclass(frozen=True)
class MbrPartitionRecord(ByteStruct):
    """MBR partition record."""

    boot_indicator: Annotated[int, 1]
    starting_chs: Annotated[int, 3]
    os_type: Annotated[int, 1]
    ending_chs: Annotated[int, 3]
    starting_lba: Annotated[int, 4]
    size_in_lba: Annotated[int, 4]

    @classmethod
    def new_empty(cls) -> MbrPartitionRecord:
        """New zeroed partition record."""
        return cls(0, 0, OS_TYPE_EMPTY, 0, 0, 0)

    @classmethod
    def new_protective(cls, disk_size_in_lba: int) -> MbrPartitionRecord:
        """New protective partition record covering a disk of ``disk_size_in_lba``
        logical blocks, minus the MBR itself.

        Sizes which cannot be expressed are clamped to the maximum value of the
        respective field.
        """
        if disk_size_in_lba < 1:
            raise ValueError('Disk size must be at least 1 logical block')
        return cls(
            boot_indicator=0,
            starting_chs=PROTECTIVE_STARTING_CHS,
            os_type=OS_TYPE_GPT_PROTECTIVE,
            ending_chs=min(disk_size_in_lba * LOGICAL_BLOCK_SIZE - 1, MAX_ENDING_CHS),
            starting_lba=1,
            size_in_lba=min(disk_size_in_lba - 1, MAX_SIZE_IN_LBA),
        )

    @property
    def empty(self) -> bool:
        return self.os_type == OS_TYPE_EMPTY

    @property
    def protective(self) -> bool:
        return self.os_type == OS_TYPE_GPT_PROTECTIVE


@dataclass(frozen=True)
class Mbr(ByteStruct):
    """Master boot record as found in LBA 0.

    Use ``Mbr.from_bytes()`` to parse and ``bytes()`` to encode it.
    """

    boot_code: Annotated[bytes, BOOT_CODE_SIZE]
    unique_mbr_disk_signature: Annotated[int, 4]
    unknown: Annotated[bytes, 2]
    partition_record_1: MbrPartitionRecord
    partition_record_2: MbrPartitionRecord
    partition_record_3: MbrPartitionRecord
    partition_record_4: MbrPartitionRecord
    signature: Annotated[int, 2]

    def validate(self) -> None:
        if self.signature != SIGNATURE:
            raise InvalidMbrSignature(self.signature)

    @classmethod
    def new_protective(cls, disk_size_in_lba: int) -> Mbr:
        """New protective MBR for a disk of ``disk_size_in_lba`` logical blocks."""
        empty = MbrPartitionRecord.new_empty()
        return cls(
            boot_code=b'\x00' * BOOT_CODE_SIZE,
            unique_mbr_disk_signature=0,
            unknown=b'\x00' * 2,
            partition_record_1=MbrPartitionRecord.new_protective(disk_size_in_lba),
            partition_record_2=empty,
            partition_record_3=empty,
            partition_record_4=empty,
            signature=SIGNATURE,
        )

    @property
    def partition_records(self) -> tuple[MbrPartitionRecord, ...]:
        return (
            self.partition_record_1,
            self.partition_record_2,
            self.partition_record_3,
            self.partition_record_4,
        )
