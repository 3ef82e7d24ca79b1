"""Exception classes, data structures and constants used across ``gptimage``."""

from __future__ import annotations

from typing import NamedTuple

__all__ = [
    'LOGICAL_BLOCK_SIZE',
    'ByteRange',
    'ValidationError',
    'StructureError',
    'InvalidMbrSignature',
    'InvalidSignature',
    'IncorrectRevision',
    'InvalidHeaderSize',
    'InvalidPartitionEntrySize',
    'UnexpectedNonZeroValue',
    'UnexpectedMyLba',
    'ChecksumMismatch',
    'HeaderChecksumMismatch',
    'PartitionEntryArrayChecksumMismatch',
    'RedundancyError',
    'HeaderDoesNotMatchBackup',
    'BackupPartitionArrayDoesNotMatch',
    'NoPartitions',
]


LOGICAL_BLOCK_SIZE = 512


class ByteRange(NamedTuple):
    """Half-open range of bytes ``[start, end)`` within a disk image."""

    start: int
    end: int

    @property
    def size(self) -> int:
        """Amount of bytes covered by the range."""
        return self.end - self.start


class ValidationError(ValueError):
    """Exception raised if an object representing a specific structure -- for example
    a partition table header or a partition entry -- cannot be created because the
    data to be parsed as the structure does not conform to the standard of the
    structure.
    """


class StructureError(ValidationError):
    """Exception raised if a structure carries a wrong signature, an unsupported
    revision, an out-of-range size or non-zero bytes where zero is mandated.
    """


class InvalidMbrSignature(StructureError):
    """Exception raised if the boot signature of an MBR is not ``0xAA55``."""

    def __init__(self, signature: int):
        super().__init__(f'Invalid MBR signature {signature:#06x}')
        self.signature = signature


class InvalidSignature(StructureError):
    """Exception raised if a GPT header does not start with ``EFI PART``."""

    def __init__(self, signature: int):
        super().__init__(f'Invalid GPT signature {signature:#018x}')
        self.signature = signature


class IncorrectRevision(StructureError):
    """Exception raised if a GPT header does not declare revision 1.0."""

    def __init__(self, revision: int):
        super().__init__(f'Invalid GPT header revision number {revision:#010x}')
        self.revision = revision


class InvalidHeaderSize(StructureError):
    """Exception raised if the header size of a GPT header is out of range."""

    def __init__(self, header_size: int):
        super().__init__(
            f'Header size specified in GPT header must be in range [92, 512], got '
            f'{header_size}'
        )
        self.header_size = header_size


class InvalidPartitionEntrySize(StructureError):
    """Exception raised if a GPT header declares partition entries too small to
    hold a partition entry.
    """

    def __init__(self, size: int):
        super().__init__(
            f'GPT partition entry size must be a minimum of 128 bytes, got {size} '
            f'bytes'
        )
        self.size = size


class UnexpectedNonZeroValue(StructureError):
    """Exception raised if a reserved or padding byte is not zero."""

    def __init__(self, offset: int):
        super().__init__(f'Unexpected non-zero value at byte offset {offset}')
        self.offset = offset


class UnexpectedMyLba(StructureError):
    """Exception raised if the primary GPT header does not point to LBA 1."""

    def __init__(self, my_lba: int):
        super().__init__(f'Primary GPT header claims to reside at LBA {my_lba}')
        self.my_lba = my_lba


class ChecksumMismatch(ValidationError):
    """Exception raised if a stored CRC32 differs from the one computed over the
    data it protects.

    Carries both values as ``computed`` and ``expected``.
    """

    what = 'data'

    def __init__(self, computed: int, expected: int):
        super().__init__(
            f'CRC32 of {self.what} does not match (computed {computed:#010x}, '
            f'expected {expected:#010x})'
        )
        self.computed = computed
        self.expected = expected


class HeaderChecksumMismatch(ChecksumMismatch):
    what = 'GPT header'


class PartitionEntryArrayChecksumMismatch(ChecksumMismatch):
    what = 'partition entry array'


class RedundancyError(ValidationError):
    """Exception raised if the primary and backup copies of a structure disagree."""


class HeaderDoesNotMatchBackup(RedundancyError):
    """Exception raised if the backup GPT header does not mirror the primary one."""

    def __init__(self) -> None:
        super().__init__('Backup GPT header does not match primary GPT header')


class BackupPartitionArrayDoesNotMatch(RedundancyError):
    """Exception raised if the backup partition entry array differs from the
    primary one.
    """

    def __init__(self) -> None:
        super().__init__(
            'Backup partition entry array does not match primary partition entry '
            'array'
        )


class NoPartitions(ValidationError):
    """Exception raised if a partition is requested from an empty partition entry
    array.
    """

    def __init__(self) -> None:
        super().__init__('Partition entry array holds no partition entries')
