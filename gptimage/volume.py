"""Volume access.

A volume represents the byte range of a partition within a disk image. It is what
a file system driver is handed to interpret the contents of the partition.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import ByteRange
from .info import gpt_info, read_at

if TYPE_CHECKING:
    from .typing import Source

__all__ = ['Volume', 'open_first_partition']


class Volume:
    """Contiguous part of a disk image, usually the bounds of a partition.

    Also serves as an accessor to the underlying disk image. Positions passed to
    ``read_at()`` are relative to the start of the volume.
    """

    def __init__(self, source: Source, byte_range: ByteRange):
        if not 0 <= byte_range.start <= byte_range.end:
            raise ValueError(
                f'Invalid volume bounds ({byte_range.start}, {byte_range.end})'
            )
        self._source = source
        self._byte_range = byte_range

    def read_at(self, pos: int, size: int) -> bytes:
        """Read ``size`` bytes from the volume starting at byte ``pos``."""
        if not 0 <= pos <= self.size:
            raise ValueError('Position to read from out of volume bounds')
        if not 0 <= size <= self.size - pos:
            raise ValueError('Byte range out of volume bounds')
        if size == 0:
            return b''
        return read_at(self._source, self._byte_range.start + pos, size)

    def read_all(self) -> bytes:
        """Read the whole volume."""
        return self.read_at(0, self.size)

    @property
    def byte_range(self) -> ByteRange:
        """Bounds of the volume within the disk image."""
        return self._byte_range

    @property
    def size(self) -> int:
        """Size of the volume in bytes."""
        return self._byte_range.size

    def __repr__(self) -> str:
        start, end = self._byte_range
        return f'{self.__class__.__name__}(start={start}, end={end})'


def open_first_partition(source: Source) -> Volume:
    """Return the ``Volume`` spanning the first partition of the disk image
    ``source``.
    """
    return Volume(source, gpt_info(source).first_partition_byte_range())
