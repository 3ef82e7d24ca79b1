"""Certain types used across the package."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, Union

if TYPE_CHECKING:
    from array import array

    # noinspection PyUnresolvedReferences, PyProtectedMember
    from ctypes import _CData
    from mmap import mmap
    from pickle import PickleBuffer

    ReadableBuffer = Union[
        bytes, bytearray, memoryview, array[Any], mmap, _CData, PickleBuffer
    ]


__all__ = ['ReadableBuffer', 'Source', 'Sink', 'SeekableSink']


class Source(Protocol):
    """Seekable binary stream a disk image is read from."""

    def seek(self, offset: int, whence: int = ..., /) -> int:
        ...

    def read(self, size: int = ..., /) -> bytes:
        ...


class Sink(Protocol):
    """Binary stream a disk image is written to."""

    def write(self, b: ReadableBuffer, /) -> int | None:
        ...


class SeekableSink(Sink, Protocol):
    """Seekable binary stream a disk image is written to."""

    def seek(self, offset: int, whence: int = ..., /) -> int:
        ...
