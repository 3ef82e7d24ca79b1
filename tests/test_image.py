"""Tests for the ``image`` module."""

import io
from uuid import UUID

import pytest

from gptimage.base import ByteRange, ValidationError
from gptimage.gpt import PartitionType
from gptimage.image import new_protective_mbr, new_table, write_header, write_table
from gptimage.info import gpt_info
from gptimage.mbr import Mbr

DISK_GUID = UUID('4B5D4E56-2F5C-4A18-8E0B-1C2D3E4F5061')
PARTITION_GUID = UUID('9A1E7C35-61B4-4D0F-A2C8-5E3F7B9D0E12')


@pytest.mark.parametrize(
    ['partition_size_bytes', 'disk_size'], [(0, 6), (1, 6), (4096, 13), (4097, 14)]
)
def test_write_header(partition_size_bytes, disk_size):
    """Test that only the protective MBR is written."""
    f = io.BytesIO()
    write_header(f, partition_size_bytes)
    b = f.getvalue()
    assert b == bytes(Mbr.new_protective(disk_size))
    assert Mbr.from_bytes(b).partition_records[0].size_in_lba == disk_size - 1


def test_write_table(image):
    """Test that a written partition table layer is read back as written."""
    info = gpt_info(image)
    entry = info.partition_entry_array[0]

    assert info.header.disk_guid == DISK_GUID
    assert entry.unique_partition_guid == PARTITION_GUID
    assert entry.partition_type_guid == PartitionType.EFI_SYSTEM_PARTITION.value
    assert entry.partition_name == 'EFI system'
    assert entry.required
    assert info.mbr == Mbr.new_protective(13)
    assert len(image.getvalue()) == 13 * 512


@pytest.mark.parametrize(
    ['partition_size_bytes', 'expected'],
    [
        (1, ByteRange(1536, 2048)),
        (512, ByteRange(1536, 2048)),
        (513, ByteRange(1536, 2560)),
        (1 << 20, ByteRange(1536, 1536 + (1 << 20))),
    ],
)
def test_write_table_sizes(partition_size_bytes, expected):
    """Test that the returned byte range is the one read back from the image."""
    f = io.BytesIO()
    assert write_table(f, partition_size_bytes) == expected
    assert gpt_info(f).first_partition_byte_range() == expected
    assert len(f.getvalue()) == expected.end + 2 * 512


def test_write_table_random_guids():
    """Test that GUIDs are generated if none are given."""
    infos = []
    for _ in range(2):
        f = io.BytesIO()
        write_table(f, 512)
        infos.append(gpt_info(f))
    first, second = infos
    assert first.header.disk_guid != second.header.disk_guid
    first_guid = first.partition_entry_array[0].unique_partition_guid
    second_guid = second.partition_entry_array[0].unique_partition_guid
    assert first_guid != second_guid
    assert first.header.disk_guid != first_guid


def test_write_table_keeps_partition():
    """Test that the contents of the partition are left untouched."""
    f = io.BytesIO(b'\xaa' * 13 * 512)
    start, end = write_table(f, 4096)
    assert f.getvalue()[start:end] == b'\xaa' * 4096
    assert gpt_info(f).first_partition_byte_range() == (start, end)


@pytest.mark.parametrize('partition_size_bytes', [0, -1])
def test_write_table_fail(partition_size_bytes):
    """Test that a partition must hold at least one byte."""
    with pytest.raises(ValueError):
        write_table(io.BytesIO(), partition_size_bytes)


def test_write_table_fail_untouched():
    """Test that nothing is written if the partition name does not fit."""
    f = io.BytesIO(b'\xaa' * 13 * 512)
    with pytest.raises(ValidationError):
        write_table(f, 4096, partition_name='x' * 37)
    assert f.getvalue() == b'\xaa' * 13 * 512


def test_new_table(image):
    """Test that a new table holds the structures written by ``write_table()``."""
    table = new_table(
        4096,
        disk_guid=DISK_GUID,
        partition_guid=PARTITION_GUID,
        partition_name='EFI system',
    )
    assert table.mbr == new_protective_mbr(4096) == Mbr.new_protective(13)
    assert table.header.backup() == table.backup_header
    assert table.partition_byte_range() == ByteRange(1536, 5632)
    assert [lba for lba, _ in table.blocks()] == [0, 1, 2, 11, 12]
    assert all(len(b) == 512 for _, b in table.blocks())

    f = io.BytesIO()
    table.write_to(f)
    assert f.getvalue() == image.getvalue()


def test_write_table_file(tempfile):
    """Test writing to and reading from a real file."""
    with open(tempfile, 'wb') as f:
        byte_range = write_table(f, 4096, disk_guid=DISK_GUID)
    assert tempfile.stat().st_size == 13 * 512

    with open(tempfile, 'rb') as f:
        info = gpt_info(f)
    assert info.header.disk_guid == DISK_GUID
    assert info.first_partition_byte_range() == byte_range
