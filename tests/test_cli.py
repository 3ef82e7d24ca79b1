"""Tests for the ``cli`` module."""

import io
from dataclasses import replace
from uuid import UUID

import pytest

from gptimage.cli import _format_info, build_parser, main
from gptimage.gpt import PartitionAttributes, PartitionType
from gptimage.image import write_table
from gptimage.info import gpt_info
from gptimage.mbr import Mbr

DISK_GUID = UUID('4B5D4E56-2F5C-4A18-8E0B-1C2D3E4F5061')
UNKNOWN_TYPE = UUID('21686148-6449-6E6F-744E-656564454649')
EXISTING_CONTENTS = b'precious' * 64


@pytest.fixture
def image_file(tempfile):
    """Fixture providing the path of a disk image file created by ``main()``.

    Request ``capsys`` before this fixture to capture the output of ``create``.
    """
    argv = ['create', '-s', '4096', '-o', str(tempfile), '-n', 'EFI system']
    assert main(argv + ['--disk-guid', str(DISK_GUID)]) == 0
    return tempfile


def test_create(capsys, image_file):
    """Test that ``create`` prints the byte range of the new partition."""
    assert capsys.readouterr().out == '1536 5632\n'
    assert image_file.stat().st_size == 13 * 512


def test_range(capsys, image_file):
    capsys.readouterr()
    assert main(['range', '-i', str(image_file)]) == 0
    assert capsys.readouterr().out == '1536 5632\n'


def test_info(capsys, image_file):
    capsys.readouterr()
    assert main(['info', '-i', str(image_file)]) == 0
    out = capsys.readouterr().out
    assert f'Disk GUID: {DISK_GUID}' in out
    assert 'Usable LBA: 3 - 10' in out
    assert '[1] LBA 3 - 10 type=EFI_SYSTEM_PARTITION attributes=REQUIRED ' in out
    assert "name='EFI system'" in out
    assert '[2]' not in out


def test_info_debug(capsys, image_file):
    capsys.readouterr()
    assert main(['info', '-d', '-i', str(image_file)]) == 0
    assert capsys.readouterr().out.startswith('GptInfo(mbr=Mbr(')


@pytest.mark.parametrize(
    ['type_guid', 'attributes', 'expected'],
    [
        (
            PartitionType.MICROSOFT_BASIC_DATA.value,
            0,
            'type=MICROSOFT_BASIC_DATA attributes=-',
        ),
        (
            PartitionType.LINUX_FILESYSTEM.value,
            PartitionAttributes.BIOS_BOOTABLE.value,
            'type=LINUX_FILESYSTEM attributes=BIOS_BOOTABLE',
        ),
        (
            UNKNOWN_TYPE,
            (
                PartitionAttributes.REQUIRED | PartitionAttributes.EFI_IGNORE
            ).value
            | 1 << 60,
            f'type={UNKNOWN_TYPE} attributes=REQUIRED,EFI_IGNORE',
        ),
    ],
)
def test_format_partition_types(type_guid, attributes, expected):
    """Test that known partition types and attribute bits are printed by name."""
    f = io.BytesIO()
    write_table(f, 4096, disk_guid=DISK_GUID)
    info = gpt_info(f)
    entry = replace(
        info.partition_entry_array[0],
        partition_type_guid=type_guid,
        attributes=attributes,
    )
    text = _format_info(replace(info, partition_entry_array=(entry,)))
    assert f'[1] LBA 3 - 10 {expected} ' in text


def test_create_mbr_only(tempfile):
    assert main(['create', '--mbr-only', '-s', '4096', '-o', str(tempfile)]) == 0
    assert tempfile.read_bytes() == bytes(Mbr.new_protective(13))


def test_create_mbr_only_stdout(capsysbinary):
    """Test that the protective MBR is written to stdout if no output is given."""
    assert main(['create', '--mbr-only', '-s', '4096']) == 0
    assert capsysbinary.readouterr().out == bytes(Mbr.new_protective(13))


def test_create_missing_output(capsys):
    """Test that a missing output file is reported like any other usage error."""
    with pytest.raises(SystemExit) as exc_info:
        main(['create', '-s', '4096'])
    assert exc_info.value.code == 2
    err = capsys.readouterr().err
    assert err.startswith('usage: ')
    assert '-o/--output is required unless --mbr-only is given' in err


@pytest.mark.parametrize(
    'arguments',
    [
        ['-s', '0'],
        ['-s', '-1'],
        ['-s', '4096', '-n', 'x' * 37],
        ['--mbr-only', '-s', '-1'],
    ],
)
def test_create_invalid_input(tempfile, capsys, arguments):
    """Test that invalid input is reported and leaves the output file untouched."""
    tempfile.write_bytes(EXISTING_CONTENTS)
    assert main(['create', '-o', str(tempfile)] + arguments) == 1
    assert capsys.readouterr().err.startswith('error: ')
    assert tempfile.read_bytes() == EXISTING_CONTENTS


def test_range_invalid_image(tempfile, capsys):
    """Test that validation errors are reported instead of raised."""
    tempfile.write_bytes(b'\x00' * 13 * 512)
    assert main(['range', '-i', str(tempfile)]) == 1
    assert 'Invalid MBR signature' in capsys.readouterr().err


def test_range_truncated_image(capsys, image_file):
    image_file.write_bytes(image_file.read_bytes()[: 12 * 512])
    capsys.readouterr()
    assert main(['range', '-i', str(image_file)]) == 1
    assert capsys.readouterr().err.startswith('error: ')


def test_range_missing_image(tmp_path, capsys):
    assert main(['range', '-i', str(tmp_path / 'missing.img')]) == 1
    assert capsys.readouterr().err.startswith('error: ')


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])
