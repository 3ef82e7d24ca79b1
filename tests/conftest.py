"""Fixtures used across the test suite."""

import io
import os
from pathlib import Path
from tempfile import mkstemp
from uuid import UUID

import pytest

from gptimage.image import write_table

DISK_GUID = UUID('4B5D4E56-2F5C-4A18-8E0B-1C2D3E4F5061')
PARTITION_GUID = UUID('9A1E7C35-61B4-4D0F-A2C8-5E3F7B9D0E12')
PARTITION_NAME = 'EFI system'
PARTITION_SIZE = 4096  # 8 logical blocks


@pytest.fixture
def tempfile():
    """Fixture providing a new temporary file for testing purposes.

    Returns a ``pathlib.Path`` object representing the path of the temporary file.
    """
    fd, path_str = mkstemp()
    os.close(fd)  # we are going to use a Path object instead
    path = Path(path_str)
    yield path
    path.unlink(missing_ok=True)  # clean up


@pytest.fixture
def image():
    """Fixture providing an in-memory disk image holding a valid GPT with a single
    partition of ``PARTITION_SIZE`` bytes.

    Returns an ``io.BytesIO`` object positioned at byte 0.
    """
    f = io.BytesIO()
    write_table(
        f,
        PARTITION_SIZE,
        disk_guid=DISK_GUID,
        partition_guid=PARTITION_GUID,
        partition_name=PARTITION_NAME,
    )
    f.seek(0)
    return f
