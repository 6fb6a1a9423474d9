"""
Shared fixtures: small comic archives built on the fly.
"""

import zipfile
from pathlib import Path
from typing import Dict

import pytest

RAR4_HEADER = b"Rar!\x1a\x07\x00"
RAR5_HEADER = b"Rar!\x1a\x07\x01\x00"
FAKE_JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 64


@pytest.fixture
def make_cbz():
    """Factory writing a ZIP archive with the given members."""
    def _make(path: Path, members: Dict[str, bytes]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, "w") as zf:
            for name, data in members.items():
                zf.writestr(name, data)
        return path
    return _make


@pytest.fixture
def make_rar():
    """Factory writing a file that only carries a RAR signature."""
    def _make(path: Path, header: bytes = RAR5_HEADER) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(header + b"\x00" * 32)
        return path
    return _make


@pytest.fixture
def pages():
    return {
        "001.jpg": FAKE_JPEG,
        "002.jpg": FAKE_JPEG,
        "003.png": b"\x89PNG\r\n\x1a\n" + b"\x00" * 16,
    }


def zip_names(path: Path):
    with zipfile.ZipFile(path) as zf:
        return zf.namelist()


def mark_encrypted(path: Path) -> Path:
    """Set the encryption bit of every member in the local and central headers."""
    data = bytearray(path.read_bytes())
    for signature, flag_offset in ((b"PK\x03\x04", 6), (b"PK\x01\x02", 8)):
        start = data.find(signature)
        while start != -1:
            data[start + flag_offset] |= 0x01
            start = data.find(signature, start + 4)
    path.write_bytes(bytes(data))
    return path


def corrupt_bytes(path: Path, old: bytes, new: bytes) -> Path:
    """Overwrite member data in a stored archive without fixing its CRC."""
    assert len(old) == len(new)
    data = path.read_bytes()
    assert data.count(old) == 1
    path.write_bytes(data.replace(old, new))
    return path
