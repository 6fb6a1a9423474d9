"""Archive type detection by signature bytes.

The extension of a comic archive says nothing reliable about its content:
plenty of ``.cbz`` files in the wild are RAR archives and vice versa. These
helpers look at the leading magic bytes instead.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Union

from cbztools.core.constants import HEADER_SIZE, RAR_SIGNATURE, ZIP_SIGNATURES

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class ArchiveFormat(str, Enum):
    """Container format as determined from the file header."""
    ZIP = "zip"
    RAR = "rar"
    UNKNOWN = "unknown"


def read_header(path: PathLike, size: int = HEADER_SIZE) -> bytes:
    """Read up to ``size`` leading bytes of a file.

    Args:
        path: File to inspect
        size: Number of bytes wanted

    Returns:
        The bytes read; shorter than ``size`` for tiny files, empty when the
        file cannot be read

    Raises:
        FileNotFoundError: If the file doesn't exist
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File '{path}' not found")
    try:
        with open(path, "rb") as f:
            return f.read(size)
    except OSError as e:
        logger.warning(f"Cannot read header of {path}: {e}")
        return b""


def is_zip(path: PathLike) -> bool:
    """Return True when the file starts with a ZIP signature."""
    return read_header(path) in ZIP_SIGNATURES


def is_rar(path: PathLike) -> bool:
    """Return True when the file starts with the RAR ``Rar!`` marker (RAR 1.5 through 5.0)."""
    return read_header(path) == RAR_SIGNATURE


def detect_format(path: PathLike) -> ArchiveFormat:
    """Classify a file as ZIP, RAR or unknown from its first bytes."""
    header = read_header(path)
    if header in ZIP_SIGNATURES:
        return ArchiveFormat.ZIP
    if header == RAR_SIGNATURE:
        return ArchiveFormat.RAR
    logger.debug(f"Unrecognised header {header.hex() or '<empty>'} in {path}")
    return ArchiveFormat.UNKNOWN
