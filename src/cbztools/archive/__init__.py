"""
Archive helpers: header sniffing and CBZ (ZIP) reading and writing.
"""

from cbztools.archive.signature import ArchiveFormat, detect_format, is_rar, is_zip, read_header
from cbztools.archive.zipio import create_cbz, extract_zip, list_files

__all__ = [
    "ArchiveFormat",
    "create_cbz",
    "detect_format",
    "extract_zip",
    "is_rar",
    "is_zip",
    "list_files",
    "read_header",
]
