"""Header validation for comic archives.

A ``.cbz`` should be a ZIP archive and a ``.cbr`` a RAR archive. Files whose
signature contradicts their extension are reported, and can be renamed so
the extension matches the content.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cbztools.archive.signature import ArchiveFormat, detect_format
from cbztools.core.constants import CBR_EXTENSION, CBZ_EXTENSION
from cbztools.core.errors import InputPathError

logger = logging.getLogger(__name__)

EXPECTED_FORMATS = {
    CBZ_EXTENSION: ArchiveFormat.ZIP,
    CBR_EXTENSION: ArchiveFormat.RAR,
}

# Extension a file should carry given what its header says it is
FORMAT_EXTENSIONS = {
    ArchiveFormat.ZIP: CBZ_EXTENSION,
    ArchiveFormat.RAR: CBR_EXTENSION,
}


@dataclass
class CheckResult:
    path: Path
    expected: ArchiveFormat
    actual: ArchiveFormat

    @property
    def ok(self) -> bool:
        return self.actual == self.expected

    @property
    def kind(self) -> str:
        """``CBZ`` or ``CBR``, from the extension."""
        return self.path.suffix.lstrip(".").upper()

    @property
    def detected(self) -> str:
        """``RAR``/``ZIP`` for a recognised archive, ``INVALID`` otherwise."""
        if self.actual == ArchiveFormat.UNKNOWN:
            return "INVALID"
        return self.actual.value.upper()

    @property
    def label(self) -> Optional[str]:
        """Mismatch label such as ``CBZ-RAR`` or ``CBR-INVALID``; None for a valid file."""
        if self.ok:
            return None
        return f"{self.kind}-{self.detected}"

    @property
    def correct_extension(self) -> Optional[str]:
        """Extension matching the content, when the content is a known archive type."""
        if self.ok:
            return None
        return FORMAT_EXTENSIONS.get(self.actual)


def check_file(path: Path) -> CheckResult:
    """Compare a comic archive's header with its extension.

    Raises:
        InputPathError: If the file is not a .cbz or .cbr
        FileNotFoundError: If the file doesn't exist
    """
    expected = EXPECTED_FORMATS.get(path.suffix.lower())
    if expected is None:
        raise InputPathError(f"File is not a .cbz or .cbr file: {path}")
    return CheckResult(path, expected, detect_format(path))


def fix_extension(path: Path, new_extension: str) -> Path:
    """Rename ``path`` so it carries ``new_extension``.

    Raises:
        FileExistsError: If a file with the new name already exists
    """
    target = path.with_suffix(new_extension)
    if target.exists():
        raise FileExistsError(f"Cannot rename '{path}' - target file already exists: {target}")
    path.rename(target)
    logger.info(f"Renamed {path} -> {target}")
    return target
