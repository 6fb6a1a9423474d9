"""Removal of operating-system junk from CBZ archives.

macOS and Windows sprinkle metadata into folders that later get zipped up:
``.DS_Store``, ``Thumbs.db``, AppleDouble ``._*`` companions and whole
``__MACOSX/`` trees. Comic readers show these as broken pages.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from cbztools.archive.zipio import create_cbz, extract_zip, list_files
from cbztools.batch import FileResult, FileStatus, nested_output_path
from cbztools.core.constants import APPLEDOUBLE_PREFIX, CLEANED_DIR, JUNK_BASENAMES, MACOSX_DIR
from cbztools.core.errors import ArchiveCreationError

logger = logging.getLogger(__name__)


@dataclass
class CleanResult(FileResult):
    removed: List[str] = field(default_factory=list)
    total_before: int = 0
    total_after: int = 0


def should_remove(name: str) -> bool:
    """Return True for archive members that are OS metadata rather than pages.

    Args:
        name: Member path with forward slashes, relative to the archive root
    """
    member = PurePosixPath(name)
    if member.name in JUNK_BASENAMES:
        return True
    if member.name.startswith(APPLEDOUBLE_PREFIX):
        return True
    return MACOSX_DIR in member.parts[:-1]


def remove_junk(root: Path) -> List[str]:
    """Delete junk files below ``root`` and prune emptied ``__MACOSX`` folders.

    Returns:
        Relative names of the removed files, sorted
    """
    removed = []
    for path in list_files(root):
        name = path.relative_to(root).as_posix()
        if should_remove(name):
            path.unlink()
            removed.append(name)

    macosx_dirs = sorted(
        (p for p in root.rglob(MACOSX_DIR) if p.is_dir()),
        key=lambda p: len(p.parts),
        reverse=True,
    )
    for directory in macosx_dirs:
        if directory.exists() and not any(p.is_file() for p in directory.rglob("*")):
            shutil.rmtree(directory)
    return removed


def clean_cbz(source: Path, console: Optional[Console] = None) -> CleanResult:
    """Write a junk-free copy of a CBZ into a ``cleaned/`` folder beside it.

    The copy is written even when nothing needed removing.

    Args:
        source: The ``.cbz`` file
        console: Where progress lines go; silent when omitted

    Returns:
        CREATED with the removed member names, or SKIPPED when the cleaned copy exists

    Raises:
        ExtractionError: If the CBZ can't be read
        ArchiveCreationError: If no pages remain or the new CBZ can't be written
    """
    console = console or Console(quiet=True)
    output = nested_output_path(source, CLEANED_DIR)
    output.parent.mkdir(parents=True, exist_ok=True)

    if output.exists():
        console.print("[yellow]  Skipping:[/yellow] Cleaned CBZ already exists")
        return CleanResult(source, FileStatus.SKIPPED, output=output)

    with tempfile.TemporaryDirectory(prefix="cbztools-clean-") as tmp:
        tmp_dir = Path(tmp)
        console.print("  Extracting CBZ...")
        extract_zip(source, tmp_dir)

        total_before = len(list_files(tmp_dir))
        removed = remove_junk(tmp_dir)
        total_after = len(list_files(tmp_dir))

        if removed:
            console.print(f"  Removed {len(removed)} unwanted file(s):")
            for name in removed:
                console.print(f"    - {escape(name)}")
        else:
            console.print("  No unwanted files found - CBZ is already clean")
        console.print(f"  Files: {total_before} → {total_after}")

        if total_after == 0:
            raise ArchiveCreationError("No files remaining after cleaning")

        console.print("  Creating cleaned CBZ...")
        create_cbz(tmp_dir, output)

    logger.info(f"Cleaned {source} -> {output}, removed {len(removed)} file(s)")
    console.print(f"[green]  Success:[/green] Created {escape(str(output))}")
    return CleanResult(
        source,
        FileStatus.CREATED,
        output=output,
        removed=removed,
        total_before=total_before,
        total_after=total_after,
    )
