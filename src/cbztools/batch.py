"""Batch driver shared by every tool.

Finds input files, works out where output goes, runs a per-file worker
sequentially and keeps the processed/succeeded/skipped/failed tallies that
end every run.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from cbztools.core.constants import CBZ_EXTENSION, CONVERTED_DIR
from cbztools.core.errors import CbzToolsError, InputPathError

logger = logging.getLogger(__name__)


class FileStatus(str, Enum):
    """Outcome of processing one input file."""
    CREATED = "created"
    SKIPPED = "skipped"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class FileResult:
    source: Path
    status: FileStatus
    output: Optional[Path] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != FileStatus.FAILED


@dataclass
class BatchStats:
    processed: int = 0
    succeeded: int = 0
    skipped: int = 0
    failed: int = 0

    def record(self, result: FileResult) -> None:
        self.processed += 1
        if result.status == FileStatus.FAILED:
            self.failed += 1
            return
        # Skipped files count as successes
        self.succeeded += 1
        if result.status == FileStatus.SKIPPED:
            self.skipped += 1

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0


def has_extension(path: Path, extensions: Sequence[str]) -> bool:
    """Case-insensitive extension check."""
    return path.suffix.lower() in extensions


def find_files(root: Path, extensions: Sequence[str], exclude_dir: Optional[str] = None) -> List[Path]:
    """Recursively find files with one of ``extensions`` below ``root``.

    Args:
        root: Directory to search
        extensions: Lower-case suffixes including the dot, e.g. ``(".cbz",)``
        exclude_dir: Skip anything below a directory with this name

    Returns:
        Matching files sorted by path
    """
    matches = []
    for path in Path(root).rglob("*"):
        if not path.is_file() or not has_extension(path, extensions):
            continue
        if exclude_dir and exclude_dir in path.relative_to(root).parts[:-1]:
            continue
        matches.append(path)
    return sorted(matches)


def resolve_target(
    target: Path,
    extensions: Sequence[str],
    exclude_dir: Optional[str] = None,
    kind: str = "CBZ",
) -> List[Path]:
    """Turn a command-line path into the list of files to process.

    A file must carry one of ``extensions``; a directory is searched
    recursively.

    Raises:
        InputPathError: If the path is missing, a file of the wrong type, or neither file nor directory
    """
    if not target.exists():
        raise InputPathError(f"Path does not exist: {target}")
    if target.is_file():
        if not has_extension(target, extensions):
            raise InputPathError(f"File is not a {kind}: {target}")
        return [target]
    if target.is_dir():
        return find_files(target, extensions, exclude_dir=exclude_dir)
    raise InputPathError(f"Target is neither a file nor a directory: {target}")


def converted_path(source: Path) -> Path:
    """``<dir>/converted/<stem>.cbz`` for a CBR or PDF source."""
    return source.parent / CONVERTED_DIR / f"{source.stem}{CBZ_EXTENSION}"


def nested_output_path(source: Path, dirname: str) -> Path:
    """Output path inside a ``dirname`` sub-directory next to ``source``.

    A source that already lives in a ``dirname`` directory stays there with
    a ``_<dirname>`` suffix, so re-running never builds ``cleaned/cleaned``.
    """
    if source.parent.name == dirname:
        return source.parent / f"{source.stem}_{dirname}{CBZ_EXTENSION}"
    return source.parent / dirname / f"{source.stem}{CBZ_EXTENSION}"


def size_mb(path: Path) -> str:
    """File size in megabytes with two decimals, ``N/A`` when unavailable."""
    try:
        return f"{path.stat().st_size / 1048576:.2f}"
    except OSError:
        return "N/A"


def run_batch(
    files: Iterable[Path],
    worker: Callable[[Path], FileResult],
    console: Console,
    stats: Optional[BatchStats] = None,
) -> BatchStats:
    """Run ``worker`` over ``files`` one at a time.

    Errors raised by the worker fail that file only; the batch carries on.
    """
    stats = stats or BatchStats()
    for path in files:
        console.print(f"[yellow]Processing:[/yellow] {escape(str(path))}")
        try:
            result = worker(path)
        except (CbzToolsError, OSError) as e:
            logger.error(f"Failed to process {path}: {e}")
            console.print(f"[red]  Error:[/red] {escape(str(e))}")
            result = FileResult(path, FileStatus.FAILED, message=str(e))
        stats.record(result)
        console.print()
    return stats


def print_summary(console: Console, stats: BatchStats, title: str = "Processing complete!") -> None:
    """Print the closing statistics block."""
    console.print(f"[blue]{title}[/blue]")
    console.print(f"Files processed: {stats.processed}")
    console.print(f"Successful: [green]{stats.succeeded}[/green]")
    if stats.skipped:
        console.print(f"Skipped (output exists): [yellow]{stats.skipped}[/yellow]")
    if stats.failed:
        console.print(f"Errors: [red]{stats.failed}[/red]")
