# cbztools/src/cbztools/convert/cbr.py
"""CBR (RAR) to CBZ (ZIP) conversion via ``unrar``."""

import logging
import tempfile
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.markup import escape

from cbztools.archive.zipio import create_cbz, list_files
from cbztools.batch import FileResult, FileStatus, converted_path, size_mb
from cbztools.core.errors import ExtractionError, ToolExecutionError
from cbztools.tools import UNRAR, find_executable, run_tool

logger = logging.getLogger(__name__)


def extract_rar(source: Path, dest: Path) -> None:
    """Extract a RAR archive into ``dest``, keeping broken files (``-kb``).

    Raises:
        ExtractionError: If unrar fails
    """
    unrar = find_executable(UNRAR) or "unrar"
    try:
        run_tool([unrar, "x", "-kb", "-y", source.resolve(), f"{dest}/"])
    except ToolExecutionError as e:
        raise ExtractionError(f"Failed to extract CBR file: {e}") from e


def convert_cbr(source: Path, console: Optional[Console] = None) -> FileResult:
    """Repack one CBR as ``converted/<stem>.cbz`` next to it.

    Pages are stored uncompressed; they are already compressed images.

    Args:
        source: The ``.cbr`` file
        console: Where progress lines go; silent when omitted

    Returns:
        CREATED, or SKIPPED when the CBZ already exists

    Raises:
        ExtractionError: If unrar fails or yields no files
        ArchiveCreationError: If the CBZ can't be written
    """
    console = console or Console(quiet=True)
    output = converted_path(source)
    output.parent.mkdir(parents=True, exist_ok=True)

    if output.exists():
        console.print(f"[yellow]  Skipping - CBZ already exists:[/yellow] {escape(str(output))}")
        return FileResult(source, FileStatus.SKIPPED, output=output)

    with tempfile.TemporaryDirectory(prefix="cbztools-cbr-") as tmp:
        tmp_dir = Path(tmp)
        console.print("[blue]  Extracting CBR...[/blue]")
        extract_rar(source, tmp_dir)

        files = list_files(tmp_dir)
        if not files:
            raise ExtractionError("No files extracted from CBR")
        console.print(f"[blue]  Found {len(files)} files[/blue]")

        console.print("[blue]  Creating CBZ...[/blue]")
        create_cbz(tmp_dir, output, compress=False)

    logger.info(f"Converted {source} -> {output}")
    console.print(f"[green]  Success:[/green] {escape(str(output))}")
    console.print(f"[blue]  Size: {size_mb(source)}MB (CBR) → {size_mb(output)}MB (CBZ)[/blue]")
    return FileResult(source, FileStatus.CREATED, output=output)
