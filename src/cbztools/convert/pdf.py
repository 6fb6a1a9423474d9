# cbztools/src/cbztools/convert/pdf.py
"""PDF to CBZ conversion by extracting the embedded JPEG pages with ``pdfimages``."""

import logging
import tempfile
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from cbztools.archive.zipio import create_cbz
from cbztools.batch import FileResult, FileStatus, converted_path, has_extension
from cbztools.core.constants import JPEG_EXTENSIONS
from cbztools.core.errors import ExtractionError, ToolExecutionError
from cbztools.tools import PDFIMAGES, find_executable, run_tool

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "image"


def extract_pdf_images(source: Path, dest: Path) -> List[Path]:
    """Dump every embedded image of a PDF in its native format.

    Returns:
        The JPEG files among the extracted images, sorted by name

    Raises:
        ExtractionError: If pdfimages fails
    """
    pdfimages = find_executable(PDFIMAGES) or "pdfimages"
    try:
        run_tool([pdfimages, "-all", source, dest / IMAGE_PREFIX])
    except ToolExecutionError as e:
        raise ExtractionError(f"Failed to extract images from {source}: {e}") from e
    return sorted(p for p in dest.iterdir() if p.is_file() and has_extension(p, JPEG_EXTENSIONS))


def convert_pdf(source: Path, console: Optional[Console] = None) -> FileResult:
    """Build ``converted/<stem>.cbz`` from the JPEG images inside a PDF.

    Args:
        source: The ``.pdf`` file
        console: Where progress lines go; silent when omitted

    Returns:
        CREATED; SKIPPED when the CBZ already exists; EMPTY when the PDF
        holds no JPEG images

    Raises:
        ExtractionError: If pdfimages fails
        ArchiveCreationError: If the CBZ can't be written
    """
    console = console or Console(quiet=True)
    output = converted_path(source)
    output.parent.mkdir(parents=True, exist_ok=True)

    if output.exists():
        console.print("[yellow]  Skipping:[/yellow] CBZ already exists")
        return FileResult(source, FileStatus.SKIPPED, output=output)

    with tempfile.TemporaryDirectory(prefix="cbztools-pdf-") as tmp:
        tmp_dir = Path(tmp)
        console.print("  Extracting images...")
        jpegs = extract_pdf_images(source, tmp_dir)

        if not jpegs:
            console.print(f"[yellow]  Warning:[/yellow] No JPEG images found in {escape(str(source))}")
            return FileResult(source, FileStatus.EMPTY, message="no JPEG images")
        console.print(f"  Found {len(jpegs)} JPEG image(s)")

        # pdfimages also writes PNG/PPM/etc.; only the JPEGs go into the CBZ
        pages = tmp_dir / "pages"
        pages.mkdir()
        for jpeg in jpegs:
            jpeg.rename(pages / jpeg.name)

        console.print("  Creating CBZ archive...")
        console.print(f"  CBZ file path: {escape(str(output))}")
        create_cbz(pages, output)

    logger.info(f"Converted {source} -> {output} ({len(jpegs)} pages)")
    console.print(f"[green]  Success:[/green] Created {escape(str(output))}")
    return FileResult(source, FileStatus.CREATED, output=output)
