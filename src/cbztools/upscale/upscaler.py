"""Per-archive upscaling pipeline.

Each page is run through Real-ESRGAN into a PNG, then re-encoded by
ImageMagick as a JPEG (optionally normalized and resized back down), and
the pages are packed into ``upscaled/<name>.cbz``.
"""

import logging
import tempfile
from pathlib import Path
from typing import Any, List, Optional

from pydantic import BaseModel, Field
from rich.console import Console
from rich.markup import escape

from cbztools.archive.zipio import create_cbz, extract_zip, list_files
from cbztools.batch import FileResult, FileStatus, has_extension, nested_output_path
from cbztools.clean import should_remove
from cbztools.core.config import Settings, settings
from cbztools.core.constants import IMAGE_EXTENSIONS, UPSCALED_DIR
from cbztools.core.errors import ToolExecutionError, UpscaleError
from cbztools.tools import run_tool
from cbztools.upscale.realesrgan import models_dir

logger = logging.getLogger(__name__)


class UpscaleOptions(BaseModel):
    """Validated upscaling options."""
    quality: int = Field(default=90, ge=1, le=100)
    model: str = Field(default="realesrgan-x4plus", min_length=1)
    model_scale: int = Field(default=4, ge=1)
    resize_percent: int = Field(default=50, ge=1, le=1000)
    normalize: bool = False

    @classmethod
    def from_settings(cls, config: Settings = settings, **overrides: Any) -> "UpscaleOptions":
        """Start from configured defaults; ``None`` overrides are ignored."""
        values = {
            "quality": config.jpg_quality,
            "model": config.model,
            "model_scale": config.model_scale,
            "resize_percent": config.resize_percent,
            "normalize": config.normalize,
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def describe(self) -> str:
        line = (
            f"Quality: {self.quality}, Model: {self.model}, "
            f"Model-Scale: {self.model_scale}x, Resize: {self.resize_percent}%"
        )
        if self.normalize:
            line += ", Normalize: enabled"
        return line

    def realesrgan_args(self, binary: Path, source: Path, dest: Path, models: Optional[Path]) -> List[str]:
        args = [str(binary), "-i", str(source), "-o", str(dest), "-n", self.model, "-s", str(self.model_scale)]
        if models is not None:
            args += ["-m", str(models)]
        return args

    def magick_args(self, magick: str, source: Path, dest: Path) -> List[str]:
        args = [magick, str(source)]
        if self.normalize:
            args.append("-normalize")
        if self.resize_percent != 100:
            args += ["-resize", f"{self.resize_percent}%"]
        args += ["-quality", str(self.quality), str(dest)]
        return args


def find_pages(root: Path) -> List[Path]:
    """Image files below ``root`` in reading order, OS junk excluded."""
    return [
        path for path in list_files(root)
        if has_extension(path, IMAGE_EXTENSIONS) and not should_remove(path.relative_to(root).as_posix())
    ]


def page_output(page: Path, pages_root: Path, result_root: Path) -> Path:
    """JPEG path for an upscaled page, keeping its sub-directory and stem."""
    rel = page.relative_to(pages_root)
    output = result_root / rel.with_suffix(".jpg")
    if output.exists():
        # page.png next to page.jpg: keep both
        output = result_root / rel.parent / f"{rel.stem}_{rel.suffix.lstrip('.').lower()}.jpg"
    return output


def upscale_page(
    page: Path,
    output: Path,
    binary: Path,
    magick: str,
    options: UpscaleOptions,
    models: Optional[Path] = None,
) -> Path:
    """Upscale one page to a PNG with Real-ESRGAN, then re-encode it as JPEG.

    Raises:
        UpscaleError: If either tool fails; the intermediate PNG is removed
    """
    output.parent.mkdir(parents=True, exist_ok=True)
    intermediate = output.with_suffix(".png")
    try:
        try:
            run_tool(options.realesrgan_args(binary, page, intermediate, models))
        except ToolExecutionError as e:
            raise UpscaleError(f"Failed to upscale {page.name}: {e}") from e
        try:
            run_tool(options.magick_args(magick, intermediate, output))
        except ToolExecutionError as e:
            raise UpscaleError(f"Failed to convert {page.name} to JPEG: {e}") from e
    finally:
        intermediate.unlink(missing_ok=True)
    return output


def upscale_cbz(
    source: Path,
    binary: Path,
    magick: str,
    options: UpscaleOptions,
    model_dir: Optional[Path] = None,
    console: Optional[Console] = None,
) -> FileResult:
    """Upscale every page of a CBZ into ``upscaled/<stem>.cbz``.

    The first page that fails stops the whole archive.

    Args:
        source: The ``.cbz`` file
        binary: Real-ESRGAN executable
        magick: ImageMagick executable (``magick`` or ``convert``)
        options: Quality, model and resize settings
        model_dir: Local Real-ESRGAN directory used to find the models
        console: Where progress lines go; silent when omitted

    Returns:
        CREATED; SKIPPED when the output exists; EMPTY when the CBZ has no images

    Raises:
        ExtractionError: If the CBZ can't be read
        UpscaleError: If a page fails
        ArchiveCreationError: If the new CBZ can't be written
    """
    console = console or Console(quiet=True)
    model_dir = model_dir or settings.model_dir
    output = nested_output_path(source, UPSCALED_DIR)
    output.parent.mkdir(parents=True, exist_ok=True)

    if output.exists():
        console.print("[yellow]  Skipping:[/yellow] Upscaled CBZ already exists")
        return FileResult(source, FileStatus.SKIPPED, output=output)

    with tempfile.TemporaryDirectory(prefix="cbztools-upscale-") as tmp:
        pages_root = Path(tmp) / "pages"
        result_root = Path(tmp) / "upscaled"
        pages_root.mkdir()
        result_root.mkdir()

        console.print("  Extracting CBZ...")
        extract_zip(source, pages_root)

        pages = find_pages(pages_root)
        if not pages:
            console.print(f"[yellow]  Warning:[/yellow] No image files found in {escape(str(source))}")
            return FileResult(source, FileStatus.EMPTY, message="no images")
        console.print(f"  Found {len(pages)} images to upscale")

        models = models_dir(binary, model_dir)
        for page in pages:
            console.print(f"    Upscaling: {escape(page.relative_to(pages_root).as_posix())}")
            try:
                upscale_page(page, page_output(page, pages_root, result_root), binary, magick, options, models)
            except UpscaleError as e:
                raise UpscaleError(f"Stopping processing of {source.name}: {e}") from e

        console.print(f"  Successfully upscaled {len(pages)} images")
        console.print("  Creating upscaled CBZ...")
        create_cbz(result_root, output)

    logger.info(f"Upscaled {source} -> {output} ({len(pages)} pages)")
    console.print(f"[green]  Success:[/green] Created {escape(str(output))}")
    return FileResult(source, FileStatus.CREATED, output=output)
