# src/cbztools/cli/upscale_cli.py
"""CBZ upscaling command (Real-ESRGAN + ImageMagick)."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.markup import escape

from cbztools.batch import print_summary, resolve_target, run_batch
from cbztools.cli.common import (
    CONTEXT_SETTINGS,
    VERBOSE_OPTION,
    check_dependencies,
    console,
    err_console,
    fail,
    setup_logging,
)
from cbztools.core.config import settings
from cbztools.core.constants import CBZ_EXTENSION, REALESRGAN_MODELS, UPSCALED_DIR
from cbztools.core.errors import BinaryBlockedError, InputPathError, UpscalerSetupError
from cbztools.tools import MAGICK, find_executable
from cbztools.upscale import UpscaleOptions, ensure_realesrgan, upscale_cbz

logger = logging.getLogger(__name__)

upscale_app = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)

OPTION_ERRORS = {
    "quality": "Quality must be a number between 1 and 100",
    "model_scale": "Model scale must be a positive number",
    "resize_percent": "Resize percentage must be between 1 and 1000",
    "model": "Model name must not be empty",
}


def build_options(**overrides) -> UpscaleOptions:
    """Merge CLI overrides onto configured defaults, exiting on invalid values."""
    try:
        return UpscaleOptions.from_settings(settings, **overrides)
    except ValidationError as e:
        field = e.errors()[0]["loc"][0]
        fail(OPTION_ERRORS.get(field, str(e)))


@upscale_app.command()
def upscale(
    target: Path = typer.Argument(Path("."), help="CBZ file or directory to upscale"),
    quality: Optional[int] = typer.Option(None, "--quality", "-q", help=f"JPEG quality (1-100, default: {settings.jpg_quality})"),
    model: Optional[str] = typer.Option(
        None, "--model", "-m",
        help=f"Real-ESRGAN model (default: {settings.model}). Available: {', '.join(REALESRGAN_MODELS)}",
    ),
    model_scale: Optional[int] = typer.Option(None, "--model-scale", help="Model's built-in scale factor (4 for most models)"),
    resize: Optional[int] = typer.Option(None, "--resize", "-r", help=f"Resize final image to percentage (default: {settings.resize_percent}%)"),
    normalize: bool = typer.Option(False, "--normalize", "-n", help="Apply ImageMagick normalize to enhance contrast"),
    model_dir: Path = typer.Option(settings.model_dir, "--model-dir", help="Where Real-ESRGAN is looked up and installed"),
    scale: Optional[str] = typer.Option(None, "--scale", "-s", hidden=True),
    verbose: bool = VERBOSE_OPTION,
):
    """
    Upscale CBZ files using Real-ESRGAN-ncnn-vulkan.

    Real-ESRGAN is downloaded automatically when it isn't installed. Pages are
    recompressed as JPEG and written to an 'upscaled/' folder next to each
    archive.
    """
    setup_logging(verbose)
    if scale is not None:
        fail("Option -s/--scale is deprecated. Use --model-scale instead.")

    options = build_options(
        quality=quality,
        model=model,
        model_scale=model_scale,
        resize_percent=resize,
        normalize=normalize or None,
    )

    console.print("[blue]CBZ Upscaler (Real-ESRGAN)[/blue]")
    console.print(options.describe())
    console.print()

    check_dependencies(MAGICK)
    magick = find_executable(MAGICK)

    try:
        binary = ensure_realesrgan(model_dir, console)
    except BinaryBlockedError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}\n")
        err_console.print("[yellow]To fix this issue:[/yellow]")
        for line in e.remediation():
            err_console.print(escape(line))
        err_console.print("\nThen run the command again.")
        raise typer.Exit(1)
    except UpscalerSetupError as e:
        fail(str(e))
    console.print()

    try:
        files = resolve_target(target, (CBZ_EXTENSION,), exclude_dir=UPSCALED_DIR, kind="CBZ")
    except InputPathError as e:
        fail(str(e))

    if target.is_dir():
        console.print(f"[blue]Searching for CBZ files in:[/blue] {escape(str(target))}")
        if not files:
            console.print(f"[yellow]No CBZ files found in {escape(str(target))}[/yellow]")
            raise typer.Exit(0)
        console.print(f"Found {len(files)} CBZ file(s) to process\n")

    logger.debug(f"Using {binary} and {magick} with {options!r}")
    stats = run_batch(
        files,
        lambda path: upscale_cbz(path, binary, magick, options, model_dir=model_dir, console=console),
        console,
    )
    print_summary(console, stats)
    raise typer.Exit(stats.exit_code)


def main():
    upscale_app()
