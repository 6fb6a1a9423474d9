# src/cbztools/cli/convert_cli.py
"""CBR and PDF to CBZ conversion commands."""

from pathlib import Path

import typer
from rich.markup import escape

from cbztools.batch import find_files, print_summary, run_batch
from cbztools.cli.common import CONTEXT_SETTINGS, VERBOSE_OPTION, check_dependencies, console, fail, setup_logging
from cbztools.convert import convert_cbr, convert_pdf
from cbztools.core.constants import CBR_EXTENSION, PDF_EXTENSION
from cbztools.tools import PDFIMAGES, UNRAR

cbr_app = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)
pdf_app = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)


@cbr_app.command()
def cbr2cbz(
    directory: Path = typer.Argument(Path("."), help="Directory to search for CBR files"),
    verbose: bool = VERBOSE_OPTION,
):
    """
    Convert CBR (RAR comic book) files to CBZ (ZIP comic book) format recursively.

    Converted files are placed in 'converted/' subfolders within each directory.
    Requires unrar.
    """
    setup_logging(verbose)
    console.print("[green]CBR to CBZ Converter[/green]")
    console.print("[green]===================[/green]\n")

    check_dependencies(UNRAR)

    if not directory.is_dir():
        fail(f"Directory '{directory}' does not exist")
    directory = directory.resolve()

    console.print(f"[blue]Searching for CBR files in: {escape(str(directory))}[/blue]\n")
    files = find_files(directory, (CBR_EXTENSION,))
    stats = run_batch(files, lambda path: convert_cbr(path, console), console)

    print_summary(console, stats, title="Processing Complete")
    if stats.processed == 0:
        console.print(f"[yellow]No CBR files found in: {escape(str(directory))}[/yellow]")
    raise typer.Exit(stats.exit_code)


@pdf_app.command()
def pdf2cbz(
    directory: Path = typer.Argument(Path("."), help="Directory to search for PDF files"),
    verbose: bool = VERBOSE_OPTION,
):
    """
    Convert PDF files to CBZ format by extracting their JPEG images.

    Converted files are placed in 'converted/' subfolders within each directory.
    Requires pdfimages (poppler-utils).
    """
    setup_logging(verbose)
    console.print("PDF to CBZ Converter")
    console.print("====================")
    console.print(f"Searching for PDF files in: {escape(str(directory))}\n")

    check_dependencies(PDFIMAGES)

    if not directory.is_dir():
        fail(f"Directory '{directory}' does not exist")

    files = find_files(directory, (PDF_EXTENSION,))
    if not files:
        console.print(f"[yellow]No PDF files found in {escape(str(directory))}[/yellow]")
        raise typer.Exit(0)

    console.print(f"Found {len(files)} PDF file(s) to process\n")
    stats = run_batch(files, lambda path: convert_pdf(path, console), console)

    console.print("====================")
    print_summary(console, stats)
    raise typer.Exit(stats.exit_code)


def cbr_main():
    cbr_app()


def pdf_main():
    pdf_app()
