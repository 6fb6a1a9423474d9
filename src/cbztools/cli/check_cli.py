# src/cbztools/cli/check_cli.py
"""Header validation commands."""

import logging
from pathlib import Path

import typer
from rich.markup import escape

from cbztools.batch import resolve_target
from cbztools.check import check_file, fix_extension
from cbztools.cli.common import CONTEXT_SETTINGS, VERBOSE_OPTION, console, err_console, fail, setup_logging
from cbztools.core.constants import CBR_EXTENSION, CBZ_EXTENSION
from cbztools.core.errors import InputPathError

logger = logging.getLogger(__name__)

check_cbz_app = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)
check_format_app = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)


@check_cbz_app.command()
def check_cbz(
    target: Path = typer.Argument(Path("."), help="CBZ file or directory to search"),
    verbose: bool = VERBOSE_OPTION,
):
    """
    Identify .cbz files that don't have proper ZIP headers.

    Only files that are not true ZIP archives are printed:

      RAR: filename      - file is actually a RAR archive

      INVALID: filename  - file has an unknown/invalid header
    """
    setup_logging(verbose)
    try:
        files = resolve_target(target, (CBZ_EXTENSION,), kind=".cbz file")
    except InputPathError as e:
        fail(str(e))

    for path in files:
        result = check_file(path)
        if result.ok:
            continue
        color = "yellow" if result.detected == "RAR" else "red"
        console.print(f"[{color}]{result.detected}:[/{color}] {escape(str(path))}")


@check_format_app.command()
def check_format(
    target: Path = typer.Argument(Path("."), help="Comic file (.cbz/.cbr) or directory to search"),
    fix: bool = typer.Option(False, "--fix", help="Rename files with incorrect extensions to match their content"),
    verbose: bool = VERBOSE_OPTION,
):
    """
    Check that .cbz files have ZIP headers and .cbr files have RAR headers.

    Without --fix, mismatches are reported as CBZ-RAR, CBZ-INVALID, CBR-ZIP or
    CBR-INVALID. With --fix, CBZ-RAR and CBR-ZIP files are renamed and shown as
    FIXED: old → new; invalid files can't be fixed and are still reported.
    """
    setup_logging(verbose)
    try:
        files = resolve_target(target, (CBZ_EXTENSION, CBR_EXTENSION), kind=".cbz or .cbr file")
    except InputPathError as e:
        fail(str(e))

    errors = 0
    for path in files:
        result = check_file(path)
        if result.ok:
            continue
        new_extension = result.correct_extension
        if fix and new_extension:
            try:
                renamed = fix_extension(path, new_extension)
            except OSError as e:
                logger.error(f"Rename failed for {path}: {e}")
                err_console.print(f"[red]Error: {escape(str(e))}[/red]")
                errors += 1
                continue
            console.print(f"[green]FIXED:[/green] {escape(str(path))} → {escape(str(renamed))}")
        else:
            color = "yellow" if new_extension else "red"
            console.print(f"[{color}]{result.label}:[/{color}] {escape(str(path))}")

    if errors:
        raise typer.Exit(1)


def check_cbz_main():
    check_cbz_app()


def check_format_main():
    check_format_app()
