# src/cbztools/cli/clean_cli.py
"""CBZ junk removal command."""

from pathlib import Path

import typer
from rich.markup import escape

from cbztools.batch import print_summary, resolve_target, run_batch
from cbztools.clean import clean_cbz
from cbztools.cli.common import CONTEXT_SETTINGS, VERBOSE_OPTION, console, fail, setup_logging
from cbztools.core.constants import CBZ_EXTENSION, CLEANED_DIR
from cbztools.core.errors import InputPathError

clean_app = typer.Typer(context_settings=CONTEXT_SETTINGS, add_completion=False)


@clean_app.command()
def clean(
    target: Path = typer.Argument(Path("."), help="CBZ file or directory to clean"),
    verbose: bool = VERBOSE_OPTION,
):
    """
    Remove unwanted system files from CBZ archives.

    Removes .DS_Store, Thumbs.db, ._* files and __MACOSX/ folders. Cleaned
    copies are written to a 'cleaned/' folder next to each archive.
    """
    setup_logging(verbose)
    console.print("[blue]CBZ Cleaner[/blue]")
    console.print("Removes: .DS_Store, Thumbs.db, ._* files, __MACOSX/ folders\n")

    try:
        files = resolve_target(target, (CBZ_EXTENSION,), exclude_dir=CLEANED_DIR, kind="CBZ")
    except InputPathError as e:
        fail(str(e))

    if target.is_dir():
        console.print(f"[blue]Searching for CBZ files in:[/blue] {escape(str(target))}")
        if not files:
            console.print(f"[yellow]No CBZ files found in {escape(str(target))}[/yellow]")
            raise typer.Exit(0)
        console.print(f"Found {len(files)} CBZ file(s) to process\n")

    stats = run_batch(files, lambda path: clean_cbz(path, console), console)
    print_summary(console, stats, title="Cleaning complete!")
    raise typer.Exit(stats.exit_code)


def main():
    clean_app()
