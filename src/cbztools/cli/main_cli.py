"""
Top-level CLI that aggregates the individual tool commands.
"""

import typer

from cbztools import __version__
from cbztools.cli.check_cli import check_cbz, check_format
from cbztools.cli.clean_cli import clean
from cbztools.cli.common import CONTEXT_SETTINGS, console
from cbztools.cli.convert_cli import cbr2cbz, pdf2cbz
from cbztools.cli.upscale_cli import upscale

main_app = typer.Typer(
    help="Convert, validate, clean and upscale comic book archives (CBR/CBZ/PDF)",
    context_settings=CONTEXT_SETTINGS,
    no_args_is_help=True,
    add_completion=False,
)

main_app.command("cbr2cbz")(cbr2cbz)
main_app.command("pdf2cbz")(pdf2cbz)
main_app.command("check-cbz")(check_cbz)
main_app.command("check-format")(check_format)
main_app.command("clean")(clean)
main_app.command("upscale")(upscale)


@main_app.command("version")
def version():
    """Show the cbztools version."""
    console.print(f"cbztools {__version__}")


def main():
    main_app()


if __name__ == "__main__":
    main()
