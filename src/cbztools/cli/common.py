"""
Shared console, logging and error reporting for the CLI modules.
"""

import logging
from typing import Iterable, NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape

from cbztools.core.config import settings
from cbztools.core.errors import MissingToolsError
from cbztools.core.logging import configure_logging
from cbztools.tools import ExternalTool, require_tools

logger = logging.getLogger(__name__)

# Never wrap: one path per line
console = Console(soft_wrap=True)
err_console = Console(stderr=True, soft_wrap=True)

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Show debug logging")


def setup_logging(verbose: bool) -> None:
    configure_logging(settings.log_level, verbose=verbose)


def fail(message: str, hints: Optional[Iterable[str]] = None) -> NoReturn:
    """Print an error (and optional follow-up lines) and exit with status 1."""
    err_console.print(f"[red]Error:[/red] {escape(message)}")
    for hint in hints or ():
        err_console.print(escape(hint))
    raise typer.Exit(1)


def check_dependencies(*tools: ExternalTool) -> None:
    """Exit with install instructions when a required tool is missing."""
    try:
        require_tools(*tools)
    except MissingToolsError as e:
        logger.debug(f"Dependency check failed: {e}")
        err_console.print("[red]Error: Missing required tools:[/red]")
        for tool in e.tools:
            err_console.print(tool.name)
        err_console.print("\n[yellow]Install with:[/yellow]")
        for hint in e.install_hints():
            err_console.print(f"  {hint}")
        raise typer.Exit(1)
