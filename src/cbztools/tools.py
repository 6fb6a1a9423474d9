"""
External command-line tools the converters and the upscaler shell out to.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from cbztools.core.errors import MissingToolsError, ToolExecutionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExternalTool:
    """A required executable together with how to install it."""
    name: str
    executables: Tuple[str, ...]
    brew: str
    apt: str


UNRAR = ExternalTool("unrar", ("unrar",), brew="rar", apt="unrar")
PDFIMAGES = ExternalTool("pdfimages (poppler-utils)", ("pdfimages",), brew="poppler", apt="poppler-utils")
# ImageMagick 7 ships "magick"; ImageMagick 6 only has "convert"
MAGICK = ExternalTool("imagemagick", ("magick", "convert"), brew="imagemagick", apt="imagemagick")


def find_executable(tool: ExternalTool) -> Optional[str]:
    """Return the full path of the first available executable for ``tool``."""
    for executable in tool.executables:
        found = shutil.which(executable)
        if found:
            return found
    return None


def require_tools(*tools: ExternalTool) -> None:
    """Make sure every tool is installed.

    Raises:
        MissingToolsError: Listing all missing tools at once
    """
    missing = [tool for tool in tools if find_executable(tool) is None]
    if missing:
        raise MissingToolsError(missing)


def run_tool(args: Sequence[Union[str, Path]], cwd: Optional[Path] = None) -> subprocess.CompletedProcess:
    """Run an external command and capture its output.

    Args:
        args: Command and arguments
        cwd: Working directory for the command

    Returns:
        The completed process

    Raises:
        ToolExecutionError: If the command can't be started or exits non-zero
    """
    command = [str(arg) for arg in args]
    logger.debug(f"Running: {' '.join(command)}")
    try:
        result = subprocess.run(command, cwd=cwd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise ToolExecutionError(command, -1, str(e)) from e
    if result.returncode != 0:
        raise ToolExecutionError(command, result.returncode, result.stderr)
    return result
