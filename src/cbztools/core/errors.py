"""
Exception hierarchy shared by the converters, the cleaner and the upscaler.
"""

from pathlib import Path
from typing import Any, List, Optional, Sequence


class CbzToolsError(Exception):
    """Base class for every error raised by cbztools."""


class MissingToolsError(CbzToolsError):
    """One or more required executables are not on PATH."""

    def __init__(self, tools: Sequence[Any]):
        self.tools = list(tools)
        names = ", ".join(tool.name for tool in self.tools)
        super().__init__(f"Missing required tools: {names}")

    def install_hints(self) -> List[str]:
        brew = " ".join(tool.brew for tool in self.tools)
        apt = " ".join(tool.apt for tool in self.tools)
        return [
            f"macOS: brew install {brew}",
            f"Ubuntu/Debian: sudo apt install {apt}",
        ]


class ExtractionError(CbzToolsError):
    """An archive or PDF could not be unpacked, or produced no files."""


class ArchiveCreationError(CbzToolsError):
    """The output CBZ could not be written."""


class ToolExecutionError(CbzToolsError):
    """An external command exited with a non-zero status."""

    def __init__(self, command: Sequence[str], returncode: int, stderr: Optional[str] = None):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = (stderr or "").strip()
        message = f"{Path(self.command[0]).name} exited with status {returncode}"
        if self.stderr:
            message = f"{message}: {self.stderr.splitlines()[-1]}"
        super().__init__(message)


class UpscalerSetupError(CbzToolsError):
    """Real-ESRGAN could not be located, downloaded, unpacked or verified."""


class BinaryBlockedError(UpscalerSetupError):
    """The Real-ESRGAN binary exists but refuses to run (macOS quarantine)."""

    def __init__(self, binary: Path):
        self.binary = binary
        super().__init__(f"Real-ESRGAN binary cannot run: {binary}")

    def remediation(self) -> List[str]:
        return [
            "1. Open System Preferences > Security & Privacy",
            "2. Click 'Allow Anyway' for the blocked Real-ESRGAN binary",
            "3. Or run this command in terminal:",
            f'   sudo xattr -rd com.apple.quarantine "{self.binary}"',
        ]


class InputPathError(CbzToolsError):
    """The path given on the command line is missing or of the wrong kind."""


class UpscaleError(CbzToolsError):
    """A page could not be upscaled or re-encoded."""
