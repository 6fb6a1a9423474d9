"""Tests for external tool discovery and execution."""

import sys
from unittest.mock import patch

import pytest

from cbztools.core.errors import MissingToolsError, ToolExecutionError
from cbztools.tools import MAGICK, PDFIMAGES, UNRAR, find_executable, require_tools, run_tool


def test_find_executable_falls_back_to_convert():
    def which(name):
        return "/usr/bin/convert" if name == "convert" else None
    with patch("cbztools.tools.shutil.which", side_effect=which):
        assert find_executable(MAGICK) == "/usr/bin/convert"


def test_require_tools_lists_every_missing_tool():
    with patch("cbztools.tools.shutil.which", return_value=None):
        with pytest.raises(MissingToolsError) as excinfo:
            require_tools(UNRAR, PDFIMAGES)
    assert [tool.name for tool in excinfo.value.tools] == ["unrar", "pdfimages (poppler-utils)"]
    assert excinfo.value.install_hints() == [
        "macOS: brew install rar poppler",
        "Ubuntu/Debian: sudo apt install unrar poppler-utils",
    ]


def test_run_tool_success():
    result = run_tool([sys.executable, "-c", "print('ok')"])
    assert result.stdout.strip() == "ok"


def test_run_tool_nonzero_exit():
    with pytest.raises(ToolExecutionError) as excinfo:
        run_tool([sys.executable, "-c", "import sys; sys.stderr.write('boom\\n'); sys.exit(3)"])
    assert excinfo.value.returncode == 3
    assert "boom" in str(excinfo.value)


def test_run_tool_missing_executable(tmp_path):
    with pytest.raises(ToolExecutionError):
        run_tool([tmp_path / "does-not-exist"])
