"""Tests for locating, verifying and installing Real-ESRGAN."""

import io
import os
import subprocess
import tarfile
import zipfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
import requests
from rich.console import Console

from cbztools.core.constants import REALESRGAN_BINARY
from cbztools.core.errors import BinaryBlockedError, UpscalerSetupError
from cbztools.upscale import realesrgan

RELEASE = {
    "assets": [
        {"browser_download_url": "https://example.test/realesrgan-ncnn-vulkan-20220424-macos.zip"},
        {"browser_download_url": "https://example.test/realesrgan-ncnn-vulkan-20220424-ubuntu.zip"},
        {"browser_download_url": "https://example.test/realesrgan-ncnn-vulkan-20220424-windows.zip"},
    ]
}


@pytest.fixture
def no_path_binary():
    with patch("cbztools.upscale.realesrgan.shutil.which", return_value=None):
        yield


def touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return path


def test_locate_prefers_path():
    with patch("cbztools.upscale.realesrgan.shutil.which", return_value="/usr/local/bin/realesrgan-ncnn-vulkan"):
        assert realesrgan.locate(Path("/nonexistent")) == Path("/usr/local/bin/realesrgan-ncnn-vulkan")


def test_locate_in_model_dir(tmp_path, no_path_binary):
    binary = touch(tmp_path / REALESRGAN_BINARY)
    assert realesrgan.locate(tmp_path) == binary


def test_locate_in_release_subdirectory(tmp_path, no_path_binary):
    touch(tmp_path / "unrelated" / REALESRGAN_BINARY)
    binary = touch(tmp_path / "realesrgan-ncnn-vulkan-20220424-ubuntu" / REALESRGAN_BINARY)
    assert realesrgan.locate(tmp_path) == binary


def test_locate_in_app_bundle(tmp_path, no_path_binary):
    binary = touch(tmp_path / "Real-ESRGAN-macos" / "Real-ESRGAN.app" / "Contents" / "MacOS" / REALESRGAN_BINARY)
    assert realesrgan.locate(tmp_path) == binary


def test_locate_missing(tmp_path, no_path_binary):
    assert realesrgan.locate(tmp_path / "nothing-here") is None
    assert realesrgan.locate(tmp_path) is None


def test_verify_accepts_usage_banner():
    done = subprocess.CompletedProcess([], 255, "", "Usage: realesrgan-ncnn-vulkan -i infile -o outfile")
    with patch("cbztools.upscale.realesrgan.subprocess.run", return_value=done):
        realesrgan.verify(Path("/bin/realesrgan-ncnn-vulkan"))


def test_verify_blocked_binary():
    killed = subprocess.CompletedProcess([], -9, "", "")
    with patch("cbztools.upscale.realesrgan.subprocess.run", return_value=killed):
        with pytest.raises(BinaryBlockedError) as excinfo:
            realesrgan.verify(Path("/x/realesrgan-ncnn-vulkan"))
    assert 'sudo xattr -rd com.apple.quarantine "/x/realesrgan-ncnn-vulkan"' in excinfo.value.remediation()[-1]


def test_verify_unrunnable_binary():
    with patch("cbztools.upscale.realesrgan.subprocess.run", side_effect=PermissionError("denied")):
        with pytest.raises(BinaryBlockedError):
            realesrgan.verify(Path("/x/realesrgan-ncnn-vulkan"))


@pytest.mark.parametrize("system, expected", [("Darwin", "macos"), ("Linux", "ubuntu")])
def test_detect_platform(system, expected):
    with patch("cbztools.upscale.realesrgan.platform.system", return_value=system):
        assert realesrgan.detect_platform() == expected


def test_detect_platform_unsupported():
    with patch("cbztools.upscale.realesrgan.platform.system", return_value="Windows"):
        with pytest.raises(UpscalerSetupError, match="Unsupported platform"):
            realesrgan.detect_platform()


def test_select_asset_url():
    assert realesrgan.select_asset_url(RELEASE, "ubuntu").endswith("-ubuntu.zip")
    assert realesrgan.select_asset_url(RELEASE, "macos").endswith("-macos.zip")
    linux_only = {"assets": [{"browser_download_url": "https://example.test/realesrgan-linux.tar.gz"}]}
    assert realesrgan.select_asset_url(linux_only, "ubuntu").endswith("linux.tar.gz")
    with pytest.raises(UpscalerSetupError):
        realesrgan.select_asset_url({"assets": []}, "macos")


def test_models_dir(tmp_path):
    binary = touch(tmp_path / "bin" / REALESRGAN_BINARY)
    assert realesrgan.models_dir(binary, tmp_path / ".model") is None
    (tmp_path / "bin" / "models").mkdir()
    assert realesrgan.models_dir(binary, tmp_path / ".model") == (tmp_path / "bin" / "models").resolve()
    (tmp_path / ".model" / "models").mkdir(parents=True)
    assert realesrgan.models_dir(binary, tmp_path / ".model") == (tmp_path / ".model" / "models").resolve()


def release_zip() -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr(REALESRGAN_BINARY, b"#!/bin/sh\n")
        zf.writestr("models/realesrgan-x4plus.param", b"param")
    return buffer.getvalue()


def test_install_downloads_and_unpacks(tmp_path):
    payload = release_zip()
    api_response = MagicMock()
    api_response.json.return_value = RELEASE
    download_response = MagicMock()
    download_response.__enter__.return_value = download_response
    download_response.headers = {"content-length": str(len(payload))}
    download_response.iter_content.return_value = [payload]

    model_dir = tmp_path / ".model"
    with patch("cbztools.upscale.realesrgan.requests.get", side_effect=[api_response, download_response]) as get, \
            patch("cbztools.upscale.realesrgan.detect_platform", return_value="ubuntu"), \
            patch("cbztools.upscale.realesrgan.verify") as verify:
        binary = realesrgan.install(model_dir, Console(file=io.StringIO()), api_url="https://api.test/release", timeout=5)

    assert get.call_args_list[0].args[0] == "https://api.test/release"
    assert get.call_args_list[1].args[0].endswith("-ubuntu.zip")
    assert binary == model_dir / REALESRGAN_BINARY
    assert os.access(binary, os.X_OK)
    assert (model_dir / "models" / "realesrgan-x4plus.param").exists()
    assert not (model_dir / "realesrgan-ncnn-vulkan-20220424-ubuntu.zip").exists()
    verify.assert_called_once_with(binary)


def test_install_reports_api_failure(tmp_path):
    with patch("cbztools.upscale.realesrgan.requests.get", side_effect=requests.ConnectionError("offline")), \
            patch("cbztools.upscale.realesrgan.detect_platform", return_value="macos"):
        with pytest.raises(UpscalerSetupError, match="Failed to fetch release information"):
            realesrgan.install(tmp_path / ".model", MagicMock())


def test_unpack_rejects_unknown_format(tmp_path):
    archive = touch(tmp_path / "release.7z")
    with pytest.raises(UpscalerSetupError, match="Unsupported archive format"):
        realesrgan.unpack(archive, tmp_path)


def test_ensure_uses_installed_binary(tmp_path, no_path_binary):
    binary = touch(tmp_path / REALESRGAN_BINARY)
    with patch("cbztools.upscale.realesrgan.verify") as verify, \
            patch("cbztools.upscale.realesrgan.install") as install:
        assert realesrgan.ensure_realesrgan(tmp_path, MagicMock()) == binary
    verify.assert_called_once_with(binary)
    install.assert_not_called()


def test_ensure_installs_when_missing(tmp_path, no_path_binary):
    console = MagicMock()
    with patch("cbztools.upscale.realesrgan.install", return_value=Path("/new/bin")) as install:
        assert realesrgan.ensure_realesrgan(tmp_path, console) == Path("/new/bin")
    install.assert_called_once_with(tmp_path, console)


def test_unpack_tar_gz_release(tmp_path, no_path_binary):
    staging = tmp_path / "staging" / "realesrgan-ncnn-vulkan-linux"
    touch(staging / REALESRGAN_BINARY)
    touch(staging / "models" / "realesrgan-x4plus.param")
    archive = tmp_path / "realesrgan-ncnn-vulkan-linux.tar.gz"
    with tarfile.open(archive, "w:gz") as tf:
        tf.add(staging, arcname=staging.name)

    model_dir = tmp_path / ".model"
    model_dir.mkdir()
    realesrgan.unpack(archive, model_dir)

    assert realesrgan.locate(model_dir) == model_dir / "realesrgan-ncnn-vulkan-linux" / REALESRGAN_BINARY
    assert (model_dir / "realesrgan-ncnn-vulkan-linux" / "models" / "realesrgan-x4plus.param").exists()


def test_download_interrupted_leaves_no_partial_file(tmp_path):
    def chunks(chunk_size):
        yield b"first chunk"
        raise requests.ConnectionError("connection reset")

    response = MagicMock()
    response.__enter__.return_value = response
    response.headers = {"content-length": "1000"}
    response.iter_content.side_effect = chunks

    destination = tmp_path / "release.zip"
    with patch("cbztools.upscale.realesrgan.requests.get", return_value=response):
        with pytest.raises(UpscalerSetupError, match="Failed to download"):
            realesrgan.download("https://example.test/release.zip", destination, Console(file=io.StringIO()), timeout=5)

    assert not destination.exists()
