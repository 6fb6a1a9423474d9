"""Locating, downloading and verifying the Real-ESRGAN ncnn-vulkan binary.

The binary is looked up on PATH first, then in the local model directory
(``.model`` by default). When it is nowhere to be found the matching
release archive is fetched from GitHub and unpacked into the model
directory, models included.
"""

import logging
import platform
import shutil
import subprocess
import tarfile
import zipfile
from pathlib import Path
from typing import Any, Dict, Optional

import requests
from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, TextColumn, TransferSpeedColumn

from cbztools.core.config import settings
from cbztools.core.constants import REALESRGAN_BINARY, REALESRGAN_USAGE_BANNER
from cbztools.core.errors import BinaryBlockedError, UpscalerSetupError

logger = logging.getLogger(__name__)

# Release asset keywords per platform, in order of preference
PLATFORM_KEYWORDS = {
    "macos": ("macos",),
    "ubuntu": ("ubuntu", "linux"),
}

CHUNK_SIZE = 1024 * 256


def detect_platform() -> str:
    """Map the running OS onto a release asset platform name.

    Raises:
        UpscalerSetupError: On anything but macOS and Linux
    """
    system = platform.system()
    if system == "Darwin":
        return "macos"
    if system == "Linux":
        return "ubuntu"
    raise UpscalerSetupError(f"Unsupported platform: {system}. Only macOS and Linux are supported")


def _find_in_dir(root: Path) -> Optional[Path]:
    """Look for the binary directly in ``root`` or in an unpacked release folder below it."""
    direct = root / REALESRGAN_BINARY
    if direct.is_file():
        return direct

    for sub in sorted(root.iterdir()):
        lowered = sub.name.lower()
        if not sub.is_dir() or ("real-esrgan" not in lowered and "realesrgan" not in lowered):
            continue
        candidate = sub / REALESRGAN_BINARY
        if candidate.is_file():
            return candidate
        # macOS releases may ship an application bundle
        for bundle in sorted(sub.glob("*.app")):
            candidate = bundle / "Contents" / "MacOS" / REALESRGAN_BINARY
            if candidate.is_file():
                return candidate
    return None


def locate(model_dir: Path) -> Optional[Path]:
    """Find an installed Real-ESRGAN binary.

    Args:
        model_dir: Local directory releases are unpacked into

    Returns:
        Path to the binary, or None when it isn't installed
    """
    on_path = shutil.which(REALESRGAN_BINARY)
    if on_path:
        return Path(on_path)
    if not model_dir.is_dir():
        return None
    return _find_in_dir(model_dir)


def verify(binary: Path) -> None:
    """Check that the binary actually runs by asking it for its usage text.

    On macOS a freshly downloaded binary is quarantined by Gatekeeper and
    dies before printing anything.

    Raises:
        BinaryBlockedError: If the usage banner doesn't come back
    """
    try:
        result = subprocess.run([str(binary), "-h"], capture_output=True, text=True, errors="replace")
    except OSError as e:
        logger.debug(f"Cannot execute {binary}: {e}")
        raise BinaryBlockedError(binary) from e
    if REALESRGAN_USAGE_BANNER not in (result.stdout or "") + (result.stderr or ""):
        raise BinaryBlockedError(binary)


def models_dir(binary: Path, model_dir: Path) -> Optional[Path]:
    """Directory holding the ``.param``/``.bin`` model files, if one exists."""
    for candidate in (model_dir / "models", binary.parent / "models"):
        if candidate.is_dir():
            return candidate.resolve()
    return None


def select_asset_url(release: Dict[str, Any], platform_name: str) -> str:
    """Pick the download URL for ``platform_name`` from GitHub release JSON.

    Raises:
        UpscalerSetupError: If no asset matches
    """
    urls = [asset.get("browser_download_url") or "" for asset in release.get("assets", [])]
    for keyword in PLATFORM_KEYWORDS.get(platform_name, (platform_name,)):
        for url in urls:
            if keyword in url.rsplit("/", 1)[-1].lower():
                return url
    raise UpscalerSetupError(f"Could not find download URL for {platform_name}")


def download(url: str, destination: Path, console: Console, timeout: int) -> Path:
    """Stream ``url`` to ``destination`` with a progress bar.

    Raises:
        UpscalerSetupError: If the download fails; no partial file is left behind
    """
    try:
        with requests.get(url, stream=True, timeout=timeout) as response:
            response.raise_for_status()
            total = int(response.headers.get("content-length", 0)) or None
            with Progress(
                TextColumn("  {task.description}"),
                BarColumn(),
                DownloadColumn(),
                TransferSpeedColumn(),
                console=console,
                transient=True,
            ) as progress, open(destination, "wb") as f:
                task = progress.add_task(destination.name, total=total)
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
                    progress.update(task, advance=len(chunk))
    except (requests.RequestException, OSError) as e:
        destination.unlink(missing_ok=True)
        raise UpscalerSetupError(f"Failed to download Real-ESRGAN-ncnn-vulkan: {e}") from e
    logger.info(f"Downloaded {url} to {destination}")
    return destination


def unpack(archive: Path, dest: Path) -> None:
    """Unpack a ``.zip`` or ``.tar.gz`` release archive into ``dest``.

    Raises:
        UpscalerSetupError: On an unsupported or corrupt archive
    """
    name = archive.name.lower()
    try:
        if name.endswith(".zip"):
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(dest)
        elif name.endswith((".tar.gz", ".tgz")):
            with tarfile.open(archive, "r:gz") as tf:
                tf.extractall(dest, filter="data")
        else:
            raise UpscalerSetupError(f"Unsupported archive format: {archive.name}")
    except (zipfile.BadZipFile, tarfile.TarError, OSError) as e:
        raise UpscalerSetupError(f"Failed to extract {archive.name}: {e}") from e


def install(
    model_dir: Path,
    console: Console,
    api_url: Optional[str] = None,
    timeout: Optional[int] = None,
) -> Path:
    """Download and unpack the Real-ESRGAN release for this platform.

    Args:
        model_dir: Directory to unpack into; created when missing
        console: Where progress goes
        api_url: GitHub release API endpoint; defaults to settings
        timeout: HTTP timeout in seconds; defaults to settings

    Returns:
        Path to the verified binary

    Raises:
        UpscalerSetupError: If any step fails
    """
    api_url = api_url or settings.realesrgan_release_api
    timeout = timeout or settings.download_timeout
    platform_name = detect_platform()

    console.print("[blue]Setting up Real-ESRGAN (with models)...[/blue]")
    model_dir.mkdir(parents=True, exist_ok=True)

    console.print("  Fetching Real-ESRGAN release information...")
    try:
        response = requests.get(api_url, timeout=timeout, headers={"Accept": "application/vnd.github+json"})
        response.raise_for_status()
        release = response.json()
    except (requests.RequestException, ValueError) as e:
        raise UpscalerSetupError(f"Failed to fetch release information from GitHub: {e}") from e

    url = select_asset_url(release, platform_name)
    archive = model_dir / url.rsplit("/", 1)[-1]

    console.print(f"  Downloading {archive.name}...")
    download(url, archive, console, timeout)

    console.print("  Extracting archive...")
    unpack(archive, model_dir)

    binary = _find_in_dir(model_dir)
    if binary is None:
        raise UpscalerSetupError("Could not find Real-ESRGAN binary in extracted files")
    # zipfile doesn't restore permission bits
    binary.chmod(binary.stat().st_mode | 0o111)

    console.print("  Testing Real-ESRGAN binary...")
    verify(binary)

    archive.unlink(missing_ok=True)
    console.print("[green]  Real-ESRGAN-ncnn-vulkan setup complete[/green]")
    return binary


def ensure_realesrgan(model_dir: Path, console: Console) -> Path:
    """Return a working Real-ESRGAN binary, installing it when absent.

    Raises:
        BinaryBlockedError: If the binary exists but cannot run
        UpscalerSetupError: If installation fails
    """
    binary = locate(model_dir)
    if binary is not None:
        verify(binary)
        console.print("[green]Real-ESRGAN-ncnn-vulkan found[/green]")
        return binary
    console.print("[yellow]Real-ESRGAN-ncnn-vulkan not found, downloading...[/yellow]")
    return install(model_dir, console)
