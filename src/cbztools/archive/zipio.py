"""Reading and writing CBZ archives with :mod:`zipfile`."""

import logging
import os
import shutil
import zipfile
import zlib
from pathlib import Path
from typing import List, Union

from cbztools.core.errors import ArchiveCreationError, ExtractionError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

# General purpose flag bit 11: member name is UTF-8 encoded
UTF8_FLAG = 0x800


def list_files(root: PathLike) -> List[Path]:
    """Return every regular file below ``root``, sorted by path."""
    return sorted(p for p in Path(root).rglob("*") if p.is_file())


def _member_name(info: zipfile.ZipInfo) -> str:
    """Decode a member name, preferring UTF-8 over zipfile's cp437 default.

    Archives built on macOS and Linux routinely store UTF-8 names without
    setting the UTF-8 flag, which zipfile then decodes as cp437.
    """
    if info.flag_bits & UTF8_FLAG:
        return info.filename
    try:
        return info.filename.encode("cp437").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return info.filename


def extract_zip(archive: PathLike, dest: PathLike) -> List[Path]:
    """Extract every file member of a ZIP archive into ``dest``.

    Damaged or encrypted members are skipped with a warning and leave no file
    behind, so that a partially readable archive still yields whatever pages
    survive.

    Args:
        archive: Path to the ZIP/CBZ file
        dest: Existing directory to extract into

    Returns:
        Paths of the extracted files

    Raises:
        ExtractionError: If the archive can't be opened or nothing was extracted
    """
    archive = Path(archive)
    dest = Path(dest).resolve()
    extracted = []

    try:
        zf = zipfile.ZipFile(archive, "r")
    except (zipfile.BadZipFile, OSError) as e:
        raise ExtractionError(f"Failed to open {archive}: {e}") from e

    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            name = _member_name(info)
            target = (dest / name).resolve()
            if not target.is_relative_to(dest):
                logger.warning(f"Refusing to extract {name!r} outside of {dest}")
                continue
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                with zf.open(info) as src, open(target, "wb") as dst:
                    shutil.copyfileobj(src, dst)
            # RuntimeError: encrypted member, EOFError: truncated member
            except (zipfile.BadZipFile, zlib.error, OSError, NotImplementedError, RuntimeError, EOFError) as e:
                logger.warning(f"Skipping damaged member {name!r} in {archive}: {e}")
                target.unlink(missing_ok=True)
                continue
            extracted.append(target)

    if not extracted:
        raise ExtractionError(f"No files extracted from {archive}")
    logger.debug(f"Extracted {len(extracted)} files from {archive}")
    return extracted


def create_cbz(source_dir: PathLike, output: PathLike, compress: bool = True) -> Path:
    """Pack the contents of ``source_dir`` into a CBZ.

    Member names are relative to ``source_dir`` and added in sorted order so
    readers page through them correctly. The archive is written under a
    temporary name and moved into place only once complete.

    Args:
        source_dir: Directory whose files become the archive
        output: Destination ``.cbz`` path
        compress: Deflate members; ``False`` stores them as-is

    Returns:
        The output path

    Raises:
        ArchiveCreationError: If there is nothing to pack or writing fails
    """
    source_dir = Path(source_dir)
    output = Path(output)
    files = list_files(source_dir)
    if not files:
        raise ArchiveCreationError(f"No files to pack in {source_dir}")

    compression = zipfile.ZIP_DEFLATED if compress else zipfile.ZIP_STORED
    partial = output.with_name(f".{output.name}.partial")
    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(partial, "w", compression=compression, strict_timestamps=False) as zf:
            for path in files:
                zf.write(path, path.relative_to(source_dir).as_posix())
        os.replace(partial, output)
    except OSError as e:
        partial.unlink(missing_ok=True)
        raise ArchiveCreationError(f"Failed to create {output}: {e}") from e

    if output.stat().st_size == 0:
        output.unlink()
        raise ArchiveCreationError(f"CBZ file was not created properly: {output}")
    logger.debug(f"Packed {len(files)} files into {output}")
    return output
