"""Extracting and creating archives with the system's archiver tools."""

from __future__ import annotations

import os
import subprocess
from typing import Iterable, List, NamedTuple, Optional

_TAR_SUFFIXES = (".tar.xz", ".tar.gz", ".tar")

_COMPRESSORS = {
    "zip": ["zip", "-rq"],
    "tar.xz": ["tar", "-cJf"],
    "7z": ["7z", "a", "-y"],
}


class ArchiveError(Exception):
    """An archive could not be extracted or created."""


class ArchiveCommand(NamedTuple):
    """A tool invocation: its argument vector and the directory it runs in."""

    argv: List[str]
    cwd: Optional[str] = None


def _basename(path: str) -> str:
    stripped = path.rstrip("/")
    if not stripped:
        return "/" if path else "."
    return os.path.basename(stripped)


def extract_command(archive_path: str, dest_dir: str) -> ArchiveCommand:
    """Choose the extraction tool from the archive's suffix."""
    if archive_path.endswith(".zip"):
        argv = ["unzip", "-q", archive_path, "-d", dest_dir]
    elif archive_path.endswith(_TAR_SUFFIXES):
        argv = ["tar", "-xf", archive_path, "-C", dest_dir]
    elif archive_path.endswith(".7z"):
        argv = ["7z", "x", "-y", archive_path, "-o" + dest_dir]
    else:
        raise ArchiveError("Unsupported archive format")
    return ArchiveCommand(argv)


def compress_command(
    source_paths: Optional[Iterable[str]], dest_archive_path: str, fmt: str
) -> ArchiveCommand:
    """Build the compression command.

    It runs in the first source's parent directory and names the sources by
    their base names, so the archive holds no absolute paths.
    """
    sources = list(source_paths or ())
    if not sources:
        raise ArchiveError("No source files provided")
    base = _COMPRESSORS.get(fmt)
    if base is None:
        raise ArchiveError("Unsupported compression format")
    cwd = os.path.dirname(sources[0]) or "."
    argv = [*base, dest_archive_path, *(_basename(p) for p in sources)]
    return ArchiveCommand(argv, cwd)


def _run(command: ArchiveCommand) -> None:
    try:
        result = subprocess.run(command.argv, cwd=command.cwd, check=False)
    except OSError as err:
        raise ArchiveError(str(err)) from err
    if result.returncode != 0:
        raise ArchiveError("Archiver process failed or exited with error.")


def extract(archive_path: str, dest_dir: str) -> None:
    """Unpack an archive into dest_dir; raise ArchiveError on failure."""
    _run(extract_command(archive_path, dest_dir))


def compress(
    source_paths: Optional[Iterable[str]], dest_archive_path: str, fmt: str
) -> None:
    """Pack the sources into a new archive; raise ArchiveError on failure."""
    _run(compress_command(source_paths, dest_archive_path, fmt))