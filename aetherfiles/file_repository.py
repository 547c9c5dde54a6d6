"""Directory listing behind an interface, with a local-filesystem implementation."""

from __future__ import annotations

import abc
import mimetypes
import os
import stat
from pathlib import Path
from typing import List
from urllib.parse import unquote, urlparse

from .entities import FileEntity


class FileRepository(abc.ABC):
    """Source of directory listings."""

    @abc.abstractmethod
    def list_directory(self, path) -> List[FileEntity]:
        """Return the entries of the directory at path."""


def _resolve(path) -> str:
    text = os.fspath(path)
    if text.startswith("file://"):
        return unquote(urlparse(text).path)
    if text.startswith("~"):
        return os.path.expanduser(text)
    return text


def _icon_name(name: str, is_dir: bool) -> str:
    if is_dir:
        return "folder"
    mime, _ = mimetypes.guess_type(name, strict=False)
    if mime:
        return mime.replace("/", "-")
    return "text-x-generic"


class LocalFileRepository(FileRepository):
    """Lists directories on the local filesystem; accepts paths, ~ and file:// URIs."""

    def list_directory(self, path) -> List[FileEntity]:
        """Return a FileEntity for every entry; raise OSError if it cannot be read."""
        directory = _resolve(path)
        entities: List[FileEntity] = []
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    st = entry.stat()
                except OSError:
                    st = entry.stat(follow_symlinks=False)
                is_dir = stat.S_ISDIR(st.st_mode)
                full = os.path.abspath(entry.path)
                entities.append(
                    FileEntity(
                        name=entry.name,
                        path=full,
                        uri=Path(full).as_uri(),
                        size=st.st_size,
                        is_directory=is_dir,
                        icon_name=_icon_name(entry.name, is_dir),
                    )
                )
        return entities