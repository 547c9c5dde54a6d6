"""The file manager's internal cut/copy/paste clipboard."""

from __future__ import annotations

import enum
import errno
import os
import shutil
import stat
from typing import Iterable, List, Optional, Tuple


class ClipboardOp(enum.Enum):
    """What pasting the clipboard's paths will do."""

    NONE = 0
    COPY = 1
    CUT = 2


def _basename(path: str) -> str:
    stripped = path.rstrip("/")
    if not stripped:
        return "/" if path else "."
    return os.path.basename(stripped)


def _copy_file(src: str, dest: str) -> None:
    st = os.stat(src)
    if stat.S_ISDIR(st.st_mode):
        raise IsADirectoryError(errno.EISDIR, "Can't recursively copy directory", src)
    with open(src, "rb") as fin, open(dest, "xb") as fout:
        shutil.copyfileobj(fin, fout)
    shutil.copymode(src, dest)


def _move(src: str, dest: str) -> None:
    os.lstat(src)
    if os.path.lexists(dest):
        raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), dest)
    try:
        os.rename(src, dest)
    except OSError as err:
        if err.errno != errno.EXDEV:
            raise
        shutil.move(src, dest)


class Clipboard:
    """Holds paths marked for copying or moving, and pastes them into a directory."""

    def __init__(self) -> None:
        self.paths: Tuple[str, ...] = ()
        self.op = ClipboardOp.NONE

    def set(self, paths: Optional[Iterable[str]], op: ClipboardOp) -> None:
        """Replace the clipboard's contents with a copy of paths."""
        self.paths = tuple(paths) if paths is not None else ()
        self.op = ClipboardOp(op)

    def has_content(self) -> bool:
        """True when there is at least one path and an operation to apply."""
        return bool(self.paths) and self.op is not ClipboardOp.NONE

    def paste(self, dest_dir: str) -> List[str]:
        """Copy or move every path into dest_dir and return the new paths.

        Every path is attempted; if any failed, the first error is raised
        afterwards. A successful cut empties the clipboard.
        """
        if not self.has_content():
            return []
        transfer = _copy_file if self.op is ClipboardOp.COPY else _move
        first_error: Optional[OSError] = None
        pasted: List[str] = []
        for src in self.paths:
            dest = os.path.join(dest_dir, _basename(src))
            try:
                transfer(src, dest)
            except OSError as err:
                if first_error is None:
                    first_error = err
                continue
            pasted.append(dest)
        if first_error is not None:
            raise first_error
        if self.op is ClipboardOp.CUT:
            self.paths = ()
            self.op = ClipboardOp.NONE
        return pasted