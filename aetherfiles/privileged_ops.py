"""File operations carried out by the elevated helper, in one-shot or daemon mode.

Replies are written as text lines: ``OK``, ``ERR:<message>``, or one JSON
object per directory entry for ``list`` (followed by ``DONE`` in daemon mode).
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
from typing import Callable, Dict, Iterable, List, NamedTuple, Sequence, TextIO

MAX_FIELDS = 255

_IMAGE_EXTS = {"png", "jpg", "jpeg", "gif", "bmp", "svg", "webp"}
_VIDEO_EXTS = {"mp4", "mkv", "avi", "mov", "webm"}
_AUDIO_EXTS = {"mp3", "flac", "ogg", "wav", "aac"}
_ARCHIVE_EXTS = {"zip", "tar", "gz", "xz", "7z", "rar", "bz2"}
_SCRIPT_EXTS = {"c", "h", "cpp", "py", "js", "rs"}

_ESCAPES = {'"': '\\"', "\\": "\\\\", "\n": "\\n", "\r": "\\r", "\t": "\\t"}

_COMPRESSORS = {
    "zip": ["zip", "-rq"],
    "tar.xz": ["tar", "-cJf"],
    "7z": ["7z", "a", "-y"],
}


class PrivilegedError(Exception):
    """A privileged operation failed; the message is what gets reported."""


def _os_message(err: OSError) -> str:
    return err.strerror or str(err)


def guess_icon(name: str, is_dir: bool) -> str:
    """Pick a themed icon name from a file name's extension."""
    if is_dir:
        return "folder"
    if "." not in name:
        return "text-x-generic"
    ext = name.rpartition(".")[2].lower()
    if ext in _IMAGE_EXTS:
        return "image-x-generic"
    if ext in _VIDEO_EXTS:
        return "video-x-generic"
    if ext in _AUDIO_EXTS:
        return "audio-x-generic"
    if ext in _ARCHIVE_EXTS:
        return "package-x-generic"
    if ext == "pdf":
        return "application-pdf"
    if ext in _SCRIPT_EXTS:
        return "text-x-script"
    return "text-x-generic"


def _escape(text: str) -> str:
    return "".join(_ESCAPES.get(ch, ch) for ch in text)


def format_entry(name: str, path: str, is_dir: bool, size: int, icon: str) -> str:
    """Render one directory entry as a single JSON line (without newline)."""
    return (
        '{"name":"' + _escape(name)
        + '","path":"' + _escape(path)
        + '","is_dir":' + ("true" if is_dir else "false")
        + ',"size":' + str(int(size))
        + ',"icon":"' + _escape(icon) + '"}'
    )


def list_entries(path: str) -> List[str]:
    """Return a JSON line for every entry of a directory."""
    try:
        names = os.listdir(path)
    except OSError as err:
        raise PrivilegedError(_os_message(err)) from err
    lines = []
    for name in names:
        full = path + "/" + name
        try:
            st = os.lstat(full)
            is_dir, size = stat.S_ISDIR(st.st_mode), st.st_size
        except OSError:
            is_dir, size = False, 0
        lines.append(format_entry(name, full, is_dir, size, guess_icon(name, is_dir)))
    return lines


def _copy_tree(src: str, dst: str) -> None:
    st = os.lstat(src)
    if stat.S_ISDIR(st.st_mode):
        try:
            os.mkdir(dst, st.st_mode & 0o777)
        except OSError:
            pass
        for name in os.listdir(src):
            _copy_tree(f"{src}/{name}", f"{dst}/{name}")
        return
    with open(src, "rb") as fin:
        fd = os.open(dst, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, st.st_mode & 0o666)
        with os.fdopen(fd, "wb") as fout:
            shutil.copyfileobj(fin, fout, 65536)


def _delete_tree(path: str) -> None:
    st = os.lstat(path)
    if stat.S_ISDIR(st.st_mode):
        for name in os.listdir(path):
            _delete_tree(f"{path}/{name}")
        os.rmdir(path)
    else:
        os.unlink(path)


def _final_destination(src: str, dst: str) -> str:
    if os.path.isdir(dst):
        return f"{dst}/{src.rpartition('/')[2]}"
    return dst


def copy_path(src: str, dst: str) -> None:
    """Copy a file or tree; an existing directory destination receives it inside."""
    final = _final_destination(src, dst)
    try:
        _copy_tree(src, final)
    except OSError as err:
        raise PrivilegedError(_os_message(err)) from err


def move_path(src: str, dst: str) -> None:
    """Move by renaming, falling back to copy-then-delete across filesystems."""
    final = _final_destination(src, dst)
    try:
        os.rename(src, final)
        return
    except OSError:
        pass
    try:
        _copy_tree(src, final)
        _delete_tree(src)
    except OSError as err:
        raise PrivilegedError(_os_message(err)) from err


def delete_path(path: str) -> None:
    """Delete a file, or a directory together with everything beneath it."""
    try:
        _delete_tree(path)
    except OSError as err:
        raise PrivilegedError(_os_message(err)) from err


def make_dirs(path: str) -> None:
    """Create a directory and any missing parents with mode 0755."""
    cuts = [i for i, ch in enumerate(path) if ch == "/" and i > 0]
    if path:
        cuts.append(len(path))
    for cut in cuts:
        try:
            os.mkdir(path[:cut], 0o755)
        except FileExistsError:
            continue
        except OSError as err:
            raise PrivilegedError(_os_message(err)) from err


def touch(path: str) -> None:
    """Create an empty file unless something already exists at the path."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError:
        return
    except OSError as err:
        raise PrivilegedError(_os_message(err)) from err
    os.close(fd)


def _run_tool(argv: Sequence[str]) -> bool:
    try:
        result = subprocess.run(list(argv), stdout=subprocess.DEVNULL, check=False)
    except OSError:
        return False
    return result.returncode == 0


def compress(fmt: str, dest: str, sources: Iterable[str]) -> None:
    """Create an archive of the given format ("zip", "tar.xz" or "7z")."""
    sources = list(sources)
    if not sources:
        raise PrivilegedError("compress: insufficient arguments")
    base = _COMPRESSORS.get(fmt)
    if base is None:
        raise PrivilegedError("Unsupported format")
    if not _run_tool([*base, dest, *sources]):
        raise PrivilegedError("Compression failed")


def extract(archive: str, dest: str) -> None:
    """Unpack an archive into a directory using the matching tool."""
    if ".zip" in archive:
        argv = ["unzip", "-q", archive, "-d", dest]
    elif ".tar" in archive:
        argv = ["tar", "-xf", archive, "-C", dest]
    elif ".7z" in archive:
        argv = ["7z", "x", "-y", archive, "-o" + dest]
    else:
        raise PrivilegedError("Unsupported archive format")
    if not _run_tool(argv):
        raise PrivilegedError("Extraction failed")


def split_command(line: str) -> List[str]:
    """Split a tab-separated command line into at most 255 fields."""
    if not line:
        return []
    fields = line.split("\t")
    if fields[-1] == "":
        fields.pop()
    return fields[:MAX_FIELDS]


class _Operation(NamedTuple):
    min_args: int
    missing: str
    action: Callable[..., None]


def _compress_args(fmt: str, dest: str, *sources: str) -> None:
    compress(fmt, dest, sources)


_OPERATIONS: Dict[str, _Operation] = {
    "list": _Operation(1, "list: missing path", lambda path, *_: None),
    "copy": _Operation(2, "copy: missing args", lambda src, dst, *_: copy_path(src, dst)),
    "move": _Operation(2, "move: missing args", lambda src, dst, *_: move_path(src, dst)),
    "delete": _Operation(1, "delete: missing path", lambda path, *_: delete_path(path)),
    "mkdir": _Operation(1, "mkdir: missing path", lambda path, *_: make_dirs(path)),
    "touch": _Operation(1, "touch: missing path", lambda path, *_: touch(path)),
    "compress": _Operation(3, "compress: insufficient arguments", _compress_args),
    "extract": _Operation(2, "extract: missing args", lambda a, d, *_: extract(a, d)),
}


def _write(out: TextIO, text: str) -> None:
    out.write(text + "\n")
    out.flush()


def _execute(op: str, args: List[str], out: TextIO) -> bool:
    spec = _OPERATIONS[op]
    if len(args) < spec.min_args:
        _write(out, "ERR:" + spec.missing)
        return False
    try:
        if op == "list":
            for entry in list_entries(args[0]):
                out.write(entry + "\n")
            out.flush()
            return True
        spec.action(*args)
    except PrivilegedError as err:
        _write(out, f"ERR:{err}")
        return False
    _write(out, "OK")
    return True


def run(argv: Sequence[str], out: TextIO = None) -> int:
    """Perform one operation given as [operation, args...]; return an exit code."""
    out = sys.stdout if out is None else out
    argv = list(argv)
    if not argv:
        print("Missing operation", file=sys.stderr)
        return 1
    op, args = argv[0], argv[1:]
    if op not in _OPERATIONS:
        print(f"Unknown operation: {op}", file=sys.stderr)
        return 1
    return 0 if _execute(op, args, out) else 1


def run_daemon(inp: TextIO = None, out: TextIO = None) -> int:
    """Serve tab-separated commands from inp until EOF or "quit"."""
    inp = sys.stdin if inp is None else inp
    out = sys.stdout if out is None else out
    _write(out, "READY")
    for raw in inp:
        line = raw[:-1] if raw.endswith("\n") else raw
        if line.endswith("\r"):
            line = line[:-1]
        if not line:
            continue
        if line == "quit":
            break
        fields = split_command(line)
        if not fields:
            continue
        op, args = fields[0], fields[1:]
        if op not in _OPERATIONS:
            _write(out, "ERR:Unknown operation")
            continue
        if op == "list" and args:
            _execute(op, args, out)
            _write(out, "DONE")
            continue
        _execute(op, args, out)
    return 0