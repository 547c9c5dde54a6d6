"""Stand-alone elevated helper: one file operation per invocation.

Usage: ``helper <command> [args...]`` where command is one of list, copy,
move, delete, mkdir, touch, compress or extract. ``list`` prints one JSON
object per entry; the others print ``OK`` or ``ERR:<message>``.
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
from typing import Callable, Dict, List, Optional, Sequence

from .privileged_ops import format_entry

_IMAGE_EXTS = {"png", "jpg", "jpeg", "gif", "bmp", "webp", "svg", "tiff"}
_VIDEO_EXTS = {"mp4", "mkv", "webm", "avi", "mov", "flv", "wmv"}
_AUDIO_EXTS = {"mp3", "flac", "ogg", "wav", "aac", "m4a"}
_TEXT_EXTS = {"txt", "md", "rst"}
_SCRIPT_EXTS = {"c", "h", "cpp", "py", "js", "ts", "rs", "go"}
_ARCHIVE_EXTS = {"zip", "tar", "gz", "xz", "7z", "rar", "bz2"}

_ICON_TABLE = (
    (_IMAGE_EXTS, "image-x-generic"),
    (_VIDEO_EXTS, "video-x-generic"),
    (_AUDIO_EXTS, "audio-x-generic"),
    (_TEXT_EXTS, "text-x-generic"),
    (_SCRIPT_EXTS, "text-x-script"),
    (_ARCHIVE_EXTS, "package-x-generic"),
    ({"pdf"}, "application-pdf"),
)

_COMPRESSORS = {
    "zip": ["zip", "-rq"],
    "tar.xz": ["tar", "-cJf"],
    "7z": ["7z", "a", "-y"],
}


class _Failure(Exception):
    """An operation failed with the message to report."""


def guess_icon(name: Optional[str], is_dir: bool) -> str:
    """Pick a themed icon name from a file name's extension."""
    if is_dir:
        return "folder"
    if not name or "." not in name:
        return "text-x-generic"
    ext = name.rpartition(".")[2].lower()
    for extensions, icon in _ICON_TABLE:
        if ext in extensions:
            return icon
    return "text-x-generic"


def _say(text: str) -> None:
    sys.stdout.write(text + "\n")
    sys.stdout.flush()


def _reason(err: OSError) -> str:
    return err.strerror or str(err)


def _list(path: str) -> None:
    try:
        names = os.listdir(path)
    except OSError as err:
        raise _Failure(f"Cannot open directory: {_reason(err)}") from err
    for name in names:
        full = path + "/" + name
        try:
            st = os.lstat(full)
            is_dir, size = stat.S_ISDIR(st.st_mode), st.st_size
        except OSError:
            is_dir, size = False, 0
        sys.stdout.write(format_entry(name, full, is_dir, size, guess_icon(name, is_dir)) + "\n")
    sys.stdout.flush()


def _copy_tree(src: str, dst: str) -> None:
    st = os.lstat(src)
    if stat.S_ISDIR(st.st_mode):
        try:
            os.mkdir(dst, st.st_mode & 0o777)
        except FileExistsError:
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


def _copy(src: str, dst: str) -> None:
    try:
        _copy_tree(src, _final_destination(src, dst))
    except OSError as err:
        raise _Failure(f"Copy failed: {_reason(err)}") from err


def _move(src: str, dst: str) -> None:
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
        raise _Failure(f"Move failed: {_reason(err)}") from err


def _delete(path: str) -> None:
    try:
        _delete_tree(path)
    except OSError as err:
        raise _Failure(f"Delete failed: {_reason(err)}") from err


def _mkdir(path: str) -> None:
    cuts = [i for i, ch in enumerate(path) if ch == "/" and i > 0]
    if path:
        cuts.append(len(path))
    for cut in cuts:
        prefix = path[:cut]
        try:
            os.mkdir(prefix, 0o755)
        except FileExistsError:
            continue
        except OSError as err:
            raise _Failure(f"mkdir failed at '{prefix}': {_reason(err)}") from err


def _touch(path: str) -> None:
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
    except FileExistsError:
        return
    except OSError as err:
        raise _Failure(f"touch failed: {_reason(err)}") from err
    os.close(fd)


def _run_tool(argv: List[str]) -> bool:
    try:
        result = subprocess.run(argv, check=False)
    except OSError:
        return False
    return result.returncode == 0


def _compress(args: Sequence[str]) -> None:
    if len(args) < 3:
        raise _Failure("compress: insufficient arguments")
    fmt, dest, sources = args[0], args[1], list(args[2:])
    base = _COMPRESSORS.get(fmt)
    if base is None:
        raise _Failure("Unsupported compression format")
    if not _run_tool([*base, dest, *sources]):
        raise _Failure("Compression failed")


def _extract(archive: str, dest: str) -> None:
    if ".zip" in archive:
        argv = ["unzip", "-q", archive, "-d", dest]
    elif ".tar" in archive:
        argv = ["tar", "-xf", archive, "-C", dest]
    elif ".7z" in archive:
        argv = ["7z", "x", "-y", archive, "-o" + dest]
    else:
        raise _Failure("Unsupported archive format")
    if not _run_tool(argv):
        raise _Failure("Extraction failed")


# command -> (minimum argument count, message when missing, action)
_COMMANDS: Dict[str, tuple] = {
    "list": (1, "list: missing path", lambda a: _list(a[0])),
    "copy": (2, "copy: missing src or dst", lambda a: _copy(a[0], a[1])),
    "move": (2, "move: missing src or dst", lambda a: _move(a[0], a[1])),
    "delete": (1, "delete: missing path", lambda a: _delete(a[0])),
    "mkdir": (1, "mkdir: missing path", lambda a: _mkdir(a[0])),
    "touch": (1, "touch: missing path", lambda a: _touch(a[0])),
    "compress": (0, "", _compress),
    "extract": (2, "extract: missing archive or dest", lambda a: _extract(a[0], a[1])),
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one helper command given as [command, args...]; return the exit status."""
    argv = sys.argv[1:] if argv is None else list(argv)
    if not argv:
        print("Usage: aetherfiles-helper <command> [args...]", file=sys.stderr)
        return 1
    cmd, args = argv[0], argv[1:]
    spec = _COMMANDS.get(cmd)
    if spec is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        return 1
    min_args, missing, action = spec
    action_fn: Callable[[List[str]], None] = action
    if len(args) < min_args:
        _say("ERR:" + missing)
        return 1
    try:
        action_fn(args)
    except _Failure as err:
        _say(f"ERR:{err}")
        return 1
    if cmd != "list":
        _say("OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())