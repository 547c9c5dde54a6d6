"""Client side of the elevated helper: a long-lived daemon started once via pkexec.

Commands are tab-separated lines written to the daemon's stdin. Replies are read
from its stdout: JSON lines followed by ``DONE`` for listings, ``OK`` or
``ERR:<message>`` for write operations.
"""

from __future__ import annotations

import atexit
import os
import re
import subprocess
import sys
from typing import Iterable, List, Optional, Sequence
from urllib.parse import quote

from .entities import FileEntity
from .privileged_ops import PrivilegedError

PKEXEC_PATH = "/usr/bin/pkexec"
READ_CHUNK = 65536

_STRING_ESCAPES = {'"': '"', "\\": "\\", "n": "\n", "r": "\r", "t": "\t"}
_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_URI_SAFE = "/!$&'()*+,;=:@"


def _default_command() -> List[str]:
    return [PKEXEC_PATH, sys.executable, "-m", "aetherfiles.cli", "--privileged-daemon"]


def is_available() -> bool:
    """True when pkexec and the interpreter that runs the helper are executable."""
    return all(
        os.path.isfile(path) and os.access(path, os.X_OK)
        for path in (PKEXEC_PATH, sys.executable)
    )


def json_get(text: str, key: str, is_bool: bool = False) -> Optional[str]:
    """Extract the raw value of ``key`` from a flat one-line JSON object."""
    marker = f'"{key}":'
    start = text.find(marker)
    if start == -1:
        return None
    rest = text[start + len(marker):].lstrip(" ")
    if is_bool:
        if rest.startswith("true"):
            return "true"
        if rest.startswith("false"):
            return "false"
        return None
    if rest.startswith('"'):
        out = []
        chars = iter(rest[1:])
        for ch in chars:
            if ch == '"':
                break
            if ch == "\\":
                nxt = next(chars, None)
                if nxt is None:
                    out.append("\\")
                    break
                out.append(_STRING_ESCAPES.get(nxt, nxt))
            else:
                out.append(ch)
        return "".join(out)
    match = re.match(r"[^,}\n]*", rest)
    return match.group(0)


def _to_int(text: Optional[str]) -> int:
    if not text:
        return 0
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _path_to_uri(path: str) -> str:
    if os.path.isabs(path):
        return "file://" + quote(path, safe=_URI_SAFE)
    return "file://" + path


def parse_line(line: Optional[str]) -> Optional[FileEntity]:
    """Turn one JSON listing line into a FileEntity, or None if it is not one."""
    if not line or not line.startswith("{"):
        return None
    name = json_get(line, "name")
    path = json_get(line, "path")
    if name is None or path is None:
        return None
    icon = json_get(line, "icon")
    return FileEntity(
        name=name,
        path=path,
        uri=_path_to_uri(path),
        size=_to_int(json_get(line, "size")),
        is_directory=json_get(line, "is_dir", True) == "true",
        icon_name=icon if icon is not None else "text-x-generic",
    )


def build_entries(output: Optional[str]) -> List[FileEntity]:
    """Parse every listing line in the daemon's output, skipping anything else."""
    if not output:
        return []
    return [entity for entity in map(parse_line, output.split("\n")) if entity is not None]


def check_op_output(output: Optional[str]) -> None:
    """Raise PrivilegedError when a write operation's reply reports an error."""
    if not output or output.startswith("OK"):
        return
    if output.startswith("ERR:"):
        raise PrivilegedError(output[4:])


def response_complete(text: str, listing: bool) -> bool:
    """Tell whether the text read so far holds the reply's terminator."""
    if listing:
        return "DONE\n" in text or text.endswith("\nDONE") or text == "DONE"
    return (
        "\nOK\n" in text
        or text.endswith("\nOK")
        or text.startswith("OK")
        or "ERR:" in text
    )


class PrivilegedDaemon:
    """A helper process kept alive for the session, started once on demand."""

    def __init__(self, command: Optional[Sequence[str]] = None):
        self.command = list(command) if command is not None else _default_command()
        self._proc: Optional[subprocess.Popen] = None
        self._ready = False
        self._exit_hook = False

    def __enter__(self) -> "PrivilegedDaemon":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.end()

    def start(self) -> bool:
        """Launch the daemon and wait for READY; return whether it is running."""
        if self._ready:
            return True
        try:
            proc = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as err:
            print(f"daemon_start: {err}", file=sys.stderr)
            return False

        first = proc.stdout.readline().decode("utf-8", errors="replace")
        if first.rstrip("\n").replace("\r", "") != "READY":
            print("daemon_start: did not receive READY", file=sys.stderr)
            proc.kill()
            proc.wait()
            proc.stdin.close()
            proc.stdout.close()
            return False

        self._proc = proc
        self._ready = True
        if not self._exit_hook:
            atexit.register(self.end)
            self._exit_hook = True
        return True

    def is_running(self) -> bool:
        """True once the daemon has announced itself and not been ended."""
        return self._ready

    def _send(self, cmd: str) -> None:
        try:
            self._proc.stdin.write(cmd.encode("utf-8", errors="surrogateescape"))
            self._proc.stdin.flush()
        except (OSError, ValueError) as err:
            print(f"daemon_send: {err}", file=sys.stderr)
            raise PrivilegedError("Failed to send command to daemon") from err

    def _read_reply(self, listing: bool) -> str:
        buf = bytearray()
        while True:
            chunk = self._proc.stdout.read1(READ_CHUNK)
            if not chunk:
                break
            buf += chunk
            if response_complete(buf.decode("utf-8", errors="replace"), listing):
                break
        return buf.decode("utf-8", errors="replace").rstrip("\r\n")

    def _dispatch(self, fields: Iterable[str], listing: bool) -> str:
        if not self._ready:
            raise PrivilegedError("Privileged daemon not running")
        self._send("\t".join(fields) + "\n")
        return self._read_reply(listing)

    def _operation(self, *fields: str) -> None:
        check_op_output(self._dispatch(fields, listing=False))

    def list(self, path: str) -> List[FileEntity]:
        """List a protected directory with elevated rights."""
        output = self._dispatch(("list", path), listing=True)
        cut = output.rfind("\nDONE")
        if cut == -1:
            cut = output.find("DONE")
        if cut != -1:
            output = output[:cut]
        return build_entries(output)

    def copy(self, src: str, dst: str) -> None:
        """Copy a file or tree with elevated rights."""
        self._operation("copy", src, dst)

    def move(self, src: str, dst: str) -> None:
        """Move a file or tree with elevated rights."""
        self._operation("move", src, dst)

    def delete(self, path: str) -> None:
        """Delete a file or tree with elevated rights."""
        self._operation("delete", path)

    def mkdir(self, path: str) -> None:
        """Create a directory and its parents with elevated rights."""
        self._operation("mkdir", path)

    def touch(self, path: str) -> None:
        """Create an empty file with elevated rights."""
        self._operation("touch", path)

    def compress(self, fmt: str, dest: str, sources: Iterable[str]) -> None:
        """Create an archive with elevated rights."""
        self._operation("compress", fmt, dest, *(sources or ()))

    def extract(self, archive: str, dest: str) -> None:
        """Unpack an archive with elevated rights."""
        self._operation("extract", archive, dest)

    def end(self) -> None:
        """Ask the daemon to quit and release its pipes."""
        if not self._ready:
            return
        proc = self._proc
        try:
            self._send("quit\n")
        except PrivilegedError:
            pass
        try:
            proc.stdin.close()
        except OSError:
            pass
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
        proc.stdout.close()
        self._ready = False
        self._proc = None