"""Discovery of installed applications from desktop entry files."""

from __future__ import annotations

import locale
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .entities import AppEntity

_GROUP = "Desktop Entry"

_ESCAPES = {"s": " ", "n": "\n", "t": "\t", "r": "\r", "\\": "\\"}


def _default_dirs() -> List[str]:
    return [
        "/usr/share/applications",
        "/usr/local/share/applications",
        os.path.join(os.path.expanduser("~"), ".local", "share", "applications"),
    ]


def clean_exec(exec_line: Optional[str]) -> Optional[str]:
    """Drop field codes such as %u or %F from an Exec line."""
    if exec_line is None:
        return None
    out = ""
    for part in exec_line.split(" "):
        if part.startswith("%") and len(part) == 2:
            continue
        if out:
            out += " "
        out += part
    return out


def _read_key_file(path: Path) -> Optional[Dict[str, Dict[str, str]]]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    groups: Dict[str, Dict[str, str]] = {}
    current: Optional[Dict[str, str]] = None
    for raw in text.splitlines():
        line = raw.lstrip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("["):
            end = line.find("]")
            if end == -1:
                return None
            current = groups.setdefault(line[1:end], {})
            continue
        if current is None or "=" not in line:
            return None
        key, value = line.split("=", 1)
        key = key.rstrip()
        if not key:
            return None
        current[key] = value.lstrip()
    return groups


def _unescape(value: str) -> str:
    out = []
    chars = iter(value)
    for ch in chars:
        if ch == "\\":
            nxt = next(chars, None)
            if nxt is None:
                out.append("\\")
            else:
                out.append(_ESCAPES.get(nxt, "\\" + nxt))
        else:
            out.append(ch)
    return "".join(out)


def _language_names() -> List[str]:
    value = ""
    for var in ("LANGUAGE", "LC_ALL", "LC_MESSAGES", "LANG"):
        value = os.environ.get(var, "")
        if value:
            break
    names: List[str] = []
    for entry in value.split(":"):
        if not entry or entry in ("C", "POSIX"):
            continue
        base, _, modifier = entry.partition("@")
        base = base.split(".", 1)[0]
        lang, _, territory = base.partition("_")
        mod = "@" + modifier if modifier else ""
        candidates = []
        if territory:
            candidates += [f"{lang}_{territory}{mod}", f"{lang}_{territory}"]
        candidates += [f"{lang}{mod}", lang]
        for cand in candidates:
            if cand not in names:
                names.append(cand)
    return names


def _get_string(group: Dict[str, str], key: str) -> Optional[str]:
    value = group.get(key)
    return None if value is None else _unescape(value)


def _get_locale_string(group: Dict[str, str], key: str) -> Optional[str]:
    for lang in _language_names():
        value = group.get(f"{key}[{lang}]")
        if value is not None:
            return _unescape(value)
    return _get_string(group, key)


def _get_boolean(group: Dict[str, str], key: str) -> bool:
    return group.get(key, "").strip() in ("true", "1")


def parse_desktop_file(path) -> Optional[AppEntity]:
    """Read a desktop entry; return an AppEntity for visible applications, else None."""
    path = Path(path)
    groups = _read_key_file(path)
    if groups is None:
        return None
    entry = groups.get(_GROUP)
    if entry is None:
        return None
    if _get_string(entry, "Type") != "Application":
        return None
    if _get_boolean(entry, "NoDisplay"):
        return None

    name = _get_locale_string(entry, "Name")
    exec_line = clean_exec(_get_string(entry, "Exec"))
    if name is None or exec_line is None:
        return None
    return AppEntity(
        name=name,
        exec=exec_line,
        icon_name=_get_string(entry, "Icon"),
        desktop_path=str(path),
        categories=_get_string(entry, "Categories"),
    )


class AppRepository:
    """Collects applications from desktop entry directories, sorted by name."""

    def __init__(self, search_dirs: Optional[Iterable] = None):
        self.search_dirs = [str(d) for d in search_dirs] if search_dirs is not None else _default_dirs()
        self.apps: List[AppEntity] = []

    def _scan(self, directory: str) -> List[AppEntity]:
        try:
            names = sorted(os.listdir(directory))
        except OSError:
            return []
        found = []
        for filename in names:
            if not filename.endswith(".desktop"):
                continue
            app = parse_desktop_file(os.path.join(directory, filename))
            if app is not None:
                found.append(app)
        return found

    def load_apps(self) -> List[AppEntity]:
        """Rescan all directories, replace the app list and return it."""
        apps = [app for directory in self.search_dirs for app in self._scan(directory)]
        apps.sort(key=lambda app: locale.strxfrm(app.name))
        self.apps = apps
        return self.apps