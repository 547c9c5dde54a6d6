"""Domain objects shown by the file manager: files, applications, drives, devices."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

ThumbnailCallback = Callable[["FileEntity"], None]


@dataclass
class FileEntity:
    """A file or directory listed in a view, with an optional thumbnail."""

    name: str
    path: Optional[str]
    uri: Optional[str]
    size: int
    is_directory: bool
    icon_name: Optional[str]
    thumbnail: Any = field(default=None, compare=False)
    is_loading_thumbnail: bool = field(default=False, compare=False)
    _thumbnail_listeners: List[ThumbnailCallback] = field(
        default_factory=list, init=False, repr=False, compare=False
    )

    def set_thumbnail(self, thumbnail: Any) -> None:
        """Replace the thumbnail and notify listeners if it actually changed."""
        if thumbnail is self.thumbnail:
            return
        self.thumbnail = thumbnail
        for callback in list(self._thumbnail_listeners):
            callback(self)

    def connect_thumbnail_updated(self, callback: ThumbnailCallback) -> Callable[[], None]:
        """Register a listener for thumbnail changes; returns a function that removes it."""
        self._thumbnail_listeners.append(callback)

        def disconnect() -> None:
            if callback in self._thumbnail_listeners:
                self._thumbnail_listeners.remove(callback)

        return disconnect


@dataclass(frozen=True)
class AppEntity:
    """An installed desktop application."""

    name: str
    exec: str
    icon_name: Optional[str] = None
    desktop_path: Optional[str] = None
    categories: Optional[str] = None


@dataclass(frozen=True)
class DriveEntity:
    """A volume or mount shown in the sidebar."""

    name: Optional[str]
    icon_name: Optional[str]
    is_mounted: bool
    path: Optional[str] = None
    volume: Any = None
    mount: Any = None


@dataclass(frozen=True)
class BluetoothDevice:
    """A Bluetooth device known to the system."""

    name: str
    address: str
    object_path: str
    paired: bool = False
    trusted: bool = False