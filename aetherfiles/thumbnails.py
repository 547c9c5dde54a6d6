"""Thumbnails for images and videos, cached as PNG files keyed by URI."""

from __future__ import annotations

import hashlib
import os
import random
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Tuple
from urllib.parse import unquote, urlparse

from PIL import Image, PngImagePlugin, UnidentifiedImageError

THUMBNAIL_SIZE = 256
URI_KEY = "Thumb::URI"

_BORDER_WIDTH = 20
_HOLE_SIZE = 10
_HOLE_OFFSET = 5
_HOLE_PERIOD = 24
_HOLE_START = 7
_STRIP_SHADE = 15
_HOLE_SHADE = 240


class ThumbnailError(Exception):
    """A thumbnail could not be produced."""


def _default_cache_dir() -> str:
    return os.environ.get("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache")


def thumbnail_path(uri: str, cache_dir=None) -> Path:
    """Return the cache file for a URI: thumbnails/large/<md5 of uri>.png.

    The containing directory is created with mode 0700 if it is missing.
    """
    base = Path(cache_dir) if cache_dir is not None else Path(_default_cache_dir())
    thumb_dir = base / "thumbnails" / "large"
    thumb_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
    digest = hashlib.md5(uri.encode("utf-8")).hexdigest()
    return thumb_dir / f"{digest}.png"


def _fill(image: Image.Image, box: Tuple[int, int, int, int], shade: int) -> None:
    x0, y0, x1, y1 = box
    x0, x1 = max(0, x0), min(image.width, x1)
    y0, y1 = max(0, y0), min(image.height, y1)
    if x0 >= x1 or y0 >= y1:
        return
    color = (shade, shade, shade, 255) if image.mode == "RGBA" else (shade, shade, shade)
    image.paste(color, (x0, y0, x1, y1))


def apply_film_strip(image: Image.Image) -> Image.Image:
    """Paint dark film borders with sprocket holes onto an RGB/RGBA image, in place."""
    if image.mode not in ("RGB", "RGBA"):
        raise ValueError(f"unsupported image mode: {image.mode}")
    width, height = image.size
    _fill(image, (0, 0, _BORDER_WIDTH, height), _STRIP_SHADE)
    _fill(image, (width - _BORDER_WIDTH, 0, width, height), _STRIP_SHADE)
    left = (_HOLE_OFFSET, _HOLE_OFFSET + _HOLE_SIZE)
    right_start = width - _BORDER_WIDTH + _HOLE_OFFSET
    right = (right_start, right_start + _HOLE_SIZE)
    for period_start in range(0, height, _HOLE_PERIOD):
        y0 = period_start + _HOLE_START
        y1 = y0 + _HOLE_SIZE
        for x0, x1 in (left, right):
            _fill(image, (x0, y0, x1, y1), _HOLE_SHADE)
    return image


def _normalise_mode(image: Image.Image) -> Image.Image:
    if image.mode in ("RGB", "RGBA"):
        return image
    has_alpha = image.mode in ("LA", "PA") or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def _open_image(path) -> Optional[Image.Image]:
    try:
        with Image.open(path) as img:
            img.load()
            return _normalise_mode(img)
    except (OSError, UnidentifiedImageError, ValueError):
        return None


def load_and_crop_image(path) -> Optional[Image.Image]:
    """Scale the short side to 256 pixels and crop the centre square; None on failure."""
    image = _open_image(path)
    if image is None:
        return None
    w, h = image.size
    if w <= 0 or h <= 0:
        return None
    if w > h:
        size = (max(1, int(w * THUMBNAIL_SIZE / h + 0.5)), THUMBNAIL_SIZE)
    else:
        size = (THUMBNAIL_SIZE, max(1, int(h * THUMBNAIL_SIZE / w + 0.5)))
    scaled = image.resize(size, Image.Resampling.BILINEAR)
    sw, sh = scaled.size
    side = min(sw, sh)
    x = max(0, (sw - side) // 2)
    y = max(0, (sh - side) // 2)
    return scaled.crop((x, y, x + side, y + side))


def _fit_within(image: Image.Image, limit: int) -> Image.Image:
    w, h = image.size
    scale = min(limit / w, limit / h)
    size = (max(1, int(w * scale + 0.5)), max(1, int(h * scale + 0.5)))
    if size == image.size:
        return image
    return image.resize(size, Image.Resampling.BILINEAR)


def _video_thumbnail(path: str) -> Optional[Image.Image]:
    name = f"thumb_{os.getpid()}_{random.getrandbits(32)}.png"
    tmp_path = os.path.join(tempfile.gettempdir(), name)
    argv = [
        "ffmpeg", "-y", "-i", path,
        "-vf", "thumbnail,scale=256:256:force_original_aspect_ratio=increase,crop=256:256",
        "-frames:v", "1",
        tmp_path,
    ]
    try:
        try:
            subprocess.run(
                argv,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=False,
            )
        except OSError:
            return None
        image = _open_image(tmp_path)
        if image is None:
            return None
        return apply_film_strip(_fit_within(image, THUMBNAIL_SIZE))
    finally:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass


def _local_path(uri: str) -> Optional[str]:
    parsed = urlparse(uri)
    if parsed.scheme != "file" or parsed.netloc not in ("", "localhost"):
        return None
    path = unquote(parsed.path)
    return path if os.path.isabs(path) else None


class ThumbnailManager:
    """Produces thumbnails for file URIs, reusing cached PNGs when present."""

    def __init__(self, cache_dir=None):
        self.cache_dir = cache_dir

    def _generate(self, uri: str, mime_type: str) -> Optional[Image.Image]:
        local = _local_path(uri)
        if local is None:
            return None
        if mime_type.startswith("video/"):
            return _video_thumbnail(local)
        if mime_type.startswith("image/"):
            return load_and_crop_image(local)
        return None

    def get_thumbnail(self, uri: str, mime_type: Optional[str] = None) -> Image.Image:
        """Return the thumbnail image for a URI; raise ThumbnailError on failure."""
        if uri is None:
            raise ValueError("uri must not be None")
        mime_type = mime_type or ""
        cache_file = thumbnail_path(uri, self.cache_dir)

        image = _open_image(cache_file) if cache_file.exists() else None
        if image is None:
            image = self._generate(uri, mime_type)
            if image is not None:
                info = PngImagePlugin.PngInfo()
                info.add_text(URI_KEY, uri)
                try:
                    image.save(cache_file, "PNG", pnginfo=info)
                except OSError:
                    pass

        if image is None:
            raise ThumbnailError("Failed to generate thumbnail")
        return image