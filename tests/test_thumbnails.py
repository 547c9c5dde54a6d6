import os
import stat
from pathlib import Path
from unittest import mock

import pytest
from PIL import Image

from aetherfiles.thumbnails import (
    ThumbnailError,
    ThumbnailManager,
    apply_film_strip,
    load_and_crop_image,
    thumbnail_path,
)

WHITE = (255, 255, 255)
DARK = (15, 15, 15)
HOLE = (240, 240, 240)
GREEN = (0, 200, 0)
BLUE = (0, 0, 200)


def _banded_image(path: Path, size, margin_axis: str, margin: int) -> Path:
    w, h = size
    img = Image.new("RGB", size, GREEN)
    if margin_axis == "x":
        img.paste(BLUE, (0, 0, margin, h))
        img.paste(BLUE, (w - margin, 0, w, h))
    else:
        img.paste(BLUE, (0, 0, w, margin))
        img.paste(BLUE, (0, h - margin, w, h))
    img.save(path)
    return path


def _close(a, b, tol=8):
    return all(abs(x - y) <= tol for x, y in zip(a, b))


def test_thumbnail_path_layout(tmp_path):
    path = thumbnail_path("file:///tmp/a.png", tmp_path)
    assert path.parent == tmp_path / "thumbnails" / "large"
    assert path.parent.is_dir()
    assert path.suffix == ".png"
    assert len(path.stem) == 32
    assert all(c in "0123456789abcdef" for c in path.stem)


def test_thumbnail_path_directory_mode(tmp_path):
    path = thumbnail_path("file:///x", tmp_path)
    assert stat.S_IMODE(os.stat(path.parent).st_mode) & 0o077 == 0


def test_thumbnail_path_stable_and_distinct(tmp_path):
    a1 = thumbnail_path("file:///one", tmp_path)
    a2 = thumbnail_path("file:///one", tmp_path)
    b = thumbnail_path("file:///two", tmp_path)
    assert a1 == a2
    assert a1 != b


def test_film_strip_border_and_holes():
    img = Image.new("RGB", (100, 60), WHITE)
    result = apply_film_strip(img)
    assert result is img
    assert img.getpixel((0, 0)) == DARK
    assert img.getpixel((19, 30)) == DARK
    assert img.getpixel((20, 0)) == WHITE
    assert img.getpixel((50, 30)) == WHITE
    assert img.getpixel((7, 7)) == HOLE
    assert img.getpixel((2, 7)) == DARK
    assert img.getpixel((7, 6)) == DARK
    assert img.getpixel((7, 17)) == DARK
    assert img.getpixel((90, 7)) == HOLE
    assert img.getpixel((99, 7)) == DARK
    assert img.getpixel((7, 31)) == HOLE


def test_film_strip_sets_alpha():
    img = Image.new("RGBA", (60, 30), (255, 255, 255, 0))
    apply_film_strip(img)
    assert img.getpixel((0, 0)) == (15, 15, 15, 255)
    assert img.getpixel((30, 0)) == (255, 255, 255, 0)


def test_film_strip_rejects_other_modes():
    with pytest.raises(ValueError):
        apply_film_strip(Image.new("L", (40, 40)))


def test_load_and_crop_wide_image(tmp_path):
    src = _banded_image(tmp_path / "wide.png", (400, 200), "x", 60)
    result = load_and_crop_image(src)
    assert result.size == (256, 256)
    assert _close(result.getpixel((5, 128)), GREEN)
    assert _close(result.getpixel((250, 128)), GREEN)


def test_load_and_crop_tall_image(tmp_path):
    src = _banded_image(tmp_path / "tall.png", (100, 300), "y", 60)
    result = load_and_crop_image(src)
    assert result.size == (256, 256)
    assert _close(result.getpixel((128, 5)), GREEN)
    assert _close(result.getpixel((128, 250)), GREEN)


def test_load_and_crop_missing_or_invalid(tmp_path):
    assert load_and_crop_image(tmp_path / "missing.png") is None
    bogus = tmp_path / "bogus.png"
    bogus.write_text("not an image")
    assert load_and_crop_image(bogus) is None


def test_manager_generates_and_caches(tmp_path):
    src = _banded_image(tmp_path / "pic.png", (300, 200), "x", 10)
    uri = src.as_uri()
    cache = tmp_path / "cache"
    manager = ThumbnailManager(cache)
    image = manager.get_thumbnail(uri, "image/png")
    assert image.size == (256, 256)
    cached = thumbnail_path(uri, cache)
    assert cached.exists()
    with Image.open(cached) as saved:
        assert saved.text["Thumb::URI"] == uri


def test_manager_uses_cache_when_source_gone(tmp_path):
    src = _banded_image(tmp_path / "pic.png", (200, 200), "x", 10)
    uri = src.as_uri()
    manager = ThumbnailManager(tmp_path / "cache")
    first = manager.get_thumbnail(uri, "image/png")
    src.unlink()
    second = manager.get_thumbnail(uri, "image/png")
    assert second.size == first.size
    assert second.getpixel((128, 128)) == first.getpixel((128, 128))


def test_manager_unsupported_mime(tmp_path):
    doc = tmp_path / "doc.txt"
    doc.write_text("hello")
    manager = ThumbnailManager(tmp_path / "cache")
    with pytest.raises(ThumbnailError):
        manager.get_thumbnail(doc.as_uri(), "text/plain")
    with pytest.raises(ThumbnailError):
        manager.get_thumbnail(doc.as_uri(), None)


def test_manager_non_local_uri(tmp_path):
    manager = ThumbnailManager(tmp_path / "cache")
    with pytest.raises(ThumbnailError):
        manager.get_thumbnail("http://example.com/a.png", "image/png")


def test_manager_video_applies_film_strip(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\x00")

    def fake_run(argv, **kwargs):
        assert argv[0] == "ffmpeg"
        assert str(video) in argv
        Image.new("RGB", (256, 256), WHITE).save(argv[-1], "PNG")
        return mock.Mock(returncode=0)

    manager = ThumbnailManager(tmp_path / "cache")
    with mock.patch("subprocess.run", side_effect=fake_run):
        image = manager.get_thumbnail(video.as_uri(), "video/mp4")
    assert image.size == (256, 256)
    assert image.getpixel((0, 0)) == DARK
    assert image.getpixel((7, 7)) == HOLE
    assert image.getpixel((128, 128)) == WHITE


def test_manager_video_without_ffmpeg(tmp_path):
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"\x00")
    manager = ThumbnailManager(tmp_path / "cache")
    with mock.patch("subprocess.run", side_effect=FileNotFoundError("ffmpeg")):
        with pytest.raises(ThumbnailError):
            manager.get_thumbnail(video.as_uri(), "video/mp4")