import asyncio
import base64
from pathlib import Path

import pytest
from PIL import Image

from photoframe import loader
from photoframe.events import InvalidPhoto, LoadPhoto, PhotoLoaded

ORIENT6_JPEG = (
    "/9j/4AAQSkZJRgABAQAAAQABAAD/4QAiRXhpZgAATU0AKgAAAAgAAQESAAMAAAABAAYAAAAAAAD/2wBDAAgGBgcGBQgHBwcJCQgKDBQNDAsLDBkSEw8UHRofHh0aHBwgJC4nICIsIxwcKDcpLDAxNDQ0Hyc5PTgyPC4zNDL/"
    "2wBDAQkJCQwLDBgNDRgyIRwhMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjIyMjL/wAARCAABAAIDASIAAhEBAxEB/8QAHwAAAQUBAQEBAQEAAAAAAAAAAAECAwQFBgcICQoL/8QAtRAAAgEDAwIEAwUFBAQAAAF9AQIDAAQRBRIhMUEGE1FhByJxFDKBkaEII0KxwRVS0fAkM2JyggkKFhcYGRolJicoKSo0NTY3ODk6Q0RFRkdISUpTVFVWV1hZWmNkZWZnaGlqc3R1dnd4eXqDhIWGh4iJipKTlJWWl5iZmqKjpKWmp6ipqrKztLW2t7i5usLDxMXGx8jJytLT1NXW19jZ2uHi4+Tl5ufo6erx8vP09fb3+Pn6/8QAHwEAAwEBAQEBAQEBAQAAAAAAAAECAwQFBgcICQoL/8QAtREAAgECBAQDBAcFBAQAAQJ3AAECAxEEBSExBhJBUQdhcRMiMoEIFEKRobHBCSMzUvAVYnLRChYkNOEl8RcYGRomJygpKjU2Nzg5OkNERUZHSElKU1RVVldYWVpjZGVmZ2hpanN0dXZ3eHl6goOEhYaHiImKkpOUlZaXmJmaoqOkpaanqKmqsrO0tba3uLm6wsPExcbHyMnK0tPU1dbX2Nna4uPk5ebn6Onq8vP09fb3+Pn6/9oADAMBAAIRAxEAPwDi6KKK+ZP3E//Z"
)

A = (255, 0, 0, 255)
B = (0, 0, 255, 255)


def _two_pixel_image() -> Image.Image:
    img = Image.new("RGBA", (2, 1))
    img.putpixel((0, 0), A)
    img.putpixel((1, 0), B)
    return img


def _save_jpeg_with_orientation(path: Path, size, orientation: int) -> None:
    exif = Image.Exif()
    exif[0x0112] = orientation
    Image.new("RGB", size, (10, 20, 30)).save(path, "JPEG", exif=exif.tobytes())


def test_applies_orientation_six(tmp_path):
    path = tmp_path / "orient6.jpg"
    path.write_bytes(base64.b64decode(ORIENT6_JPEG))
    img = loader.decode_rgba_apply_exif(path)
    assert img.size == (1, 2)
    assert img.mode == "RGBA"


def test_read_orientation_from_generated_jpeg(tmp_path):
    path = tmp_path / "o8.jpg"
    _save_jpeg_with_orientation(path, (4, 2), 8)
    assert loader.read_orientation(path) == 8


def test_read_orientation_missing(tmp_path):
    path = tmp_path / "plain.png"
    Image.new("RGB", (3, 2)).save(path)
    assert loader.read_orientation(path) is None
    assert loader.read_orientation(tmp_path / "absent.jpg") is None


def test_decode_generated_jpeg_rotates(tmp_path):
    path = tmp_path / "o6.jpg"
    _save_jpeg_with_orientation(path, (4, 2), 6)
    assert loader.decode_rgba_apply_exif(path).size == (2, 4)


def test_decode_png_keeps_size(tmp_path):
    path = tmp_path / "plain.png"
    Image.new("RGB", (5, 3)).save(path)
    assert loader.decode_rgba_apply_exif(path).size == (5, 3)


def test_decode_invalid_file_raises(tmp_path):
    path = tmp_path / "bad.jpg"
    path.write_bytes(b"not an image")
    with pytest.raises(OSError):
        loader.decode_rgba_apply_exif(path)


def test_decode_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        loader.decode_rgba_apply_exif(tmp_path / "absent.jpg")


@pytest.mark.parametrize(
    "orientation,size,pixels",
    [
        (1, (2, 1), [A, B]),
        (2, (2, 1), [B, A]),
        (3, (2, 1), [B, A]),
        (4, (2, 1), [A, B]),
        (5, (1, 2), [A, B]),
        (6, (1, 2), [A, B]),
        (7, (1, 2), [B, A]),
        (8, (1, 2), [B, A]),
        (9, (2, 1), [A, B]),
    ],
)
def test_apply_orientation(orientation, size, pixels):
    out = loader.apply_orientation(_two_pixel_image(), orientation)
    assert out.size == size
    assert list(out.getdata()) == pixels


@pytest.mark.asyncio
async def test_run_loads_valid_and_reports_invalid(tmp_path):
    good = tmp_path / "good.png"
    Image.new("RGB", (3, 2), (1, 2, 3)).save(good)
    bad = tmp_path / "bad.jpg"
    bad.write_bytes(b"x")

    load_queue: asyncio.Queue = asyncio.Queue()
    invalid: asyncio.Queue = asyncio.Queue()
    to_viewer: asyncio.Queue = asyncio.Queue()
    cancel = asyncio.Event()
    task = asyncio.create_task(loader.run(load_queue, invalid, to_viewer, cancel, 2))

    await load_queue.put(LoadPhoto(good))
    await load_queue.put(LoadPhoto(bad))

    loaded = await asyncio.wait_for(to_viewer.get(), 5)
    rejected = await asyncio.wait_for(invalid.get(), 5)

    assert isinstance(loaded, PhotoLoaded)
    assert loaded.image.path == good
    assert (loaded.image.width, loaded.image.height) == (3, 2)
    assert loaded.image.pixels[:4] == bytes([1, 2, 3, 255])
    assert rejected == InvalidPhoto(bad)

    cancel.set()
    await asyncio.wait_for(task, 5)
    assert task.done()