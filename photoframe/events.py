"""Messages exchanged between the slideshow tasks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from PIL import Image


@dataclass(frozen=True)
class PhotoAdded:
    """A photo appeared in the library."""

    path: Path


@dataclass(frozen=True)
class PhotoRemoved:
    """A photo left the library."""

    path: Path


InventoryEvent = Union[PhotoAdded, PhotoRemoved]


@dataclass(frozen=True)
class LoadPhoto:
    """Request to decode a photo."""

    path: Path


@dataclass(frozen=True)
class PreparedImage:
    """A decoded photo as tightly packed RGBA8 rows."""

    path: Path
    width: int
    height: int
    pixels: bytes

    def to_pil(self) -> Image.Image:
        """Return the pixels as a Pillow RGBA image."""
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(
                f"pixel buffer holds {len(self.pixels)} bytes, expected {expected}"
            )
        return Image.frombytes("RGBA", (self.width, self.height), bytes(self.pixels))

    @classmethod
    def from_pil(cls, path: Path, image: Image.Image) -> "PreparedImage":
        """Build a prepared image from any Pillow image, converting to RGBA."""
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        width, height = rgba.size
        return cls(path=Path(path), width=width, height=height, pixels=rgba.tobytes())


@dataclass(frozen=True)
class PhotoLoaded:
    """A photo was decoded and is ready for display."""

    image: PreparedImage


@dataclass(frozen=True)
class InvalidPhoto:
    """A photo could not be decoded and should be discarded."""

    path: Path


@dataclass(frozen=True)
class Displayed:
    """The viewer has shown a photo."""

    path: Path