"""RenderedImage: immutable RGBA raster tagged with a theme slug.

Invariants:
    - pixels is (H, W, 4) uint8, C-contiguous, and read-only
    - Construction copies the input, so callers can keep mutating their buffer
    - Conversions to PIL hand out copies, never views of ``pixels``
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from themeshot.utils import fs, hashing


@dataclass(frozen=True, eq=False)
class RenderedImage:
    """In-memory RGBA raster produced for (or loaded for) one theme.

    Attributes
    ----------
    slug : str
        Producing theme's slug ("" for composite artifacts such as grids)
    pixels : np.ndarray
        (H, W, 4) uint8 RGBA, read-only
    """

    slug: str
    pixels: np.ndarray

    def __post_init__(self):
        arr = np.array(self.pixels, dtype=np.uint8, order="C", copy=True)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA pixels, got shape {arr.shape}")
        arr.flags.writeable = False
        object.__setattr__(self, "pixels", arr)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height), PIL order."""
        return self.width, self.height

    def fingerprint(self) -> str:
        """SHA256 over shape, dtype and pixel bytes."""
        return hashing.sha256_array(self.pixels)

    def same_pixels(self, other: RenderedImage) -> bool:
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    # ---- PIL interop ----

    @classmethod
    def from_pil(cls, slug: str, img: Image.Image) -> RenderedImage:
        return cls(slug=slug, pixels=np.asarray(img.convert("RGBA")))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels.copy())

    # ---- Disk ----

    @classmethod
    def load(cls, slug: str, path: Union[str, Path]) -> RenderedImage:
        """Load a PNG as RGBA.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        OSError
            If the file is not a decodable image
        """
        return cls(slug=slug, pixels=fs.load_image(path))

    def save(self, path: Union[str, Path]) -> None:
        """Write PNG atomically."""
        fs.atomic_save_image(self.pixels.copy(), path)

    @classmethod
    def blank(cls, slug: str, width: int, height: int, rgba=(0, 0, 0, 0)) -> RenderedImage:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = rgba
        return cls(slug=slug, pixels=pixels)
