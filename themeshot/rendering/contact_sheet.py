"""Contact sheets: catalog grid and paired dark/light comparison strip.

Grid:
    Row-major thumbnails, ``columns`` per row, each with a label strip above
    and a 1 px border. Missing screenshots become a "Screenshot not found"
    placeholder.
    Size: columns*(tw+p)+p  ×  rows*(th+lh+p)+p

Pair strip:
    One row per dark/light family pair, dark on the left, labelled
    "<dark name>  vs  <light name>". A missing screenshot leaves its slot
    empty (border only).
    Size: 2*tw+3*p  ×  n*(th+lh+p)+p

Pairing:
    Family = slug minus one trailing "-light", "-dark" or "-reversed". The
    first dark member and the last light member of a family form its pair;
    families without both are skipped. Families keep catalog order.

Thumbnails are scaled with cv2.resize (INTER_LINEAR); sheets are opaque.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

import cv2
import numpy as np
from PIL import Image, ImageDraw

from themeshot.rendering.raster import RenderedImage
from themeshot.rendering.synthetic import FontBook
from themeshot.theming.colorset import ThemeDescriptor
from themeshot.utils.validators import ContactSheetConfig

logger = logging.getLogger(__name__)

GRID_BACKGROUND = (0x1a, 0x1a, 0x1a)
STRIP_BACKGROUND = (0x22, 0x22, 0x22)
BORDER_COLOR = (0x44, 0x44, 0x44)
PLACEHOLDER_COLOR = (0x33, 0x33, 0x33)
LABEL_COLOR = (255, 255, 255)
PLACEHOLDER_TEXT_COLOR = (128, 128, 128)
PLACEHOLDER_TEXT = "Screenshot not found"

FAMILY_SUFFIX = re.compile(r"-(light|dark|reversed)$")


@dataclass(frozen=True)
class SheetLayout:
    """Thumbnail geometry shared by the grid and the pair strip."""

    thumb_width: int = 400
    thumb_height: int = 260
    padding: int = 8
    label_height: int = 20
    columns: int = 4

    @classmethod
    def from_config(cls, cfg: ContactSheetConfig) -> SheetLayout:
        return cls(
            thumb_width=cfg.thumb_width,
            thumb_height=cfg.thumb_height,
            padding=cfg.padding,
            label_height=cfg.label_height,
            columns=cfg.columns,
        )

    @property
    def cell_height(self) -> int:
        return self.thumb_height + self.label_height + self.padding


# ---------------------------------------------------------------------------
# Pairing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThemePair:
    family: str
    dark: ThemeDescriptor
    light: ThemeDescriptor

    @property
    def label(self) -> str:
        return f"{self.dark.name}  vs  {self.light.name}"


def family_of(slug: str) -> str:
    """Slug with one trailing -light/-dark/-reversed removed."""
    return FAMILY_SUFFIX.sub("", slug)


def pair_themes(descriptors: Sequence[ThemeDescriptor]) -> list[ThemePair]:
    """Pair the first dark and last light member of each family.

    Examples
    --------
    >>> pairs = pair_themes([ocean_dark, ocean_light, desert])
    >>> [(p.dark.slug, p.light.slug) for p in pairs]
    [('ocean-dark', 'ocean-light')]
    """
    families: dict[str, list[ThemeDescriptor]] = {}
    for descriptor in descriptors:
        families.setdefault(family_of(descriptor.slug), []).append(descriptor)

    pairs: list[ThemePair] = []
    for family, members in families.items():
        dark = next((m for m in members if m.is_dark), None)
        light = next((m for m in reversed(members) if not m.is_dark), None)
        if dark is not None and light is not None:
            pairs.append(ThemePair(family=family, dark=dark, light=light))
    return pairs


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def scale_thumbnail(image: RenderedImage, width: int, height: int) -> Image.Image:
    """Bilinear resize to exactly width×height, returned as an RGBA PIL image."""
    scaled = cv2.resize(image.pixels.copy(), (width, height), interpolation=cv2.INTER_LINEAR)
    return Image.fromarray(np.ascontiguousarray(scaled))


class ContactSheetComposer:
    """Builds grid and pair-strip artifacts from rendered screenshots.

    Parameters
    ----------
    layout : SheetLayout, optional
        Thumbnail geometry; defaults match the 800×520 renderer at half scale
    fonts : FontBook, optional
        Label fonts; discovered from well-known paths if omitted
    """

    def __init__(self, layout: Optional[SheetLayout] = None, fonts: Optional[FontBook] = None):
        self.layout = layout or SheetLayout()
        self.fonts = fonts if fonts is not None else FontBook.discover()

    def _paste_thumbnail(self, sheet: Image.Image, image: RenderedImage, x: int, y: int) -> None:
        lay = self.layout
        thumb = scale_thumbnail(image, lay.thumb_width, lay.thumb_height)
        sheet.paste(thumb, (x, y), thumb)

    def _border(self, draw: ImageDraw.ImageDraw, x: int, y: int) -> None:
        lay = self.layout
        draw.rectangle((x, y, x + lay.thumb_width - 1, y + lay.thumb_height - 1), outline=BORDER_COLOR)

    def build_grid(
        self,
        images: Sequence[Optional[RenderedImage]],
        labels: Sequence[str],
        columns: Optional[int] = None,
    ) -> RenderedImage:
        """Compose all screenshots into one grid.

        Parameters
        ----------
        images : Sequence[RenderedImage or None]
            One entry per slot; None draws the placeholder
        labels : Sequence[str]
            Slot labels (theme display names), same length as images
        columns : int, optional
            Overrides layout.columns

        Returns
        -------
        RenderedImage
            Grid with an empty slug

        Raises
        ------
        ValueError
            If there are no slots, label count differs, or columns < 1
        """
        if not images:
            raise ValueError("Contact sheet grid needs at least one slot")
        if len(labels) != len(images):
            raise ValueError(f"Got {len(images)} images but {len(labels)} labels")

        lay = self.layout
        cols = columns if columns is not None else lay.columns
        if cols < 1:
            raise ValueError(f"columns must be >= 1, got {cols}")
        rows = math.ceil(len(images) / cols)

        width = cols * (lay.thumb_width + lay.padding) + lay.padding
        height = rows * lay.cell_height + lay.padding
        sheet = Image.new("RGB", (width, height), GRID_BACKGROUND)
        draw = ImageDraw.Draw(sheet)
        font = self.fonts.load("sans", 11)

        for idx, (image, label) in enumerate(zip(images, labels)):
            x = lay.padding + (idx % cols) * (lay.thumb_width + lay.padding)
            y = lay.padding + (idx // cols) * lay.cell_height
            thumb_y = y + lay.label_height

            draw.text((x + 4, y + 14), label, fill=LABEL_COLOR, font=font, anchor="ls")
            if image is not None:
                self._paste_thumbnail(sheet, image, x, thumb_y)
            else:
                draw.rectangle(
                    (x, thumb_y, x + lay.thumb_width - 1, thumb_y + lay.thumb_height - 1),
                    fill=PLACEHOLDER_COLOR,
                )
                draw.text(
                    (x + 20, thumb_y + lay.thumb_height // 2),
                    PLACEHOLDER_TEXT,
                    fill=PLACEHOLDER_TEXT_COLOR,
                    font=font,
                    anchor="ls",
                )
            self._border(draw, x, thumb_y)

        return RenderedImage.from_pil("", sheet)

    def build_pair_strip(
        self,
        pairs: Sequence[ThemePair],
        images: Mapping[str, Optional[RenderedImage]],
    ) -> Optional[RenderedImage]:
        """Compose the dark/light comparison strip.

        Parameters
        ----------
        pairs : Sequence[ThemePair]
            Output of pair_themes()
        images : Mapping[str, RenderedImage or None]
            Screenshots by slug; absent or None slots stay empty

        Returns
        -------
        RenderedImage or None
            None when there are no pairs
        """
        if not pairs:
            logger.info("No dark/light pairs found for comparison strip")
            return None

        lay = self.layout
        width = 2 * lay.thumb_width + 3 * lay.padding
        height = len(pairs) * lay.cell_height + lay.padding
        sheet = Image.new("RGB", (width, height), STRIP_BACKGROUND)
        draw = ImageDraw.Draw(sheet)
        font = self.fonts.load("sans", 11, "bold")

        y = lay.padding
        for pair in pairs:
            draw.text((lay.padding + 4, y + 14), pair.label, fill=LABEL_COLOR, font=font, anchor="ls")
            x = lay.padding
            for member in (pair.dark, pair.light):
                image = images.get(member.slug)
                if image is not None:
                    self._paste_thumbnail(sheet, image, x, y + lay.label_height)
                self._border(draw, x, y + lay.label_height)
                x += lay.thumb_width + lay.padding
            y += lay.cell_height

        return RenderedImage.from_pil("", sheet)
