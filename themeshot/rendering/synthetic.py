"""Synthetic IDE screenshot renderer.

Draws one fixed-layout mock editor window from a theme's resolved colors:
title bar, project tree sidebar, tab strip, gutter, a syntax-highlighted Java
listing, status bar and an icon-palette swatch row.

Layout (default 800×520 canvas, y grows downward):
    title bar      (0,0)-(W,32), theme name bold sans 13 at (12, baseline 22)
    sidebar        (0,32)-(200,H), 1 px separator at x=200
    tree           10 items, baseline 52 step 20, item 3 selected
    editor         (201,32), W-201 × H-62
    tab strip      (201,32) × 28, active tab 120 wide, 3 px underline at y=57
    gutter         18 line numbers "%3d" at x=210, baseline 76 step 17
    code           17 lines from (250,76), line height 17
    status bar     (0,H-28)-(W,H), separator on top, text at (12,H-10)
    icon palette   caption at (14,H-66), 22×22 swatches from (14,H-60) step 28

Color fallbacks for optional roles (component role → "*" role → fallback):
    *.selectionBackground            → foreground @ alpha 0x40
    *.separatorColor                 → foreground @ alpha 0x30
    *.disabledForeground             → foreground @ alpha 0x80
    ToolWindow.Header.background     → *.background
    EditorTabs.underlinedTabBackground → Editor.background
    EditorTabs.underlineColor        → ProgressBar.progressColor → foreground

Determinism and concurrency:
    - Same inputs → byte-identical pixels (same platform, same Pillow/fonts)
    - All drawing state lives in a per-render _Canvas; the code pen position
      is a TextCursor value returned by each draw call
    - Font paths are resolved once per renderer; font objects are loaded per
      render, so concurrent renders share nothing mutable

Canvas is opaque: translucent colors blend onto what is already drawn and
the result is returned with alpha 255 everywhere.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, NamedTuple, Optional, Sequence

from PIL import Image, ImageDraw, ImageFont

from themeshot.rendering.raster import RenderedImage
from themeshot.theming.colorset import (
    DEFAULT_COMPONENT,
    IconPalette,
    ThemeColorSet,
    ThemeDescriptor,
)
from themeshot.theming.syntax import SyntaxPalette
from themeshot.utils.color import Color

logger = logging.getLogger(__name__)

CANVAS_WIDTH = 800
CANVAS_HEIGHT = 520

TITLE_BAR_HEIGHT = 32
SIDEBAR_WIDTH = 200
EDITOR_X = SIDEBAR_WIDTH + 1
TAB_STRIP_HEIGHT = 28
ACTIVE_TAB_WIDTH = 120
TAB_UNDERLINE_Y = 57
TAB_UNDERLINE_HEIGHT = 3
STATUS_BAR_HEIGHT = 28

TREE_ITEMS = (
    "src",
    "  main",
    "    java",
    "      App.java",
    "    resources",
    "      themes/",
    "  test",
    "    AppTest.java",
    "build.gradle",
    "README.md",
)
SELECTED_TREE_ITEM = 3
TREE_X = 12
TREE_FIRST_BASELINE = 52
TREE_STEP = 20

GUTTER_X = 210
GUTTER_LINES = 18
GUTTER_ALPHA = 100

CODE_X = 250
CODE_FIRST_BASELINE = 76
LINE_HEIGHT = 17

SWATCH_SIZE = 22
SWATCH_GAP = 6
SWATCH_RADIUS = 2
SWATCH_X = 14

SELECTION_FALLBACK_ALPHA = 0x40
SEPARATOR_FALLBACK_ALPHA = 0x30
DISABLED_FALLBACK_ALPHA = 0x80


# ---------------------------------------------------------------------------
# Sample code
# ---------------------------------------------------------------------------

class Token(NamedTuple):
    """One styled run of code. role None means plain foreground."""

    role: Optional[str]
    style: str
    text: str


def _t(role: Optional[str], text: str, style: str = "regular") -> Token:
    return Token(role, style, text)


# (indent px, tokens) per line; empty token tuples are blank lines
CODE_LISTING: tuple[tuple[int, tuple[Token, ...]], ...] = (
    (0, (_t("keyword", "package "), _t(None, "com.example.app;"))),
    (0, ()),
    (0, (_t("keyword", "import "), _t("class", "java.util.List"), _t(None, ";"))),
    (0, (_t("keyword", "import "), _t("class", "java.util.stream.Collectors"), _t(None, ";"))),
    (0, ()),
    (0, (_t("comment", "/** Main application class */", "italic"),)),
    (0, (_t("annotation", "@SuppressWarnings"), _t(None, "("), _t("string", '"unchecked"'), _t(None, ")"))),
    (0, (_t("keyword", "public class "), _t("class", "App", "bold"), _t(None, " {"))),
    (20, (
        _t("keyword", "private static final "), _t("class", "String "),
        _t("constant", "VERSION", "bold"), _t(None, " = "), _t("string", '"1.0.0"'), _t(None, ";"),
    )),
    (20, (
        _t("keyword", "private "), _t("class", "List"), _t(None, "<"), _t("class", "String"),
        _t(None, "> "), _t("field", "items"), _t(None, ";"),
    )),
    (0, ()),
    (20, (
        _t("keyword", "public "), _t("type", "int "), _t("function", "getCount"), _t(None, "("),
        _t("class", "String "), _t("parameter", "filter"), _t(None, ") {"),
    )),
    (40, (
        _t("keyword", "return "), _t("field", "items"), _t(None, "."), _t("function", "stream"),
        _t(None, "()"),
    )),
    (60, (
        _t(None, "."), _t("function", "filter"), _t(None, "("), _t("variable", "s"), _t(None, " -> "),
        _t("variable", "s"), _t(None, "."), _t("function", "contains"), _t(None, "("),
        _t("parameter", "filter"), _t(None, "))"),
    )),
    (60, (_t(None, "."), _t("function", "toList"), _t(None, "()."), _t("function", "size"), _t(None, "();"))),
    (20, (_t(None, "}"),)),
    (0, (_t(None, "}"),)),
)


# ---------------------------------------------------------------------------
# Fonts
# ---------------------------------------------------------------------------

SANS_CANDIDATES = (
    {
        "regular": "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "bold": "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
    },
    {
        "regular": "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "bold": "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    },
    {
        "regular": "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "bold": "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
    },
)

MONO_CANDIDATES = (
    {
        "regular": "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
        "bold": "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Bold.ttf",
        "italic": "/usr/share/fonts/truetype/dejavu/DejaVuSansMono-Oblique.ttf",
    },
    {
        "regular": "/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf",
        "bold": "/usr/share/fonts/truetype/liberation/LiberationMono-Bold.ttf",
        "italic": "/usr/share/fonts/truetype/liberation/LiberationMono-Italic.ttf",
    },
    {
        "regular": "/usr/share/fonts/truetype/freefont/FreeMono.ttf",
        "bold": "/usr/share/fonts/truetype/freefont/FreeMonoBold.ttf",
        "italic": "/usr/share/fonts/truetype/freefont/FreeMonoOblique.ttf",
    },
)


def _first_installed(candidates: Sequence[Mapping[str, str]]) -> Optional[Mapping[str, str]]:
    for cand in candidates:
        if Path(cand["regular"]).exists():
            return cand
    return None


class FontBook:
    """Resolved font files for the "sans" and "mono" families.

    A family with no installed candidate, or a missing style file, falls
    back to the regular face, then to Pillow's bundled default font at the
    requested size.
    """

    def __init__(
        self,
        sans: Optional[Mapping[str, str]] = None,
        mono: Optional[Mapping[str, str]] = None,
    ):
        self.families = {"sans": sans, "mono": mono}

    @classmethod
    def discover(cls) -> FontBook:
        book = cls(sans=_first_installed(SANS_CANDIDATES), mono=_first_installed(MONO_CANDIDATES))
        for family, paths in book.families.items():
            if paths is None:
                logger.info("No TrueType %s font installed, using Pillow default font", family)
            else:
                logger.debug("Using %s font %s", family, paths["regular"])
        return book

    def load(self, family: str, size: int, style: str = "regular") -> ImageFont.ImageFont:
        paths = self.families.get(family)
        if paths:
            path = paths.get(style) or paths["regular"]
            if Path(path).exists():
                return ImageFont.truetype(path, size)
        return ImageFont.load_default(size=size)


# ---------------------------------------------------------------------------
# Per-render drawing context
# ---------------------------------------------------------------------------

class TextCursor(NamedTuple):
    """Pen position for a run of text: x advances, y is the baseline."""

    x: float
    y: int

    def advance(self, dx: float) -> TextCursor:
        return TextCursor(self.x + dx, self.y)


class _Canvas:
    """Drawing surface for a single render; never shared between renders."""

    def __init__(self, width: int, height: int, background: Color, fonts: FontBook):
        self.image = Image.new("RGB", (width, height), background.rgb)
        # "RGBA" draw mode on an RGB image blends translucent fills
        self.draw = ImageDraw.Draw(self.image, "RGBA")
        self._fonts = fonts
        self._loaded: dict[tuple[str, int, str], ImageFont.ImageFont] = {}

    def font(self, family: str, size: int, style: str = "regular") -> ImageFont.ImageFont:
        key = (family, size, style)
        if key not in self._loaded:
            self._loaded[key] = self._fonts.load(family, size, style)
        return self._loaded[key]

    def fill_rect(self, x: int, y: int, w: int, h: int, color: Color) -> None:
        """Fill the w×h pixel block whose top-left pixel is (x, y)."""
        if w <= 0 or h <= 0:
            return
        self.draw.rectangle((x, y, x + w - 1, y + h - 1), fill=color.rgba)

    def fill_round_rect(self, x: int, y: int, w: int, h: int, radius: int, color: Color) -> None:
        self.draw.rounded_rectangle((x, y, x + w - 1, y + h - 1), radius=radius, fill=color.rgba)

    def text(self, x: float, baseline: int, text: str, color: Color, font: ImageFont.ImageFont) -> None:
        if color.a == 255:
            self.draw.text((x, baseline), text, fill=color.rgb, font=font, anchor="ls")
            return
        # Glyph masks ignore ink alpha, so translucent text goes through an L mask
        mask = Image.new("L", self.image.size, 0)
        ImageDraw.Draw(mask).text((x, baseline), text, fill=color.a, font=font, anchor="ls")
        self.image.paste(color.rgb, None, mask)

    def draw_run(self, cursor: TextCursor, text: str, color: Color, font: ImageFont.ImageFont) -> TextCursor:
        """Draw text at the cursor and return the cursor moved past it."""
        self.text(cursor.x, cursor.y, text, color, font)
        return cursor.advance(self.draw.textlength(text, font=font))

    def to_rendered(self, slug: str) -> RenderedImage:
        return RenderedImage.from_pil(slug, self.image)


# ---------------------------------------------------------------------------
# Color resolution
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutColors:
    """Every color the layout paints, resolved with fallbacks applied."""

    background: Color
    foreground: Color
    selection: Color
    separator: Color
    disabled: Color
    title_bar: Color
    sidebar: Color
    tree_foreground: Color
    tree_selection: Color
    editor: Color
    tab_strip: Color
    active_tab: Color
    tab_underline: Color
    gutter: Color
    status_background: Color
    status_foreground: Color

    @classmethod
    def resolve(cls, colors: ThemeColorSet) -> LayoutColors:
        """Apply the fallback chain.

        Raises
        ------
        MissingRequiredColor
            If "*".background or "*".foreground is absent
        """
        bg = colors.background
        fg = colors.foreground
        selection = colors.get(DEFAULT_COMPONENT, "selectionBackground", fg.with_alpha(SELECTION_FALLBACK_ALPHA))
        editor = colors.get("Editor", "background", bg)

        underline = colors.get("EditorTabs", "underlineColor")
        if underline is None:
            underline = colors.get("ProgressBar", "progressColor", fg)

        return cls(
            background=bg,
            foreground=fg,
            selection=selection,
            separator=colors.get(DEFAULT_COMPONENT, "separatorColor", fg.with_alpha(SEPARATOR_FALLBACK_ALPHA)),
            disabled=colors.get(DEFAULT_COMPONENT, "disabledForeground", fg.with_alpha(DISABLED_FALLBACK_ALPHA)),
            title_bar=colors.get("EditorTabs", "background", bg),
            sidebar=colors.get("ToolWindow", "Header.background", bg),
            tree_foreground=colors.get("Tree", "foreground", fg),
            tree_selection=colors.get("Tree", "selectionBackground", selection),
            editor=editor,
            tab_strip=colors.get("EditorTabs", "background", bg),
            active_tab=colors.get("EditorTabs", "underlinedTabBackground", editor),
            tab_underline=underline,
            gutter=fg.with_alpha(GUTTER_ALPHA),
            status_background=colors.get("StatusBar", "background", bg),
            status_foreground=colors.get("StatusBar", "foreground", fg),
        )


# ---------------------------------------------------------------------------
# Renderer
# ---------------------------------------------------------------------------

class SyntheticRenderer:
    """Renders the mock editor window for one theme at a time.

    Parameters
    ----------
    width, height : int
        Canvas size; regions anchored to the right or bottom edge move with it
    fonts : FontBook, optional
        Font files to draw with; discovered from well-known paths if omitted

    Examples
    --------
    >>> renderer = SyntheticRenderer()
    >>> image = renderer.render(descriptor, colors, syntax, icons)
    >>> image.size
    (800, 520)
    """

    def __init__(
        self,
        width: int = CANVAS_WIDTH,
        height: int = CANVAS_HEIGHT,
        fonts: Optional[FontBook] = None,
    ):
        self.width = width
        self.height = height
        self.fonts = fonts if fonts is not None else FontBook.discover()

    def render(
        self,
        descriptor: ThemeDescriptor,
        colors: ThemeColorSet,
        syntax: SyntaxPalette,
        icons: IconPalette,
    ) -> RenderedImage:
        """Draw the full layout.

        Raises
        ------
        MissingRequiredColor
            If "*".background or "*".foreground is absent
        """
        palette = LayoutColors.resolve(colors)
        canvas = _Canvas(self.width, self.height, palette.background, self.fonts)

        self._draw_title_bar(canvas, descriptor, palette)
        self._draw_sidebar(canvas, palette)
        self._draw_editor(canvas, palette)
        self._draw_code(canvas, palette, syntax)
        self._draw_status_bar(canvas, descriptor, palette)
        self._draw_icon_palette(canvas, palette, icons)

        return canvas.to_rendered(descriptor.slug)

    def _draw_title_bar(self, canvas: _Canvas, descriptor: ThemeDescriptor, palette: LayoutColors) -> None:
        canvas.fill_rect(0, 0, self.width, TITLE_BAR_HEIGHT, palette.title_bar)
        canvas.text(12, 22, descriptor.name, palette.foreground, canvas.font("sans", 13, "bold"))

    def _draw_sidebar(self, canvas: _Canvas, palette: LayoutColors) -> None:
        body_height = self.height - TITLE_BAR_HEIGHT
        canvas.fill_rect(0, TITLE_BAR_HEIGHT, SIDEBAR_WIDTH, body_height, palette.sidebar)
        canvas.fill_rect(SIDEBAR_WIDTH, TITLE_BAR_HEIGHT, 1, body_height, palette.separator)

        font = canvas.font("sans", 12)
        for i, item in enumerate(TREE_ITEMS):
            baseline = TREE_FIRST_BASELINE + i * TREE_STEP
            if i == SELECTED_TREE_ITEM:
                canvas.fill_rect(0, baseline - 12, SIDEBAR_WIDTH, TREE_STEP, palette.tree_selection)
            canvas.text(TREE_X, baseline, item, palette.tree_foreground, font)

    def _draw_editor(self, canvas: _Canvas, palette: LayoutColors) -> None:
        editor_width = self.width - EDITOR_X
        canvas.fill_rect(EDITOR_X, TITLE_BAR_HEIGHT, editor_width, self.height - 62, palette.editor)

        canvas.fill_rect(EDITOR_X, TITLE_BAR_HEIGHT, editor_width, TAB_STRIP_HEIGHT, palette.tab_strip)
        canvas.fill_rect(EDITOR_X, TITLE_BAR_HEIGHT, ACTIVE_TAB_WIDTH, TAB_STRIP_HEIGHT, palette.active_tab)
        canvas.fill_rect(EDITOR_X, TAB_UNDERLINE_Y, ACTIVE_TAB_WIDTH, TAB_UNDERLINE_HEIGHT, palette.tab_underline)

        tab_font = canvas.font("sans", 11)
        canvas.text(215, 50, "App.java", palette.foreground, tab_font)
        canvas.text(335, 50, "README.md", palette.disabled, tab_font)

        gutter_font = canvas.font("mono", 11)
        for line in range(1, GUTTER_LINES + 1):
            baseline = CODE_FIRST_BASELINE + (line - 1) * LINE_HEIGHT
            canvas.text(GUTTER_X, baseline, f"{line:3d}", palette.gutter, gutter_font)

    def _draw_code(self, canvas: _Canvas, palette: LayoutColors, syntax: SyntaxPalette) -> None:
        for index, (indent, tokens) in enumerate(CODE_LISTING):
            cursor = TextCursor(CODE_X + indent, CODE_FIRST_BASELINE + index * LINE_HEIGHT)
            for token in tokens:
                color = palette.foreground if token.role is None else syntax[token.role]
                cursor = canvas.draw_run(cursor, token.text, color, canvas.font("mono", 12, token.style))

    def _draw_status_bar(self, canvas: _Canvas, descriptor: ThemeDescriptor, palette: LayoutColors) -> None:
        top = self.height - STATUS_BAR_HEIGHT
        canvas.fill_rect(0, top, self.width, STATUS_BAR_HEIGHT, palette.status_background)
        canvas.fill_rect(0, top, self.width, 1, palette.separator)
        text = f"UTF-8  |  LF  |  Java 17  |  {descriptor.name}"
        canvas.text(12, self.height - 10, text, palette.status_foreground, canvas.font("sans", 11))

    def _draw_icon_palette(self, canvas: _Canvas, palette: LayoutColors, icons: IconPalette) -> None:
        top = self.height - 60
        canvas.text(SWATCH_X, top - 6, "Icon Palette", palette.tree_foreground, canvas.font("sans", 9, "bold"))
        x = SWATCH_X
        for _key, color in icons.swatches():
            canvas.fill_round_rect(x, top, SWATCH_SIZE, SWATCH_SIZE, SWATCH_RADIUS, color)
            x += SWATCH_SIZE + SWATCH_GAP


@functools.lru_cache(maxsize=1)
def default_renderer() -> SyntheticRenderer:
    """Shared 800×520 renderer (font discovery runs once per process)."""
    return SyntheticRenderer()


def render(
    descriptor: ThemeDescriptor,
    colors: ThemeColorSet,
    syntax: SyntaxPalette,
    icons: IconPalette,
) -> RenderedImage:
    """Render with the default renderer. See SyntheticRenderer.render."""
    return default_renderer().render(descriptor, colors, syntax, icons)
