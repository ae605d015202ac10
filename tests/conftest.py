"""Shared fixtures: in-memory themes and on-disk theme directories."""

import json
import logging
from pathlib import Path

import numpy as np
import pytest

from themeshot.rendering.raster import RenderedImage
from themeshot.rendering.synthetic import SyntheticRenderer
from themeshot.theming.colorset import IconPalette, ThemeColorSet, ThemeDescriptor
from themeshot.theming.syntax import SyntaxPalette, extract_syntax_palette, parse_scheme_xml
from themeshot.utils.logging_config import current_context, pop_context

DARK_UI = {
    "*": {
        "background": "#1e1e2e",
        "foreground": "#cdd6f4",
        "selectionBackground": "#45475a",
        "separatorColor": "#313244",
        "disabledForeground": "#6c7086",
    },
    "Editor": {"background": "#181825"},
    "EditorTabs": {
        "background": "#11111b",
        "underlinedTabBackground": "#313244",
        "underlineColor": "#f38ba8",
    },
    "Tree": {
        "background": "#1e1e2e",
        "foreground": "#bac2de",
        "selectionBackground": "#585b70",
        "rowHeight": 20,
    },
    "List": {"background": "#1e1e2e"},
    "Button": {"arc": 6, "startBackground": "#313244"},
    "ToolWindow": {"Header": {"background": "#14141f", "inactiveBackground": "#1e1e2e"}},
    "StatusBar": {"background": "#0b0b12", "foreground": "#a6adc8"},
    "Popup": {"background": "#181825"},
    "Menu": {"background": "#181825"},
    "ProgressBar": {"progressColor": "#89b4fa"},
    "ScrollBar": {"thumbColor": "#45475a80"},
}

LIGHT_UI = {
    **DARK_UI,
    "*": {
        "background": "#eff1f5",
        "foreground": "#4c4f69",
        "selectionBackground": "#ccd0da",
        "separatorColor": "#bcc0cc",
        "disabledForeground": "#9ca0b0",
    },
    "Editor": {"background": "#ffffff"},
}

ICONS = {"ColorPalette": {"Actions.Blue": "#1e66f5", "Actions.Red": "#d20f39", "Checkbox.Border.Default": "#9ca0b0"}}

SCHEME_ATTRIBUTES = {
    "DEFAULT_KEYWORD": {"FOREGROUND": "cba6f7", "FONT_TYPE": "1"},
    "DEFAULT_STRING": {"FOREGROUND": "a6e3a1"},
    "DEFAULT_NUMBER": {"FOREGROUND": "fab387"},
    "DEFAULT_FUNCTION_CALL": {"FOREGROUND": "89b4fa"},
    "DEFAULT_CLASS_NAME": {"FOREGROUND": "f9e2af"},
    "DEFAULT_BLOCK_COMMENT": {"FOREGROUND": "6c7086", "FONT_TYPE": "2"},
    "DEFAULT_LOCAL_VARIABLE": {"FOREGROUND": "cdd6f4"},
    "DEFAULT_PARAMETER": {"FOREGROUND": "eba0ac"},
}

SCHEME_COLORS = {
    "CARET_COLOR": "f5e0dc",
    "CARET_ROW_COLOR": "2a2b3c",
    "SELECTION_BACKGROUND": "45475a",
    "LINE_NUMBERS_COLOR": "6c7086",
    "GUTTER_BACKGROUND": "1e1e2e",
    "INDENT_GUIDE": "313244",
}


def build_scheme_xml(name, parent="Darcula", attributes=None, colors=None, declaration=True):
    """IntelliJ editor scheme text."""
    attributes = SCHEME_ATTRIBUTES if attributes is None else attributes
    colors = SCHEME_COLORS if colors is None else colors

    lines = ['<?xml version="1.0" encoding="UTF-8"?>'] if declaration else []
    lines.append(f'<scheme name="{name}" version="142" parent_scheme="{parent}">')
    lines.append("  <colors>")
    lines.extend(f'    <option name="{k}" value="{v}"/>' for k, v in colors.items())
    lines.append("  </colors>")
    lines.append("  <attributes>")
    for attr, fields in attributes.items():
        lines.append(f'    <option name="{attr}">')
        lines.append("      <value>")
        lines.extend(f'        <option name="{k}" value="{v}"/>' for k, v in fields.items())
        lines.append("      </value>")
        lines.append("    </option>")
    lines.append("  </attributes>")
    lines.append("</scheme>")
    return "\n".join(lines) + "\n"


def build_theme_document(name, dark, ui=None, icons=None, slug=None):
    slug = slug or name.lower().replace(" ", "-")
    return {
        "name": name,
        "dark": dark,
        "author": "Test Author",
        "editorScheme": f"/themes/{slug}.xml",
        "ui": ui if ui is not None else (DARK_UI if dark else LIGHT_UI),
        "icons": icons if icons is not None else ICONS,
    }


@pytest.fixture(scope="session")
def renderer():
    """One renderer for the whole session (font discovery runs once)."""
    return SyntheticRenderer()


@pytest.fixture
def dark_descriptor():
    return ThemeDescriptor(slug="ocean-dark", name="Ocean Dark", is_dark=True)


@pytest.fixture
def dark_colors():
    return ThemeColorSet.from_ui(DARK_UI)


@pytest.fixture
def syntax_palette() -> SyntaxPalette:
    return extract_syntax_palette(parse_scheme_xml(build_scheme_xml("Ocean Dark")).attributes)


@pytest.fixture
def icon_palette():
    return IconPalette.from_declaration(ICONS)


@pytest.fixture
def solid_image():
    """Factory: uniform RGBA image."""
    def _make(rgba=(10, 20, 30, 255), width=100, height=100, slug="solid"):
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[...] = rgba
        return RenderedImage(slug=slug, pixels=pixels)
    return _make


@pytest.fixture
def theme_dir(tmp_path):
    """Factory writing theme-list.json plus per-theme documents and schemes.

    Each theme entry is (slug, name, dark) optionally followed by a dict of
    overrides: {"ui": ..., "icons": ..., "scheme": <xml text>, "document": False,
    "scheme_file": False}.
    """
    themes = tmp_path / "themes"
    themes.mkdir()

    def _write(*entries) -> Path:
        catalog = []
        for entry in entries:
            slug, name, dark = entry[:3]
            opts = entry[3] if len(entry) > 3 else {}
            catalog.append({"slug": slug, "name": name, "dark": dark})
            if opts.get("document", True):
                doc = build_theme_document(name, dark, ui=opts.get("ui"), icons=opts.get("icons"), slug=slug)
                (themes / f"{slug}.theme.json").write_text(json.dumps(doc, indent=2), encoding="utf-8")
            if opts.get("scheme_file", True):
                scheme = opts.get("scheme") or build_scheme_xml(name, "Darcula" if dark else "Default")
                (themes / f"{slug}.xml").write_text(scheme, encoding="utf-8")
        (themes / "theme-list.json").write_text(json.dumps(catalog, indent=2), encoding="utf-8")
        return themes

    return _write


class _ContextRecorder(logging.Handler):
    def __init__(self):
        super().__init__(logging.DEBUG)
        self.seen = []

    def emit(self, record):
        self.seen.append((record.name, current_context()))


@pytest.fixture
def context_records():
    """Context fields visible at each themeshot record, captured on the emitting thread."""
    recorder = _ContextRecorder()
    package_logger = logging.getLogger("themeshot")
    level = package_logger.level
    package_logger.addHandler(recorder)
    package_logger.setLevel(logging.DEBUG)
    yield recorder.seen
    package_logger.removeHandler(recorder)
    package_logger.setLevel(level)
    pop_context()
