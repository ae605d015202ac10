"""Raster production: synthetic screenshots and contact sheets."""

from .contact_sheet import ContactSheetComposer, SheetLayout, ThemePair, pair_themes
from .raster import RenderedImage
from .synthetic import FontBook, SyntheticRenderer, TextCursor, render

__all__ = [
    'ContactSheetComposer',
    'SheetLayout',
    'ThemePair',
    'pair_themes',
    'RenderedImage',
    'FontBook',
    'SyntheticRenderer',
    'TextCursor',
    'render',
]
