"""Resolved theme colors: descriptors, UI color sets and the icon palette.

A theme declaration arrives as parsed structured data (the ``ui`` and
``icons`` sections of ``<slug>.theme.json``). This module resolves it once
into immutable lookup structures that the renderer reads.

Lookup rules:
    - ``ThemeColorSet.get(component, role)`` tries ``component.role``, then
      ``"*".role``, then the caller's default
    - Nested role groups are flattened with dots: ``ToolWindow.Header.background``
      is role ``Header.background`` of component ``ToolWindow``
    - Non-color values (numbers, booleans, insets, font names) are ignored
    - ``IconPalette.resolve(key)`` is an explicit lookup with a documented
      fallback per key

Usage::

    colors = ThemeColorSet.from_ui(doc["ui"])
    icons = IconPalette.from_declaration(doc["icons"])
    colors.require("*", "background")
    icons.resolve("Actions.Blue")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from themeshot.utils.color import Color, looks_like_color, parse_color
from themeshot.utils.validators import CatalogEntryV1

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT = "*"

# Roles under "*" that are parsed even when they do not look like colors,
# so a malformed value surfaces as InvalidColorFormat instead of vanishing.
STRICT_DEFAULT_ROLES = ("background", "foreground")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MissingRequiredColor(LookupError):
    """Raised when a mandatory color role is absent from a theme."""

    def __init__(self, component: str, role: str):
        self.component = component
        self.role = role
        super().__init__(f"Missing required color {component!r}.{role!r}")


# ---------------------------------------------------------------------------
# Descriptor
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ThemeDescriptor:
    """Identity record for one theme: slug, display name and dark flag."""

    slug: str
    name: str
    is_dark: bool

    @classmethod
    def from_catalog_entry(cls, entry: CatalogEntryV1) -> ThemeDescriptor:
        return cls(slug=entry.slug, name=entry.name, is_dark=entry.dark)


# ---------------------------------------------------------------------------
# UI colors
# ---------------------------------------------------------------------------


def _flatten_roles(
    component: str,
    roles: Mapping[str, Any],
    prefix: str = "",
) -> dict[str, Color]:
    resolved: dict[str, Color] = {}
    for key, value in roles.items():
        role = f"{prefix}{key}"
        if isinstance(value, Mapping):
            resolved.update(_flatten_roles(component, value, prefix=f"{role}."))
        elif looks_like_color(value):
            resolved[role] = parse_color(value)
        elif component == DEFAULT_COMPONENT and role in STRICT_DEFAULT_ROLES:
            resolved[role] = parse_color(value)
    return resolved


@dataclass(frozen=True)
class ThemeColorSet:
    """Component → role → color mapping for one theme (read-only).

    Attributes
    ----------
    components : Mapping[str, Mapping[str, Color]]
        Resolved colors per UI component ("*", "Editor", "EditorTabs", ...)

    Notes
    -----
    The "*" background/foreground invariant is enforced where the colors
    are consumed (``require``), so that a partially declared theme can still
    be loaded, audited and reported on.
    """

    components: Mapping[str, Mapping[str, Color]]

    @classmethod
    def from_ui(cls, ui: Mapping[str, Any]) -> ThemeColorSet:
        """Resolve the ``ui`` section of a theme document.

        Raises
        ------
        InvalidColorFormat
            If a color-shaped value (or a required "*" role) is malformed
        TypeError
            If ``ui`` is not a mapping
        """
        if not isinstance(ui, Mapping):
            raise TypeError(f"ui declaration must be a mapping, got {type(ui).__name__}")

        components: dict[str, Mapping[str, Color]] = {}
        for component, roles in ui.items():
            if not isinstance(roles, Mapping):
                logger.debug("Ignoring non-mapping ui component %r", component)
                continue
            components[component] = MappingProxyType(_flatten_roles(component, roles))
        return cls(components=MappingProxyType(components))

    @classmethod
    def from_mapping(cls, colors: Mapping[str, Mapping[str, str]]) -> ThemeColorSet:
        """Build from plain ``{component: {role: hex}}`` data (tests, fixtures)."""
        return cls.from_ui(colors)

    def roles(self, component: str) -> Mapping[str, Color]:
        return self.components.get(component, MappingProxyType({}))

    def get(
        self,
        component: str,
        role: str,
        default: Color | None = None,
    ) -> Color | None:
        """Look up ``component.role``, falling back to ``"*".role`` then ``default``."""
        own = self.roles(component)
        if role in own:
            return own[role]
        shared = self.roles(DEFAULT_COMPONENT)
        if role in shared:
            return shared[role]
        return default

    def require(self, component: str, role: str) -> Color:
        """Like ``get`` but raises MissingRequiredColor instead of returning None."""
        color = self.get(component, role)
        if color is None:
            raise MissingRequiredColor(component, role)
        return color

    @property
    def background(self) -> Color:
        return self.require(DEFAULT_COMPONENT, "background")

    @property
    def foreground(self) -> Color:
        return self.require(DEFAULT_COMPONENT, "foreground")


# ---------------------------------------------------------------------------
# Icon palette
# ---------------------------------------------------------------------------

# Swatch keys drawn by the renderer, in order, with the fallback used when a
# theme does not declare the key.
ICON_PALETTE_DEFAULTS: Mapping[str, str] = MappingProxyType({
    "Actions.Blue": "#4285f4",
    "Actions.Green": "#34a853",
    "Actions.Yellow": "#fbbc04",
    "Actions.Red": "#ea4335",
    "Objects.Purple": "#9c27b0",
    "Objects.Pink": "#e91e63",
})


@dataclass(frozen=True)
class IconPalette:
    """Icon color palette (``icons.ColorPalette``) with per-key fallbacks."""

    colors: Mapping[str, Color] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_declaration(cls, icons: Mapping[str, Any] | None) -> IconPalette:
        """Resolve the ``icons`` section of a theme document.

        A missing section or missing ``ColorPalette`` yields an empty palette
        (every key then resolves to its documented fallback).

        Raises
        ------
        InvalidColorFormat
            If a color-shaped palette value is malformed
        TypeError
            If ``icons`` or ``icons.ColorPalette`` is present but not a mapping
        """
        icons = icons or {}
        if not isinstance(icons, Mapping):
            raise TypeError(f"icons declaration must be a mapping, got {type(icons).__name__}")
        palette = icons.get("ColorPalette") or {}
        if not isinstance(palette, Mapping):
            raise TypeError(f"icons.ColorPalette must be a mapping, got {type(palette).__name__}")
        colors: dict[str, Color] = {}
        for key, value in palette.items():
            if looks_like_color(value):
                colors[key] = parse_color(value)
            else:
                logger.debug("Ignoring non-color icon palette entry %r=%r", key, value)
        return cls(colors=MappingProxyType(colors))

    def resolve(self, key: str) -> Color:
        """Declared color for ``key``, else its documented fallback.

        Raises
        ------
        KeyError
            If ``key`` is neither declared nor one of ICON_PALETTE_DEFAULTS
        """
        if key in self.colors:
            return self.colors[key]
        return parse_color(ICON_PALETTE_DEFAULTS[key])

    def swatches(self) -> list[tuple[str, Color]]:
        """The fixed swatch row, in drawing order."""
        return [(key, self.resolve(key)) for key in ICON_PALETTE_DEFAULTS]
