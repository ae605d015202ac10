"""Syntax palette extraction from IDE editor color schemes.

An editor scheme declares text attributes by name, each with a small field
map (FOREGROUND, BACKGROUND, FONT_TYPE, ...). The renderer only needs one
foreground per token kind, so this module:

    1. parse_scheme_xml(): scheme XML → EditorScheme (attribute → field map)
    2. extract_syntax_palette(): attribute maps + role→attribute mapping
       → complete SyntaxPalette

Lookup is by key over the parsed structure; one attribute's fields can never
leak into another's.

Fallback:
    A role whose attribute is absent, or whose attribute has no FOREGROUND
    field, resolves to NEUTRAL_GRAY. Both cases are logged at DEBUG with the
    distinguishing reason but are otherwise treated identically.

Value normalization:
    IntelliJ writes hex values without leading zeros ("ff" for 0000ff), so
    short FOREGROUND values are left-padded to 6 digits before parsing.

Scheme XML shape::

    <scheme name="Ocean Dark" version="142" parent_scheme="Darcula">
      <colors>
        <option name="CARET_COLOR" value="ffcc00"/>
      </colors>
      <attributes>
        <option name="DEFAULT_KEYWORD">
          <value>
            <option name="FOREGROUND" value="c792ea"/>
            <option name="FONT_TYPE" value="1"/>
          </value>
        </option>
      </attributes>
    </scheme>
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Mapping
from xml.etree import ElementTree

from themeshot.utils.color import Color, parse_color

logger = logging.getLogger(__name__)

SYNTAX_ROLES = (
    "keyword",
    "string",
    "comment",
    "function",
    "class",
    "variable",
    "parameter",
    "constant",
    "number",
    "annotation",
    "field",
    "type",
)

DEFAULT_ROLE_ATTRIBUTES: Mapping[str, str] = MappingProxyType({
    "keyword": "DEFAULT_KEYWORD",
    "string": "DEFAULT_STRING",
    "comment": "DEFAULT_BLOCK_COMMENT",
    "function": "DEFAULT_FUNCTION_CALL",
    "class": "DEFAULT_CLASS_NAME",
    "variable": "DEFAULT_LOCAL_VARIABLE",
    "parameter": "DEFAULT_PARAMETER",
    "constant": "DEFAULT_CONSTANT",
    "number": "DEFAULT_NUMBER",
    "annotation": "DEFAULT_METADATA",
    "field": "DEFAULT_INSTANCE_FIELD",
    "type": "TYPE_PARAMETER_NAME_ATTRIBUTES",
})

NEUTRAL_GRAY = Color(128, 128, 128)
FOREGROUND_FIELD = "FOREGROUND"


# ---------------------------------------------------------------------------
# Parsed scheme
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EditorScheme:
    """Parsed editor color scheme.

    Attributes
    ----------
    name : str
        Scheme display name (``<scheme name=...>``)
    parent_scheme : str or None
        "Darcula" for dark schemes, "Default" for light ones
    colors : Mapping[str, str]
        Editor color options (CARET_COLOR, GUTTER_BACKGROUND, ...) as raw values
    attributes : Mapping[str, Mapping[str, str]]
        Text attribute name → field name → raw value
    """

    name: str
    parent_scheme: str | None
    colors: Mapping[str, str]
    attributes: Mapping[str, Mapping[str, str]]


def _options(parent: ElementTree.Element | None) -> Iterator[ElementTree.Element]:
    if parent is None:
        return iter(())
    return (opt for opt in parent.findall("option") if opt.get("name"))


def parse_scheme_xml(text: str) -> EditorScheme:
    """Parse IntelliJ editor scheme XML.

    Parameters
    ----------
    text : str
        Full XML document

    Returns
    -------
    EditorScheme
        Color options and attribute field maps; attributes without a
        ``<value>`` block (e.g. ``baseAttributes`` aliases) get an empty map

    Raises
    ------
    ValueError
        If the text is not well-formed XML or the root is not ``<scheme>``
    """
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as e:
        raise ValueError(f"Malformed editor scheme XML: {e}") from e
    if root.tag != "scheme":
        raise ValueError(f"Expected <scheme> root element, got <{root.tag}>")

    colors = {opt.get("name"): opt.get("value", "") for opt in _options(root.find("colors"))}

    attributes: dict[str, Mapping[str, str]] = {}
    for opt in _options(root.find("attributes")):
        fields = {
            field_opt.get("name"): field_opt.get("value", "")
            for field_opt in _options(opt.find("value"))
        }
        attributes[opt.get("name")] = MappingProxyType(fields)

    return EditorScheme(
        name=root.get("name", ""),
        parent_scheme=root.get("parent_scheme"),
        colors=MappingProxyType(colors),
        attributes=MappingProxyType(attributes),
    )


# ---------------------------------------------------------------------------
# Palette
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SyntaxPalette:
    """Foreground color per syntax role; always has every role in SYNTAX_ROLES."""

    colors: Mapping[str, Color]

    def __getitem__(self, role: str) -> Color:
        return self.colors[role]

    def as_dict(self) -> dict[str, Color]:
        return dict(self.colors)

    @classmethod
    def uniform(cls, color: Color) -> SyntaxPalette:
        """Every role set to one color (useful for tests and monochrome schemes)."""
        return cls(colors=MappingProxyType({role: color for role in SYNTAX_ROLES}))


def normalize_scheme_hex(value: str) -> str:
    """Left-pad a scheme hex value to 6 digits ("ff" → "0000ff")."""
    digits = value.strip().lstrip("#")
    if 0 < len(digits) < 6:
        digits = digits.zfill(6)
    return digits


def extract_syntax_palette(
    attributes: Mapping[str, Mapping[str, str]],
    role_attributes: Mapping[str, str] = DEFAULT_ROLE_ATTRIBUTES,
) -> SyntaxPalette:
    """Resolve one foreground color per syntax role.

    Parameters
    ----------
    attributes : Mapping[str, Mapping[str, str]]
        Attribute name → field map, e.g. ``EditorScheme.attributes``
    role_attributes : Mapping[str, str]
        Role → attribute name; roles in SYNTAX_ROLES not listed here fall
        back to gray

    Returns
    -------
    SyntaxPalette
        Complete palette (every role in SYNTAX_ROLES)

    Raises
    ------
    InvalidColorFormat
        If a FOREGROUND value is present but not a hex color
    """
    colors: dict[str, Color] = {}
    for role in SYNTAX_ROLES:
        attr_name = role_attributes.get(role)
        fields = attributes.get(attr_name) if attr_name else None
        if fields is None:
            logger.debug("Syntax role %r: attribute %r not declared, using gray", role, attr_name)
            colors[role] = NEUTRAL_GRAY
            continue
        raw = fields.get(FOREGROUND_FIELD)
        if not raw:
            logger.debug("Syntax role %r: %r has no FOREGROUND, using gray", role, attr_name)
            colors[role] = NEUTRAL_GRAY
            continue
        colors[role] = parse_color(normalize_scheme_hex(raw))
    return SyntaxPalette(colors=MappingProxyType(colors))


def palette_from_scheme(scheme: EditorScheme) -> SyntaxPalette:
    """Palette for a parsed scheme using the default role mapping."""
    return extract_syntax_palette(scheme.attributes)
