"""Hex color parsing and WCAG contrast math.

Provides:
    - parse_color(): "#RRGGBB" / "#RRGGBBAA" (leading '#' optional) → Color
    - srgb_to_linear(): sRGB channel [0,1] → linear [0,1] (WCAG transfer)
    - relative_luminance(): WCAG relative luminance of a color
    - contrast_ratio(): WCAG contrast ratio between two colors

Used by:
    - Theme model: resolving every UI color role of a theme
    - Syntax extractor: resolving scheme FOREGROUND values
    - Audit: minimum background/foreground contrast gate

Invariants:
    - Channels are integers in [0, 255]
    - 8-digit hex is R,G,B,A digit order (not ARGB)
    - Alpha never participates in luminance or contrast
"""

from typing import NamedTuple, Union

# WCAG 2.x uses 0.03928 as the linear-segment threshold (not 0.04045 from IEC 61966-2-1)
WCAG_LINEAR_THRESHOLD = 0.03928

# Rec. 709 luminance coefficients
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class InvalidColorFormat(ValueError):
    """Raised when a string is not a 6- or 8-digit hex color."""


class Color(NamedTuple):
    """RGBA color with 8-bit channels."""

    r: int
    g: int
    b: int
    a: int = 255

    @property
    def rgb(self):
        return (self.r, self.g, self.b)

    @property
    def rgba(self):
        return (self.r, self.g, self.b, self.a)

    @property
    def hex(self) -> str:
        """Lower-case "#rrggbb", or "#rrggbbaa" when not opaque."""
        if self.a == 255:
            return f"#{self.r:02x}{self.g:02x}{self.b:02x}"
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}{self.a:02x}"

    def with_alpha(self, a: int) -> "Color":
        return Color(self.r, self.g, self.b, a)


ColorLike = Union[str, Color]


def parse_color(value: str) -> Color:
    """Parse a hex color string.

    Parameters
    ----------
    value : str
        "RRGGBB" or "RRGGBBAA", optionally prefixed with '#'. Case-insensitive.

    Returns
    -------
    Color
        Opaque color for 6 digits, RGBA for 8 digits

    Raises
    ------
    InvalidColorFormat
        If the input is not a string, has a length other than 6 or 8 digits,
        or contains a non-hex character

    Examples
    --------
    >>> parse_color("#1E1E2E")
    Color(r=30, g=30, b=46, a=255)
    >>> parse_color("ff000080").a
    128
    """
    if not isinstance(value, str):
        raise InvalidColorFormat(f"Expected hex color string, got {type(value).__name__}: {value!r}")

    digits = value.strip()
    if digits.startswith("#"):
        digits = digits[1:]

    if len(digits) not in (6, 8):
        raise InvalidColorFormat(f"Hex color must have 6 or 8 digits, got {value!r}")
    if not set(digits) <= _HEX_DIGITS:
        raise InvalidColorFormat(f"Hex color contains non-hex characters: {value!r}")

    r = int(digits[0:2], 16)
    g = int(digits[2:4], 16)
    b = int(digits[4:6], 16)
    a = int(digits[6:8], 16) if len(digits) == 8 else 255
    return Color(r, g, b, a)


def looks_like_color(value: object) -> bool:
    """True if value is a string shaped like a hex color ('#...' or 6/8 hex digits).

    Used to separate color roles from non-color values (numbers, insets, font
    names) in theme declarations. A '#'-prefixed string counts even when
    malformed, so that parse_color() reports it instead of it being dropped.
    """
    if not isinstance(value, str):
        return False
    text = value.strip()
    if text.startswith("#"):
        return True
    return len(text) in (6, 8) and set(text) <= _HEX_DIGITS


def _as_color(value: ColorLike) -> Color:
    if isinstance(value, Color):
        return value
    return parse_color(value)


def srgb_to_linear(c: float) -> float:
    """Convert one sRGB channel [0,1] to linear light [0,1].

    Notes
    -----
    WCAG transfer function:
        - c / 12.92                       for c <= 0.03928
        - ((c + 0.055) / 1.055) ** 2.4    otherwise
    """
    if c <= WCAG_LINEAR_THRESHOLD:
        return c / 12.92
    return ((c + 0.055) / 1.055) ** 2.4


def relative_luminance(color: ColorLike) -> float:
    """WCAG relative luminance in [0, 1].

    Parameters
    ----------
    color : str or Color
        Hex string or parsed color; alpha is ignored

    Returns
    -------
    float
        L = 0.2126 R + 0.7152 G + 0.0722 B over linearized channels
    """
    c = _as_color(color)
    r = srgb_to_linear(c.r / 255.0)
    g = srgb_to_linear(c.g / 255.0)
    b = srgb_to_linear(c.b / 255.0)
    return LUMA_R * r + LUMA_G * g + LUMA_B * b


def contrast_ratio(color_a: ColorLike, color_b: ColorLike) -> float:
    """WCAG contrast ratio between two colors.

    Parameters
    ----------
    color_a, color_b : str or Color
        Hex strings or parsed colors (order does not matter)

    Returns
    -------
    float
        (L_lighter + 0.05) / (L_darker + 0.05), in [1.0, 21.0]

    Notes
    -----
    Alpha is ignored: colors compared are assumed resolved against an
    opaque background.

    Examples
    --------
    >>> round(contrast_ratio("#000000", "#FFFFFF"), 2)
    21.0
    >>> contrast_ratio("#abcdef", "abcdef")
    1.0
    """
    l1 = relative_luminance(color_a)
    l2 = relative_luminance(color_b)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)
