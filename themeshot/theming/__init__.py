"""Theme model: descriptors, resolved colors, syntax palettes and audit.

Depends only on themeshot.utils. The renderer consumes ThemeColorSet,
SyntaxPalette and IconPalette; nothing in here touches pixels.
"""

from .audit import AuditFinding, ThemeAudit, audit_theme, format_audit_report
from .colorset import (
    ICON_PALETTE_DEFAULTS,
    IconPalette,
    MissingRequiredColor,
    ThemeColorSet,
    ThemeDescriptor,
)
from .syntax import (
    DEFAULT_ROLE_ATTRIBUTES,
    NEUTRAL_GRAY,
    SYNTAX_ROLES,
    EditorScheme,
    SyntaxPalette,
    extract_syntax_palette,
    parse_scheme_xml,
)

__all__ = [
    'AuditFinding',
    'ThemeAudit',
    'audit_theme',
    'format_audit_report',
    'ICON_PALETTE_DEFAULTS',
    'IconPalette',
    'MissingRequiredColor',
    'ThemeColorSet',
    'ThemeDescriptor',
    'DEFAULT_ROLE_ATTRIBUTES',
    'NEUTRAL_GRAY',
    'SYNTAX_ROLES',
    'EditorScheme',
    'SyntaxPalette',
    'extract_syntax_palette',
    'parse_scheme_xml',
]
