"""Structural audit of theme documents and editor schemes.

Checks per theme:
    - document: required fields, UI components and "*" roles, icon palette
      (ThemeDocumentV1), and that name/dark agree with the catalog
    - scheme: well-formed XML with a declaration, matching scheme name,
      parent scheme ("Darcula" when dark, "Default" otherwise), the
      essential editor color options and text attributes
    - contrast: "*".background vs "*".foreground at or above min_contrast

Every problem becomes an AuditFinding; the audit never raises for a broken
theme, so one report covers the whole catalog.

Usage::

    result = audit_theme(descriptor, doc, scheme_text, min_contrast=3.0)
    text = format_audit_report([result, ...])
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from themeshot.theming.colorset import ThemeDescriptor
from themeshot.theming.syntax import EditorScheme, parse_scheme_xml
from themeshot.utils.color import InvalidColorFormat, contrast_ratio
from themeshot.utils.validators import validate_theme_document

logger = logging.getLogger(__name__)

REQUIRED_SCHEME_COLORS = (
    "CARET_COLOR",
    "CARET_ROW_COLOR",
    "SELECTION_BACKGROUND",
    "LINE_NUMBERS_COLOR",
    "GUTTER_BACKGROUND",
    "INDENT_GUIDE",
)

REQUIRED_SCHEME_ATTRIBUTES = (
    "DEFAULT_KEYWORD",
    "DEFAULT_STRING",
    "DEFAULT_NUMBER",
    "DEFAULT_FUNCTION_CALL",
    "DEFAULT_CLASS_NAME",
    "DEFAULT_BLOCK_COMMENT",
    "DEFAULT_LOCAL_VARIABLE",
    "DEFAULT_PARAMETER",
)

DARK_PARENT_SCHEME = "Darcula"
LIGHT_PARENT_SCHEME = "Default"


@dataclass(frozen=True)
class AuditFinding:
    """One audit violation: which check failed and why."""

    check: str
    message: str

    def __str__(self) -> str:
        return f"{self.check}: {self.message}"


@dataclass(frozen=True)
class ThemeAudit:
    """All findings for one theme."""

    slug: str
    findings: tuple[AuditFinding, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.findings


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------


def audit_document(descriptor: ThemeDescriptor, doc: Any) -> list[AuditFinding]:
    """Schema check plus catalog agreement for ``<slug>.theme.json``."""
    findings = [AuditFinding("document", msg) for msg in validate_theme_document(doc)]
    if not isinstance(doc, Mapping):
        return findings

    if "name" in doc and doc["name"] != descriptor.name:
        findings.append(AuditFinding(
            "document", f"name {doc['name']!r} does not match catalog name {descriptor.name!r}"
        ))
    if "dark" in doc and doc["dark"] != descriptor.is_dark:
        findings.append(AuditFinding(
            "document", f"dark={doc['dark']!r} does not match catalog dark={descriptor.is_dark!r}"
        ))
    return findings


def audit_scheme(descriptor: ThemeDescriptor, scheme_text: str | None) -> list[AuditFinding]:
    """Structural check of the editor scheme XML.

    Parameters
    ----------
    descriptor : ThemeDescriptor
        Catalog identity (expected scheme name and parent)
    scheme_text : str or None
        Raw XML, or None when the scheme file does not exist

    Returns
    -------
    list[AuditFinding]
        Empty when the scheme is valid
    """
    if scheme_text is None:
        return [AuditFinding("scheme", "editor scheme file not found")]

    findings: list[AuditFinding] = []
    if not scheme_text.lstrip().startswith("<?xml"):
        findings.append(AuditFinding("scheme", "missing <?xml ...?> declaration"))

    try:
        scheme = parse_scheme_xml(scheme_text)
    except ValueError as e:
        findings.append(AuditFinding("scheme", str(e)))
        return findings

    findings.extend(_scheme_content_findings(descriptor, scheme))
    return findings


def _scheme_content_findings(
    descriptor: ThemeDescriptor,
    scheme: EditorScheme,
) -> Iterable[AuditFinding]:
    if scheme.name != descriptor.name:
        yield AuditFinding(
            "scheme", f"scheme name {scheme.name!r} does not match {descriptor.name!r}"
        )

    expected_parent = DARK_PARENT_SCHEME if descriptor.is_dark else LIGHT_PARENT_SCHEME
    if scheme.parent_scheme != expected_parent:
        yield AuditFinding(
            "scheme", f"parent_scheme is {scheme.parent_scheme!r}, expected {expected_parent!r}"
        )

    missing_colors = [c for c in REQUIRED_SCHEME_COLORS if c not in scheme.colors]
    if missing_colors:
        yield AuditFinding("scheme", f"missing color options: {missing_colors}")

    missing_attrs = [a for a in REQUIRED_SCHEME_ATTRIBUTES if a not in scheme.attributes]
    if missing_attrs:
        yield AuditFinding("scheme", f"missing attributes: {missing_attrs}")


def audit_contrast(doc: Any, min_contrast: float = 3.0) -> list[AuditFinding]:
    """Minimum contrast between "*".background and "*".foreground.

    WCAG AA asks 4.5:1 for body text; the default gate is 3:1 since some
    themes deliberately run low contrast.
    """
    try:
        defaults = doc["ui"]["*"]
        background = defaults["background"]
        foreground = defaults["foreground"]
    except (KeyError, TypeError):
        return [AuditFinding("contrast", "'*'.background/foreground not declared")]

    try:
        ratio = contrast_ratio(background, foreground)
    except InvalidColorFormat as e:
        return [AuditFinding("contrast", str(e))]

    if ratio < min_contrast:
        return [AuditFinding(
            "contrast",
            f"{ratio:.2f} < {min_contrast:.2f} between {background} and {foreground}",
        )]
    return []


def audit_theme(
    descriptor: ThemeDescriptor,
    doc: Any,
    scheme_text: str | None,
    *,
    min_contrast: float = 3.0,
    document_error: str | None = None,
    scheme_reference_exists: bool = True,
) -> ThemeAudit:
    """Run every check for one theme.

    Parameters
    ----------
    descriptor : ThemeDescriptor
        Catalog identity
    doc : Any
        Parsed ``<slug>.theme.json`` (None when missing or unparsable)
    scheme_text : str or None
        Raw ``<slug>.xml``, None when missing
    min_contrast : float
        Contrast gate, default 3.0
    document_error : str, optional
        Why ``doc`` is None, reported instead of "theme document not found"
    scheme_reference_exists : bool
        Whether the file named by ``editorScheme`` exists next to the theme

    Returns
    -------
    ThemeAudit
        Findings in check order (document, scheme, contrast)
    """
    findings: list[AuditFinding] = []
    if doc is None:
        findings.append(AuditFinding("document", document_error or "theme document not found"))
    else:
        findings.extend(audit_document(descriptor, doc))
        if not scheme_reference_exists and isinstance(doc, Mapping):
            findings.append(AuditFinding(
                "document", f"editorScheme {doc.get('editorScheme')!r} does not reference an existing file"
            ))
    findings.extend(audit_scheme(descriptor, scheme_text))
    if doc is not None:
        findings.extend(audit_contrast(doc, min_contrast))

    for finding in findings:
        logger.debug("Audit %s: %s", descriptor.slug, finding)
    return ThemeAudit(slug=descriptor.slug, findings=tuple(findings))


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def format_audit_report(audits: Sequence[ThemeAudit]) -> str:
    """Plain-text audit report, one block per theme in catalog order."""
    lines = ["Theme Audit Report", "==================", ""]
    for audit in audits:
        lines.append(f"[{'PASS' if audit.passed else 'FAIL'}] {audit.slug}")
        lines.extend(f"    - {finding}" for finding in audit.findings)

    failures = sum(1 for a in audits if not a.passed)
    lines.append("")
    lines.append(f"Total: {len(audits)} theme(s), {failures} failure(s)")
    return "\n".join(lines) + "\n"
