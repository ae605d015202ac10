"""Pipeline orchestration: catalog → screenshots → sheets → report → audit.

Wires the pure core (theming, rendering, regression) to the on-disk layout:

    <themes_dir>/theme-list.json         catalog [{slug, name, dark}]
    <themes_dir>/<slug>.theme.json       UI colors and icon palette
    <themes_dir>/<slug>.xml              editor scheme (syntax colors)
    <baselines_dir>/<slug>.png           approved screenshots (optional)
    <screenshots_dir>/<slug>.png         fresh renders
    <screenshots_dir>/comparison-grid.png
    <screenshots_dir>/dark-light-comparison.png
    <screenshots_dir>/comparison-report.txt
    <screenshots_dir>/audit-report.txt
    <diffs_dir>/<slug>-diff.png          DIFF results only

Error boundary:
    Each theme is processed inside theme_context(slug). InvalidColorFormat,
    MissingRequiredColor, ThemeLoadError and OSError are caught per theme,
    logged, and surfaced in RenderSummary; the batch continues. Invalid JSON
    and non-mapping sections of a theme document are raised as
    ThemeLoadError. Anything else propagates.

Relative paths in the config resolve against ``root`` (default: cwd).

Usage::

    cfg = validators.load_pipeline_config("configs/pipeline.v1.yaml")
    pipeline = Pipeline(cfg)
    summary = pipeline.render_catalog()
    report = pipeline.run_regression()
"""

from __future__ import annotations

import contextvars
import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from themeshot.regression.reporter import DirectoryImageStore, RegressionReport, RegressionReporter
from themeshot.rendering.contact_sheet import ContactSheetComposer, SheetLayout, pair_themes
from themeshot.rendering.raster import RenderedImage
from themeshot.rendering.synthetic import SyntheticRenderer
from themeshot.theming.audit import ThemeAudit, audit_theme, format_audit_report
from themeshot.theming.colorset import IconPalette, MissingRequiredColor, ThemeColorSet, ThemeDescriptor
from themeshot.theming.syntax import SyntaxPalette, palette_from_scheme, parse_scheme_xml
from themeshot.utils import fs, validators
from themeshot.utils.color import InvalidColorFormat
from themeshot.utils.logging_config import theme_context

logger = logging.getLogger(__name__)

CATALOG_FILE = "theme-list.json"
GRID_FILE = "comparison-grid.png"
PAIR_STRIP_FILE = "dark-light-comparison.png"
REPORT_FILE = "comparison-report.txt"
AUDIT_REPORT_FILE = "audit-report.txt"
SCHEME_PATH_PREFIX = "/themes/"


class ThemeLoadError(Exception):
    """Raised when a theme's declaration files are missing or unusable."""


# Per-theme failures that are reported instead of aborting the batch
THEME_ERRORS = (InvalidColorFormat, MissingRequiredColor, ThemeLoadError, OSError)


@dataclass(frozen=True)
class ThemeInputs:
    """Everything the renderer needs for one theme."""

    descriptor: ThemeDescriptor
    colors: ThemeColorSet
    syntax: SyntaxPalette
    icons: IconPalette


@dataclass
class RenderSummary:
    """Outcome of render_catalog(): rendered slugs and failures by slug."""

    rendered: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.rendered) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed


def _resolve(root: Path, p: Path) -> Path:
    return p if p.is_absolute() else root / p


class Pipeline:
    """Runs the render, sheets, compare and audit stages for one config.

    Parameters
    ----------
    cfg : PipelineConfigV1
        Validated config
    root : Path, optional
        Base for relative config paths (default: current directory)
    renderer : SyntheticRenderer, optional
        Injected renderer (tests); built from cfg.render when omitted
    """

    def __init__(
        self,
        cfg: validators.PipelineConfigV1,
        root: Optional[Union[str, Path]] = None,
        renderer: Optional[SyntheticRenderer] = None,
    ):
        self.cfg = cfg
        root = Path(root) if root is not None else Path.cwd()
        self.themes_dir = _resolve(root, cfg.paths.themes_dir)
        self.screenshots_dir = _resolve(root, cfg.paths.screenshots_dir)
        self.baselines_dir = _resolve(root, cfg.paths.baselines_dir)
        self.diffs_dir = _resolve(root, cfg.paths.diffs_dir)
        self.renderer = renderer or SyntheticRenderer(cfg.render.width, cfg.render.height)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def load_catalog(self) -> List[ThemeDescriptor]:
        """Read theme-list.json.

        Raises
        ------
        FileNotFoundError
            If the catalog file is missing
        ConfigError
            If the catalog is malformed
        """
        entries = validators.load_catalog(self.themes_dir / CATALOG_FILE)
        logger.info("Loaded catalog with %d theme(s) from %s", len(entries), self.themes_dir)
        return [ThemeDescriptor.from_catalog_entry(e) for e in entries]

    def theme_document_path(self, slug: str) -> Path:
        return self.themes_dir / f"{slug}.theme.json"

    def scheme_path(self, slug: str) -> Path:
        return self.themes_dir / f"{slug}.xml"

    def read_theme_document(self, slug: str) -> Dict[str, Any]:
        """Parsed ``<slug>.theme.json``.

        Raises
        ------
        ThemeLoadError
            If the file is missing, unparsable, or not a mapping
        """
        path = self.theme_document_path(slug)
        try:
            doc = fs.load_json(path)
        except FileNotFoundError as e:
            raise ThemeLoadError(f"Theme document not found: {path}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ThemeLoadError(f"Theme document {path} is not valid JSON: {e}") from e
        if not isinstance(doc, dict):
            raise ThemeLoadError(f"Theme document {path} must be an object, got {type(doc).__name__}")
        return doc

    def read_scheme_text(self, slug: str) -> str:
        path = self.scheme_path(slug)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise ThemeLoadError(f"Editor scheme not found: {path}") from e

    def load_theme_inputs(self, descriptor: ThemeDescriptor) -> ThemeInputs:
        """Resolve colors, syntax palette and icons for one theme.

        Raises
        ------
        ThemeLoadError
            If a declaration file is missing or structurally unusable
        InvalidColorFormat
            If a declared color is malformed
        """
        doc = self.read_theme_document(descriptor.slug)
        if not isinstance(doc.get("ui"), dict):
            raise ThemeLoadError(f"Theme {descriptor.slug!r} has no 'ui' mapping")

        try:
            scheme = parse_scheme_xml(self.read_scheme_text(descriptor.slug))
        except ValueError as e:
            raise ThemeLoadError(f"Editor scheme for {descriptor.slug!r} is unusable: {e}") from e

        try:
            colors = ThemeColorSet.from_ui(doc["ui"])
            icons = IconPalette.from_declaration(doc.get("icons"))
        except TypeError as e:
            raise ThemeLoadError(f"Theme {descriptor.slug!r} is malformed: {e}") from e

        return ThemeInputs(
            descriptor=descriptor,
            colors=colors,
            syntax=palette_from_scheme(scheme),
            icons=icons,
        )

    def _catalog(self, catalog: Optional[Sequence[ThemeDescriptor]]) -> Sequence[ThemeDescriptor]:
        return catalog if catalog is not None else self.load_catalog()

    # ------------------------------------------------------------------
    # Render
    # ------------------------------------------------------------------

    def render_theme(self, descriptor: ThemeDescriptor) -> RenderedImage:
        """Render one theme and write ``<screenshots_dir>/<slug>.png``."""
        inputs = self.load_theme_inputs(descriptor)
        image = self.renderer.render(inputs.descriptor, inputs.colors, inputs.syntax, inputs.icons)
        path = self.screenshots_dir / f"{descriptor.slug}.png"
        image.save(path)
        logger.info("Rendered %dx%d → %s (sha256 %s)", image.width, image.height, path, image.fingerprint()[:12])
        return image

    def _render_guarded(self, descriptor: ThemeDescriptor) -> Optional[str]:
        with theme_context(descriptor.slug):
            try:
                self.render_theme(descriptor)
            except THEME_ERRORS as e:
                logger.error("Render failed: %s: %s", type(e).__name__, e)
                return f"{type(e).__name__}: {e}"
        return None

    def render_catalog(self, catalog: Optional[Sequence[ThemeDescriptor]] = None) -> RenderSummary:
        """Render every theme; one theme's failure never stops the others.

        Returns
        -------
        RenderSummary
            Rendered slugs in catalog order and failure reasons by slug
        """
        catalog = self._catalog(catalog)
        fs.ensure_dir(self.screenshots_dir)

        errors: Dict[str, Optional[str]] = {}
        if self.cfg.workers == 1 or len(catalog) <= 1:
            for descriptor in catalog:
                errors[descriptor.slug] = self._render_guarded(descriptor)
        else:
            with ThreadPoolExecutor(max_workers=self.cfg.workers) as pool:
                futures = {
                    pool.submit(contextvars.copy_context().run, self._render_guarded, d): d.slug
                    for d in catalog
                }
                for fut in as_completed(futures):
                    errors[futures[fut]] = fut.result()

        summary = RenderSummary()
        for descriptor in catalog:
            error = errors[descriptor.slug]
            if error is None:
                summary.rendered.append(descriptor.slug)
            else:
                summary.failed[descriptor.slug] = error

        logger.info("Rendered %d/%d theme(s)", len(summary.rendered), summary.total)
        for slug, error in summary.failed.items():
            logger.warning("  %s: %s", slug, error)
        return summary

    # ------------------------------------------------------------------
    # Contact sheets
    # ------------------------------------------------------------------

    def _load_screenshots(self, catalog: Sequence[ThemeDescriptor]) -> Dict[str, Optional[RenderedImage]]:
        store = DirectoryImageStore(self.screenshots_dir)
        images: Dict[str, Optional[RenderedImage]] = {}
        for descriptor in catalog:
            try:
                images[descriptor.slug] = store.get(descriptor.slug)
            except OSError as e:
                logger.warning("Unreadable screenshot for %s, using placeholder: %s", descriptor.slug, e)
                images[descriptor.slug] = None
        return images

    def build_contact_sheets(self, catalog: Optional[Sequence[ThemeDescriptor]] = None) -> Dict[str, Path]:
        """Write the catalog grid and, when pairs exist, the dark/light strip.

        Returns
        -------
        dict
            Artifact name ("grid", "pairs") → written path
        """
        catalog = self._catalog(catalog)
        written: Dict[str, Path] = {}
        if not catalog:
            logger.warning("Empty catalog, no contact sheets written")
            return written

        composer = ContactSheetComposer(SheetLayout.from_config(self.cfg.contact_sheet), self.renderer.fonts)
        images = self._load_screenshots(catalog)

        grid = composer.build_grid([images[d.slug] for d in catalog], [d.name for d in catalog])
        grid_path = self.screenshots_dir / GRID_FILE
        grid.save(grid_path)
        written["grid"] = grid_path
        logger.info("Comparison grid saved to %s", grid_path)

        strip = composer.build_pair_strip(pair_themes(catalog), images)
        if strip is not None:
            strip_path = self.screenshots_dir / PAIR_STRIP_FILE
            strip.save(strip_path)
            written["pairs"] = strip_path
            logger.info("Dark/light comparison strip saved to %s", strip_path)
        return written

    # ------------------------------------------------------------------
    # Regression
    # ------------------------------------------------------------------

    def run_regression(self, catalog: Optional[Sequence[ThemeDescriptor]] = None) -> RegressionReport:
        """Compare screenshots to baselines and write comparison-report.txt."""
        catalog = self._catalog(catalog)
        if not self.baselines_dir.is_dir():
            logger.warning(
                "No baseline directory at %s; copy %s/*.png there to create baselines",
                self.baselines_dir, self.screenshots_dir,
            )

        compare_cfg = self.cfg.compare
        reporter = RegressionReporter(
            DirectoryImageStore(self.baselines_dir),
            DirectoryImageStore(self.screenshots_dir),
            self.diffs_dir,
            max_diff_percent=compare_cfg.max_diff_percent,
            pixel_threshold=compare_cfg.pixel_threshold,
            match_alpha=compare_cfg.match_alpha,
            workers=self.cfg.workers,
        )
        report = reporter.run(catalog)
        reporter.write_report(report, self.screenshots_dir / REPORT_FILE)
        if report.failures:
            logger.warning("%d theme(s) failed comparison; diff images in %s", report.failures, self.diffs_dir)
        return report

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def _scheme_reference_exists(self, doc: Any) -> bool:
        ref = doc.get("editorScheme") if isinstance(doc, dict) else None
        if not isinstance(ref, str) or not ref.startswith(SCHEME_PATH_PREFIX):
            # Shape problems are reported by the document schema check
            return True
        return (self.themes_dir / ref[len(SCHEME_PATH_PREFIX):]).is_file()

    def audit_one(self, descriptor: ThemeDescriptor) -> ThemeAudit:
        doc: Any = None
        document_error = None
        try:
            doc = self.read_theme_document(descriptor.slug)
        except ThemeLoadError as e:
            document_error = str(e)

        try:
            scheme_text: Optional[str] = self.read_scheme_text(descriptor.slug)
        except ThemeLoadError:
            scheme_text = None

        return audit_theme(
            descriptor,
            doc,
            scheme_text,
            min_contrast=self.cfg.audit.min_contrast,
            document_error=document_error,
            scheme_reference_exists=self._scheme_reference_exists(doc),
        )

    def run_audit(self, catalog: Optional[Sequence[ThemeDescriptor]] = None) -> List[ThemeAudit]:
        """Audit every theme and write audit-report.txt."""
        catalog = self._catalog(catalog)
        audits = []
        for descriptor in catalog:
            with theme_context(descriptor.slug):
                audit = self.audit_one(descriptor)
                if not audit.passed:
                    logger.warning("Audit failed with %d finding(s)", len(audit.findings))
            audits.append(audit)

        path = self.screenshots_dir / AUDIT_REPORT_FILE
        fs.atomic_write_text(path, format_audit_report(audits))
        logger.info("Audit report written to %s", path)
        return audits
