"""Catalog-wide regression run: statuses, diff artifacts and the text report.

Per theme (catalog order):
    no baseline                      → SKIP_NO_BASELINE
    baseline, no current screenshot  → FAIL_NO_CURRENT
    either image unreadable          → ERROR (detail carries the reason)
    diff image cannot be written     → ERROR
    otherwise diff → OK if diff_percent <= max_diff_percent, else DIFF

Only DIFF results persist a diff image (``<diffs_dir>/<slug>-diff.png``).
Failures are DIFF, FAIL_NO_CURRENT and ERROR; skips never count.

Report format::

    Screenshot Comparison Report
    ===========================

    [ OK ] ocean-dark - 0.00% difference
    [DIFF] ocean-light - 3.17% difference
    [SKIP] forest-dark - no baseline
    [FAIL] desert - no current screenshot

    Total: 4 theme(s), 2 failure(s)
    2 theme(s) with visual differences > 1%
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from themeshot.regression.differ import MATCH_ALPHA, PIXEL_THRESHOLD, compare
from themeshot.rendering.raster import RenderedImage
from themeshot.theming.colorset import ThemeDescriptor
from themeshot.utils import fs
from themeshot.utils.logging_config import theme_context

logger = logging.getLogger(__name__)

MAX_DIFF_PERCENT = 1.0
REPORT_HEADER = "Screenshot Comparison Report\n===========================\n\n"


class Status(str, Enum):
    OK = "OK"
    DIFF = "DIFF"
    SKIP_NO_BASELINE = "SKIP_NO_BASELINE"
    FAIL_NO_CURRENT = "FAIL_NO_CURRENT"
    ERROR = "ERROR"

    @property
    def is_failure(self) -> bool:
        return self in (Status.DIFF, Status.FAIL_NO_CURRENT, Status.ERROR)


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome for one theme.

    Attributes
    ----------
    slug : str
    status : Status
    diff_percent : float or None
        Set for OK and DIFF only
    detail : str
        Reason for ERROR results
    diff_image : RenderedImage or None
        Diff visualization for compared themes (not part of equality)
    """

    slug: str
    status: Status
    diff_percent: Optional[float] = None
    detail: str = ""
    diff_image: Optional[RenderedImage] = field(default=None, compare=False, repr=False)

    @property
    def is_failure(self) -> bool:
        return self.status.is_failure

    def report_line(self) -> str:
        if self.status is Status.OK:
            return f"[ OK ] {self.slug} - {self.diff_percent:.2f}% difference"
        if self.status is Status.DIFF:
            return f"[DIFF] {self.slug} - {self.diff_percent:.2f}% difference"
        if self.status is Status.SKIP_NO_BASELINE:
            return f"[SKIP] {self.slug} - no baseline"
        if self.status is Status.FAIL_NO_CURRENT:
            return f"[FAIL] {self.slug} - no current screenshot"
        return f"[ERR ] {self.slug} - {self.detail}"


def classify(diff_percent: float, max_diff_percent: float = MAX_DIFF_PERCENT) -> Status:
    """OK at or below the gate (inclusive), DIFF above it."""
    return Status.OK if diff_percent <= max_diff_percent else Status.DIFF


def evaluate(
    slug: str,
    baseline: Optional[RenderedImage],
    current: Optional[RenderedImage],
    *,
    max_diff_percent: float = MAX_DIFF_PERCENT,
    pixel_threshold: int = PIXEL_THRESHOLD,
    match_alpha: int = MATCH_ALPHA,
) -> ComparisonResult:
    """Status for one theme from its (possibly missing) images. Pure."""
    if baseline is None:
        return ComparisonResult(slug, Status.SKIP_NO_BASELINE)
    if current is None:
        return ComparisonResult(slug, Status.FAIL_NO_CURRENT)

    diff_percent, diff_image = compare(
        baseline, current, pixel_threshold=pixel_threshold, match_alpha=match_alpha
    )
    return ComparisonResult(
        slug,
        classify(diff_percent, max_diff_percent),
        diff_percent=diff_percent,
        diff_image=diff_image,
    )


# ---------------------------------------------------------------------------
# Image stores
# ---------------------------------------------------------------------------

class DirectoryImageStore:
    """``<root>/<slug>.png`` lookup; a missing file reads as None."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def path_for(self, slug: str) -> Path:
        return self.root / f"{slug}.png"

    def exists(self, slug: str) -> bool:
        return self.path_for(slug).is_file()

    def get(self, slug: str) -> Optional[RenderedImage]:
        """Load the image for slug.

        Raises
        ------
        OSError
            If the file exists but cannot be decoded
        """
        path = self.path_for(slug)
        if not path.is_file():
            return None
        return RenderedImage.load(slug, path)


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegressionReport:
    results: tuple[ComparisonResult, ...]
    max_diff_percent: float = MAX_DIFF_PERCENT

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if r.is_failure)

    def by_status(self, status: Status) -> list[ComparisonResult]:
        return [r for r in self.results if r.status is status]

    def format_text(self) -> str:
        body = "".join(r.report_line() + "\n" for r in self.results)
        footer = (
            f"\nTotal: {self.total} theme(s), {self.failures} failure(s)\n"
            f"{self.failures} theme(s) with visual differences > {self.max_diff_percent:g}%\n"
        )
        return REPORT_HEADER + body + footer


class RegressionReporter:
    """Runs evaluate() for every catalog theme and persists DIFF artifacts.

    Parameters
    ----------
    baselines, current : DirectoryImageStore
        Approved and freshly rendered screenshots
    diffs_dir : Path, optional
        Where ``<slug>-diff.png`` goes for DIFF results; None disables writing
    max_diff_percent, pixel_threshold, match_alpha
        Forwarded to evaluate()
    workers : int
        Parallel comparisons (1 = serial)

    Examples
    --------
    >>> reporter = RegressionReporter(DirectoryImageStore("baselines"),
    ...                               DirectoryImageStore("build/screenshots"),
    ...                               Path("build/screenshots/diffs"))
    >>> report = reporter.run(catalog)
    >>> report.failures
    0
    """

    def __init__(
        self,
        baselines: DirectoryImageStore,
        current: DirectoryImageStore,
        diffs_dir: Optional[Path] = None,
        *,
        max_diff_percent: float = MAX_DIFF_PERCENT,
        pixel_threshold: int = PIXEL_THRESHOLD,
        match_alpha: int = MATCH_ALPHA,
        workers: int = 1,
    ):
        self.baselines = baselines
        self.current = current
        self.diffs_dir = Path(diffs_dir) if diffs_dir is not None else None
        self.max_diff_percent = max_diff_percent
        self.pixel_threshold = pixel_threshold
        self.match_alpha = match_alpha
        self.workers = max(1, workers)

    def check(self, descriptor: ThemeDescriptor) -> ComparisonResult:
        """Compare one theme; image decode errors become ERROR results."""
        slug = descriptor.slug
        with theme_context(slug):
            try:
                baseline = self.baselines.get(slug)
                current = self.current.get(slug) if baseline is not None else None
            except OSError as e:
                logger.error("Cannot read screenshot: %s", e)
                return ComparisonResult(slug, Status.ERROR, detail=f"unreadable image ({e})")

            result = evaluate(
                slug,
                baseline,
                current,
                max_diff_percent=self.max_diff_percent,
                pixel_threshold=self.pixel_threshold,
                match_alpha=self.match_alpha,
            )

            if result.status is Status.DIFF and self.diffs_dir is not None:
                diff_path = self.diffs_dir / f"{slug}-diff.png"
                try:
                    result.diff_image.save(diff_path)
                except OSError as e:
                    logger.error("Cannot write diff image: %s", e)
                    return ComparisonResult(
                        slug,
                        Status.ERROR,
                        detail=f"{result.diff_percent:.2f}% difference, diff image not written ({e})",
                    )
                logger.warning("%.2f%% of pixels differ, diff saved to %s", result.diff_percent, diff_path)
            elif result.status is Status.OK:
                logger.info("%.2f%% of pixels differ (within %.2f%%)", result.diff_percent, self.max_diff_percent)
            else:
                logger.info("%s", result.status.value)
            return result

    def run(self, catalog: Sequence[ThemeDescriptor]) -> RegressionReport:
        """Compare every theme; results follow catalog order."""
        if self.diffs_dir is not None:
            fs.ensure_dir(self.diffs_dir)

        if self.workers == 1 or len(catalog) <= 1:
            return RegressionReport(
                results=tuple(self.check(d) for d in catalog),
                max_diff_percent=self.max_diff_percent,
            )

        results: dict[int, ComparisonResult] = {}
        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            futures = {
                pool.submit(contextvars.copy_context().run, self.check, d): i for i, d in enumerate(catalog)
            }
            for fut in as_completed(futures):
                results[futures[fut]] = fut.result()
        return RegressionReport(
            results=tuple(results[i] for i in range(len(catalog))),
            max_diff_percent=self.max_diff_percent,
        )

    def write_report(self, report: RegressionReport, path: Union[str, Path]) -> None:
        fs.atomic_write_text(path, report.format_text())
        logger.info("Comparison report written to %s", path)
