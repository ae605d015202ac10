"""Pixel differencer for baseline vs current screenshots.

Compares the overlapping region of two RGBA rasters (top-left aligned, no
resizing) and produces a diff percentage plus a diff image of the overlap:

    bit-identical RGBA          → current RGB, alpha MATCH_ALPHA (faded)
    max |ΔR|,|ΔG|,|ΔB| > 5      → opaque red, counted
    otherwise (AA noise)        → current pixel unchanged, not counted

diff_percent = counted / overlap_pixels * 100. An empty overlap is treated
as a total mismatch (100.0) with a 0×0 diff image.

Pure function; vectorized over the whole overlap with numpy.
"""

from typing import Tuple

import numpy as np

from themeshot.rendering.raster import RenderedImage

PIXEL_THRESHOLD = 5
MATCH_ALPHA = 0x40
DIFF_COLOR = (255, 0, 0, 255)


def compare(
    baseline: RenderedImage,
    current: RenderedImage,
    *,
    pixel_threshold: int = PIXEL_THRESHOLD,
    match_alpha: int = MATCH_ALPHA,
) -> Tuple[float, RenderedImage]:
    """Diff two rasters over their overlap.

    Parameters
    ----------
    baseline : RenderedImage
        Approved reference
    current : RenderedImage
        Fresh rendering; its slug tags the diff image
    pixel_threshold : int
        Largest per-channel RGB delta still treated as antialiasing, default 5
    match_alpha : int
        Alpha written for bit-identical pixels, default 0x40

    Returns
    -------
    diff_percent : float
        Share of overlap pixels that differ, in [0, 100]
    diff_image : RenderedImage
        Overlap-sized visualization

    Notes
    -----
    Alpha takes part in the identity test but not in the threshold test:
    a pixel that differs only in alpha is left unchanged and not counted.

    Examples
    --------
    >>> pct, diff = compare(image, image)
    >>> pct
    0.0
    """
    height = min(baseline.height, current.height)
    width = min(baseline.width, current.width)
    if height == 0 or width == 0:
        return 100.0, RenderedImage.blank(current.slug, width, height)

    base = baseline.pixels[:height, :width]
    cur = current.pixels[:height, :width]

    identical = np.all(base == cur, axis=2)
    channel_delta = np.abs(base[..., :3].astype(np.int16) - cur[..., :3].astype(np.int16))
    differs = channel_delta.max(axis=2) > pixel_threshold

    out = cur.copy()
    out[identical, 3] = match_alpha
    out[differs] = DIFF_COLOR

    diff_percent = float(np.count_nonzero(differs)) * 100.0 / float(height * width)
    return diff_percent, RenderedImage(slug=current.slug, pixels=out)
