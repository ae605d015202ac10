"""themeshot: visual regression for IDE color theme catalogs.

Renders a deterministic mock-up of an editor window for every theme in a
catalog, diffs each rendering against an approved baseline, and reports
per-theme and aggregate results with diff and contact-sheet artifacts.

Architecture layers (strict one-way dependency):
    scripts/ → themeshot/pipeline → themeshot/{regression,rendering} → themeshot/theming → themeshot/utils/

Key invariants:
    - Same resolved colors + same renderer version → byte-identical pixels
    - Pixel buffers are (H, W, 4) uint8 RGBA numpy arrays
    - One theme's failure never aborts the rest of the catalog
    - Every artifact is named by theme slug and written atomically
"""

__version__ = "1.4.0"
