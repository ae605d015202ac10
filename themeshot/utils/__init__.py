"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Color parsing and WCAG contrast (color)
    - Atomic I/O, PNG and YAML/JSON loading (fs)
    - Hashing for render fingerprints (hashing)
    - Unified logging (logging_config)
    - Config and document validation (validators)

No module in utils/ may import from upper layers (theming, rendering, regression).

Convenience imports:
    from themeshot.utils import color, fs, validators
    from themeshot.utils.logging_config import setup_logging, theme_context
"""

from . import color
from . import fs
from . import hashing
from . import logging_config
from . import validators

from .logging_config import push_context, setup_logging, theme_context

__all__ = [
    # Modules
    'color',
    'fs',
    'hashing',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'push_context',
    'theme_context',
]
