"""Baseline comparison: pixel differ and catalog-wide reporter."""

from .differ import compare
from .reporter import (
    ComparisonResult,
    DirectoryImageStore,
    RegressionReport,
    RegressionReporter,
    Status,
    classify,
    evaluate,
)

__all__ = [
    'compare',
    'ComparisonResult',
    'DirectoryImageStore',
    'RegressionReport',
    'RegressionReporter',
    'Status',
    'classify',
    'evaluate',
]
