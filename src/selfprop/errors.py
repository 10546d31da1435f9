"""Exception types raised by the analysis core."""
from __future__ import annotations


class AnalysisError(Exception):
    """Base class for analysis failures."""


class InvalidArgument(AnalysisError, ValueError):
    """Malformed input, e.g. mismatched lengths or a non-positive threshold."""


class FitError(AnalysisError, ValueError):
    """A polynomial could not be fitted (too few points or singular system)."""


class OutOfRange(AnalysisError, ValueError):
    """Query level is not strictly inside the calibrated band span."""
