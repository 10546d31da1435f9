"""Waterjet self-propulsion towing-tank analysis toolkit."""

from importlib.metadata import PackageNotFoundError, version

from .bank import CalibrationBand, CalibrationBank, build_bank
from .errors import AnalysisError, FitError, InvalidArgument, OutOfRange
from .interpolate import InterpolatedCurve, interpolate, locate_bands, select_domain
from .models import PolynomialFit, evaluate_polynomial, fit_polynomial
from .peaks import Peak, PeakKind, PeakSet, detect_peaks
from .rpm import RPMEstimate, estimate_rpm, estimate_shaft_rpms

try:  # pragma: no cover - fallback when package metadata missing
    __version__ = version("selfprop")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

__all__ = [
    "__version__",
    "AnalysisError",
    "FitError",
    "InvalidArgument",
    "OutOfRange",
    "Peak",
    "PeakKind",
    "PeakSet",
    "detect_peaks",
    "RPMEstimate",
    "estimate_rpm",
    "estimate_shaft_rpms",
    "PolynomialFit",
    "fit_polynomial",
    "evaluate_polynomial",
    "CalibrationBand",
    "CalibrationBank",
    "build_bank",
    "InterpolatedCurve",
    "interpolate",
    "locate_bands",
    "select_domain",
]
