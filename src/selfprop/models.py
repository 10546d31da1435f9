"""Polynomial least-squares primitives shared by the curve bank and interpolator."""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from .errors import FitError


@dataclass(frozen=True)
class PolynomialFit:
    """Summary of a polynomial fit, coefficients ordered highest degree first."""

    coefficients: tuple[float, ...]
    r_squared: float
    max_abs_error: float
    n_samples: int

    @property
    def degree(self) -> int:
        return len(self.coefficients) - 1

    def evaluate(self, x: float | np.ndarray) -> float | np.ndarray:
        return evaluate_polynomial(self.coefficients, x)

    def as_dict(self) -> dict[str, float]:
        return {
            "degree": self.degree,
            "r_squared": self.r_squared,
            "max_abs_error": self.max_abs_error,
            "n_samples": self.n_samples,
            **{f"p{idx + 1}": value for idx, value in enumerate(self.coefficients)},
        }


def build_design_matrix(x: np.ndarray, degree: int) -> np.ndarray:
    """Return the Vandermonde matrix ``[x**degree, ..., x, 1]``."""

    if x.ndim != 1:
        raise ValueError("x must be 1-D array")
    return np.vander(x.astype(float), degree + 1)


def fit_polynomial(x: np.ndarray, y: np.ndarray, degree: int) -> PolynomialFit:
    """Ordinary least squares polynomial fit of *y* against *x*."""

    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if degree < 0:
        raise FitError(f"degree must be non-negative, got {degree}")
    if x.shape != y.shape or x.ndim != 1:
        raise FitError("x and y must be 1-D arrays of equal length")
    if x.size < degree + 1:
        raise FitError(f"degree {degree} fit needs at least {degree + 1} points, got {x.size}")
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise FitError("fit samples must be finite")

    X = build_design_matrix(x, degree)
    beta, _, rank, _ = np.linalg.lstsq(X, y, rcond=None)
    if rank < degree + 1:
        raise FitError(f"singular design matrix (rank {rank} < {degree + 1})")

    predictions = X @ beta
    residuals = y - predictions
    return PolynomialFit(
        coefficients=tuple(float(value) for value in beta),
        r_squared=_r_squared(y, residuals),
        max_abs_error=float(np.max(np.abs(residuals))),
        n_samples=int(x.size),
    )


def evaluate_polynomial(coefficients, x: float | np.ndarray) -> float | np.ndarray:
    """Horner evaluation of highest-degree-first *coefficients* at *x*."""

    scalar = np.ndim(x) == 0
    xs = np.asarray(x, dtype=float)
    result = np.zeros_like(xs)
    for coefficient in coefficients:
        result = result * xs + coefficient
    return float(result) if scalar else result


def round_half_away(value: float) -> int:
    # numpy/python round to even; calibration ranges round .5 away from zero
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def _r_squared(y: np.ndarray, residuals: np.ndarray) -> float:
    ss_res = float(np.sum(residuals**2))
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0.0:
        return 1.0 if np.isclose(ss_res, 0.0) else 0.0
    return 1.0 - ss_res / ss_tot
