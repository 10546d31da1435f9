"""Synthesis of a curve for an operating level between two calibrated bands."""
from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .bank import CalibrationBand, CalibrationBank, same_level
from .errors import InvalidArgument, OutOfRange
from .models import PolynomialFit, fit_polynomial, round_half_away

logger = logging.getLogger(__name__)

DOMAIN_POLICIES = ("union", "reference")


@dataclass(frozen=True, eq=False)
class InterpolatedCurve:
    """Blend of two adjacent bands at *query_level*, refitted as a polynomial."""

    query_level: float
    lower_band: float
    upper_band: float
    weight: float
    domain: np.ndarray
    lower_values: np.ndarray
    upper_values: np.ndarray
    blended: np.ndarray
    refit: PolynomialFit

    @property
    def blended_points(self) -> list[tuple[float, float]]:
        return list(zip(self.domain.tolist(), self.blended.tolist()))

    @property
    def refit_coeffs(self) -> tuple[float, ...]:
        return self.refit.coefficients

    def evaluate(self, x: float | np.ndarray) -> float | np.ndarray:
        return self.refit.evaluate(x)


def locate_bands(bank: CalibrationBank, query_level: float) -> tuple[CalibrationBand, CalibrationBand]:
    """Return the adjacent bands with ``lower.band_id < query_level < upper.band_id``."""

    ids = bank.band_ids
    if len(ids) < 2:
        raise OutOfRange("interpolation needs at least two calibrated bands")
    if not np.isfinite(query_level) or query_level < ids[0] or query_level > ids[-1]:
        raise OutOfRange(
            f"level {query_level!r} outside calibrated span [{ids[0]:g}, {ids[-1]:g}]"
        )
    idx = bisect.bisect_left(ids, query_level)
    for candidate in (idx - 1, idx):
        if 0 <= candidate < len(ids) and same_level(ids[candidate], query_level):
            raise OutOfRange(
                f"level {query_level!r} matches band {ids[candidate]:g}; use its fit directly"
            )
    lower, upper = bank.bands[idx - 1], bank.bands[idx]
    logger.debug("Level %.4f bracketed by bands %g and %g", query_level, lower.band_id, upper.band_id)
    return lower, upper


def select_domain(
    lower: CalibrationBand,
    upper: CalibrationBand,
    policy: str = "union",
) -> np.ndarray:
    """Unit-step speeds over which the two band fits are blended.

    ``"union"`` spans from the smaller of the rounded minima to the larger of
    the rounded maxima, so one of the fits may be evaluated outside its own
    samples. ``"reference"`` starts at the lower band's rounded minimum and
    stops at the smaller rounded maximum.
    """

    lo_min, lo_max = (round_half_away(value) for value in lower.x_range)
    up_min, up_max = (round_half_away(value) for value in upper.x_range)
    if policy == "union":
        start, stop = min(lo_min, up_min), max(lo_max, up_max)
    elif policy == "reference":
        start, stop = lo_min, min(lo_max, up_max)
    else:
        raise InvalidArgument(f"Unsupported domain policy '{policy}' (expected one of {DOMAIN_POLICIES})")
    return np.arange(start, stop + 1, dtype=float)


def interpolate(
    bank: CalibrationBank,
    query_level: float,
    domain_points: Sequence[float] | np.ndarray | None = None,
    *,
    refit_degree: int | None = None,
    domain_policy: str = "union",
) -> InterpolatedCurve:
    """Blend the two bands bracketing *query_level* and refit the result.

    Both band fits are evaluated on *domain_points* (or on the domain chosen
    by *domain_policy*) and mixed linearly by where *query_level* sits between
    the two band ids. The blended points are refitted with a polynomial of
    *refit_degree*, one below the bank degree unless given.
    """

    lower, upper = locate_bands(bank, query_level)
    if domain_points is None:
        domain = select_domain(lower, upper, domain_policy)
    else:
        domain = np.array(domain_points, dtype=float)
        if domain.ndim != 1:
            raise InvalidArgument("domain_points must be 1-D")
    degree = refit_degree if refit_degree is not None else max(bank.degree - 1, 1)

    weight = (query_level - lower.band_id) / (upper.band_id - lower.band_id)
    lower_values = np.asarray(lower.evaluate(domain), dtype=float)
    upper_values = np.asarray(upper.evaluate(domain), dtype=float)
    blended = lower_values + weight * (upper_values - lower_values)
    refit = fit_polynomial(domain, blended, degree)

    for array in (domain, lower_values, upper_values, blended):
        array.flags.writeable = False
    logger.debug(
        "Level %.4f: weight %.4f over %d points, refit degree %d (R^2=%.5f)",
        query_level,
        weight,
        domain.size,
        degree,
        refit.r_squared,
    )
    return InterpolatedCurve(
        query_level=float(query_level),
        lower_band=lower.band_id,
        upper_band=upper.band_id,
        weight=float(weight),
        domain=domain,
        lower_values=lower_values,
        upper_values=upper_values,
        blended=blended,
        refit=refit,
    )
