"""Calibration bank: one polynomial fit per operating-level band."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, Sequence

import numpy as np

from .errors import FitError, InvalidArgument
from .models import PolynomialFit, fit_polynomial

logger = logging.getLogger(__name__)

DEFAULT_BAND_STEP = 0.05


def same_level(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=1e-9, abs_tol=1e-12)


@dataclass(frozen=True, eq=False)
class CalibrationBand:
    """Sampled curve for one operating level and its equation of fit."""

    band_id: float
    x: np.ndarray
    y: np.ndarray
    fit: PolynomialFit

    @property
    def fit_coeffs(self) -> tuple[float, ...]:
        return self.fit.coefficients

    @property
    def r_squared(self) -> float:
        return self.fit.r_squared

    @property
    def samples(self) -> list[tuple[float, float]]:
        return list(zip(self.x.tolist(), self.y.tolist()))

    @property
    def x_range(self) -> tuple[float, float]:
        return float(self.x.min()), float(self.x.max())

    def evaluate(self, x: float | np.ndarray) -> float | np.ndarray:
        return self.fit.evaluate(x)


@dataclass(frozen=True, eq=False)
class CalibrationBank:
    """Bands sorted by ascending ``band_id``."""

    degree: int
    bands: tuple[CalibrationBand, ...]

    def __len__(self) -> int:
        return len(self.bands)

    def __iter__(self) -> Iterator[CalibrationBand]:
        return iter(self.bands)

    @property
    def band_ids(self) -> tuple[float, ...]:
        return tuple(band.band_id for band in self.bands)

    def find(self, band_id: float) -> CalibrationBand | None:
        for band in self.bands:
            if same_level(band.band_id, band_id):
                return band
        return None

    def __getitem__(self, band_id: float) -> CalibrationBand:
        band = self.find(band_id)
        if band is None:
            raise KeyError(band_id)
        return band

    def coefficient_table(self) -> list[dict[str, float]]:
        return [{"band_id": band.band_id, **band.fit.as_dict()} for band in self.bands]


def build_bank(
    raw_table: Sequence[Sequence[float]] | np.ndarray,
    band_boundaries: Sequence[tuple[int, int]],
    degree: int,
    *,
    band_ids: Sequence[float] | None = None,
    band_step: float = DEFAULT_BAND_STEP,
    x_column: int = 0,
    y_column: int = 1,
) -> CalibrationBank:
    """Fit a degree-*degree* polynomial to every band slice of *raw_table*.

    Parameters
    ----------
    raw_table:
        2-D table of calibration rows; *x_column* holds the operating speed
        and *y_column* the dependent quantity (e.g. thrust).
    band_boundaries:
        Half-open ``(start, end)`` row ranges, one per band.
    degree:
        Polynomial degree used for every band.
    band_ids:
        Operating level of each band as a fraction of full rating. Defaults
        to ``band_step, 2 * band_step, ...`` in boundary order.

    Raises
    ------
    InvalidArgument
        Malformed table, row range or band ids.
    FitError
        A band slice cannot be fitted.
    """

    table = np.asarray(raw_table, dtype=float)
    if table.ndim != 2:
        raise InvalidArgument("raw_table must be a 2-D table of rows")
    n_rows, n_cols = table.shape
    for column in (x_column, y_column):
        if not 0 <= column < n_cols:
            raise InvalidArgument(f"column {column} outside table with {n_cols} columns")
    if not band_boundaries:
        raise InvalidArgument("at least one band boundary is required")

    if band_ids is None:
        ids = [band_step * (idx + 1) for idx in range(len(band_boundaries))]
    else:
        ids = [float(value) for value in band_ids]
        if len(ids) != len(band_boundaries):
            raise InvalidArgument(
                f"{len(ids)} band ids given for {len(band_boundaries)} band boundaries"
            )
    _validate_band_ids(ids)

    bands: list[CalibrationBand] = []
    for band_id, (start, end) in sorted(zip(ids, band_boundaries), key=lambda item: item[0]):
        if not 0 <= start < end <= n_rows:
            raise InvalidArgument(
                f"band {band_id:g}: row range ({start}, {end}) invalid for {n_rows} rows"
            )
        x = table[start:end, x_column].copy()
        y = table[start:end, y_column].copy()
        try:
            fit = fit_polynomial(x, y, degree)
        except FitError as exc:
            raise FitError(f"band {band_id:g}: {exc}") from exc
        x.flags.writeable = False
        y.flags.writeable = False
        logger.info(
            "Band %.0f%%: %d samples, degree %d fit, R^2=%.4f",
            band_id * 100,
            fit.n_samples,
            degree,
            fit.r_squared,
        )
        bands.append(CalibrationBand(band_id=band_id, x=x, y=y, fit=fit))

    return CalibrationBank(degree=degree, bands=tuple(bands))


def _validate_band_ids(ids: list[float]) -> None:
    for band_id in ids:
        if not (0.0 < band_id <= 1.0 or same_level(band_id, 1.0)):
            raise InvalidArgument(f"band id {band_id!r} outside (0, 1]")
    ordered = sorted(ids)
    steps = np.diff(ordered)
    if np.any(steps <= 0) or any(same_level(a, b) for a, b in zip(ordered, ordered[1:])):
        raise InvalidArgument("band ids must be unique")
    if steps.size and not np.allclose(steps, steps[0], rtol=1e-6, atol=1e-9):
        raise InvalidArgument("band ids must be evenly spaced")
