"""High level orchestration for shaft speed and thrust curve analysis."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from .bank import CalibrationBank, build_bank
from .config import CurveSettings, RpmSettings
from .data import CurveTable, RunData
from .interpolate import InterpolatedCurve, interpolate
from .models import evaluate_polynomial
from .rpm import RPMEstimate, estimate_shaft_rpms

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RPMAnalysisResult:
    run: RunData
    estimates: Dict[str, RPMEstimate]

    def as_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "shaft": name,
                    "rpm": estimate.value,
                    "minima": estimate.basis_peak_count,
                    "duration_s": estimate.basis_duration_s,
                }
                for name, estimate in self.estimates.items()
            ]
        )


@dataclass(frozen=True)
class LevelCurve:
    """Curve for one operating level, straight from a band or interpolated."""

    level: float
    coefficients: tuple[float, ...]
    source: str  # "band" | "interpolated"
    interpolated: Optional[InterpolatedCurve] = None

    def evaluate(self, x: float | np.ndarray) -> float | np.ndarray:
        return evaluate_polynomial(self.coefficients, x)


@dataclass(frozen=True)
class CurveAnalysisResult:
    table: CurveTable
    bank: CalibrationBank
    curves: list[LevelCurve]
    speeds: tuple[float, ...] = ()

    def as_dataframe(self) -> pd.DataFrame:
        rows: list[dict[str, object]] = []
        for curve in self.curves:
            row: dict[str, object] = {"level": curve.level, "source": curve.source}
            if curve.interpolated is not None:
                row["lower_band"] = curve.interpolated.lower_band
                row["upper_band"] = curve.interpolated.upper_band
            for idx, value in enumerate(curve.coefficients):
                row[f"p{idx + 1}"] = value
            for speed in self.speeds:
                row[f"at_{speed:g}"] = float(curve.evaluate(speed))
            rows.append(row)
        return pd.DataFrame(rows)


def run_rpm_analysis(run: RunData, settings: RpmSettings) -> RPMAnalysisResult:
    """Estimate RPM for every channel of *run*."""

    estimates = estimate_shaft_rpms(
        run.time,
        run.channels,
        run.sample_rate_hz,
        settings.warm_up_samples,
        settings.boundary_correction,
        threshold=settings.threshold,
    )
    return RPMAnalysisResult(run=run, estimates=estimates)


def build_table_bank(table: CurveTable, settings: CurveSettings) -> CalibrationBank:
    return build_bank(
        table.rows,
        table.band_boundaries,
        settings.fit_degree,
        band_ids=table.band_ids,
        band_step=settings.band_step,
    )


def resolve_level(
    bank: CalibrationBank,
    level: float,
    *,
    refit_degree: Optional[int] = None,
    domain_policy: str = "union",
) -> LevelCurve:
    """Return the band fit for an exact level, otherwise interpolate."""

    band = bank.find(level)
    if band is not None:
        logger.info("Level %.1f%% MCR: calibrated band", level * 100)
        return LevelCurve(level=band.band_id, coefficients=band.fit_coeffs, source="band")

    curve = interpolate(bank, level, refit_degree=refit_degree, domain_policy=domain_policy)
    logger.info(
        "Level %.1f%% MCR: interpolated between %.0f%% and %.0f%% (R^2=%.4f)",
        level * 100,
        curve.lower_band * 100,
        curve.upper_band * 100,
        curve.refit.r_squared,
    )
    return LevelCurve(
        level=float(level),
        coefficients=curve.refit_coeffs,
        source="interpolated",
        interpolated=curve,
    )


def run_curve_analysis(
    table: CurveTable,
    levels: Sequence[float],
    settings: CurveSettings,
    *,
    speeds: Sequence[float] = (),
) -> CurveAnalysisResult:
    """Fit the band bank of *table* and resolve a curve for every level."""

    bank = build_table_bank(table, settings)
    curves = [
        resolve_level(
            bank,
            float(level),
            refit_degree=settings.refit_degree,
            domain_policy=settings.domain_policy,
        )
        for level in levels
    ]
    return CurveAnalysisResult(
        table=table,
        bank=bank,
        curves=curves,
        speeds=tuple(float(speed) for speed in speeds),
    )
