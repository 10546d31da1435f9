"""Demo dataset utilities."""
from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from .config import AnalysisConfig
from .data import load_curve_table, load_run_csv
from .pipeline import CurveAnalysisResult, RPMAnalysisResult, run_curve_analysis, run_rpm_analysis

logger = logging.getLogger(__name__)

DEMO_LEVELS = (0.125, 0.33, 0.5, 0.875)
DEMO_SPEEDS = (20.0, 30.0, 38.0)


def create_demo_run(
    rpm: dict[str, float] | None = None,
    *,
    seconds: float = 40.0,
    sample_rate_hz: float = 800.0,
    noise_v: float = 0.05,
    seed: int = 42,
) -> pd.DataFrame:
    """Proximity sensor voltages (0-5 V) for shafts turning at *rpm*."""

    rng = np.random.default_rng(seed)
    rpm = rpm or {"port": 1500.0, "stbd": 1520.0}
    time = np.arange(int(round(seconds * sample_rate_hz))) / sample_rate_hz
    data = {"time": time}
    for name, speed in rpm.items():
        phase = rng.uniform(0.0, 2 * np.pi)
        signal = 2.5 + 2.5 * np.sin(2 * np.pi * speed / 60.0 * time + phase)
        data[name] = signal + rng.normal(scale=noise_v, size=time.size)
    return pd.DataFrame(data)


def create_demo_curve_table(levels_pct: range = range(5, 105, 5)) -> pd.DataFrame:
    """Thrust vs. ship speed curves for each percent-MCR level."""

    rows = []
    for pct in levels_pct:
        p = pct / 100.0
        n = 40 - int(round(24 * p))
        speeds = np.linspace(2.0 + 18.0 * p, 46.0 - 6.0 * (1.0 - p), n)
        thrust = 950.0 * p**0.7 * (1.0 - 0.012 * speeds)
        rows.extend(
            {"mcr": pct, "speed": float(v), "thrust": float(t)} for v, t in zip(speeds, thrust)
        )
    return pd.DataFrame(rows)


def run_demo(out_dir: Path) -> tuple[RPMAnalysisResult, CurveAnalysisResult]:
    out_dir.mkdir(parents=True, exist_ok=True)
    run_path = out_dir / "demo_run.csv"
    curves_path = out_dir / "demo_curves.csv"
    create_demo_run().to_csv(run_path, index=False)
    create_demo_curve_table().to_csv(curves_path, index=False)

    config = AnalysisConfig()
    run = load_run_csv(run_path, sample_rate_hz=config.rpm.sample_rate_hz)
    rpm_result = run_rpm_analysis(run, config.rpm)
    curve_result = run_curve_analysis(
        load_curve_table(curves_path), DEMO_LEVELS, config.curves, speeds=DEMO_SPEEDS
    )
    logger.info("Demo inputs written to %s", out_dir)
    return rpm_result, curve_result
