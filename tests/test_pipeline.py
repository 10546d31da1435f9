from __future__ import annotations

from pathlib import Path

import numpy as np

from selfprop.config import CurveSettings, RpmSettings
from selfprop.data import curve_table_from_frame, run_from_frame
from selfprop.demo import create_demo_curve_table, create_demo_run, run_demo
from selfprop.pipeline import resolve_level, run_curve_analysis, run_rpm_analysis


def test_rpm_analysis_on_synthetic_run() -> None:
    run = run_from_frame(create_demo_run({"port": 1500.0, "stbd": 1520.0}), sample_rate_hz=800.0)

    result = run_rpm_analysis(run, RpmSettings())

    assert abs(result.estimates["port"].value - 1500) <= 3
    assert abs(result.estimates["stbd"].value - 1520) <= 3
    df = result.as_dataframe()
    assert df["shaft"].tolist() == ["port", "stbd"]
    assert {"rpm", "minima", "duration_s"}.issubset(df.columns)


def test_rpm_analysis_flat_channel_is_zero() -> None:
    df = create_demo_run({"port": 1500.0})
    df["stbd"] = 0.3
    run = run_from_frame(df, sample_rate_hz=800.0)

    result = run_rpm_analysis(run, RpmSettings(warm_up_samples=800))

    assert result.estimates["stbd"].value == 0
    assert result.estimates["port"].value > 0


def test_curve_analysis_resolves_exact_and_interpolated_levels() -> None:
    table = curve_table_from_frame(create_demo_curve_table())

    result = run_curve_analysis(table, [0.125, 0.5, 0.875], CurveSettings(), speeds=[30.0])

    assert [curve.source for curve in result.curves] == ["interpolated", "band", "interpolated"]
    interpolated = result.curves[0].interpolated
    assert interpolated is not None
    assert np.isclose(interpolated.lower_band, 0.10)
    assert np.isclose(interpolated.upper_band, 0.15)
    assert len(result.curves[0].coefficients) == 4
    assert len(result.curves[1].coefficients) == 5

    lower = result.bank[0.10].evaluate(30.0)
    upper = result.bank[0.15].evaluate(30.0)
    thrust = result.curves[0].evaluate(30.0)
    assert lower < thrust < upper
    assert np.isclose(thrust, 0.5 * (lower + upper), rtol=1e-6)

    df = result.as_dataframe()
    assert df["source"].tolist() == ["interpolated", "band", "interpolated"]
    assert "at_30" in df.columns
    assert np.isclose(df.loc[1, "at_30"], result.bank[0.5].evaluate(30.0))


def test_resolve_level_returns_band_fit_for_exact_level() -> None:
    table = curve_table_from_frame(create_demo_curve_table())
    result = run_curve_analysis(table, [], CurveSettings())

    curve = resolve_level(result.bank, 0.05 * 7)

    assert curve.source == "band"
    assert curve.interpolated is None
    assert curve.coefficients == result.bank[0.35].fit_coeffs


def test_reference_policy_from_settings() -> None:
    table = curve_table_from_frame(create_demo_curve_table())
    settings = CurveSettings(domain_policy="reference", refit_degree=2)

    result = run_curve_analysis(table, [0.42], settings)

    curve = result.curves[0]
    assert curve.interpolated is not None
    lower = result.bank[0.40]
    assert curve.interpolated.domain[0] == np.floor(lower.x.min() + 0.5)
    assert len(curve.coefficients) == 3


def test_run_demo_writes_inputs(tmp_path: Path) -> None:
    rpm_result, curve_result = run_demo(tmp_path)

    assert (tmp_path / "demo_run.csv").exists()
    assert (tmp_path / "demo_curves.csv").exists()
    assert all(estimate.value > 0 for estimate in rpm_result.estimates.values())
    assert len(curve_result.curves) == 4
    assert len(curve_result.bank) == 20
