from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from selfprop.cli import app
from selfprop.demo import create_demo_curve_table, create_demo_run

runner = CliRunner()


def test_demo_command(tmp_path: Path) -> None:
    result = runner.invoke(app, ["demo", "--out", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert "port" in result.output
    assert "interpolated" in result.output


def test_rpm_command_with_overrides(tmp_path: Path) -> None:
    path = tmp_path / "run.csv"
    create_demo_run({"A": 900.0, "B": 950.0}, seconds=20.0).to_csv(path, index=False)

    result = runner.invoke(
        app,
        ["rpm", "--in", str(path), "--channel", "A", "--set", "rpm.warm_up_samples=800"],
    )

    assert result.exit_code == 0, result.output
    assert "A" in result.output


def test_curves_command_accepts_percent_levels(tmp_path: Path) -> None:
    path = tmp_path / "curves.csv"
    create_demo_curve_table().to_csv(path, index=False)

    result = runner.invoke(
        app, ["curves", "--in", str(path), "--level", "12.5", "--level", "0.5", "--at", "30"]
    )

    assert result.exit_code == 0, result.output
    assert "interpolated" in result.output
    assert "band" in result.output
    assert "at_30" in result.output


def test_curves_command_reports_out_of_range(tmp_path: Path) -> None:
    path = tmp_path / "curves.csv"
    create_demo_curve_table().to_csv(path, index=False)

    result = runner.invoke(app, ["curves", "--in", str(path), "--level", "0.01"])

    assert result.exit_code == 1
    assert "FAILED" in result.output


def test_invalid_override_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "curves.csv"
    create_demo_curve_table().to_csv(path, index=False)

    result = runner.invoke(
        app, ["curves", "--in", str(path), "--level", "0.3", "--set", "curves.domain_policy=widest"]
    )

    assert result.exit_code != 0
