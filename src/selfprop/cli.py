"""Command line interface for the selfprop package."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer

from .config import AnalysisConfig, load_config
from .data import load_curve_table, load_run_csv
from .demo import run_demo
from .errors import AnalysisError
from .pipeline import run_curve_analysis, run_rpm_analysis

app = typer.Typer(context_settings={"help_option_names": ["-h", "--help"]})


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log fit and peak details."),
) -> None:
    """Waterjet self-propulsion post-processing."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _config(config_path: Optional[Path], override: Optional[list[str]]) -> AnalysisConfig:
    try:
        return load_config(config_path, override or None)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config/--set") from exc


def _parse_channels(channel: Optional[list[str]]) -> Optional[dict[str, str]]:
    if not channel:
        return None
    mapping: dict[str, str] = {}
    for item in channel:
        name, _, column = item.partition("=")
        if not name:
            raise typer.BadParameter(f"Invalid channel '{item}'", param_hint="--channel")
        mapping[name] = column or name
    return mapping


@app.command()
def rpm(
    input_path: Path = typer.Option(..., "--in", help="Run CSV with time and sensor columns.", exists=True),
    time_column: str = typer.Option("time", "--time-column", help="Name of the time column."),
    channel: Optional[list[str]] = typer.Option(
        None, "--channel", help="Shaft channel as NAME=COLUMN (repeatable). Defaults to all columns."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON analysis config."),
    override: Optional[list[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set rpm.warm_up_samples=4000"
    ),
) -> None:
    """Estimate shaft RPM from proximity sensor voltages."""

    cfg = _config(config_path, override)
    try:
        run = load_run_csv(
            input_path,
            time_column=time_column,
            channels=_parse_channels(channel),
            sample_rate_hz=cfg.rpm.sample_rate_hz,
        )
        result = run_rpm_analysis(run, cfg.rpm)
    except (AnalysisError, ValueError) as exc:
        typer.echo(f"RPM analysis FAILED: {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(result.as_dataframe().to_string(index=False))


@app.command()
def curves(
    input_path: Path = typer.Option(..., "--in", help="Thrust curve CSV.", exists=True),
    level: list[float] = typer.Option(..., "--level", help="Operating level, fraction or percent (repeatable)."),
    at: Optional[list[float]] = typer.Option(None, "--at", help="Evaluate curves at this speed (repeatable)."),
    level_column: str = typer.Option("mcr", "--level-column"),
    x_column: str = typer.Option("speed", "--x-column"),
    y_column: str = typer.Option("thrust", "--y-column"),
    config_path: Optional[Path] = typer.Option(None, "--config", "-c", help="JSON analysis config."),
    override: Optional[list[str]] = typer.Option(
        None, "--set", help="Override config keys, e.g. --set curves.domain_policy=reference"
    ),
) -> None:
    """Fit calibration bands and interpolate curves at the requested levels."""

    cfg = _config(config_path, override)
    levels = [value / 100.0 if value > 1.0 else value for value in level]
    try:
        table = load_curve_table(
            input_path, level_column=level_column, x_column=x_column, y_column=y_column
        )
        result = run_curve_analysis(table, levels, cfg.curves, speeds=at or ())
    except (AnalysisError, ValueError) as exc:
        typer.echo(f"Curve analysis FAILED: {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(result.as_dataframe().to_string(index=False))


@app.command()
def demo(
    out_dir: Path = typer.Option(Path("demo_output"), "--out", help="Target directory for demo inputs."),
) -> None:
    """Generate synthetic data and analyse it."""

    rpm_result, curve_result = run_demo(out_dir)
    typer.echo(rpm_result.as_dataframe().to_string(index=False))
    typer.echo("")
    typer.echo(curve_result.as_dataframe().to_string(index=False))
    typer.echo(f"Demo inputs written to {out_dir}")


def run() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    run()
