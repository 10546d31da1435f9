"""Data loading utilities for towing-tank runs and thrust curve tables."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import numpy as np
import pandas as pd


@dataclass(frozen=True, eq=False)
class RunData:
    """Time axis and proximity sensor channels of one run."""

    dataframe: pd.DataFrame
    time: np.ndarray
    channels: Dict[str, np.ndarray]
    sample_rate_hz: float


@dataclass(frozen=True, eq=False)
class CurveTable:
    """Calibration rows grouped into contiguous operating-level blocks."""

    dataframe: pd.DataFrame
    rows: np.ndarray
    band_ids: tuple[float, ...]
    band_boundaries: tuple[tuple[int, int], ...]


def load_run_csv(
    path: str | Path,
    *,
    time_column: str = "time",
    channels: Optional[Mapping[str, str]] = None,
    sample_rate_hz: Optional[float] = None,
) -> RunData:
    """Load a run from *path*.

    Parameters
    ----------
    path:
        CSV file with a time column and one column per sensor channel.
    channels:
        Mapping of shaft name to column. Defaults to every non-time column.
    sample_rate_hz:
        Sample rate; inferred from the median time step when omitted.
    """

    path = Path(path)
    if not path.exists():  # pragma: no cover - defensive
        raise FileNotFoundError(path)
    return run_from_frame(
        pd.read_csv(path),
        time_column=time_column,
        channels=channels,
        sample_rate_hz=sample_rate_hz,
    )


def run_from_frame(
    df: pd.DataFrame,
    *,
    time_column: str = "time",
    channels: Optional[Mapping[str, str]] = None,
    sample_rate_hz: Optional[float] = None,
) -> RunData:
    if time_column not in df.columns:
        raise ValueError(f"Missing time column '{time_column}'")
    if channels is None:
        channels = {column: column for column in df.columns if column != time_column}
    if not channels:
        raise ValueError("At least one sensor channel is required")
    missing = set(channels.values()) - set(df.columns)
    if missing:
        raise ValueError(f"Missing channel columns: {sorted(missing)}")

    time = df[time_column].to_numpy(dtype=float)
    if sample_rate_hz is None:
        sample_rate_hz = _infer_sample_rate(time)
    return RunData(
        dataframe=df,
        time=time,
        channels={name: df[column].to_numpy(dtype=float) for name, column in channels.items()},
        sample_rate_hz=float(sample_rate_hz),
    )


def load_curve_table(
    path: str | Path,
    *,
    level_column: str = "mcr",
    x_column: str = "speed",
    y_column: str = "thrust",
) -> CurveTable:
    """Load thrust curves from *path*; rows of one level must be contiguous."""

    path = Path(path)
    if not path.exists():  # pragma: no cover - defensive
        raise FileNotFoundError(path)
    return curve_table_from_frame(
        pd.read_csv(path), level_column=level_column, x_column=x_column, y_column=y_column
    )


def curve_table_from_frame(
    df: pd.DataFrame,
    *,
    level_column: str = "mcr",
    x_column: str = "speed",
    y_column: str = "thrust",
) -> CurveTable:
    missing = {level_column, x_column, y_column} - set(df.columns)
    if missing:
        raise ValueError(f"Missing required columns: {sorted(missing)}")
    if df.empty:
        raise ValueError("Curve table is empty")

    df = df.reset_index(drop=True)
    levels = df[level_column].to_numpy(dtype=float)
    if np.nanmax(levels) > 1.0:
        levels = levels / 100.0  # percent MCR

    # a new block starts wherever the level changes
    starts = np.flatnonzero(np.r_[True, ~np.isclose(levels[1:], levels[:-1])])
    ends = np.r_[starts[1:], levels.size]
    block_levels = levels[starts]
    if np.unique(np.round(block_levels, 9)).size != block_levels.size:
        raise ValueError(f"Rows of each '{level_column}' level must be contiguous")

    rows = df[[x_column, y_column]].to_numpy(dtype=float)
    return CurveTable(
        dataframe=df,
        rows=rows,
        band_ids=tuple(float(level) for level in block_levels),
        band_boundaries=tuple((int(start), int(end)) for start, end in zip(starts, ends)),
    )


def _infer_sample_rate(time: np.ndarray) -> float:
    if time.size < 2:
        raise ValueError("Cannot infer sample rate from fewer than two samples")
    step = float(np.median(np.diff(time)))
    if step <= 0:
        raise ValueError("time column must be increasing")
    return 1.0 / step
