"""Shaft speed estimation from inductive proximity sensor voltages."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping, Sequence

import numpy as np

from .errors import InvalidArgument
from .models import round_half_away
from .peaks import detect_peaks

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD_V = 0.5
DEFAULT_BOUNDARY_CORRECTION = 2


@dataclass(frozen=True)
class RPMEstimate:
    """Rounded shaft speed and the minima count / window it was derived from."""

    value: int
    basis_peak_count: int
    basis_duration_s: float

    @classmethod
    def no_signal(cls) -> "RPMEstimate":
        return cls(value=0, basis_peak_count=0, basis_duration_s=0.0)

    @property
    def no_signal_detected(self) -> bool:
        return self.basis_peak_count == 0

    @property
    def exact_rpm(self) -> float:
        if self.basis_duration_s <= 0:
            return 0.0
        return self.basis_peak_count * 60.0 / self.basis_duration_s


def estimate_rpm(
    time: Sequence[float] | np.ndarray,
    raw_signal: Sequence[float] | np.ndarray,
    sample_rate_hz: float,
    warm_up_samples: int,
    boundary_correction: int = DEFAULT_BOUNDARY_CORRECTION,
    *,
    threshold: float = DEFAULT_THRESHOLD_V,
) -> RPMEstimate:
    """Estimate shaft RPM from one proximity sensor channel.

    The first *warm_up_samples* are skipped, peaks are detected on the rest,
    and the recording is cut from the first to the last minimum, widened by
    *boundary_correction* samples at each end. RPM is the number of minima
    per minute of that window. Runs without a usable signal yield
    ``RPMEstimate.no_signal()`` instead of raising.
    """

    t = np.asarray(time, dtype=float)
    y = np.asarray(raw_signal, dtype=float)
    if t.ndim != 1 or y.ndim != 1 or t.size != y.size:
        raise InvalidArgument(
            f"time and raw_signal must be 1-D with equal length ({t.size} != {y.size})"
        )
    if not sample_rate_hz > 0:
        raise InvalidArgument(f"sample_rate_hz must be positive, got {sample_rate_hz!r}")
    if warm_up_samples < 0:
        raise InvalidArgument("warm_up_samples may not be negative")
    if boundary_correction < 0:
        raise InvalidArgument("boundary_correction may not be negative")

    if warm_up_samples >= t.size:
        logger.warning(
            "No samples left after skipping %d warm-up samples (%d recorded)",
            warm_up_samples,
            t.size,
        )
        return RPMEstimate.no_signal()

    maxima, minima = detect_peaks(y[warm_up_samples:], threshold, t[warm_up_samples:])
    if len(minima) < 1 or len(maxima) < 1:
        logger.warning(
            "No signal: %d maxima / %d minima above %.3g V threshold",
            len(maxima),
            len(minima),
            threshold,
        )
        return RPMEstimate.no_signal()

    first = round_half_away((minima[0].position - t[0]) * sample_rate_hz) - boundary_correction
    last = round_half_away((minima[-1].position - t[0]) * sample_rate_hz) + boundary_correction
    first = max(first, 0)
    last = min(last, t.size - 1)

    duration_s = (last - first + 1) / sample_rate_hz
    count = len(minima)
    # N minima span N - 1 periods, so the value reads slightly high on short windows
    value = round_half_away(count * 60.0 / duration_s)
    logger.debug(
        "Window samples %d..%d (%.3f s), %d minima -> %d RPM", first, last, duration_s, count, value
    )
    return RPMEstimate(value=value, basis_peak_count=count, basis_duration_s=duration_s)


def estimate_shaft_rpms(
    time: Sequence[float] | np.ndarray,
    channels: Mapping[str, Sequence[float] | np.ndarray],
    sample_rate_hz: float,
    warm_up_samples: int,
    boundary_correction: int = DEFAULT_BOUNDARY_CORRECTION,
    *,
    threshold: float = DEFAULT_THRESHOLD_V,
) -> dict[str, RPMEstimate]:
    """Estimate every shaft in *channels* independently, keyed by channel name."""

    results: dict[str, RPMEstimate] = {}
    for name, signal in channels.items():
        estimate = estimate_rpm(
            time,
            signal,
            sample_rate_hz,
            warm_up_samples,
            boundary_correction,
            threshold=threshold,
        )
        logger.info("Shaft %s: %d RPM", name, estimate.value)
        results[name] = estimate
    return results
