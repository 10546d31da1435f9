"""Local extremum detection with a hysteresis threshold."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Sequence

import numpy as np

from .errors import InvalidArgument


class PeakKind(str, Enum):
    MAX = "max"
    MIN = "min"


@dataclass(frozen=True)
class Peak:
    position: float
    value: float
    kind: PeakKind


@dataclass(frozen=True)
class PeakSet:
    """Chronological run of peaks of a single kind."""

    kind: PeakKind
    peaks: tuple[Peak, ...] = ()

    def __post_init__(self) -> None:
        previous = -math.inf
        for peak in self.peaks:
            if peak.kind is not self.kind:
                raise InvalidArgument(f"PeakSet of kind {self.kind.value} got a {peak.kind.value} peak")
            if not peak.position > previous:
                raise InvalidArgument("Peak positions must be strictly increasing")
            previous = peak.position

    def __len__(self) -> int:
        return len(self.peaks)

    def __iter__(self) -> Iterator[Peak]:
        return iter(self.peaks)

    def __getitem__(self, index: int) -> Peak:
        return self.peaks[index]

    @property
    def positions(self) -> np.ndarray:
        return np.array([peak.position for peak in self.peaks], dtype=float)

    @property
    def values(self) -> np.ndarray:
        return np.array([peak.value for peak in self.peaks], dtype=float)


def detect_peaks(
    values: Sequence[float] | np.ndarray,
    threshold: float,
    x_axis: Sequence[float] | np.ndarray | None = None,
) -> tuple[PeakSet, PeakSet]:
    """Return ``(maxima, minima)`` found in *values*.

    A maximum is confirmed once the signal has dropped more than *threshold*
    below the highest value seen since the last minimum; the reported
    position is that of the highest sample, not of the sample where the drop
    was noticed. Minima are confirmed symmetrically. Detection starts looking
    for a maximum and alternates after every confirmation. An excursion that
    is still open when the series ends is not reported.

    Parameters
    ----------
    values:
        Signal samples.
    threshold:
        Minimum reversal, in signal units, needed to confirm an extremum.
    x_axis:
        Position of every sample (e.g. time in seconds). Defaults to the
        sample index.
    """

    v = np.asarray(values, dtype=float)
    if v.ndim != 1:
        raise InvalidArgument("values must be a 1-D sequence")
    if v.size == 0:
        raise InvalidArgument("values must contain at least one sample")
    if x_axis is None:
        x = np.arange(v.size, dtype=float)
    else:
        x = np.asarray(x_axis, dtype=float)
        if x.ndim != 1 or x.size != v.size:
            raise InvalidArgument(
                f"values and x_axis must have the same length ({v.size} != {x.size})"
            )
        if x.size > 1 and not np.all(np.diff(x) > 0):
            raise InvalidArgument("x_axis must be strictly increasing")
    if not np.isfinite(threshold) or threshold <= 0:
        raise InvalidArgument(f"threshold must be positive, got {threshold!r}")

    maxima: list[Peak] = []
    minima: list[Peak] = []
    mx, mn = -math.inf, math.inf
    mx_pos = mn_pos = math.nan
    look_for_max = True

    for this, pos in zip(v.tolist(), x.tolist()):
        if this > mx:
            mx, mx_pos = this, pos
        if this < mn:
            mn, mn_pos = this, pos

        if look_for_max:
            if this < mx - threshold:
                maxima.append(Peak(mx_pos, mx, PeakKind.MAX))
                mn, mn_pos = this, pos
                look_for_max = False
        elif this > mn + threshold:
            minima.append(Peak(mn_pos, mn, PeakKind.MIN))
            mx, mx_pos = this, pos
            look_for_max = True

    return PeakSet(PeakKind.MAX, tuple(maxima)), PeakSet(PeakKind.MIN, tuple(minima))
