from __future__ import annotations

import numpy as np
import pytest

from selfprop.bank import build_bank
from selfprop.errors import FitError, InvalidArgument
from selfprop.models import evaluate_polynomial


def _band_coeffs(level: float) -> list[float]:
    return [1e-5 * level, -2e-3 * level, 0.05, 2.0 * level, 50.0 * level]


def _table(levels: list[float], points: int = 30) -> tuple[np.ndarray, list[tuple[int, int]]]:
    rows = []
    boundaries = []
    for level in levels:
        x = np.linspace(5.0, 40.0, points)
        y = evaluate_polynomial(_band_coeffs(level), x)
        start = len(rows)
        rows.extend(zip(x, y))
        boundaries.append((start, len(rows)))
    return np.array(rows), boundaries


def test_build_fits_every_band() -> None:
    levels = [0.05, 0.10, 0.15, 0.20]
    table, boundaries = _table(levels)

    bank = build_bank(table, boundaries, 4)

    assert len(bank) == 4
    assert np.allclose(bank.band_ids, levels)
    for band, level in zip(bank, levels):
        assert len(band.fit_coeffs) == 5
        assert band.r_squared > 0.999999
        x = np.array([5.0, 20.0, 40.0])
        assert np.allclose(band.evaluate(x), evaluate_polynomial(_band_coeffs(level), x), atol=1e-6)
        assert len(band.samples) == 30
        assert band.x_range == (5.0, 40.0)


def test_band_lookup_tolerates_float_noise() -> None:
    table, boundaries = _table([0.05, 0.10, 0.15])
    bank = build_bank(table, boundaries, 4)

    assert bank.find(0.15) is bank.bands[2]
    assert bank[0.05 * 3] is bank.bands[2]
    assert bank.find(0.125) is None
    with pytest.raises(KeyError):
        bank[0.2]


def test_explicit_ids_are_sorted() -> None:
    table, boundaries = _table([0.3, 0.1, 0.2])

    bank = build_bank(table, boundaries, 4, band_ids=[0.3, 0.1, 0.2])

    assert bank.band_ids == (0.1, 0.2, 0.3)
    assert np.allclose(bank[0.3].fit_coeffs, _band_coeffs(0.3), rtol=1e-4, atol=1e-7)


def test_extra_columns_selected() -> None:
    table, boundaries = _table([0.05, 0.10])
    wide = np.column_stack([np.zeros(len(table)), table[:, 0], table[:, 1]])

    bank = build_bank(wide, boundaries, 4, x_column=1, y_column=2)

    assert np.isclose(bank[0.1].evaluate(30.0), evaluate_polynomial(_band_coeffs(0.1), 30.0))


def test_build_is_repeatable() -> None:
    table, boundaries = _table([0.05, 0.10, 0.15])
    first = build_bank(table, boundaries, 4)
    second = build_bank(table, boundaries, 4)
    for a, b in zip(first, second):
        assert np.allclose(a.fit_coeffs, b.fit_coeffs, rtol=0.0, atol=1e-9)


def test_samples_are_read_only() -> None:
    table, boundaries = _table([0.05, 0.10])
    bank = build_bank(table, boundaries, 4)
    with pytest.raises(ValueError):
        bank.bands[0].x[0] = 0.0
    table[0, 0] = -99.0
    assert bank.bands[0].x[0] == 5.0


def test_too_few_rows_reports_band() -> None:
    table, boundaries = _table([0.05, 0.10], points=4)
    with pytest.raises(FitError, match="band 0.05"):
        build_bank(table, boundaries, 4)


@pytest.mark.parametrize(
    "band_ids",
    [
        [0.0, 0.05],
        [0.95, 1.2],
        [0.1, 0.1],
        [0.05, 0.10, 0.20],
    ],
)
def test_invalid_band_ids(band_ids: list[float]) -> None:
    table, boundaries = _table([0.1] * len(band_ids))
    with pytest.raises(InvalidArgument):
        build_bank(table, boundaries, 4, band_ids=band_ids)


@pytest.mark.parametrize("boundaries", [[(0, 0)], [(10, 5)], [(0, 500)], []])
def test_invalid_row_ranges(boundaries: list[tuple[int, int]]) -> None:
    table, _ = _table([0.05])
    with pytest.raises(InvalidArgument):
        build_bank(table, boundaries, 4)


def test_full_band_range_ids() -> None:
    table, boundaries = _table([0.05 * (idx + 1) for idx in range(20)], points=8)
    bank = build_bank(table, boundaries, 4)
    assert len(bank) == 20
    assert np.isclose(bank.band_ids[-1], 1.0)
    assert len(bank.coefficient_table()) == 20
