"""
tests/test_statistics_service.py

Pytest unit tests for the price statistics engine.

All tests are pure Python with literal inputs; no I/O.

Coverage
--------
- Worked examples (even and odd sizes, single element)
- Empty and invalid input
- Ordering invariants and permutation invariance
- Supplementary spread statistics (std dev, IQR, outliers)
"""

from __future__ import annotations

import itertools
import math

import pytest

from app.domain.errors import EmptyInputError
from app.services.statistics_service import compute_statistics


# ---------------------------------------------------------------------------
# Worked examples
# ---------------------------------------------------------------------------


class TestWorkedExamples:
    def test_four_prices(self) -> None:
        stats = compute_statistics([10, 20, 30, 40])
        assert stats.min == 10
        assert stats.max == 40
        assert stats.average == 25
        assert stats.median == 25
        assert stats.q1 == 15
        assert stats.q3 == 35
        assert stats.total_products == 4

    def test_single_price(self) -> None:
        stats = compute_statistics([5])
        assert stats.min == stats.max == stats.median == stats.average == 5
        assert stats.q1 is None
        assert stats.q3 is None
        assert stats.iqr is None
        assert stats.outlier_count == 0
        assert stats.total_products == 1

    def test_odd_size_excludes_median_from_halves(self) -> None:
        stats = compute_statistics([1, 2, 3, 4, 5])
        assert stats.median == 3
        assert stats.q1 == 1.5
        assert stats.q3 == 4.5

    def test_two_prices_have_quartiles(self) -> None:
        stats = compute_statistics([100, 300])
        assert stats.median == 200
        assert stats.q1 == 100
        assert stats.q3 == 300

    def test_unsorted_input_is_sorted_first(self) -> None:
        stats = compute_statistics([40, 10, 30, 20])
        assert stats.min == 10
        assert stats.max == 40
        assert stats.q1 == 15


# ---------------------------------------------------------------------------
# Invalid input
# ---------------------------------------------------------------------------


class TestInvalidInput:
    def test_empty_raises_empty_input_error(self) -> None:
        with pytest.raises(EmptyInputError):
            compute_statistics([])

    def test_empty_input_error_has_no_results_code(self) -> None:
        with pytest.raises(EmptyInputError) as excinfo:
            compute_statistics([])
        assert excinfo.value.code == "NO_RESULTS"

    @pytest.mark.parametrize("bad", [-1.0, math.inf, math.nan])
    def test_rejects_negative_and_non_finite(self, bad: float) -> None:
        with pytest.raises(ValueError):
            compute_statistics([10.0, bad])


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------


class TestInvariants:
    @pytest.mark.parametrize(
        "prices",
        [
            [7],
            [3, 3, 3],
            [1, 100],
            [15000, 12500, 99000, 14000, 13999],
            [0, 0, 1, 2, 1_000_000],
        ],
    )
    def test_ordering(self, prices: list[float]) -> None:
        stats = compute_statistics(prices)
        assert stats.min <= stats.median <= stats.max
        assert stats.min <= stats.average <= stats.max
        if stats.q1 is not None:
            assert stats.min <= stats.q1 <= stats.median <= stats.q3 <= stats.max

    def test_permutation_invariance(self) -> None:
        prices = [0.1, 0.2, 0.3, 1e9, 7.7]
        expected = compute_statistics(prices)
        for permutation in itertools.permutations(prices):
            assert compute_statistics(list(permutation)) == expected

    def test_identical_prices_have_zero_spread(self) -> None:
        stats = compute_statistics([2500, 2500, 2500])
        assert stats.standard_deviation == 0
        assert stats.iqr == 0
        assert stats.price_range == 0
        assert stats.outlier_count == 0


# ---------------------------------------------------------------------------
# Spread statistics
# ---------------------------------------------------------------------------


class TestSpread:
    def test_population_standard_deviation(self) -> None:
        stats = compute_statistics([2, 4, 4, 4, 5, 5, 7, 9])
        assert stats.standard_deviation == pytest.approx(2.0)

    def test_outlier_bounds_and_count(self) -> None:
        stats = compute_statistics([10, 20, 30, 40, 1000])
        # halves [10, 20] and [40, 1000]
        assert stats.q1 == 15
        assert stats.q3 == 520
        assert stats.iqr == 505
        assert stats.lower_outlier_bound == pytest.approx(15 - 1.5 * 505)
        assert stats.upper_outlier_bound == pytest.approx(520 + 1.5 * 505)
        assert stats.outlier_count == 0

    def test_detects_high_outlier(self) -> None:
        stats = compute_statistics([100, 101, 102, 103, 104, 105, 5000])
        assert stats.outlier_count == 1
        assert stats.price_range == 4900
