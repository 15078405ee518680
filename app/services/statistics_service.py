"""
app/services/statistics_service.py

Deterministic price statistics engine.

Operates on plain sequences of already-parsed prices. Listing filtering
(dropping records without a parsed price) is the caller's job.

Formulas
--------
average     = fsum(prices) / n, over the ascending-sorted sample
median      = middle element (odd n) or mean of the two middle elements (even n)
q1 / q3     = median of the lower / upper half, halves taken strictly
              before / after the overall median position (median-of-halves);
              undefined when n < 2
iqr         = q3 - q1
std dev     = population standard deviation
outliers    = prices outside [q1 - 1.5 * iqr, q3 + 1.5 * iqr]
"""

from __future__ import annotations

import math
from typing import Sequence

from app.domain.errors import EmptyInputError
from app.domain.price_analysis import PriceStatistics

OUTLIER_IQR_FACTOR = 1.5


def _median_of_sorted(values: Sequence[float]) -> float:
    count = len(values)
    middle = count // 2
    if count % 2 == 1:
        return values[middle]
    return (values[middle - 1] + values[middle]) / 2


def _split_halves(values: Sequence[float]) -> tuple[Sequence[float], Sequence[float]]:
    """
    Split a sorted sample around its median position, excluding the median
    element itself for odd sizes.
    """

    middle = len(values) // 2
    if len(values) % 2 == 1:
        return values[:middle], values[middle + 1 :]
    return values[:middle], values[middle:]


def compute_statistics(prices: Sequence[float]) -> PriceStatistics:
    """
    Compute descriptive statistics for a non-empty sample of prices.

    The result depends only on the multiset of values, never on their order.

    Raises:
        EmptyInputError: when ``prices`` is empty.
        ValueError: when a price is negative or not finite.
    """

    if not prices:
        raise EmptyInputError("No valid prices were found for this query.")

    ordered: list[float] = []
    for price in prices:
        value = float(price)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Prices must be non-negative finite numbers, got {price!r}.")
        ordered.append(value)
    ordered.sort()

    count = len(ordered)
    average = math.fsum(ordered) / count
    median = _median_of_sorted(ordered)
    variance = math.fsum((value - average) ** 2 for value in ordered) / count

    q1: float | None = None
    q3: float | None = None
    iqr: float | None = None
    lower_bound: float | None = None
    upper_bound: float | None = None
    outlier_count = 0
    if count >= 2:
        lower_half, upper_half = _split_halves(ordered)
        q1 = _median_of_sorted(lower_half)
        q3 = _median_of_sorted(upper_half)
        iqr = q3 - q1
        lower_bound = q1 - OUTLIER_IQR_FACTOR * iqr
        upper_bound = q3 + OUTLIER_IQR_FACTOR * iqr
        outlier_count = sum(1 for value in ordered if value < lower_bound or value > upper_bound)

    return PriceStatistics(
        min=ordered[0],
        max=ordered[-1],
        average=average,
        median=median,
        total_products=count,
        q1=q1,
        q3=q3,
        iqr=iqr,
        price_range=ordered[-1] - ordered[0],
        standard_deviation=math.sqrt(variance),
        lower_outlier_bound=lower_bound,
        upper_outlier_bound=upper_bound,
        outlier_count=outlier_count,
    )
