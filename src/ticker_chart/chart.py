"""Terminal line chart of a price series, drawn with plotext."""

from __future__ import annotations

import math
from typing import Iterable, List

import plotext as plt

AXIS_TICKS = 5


def axis_bounds(prices: List[float]) -> tuple[float, float]:
    lo = min(prices)
    hi = max(prices)
    if hi == lo:
        # flat price: open a small band so the line sits mid-chart
        margin = abs(lo) * 0.005 or 1.0
        return lo - margin, hi + margin
    return lo, hi


def axis_ticks(lo: float, hi: float, count: int = AXIS_TICKS) -> List[float]:
    step = (hi - lo) / (count - 1)
    return [lo + step * i for i in range(count)]


def plot(
    series: Iterable[float],
    *,
    width: int = 100,
    height: int = 10,
    precision: int = 3,
    color: str | None = None,
) -> str:
    prices = [float(v) for v in series]
    if not prices:
        return ""
    if width < 1 or height < 1:
        raise ValueError("width and height must be >= 1")
    if precision < 0:
        raise ValueError("precision must be >= 0")
    if not all(math.isfinite(p) for p in prices):
        raise ValueError("series contains non-finite prices")

    y_lo, y_hi = axis_bounds(prices)
    ticks = axis_ticks(y_lo, y_hi)

    plt.clf()
    plt.plotsize(width, height)
    plt.theme("clear")
    plt.ylim(y_lo, y_hi)
    plt.yticks(ticks, [f"{tick:.{precision}f}" for tick in ticks])
    plt.plot(list(range(len(prices))), prices, color=color or "default")
    return plt.build()
