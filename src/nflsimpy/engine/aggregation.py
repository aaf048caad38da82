"""Reduction of simulated samples into distributions and market outcomes."""

from __future__ import annotations

import collections
import math
import statistics
from typing import Iterable, List, Sequence, Tuple

from .models import HistogramBin, MarketOutcome, SeriesSummary

#: Tolerance protecting exact line comparisons from representation error.
LINE_EPSILON = 1e-9


def percentile(sorted_values: Sequence[float], level: float) -> float:
    """Linear interpolation between order statistics.

    ``level`` is on the 0-100 scale and ``sorted_values`` must be ascending.
    The position is ``h = (n - 1) * level / 100``.
    """

    if not sorted_values:
        raise ValueError("Cannot take a percentile of an empty sample")
    fraction = min(1.0, max(0.0, level / 100.0))
    position = (len(sorted_values) - 1) * fraction
    lower = int(math.floor(position))
    upper = min(lower + 1, len(sorted_values) - 1)
    weight = position - lower
    low_value = float(sorted_values[lower])
    high_value = float(sorted_values[upper])
    return low_value + (high_value - low_value) * weight


def histogram(values: Iterable[int], bin_width: int) -> Tuple[HistogramBin, ...]:
    """Floor-aligned fixed-width bins, ordered by bin start.

    Every bin between the lowest and highest occupied one is emitted, empty
    bins with a zero count.
    """

    if bin_width <= 0:
        raise ValueError("bin_width must be greater than zero")
    counts: collections.Counter[int] = collections.Counter()
    total = 0
    for value in values:
        counts[int(math.floor(value / bin_width)) * bin_width] += 1
        total += 1
    if not counts:
        return ()
    starts = range(min(counts), max(counts) + bin_width, bin_width)
    return tuple(
        HistogramBin(bin=start, count=counts[start], percentage=counts[start] / total * 100.0)
        for start in starts
    )


def summarise_series(
    values: Sequence[int],
    percentiles: Sequence[float],
    bin_width: int,
) -> SeriesSummary:
    ordered = sorted(values)
    if not ordered:
        raise ValueError("Cannot summarise an empty sample")
    return SeriesSummary(
        mean=statistics.fmean(ordered),
        median=percentile(ordered, 50.0),
        stdev=statistics.pstdev(ordered) if len(ordered) > 1 else 0.0,
        minimum=float(ordered[0]),
        maximum=float(ordered[-1]),
        percentiles={float(level): percentile(ordered, level) for level in percentiles},
        histogram=histogram(ordered, bin_width),
    )


def classify_line(
    values: Iterable[float], line: float, epsilon: float = LINE_EPSILON
) -> MarketOutcome:
    """Count values above, below and on ``line``."""

    above = below = push = 0
    for value in values:
        difference = value - line
        if difference > epsilon:
            above += 1
        elif difference < -epsilon:
            below += 1
        else:
            push += 1
    return MarketOutcome(
        line=line,
        above_count=above,
        below_count=below,
        push_count=push,
        iterations=above + below + push,
    )


def classify_spread(
    margins: Iterable[float], spread: float, epsilon: float = LINE_EPSILON
) -> MarketOutcome:
    """Cover counts for a home-perspective spread.

    The home side covers when ``margin + spread`` is positive, so a home
    favourite at ``-3.5`` needs to win by four.
    """

    outcome = classify_line(margins, -spread, epsilon)
    return MarketOutcome(
        line=spread,
        above_count=outcome.above_count,
        below_count=outcome.below_count,
        push_count=outcome.push_count,
        iterations=outcome.iterations,
    )


def count_results(margins: Iterable[int]) -> Tuple[int, int, int]:
    """Return ``(home_wins, away_wins, ties)``."""

    home = away = ties = 0
    for margin in margins:
        if margin > 0:
            home += 1
        elif margin < 0:
            away += 1
        else:
            ties += 1
    return home, away, ties


def merge_buffers(chunks: Iterable[Tuple[List[int], List[int]]]) -> Tuple[List[int], List[int]]:
    """Concatenate per-chunk ``(home, away)`` score buffers in order."""

    home: List[int] = []
    away: List[int] = []
    for home_chunk, away_chunk in chunks:
        home.extend(home_chunk)
        away.extend(away_chunk)
    return home, away


__all__ = [
    "LINE_EPSILON",
    "classify_line",
    "classify_spread",
    "count_results",
    "histogram",
    "merge_buffers",
    "percentile",
    "summarise_series",
]
