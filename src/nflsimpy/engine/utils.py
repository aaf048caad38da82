"""Reusable math helpers for odds, probabilities and bounded transforms."""

from __future__ import annotations

import math

#: Sentinel prices for degenerate probabilities.
CERTAIN_LOSS_ODDS = math.inf
CERTAIN_WIN_ODDS = -math.inf

__all__ = [
    "CERTAIN_LOSS_ODDS",
    "CERTAIN_WIN_ODDS",
    "american_to_probability",
    "clamp",
    "fair_american_odds",
    "round_half_up",
    "sigmoid",
]


def clamp(value: float, lower: float, upper: float) -> float:
    """Bound ``value`` to ``[lower, upper]``."""

    return max(lower, min(upper, value))


def sigmoid(value: float) -> float:
    """Logistic function, stable for large negative inputs."""

    if value >= 0.0:
        return 1.0 / (1.0 + math.exp(-value))
    exp_value = math.exp(value)
    return exp_value / (1.0 + exp_value)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with ties going towards positive infinity."""

    return int(math.floor(value + 0.5))


def fair_american_odds(probability: float) -> float:
    """Return the vig-free American price implied by ``probability``.

    Favourites (``p >= 0.5``) receive a negative price, underdogs a positive
    one.  Probabilities at or beyond the unit interval's edges cannot be priced
    and map to the infinite sentinels: ``p <= 0`` is ``+inf`` and ``p >= 1``
    is ``-inf``.
    """

    if math.isnan(probability):
        raise ValueError("Probability must be a number")
    if probability <= 0.0:
        return CERTAIN_LOSS_ODDS
    if probability >= 1.0:
        return CERTAIN_WIN_ODDS
    if probability >= 0.5:
        return float(-round_half_up(probability / (1.0 - probability) * 100.0))
    return float(round_half_up((1.0 - probability) / probability * 100.0))


def american_to_probability(odds: float) -> float:
    """Invert :func:`fair_american_odds`, including the infinite sentinels."""

    if math.isnan(odds):
        raise ValueError("Odds must be a number")
    if odds == CERTAIN_LOSS_ODDS:
        return 0.0
    if odds == CERTAIN_WIN_ODDS:
        return 1.0
    if odds == 0.0:
        raise ValueError("American odds cannot be zero")
    if odds < 0.0:
        return -odds / (-odds + 100.0)
    return 100.0 / (odds + 100.0)
