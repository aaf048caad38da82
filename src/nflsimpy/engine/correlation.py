"""Between-team correlation of simulated drive outcomes."""

from __future__ import annotations

import logging

from .baseline import LeagueBaseline
from .configuration import CorrelationConfig
from .models import Precipitation, WeatherConditions
from .profiles import TeamProfile
from .utils import clamp

logger = logging.getLogger(__name__)


def spread_increment(spread: float, config: CorrelationConfig) -> float:
    magnitude = abs(spread)
    if magnitude <= config.close_spread:
        return config.close_bonus
    if magnitude <= config.moderate_spread:
        return config.moderate_bonus
    if magnitude >= config.blowout_spread:
        return -config.blowout_penalty
    return 0.0


def weather_increment(weather: WeatherConditions, config: CorrelationConfig) -> float:
    if weather.is_dome:
        return config.dome_bonus
    value = 0.0
    if weather.wind_mph >= config.wind_threshold_mph:
        value += config.wind_bonus
    if weather.precipitation is not Precipitation.NONE:
        value += config.precipitation_bonus.get(weather.precipitation.value, 0.0)
    return value


def estimate_correlation(
    home: TeamProfile,
    away: TeamProfile,
    league: LeagueBaseline,
    *,
    spread: float = 0.0,
    weather: WeatherConditions | None = None,
    config: CorrelationConfig | None = None,
) -> float:
    """Return ρ for one game, clamped to ``[config.minimum, config.maximum]``.

    Close games, matching play-calling tendencies, matching pace and a high
    combined explosive rate all push the two scores together; lopsided
    spreads pull them apart.
    """

    cfg = config or CorrelationConfig()
    conditions = (weather or WeatherConditions()).normalised()
    rho = cfg.baseline
    rho += spread_increment(spread, cfg)

    if abs(home.early_down_pass_rate - away.early_down_pass_rate) <= cfg.pass_rate_tolerance:
        rho += cfg.pass_rate_bonus

    combined_explosive = home.off_explosive_rate + away.off_explosive_rate
    league_explosive = 2.0 * league.explosive_rate.mean
    if combined_explosive > cfg.explosive_high_ratio * league_explosive:
        rho += cfg.explosive_high_bonus
    elif combined_explosive < cfg.explosive_low_ratio * league_explosive:
        rho -= cfg.explosive_low_penalty

    rho += weather_increment(conditions, cfg)

    if abs(home.seconds_per_snap - away.seconds_per_snap) <= cfg.pace_tolerance:
        rho += cfg.pace_bonus

    bounded = clamp(rho, cfg.minimum, cfg.maximum)
    logger.debug("Correlation %s vs %s: raw %.3f, clamped %.3f", home.team, away.team, rho, bounded)
    return bounded


__all__ = ["estimate_correlation", "spread_increment", "weather_increment"]
