"""Matchup ratings: one offense against the opposing defense."""

from __future__ import annotations

import logging

from .baseline import LeagueBaseline
from .configuration import CalibrationPreset, MatchupWeights, WeatherConfig
from .models import MatchupContext, Precipitation, SideMatchup, WeatherConditions
from .profiles import TeamProfile
from .utils import clamp

logger = logging.getLogger(__name__)


def offense_composite(
    team: TeamProfile, league: LeagueBaseline, weights: MatchupWeights
) -> float:
    """Weighted offensive efficiency in z units; higher is better."""

    return (
        weights.ppd * league.ppd.z_score(team.off_ppd)
        + weights.epa * league.epa.z_score(team.off_epa)
        + weights.success_rate * league.success_rate.z_score(team.off_success_rate)
        + weights.explosive_rate * league.explosive_rate.z_score(team.off_explosive_rate)
        + weights.red_zone * league.red_zone_td_rate.z_score(team.off_red_zone_td_rate)
        - weights.three_out * league.three_out_rate.z_score(team.off_three_out_rate)
    )


def defense_composite(
    team: TeamProfile, league: LeagueBaseline, weights: MatchupWeights
) -> float:
    """Weighted efficiency a defense concedes; higher helps the opposing offense."""

    return (
        weights.ppd * league.ppd.z_score(team.def_ppd_allowed)
        + weights.epa * league.epa.z_score(team.def_epa_allowed)
        + weights.success_rate * league.success_rate.z_score(team.def_success_rate)
        + weights.explosive_rate * league.explosive_rate.z_score(team.def_explosive_rate)
        + weights.red_zone * league.red_zone_td_rate.z_score(team.def_red_zone_td_rate)
        - weights.three_out * league.three_out_rate.z_score(team.def_three_out_rate)
    )


def strength_adjustment(
    offense: TeamProfile,
    defense: TeamProfile,
    league: LeagueBaseline,
    weights: MatchupWeights,
) -> float:
    """Bounded logit bonus for the offense in this matchup."""

    penalties = (
        -weights.penalties_offense * league.penalties_per_drive.z_score(offense.off_penalties_per_drive)
        + weights.penalties_defense * league.penalties_per_drive.z_score(defense.def_penalties_per_drive)
    )
    # DVOA stays on its percentage-point scale in the profile.
    dvoa = (
        offense.off_dvoa / 100.0 * weights.dvoa_offense
        + defense.def_dvoa / 100.0 * weights.dvoa_defense
    )
    field_position = weights.field_position * league.starting_field_position.z_score(
        offense.off_starting_field_position
    )
    turnovers = weights.turnover_epa * offense.off_turnover_epa_per_drive
    advantage = (
        offense_composite(offense, league, weights)
        + defense_composite(defense, league, weights)
        + penalties
        + dvoa
        + field_position
        + turnovers
    )
    raw = advantage * weights.strength_scale
    cap = abs(weights.strength_cap)
    return clamp(raw / (1.0 + abs(raw)), -cap, cap)


def side_matchup(
    offense: TeamProfile,
    defense: TeamProfile,
    calibration: CalibrationPreset,
    *,
    is_home: bool,
    hfa_points: float,
) -> SideMatchup:
    league = calibration.league
    weights = calibration.weights
    # Offense above league average plus what the defense concedes above average.
    epa_diff = (offense.off_epa - league.epa.mean) + (defense.def_epa_allowed - league.epa.mean)
    success_rate_diff = (offense.off_success_rate - league.success_rate.mean) + (
        defense.def_success_rate - league.success_rate.mean
    )
    red_zone_diff = (offense.off_red_zone_td_rate - league.red_zone_td_rate.mean) + (
        defense.def_red_zone_td_rate - league.red_zone_td_rate.mean
    )
    drive_bonus = hfa_points * weights.hfa_drive_factor
    expected_drives = (offense.off_drives_per_game + defense.def_drives_per_game) / 2.0
    expected_drives += drive_bonus if is_home else -drive_bonus
    return SideMatchup(
        epa_diff=epa_diff,
        success_rate_diff=success_rate_diff,
        red_zone_diff=red_zone_diff,
        opponent_three_out=defense.def_three_out_rate - league.three_out_rate.mean,
        strength=strength_adjustment(offense, defense, league, weights),
        expected_drives=max(0.0, expected_drives),
        is_home=is_home,
    )


def weather_adjustment(weather: WeatherConditions, config: WeatherConfig) -> float:
    """Points added to (or removed from) the expected game total."""

    if weather.is_dome:
        return config.dome_bonus
    points = 0.0
    excess_wind = max(0.0, weather.wind_mph - config.calm_wind_mph)
    points -= config.wind_penalty_per_10mph * excess_wind / 10.0
    if weather.temperature_f < config.freezing_temperature_f:
        points -= config.cold_penalty
    if weather.precipitation is not Precipitation.NONE:
        points -= config.precipitation_penalty.get(weather.precipitation.value, 0.0)
    return points


def build_matchup(
    home: TeamProfile,
    away: TeamProfile,
    calibration: CalibrationPreset,
    *,
    hfa_points: float = 0.0,
    weather: WeatherConditions | None = None,
) -> MatchupContext:
    """Derive the per-game :class:`MatchupContext` for ``home`` hosting ``away``."""

    conditions = (weather or WeatherConditions()).normalised()
    context = MatchupContext(
        home=side_matchup(home, away, calibration, is_home=True, hfa_points=hfa_points),
        away=side_matchup(away, home, calibration, is_home=False, hfa_points=hfa_points),
        hfa_logit=hfa_points / calibration.drive_model.hfa_points_per_logit,
        weather_points=weather_adjustment(conditions, calibration.weather),
    )
    logger.debug(
        "Matchup %s vs %s: strength %.3f/%.3f, drives %.2f/%.2f, weather %+.2f",
        home.team,
        away.team,
        context.home.strength,
        context.away.strength,
        context.home.expected_drives,
        context.away.expected_drives,
        context.weather_points,
    )
    return context


__all__ = [
    "build_matchup",
    "defense_composite",
    "offense_composite",
    "side_matchup",
    "strength_adjustment",
    "weather_adjustment",
]
