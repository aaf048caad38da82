from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from nflsimpy.engine.baseline import DEFAULT_LEAGUE_BASELINE
from nflsimpy.engine.configuration import CALIBRATION_PRESETS, MatchupWeights, WeatherConfig
from nflsimpy.engine.matchup import (
    build_matchup,
    offense_composite,
    side_matchup,
    strength_adjustment,
    weather_adjustment,
)
from nflsimpy.engine.models import Precipitation, WeatherConditions
from nflsimpy.engine.profiles import TeamProfile

LEAGUE = DEFAULT_LEAGUE_BASELINE
WEIGHTS = MatchupWeights()


def test_league_average_matchup_is_neutral(average_home, average_away, calibration) -> None:
    context = build_matchup(average_home, average_away, calibration)

    for side in (context.home, context.away):
        assert side.epa_diff == pytest.approx(0.0)
        assert side.success_rate_diff == pytest.approx(0.0)
        assert side.red_zone_diff == pytest.approx(0.0)
        assert side.opponent_three_out == pytest.approx(0.0)
        assert side.strength == pytest.approx(0.0)
        assert side.expected_drives == pytest.approx(11.6)
    assert context.hfa_logit == 0.0
    assert context.weather_points == 0.0
    assert context.home.is_home and not context.away.is_home


def test_differentials_add_offense_and_defense_concessions(calibration) -> None:
    offense = TeamProfile.league_average("OFF").with_stats(off_epa=0.122)
    defense = TeamProfile.league_average("DEF").with_stats(def_epa_allowed=0.072)

    context = build_matchup(offense, defense, calibration)

    assert context.home.epa_diff == pytest.approx(0.1 + 0.05)


def test_stingy_defense_reduces_differential(calibration) -> None:
    offense = TeamProfile.league_average("OFF")
    defense = TeamProfile.league_average("DEF").with_stats(
        def_epa_allowed=-0.1, def_three_out_rate=0.30
    )

    context = build_matchup(offense, defense, calibration)

    assert context.home.epa_diff < 0.0
    assert context.home.opponent_three_out == pytest.approx(0.06)
    assert context.home.strength < 0.0


def test_elite_offense_gets_positive_strength(elite_offense, average_away) -> None:
    assert offense_composite(elite_offense, LEAGUE, WEIGHTS) > 0.0
    strength = strength_adjustment(elite_offense, average_away, LEAGUE, WEIGHTS)
    assert 0.0 < strength <= WEIGHTS.strength_cap


def test_offensive_penalties_hurt_and_defensive_penalties_help(average_home, average_away) -> None:
    sloppy_offense = average_home.with_stats(off_penalties_per_drive=0.68)
    sloppy_defense = average_away.with_stats(def_penalties_per_drive=0.68)

    assert strength_adjustment(sloppy_offense, average_away, LEAGUE, WEIGHTS) < 0.0
    assert strength_adjustment(average_home, sloppy_defense, LEAGUE, WEIGHTS) > 0.0


def test_home_field_advantage_channels(average_home, average_away, calibration) -> None:
    context = build_matchup(average_home, average_away, calibration, hfa_points=3.0)

    assert context.hfa_logit == pytest.approx(0.25)
    assert context.home.expected_drives == pytest.approx(11.6 + 0.15)
    assert context.away.expected_drives == pytest.approx(11.6 - 0.15)


@pytest.mark.parametrize(
    ("weather", "expected"),
    [
        (WeatherConditions(), 0.0),
        (WeatherConditions(is_dome=True, wind_mph=40.0, precipitation=Precipitation.SNOW), 2.0),
        (WeatherConditions(wind_mph=5.0), 0.0),
        (WeatherConditions(wind_mph=30.0), -1.0),
        (WeatherConditions(temperature_f=20.0), -1.0),
        (WeatherConditions(precipitation=Precipitation.HEAVY_RAIN), -2.5),
        (
            WeatherConditions(wind_mph=30.0, temperature_f=20.0, precipitation=Precipitation.SNOW),
            -5.0,
        ),
    ],
)
def test_weather_adjustment(weather: WeatherConditions, expected: float) -> None:
    assert weather_adjustment(weather, WeatherConfig()) == pytest.approx(expected)


def test_negative_wind_is_clamped(average_home, average_away, calibration) -> None:
    context = build_matchup(
        average_home,
        average_away,
        calibration,
        weather=WeatherConditions(wind_mph=-12.0),
    )

    assert context.weather_points == 0.0


def test_unknown_precipitation_treated_as_none() -> None:
    assert Precipitation.coerce("hail") is Precipitation.NONE
    assert Precipitation.coerce("Light Rain") is Precipitation.LIGHT_RAIN


@given(
    off_epa=st.floats(min_value=-1.0, max_value=1.0),
    def_epa=st.floats(min_value=-1.0, max_value=1.0),
    off_sr=st.floats(min_value=0.0, max_value=1.0),
    dvoa=st.floats(min_value=-100.0, max_value=100.0),
    penalties=st.floats(min_value=0.0, max_value=3.0),
)
def test_strength_is_bounded(
    off_epa: float, def_epa: float, off_sr: float, dvoa: float, penalties: float
) -> None:
    offense = TeamProfile.league_average("OFF").with_stats(
        off_epa=off_epa, off_success_rate=off_sr, off_dvoa=dvoa, off_penalties_per_drive=penalties
    )
    defense = TeamProfile.league_average("DEF").with_stats(def_epa_allowed=def_epa, def_dvoa=-dvoa)

    context = build_matchup(offense, defense, CALIBRATION_PRESETS["w13"])

    assert -0.2 <= context.home.strength <= 0.2
    assert -0.2 <= context.away.strength <= 0.2


def test_side_matchup_expected_drives(calibration) -> None:
    offense = TeamProfile.league_average("OFF").with_stats(off_drives_per_game=12.0)
    defense = TeamProfile.league_average("DEF").with_stats(def_drives_per_game=11.0)

    home = side_matchup(offense, defense, calibration, is_home=True, hfa_points=4.0)
    away = side_matchup(offense, defense, calibration, is_home=False, hfa_points=4.0)

    assert home.is_home and not away.is_home
    assert home.expected_drives == pytest.approx(11.5 + 0.2)
    assert away.expected_drives == pytest.approx(11.5 - 0.2)
