from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from nflsimpy.engine.baseline import DEFAULT_LEAGUE_BASELINE
from nflsimpy.engine.configuration import CorrelationConfig
from nflsimpy.engine.correlation import estimate_correlation, spread_increment, weather_increment
from nflsimpy.engine.models import Precipitation, WeatherConditions
from nflsimpy.engine.profiles import TeamProfile

LEAGUE = DEFAULT_LEAGUE_BASELINE


def test_pickem_between_average_teams(average_home, average_away) -> None:
    rho = estimate_correlation(average_home, average_away, LEAGUE, spread=0.0)

    # baseline + close game + matching pass rate + matching pace
    assert rho == pytest.approx(0.20 + 0.08 + 0.04 + 0.03)


@pytest.mark.parametrize(
    ("spread", "expected"),
    [(0.0, 0.08), (-3.0, 0.08), (5.5, 0.04), (-7.0, 0.04), (10.0, 0.0), (14.0, -0.06), (-21.0, -0.06)],
)
def test_spread_increment(spread: float, expected: float) -> None:
    assert spread_increment(spread, CorrelationConfig()) == pytest.approx(expected)


def test_weather_and_style_increments(average_home, average_away) -> None:
    base = estimate_correlation(average_home, average_away, LEAGUE, spread=10.0)
    dome = estimate_correlation(
        average_home, average_away, LEAGUE, spread=10.0, weather=WeatherConditions(is_dome=True)
    )
    storm = estimate_correlation(
        average_home,
        average_away,
        LEAGUE,
        spread=10.0,
        weather=WeatherConditions(wind_mph=20.0, precipitation=Precipitation.SNOW),
    )

    assert dome == pytest.approx(base + 0.03)
    assert storm == pytest.approx(base + 0.04 + 0.06)


def test_mismatched_styles_lower_correlation(average_home, average_away) -> None:
    passing = average_home.with_stats(early_down_pass_rate=0.62, seconds_per_snap=25.0)
    explosive = average_away.with_stats(off_explosive_rate=0.16)

    matched = estimate_correlation(average_home, average_away, LEAGUE, spread=10.0)
    mismatched = estimate_correlation(passing, average_away, LEAGUE, spread=10.0)
    boom = estimate_correlation(average_home, explosive, LEAGUE, spread=10.0)

    assert mismatched == pytest.approx(matched - 0.04 - 0.03)
    assert boom == pytest.approx(matched + 0.05)


@given(
    spread=st.floats(min_value=-40.0, max_value=40.0),
    pass_rate=st.floats(min_value=0.0, max_value=1.0),
    explosive=st.floats(min_value=0.0, max_value=0.5),
    pace=st.floats(min_value=20.0, max_value=40.0),
    wind=st.floats(min_value=0.0, max_value=60.0),
    dome=st.booleans(),
    precipitation=st.sampled_from(list(Precipitation)),
)
def test_correlation_is_bounded(
    spread: float,
    pass_rate: float,
    explosive: float,
    pace: float,
    wind: float,
    dome: bool,
    precipitation: Precipitation,
) -> None:
    home = TeamProfile.league_average("HOME").with_stats(
        early_down_pass_rate=pass_rate, off_explosive_rate=explosive, seconds_per_snap=pace
    )
    away = TeamProfile.league_average("AWAY")
    weather = WeatherConditions(is_dome=dome, wind_mph=wind, precipitation=precipitation)

    rho = estimate_correlation(home, away, LEAGUE, spread=spread, weather=weather)

    assert -0.05 <= rho <= 0.60


def test_weather_increment() -> None:
    config = CorrelationConfig()

    assert weather_increment(WeatherConditions(is_dome=True, wind_mph=30.0), config) == pytest.approx(0.03)
    assert weather_increment(WeatherConditions(wind_mph=20.0), config) == pytest.approx(0.04)
    assert weather_increment(
        WeatherConditions(wind_mph=20.0, precipitation=Precipitation.SNOW), config
    ) == pytest.approx(0.10)
    assert weather_increment(WeatherConditions(wind_mph=5.0), config) == 0.0
