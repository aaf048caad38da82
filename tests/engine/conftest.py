from __future__ import annotations

from typing import Dict

import pytest

from nflsimpy.config import reset_config
from nflsimpy.engine.baseline import DEFAULT_LEAGUE_BASELINE
from nflsimpy.engine.configuration import CALIBRATION_PRESETS, CalibrationPreset
from nflsimpy.engine.profiles import TeamProfile

RUNTIME_VARIABLES = (
    "NFLSIMPY_SEED",
    "NFLSIMPY_WORKERS",
    "NFLSIMPY_PRESET",
    "NFLSIMPY_SAMPLER",
    "NFLSIMPY_CHUNK_SIZE",
    "NFLSIMPY_LOG_LEVEL",
    "NFLSIMPY_ENV",
    "NFLSIMPY_CONFIG",
)


@pytest.fixture
def clean_runtime_config(monkeypatch: pytest.MonkeyPatch):
    for name in RUNTIME_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def calibration() -> CalibrationPreset:
    return CALIBRATION_PRESETS["w13"]


@pytest.fixture
def average_home() -> TeamProfile:
    return TeamProfile.league_average("HOME", DEFAULT_LEAGUE_BASELINE)


@pytest.fixture
def average_away() -> TeamProfile:
    return TeamProfile.league_average("AWAY", DEFAULT_LEAGUE_BASELINE)


@pytest.fixture
def elite_offense() -> TeamProfile:
    """Two standard deviations better than league average on offense."""

    league = DEFAULT_LEAGUE_BASELINE
    return TeamProfile.league_average("ELITE", league).with_stats(
        off_ppd=league.ppd.mean + 2 * league.ppd.sd,
        off_epa=league.epa.mean + 2 * league.epa.sd,
        off_success_rate=league.success_rate.mean + 2 * league.success_rate.sd,
        off_explosive_rate=league.explosive_rate.mean + 2 * league.explosive_rate.sd,
        off_red_zone_td_rate=league.red_zone_td_rate.mean + 2 * league.red_zone_td_rate.sd,
        off_three_out_rate=league.three_out_rate.mean - 2 * league.three_out_rate.sd,
    )


@pytest.fixture
def raw_record() -> Dict[str, object]:
    return {
        "Team": "Kansas City Chiefs",
        "Off PPD": "2.45",
        "Off EPA/play": "0.12",
        "Off Success Rate": "47%",
        "Off Explosive Rate": "12.5",
        "Off Red-Zone TD%": "0.61",
        "Off 3-Out %": "19",
        "Off DVOA": "14.2",
        "Def EPA/Play Allowed": "-0.04",
        "Def Success Rate": 0.41,
        "Def DVOA": "-5.0%",
        "Sec/Snap": "27.8",
    }
