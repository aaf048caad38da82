"""Drive-level Monte Carlo simulation engine for NFL games.

Raw team statistics flow through a fixed pipeline: profiles are normalised
against league baselines, rated against the opponent, turned into per-drive
outcome probabilities and a drive budget, and finally sampled many times by
one of the interchangeable game samplers.  The aggregation layer reduces the
samples into distributions, win probabilities, market outcomes and fair odds.
"""

from .aggregation import classify_line, classify_spread, histogram, percentile
from .baseline import DEFAULT_LEAGUE_BASELINE, LeagueBaseline, StatBaseline
from .configuration import (
    CALIBRATION_PRESETS,
    CalibrationPreset,
    ConfigurationError,
    CorrelationConfig,
    DriveBudgetConfig,
    DriveModelCoefficients,
    MatchupWeights,
    NormalSamplerConfig,
    SimulationSettings,
    WeatherConfig,
    load_simulation_settings,
    resolve_calibration,
    validate_simulation_settings,
)
from .correlation import estimate_correlation
from .drives import DriveOutcomeModel, allocate_drives
from .logging import configure_logging
from .matchup import build_matchup, strength_adjustment, weather_adjustment
from .models import (
    DriveBudget,
    DriveProbabilities,
    GamePlan,
    HistogramBin,
    MarketOutcome,
    MatchupContext,
    Precipitation,
    SeriesSummary,
    SideMatchup,
    SimulationConfig,
    SimulationResult,
    SimulationSample,
    WeatherConditions,
)
from .profiles import FIELD_ALIASES, InvalidRecord, TeamProfile, build_team_profile
from .sampler import (
    SAMPLER_REGISTRY,
    CorrelatedNormalSampler,
    DiscreteDriveSampler,
    GameSampler,
)
from .simulator import MonteCarloSimulator, build_game_plan, simulate
from .utils import american_to_probability, fair_american_odds

__all__ = [
    "CALIBRATION_PRESETS",
    "CalibrationPreset",
    "ConfigurationError",
    "CorrelatedNormalSampler",
    "CorrelationConfig",
    "DEFAULT_LEAGUE_BASELINE",
    "DiscreteDriveSampler",
    "DriveBudget",
    "DriveBudgetConfig",
    "DriveModelCoefficients",
    "DriveOutcomeModel",
    "DriveProbabilities",
    "FIELD_ALIASES",
    "GamePlan",
    "GameSampler",
    "HistogramBin",
    "InvalidRecord",
    "LeagueBaseline",
    "MarketOutcome",
    "MatchupContext",
    "MatchupWeights",
    "MonteCarloSimulator",
    "NormalSamplerConfig",
    "Precipitation",
    "SAMPLER_REGISTRY",
    "SeriesSummary",
    "SideMatchup",
    "SimulationConfig",
    "SimulationResult",
    "SimulationSample",
    "SimulationSettings",
    "StatBaseline",
    "TeamProfile",
    "WeatherConditions",
    "WeatherConfig",
    "allocate_drives",
    "american_to_probability",
    "build_game_plan",
    "build_matchup",
    "build_team_profile",
    "classify_line",
    "classify_spread",
    "configure_logging",
    "estimate_correlation",
    "fair_american_odds",
    "histogram",
    "load_simulation_settings",
    "percentile",
    "resolve_calibration",
    "simulate",
    "strength_adjustment",
    "validate_simulation_settings",
    "weather_adjustment",
]
