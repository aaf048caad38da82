"""Value objects shared by the simulation engine components."""

from __future__ import annotations

import dataclasses
import enum
import logging
import math
from typing import Mapping, Sequence, Tuple

import polars as pl

from ..config import SamplerKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request primitives
# ---------------------------------------------------------------------------


class Precipitation(str, enum.Enum):
    NONE = "none"
    LIGHT_RAIN = "light_rain"
    HEAVY_RAIN = "heavy_rain"
    SNOW = "snow"

    @classmethod
    def coerce(cls, value: "Precipitation | str | None") -> "Precipitation":
        if isinstance(value, Precipitation):
            return value
        if value is None:
            return cls.NONE
        token = str(value).strip().lower().replace(" ", "_").replace("-", "_")
        try:
            return cls(token)
        except ValueError:
            logger.warning("Unknown precipitation %r; treating as none", value)
            return cls.NONE


@dataclasses.dataclass(frozen=True, slots=True)
class WeatherConditions:
    """Playing environment for one game."""

    is_dome: bool = False
    wind_mph: float = 0.0
    temperature_f: float = 60.0
    precipitation: Precipitation = Precipitation.NONE

    def normalised(self) -> "WeatherConditions":
        wind = float(self.wind_mph)
        if not math.isfinite(wind) or wind < 0.0:
            logger.warning("Wind speed %r out of range; clamping to 0", self.wind_mph)
            wind = 0.0
        temperature = float(self.temperature_f)
        if not math.isfinite(temperature):
            logger.warning("Temperature %r is not finite; using 60F", self.temperature_f)
            temperature = 60.0
        return WeatherConditions(
            is_dome=bool(self.is_dome),
            wind_mph=wind,
            temperature_f=temperature,
            precipitation=Precipitation.coerce(self.precipitation),
        )


@dataclasses.dataclass(frozen=True, slots=True)
class SimulationConfig:
    """User-chosen parameters of one simulation request.

    ``market_spread`` is quoted from the home team's perspective, negative
    when the home side is favoured.  ``None`` for ``sampler``, ``preset``,
    ``seed`` or ``workers`` defers to the process settings in
    :mod:`nflsimpy.config`.
    """

    num_simulations: int = 10_000
    home_field_advantage_points: float = 0.0
    weather: WeatherConditions = dataclasses.field(default_factory=WeatherConditions)
    market_total: float | None = None
    market_spread: float | None = None
    market_home_team_total: float | None = None
    market_away_team_total: float | None = None
    sampler: SamplerKind | str | None = None
    preset: str | None = None
    seed: int | None = None
    workers: int | None = None
    chunk_size: int | None = None
    deadline_seconds: float | None = None
    percentiles: Sequence[float] = (10.0, 25.0, 50.0, 75.0, 90.0)
    score_bin_width: int = 5
    margin_bin_width: int = 3


# ---------------------------------------------------------------------------
# Derived per-game structures
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class SideMatchup:
    """One offense against the opposing defense."""

    epa_diff: float
    success_rate_diff: float
    red_zone_diff: float
    opponent_three_out: float
    strength: float
    expected_drives: float
    is_home: bool


@dataclasses.dataclass(frozen=True, slots=True)
class MatchupContext:
    """Read-only per-game inputs of the drive model and samplers."""

    home: SideMatchup
    away: SideMatchup
    hfa_logit: float
    weather_points: float

    def side(self, is_home: bool) -> SideMatchup:
        return self.home if is_home else self.away


@dataclasses.dataclass(frozen=True, slots=True)
class DriveProbabilities:
    """Per-drive outcome probabilities for one team in one game."""

    three_out: float
    td_given_sustained: float
    fg_given_sustained: float

    @property
    def sustained(self) -> float:
        return 1.0 - self.three_out

    @property
    def touchdown(self) -> float:
        return self.sustained * self.td_given_sustained

    @property
    def field_goal(self) -> float:
        return self.sustained * self.fg_given_sustained

    @property
    def empty(self) -> float:
        return max(0.0, 1.0 - self.three_out - self.touchdown - self.field_goal)

    @property
    def expected_points(self) -> float:
        return 7.0 * self.touchdown + 3.0 * self.field_goal


@dataclasses.dataclass(frozen=True, slots=True)
class DriveBudget:
    """Per-game drive counts.

    ``home`` and ``away`` hold the split before the odd drive is placed.  Each
    simulated game moves one drive from the away side to the home side with
    probability ``home_extra_probability``, so the expected split follows the
    tilt continuously instead of jumping at a rounding boundary.
    """

    total: int
    home: int
    away: int
    home_extra_probability: float = 0.0

    @property
    def expected_home(self) -> float:
        return self.home + self.home_extra_probability

    @property
    def expected_away(self) -> float:
        return self.away - self.home_extra_probability


@dataclasses.dataclass(frozen=True, slots=True)
class GamePlan:
    """Everything a sampler needs to draw one game, fixed for a whole run."""

    drives: DriveBudget
    home: DriveProbabilities
    away: DriveProbabilities
    home_expected_points: float
    away_expected_points: float
    rho: float


@dataclasses.dataclass(frozen=True, slots=True)
class SimulationSample:
    home_score: int
    away_score: int

    @property
    def total(self) -> int:
        return self.home_score + self.away_score

    @property
    def margin(self) -> int:
        return self.home_score - self.away_score


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class HistogramBin:
    bin: int
    count: int
    percentage: float


@dataclasses.dataclass(frozen=True, slots=True)
class SeriesSummary:
    """Distribution summary of one simulated series (score, total or margin)."""

    mean: float
    median: float
    stdev: float
    minimum: float
    maximum: float
    percentiles: Mapping[float, float]
    histogram: Tuple[HistogramBin, ...] = ()

    def percentile(self, level: float) -> float:
        try:
            return self.percentiles[float(level)]
        except KeyError as exc:
            raise KeyError(f"Percentile {level} was not computed") from exc


@dataclasses.dataclass(frozen=True, slots=True)
class MarketOutcome:
    """Three-way classification of the simulated series against one line."""

    line: float
    above_count: int
    below_count: int
    push_count: int
    iterations: int

    @property
    def above_pct(self) -> float:
        return _pct(self.above_count, self.iterations)

    @property
    def below_pct(self) -> float:
        return _pct(self.below_count, self.iterations)

    @property
    def push_pct(self) -> float:
        return _pct(self.push_count, self.iterations)

    # Totals read naturally as over/under, spreads as home/away cover.
    @property
    def over_pct(self) -> float:
        return self.above_pct

    @property
    def under_pct(self) -> float:
        return self.below_pct

    @property
    def home_cover_pct(self) -> float:
        return self.above_pct

    @property
    def away_cover_pct(self) -> float:
        return self.below_pct


def _pct(count: int, iterations: int) -> float:
    if iterations <= 0:
        return 0.0
    return count / iterations * 100.0


@dataclasses.dataclass(frozen=True, slots=True)
class SimulationResult:
    """Reduction of every trial of one simulation run."""

    home_team: str
    away_team: str
    iterations: int
    seed: int
    sampler: str
    calibration_version: str
    home: SeriesSummary
    away: SeriesSummary
    total: SeriesSummary
    margin: SeriesSummary
    home_wins: int
    away_wins: int
    ties: int
    home_win_pct: float
    away_win_pct: float
    tie_pct: float
    home_fair_odds: float
    away_fair_odds: float
    rho: float
    plan: GamePlan
    weather_points: float
    total_market: MarketOutcome | None = None
    spread_market: MarketOutcome | None = None
    home_team_total_market: MarketOutcome | None = None
    away_team_total_market: MarketOutcome | None = None
    truncated: bool = False

    @property
    def home_win_probability(self) -> float:
        return self.home_win_pct / 100.0

    @property
    def away_win_probability(self) -> float:
        return self.away_win_pct / 100.0

    @property
    def tie_probability(self) -> float:
        return self.tie_pct / 100.0

    def series(self, name: str) -> SeriesSummary:
        lookup = {
            "home": self.home,
            "away": self.away,
            "total": self.total,
            "margin": self.margin,
        }
        try:
            return lookup[name]
        except KeyError as exc:
            raise KeyError(f"Unknown series {name!r}") from exc

    def distribution_frame(self, name: str) -> pl.DataFrame:
        """Return the binned histogram of ``name`` as a polars frame."""

        histogram = self.series(name).histogram
        return pl.DataFrame(
            {
                "bin": [item.bin for item in histogram],
                "count": [item.count for item in histogram],
                "percentage": [item.percentage for item in histogram],
            },
            schema={"bin": pl.Int64, "count": pl.Int64, "percentage": pl.Float64},
        )

    def percentile_frame(self) -> pl.DataFrame:
        """Return one row per series with its mean, median and percentiles."""

        rows = []
        for name in ("home", "away", "total", "margin"):
            summary = self.series(name)
            row = {
                "series": name,
                "mean": summary.mean,
                "median": summary.median,
                "stdev": summary.stdev,
                "min": summary.minimum,
                "max": summary.maximum,
            }
            for level, value in summary.percentiles.items():
                row[f"p{level:g}"] = value
            rows.append(row)
        return pl.DataFrame(rows)

    def summary(self) -> dict[str, object]:
        """JSON-friendly view used by the command line interface."""

        def _series(summary: SeriesSummary) -> dict[str, object]:
            return {
                "mean": summary.mean,
                "median": summary.median,
                "stdev": summary.stdev,
                "min": summary.minimum,
                "max": summary.maximum,
                "percentiles": {f"p{level:g}": value for level, value in summary.percentiles.items()},
            }

        def _market(outcome: MarketOutcome | None, above: str, below: str) -> dict[str, float] | None:
            if outcome is None:
                return None
            return {
                "line": outcome.line,
                above: outcome.above_pct,
                below: outcome.below_pct,
                "push_pct": outcome.push_pct,
            }

        return {
            "home_team": self.home_team,
            "away_team": self.away_team,
            "iterations": self.iterations,
            "seed": self.seed,
            "sampler": self.sampler,
            "calibration_version": self.calibration_version,
            "truncated": self.truncated,
            "rho": self.rho,
            "weather_points": self.weather_points,
            "drives": {
                "home": self.plan.drives.home,
                "away": self.plan.drives.away,
                "home_extra_probability": self.plan.drives.home_extra_probability,
            },
            "home": _series(self.home),
            "away": _series(self.away),
            "total": _series(self.total),
            "margin": _series(self.margin),
            "win_probabilities": {
                "home_pct": self.home_win_pct,
                "away_pct": self.away_win_pct,
                "tie_pct": self.tie_pct,
            },
            "fair_odds": {
                "home": _odds_for_json(self.home_fair_odds),
                "away": _odds_for_json(self.away_fair_odds),
            },
            "total_market": _market(self.total_market, "over_pct", "under_pct"),
            "spread_market": _market(self.spread_market, "home_cover_pct", "away_cover_pct"),
            "home_team_total_market": _market(self.home_team_total_market, "over_pct", "under_pct"),
            "away_team_total_market": _market(self.away_team_total_market, "over_pct", "under_pct"),
        }


def _odds_for_json(odds: float) -> int | str:
    if math.isinf(odds):
        return "+inf" if odds > 0 else "-inf"
    return int(odds)


__all__ = [
    "DriveBudget",
    "DriveProbabilities",
    "GamePlan",
    "HistogramBin",
    "MarketOutcome",
    "MatchupContext",
    "Precipitation",
    "SeriesSummary",
    "SideMatchup",
    "SimulationConfig",
    "SimulationResult",
    "SimulationSample",
    "WeatherConditions",
]
