"""Monte Carlo game simulation entry point."""

from __future__ import annotations

import dataclasses
import logging
import random
import time
from concurrent.futures import ProcessPoolExecutor
from typing import List, Sequence

from ..config import get_config
from .aggregation import (
    classify_line,
    classify_spread,
    count_results,
    merge_buffers,
    summarise_series,
)
from .configuration import CalibrationPreset, ConfigurationError, resolve_calibration
from .correlation import estimate_correlation
from .drives import DriveOutcomeModel, allocate_drives
from .matchup import build_matchup
from .models import GamePlan, MatchupContext, SimulationConfig, SimulationResult
from .profiles import TeamProfile
from .sampler import GameSampler, create_sampler, resolve_sampler_kind
from .utils import fair_american_odds

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Game plan
# ---------------------------------------------------------------------------


def build_game_plan(
    home: TeamProfile,
    away: TeamProfile,
    context: MatchupContext,
    calibration: CalibrationPreset,
    config: SimulationConfig,
) -> GamePlan:
    """Fix drive counts, drive probabilities and ρ for a whole run."""

    model = DriveOutcomeModel(calibration.drive_model)
    budget = allocate_drives(
        context.home.expected_drives,
        context.away.expected_drives,
        calibration.drive_budget,
    )
    half_weather = context.weather_points / 2.0
    home_shift = model.td_shift_for_points(
        context.home, context.hfa_logit, budget.expected_home, half_weather
    )
    away_shift = model.td_shift_for_points(
        context.away, context.hfa_logit, budget.expected_away, half_weather
    )
    home_probabilities = model.probabilities(context.home, context.hfa_logit, home_shift)
    away_probabilities = model.probabilities(context.away, context.hfa_logit, away_shift)
    home_points = model.expected_points(home_probabilities, budget.expected_home)
    away_points = model.expected_points(away_probabilities, budget.expected_away)

    # Home-perspective spread: negative when the home side is projected to win.
    spread = config.market_spread if config.market_spread is not None else away_points - home_points
    rho = estimate_correlation(
        home,
        away,
        calibration.league,
        spread=spread,
        weather=config.weather,
        config=calibration.correlation,
    )
    return GamePlan(
        drives=budget,
        home=home_probabilities,
        away=away_probabilities,
        home_expected_points=home_points,
        away_expected_points=away_points,
        rho=rho,
    )


# ---------------------------------------------------------------------------
# Chunked trial execution
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class ChunkTask:
    """One independently seeded block of trials."""

    index: int
    trials: int
    seed: int
    context: MatchupContext
    plan: GamePlan
    sampler: GameSampler
    deadline: float | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ChunkResult:
    index: int
    home_scores: List[int]
    away_scores: List[int]
    truncated: bool


def chunk_rng(seed: int, index: int) -> random.Random:
    return random.Random(f"{seed}:{index}")


def run_chunk(task: ChunkTask) -> ChunkResult:
    rng = chunk_rng(task.seed, task.index)
    home_scores: List[int] = []
    away_scores: List[int] = []
    truncated = False
    for trial in range(task.trials):
        # The first trial of the first chunk always runs so a result exists.
        if task.deadline is not None and (task.index > 0 or trial > 0):
            if time.time() >= task.deadline:
                truncated = True
                break
        sample = task.sampler.sample(task.context, task.plan, rng)
        home_scores.append(sample.home_score)
        away_scores.append(sample.away_score)
    return ChunkResult(
        index=task.index,
        home_scores=home_scores,
        away_scores=away_scores,
        truncated=truncated,
    )


def chunk_sizes(iterations: int, chunk_size: int) -> List[int]:
    full, remainder = divmod(iterations, chunk_size)
    sizes = [chunk_size] * full
    if remainder:
        sizes.append(remainder)
    return sizes


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------


class MonteCarloSimulator:
    """Run many simulated games for one matchup and reduce the samples."""

    def __init__(self, calibration: CalibrationPreset | None = None) -> None:
        self.calibration = calibration

    def _calibration_for(self, config: SimulationConfig) -> CalibrationPreset:
        if self.calibration is not None:
            return self.calibration
        return resolve_calibration(config.preset or get_config().preset)

    def _validate(self, config: SimulationConfig) -> None:
        if config.num_simulations <= 0:
            raise ConfigurationError("num_simulations must be greater than zero")
        if config.chunk_size is not None and config.chunk_size <= 0:
            raise ConfigurationError("chunk_size must be greater than zero")
        if config.score_bin_width <= 0 or config.margin_bin_width <= 0:
            raise ConfigurationError("histogram bin widths must be greater than zero")

    @staticmethod
    def _resolve_seed(config: SimulationConfig) -> int:
        if config.seed is not None:
            return int(config.seed)
        runtime_seed = get_config().seed
        if runtime_seed is not None:
            return int(runtime_seed)
        return random.getrandbits(32)

    @staticmethod
    def _resolve_workers(config: SimulationConfig, chunks: int) -> int:
        requested = config.workers if config.workers is not None else get_config().workers
        if requested < 1:
            logger.warning("Worker count %s below 1; running in process", requested)
            requested = 1
        return max(1, min(requested, chunks))

    def _execute(self, tasks: Sequence[ChunkTask], workers: int) -> List[ChunkResult]:
        if workers == 1:
            results: List[ChunkResult] = []
            for task in tasks:
                result = run_chunk(task)
                results.append(result)
                if result.truncated:
                    break
            return results
        with ProcessPoolExecutor(max_workers=workers) as executor:
            return list(executor.map(run_chunk, tasks))

    def run(
        self,
        home: TeamProfile,
        away: TeamProfile,
        config: SimulationConfig | None = None,
    ) -> SimulationResult:
        config = config or SimulationConfig()
        self._validate(config)
        calibration = self._calibration_for(config)
        runtime = get_config()
        sampler_kind = resolve_sampler_kind(config.sampler or runtime.sampler or calibration.sampler)
        sampler = create_sampler(sampler_kind, calibration)
        seed = self._resolve_seed(config)
        chunk_size = config.chunk_size or runtime.chunk_size
        if chunk_size <= 0:
            raise ConfigurationError("chunk_size must be greater than zero")

        context = build_matchup(
            home,
            away,
            calibration,
            hfa_points=config.home_field_advantage_points,
            weather=config.weather,
        )
        plan = build_game_plan(home, away, context, calibration, config)
        sizes = chunk_sizes(config.num_simulations, chunk_size)
        workers = self._resolve_workers(config, len(sizes))
        deadline = (
            time.time() + max(0.0, config.deadline_seconds)
            if config.deadline_seconds is not None
            else None
        )
        tasks = [
            ChunkTask(
                index=index,
                trials=trials,
                seed=seed,
                context=context,
                plan=plan,
                sampler=sampler,
                deadline=deadline,
            )
            for index, trials in enumerate(sizes)
        ]
        logger.info(
            "Simulating %s vs %s: %d trials, sampler=%s, preset=%s, seed=%d, workers=%d",
            home.team,
            away.team,
            config.num_simulations,
            sampler_kind.value,
            calibration.version,
            seed,
            workers,
        )
        started = time.perf_counter()
        results = self._execute(tasks, workers)
        home_scores, away_scores = merge_buffers(
            (result.home_scores, result.away_scores) for result in results
        )
        iterations = len(home_scores)
        truncated = iterations < config.num_simulations
        if truncated:
            logger.warning(
                "Deadline reached after %d of %d trials", iterations, config.num_simulations
            )
        logger.debug("Completed %d trials in %.3fs", iterations, time.perf_counter() - started)
        return self._reduce(
            home,
            away,
            config,
            calibration,
            plan,
            context,
            sampler_kind.value,
            seed,
            home_scores,
            away_scores,
            truncated,
        )

    def _reduce(
        self,
        home: TeamProfile,
        away: TeamProfile,
        config: SimulationConfig,
        calibration: CalibrationPreset,
        plan: GamePlan,
        context: MatchupContext,
        sampler_name: str,
        seed: int,
        home_scores: List[int],
        away_scores: List[int],
        truncated: bool,
    ) -> SimulationResult:
        totals = [h + a for h, a in zip(home_scores, away_scores)]
        margins = [h - a for h, a in zip(home_scores, away_scores)]
        iterations = len(margins)
        levels = tuple(config.percentiles)
        home_wins, away_wins, ties = count_results(margins)
        home_probability = home_wins / iterations
        away_probability = away_wins / iterations

        def _line(values: List[int], line: float | None):
            return classify_line(values, line) if line is not None else None

        return SimulationResult(
            home_team=home.team,
            away_team=away.team,
            iterations=iterations,
            seed=seed,
            sampler=sampler_name,
            calibration_version=calibration.version,
            home=summarise_series(home_scores, levels, config.score_bin_width),
            away=summarise_series(away_scores, levels, config.score_bin_width),
            total=summarise_series(totals, levels, config.score_bin_width),
            margin=summarise_series(margins, levels, config.margin_bin_width),
            home_wins=home_wins,
            away_wins=away_wins,
            ties=ties,
            home_win_pct=home_probability * 100.0,
            away_win_pct=away_probability * 100.0,
            tie_pct=ties / iterations * 100.0,
            home_fair_odds=fair_american_odds(home_probability),
            away_fair_odds=fair_american_odds(away_probability),
            rho=plan.rho,
            plan=plan,
            weather_points=context.weather_points,
            total_market=_line(totals, config.market_total),
            spread_market=(
                classify_spread(margins, config.market_spread)
                if config.market_spread is not None
                else None
            ),
            home_team_total_market=_line(home_scores, config.market_home_team_total),
            away_team_total_market=_line(away_scores, config.market_away_team_total),
            truncated=truncated,
        )


def simulate(
    home_profile: TeamProfile,
    away_profile: TeamProfile,
    config: SimulationConfig | None = None,
    *,
    calibration: CalibrationPreset | None = None,
) -> SimulationResult:
    """Simulate ``home_profile`` hosting ``away_profile``.

    Raises :class:`ConfigurationError` for ``num_simulations <= 0`` or an
    unknown preset or sampler.  Results depend only on the inputs and the
    seed, never on the worker count.
    """

    return MonteCarloSimulator(calibration).run(home_profile, away_profile, config)


__all__ = [
    "ChunkResult",
    "ChunkTask",
    "MonteCarloSimulator",
    "build_game_plan",
    "chunk_rng",
    "chunk_sizes",
    "run_chunk",
    "simulate",
]
