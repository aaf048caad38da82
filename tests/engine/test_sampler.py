from __future__ import annotations

import random
import statistics

import pytest

from nflsimpy.config import SamplerKind
from nflsimpy.engine.configuration import CALIBRATION_PRESETS, ConfigurationError, NormalSamplerConfig
from nflsimpy.engine.models import (
    DriveBudget,
    DriveProbabilities,
    GamePlan,
    MatchupContext,
    SideMatchup,
)
from nflsimpy.engine.sampler import (
    SAMPLER_REGISTRY,
    CorrelatedNormalSampler,
    DiscreteDriveSampler,
    box_muller,
    correlated_normals,
    create_sampler,
    drive_points,
    normal_cdf,
    resolve_sampler_kind,
)


def _side(is_home: bool) -> SideMatchup:
    return SideMatchup(
        epa_diff=0.0,
        success_rate_diff=0.0,
        red_zone_diff=0.0,
        opponent_three_out=0.0,
        strength=0.0,
        expected_drives=11.6,
        is_home=is_home,
    )


CONTEXT = MatchupContext(home=_side(True), away=_side(False), hfa_logit=0.0, weather_points=0.0)


def _plan(
    home: DriveProbabilities,
    away: DriveProbabilities,
    *,
    drives: DriveBudget = DriveBudget(total=22, home=11, away=11),
    rho: float = 0.3,
    home_points: float = 24.0,
    away_points: float = 20.0,
) -> GamePlan:
    return GamePlan(
        drives=drives,
        home=home,
        away=away,
        home_expected_points=home_points,
        away_expected_points=away_points,
        rho=rho,
    )


ALWAYS_TD = DriveProbabilities(three_out=0.0, td_given_sustained=1.0, fg_given_sustained=0.0)
ALWAYS_FG = DriveProbabilities(three_out=0.0, td_given_sustained=0.0, fg_given_sustained=1.0)
NEVER_SCORE = DriveProbabilities(three_out=1.0, td_given_sustained=0.5, fg_given_sustained=0.2)
TYPICAL = DriveProbabilities(three_out=0.25, td_given_sustained=0.3, fg_given_sustained=0.2)
COIN_FLIP = DriveProbabilities(three_out=0.5, td_given_sustained=1.0, fg_given_sustained=0.0)


def test_drive_points_thresholds() -> None:
    assert drive_points(TYPICAL, 0.0) == 0
    assert drive_points(TYPICAL, 0.249) == 0
    assert drive_points(TYPICAL, 0.26) == 7
    assert drive_points(TYPICAL, 0.25 + 0.75 * 0.3 + 0.01) == 3
    assert drive_points(TYPICAL, 0.99) == 0
    assert drive_points(TYPICAL, 1.0) == 0


def test_box_muller_produces_standard_normals() -> None:
    rng = random.Random(11)
    draws = [value for _ in range(20_000) for value in box_muller(rng)]

    assert statistics.fmean(draws) == pytest.approx(0.0, abs=0.03)
    assert statistics.pstdev(draws) == pytest.approx(1.0, abs=0.03)


def test_correlated_normals_match_rho() -> None:
    rng = random.Random(5)
    pairs = [correlated_normals(rng, 0.5) for _ in range(20_000)]
    first = [a for a, _ in pairs]
    second = [b for _, b in pairs]

    assert statistics.correlation(first, second) == pytest.approx(0.5, abs=0.03)


def test_normal_cdf_reference_points() -> None:
    assert normal_cdf(0.0) == pytest.approx(0.5)
    assert normal_cdf(1.959964) == pytest.approx(0.975, abs=1e-6)
    assert normal_cdf(-1.0) == pytest.approx(1.0 - normal_cdf(1.0))


def test_discrete_sampler_with_certain_outcomes() -> None:
    sampler = DiscreteDriveSampler()
    plan = _plan(ALWAYS_TD, ALWAYS_FG, drives=DriveBudget(total=21, home=12, away=9))

    sample = sampler.sample(CONTEXT, plan, random.Random(1))

    assert sample.home_score == 84
    assert sample.away_score == 27
    assert sample.total == 111
    assert sample.margin == 57


def test_discrete_sampler_shutout() -> None:
    plan = _plan(NEVER_SCORE, NEVER_SCORE)

    sample = DiscreteDriveSampler().sample(CONTEXT, plan, random.Random(2))

    assert (sample.home_score, sample.away_score) == (0, 0)


def test_odd_drive_goes_to_either_side() -> None:
    plan = _plan(
        ALWAYS_TD,
        ALWAYS_TD,
        drives=DriveBudget(total=23, home=11, away=12, home_extra_probability=0.5),
    )
    sampler = DiscreteDriveSampler()
    rng = random.Random(3)

    outcomes = {(s.home_score, s.away_score) for s in (sampler.sample(CONTEXT, plan, rng) for _ in range(200))}

    assert outcomes == {(84, 77), (77, 84)}


def test_discrete_scores_are_combinations_of_drive_points() -> None:
    plan = _plan(TYPICAL, TYPICAL)
    sampler = DiscreteDriveSampler()
    rng = random.Random(4)

    for _ in range(500):
        sample = sampler.sample(CONTEXT, plan, rng)
        assert 0 <= sample.home_score <= 7 * 11
        assert 0 <= sample.away_score <= 7 * 11
        assert sample.home_score not in {1, 2, 4, 5, 8, 11}


def test_positive_rho_correlates_discrete_scores() -> None:
    sampler = DiscreteDriveSampler()
    rng = random.Random(9)
    correlated = _plan(COIN_FLIP, COIN_FLIP, rho=0.6)
    independent = _plan(COIN_FLIP, COIN_FLIP, rho=0.0)

    def _corr(plan: GamePlan) -> float:
        samples = [sampler.sample(CONTEXT, plan, rng) for _ in range(6_000)]
        return statistics.correlation(
            [s.home_score for s in samples], [s.away_score for s in samples]
        )

    assert _corr(correlated) > 0.3
    assert abs(_corr(independent)) < 0.1


def test_normal_sigma_is_bounded() -> None:
    sampler = CorrelatedNormalSampler(NormalSamplerConfig())

    assert sampler.sigma(21.0) == pytest.approx(7.5)
    assert sampler.sigma(31.0) == pytest.approx(8.5)
    assert sampler.sigma(0.0) == pytest.approx(6.5)
    assert sampler.sigma(80.0) == pytest.approx(10.0)


def test_normal_sampler_centres_on_expected_points() -> None:
    sampler = CorrelatedNormalSampler()
    plan = _plan(TYPICAL, TYPICAL, home_points=27.0, away_points=17.0)
    rng = random.Random(12)

    samples = [sampler.sample(CONTEXT, plan, rng) for _ in range(10_000)]

    assert all(s.home_score >= 0 and s.away_score >= 0 for s in samples)
    assert statistics.fmean(s.home_score for s in samples) == pytest.approx(27.0, abs=0.4)
    assert statistics.fmean(s.away_score for s in samples) == pytest.approx(17.0, abs=0.4)


def test_registry_builds_both_samplers() -> None:
    calibration = CALIBRATION_PRESETS["w13"]

    assert set(SAMPLER_REGISTRY) == {SamplerKind.DISCRETE, SamplerKind.NORMAL}
    assert isinstance(create_sampler("discrete", calibration), DiscreteDriveSampler)
    assert isinstance(create_sampler(SamplerKind.NORMAL, calibration), CorrelatedNormalSampler)
    with pytest.raises(ConfigurationError):
        create_sampler("poisson", calibration)


def test_sampler_names_are_normalised() -> None:
    assert resolve_sampler_kind(" Normal ") is SamplerKind.NORMAL
    assert resolve_sampler_kind(SamplerKind.DISCRETE) is SamplerKind.DISCRETE
    with pytest.raises(ConfigurationError, match="discrete, normal"):
        resolve_sampler_kind("poisson")


def test_odd_drive_frequency_follows_probability() -> None:
    plan = _plan(
        ALWAYS_TD,
        NEVER_SCORE,
        drives=DriveBudget(total=23, home=11, away=12, home_extra_probability=0.2),
    )
    sampler = DiscreteDriveSampler()
    rng = random.Random(6)

    scores = [sampler.sample(CONTEXT, plan, rng).home_score for _ in range(5_000)]

    assert set(scores) == {77, 84}
    assert scores.count(84) / len(scores) == pytest.approx(0.2, abs=0.02)
