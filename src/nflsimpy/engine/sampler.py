"""Game generation strategies.

Two interchangeable samplers turn a :class:`~nflsimpy.engine.models.GamePlan`
into one simulated final score:

``DiscreteDriveSampler``
    Plays every allotted drive through the drive outcome model.  Drives are
    paired by index across the two teams and each pair's uniforms come from a
    Gaussian copula, so the outcomes of paired drives share correlation ρ.

``CorrelatedNormalSampler``
    Skips the drive loop and applies correlated heteroskedastic normal noise
    around each team's expected points.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Callable, Dict, Protocol, Tuple

from ..config import SamplerKind
from .configuration import CalibrationPreset, ConfigurationError, NormalSamplerConfig
from .drives import FIELD_GOAL_POINTS, TOUCHDOWN_POINTS
from .models import DriveProbabilities, GamePlan, MatchupContext, SimulationSample
from .utils import clamp, round_half_up

logger = logging.getLogger(__name__)

_MIN_UNIFORM = 1e-12


def box_muller(rng: random.Random) -> Tuple[float, float]:
    """Two independent standard normals from two uniforms."""

    u1 = max(rng.random(), _MIN_UNIFORM)
    u2 = rng.random()
    radius = math.sqrt(-2.0 * math.log(u1))
    angle = 2.0 * math.pi * u2
    return radius * math.cos(angle), radius * math.sin(angle)


def correlated_normals(rng: random.Random, rho: float) -> Tuple[float, float]:
    """Standard normal pair with correlation ``rho``."""

    rho = clamp(rho, -1.0, 1.0)
    z1, z2 = box_muller(rng)
    return z1, rho * z1 + math.sqrt(1.0 - rho * rho) * z2


def normal_cdf(value: float) -> float:
    return 0.5 * (1.0 + math.erf(value / math.sqrt(2.0)))


def drive_points(probabilities: DriveProbabilities, uniform: float) -> int:
    """Points scored on one drive given a uniform draw in ``[0, 1]``."""

    threshold = probabilities.three_out
    if uniform < threshold:
        return 0
    threshold += probabilities.touchdown
    if uniform < threshold:
        return TOUCHDOWN_POINTS
    threshold += probabilities.field_goal
    if uniform < threshold:
        return FIELD_GOAL_POINTS
    return 0


class GameSampler(Protocol):
    """Draws one simulated game from a precomputed plan."""

    name: str

    def sample(
        self, context: MatchupContext, plan: GamePlan, rng: random.Random
    ) -> SimulationSample:
        ...


class DiscreteDriveSampler:
    name = SamplerKind.DISCRETE.value

    def sample(
        self, context: MatchupContext, plan: GamePlan, rng: random.Random
    ) -> SimulationSample:
        home_drives = plan.drives.home
        away_drives = plan.drives.away
        extra = plan.drives.home_extra_probability
        if extra > 0.0 and rng.random() < extra:
            home_drives += 1
            away_drives -= 1
        paired = min(home_drives, away_drives)
        home_score = 0
        away_score = 0
        for _ in range(paired):
            z_home, z_away = correlated_normals(rng, plan.rho)
            home_score += drive_points(plan.home, normal_cdf(z_home))
            away_score += drive_points(plan.away, normal_cdf(z_away))
        for _ in range(home_drives - paired):
            home_score += drive_points(plan.home, rng.random())
        for _ in range(away_drives - paired):
            away_score += drive_points(plan.away, rng.random())
        return SimulationSample(home_score=home_score, away_score=away_score)


class CorrelatedNormalSampler:
    name = SamplerKind.NORMAL.value

    def __init__(self, config: NormalSamplerConfig | None = None) -> None:
        self.config = config or NormalSamplerConfig()

    def sigma(self, mean_points: float) -> float:
        cfg = self.config
        raw = cfg.sigma_base + cfg.sigma_slope * (mean_points - cfg.reference_points)
        return clamp(raw, cfg.sigma_min, cfg.sigma_max)

    def sample(
        self, context: MatchupContext, plan: GamePlan, rng: random.Random
    ) -> SimulationSample:
        z_home, z_away = correlated_normals(rng, plan.rho)
        home_mean = plan.home_expected_points
        away_mean = plan.away_expected_points
        home = home_mean + self.sigma(home_mean) * z_home
        away = away_mean + self.sigma(away_mean) * z_away
        return SimulationSample(
            home_score=round_half_up(max(0.0, home)),
            away_score=round_half_up(max(0.0, away)),
        )


SamplerFactory = Callable[[CalibrationPreset], GameSampler]

SAMPLER_REGISTRY: Dict[SamplerKind, SamplerFactory] = {
    SamplerKind.DISCRETE: lambda calibration: DiscreteDriveSampler(),
    SamplerKind.NORMAL: lambda calibration: CorrelatedNormalSampler(calibration.normal),
}


def resolve_sampler_kind(value: SamplerKind | str) -> SamplerKind:
    if isinstance(value, SamplerKind):
        return value
    try:
        return SamplerKind(str(value).strip().lower())
    except ValueError as exc:
        known = ", ".join(kind.value for kind in SamplerKind)
        raise ConfigurationError(f"Unknown sampler {value!r}; expected one of {known}") from exc


def create_sampler(kind: SamplerKind | str, calibration: CalibrationPreset) -> GameSampler:
    resolved = resolve_sampler_kind(kind)
    try:
        factory = SAMPLER_REGISTRY[resolved]
    except KeyError as exc:
        raise ConfigurationError(f"No sampler registered for {resolved.value!r}") from exc
    return factory(calibration)


__all__ = [
    "CorrelatedNormalSampler",
    "DiscreteDriveSampler",
    "GameSampler",
    "SAMPLER_REGISTRY",
    "box_muller",
    "correlated_normals",
    "create_sampler",
    "drive_points",
    "normal_cdf",
    "resolve_sampler_kind",
]
