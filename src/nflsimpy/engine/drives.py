"""Per-drive outcome probabilities and per-game drive budgets."""

from __future__ import annotations

import logging
import math

from .configuration import DriveBudgetConfig, DriveModelCoefficients
from .models import DriveBudget, DriveProbabilities, SideMatchup
from .utils import clamp, round_half_up, sigmoid

logger = logging.getLogger(__name__)

TOUCHDOWN_POINTS = 7
FIELD_GOAL_POINTS = 3


class DriveOutcomeModel:
    """Logistic three-and-out / touchdown / field goal model for one drive.

    The home-field logit offset helps the home offense twice: it lowers the
    three-and-out logit and raises the touchdown logit.  The away offense
    receives the mirror image.
    """

    def __init__(self, coefficients: DriveModelCoefficients | None = None) -> None:
        self.coefficients = coefficients or DriveModelCoefficients()

    def probabilities(
        self, side: SideMatchup, hfa_logit: float = 0.0, td_shift: float = 0.0
    ) -> DriveProbabilities:
        c = self.coefficients
        bound = c.logit_bound
        hfa = hfa_logit if side.is_home else -hfa_logit
        logit_three_out = (
            c.three_out_a0
            - c.three_out_a1 * side.epa_diff
            - c.three_out_a2 * side.success_rate_diff
            + c.three_out_a3 * side.opponent_three_out
            - hfa
        )
        logit_td = (
            c.td_b0
            + c.td_b1 * side.epa_diff
            + c.td_b2 * side.success_rate_diff
            + c.td_b3 * side.red_zone_diff
            + side.strength
            + hfa
            + td_shift
        )
        p_three_out = sigmoid(clamp(logit_three_out, -bound, bound))
        p_td = sigmoid(clamp(logit_td, -bound, bound))
        rz_quality = clamp(1.0 - c.rz_fg_slope * side.red_zone_diff, c.rz_factor_min, c.rz_factor_max)
        p_fg = clamp(c.fg_phi * rz_quality * (1.0 - p_td), 0.0, 1.0 - p_td)
        return DriveProbabilities(
            three_out=p_three_out,
            td_given_sustained=p_td,
            fg_given_sustained=p_fg,
        )

    @staticmethod
    def expected_points(probabilities: DriveProbabilities, drives: float) -> float:
        return drives * probabilities.expected_points

    def td_shift_for_points(
        self,
        side: SideMatchup,
        hfa_logit: float,
        drives: float,
        target_delta: float,
        *,
        iterations: int = 60,
    ) -> float:
        """Touchdown logit offset that moves expected points by ``target_delta``.

        Expected points rise monotonically with the offset until the logit
        clamp saturates, so a bisection over ``[-2·bound, 2·bound]`` finds the
        offset or the closest reachable endpoint.
        """

        if drives <= 0 or target_delta == 0.0:
            return 0.0
        base = self.expected_points(self.probabilities(side, hfa_logit), drives)
        target = base + target_delta

        def _points(shift: float) -> float:
            return self.expected_points(self.probabilities(side, hfa_logit, shift), drives)

        span = 2.0 * self.coefficients.logit_bound
        low, high = -span, span
        if target <= _points(low):
            return low
        if target >= _points(high):
            logger.debug("Weather target %.2f unreachable; saturating shift", target_delta)
            return high
        for _ in range(iterations):
            middle = 0.5 * (low + high)
            if _points(middle) < target:
                low = middle
            else:
                high = middle
        return 0.5 * (low + high)


def _bounded_home(home: int, total: int, cfg: DriveBudgetConfig) -> int:
    home = int(clamp(home, cfg.min_team, cfg.max_team))
    away = total - home
    if away < cfg.min_team:
        home = total - cfg.min_team
    elif away > cfg.max_team:
        home = total - cfg.max_team
    home = int(clamp(home, cfg.min_team, cfg.max_team))
    return int(clamp(home, 0, total))


def allocate_drives(
    home_expected: float,
    away_expected: float,
    config: DriveBudgetConfig | None = None,
) -> DriveBudget:
    """Split a game's drives between the two teams.

    The home share ``total/2 + tilt`` is rounded down, and its fractional part
    becomes the per-game probability that the home side gets one more drive.
    ``home + away == total`` holds for both outcomes.  Both counts respect the
    per-team bounds whenever ``2·min_team <= total <= 2·max_team``.
    """

    cfg = config or DriveBudgetConfig()
    total = round_half_up(home_expected + away_expected)
    total = int(clamp(total, cfg.min_total, cfg.max_total))

    tilt = clamp((home_expected - away_expected) * cfg.tilt_scale, -cfg.max_tilt, cfg.max_tilt)
    share = total / 2.0 + tilt
    low = math.floor(share)
    home = _bounded_home(low, total, cfg)
    # Bounds can pin both outcomes to the same count.
    can_gain = _bounded_home(low + 1, total, cfg) > home
    probability = share - low if can_gain else 0.0
    return DriveBudget(
        total=total,
        home=home,
        away=total - home,
        home_extra_probability=probability,
    )


__all__ = [
    "DriveOutcomeModel",
    "FIELD_GOAL_POINTS",
    "TOUCHDOWN_POINTS",
    "allocate_drives",
]
