"""League-wide reference statistics used to standardise team inputs."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class StatBaseline(BaseModel):
    """Mean and standard deviation of one tracked statistic."""

    model_config = ConfigDict(frozen=True)

    mean: float
    sd: float

    def z_score(self, value: float, epsilon: float = 1e-9) -> float:
        sd = self.sd if self.sd > 0.0 else epsilon
        return (value - self.mean) / sd


class LeagueBaseline(BaseModel):
    """Immutable league reference set.

    Rates are fractions, DVOA stays on its percentage-point scale.  Every team
    statistic that is missing from an upload falls back to the matching
    ``mean`` here.
    """

    model_config = ConfigDict(frozen=True)

    ppd: StatBaseline = StatBaseline(mean=2.06, sd=0.42)
    epa: StatBaseline = StatBaseline(mean=0.022, sd=0.127)
    success_rate: StatBaseline = StatBaseline(mean=0.43, sd=0.05)
    explosive_rate: StatBaseline = StatBaseline(mean=0.113, sd=0.033)
    red_zone_td_rate: StatBaseline = StatBaseline(mean=0.56, sd=0.12)
    three_out_rate: StatBaseline = StatBaseline(mean=0.24, sd=0.05)
    penalties_per_drive: StatBaseline = StatBaseline(mean=0.44, sd=0.12)
    drives_per_game: StatBaseline = StatBaseline(mean=11.6, sd=1.0)
    seconds_per_snap: StatBaseline = StatBaseline(mean=29.2, sd=2.0)
    plays_per_drive: StatBaseline = StatBaseline(mean=6.0, sd=0.8)
    starting_field_position: StatBaseline = StatBaseline(mean=25.0, sd=5.0)
    turnover_epa_per_drive: StatBaseline = StatBaseline(mean=0.0, sd=0.3)
    dvoa: StatBaseline = StatBaseline(mean=0.0, sd=15.0)
    no_huddle_rate: StatBaseline = StatBaseline(mean=0.0, sd=0.1)
    early_down_pass_rate: StatBaseline = StatBaseline(mean=0.5, sd=0.06)

    def stat(self, name: str) -> StatBaseline:
        try:
            value = getattr(self, name)
        except AttributeError as exc:
            raise KeyError(f"Unknown league statistic {name!r}") from exc
        if not isinstance(value, StatBaseline):
            raise KeyError(f"Unknown league statistic {name!r}")
        return value


DEFAULT_LEAGUE_BASELINE = LeagueBaseline()


__all__ = ["DEFAULT_LEAGUE_BASELINE", "LeagueBaseline", "StatBaseline"]
