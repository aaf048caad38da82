"""Normalisation of raw team statistic records into canonical profiles.

Uploaded team tables disagree on units: success rate may arrive as ``0.43``,
``43`` or ``"43%"``.  The normaliser resolves those ambiguities per field
kind and substitutes the league mean for anything missing or unreadable, so
downstream components always receive a complete, finite profile.  A missing
team name is the only unrecoverable input.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import math
from typing import Dict, List, Mapping, Sequence, Tuple

from .baseline import DEFAULT_LEAGUE_BASELINE, LeagueBaseline

logger = logging.getLogger(__name__)


class InvalidRecord(ValueError):
    """Raised when a team record cannot be turned into a profile."""


class StatKind(enum.Enum):
    NUMBER = "number"
    PERCENT = "percent"
    INDEX = "index"


@dataclasses.dataclass(frozen=True, slots=True)
class FieldSpec:
    """How one profile field is read from a raw record."""

    name: str
    baseline: str
    kind: StatKind
    aliases: Tuple[str, ...] = ()

    @property
    def spellings(self) -> Tuple[str, ...]:
        return (self.name, *self.aliases)


def _rz_aliases(side: str) -> Tuple[str, ...]:
    return (
        f"{side} Red Zone TD %",
        f"{side} Red-Zone TD%",
        f"{side} Red-Zone TD %",
        f"{side} RZ TD%",
        f"{side} RZ TD %",
    )


FIELD_SPECS: Tuple[FieldSpec, ...] = (
    FieldSpec("off_ppd", "ppd", StatKind.NUMBER, ("Off PPD",)),
    FieldSpec("off_epa", "epa", StatKind.NUMBER, ("Off EPA/play", "Off EPA/Play")),
    FieldSpec("off_success_rate", "success_rate", StatKind.PERCENT, ("Off Success Rate",)),
    FieldSpec("off_explosive_rate", "explosive_rate", StatKind.PERCENT, ("Off Explosive Rate",)),
    FieldSpec("off_red_zone_td_rate", "red_zone_td_rate", StatKind.PERCENT, _rz_aliases("Off")),
    FieldSpec("off_three_out_rate", "three_out_rate", StatKind.PERCENT, ("Off 3-Out %", "Off 3-Out%")),
    FieldSpec(
        "off_penalties_per_drive",
        "penalties_per_drive",
        StatKind.NUMBER,
        ("Off Penalties per Drive", "OFF Penalties per Drive"),
    ),
    FieldSpec("off_dvoa", "dvoa", StatKind.INDEX, ("Off DVOA",)),
    FieldSpec("off_drives_per_game", "drives_per_game", StatKind.NUMBER, ("Off Drives/G",)),
    FieldSpec(
        "off_turnover_epa_per_drive",
        "turnover_epa_per_drive",
        StatKind.NUMBER,
        ("Off TO EPA per Drive",),
    ),
    FieldSpec(
        "off_starting_field_position",
        "starting_field_position",
        StatKind.NUMBER,
        ("Off Avg Starting FP",),
    ),
    FieldSpec("off_plays_per_drive", "plays_per_drive", StatKind.NUMBER, ("Off Plays/Drive",)),
    FieldSpec("no_huddle_rate", "no_huddle_rate", StatKind.PERCENT, ("No-Huddle %",)),
    FieldSpec(
        "early_down_pass_rate",
        "early_down_pass_rate",
        StatKind.PERCENT,
        ("Neutral Early-Down Pass %",),
    ),
    FieldSpec("seconds_per_snap", "seconds_per_snap", StatKind.NUMBER, ("Sec/Snap", "Seconds per Snap")),
    FieldSpec("def_ppd_allowed", "ppd", StatKind.NUMBER, ("Def PPD Allowed",)),
    FieldSpec(
        "def_epa_allowed",
        "epa",
        StatKind.NUMBER,
        ("Def EPA/play allowed", "Def EPA/Play Allowed"),
    ),
    FieldSpec("def_success_rate", "success_rate", StatKind.PERCENT, ("Def Success Rate",)),
    FieldSpec("def_explosive_rate", "explosive_rate", StatKind.PERCENT, ("Def Explosive Rate",)),
    FieldSpec("def_red_zone_td_rate", "red_zone_td_rate", StatKind.PERCENT, _rz_aliases("Def")),
    FieldSpec("def_three_out_rate", "three_out_rate", StatKind.PERCENT, ("Def 3-Out %", "Def 3-Out%")),
    FieldSpec(
        "def_penalties_per_drive",
        "penalties_per_drive",
        StatKind.NUMBER,
        ("DEF Penalties per Drive", "Def Penalties per Drive"),
    ),
    FieldSpec("def_dvoa", "dvoa", StatKind.INDEX, ("Def DVOA",)),
    FieldSpec("def_drives_per_game", "drives_per_game", StatKind.NUMBER, ("Def Drives/G",)),
    FieldSpec(
        "def_plays_per_drive",
        "plays_per_drive",
        StatKind.NUMBER,
        ("Def Plays/Drive Allowed",),
    ),
)

TEAM_NAME_KEYS: Tuple[str, ...] = ("team", "Team", "TEAM", "name", "Name", "Team Name")

FIELD_ALIASES: Mapping[str, str] = {
    spelling: spec.name for spec in FIELD_SPECS for spelling in spec.spellings
}


@dataclasses.dataclass(frozen=True, slots=True)
class TeamProfile:
    """Canonical per-team statistics; every field is a finite float."""

    team: str
    off_ppd: float
    off_epa: float
    off_success_rate: float
    off_explosive_rate: float
    off_red_zone_td_rate: float
    off_three_out_rate: float
    off_penalties_per_drive: float
    off_dvoa: float
    off_drives_per_game: float
    off_turnover_epa_per_drive: float
    off_starting_field_position: float
    off_plays_per_drive: float
    no_huddle_rate: float
    early_down_pass_rate: float
    seconds_per_snap: float
    def_ppd_allowed: float
    def_epa_allowed: float
    def_success_rate: float
    def_explosive_rate: float
    def_red_zone_td_rate: float
    def_three_out_rate: float
    def_penalties_per_drive: float
    def_dvoa: float
    def_drives_per_game: float
    def_plays_per_drive: float
    defaulted_fields: Tuple[str, ...] = ()

    @classmethod
    def league_average(
        cls, team: str, baseline: LeagueBaseline = DEFAULT_LEAGUE_BASELINE
    ) -> "TeamProfile":
        """Profile with every statistic at the league mean."""

        return build_team_profile({"team": team}, baseline)

    def with_stats(self, **changes: float) -> "TeamProfile":
        return dataclasses.replace(self, **changes)


class _Unparseable(Exception):
    pass


def _to_number(raw: object) -> Tuple[float, bool]:
    if isinstance(raw, bool):
        raise _Unparseable(raw)
    if isinstance(raw, (int, float)):
        return float(raw), False
    text = str(raw).strip()
    has_percent = "%" in text
    cleaned = text.replace("%", "").replace(",", "").strip()
    try:
        return float(cleaned), has_percent
    except ValueError as exc:
        raise _Unparseable(raw) from exc


def parse_stat(raw: object, kind: StatKind) -> float | None:
    """Parse one raw value; ``None`` means missing.

    Raises :class:`ValueError` when a value is present but cannot be read.
    """

    if raw is None:
        return None
    if isinstance(raw, str) and not raw.strip():
        return None
    try:
        value, has_percent = _to_number(raw)
    except _Unparseable as exc:
        raise ValueError(f"Cannot parse {raw!r} as a number") from exc
    if not math.isfinite(value):
        raise ValueError(f"Value {raw!r} is not finite")
    if kind is StatKind.INDEX:
        return value
    if has_percent:
        return value / 100.0
    if kind is StatKind.PERCENT and 1.0 < value <= 100.0:
        return value / 100.0
    return value


def team_name(record: Mapping[str, object]) -> str:
    for key in TEAM_NAME_KEYS:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, float) and math.isnan(value):
            continue
        name = str(value).strip()
        if name:
            return name
    raise InvalidRecord("Record has no team name field")


def _lookup(record: Mapping[str, object], spellings: Sequence[str]) -> object | None:
    for key in spellings:
        if key in record:
            return record[key]
    return None


def build_team_profile(
    record: Mapping[str, object],
    baseline: LeagueBaseline = DEFAULT_LEAGUE_BASELINE,
) -> TeamProfile:
    """Convert a raw statistic record into a :class:`TeamProfile`.

    ``record`` keys may be canonical field names or any accepted column
    spelling from :data:`FIELD_ALIASES`.
    """

    name = team_name(record)
    values: Dict[str, float] = {}
    defaulted: List[str] = []
    for spec in FIELD_SPECS:
        default = baseline.stat(spec.baseline).mean
        raw = _lookup(record, spec.spellings)
        try:
            parsed = parse_stat(raw, spec.kind)
        except ValueError:
            logger.warning(
                "%s: could not parse %s=%r; using league mean %s",
                name,
                spec.name,
                raw,
                default,
            )
            parsed = None
        if parsed is None:
            if raw is None:
                logger.debug("%s: %s missing; using league mean %s", name, spec.name, default)
            defaulted.append(spec.name)
            parsed = default
        elif spec.kind is StatKind.PERCENT and not 0.0 <= parsed <= 1.0:
            clamped = min(1.0, max(0.0, parsed))
            logger.warning(
                "%s: %s=%r outside [0, 1]; clamping to %s", name, spec.name, raw, clamped
            )
            parsed = clamped
        values[spec.name] = parsed
    return TeamProfile(team=name, defaulted_fields=tuple(defaulted), **values)


__all__ = [
    "FIELD_ALIASES",
    "FIELD_SPECS",
    "FieldSpec",
    "InvalidRecord",
    "StatKind",
    "TeamProfile",
    "build_team_profile",
    "parse_stat",
    "team_name",
]
