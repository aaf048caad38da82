"""Load team statistic tables into canonical team profiles."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict

import polars as pl

from .engine.baseline import DEFAULT_LEAGUE_BASELINE, LeagueBaseline
from .engine.profiles import (
    FIELD_ALIASES,
    TEAM_NAME_KEYS,
    InvalidRecord,
    TeamProfile,
    build_team_profile,
    team_name,
)

logger = logging.getLogger(__name__)


def canonical_columns(frame: pl.DataFrame) -> pl.DataFrame:
    """Rename known column spellings to canonical profile field names.

    Unknown columns are kept untouched.  When two columns map onto the same
    field the first one wins and the rest are dropped.
    """

    renames: Dict[str, str] = {}
    dropped: list[str] = []
    claimed: set[str] = set()
    for column in frame.columns:
        key = column.strip()
        target = "team" if key in TEAM_NAME_KEYS else FIELD_ALIASES.get(key)
        if target is None:
            continue
        if target in claimed:
            dropped.append(column)
            continue
        claimed.add(target)
        if column != target:
            renames[column] = target
    if dropped:
        logger.warning("Dropping duplicate statistic columns: %s", ", ".join(dropped))
        frame = frame.drop(dropped)
    return frame.rename(renames)


def read_team_table(path: str | os.PathLike[str]) -> pl.DataFrame:
    """Read a CSV or Parquet team table with canonical column names.

    CSV cells are read as text so that values such as ``"43%"`` reach the
    normaliser unchanged.
    """

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(source)
    if source.suffix.lower() == ".parquet":
        frame = pl.read_parquet(source)
    else:
        frame = pl.read_csv(source, infer_schema_length=0)
    logger.debug("Read %d rows from %s", frame.height, source)
    return canonical_columns(frame)


def team_records(frame: pl.DataFrame) -> Dict[str, Dict[str, object]]:
    """Map team name to its raw record; rows without a team name are skipped."""

    records: Dict[str, Dict[str, object]] = {}
    for row_number, row in enumerate(frame.iter_rows(named=True), start=1):
        try:
            name = team_name(row)
        except InvalidRecord:
            logger.warning("Skipping row %d without a team name", row_number)
            continue
        if name in records:
            logger.warning("Duplicate row for %s; keeping the last one", name)
        records[name] = row
    return records


def load_team_profiles(
    path: str | os.PathLike[str],
    baseline: LeagueBaseline = DEFAULT_LEAGUE_BASELINE,
) -> Dict[str, TeamProfile]:
    """Read ``path`` and build a :class:`TeamProfile` per team."""

    records = team_records(read_team_table(path))
    profiles = {name: build_team_profile(record, baseline) for name, record in records.items()}
    logger.info("Loaded %d team profiles from %s", len(profiles), path)
    return profiles


__all__ = ["canonical_columns", "load_team_profiles", "read_team_table", "team_records"]
