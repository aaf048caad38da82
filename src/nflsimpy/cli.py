"""Command line interface for the drive-level game simulator."""

from __future__ import annotations

import argparse
import dataclasses
import json
import logging
from typing import Callable, Dict, Mapping, Sequence, TypeVar

from rapidfuzz import fuzz, process, utils

from .config import get_config
from .engine.configuration import (
    CALIBRATION_PRESETS,
    CalibrationPreset,
    ConfigurationError,
    SimulationSettings,
    load_simulation_settings,
    resolve_calibration,
    validate_simulation_settings,
)
from .engine.logging import configure_logging
from .engine.models import Precipitation, SimulationConfig, WeatherConditions
from .engine.profiles import TeamProfile
from .engine.simulator import simulate
from .ingestion import load_team_profiles

CommandHandler = Callable[[SimulationSettings, argparse.Namespace], None]

HandlerT = TypeVar("HandlerT", bound=CommandHandler)


@dataclasses.dataclass(slots=True)
class Subcommand:
    """Container describing a CLI sub-command."""

    name: str
    help: str
    configure: Callable[[argparse.ArgumentParser], None]
    handler: CommandHandler

    def add_to_parser(
        self,
        subparsers,
        parent: argparse.ArgumentParser,
    ) -> argparse.ArgumentParser:
        parser = subparsers.add_parser(self.name, parents=[parent], help=self.help)
        self.configure(parser)
        parser.set_defaults(handler=self.handler, command=self.name)
        return parser


class SubcommandApp:
    """Registry that wires handlers into an :class:`argparse` parser."""

    def __init__(self, description: str | None = None) -> None:
        self._commands: list[Subcommand] = []
        self._description = description

    def command(
        self,
        name: str,
        *,
        help: str,
        configure: Callable[[argparse.ArgumentParser], None] = lambda parser: None,
    ) -> Callable[[HandlerT], HandlerT]:
        """Register ``handler`` as a sub-command with configuration callback."""

        def _decorator(handler: HandlerT) -> HandlerT:
            self._commands.append(
                Subcommand(name=name, help=help, configure=configure, handler=handler)
            )
            return handler

        return _decorator

    @property
    def commands(self) -> Sequence[Subcommand]:
        return tuple(self._commands)

    def build_parser(self) -> argparse.ArgumentParser:
        parent = argparse.ArgumentParser(add_help=False)
        parent.add_argument("--config", dest="config_file")
        parent.add_argument("--environment", dest="config_environment")
        parent.add_argument("--log-level", dest="log_level")

        parser = argparse.ArgumentParser(prog="nflsimpy", description=self._description)
        subparsers = parser.add_subparsers(dest="command", required=True)
        for command in self._commands:
            command.add_to_parser(subparsers, parent)
        return parser


APP = SubcommandApp(description=__doc__)

logger = logging.getLogger(__name__)

TEAM_MATCH_THRESHOLD = 88.0
TEAM_MATCH_MARGIN = 5.0


def _find_team(profiles: Mapping[str, TeamProfile], name: str) -> TeamProfile:
    """Resolve ``name`` exactly, then case-insensitively, then fuzzily.

    A fuzzy match is accepted only when it clears ``TEAM_MATCH_THRESHOLD`` and
    beats the runner-up by ``TEAM_MATCH_MARGIN``.
    """

    if name in profiles:
        return profiles[name]
    lowered = {key.lower(): profile for key, profile in profiles.items()}
    if name.strip().lower() in lowered:
        return lowered[name.strip().lower()]
    matches = process.extract(
        name,
        list(profiles),
        scorer=fuzz.WRatio,
        processor=utils.default_process,
        limit=2,
    )
    if matches:
        best, score, _ = matches[0]
        runner_up = matches[1][1] if len(matches) > 1 else 0.0
        if score >= TEAM_MATCH_THRESHOLD and score - runner_up >= TEAM_MATCH_MARGIN:
            logger.info("Matched team %r to %s (score %.0f)", name, best, score)
            return profiles[best]
    suggestions = ", ".join(match for match, _, _ in matches) or "none"
    raise SystemExit(f"Team {name!r} not found; closest matches: {suggestions}")


def _calibration(settings: SimulationSettings, preset: str | None) -> CalibrationPreset:
    name = preset or settings.preset
    return resolve_calibration(name, settings.presets.get(name))


def _configure_simulate(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--teams", required=True, help="CSV or Parquet team statistics table")
    parser.add_argument("--home", required=True)
    parser.add_argument("--away", required=True)
    parser.add_argument("--iterations", type=int)
    parser.add_argument("--hfa", type=float, default=0.0, help="Home-field advantage in points")
    parser.add_argument("--dome", action="store_true")
    parser.add_argument("--wind", type=float, default=0.0, help="Wind speed in mph")
    parser.add_argument("--temperature", type=float, default=60.0, help="Temperature in F")
    parser.add_argument(
        "--precipitation",
        choices=[kind.value for kind in Precipitation],
        default=Precipitation.NONE.value,
    )
    parser.add_argument("--total", type=float, help="Market game total")
    parser.add_argument("--spread", type=float, help="Market spread, home perspective")
    parser.add_argument("--home-total", type=float)
    parser.add_argument("--away-total", type=float)
    parser.add_argument("--sampler", choices=["discrete", "normal"])
    parser.add_argument("--preset")
    parser.add_argument("--seed", type=int)
    parser.add_argument("--workers", type=int)
    parser.add_argument("--deadline", type=float, help="Stop after this many seconds")
    parser.add_argument(
        "--histogram",
        choices=["home", "away", "total", "margin"],
        help="Also print the binned distribution of one series",
    )


@APP.command("simulate", help="Simulate one matchup", configure=_configure_simulate)
def _simulate(settings: SimulationSettings, args: argparse.Namespace) -> None:
    try:
        warnings = validate_simulation_settings(settings)
        calibration = _calibration(settings, args.preset)
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc
    for message in warnings:
        print(f"[config-warning] {message}")

    profiles: Dict[str, TeamProfile] = load_team_profiles(args.teams, calibration.league)
    home = _find_team(profiles, args.home)
    away = _find_team(profiles, args.away)
    config = SimulationConfig(
        num_simulations=args.iterations if args.iterations is not None else settings.iterations,
        home_field_advantage_points=args.hfa,
        weather=WeatherConditions(
            is_dome=args.dome,
            wind_mph=args.wind,
            temperature_f=args.temperature,
            precipitation=Precipitation.coerce(args.precipitation),
        ),
        market_total=args.total,
        market_spread=args.spread,
        market_home_team_total=args.home_total,
        market_away_team_total=args.away_total,
        sampler=args.sampler,
        seed=args.seed if args.seed is not None else settings.seed,
        workers=args.workers if args.workers is not None else settings.workers,
        chunk_size=settings.chunk_size,
        deadline_seconds=args.deadline,
        percentiles=tuple(settings.percentiles),
        score_bin_width=settings.score_bin_width,
        margin_bin_width=settings.margin_bin_width,
    )
    try:
        result = simulate(home, away, config, calibration=calibration)
    except ConfigurationError as exc:
        raise SystemExit(str(exc)) from exc
    print(json.dumps(result.summary(), indent=2))
    if args.histogram:
        print(result.distribution_frame(args.histogram))


@APP.command("presets", help="List calibration presets")
def _presets(settings: SimulationSettings, args: argparse.Namespace) -> None:
    names = sorted(set(CALIBRATION_PRESETS) | set(settings.presets))
    for name in names:
        try:
            calibration = _calibration(settings, name)
        except ConfigurationError as exc:
            print(f"{name}: invalid ({exc})")
            continue
        marker = "*" if name == settings.preset else " "
        print(f"{marker} {name}: version={calibration.version} sampler={calibration.sampler.value}")


def _build_parser() -> argparse.ArgumentParser:
    return APP.build_parser()


def main(argv: Sequence[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_config().log_level)
    try:
        settings = load_simulation_settings(
            base_path=args.config_file,
            environment=args.config_environment,
        )
    except (ConfigurationError, FileNotFoundError) as exc:
        raise SystemExit(f"Unable to load configuration: {exc}") from exc
    args.handler(settings, args)


__all__ = ["APP", "main"]


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
