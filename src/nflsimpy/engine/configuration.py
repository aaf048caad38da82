"""Calibration presets and layered configuration for the simulation engine."""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Sequence

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..config import SamplerKind
from .baseline import LeagueBaseline

ENVIRONMENT_VARIABLE = "NFLSIMPY_ENV"
EXTRA_CONFIG_VARIABLE = "NFLSIMPY_CONFIG"
ENV_OVERRIDE_PREFIX = "NFLSIMPY__"
DEFAULT_CONFIG_PATH = Path("config/simulation.yaml")


class ConfigurationError(ValueError):
    """Raised when simulation configuration validation fails."""


class DriveModelCoefficients(BaseModel):
    """Logistic coefficients of the per-drive outcome model."""

    model_config = ConfigDict(frozen=True)

    three_out_a0: float = -1.10
    three_out_a1: float = 2.6
    three_out_a2: float = 0.8
    three_out_a3: float = 1.5
    td_b0: float = -0.85
    td_b1: float = 3.0
    td_b2: float = 0.6
    td_b3: float = 1.2
    fg_phi: float = 0.30
    logit_bound: float = 8.0
    hfa_points_per_logit: float = 12.0
    rz_fg_slope: float = 0.5
    rz_factor_min: float = 0.7
    rz_factor_max: float = 1.3


class MatchupWeights(BaseModel):
    """Composite efficiency weights and strength transform constants."""

    model_config = ConfigDict(frozen=True)

    ppd: float = 0.25
    epa: float = 0.40
    success_rate: float = 0.25
    explosive_rate: float = 0.10
    red_zone: float = 0.05
    three_out: float = 0.35
    penalties_offense: float = 0.25
    penalties_defense: float = 0.15
    dvoa_offense: float = 0.5
    dvoa_defense: float = 0.5
    field_position: float = 0.2
    turnover_epa: float = 0.1
    strength_scale: float = 0.12
    strength_cap: float = 0.2
    hfa_drive_factor: float = 0.05


class DriveBudgetConfig(BaseModel):
    """Bounds applied when splitting a game's drives between the teams."""

    model_config = ConfigDict(frozen=True)

    min_total: int = 18
    max_total: int = 30
    min_team: int = 9
    max_team: int = 15
    tilt_scale: float = 0.1
    max_tilt: float = 0.6


class CorrelationConfig(BaseModel):
    """Increments used to derive the between-team correlation coefficient."""

    model_config = ConfigDict(frozen=True)

    baseline: float = 0.20
    minimum: float = -0.05
    maximum: float = 0.60
    close_spread: float = 3.0
    close_bonus: float = 0.08
    moderate_spread: float = 7.0
    moderate_bonus: float = 0.04
    blowout_spread: float = 14.0
    blowout_penalty: float = 0.06
    pass_rate_tolerance: float = 0.05
    pass_rate_bonus: float = 0.04
    explosive_high_ratio: float = 1.1
    explosive_high_bonus: float = 0.05
    explosive_low_ratio: float = 0.9
    explosive_low_penalty: float = 0.03
    dome_bonus: float = 0.03
    wind_threshold_mph: float = 15.0
    wind_bonus: float = 0.04
    precipitation_bonus: Dict[str, float] = Field(
        default_factory=lambda: {"light_rain": 0.03, "heavy_rain": 0.05, "snow": 0.06}
    )
    pace_tolerance: float = 1.5
    pace_bonus: float = 0.03


class WeatherConfig(BaseModel):
    """Point adjustments applied to the game total for the playing environment."""

    model_config = ConfigDict(frozen=True)

    dome_bonus: float = 2.0
    calm_wind_mph: float = 10.0
    wind_penalty_per_10mph: float = 0.5
    freezing_temperature_f: float = 32.0
    cold_penalty: float = 1.0
    precipitation_penalty: Dict[str, float] = Field(
        default_factory=lambda: {"light_rain": 1.0, "heavy_rain": 2.5, "snow": 3.0}
    )


class NormalSamplerConfig(BaseModel):
    """Heteroskedastic noise settings for the continuous score sampler."""

    model_config = ConfigDict(frozen=True)

    sigma_base: float = 7.5
    sigma_slope: float = 0.1
    sigma_min: float = 6.5
    sigma_max: float = 10.0
    reference_points: float = 21.0


class CalibrationPreset(BaseModel):
    """A versioned, self-contained calibration of every engine constant."""

    model_config = ConfigDict(frozen=True)

    version: str
    sampler: SamplerKind = SamplerKind.DISCRETE
    league: LeagueBaseline = Field(default_factory=LeagueBaseline)
    drive_model: DriveModelCoefficients = Field(default_factory=DriveModelCoefficients)
    weights: MatchupWeights = Field(default_factory=MatchupWeights)
    drive_budget: DriveBudgetConfig = Field(default_factory=DriveBudgetConfig)
    correlation: CorrelationConfig = Field(default_factory=CorrelationConfig)
    weather: WeatherConfig = Field(default_factory=WeatherConfig)
    normal: NormalSamplerConfig = Field(default_factory=NormalSamplerConfig)


DEFAULT_PRESET = "w13"

CALIBRATION_PRESETS: Mapping[str, CalibrationPreset] = {
    "w13": CalibrationPreset(version="2024.w13"),
    "w11": CalibrationPreset(
        version="2024.w11",
        drive_model=DriveModelCoefficients(three_out_a3=0.9),
    ),
    "w13-normal": CalibrationPreset(version="2024.w13-normal", sampler=SamplerKind.NORMAL),
}


class SimulationSettings(BaseModel):
    """Top level configuration document for the simulation engine."""

    environment: str = "default"
    preset: str = DEFAULT_PRESET
    presets: Dict[str, Dict[str, Any]] = Field(default_factory=dict)
    iterations: int = 10_000
    chunk_size: int = 2_500
    workers: int = 1
    seed: int | None = None
    percentiles: List[float] = Field(default_factory=lambda: [10.0, 25.0, 50.0, 75.0, 90.0])
    score_bin_width: int = 5
    margin_bin_width: int = 3

    def calibration(self) -> CalibrationPreset:
        return resolve_calibration(self.preset, self.presets.get(self.preset))


def resolve_calibration(
    name: str, overrides: Mapping[str, Any] | None = None
) -> CalibrationPreset:
    """Return the named preset with ``overrides`` merged on top.

    Overrides for names that are not built in must carry a ``version`` so the
    resulting calibration stays traceable.
    """

    key = name.strip().lower()
    base = CALIBRATION_PRESETS.get(key)
    if not overrides:
        if base is None:
            known = ", ".join(sorted(CALIBRATION_PRESETS))
            raise ConfigurationError(
                f"Unknown calibration preset {name!r}; expected one of {known}"
            )
        return base
    data = base.model_dump() if base is not None else {}
    merged = _merge_layers(data, overrides)
    try:
        return CalibrationPreset.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid calibration override for {name!r}: {exc}") from exc


_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


def _load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration at {path} must be a mapping")
    return dict(data)


def _merge_layers(base: Dict[str, Any], layer: Mapping[str, Any]) -> Dict[str, Any]:
    merged: Dict[str, Any] = dict(base)
    for key, value in layer.items():
        if (
            key in merged
            and isinstance(merged[key], Mapping)
            and isinstance(value, Mapping)
        ):
            merged[key] = _merge_layers(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def _resolve_env_tokens(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda match: os.getenv(match.group(1), ""), value)
    if isinstance(value, Mapping):
        return {k: _resolve_env_tokens(v) for k, v in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return [_resolve_env_tokens(item) for item in value]
    return value


def _coerce_env_value(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        lowered = raw.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
        return raw


def _set_nested(mapping: MutableMapping[str, Any], path: Iterable[str], value: Any) -> None:
    segments = list(path)
    if not segments:
        return
    head, *tail = segments
    key = head.lower().replace("-", "_")
    if not tail:
        mapping[key] = value
        return
    child = mapping.get(key)
    if not isinstance(child, MutableMapping):
        child = {}
    else:
        child = dict(child)
    mapping[key] = child
    _set_nested(child, tail, value)


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    updated = dict(data)
    for key, raw_value in os.environ.items():
        if not key.upper().startswith(ENV_OVERRIDE_PREFIX):
            continue
        suffix = key[len(ENV_OVERRIDE_PREFIX) :]
        path = [segment for segment in suffix.split("__") if segment]
        if not path:
            continue
        _set_nested(updated, path, _coerce_env_value(raw_value))
    return updated


def load_simulation_settings(
    *,
    base_path: str | os.PathLike[str] | None = None,
    environment: str | None = None,
    extra_paths: Sequence[str | os.PathLike[str]] | None = None,
) -> SimulationSettings:
    """Load layered configuration for the simulation engine.

    The loader merges ``config/simulation.yaml`` (when present) with optional
    environment-specific overrides (``config/simulation.<env>.yaml``),
    additional override files, and environment variable overrides that use
    the ``NFLSIMPY__`` prefix.  An explicitly supplied ``base_path`` must
    exist.
    """

    if base_path is not None:
        config_path = Path(base_path)
        data = _load_yaml(config_path)
    else:
        config_path = DEFAULT_CONFIG_PATH
        data = _load_yaml(config_path) if config_path.exists() else {}

    env_name = environment or os.getenv(ENVIRONMENT_VARIABLE) or data.get("environment")
    if isinstance(env_name, str):
        env_path = config_path.with_name(f"{config_path.stem}.{env_name}{config_path.suffix}")
        if env_path.exists():
            data = _merge_layers(data, _load_yaml(env_path))
        data["environment"] = env_name

    merged = dict(data)
    override_sources: list[Path] = []
    if extra_paths:
        override_sources.extend(Path(path) for path in extra_paths)
    env_overrides = os.getenv(EXTRA_CONFIG_VARIABLE)
    if env_overrides:
        override_sources.extend(Path(token) for token in env_overrides.split(os.pathsep) if token)

    for override in override_sources:
        if override.exists():
            merged = _merge_layers(merged, _load_yaml(override))

    merged = _apply_env_overrides(merged)
    merged = _resolve_env_tokens(merged)

    try:
        return SimulationSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid simulation configuration: {exc}") from exc


def validate_simulation_settings(settings: SimulationSettings) -> list[str]:
    """Validate a :class:`SimulationSettings` instance.

    Returns a list of warning messages and raises :class:`ConfigurationError`
    if any fatal issues are detected.
    """

    errors: list[str] = []
    warnings: list[str] = []

    if settings.iterations <= 0:
        errors.append("iterations must be greater than zero")
    elif settings.iterations < 1_000:
        warnings.append("fewer than 1,000 iterations; percentiles will be noisy")
    elif settings.iterations > 100_000:
        warnings.append("more than 100,000 iterations; expect long run times")
    if settings.chunk_size <= 0:
        errors.append("chunk_size must be greater than zero")
    if settings.workers <= 0:
        errors.append("workers must be greater than zero")
    for value in settings.percentiles:
        if not 0.0 <= value <= 100.0:
            errors.append(f"percentile {value} must be within [0, 100]")
    if settings.score_bin_width <= 0 or settings.margin_bin_width <= 0:
        errors.append("histogram bin widths must be greater than zero")

    try:
        calibration = settings.calibration()
    except ConfigurationError as exc:
        errors.append(str(exc))
    else:
        errors.extend(calibration_errors(calibration))

    if errors:
        bullet_list = "\n".join(f"- {message}" for message in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{bullet_list}")

    return warnings


def calibration_errors(calibration: CalibrationPreset) -> list[str]:
    """Return fatal problems with a calibration preset."""

    errors: list[str] = []
    budget = calibration.drive_budget
    if budget.min_team <= 0:
        errors.append("drive_budget.min_team must be greater than zero")
    if budget.min_team > budget.max_team:
        errors.append("drive_budget.min_team must not exceed drive_budget.max_team")
    if budget.min_total > budget.max_total:
        errors.append("drive_budget.min_total must not exceed drive_budget.max_total")
    if budget.max_tilt < 0:
        errors.append("drive_budget.max_tilt must be non-negative")
    model = calibration.drive_model
    if not 0.0 <= model.fg_phi <= 1.0:
        errors.append("drive_model.fg_phi must be within [0, 1]")
    if model.logit_bound <= 0:
        errors.append("drive_model.logit_bound must be greater than zero")
    if model.hfa_points_per_logit <= 0:
        errors.append("drive_model.hfa_points_per_logit must be greater than zero")
    if model.rz_factor_min > model.rz_factor_max:
        errors.append("drive_model.rz_factor_min must not exceed drive_model.rz_factor_max")
    correlation = calibration.correlation
    if not -1.0 < correlation.minimum <= correlation.maximum < 1.0:
        errors.append("correlation bounds must satisfy -1 < minimum <= maximum < 1")
    normal = calibration.normal
    if not 0.0 < normal.sigma_min <= normal.sigma_max:
        errors.append("normal.sigma_min must be positive and not exceed normal.sigma_max")
    return errors


__all__ = [
    "CALIBRATION_PRESETS",
    "CalibrationPreset",
    "ConfigurationError",
    "CorrelationConfig",
    "DEFAULT_PRESET",
    "DriveBudgetConfig",
    "DriveModelCoefficients",
    "MatchupWeights",
    "NormalSamplerConfig",
    "SimulationSettings",
    "WeatherConfig",
    "calibration_errors",
    "load_simulation_settings",
    "resolve_calibration",
    "validate_simulation_settings",
]
