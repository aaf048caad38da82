"""
nflsimpy: drive-level Monte Carlo simulation of NFL games.

Team statistic tables are normalised into profiles, matched up against each
other and simulated many times to produce score distributions, win
probabilities, market outcomes and fair odds.
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - exercised in packaging workflows
    __version__ = version("nflsimpy")
except PackageNotFoundError:  # pragma: no cover - local editable installs
    __version__ = "0.0.0"

_EXPORTS = {
    # Simulation entry points
    "simulate": ".engine.simulator",
    "MonteCarloSimulator": ".engine.simulator",
    "SimulationConfig": ".engine.models",
    "SimulationResult": ".engine.models",
    "WeatherConditions": ".engine.models",
    "Precipitation": ".engine.models",
    # Team inputs
    "TeamProfile": ".engine.profiles",
    "build_team_profile": ".engine.profiles",
    "InvalidRecord": ".engine.profiles",
    "load_team_profiles": ".ingestion",
    "read_team_table": ".ingestion",
    # Calibration
    "CALIBRATION_PRESETS": ".engine.configuration",
    "ConfigurationError": ".engine.configuration",
    "load_simulation_settings": ".engine.configuration",
    # Runtime settings
    "get_config": ".config",
    "update_config": ".config",
    "reset_config": ".config",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> object:  # pragma: no cover - thin lazy importer
    from importlib import import_module

    target_module = _EXPORTS.get(name)
    if not target_module:
        raise AttributeError(f"module {__name__} has no attribute {name}")
    module = import_module(target_module, __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:  # pragma: no cover - trivial
    return sorted(list(globals().keys()) + __all__)
