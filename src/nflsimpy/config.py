"""Runtime settings for nflsimpy."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SamplerKind(str, Enum):
    """Game generation strategies."""

    DISCRETE = "discrete"
    NORMAL = "normal"


class NflsimpyConfig(BaseSettings):
    """Process-wide defaults applied when a simulation request omits them."""

    seed: int | None = Field(
        default=None,
        description="Seed used when a simulation request does not supply one",
        alias="NFLSIMPY_SEED",
    )

    workers: int = Field(
        default=1,
        description="Worker processes used to run trial chunks",
        alias="NFLSIMPY_WORKERS",
    )

    preset: str = Field(
        default="w13",
        description="Calibration preset name",
        alias="NFLSIMPY_PRESET",
    )

    sampler: SamplerKind | None = Field(
        default=None,
        description="Game sampler overriding the preset's: 'discrete' or 'normal'",
        alias="NFLSIMPY_SAMPLER",
    )

    chunk_size: int = Field(
        default=2_500,
        description="Trials per independently seeded chunk",
        alias="NFLSIMPY_CHUNK_SIZE",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level used by the command line interface",
        alias="NFLSIMPY_LOG_LEVEL",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global configuration instance
config = NflsimpyConfig()


def get_config() -> NflsimpyConfig:
    """Get the current configuration."""
    return config


def update_config(**kwargs) -> None:
    """Update configuration settings."""
    global config
    for key, value in kwargs.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            raise ValueError(f"Unknown configuration option: {key}")


def reset_config() -> None:
    """Reset configuration to defaults."""
    global config
    config = NflsimpyConfig()
