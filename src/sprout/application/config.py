import logging
import math
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from sprout.domain.constants import (
    DEFAULT_LEARNING_STEPS,
    DEFAULT_MAXIMUM_INTERVAL,
    DEFAULT_RELEARNING_STEPS,
    DEFAULT_REQUEST_RETENTION,
    DEFAULT_TIMELINE_WINDOW_MINUTES,
    FALLBACK_STEP_MINUTES,
    FSRS5_VERSION,
    FSRS5_WEIGHTS,
    FSRS_WEIGHT_COUNT,
    RETENTION_CEILING,
    RETENTION_FLOOR,
)

logger = logging.getLogger(__name__)

CONFIG_FILES = [
    Path.home() / ".config/sprout/config.toml",
    Path.home() / ".sprout.toml",
]


class MemoryParameters(BaseModel):
    """
    Versioned parameter table for the memory model.

    Recalibrating the model means swapping this table; the state machine
    never reads weights from anywhere else.
    """

    model_config = ConfigDict(frozen=True)

    version: str = FSRS5_VERSION
    weights: tuple[float, ...] = FSRS5_WEIGHTS

    @field_validator("weights")
    @classmethod
    def check_weights(cls, v: tuple[float, ...]) -> tuple[float, ...]:
        if len(v) != FSRS_WEIGHT_COUNT:
            raise ValueError(f"expected {FSRS_WEIGHT_COUNT} weights, got {len(v)}")
        if not all(math.isfinite(w) for w in v):
            raise ValueError("weights must be finite numbers")
        return v


class SchedulerSettings(BaseModel):
    """
    Immutable scheduler configuration supplied by the caller.

    Accepts snake_case or camelCase keys (learningStepsMinutes etc.).
    Invalid values raise pydantic.ValidationError at construction time, so a
    transition never fails halfway because of bad settings.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    learning_steps_minutes: tuple[int, ...] = DEFAULT_LEARNING_STEPS
    relearning_steps_minutes: tuple[int, ...] = DEFAULT_RELEARNING_STEPS
    request_retention: float = DEFAULT_REQUEST_RETENTION
    maximum_interval_days: int = Field(default=DEFAULT_MAXIMUM_INTERVAL, ge=1)
    enable_fuzz: bool = False
    parameters: MemoryParameters = Field(default_factory=MemoryParameters)

    @field_validator("learning_steps_minutes", "relearning_steps_minutes", mode="before")
    @classmethod
    def default_missing_steps(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            if info.field_name == "learning_steps_minutes":
                return DEFAULT_LEARNING_STEPS
            return ()
        return v

    @field_validator("learning_steps_minutes", "relearning_steps_minutes")
    @classmethod
    def check_positive_steps(cls, v: tuple[int, ...], info: ValidationInfo) -> tuple[int, ...]:
        for minutes in v:
            if minutes <= 0:
                raise ValueError(f"{info.field_name} must contain positive minutes, got {minutes}")
        return v

    @field_validator("request_retention")
    @classmethod
    def clamp_retention(cls, v: float) -> float:
        if not math.isfinite(v) or not 0.0 < v < 1.0:
            raise ValueError(f"request_retention must be between 0 and 1 (exclusive), got {v}")
        clamped = max(RETENTION_FLOOR, min(RETENTION_CEILING, v))
        if clamped != v:
            logger.warning(f"request_retention {v} clamped to {clamped}")
        return clamped

    @property
    def effective_learning_steps(self) -> tuple[int, ...]:
        """Learning ramp. Empty means cards graduate on their first grading."""
        return self.learning_steps_minutes

    @property
    def effective_relearning_steps(self) -> tuple[int, ...]:
        """Relearning ramp, falling back to the first learning step."""
        if self.relearning_steps_minutes:
            return self.relearning_steps_minutes
        if self.learning_steps_minutes:
            return (self.learning_steps_minutes[0],)
        return (FALLBACK_STEP_MINUTES,)

    def with_overrides(self, **overrides: Any) -> "SchedulerSettings":
        """Return validated settings with the non-None overrides applied."""
        data = self.model_dump()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return SchedulerSettings(**data)


class AppConfig(BaseSettings):
    """
    Configuration model for the sprout CLI and services.
    Supports loading from:
    1. Environment variables (SPROUT_*, nested with __)
    2. Config file (~/.config/sprout/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="SPROUT_",
        env_nested_delimiter="__",
        toml_file=CONFIG_FILES,
        extra="ignore",
    )

    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)

    # Two-button surface: which rating a "pass" stands for
    pass_rating: Literal["good", "easy"] = "good"

    # Queue shuffling window
    timeline_window_minutes: int = Field(default=DEFAULT_TIMELINE_WINDOW_MINUTES, ge=1)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Find the first existing file
        toml_file = None
        for f in CONFIG_FILES:
            if f.exists():
                toml_file = f
                break

        # Earlier sources win: CLI overrides, then environment, then TOML.
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/sprout/config.toml (if exists)
    3. Environment variables (SPROUT_*)
    4. cli_overrides (passed from Typer)
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}

    scheduler_overrides = overrides.pop("scheduler", None)
    config = AppConfig(**overrides)

    if scheduler_overrides:
        # Nested overrides merge field by field instead of replacing the block.
        config = config.model_copy(
            update={"scheduler": config.scheduler.with_overrides(**scheduler_overrides)}
        )

    return config
