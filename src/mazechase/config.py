"""Configuration management using Pydantic settings.

Every knob of a session lives here.  Values are read once when a session
is constructed and are frozen afterwards; nothing is runtime-mutable
mid-session.  Environment variables use the ``MAZECHASE_`` prefix, e.g.
``MAZECHASE_MAZE_SIZE=31``.

Durations are seconds, distances are world units (pixels of the sprite
art at 1x zoom).
"""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

# Smallest maze that fits the forced-open start and center neighbourhoods
MIN_MAZE_SIZE = 7


class Settings(BaseSettings):
    """Session settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MAZECHASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # World & map
    maze_size: int = 41
    tile_size: float = Field(64.0, gt=0)
    spacing: float = Field(1.5, gt=0)
    wall_body_scale: float = Field(1.05, gt=0)   # maze wall box, fraction of a tile unit
    structure_scale: float = Field(1.0, gt=0)    # encroachment structure box

    # Player
    player_size: float = Field(40.0, gt=0)
    player_speed: float = Field(160.0, ge=0)
    player_jump_height: float = Field(150.0, ge=0)
    player_jump_distance: float = Field(200.0, ge=0)
    player_jump_duration: float = Field(0.6, gt=0)

    # Pursuer
    pursuer_size: float = Field(48.0, gt=0)
    pursuer_speed: float = Field(80.0, ge=0)
    pursuer_look_ahead: float = Field(50.0, ge=0)
    pursuer_jump_height: float = Field(120.0, ge=0)
    pursuer_jump_distance: float = Field(200.0, ge=0)
    pursuer_jump_duration: float = Field(0.8, gt=0)
    pursuer_min_spawn_distance: float = Field(500.0, ge=0)
    pursuer_spawn_attempts: int = Field(100, ge=1)
    pursuer_fallback_inset: float = Field(100.0, ge=0)
    pursuer_delay: float = Field(10.0, ge=0)     # after intro completion

    # Encroachment
    front_delay: float = Field(15.0, ge=0)       # after intro completion
    front_spawn_interval: float = Field(10.0, gt=0)
    dissolve_duration: float = Field(1.0, ge=0)

    # Goal & pickups
    goal_size: float = Field(72.0, gt=0)
    pickup_size: float = Field(32.0, gt=0)
    milk_probability: float = Field(0.05, ge=0, le=1)
    fish_probability: float = Field(0.1, ge=0, le=1)
    heal_amount: int = Field(20, ge=0)
    health_drain_interval: float = Field(1.0, gt=0)
    health_drain_amount: int = Field(1, ge=0)

    # Scripted sequences
    intro_pan_delay: float = Field(2.0, ge=0)
    intro_pan_duration: float = Field(0.8, ge=0)
    intro_hold: float = Field(1.0, ge=0)
    intro_return_duration: float = Field(0.6, ge=0)
    reveal_pan_duration: float = Field(1.0, ge=0)
    reveal_hold: float = Field(1.0, ge=0)
    reveal_return_duration: float = Field(0.5, ge=0)
    game_over_steps: tuple[float, ...] = (0.5, 0.5, 0.5)
    victory_steps: tuple[float, ...] = (0.2,) * 8 + (0.5,)

    # Randomness (None = nondeterministic)
    seed: int | None = None

    @field_validator("maze_size")
    @classmethod
    def _check_maze_size(cls, v: int) -> int:
        if v < MIN_MAZE_SIZE or v % 2 == 0:
            raise ConfigurationError(
                f"maze_size must be an odd integer >= {MIN_MAZE_SIZE}, got {v}"
            )
        return v

    @model_validator(mode="after")
    def _check_tile_geometry(self) -> "Settings":
        # Free corridor width between two wall boxes one cell apart
        corridor = self.tile_unit * (2.0 - self.wall_body_scale)
        if corridor <= 0:
            raise ConfigurationError(
                f"wall_body_scale {self.wall_body_scale} leaves no corridor"
            )
        if self.player_size >= corridor:
            raise ConfigurationError(
                f"player_size {self.player_size} does not fit a "
                f"{corridor:.1f}-wide corridor"
            )
        return self

    @property
    def tile_unit(self) -> float:
        """World distance between adjacent cell centers."""
        return self.tile_size * self.spacing

    @property
    def world_size(self) -> float:
        return self.maze_size * self.tile_unit
