"""Environment-driven configuration helpers for EdgeLab."""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or .env files."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    baseline_book_patterns: list[str] = Field(default_factory=lambda: ["pinnacle"])
    default_odds_format: Literal["american", "decimal"] = Field(default="american")

    min_ev: float = Field(default=0.01, ge=-1.0, le=1.0)
    max_bets: int = Field(default=50, ge=1)
    require_baseline: bool = Field(default=False)

    standard_market_vig: float = Field(default=0.04, ge=0.0, le=0.5)
    player_prop_vig: float = Field(default=0.06, ge=0.0, le=0.5)
    estimation_discount: float = Field(default=0.30, ge=0.0, le=1.0)
    player_prop_prefix: str = Field(default="player_")
    point_tolerance: float = Field(default=0.01, gt=0.0)

    parlay_legs: int = Field(default=3, ge=1, le=20)
    player_props_ratio: float = Field(default=0.5, ge=0.0, le=1.0)

    kelly_fraction: float = Field(default=0.25, ge=0.0, le=1.0)
    kelly_cap: float = Field(default=0.25, ge=0.0, le=1.0)

    decimal_precision: int = Field(default=28, ge=10, le=100)
    max_workers: int = Field(default=1, ge=1, le=64)
    log_level: str = Field(default="INFO")

    @field_validator("baseline_book_patterns")
    @classmethod
    def _patterns_not_blank(cls, value: list[str]) -> list[str]:
        patterns = [p.strip().lower() for p in value if p and p.strip()]
        if not patterns:
            raise ValueError("at least one baseline book pattern is required")
        return patterns

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    def as_decimal(self, name: str) -> Decimal:
        """Return a numeric setting as an exact ``Decimal``."""

        return Decimal(str(getattr(self, name)))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings()  # type: ignore[call-arg]
