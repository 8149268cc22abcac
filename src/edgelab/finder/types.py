"""Dataclasses for candidate bets, baselines and finder results."""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List


@dataclass
class Bet:
    game: str
    game_id: str
    sport: str
    sportsbook: str
    market_type: str
    selection: str
    odds: Decimal  # American
    decimal_odds: Decimal
    implied_probability: Decimal
    commence_time: str | None = None
    point: float | None = None
    description: str | None = None  # player name on prop outcomes
    is_player_prop: bool = False
    true_probability: Decimal | None = None
    expected_value: Decimal | None = None
    edge_percentage: Decimal | None = None
    confidence: str | None = None
    has_baseline: bool = False
    estimated: bool = False
    baseline_odds: int | float | str | None = None
    kelly_fraction: Decimal = Decimal(0)
    error: str | None = None

    @property
    def player_key(self) -> str:
        if self.description:
            return self.description
        words = self.selection.split()
        return " ".join(words[:2])


@dataclass
class BaselineOutcome:
    name: str
    price: int | float | str | None
    decimal_odds: Decimal
    point: float | None = None
    description: str | None = None


@dataclass
class BaselineMarket:
    outcomes: List[BaselineOutcome]
    no_vig_probabilities: List[Decimal]
    vig_percentage: Decimal


#: game id -> market key -> baseline
Baselines = dict[str, dict[str, BaselineMarket]]


@dataclass
class BetFilters:
    sport: str | None = None
    markets: Collection[str] | None = None
    bookmakers: Collection[str] | None = None


@dataclass
class BetExtraction:
    bets: List[Bet]
    skipped: int = 0


@dataclass
class BetEVSummary:
    bets: List[Bet]
    matched: int = 0
    estimated: int = 0
    skipped: int = 0


@dataclass
class FinderOptions:
    min_ev: Decimal | None = None
    max_bets: int | None = None
    require_baseline: bool | None = None
    filters: BetFilters = field(default_factory=BetFilters)


@dataclass
class FinderStats:
    games: int = 0
    baseline_games: int = 0
    candidates: int = 0
    matched: int = 0
    estimated: int = 0
    skipped: int = 0
    below_threshold: int = 0
    returned: int = 0


@dataclass
class PositiveEVResult:
    bets: List[Bet]
    stats: FinderStats


@dataclass
class ParlayMetrics:
    combined_odds: Decimal
    combined_probability: Decimal
    expected_value: Decimal
    edge_percentage: Decimal
    confidence: str
    leg_count: int
    requested_legs: int
    kelly_fraction: Decimal = Decimal(0)


@dataclass
class AssembledParlay:
    legs: List[Bet]
    metrics: ParlayMetrics
    rejected_legs: int = 0
