"""Dataclasses for single-outcome and market EV analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from edgelab.odds.devig import BookOdds


@dataclass(frozen=True)
class MarketQuotes:
    """Every book's prices for one market, outcomes in a shared order."""

    books: tuple[BookOdds, ...]
    market: str | None = None
    outcomes: tuple[str, ...] | None = None


@dataclass
class OutcomeAnalysis:
    book: str
    outcome: str
    american_odds: Decimal
    decimal_odds: Decimal
    implied_probability: Decimal
    true_probability: Decimal
    expected_value: Decimal
    edge_percentage: Decimal
    is_value_bet: bool
    payout_per_dollar: Decimal
    profit_per_dollar: Decimal
    kelly_fraction: Decimal = Decimal(0)


@dataclass
class BookVig:
    vig_percentage: Decimal  # in percent, e.g. 4.76
    overround: Decimal


@dataclass
class MarketAnalysis:
    market: str
    outcomes: list[str] = field(default_factory=list)
    baseline_probabilities: list[Decimal] = field(default_factory=list)
    processed_outcomes: list[OutcomeAnalysis] = field(default_factory=list)
    market_vig: dict[str, BookVig] = field(default_factory=dict)
    value_bets: list[OutcomeAnalysis] = field(default_factory=list)
    best_value_bet: OutcomeAnalysis | None = None
    books_analyzed: int = 0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
