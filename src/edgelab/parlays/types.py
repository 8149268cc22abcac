"""Dataclasses for parlay legs, tickets and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from edgelab.odds.types import Odds


@dataclass
class ParlayLeg:
    book: str
    odds: Odds
    true_probability: Decimal | None = None
    is_push: bool = False
    outcome: str | None = None


@dataclass
class ProcessedLeg:
    book: str
    outcome: str | None
    odds: Odds
    decimal_odds: Decimal
    implied_probability: Decimal
    true_probability: Decimal
    is_push: bool = False


@dataclass
class PushInfo:
    has_pushes: bool
    push_count: int
    active_leg_count: int
    all_pushes: bool = False


@dataclass
class ParlayResult:
    stake: Decimal
    combined_odds: Decimal
    combined_true_probability: Decimal
    projected_payout: Decimal
    profit: Decimal
    expected_value: Decimal
    edge_percentage: Decimal
    is_value_bet: bool
    push_info: PushInfo
    legs: List[ProcessedLeg] = field(default_factory=list)


@dataclass
class ParlayTicket:
    legs: List[ParlayLeg]
    stake: Decimal = Decimal(1)
    id: str | None = None
    book: str | None = None


@dataclass
class ParlayOutcome:
    id: str
    book: str | None
    result: ParlayResult | None = None
    error: str | None = None


@dataclass
class ParlayComparison:
    parlays: List[ParlayOutcome]
    best_ev_parlay: ParlayOutcome | None
    highest_payout_parlay: ParlayOutcome | None
    total_parlays: int
    value_bets: int
    average_ev: Decimal
