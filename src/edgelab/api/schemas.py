"""Pydantic response schemas for the EdgeLab boundary.

Fields are snake_case in Python and serialize camelCase
(``model_dump(by_alias=True)``). Numbers leave the core as ``Decimal`` and are
emitted as floats here.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Response(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ErrorDetail(_Response):
    location: str
    message: str


class ErrorResponse(_Response):
    error: str
    message: str
    details: list[ErrorDetail] = Field(default_factory=list)


class RawOdds(_Response):
    american: float
    decimal: float


class PayoutProjection(_Response):
    per_dollar: float
    profit: float


class OutcomeResponse(_Response):
    book: str
    outcome: str
    raw_odds: RawOdds
    implied_probability: float
    true_probability: float
    expected_value: float
    edge_percentage: float
    is_value_bet: bool
    payout_projection: PayoutProjection
    kelly_fraction: float


class VigResponse(_Response):
    vig_percentage: float
    overround: float


class MarketSummary(_Response):
    total_outcomes: int
    value_bets_found: int
    books_analyzed: int


class MarketResponse(_Response):
    market: str
    outcomes: list[str]
    pinnacle_baseline: list[float]
    processed_outcomes: list[OutcomeResponse]
    market_vig: dict[str, VigResponse]
    value_bets: list[OutcomeResponse]
    best_value_bet: OutcomeResponse | None = None
    analysis: MarketSummary


class MarketBatchItem(_Response):
    market: str
    result: MarketResponse | None = None
    error: str | None = None


class ParlayLegResponse(_Response):
    book: str
    outcome: str | None = None
    decimal_odds: float
    implied_probability: float
    true_probability: float
    is_push: bool = False


class PushInfoResponse(_Response):
    has_pushes: bool
    push_count: int
    active_leg_count: int
    all_pushes: bool = False


class ParlayResponse(_Response):
    stake: float
    combined_odds: float
    combined_true_probability: float
    projected_payout: float
    profit: float
    expected_value: float
    edge_percentage: float
    is_value_bet: bool
    push_info: PushInfoResponse
    legs: list[ParlayLegResponse]


class RankedParlay(_Response):
    id: str
    book: str | None = None
    result: ParlayResponse | None = None
    error: str | None = None


class ComparisonSummary(_Response):
    total_parlays: int
    value_bets: int
    average_ev: float = Field(alias="averageEV")


class ComparisonResponse(_Response):
    parlays: list[RankedParlay]
    best_ev_parlay: RankedParlay | None = Field(default=None, alias="bestEVParlay")
    highest_payout_parlay: RankedParlay | None = None
    analysis: ComparisonSummary


class BetResponse(_Response):
    game: str
    game_id: str
    sport: str
    sportsbook: str
    market_type: str
    selection: str
    point: float | None = None
    description: str | None = None
    is_player_prop: bool
    odds: float
    decimal_odds: float
    implied_probability: float
    true_probability: float | None = None
    expected_value: float | None = None
    edge_percentage: float | None = None
    confidence: str | None = None
    has_baseline: bool
    estimated: bool
    baseline_odds: float | None = None
    kelly_fraction: float
    commence_time: str | None = None
    error: str | None = None


class ParlayMetricsResponse(_Response):
    combined_odds: float
    combined_probability: float
    expected_value: float
    edge_percentage: float
    confidence: str
    leg_count: int
    requested_legs: int
    kelly_fraction: float


class FinderParlayResponse(_Response):
    legs: list[BetResponse]
    metrics: ParlayMetricsResponse
    rejected_legs: int


class FinderStatsResponse(_Response):
    games: int
    baseline_games: int
    candidates: int
    matched: int
    estimated: int
    skipped: int
    below_threshold: int
    returned: int


class FinderResponse(_Response):
    bets: list[BetResponse]
    parlay: FinderParlayResponse | None = None
    stats: FinderStatsResponse
