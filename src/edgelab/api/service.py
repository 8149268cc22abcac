"""In-process boundary: raw payloads in, response models or error payloads out.

Every public function validates its input, runs the core inside a
``decimal.localcontext`` at the configured precision and converts the result
to the camelCase response schemas. Nothing raises across this boundary;
failures come back as :class:`ErrorResponse` values.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from decimal import Decimal, localcontext
from typing import Any

from pydantic import BaseModel

from edgelab.api.schemas import (
    BetResponse,
    ComparisonResponse,
    ComparisonSummary,
    ErrorDetail,
    ErrorResponse,
    FinderParlayResponse,
    FinderResponse,
    FinderStatsResponse,
    MarketBatchItem,
    MarketResponse,
    MarketSummary,
    OutcomeResponse,
    ParlayLegResponse,
    ParlayMetricsResponse,
    ParlayResponse,
    PayoutProjection,
    PushInfoResponse,
    RankedParlay,
    RawOdds,
    VigResponse,
)
from edgelab.config import Settings, get_settings
from edgelab.errors import EdgeLabError, ValidationError
from edgelab.ev.calculator import analyze_markets, process_market
from edgelab.ev.types import MarketAnalysis, OutcomeAnalysis
from edgelab.finder.positive_ev import build_optimal_parlay, find_positive_ev_bets
from edgelab.finder.types import AssembledParlay, Bet, BetFilters, FinderOptions, FinderStats
from edgelab.odds.conversion import to_decimal
from edgelab.parlays.engine import calculate_parlay_ev, compare_parlays
from edgelab.parlays.types import ParlayOutcome, ParlayResult
from edgelab.validation.schemas import (
    MarketInput,
    ParlayInput,
    ParlaysComparisonInput,
    ValidationOutcome,
    validate_ev_request,
    validate_feed,
    validate_market_data,
    validate_parlay_data,
    validate_parlays_comparison,
)

logger = logging.getLogger(__name__)


def _error(exc: EdgeLabError) -> ErrorResponse:
    return ErrorResponse(
        error=exc.code,
        message=exc.message,
        details=[ErrorDetail(location=d.location, message=d.message) for d in exc.details],
    )


def _invalid(outcome: ValidationOutcome[Any], what: str) -> ErrorResponse:
    logger.info("Rejected %s payload with %d field errors", what, len(outcome.errors))
    return _error(ValidationError(f"Invalid {what} data", details=outcome.errors))


def _optional(value: Decimal | None) -> float | None:
    return float(value) if value is not None else None


def _outcome_to_response(outcome: OutcomeAnalysis) -> OutcomeResponse:
    return OutcomeResponse(
        book=outcome.book,
        outcome=outcome.outcome,
        raw_odds=RawOdds(american=float(outcome.american_odds), decimal=float(outcome.decimal_odds)),
        implied_probability=float(outcome.implied_probability),
        true_probability=float(outcome.true_probability),
        expected_value=float(outcome.expected_value),
        edge_percentage=float(outcome.edge_percentage),
        is_value_bet=outcome.is_value_bet,
        payout_projection=PayoutProjection(
            per_dollar=float(outcome.payout_per_dollar),
            profit=float(outcome.profit_per_dollar),
        ),
        kelly_fraction=float(outcome.kelly_fraction),
    )


def _market_to_response(analysis: MarketAnalysis) -> MarketResponse:
    return MarketResponse(
        market=analysis.market,
        outcomes=analysis.outcomes,
        pinnacle_baseline=[float(p) for p in analysis.baseline_probabilities],
        processed_outcomes=[_outcome_to_response(o) for o in analysis.processed_outcomes],
        market_vig={
            book: VigResponse(vig_percentage=float(vig.vig_percentage), overround=float(vig.overround))
            for book, vig in analysis.market_vig.items()
        },
        value_bets=[_outcome_to_response(o) for o in analysis.value_bets],
        best_value_bet=(
            _outcome_to_response(analysis.best_value_bet) if analysis.best_value_bet else None
        ),
        analysis=MarketSummary(
            total_outcomes=len(analysis.processed_outcomes),
            value_bets_found=len(analysis.value_bets),
            books_analyzed=analysis.books_analyzed,
        ),
    )


def _parlay_to_response(result: ParlayResult) -> ParlayResponse:
    return ParlayResponse(
        stake=float(result.stake),
        combined_odds=float(result.combined_odds),
        combined_true_probability=float(result.combined_true_probability),
        projected_payout=float(result.projected_payout),
        profit=float(result.profit),
        expected_value=float(result.expected_value),
        edge_percentage=float(result.edge_percentage),
        is_value_bet=result.is_value_bet,
        push_info=PushInfoResponse(
            has_pushes=result.push_info.has_pushes,
            push_count=result.push_info.push_count,
            active_leg_count=result.push_info.active_leg_count,
            all_pushes=result.push_info.all_pushes,
        ),
        legs=[
            ParlayLegResponse(
                book=leg.book,
                outcome=leg.outcome,
                decimal_odds=float(leg.decimal_odds),
                implied_probability=float(leg.implied_probability),
                true_probability=float(leg.true_probability),
                is_push=leg.is_push,
            )
            for leg in result.legs
        ],
    )


def _ranked(outcome: ParlayOutcome | None) -> RankedParlay | None:
    if outcome is None:
        return None
    return RankedParlay(
        id=outcome.id,
        book=outcome.book,
        result=_parlay_to_response(outcome.result) if outcome.result else None,
        error=outcome.error,
    )


def _bet_to_response(bet: Bet) -> BetResponse:
    baseline_odds = to_decimal(bet.baseline_odds) if bet.baseline_odds is not None else None
    return BetResponse(
        game=bet.game,
        game_id=bet.game_id,
        sport=bet.sport,
        sportsbook=bet.sportsbook,
        market_type=bet.market_type,
        selection=bet.selection,
        point=bet.point,
        description=bet.description,
        is_player_prop=bet.is_player_prop,
        odds=float(bet.odds),
        decimal_odds=float(bet.decimal_odds),
        implied_probability=float(bet.implied_probability),
        true_probability=_optional(bet.true_probability),
        expected_value=_optional(bet.expected_value),
        edge_percentage=_optional(bet.edge_percentage),
        confidence=bet.confidence,
        has_baseline=bet.has_baseline,
        estimated=bet.estimated,
        baseline_odds=_optional(baseline_odds),
        kelly_fraction=float(bet.kelly_fraction),
        commence_time=bet.commence_time,
        error=bet.error,
    )


def _assembled_to_response(parlay: AssembledParlay) -> FinderParlayResponse:
    metrics = parlay.metrics
    return FinderParlayResponse(
        legs=[_bet_to_response(bet) for bet in parlay.legs],
        metrics=ParlayMetricsResponse(
            combined_odds=float(metrics.combined_odds),
            combined_probability=float(metrics.combined_probability),
            expected_value=float(metrics.expected_value),
            edge_percentage=float(metrics.edge_percentage),
            confidence=metrics.confidence,
            leg_count=metrics.leg_count,
            requested_legs=metrics.requested_legs,
            kelly_fraction=float(metrics.kelly_fraction),
        ),
        rejected_legs=parlay.rejected_legs,
    )


def _stats_to_response(stats: FinderStats) -> FinderStatsResponse:
    return FinderStatsResponse(
        games=stats.games,
        baseline_games=stats.baseline_games,
        candidates=stats.candidates,
        matched=stats.matched,
        estimated=stats.estimated,
        skipped=stats.skipped,
        below_threshold=stats.below_threshold,
        returned=stats.returned,
    )


def _market_analysis(market: MarketInput, settings: Settings) -> MarketResponse | ErrorResponse:
    analysis = process_market(
        market.to_quotes(settings.default_odds_format),
        kelly_multiplier=settings.as_decimal("kelly_fraction"),
        kelly_cap=settings.as_decimal("kelly_cap"),
    )
    if analysis.error:
        return ErrorResponse(error="invalid_market", message=analysis.error)
    return _market_to_response(analysis)


def _parlay_analysis(parlay: ParlayInput, settings: Settings) -> ParlayResponse | ErrorResponse:
    ticket = parlay.to_ticket(settings.default_odds_format)
    try:
        return _parlay_to_response(calculate_parlay_ev(ticket.legs, ticket.stake))
    except EdgeLabError as exc:
        logger.warning("Parlay %s rejected: %s", parlay.id or parlay.book, exc)
        return _error(exc)


def _comparison(request: ParlaysComparisonInput, settings: Settings) -> ComparisonResponse:
    comparison = compare_parlays(
        [parlay.to_ticket(settings.default_odds_format) for parlay in request.parlays]
    )
    return ComparisonResponse(
        parlays=[_ranked(outcome) for outcome in comparison.parlays],
        best_ev_parlay=_ranked(comparison.best_ev_parlay),
        highest_payout_parlay=_ranked(comparison.highest_payout_parlay),
        analysis=ComparisonSummary(
            total_parlays=comparison.total_parlays,
            value_bets=comparison.value_bets,
            average_ev=float(comparison.average_ev),
        ),
    )


def analyze_market(payload: Any) -> MarketResponse | ErrorResponse:
    """Every book's prices in one market against the baseline book."""

    settings = get_settings()
    outcome = validate_market_data(payload)
    if not outcome.success:
        return _invalid(outcome, "market")
    with localcontext() as ctx:
        ctx.prec = settings.decimal_precision
        return _market_analysis(outcome.data, settings)


def analyze_market_batch(payloads: list[Any]) -> list[MarketBatchItem]:
    """Analyze independent markets, fanned out over ``max_workers`` threads.

    Invalid payloads and failing markets are reported per item.
    """

    settings = get_settings()
    items: list[MarketBatchItem | None] = []
    pending: list[tuple[int, MarketInput]] = []
    for index, payload in enumerate(payloads):
        outcome = validate_market_data(payload)
        if not outcome.success:
            errors = "; ".join(f"{e.location}: {e.message}" for e in outcome.errors)
            name = payload.get("market") if isinstance(payload, dict) else None
            items.append(MarketBatchItem(market=name or f"market_{index}", error=errors))
            continue
        items.append(None)
        pending.append((index, outcome.data))

    with localcontext() as ctx:
        ctx.prec = settings.decimal_precision
        analyses = analyze_markets(
            [market.to_quotes(settings.default_odds_format) for _, market in pending],
            max_workers=settings.max_workers,
            kelly_multiplier=settings.as_decimal("kelly_fraction"),
            kelly_cap=settings.as_decimal("kelly_cap"),
        )
        for (index, _), analysis in zip(pending, analyses):
            items[index] = MarketBatchItem(
                market=analysis.market,
                result=_market_to_response(analysis) if analysis.ok else None,
                error=analysis.error,
            )
    return [item for item in items if item is not None]


def analyze_parlay(payload: Any) -> ParlayResponse | ErrorResponse:
    settings = get_settings()
    outcome = validate_parlay_data(payload)
    if not outcome.success:
        return _invalid(outcome, "parlay")
    with localcontext() as ctx:
        ctx.prec = settings.decimal_precision
        return _parlay_analysis(outcome.data, settings)


def compare_parlay_tickets(payload: Any) -> ComparisonResponse | ErrorResponse:
    """Rank several parlays by EV and by payout."""

    settings = get_settings()
    outcome = validate_parlays_comparison(payload)
    if not outcome.success:
        return _invalid(outcome, "parlays")
    with localcontext() as ctx:
        ctx.prec = settings.decimal_precision
        return _comparison(outcome.data, settings)


def handle_ev_request(payload: Any) -> BaseModel:
    """Dispatch a ``{type, data}`` request to the matching analysis."""

    settings = get_settings()
    outcome = validate_ev_request(payload)
    if not outcome.success:
        return _invalid(outcome, "request")
    kind, data = outcome.data
    with localcontext() as ctx:
        ctx.prec = settings.decimal_precision
        if kind == "market":
            return _market_analysis(data, settings)
        if kind == "parlay":
            return _parlay_analysis(data, settings)
        return _comparison(data, settings)


def _snapshot_games(snapshot: Any) -> Any:
    if isinstance(snapshot, dict) and "games" in snapshot:
        return snapshot["games"]
    return snapshot


def find_value_bets(
    snapshot: Any,
    *,
    min_ev: float | None = None,
    max_bets: int | None = None,
    legs: int | None = None,
    require_baseline: bool | None = None,
    require_player_props: bool = False,
    player_props_ratio: float | None = None,
    sport: str | None = None,
    markets: Collection[str] | None = None,
    bookmakers: Collection[str] | None = None,
) -> FinderResponse | ErrorResponse:
    """Rank the snapshot's positive-EV bets and assemble a parlay from them.

    ``snapshot`` is a list of games or an object with a ``games`` list.
    ``legs=0`` skips parlay assembly.
    """

    settings = get_settings()
    outcome = validate_feed(_snapshot_games(snapshot))
    if not outcome.success:
        return _invalid(outcome, "odds feed")

    options = FinderOptions(
        min_ev=Decimal(str(min_ev)) if min_ev is not None else None,
        max_bets=max_bets,
        require_baseline=require_baseline,
        filters=BetFilters(sport=sport, markets=markets, bookmakers=bookmakers),
    )
    with localcontext() as ctx:
        ctx.prec = settings.decimal_precision
        try:
            result = find_positive_ev_bets(outcome.data, options, settings=settings)
            parlay = None
            if legs != 0:
                parlay = build_optimal_parlay(
                    result.bets,
                    legs,
                    require_player_props=require_player_props,
                    player_props_ratio=player_props_ratio,
                    settings=settings,
                )
        except EdgeLabError as exc:
            logger.warning("Finder failed: %s", exc)
            return _error(exc)
        return FinderResponse(
            bets=[_bet_to_response(bet) for bet in result.bets],
            parlay=_assembled_to_response(parlay) if parlay is not None else None,
            stats=_stats_to_response(result.stats),
        )
