"""Positive-EV bet finder and diversified parlay assembly.

Pipeline over one odds snapshot:

1. ``extract_baseline``: de-vig the baseline book's markets per game.
2. ``extract_all_bets``: flatten every book's outcomes into candidate bets.
3. ``calculate_bet_evs``: price each bet against its matched baseline outcome,
   falling back to a discounted, low-confidence estimate when there is none.
4. ``find_positive_ev_bets``: filter, rank and truncate.
5. ``build_optimal_parlay``: one greedy pass that keeps legs on distinct games
   (main markets) or distinct players and markets (props).
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from edgelab.config import Settings, get_settings
from edgelab.errors import EdgeLabError, InvalidMarketError
from edgelab.ev.calculator import confidence_tier, edge_percentage, kelly_fraction, single_outcome_ev
from edgelab.finder.matching import DEFAULT_MATCHERS, OutcomeMatcher, match_outcome
from edgelab.finder.types import (
    AssembledParlay,
    BaselineMarket,
    BaselineOutcome,
    Baselines,
    Bet,
    BetEVSummary,
    BetExtraction,
    BetFilters,
    FinderOptions,
    FinderStats,
    ParlayMetrics,
    PositiveEVResult,
)
from edgelab.odds.baseline import IsBaselineBook, SubstringBaselineBook
from edgelab.odds.conversion import ONE, american_to_decimal, parse_odds_value
from edgelab.odds.devig import remove_vig_from_odds
from edgelab.odds.types import Odds
from edgelab.parlays.engine import calculate_parlay_ev
from edgelab.parlays.types import ParlayLeg
from edgelab.validation.schemas import FeedBookmaker, FeedGame, FeedMarket

logger = logging.getLogger(__name__)


def _baseline_predicate(settings: Settings, predicate: IsBaselineBook | None) -> IsBaselineBook:
    return predicate or SubstringBaselineBook(settings.baseline_book_patterns)


def _find_baseline_bookmaker(game: FeedGame, predicate: IsBaselineBook) -> FeedBookmaker | None:
    for bookmaker in game.bookmakers:
        if predicate(bookmaker.title) or predicate(bookmaker.key):
            return bookmaker
    return None


def _baseline_market(market: FeedMarket) -> BaselineMarket:
    outcomes = [
        BaselineOutcome(
            name=outcome.name,
            price=outcome.price,
            decimal_odds=american_to_decimal(outcome.price),
            point=outcome.point,
            description=outcome.description,
        )
        for outcome in market.outcomes
    ]
    # Multi-player prop markets hold one over/under pair per player; each pair
    # is its own mutually exclusive set. A one-sided group has no vig to strip
    # and keeps probability 0 so its bets fall back to estimation.
    groups: dict[str, list[int]] = defaultdict(list)
    for index, outcome in enumerate(outcomes):
        groups[outcome.description or ""].append(index)

    probabilities: list[Decimal] = [Decimal(0)] * len(outcomes)
    vigs: list[Decimal] = []
    for description, indices in groups.items():
        if len(indices) < 2:
            logger.debug("One-sided baseline group %r in %s", description, market.key)
            continue
        summary = remove_vig_from_odds([outcomes[i].decimal_odds for i in indices])
        vigs.append(summary.vig_percentage)
        for i, prob in zip(indices, summary.no_vig_probabilities):
            probabilities[i] = prob
    if not vigs:
        raise InvalidMarketError(f"Market {market.key} has no two-sided outcome group")
    return BaselineMarket(
        outcomes=outcomes,
        no_vig_probabilities=probabilities,
        vig_percentage=sum(vigs, Decimal(0)) / len(vigs),
    )


def extract_baseline(
    games: Iterable[FeedGame],
    *,
    is_baseline_book: IsBaselineBook | None = None,
    settings: Settings | None = None,
) -> Baselines:
    """No-vig probability vectors from each game's baseline book, by market key."""

    settings = settings or get_settings()
    predicate = _baseline_predicate(settings, is_baseline_book)
    baselines: Baselines = {}
    for game in games:
        bookmaker = _find_baseline_bookmaker(game, predicate)
        if bookmaker is None:
            logger.debug("No baseline book for %s", game.label)
            continue
        markets: dict[str, BaselineMarket] = {}
        for market in bookmaker.markets:
            if not market.outcomes:
                continue
            try:
                markets[market.key] = _baseline_market(market)
            except EdgeLabError as exc:
                logger.warning(
                    "Skipping baseline market %s for %s: %s", market.key, game.label, exc
                )
        baselines[game.game_id] = markets
    return baselines


def _matches_filter(value: str | None, allowed: Iterable[str] | None) -> bool:
    if allowed is None:
        return True
    return value in set(allowed)


def extract_all_bets(
    games: Iterable[FeedGame],
    filters: BetFilters | None = None,
    *,
    settings: Settings | None = None,
) -> BetExtraction:
    """Flatten game -> book -> market -> outcome into candidate bets."""

    settings = settings or get_settings()
    filters = filters or BetFilters()
    sport_filter = filters.sport.lower() if filters.sport else None
    extraction = BetExtraction(bets=[])

    for game in games:
        if sport_filter and sport_filter not in {
            (game.sport_key or "").lower(),
            (game.sport_title or "").lower(),
        }:
            continue
        for bookmaker in game.bookmakers:
            if filters.bookmakers is not None and not (
                _matches_filter(bookmaker.title, filters.bookmakers)
                or _matches_filter(bookmaker.key, filters.bookmakers)
            ):
                continue
            for market in bookmaker.markets:
                if not _matches_filter(market.key, filters.markets):
                    continue
                is_prop = market.key.startswith(settings.player_prop_prefix)
                for outcome in market.outcomes:
                    try:
                        american = parse_odds_value(outcome.price)
                        decimal_odds = american_to_decimal(american)
                        if outcome.point is not None and not math.isfinite(outcome.point):
                            raise InvalidMarketError(f"Non-finite line {outcome.point!r}")
                    except EdgeLabError as exc:
                        extraction.skipped += 1
                        logger.debug(
                            "Skipping %s %s %s at %s: %s",
                            game.label, market.key, outcome.name, bookmaker.display_name, exc,
                        )
                        continue
                    extraction.bets.append(
                        Bet(
                            game=game.label,
                            game_id=game.game_id,
                            sport=game.sport,
                            sportsbook=bookmaker.display_name,
                            market_type=market.key,
                            selection=outcome.name,
                            point=outcome.point,
                            description=outcome.description,
                            is_player_prop=is_prop,
                            odds=american,
                            decimal_odds=decimal_odds,
                            implied_probability=ONE / decimal_odds,
                            commence_time=game.commence_time,
                        )
                    )
    return extraction


def estimate_ev_without_baseline(bet: Bet, settings: Settings | None = None) -> tuple[Decimal, Decimal]:
    """Conservative (true probability, EV) guess for a bet with no baseline.

    Assumes the book charges a fixed vig (higher on player props), backs the
    true probability out of the bet's own price and discounts the resulting EV
    for the uncertainty of doing so.
    """

    settings = settings or get_settings()
    vig = settings.as_decimal("player_prop_vig" if bet.is_player_prop else "standard_market_vig")
    estimated_probability = bet.implied_probability / (ONE + vig)
    ev = single_outcome_ev(estimated_probability, bet.decimal_odds)
    return estimated_probability, ev * (ONE - settings.as_decimal("estimation_discount"))


def _apply_estimate(bet: Bet, settings: Settings) -> None:
    probability, ev = estimate_ev_without_baseline(bet, settings)
    bet.true_probability = probability
    bet.expected_value = ev
    bet.edge_percentage = edge_percentage(ev)
    bet.has_baseline = False
    bet.estimated = True
    bet.confidence = "low"
    bet.kelly_fraction = kelly_fraction(
        probability,
        bet.decimal_odds,
        settings.as_decimal("kelly_fraction"),
        settings.as_decimal("kelly_cap"),
    )


def _apply_baseline(bet: Bet, market: BaselineMarket, index: int, settings: Settings) -> None:
    probability = market.no_vig_probabilities[index]
    ev = single_outcome_ev(probability, bet.decimal_odds)
    bet.true_probability = probability
    bet.expected_value = ev
    bet.edge_percentage = edge_percentage(ev)
    bet.has_baseline = True
    bet.estimated = False
    bet.confidence = confidence_tier(ev)
    bet.baseline_odds = market.outcomes[index].price
    bet.kelly_fraction = kelly_fraction(
        probability,
        bet.decimal_odds,
        settings.as_decimal("kelly_fraction"),
        settings.as_decimal("kelly_cap"),
    )


def calculate_bet_evs(
    bets: Iterable[Bet],
    baselines: Baselines,
    *,
    matchers: Sequence[OutcomeMatcher] = DEFAULT_MATCHERS,
    settings: Settings | None = None,
) -> BetEVSummary:
    """Price every bet, isolating failures to the bet that caused them."""

    settings = settings or get_settings()
    tolerance = settings.as_decimal("point_tolerance")
    summary = BetEVSummary(bets=[])

    for bet in bets:
        try:
            market = baselines.get(bet.game_id, {}).get(bet.market_type)
            index = None
            if market is not None:
                index = match_outcome(bet, market.outcomes, matchers=matchers, tolerance=tolerance)
            if index is not None and market.no_vig_probabilities[index] > 0:
                _apply_baseline(bet, market, index, settings)
                summary.matched += 1
            else:
                _apply_estimate(bet, settings)
                summary.estimated += 1
        except EdgeLabError as exc:
            bet.error = exc.message
            try:
                _apply_estimate(bet, settings)
            except EdgeLabError:
                logger.warning("Dropping bet %s %s at %s: %s", bet.game, bet.selection, bet.sportsbook, exc)
                summary.skipped += 1
                continue
            summary.estimated += 1
        summary.bets.append(bet)
    return summary


def _ev_sort_key(bet: Bet) -> Decimal:
    return bet.expected_value if bet.expected_value is not None else Decimal("-Infinity")


def find_positive_ev_bets(
    games: Sequence[FeedGame],
    options: FinderOptions | None = None,
    *,
    is_baseline_book: IsBaselineBook | None = None,
    matchers: Sequence[OutcomeMatcher] = DEFAULT_MATCHERS,
    settings: Settings | None = None,
) -> PositiveEVResult:
    """Rank every bet in the snapshot whose EV clears ``min_ev``."""

    settings = settings or get_settings()
    options = options or FinderOptions()
    min_ev = options.min_ev if options.min_ev is not None else settings.as_decimal("min_ev")
    max_bets = options.max_bets if options.max_bets is not None else settings.max_bets
    require_baseline = (
        options.require_baseline if options.require_baseline is not None else settings.require_baseline
    )

    baselines = extract_baseline(games, is_baseline_book=is_baseline_book, settings=settings)
    extraction = extract_all_bets(games, options.filters, settings=settings)
    priced = calculate_bet_evs(extraction.bets, baselines, matchers=matchers, settings=settings)

    kept = [
        bet
        for bet in priced.bets
        if bet.expected_value is not None
        and bet.expected_value >= min_ev
        and (bet.has_baseline or not require_baseline)
    ]
    kept.sort(key=_ev_sort_key, reverse=True)
    ranked = kept[:max_bets]

    stats = FinderStats(
        games=len(games),
        baseline_games=len(baselines),
        candidates=len(extraction.bets),
        matched=priced.matched,
        estimated=priced.estimated,
        skipped=extraction.skipped + priced.skipped,
        below_threshold=len(priced.bets) - len(kept),
        returned=len(ranked),
    )
    logger.info(
        "Found %d positive-EV bets from %d candidates (%d matched, %d estimated, %d skipped)",
        stats.returned, stats.candidates, stats.matched, stats.estimated, stats.skipped,
    )
    return PositiveEVResult(bets=ranked, stats=stats)


@dataclass
class _SelectionState:
    used_games: set[str] = field(default_factory=set)
    used_game_markets: set[tuple[str, str]] = field(default_factory=set)
    used_selections: set[tuple[str, str, str, float | None]] = field(default_factory=set)
    used_players: set[str] = field(default_factory=set)

    @staticmethod
    def _selection_key(bet: Bet) -> tuple[str, str, str, float | None]:
        return (bet.game_id, bet.market_type, bet.selection, bet.point)

    def conflicts(self, bet: Bet, excluded_games: set[str] | None = None) -> bool:
        if self._selection_key(bet) in self.used_selections:
            return True
        if bet.is_player_prop:
            return (
                bet.player_key in self.used_players
                or (bet.game_id, bet.market_type) in self.used_game_markets
            )
        if excluded_games and bet.game_id in excluded_games:
            return True
        return bet.game_id in self.used_games

    def take(self, bet: Bet) -> None:
        self.used_games.add(bet.game_id)
        self.used_game_markets.add((bet.game_id, bet.market_type))
        self.used_selections.add(self._selection_key(bet))
        if bet.is_player_prop:
            self.used_players.add(bet.player_key)


def _select(candidates: Iterable[Bet], limit: int, state: _SelectionState) -> list[Bet]:
    chosen: list[Bet] = []
    for bet in candidates:
        if len(chosen) >= limit:
            break
        if state.conflicts(bet):
            continue
        state.take(bet)
        chosen.append(bet)
    return chosen


def _parlay_metrics(legs: list[Bet], requested: int, settings: Settings) -> ParlayMetrics:
    if not legs:
        return ParlayMetrics(
            combined_odds=ONE,
            combined_probability=ONE,
            expected_value=Decimal(0),
            edge_percentage=Decimal(0),
            confidence="none",
            leg_count=0,
            requested_legs=requested,
        )
    result = calculate_parlay_ev(
        [
            ParlayLeg(
                book=bet.sportsbook,
                outcome=bet.selection,
                odds=Odds.decimal(bet.decimal_odds),
                true_probability=bet.true_probability,
            )
            for bet in legs
        ]
    )
    return ParlayMetrics(
        combined_odds=result.combined_odds,
        combined_probability=result.combined_true_probability,
        expected_value=result.expected_value,
        edge_percentage=result.edge_percentage,
        confidence="high" if all(bet.has_baseline for bet in legs) else "low",
        leg_count=len(legs),
        requested_legs=requested,
        kelly_fraction=kelly_fraction(
            result.combined_true_probability,
            result.combined_odds,
            settings.as_decimal("kelly_fraction"),
            settings.as_decimal("kelly_cap"),
        ),
    )


def build_optimal_parlay(
    bets: Sequence[Bet],
    legs: int | None = None,
    *,
    require_player_props: bool = False,
    player_props_ratio: float | None = None,
    settings: Settings | None = None,
) -> AssembledParlay:
    """Greedily assemble a diversified parlay from EV-ranked bets.

    Main-market legs never share a game. Prop legs may share a game but not a
    player or a (game, market). Bets without a true probability are rejected
    rather than priced with a guess. The result may hold fewer legs than
    requested; ``metrics.leg_count`` says how many were found.
    """

    settings = settings or get_settings()
    legs = legs if legs is not None else settings.parlay_legs
    ratio = player_props_ratio if player_props_ratio is not None else settings.player_props_ratio

    candidates: list[Bet] = []
    rejected = 0
    for bet in bets:
        if bet.true_probability is None:
            rejected += 1
            logger.warning(
                "Rejecting parlay leg %s %s at %s: no true probability",
                bet.game, bet.selection, bet.sportsbook,
            )
            continue
        candidates.append(bet)
    candidates.sort(key=_ev_sort_key, reverse=True)

    props = [bet for bet in candidates if bet.is_player_prop]
    mains = [bet for bet in candidates if not bet.is_player_prop]
    state = _SelectionState()

    if require_player_props and props:
        props_needed = min(legs, math.ceil(legs * ratio))
        selected = _select(props, props_needed, state)
        prop_games = set(state.used_games)
        for bet in mains:
            if len(selected) >= legs:
                break
            if state.conflicts(bet, excluded_games=prop_games):
                continue
            state.take(bet)
            selected.append(bet)
        logger.info(
            "Selected %d player props + %d main markets",
            sum(1 for bet in selected if bet.is_player_prop),
            sum(1 for bet in selected if not bet.is_player_prop),
        )
    else:
        selected = _select(candidates, legs, state)

    return AssembledParlay(
        legs=selected,
        metrics=_parlay_metrics(selected, legs, settings),
        rejected_legs=rejected,
    )
