"""Expected value for single outcomes and whole markets.

EV is expressed per unit staked::

    EV = p_true * (decimal_odds - 1) - (1 - p_true)

Market analysis pairs each book's prices with the baseline probability vector
by position. That pairing is checked: a book whose outcome count differs from
the baseline fails the whole market instead of being silently misaligned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, getcontext, localcontext
from typing import Final

from edgelab.errors import EdgeLabError, InvalidMarketError
from edgelab.ev.types import BookVig, MarketAnalysis, MarketQuotes, OutcomeAnalysis
from edgelab.odds.baseline import IsBaselineBook, default_baseline_book
from edgelab.odds.conversion import HUNDRED, ONE, OddsFormat, decimal_to_american, odds_to_decimal
from edgelab.odds.devig import get_baseline, remove_vig_from_odds
from edgelab.odds.types import Odds

logger = logging.getLogger(__name__)

HIGH_CONFIDENCE_EV: Final[Decimal] = Decimal("0.05")
MEDIUM_CONFIDENCE_EV: Final[Decimal] = Decimal("0.02")


def single_outcome_ev(true_probability: Decimal, decimal_odds: Decimal) -> Decimal:
    win_amount = decimal_odds - ONE
    return true_probability * win_amount - (ONE - true_probability)


def edge_percentage(expected_value: Decimal) -> Decimal:
    return expected_value * HUNDRED


def confidence_tier(expected_value: Decimal) -> str:
    if expected_value > HIGH_CONFIDENCE_EV:
        return "high"
    if expected_value > MEDIUM_CONFIDENCE_EV:
        return "medium"
    if expected_value > 0:
        return "low"
    return "negative"


def kelly_fraction(
    true_probability: Decimal,
    decimal_odds: Decimal,
    multiplier: Decimal = ONE,
    cap: Decimal | None = None,
) -> Decimal:
    """Fractional Kelly share of bankroll, never negative.

    ``f* = (p * b - q) / b`` with ``b = decimal_odds - 1``, scaled by
    ``multiplier`` (0.25 for quarter-Kelly) and clipped at ``cap``.
    """

    b = decimal_odds - ONE
    if b <= 0:
        return Decimal(0)
    full = (true_probability * b - (ONE - true_probability)) / b
    fraction = max(full, Decimal(0)) * multiplier
    if cap is not None:
        fraction = min(fraction, cap)
    return fraction


def kelly_stake(
    true_probability: Decimal,
    decimal_odds: Decimal,
    bankroll: Decimal,
    multiplier: Decimal,
    cap: Decimal | None = None,
) -> Decimal:
    return bankroll * kelly_fraction(true_probability, decimal_odds, multiplier, cap)


def _american_display(odds: Odds, decimal_odds: Decimal) -> Decimal:
    if odds.format is OddsFormat.AMERICAN:
        return odds.value
    return decimal_to_american(decimal_odds)


def process_outcome(
    book: str,
    outcome: str,
    odds: Odds,
    true_probability: Decimal,
    *,
    kelly_multiplier: Decimal = ONE,
    kelly_cap: Decimal | None = None,
) -> OutcomeAnalysis:
    """Full breakdown of one offered price against a true probability."""

    decimal_odds = odds_to_decimal(odds)
    expected_value = single_outcome_ev(true_probability, decimal_odds)
    return OutcomeAnalysis(
        book=book,
        outcome=outcome,
        american_odds=_american_display(odds, decimal_odds),
        decimal_odds=decimal_odds,
        implied_probability=ONE / decimal_odds,
        true_probability=true_probability,
        expected_value=expected_value,
        edge_percentage=edge_percentage(expected_value),
        is_value_bet=expected_value > 0,
        payout_per_dollar=decimal_odds,
        profit_per_dollar=decimal_odds - ONE,
        kelly_fraction=kelly_fraction(true_probability, decimal_odds, kelly_multiplier, kelly_cap),
    )


def _check_alignment(market: MarketQuotes, baseline: list[Decimal]) -> None:
    expected = len(baseline)
    if market.outcomes is not None and len(market.outcomes) != expected:
        raise InvalidMarketError(
            f"Market declares {len(market.outcomes)} outcomes but the baseline prices {expected}"
        )
    for book in market.books:
        if len(book.odds) != expected:
            raise InvalidMarketError(
                f"Book '{book.name}' quotes {len(book.odds)} outcomes, baseline quotes {expected}"
            )


def process_market(
    market: MarketQuotes,
    *,
    is_baseline_book: IsBaselineBook | None = None,
    kelly_multiplier: Decimal = ONE,
    kelly_cap: Decimal | None = None,
) -> MarketAnalysis:
    """Analyze every book's prices in a market against the baseline book.

    Errors never escape: the returned analysis carries ``error`` instead so a
    batch of markets can continue past one bad entry.
    """

    predicate = is_baseline_book or default_baseline_book()
    name = market.market or "Unknown Market"
    try:
        baseline = get_baseline(market.books, predicate)
        if baseline is None:
            raise InvalidMarketError("Baseline book not found for baseline probabilities")
        _check_alignment(market, baseline)

        outcome_names = list(market.outcomes or [f"Outcome {i + 1}" for i in range(len(baseline))])
        analysis = MarketAnalysis(
            market=name,
            outcomes=outcome_names,
            baseline_probabilities=baseline,
            books_analyzed=len(market.books),
        )
        for book in market.books:
            summary = remove_vig_from_odds([odds_to_decimal(odds) for odds in book.odds])
            analysis.market_vig[book.name] = BookVig(
                vig_percentage=summary.vig_percentage * HUNDRED,
                overround=summary.overround,
            )
            for index, odds in enumerate(book.odds):
                analysis.processed_outcomes.append(
                    process_outcome(
                        book.name,
                        outcome_names[index],
                        odds,
                        baseline[index],
                        kelly_multiplier=kelly_multiplier,
                        kelly_cap=kelly_cap,
                    )
                )
    except EdgeLabError as exc:
        logger.warning("Market %s could not be analyzed: %s", name, exc)
        return MarketAnalysis(market=name, error=exc.message)

    analysis.value_bets = [o for o in analysis.processed_outcomes if o.is_value_bet]
    analysis.best_value_bet = max(
        analysis.value_bets, key=lambda o: o.expected_value, default=None
    )
    return analysis


def analyze_markets(
    markets: Iterable[MarketQuotes],
    *,
    max_workers: int = 1,
    is_baseline_book: IsBaselineBook | None = None,
    kelly_multiplier: Decimal = ONE,
    kelly_cap: Decimal | None = None,
) -> list[MarketAnalysis]:
    """Analyze independent markets, optionally across a thread pool.

    Results come back in input order. Worker threads inherit the caller's
    decimal context.
    """

    predicate = is_baseline_book or default_baseline_book()
    context = getcontext().copy()

    def _run(market: MarketQuotes) -> MarketAnalysis:
        with localcontext(context):
            return process_market(
                market,
                is_baseline_book=predicate,
                kelly_multiplier=kelly_multiplier,
                kelly_cap=kelly_cap,
            )

    markets = list(markets)
    if max_workers <= 1 or len(markets) <= 1:
        return [_run(market) for market in markets]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(_run, markets))
