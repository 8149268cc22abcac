"""Parlay pricing: combined odds, probability, EV and push handling.

Legs are treated as independent events, so the combined probability is the
product of leg probabilities. Correlated legs (same game, same team) make this
overstate EV; nothing here corrects for it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from decimal import Decimal

from edgelab.errors import EdgeLabError, ParlayError
from edgelab.ev.calculator import edge_percentage, single_outcome_ev
from edgelab.odds.conversion import ONE, PUSH_ODDS, odds_to_decimal, push_to_decimal
from edgelab.parlays.types import (
    ParlayComparison,
    ParlayLeg,
    ParlayOutcome,
    ParlayResult,
    ParlayTicket,
    ProcessedLeg,
    PushInfo,
)

logger = logging.getLogger(__name__)


def parlay_odds(decimal_odds: Iterable[Decimal]) -> Decimal:
    combined = ONE
    for odds in decimal_odds:
        combined *= odds
    return combined


def parlay_probability(probabilities: Iterable[Decimal]) -> Decimal:
    combined = ONE
    for prob in probabilities:
        combined *= prob
    return combined


def process_leg(leg: ParlayLeg, index: int = 0) -> ProcessedLeg:
    """Decimalize a leg and check it carries what the EV math needs."""

    try:
        decimal_odds = push_to_decimal(leg.odds) if leg.is_push else odds_to_decimal(leg.odds)
    except EdgeLabError as exc:
        raise ParlayError(f"Leg {index + 1} ({leg.book}): {exc.message}") from exc

    true_probability = leg.true_probability
    if true_probability is None:
        if not leg.is_push:
            raise ParlayError(f"Leg {index + 1} ({leg.book}) has no true probability")
        true_probability = ONE
    elif not 0 <= true_probability <= 1:
        raise ParlayError(f"Leg {index + 1} ({leg.book}) probability {true_probability} outside [0, 1]")

    return ProcessedLeg(
        book=leg.book,
        outcome=leg.outcome,
        odds=leg.odds,
        decimal_odds=decimal_odds,
        implied_probability=ONE / decimal_odds,
        true_probability=true_probability,
        is_push=leg.is_push,
    )


def handle_pushes(legs: list[ProcessedLeg]) -> tuple[list[ProcessedLeg], PushInfo]:
    """Neutralize push legs: odds 1.0 and probability 1.0, leg count kept."""

    adjusted: list[ProcessedLeg] = []
    for leg in legs:
        if leg.is_push:
            adjusted.append(
                ProcessedLeg(
                    book=leg.book,
                    outcome=leg.outcome,
                    odds=leg.odds,
                    decimal_odds=PUSH_ODDS,
                    implied_probability=leg.implied_probability,
                    true_probability=ONE,
                    is_push=True,
                )
            )
        else:
            adjusted.append(leg)
    push_count = sum(1 for leg in legs if leg.is_push)
    active = len(legs) - push_count
    info = PushInfo(
        has_pushes=push_count > 0,
        push_count=push_count,
        active_leg_count=active,
        all_pushes=bool(legs) and active == 0,
    )
    return adjusted, info


def calculate_parlay_ev(legs: list[ParlayLeg], stake: Decimal = ONE) -> ParlayResult:
    """Price a parlay.

    Raises:
        ParlayError: If any leg is invalid or the stake is not positive. No
            partial result is produced.
    """

    if not legs:
        raise ParlayError("Parlay has no legs")
    if stake <= 0:
        raise ParlayError(f"Stake must be positive, got {stake}")

    processed = [process_leg(leg, index) for index, leg in enumerate(legs)]
    adjusted, push_info = handle_pushes(processed)

    if push_info.all_pushes:
        return ParlayResult(
            stake=stake,
            combined_odds=ONE,
            combined_true_probability=ONE,
            projected_payout=stake,
            profit=Decimal(0),
            expected_value=Decimal(0),
            edge_percentage=Decimal(0),
            is_value_bet=False,
            push_info=push_info,
            legs=adjusted,
        )

    combined_odds = parlay_odds(leg.decimal_odds for leg in adjusted)
    combined_probability = parlay_probability(leg.true_probability for leg in adjusted)
    unit_ev = single_outcome_ev(combined_probability, combined_odds)
    payout = combined_odds * stake
    return ParlayResult(
        stake=stake,
        combined_odds=combined_odds,
        combined_true_probability=combined_probability,
        projected_payout=payout,
        profit=payout - stake,
        expected_value=unit_ev * stake,
        edge_percentage=edge_percentage(unit_ev),
        is_value_bet=unit_ev > 0,
        push_info=push_info,
        legs=adjusted,
    )


def compare_parlays(tickets: list[ParlayTicket]) -> ParlayComparison:
    """Price several parlays and surface two distinct winners.

    ``best_ev_parlay`` is the highest EV among valid value bets;
    ``highest_payout_parlay`` is the largest projected payout regardless of EV.
    A failing ticket is reported with its error and excluded from both.
    """

    outcomes: list[ParlayOutcome] = []
    for index, ticket in enumerate(tickets):
        ticket_id = ticket.id or f"parlay_{index}"
        try:
            result = calculate_parlay_ev(ticket.legs, ticket.stake)
        except ParlayError as exc:
            logger.warning("Parlay %s rejected: %s", ticket_id, exc)
            outcomes.append(ParlayOutcome(id=ticket_id, book=ticket.book, error=exc.message))
            continue
        outcomes.append(ParlayOutcome(id=ticket_id, book=ticket.book, result=result))

    priced = [o for o in outcomes if o.result is not None]
    value = [o for o in priced if o.result.is_value_bet]
    best_ev = max(value, key=lambda o: o.result.expected_value, default=None)
    highest_payout = max(priced, key=lambda o: o.result.projected_payout, default=None)
    average_ev = (
        sum((o.result.expected_value for o in value), Decimal(0)) / len(value)
        if value
        else Decimal(0)
    )
    return ParlayComparison(
        parlays=outcomes,
        best_ev_parlay=best_ev,
        highest_payout_parlay=highest_payout,
        total_parlays=len(outcomes),
        value_bets=len(value),
        average_ev=average_ev,
    )
