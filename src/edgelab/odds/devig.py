"""Proportional (multiplicative) vig removal.

Each implied probability is divided by the market overround. This is the
simple proportional method; power and Shin de-vigging are not implemented.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from edgelab.errors import InvalidMarketError
from edgelab.odds.baseline import IsBaselineBook
from edgelab.odds.conversion import ONE, implied_probability, odds_to_decimal
from edgelab.odds.types import Odds


@dataclass(frozen=True)
class VigSummary:
    implied_probabilities: tuple[Decimal, ...]
    no_vig_probabilities: tuple[Decimal, ...]
    vig_percentage: Decimal  # overround - 1, as a fraction
    overround: Decimal


@dataclass(frozen=True)
class BookOdds:
    """One book's ordered prices for every outcome of a market."""

    name: str
    odds: tuple[Odds, ...]
    key: str | None = None


def overround(implied_probabilities: Iterable[Decimal]) -> Decimal:
    return sum(implied_probabilities, Decimal(0))


def vig_percentage(implied_probabilities: Iterable[Decimal]) -> Decimal:
    return overround(implied_probabilities) - ONE


def remove_vig(implied_probabilities: Sequence[Decimal]) -> list[Decimal]:
    """Scale implied probabilities so they sum to one.

    Raises:
        InvalidMarketError: If the overround is not positive.
    """

    total = overround(implied_probabilities)
    if total <= 0:
        raise InvalidMarketError(f"Cannot remove vig: overround {total} must be greater than 0")
    return [prob / total for prob in implied_probabilities]


def normalize_probabilities(probabilities: Sequence[Decimal]) -> list[Decimal]:
    """Rescale arbitrary probabilities (e.g. after rounding) to sum to one."""

    total = sum(probabilities, Decimal(0))
    if total == 0:
        raise InvalidMarketError("Cannot normalize probabilities that sum to zero")
    return [prob / total for prob in probabilities]


def remove_vig_from_odds(decimal_odds: Sequence[Decimal]) -> VigSummary:
    """De-vig a full market given its decimal prices in outcome order."""

    if not decimal_odds:
        raise InvalidMarketError("Cannot remove vig from an empty market")
    implied = [implied_probability(price) for price in decimal_odds]
    total = overround(implied)
    return VigSummary(
        implied_probabilities=tuple(implied),
        no_vig_probabilities=tuple(remove_vig(implied)),
        vig_percentage=total - ONE,
        overround=total,
    )


def find_baseline_book(books: Iterable[BookOdds], is_baseline_book: IsBaselineBook) -> BookOdds | None:
    for book in books:
        if is_baseline_book(book.name) or (book.key and is_baseline_book(book.key)):
            return book
    return None


def get_baseline(books: Sequence[BookOdds], is_baseline_book: IsBaselineBook) -> list[Decimal] | None:
    """No-vig probabilities of the market's baseline book, or ``None`` if absent."""

    book = find_baseline_book(books, is_baseline_book)
    if book is None or not book.odds:
        return None
    summary = remove_vig_from_odds([odds_to_decimal(odds) for odds in book.odds])
    return list(summary.no_vig_probabilities)
