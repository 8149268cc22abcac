"""Conversions between American odds, decimal odds and implied probability.

Every function here is pure and works on ``decimal.Decimal`` so rounding does
not accumulate across vig removal and parlay multiplication. Floats are
routed through ``str`` before conversion to keep their printed value.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import TYPE_CHECKING, Final

from edgelab.errors import InvalidOddsError

if TYPE_CHECKING:
    from edgelab.odds.types import Odds


class OddsFormat(str, Enum):
    AMERICAN = "american"
    DECIMAL = "decimal"
    AUTO = "auto"


ONE: Final[Decimal] = Decimal(1)
HUNDRED: Final[Decimal] = Decimal(100)

#: Decimal price of a voided leg: the stake comes back and nothing else.
PUSH_ODDS: Final[Decimal] = Decimal(1)

#: American odds never quote a magnitude below 100.
MIN_AMERICAN_MAGNITUDE: Final[Decimal] = Decimal(100)


def to_decimal(value: int | float | str | Decimal) -> Decimal:
    """Coerce a number or numeric string into a finite ``Decimal``."""

    if isinstance(value, bool):
        raise InvalidOddsError(f"Invalid numeric value {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if text.startswith("+"):
            text = text[1:]
        try:
            result = Decimal(text)
        except InvalidOperation as exc:
            raise InvalidOddsError(f"Unparseable numeric value {value!r}") from exc
    if not result.is_finite():
        raise InvalidOddsError(f"Non-finite numeric value {value!r}")
    return result


def parse_odds_value(value: int | float | str | Decimal) -> Decimal:
    """Parse an odds magnitude, rejecting zero, non-finite and junk input."""

    result = to_decimal(value)
    if result == 0:
        raise InvalidOddsError("Odds cannot be zero")
    return result


def american_to_decimal(american: int | float | str | Decimal) -> Decimal:
    """Convert American odds to decimal odds.

    ``+150`` -> ``2.5``; ``-110`` -> ``1.9090...``.

    Raises:
        InvalidOddsError: If the value is zero, unparseable or ``|american| < 100``.
    """

    value = parse_odds_value(american)
    if abs(value) < MIN_AMERICAN_MAGNITUDE:
        raise InvalidOddsError(f"Invalid American odds {american!r}: magnitude must be >= 100")
    if value >= 0:
        return ONE + value / HUNDRED
    return ONE + HUNDRED / abs(value)


def decimal_to_american(decimal_odds: int | float | str | Decimal) -> Decimal:
    """Convert decimal odds to American odds.

    Values >= 2.0 come back positive, shorter prices negative. The result is
    not rounded; round for display only.
    """

    value = to_decimal(decimal_odds)
    if value <= ONE:
        raise InvalidOddsError(f"Decimal odds {decimal_odds!r} must be greater than 1.0")
    if value >= 2:
        return (value - ONE) * HUNDRED
    return -HUNDRED / (value - ONE)


def implied_probability(decimal_odds: int | float | str | Decimal) -> Decimal:
    """Raw (vig-inclusive) implied probability of a decimal price."""

    value = to_decimal(decimal_odds)
    if value <= 0:
        raise InvalidOddsError(f"Decimal odds {decimal_odds!r} must be positive")
    return ONE / value


def american_to_implied_probability(american: int | float | str | Decimal) -> Decimal:
    return implied_probability(american_to_decimal(american))


def probability_to_decimal(probability: int | float | str | Decimal) -> Decimal:
    """Fair decimal price for a probability."""

    value = to_decimal(probability)
    if not 0 < value <= 1:
        raise InvalidOddsError(f"Probability {probability!r} must be in (0, 1]")
    return ONE / value


def normalize(value: int | float | str | Decimal, odds_format: OddsFormat | str) -> Decimal:
    """Convert a quote in an explicitly stated format to decimal odds.

    There is no range-based guessing: decimal prices in [1, 10] and small
    American magnitudes cannot be told apart, so ``auto`` is refused here and
    must be resolved by the caller.
    """

    try:
        fmt = OddsFormat(odds_format)
    except ValueError as exc:
        raise InvalidOddsError(f"Unknown odds format {odds_format!r}") from exc

    if fmt is OddsFormat.AMERICAN:
        return american_to_decimal(value)
    if fmt is OddsFormat.DECIMAL:
        result = parse_odds_value(value)
        if result <= ONE:
            raise InvalidOddsError(f"Decimal odds {value!r} must be greater than 1.0")
        return result
    raise InvalidOddsError("Odds format must be stated explicitly (american or decimal)")


def odds_to_decimal(odds: Odds) -> Decimal:
    return normalize(odds.value, odds.format)


def push_to_decimal(odds: Odds) -> Decimal:
    """Decimal price of a voided leg's quote.

    A book may report a push at its settled price of exactly 1.0, which
    ``normalize`` would refuse as a decimal quote.
    """

    if odds.format is OddsFormat.DECIMAL:
        value = to_decimal(odds.value)
        if value < PUSH_ODDS:
            raise InvalidOddsError(f"Decimal odds {odds.value!r} must be at least 1.0")
        return value
    return odds_to_decimal(odds)
