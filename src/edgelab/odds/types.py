"""Tagged odds value."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from edgelab.odds.conversion import OddsFormat, to_decimal


@dataclass(frozen=True)
class Odds:
    """A price quote whose format is always stated by the caller.

    ``AUTO`` is accepted as a tag only so that inputs can carry it to the
    boundary; conversion refuses it.
    """

    value: Decimal
    format: OddsFormat

    @classmethod
    def american(cls, value: int | str | Decimal) -> Odds:
        return cls(to_decimal(value), OddsFormat.AMERICAN)

    @classmethod
    def decimal(cls, value: float | str | Decimal) -> Odds:
        return cls(to_decimal(value), OddsFormat.DECIMAL)

    def __str__(self) -> str:
        if self.format is OddsFormat.AMERICAN and self.value > 0:
            return f"+{self.value}"
        return str(self.value)
