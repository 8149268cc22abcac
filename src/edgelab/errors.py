"""Error taxonomy shared by the odds, EV and parlay modules."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FieldError:
    """One field-level validation problem."""

    location: str
    message: str

    def to_payload(self) -> dict[str, str]:
        return {"location": self.location, "message": self.message}


class EdgeLabError(Exception):
    """Base class for errors raised by the EdgeLab core."""

    code = "edgelab_error"

    def __init__(self, message: str, *, details: list[FieldError] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details or [])

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            payload["details"] = [detail.to_payload() for detail in self.details]
        return payload


class ValidationError(EdgeLabError):
    """Input rejected before any computation ran."""

    code = "validation_error"


class InvalidOddsError(ValidationError):
    """Odds that are zero, non-finite, unparseable or outside the format's range."""

    code = "invalid_odds"


class ComputationError(EdgeLabError):
    """A calculation could not be completed for otherwise well-formed input."""

    code = "computation_error"


class InvalidMarketError(ComputationError):
    """A market whose probabilities cannot be normalized."""

    code = "invalid_market"


class ParlayError(EdgeLabError):
    """A parlay leg was invalid; the whole parlay is rejected."""

    code = "parlay_error"
