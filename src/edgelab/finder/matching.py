"""Matching a bookmaker's outcome to the baseline book's outcomes."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol

from edgelab.finder.types import BaselineOutcome, Bet

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_name(name: str | None) -> str:
    return _NON_ALNUM.sub("", (name or "").lower())


class OutcomeMatcher(Protocol):
    def __call__(self, selection: str, candidate: str) -> bool: ...


class ExactMatch:
    def __call__(self, selection: str, candidate: str) -> bool:
        return selection == candidate


class NormalizedMatch:
    """Ignores case, whitespace and punctuation ("L.A. Lakers" == "la lakers")."""

    def __call__(self, selection: str, candidate: str) -> bool:
        return normalize_name(selection) == normalize_name(candidate)


DEFAULT_MATCHERS: tuple[OutcomeMatcher, ...] = (ExactMatch(), NormalizedMatch())


def points_match(point: float | None, candidate: float | None, tolerance: Decimal) -> bool:
    """A bet without a line matches any line; a bet with one needs it within tolerance.

    Non-finite lines never match.
    """

    if point is None:
        return True
    if candidate is None or not math.isfinite(candidate) or not math.isfinite(point):
        return False
    return abs(Decimal(str(point)) - Decimal(str(candidate))) < tolerance


def match_outcome(
    bet: Bet,
    outcomes: Sequence[BaselineOutcome],
    *,
    matchers: Sequence[OutcomeMatcher] = DEFAULT_MATCHERS,
    tolerance: Decimal = Decimal("0.01"),
) -> int | None:
    """Index of the baseline outcome the bet refers to, or ``None``.

    Each matcher is tried across every outcome before the next, looser one.
    Player descriptions, when both sides carry one, must agree (normalized)
    and lines must agree within ``tolerance``.
    """

    player = normalize_name(bet.description)
    for matcher in matchers:
        for index, outcome in enumerate(outcomes):
            if not matcher(bet.selection, outcome.name):
                continue
            if player and outcome.description and normalize_name(outcome.description) != player:
                continue
            if points_match(bet.point, outcome.point, tolerance):
                return index
    return None
