"""Baseline ("sharp") book detection."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from edgelab.config import get_settings


class IsBaselineBook(Protocol):
    """Decides whether a bookmaker's name or key is a pricing baseline."""

    def __call__(self, book: str) -> bool: ...


class SubstringBaselineBook:
    """Case-insensitive substring match against a set of patterns."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(p.lower() for p in patterns if p)

    def __call__(self, book: str) -> bool:
        if not book:
            return False
        lowered = book.lower()
        return any(pattern in lowered for pattern in self.patterns)

    def __repr__(self) -> str:
        return f"SubstringBaselineBook({list(self.patterns)!r})"


def default_baseline_book() -> SubstringBaselineBook:
    """Predicate built from the ``baseline_book_patterns`` setting."""

    return SubstringBaselineBook(get_settings().baseline_book_patterns)
