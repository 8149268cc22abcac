"""Settings tests."""

from __future__ import annotations

from decimal import Decimal

import pytest
from pydantic import ValidationError

from edgelab.config import Settings, get_settings
from edgelab.odds.baseline import default_baseline_book


def test_defaults() -> None:
    settings = Settings(_env_file=None)
    assert settings.baseline_book_patterns == ["pinnacle"]
    assert settings.default_odds_format == "american"
    assert settings.as_decimal("min_ev") == Decimal("0.01")
    assert settings.as_decimal("standard_market_vig") == Decimal("0.04")


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("BASELINE_BOOK_PATTERNS", '["Circa", " bookmaker "]')
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("MIN_EV", "0.03")
    settings = get_settings()
    assert settings.baseline_book_patterns == ["circa", "bookmaker"]
    assert settings.log_level == "DEBUG"
    assert settings.as_decimal("min_ev") == Decimal("0.03")

    predicate = default_baseline_book()
    assert predicate("Circa Sports")
    assert not predicate("Pinnacle")


def test_blank_patterns_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, baseline_book_patterns=[" "])


def test_settings_are_cached() -> None:
    assert get_settings() is get_settings()
