"""Shared fixtures: a fresh settings cache and a small odds snapshot."""

from __future__ import annotations

from typing import Any

import pytest

from edgelab.config import get_settings


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _outcome(name: str, price: Any, point: float | None = None, description: str | None = None) -> dict:
    outcome: dict[str, Any] = {"name": name, "price": price}
    if point is not None:
        outcome["point"] = point
    if description is not None:
        outcome["description"] = description
    return outcome


def _book(key: str, title: str, markets: dict[str, list[dict]]) -> dict:
    return {
        "key": key,
        "title": title,
        "markets": [{"key": market, "outcomes": outcomes} for market, outcomes in markets.items()],
    }


@pytest.fixture
def snapshot() -> list[dict]:
    """Three games.

    * ``g1``: Pinnacle prices h2h at -105/-105; DraftKings hangs Lakers +115.
    * ``g2``: no baseline book, one unparseable total.
    * ``g3``: player points for two players; DraftKings beats both overs.
    """

    return [
        {
            "id": "g1",
            "sport_key": "basketball_nba",
            "sport_title": "NBA",
            "commence_time": "2024-01-15T00:00:00Z",
            "home_team": "Lakers",
            "away_team": "Celtics",
            "bookmakers": [
                _book(
                    "pinnacle",
                    "Pinnacle",
                    {
                        "h2h": [_outcome("Lakers", -105), _outcome("Celtics", -105)],
                        "spreads": [
                            _outcome("Lakers", -110, -3.5),
                            _outcome("Celtics", -110, 3.5),
                        ],
                    },
                ),
                _book(
                    "draftkings",
                    "DraftKings",
                    {
                        "h2h": [_outcome("Lakers", 115), _outcome("Celtics", -130)],
                        "spreads": [
                            _outcome("Lakers", -105, -3.5),
                            _outcome("Celtics", -115, 3.5),
                        ],
                    },
                ),
            ],
        },
        {
            "id": "g2",
            "sport_key": "basketball_nba",
            "sport_title": "NBA",
            "home_team": "Knicks",
            "away_team": "Heat",
            "bookmakers": [
                _book(
                    "fanduel",
                    "FanDuel",
                    {
                        "h2h": [_outcome("Heat", 120), _outcome("Knicks", -140)],
                        "totals": [_outcome("Over", 50, 215.5)],
                    },
                ),
            ],
        },
        {
            "id": "g3",
            "sport_key": "basketball_nba",
            "sport_title": "NBA",
            "home_team": "Nuggets",
            "away_team": "Suns",
            "bookmakers": [
                _book(
                    "pinnacle",
                    "Pinnacle",
                    {
                        "player_points": [
                            _outcome("Over", -110, 25.5, "LeBron James"),
                            _outcome("Under", -110, 25.5, "LeBron James"),
                            _outcome("Over", 100, 22.5, "Anthony Davis"),
                            _outcome("Under", -120, 22.5, "Anthony Davis"),
                        ]
                    },
                ),
                _book(
                    "draftkings",
                    "DraftKings",
                    {
                        "player_points": [
                            _outcome("Over", 105, 25.5, "LeBron James"),
                            _outcome("Over", 115, 22.5, "Anthony Davis"),
                        ]
                    },
                ),
            ],
        },
    ]
