"""Validation layer tests."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from edgelab.odds.conversion import OddsFormat
from edgelab.validation import schemas


def _locations(outcome: schemas.ValidationOutcome) -> list[str]:
    return [error.location for error in outcome.errors]


def _market(*books: dict, **extra) -> dict:
    return {"market": "h2h", "books": list(books), **extra}


def test_valid_market_payload() -> None:
    outcome = schemas.validate_market_data(
        _market(
            {"name": "Pinnacle", "odds": [-105, "-105"]},
            {"name": "DraftKings", "odds": ["+110", -130], "format": "american"},
            outcomes=["Home", "Away"],
        )
    )
    assert outcome.success
    quotes = outcome.data.to_quotes("american")
    assert quotes.outcomes == ("Home", "Away")
    assert quotes.books[1].odds[0].value == Decimal(110)


def test_market_requires_baseline_book() -> None:
    outcome = schemas.validate_market_data(_market({"name": "DraftKings", "odds": [110, -130]}))
    assert not outcome.success
    assert _locations(outcome) == ["books"]
    assert "baseline book" in outcome.errors[0].message


def test_baseline_book_can_be_named_by_key() -> None:
    outcome = schemas.validate_market_data(
        _market({"name": "Sharp", "key": "pinnacle", "odds": [-105, -105]})
    )
    assert outcome.success


def test_market_books_must_quote_same_outcomes() -> None:
    outcome = schemas.validate_market_data(
        _market({"name": "Pinnacle", "odds": [-105, -105]}, {"name": "DraftKings", "odds": [110]})
    )
    assert not outcome.success
    assert "same number of outcomes" in outcome.errors[0].message


def test_declared_outcomes_must_match_count() -> None:
    outcome = schemas.validate_market_data(
        _market({"name": "Pinnacle", "odds": [-105, -105]}, outcomes=["Home"])
    )
    assert not outcome.success
    assert _locations(outcome) == ["__root__"]


def test_bad_odds_report_field_location() -> None:
    outcome = schemas.validate_market_data(
        _market({"name": "Pinnacle", "odds": [-105, 0]}, {"name": "DraftKings", "odds": [110, "abc"]})
    )
    assert not outcome.success
    assert _locations(outcome) == ["books.0.odds.1", "books.1.odds.1"]
    assert "zero" in outcome.errors[0].message


def test_parlay_accepts_camel_case() -> None:
    outcome = schemas.validate_parlay_data(
        {
            "book": "DraftKings",
            "legs": [
                {"book": "DraftKings", "odds": "+150", "isPush": True},
                {"book": "FanDuel", "odds": 2.1, "format": "decimal", "trueProbability": "0.5"},
            ],
        }
    )
    assert outcome.success
    ticket = outcome.data.to_ticket("american")
    assert ticket.stake == 1
    assert ticket.legs[0].is_push
    assert ticket.legs[0].odds.format is OddsFormat.AMERICAN
    assert ticket.legs[1].odds.format is OddsFormat.DECIMAL
    assert ticket.legs[1].true_probability == Decimal("0.5")


def test_parlay_needs_two_legs_and_positive_stake() -> None:
    outcome = schemas.validate_parlay_data(
        {"book": "DraftKings", "stake": 0, "legs": [{"book": "DraftKings", "odds": -110}]}
    )
    assert not outcome.success
    assert set(_locations(outcome)) == {"legs", "stake"}


def test_leg_probability_bounded() -> None:
    outcome = schemas.validate_parlay_data(
        {
            "book": "DraftKings",
            "legs": [
                {"book": "DraftKings", "odds": -110, "true_probability": 1.2},
                {"book": "DraftKings", "odds": -110, "true_probability": 0.5},
            ],
        }
    )
    assert not outcome.success
    assert _locations(outcome)[0].startswith("legs.0.")


def test_validate_stake() -> None:
    assert schemas.validate_stake("2.5").data == Decimal("2.5")
    failed = schemas.validate_stake(0)
    assert not failed.success
    assert _locations(failed) == ["stake"]


def test_ev_request_dispatch() -> None:
    outcome = schemas.validate_ev_request(
        {"type": "market", "data": _market({"name": "Pinnacle", "odds": [-105, -105]})}
    )
    assert outcome.success
    kind, data = outcome.data
    assert kind == "market"
    assert isinstance(data, schemas.MarketInput)

    bad_type = schemas.validate_ev_request({"type": "futures", "data": {}})
    assert _locations(bad_type) == ["type"]

    bad_data = schemas.validate_ev_request({"type": "market", "data": {"books": []}})
    assert _locations(bad_data) == ["data.books"]


def test_feed_schema() -> None:
    kickoff = datetime(2024, 1, 15, tzinfo=timezone.utc)
    outcome = schemas.validate_feed(
        [
            {
                "sport_key": "basketball_nba",
                "commence_time": kickoff,
                "home_team": "Lakers",
                "away_team": "Celtics",
                "bookmakers": [{"key": "pinnacle", "markets": []}],
                "ignored": True,
            }
        ]
    )
    assert outcome.success
    game = outcome.data[0]
    assert game.label == "Celtics @ Lakers"
    assert game.commence_time == kickoff.isoformat()
    assert game.game_id.startswith("Celtics_Lakers_")
    assert game.sport == "basketball_nba"
    assert game.bookmakers[0].display_name == "pinnacle"


def test_feed_bookmaker_needs_a_name() -> None:
    outcome = schemas.validate_feed(
        [{"home_team": "Lakers", "away_team": "Celtics", "bookmakers": [{"markets": []}]}]
    )
    assert not outcome.success
    assert _locations(outcome)[0].startswith("games.0.bookmakers.0")


def test_resolve_format() -> None:
    assert schemas.resolve_format("auto", "decimal") is OddsFormat.DECIMAL
    assert schemas.resolve_format("american", "decimal") is OddsFormat.AMERICAN
