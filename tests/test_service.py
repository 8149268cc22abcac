"""Boundary service tests: payloads in, camelCase responses or error payloads out."""

from __future__ import annotations

import json

import pytest

from edgelab.api import cli, service
from edgelab.api.schemas import ErrorResponse, FinderResponse, MarketResponse

MARKET = {
    "market": "h2h",
    "outcomes": ["Home", "Away"],
    "books": [
        {"name": "Pinnacle", "odds": [-105, -105]},
        {"name": "DraftKings", "odds": [110, -130]},
    ],
}

SCENARIO_B = {
    "id": "b",
    "book": "Mixed",
    "legs": [
        {"book": "DraftKings", "odds": "2.00", "format": "decimal", "trueProbability": 0.49},
        {"book": "FanDuel", "odds": -110, "trueProbability": 0.50},
    ],
}


def test_analyze_market_shape() -> None:
    response = service.analyze_market(MARKET)
    assert isinstance(response, MarketResponse)
    payload = response.model_dump(by_alias=True)
    assert payload["pinnacleBaseline"] == pytest.approx([0.5, 0.5])
    assert set(payload["marketVig"]) == {"Pinnacle", "DraftKings"}
    assert payload["analysis"] == {"totalOutcomes": 4, "valueBetsFound": 1, "booksAnalyzed": 2}
    best = payload["bestValueBet"]
    assert best["rawOdds"] == {"american": 110.0, "decimal": 2.1}
    assert best["payoutProjection"]["perDollar"] == 2.1
    assert best["isValueBet"] is True
    assert best["kellyFraction"] > 0


def test_invalid_market_returns_error_payload() -> None:
    response = service.analyze_market({"books": [{"name": "DraftKings", "odds": [110, 0]}]})
    assert isinstance(response, ErrorResponse)
    payload = response.model_dump(by_alias=True)
    assert payload["error"] == "validation_error"
    assert payload["details"][0]["location"] == "books.0.odds.1"


def test_analyze_parlay() -> None:
    payload = service.analyze_parlay(SCENARIO_B).model_dump(by_alias=True)
    assert payload["combinedOdds"] == pytest.approx(3.8182, abs=1e-4)
    assert payload["combinedTrueProbability"] == pytest.approx(0.245)
    assert payload["expectedValue"] == pytest.approx(-0.0645, abs=1e-4)
    assert payload["isValueBet"] is False
    assert payload["pushInfo"] == {
        "hasPushes": False,
        "pushCount": 0,
        "activeLegCount": 2,
        "allPushes": False,
    }


def test_parlay_without_probability_is_a_parlay_error() -> None:
    response = service.analyze_parlay(
        {"book": "DK", "legs": [{"book": "DK", "odds": -110}, {"book": "DK", "odds": 120}]}
    )
    assert isinstance(response, ErrorResponse)
    assert response.error == "parlay_error"


def test_push_leg_at_settled_decimal_price() -> None:
    response = service.analyze_parlay(
        {
            "book": "DK",
            "legs": [
                {"book": "DK", "odds": 1.0, "format": "decimal", "isPush": True},
                {"book": "DK", "odds": 2.0, "format": "decimal", "trueProbability": 0.5},
            ],
        }
    )
    payload = response.model_dump(by_alias=True)
    assert payload["combinedOdds"] == 2.0
    assert payload["pushInfo"]["pushCount"] == 1
    assert payload["expectedValue"] == 0.0


def test_compare_parlay_tickets() -> None:
    value = {
        "id": "value",
        "book": "DK",
        "legs": [
            {"book": "DK", "odds": 100, "trueProbability": 0.6},
            {"book": "DK", "odds": 100, "trueProbability": 0.6},
        ],
    }
    payload = service.compare_parlay_tickets({"parlays": [value, SCENARIO_B]}).model_dump(by_alias=True)
    assert payload["bestEVParlay"]["id"] == "value"
    assert payload["highestPayoutParlay"]["id"] == "value"
    assert payload["analysis"]["totalParlays"] == 2
    assert payload["analysis"]["valueBets"] == 1
    assert payload["analysis"]["averageEV"] == pytest.approx(0.44)


def test_handle_ev_request_dispatches() -> None:
    market = service.handle_ev_request({"type": "market", "data": MARKET})
    assert isinstance(market, MarketResponse)
    parlay = service.handle_ev_request({"type": "parlay", "data": SCENARIO_B})
    assert parlay.model_dump(by_alias=True)["stake"] == 1.0
    error = service.handle_ev_request({"type": "parlay", "data": {"book": "DK", "legs": []}})
    assert isinstance(error, ErrorResponse)
    assert error.details[0].location == "data.legs"


def test_market_batch_reports_each_item() -> None:
    broken = {"market": "spreads", "books": [{"name": "DraftKings", "odds": [110, -130]}]}
    items = service.analyze_market_batch([MARKET, broken, MARKET])
    assert [item.market for item in items] == ["h2h", "spreads", "h2h"]
    assert items[0].result is not None
    assert items[1].result is None and "baseline book" in items[1].error


def test_find_value_bets(snapshot) -> None:
    response = service.find_value_bets({"games": snapshot}, min_ev=0.01)
    assert isinstance(response, FinderResponse)
    payload = response.model_dump(by_alias=True)
    assert [bet["gameId"] for bet in payload["bets"]] == ["g1", "g3", "g3"]
    assert payload["stats"]["candidates"] == 16

    parlay = payload["parlay"]
    # Both props share (g3, player_points), so only one of them fits.
    assert parlay["metrics"]["legCount"] == 2
    assert parlay["metrics"]["requestedLegs"] == 3
    assert parlay["metrics"]["confidence"] == "high"
    assert parlay["metrics"]["expectedValue"] > 0
    assert parlay["rejectedLegs"] == 0


def test_find_value_bets_without_parlay(snapshot) -> None:
    response = service.find_value_bets(snapshot, min_ev=0.01, legs=0, markets=["h2h"])
    assert response.parlay is None
    assert [bet.market_type for bet in response.bets] == ["h2h"]


def test_find_value_bets_tolerates_non_finite_line(snapshot) -> None:
    snapshot[0]["bookmakers"][1]["markets"][1]["outcomes"][0]["point"] = float("nan")
    response = service.find_value_bets(snapshot, min_ev=-1)
    assert isinstance(response, FinderResponse)
    assert response.stats.skipped == 2


def test_find_value_bets_rejects_bad_feed() -> None:
    response = service.find_value_bets([{"home_team": "Lakers"}])
    assert isinstance(response, ErrorResponse)
    assert response.details[0].location.startswith("games.0")


def test_cli_prints_json(snapshot, tmp_path, capsys) -> None:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot), encoding="utf-8")

    assert cli.main([str(path), "--min-ev", "0.01", "--legs", "2", "--book", "DraftKings"]) == 0

    payload = json.loads(capsys.readouterr().out)
    assert {bet["sportsbook"] for bet in payload["bets"]} == {"DraftKings"}
    assert payload["parlay"]["metrics"]["legCount"] == 2


def test_cli_missing_file(tmp_path) -> None:
    assert cli.main([str(tmp_path / "missing.json")]) == 2
