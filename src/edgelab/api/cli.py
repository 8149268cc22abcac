"""Find positive-EV bets in an odds snapshot and print them as JSON."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from edgelab.api.schemas import ErrorResponse
from edgelab.api.service import find_value_bets
from edgelab.config import get_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="edgelab-find", description=__doc__)
    parser.add_argument("snapshot", type=Path, help="JSON file: a list of games or {\"games\": [...]}")
    parser.add_argument("--min-ev", type=float, default=None, help="Minimum EV per unit staked.")
    parser.add_argument("--max-bets", type=int, default=None, help="Maximum bets to return.")
    parser.add_argument(
        "--legs", type=int, default=None, help="Parlay legs to assemble (0 skips the parlay)."
    )
    parser.add_argument(
        "--require-baseline",
        action="store_true",
        default=None,
        help="Drop bets priced without a baseline book.",
    )
    parser.add_argument(
        "--require-props", action="store_true", help="Fill the parlay with player props first."
    )
    parser.add_argument("--props-ratio", type=float, default=None, help="Share of legs that are props.")
    parser.add_argument("--sport", default=None, help="Sport key or title to keep.")
    parser.add_argument(
        "--market", action="append", dest="markets", default=None, help="Market key to keep (repeatable)."
    )
    parser.add_argument(
        "--book", action="append", dest="books", default=None, help="Bookmaker key or title to keep (repeatable)."
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        snapshot = json.loads(args.snapshot.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        print(f"Could not read snapshot {args.snapshot}: {exc}", file=sys.stderr)
        return 2

    response = find_value_bets(
        snapshot,
        min_ev=args.min_ev,
        max_bets=args.max_bets,
        legs=args.legs,
        require_baseline=args.require_baseline,
        require_player_props=args.require_props,
        player_props_ratio=args.props_ratio,
        sport=args.sport,
        markets=args.markets,
        bookmakers=args.books,
    )
    print(response.model_dump_json(by_alias=True, indent=2))
    return 1 if isinstance(response, ErrorResponse) else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
