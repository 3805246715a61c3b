#!/usr/bin/env python3
"""Analyze hero decisions in a file of JSON hand records.

Input Format:
    A JSON file holding either a list of hand records or an object with
    a "hands" list. Each record looks like:

        {
          "hand_id": "h1",
          "button_seat": 2,
          "players": [
            {"player_id": "p1", "seat": 1, "stack_bb": 100, "hole_cards": ["Ac", "Qd"]},
            {"player_id": "p2", "seat": 2, "stack_bb": 100}
          ],
          "community_cards": {"flop": ["2s", "7h", "Kd"], "turn": null, "river": null},
          "betting_actions": [
            {"player_id": "p2", "street": "preflop", "action": "post", "amount_bb": 0.5},
            ...
          ]
        }

    Amounts are in big blinds; each action's amount is what it adds.

Output:
    One line per hero decision on stdout. With -o, the full analysis
    (frequencies, response ranges, branch EVs, candidates) as JSON.

Usage:
    # Analyze hands for player p1
    python scripts/analyze_hands.py hands.json --hero p1

    # Write the full analysis and use 4 worker processes
    python scripts/analyze_hands.py hands.json --hero p1 -o out.json --workers 4

    # Use a custom config (rake, thresholds, seed salt)
    python scripts/analyze_hands.py hands.json --hero p1 --config my_config.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path so we can import poker_ev
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from poker_ev.analysis import BatchResult, analyze_hands, load_analysis_config


def load_records(path: Path) -> list[dict]:
    """Read hand records from a JSON file.

    Raises:
        ValueError: If the file is not a list or a {"hands": [...]} object.
    """
    with open(path) as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("hands")
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of hands or a 'hands' list")
    return data


def print_summary(result: BatchResult) -> None:
    """Print one line per hero decision."""
    for hand in result.analyses:
        for error in hand.errors:
            print(f"{hand.hand_id}: ERROR {error}")
        for record in hand.actions:
            freqs = record.frequencies
            print(
                f"{record.hand_id} {record.street:<7} {record.action:<5} "
                f"{record.amount:>6.2f}  "
                f"f/c/r {freqs.fold:.2f}/{freqs.call:.2f}/{freqs.raise_:.2f}  "
                f"ev {record.total_ev:+.2f}  best {record.best_label} "
                f"({record.classification})"
            )
    if result.cancelled:
        print("Cancelled before all hands were analyzed")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Analyze hero decisions in JSON hand records.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "path", type=Path,
        help="JSON file of hand records",
    )
    parser.add_argument(
        "--hero", required=True,
        help="Player id whose decisions are analyzed",
    )
    parser.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write the full analysis as JSON to this file",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Analysis config file (default: ~/.poker_ev/analysis_config.json)",
    )
    parser.add_argument(
        "--workers", type=int, default=None,
        help="Worker processes (default: analyze serially)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log debug output",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        records = load_records(args.path)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        print(f"Cannot read hands: {e}", file=sys.stderr)
        return 2

    config = load_analysis_config(args.config)
    result = analyze_hands(records, args.hero, config, max_workers=args.workers)
    print_summary(result)

    if args.output:
        with open(args.output, "w") as f:
            json.dump(result.as_dict(), f, indent=2)
        print(f"\nWrote {len(result.analyses)} hands to {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
