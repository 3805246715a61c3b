"""Tests for the batch driver."""

import logging
import threading

from poker_ev.analysis import BatchResult, analyze_hands
from poker_ev.analysis.driver import parse_hand
from poker_ev.core.errors import AnalysisError, ErrorKind
from poker_ev.core.hand_record import Hand

LOGGER = "poker_ev.analysis"


def _record(hand_id: str, villain: str = "p2", flop=("2s", "7h", "Kd")) -> dict:
    return {
        "hand_id": hand_id,
        "button_seat": 2,
        "players": [
            {"player_id": "p1", "seat": 1, "stack_bb": 100, "hole_cards": ["Ac", "Qd"]},
            {"player_id": villain, "seat": 2, "stack_bb": 100},
        ],
        "community_cards": {"flop": list(flop)},
        "betting_actions": [
            {"player_id": villain, "street": "preflop", "action": "post", "amount_bb": 0.5},
            {"player_id": "p1", "street": "preflop", "action": "post", "amount_bb": 1},
            {"player_id": villain, "street": "preflop", "action": "call", "amount_bb": 0.5},
            {"player_id": "p1", "street": "flop", "action": "bet", "amount_bb": 1},
        ],
    }


class TestParseHand:
    def test_valid(self):
        assert isinstance(parse_hand(_record("h1")), Hand)

    def test_invalid_card(self):
        error = parse_hand(_record("h1", flop=("2s", "7h", "1x")))
        assert isinstance(error, AnalysisError)
        assert error.kind == ErrorKind.INVALID_CARD

    def test_wrong_shape(self):
        data = _record("h1")
        del data["players"]
        error = parse_hand(data)
        assert error.kind == ErrorKind.INPUT_SHAPE_MISMATCH


class TestAnalyzeHands:
    def test_serial_batch(self):
        result = analyze_hands([_record("h1"), Hand.from_dict(_record("h2"))], "p1")
        assert isinstance(result, BatchResult)
        assert not result.cancelled
        assert [a.hand_id for a in result.analyses] == ["h1", "h2"]
        assert all(len(a.actions) == 1 for a in result.analyses)

    def test_bad_hand_does_not_stop_batch(self, caplog):
        bad = _record("bad", flop=("2s", "2s", "Kd"))
        with caplog.at_level(logging.WARNING, logger=LOGGER):
            result = analyze_hands([bad, _record("h1")], "p1")
        assert result.analyses[0].errors[0].kind == ErrorKind.INVALID_CARD
        assert result.analyses[0].actions == ()
        assert len(result.analyses[1].actions) == 1
        assert result.error_count >= 1
        assert "Hand bad rejected" in caplog.text

    def test_cancelled_before_start(self):
        event = threading.Event()
        event.set()
        result = analyze_hands([_record("h1"), _record("h2")], "p1", cancel_event=event)
        assert result.cancelled
        assert result.analyses == ()
        assert result.as_dict() == {"hands": [], "cancelled": True}

    def test_villain_ids_do_not_matter(self):
        result = analyze_hands([_record("h1", "p2"), _record("h1", "zz")], "p1")
        a, b = (r.as_dict() for r in result.analyses)
        assert a["actions"] == b["actions"]

    def test_parallel_matches_serial(self):
        records = [_record("h1"), _record("h2", flop=("9s", "Ts", "Js"))]
        serial = analyze_hands(records, "p1")
        parallel = analyze_hands(records, "p1", max_workers=2)
        assert parallel.as_dict() == serial.as_dict()

    def test_batch_log(self, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER):
            analyze_hands([_record("h1")], "p1")
        assert "Analyzed 1/1 hands for p1" in caplog.text
