"""Tests for parsing, validating and canonicalizing hand records."""

import pytest

from poker_ev.core.hand_record import HERO_ID, Hand
from poker_ev.utils.card import Card, InvalidCardError
from poker_ev.utils.constants import ActionKind, Street


def _three_way(**overrides) -> dict:
    data = {
        "hand_id": "h1",
        "button_seat": 5,
        "players": [
            {"player_id": "alice", "seat": 1, "stack_bb": 80},
            {"player_id": "me", "seat": 3, "stack_bb": 100, "hole_cards": ["Jd", "Jh"]},
            {"player_id": "bob", "seat": 5, "stack_bb": 120},
        ],
        "community_cards": {"flop": ["2s", "7s", "Js"], "turn": "9c"},
        "betting_actions": [
            {"player_id": "alice", "street": "preflop", "action": "post", "amount_bb": 0.5},
            {"player_id": "me", "street": "preflop", "action": "post", "amount_bb": 1},
            {"player_id": "bob", "street": "preflop", "action": "call", "amount_bb": 1},
            {"player_id": "alice", "street": "flop", "action": "check"},
            {"player_id": "me", "street": "flop", "action": "bet", "amount_bb": 3},
        ],
    }
    data.update(overrides)
    return data


class TestFromDict:
    def test_parses(self):
        hand = Hand.from_dict(_three_way())
        assert hand.num_players == 3
        assert hand.player("me").hole_cards == (Card.from_str("Jd"), Card.from_str("Jh"))
        assert hand.betting_actions[4].action == ActionKind.BET
        assert hand.betting_actions[4].street == Street.FLOP
        assert hand.betting_actions[0].action_id == "h1-0"

    def test_aliases(self):
        hand = Hand.from_dict({
            "hand_id": "h2",
            "button_seat": 1,
            "players": [
                {"player_id": "a", "seat": 1, "stack": 50, "shown_cards": ["As", "Ks"]},
                {"player_id": "b", "seat": 2, "stack": 60},
            ],
            "actions": [
                {"action_id": "x", "player_id": "a", "street": "PREFLOP",
                 "action": "Raise", "amount": 50, "all_in": True},
            ],
        })
        action = hand.betting_actions[0]
        assert action.action_id == "x"
        assert action.amount_bb == 50
        assert action.is_all_in
        assert hand.player("a").stack_bb == 50
        assert len(hand.player("a").hole_cards) == 2
        assert hand.community_cards.all_cards == ()

    def test_board_by_street(self):
        hand = Hand.from_dict(_three_way())
        assert hand.board_at(Street.PREFLOP) == ()
        assert len(hand.board_at(Street.FLOP)) == 3
        assert len(hand.board_at(Street.TURN)) == 4
        assert len(hand.board_at(Street.RIVER)) == 4

    def test_missing_field(self):
        data = _three_way()
        del data["button_seat"]
        with pytest.raises(ValueError, match="missing field"):
            Hand.from_dict(data)

    def test_bad_card(self):
        data = _three_way(community_cards={"flop": ["2s", "7s", "Zz"]})
        with pytest.raises(InvalidCardError):
            Hand.from_dict(data)

    def test_duplicate_card(self):
        data = _three_way(community_cards={"flop": ["2s", "7s", "Jd"]})
        with pytest.raises(InvalidCardError, match="duplicate card"):
            Hand.from_dict(data)

    def test_unknown_player(self):
        data = _three_way()
        data["betting_actions"].append(
            {"player_id": "carol", "street": "flop", "action": "fold"},
        )
        with pytest.raises(ValueError, match="unknown player"):
            Hand.from_dict(data)

    def test_street_order(self):
        data = _three_way()
        data["betting_actions"].append(
            {"player_id": "bob", "street": "preflop", "action": "fold"},
        )
        with pytest.raises(ValueError, match="backwards"):
            Hand.from_dict(data)

    def test_negative_amount(self):
        data = _three_way()
        data["betting_actions"][4]["amount_bb"] = -3
        with pytest.raises(ValueError, match="Negative amount"):
            Hand.from_dict(data)

    def test_too_few_players(self):
        data = _three_way(players=[{"player_id": "me", "seat": 3, "stack_bb": 100}],
                          betting_actions=[])
        with pytest.raises(ValueError, match="players"):
            Hand.from_dict(data)

    def test_unknown_action_kind(self):
        data = _three_way()
        data["betting_actions"][3]["action"] = "muck"
        with pytest.raises(ValueError):
            Hand.from_dict(data)

    @pytest.mark.parametrize(
        "flag, expected",
        [(True, True), (False, False), ("false", False), ("False", False),
         ("true", True), ("YES", True), ("0", False), (1, True), (None, False)],
    )
    def test_all_in_flag(self, flag, expected):
        data = _three_way()
        data["betting_actions"][4]["is_all_in"] = flag
        assert Hand.from_dict(data).betting_actions[4].is_all_in is expected

    @pytest.mark.parametrize("flag", ["maybe", 2, 0.5, ["true"]])
    def test_bad_all_in_flag(self, flag):
        data = _three_way()
        data["betting_actions"][4]["all_in"] = flag
        with pytest.raises(ValueError, match="Invalid boolean for is_all_in"):
            Hand.from_dict(data)


class TestQueries:
    def test_acting_order(self):
        hand = Hand.from_dict(_three_way(button_seat=3))
        assert hand.acting_order() == ["bob", "alice", "me"]

    def test_action_index(self):
        hand = Hand.from_dict(_three_way())
        assert hand.action_index("h1-3") == 3
        assert hand.action_index("missing") is None

    def test_folded_before(self):
        data = _three_way()
        data["betting_actions"][2]["action"] = "fold"
        hand = Hand.from_dict(data)
        assert hand.folded_before(4) == {"bob"}
        assert hand.folded_before(2) == set()


class TestCanonicalize:
    def test_hero_first_villains_clockwise(self):
        hand = Hand.from_dict(_three_way()).canonicalize("me")
        assert [(p.player_id, p.seat) for p in hand.players] == [
            (HERO_ID, 0), ("villain_1", 1), ("villain_2", 2),
        ]
        assert hand.button_seat == 1
        assert hand.betting_actions[0].player_id == "villain_2"
        assert hand.betting_actions[4].player_id == HERO_ID
        assert hand.player(HERO_ID).stack_bb == 100

    def test_action_ids_kept(self):
        original = Hand.from_dict(_three_way())
        hand = original.canonicalize("me")
        assert [a.action_id for a in hand.betting_actions] == [
            a.action_id for a in original.betting_actions
        ]

    def test_dead_button(self):
        hand = Hand.from_dict(_three_way(button_seat=4)).canonicalize("me")
        assert hand.button_seat == 0

    def test_missing_hero(self):
        with pytest.raises(ValueError, match="not found"):
            Hand.from_dict(_three_way()).canonicalize("zed")

    def test_same_shape_same_result(self):
        """Renamed villains in different seats canonicalize identically."""
        data = _three_way()
        renamed = _three_way(
            button_seat=9,
            players=[
                {"player_id": "p9", "seat": 2, "stack_bb": 80},
                {"player_id": "me", "seat": 6, "stack_bb": 100, "hole_cards": ["Jd", "Jh"]},
                {"player_id": "p7", "seat": 9, "stack_bb": 120},
            ],
            betting_actions=[
                dict(a, player_id={"alice": "p9", "bob": "p7"}.get(a["player_id"], "me"))
                for a in data["betting_actions"]
            ],
        )
        a = Hand.from_dict(data).canonicalize("me")
        b = Hand.from_dict(renamed).canonicalize("me")
        assert a == b
