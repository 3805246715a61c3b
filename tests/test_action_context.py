"""Tests for betting context: sizing, pot accounting, position and flags."""

import pytest

from poker_ev.analysis.action_context import (
    UNPOSTED_BLINDS_BB,
    amount_to_call,
    classify_bet_sizing,
    compute_pot_odds,
    describe_action,
    find_responder,
    pot_before,
    pot_odds_for_action,
    relative_position,
    stack_behind,
)
from poker_ev.core.hand_record import Hand
from poker_ev.utils.constants import (
    ActionKind,
    BetSizing,
    RelativePosition,
    Street,
)


def _heads_up(actions: list[dict]) -> Hand:
    """Hero in seat 1, villain on the button in seat 2."""
    return Hand.from_dict({
        "hand_id": "ctx",
        "button_seat": 2,
        "players": [
            {"player_id": "hero", "seat": 1, "stack_bb": 100, "hole_cards": ["Ac", "Qd"]},
            {"player_id": "v", "seat": 2, "stack_bb": 100},
        ],
        "community_cards": {"flop": ["2s", "7h", "Kd"], "turn": "9c", "river": "4h"},
        "betting_actions": actions,
    })


_PREFLOP = [
    {"player_id": "v", "street": "preflop", "action": "post", "amount_bb": 0.5},
    {"player_id": "hero", "street": "preflop", "action": "post", "amount_bb": 1},
    {"player_id": "v", "street": "preflop", "action": "raise", "amount_bb": 2.5},
    {"player_id": "hero", "street": "preflop", "action": "call", "amount_bb": 2},
]


class TestClassifyBetSizing:
    @pytest.mark.parametrize(
        "bet, pot, expected",
        [
            (0, 10, BetSizing.NONE),
            (3, 10, BetSizing.SMALL),
            (3.3, 10, BetSizing.SMALL),
            (7, 10, BetSizing.MEDIUM),
            (10, 10, BetSizing.MEDIUM),
            (15, 10, BetSizing.LARGE),
            (25, 10, BetSizing.VERY_LARGE),
        ],
    )
    def test_buckets(self, bet, pot, expected):
        assert classify_bet_sizing(bet, pot) == expected

    def test_all_in_wins(self):
        assert classify_bet_sizing(3, 10, is_all_in=True) == BetSizing.ALL_IN


class TestPotAccounting:
    def test_pot_before(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 4},
        ])
        assert pot_before(hand, 4) == pytest.approx(6.0)

    def test_unposted_blinds_added(self):
        hand = _heads_up([
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 2},
        ])
        assert pot_before(hand, 0) == pytest.approx(UNPOSTED_BLINDS_BB)

    def test_amount_to_call(self):
        hand = _heads_up(_PREFLOP)
        assert amount_to_call(hand, 3, "hero") == pytest.approx(2.0)
        assert amount_to_call(hand, 2, "v") == pytest.approx(0.5)

    def test_stack_behind(self):
        hand = _heads_up(_PREFLOP)
        assert stack_behind(hand, 4, "hero") == pytest.approx(97.0)
        assert stack_behind(hand, 4, "nobody") == 0.0


class TestPositionAndResponder:
    def test_button_is_in_position(self):
        hand = _heads_up(_PREFLOP)
        assert relative_position(hand, "hero", "v") == RelativePosition.IN_POSITION
        assert relative_position(hand, "v", "hero") == RelativePosition.OUT_OF_POSITION

    def test_responder_from_later_actions(self):
        hand = _heads_up(_PREFLOP)
        assert find_responder(hand, 1, "hero") == "v"

    def test_responder_without_later_actions(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 4},
        ])
        assert find_responder(hand, 4, "hero") == "v"

    def test_no_responder_after_fold(self):
        hand = _heads_up([
            {"player_id": "v", "street": "flop", "action": "fold"},
            {"player_id": "hero", "street": "flop", "action": "check"},
        ])
        assert find_responder(hand, 1, "hero") is None


class TestDescribeAction:
    def test_continuation_bet(self):
        hand = _heads_up([
            {"player_id": "hero", "street": "preflop", "action": "raise", "amount_bb": 3},
            {"player_id": "v", "street": "preflop", "action": "call", "amount_bb": 2},
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 4},
        ])
        context = describe_action(hand, 2, "v", hero_strength=0.2)
        assert context.continuation_bet
        assert not context.donk_bet
        assert context.bluff
        assert context.sizing == BetSizing.MEDIUM
        assert context.position == RelativePosition.IN_POSITION

    def test_donk_bet(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 2},
        ])
        context = describe_action(hand, 4, "v")
        assert context.donk_bet
        assert not context.continuation_bet
        assert not context.bluff

    def test_check_raise(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "check"},
            {"player_id": "v", "street": "flop", "action": "bet", "amount_bb": 3},
            {"player_id": "hero", "street": "flop", "action": "raise", "amount_bb": 10},
        ])
        context = describe_action(hand, 6, "v")
        assert context.check_raise
        assert context.kind == ActionKind.RAISE

    def test_three_bet(self):
        hand = _heads_up(_PREFLOP[:3] + [
            {"player_id": "hero", "street": "preflop", "action": "raise", "amount_bb": 7},
        ])
        assert describe_action(hand, 3, "v").three_bet

    def test_river_value_sizing(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "river", "action": "bet", "amount_bb": 5},
        ])
        context = describe_action(hand, 4, "v")
        assert context.street == Street.RIVER
        assert context.value_bet

    def test_with_bet_reclassifies(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "check"},
        ])
        context = describe_action(hand, 4, "v")
        assert context.sizing == BetSizing.NONE
        alt = context.with_bet(15.0, ActionKind.BET)
        assert alt.sizing == BetSizing.VERY_LARGE
        assert alt.bet_to_pot == pytest.approx(2.5)
        assert alt.kind == ActionKind.BET


class TestPotOdds:
    def test_ratio_and_spr(self):
        odds = compute_pot_odds(2.5, 6.0, 96.0, Street.FLOP)
        assert odds.ratio == pytest.approx(2.5 / 8.5)
        assert odds.spr == pytest.approx(16.0)
        assert odds.remaining_streets == 2
        assert odds.implied_odds == pytest.approx(1.5 * 1.4 * 1.1)

    def test_for_action(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 4},
        ])
        odds = pot_odds_for_action(hand, 4, "v")
        assert odds.call_amount == pytest.approx(4.0)
        assert odds.pot_size == pytest.approx(10.0)
        assert odds.effective_stack == pytest.approx(97.0)

    def test_candidate_bet_size(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 4},
        ])
        odds = pot_odds_for_action(hand, 4, "v", bet_size=6.0)
        assert odds.call_amount == pytest.approx(6.0)
        assert odds.ratio == pytest.approx(6.0 / 18.0)

    def test_call_capped_by_stack(self):
        hand = _heads_up(_PREFLOP + [
            {"player_id": "hero", "street": "flop", "action": "bet", "amount_bb": 97, "is_all_in": True},
        ])
        odds = pot_odds_for_action(hand, 4, "v")
        assert odds.call_amount == pytest.approx(97.0)
        assert odds.spr == pytest.approx(97.0 / 103.0)
