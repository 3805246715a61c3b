"""Tests for board-aware categorization, draws and strength."""

import itertools

import pytest

from poker_ev.core.hand_evaluator import HandEvaluator
from poker_ev.utils.card import Card, Combo, InvalidCardError
from poker_ev.utils.constants import DrawType, HandCategory, Street


def _cards(s: str) -> list[Card]:
    return [Card.from_str(c) for c in s.split()]


def _category(hole: str, board: str) -> HandCategory:
    return HandEvaluator.categorize(_cards(hole), _cards(board))


def _draws(hole: str, board: str) -> frozenset[DrawType]:
    return HandEvaluator.detect_draws(_cards(hole), _cards(board))


class TestCategorize:
    @pytest.mark.parametrize(
        "hole, board, expected",
        [
            ("9s 8s", "7s 6s 5s", HandCategory.STRAIGHT_FLUSH),
            ("Ah 5c", "2d 3d 4d", HandCategory.STRAIGHT),
            ("7c 7d", "7h 7s 2c", HandCategory.QUADS),
            ("Kc Kd", "Kh 2s 2c", HandCategory.FULL_HOUSE),
            ("Ah 9h", "Kh 7h 2h", HandCategory.FLUSH),
            ("Jd Jh", "2s 7s Js", HandCategory.SET),
            ("Ks 7d", "7c 7h 2s", HandCategory.TRIPS),
            ("Ks 7d", "Kc 7h 2s", HandCategory.TWO_PAIR),
            ("Ac Qd", "Ks Kh 7d 7c", HandCategory.TWO_PAIR_BOARD),
            ("Qc Qd", "Js 7h 2c", HandCategory.OVERPAIR),
            ("Kc Qd", "Ks 7h 2c", HandCategory.TOP_PAIR),
            ("Ac 7d", "Ks 7h 2c", HandCategory.SECOND_PAIR),
            ("Ac 2d", "Ks 7h 2c", HandCategory.PAIR),
            ("Ac Qd", "Ks Kh 2c", HandCategory.PAIR_BOARD),
            ("Ac Qd", "2s 7h Kd", HandCategory.AIR),
        ],
    )
    def test_categories(self, hole, board, expected):
        assert _category(hole, board) == expected

    def test_underpair_is_pair(self):
        assert _category("5c 5d", "Ks 7h 2c") == HandCategory.PAIR

    def test_before_flop(self):
        assert _category("Ac Ad", "") == HandCategory.OVERPAIR
        assert _category("Ac Kd", "") == HandCategory.AIR

    def test_duplicate_card_rejected(self):
        with pytest.raises(InvalidCardError, match="Duplicate"):
            HandEvaluator.categorize(_cards("Ac Kd"), _cards("Ac 7h 2s"))

    def test_wrong_hole_count_rejected(self):
        with pytest.raises(ValueError, match="exactly 2"):
            HandEvaluator.categorize(_cards("Ac"), _cards("Kd 7h 2s"))

    @pytest.mark.parametrize(
        "hole, board",
        [
            ("Jd Jh", "2s 7s Js"),
            ("As Ks", "Ah Kd 2c 7h"),
            ("9c 8c", "7c 6c 2d Kc"),
            ("5d 4c", "3h 2s Ac 9d Kh"),
            ("Kc 5d", "Ks Kh 2d 2c 9s"),
            ("Qc Qd", "Kh 7s 2d"),
        ],
    )
    def test_card_order_does_not_matter(self, hole, board):
        expected = _category(hole, board)
        hole_cards, board_cards = _cards(hole), _cards(board)
        for h in itertools.permutations(hole_cards):
            for b in itertools.permutations(board_cards):
                assert HandEvaluator.categorize(list(h), list(b)) == expected


class TestDrawDetection:
    def test_flush_draw(self):
        assert _draws("Ah 9h", "Kh 7h 2c") == {DrawType.FLUSH_DRAW}

    def test_open_ended(self):
        assert _draws("9c 8d", "7h 6s 2c") == {DrawType.OESD}

    def test_gutshot(self):
        assert _draws("9c 8d", "6h 5s Kc") == {DrawType.GUTSHOT}

    def test_wheel_draw(self):
        assert _draws("Ac 2d", "3h 4s Kc") == {DrawType.WHEEL_DRAW}

    def test_combo_draw_merges_flush_and_straight(self):
        assert _draws("9s 8s", "7s 6d 2s") == {DrawType.COMBO_DRAW}

    def test_no_draws_on_river(self):
        assert _draws("Ah 9h", "Kh 7h 2c 3d 4s") == frozenset()

    def test_no_draws_before_flop(self):
        assert _draws("Ah 9h", "") == frozenset()


class TestStrength:
    def test_set_strength(self):
        evaluation = HandEvaluator.evaluate(
            Combo.from_str("JdJh"), _cards("2s 7s Js"),
        )
        assert evaluation.category == HandCategory.SET
        assert evaluation.strength == pytest.approx(0.80)
        assert evaluation.is_value

    def test_draw_bonus_added(self):
        evaluation = HandEvaluator.evaluate(
            Combo.from_str("AhTh"), _cards("Kh 7h 2c"),
        )
        assert evaluation.strength == pytest.approx(0.30)

    def test_preflop_strength_scales_prior(self):
        aces = HandEvaluator.evaluate(Combo.from_str("AcAd"), ())
        assert aces.strength == pytest.approx(0.70)
        trash = HandEvaluator.evaluate(Combo.from_str("3c2d"), ())
        assert trash.strength == pytest.approx(0.084)

    def test_strength_capped_at_one(self):
        assert HandEvaluator.strength(
            HandCategory.STRAIGHT_FLUSH, frozenset({DrawType.FLUSH_DRAW}),
        ) == 1.0

    def test_equity_by_street(self):
        assert HandEvaluator.equity(0.8, Street.FLOP) == pytest.approx(0.72)
        assert HandEvaluator.equity(0.8, Street.RIVER) == pytest.approx(0.8)

    def test_completion_probability(self):
        draws = frozenset({DrawType.FLUSH_DRAW})
        assert HandEvaluator.completion_probability(draws, 3) == pytest.approx(9 / 47)
        assert HandEvaluator.completion_probability(draws, 5) == 0.0
