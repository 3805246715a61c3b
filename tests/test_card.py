"""Tests for Card, Combo and combo enumeration."""

import math

import pytest

from poker_ev.utils.card import (
    FULL_DECK,
    Card,
    Combo,
    InvalidCardError,
    enumerate_combos,
    parse_cards,
)
from poker_ev.utils.constants import TOTAL_COMBOS, Rank, Suit


class TestCard:
    def test_from_str(self):
        card = Card.from_str("Ah")
        assert card.rank == Rank.ACE
        assert card.suit == Suit.HEARTS
        assert str(card) == "Ah"

    def test_lowercase_rank_and_uppercase_suit(self):
        assert Card.from_str("tS") == Card(Rank.TEN, Suit.SPADES)

    @pytest.mark.parametrize("bad", ["", "A", "Ahh", "1h", "Ax"])
    def test_invalid_strings_rejected(self, bad):
        with pytest.raises(InvalidCardError):
            Card.from_str(bad)

    def test_invalid_card_error_is_value_error(self):
        with pytest.raises(ValueError, match="Invalid suit"):
            Card.from_str("Ax")

    def test_ordering_by_rank_then_suit(self):
        assert Card.from_str("2s") < Card.from_str("3c")
        assert Card.from_str("Ac") < Card.from_str("Ad")

    def test_value(self):
        assert Card.from_str("Td").value == 10
        assert Card.from_str("Ac").value == 14


class TestFullDeck:
    def test_deck_order(self):
        assert len(FULL_DECK) == 52
        assert [str(c) for c in FULL_DECK[:5]] == ["Ac", "Ad", "Ah", "As", "Kc"]
        assert str(FULL_DECK[-1]) == "2s"


class TestParseCards:
    def test_space_separated_string(self):
        assert [str(c) for c in parse_cards("Ah Kd 7c")] == ["Ah", "Kd", "7c"]

    def test_mixed_inputs(self):
        king = Card.from_str("Kd")
        assert parse_cards(["Ah", king]) == [Card.from_str("Ah"), king]

    def test_duplicate_rejected(self):
        with pytest.raises(InvalidCardError, match="Duplicate card"):
            parse_cards(["Ah", "Kd", "Ah"])


class TestCombo:
    def test_of_orders_cards(self):
        combo = Combo.of(Card.from_str("2c"), Card.from_str("As"))
        assert combo.high == Card.from_str("As")
        assert combo.id == "As2c"

    def test_pair_orders_by_suit(self):
        combo = Combo.from_str("QsQc")
        assert combo.id == "QcQs"
        assert combo.is_pair
        assert combo.key == "QQ"

    def test_keys(self):
        assert Combo.from_str("AhKh").key == "AKs"
        assert Combo.from_str("AhKd").key == "AKo"
        assert Combo.from_str("7d2c").key == "72o"

    def test_same_card_twice_rejected(self):
        with pytest.raises(InvalidCardError):
            Combo.from_str("AhAh")

    def test_touches(self):
        combo = Combo.from_str("AhKd")
        assert combo.touches({Card.from_str("Kd")})
        assert not combo.touches({Card.from_str("Kh")})


class TestEnumerateCombos:
    def test_full_count(self):
        assert len(enumerate_combos()) == TOTAL_COMBOS

    def test_dead_cards_removed(self):
        dead = parse_cards("Ac Qd 2s 7h Kd")
        combos = enumerate_combos(dead)
        assert len(combos) == 47 * 46 // 2
        assert not any(c.touches(set(dead)) for c in combos)

    @pytest.mark.parametrize("k", [0, 1, 2, 5, 7, 20, 50])
    def test_count_for_k_dead_cards(self, k):
        dead = FULL_DECK[:k]
        assert len(enumerate_combos(dead)) == math.comb(52 - k, 2)

    def test_deterministic_order(self):
        combos = enumerate_combos()
        assert combos[0].id == "AcAd"
        assert combos[1].id == "AcAh"
        assert combos[-1].id == "2h2s"
        assert combos == enumerate_combos()
