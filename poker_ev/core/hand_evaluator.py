"""Board-aware hand categorization, draw detection and strength mapping.

Classifies a 2-card combo against 0-5 board cards into one of fifteen
made-hand categories, detects the draws it holds, and maps both onto a
bounded strength in [0, 1]. Strength before the flop is the combo's
preflop prior weight scaled so that aces rank with an overpair.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from poker_ev.strategy.preflop_weights import preflop_weight
from poker_ev.utils.card import Card, Combo, InvalidCardError
from poker_ev.utils.constants import DrawType, HandCategory, Street

STRENGTH_BY_CATEGORY: dict[HandCategory, float] = {
    HandCategory.STRAIGHT_FLUSH: 1.00,
    HandCategory.QUADS: 0.98,
    HandCategory.FULL_HOUSE: 0.95,
    HandCategory.FLUSH: 0.90,
    HandCategory.STRAIGHT: 0.85,
    HandCategory.SET: 0.80,
    HandCategory.TRIPS: 0.78,
    HandCategory.TWO_PAIR: 0.75,
    HandCategory.OVERPAIR: 0.70,
    HandCategory.TOP_PAIR: 0.65,
    HandCategory.SECOND_PAIR: 0.55,
    HandCategory.PAIR: 0.45,
    HandCategory.TWO_PAIR_BOARD: 0.35,
    HandCategory.PAIR_BOARD: 0.35,
    HandCategory.AIR: 0.20,
}

# Preflop prior weight 1.0 (aces) maps to overpair strength
PREFLOP_STRENGTH_SCALE = STRENGTH_BY_CATEGORY[HandCategory.OVERPAIR]

DRAW_BONUS: dict[DrawType, float] = {
    DrawType.COMBO_DRAW: 0.15,
    DrawType.FLUSH_DRAW: 0.10,
    DrawType.OESD: 0.08,
    DrawType.DOUBLE_GUTSHOT: 0.08,
    DrawType.GUTSHOT: 0.05,
    DrawType.WHEEL_DRAW: 0.05,
}

DRAW_OUTS: dict[DrawType, int] = {
    DrawType.COMBO_DRAW: 15,
    DrawType.FLUSH_DRAW: 9,
    DrawType.OESD: 8,
    DrawType.DOUBLE_GUTSHOT: 8,
    DrawType.GUTSHOT: 4,
    DrawType.WHEEL_DRAW: 4,
}

# Equity is strength discounted by how much board is still to come
STREET_EQUITY_FACTOR: dict[Street, float] = {
    Street.PREFLOP: 0.85,
    Street.FLOP: 0.90,
    Street.TURN: 0.95,
    Street.RIVER: 1.00,
}

NUTTED_CATEGORIES = frozenset({
    HandCategory.STRAIGHT_FLUSH,
    HandCategory.QUADS,
    HandCategory.FULL_HOUSE,
    HandCategory.FLUSH,
    HandCategory.STRAIGHT,
})

VALUE_CATEGORIES = NUTTED_CATEGORIES | {
    HandCategory.SET,
    HandCategory.TRIPS,
    HandCategory.TWO_PAIR,
    HandCategory.OVERPAIR,
}

BLUFF_CATCHER_CATEGORIES = frozenset({
    HandCategory.TOP_PAIR,
    HandCategory.SECOND_PAIR,
    HandCategory.PAIR,
})


@dataclass(frozen=True)
class ComboEvaluation:
    """A combo evaluated against one board."""

    combo: Combo
    category: HandCategory
    draws: frozenset[DrawType]
    strength: float

    @property
    def has_draw(self) -> bool:
        return bool(self.draws)

    @property
    def is_nutted(self) -> bool:
        if self.category in NUTTED_CATEGORIES:
            return True
        return (
            self.category == HandCategory.SET
            and DrawType.COMBO_DRAW in self.draws
        )

    @property
    def is_value(self) -> bool:
        return self.strength >= 0.7 and self.category in VALUE_CATEGORIES

    @property
    def is_bluff_catcher(self) -> bool:
        return (
            0.4 <= self.strength < 0.7
            and self.category in BLUFF_CATCHER_CATEGORIES
        )


class HandEvaluator:
    """Categorizes combos on a board and maps them onto strength."""

    @staticmethod
    def evaluate(combo: Combo, board: Sequence[Card]) -> ComboEvaluation:
        """Evaluate a combo on a board.

        Args:
            combo: The two hole cards.
            board: 0 to 5 community cards.

        Returns:
            ComboEvaluation with category, draws and strength. With fewer
            than three board cards the strength is the preflop prior.
        """
        return _evaluate_cached(combo, tuple(board))

    @staticmethod
    def categorize(hole: Sequence[Card], board: Sequence[Card]) -> HandCategory:
        """Return the made-hand category of two hole cards on a board.

        Raises:
            ValueError: If hole does not hold exactly two cards, the board
                       holds more than five, or a card appears twice.
        """
        hole, board = _check_cards(hole, board)
        if len(board) < 3:
            return HandEvaluator._category_before_flop(hole, board)

        cards = hole + board
        suit_counts = Counter(c.suit for c in cards)
        flush_suit = next(
            (s for s, n in suit_counts.items() if n >= 5), None,
        )
        if flush_suit is not None:
            suited = {c.value for c in cards if c.suit == flush_suit}
            if HandEvaluator._straight_high(suited) is not None:
                return HandCategory.STRAIGHT_FLUSH

        rank_counts = Counter(c.value for c in cards)
        if max(rank_counts.values()) >= 4:
            return HandCategory.QUADS

        trips = sorted(
            (v for v, n in rank_counts.items() if n == 3), reverse=True,
        )
        pairs = sorted(
            (v for v, n in rank_counts.items() if n == 2), reverse=True,
        )
        if trips and (len(trips) > 1 or pairs):
            return HandCategory.FULL_HOUSE
        if flush_suit is not None:
            return HandCategory.FLUSH
        if HandEvaluator._straight_high(set(rank_counts)) is not None:
            return HandCategory.STRAIGHT

        hole_values = {c.value for c in hole}
        pocket_pair = hole[0].value == hole[1].value

        if trips:
            if pocket_pair and hole[0].value == trips[0]:
                return HandCategory.SET
            if trips[0] in hole_values:
                return HandCategory.TRIPS
            return HandCategory.PAIR_BOARD

        if len(pairs) >= 2:
            if pairs[0] in hole_values or pairs[1] in hole_values:
                return HandCategory.TWO_PAIR
            return HandCategory.TWO_PAIR_BOARD

        if pairs:
            return HandEvaluator._one_pair_category(
                pairs[0], hole_values, pocket_pair, board,
            )
        return HandCategory.AIR

    @staticmethod
    def detect_draws(
        hole: Sequence[Card], board: Sequence[Card],
    ) -> frozenset[DrawType]:
        """Detect flush and straight draws.

        No draws exist before the flop or on a complete board. A flush
        draw plus any straight draw is reported as a single combo draw.
        """
        hole, board = _check_cards(hole, board)
        if len(board) < 3 or len(board) >= 5:
            return frozenset()

        cards = hole + board
        suit_counts = Counter(c.suit for c in cards)
        flush_draw = any(n == 4 for n in suit_counts.values())
        straight_draw = HandEvaluator._straight_draw({c.value for c in cards})

        if flush_draw and straight_draw is not None:
            return frozenset({DrawType.COMBO_DRAW})
        if flush_draw:
            return frozenset({DrawType.FLUSH_DRAW})
        if straight_draw is not None:
            return frozenset({straight_draw})
        return frozenset()

    @staticmethod
    def strength(category: HandCategory, draws: frozenset[DrawType]) -> float:
        """Base strength of the category plus the largest draw bonus."""
        bonus = max((DRAW_BONUS[d] for d in draws), default=0.0)
        return min(1.0, STRENGTH_BY_CATEGORY[category] + bonus)

    @staticmethod
    def equity(strength: float, street: Street) -> float:
        """Bounded equity estimate for a given strength on a street."""
        return max(0.0, min(1.0, strength * STREET_EQUITY_FACTOR[street]))

    @staticmethod
    def completion_probability(
        draws: frozenset[DrawType], board_size: int,
    ) -> float:
        """Chance to complete the best draw on the next card."""
        if board_size < 3 or board_size >= 5:
            return 0.0
        outs = max((DRAW_OUTS[d] for d in draws), default=0)
        return outs / (52 - board_size - 2)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _category_before_flop(
        hole: tuple[Card, ...], board: tuple[Card, ...],
    ) -> HandCategory:
        if hole[0].value != hole[1].value:
            return HandCategory.AIR
        if all(hole[0].value > c.value for c in board):
            return HandCategory.OVERPAIR
        return HandCategory.PAIR

    @staticmethod
    def _one_pair_category(
        pair_value: int,
        hole_values: set[int],
        pocket_pair: bool,
        board: tuple[Card, ...],
    ) -> HandCategory:
        if pair_value not in hole_values:
            return HandCategory.PAIR_BOARD
        distinct = sorted({c.value for c in board}, reverse=True)
        if pocket_pair:
            if pair_value > distinct[0]:
                return HandCategory.OVERPAIR
            return HandCategory.PAIR
        if pair_value == distinct[0]:
            return HandCategory.TOP_PAIR
        if len(distinct) > 1 and pair_value == distinct[1]:
            return HandCategory.SECOND_PAIR
        return HandCategory.PAIR

    @staticmethod
    def _straight_high(values: set[int]) -> int | None:
        """Highest straight contained in a set of rank values, or None.

        The ace also plays low, so A-2-3-4-5 (the wheel) returns 5.
        """
        vals = set(values)
        if 14 in vals:
            vals.add(1)
        for high in range(14, 4, -1):
            if all(v in vals for v in range(high - 4, high + 1)):
                return high
        return None

    @staticmethod
    def _straight_draw(values: set[int]) -> DrawType | None:
        if HandEvaluator._straight_high(values) is not None:
            return None
        completing = [
            v for v in range(2, 15)
            if v not in values
            and HandEvaluator._straight_high(values | {v}) is not None
        ]
        if len(completing) >= 2:
            if HandEvaluator._has_open_ended_run(values):
                return DrawType.OESD
            return DrawType.DOUBLE_GUTSHOT
        if len(completing) == 1:
            if HandEvaluator._straight_high(values | {completing[0]}) == 5:
                return DrawType.WHEEL_DRAW
            return DrawType.GUTSHOT
        return None

    @staticmethod
    def _has_open_ended_run(values: set[int]) -> bool:
        """Four consecutive ranks with a live card at both ends."""
        vals = set(values)
        if 14 in vals:
            vals.add(1)
        for low in range(1, 12):
            if not all(low + k in vals for k in range(4)):
                continue
            below, above = low - 1, low + 4
            if below >= 1 and above <= 14 and below not in vals and above not in vals:
                return True
        return False


def _check_cards(
    hole: Sequence[Card], board: Sequence[Card],
) -> tuple[tuple[Card, ...], tuple[Card, ...]]:
    hole = tuple(hole)
    board = tuple(board)
    if len(hole) != 2:
        raise ValueError(f"Need exactly 2 hole cards, got {len(hole)}")
    if len(board) > 5:
        raise ValueError(f"Board holds at most 5 cards, got {len(board)}")
    if len(set(hole + board)) != len(hole) + len(board):
        raise InvalidCardError("Duplicate card between hole cards and board")
    return hole, board


@lru_cache(maxsize=131072)
def _evaluate_cached(combo: Combo, board: tuple[Card, ...]) -> ComboEvaluation:
    category = HandEvaluator.categorize(combo.cards, board)
    draws = HandEvaluator.detect_draws(combo.cards, board)
    if len(board) < 3:
        strength = preflop_weight(combo) * PREFLOP_STRENGTH_SCALE
    else:
        strength = HandEvaluator.strength(category, draws)
    return ComboEvaluation(
        combo=combo, category=category, draws=draws, strength=strength,
    )
