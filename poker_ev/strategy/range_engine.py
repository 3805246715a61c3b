"""Action-driven opponent range tracking.

A Range is a weighted distribution over combos, always conditioned on a
set of dead cards. Every operation returns a new Range: initialization
from the preflop prior, filtering of dead cards, a multiplicative update
per observed action, and normalization with pruning of negligible mass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass

import numpy as np

from poker_ev.core.errors import AnalysisError, ErrorKind
from poker_ev.core.hand_evaluator import ComboEvaluation, HandEvaluator
from poker_ev.core.hand_record import Hand
from poker_ev.strategy.preflop_weights import preflop_weight
from poker_ev.utils.card import Card, Combo, iter_combos
from poker_ev.utils.constants import (
    AGGRESSIVE_ACTIONS,
    ActionKind,
    DrawType,
    HandCategory,
)

logger = logging.getLogger("poker_ev.strategy")

WEIGHT_FLOOR = 1e-4
NORMALIZED_TOLERANCE = 1e-6

DEFAULT_PRUNE_THRESHOLD = 1e-3
SMALL_RANGE_PRUNE_THRESHOLD = 1e-4
FOLD_PRUNE_THRESHOLD = 1e-5
SMALL_RANGE_SIZE = 50


class Range:
    """Weighted distribution over combos.

    Built once and never changed; operations that reshape a range
    return a new one. Iteration follows insertion order, which is deck
    order for ranges produced by the engine.
    """

    __slots__ = ("_weights",)

    def __init__(self, weights: Mapping[Combo, float] | None = None) -> None:
        self._weights: dict[Combo, float] = dict(weights or {})

    def __len__(self) -> int:
        return len(self._weights)

    def __iter__(self) -> Iterator[Combo]:
        return iter(self._weights)

    def __contains__(self, combo: object) -> bool:
        return combo in self._weights

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Range):
            return NotImplemented
        return self._weights == other._weights

    def __repr__(self) -> str:
        return f"Range({len(self)} combos, total={self.total_weight:.4f})"

    def weight(self, combo: Combo) -> float:
        return self._weights.get(combo, 0.0)

    def items(self) -> Iterable[tuple[Combo, float]]:
        return self._weights.items()

    @property
    def combos(self) -> list[Combo]:
        return list(self._weights)

    @property
    def total_weight(self) -> float:
        if not self._weights:
            return 0.0
        return float(np.sum(np.fromiter(self._weights.values(), dtype=float)))

    @property
    def is_empty(self) -> bool:
        return not self._weights

    def is_normalized(self, tol: float = NORMALIZED_TOLERANCE) -> bool:
        return abs(self.total_weight - 1.0) <= tol

    def normalized(self) -> Range:
        """Same combos divided by the total weight; empty if total is 0."""
        total = self.total_weight
        if total <= 0:
            return Range()
        return Range({c: w / total for c, w in self._weights.items()})

    def by_key(self) -> dict[str, float]:
        """Weight aggregated by canonical class key ('AKs', 'QQ', ...)."""
        out: dict[str, float] = {}
        for combo, w in self._weights.items():
            out[combo.key] = out.get(combo.key, 0.0) + w
        return out

    def touches(self, dead: Iterable[Card]) -> bool:
        dead_set = frozenset(dead)
        return any(c.touches(dead_set) for c in self._weights)


@dataclass(frozen=True)
class RangeUpdate:
    """Range for one player at one action index, with any errors met."""

    range: Range
    actions_applied: int = 0
    errors: tuple[AnalysisError, ...] = ()

    @property
    def collapsed(self) -> bool:
        return any(e.kind == ErrorKind.RANGE_COLLAPSED for e in self.errors)


# ---------------------------------------------------------------------------
# Update multipliers: (bet/raise, call/check, fold)
# ---------------------------------------------------------------------------

_CATEGORY_ROWS: list[tuple[frozenset[HandCategory], tuple[float, float, float]]] = [
    (
        frozenset({
            HandCategory.STRAIGHT_FLUSH,
            HandCategory.QUADS,
            HandCategory.FULL_HOUSE,
        }),
        (2.00, 1.50, 0.001),
    ),
    (frozenset({HandCategory.FLUSH, HandCategory.STRAIGHT}), (1.50, 1.50, 0.01)),
    (frozenset({HandCategory.SET}), (1.50, 1.50, 0.01)),
    (frozenset({HandCategory.TWO_PAIR}), (1.50, 1.50, 0.10)),
    (frozenset({HandCategory.OVERPAIR, HandCategory.TOP_PAIR}), (1.20, 1.20, 0.05)),
]

_COMBO_DRAW_ROW = (1.20, 1.10, 1.50)
_STRONG_DRAW_ROW = (1.10, 0.80, 1.80)
_WEAK_DRAW_ROW = (0.90, 0.60, 2.00)
_PAIR_ROW = (0.70, 0.50, 1.20)
_AIR_ROW = (0.05, 0.01, 2.50)
_OTHER_ROW = (0.50, 0.30, 1.00)

_STRONG_DRAWS = frozenset({
    DrawType.FLUSH_DRAW, DrawType.OESD, DrawType.DOUBLE_GUTSHOT,
})
_WEAK_DRAWS = frozenset({DrawType.GUTSHOT, DrawType.WHEEL_DRAW})


def _column(action: ActionKind) -> int:
    if action in AGGRESSIVE_ACTIONS:
        return 0
    if action == ActionKind.FOLD:
        return 2
    return 1


def update_multiplier(evaluation: ComboEvaluation, action: ActionKind) -> float:
    """Multiplier applied to a combo's weight when its holder takes `action`.

    Rows are checked in order and the first match wins: made-hand rows,
    then draw rows, then weak made hands, air and everything else.
    """
    if action == ActionKind.POST:
        return 1.0
    col = _column(action)
    for categories, row in _CATEGORY_ROWS:
        if evaluation.category in categories:
            return row[col]
    draws = evaluation.draws
    if DrawType.COMBO_DRAW in draws:
        return _COMBO_DRAW_ROW[col]
    if draws & _STRONG_DRAWS:
        return _STRONG_DRAW_ROW[col]
    if draws & _WEAK_DRAWS:
        return _WEAK_DRAW_ROW[col]
    if evaluation.category in (HandCategory.SECOND_PAIR, HandCategory.PAIR):
        return _PAIR_ROW[col]
    if evaluation.category == HandCategory.AIR:
        return _AIR_ROW[col]
    return _OTHER_ROW[col]


def prune_threshold(
    range_size: int,
    action: ActionKind | None = None,
    override: float | None = None,
) -> float:
    """Weight below which a combo is dropped during normalization."""
    if action == ActionKind.FOLD:
        return FOLD_PRUNE_THRESHOLD
    if range_size < SMALL_RANGE_SIZE:
        return SMALL_RANGE_PRUNE_THRESHOLD
    if override is not None:
        return override
    return DEFAULT_PRUNE_THRESHOLD


class RangeEngine:
    """Builds and narrows opponent ranges from observed actions."""

    @staticmethod
    def initialize(dead_cards: Iterable[Card] = ()) -> Range:
        """Full preflop range minus combos touching dead cards.

        Weights are the raw preflop prior, not yet normalized.
        """
        return Range({c: preflop_weight(c) for c in iter_combos(dead_cards)})

    @staticmethod
    def filter(range_: Range, dead_cards: Iterable[Card]) -> Range:
        """Remove every combo that contains a dead card."""
        dead = frozenset(dead_cards)
        if not dead:
            return range_
        return Range({c: w for c, w in range_.items() if not c.touches(dead)})

    @staticmethod
    def update(
        range_: Range, action: ActionKind, board: Sequence[Card],
    ) -> Range:
        """Apply the multiplicative update for one action on a board.

        Multiplied weights are floored at WEIGHT_FLOOR unless already
        zero. Blind posts leave the range unchanged, and so does any
        action taken before the flop, where no board exists to key on.
        With action=FOLD the result is the range of hands that fold.
        """
        if action == ActionKind.POST:
            return range_
        if len(board) < 3:
            logger.debug("No flop yet: %s leaves the range on its prior", action)
            return range_

        board = tuple(board)
        board_set = frozenset(board)
        updated: dict[Combo, float] = {}
        for combo, w in range_.items():
            if combo.touches(board_set):
                continue
            evaluation = HandEvaluator.evaluate(combo, board)
            new_w = w * update_multiplier(evaluation, action)
            if new_w > 0:
                new_w = max(new_w, WEIGHT_FLOOR)
            updated[combo] = new_w
        return Range(updated)

    @staticmethod
    def update_continuing(range_: Range, board: Sequence[Card]) -> Range:
        """Range of hands that did not fold when facing aggression.

        Dual of update(..., FOLD, ...): each combo keeps the share
        1 / (1 + m) of its weight, where m is its fold multiplier.
        """
        if len(board) < 3:
            return range_
        board = tuple(board)
        board_set = frozenset(board)
        updated: dict[Combo, float] = {}
        for combo, w in range_.items():
            if combo.touches(board_set):
                continue
            evaluation = HandEvaluator.evaluate(combo, board)
            m = update_multiplier(evaluation, ActionKind.FOLD)
            new_w = w / (1.0 + m)
            if new_w > 0:
                new_w = max(new_w, WEIGHT_FLOOR)
            updated[combo] = new_w
        return Range(updated)

    @staticmethod
    def normalize_and_prune(
        range_: Range,
        action: ActionKind | None = None,
        threshold: float | None = None,
    ) -> Range:
        """Drop combos below the prune threshold, then normalize to sum 1.

        Args:
            range_: Raw (updated) range.
            action: The action that produced the weights; folds prune
                    with a much lower threshold.
            threshold: Optional override of the default threshold.

        Returns:
            A normalized range, or an empty range when no mass remains.
        """
        tau = prune_threshold(len(range_), action, threshold)
        kept = {c: w for c, w in range_.items() if w >= tau}
        pruned = Range(kept).normalized()
        if pruned.is_empty and not range_.is_empty:
            logger.warning(
                "Range collapsed: %d combos pruned at tau=%g", len(range_), tau,
            )
        return pruned

    @staticmethod
    def range_at(
        hand: Hand,
        player_id: str,
        index: int,
        dead_cards: Iterable[Card],
        threshold: float | None = None,
    ) -> RangeUpdate:
        """A player's range after their actions up to and including `index`.

        Starts from the preflop prior on the known dead cards, then for
        each of the player's postflop actions: filter, update on the board
        of that action's street, normalize and prune. Blind posts and
        actions before the flop leave the prior untouched.

        Args:
            hand: The hand being analyzed.
            player_id: Player whose range is tracked.
            index: Last action index to take into account.
            dead_cards: Cards known not to be in the player's hand.
            threshold: Optional prune threshold override.

        Returns:
            RangeUpdate with a normalized range (empty if it collapsed).
        """
        dead = frozenset(dead_cards)
        range_ = RangeEngine.initialize(dead)
        applied = 0
        for action in hand.betting_actions[: index + 1]:
            if action.player_id != player_id or action.action == ActionKind.POST:
                continue
            board = hand.board_at(action.street)
            if len(board) < 3:
                continue
            range_ = RangeEngine.filter(range_, dead)
            range_ = RangeEngine.update(range_, action.action, board)
            range_ = RangeEngine.normalize_and_prune(
                range_, action.action, threshold,
            )
            applied += 1
            if range_.is_empty:
                error = AnalysisError(
                    ErrorKind.RANGE_COLLAPSED,
                    f"Range of {player_id} collapsed at action {action.action_id}",
                )
                return RangeUpdate(range_, applied, (error,))

        if not range_.is_normalized():
            range_ = range_.normalized()
        logger.debug(
            "Range of %s at index %d: %d combos after %d actions",
            player_id, index, len(range_), applied,
        )
        return RangeUpdate(range_, applied)
