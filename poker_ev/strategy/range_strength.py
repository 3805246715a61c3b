"""Weighted strength summary of a range on a board.

Evaluates every combo of a range on the board and reduces the weighted
results to the figures the frequency estimator and splitter work from:
averages, percentage buckets, draw mass, value / bluff-catcher counts,
a coarse strength label and the board texture.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from poker_ev.core.hand_evaluator import ComboEvaluation, HandEvaluator
from poker_ev.strategy.range_engine import Range
from poker_ev.utils.card import Card, Combo
from poker_ev.utils.constants import (
    TOTAL_COMBOS,
    BoardTexture,
    DrawType,
    HandCategory,
    StrengthCategory,
)

# Lower bounds of the distribution buckets, strongest first
DISTRIBUTION_CUTOFFS: tuple[tuple[str, float], ...] = (
    ("very_strong", 0.8),
    ("strong", 0.6),
    ("medium", 0.4),
    ("weak", 0.2),
    ("very_weak", 0.0),
)

STRONG_CUTOFF = 0.7
MEDIUM_CUTOFF = 0.4
DEFAULT_REPORT_COUNT = 10


@dataclass(frozen=True)
class WeightedCombo:
    """A combo's evaluation together with its weight in the range."""

    evaluation: ComboEvaluation
    weight: float

    @property
    def combo(self) -> Combo:
        return self.evaluation.combo

    @property
    def strength(self) -> float:
        return self.evaluation.strength

    @property
    def category(self) -> HandCategory:
        return self.evaluation.category

    @property
    def draws(self) -> frozenset[DrawType]:
        return self.evaluation.draws


@dataclass(frozen=True)
class RangeStrength:
    """Strength summary of a weighted range on one board.

    Percentages are in 0-100; masses and shares are in 0-1.
    """

    average_strength: float = 0.0
    distribution: dict[str, float] = field(default_factory=dict)
    strong_pct: float = 0.0
    medium_pct: float = 0.0
    weak_pct: float = 0.0
    drawing_pct: float = 0.0
    top_combos: tuple[WeightedCombo, ...] = ()
    bottom_combos: tuple[WeightedCombo, ...] = ()
    range_density: float = 0.0
    strength_variance: float = 0.0
    drawing_potential: float = 0.0
    draw_completion: float = 0.0
    nutted_count: int = 0
    value_count: int = 0
    bluff_catcher_count: int = 0
    strength_category: StrengthCategory = StrengthCategory.BALANCED
    board_texture: BoardTexture = BoardTexture.UNKNOWN
    entries: tuple[WeightedCombo, ...] = ()

    @property
    def combo_count(self) -> int:
        return len(self.entries)

    def as_dict(self) -> dict:
        return {
            "average_strength": self.average_strength,
            "distribution": dict(self.distribution),
            "strong_pct": self.strong_pct,
            "medium_pct": self.medium_pct,
            "weak_pct": self.weak_pct,
            "drawing_pct": self.drawing_pct,
            "top": [_entry_dict(e) for e in self.top_combos],
            "bottom": [_entry_dict(e) for e in self.bottom_combos],
            "range_density": self.range_density,
            "strength_variance": self.strength_variance,
            "drawing_potential": self.drawing_potential,
            "draw_completion": self.draw_completion,
            "nutted_count": self.nutted_count,
            "value_count": self.value_count,
            "bluff_catcher_count": self.bluff_catcher_count,
            "strength_category": self.strength_category.value,
            "board_texture": self.board_texture.value,
            "combo_count": self.combo_count,
        }


def _entry_dict(entry: WeightedCombo) -> dict:
    return {
        "combo": entry.combo.id,
        "key": entry.combo.key,
        "category": entry.category.value,
        "strength": entry.strength,
        "weight": entry.weight,
    }


def classify_board_texture(board: Sequence[Card]) -> BoardTexture:
    """Coarse texture of the board.

    paired: some rank appears three or more times; suited: some suit
    appears three or more times; connected: at least two neighbouring
    pairs of distinct ranks are within two of each other; else dry.
    """
    if not board:
        return BoardTexture.UNKNOWN
    if max(Counter(c.rank for c in board).values()) >= 3:
        return BoardTexture.PAIRED
    if max(Counter(c.suit for c in board).values()) >= 3:
        return BoardTexture.SUITED
    values = sorted({c.value for c in board})
    close = sum(1 for a, b in zip(values, values[1:]) if b - a <= 2)
    if close >= 2:
        return BoardTexture.CONNECTED
    return BoardTexture.DRY


def classify_strength(
    average: float, strong_pct: float, medium_pct: float, weak_pct: float,
) -> StrengthCategory:
    """Label a range from its average strength and bucket percentages."""
    if average >= 0.7 and strong_pct >= 60:
        return StrengthCategory.VERY_STRONG
    if average >= 0.6 and strong_pct >= 40:
        return StrengthCategory.STRONG
    if average >= 0.5 and medium_pct >= 40:
        return StrengthCategory.MEDIUM_STRONG
    if average >= 0.4 and medium_pct >= 50:
        return StrengthCategory.MEDIUM
    if average >= 0.3 and weak_pct >= 40:
        return StrengthCategory.MEDIUM_WEAK
    if average < 0.3 or weak_pct >= 60:
        return StrengthCategory.WEAK
    return StrengthCategory.BALANCED


class RangeStrengthAnalyzer:
    """Summarizes how strong a weighted range is on a given board."""

    @staticmethod
    def evaluate(range_: Range, board: Sequence[Card]) -> list[WeightedCombo]:
        """Evaluate every combo of the range, keeping range order."""
        board = tuple(board)
        board_set = frozenset(board)
        return [
            WeightedCombo(HandEvaluator.evaluate(combo, board), w)
            for combo, w in range_.items()
            if not combo.touches(board_set)
        ]

    @staticmethod
    def analyze(
        range_: Range,
        board: Sequence[Card],
        report_count: int = DEFAULT_REPORT_COUNT,
    ) -> RangeStrength:
        """Build the strength summary of a range on a board.

        Args:
            range_: Weighted range (normalized or raw).
            board: Community cards; fewer than three uses preflop strength.
            report_count: How many combos to list at each end.

        Returns:
            RangeStrength; an empty or weightless range gives the default
            summary with only the board texture filled in.
        """
        texture = classify_board_texture(board)
        entries = RangeStrengthAnalyzer.evaluate(range_, board)
        weights = np.array([e.weight for e in entries], dtype=float)
        if not entries or weights.sum() <= 0:
            return RangeStrength(board_texture=texture, entries=tuple(entries))

        strengths = np.array([e.strength for e in entries], dtype=float)
        drawing = np.array([e.evaluation.has_draw for e in entries], dtype=bool)
        shares = weights / weights.sum()

        average = float(np.dot(shares, strengths))
        variance = float(np.dot(shares, (strengths - average) ** 2))

        distribution: dict[str, float] = {}
        upper = np.inf
        for name, cutoff in DISTRIBUTION_CUTOFFS:
            in_bucket = (strengths >= cutoff) & (strengths < upper)
            distribution[name] = float(shares[in_bucket].sum())
            upper = cutoff

        strong_pct = float(shares[strengths >= STRONG_CUTOFF].sum()) * 100
        medium_pct = float(
            shares[(strengths >= MEDIUM_CUTOFF) & (strengths < STRONG_CUTOFF)].sum()
        ) * 100
        weak_pct = float(shares[strengths < MEDIUM_CUTOFF].sum()) * 100
        drawing_mass = float(shares[drawing].sum())

        completion = np.array([
            HandEvaluator.completion_probability(e.draws, len(board))
            for e in entries
        ])
        draw_completion = (
            float(np.dot(shares[drawing], completion[drawing]) / drawing_mass)
            if drawing_mass > 0 else 0.0
        )

        # Stable sort keeps deck order among equal strengths
        order = sorted(range(len(entries)), key=lambda i: -entries[i].strength)
        top = tuple(entries[i] for i in order[:report_count])
        bottom = tuple(entries[i] for i in order[::-1][:report_count])

        return RangeStrength(
            average_strength=average,
            distribution=distribution,
            strong_pct=strong_pct,
            medium_pct=medium_pct,
            weak_pct=weak_pct,
            drawing_pct=drawing_mass * 100,
            top_combos=top,
            bottom_combos=bottom,
            range_density=len(entries) / TOTAL_COMBOS,
            strength_variance=variance,
            drawing_potential=drawing_mass,
            draw_completion=draw_completion,
            nutted_count=sum(1 for e in entries if e.evaluation.is_nutted),
            value_count=sum(1 for e in entries if e.evaluation.is_value),
            bluff_catcher_count=sum(
                1 for e in entries if e.evaluation.is_bluff_catcher
            ),
            strength_category=classify_strength(
                average, strong_pct, medium_pct, weak_pct,
            ),
            board_texture=texture,
            entries=tuple(entries),
        )
