"""Partition of a range into fold / call / raise buckets.

Given the responder's evaluated range and a target frequency triple, the
splitter decides which combos make up each response. Combos are walked
strongest first and placed by a category/draw rule; the rule's coin
flips come from a hash of (hand id, action id, combo, salt), so a split
is reproducible. If a bucket's mass misses its target by more than the
tolerance, a deterministic rebalance pass fixes the masses.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Sequence

from poker_ev.analysis.data_structures import FrequencyTriple, ResponseRanges
from poker_ev.strategy.range_strength import WeightedCombo
from poker_ev.utils.constants import HandCategory, Response

logger = logging.getLogger("poker_ev.analysis")

DEFAULT_TOLERANCE = 0.05

# Slack when testing whether a combo still fits in a bucket
_FIT_EPSILON = 1e-12

_STRONG_CATEGORIES = frozenset({
    HandCategory.STRAIGHT_FLUSH,
    HandCategory.QUADS,
    HandCategory.FULL_HOUSE,
    HandCategory.FLUSH,
    HandCategory.STRAIGHT,
    HandCategory.SET,
    HandCategory.TRIPS,
})

_MEDIUM_CATEGORIES = frozenset({
    HandCategory.TWO_PAIR,
    HandCategory.OVERPAIR,
    HandCategory.TOP_PAIR,
})

_REBALANCE_PRIORITY = (Response.RAISE, Response.CALL, Response.FOLD)


def _unit_hash(*parts: str) -> float:
    """Deterministic value in [0, 1) from the given parts."""
    digest = hashlib.sha256("|".join(parts).encode()).digest()
    return int.from_bytes(digest[:8], "big") / 2**64


def _raise_probability(entry: WeightedCombo) -> float:
    if entry.category in _STRONG_CATEGORIES:
        return 0.8
    if entry.category in _MEDIUM_CATEGORIES:
        return 0.4 if entry.draws else 0.0
    return 0.1


def _call_probability(entry: WeightedCombo) -> float:
    if entry.category in _STRONG_CATEGORIES:
        return 1.0
    if entry.category in _MEDIUM_CATEGORIES:
        return 0.7
    return 0.5 if entry.draws else 0.2


class ResponseRangeSplitter:
    """Splits a weighted range into response buckets matching a target.

    Usage:
        splitter = ResponseRangeSplitter(salt="run-1")
        split = splitter.split(entries, triple, hand_id, action_id)
        split.mass(Response.FOLD)
    """

    def __init__(self, tolerance: float = DEFAULT_TOLERANCE, salt: str = "") -> None:
        self._tolerance = tolerance
        self._salt = salt

    def split(
        self,
        entries: Sequence[WeightedCombo],
        target: FrequencyTriple | tuple[float, float, float],
        hand_id: str,
        action_id: str,
    ) -> ResponseRanges:
        """Split evaluated combos into fold / call / raise buckets.

        Args:
            entries: The responder's range, evaluated on the board.
            target: Target (fold, call, raise) masses.
            hand_id: Hand identifier, part of the allocation seed.
            action_id: Action identifier, part of the allocation seed.

        Returns:
            ResponseRanges whose buckets partition `entries`.
        """
        targets = target.as_tuple() if isinstance(target, FrequencyTriple) else tuple(target)
        goal = dict(zip(Response, targets))
        total = sum(e.weight for e in entries)
        if not entries or total <= 0:
            return ResponseRanges(fold=(), call=(), raise_=(), target=targets)

        shares = [e.weight / total for e in entries]
        order = sorted(range(len(entries)), key=lambda i: -entries[i].strength)

        assignment: dict[int, Response] = {}
        filled = {r: 0.0 for r in Response}
        for i in order:
            response = self._tentative(entries[i], filled, goal, hand_id, action_id)
            assignment[i] = response
            filled[response] += shares[i]

        rebalanced = any(
            abs(filled[r] - goal[r]) > self._tolerance for r in Response
        )
        if rebalanced:
            logger.debug(
                "Rebalancing split %s/%s: %s vs target %s",
                hand_id, action_id,
                {r.value: round(m, 3) for r, m in filled.items()},
                {r.value: round(t, 3) for r, t in goal.items()},
            )
            assignment, filled = self._rebalance(entries, shares, goal)

        buckets: dict[Response, list[WeightedCombo]] = {r: [] for r in Response}
        for i in order:
            buckets[assignment[i]].append(entries[i])

        accuracy = 1.0 - sum(abs(filled[r] - goal[r]) for r in Response) / 2
        smallest = min(len(b) for b in buckets.values())
        confidence = (
            0.6 * max(0.0, accuracy)
            + 0.2 * min(len(entries) / 100, 1.0)
            + 0.2 * min(smallest / 10, 1.0)
        )

        return ResponseRanges(
            fold=tuple(buckets[Response.FOLD]),
            call=tuple(buckets[Response.CALL]),
            raise_=tuple(buckets[Response.RAISE]),
            target=targets,
            key_ranges=self._deduplicate(entries, shares, order, assignment),
            rebalanced=rebalanced,
            confidence=confidence,
        )

    def _tentative(
        self,
        entry: WeightedCombo,
        filled: dict[Response, float],
        goal: dict[Response, float],
        hand_id: str,
        action_id: str,
    ) -> Response:
        seed = (hand_id, action_id, entry.combo.id, self._salt)
        if filled[Response.RAISE] < goal[Response.RAISE]:
            if _unit_hash(*seed, "raise") < _raise_probability(entry):
                return Response.RAISE
        if filled[Response.CALL] < goal[Response.CALL]:
            if _unit_hash(*seed, "call") < _call_probability(entry):
                return Response.CALL
        return Response.FOLD

    @staticmethod
    def _rebalance(
        entries: Sequence[WeightedCombo],
        shares: list[float],
        goal: dict[Response, float],
    ) -> tuple[dict[int, Response], dict[Response, float]]:
        """Reassign every combo, heaviest first, to the first of raise ->
        call -> fold with room for it, else to the bucket furthest short."""
        order = sorted(
            range(len(entries)),
            key=lambda i: (-entries[i].weight, -entries[i].strength, i),
        )
        filled = {r: 0.0 for r in Response}
        assignment: dict[int, Response] = {}
        for i in order:
            share = shares[i]
            choice = next(
                (
                    r for r in _REBALANCE_PRIORITY
                    if filled[r] + share <= goal[r] + _FIT_EPSILON
                ),
                None,
            )
            if choice is None:
                choice = max(
                    _REBALANCE_PRIORITY, key=lambda r: goal[r] - filled[r],
                )
            assignment[i] = choice
            filled[choice] += share
        return assignment, filled

    @staticmethod
    def _deduplicate(
        entries: Sequence[WeightedCombo],
        shares: list[float],
        order: list[int],
        assignment: dict[int, Response],
    ) -> dict[Response, tuple[tuple[str, float], ...]]:
        """Canonical-key view: each key lives in the first bucket any of
        its combos landed in, carrying the summed weight of all of them."""
        home: dict[str, Response] = {}
        weight: dict[str, float] = {}
        for i in order:
            key = entries[i].combo.key
            home.setdefault(key, assignment[i])
            weight[key] = weight.get(key, 0.0) + shares[i]
        out: dict[Response, list[tuple[str, float]]] = {r: [] for r in Response}
        for key, response in home.items():
            out[response].append((key, weight[key]))
        return {r: tuple(v) for r, v in out.items()}
