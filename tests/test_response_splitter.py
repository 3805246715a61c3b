"""Tests for splitting a range into fold / call / raise buckets."""

import random

import pytest

from poker_ev.analysis.data_structures import FrequencyTriple
from poker_ev.analysis.response_splitter import (
    DEFAULT_TOLERANCE,
    ResponseRangeSplitter,
)
from poker_ev.strategy.range_engine import Range, RangeEngine
from poker_ev.strategy.range_strength import RangeStrengthAnalyzer
from poker_ev.utils.card import Card, Combo
from poker_ev.utils.constants import Response


def _cards(s: str) -> list[Card]:
    return [Card.from_str(c) for c in s.split()]


FLOP = _cards("2s 7h Kd")


def _entries(board=FLOP, dead="Ac Qd"):
    r = RangeEngine.initialize(_cards(dead) + board).normalized()
    return RangeStrengthAnalyzer.evaluate(r, board)


class TestSplit:
    def setup_method(self):
        self.splitter = ResponseRangeSplitter()
        self.entries = _entries()

    def test_buckets_partition_the_range(self):
        split = self.splitter.split(self.entries, (0.6, 0.3, 0.1), "h1", "a1")
        ids = [e.combo.id for r in Response for e in split.bucket(r)]
        assert len(ids) == len(set(ids)) == len(self.entries)
        assert split.total_weight == pytest.approx(1.0)

    @pytest.mark.parametrize(
        "target", [(0.6, 0.3, 0.1), (0.2, 0.5, 0.3), (0.9, 0.1, 0.0)],
    )
    def test_masses_within_tolerance(self, target):
        split = self.splitter.split(self.entries, target, "h1", "a1")
        for response in Response:
            assert split.deviation(response) <= DEFAULT_TOLERANCE

    def test_accepts_frequency_triple(self):
        triple = FrequencyTriple(fold=0.5, call=0.4, raise_=0.1)
        split = self.splitter.split(self.entries, triple, "h1", "a1")
        assert split.target == (0.5, 0.4, 0.1)

    def test_deterministic(self):
        a = self.splitter.split(self.entries, (0.6, 0.3, 0.1), "h1", "a1")
        b = ResponseRangeSplitter().split(self.entries, (0.6, 0.3, 0.1), "h1", "a1")
        for response in Response:
            assert a.bucket(response) == b.bucket(response)
        assert a.key_ranges == b.key_ranges

    def test_strong_combos_do_not_fold_first(self):
        split = self.splitter.split(self.entries, (0.6, 0.3, 0.1), "h1", "a1")
        summary = split.summary()
        assert summary["raise"]["average_strength"] > summary["fold"]["average_strength"]

    def test_keys_deduplicated(self):
        split = self.splitter.split(self.entries, (0.6, 0.3, 0.1), "h1", "a1")
        keys = [k for r in Response for k in split.keys(r)]
        assert len(keys) == len(set(keys))
        total = sum(w for r in Response for _, w in split.key_ranges[r])
        assert total == pytest.approx(1.0)

    def test_confidence_in_unit_interval(self):
        split = self.splitter.split(self.entries, (0.6, 0.3, 0.1), "h1", "a1")
        assert 0.0 < split.confidence <= 1.0

    def test_empty_range(self):
        split = self.splitter.split([], (0.6, 0.3, 0.1), "h1", "a1")
        assert split.fold == split.call == split.raise_ == ()
        assert split.mass(Response.FOLD) == 0.0
        assert split.confidence == 0.0

    def test_single_combo_lands_somewhere(self):
        r = Range({Combo.from_str("KcKh"): 1.0})
        entries = RangeStrengthAnalyzer.evaluate(r, FLOP)
        split = self.splitter.split(entries, (0.6, 0.3, 0.1), "h1", "a1")
        assert sum(len(split.bucket(resp)) for resp in Response) == 1

    def test_rebalance_flag(self):
        """An all-raise target cannot be met by the coin flips alone."""
        split = self.splitter.split(self.entries, (0.0, 0.0, 1.0), "h1", "a1")
        assert split.rebalanced
        assert split.mass(Response.RAISE) == pytest.approx(1.0)

    def test_rebalance_fills_raise_then_call_then_fold(self):
        split = self.splitter.split(self.entries, (0.1, 0.1, 0.8), "h1", "a1")
        assert split.rebalanced

        raised = {e.combo.id for e in split.bucket(Response.RAISE)}
        called = {e.combo.id for e in split.bucket(Response.CALL)}
        total = sum(e.weight for e in self.entries)
        heaviest = sorted(
            enumerate(self.entries),
            key=lambda p: (-p[1].weight, -p[1].strength, p[0]),
        )
        cumulative = 0.0
        for _, entry in heaviest:
            cumulative += entry.weight / total
            if cumulative <= 0.79:
                assert entry.combo.id in raised
            elif cumulative <= 0.88:
                assert entry.combo.id in raised | called
        assert split.mass(Response.RAISE) == pytest.approx(0.8, abs=DEFAULT_TOLERANCE)

    def test_random_targets_keep_masses_on_simplex(self):
        rng = random.Random(7)
        boards = [FLOP, _cards("9s Ts Js"), _cards("2s 7h Kd 9c 4h")]
        entries = {i: _entries(board) for i, board in enumerate(boards)}
        for n in range(60):
            parts = [rng.random() for _ in range(3)]
            target = tuple(p / sum(parts) for p in parts)
            split = self.splitter.split(entries[n % 3], target, "h1", f"a{n}")
            masses = [split.mass(r) for r in Response]
            assert all(0.0 <= m <= 1.0 for m in masses)
            assert sum(masses) == pytest.approx(1.0)
            for response in Response:
                assert split.deviation(response) <= DEFAULT_TOLERANCE
