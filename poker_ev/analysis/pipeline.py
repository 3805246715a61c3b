"""HandAnalyzer: per-hand orchestrator of the response-distribution core.

For every hero decision point it rebuilds both ranges from the action
history, summarizes the responder's range on the board, predicts the
(fold, call, raise) response, splits the range into response buckets,
and prices the hero action against alternative candidates.

Includes structured logging per hand and a resilience wrapper per
action: an unexpected failure yields a fallback record with a neutral
triple and zero confidence, and the remaining actions still run.
"""

from __future__ import annotations

import logging
import time

from poker_ev.analysis.action_context import (
    PlayerAction,
    PotOdds,
    amount_to_call,
    describe_action,
    find_responder,
    pot_before,
    pot_odds_for_action,
    stack_behind,
)
from poker_ev.analysis.config import AnalysisConfig
from poker_ev.analysis.data_structures import (
    ActionAnalysis,
    BranchEVs,
    CandidateAction,
    FrequencyTriple,
    HandAnalysis,
)
from poker_ev.analysis.ev_composer import (
    classify_action,
    compare_actions,
    compose_branch_evs,
    showdown_ev,
    weight_outcomes,
)
from poker_ev.analysis.frequency_estimator import FrequencyEstimator
from poker_ev.analysis.raise_sizing import estimate_raise_sizing
from poker_ev.analysis.response_splitter import ResponseRangeSplitter
from poker_ev.core.errors import AnalysisError, ErrorKind
from poker_ev.core.hand_evaluator import HandEvaluator
from poker_ev.core.hand_record import HERO_ID, Hand
from poker_ev.strategy.range_engine import RangeEngine
from poker_ev.strategy.range_strength import (
    RangeStrength,
    RangeStrengthAnalyzer,
    WeightedCombo,
)
from poker_ev.utils.card import Card, Combo
from poker_ev.utils.constants import (
    AGGRESSIVE_ACTIONS,
    ActionKind,
    Classification,
    Response,
)

logger = logging.getLogger("poker_ev.analysis")

# Equity assumed when the hero's cards are unknown
UNKNOWN_EQUITY = 0.5

# Confidence ceiling once the responder's range has collapsed
COLLAPSED_CONFIDENCE_CAP = 0.2

# Alternative sizings priced at every decision point, as pot fractions
CANDIDATE_FRACTIONS: tuple[tuple[str, float], ...] = (
    ("half_pot", 0.5),
    ("pot", 1.0),
)

_SAME_AMOUNT = 1e-9


class HandAnalyzer:
    """Top-level analyzer for hero decisions in one hand.

    Implements HandAnalyzerProtocol so the driver can take any analyzer.

    Usage:
        analyzer = HandAnalyzer(load_analysis_config())
        analysis = analyzer.analyze_hand(hand, "player-7")
    """

    def __init__(self, config: AnalysisConfig | None = None) -> None:
        self._config = config or AnalysisConfig()
        self._estimator = FrequencyEstimator(self._config.neutral_prior)
        self._splitter = ResponseRangeSplitter(
            self._config.split_tolerance, self._config.seed_salt,
        )

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    def analyze_hand(self, hand: Hand, hero_id: str) -> HandAnalysis:
        """Analyze every hero decision point of a hand.

        The hand is first canonicalized around the hero, so the output
        does not depend on the opponents' ids or absolute seat numbers.

        Args:
            hand: A validated hand record.
            hero_id: Id of the player whose decisions are analyzed.

        Returns:
            HandAnalysis with one record per non-post hero action. A hero
            missing from the hand gives no records and an error.
        """
        t_start = time.perf_counter()
        try:
            canonical = hand.canonicalize(hero_id)
        except ValueError as e:
            logger.warning("Skipping hand %s: %s", hand.hand_id, e)
            error = AnalysisError(ErrorKind.INPUT_SHAPE_MISMATCH, str(e))
            return HandAnalysis(hand.hand_id, hero_id, errors=(error,))

        records = [
            self.analyze_action(canonical, index)
            for index, action in enumerate(canonical.betting_actions)
            if action.player_id == HERO_ID and action.action != ActionKind.POST
        ]

        elapsed_ms = (time.perf_counter() - t_start) * 1000
        logger.info(
            "Hand %s: %d hero decisions, %s (%.1fms)",
            hand.hand_id,
            len(records),
            ", ".join(f"{r.action}={r.classification}" for r in records) or "none",
            elapsed_ms,
        )
        return HandAnalysis(hand.hand_id, hero_id, tuple(records))

    def analyze_action(self, hand: Hand, index: int) -> ActionAnalysis:
        """Analyze the hero action at `index` of a canonicalized hand.

        Resilience: if any step raises an unexpected exception, logs the
        error and returns a fallback record (neutral triple, confidence 0).
        """
        t_start = time.perf_counter()
        actions = hand.betting_actions
        if not 0 <= index < len(actions) or actions[index].player_id != HERO_ID:
            error = AnalysisError(
                ErrorKind.INPUT_SHAPE_MISMATCH,
                f"Index {index} is not a hero action in hand {hand.hand_id}",
            )
            return self._fallback_record(hand, index, [error])

        try:
            record = self._analyze_action_inner(hand, index)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - t_start) * 1000
            logger.exception(
                "Analysis of %s failed after %.1fms, returning fallback",
                actions[index].action_id, elapsed_ms,
            )
            error = AnalysisError(
                ErrorKind.INPUT_SHAPE_MISMATCH, f"analysis failed: {e}",
            )
            return self._fallback_record(hand, index, [error])

        elapsed_ms = (time.perf_counter() - t_start) * 1000
        logger.debug(
            "%s %s %.2f: ev=%.3f best=%s delta=%.3f (%s, %.1fms)",
            record.street, record.action, record.amount, record.total_ev,
            record.best_label, record.delta, record.classification, elapsed_ms,
        )
        return record

    def _analyze_action_inner(self, hand: Hand, index: int) -> ActionAnalysis:
        """Core per-action logic, separated for clean error handling."""
        cfg = self._config
        action = hand.betting_actions[index]
        board = hand.board_at(action.street)
        errors: list[AnalysisError] = []

        if 0 < len(board) < 3:
            errors.append(AnalysisError(
                ErrorKind.INSUFFICIENT_BOARD,
                f"{len(board)} board cards on the {action.street}",
            ))

        hero = hand.player(HERO_ID)
        hero_cards = hero.hole_cards if hero and len(hero.hole_cards) == 2 else ()
        if not hero_cards:
            errors.append(AnalysisError(
                ErrorKind.INPUT_SHAPE_MISMATCH, "hero hole cards are unknown",
            ))

        responder = find_responder(hand, index, HERO_ID)
        if responder is None:
            errors.append(AnalysisError(
                ErrorKind.INPUT_SHAPE_MISMATCH, "no active opponent to respond",
            ))
            return self._fallback_record(hand, index, errors)

        # --- Ranges ---
        shown = _shown_cards(hand, exclude=(HERO_ID, responder))
        villain_update = RangeEngine.range_at(
            hand, responder, index, (*hero_cards, *board, *shown),
            cfg.prune_threshold,
        )
        hero_update = RangeEngine.range_at(
            hand, HERO_ID, index, (*board, *_shown_cards(hand, exclude=(HERO_ID,))),
            cfg.prune_threshold,
        )
        errors.extend(villain_update.errors)
        errors.extend(hero_update.errors)

        summary = RangeStrengthAnalyzer.analyze(
            villain_update.range, board, cfg.report_count,
        )
        hero_entries = RangeStrengthAnalyzer.evaluate(hero_update.range, board)

        if hero_cards:
            evaluation = HandEvaluator.evaluate(Combo.of(*hero_cards), board)
            hero_strength = evaluation.strength
            equity = HandEvaluator.equity(hero_strength, action.street)
        else:
            hero_strength = None
            equity = UNKNOWN_EQUITY

        # --- Response prediction ---
        context = describe_action(hand, index, responder, hero_strength)
        pot_odds = pot_odds_for_action(hand, index, responder)
        pot = pot_before(hand, index)
        to_call = amount_to_call(hand, index, HERO_ID)
        villain_behind = stack_behind(hand, index, responder)

        if action.action in AGGRESSIVE_ACTIONS:
            estimate = self._estimator.estimate(summary, pot_odds, context)
            triple = estimate.triple
            errors.extend(estimate.errors)
            branch_evs = self._bet_branches(
                pot, action.amount_bb, equity, villain_behind, pot_odds,
            )
        else:
            triple = FrequencyTriple.passive(f"hero {action.action}: no bet to answer")
            branch_evs = BranchEVs(
                fold=0.0,
                call=_passive_ev(action.action, pot, action.amount_bb, equity),
                raise_=0.0,
            )

        responses = self._splitter.split(
            summary.entries, triple, hand.hand_id, action.action_id,
        )
        total_ev = weight_outcomes(branch_evs, triple)

        # --- Candidates ---
        hero_label = f"actual:{action.action}"
        candidates = self._candidates(
            hand, index, responder, context, summary, equity,
            hero_label, total_ev, to_call,
        )
        comparison = compare_actions(candidates, hero_label)
        classification = classify_action(
            comparison.delta, cfg.classification_threshold,
        )

        confidence = 0.5 * triple.overall_confidence + 0.5 * responses.confidence
        if villain_update.collapsed:
            confidence = min(confidence, COLLAPSED_CONFIDENCE_CAP)

        trace = (
            *triple.trace,
            f"split: fold {responses.mass(Response.FOLD):.3f}, "
            f"call {responses.mass(Response.CALL):.3f}, "
            f"raise {responses.mass(Response.RAISE):.3f}"
            f"{' (rebalanced)' if responses.rebalanced else ''}",
            f"ev: fold {branch_evs.fold:.3f}, call {branch_evs.call:.3f}, "
            f"raise {branch_evs.raise_:.3f} -> {total_ev:.3f}",
            f"best: {comparison.best.label} ({comparison.best.ev:.3f}), "
            f"delta {comparison.delta:.3f}",
        )

        return ActionAnalysis(
            hand_id=hand.hand_id,
            action_id=action.action_id,
            action_index=index,
            street=action.street.value,
            action=action.action.value,
            amount=action.amount_bb,
            villain_id=responder,
            hero_equity=equity,
            hero_range=_hero_view(hero_entries),
            villain_range=_villain_view(summary.entries),
            villain_summary=summary,
            player_action=context,
            pot_odds=pot_odds,
            frequencies=triple,
            responses=responses,
            branch_evs=branch_evs,
            total_ev=total_ev,
            candidates=comparison.ranked,
            best_label=comparison.best.label,
            delta=comparison.delta,
            classification=classification,
            confidence=confidence,
            trace=trace,
            errors=tuple(errors),
        )

    # ------------------------------------------------------------------
    # EV helpers
    # ------------------------------------------------------------------

    def _bet_branches(
        self,
        pot: float,
        bet: float,
        equity: float,
        villain_behind: float,
        pot_odds: PotOdds,
    ) -> BranchEVs:
        # Chips the villain can still put in after calling the bet
        raise_room = villain_behind - pot_odds.call_amount
        if raise_room > 0:
            villain_raise = estimate_raise_sizing(
                pot, bet, villain_behind, pot_odds.spr,
            ).expected
        else:
            villain_raise = 0.0
        return compose_branch_evs(
            pot, bet, equity, villain_raise,
            self._config.rake_pct, self._config.rake_cap,
        )

    def _candidates(
        self,
        hand: Hand,
        index: int,
        responder: str,
        context: PlayerAction,
        summary: RangeStrength,
        equity: float,
        hero_label: str,
        hero_ev: float,
        to_call: float,
    ) -> list[CandidateAction]:
        """The actual action plus the standard alternatives at this spot."""
        action = hand.betting_actions[index]
        pot = pot_before(hand, index)
        hero_behind = stack_behind(hand, index, HERO_ID)
        villain_behind = stack_behind(hand, index, responder)

        candidates = [CandidateAction(hero_label, hero_ev, action.amount_bb)]
        taken = {action.action}

        if to_call > 0:
            if ActionKind.FOLD not in taken:
                candidates.append(CandidateAction("fold", 0.0))
            if ActionKind.CALL not in taken:
                call = min(to_call, hero_behind)
                candidates.append(
                    CandidateAction("call", showdown_ev(pot, call, equity), call),
                )
        elif ActionKind.CHECK not in taken:
            candidates.append(CandidateAction("check", showdown_ev(pot, 0.0, equity)))

        if hero_behind <= to_call:
            return candidates

        kind = ActionKind.RAISE if to_call > 0 else ActionKind.BET
        for name, fraction in CANDIDATE_FRACTIONS:
            amount = to_call + (pot + to_call) * fraction
            is_all_in = amount >= hero_behind
            amount = min(amount, hero_behind)
            if (
                action.action in AGGRESSIVE_ACTIONS
                and abs(amount - action.amount_bb) <= _SAME_AMOUNT
            ):
                continue
            alt_context = context.with_bet(amount, kind, is_all_in)
            alt_odds = pot_odds_for_action(hand, index, responder, bet_size=amount)
            alt_triple = self._estimator.estimate(summary, alt_odds, alt_context).triple
            alt_branches = self._bet_branches(pot, amount, equity, villain_behind, alt_odds)
            candidates.append(CandidateAction(
                f"{kind}_{name}",
                weight_outcomes(alt_branches, alt_triple),
                amount,
                {"fold": alt_triple.fold, "call": alt_triple.call, "raise": alt_triple.raise_},
            ))
        return candidates

    # ------------------------------------------------------------------
    # Fallback
    # ------------------------------------------------------------------

    def _fallback_record(
        self, hand: Hand, index: int, errors: list[AnalysisError],
    ) -> ActionAnalysis:
        actions = hand.betting_actions
        action = actions[index] if 0 <= index < len(actions) else None
        triple = FrequencyTriple.neutral(self._config.neutral_prior, "fallback")
        return ActionAnalysis(
            hand_id=hand.hand_id,
            action_id=action.action_id if action else f"{hand.hand_id}-{index}",
            action_index=index,
            street=action.street.value if action else "",
            action=action.action.value if action else "",
            amount=action.amount_bb if action else 0.0,
            villain_id=None,
            hero_equity=0.0,
            hero_range=(),
            villain_range=(),
            villain_summary=None,
            player_action=None,
            pot_odds=None,
            frequencies=triple,
            responses=None,
            branch_evs=BranchEVs(0.0, 0.0, 0.0),
            total_ev=0.0,
            candidates=(),
            best_label="",
            delta=0.0,
            classification=Classification.NEUTRAL,
            confidence=0.0,
            trace=triple.trace,
            errors=tuple(errors),
        )


def _shown_cards(hand: Hand, exclude: tuple[str, ...]) -> list[Card]:
    return [
        card
        for p in hand.players if p.player_id not in exclude
        for card in p.hole_cards
    ]


def _passive_ev(kind: ActionKind, pot: float, amount: float, equity: float) -> float:
    """Showdown EV of a check or call; folding is worth 0."""
    match kind:
        case ActionKind.FOLD:
            return 0.0
        case ActionKind.CHECK:
            return showdown_ev(pot, 0.0, equity)
        case _:
            return showdown_ev(pot, amount, equity)


def _hero_view(entries: list[WeightedCombo]) -> tuple[tuple[str, float], ...]:
    """Hero's perceived range by class key with weighted strength."""
    view = _villain_view(entries)
    return tuple((key, strength) for key, _, strength in view)


def _villain_view(
    entries: list[WeightedCombo] | tuple[WeightedCombo, ...],
) -> tuple[tuple[str, float, float], ...]:
    """(key, weight, strength) per class key, strongest first."""
    weight: dict[str, float] = {}
    weighted_strength: dict[str, float] = {}
    for e in entries:
        key = e.combo.key
        weight[key] = weight.get(key, 0.0) + e.weight
        weighted_strength[key] = weighted_strength.get(key, 0.0) + e.weight * e.strength
    view = [
        (key, w, weighted_strength[key] / w if w > 0 else 0.0)
        for key, w in weight.items()
    ]
    view.sort(key=lambda item: (-item[2], item[0]))
    return tuple(view)
