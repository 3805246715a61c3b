"""Branch EV composition, candidate comparison and classification.

All amounts are in big blinds. Each opponent response (fold, call,
raise) gets its own EV contract; the total EV of a hero action weights
those by the predicted response frequencies.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from poker_ev.analysis.data_structures import (
    ActionComparison,
    BranchEVs,
    CandidateAction,
    FrequencyTriple,
)
from poker_ev.utils.constants import Classification

logger = logging.getLogger("poker_ev.analysis")

DEFAULT_CLASSIFICATION_THRESHOLD = 0.05
PROBABILITY_TOLERANCE = 1e-6
TIE_TOLERANCE = 1e-9


def _clamp_equity(equity: float) -> float:
    return max(0.0, min(1.0, equity))


def rake_for(pot: float, rake_pct: float = 0.0, rake_cap: float | None = None) -> float:
    rake = pot * rake_pct
    if rake_cap is not None:
        rake = min(rake, rake_cap)
    return max(0.0, rake)


def showdown_ev(pot: float, invest: float, equity: float) -> float:
    """EV of putting `invest` more in to see a showdown for `pot`.

    Args:
        pot: Pot before hero's investment, including any bet to call.
        invest: Chips hero adds.
        equity: Hero's share of the pot at showdown.
    """
    equity = _clamp_equity(equity)
    return equity * (pot + invest) - (1.0 - equity) * invest


def ev_if_opponent_folds(
    pot_before_action: float,
    rake_pct: float = 0.0,
    rake_cap: float | None = None,
) -> float:
    """Hero wins the pot as it stood before the bet, less rake."""
    if pot_before_action <= 0:
        return 0.0
    return pot_before_action - rake_for(pot_before_action, rake_pct, rake_cap)


def ev_if_opponent_calls(
    pot_before_action: float, bet_size: float, equity: float,
) -> float:
    """Showdown for the pot plus both bets: eq (pot + 2 bet) - (1 - eq) bet."""
    return showdown_ev(pot_before_action + bet_size, bet_size, equity)


def ev_if_opponent_raises(
    pot_before_action: float,
    hero_bet: float,
    villain_raise: float,
    hero_equity: float,
) -> tuple[float, str]:
    """EV of the raise branch and hero's better reply to the raise.

    Hero either calls, risking the bet for the pot plus both
    investments, or folds and loses the bet. A non-positive raise size
    leaves nothing to reply to and falls back to the call branch.

    Returns:
        (ev, reply) where reply is "call" or "fold".
    """
    if villain_raise <= 0:
        return ev_if_opponent_calls(pot_before_action, hero_bet, hero_equity), "call"
    equity = _clamp_equity(hero_equity)
    call_ev = (
        equity * (pot_before_action + hero_bet + villain_raise)
        - (1.0 - equity) * hero_bet
    )
    fold_ev = -hero_bet
    if call_ev >= fold_ev:
        return call_ev, "call"
    return fold_ev, "fold"


def compose_branch_evs(
    pot_before_action: float,
    bet_size: float,
    equity: float,
    villain_raise: float,
    rake_pct: float = 0.0,
    rake_cap: float | None = None,
) -> BranchEVs:
    """All three branch EVs for a hero bet of `bet_size`."""
    raise_ev, reply = ev_if_opponent_raises(
        pot_before_action, bet_size, villain_raise, equity,
    )
    return BranchEVs(
        fold=ev_if_opponent_folds(pot_before_action, rake_pct, rake_cap),
        call=ev_if_opponent_calls(pot_before_action, bet_size, equity),
        raise_=raise_ev,
        villain_raise=villain_raise,
        hero_reply=reply,
    )


def weight_outcomes(
    branch_evs: BranchEVs | Sequence[float],
    frequencies: FrequencyTriple | Sequence[float],
) -> float:
    """Frequency-weighted total EV.

    Probabilities that do not sum to 1 (beyond PROBABILITY_TOLERANCE) are
    renormalized first; all-zero probabilities give 0.
    """
    evs = (
        (branch_evs.fold, branch_evs.call, branch_evs.raise_)
        if isinstance(branch_evs, BranchEVs) else tuple(branch_evs)
    )
    probs = (
        frequencies.as_tuple()
        if isinstance(frequencies, FrequencyTriple) else tuple(frequencies)
    )
    if len(evs) != len(probs):
        raise ValueError(f"{len(evs)} EVs but {len(probs)} probabilities")
    total = sum(probs)
    if total <= 0:
        return 0.0
    if abs(total - 1.0) > PROBABILITY_TOLERANCE:
        probs = tuple(p / total for p in probs)
    return sum(p * ev for p, ev in zip(probs, evs))


def compare_actions(
    candidates: Sequence[CandidateAction], hero_label: str,
) -> ActionComparison:
    """Rank candidates by EV and measure the hero's gap to the best.

    Args:
        candidates: Candidate actions; labels must be unique.
        hero_label: Label of the action the hero actually took.

    Raises:
        ValueError: If there are no candidates or the hero label is absent.
    """
    if not candidates:
        raise ValueError("No candidate actions to compare")
    ranked = tuple(sorted(candidates, key=lambda c: c.ev, reverse=True))
    hero = next((c for c in candidates if c.label == hero_label), None)
    if hero is None:
        raise ValueError(f"Hero action '{hero_label}' is not among the candidates")
    best = ranked[0]
    tied = tuple(c.label for c in ranked if best.ev - c.ev <= TIE_TOLERANCE)
    logger.debug(
        "Best of %d candidates: %s (%.3f), hero %s (%.3f)",
        len(ranked), best.label, best.ev, hero.label, hero.ev,
    )
    return ActionComparison(
        ranked=ranked,
        best=best,
        hero=hero,
        delta=best.ev - hero.ev,
        tied_best=tied,
    )


def classify_action(
    delta: float, threshold: float = DEFAULT_CLASSIFICATION_THRESHOLD,
) -> Classification:
    """Classify the hero action by its EV gap to the best candidate."""
    if delta <= threshold:
        return Classification.POSITIVE
    if delta <= 2 * threshold:
        return Classification.NEUTRAL
    return Classification.NEGATIVE
