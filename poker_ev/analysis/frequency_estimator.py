"""Response frequency estimation.

Predicts how often the responding opponent folds, calls or raises
against a hero bet. A base fold estimate is built from five weighted
components (sizing theory, a sizing curve, pot odds, range strength and
street patterns). It then runs through fixed stages:

  1. aggregate factors     combined adjustment factor in [0.5, 1.5]
  2. apply adjustments     fold = base fold x factor, clamped
  3. derive call           raise estimate, call = 1 - fold - raise
  4. independent call      call straight from pot odds, consistency check
  5. reconcile raise       average with an independent raise estimate
  6. normalize             fold + call + raise = 1
  7. confidence weighting  blend with the neutral prior by confidence

Every stage appends a line to the trace carried by the result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from poker_ev.analysis.action_context import PlayerAction, PotOdds
from poker_ev.analysis.data_structures import (
    NEUTRAL_PRIOR,
    ComponentConfidence,
    FrequencyTriple,
)
from poker_ev.core.errors import AnalysisError, ErrorKind
from poker_ev.strategy.range_strength import RangeStrength
from poker_ev.utils.constants import (
    ActionKind,
    BetSizing,
    BoardTexture,
    ConfidenceLevel,
    RelativePosition,
    StrengthCategory,
    Street,
)

logger = logging.getLogger("poker_ev.analysis")

NORMALIZATION_TOLERANCE = 1e-3

_HIGH = ConfidenceLevel.HIGH
_MEDIUM = ConfidenceLevel.MEDIUM
_LOW = ConfidenceLevel.LOW


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


# ---------------------------------------------------------------------------
# Base fold frequency
# ---------------------------------------------------------------------------

_BASE_FOLD_WEIGHTS = {
    "gto": 0.25,
    "sizing": 0.25,
    "pot_odds": 0.20,
    "range": 0.20,
    "street": 0.10,
}

_GTO_FOLD: dict[BetSizing, float] = {
    BetSizing.SMALL: 0.4,
    BetSizing.MEDIUM: 0.6,
    BetSizing.LARGE: 0.8,
    BetSizing.VERY_LARGE: 0.9,
}

_STREET_FOLD: dict[Street, dict[BetSizing, float]] = {
    Street.PREFLOP: {
        BetSizing.SMALL: 0.45, BetSizing.MEDIUM: 0.6, BetSizing.LARGE: 0.75,
        BetSizing.VERY_LARGE: 0.85, BetSizing.ALL_IN: 0.65,
    },
    Street.FLOP: {
        BetSizing.SMALL: 0.4, BetSizing.MEDIUM: 0.6, BetSizing.LARGE: 0.8,
        BetSizing.VERY_LARGE: 0.9, BetSizing.ALL_IN: 0.7,
    },
    Street.TURN: {
        BetSizing.SMALL: 0.3, BetSizing.MEDIUM: 0.5, BetSizing.LARGE: 0.7,
        BetSizing.VERY_LARGE: 0.85, BetSizing.ALL_IN: 0.6,
    },
    Street.RIVER: {
        BetSizing.SMALL: 0.25, BetSizing.MEDIUM: 0.4, BetSizing.LARGE: 0.6,
        BetSizing.VERY_LARGE: 0.8, BetSizing.ALL_IN: 0.5,
    },
}


def _all_in_fold(ratio: float) -> float:
    if ratio < 0.2:
        return 0.3
    if ratio < 0.3:
        return 0.5
    if ratio < 0.4:
        return 0.7
    return 0.9


def _gto_fold(action: PlayerAction, pot_odds: PotOdds) -> float:
    if action.sizing == BetSizing.ALL_IN:
        return _all_in_fold(pot_odds.ratio)
    return _GTO_FOLD.get(action.sizing, 0.5)


def _sizing_curve_fold(action: PlayerAction, pot_odds: PotOdds) -> float:
    r = action.bet_to_pot
    match action.sizing:
        case BetSizing.SMALL:
            fold = 0.35 + r * 0.5
        case BetSizing.MEDIUM:
            fold = 0.5 + r * 0.3
        case BetSizing.LARGE:
            fold = 0.75 + r * 0.15
        case BetSizing.VERY_LARGE:
            fold = 0.85 + r * 0.1
        case BetSizing.ALL_IN:
            ratio = pot_odds.ratio
            if ratio < 0.15:
                fold = 0.2
            elif ratio < 0.25:
                fold = 0.4
            elif ratio < 0.35:
                fold = 0.6
            elif ratio < 0.45:
                fold = 0.8
            else:
                fold = 0.9
        case _:
            fold = 0.5
    return _clamp(fold, 0.05, 0.95)


def _pot_odds_fold(pot_odds: PotOdds, strength: RangeStrength) -> float:
    ratio = pot_odds.ratio
    if ratio < 0.2:
        fold = 0.2
    elif ratio < 0.3:
        fold = 0.35
    elif ratio < 0.4:
        fold = 0.5
    elif ratio < 0.5:
        fold = 0.7
    else:
        fold = 0.85
    if strength.drawing_pct > 20 and pot_odds.implied_odds > 1.5:
        fold *= 0.8
    if strength.average_strength > 0.7:
        fold *= 0.7
    elif strength.average_strength < 0.3:
        fold *= 1.3
    return _clamp(fold, 0.05, 0.95)


def _range_fold(action: PlayerAction, strength: RangeStrength) -> float:
    avg = strength.average_strength
    if avg > 0.8:
        fold = 0.2
    elif avg > 0.6:
        fold = 0.35
    elif avg > 0.4:
        fold = 0.5
    elif avg > 0.2:
        fold = 0.7
    else:
        fold = 0.85

    if strength.strong_pct > 30:
        fold *= 0.6
    if strength.weak_pct > 50:
        fold *= 1.4
    if strength.drawing_pct > 30:
        if action.sizing in (BetSizing.SMALL, BetSizing.MEDIUM):
            fold *= 0.7
        elif action.sizing in (BetSizing.LARGE, BetSizing.VERY_LARGE):
            fold *= 1.2
    if action.continuation_bet and avg > 0.6:
        fold *= 0.8
    if action.value_bet and avg < 0.5:
        fold *= 1.3
    if strength.board_texture in (BoardTexture.SUITED, BoardTexture.CONNECTED):
        fold *= 0.85
    elif strength.board_texture == BoardTexture.DRY:
        fold *= 1.1
    return _clamp(fold, 0.05, 0.95)


def _street_fold(action: PlayerAction, strength: RangeStrength) -> float:
    fold = _STREET_FOLD.get(action.street, {}).get(action.sizing, 0.5)
    if action.continuation_bet and action.street == Street.FLOP:
        fold += 0.1
    if strength.average_strength > 0.7:
        fold -= 0.15
    elif strength.average_strength < 0.4:
        fold += 0.15
    if strength.drawing_pct > 30 and action.street != Street.RIVER:
        fold -= 0.15
    return _clamp(fold, 0.05, 0.95)


def base_fold_frequency(
    action: PlayerAction, pot_odds: PotOdds, strength: RangeStrength,
) -> float:
    """Base fold estimate before the estimator's adjustments.

    Returns 0 when there is no bet to fold to, otherwise a weighted blend
    of the five components clamped to [0.05, 0.95].
    """
    if action.sizing == BetSizing.NONE:
        return 0.0
    components = {
        "gto": _gto_fold(action, pot_odds),
        "sizing": _sizing_curve_fold(action, pot_odds),
        "pot_odds": _pot_odds_fold(pot_odds, strength),
        "range": _range_fold(action, strength),
        "street": _street_fold(action, strength),
    }
    fold = sum(_BASE_FOLD_WEIGHTS[k] * v for k, v in components.items())
    logger.debug(
        "Base fold %.3f from %s",
        fold, {k: round(v, 3) for k, v in components.items()},
    )
    return _clamp(fold, 0.05, 0.95)


# ---------------------------------------------------------------------------
# Stage tables
# ---------------------------------------------------------------------------

_RANGE_EFFECT: dict[StrengthCategory, float] = {
    StrengthCategory.VERY_STRONG: -0.30,
    StrengthCategory.STRONG: -0.20,
    StrengthCategory.MEDIUM_STRONG: -0.10,
    StrengthCategory.MEDIUM: 0.0,
    StrengthCategory.BALANCED: 0.0,
    StrengthCategory.MEDIUM_WEAK: 0.10,
    StrengthCategory.WEAK: 0.20,
}

_SIZING_EFFECT: dict[BetSizing, float] = {
    BetSizing.SMALL: -0.05,
    BetSizing.LARGE: 0.05,
    BetSizing.VERY_LARGE: 0.10,
}

_STREET_EFFECT: dict[Street, float] = {
    Street.FLOP: -0.03,
    Street.RIVER: 0.03,
}

_RAISE_BASE: dict[StrengthCategory, float] = {
    StrengthCategory.VERY_STRONG: 0.25,
    StrengthCategory.STRONG: 0.15,
    StrengthCategory.MEDIUM_STRONG: 0.12,
    StrengthCategory.MEDIUM: 0.10,
    StrengthCategory.BALANCED: 0.08,
    StrengthCategory.MEDIUM_WEAK: 0.06,
    StrengthCategory.WEAK: 0.05,
}

# Typical raise rate by street and sizing
_STREET_RAISE_RATE: dict[Street, dict[BetSizing, float]] = {
    Street.PREFLOP: {
        BetSizing.SMALL: 0.10, BetSizing.MEDIUM: 0.10, BetSizing.LARGE: 0.08,
        BetSizing.VERY_LARGE: 0.05, BetSizing.ALL_IN: 0.0,
    },
    Street.FLOP: {
        BetSizing.SMALL: 0.10, BetSizing.MEDIUM: 0.10, BetSizing.LARGE: 0.05,
        BetSizing.VERY_LARGE: 0.02, BetSizing.ALL_IN: 0.0,
    },
    Street.TURN: {
        BetSizing.SMALL: 0.10, BetSizing.MEDIUM: 0.10, BetSizing.LARGE: 0.05,
        BetSizing.VERY_LARGE: 0.03, BetSizing.ALL_IN: 0.0,
    },
    Street.RIVER: {
        BetSizing.SMALL: 0.10, BetSizing.MEDIUM: 0.10, BetSizing.LARGE: 0.10,
        BetSizing.VERY_LARGE: 0.05, BetSizing.ALL_IN: 0.0,
    },
}

_CALL_RANGE_ADJUSTMENT: dict[StrengthCategory, float] = {
    StrengthCategory.VERY_STRONG: 0.10,
    StrengthCategory.STRONG: 0.10,
    StrengthCategory.MEDIUM_STRONG: 0.05,
    StrengthCategory.MEDIUM: 0.0,
    StrengthCategory.BALANCED: 0.0,
    StrengthCategory.MEDIUM_WEAK: -0.10,
    StrengthCategory.WEAK: -0.20,
}

_INDEPENDENT_RAISE_BASE: dict[StrengthCategory, float] = {
    StrengthCategory.VERY_STRONG: 0.35,
    StrengthCategory.STRONG: 0.25,
    StrengthCategory.MEDIUM_STRONG: 0.20,
    StrengthCategory.MEDIUM: 0.15,
    StrengthCategory.BALANCED: 0.12,
    StrengthCategory.MEDIUM_WEAK: 0.08,
    StrengthCategory.WEAK: 0.03,
}

_INDEPENDENT_RAISE_STREET: dict[Street, float] = {
    Street.PREFLOP: 1.0,
    Street.FLOP: 0.8,
    Street.TURN: 1.1,
    Street.RIVER: 1.3,
}

_FOLD_SCORE = {_HIGH: 0.3, _MEDIUM: 0.1, _LOW: -0.2}
_FACTOR_SCORE = {_HIGH: 0.2, _MEDIUM: 0.0, _LOW: -0.1}
_CALL_SCORE = {_HIGH: 0.2, _MEDIUM: 0.0, _LOW: -0.1}
_CONSISTENCY_SCORE = {_HIGH: 0.3, _MEDIUM: 0.1, _LOW: -0.2}
_RAISE_SCORE = {_HIGH: 0.3, _MEDIUM: 0.1, _LOW: -0.2}

# Weight kept by the estimate when blending with the neutral prior
_BLEND_LAMBDA = {_HIGH: 0.95, _MEDIUM: 0.85, _LOW: 0.5}

_SIGNIFICANT_EFFECT = 0.1


# ---------------------------------------------------------------------------
# Stage results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Factors:
    combined: float
    effects: dict[str, float]
    level: ConfidenceLevel


@dataclass(frozen=True)
class _AdjustedFold:
    fold: float
    was_constrained: bool
    valid: bool
    level: ConfidenceLevel


@dataclass(frozen=True)
class _DerivedCall:
    call: float
    raise_: float
    constraint: float
    valid: bool
    level: ConfidenceLevel


@dataclass(frozen=True)
class _IndependentCall:
    call: float
    level: ConfidenceLevel
    consistency: ConfidenceLevel


@dataclass(frozen=True)
class _ReconciledRaise:
    call: float
    raise_: float
    independent: float
    valid: bool
    level: ConfidenceLevel


@dataclass(frozen=True)
class EstimationResult:
    """Estimated triple plus any errors met while producing it."""

    triple: FrequencyTriple
    base_fold: float = 0.0
    errors: tuple[AnalysisError, ...] = ()


class FrequencyEstimator:
    """Turns range strength and betting context into a (fold, call, raise) triple.

    Usage:
        estimator = FrequencyEstimator()
        result = estimator.estimate(strength, pot_odds, action)
        result.triple.fold
    """

    def __init__(
        self, neutral_prior: tuple[float, float, float] = NEUTRAL_PRIOR,
    ) -> None:
        self._prior = neutral_prior

    def estimate(
        self,
        strength: RangeStrength | None,
        pot_odds: PotOdds | None,
        action: PlayerAction | None,
        base_fold: float | None = None,
    ) -> EstimationResult:
        """Estimate the opponent's response frequencies.

        Args:
            strength: Strength summary of the responder's range.
            pot_odds: Price the responder is laid.
            action: Hero action context.
            base_fold: Optional base fold estimate; computed when omitted.

        Returns:
            EstimationResult whose triple sums to 1. Missing or empty
            inputs give the neutral prior with low confidence.
        """
        missing = [
            name for name, value in (
                ("range strength", strength),
                ("pot odds", pot_odds),
                ("action context", action),
            )
            if value is None
        ]
        if strength is not None and strength.combo_count == 0:
            missing.append("empty range")
        if missing:
            reason = "missing input: " + ", ".join(missing)
            logger.debug("Neutral prior used (%s)", reason)
            return EstimationResult(FrequencyTriple.neutral(self._prior, reason))

        if base_fold is None:
            base_fold = base_fold_frequency(action, pot_odds, strength)
        trace: list[str] = [f"base fold {base_fold:.3f}"]

        factors = self._aggregate_factors(strength, pot_odds, action)
        trace.append(
            f"aggregate: factor {factors.combined:.3f} "
            f"({_format_effects(factors.effects)}; {factors.level})"
        )

        adjusted = self._apply_adjustments(base_fold, factors, pot_odds)
        trace.append(
            f"adjust: fold {adjusted.fold:.3f}"
            f"{' (clamped)' if adjusted.was_constrained else ''}"
            f"{'' if adjusted.valid else ' (inconsistent with pot odds)'}"
        )

        derived = self._derive_call(adjusted.fold, strength, pot_odds, action)
        trace.append(
            f"derive call: call {derived.call:.3f}, raise {derived.raise_:.3f}"
            f" ({derived.level})"
        )

        independent = self._independent_call(derived.call, strength, pot_odds, action)
        trace.append(
            f"independent call: {independent.call:.3f} "
            f"(consistency {independent.consistency})"
        )

        reconciled = self._reconcile_raise(
            adjusted.fold, derived, strength, pot_odds, action,
        )
        trace.append(
            f"reconcile raise: independent {reconciled.independent:.3f}, "
            f"raise {reconciled.raise_:.3f}, call {reconciled.call:.3f}"
        )

        fold, call, raise_ = self._normalize(
            adjusted.fold, reconciled.call, reconciled.raise_,
        )
        trace.append(f"normalize: {fold:.3f}/{call:.3f}/{raise_:.3f}")

        triple, errors = self._confidence_weighting(
            (fold, call, raise_),
            factors, adjusted, derived, independent, reconciled, trace,
        )
        logger.debug(
            "Frequencies fold=%.3f call=%.3f raise=%.3f (%s)",
            triple.fold, triple.call, triple.raise_, triple.level,
        )
        return EstimationResult(triple, base_fold, tuple(errors))

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    def _aggregate_factors(
        strength: RangeStrength, pot_odds: PotOdds, action: PlayerAction,
    ) -> _Factors:
        effects: dict[str, float] = {
            "range": _RANGE_EFFECT[strength.strength_category],
        }

        drawing = strength.drawing_pct
        if drawing >= 50:
            effects["draws"] = -0.30
        elif drawing >= 40:
            effects["draws"] = -0.20
        elif drawing >= 25:
            effects["draws"] = -0.10
        elif drawing < 10:
            effects["draws"] = 0.05
        else:
            effects["draws"] = 0.0

        if action.position == RelativePosition.IN_POSITION:
            effects["position"] = -0.05
        else:
            effects["position"] = 0.05

        if pot_odds.spr < 1:
            effects["stack"] = -0.15
        elif pot_odds.spr < 3:
            effects["stack"] = -0.05
        else:
            effects["stack"] = 0.0

        effects["sizing"] = _SIZING_EFFECT.get(action.sizing, 0.0)
        effects["street"] = _STREET_EFFECT.get(action.street, 0.0)
        effects["multiway"] = 0.10 if action.multiway else 0.0

        combined = _clamp(1.0 + sum(effects.values()), 0.5, 1.5)

        significant = [e for e in effects.values() if abs(e) >= _SIGNIFICANT_EFFECT]
        mixed = any(e > 0 for e in significant) and any(e < 0 for e in significant)
        if not significant:
            level = _LOW
        elif mixed:
            level = _MEDIUM
        elif len(significant) >= 3:
            level = _HIGH
        else:
            level = _MEDIUM
        return _Factors(combined, effects, level)

    @staticmethod
    def _apply_adjustments(
        base_fold: float, factors: _Factors, pot_odds: PotOdds,
    ) -> _AdjustedFold:
        raw = base_fold * factors.combined
        fold = _clamp(raw)
        constrained = fold != raw
        ratio = pot_odds.ratio
        valid = not ((ratio < 0.2 and fold > 0.8) or (ratio > 0.4 and fold < 0.3))
        if not valid:
            level = _LOW
        elif constrained:
            level = _MEDIUM
        else:
            level = _HIGH
        return _AdjustedFold(fold, constrained, valid, level)

    @staticmethod
    def _derive_call(
        fold: float,
        strength: RangeStrength,
        pot_odds: PotOdds,
        action: PlayerAction,
    ) -> _DerivedCall:
        raise_ = _RAISE_BASE[strength.strength_category]
        if strength.drawing_pct >= 25 and action.street in (Street.FLOP, Street.TURN):
            raise_ += 0.08

        if pot_odds.ratio < 0.2:
            raise_ *= 1.5
        elif pot_odds.ratio > 0.4:
            raise_ *= 0.5

        street_rate = _STREET_RAISE_RATE.get(action.street, {}).get(action.sizing, 0.10)
        raise_ = (raise_ + street_rate) / 2

        match action.sizing:
            case BetSizing.SMALL:
                raise_ *= 1.3
            case BetSizing.LARGE | BetSizing.VERY_LARGE:
                raise_ *= 0.7
            case BetSizing.ALL_IN:
                raise_ *= 0.3

        raw_raise = raise_
        raise_ = _clamp(raise_, 0.0, 0.4)
        call = 1.0 - fold - raise_
        if call < 0:
            raise_ = max(0.0, 1.0 - fold)
            call = 0.0

        constraint = abs(raise_ - raw_raise)
        ratio = pot_odds.ratio
        valid = not ((ratio < 0.2 and call < 0.3) or (ratio > 0.4 and call > 0.7))
        if constraint > 0.1 or not valid:
            level = _LOW
        elif constraint > 0:
            level = _MEDIUM
        else:
            level = _HIGH
        return _DerivedCall(call, raise_, constraint, valid, level)

    @staticmethod
    def _independent_call(
        derived_call: float,
        strength: RangeStrength,
        pot_odds: PotOdds,
        action: PlayerAction,
    ) -> _IndependentCall:
        ratio = pot_odds.ratio
        if ratio < 0.15:
            call = 0.85
        elif ratio < 0.25:
            call = 0.70
        elif ratio < 0.35:
            call = 0.50
        elif ratio < 0.45:
            call = 0.30
        else:
            call = 0.15

        call += _CALL_RANGE_ADJUSTMENT[strength.strength_category]

        if action.street == Street.FLOP:
            call *= 1.1
        elif action.street == Street.RIVER:
            call *= 0.9

        match action.sizing:
            case BetSizing.SMALL:
                call *= 1.3
            case BetSizing.LARGE | BetSizing.VERY_LARGE:
                call *= 0.7
            case BetSizing.ALL_IN:
                call *= 0.4

        if action.position == RelativePosition.OUT_OF_POSITION:
            call *= 0.9
        else:
            call *= 1.1

        if pot_odds.spr < 1:
            call *= 1.2
        elif pot_odds.spr > 10:
            call *= 0.9

        call = _clamp(call)
        level = _HIGH if ratio < 0.2 or ratio > 0.4 else _MEDIUM

        diff = abs(call - derived_call)
        if diff <= 0.1:
            consistency = _HIGH
        elif diff <= 0.2:
            consistency = _MEDIUM
        else:
            consistency = _LOW
        return _IndependentCall(call, level, consistency)

    @staticmethod
    def _reconcile_raise(
        fold: float,
        derived: _DerivedCall,
        strength: RangeStrength,
        pot_odds: PotOdds,
        action: PlayerAction,
    ) -> _ReconciledRaise:
        independent = _INDEPENDENT_RAISE_BASE[strength.strength_category]

        ratio = pot_odds.ratio
        if ratio < 0.15:
            independent *= 1.8
        elif ratio < 0.25:
            independent *= 1.4
        elif ratio < 0.35:
            independent *= 1.1
        elif ratio < 0.45:
            independent *= 0.8
        else:
            independent *= 0.5

        independent *= _INDEPENDENT_RAISE_STREET.get(action.street, 1.0)
        if action.position == RelativePosition.IN_POSITION:
            independent *= 1.2
        else:
            independent *= 0.9

        if pot_odds.spr < 1:
            independent *= 0.6
        elif pot_odds.spr < 3:
            independent *= 0.8
        elif pot_odds.spr > 10:
            independent *= 1.1

        match action.sizing:
            case BetSizing.SMALL:
                independent *= 1.6
            case BetSizing.LARGE | BetSizing.VERY_LARGE:
                independent *= 0.5
            case BetSizing.ALL_IN:
                independent *= 0.1

        if action.multiway:
            independent *= 0.7
        if action.kind == ActionKind.RAISE:
            independent *= 0.8
        elif action.kind == ActionKind.CHECK:
            independent *= 1.5
        if strength.drawing_pct > 30 and action.street in (Street.FLOP, Street.TURN):
            independent *= 1.5
        independent = _clamp(independent, 0.0, 0.6)

        raise_ = min((derived.raise_ + independent) / 2, max(0.0, 1.0 - fold))
        call = max(0.0, 1.0 - fold - raise_)
        valid = 0.0 <= raise_ <= 0.6

        if (
            strength.strength_category in (StrengthCategory.VERY_STRONG, StrengthCategory.WEAK)
            or action.sizing == BetSizing.ALL_IN
        ):
            level = _HIGH
        elif abs(derived.raise_ - independent) > 0.2:
            level = _LOW
        else:
            level = _MEDIUM
        return _ReconciledRaise(call, raise_, independent, valid, level)

    @staticmethod
    def _normalize(fold: float, call: float, raise_: float) -> tuple[float, float, float]:
        total = fold + call + raise_
        if total <= 0:
            return (1 / 3, 1 / 3, 1 / 3)
        return (fold / total, call / total, raise_ / total)

    def _confidence_weighting(
        self,
        triple: tuple[float, float, float],
        factors: _Factors,
        adjusted: _AdjustedFold,
        derived: _DerivedCall,
        independent: _IndependentCall,
        reconciled: _ReconciledRaise,
        trace: list[str],
    ) -> tuple[FrequencyTriple, list[AnalysisError]]:
        fold_score = _clamp(
            0.5 + _FOLD_SCORE[adjusted.level] + _FACTOR_SCORE[factors.level]
        )
        call_score = _clamp(
            0.5
            + _CALL_SCORE[derived.level]
            + _CALL_SCORE[independent.level]
            + _CONSISTENCY_SCORE[independent.consistency]
        )
        raise_score = _clamp(
            0.5
            + _RAISE_SCORE[reconciled.level]
            + (0.1 if reconciled.valid else -0.2)
        )
        confidence = ComponentConfidence(fold_score, call_score, raise_score)
        overall = confidence.overall
        if overall >= 0.7:
            level = _HIGH
        elif overall <= 0.4:
            level = _LOW
        else:
            level = _MEDIUM

        lam = _BLEND_LAMBDA[level]
        blended = [
            lam * p + (1.0 - lam) * q for p, q in zip(triple, self._prior)
        ]
        total = sum(blended)
        if total > 0:
            blended = [p / total for p in blended]
        trace.append(
            f"confidence: {overall:.2f} ({level}), blend lambda {lam:.2f}"
        )

        fold, call, raise_ = blended
        drift = abs(fold + call + raise_ - 1.0)
        finite = all(math.isfinite(p) and 0.0 <= p <= 1.0 for p in blended)
        if drift > NORMALIZATION_TOLERANCE or not finite:
            message = f"frequency sum drifted by {drift:.2e}"
            logger.warning("Reverting to neutral prior: %s", message)
            error = AnalysisError(ErrorKind.FREQUENCY_NORMALIZATION_FAILED, message)
            fallback = FrequencyTriple.neutral(self._prior, message)
            return fallback, [error]

        return (
            FrequencyTriple(
                fold=fold,
                call=call,
                raise_=raise_,
                confidence=confidence,
                level=level,
                trace=tuple(trace),
            ),
            [],
        )


def _format_effects(effects: dict[str, float]) -> str:
    return ", ".join(f"{k} {v:+.2f}" for k, v in effects.items() if v)
