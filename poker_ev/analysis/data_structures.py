"""Core data structures for the response-distribution analysis.

FrequencyTriple: Predicted (fold, call, raise) response with confidence.
ResponseRanges: Partition of a range into fold / call / raise buckets.
BranchEVs: Hero EV for each opponent response.
CandidateAction / ActionComparison: Candidate hero actions ranked by EV.
ActionAnalysis / HandAnalysis: Per-action and per-hand output records.
HandAnalyzerProtocol: Interface that any per-hand analyzer implements.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from poker_ev.core.errors import AnalysisError
from poker_ev.utils.constants import Classification, ConfidenceLevel, Response

if TYPE_CHECKING:
    from poker_ev.analysis.action_context import PlayerAction, PotOdds
    from poker_ev.core.hand_record import Hand
    from poker_ev.strategy.range_strength import RangeStrength, WeightedCombo

NEUTRAL_PRIOR: tuple[float, float, float] = (0.6, 0.3, 0.1)

# Half-width of the frequency band reported for each confidence level
_BAND_BY_LEVEL: dict[ConfidenceLevel, float] = {
    ConfidenceLevel.HIGH: 0.05,
    ConfidenceLevel.MEDIUM: 0.10,
    ConfidenceLevel.LOW: 0.20,
}


@dataclass(frozen=True)
class ComponentConfidence:
    """Confidence in each component of a frequency triple, in [0, 1]."""

    fold: float = 0.0
    call: float = 0.0
    raise_: float = 0.0

    @property
    def overall(self) -> float:
        return (self.fold + self.call + self.raise_) / 3

    def as_dict(self) -> dict[str, float]:
        return {"fold": self.fold, "call": self.call, "raise": self.raise_}


@dataclass(frozen=True)
class FrequencyTriple:
    """How an opponent is predicted to respond to a hero action.

    Attributes:
        fold: Probability the opponent folds.
        call: Probability the opponent calls.
        raise_: Probability the opponent raises.
        confidence: Per-component confidence scores.
        level: Overall confidence level.
        trace: Ordered notes of what each estimation stage did.
    """

    fold: float
    call: float
    raise_: float
    confidence: ComponentConfidence = field(default_factory=ComponentConfidence)
    level: ConfidenceLevel = ConfidenceLevel.LOW
    trace: tuple[str, ...] = ()

    @classmethod
    def neutral(
        cls,
        prior: tuple[float, float, float] = NEUTRAL_PRIOR,
        reason: str = "neutral prior",
    ) -> FrequencyTriple:
        """Fallback triple used when inputs are missing or unusable."""
        fold, call, raise_ = prior
        return cls(
            fold=fold,
            call=call,
            raise_=raise_,
            level=ConfidenceLevel.LOW,
            trace=(reason,),
        )

    @classmethod
    def passive(cls, reason: str = "no bet to respond to") -> FrequencyTriple:
        """Degenerate triple for checks, calls and folds: play continues."""
        return cls(
            fold=0.0,
            call=1.0,
            raise_=0.0,
            confidence=ComponentConfidence(1.0, 1.0, 1.0),
            level=ConfidenceLevel.HIGH,
            trace=(reason,),
        )

    @property
    def total(self) -> float:
        return self.fold + self.call + self.raise_

    @property
    def overall_confidence(self) -> float:
        return self.confidence.overall

    def probability(self, response: Response) -> float:
        match response:
            case Response.FOLD:
                return self.fold
            case Response.CALL:
                return self.call
            case Response.RAISE:
                return self.raise_
        raise ValueError(f"Unknown response: {response}")

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.fold, self.call, self.raise_)

    def as_dict(self) -> dict[str, float]:
        return {"fold": self.fold, "call": self.call, "raise": self.raise_}

    def is_valid(self, tol: float = 1e-6) -> bool:
        in_bounds = all(0.0 <= p <= 1.0 for p in self.as_tuple())
        return in_bounds and abs(self.total - 1.0) <= tol

    def ranges(self) -> dict[str, tuple[float, float]]:
        """Min/max band around each frequency, wider at low confidence."""
        band = _BAND_BY_LEVEL[self.level]
        return {
            name: (max(0.0, p - band), min(1.0, p + band))
            for name, p in self.as_dict().items()
        }


@dataclass(frozen=True)
class ResponseRanges:
    """A range split into the combos that fold, call and raise.

    Buckets hold whole combos, so they are disjoint and their union is the
    input range. `key_ranges` is the deduplicated canonical-key view
    used for output.
    """

    fold: tuple[WeightedCombo, ...]
    call: tuple[WeightedCombo, ...]
    raise_: tuple[WeightedCombo, ...]
    target: tuple[float, float, float]
    key_ranges: dict[Response, tuple[tuple[str, float], ...]] = field(
        default_factory=dict,
    )
    rebalanced: bool = False
    confidence: float = 0.0

    def bucket(self, response: Response) -> tuple[WeightedCombo, ...]:
        match response:
            case Response.FOLD:
                return self.fold
            case Response.CALL:
                return self.call
            case Response.RAISE:
                return self.raise_
        raise ValueError(f"Unknown response: {response}")

    @property
    def total_weight(self) -> float:
        return sum(e.weight for r in Response for e in self.bucket(r))

    def mass(self, response: Response) -> float:
        """Share of the range's weight that lands in a bucket."""
        total = self.total_weight
        if total <= 0:
            return 0.0
        return sum(e.weight for e in self.bucket(response)) / total

    def deviation(self, response: Response) -> float:
        target = dict(zip(Response, self.target))[response]
        return abs(self.mass(response) - target)

    def keys(self, response: Response) -> list[str]:
        return [k for k, _ in self.key_ranges.get(response, ())]

    def summary(self) -> dict[str, dict]:
        """Per-bucket count, mass, average strength and drawing share."""
        out: dict[str, dict] = {}
        for response in Response:
            entries = self.bucket(response)
            weight = sum(e.weight for e in entries)
            avg = (
                sum(e.weight * e.strength for e in entries) / weight
                if weight > 0 else 0.0
            )
            drawing = (
                sum(e.weight for e in entries if e.draws) / weight
                if weight > 0 else 0.0
            )
            out[response.value] = {
                "combos": len(entries),
                "mass": self.mass(response),
                "average_strength": avg,
                "drawing_share": drawing,
            }
        return out


@dataclass(frozen=True)
class BranchEVs:
    """Hero EV in big blinds for each opponent response.

    Attributes:
        fold: EV when the opponent folds.
        call: EV when the opponent calls.
        raise_: EV when the opponent raises (hero's better reply).
        villain_raise: Expected size of the opponent's raise.
        hero_reply: Hero's better reply to a raise, "call" or "fold".
    """

    fold: float
    call: float
    raise_: float
    villain_raise: float = 0.0
    hero_reply: str = "call"

    def as_dict(self) -> dict[str, float]:
        return {"fold": self.fold, "call": self.call, "raise": self.raise_}


@dataclass(frozen=True)
class CandidateAction:
    """A hero action considered at a decision point."""

    label: str
    ev: float
    amount: float = 0.0
    meta: dict[str, float | str] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionComparison:
    """Candidates ranked by EV with the hero's choice located among them."""

    ranked: tuple[CandidateAction, ...]
    best: CandidateAction
    hero: CandidateAction
    delta: float
    tied_best: tuple[str, ...] = ()


@dataclass(frozen=True)
class ActionAnalysis:
    """Analysis of one hero decision point."""

    hand_id: str
    action_id: str
    action_index: int
    street: str
    action: str
    amount: float
    villain_id: str | None
    hero_equity: float
    hero_range: tuple[tuple[str, float], ...]
    villain_range: tuple[tuple[str, float, float], ...]
    villain_summary: RangeStrength | None
    player_action: PlayerAction | None
    pot_odds: PotOdds | None
    frequencies: FrequencyTriple
    responses: ResponseRanges | None
    branch_evs: BranchEVs
    total_ev: float
    candidates: tuple[CandidateAction, ...]
    best_label: str
    delta: float
    classification: Classification
    confidence: float
    trace: tuple[str, ...] = ()
    errors: tuple[AnalysisError, ...] = ()

    def as_dict(self) -> dict:
        """Plain-dict view for JSON output."""
        responses = self.responses
        return {
            "hand_id": self.hand_id,
            "action_id": self.action_id,
            "action_index": self.action_index,
            "street": self.street,
            "action": self.action,
            "amount": self.amount,
            "villain_id": self.villain_id,
            "hero_equity": self.hero_equity,
            "hero_range": [
                {"key": k, "strength": s} for k, s in self.hero_range
            ],
            "villain_range": [
                {"key": k, "weight": w, "strength": s}
                for k, w, s in self.villain_range
            ],
            "villain_summary": (
                self.villain_summary.as_dict() if self.villain_summary else None
            ),
            "fold_range": responses.keys(Response.FOLD) if responses else [],
            "call_range": responses.keys(Response.CALL) if responses else [],
            "raise_range": responses.keys(Response.RAISE) if responses else [],
            "response_frequencies": self.frequencies.as_dict(),
            "frequency_ranges": {
                k: list(v) for k, v in self.frequencies.ranges().items()
            },
            "branch_evs": self.branch_evs.as_dict(),
            "total_ev": self.total_ev,
            "candidates": [
                {"label": c.label, "ev": c.ev} for c in self.candidates
            ],
            "best_label": self.best_label,
            "delta": self.delta,
            "classification": self.classification.value,
            "confidence": self.confidence,
            "trace": list(self.trace),
            "errors": [e.as_dict() for e in self.errors],
        }


@dataclass(frozen=True)
class HandAnalysis:
    """All hero decision points of one hand."""

    hand_id: str
    hero_id: str
    actions: tuple[ActionAnalysis, ...] = ()
    errors: tuple[AnalysisError, ...] = ()

    def as_dict(self) -> dict:
        return {
            "hand_id": self.hand_id,
            "hero_id": self.hero_id,
            "actions": [a.as_dict() for a in self.actions],
            "errors": [e.as_dict() for e in self.errors],
        }


@runtime_checkable
class HandAnalyzerProtocol(Protocol):
    """Interface that any per-hand analyzer must implement.

    Usage:
        def run(analyzer: HandAnalyzerProtocol, hand: Hand):
            analysis = analyzer.analyze_hand(hand, "hero-name")
    """

    def analyze_hand(self, hand: Hand, hero_id: str) -> HandAnalysis: ...
