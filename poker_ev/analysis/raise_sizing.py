"""Villain raise-size catalogue.

When the opponent raises, the raise branch of the EV needs a raise
size. The catalogue lists the usual sizes (all clamped to the raiser's
stack) and weights each of them by stack-to-pot ratio: shallow stacks
raise small or shove, deep stacks favour pot-sized raises.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RaiseOption:
    """A raise size with its share of the opponent's raises."""

    label: str
    amount: float
    weight: float = 0.0


@dataclass(frozen=True)
class RaiseSizing:
    """Weighted raise sizes and their expectation, in BB."""

    options: tuple[RaiseOption, ...]
    expected: float

    def amount(self, label: str) -> float:
        for option in self.options:
            if option.label == label:
                return option.amount
        raise KeyError(label)


# Bucket -> catalogue entry
_BUCKETS: dict[str, str] = {
    "small": "min_raise",
    "half": "half_pot",
    "medium": "pot",
    "large": "two_pot",
    "all_in": "all_in",
}

# (max spr, bucket weights); the last row covers everything deeper
_SPR_WEIGHTS: list[tuple[float, dict[str, float]]] = [
    (2.0, {"small": 0.40, "half": 0.10, "medium": 0.20, "large": 0.10, "all_in": 0.20}),
    (4.0, {"small": 0.30, "half": 0.15, "medium": 0.30, "large": 0.20, "all_in": 0.05}),
    (8.0, {"small": 0.25, "half": 0.15, "medium": 0.35, "large": 0.20, "all_in": 0.05}),
    (float("inf"), {"small": 0.20, "half": 0.15, "medium": 0.35, "large": 0.25, "all_in": 0.05}),
]


def raise_size_options(pot: float, bet: float, stack: float) -> dict[str, float]:
    """Standard raise sizes facing `bet` into `pot`, capped at `stack`.

    Args:
        pot: Pot before the bet being raised.
        bet: The bet being raised.
        stack: Chips the raiser has behind.
    """
    stack = max(0.0, stack)
    sizes = {
        "min_raise": 2 * bet,
        "half_pot": pot * 0.5 + 2 * bet,
        "pot": pot + 2 * bet,
        "two_pot": (pot + bet) * 2,
        "all_in": stack,
    }
    return {label: min(amount, stack) for label, amount in sizes.items()}


def bucket_weights(spr: float) -> dict[str, float]:
    """Share of raises going to each size bucket at a given SPR."""
    for max_spr, weights in _SPR_WEIGHTS:
        if spr <= max_spr:
            return dict(weights)
    return dict(_SPR_WEIGHTS[-1][1])


def estimate_raise_sizing(
    pot: float, bet: float, stack: float, spr: float,
) -> RaiseSizing:
    """Catalogue of raise sizes with the SPR-weighted expected raise."""
    sizes = raise_size_options(pot, bet, stack)
    weights = bucket_weights(spr)
    weight_by_label = {_BUCKETS[b]: w for b, w in weights.items()}
    options = tuple(
        RaiseOption(label, amount, weight_by_label.get(label, 0.0))
        for label, amount in sizes.items()
    )
    expected = sum(o.amount * o.weight for o in options)
    return RaiseSizing(options=options, expected=expected)
