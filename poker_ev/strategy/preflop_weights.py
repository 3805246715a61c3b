"""Preflop prior weight table.

Every starting-hand class ("AA", "AKs", "AKo", ...) gets a fixed prior
weight in (0, 1]. The opponent range starts from these weights before any
postflop action narrows it.

Tiers by highest rank:
  - Pocket pairs decline from AA=1.00 to 22=0.55.
  - Broadway connectors (AK, KQ, QJ, JT, ...) have fixed suited/offsuit tiers.
  - Remaining kickers follow a linear ladder: base - (top - i) * step,
    where i is the kicker's index in 2..A (2 -> 0, A -> 12).
"""

from __future__ import annotations

from poker_ev.utils.card import Combo
from poker_ev.utils.constants import Rank

# Ranks ordered low to high; the kicker ladder indexes into this list
_RANKS_ASCENDING: list[Rank] = [
    Rank.TWO, Rank.THREE, Rank.FOUR, Rank.FIVE, Rank.SIX,
    Rank.SEVEN, Rank.EIGHT, Rank.NINE, Rank.TEN, Rank.JACK,
    Rank.QUEEN, Rank.KING, Rank.ACE,
]

_RANK_INDEX: dict[Rank, int] = {r: i for i, r in enumerate(_RANKS_ASCENDING)}

_PAIR_WEIGHTS: dict[Rank, float] = {
    Rank.ACE: 1.00,
    Rank.KING: 0.98,
    Rank.QUEEN: 0.96,
    Rank.JACK: 0.94,
    Rank.TEN: 0.92,
    Rank.NINE: 0.90,
    Rank.EIGHT: 0.85,
    Rank.SEVEN: 0.80,
    Rank.SIX: 0.75,
    Rank.FIVE: 0.70,
    Rank.FOUR: 0.65,
    Rank.THREE: 0.60,
    Rank.TWO: 0.55,
}

# (high, low) -> (suited, offsuit)
_FIXED_WEIGHTS: dict[tuple[Rank, Rank], tuple[float, float]] = {
    (Rank.ACE, Rank.KING): (0.98, 0.95),
    (Rank.ACE, Rank.QUEEN): (0.96, 0.92),
    (Rank.ACE, Rank.JACK): (0.94, 0.89),
    (Rank.ACE, Rank.TEN): (0.92, 0.86),
    (Rank.KING, Rank.QUEEN): (0.93, 0.88),
    (Rank.KING, Rank.JACK): (0.91, 0.85),
    (Rank.KING, Rank.TEN): (0.89, 0.82),
    (Rank.QUEEN, Rank.JACK): (0.91, 0.85),
    (Rank.QUEEN, Rank.TEN): (0.88, 0.80),
    (Rank.JACK, Rank.TEN): (0.86, 0.78),
    (Rank.TEN, Rank.NINE): (0.84, 0.76),
    (Rank.NINE, Rank.EIGHT): (0.74, 0.66),
    (Rank.EIGHT, Rank.SEVEN): (0.72, 0.62),
    (Rank.SEVEN, Rank.SIX): (0.60, 0.50),
    (Rank.SIX, Rank.FIVE): (0.52, 0.42),
    (Rank.FIVE, Rank.FOUR): (0.38, 0.28),
    (Rank.FOUR, Rank.THREE): (0.22, 0.16),
    (Rank.FOUR, Rank.TWO): (0.20, 0.14),
    (Rank.THREE, Rank.TWO): (0.18, 0.12),
}

# high -> (top index, suited base, offsuit base, step) for the kicker ladder
_KICKER_LADDERS: dict[Rank, tuple[int, float, float, float]] = {
    Rank.ACE: (8, 0.90, 0.80, 0.025),
    Rank.KING: (8, 0.85, 0.75, 0.025),
    Rank.QUEEN: (7, 0.82, 0.72, 0.025),
    Rank.JACK: (7, 0.78, 0.68, 0.025),
    Rank.TEN: (7, 0.76, 0.66, 0.0286),
    Rank.NINE: (6, 0.66, 0.56, 0.0333),
    Rank.EIGHT: (5, 0.62, 0.52, 0.04),
    Rank.SEVEN: (4, 0.50, 0.40, 0.05),
    Rank.SIX: (3, 0.42, 0.32, 0.0333),
    Rank.FIVE: (1, 0.28, 0.18, 0.04),
}


def _class_weight(high: Rank, low: Rank, suited: bool) -> float:
    if high == low:
        return _PAIR_WEIGHTS[high]
    fixed = _FIXED_WEIGHTS.get((high, low))
    if fixed is not None:
        return fixed[0] if suited else fixed[1]
    top, suited_base, offsuit_base, step = _KICKER_LADDERS[high]
    i = _RANK_INDEX[low]
    base = suited_base if suited else offsuit_base
    return base - (top - i) * step


def _build_table() -> dict[str, float]:
    table: dict[str, float] = {}
    for hi_idx in range(len(_RANKS_ASCENDING) - 1, -1, -1):
        high = _RANKS_ASCENDING[hi_idx]
        for lo_idx in range(hi_idx, -1, -1):
            low = _RANKS_ASCENDING[lo_idx]
            if high == low:
                table[f"{high.value}{low.value}"] = _class_weight(high, low, False)
                continue
            table[f"{high.value}{low.value}s"] = _class_weight(high, low, True)
            table[f"{high.value}{low.value}o"] = _class_weight(high, low, False)
    return table


# 169 starting-hand classes, built once at import
PREFLOP_WEIGHTS: dict[str, float] = _build_table()


def preflop_weight_for_key(key: str) -> float:
    """Prior weight of a hand class such as 'AKs', 'T9o' or 'QQ'.

    Raises:
        ValueError: If the key is not one of the 169 classes.
    """
    try:
        return PREFLOP_WEIGHTS[key]
    except KeyError:
        raise ValueError(f"Unknown hand class: '{key}'") from None


def preflop_weight(combo: Combo) -> float:
    """Prior weight of a specific combo."""
    return PREFLOP_WEIGHTS[combo.key]
