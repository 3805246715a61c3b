"""Card and Combo primitives.

Cards order by rank, then suit (c < d < h < s). A Combo stores its two
cards in deck order: higher rank first, and for equal ranks the
lexicographically smaller suit first. Enumeration walks the deck in that
same order, so every caller sees the same combo sequence.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from functools import total_ordering
from itertools import combinations

from poker_ev.utils.constants import RANK_VALUES, SUIT_ORDER, Rank, Suit


class InvalidCardError(ValueError):
    """A malformed card, or the same card used twice."""


@total_ordering
@dataclass(frozen=True)
class Card:
    """A single playing card."""

    rank: Rank
    suit: Suit

    @classmethod
    def from_str(cls, s: str) -> Card:
        """Create a Card from a 2-character string like 'Ah' or 'Td'.

        Args:
            s: Rank character followed by suit character.

        Returns:
            A new Card instance.

        Raises:
            ValueError: If the string is not exactly 2 characters or
                       contains invalid rank/suit characters.
        """
        if not isinstance(s, str) or len(s) != 2:
            raise InvalidCardError(f"Card string must be 2 characters, got {s!r}")
        try:
            rank = Rank(s[0].upper())
        except ValueError:
            raise InvalidCardError(f"Invalid rank character: '{s[0]}'") from None
        try:
            suit = Suit(s[1].lower())
        except ValueError:
            raise InvalidCardError(f"Invalid suit character: '{s[1]}'") from None
        return cls(rank=rank, suit=suit)

    @property
    def value(self) -> int:
        """Numeric value of the card's rank (2-14)."""
        return RANK_VALUES[self.rank]

    @property
    def deck_index(self) -> tuple[int, int]:
        """Sort key placing the card in deck order (rank desc, suit asc)."""
        return (-self.value, SUIT_ORDER[self.suit])

    def same_suit(self, other: Card) -> bool:
        return self.suit == other.suit

    def __str__(self) -> str:
        return f"{self.rank.value}{self.suit.value}"

    def __repr__(self) -> str:
        return f"Card('{self}')"

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Card):
            return NotImplemented
        return (self.value, SUIT_ORDER[self.suit]) < (
            other.value, SUIT_ORDER[other.suit],
        )


# Full deck in enumeration order: AcAdAhAs KcKd... 2s
FULL_DECK: tuple[Card, ...] = tuple(
    sorted(
        (Card(rank, suit) for rank in Rank for suit in Suit),
        key=lambda c: c.deck_index,
    )
)


def parse_cards(cards: Iterable[str | Card]) -> list[Card]:
    """Parse a sequence of card strings, rejecting duplicates.

    Accepts either strings ('Ah') or Card instances, or a single
    space-separated string ('Ah Kd 7c').

    Raises:
        ValueError: On a malformed card or a card listed twice.
    """
    if isinstance(cards, str):
        cards = cards.split()
    parsed: list[Card] = []
    seen: set[Card] = set()
    for item in cards:
        card = item if isinstance(item, Card) else Card.from_str(item)
        if card in seen:
            raise InvalidCardError(f"Duplicate card: {card}")
        seen.add(card)
        parsed.append(card)
    return parsed


@dataclass(frozen=True)
class Combo:
    """An unordered pair of distinct cards, stored in deck order.

    Attributes:
        high: The card that comes first in deck order.
        low: The other card.
    """

    high: Card
    low: Card

    @classmethod
    def of(cls, a: Card, b: Card) -> Combo:
        """Build a combo from two cards in any order.

        Raises:
            ValueError: If both cards are the same.
        """
        if a == b:
            raise InvalidCardError(f"Combo needs two distinct cards, got {a} twice")
        if a.deck_index <= b.deck_index:
            return cls(high=a, low=b)
        return cls(high=b, low=a)

    @classmethod
    def from_str(cls, s: str) -> Combo:
        """Parse a 4-character combo like 'AhKd' (spaces allowed)."""
        s = s.replace(" ", "")
        if len(s) != 4:
            raise InvalidCardError(f"Combo string must be 4 characters, got '{s}'")
        return cls.of(Card.from_str(s[:2]), Card.from_str(s[2:]))

    @property
    def cards(self) -> tuple[Card, Card]:
        return (self.high, self.low)

    @property
    def is_pair(self) -> bool:
        return self.high.rank == self.low.rank

    @property
    def is_suited(self) -> bool:
        return self.high.suit == self.low.suit

    @property
    def key(self) -> str:
        """Canonical class key: 'AA', 'AKs' or 'AKo'."""
        ranks = f"{self.high.rank.value}{self.low.rank.value}"
        if self.is_pair:
            return ranks
        return ranks + ("s" if self.is_suited else "o")

    @property
    def id(self) -> str:
        """Exact identity string, e.g. 'AhKd'."""
        return f"{self.high}{self.low}"

    def touches(self, dead: set[Card] | frozenset[Card]) -> bool:
        """True if either card of the combo is in the dead set."""
        return self.high in dead or self.low in dead

    def __str__(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"Combo('{self.id}')"


def iter_combos(dead: Iterable[Card] = ()) -> Iterator[Combo]:
    """Yield every combo not touching a dead card, in deck order."""
    dead_set = frozenset(dead)
    live = [c for c in FULL_DECK if c not in dead_set]
    for a, b in combinations(live, 2):
        yield Combo(high=a, low=b)


def enumerate_combos(dead: Iterable[Card] = ()) -> list[Combo]:
    """All C(52 - |dead|, 2) combos that avoid the dead cards.

    Args:
        dead: Known cards (hero hole cards, board, shown cards).

    Returns:
        Combos in deterministic order: rank-descending, suit-lexicographic.
    """
    return list(iter_combos(dead))
