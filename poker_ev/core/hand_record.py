"""Parsed hand records consumed by the analysis pipeline.

A Hand is read-only input: parsing validates it once and every stage
after that only reads it. All monetary amounts are already in big blinds;
each action's amount is the chips that action adds to the pot.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from poker_ev.utils.card import Card, InvalidCardError, parse_cards
from poker_ev.utils.constants import STREET_ORDER, ActionKind, Street

HERO_ID = "hero"
MIN_PLAYERS = 2
MAX_PLAYERS = 10

_TRUE_STRINGS = frozenset({"true", "1", "yes"})
_FALSE_STRINGS = frozenset({"false", "0", "no", ""})


def _parse_bool(value: Any, field: str) -> bool:
    """Strict flag parsing: real bools, 0/1, or true/false/yes/no strings."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
    raise ValueError(f"Invalid boolean for {field}: {value!r}")


@dataclass(frozen=True)
class Player:
    """A seated player.

    Attributes:
        player_id: Stable identity of the player.
        seat: Table seat number.
        stack_bb: Starting stack in big blinds.
        hole_cards: Known hole cards (hero's, or cards shown at showdown).
    """

    player_id: str
    seat: int
    stack_bb: float
    hole_cards: tuple[Card, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        cards = data.get("hole_cards") or data.get("shown_cards") or ()
        stack = data.get("stack_bb", data.get("stack", 0.0))
        return cls(
            player_id=str(data["player_id"]),
            seat=int(data["seat"]),
            stack_bb=float(stack),
            hole_cards=tuple(parse_cards(cards)),
        )


@dataclass(frozen=True)
class BettingAction:
    """One action in the betting stream."""

    action_id: str
    player_id: str
    street: Street
    action: ActionKind
    amount_bb: float = 0.0
    is_all_in: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_id: str) -> BettingAction:
        amount = float(data.get("amount_bb", data.get("amount", 0.0)) or 0.0)
        if amount < 0:
            raise ValueError(f"Negative amount in action {data!r}")
        return cls(
            action_id=str(data.get("action_id") or default_id),
            player_id=str(data["player_id"]),
            street=Street(str(data["street"]).lower()),
            action=ActionKind(str(data["action"]).lower()),
            amount_bb=amount,
            is_all_in=_parse_bool(
                data.get("is_all_in", data.get("all_in", False)), "is_all_in",
            ),
        )


@dataclass(frozen=True)
class CommunityCards:
    """Board cards by street."""

    flop: tuple[Card, ...] = ()
    turn: Card | None = None
    river: Card | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> CommunityCards:
        data = data or {}
        flop = tuple(parse_cards(data.get("flop") or ()))
        if len(flop) > 3:
            raise ValueError(f"Flop holds at most 3 cards, got {len(flop)}")
        turn = Card.from_str(data["turn"]) if data.get("turn") else None
        river = Card.from_str(data["river"]) if data.get("river") else None
        return cls(flop=flop, turn=turn, river=river)

    def board_at(self, street: Street) -> tuple[Card, ...]:
        """Community cards visible during a street."""
        match street:
            case Street.PREFLOP:
                return ()
            case Street.FLOP:
                return self.flop
            case Street.TURN:
                return self.flop + _optional(self.turn)
            case Street.RIVER:
                return self.flop + _optional(self.turn) + _optional(self.river)
        raise ValueError(f"Unknown street: {street}")

    @property
    def all_cards(self) -> tuple[Card, ...]:
        return self.board_at(Street.RIVER)


def _optional(card: Card | None) -> tuple[Card, ...]:
    return (card,) if card is not None else ()


@dataclass(frozen=True)
class Hand:
    """A parsed Texas Hold'em hand history."""

    hand_id: str
    button_seat: int
    players: tuple[Player, ...]
    community_cards: CommunityCards
    betting_actions: tuple[BettingAction, ...]
    big_blind: float = 1.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Hand:
        """Build and validate a Hand from a plain dict (e.g. parsed JSON).

        Raises:
            ValueError: On a missing field, malformed or duplicate card,
                       unknown player, or out-of-order streets.
        """
        try:
            hand_id = str(data["hand_id"])
            players = tuple(Player.from_dict(p) for p in data["players"])
            raw_actions = data.get("betting_actions", data.get("actions", []))
            actions = tuple(
                BettingAction.from_dict(a, default_id=f"{hand_id}-{i}")
                for i, a in enumerate(raw_actions)
            )
            hand = cls(
                hand_id=hand_id,
                button_seat=int(data["button_seat"]),
                players=players,
                community_cards=CommunityCards.from_dict(
                    data.get("community_cards"),
                ),
                betting_actions=actions,
                big_blind=float(data.get("big_blind", 1.0)),
            )
        except KeyError as e:
            raise ValueError(f"Hand record missing field: {e}") from None
        hand.validate()
        return hand

    def validate(self) -> None:
        """Check structural invariants of the record.

        Raises:
            ValueError: If any invariant is violated.
        """
        if not MIN_PLAYERS <= len(self.players) <= MAX_PLAYERS:
            raise ValueError(
                f"Hand {self.hand_id}: need {MIN_PLAYERS}-{MAX_PLAYERS} "
                f"players, got {len(self.players)}"
            )
        ids = [p.player_id for p in self.players]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Hand {self.hand_id}: duplicate player id")
        seats = [p.seat for p in self.players]
        if len(set(seats)) != len(seats):
            raise ValueError(f"Hand {self.hand_id}: duplicate seat")

        known = list(self.community_cards.all_cards)
        for p in self.players:
            known.extend(p.hole_cards)
        if len(set(known)) != len(known):
            raise InvalidCardError(f"Hand {self.hand_id}: duplicate card")

        last = STREET_ORDER[Street.PREFLOP]
        for action in self.betting_actions:
            if action.player_id not in ids:
                raise ValueError(
                    f"Hand {self.hand_id}: unknown player "
                    f"'{action.player_id}' in action {action.action_id}"
                )
            order = STREET_ORDER[action.street]
            if order < last:
                raise ValueError(
                    f"Hand {self.hand_id}: street goes backwards at "
                    f"action {action.action_id}"
                )
            last = order

    @property
    def num_players(self) -> int:
        return len(self.players)

    def player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def acting_order(self) -> list[str]:
        """Player ids in postflop acting order; the button acts last."""
        ordered = sorted(self.players, key=lambda p: p.seat)
        after = [p for p in ordered if p.seat > self.button_seat]
        rest = [p for p in ordered if p.seat <= self.button_seat]
        return [p.player_id for p in after + rest]

    def board_at(self, street: Street) -> tuple[Card, ...]:
        return self.community_cards.board_at(street)

    def action_index(self, action_id: str) -> int | None:
        for i, action in enumerate(self.betting_actions):
            if action.action_id == action_id:
                return i
        return None

    def folded_before(self, index: int) -> set[str]:
        """Players who folded before the action at `index`."""
        return {
            a.player_id for a in self.betting_actions[:index]
            if a.action == ActionKind.FOLD
        }

    def canonicalize(self, hero_id: str) -> Hand:
        """Remap the hand so that analysis is hero-centric.

        The hero becomes 'hero' in seat 0; the other players become
        'villain_1', 'villain_2', ... in clockwise seat order from the
        hero, and the button is rotated with them. Action ids, cards and
        amounts are unchanged.

        Raises:
            ValueError: If the hero is not seated in this hand.
        """
        hero = self.player(hero_id)
        if hero is None:
            raise ValueError(f"Hero '{hero_id}' not found in hand {self.hand_id}")

        seats = sorted(p.seat for p in self.players)
        k = seats.index(hero.seat)
        rotated = seats[k:] + seats[:k]
        new_seat = {old: i for i, old in enumerate(rotated)}
        by_seat = {p.seat: p for p in self.players}

        new_ids = {hero_id: HERO_ID}
        villain_n = 0
        for seat in rotated[1:]:
            villain_n += 1
            new_ids[by_seat[seat].player_id] = f"villain_{villain_n}"

        players = tuple(
            replace(
                by_seat[seat],
                player_id=new_ids[by_seat[seat].player_id],
                seat=new_seat[seat],
            )
            for seat in rotated
        )
        actions = tuple(
            replace(a, player_id=new_ids[a.player_id])
            for a in self.betting_actions
        )
        return replace(
            self,
            players=players,
            betting_actions=actions,
            button_seat=new_seat[self._occupied_button(seats)],
        )

    def _occupied_button(self, seats: list[int]) -> int:
        # A dead button acts like the nearest occupied seat before it
        if self.button_seat in seats:
            return self.button_seat
        below = [s for s in seats if s < self.button_seat]
        return max(below) if below else max(seats)
