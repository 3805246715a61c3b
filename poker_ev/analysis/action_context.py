"""Betting context of a hero action: sizing, position, flags and pot odds.

Reads the hand record around one action index and derives everything
the frequency estimator needs to know about the situation the responding
opponent faces. Amounts are incremental: each action's amount is what
that action adds to the pot.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from poker_ev.core.hand_record import Hand
from poker_ev.utils.constants import (
    AGGRESSIVE_ACTIONS,
    STREET_ORDER,
    ActionKind,
    BetSizing,
    RelativePosition,
    Street,
)

logger = logging.getLogger("poker_ev.analysis")

# Small + big blind when a history records no posts
UNPOSTED_BLINDS_BB = 1.5

REMAINING_STREETS: dict[Street, int] = {
    Street.PREFLOP: 3,
    Street.FLOP: 2,
    Street.TURN: 1,
    Street.RIVER: 0,
}

_STREETS_BY_ORDER: dict[int, Street] = {v: k for k, v in STREET_ORDER.items()}


@dataclass(frozen=True)
class PlayerAction:
    """A hero bet or raise as seen by the responding opponent.

    Attributes:
        street: Street of the action.
        kind: Action kind (bet, raise, call, ...).
        bet_size: Chips the action adds, in BB.
        pot_size: Pot before the action, in BB.
        sizing: Bet sizing bucket from bet / pot.
        position: Responder's position relative to the hero.
    """

    street: Street
    kind: ActionKind
    bet_size: float
    pot_size: float
    sizing: BetSizing
    position: RelativePosition
    is_all_in: bool = False
    continuation_bet: bool = False
    value_bet: bool = False
    bluff: bool = False
    check_raise: bool = False
    donk_bet: bool = False
    three_bet: bool = False
    multiway: bool = False

    @property
    def bet_to_pot(self) -> float:
        if self.pot_size <= 0:
            return 0.0
        return self.bet_size / self.pot_size

    def with_bet(
        self, bet_size: float, kind: ActionKind, is_all_in: bool = False,
    ) -> PlayerAction:
        """Same situation with a different bet, for candidate sizings."""
        sizing = classify_bet_sizing(bet_size, self.pot_size, is_all_in)
        ratio = bet_size / self.pot_size if self.pot_size > 0 else 0.0
        return replace(
            self,
            kind=kind,
            bet_size=bet_size,
            sizing=sizing,
            is_all_in=is_all_in,
            value_bet=_is_value_sizing(kind, self.street, ratio),
        )


@dataclass(frozen=True)
class PotOdds:
    """Price the responding opponent is laid.

    Attributes:
        call_amount: Chips the responder must add to call.
        pot_size: Pot including the hero's action, before the call.
        ratio: call_amount / (pot_size + call_amount).
        implied_odds: Multiplier for future winnings (>= 1).
        reverse_implied_odds: Multiplier for future losses (>= 1).
        effective_stack: Smaller of the two stacks behind.
        spr: effective_stack / pot_size.
        remaining_streets: Streets still to be dealt.
    """

    call_amount: float
    pot_size: float
    ratio: float
    implied_odds: float = 1.0
    reverse_implied_odds: float = 1.0
    effective_stack: float = 0.0
    spr: float = 0.0
    remaining_streets: int = 0


def classify_bet_sizing(
    bet: float, pot: float, is_all_in: bool = False,
) -> BetSizing:
    """Bucket a bet by its size relative to the pot."""
    if bet <= 0:
        return BetSizing.NONE
    if is_all_in:
        return BetSizing.ALL_IN
    if pot <= 0:
        return BetSizing.VERY_LARGE
    ratio = bet / pot
    if ratio <= 0.33:
        return BetSizing.SMALL
    if ratio <= 1.0:
        return BetSizing.MEDIUM
    if ratio <= 2.0:
        return BetSizing.LARGE
    return BetSizing.VERY_LARGE


def _is_value_sizing(kind: ActionKind, street: Street, bet_to_pot: float) -> bool:
    if kind == ActionKind.RAISE:
        return bet_to_pot > 1.5
    if kind == ActionKind.BET:
        if street == Street.RIVER:
            return bet_to_pot > 0.75
        if street == Street.TURN:
            return bet_to_pot > 1.0
    return False


def pot_before(hand: Hand, index: int) -> float:
    """Pot in BB before the action at `index`."""
    actions = hand.betting_actions
    pot = sum(a.amount_bb for a in actions[:index])
    if not any(a.action == ActionKind.POST for a in actions):
        pot += UNPOSTED_BLINDS_BB
    return pot


def street_contributions(hand: Hand, index: int, street: Street) -> dict[str, float]:
    """Chips each player put in on `street` before `index`."""
    contrib: dict[str, float] = {}
    for a in hand.betting_actions[:index]:
        if a.street == street:
            contrib[a.player_id] = contrib.get(a.player_id, 0.0) + a.amount_bb
    return contrib


def amount_to_call(hand: Hand, index: int, player_id: str) -> float:
    """Chips `player_id` must add at `index` to match the street's top bet."""
    street = hand.betting_actions[index].street
    contrib = street_contributions(hand, index, street)
    top = max(contrib.values(), default=0.0)
    return max(0.0, top - contrib.get(player_id, 0.0))


def stack_behind(hand: Hand, index: int, player_id: str) -> float:
    """Chips `player_id` still has behind before the action at `index`."""
    player = hand.player(player_id)
    if player is None:
        return 0.0
    spent = sum(
        a.amount_bb for a in hand.betting_actions[:index]
        if a.player_id == player_id
    )
    return max(0.0, player.stack_bb - spent)


def relative_position(
    hand: Hand, hero_id: str, villain_id: str,
) -> RelativePosition:
    """Position of the villain relative to the hero postflop."""
    order = hand.acting_order()
    if order.index(villain_id) > order.index(hero_id):
        return RelativePosition.IN_POSITION
    return RelativePosition.OUT_OF_POSITION


def active_opponents(hand: Hand, index: int, hero_id: str) -> list[str]:
    """Opponents still in the hand at `index`, in acting order."""
    folded = hand.folded_before(index)
    return [
        pid for pid in hand.acting_order()
        if pid != hero_id and pid not in folded
    ]


def find_responder(hand: Hand, index: int, hero_id: str) -> str | None:
    """The opponent who answers the hero's action at `index`.

    The first still-active opponent acting after the hero in the record;
    failing that, the next active opponent in seat order.
    """
    active = active_opponents(hand, index, hero_id)
    if not active:
        return None
    for a in hand.betting_actions[index + 1:]:
        if a.player_id in active:
            return a.player_id
    order = hand.acting_order()
    k = order.index(hero_id)
    for pid in order[k + 1:] + order[:k]:
        if pid in active:
            return pid
    return None


def _last_aggressor(hand: Hand, index: int, street: Street) -> str | None:
    aggressor = None
    for a in hand.betting_actions[:index]:
        if a.street == street and a.action in AGGRESSIVE_ACTIONS:
            aggressor = a.player_id
    return aggressor


def describe_action(
    hand: Hand,
    index: int,
    responder_id: str,
    hero_strength: float | None = None,
) -> PlayerAction:
    """Build the PlayerAction context for the action at `index`.

    Args:
        hand: The hand being analyzed.
        index: Index of the hero action.
        responder_id: Opponent answering the action.
        hero_strength: Hero's hand strength, used for the bluff flag.
    """
    action = hand.betting_actions[index]
    hero_id = action.player_id
    street = action.street
    kind = action.action
    pot = pot_before(hand, index)
    sizing = classify_bet_sizing(action.amount_bb, pot, action.is_all_in)
    ratio = action.amount_bb / pot if pot > 0 else 0.0

    same_street = [a for a in hand.betting_actions[:index] if a.street == street]
    street_aggression = [a for a in same_street if a.action in AGGRESSIVE_ACTIONS]

    previous_aggressor = None
    if street != Street.PREFLOP:
        previous = _STREETS_BY_ORDER[STREET_ORDER[street] - 1]
        previous_aggressor = _last_aggressor(hand, index, previous)

    opening_bet = kind == ActionKind.BET and not street_aggression
    continuation_bet = opening_bet and previous_aggressor == hero_id
    donk_bet = (
        opening_bet
        and previous_aggressor is not None
        and previous_aggressor != hero_id
    )
    check_raise = kind == ActionKind.RAISE and any(
        a.player_id == hero_id and a.action == ActionKind.CHECK
        for a in same_street
    )
    three_bet = (
        kind == ActionKind.RAISE
        and street == Street.PREFLOP
        and len(street_aggression) == 1
    )
    bluff = (
        kind in AGGRESSIVE_ACTIONS
        and hero_strength is not None
        and hero_strength < 0.4
    )

    context = PlayerAction(
        street=street,
        kind=kind,
        bet_size=action.amount_bb,
        pot_size=pot,
        sizing=sizing,
        position=relative_position(hand, hero_id, responder_id),
        is_all_in=action.is_all_in,
        continuation_bet=continuation_bet,
        value_bet=_is_value_sizing(kind, street, ratio),
        bluff=bluff,
        check_raise=check_raise,
        donk_bet=donk_bet,
        three_bet=three_bet,
        multiway=len(active_opponents(hand, index, hero_id)) > 1,
    )
    logger.debug(
        "Action %s: %s %.2f into %.2f (%s, responder %s)",
        action.action_id, kind, action.amount_bb, pot, sizing,
        context.position,
    )
    return context


def _implied_odds(spr: float, remaining: int, street: Street) -> float:
    implied = 1.0
    if spr > 10:
        implied *= 1.5
    elif spr > 5:
        implied *= 1.3
    elif spr > 2:
        implied *= 1.1
    if remaining == 2:
        implied *= 1.4
    elif remaining == 1:
        implied *= 1.2
    if street == Street.FLOP:
        implied *= 1.1
    return implied


def compute_pot_odds(
    call_amount: float,
    pot_size: float,
    effective_stack: float,
    street: Street,
) -> PotOdds:
    """Pot odds for a responder facing `call_amount` into `pot_size`."""
    denominator = pot_size + call_amount
    ratio = call_amount / denominator if denominator > 0 else 0.0
    spr = effective_stack / pot_size if pot_size > 0 else 0.0
    remaining = REMAINING_STREETS[street]
    reverse = 1.0 + 0.1 * remaining + (0.2 if spr > 10 else 0.0)
    return PotOdds(
        call_amount=call_amount,
        pot_size=pot_size,
        ratio=ratio,
        implied_odds=_implied_odds(spr, remaining, street),
        reverse_implied_odds=reverse,
        effective_stack=effective_stack,
        spr=spr,
        remaining_streets=remaining,
    )


def pot_odds_for_action(
    hand: Hand, index: int, responder_id: str, bet_size: float | None = None,
) -> PotOdds:
    """Pot odds the responder gets after the hero action at `index`.

    Args:
        hand: The hand being analyzed.
        index: Index of the hero action.
        responder_id: Opponent answering the action.
        bet_size: Optional replacement for the recorded amount, used to
                  price candidate sizings.
    """
    action = hand.betting_actions[index]
    hero_id = action.player_id
    amount = action.amount_bb if bet_size is None else bet_size
    contrib = street_contributions(hand, index, action.street)
    hero_total = contrib.get(hero_id, 0.0) + amount
    responder_behind = stack_behind(hand, index, responder_id)
    call = max(0.0, hero_total - contrib.get(responder_id, 0.0))
    call = min(call, responder_behind)
    effective = min(stack_behind(hand, index, hero_id), responder_behind)
    return compute_pot_odds(
        call_amount=call,
        pot_size=pot_before(hand, index) + amount,
        effective_stack=effective,
        street=action.street,
    )
