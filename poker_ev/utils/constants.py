"""Constants for the range and response-distribution core."""

from enum import StrEnum


class Suit(StrEnum):
    CLUBS = "c"
    DIAMONDS = "d"
    HEARTS = "h"
    SPADES = "s"


# Suit-lexicographic order used for deterministic enumeration
SUIT_ORDER: dict[Suit, int] = {
    Suit.CLUBS: 0,
    Suit.DIAMONDS: 1,
    Suit.HEARTS: 2,
    Suit.SPADES: 3,
}


class Rank(StrEnum):
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "T"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"
    ACE = "A"


RANK_VALUES: dict[Rank, int] = {
    Rank.TWO: 2,
    Rank.THREE: 3,
    Rank.FOUR: 4,
    Rank.FIVE: 5,
    Rank.SIX: 6,
    Rank.SEVEN: 7,
    Rank.EIGHT: 8,
    Rank.NINE: 9,
    Rank.TEN: 10,
    Rank.JACK: 11,
    Rank.QUEEN: 12,
    Rank.KING: 13,
    Rank.ACE: 14,
}

TOTAL_COMBOS = 1326


class Street(StrEnum):
    PREFLOP = "preflop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"


STREET_ORDER: dict[Street, int] = {
    Street.PREFLOP: 0,
    Street.FLOP: 1,
    Street.TURN: 2,
    Street.RIVER: 3,
}


class ActionKind(StrEnum):
    POST = "post"
    FOLD = "fold"
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"


AGGRESSIVE_ACTIONS = frozenset({ActionKind.BET, ActionKind.RAISE})
PASSIVE_ACTIONS = frozenset({ActionKind.CHECK, ActionKind.CALL})


class HandCategory(StrEnum):
    STRAIGHT_FLUSH = "straight_flush"
    QUADS = "quads"
    FULL_HOUSE = "full_house"
    FLUSH = "flush"
    STRAIGHT = "straight"
    SET = "set"
    TRIPS = "trips"
    TWO_PAIR = "two_pair"
    TWO_PAIR_BOARD = "two_pair_board"
    OVERPAIR = "overpair"
    TOP_PAIR = "top_pair"
    SECOND_PAIR = "second_pair"
    PAIR = "pair"
    PAIR_BOARD = "pair_board"
    AIR = "air"


class DrawType(StrEnum):
    FLUSH_DRAW = "flush_draw"
    OESD = "oesd"
    GUTSHOT = "gutshot"
    DOUBLE_GUTSHOT = "double_gutshot"
    COMBO_DRAW = "combo_draw"
    WHEEL_DRAW = "wheel_draw"


class BetSizing(StrEnum):
    NONE = "none"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    VERY_LARGE = "very_large"
    ALL_IN = "all_in"


class RelativePosition(StrEnum):
    IN_POSITION = "in_position"
    OUT_OF_POSITION = "out_of_position"


class StrengthCategory(StrEnum):
    VERY_STRONG = "very_strong"
    STRONG = "strong"
    MEDIUM_STRONG = "medium_strong"
    MEDIUM = "medium"
    MEDIUM_WEAK = "medium_weak"
    WEAK = "weak"
    BALANCED = "balanced"


class BoardTexture(StrEnum):
    PAIRED = "paired"
    SUITED = "suited"
    CONNECTED = "connected"
    DRY = "dry"
    UNKNOWN = "unknown"


class ConfidenceLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Classification(StrEnum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class Response(StrEnum):
    FOLD = "fold"
    CALL = "call"
    RAISE = "raise"
