"""
Cards - rank, suit and card value types plus the standard 52-card deck.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class Suit(Enum):
    """Card suits, in canonical deck order."""
    SPADES = "spades"
    HEARTS = "hearts"
    CLUBS = "clubs"
    DIAMONDS = "diamonds"

    @property
    def symbol(self) -> str:
        return _SUIT_SYMBOLS[self]

    @classmethod
    def parse(cls, text: str) -> Suit:
        """Accept 'hearts', 'heart', 'H' or '♥'."""
        key = text.strip().lower()
        for suit in cls:
            if key in (suit.value, suit.value.rstrip("s"), suit.value[0], suit.symbol):
                return suit
        raise ValueError(f"Unknown suit: {text!r}")


_SUIT_SYMBOLS = {
    Suit.SPADES: "♠",
    Suit.HEARTS: "♥",
    Suit.CLUBS: "♣",
    Suit.DIAMONDS: "♦",
}


class Rank(Enum):
    """Card ranks, in canonical deck order."""
    ACE = "A"
    TWO = "2"
    THREE = "3"
    FOUR = "4"
    FIVE = "5"
    SIX = "6"
    SEVEN = "7"
    EIGHT = "8"
    NINE = "9"
    TEN = "10"
    JACK = "J"
    QUEEN = "Q"
    KING = "K"

    @property
    def number(self) -> int:
        """Position in the rank order: A=1 ... K=13."""
        return _RANK_ORDER.index(self) + 1

    @property
    def is_royal(self) -> bool:
        return self in (Rank.JACK, Rank.QUEEN, Rank.KING)

    @classmethod
    def parse(cls, text: str) -> Rank:
        """Accept 'A', 'a', '10', 'K' or a spelled-out name like 'king'."""
        key = text.strip().upper()
        for rank in cls:
            if key in (rank.value, rank.name):
                return rank
        raise ValueError(f"Unknown rank: {text!r}")


_RANK_ORDER = list(Rank)


@dataclass(frozen=True)
class Card:
    """
    A playing card value.

    Equal cards are interchangeable; containers are lists, so two equal
    cards in play are still two physical instances.
    """
    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        return f"{self.rank.value}{self.suit.symbol}"

    @classmethod
    def parse(cls, text: str) -> Card:
        """
        Parse a card reference.

        Accepts compact forms ('3H', '10s', 'QD', '3♥') and spaced forms
        ('3 hearts', 'king spades').
        """
        text = text.strip()
        if " " in text:
            rank_text, suit_text = text.split(None, 1)
        else:
            if len(text) < 2:
                raise ValueError(f"Invalid card: {text!r}")
            rank_text, suit_text = text[:-1], text[-1]
        return cls(rank=Rank.parse(rank_text), suit=Suit.parse(suit_text))


def standard_deck() -> list[Card]:
    """All 52 cards: each suit in turn, ranks A through K."""
    return [Card(rank=rank, suit=suit) for suit in Suit for rank in Rank]


def parse_cards(texts: list[str]) -> tuple[Card, ...]:
    """Parse several card references."""
    return tuple(Card.parse(t) for t in texts)
