"""Bid and call vocabulary for contract-bridge auctions."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

MIN_LEVEL = 1
MAX_LEVEL = 7


class InvalidCallLabel(ValueError):
    """Raised when free text cannot be read as a call."""


class Strain(Enum):
    CLUBS = 0
    DIAMONDS = 1
    HEARTS = 2
    SPADES = 3
    NOTRUMP = 4

    @property
    def order(self) -> int:
        return self.value

    @property
    def symbol(self) -> str:
        return STRAIN_SYMBOLS[self]

    def __str__(self) -> str:
        return self.name.lower()


STRAIN_SYMBOLS: dict[Strain, str] = {
    Strain.CLUBS: "♣",
    Strain.DIAMONDS: "♦",
    Strain.HEARTS: "♥",
    Strain.SPADES: "♠",
    Strain.NOTRUMP: "NT",
}

STRAIN_ALIASES: dict[str, Strain] = {
    "♣": Strain.CLUBS,
    "c": Strain.CLUBS,
    "♦": Strain.DIAMONDS,
    "d": Strain.DIAMONDS,
    "♥": Strain.HEARTS,
    "h": Strain.HEARTS,
    "♠": Strain.SPADES,
    "s": Strain.SPADES,
    "nt": Strain.NOTRUMP,
    "n": Strain.NOTRUMP,
}

STRAINS_PER_LEVEL = len(Strain)
PASS_LABEL = "PASS"


@dataclass(frozen=True)
class Bid:
    """Immutable level/strain pair, totally ordered by rank."""

    level: int
    strain: Strain

    def __post_init__(self) -> None:
        if not MIN_LEVEL <= self.level <= MAX_LEVEL:
            raise ValueError(f"Bid level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {self.level}.")
        if not isinstance(self.strain, Strain):
            raise ValueError("Bid strain must be a Strain.")

    @property
    def rank(self) -> int:
        return (self.level - 1) * STRAINS_PER_LEVEL + self.strain.order

    @property
    def label(self) -> str:
        return f"{self.level}{self.strain.symbol}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class Pass:
    @property
    def label(self) -> str:
        return PASS_LABEL

    def __str__(self) -> str:
        return PASS_LABEL


PASS = Pass()

Call = Union[Bid, Pass]

# Level-major, then strain order; index equals rank.
ALL_BIDS: tuple[Bid, ...] = tuple(
    Bid(level, strain) for level in range(MIN_LEVEL, MAX_LEVEL + 1) for strain in Strain
)


def outbids(candidate: Bid, current: Bid) -> bool:
    """Return True if candidate ranks strictly above current."""
    return candidate.rank > current.rank


def bid_from_rank(rank: int) -> Bid:
    if not 0 <= rank < len(ALL_BIDS):
        raise ValueError(f"Rank {rank} is outside 0..{len(ALL_BIDS) - 1}.")
    return ALL_BIDS[rank]


def bids_above(current: Optional[Bid]) -> List[Bid]:
    """All bids that outbid current, in rank order (every bid when current is None)."""
    if current is None:
        return list(ALL_BIDS)
    return list(ALL_BIDS[current.rank + 1 :])


def is_bid(call: Call) -> bool:
    return isinstance(call, Bid)


_CALL_PATTERN = re.compile(r"^([1-7])\s*(♣|♦|♥|♠|nt|n|c|d|h|s)$", re.IGNORECASE)
_PASS_WORDS = {"pass", "p"}


def parse_call(text: str) -> Call:
    """Read a call from its label ("1♣", "1 NT", "2s", "pass")."""
    cleaned = text.strip()
    if cleaned.lower() in _PASS_WORDS:
        return PASS
    match = _CALL_PATTERN.match(cleaned)
    if match is None:
        raise InvalidCallLabel(f"Cannot read {text!r} as a call.")
    level, strain = match.groups()
    return Bid(int(level), STRAIN_ALIASES[strain.lower()])


def normalize_label(text: str) -> str:
    """Return the canonical label for text that names a call, else the stripped text."""
    try:
        return parse_call(text).label
    except InvalidCallLabel:
        return text.strip()
