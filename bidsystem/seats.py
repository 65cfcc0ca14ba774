"""Table seats and turn rotation."""

from __future__ import annotations

from enum import Enum


class Seat(Enum):
    SOUTH = 0
    WEST = 1
    NORTH = 2
    EAST = 3

    def next(self) -> "Seat":
        return SEAT_ORDER[(self.value + 1) % len(SEAT_ORDER)]

    def prev(self) -> "Seat":
        return SEAT_ORDER[(self.value - 1) % len(SEAT_ORDER)]

    def advance(self, steps: int) -> "Seat":
        """Seat on turn after `steps` calls starting from this seat."""
        return SEAT_ORDER[(self.value + steps) % len(SEAT_ORDER)]

    def partner(self) -> "Seat":
        return self.advance(2)

    @property
    def letter(self) -> str:
        return self.name[0]

    def __str__(self) -> str:
        return self.name.lower()


# Clockwise order starting from South.
SEAT_ORDER: tuple[Seat, ...] = (Seat.SOUTH, Seat.WEST, Seat.NORTH, Seat.EAST)


def parse_seat(text: str) -> Seat:
    cleaned = text.strip().upper()
    for seat in SEAT_ORDER:
        if cleaned in (seat.name, seat.letter):
            return seat
    raise ValueError(f"Unknown seat: {text!r}")
