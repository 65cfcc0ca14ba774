"""Four-seat auction state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Iterable, List, Optional, Tuple

from .calls import PASS, Bid, Call, Pass, bids_above, outbids
from .seats import Seat


class IllegalCallError(ValueError):
    """Base class for calls the auction cannot accept."""


class DoesNotOutbid(IllegalCallError):
    """Raised when a bid does not rank above the current highest bid."""


class AuctionTerminated(IllegalCallError):
    """Raised when a call is attempted after the auction has closed."""


class AuctionPhase(Enum):
    IN_PROGRESS = auto()
    TERMINATED = auto()


class TerminationPolicy(Enum):
    # Three passes close a bid auction; a passed-out auction needs four.
    STANDARD = "standard"
    # Three consecutive passes close the auction, bid or not.
    THREE_PASSES = "three_passes"


CLOSING_PASSES = 3
PASSED_OUT_PASSES = 4


@dataclass(frozen=True)
class CallRecord:
    call: Call
    seat: Seat

    @property
    def label(self) -> str:
        return self.call.label


CallListener = Callable[[CallRecord, Tuple[str, ...]], None]


def trailing_passes(calls: Iterable[CallRecord]) -> int:
    count = 0
    for record in reversed(list(calls)):
        if not isinstance(record.call, Pass):
            break
        count += 1
    return count


def last_bid_record(calls: Iterable[CallRecord]) -> Optional[CallRecord]:
    for record in reversed(list(calls)):
        if isinstance(record.call, Bid):
            return record
    return None


def is_closed(passes: int, has_bid: bool, policy: TerminationPolicy) -> bool:
    """Return True if a trailing run of `passes` ends the auction under `policy`."""
    if policy is TerminationPolicy.THREE_PASSES or has_bid:
        return passes >= CLOSING_PASSES
    return passes >= PASSED_OUT_PASSES


@dataclass
class AuctionEngine:
    """Turn-ordered bidding between four seats.

    Calls are attributed to the seat on turn, which starts at the dealer and
    rotates clockwise. All derived state (seat on turn, highest bid, trailing
    passes, phase) can be rebuilt from the call list alone; `undo_last` does
    exactly that.
    """

    dealer: Seat = Seat.SOUTH
    policy: TerminationPolicy = TerminationPolicy.STANDARD
    phase: AuctionPhase = field(init=False, default=AuctionPhase.IN_PROGRESS)
    current_seat: Seat = field(init=False)
    highest_bid: Optional[Bid] = field(init=False, default=None)
    highest_bidder: Optional[Seat] = field(init=False, default=None)
    consecutive_passes: int = field(init=False, default=0)
    calls: List[CallRecord] = field(init=False, default_factory=list)
    _listeners: List[CallListener] = field(init=False, default_factory=list, repr=False)

    def __post_init__(self) -> None:
        self.current_seat = self.dealer

    @classmethod
    def replay(
        cls,
        dealer: Seat,
        calls: Iterable[Call],
        policy: TerminationPolicy = TerminationPolicy.STANDARD,
    ) -> "AuctionEngine":
        engine = cls(dealer=dealer, policy=policy)
        for call in calls:
            engine.make_call(call)
        return engine

    # Calls ---------------------------------------------------------------

    def select_bid(self, bid: Bid) -> CallRecord:
        if not isinstance(bid, Bid):
            raise IllegalCallError(f"select_bid expects a bid, got {bid!r}.")
        self._ensure_in_progress()
        if self.highest_bid is not None and not outbids(bid, self.highest_bid):
            raise DoesNotOutbid(f"{bid.label} does not outbid {self.highest_bid.label}.")

        record = CallRecord(call=bid, seat=self.current_seat)
        self.calls.append(record)
        self.highest_bid = bid
        self.highest_bidder = record.seat
        self.consecutive_passes = 0
        self.current_seat = self.current_seat.next()
        self._notify(record)
        return record

    def pass_call(self) -> CallRecord:
        self._ensure_in_progress()

        record = CallRecord(call=PASS, seat=self.current_seat)
        self.calls.append(record)
        self.consecutive_passes += 1
        self.current_seat = self.current_seat.next()
        if is_closed(self.consecutive_passes, self.highest_bid is not None, self.policy):
            self.phase = AuctionPhase.TERMINATED
        self._notify(record)
        return record

    def make_call(self, call: Call) -> CallRecord:
        if isinstance(call, Bid):
            return self.select_bid(call)
        if isinstance(call, Pass):
            return self.pass_call()
        raise IllegalCallError(f"Unsupported call: {call!r}")

    def undo_last(self) -> Optional[CallRecord]:
        if not self.calls:
            return None
        removed = self.calls.pop()
        self._recompute()
        return removed

    def reset(self, new_dealer: Optional[Seat] = None) -> None:
        if new_dealer is not None:
            self.dealer = new_dealer
        self.calls.clear()
        self.current_seat = self.dealer
        self._recompute()

    # Queries -------------------------------------------------------------

    def legal_bids(self) -> List[Bid]:
        """Bids the seat on turn may make, in rank order."""
        if self.is_terminated:
            return []
        return bids_above(self.highest_bid)

    def is_legal(self, call: Call) -> bool:
        if self.is_terminated:
            return False
        if isinstance(call, Pass):
            return True
        return self.highest_bid is None or outbids(call, self.highest_bid)

    @property
    def is_terminated(self) -> bool:
        return self.phase is AuctionPhase.TERMINATED

    @property
    def is_passed_out(self) -> bool:
        return self.is_terminated and self.highest_bid is None

    @property
    def call_history(self) -> Tuple[CallRecord, ...]:
        return tuple(self.calls)

    @property
    def path(self) -> Tuple[str, ...]:
        """Call labels from the opening call to the latest one."""
        return tuple(record.label for record in self.calls)

    # Listeners -----------------------------------------------------------

    def subscribe(self, listener: CallListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: CallListener) -> None:
        self._listeners.remove(listener)

    # Helpers -------------------------------------------------------------

    def _recompute(self) -> None:
        self.current_seat = self.dealer.advance(len(self.calls))
        self.consecutive_passes = trailing_passes(self.calls)
        last = last_bid_record(self.calls)
        self.highest_bid = last.call if last is not None else None
        self.highest_bidder = last.seat if last is not None else None
        if is_closed(self.consecutive_passes, last is not None, self.policy):
            self.phase = AuctionPhase.TERMINATED
        else:
            self.phase = AuctionPhase.IN_PROGRESS

    def _ensure_in_progress(self) -> None:
        if self.is_terminated:
            raise AuctionTerminated("Auction already terminated; reset to start a new one.")

    def _notify(self, record: CallRecord) -> None:
        path = self.path
        for listener in list(self._listeners):
            listener(record, path)
