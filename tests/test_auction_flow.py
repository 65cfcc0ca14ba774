import pytest

from bidsystem.auction import (
    AuctionEngine,
    AuctionPhase,
    AuctionTerminated,
    DoesNotOutbid,
    IllegalCallError,
    TerminationPolicy,
)
from bidsystem.calls import PASS, Bid, Strain
from bidsystem.seats import Seat

ONE_CLUB = Bid(1, Strain.CLUBS)
ONE_NT = Bid(1, Strain.NOTRUMP)


def test_initial_state():
    auction = AuctionEngine(dealer=Seat.EAST)

    assert auction.phase is AuctionPhase.IN_PROGRESS
    assert auction.current_seat is Seat.EAST
    assert auction.highest_bid is None
    assert auction.consecutive_passes == 0
    assert auction.call_history == ()
    assert len(auction.legal_bids()) == 35


def test_select_bid_rejects_non_bids():
    auction = AuctionEngine(dealer=Seat.SOUTH)

    with pytest.raises(IllegalCallError):
        auction.select_bid(PASS)

    assert auction.highest_bid is None
    assert auction.call_history == ()
    assert auction.current_seat is Seat.SOUTH


def test_bid_must_outbid_current_highest():
    auction = AuctionEngine(dealer=Seat.SOUTH)

    record = auction.select_bid(ONE_CLUB)
    assert record.seat is Seat.SOUTH
    assert auction.current_seat is Seat.WEST

    with pytest.raises(DoesNotOutbid):
        auction.select_bid(ONE_CLUB)
    assert auction.current_seat is Seat.WEST
    assert len(auction.calls) == 1

    record = auction.select_bid(ONE_NT)
    assert record.seat is Seat.WEST
    assert auction.highest_bid == ONE_NT
    assert auction.highest_bidder is Seat.WEST
    assert auction.legal_bids()[0] == Bid(2, Strain.CLUBS)


def test_three_passes_after_bid_terminate():
    auction = AuctionEngine(dealer=Seat.SOUTH)
    auction.select_bid(ONE_CLUB)
    auction.pass_call()
    auction.pass_call()
    assert not auction.is_terminated

    auction.pass_call()

    assert auction.is_terminated
    assert auction.highest_bid == ONE_CLUB
    assert auction.highest_bidder is Seat.SOUTH
    assert auction.legal_bids() == []
    assert not auction.is_passed_out


def test_calls_after_termination_are_rejected():
    auction = AuctionEngine.replay(Seat.SOUTH, [ONE_CLUB, PASS, PASS, PASS])

    with pytest.raises(AuctionTerminated):
        auction.pass_call()
    with pytest.raises(AuctionTerminated):
        auction.select_bid(Bid(7, Strain.NOTRUMP))
    assert isinstance(AuctionTerminated("x"), IllegalCallError)

    auction.reset(Seat.NORTH)
    assert auction.phase is AuctionPhase.IN_PROGRESS
    assert auction.dealer is Seat.NORTH
    assert auction.current_seat is Seat.NORTH
    assert auction.calls == []


def test_pass_does_not_clear_highest_bid():
    auction = AuctionEngine.replay(Seat.WEST, [ONE_CLUB, PASS, PASS])

    assert auction.highest_bid == ONE_CLUB
    assert auction.consecutive_passes == 2

    auction.select_bid(Bid(2, Strain.HEARTS))
    assert auction.consecutive_passes == 0
    assert auction.current_seat is Seat.WEST


def test_passed_out_needs_four_passes_under_standard_policy():
    auction = AuctionEngine(dealer=Seat.SOUTH, policy=TerminationPolicy.STANDARD)
    for _ in range(3):
        auction.pass_call()
    assert not auction.is_terminated
    assert auction.current_seat is Seat.EAST

    auction.pass_call()

    assert auction.is_terminated
    assert auction.is_passed_out
    assert auction.highest_bid is None


def test_passed_out_after_three_passes_under_three_pass_policy():
    auction = AuctionEngine(dealer=Seat.SOUTH, policy=TerminationPolicy.THREE_PASSES)
    for _ in range(3):
        auction.pass_call()

    assert auction.is_terminated
    assert auction.is_passed_out
    with pytest.raises(AuctionTerminated):
        auction.pass_call()


def test_three_pass_policy_matches_standard_once_a_bid_exists():
    for policy in TerminationPolicy:
        auction = AuctionEngine.replay(Seat.SOUTH, [PASS, ONE_CLUB, PASS, PASS], policy=policy)
        assert not auction.is_terminated
        auction.pass_call()
        assert auction.is_terminated


def test_is_legal_and_path():
    auction = AuctionEngine.replay(Seat.SOUTH, [PASS, Bid(1, Strain.HEARTS)])

    assert auction.path == ("PASS", "1♥")
    assert auction.is_legal(PASS)
    assert auction.is_legal(Bid(1, Strain.SPADES))
    assert not auction.is_legal(Bid(1, Strain.DIAMONDS))
    assert [record.seat for record in auction.call_history] == [Seat.SOUTH, Seat.WEST]


def test_listeners_receive_record_and_path():
    seen = []
    auction = AuctionEngine(dealer=Seat.NORTH)
    listener = lambda record, path: seen.append((record.seat, path))
    auction.subscribe(listener)

    auction.select_bid(ONE_CLUB)
    auction.pass_call()
    with pytest.raises(DoesNotOutbid):
        auction.select_bid(ONE_CLUB)
    auction.unsubscribe(listener)
    auction.pass_call()

    assert seen == [(Seat.NORTH, ("1♣",)), (Seat.EAST, ("1♣", "PASS"))]
