from dataclasses import dataclass

import pytest

from minix.auction import (
    MIN_DURATION,
    Auction,
    AuctionCanceled,
    AuctionCreated,
    AuctionError,
    AuctionSuccessful,
    ComingAuction,
    Paused,
    UnPaused,
    auction_account_id,
    calculate_price,
)
from minix.balances import Balances, BalancesError
from minix.coming_id import ComingId, ComingIdError
from minix.runtime import BadOrigin, DispatchError, Origin, System

ALICE = 1
BOB = 2
CHARLIE = 3
RESERVE = 0
COMMUNITY = 100_000
COMMON = 1_000_000
DURATION = MIN_DURATION
EXISTENTIAL_DEPOSIT = 500


@dataclass
class Chain:
    system: System
    balances: Balances
    ids: ComingId
    auction: ComingAuction


@pytest.fixture
def chain():
    system = System(block_number=1)
    balances = Balances(
        system,
        existential_deposit=EXISTENTIAL_DEPOSIT,
        endowed=[
            (ALICE, 10_000_000_000),
            (BOB, 10_000_000_000),
            (CHARLIE, 1_000_000_000),
        ],
    )
    ids = ComingId(
        system,
        high_admin_key=ALICE,
        medium_admin_key=ALICE,
        medium_admin_key2=ALICE,
        medium_admin_key3=ALICE,
        low_admin_key=ALICE,
    )
    auction = ComingAuction(system, ids, balances, admin_key=ALICE)
    return Chain(system, balances, ids, auction)


def expect_error(error, fn, *args):
    with pytest.raises(DispatchError) as info:
        fn(*args)
    assert info.value.error is error


def test_create_auction_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    chain.auction.create(
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    assert chain.system.last_event() == AuctionCreated(
        COMMON, ALICE, 10_000_000_000, 1_000_000_000, DURATION, 1
    )
    assert chain.auction.get_auction(COMMON) == Auction(
        ALICE, 10_000_000_000, 1_000_000_000, DURATION, 1
    )
    assert chain.auction.get_stats() == (1, 0, 0)


def test_create_auction_should_not_work(chain):
    chain.ids.register(Origin.signed(ALICE), RESERVE, ALICE)
    chain.ids.register(Origin.signed(ALICE), COMMUNITY, BOB)
    create = chain.auction.create

    expect_error(
        ComingIdError.BAN_TRANSFER,
        create, Origin.signed(ALICE), RESERVE, 10_000_000_000, 1_000_000_000, DURATION,
    )
    expect_error(
        ComingIdError.REQUIRE_OWNER,
        create, Origin.signed(ALICE), COMMUNITY, 10_000_000_000, 1_000_000_000, DURATION,
    )
    expect_error(
        AuctionError.TOO_LITTLE_DURATION,
        create, Origin.signed(BOB), COMMUNITY, 10_000_000_000, 1_000_000_000, 0,
    )
    expect_error(
        AuctionError.LESS_THAN_MIN_BALANCE,
        create, Origin.signed(BOB), COMMUNITY,
        EXISTENTIAL_DEPOSIT, EXISTENTIAL_DEPOSIT, DURATION,
    )
    assert chain.auction.get_stats() == (0, 0, 0)

    create(Origin.signed(BOB), COMMUNITY, 10_000_000_000, 1_000_000_000, DURATION)
    expect_error(
        AuctionError.ON_AUCTION,
        create, Origin.signed(BOB), COMMUNITY, 10_000_000_000, 1_000_000_000, DURATION,
    )
    assert chain.auction.get_stats() == (1, 0, 0)


def test_bid_auction_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    assert chain.ids.owner_of_cid(COMMON) == ALICE

    chain.auction.create(
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    escrow = chain.auction.auction_account_id(COMMON)
    assert chain.ids.owner_of_cid(COMMON) == escrow
    assert chain.system.last_event() == AuctionCreated(
        COMMON, ALICE, 10_000_000_000, 1_000_000_000, DURATION, 1
    )
    assert chain.auction.get_stats() == (1, 0, 0)

    chain.system.run_to_block(DURATION // 2 + 1)
    assert chain.auction.get_current_price(COMMON) == 5_500_000_000
    assert chain.auction.balance_of(ALICE) == 10_000_000_000

    chain.auction.bid(Origin.signed(BOB), COMMON, 5_500_000_000)
    assert chain.system.last_event() == AuctionSuccessful(
        COMMON, BOB, 5_500_000_000, DURATION // 2 + 1
    )
    assert chain.auction.balance_of(ALICE) == 10_000_000_000 + 5_500_000_000
    assert chain.auction.balance_of(BOB) == 10_000_000_000 - 5_500_000_000
    assert chain.ids.owner_of_cid(COMMON) == BOB
    assert chain.auction.get_auction(COMMON) is None
    assert chain.auction.get_stats() == (1, 1, 0)


def test_bid_auction_should_not_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    bid = chain.auction.bid

    expect_error(
        AuctionError.NOT_ON_AUCTION, bid, Origin.signed(CHARLIE), COMMON, 10_000_000_000
    )

    chain.auction.create(
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    expect_error(AuctionError.LOW_BID_VALUE, bid, Origin.signed(BOB), COMMON, 1_000_000_000)
    expect_error(BalancesError.KEEP_ALIVE, bid, Origin.signed(BOB), COMMON, 10_000_000_000)

    chain.system.run_to_block(2)
    expect_error(
        BalancesError.INSUFFICIENT_BALANCE,
        bid, Origin.signed(CHARLIE), COMMON, 10_000_000_000,
    )
    assert chain.auction.get_stats() == (1, 0, 0)
    assert chain.balances.free_balance(CHARLIE) == 1_000_000_000


def test_common_cancel_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    chain.auction.create(
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    assert chain.ids.owner_of_cid(COMMON) == chain.auction.auction_account_id(COMMON)

    chain.system.run_to_block(DURATION // 2 + 1)
    assert chain.auction.get_current_price(COMMON) == 5_500_000_000

    chain.auction.cancel(Origin.signed(ALICE), COMMON)
    assert chain.system.last_event() == AuctionCanceled(COMMON, DURATION // 2 + 1)
    assert chain.auction.balance_of(ALICE) == 10_000_000_000
    assert chain.ids.owner_of_cid(COMMON) == ALICE
    assert chain.auction.get_stats() == (1, 0, 1)


def test_cancel_by_other_account_fails(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    chain.auction.create(
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    expect_error(AuctionError.NOT_MATCH_SELLER, chain.auction.cancel, Origin.signed(BOB), COMMON)
    expect_error(AuctionError.NOT_ON_AUCTION, chain.auction.cancel, Origin.signed(BOB), COMMUNITY)
    assert chain.auction.get_stats() == (1, 0, 0)


def test_pause_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)

    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(1)

    chain.system.run_to_block(2)
    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(1)

    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.create,
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION,
    )
    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.bid, Origin.signed(BOB), COMMON, 10_000_000_000,
    )
    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.set_fee_point, Origin.signed(ALICE), 10,
    )


def test_pause_requires_admin(chain):
    expect_error(AuctionError.REQUIRE_ADMIN, chain.auction.pause, Origin.signed(BOB))
    assert chain.auction.is_in_emergency() is False


def test_unpause_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMUNITY, ALICE)

    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(1)
    chain.system.run_to_block(2)
    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.create,
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION,
    )
    chain.auction.unpause(Origin.signed(ALICE))
    assert chain.system.last_event() == UnPaused(2)
    chain.auction.create(
        Origin.signed(ALICE), COMMUNITY, 10_000_000_000, 1_000_000_000, DURATION
    )

    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(2)
    chain.system.run_to_block(3)
    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.bid, Origin.signed(BOB), COMMUNITY, 10_000_000_000,
    )
    chain.auction.unpause(Origin.signed(ALICE))
    assert chain.system.last_event() == UnPaused(3)
    chain.auction.bid(Origin.signed(BOB), COMMUNITY, 9_990_000_000)
    assert chain.ids.owner_of_cid(COMMUNITY) == BOB

    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(3)
    chain.system.run_to_block(4)
    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.set_fee_point, Origin.signed(ALICE), 10,
    )
    chain.auction.unpause(Origin.signed(ALICE))
    assert chain.system.last_event() == UnPaused(4)
    chain.auction.set_fee_point(Origin.signed(ALICE), 10)
    assert chain.auction.get_fee_point() == 10


def test_set_fee_point_should_work(chain):
    assert chain.auction.get_fee_point() == 0
    chain.auction.set_fee_point(Origin.signed(ALICE), 255)
    assert chain.auction.get_fee_point() == 255

    chain.auction.pause(Origin.signed(ALICE))
    expect_error(
        AuctionError.IN_EMERGENCY,
        chain.auction.set_fee_point, Origin.signed(ALICE), 10,
    )

    chain.auction.unpause(Origin.signed(ALICE))
    chain.auction.set_fee_point(Origin.signed(ALICE), 10)
    assert chain.auction.get_fee_point() == 10


def test_set_fee_point_rejects_non_u8(chain):
    with pytest.raises(ValueError):
        chain.auction.set_fee_point(Origin.signed(ALICE), 256)
    assert chain.auction.get_fee_point() == 0


def test_admin_cancel_when_pause_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, BOB)
    chain.auction.create(
        Origin.signed(BOB), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(1)

    chain.system.run_to_block(2)
    chain.auction.cancel_when_pause(Origin.signed(ALICE), COMMON)
    assert chain.auction.get_stats() == (1, 0, 1)
    assert chain.ids.owner_of_cid(COMMON) == BOB
    assert chain.system.last_event() == AuctionCanceled(COMMON, 2)


def test_admin_cancel_should_not_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, BOB)
    chain.auction.create(
        Origin.signed(BOB), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    chain.system.run_to_block(2)
    expect_error(
        AuctionError.ONLY_IN_EMERGENCY,
        chain.auction.cancel_when_pause, Origin.signed(ALICE), COMMON,
    )
    assert chain.auction.get_stats() == (1, 0, 0)


def test_common_cancel_when_pause_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, BOB)
    chain.auction.create(
        Origin.signed(BOB), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    chain.auction.pause(Origin.signed(ALICE))
    assert chain.system.last_event() == Paused(1)

    chain.system.run_to_block(2)
    chain.auction.cancel(Origin.signed(BOB), COMMON)
    assert chain.auction.get_stats() == (1, 0, 1)


def test_english_auction_should_work(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    chain.auction.create(
        Origin.signed(ALICE), COMMON, 1_000_000_000, 10_000_000_000, DURATION
    )
    assert chain.system.last_event() == AuctionCreated(
        COMMON, ALICE, 1_000_000_000, 10_000_000_000, DURATION, 1
    )
    assert chain.auction.get_auction(COMMON) == Auction(
        ALICE, 1_000_000_000, 10_000_000_000, DURATION, 1
    )
    assert chain.auction.get_stats() == (1, 0, 0)

    chain.system.run_to_block(DURATION // 2 + 1)
    chain.auction.bid(Origin.signed(BOB), COMMON, 5_500_000_000)
    assert chain.system.last_event() == AuctionSuccessful(
        COMMON, BOB, 5_500_000_000, DURATION // 2 + 1
    )
    assert chain.auction.balance_of(ALICE) == 10_000_000_000 + 5_500_000_000
    assert chain.auction.balance_of(BOB) == 10_000_000_000 - 5_500_000_000
    assert chain.ids.owner_of_cid(COMMON) == BOB
    assert chain.auction.get_stats() == (1, 1, 0)


@pytest.mark.parametrize(
    "start, end, expected",
    [
        (1_000_000_000, 10_000_000_000,
         [3_250_000_000, 5_500_000_000, 7_750_000_000, 10_000_000_000, 10_000_000_000]),
        (10_000_000_000, 1_000_000_000,
         [7_750_000_000, 5_500_000_000, 3_250_000_000, 1_000_000_000, 1_000_000_000]),
    ],
)
def test_current_price_curve(chain, start, end, expected):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    chain.auction.create(Origin.signed(ALICE), COMMON, start, end, DURATION)

    blocks = [
        DURATION // 4 + 1,
        DURATION // 4 * 2 + 1,
        DURATION // 4 * 3 + 1,
        DURATION // 4 * 4 + 1,
        DURATION // 4 * 4 + 2,
    ]
    prices = []
    for block in blocks:
        chain.system.run_to_block(block)
        prices.append(chain.auction.get_current_price(COMMON))
    assert prices == expected


def test_current_price_without_auction_is_zero(chain):
    assert chain.auction.get_current_price(COMMON) == 0


def test_bid_with_fee_splits_payment(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, BOB)
    chain.auction.set_fee_point(Origin.signed(ALICE), 100)
    chain.auction.create(
        Origin.signed(BOB), COMMON, 900_000_000, 600_000_000, DURATION
    )
    before = {a: chain.balances.free_balance(a) for a in (ALICE, BOB, CHARLIE)}

    chain.auction.bid(Origin.signed(CHARLIE), COMMON, 900_000_000)

    admin_gain = chain.balances.free_balance(ALICE) - before[ALICE]
    seller_gain = chain.balances.free_balance(BOB) - before[BOB]
    buyer_loss = before[CHARLIE] - chain.balances.free_balance(CHARLIE)
    assert buyer_loss == 900_000_000
    assert admin_gain + seller_gain == buyer_loss
    assert admin_gain == chain.auction.calculate_fee(900_000_000) == 9_000_000
    assert chain.ids.owner_of_cid(COMMON) == CHARLIE


def test_failed_bid_changes_nothing(chain):
    chain.ids.register(Origin.signed(ALICE), COMMON, ALICE)
    chain.auction.set_fee_point(Origin.signed(ALICE), 10)
    chain.auction.create(
        Origin.signed(ALICE), COMMON, 10_000_000_000, 1_000_000_000, DURATION
    )
    events_before = list(chain.system.events)

    expect_error(
        BalancesError.KEEP_ALIVE,
        chain.auction.bid, Origin.signed(BOB), COMMON, 10_000_000_000,
    )
    assert chain.balances.free_balance(BOB) == 10_000_000_000
    assert chain.balances.free_balance(ALICE) == 10_000_000_000
    assert chain.system.events == events_before
    assert chain.auction.get_auction(COMMON) is not None
    assert chain.ids.owner_of_cid(COMMON) == chain.auction.auction_account_id(COMMON)


def test_set_admin_requires_root(chain):
    with pytest.raises(BadOrigin):
        chain.auction.set_admin(Origin.signed(ALICE), BOB)
    assert chain.auction.is_admin(ALICE) is True

    chain.auction.set_admin(Origin.root(), BOB)
    assert chain.auction.is_admin(BOB) is True
    assert chain.auction.is_admin(ALICE) is False


def test_auction_account_id_layout():
    raw = auction_account_id(1_000_000, b"/auc", 32)
    assert raw == b"modl/auc\x40\x42\x0f\x00\x00\x00\x00\x00" + b"\x00" * 16


def test_auction_account_id_distinct_per_cid(chain):
    first = chain.auction.auction_account_id(COMMON)
    second = chain.auction.auction_account_id(COMMON + 1)
    assert first != second
    assert first.to_bytes(16, "little")[:8] == b"modl/auc"


@pytest.mark.parametrize(
    "start, end, duration, passed, expected",
    [
        (10_000_000_000, 1_000_000_000, 100, 25, 7_750_000_000),
        (1_000_000_000, 10_000_000_000, 100, 75, 7_750_000_000),
        (10_000_000_000, 1_000_000_000, 100, 100, 1_000_000_000),
        (10_000_000_000, 1_000_000_000, 100, 0, 10_000_000_000),
        (5, 9, 0, 0, 9),
    ],
)
def test_calculate_price(start, end, duration, passed, expected):
    assert calculate_price(start, end, duration, passed) == expected