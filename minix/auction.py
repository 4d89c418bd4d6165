"""Descending or ascending price auctions of cids, paid in the native balance."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, Hashable, Iterator

from minix.balances import Balances, ExistenceRequirement
from minix.coming_id import ComingNFT
from minix.runtime import DispatchError, Origin, System, ensure_root, ensure_signed
from minix.weights import ComingAuctionWeights

MIN_DURATION = 100
"""The shortest auction, in blocks."""

TYPE_ID = b"modl"
DEFAULT_PALLET_ID = b"/auc"

_U64_MAX = 2**64 - 1
_U128_MAX = 2**128 - 1


@dataclass(frozen=True)
class Auction:
    """An auction in progress."""

    seller: Any
    start_price: int
    end_price: int
    duration: int
    start: int


class AuctionError(Enum):
    ON_AUCTION = "OnAuction"
    NOT_ON_AUCTION = "NotOnAuction"
    TOO_LITTLE_DURATION = "TooLittleDuration"
    IN_EMERGENCY = "InEmergency"
    ONLY_IN_EMERGENCY = "OnlyInEmergency"
    NOT_MATCH_SELLER = "NotMatchSeller"
    REQUIRE_ADMIN = "RequireAdmin"
    LOW_BID_VALUE = "LowBidValue"
    LESS_THAN_MIN_BALANCE = "LessThanMinBalance"


@dataclass(frozen=True)
class AuctionCreated:
    cid: int
    seller: Any
    start_price: int
    end_price: int
    duration: int
    start: int


@dataclass(frozen=True)
class AuctionSuccessful:
    cid: int
    buyer: Any
    price: int
    at: int


@dataclass(frozen=True)
class AuctionCanceled:
    cid: int
    at: int


@dataclass(frozen=True)
class Paused:
    at: int


@dataclass(frozen=True)
class UnPaused:
    at: int


def _fail(error: AuctionError) -> DispatchError:
    return DispatchError(error)


def _check_balance(value: int) -> None:
    if not 0 <= value <= _U128_MAX:
        raise ValueError(f"balance {value} is not a u128")


def auction_account_id(
    cid: int, pallet_id: bytes = DEFAULT_PALLET_ID, account_size: int = 32
) -> bytes:
    """The raw escrow account of ``cid``: type id, pallet id and little-endian cid.

    The bytes are zero padded, or cut, to ``account_size``.
    """
    if len(pallet_id) != 4:
        raise ValueError("pallet id must be 4 bytes")
    if not 0 <= cid <= _U64_MAX:
        raise ValueError(f"cid {cid} is not a u64")
    if account_size <= 0:
        raise ValueError("account size must be positive")
    raw = TYPE_ID + bytes(pallet_id) + cid.to_bytes(8, "little")
    return raw[:account_size].ljust(account_size, b"\x00")


def calculate_price(start: int, end: int, duration: int, passed: int) -> int:
    """The price after ``passed`` of ``duration`` blocks, moving linearly from start to end."""
    if passed >= duration:
        return end
    change = abs(start - end) * passed // duration
    return start - change if start > end else start + change


class ComingAuction:
    """Auctions of cids. Every failing call raises DispatchError and changes nothing.

    Accounts are integers; the escrow account of a cid is the little-endian
    reading of its ``account_size`` raw bytes.
    """

    def __init__(
        self,
        system: System,
        coming_nft: ComingNFT,
        currency: Balances,
        *,
        pallet_id: bytes = DEFAULT_PALLET_ID,
        admin_key: Any = None,
        account_size: int = 16,
        weights: ComingAuctionWeights | None = None,
    ) -> None:
        if len(pallet_id) != 4:
            raise ValueError("pallet id must be 4 bytes")
        self.system = system
        self.coming_nft = coming_nft
        self.currency = currency
        self.pallet_id = bytes(pallet_id)
        self.account_size = account_size
        self.weights = weights if weights is not None else ComingAuctionWeights()
        self.admin = admin_key
        self.point = 0
        self.in_emergency = False
        self.auctions: dict[int, Auction] = {}
        self._stats = (0, 0, 0)

    # calls

    def create(
        self,
        origin: Origin,
        cid: int,
        start_price: int,
        end_price: int,
        duration: int,
    ) -> None:
        """Put ``cid`` on auction; the cid is held in escrow until it ends."""
        _check_balance(start_price)
        _check_balance(end_price)
        self._ensure_not_emergency()
        if cid in self.auctions:
            raise _fail(AuctionError.ON_AUCTION)
        minimum = self.currency.minimum_balance()
        if not (start_price > minimum and end_price > minimum):
            raise _fail(AuctionError.LESS_THAN_MIN_BALANCE)
        if duration < MIN_DURATION:
            raise _fail(AuctionError.TOO_LITTLE_DURATION)

        seller = ensure_signed(origin)
        start = self._now()
        self.coming_nft.transfer(seller, cid, self.auction_account_id(cid))

        self.auctions[cid] = Auction(seller, start_price, end_price, duration, start)
        self._bump_stats(total=1)
        self.system.deposit_event(
            AuctionCreated(cid, seller, start_price, end_price, duration, start)
        )

    def bid(self, origin: Origin, cid: int, value: int) -> None:
        """Buy ``cid`` for ``value``, which must reach the current price."""
        _check_balance(value)
        self._ensure_not_emergency()
        auction = self.auctions.get(cid)
        if auction is None:
            raise _fail(AuctionError.NOT_ON_AUCTION)

        buyer = ensure_signed(origin)
        if value < self.get_current_price(cid):
            raise _fail(AuctionError.LOW_BID_VALUE)

        escrow = self.auction_account_id(cid)
        admin = self.admin
        keep_alive = ExistenceRequirement.KEEP_ALIVE
        with self._transactional(buyer, auction.seller, admin):
            if admin is not None:
                fee = self.calculate_fee(value)
                self.currency.transfer(buyer, admin, fee, keep_alive)
                self.currency.transfer(buyer, auction.seller, value - fee, keep_alive)
            else:
                self.currency.transfer(buyer, auction.seller, value, keep_alive)
            self.coming_nft.transfer(escrow, cid, buyer)

        del self.auctions[cid]
        self._bump_stats(success=1)
        self.system.deposit_event(AuctionSuccessful(cid, buyer, value, self._now()))

    def cancel(self, origin: Origin, cid: int) -> None:
        """End the seller's own auction and return the cid."""
        auction = self.auctions.get(cid)
        if auction is None:
            raise _fail(AuctionError.NOT_ON_AUCTION)
        seller = ensure_signed(origin)
        if auction.seller != seller:
            raise _fail(AuctionError.NOT_MATCH_SELLER)
        self._return_to_seller(cid, auction)

    def pause(self, origin: Origin) -> None:
        """Stop creating, bidding and fee changes; admin only."""
        self._ensure_admin(origin)
        if not self.in_emergency:
            self.in_emergency = True
            self.system.deposit_event(Paused(self._now()))

    def unpause(self, origin: Origin) -> None:
        """Lift the emergency stop; admin only."""
        self._ensure_admin(origin)
        if self.in_emergency:
            self.in_emergency = False
            self.system.deposit_event(UnPaused(self._now()))

    def cancel_when_pause(self, origin: Origin, cid: int) -> None:
        """While paused, end any auction and return its cid to the seller; admin only."""
        if not self.in_emergency:
            raise _fail(AuctionError.ONLY_IN_EMERGENCY)
        self._ensure_admin(origin)
        auction = self.auctions.get(cid)
        if auction is not None:
            self._return_to_seller(cid, auction)

    def set_fee_point(self, origin: Origin, new_point: int) -> None:
        """Set the protocol fee in units of 1/10000 of the price; admin only."""
        if not 0 <= new_point <= 255:
            raise ValueError(f"fee point {new_point} is not a u8")
        self._ensure_not_emergency()
        self._ensure_admin(origin)
        self.point = new_point

    def set_admin(self, origin: Origin, new_admin: Hashable) -> None:
        """Replace the admin; root only."""
        ensure_root(origin)
        self.admin = new_admin

    # queries

    def auction_account_id(self, cid: int) -> int:
        """The escrow account that holds ``cid`` during its auction."""
        raw = auction_account_id(cid, self.pallet_id, self.account_size)
        return int.from_bytes(raw, "little")

    def get_current_price(self, cid: int) -> int:
        """The price of ``cid`` at the current block, or 0 when it is not on auction."""
        auction = self.auctions.get(cid)
        if auction is None:
            return 0
        return calculate_price(
            auction.start_price,
            auction.end_price,
            auction.duration,
            self._now() - auction.start,
        )

    def calculate_fee(self, value: int) -> int:
        """The protocol fee taken from a payment of ``value``."""
        return value // 10_000 * self.point

    def balance_of(self, account: Hashable) -> int:
        return self.currency.free_balance(account)

    def get_stats(self) -> tuple[int, int, int]:
        """(total, successful, cancelled) auctions."""
        return self._stats

    def get_auction(self, cid: int) -> Auction | None:
        return self.auctions.get(cid)

    def get_fee_point(self) -> int:
        return self.point

    def is_admin(self, who: Hashable) -> bool:
        return self.admin is not None and self.admin == who

    def is_in_emergency(self) -> bool:
        return self.in_emergency

    # helpers

    def _now(self) -> int:
        return self.system.block_number

    def _ensure_not_emergency(self) -> None:
        if self.in_emergency:
            raise _fail(AuctionError.IN_EMERGENCY)

    def _ensure_admin(self, origin: Origin) -> None:
        who = ensure_signed(origin)
        if not self.is_admin(who):
            raise _fail(AuctionError.REQUIRE_ADMIN)

    def _return_to_seller(self, cid: int, auction: Auction) -> None:
        self.coming_nft.transfer(self.auction_account_id(cid), cid, auction.seller)
        del self.auctions[cid]
        self._bump_stats(cancel=1)
        self.system.deposit_event(AuctionCanceled(cid, self._now()))

    def _bump_stats(self, total: int = 0, success: int = 0, cancel: int = 0) -> None:
        t, s, c = self._stats
        self._stats = (
            min(t + total, _U64_MAX),
            min(s + success, _U64_MAX),
            min(c + cancel, _U64_MAX),
        )

    @contextmanager
    def _transactional(self, *accounts: Any) -> Iterator[None]:
        """Undo balance changes and events of the block if it raises."""
        saved = {a: self.currency.free_balance(a) for a in accounts if a is not None}
        mark = len(self.system.events)
        try:
            yield
        except DispatchError:
            for account, balance in saved.items():
                self.currency.make_free_balance_be(account, balance)
            del self.system.events[mark:]
            raise