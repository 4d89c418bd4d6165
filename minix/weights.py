"""Dispatch weights of the cid registry and the cid auction calls."""

from __future__ import annotations

from dataclasses import dataclass, field

_WEIGHT_MAX = 2**64 - 1


def _saturating_add(a: int, b: int) -> int:
    return min(a + b, _WEIGHT_MAX)


def _saturating_mul(a: int, b: int) -> int:
    return min(a * b, _WEIGHT_MAX)


@dataclass(frozen=True)
class RuntimeDbWeight:
    """The weight of a single storage read and a single storage write."""

    read: int = 0
    write: int = 0

    def reads(self, n: int) -> int:
        """Weight of ``n`` storage reads."""
        return _saturating_mul(self.read, n)

    def writes(self, n: int) -> int:
        """Weight of ``n`` storage writes."""
        return _saturating_mul(self.write, n)


def _weight(db: RuntimeDbWeight, base: int, reads: int, writes: int) -> int:
    return _saturating_add(_saturating_add(base, db.reads(reads)), db.writes(writes))


@dataclass(frozen=True)
class ComingIdWeights:
    """Weights of the cid registry calls."""

    db: RuntimeDbWeight = field(default_factory=RuntimeDbWeight)

    def register(self) -> int:
        return _weight(self.db, 44_632_000, 4, 3)

    def bond(self, b: int) -> int:
        base = _saturating_add(20_000_000, _saturating_mul(5_060_000, b))
        return _weight(self.db, base, 1, 1)

    def unbond(self) -> int:
        return _weight(self.db, 22_208_000, 1, 1)


@dataclass(frozen=True)
class ComingAuctionWeights:
    """Weights of the cid auction calls."""

    db: RuntimeDbWeight = field(default_factory=RuntimeDbWeight)

    def create(self) -> int:
        return _weight(self.db, 83_638_000, 7, 7)

    def bid(self) -> int:
        return _weight(self.db, 98_994_000, 9, 7)

    def cancel(self) -> int:
        return _weight(self.db, 77_809_000, 6, 7)

    def pause(self) -> int:
        return _weight(self.db, 26_149_000, 2, 1)

    def unpause(self) -> int:
        return _weight(self.db, 26_928_000, 2, 1)

    def cancel_when_pause(self) -> int:
        return _weight(self.db, 81_305_000, 8, 7)

    def set_fee_point(self) -> int:
        return _weight(self.db, 12_650_000, 3, 1)

    def set_admin(self) -> int:
        return _weight(self.db, 7_167_000, 1, 1)