"""Free balances of accounts with an existential deposit."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Hashable, Iterable

from minix.runtime import DispatchError, System

_MAX_BALANCE = 2**128 - 1


class BalancesError(Enum):
    INSUFFICIENT_BALANCE = "InsufficientBalance"
    EXISTENTIAL_DEPOSIT = "ExistentialDeposit"
    KEEP_ALIVE = "KeepAlive"
    OVERFLOW = "Overflow"


class ExistenceRequirement(Enum):
    """Whether a transfer may leave the sender below the existential deposit."""

    KEEP_ALIVE = auto()
    ALLOW_DEATH = auto()


@dataclass(frozen=True)
class Transfer:
    source: Any
    dest: Any
    value: int


@dataclass(frozen=True)
class Endowed:
    account: Any
    free_balance: int


def _check_amount(value: int) -> None:
    if not 0 <= value <= _MAX_BALANCE:
        raise ValueError(f"balance {value} is not a u128")


class Balances:
    """Account balances; an account exists while it holds the existential deposit."""

    def __init__(
        self,
        system: System | None = None,
        existential_deposit: int = 500,
        endowed: Iterable[tuple[Hashable, int]] = (),
    ) -> None:
        _check_amount(existential_deposit)
        self._system = system
        self._existential_deposit = existential_deposit
        self._free: dict[Hashable, int] = {}
        for account, amount in endowed:
            _check_amount(amount)
            if amount < existential_deposit:
                raise ValueError(
                    f"endowment of {account!r} is below the existential deposit"
                )
            if account in self._free:
                raise ValueError(f"duplicate endowment of {account!r}")
            self._free[account] = amount

    def _deposit(self, event: Any) -> None:
        if self._system is not None:
            self._system.deposit_event(event)

    @property
    def total_issuance(self) -> int:
        """Sum of all free balances."""
        return sum(self._free.values())

    def free_balance(self, who: Hashable) -> int:
        return self._free.get(who, 0)

    def minimum_balance(self) -> int:
        return self._existential_deposit

    def transfer(
        self,
        source: Hashable,
        dest: Hashable,
        value: int,
        existence: ExistenceRequirement,
    ) -> None:
        """Move ``value`` from ``source`` to ``dest``; nothing changes on error."""
        _check_amount(value)
        if value == 0 or source == dest:
            return

        ed = self._existential_deposit
        from_balance = self.free_balance(source)
        if value > from_balance:
            raise DispatchError(BalancesError.INSUFFICIENT_BALANCE)
        new_from = from_balance - value

        new_to = self.free_balance(dest) + value
        if new_to > _MAX_BALANCE:
            raise DispatchError(BalancesError.OVERFLOW)
        if new_to < ed:
            raise DispatchError(BalancesError.EXISTENTIAL_DEPOSIT)

        allow_death = existence is ExistenceRequirement.ALLOW_DEATH
        if not allow_death and new_from < ed:
            raise DispatchError(BalancesError.KEEP_ALIVE)

        if new_from < ed:
            self._free.pop(source, None)
        else:
            self._free[source] = new_from

        created = dest not in self._free
        self._free[dest] = new_to
        if created:
            self._deposit(Endowed(dest, new_to))
        self._deposit(Transfer(source, dest, value))

    def make_free_balance_be(self, who: Hashable, value: int) -> None:
        """Set the free balance of ``who``; below the deposit the account is removed."""
        _check_amount(value)
        if value < self._existential_deposit:
            self._free.pop(who, None)
            return
        created = who not in self._free
        self._free[who] = value
        if created:
            self._deposit(Endowed(who, value))