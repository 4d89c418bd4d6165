"""Dispatch origins, dispatch errors and the block and event bookkeeping of a runtime."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Origin:
    """The origin of a dispatched call: a signed account, root, or nobody."""

    who: Any = None
    is_root: bool = False

    @classmethod
    def signed(cls, who: Any) -> "Origin":
        """An origin signed by the account ``who``."""
        return cls(who=who)

    @classmethod
    def root(cls) -> "Origin":
        """The privileged root origin."""
        return cls(is_root=True)


class DispatchError(Exception):
    """A dispatched call failed; ``error`` names the reason."""

    def __init__(self, error: Any, message: str | None = None) -> None:
        self.error = error
        super().__init__(message or getattr(error, "name", str(error)))


class BadOrigin(DispatchError):
    """The call was made from an origin it does not accept."""

    def __init__(self) -> None:
        super().__init__("BadOrigin")


def ensure_signed(origin: Origin) -> Any:
    """Return the signing account of ``origin``; raise BadOrigin otherwise."""
    if origin.is_root or origin.who is None:
        raise BadOrigin()
    return origin.who


def ensure_root(origin: Origin) -> None:
    """Raise BadOrigin unless ``origin`` is root."""
    if not origin.is_root:
        raise BadOrigin()


@dataclass(frozen=True)
class EventRecord:
    """An event together with the block it was deposited in."""

    block_number: int
    event: Any


class System:
    """Holds the current block number and the events deposited so far."""

    def __init__(self, block_number: int = 0) -> None:
        self.block_number = 0
        self.events: list[EventRecord] = []
        self.set_block_number(block_number)

    def deposit_event(self, event: Any) -> None:
        """Record ``event`` against the current block."""
        self.events.append(EventRecord(self.block_number, event))

    def last_event(self) -> Any:
        """The most recently deposited event."""
        if not self.events:
            raise LookupError("Event expected")
        return self.events[-1].event

    def last_events(self, n: int) -> list[Any]:
        """The last ``n`` events, oldest first."""
        if n < 0:
            raise ValueError("event count must not be negative")
        start = max(0, len(self.events) - n)
        return [record.event for record in self.events[start:]]

    def set_block_number(self, number: int) -> None:
        """Set the current block number."""
        if number < 0:
            raise ValueError("block number must not be negative")
        self.block_number = number

    def run_to_block(self, n: int) -> None:
        """Advance block by block until block ``n``; events are kept."""
        while self.block_number < n:
            self.block_number += 1

    def reset_events(self) -> None:
        """Forget every deposited event."""
        self.events.clear()