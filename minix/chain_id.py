"""The numeric Ethereum-style chain id kept by the runtime."""

from __future__ import annotations

from dataclasses import dataclass

_U64_MAX = 2**64 - 1


@dataclass
class EthereumChainId:
    """Stores the chain id; genesis sets it to 1500 unless told otherwise."""

    chain_id: int = 1500

    def __post_init__(self) -> None:
        if not 0 <= self.chain_id <= _U64_MAX:
            raise ValueError(f"chain id {self.chain_id} is not a u64")

    def get(self) -> int:
        """The stored chain id."""
        return self.chain_id