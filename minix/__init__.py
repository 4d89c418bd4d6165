"""In-memory cid registry, linear-price cid auctions, call weights and their JSON-RPC queries."""

__version__ = "0.1.0"

__all__ = ["auction", "balances", "chain_id", "coming_id", "rpc", "runtime", "weights"]