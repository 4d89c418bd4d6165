"""JSON-RPC queries over the cid registry and the cid auctions, at a chosen block."""

from __future__ import annotations

import json
from enum import IntEnum
from typing import Any, Callable, Hashable, Mapping

from minix.coming_id import CidDetails

_U64_MAX = 2**64 - 1
_U256_MAX = 2**256 - 1


class ErrorCode(IntEnum):
    """JSON-RPC error codes, plus the server codes of these queries."""

    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    RUNTIME_ERROR = 1
    DECODE_ERROR = 2


class RpcError(Exception):
    """An error returned to the JSON-RPC caller."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.code = int(code)
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        """The error object of a JSON-RPC response."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


def number_or_hex(value: int) -> int | str:
    """A number as sent over RPC: plain when it fits in a u64, else a 0x hex string.

    Raises ValueError for negative values and values beyond 256 bits.
    """
    if value < 0 or value > _U256_MAX:
        raise ValueError(f"{value} doesn't fit in NumberOrHex representation")
    if value <= _U64_MAX:
        return value
    return hex(value)


class ChainClient:
    """Keeps the state of each imported block; the last one added is the best."""

    def __init__(self) -> None:
        self._blocks: dict[Hashable, Any] = {}
        self.best_hash: Hashable | None = None

    def add_block(self, block_hash: Hashable, state: Any) -> None:
        """Import ``state`` under ``block_hash`` and make it the best block."""
        self._blocks[block_hash] = state
        self.best_hash = block_hash

    def state_at(self, at: Hashable | None = None) -> Any:
        """The state of block ``at``, or of the best block when ``at`` is None."""
        block_hash = self.best_hash if at is None else at
        if block_hash is None or block_hash not in self._blocks:
            raise LookupError(f"unknown block {block_hash!r}")
        return self._blocks[block_hash]


def _identity(state: Any) -> Any:
    return state


class _RuntimeQueries:
    def __init__(
        self, client: ChainClient, select: Callable[[Any], Any] | None = None
    ) -> None:
        self.client = client
        self._select = select if select is not None else _identity

    def _call(self, at: Hashable | None, message: str, query: Callable[[Any], Any]) -> Any:
        try:
            pallet = self._select(self.client.state_at(at))
            return query(pallet)
        except RpcError:
            raise
        except Exception as exc:
            raise RpcError(ErrorCode.RUNTIME_ERROR, message, repr(exc)) from exc


def _bytes_hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def _details_json(details: CidDetails) -> dict[str, Any]:
    return {
        "owner": details.owner,
        "bonds": [
            {"bondType": bond.bond_type, "data": list(bond.data)}
            for bond in details.bonds
        ],
        "card": list(details.card),
    }


class ComingIdRpc(_RuntimeQueries):
    """Cid registry queries; ``select`` picks the registry out of a block's state."""

    def get_account_id(self, cid: int, at: Hashable | None = None) -> Any:
        return self._call(at, "Unable to get account id.", lambda p: p.get_account_id(cid))

    def get_cids(self, account: Hashable, at: Hashable | None = None) -> list[int]:
        return self._call(at, "Unable to get cids.", lambda p: list(p.get_cids(account)))

    def get_bond_data(self, cid: int, at: Hashable | None = None) -> dict[str, Any] | None:
        details = self._call(at, "Unable to get bond data.", lambda p: p.get_bond_data(cid))
        return None if details is None else _details_json(details)

    def get_card(self, cid: int, at: Hashable | None = None) -> str | None:
        card = self._call(at, "Unable to get card.", lambda p: p.get_card(cid))
        return None if card is None else _bytes_hex(card)


class ComingAuctionRpc(_RuntimeQueries):
    """Cid auction queries; ``select`` picks the auctions out of a block's state."""

    def get_price(self, cid: int, at: Hashable | None = None) -> int | str:
        price = self._call(at, "Unable to get price.", lambda p: p.get_current_price(cid))
        try:
            return number_or_hex(price)
        except ValueError:
            raise RpcError(
                ErrorCode.INVALID_PARAMS,
                f"{price} doesn't fit in NumberOrHex representation",
            ) from None


def _response(request_id: Any, *, result: Any = None, error: RpcError | None = None) -> dict:
    response: dict[str, Any] = {"jsonrpc": "2.0"}
    if error is not None:
        response["error"] = error.to_dict()
    else:
        response["result"] = result
    response["id"] = request_id
    return response


def _handle_one(handlers: Mapping[str, Callable[..., Any]], request: Any) -> dict | None:
    if not isinstance(request, dict):
        return _response(None, error=RpcError(ErrorCode.INVALID_REQUEST, "Invalid request"))
    request_id = request.get("id")
    method = request.get("method")
    params = request.get("params", [])
    if (
        request.get("jsonrpc") != "2.0"
        or not isinstance(method, str)
        or not isinstance(params, (list, dict))
    ):
        return _response(request_id, error=RpcError(ErrorCode.INVALID_REQUEST, "Invalid request"))
    is_notification = "id" not in request

    handler = handlers.get(method)
    if handler is None:
        outcome = _response(
            request_id, error=RpcError(ErrorCode.METHOD_NOT_FOUND, "Method not found")
        )
        return None if is_notification else outcome

    args, kwargs = (params, {}) if isinstance(params, list) else ([], params)
    try:
        outcome = _response(request_id, result=handler(*args, **kwargs))
    except RpcError as exc:
        outcome = _response(request_id, error=exc)
    except TypeError as exc:
        tb = exc.__traceback__
        # A TypeError raised by the call itself, before the handler ran,
        # means the params did not match the handler's signature.
        if tb is not None and tb.tb_next is None:
            error = RpcError(ErrorCode.INVALID_PARAMS, "Invalid params", str(exc))
        else:
            error = RpcError(ErrorCode.INTERNAL_ERROR, "Internal error", repr(exc))
        outcome = _response(request_id, error=error)
    except Exception as exc:
        outcome = _response(
            request_id, error=RpcError(ErrorCode.INTERNAL_ERROR, "Internal error", repr(exc))
        )
    return None if is_notification else outcome


def dispatch(handlers: Mapping[str, Callable[..., Any]], request: Any) -> Any:
    """Answer a JSON-RPC 2.0 request, given as text or already decoded.

    Returns the response object, a list of them for a batch, or None when
    nothing is to be answered (notifications).
    """
    if isinstance(request, (str, bytes, bytearray)):
        try:
            request = json.loads(request)
        except ValueError:
            return _response(None, error=RpcError(ErrorCode.PARSE_ERROR, "Parse error"))
    if isinstance(request, list):
        if not request:
            return _response(None, error=RpcError(ErrorCode.INVALID_REQUEST, "Invalid request"))
        answers = [a for a in (_handle_one(handlers, item) for item in request) if a is not None]
        return answers or None
    return _handle_one(handlers, request)