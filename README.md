# minix

An in-memory model of a registry of numeric identifiers ("cids") that behave
like NFTs, of auctions in which those cids are sold, and of the query services
over both. Everything lives in Python objects. Nothing is stored to disk and
nothing talks to a network.

## Modules

- `minix.runtime`: `Origin` (`Origin.signed(who)`, `Origin.root()`),
  `ensure_signed` and `ensure_root`, the `DispatchError` exception (its
  `error` attribute names the reason) and its subclass `BadOrigin`, and
  `System`, which holds the current block number and the log of deposited
  events (`deposit_event`, `last_event`, `last_events`, `set_block_number`,
  `run_to_block`, `reset_events`).
- `minix.balances`: `Balances`, a ledger of free balances with an existential
  deposit (500 by default). `transfer(source, dest, value, existence)` follows
  `ExistenceRequirement.KEEP_ALIVE` or `ALLOW_DEATH` and raises
  `DispatchError` with a `BalancesError` reason. It deposits `Endowed` and
  `Transfer` events when given a `System`.
- `minix.coming_id`: `ComingId`, the cid registry, and `ComingNFT`, the
  abstract token interface it implements.
  - Cids run from 0 to 999,999,999,999. Who may `register` a cid depends on
    its range: the high admin may register any; below 100,000 only the high
    admin; 100,000 to 999,999 also `medium_admin_key3`; up to 9,999,999 also
    `medium_admin_key2`; up to 99,999,999 also `medium_admin_key`; above that
    also `low_admin_key`. `set_admin` (root only) replaces a key by `AdminType`.
  - Owners attach `BondData` with `bond` (a bond of the same type is replaced)
    and remove it with `unbond`.
  - `mint` attaches a card once (at most `max_card_size` bytes, 1 MiB by
    default). `burn` removes a reserved cid (below 100,000) and is open to the
    high admin only. Reserved cids cannot be transferred.
  - `transfer`, `transfer_from`, `approve`, `set_approval_for_all`,
    `get_approved` and `is_approved_for_all` work as with ERC-721 style
    tokens. A transfer to a new owner clears the cid's bonds and its approval.
  - Queries: `get_account_id` / `owner_of_cid`, `get_cids` / `cids_of_owner`,
    `get_bond_data`, `get_card` / `card_of_cid`.
  - Errors are `DispatchError` with a `ComingIdError` reason. Events are
    `Registered`, `Transferred`, `Bonded`, `BondUpdated`, `UnBonded`,
    `MintCard`, `Burned`, `Approval` and `ApprovalForAll`.
- `minix.auction`: `ComingAuction`, auctions of cids paid for through a
  `Balances` ledger.
  - `create` moves the cid into an escrow account (`auction_account_id`).
    Both prices must be above the existential deposit, and the duration must
    be at least `MIN_DURATION` (100) blocks.
  - The price moves in a straight line from start to end price over the
    duration (`calculate_price`, `get_current_price`). It can fall or rise.
  - `bid` pays the seller and hands the cid to the buyer. When an admin is
    set, a fee of `value // 10000 * point` goes to the admin (`set_fee_point`,
    `calculate_fee`).
  - `cancel` lets the seller end an auction. `pause` and `unpause` are the
    admin's emergency stop. While paused, `create`, `bid` and `set_fee_point`
    are refused, and `cancel_when_pause` lets the admin end any auction.
    `set_admin` is for root only.
  - `get_stats` returns (total, successful, cancelled). Errors are
    `DispatchError` with an `AuctionError` reason. Events are
    `AuctionCreated`, `AuctionSuccessful`, `AuctionCanceled`, `Paused` and
    `UnPaused`.
  - The module-level `auction_account_id(cid, pallet_id, account_size)` gives
    the raw escrow bytes: `b"modl"`, the pallet id, then the little-endian cid,
    zero padded.
- `minix.weights`: `ComingIdWeights` and `ComingAuctionWeights`, one method
  per call, built on a `RuntimeDbWeight` that gives the cost of a read and a
  write. Arithmetic saturates at 2**64 - 1.
- `minix.chain_id`: `EthereumChainId`, a stored u64 chain id, 1500 by default.
- `minix.rpc`: query services over a `ChainClient`, which keeps a state per
  block hash (`add_block`, `state_at`); the last block added is the best one.
  - `ComingIdRpc` offers `get_account_id`, `get_cids`, `get_bond_data` and
    `get_card`. `ComingAuctionRpc` offers `get_price`.
  - Each query takes an optional block hash `at` and otherwise uses the best
    block. A failing query raises `RpcError` with `ErrorCode.RUNTIME_ERROR`.
  - `number_or_hex` sends numbers that fit in a u64 as they are and larger
    ones as `0x` hex strings.
  - `dispatch(handlers, request)` answers a JSON-RPC 2.0 request given as text
    or as decoded JSON. It handles batches and notifications.

## Install

```
pip install .
```

## Example

```python
from minix.runtime import Origin, System
from minix.balances import Balances
from minix.coming_id import ComingId
from minix.auction import ComingAuction

ALICE, BOB = 1, 2
system = System(block_number=1)
balances = Balances(system, endowed=[(ALICE, 10_000_000_000), (BOB, 10_000_000_000)])
registry = ComingId(system, high_admin_key=ALICE)
auctions = ComingAuction(system, registry, balances, admin_key=ALICE)

cid = 1_000_000
registry.register(Origin.signed(ALICE), cid, ALICE)
auctions.create(Origin.signed(ALICE), cid, 10_000_000_000, 1_000_000_000, 100)

system.run_to_block(51)
assert auctions.get_current_price(cid) == 5_500_000_000

auctions.bid(Origin.signed(BOB), cid, 5_500_000_000)
assert registry.owner_of_cid(cid) == BOB
assert auctions.get_stats() == (1, 1, 0)
```

Accounts given to `ComingAuction` should be integers. The escrow account of a
cid is the little-endian integer of its raw account bytes (16 bytes by
default). A call that fails raises `DispatchError`, or `BadOrigin` for a wrong
origin, and leaves the registry and the auctions as they were.

## What it does not do

This is a library of in-memory models. It has no node, no consensus, no
networking, no persistent storage and no command-line program. The
`ChainClient` in `minix.rpc` only holds the states you add to it. `dispatch`
answers requests passed to it in process; it does not run a server.

## Tests

```
pip install .[test]
pytest
```