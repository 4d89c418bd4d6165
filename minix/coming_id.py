"""Registry of numeric cids: ownership, bonded data, cards and approvals."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Hashable

from minix.runtime import DispatchError, Origin, System, ensure_root, ensure_signed
from minix.weights import ComingIdWeights

CID_END = 1_000_000_000_000
"""Every valid cid is below this bound."""

RESERVED_END = 100_000
"""Cids below this bound are reserved: they may be burned but not transferred."""

DEFAULT_MAX_CARD_SIZE = 1024 * 1024


@dataclass(frozen=True)
class BondData:
    """Typed data bonded to a cid."""

    bond_type: int
    data: bytes = b""

    def length(self) -> int:
        """Encoded size: the data plus two bytes of bond type."""
        return len(self.data) + 2


@dataclass
class CidDetails:
    """Owner, bonds and card of a distributed cid."""

    owner: Any
    bonds: list[BondData] = field(default_factory=list)
    card: bytes = b""

    def copy(self) -> "CidDetails":
        return CidDetails(self.owner, list(self.bonds), self.card)


class AdminType(Enum):
    HIGH = auto()
    MEDIUM = auto()
    MEDIUM2 = auto()
    MEDIUM3 = auto()
    LOW = auto()


class ComingIdError(Enum):
    BAN_MINT = "BanMint"
    BAN_BURN = "BanBurn"
    BAN_TRANSFER = "BanTransfer"
    BAN_APPROVE = "BanApprove"
    INVALID_CID = "InvalidCid"
    REQUIRE_HIGH_AUTHORITY = "RequireHighAuthority"
    REQUIRE_MEDIUM_AUTHORITY = "RequireMediumAuthority"
    REQUIRE_MEDIUM_AUTHORITY2 = "RequireMediumAuthority2"
    REQUIRE_MEDIUM_AUTHORITY3 = "RequireMediumAuthority3"
    REQUIRE_LOW_AUTHORITY = "RequireLowAuthority"
    REQUIRE_OWNER = "RequireOwner"
    DISTRIBUTED_CID = "DistributedCid"
    UNDISTRIBUTED_CID = "UndistributedCid"
    INVALID_CID_END = "InvalidCidEnd"
    NOT_FOUND_BOND_TYPE = "NotFoundBondType"
    TOO_BIG_CARD_SIZE = "TooBigCardSize"


@dataclass(frozen=True)
class Registered:
    recipient: Any
    cid: int


@dataclass(frozen=True)
class Transferred:
    owner: Any
    recipient: Any
    cid: int


@dataclass(frozen=True)
class Bonded:
    owner: Any
    cid: int
    bond_type: int


@dataclass(frozen=True)
class BondUpdated:
    owner: Any
    cid: int
    bond_type: int


@dataclass(frozen=True)
class UnBonded:
    owner: Any
    cid: int
    bond_type: int


@dataclass(frozen=True)
class MintCard:
    cid: int
    card: bytes


@dataclass(frozen=True)
class Burned:
    cid: int


@dataclass(frozen=True)
class Approval:
    owner: Any
    operator: Any
    cid: int


@dataclass(frozen=True)
class ApprovalForAll:
    owner: Any
    operator: Any
    approved: bool


def _fail(error: ComingIdError) -> DispatchError:
    return DispatchError(error)


# (exclusive upper bound, admin allowed besides the high admin, error when neither signs)
_TIERS = (
    (RESERVED_END, None, ComingIdError.REQUIRE_HIGH_AUTHORITY),
    (1_000_000, AdminType.MEDIUM3, ComingIdError.REQUIRE_MEDIUM_AUTHORITY3),
    (10_000_000, AdminType.MEDIUM2, ComingIdError.REQUIRE_MEDIUM_AUTHORITY2),
    (100_000_000, AdminType.MEDIUM, ComingIdError.REQUIRE_MEDIUM_AUTHORITY),
    (CID_END, AdminType.LOW, ComingIdError.REQUIRE_LOW_AUTHORITY),
)


def _admin_tier(cid: int) -> tuple[AdminType | None, ComingIdError]:
    if cid >= 0:
        for bound, secondary, error in _TIERS:
            if cid < bound:
                return secondary, error
    raise _fail(ComingIdError.INVALID_CID)


def _is_valid(cid: int) -> bool:
    return 0 <= cid < CID_END


class ComingNFT(ABC):
    """Operations on cids as non-fungible tokens."""

    @abstractmethod
    def mint(self, who: Hashable, cid: int, card: bytes) -> None:
        """Attach ``card`` to a distributed cid, once."""

    @abstractmethod
    def burn(self, who: Hashable, cid: int) -> None:
        """Remove a reserved cid."""

    @abstractmethod
    def transfer(self, who: Hashable, cid: int, recipient: Hashable) -> None:
        """Move ``cid`` from its owner ``who`` to ``recipient``."""

    @abstractmethod
    def cids_of_owner(self, owner: Hashable) -> list[int]:
        """The cids held by ``owner``."""

    @abstractmethod
    def owner_of_cid(self, cid: int) -> Any:
        """The owner of ``cid``, or None."""

    @abstractmethod
    def card_of_cid(self, cid: int) -> bytes | None:
        """The card of ``cid``, or None when it has none."""

    @abstractmethod
    def can_transfer_from(self, operator: Hashable, cid: int) -> bool:
        """Whether ``operator`` may move ``cid`` on its owner's behalf."""

    @abstractmethod
    def transfer_from(
        self, operator: Hashable, from_: Hashable, to: Hashable, cid: int
    ) -> None:
        """Move ``cid`` from ``from_`` to ``to`` as ``operator``."""

    @abstractmethod
    def approve(self, who: Hashable, approved: Hashable, cid: int) -> None:
        """Let ``approved`` move ``cid``."""

    @abstractmethod
    def set_approval_for_all(
        self, owner: Hashable, operator: Hashable, approved: bool
    ) -> None:
        """Let ``operator`` act for every cid of ``owner``, or stop it."""

    @abstractmethod
    def get_approved(self, cid: int) -> Any:
        """The account approved for ``cid``, or None."""

    @abstractmethod
    def is_approved_for_all(self, owner: Hashable, operator: Hashable) -> bool:
        """Whether ``operator`` acts for every cid of ``owner``."""


class ComingId(ComingNFT):
    """The cid registry. Every failing call raises DispatchError and changes nothing."""

    def __init__(
        self,
        system: System | None = None,
        *,
        high_admin_key: Any = None,
        medium_admin_key: Any = None,
        medium_admin_key2: Any = None,
        medium_admin_key3: Any = None,
        low_admin_key: Any = None,
        max_card_size: int = DEFAULT_MAX_CARD_SIZE,
        weights: ComingIdWeights | None = None,
    ) -> None:
        self.system = system if system is not None else System()
        self.max_card_size = max_card_size
        self.weights = weights if weights is not None else ComingIdWeights()
        self.admin_keys: dict[AdminType, Any] = {
            AdminType.HIGH: high_admin_key,
            AdminType.MEDIUM: medium_admin_key,
            AdminType.MEDIUM2: medium_admin_key2,
            AdminType.MEDIUM3: medium_admin_key3,
            AdminType.LOW: low_admin_key,
        }
        self.distributed: dict[int, CidDetails] = {}
        self.account_cids: dict[Hashable, list[int]] = {}
        self.cid_to_approval: dict[int, Any] = {}
        self.approval_for_all: dict[tuple[Hashable, Hashable], bool] = {}

    @property
    def high_admin_key(self) -> Any:
        return self.admin_keys[AdminType.HIGH]

    @property
    def medium_admin_key(self) -> Any:
        return self.admin_keys[AdminType.MEDIUM]

    @property
    def medium_admin_key2(self) -> Any:
        return self.admin_keys[AdminType.MEDIUM2]

    @property
    def medium_admin_key3(self) -> Any:
        return self.admin_keys[AdminType.MEDIUM3]

    @property
    def low_admin_key(self) -> Any:
        return self.admin_keys[AdminType.LOW]

    # calls

    def register(self, origin: Origin, cid: int, recipient: Hashable) -> None:
        """Distribute an unowned cid to ``recipient``; only the cid's admins may."""
        _admin_tier(cid)
        who = ensure_signed(origin)
        self.check_admin(who, cid)
        if cid in self.distributed:
            raise _fail(ComingIdError.DISTRIBUTED_CID)

        self.distributed[cid] = CidDetails(owner=recipient)
        self._account_cids_add(recipient, cid)
        self.system.deposit_event(Registered(recipient, cid))

    def bond(self, origin: Origin, cid: int, bond_data: BondData) -> None:
        """Bond data to a cid, replacing data of the same bond type."""
        who = ensure_signed(origin)
        detail = self._owned_detail(who, cid)

        replaced = False
        for index, bond in enumerate(detail.bonds):
            if bond.bond_type == bond_data.bond_type:
                detail.bonds[index] = BondData(bond.bond_type, bond_data.data)
                replaced = True

        if replaced:
            self.system.deposit_event(BondUpdated(who, cid, bond_data.bond_type))
        else:
            detail.bonds.append(bond_data)
            self.system.deposit_event(Bonded(who, cid, bond_data.bond_type))

    def unbond(self, origin: Origin, cid: int, bond_type: int) -> None:
        """Remove the bonds of ``bond_type`` from a cid."""
        who = ensure_signed(origin)
        detail = self._owned_detail(who, cid)

        remaining = [bond for bond in detail.bonds if bond.bond_type != bond_type]
        if len(remaining) == len(detail.bonds):
            raise _fail(ComingIdError.NOT_FOUND_BOND_TYPE)
        detail.bonds = remaining
        self.system.deposit_event(UnBonded(who, cid, bond_type))

    def set_admin(self, origin: Origin, admin: Hashable, admin_type: AdminType) -> None:
        """Replace one of the admin keys; root only."""
        ensure_root(origin)
        self.admin_keys[AdminType(admin_type)] = admin

    # queries and checks

    def check_admin(self, who: Hashable, cid: int) -> None:
        """Raise unless ``who`` may register ``cid``."""
        secondary, error = _admin_tier(cid)
        if who == self.high_admin_key:
            return
        if secondary is not None and who == self.admin_keys[secondary]:
            return
        raise _fail(error)

    def get_account_id(self, cid: int) -> Any:
        detail = self.distributed.get(cid)
        return detail.owner if detail is not None else None

    def get_cids(self, who: Hashable) -> list[int]:
        return list(self.account_cids.get(who, []))

    def get_bond_data(self, cid: int) -> CidDetails | None:
        detail = self.distributed.get(cid)
        return detail.copy() if detail is not None else None

    def get_card(self, cid: int) -> bytes | None:
        detail = self.distributed.get(cid)
        if detail is None or not detail.card:
            return None
        return detail.card

    # token operations

    def mint(self, who: Hashable, cid: int, card: bytes) -> None:
        self.check_admin(who, cid)
        if len(card) > self.max_card_size:
            raise _fail(ComingIdError.TOO_BIG_CARD_SIZE)
        detail = self.distributed.get(cid)
        if detail is None:
            raise _fail(ComingIdError.UNDISTRIBUTED_CID)
        if detail.card:
            raise _fail(ComingIdError.BAN_MINT)

        detail.card = bytes(card)
        self.system.deposit_event(MintCard(cid, bytes(card)))

    def burn(self, who: Hashable, cid: int) -> None:
        self._check_burn(cid)
        if who != self.high_admin_key:
            raise _fail(ComingIdError.REQUIRE_HIGH_AUTHORITY)
        detail = self.distributed.get(cid)
        if detail is None:
            raise _fail(ComingIdError.UNDISTRIBUTED_CID)

        self._account_cids_remove(detail.owner, cid)
        del self.distributed[cid]
        self.system.deposit_event(Burned(cid))

    def transfer(self, who: Hashable, cid: int, recipient: Hashable) -> None:
        self._check_transfer(cid)
        detail = self.distributed.get(cid)
        if detail is None:
            raise _fail(ComingIdError.UNDISTRIBUTED_CID)
        if detail.owner != who:
            raise _fail(ComingIdError.REQUIRE_OWNER)

        if detail.owner != recipient:
            detail.owner = recipient
            detail.bonds = []
            self._account_cids_remove(who, cid)
            self._account_cids_add(recipient, cid)

        self.cid_to_approval.pop(cid, None)
        self.system.deposit_event(Transferred(who, recipient, cid))

    def cids_of_owner(self, owner: Hashable) -> list[int]:
        return self.get_cids(owner)

    def owner_of_cid(self, cid: int) -> Any:
        return self.get_account_id(cid)

    def card_of_cid(self, cid: int) -> bytes | None:
        return self.get_card(cid)

    def can_transfer_from(self, operator: Hashable, cid: int) -> bool:
        try:
            self._check_transfer(cid)
        except DispatchError:
            return False
        return self._may_operate(operator, cid)

    def transfer_from(
        self, operator: Hashable, from_: Hashable, to: Hashable, cid: int
    ) -> None:
        if not self._may_operate(operator, cid):
            raise _fail(ComingIdError.BAN_TRANSFER)
        self.transfer(from_, cid, to)

    def approve(self, who: Hashable, approved: Hashable, cid: int) -> None:
        if not self._may_approve(who, approved, cid):
            raise _fail(ComingIdError.BAN_APPROVE)
        owner = self.distributed[cid].owner
        self.cid_to_approval[cid] = approved
        self.system.deposit_event(Approval(owner, approved, cid))

    def set_approval_for_all(
        self, owner: Hashable, operator: Hashable, approved: bool
    ) -> None:
        self.approval_for_all[(owner, operator)] = bool(approved)
        self.system.deposit_event(ApprovalForAll(owner, operator, bool(approved)))

    def get_approved(self, cid: int) -> Any:
        return self.cid_to_approval.get(cid)

    def is_approved_for_all(self, owner: Hashable, operator: Hashable) -> bool:
        return self.approval_for_all.get((owner, operator), False)

    # helpers

    def _owned_detail(self, who: Hashable, cid: int) -> CidDetails:
        if not _is_valid(cid):
            raise _fail(ComingIdError.INVALID_CID)
        detail = self.distributed.get(cid)
        if detail is None:
            raise _fail(ComingIdError.UNDISTRIBUTED_CID)
        if detail.owner != who:
            raise _fail(ComingIdError.REQUIRE_OWNER)
        return detail

    @staticmethod
    def _check_transfer(cid: int) -> None:
        if not _is_valid(cid):
            raise _fail(ComingIdError.INVALID_CID)
        if cid < RESERVED_END:
            raise _fail(ComingIdError.BAN_TRANSFER)

    @staticmethod
    def _check_burn(cid: int) -> None:
        if not _is_valid(cid):
            raise _fail(ComingIdError.INVALID_CID)
        if cid >= RESERVED_END:
            raise _fail(ComingIdError.BAN_BURN)

    def _may_operate(self, operator: Hashable, cid: int) -> bool:
        if cid in self.cid_to_approval and self.cid_to_approval[cid] == operator:
            return True
        detail = self.distributed.get(cid)
        if detail is None:
            return False
        if detail.owner == operator:
            return True
        return self.is_approved_for_all(detail.owner, operator)

    def _may_approve(self, operator: Hashable, approved: Hashable, cid: int) -> bool:
        if not RESERVED_END <= cid < CID_END:
            return False
        detail = self.distributed.get(cid)
        if detail is None:
            return False
        if detail.owner == operator:
            return detail.owner != approved
        return self.is_approved_for_all(detail.owner, operator)

    def _account_cids_add(self, account: Hashable, cid: int) -> None:
        self.account_cids.setdefault(account, []).append(cid)

    def _account_cids_remove(self, account: Hashable, cid: int) -> None:
        cids = self.account_cids.get(account)
        if cids is not None:
            self.account_cids[account] = [c for c in cids if c != cid]