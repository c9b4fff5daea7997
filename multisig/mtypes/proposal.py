from __future__ import annotations

"""
Proposal kinds and the Proposal record.

ProposalKind is a closed set of four frozen dataclasses. Dispatch over it is
exhaustive: every `isinstance` chain ends by raising on an unknown kind.

Dict shape (used by the codec, RPC and CLI):

    {"kind": "set_wallet",    "address": "<addr>"}
    {"kind": "add_admin",     "admin": "<principal>"}
    {"kind": "remove_admin",  "admin": "<principal>"}
    {"kind": "set_threshold", "threshold": <int>}
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union


class KindTag(str, Enum):
    SET_WALLET = "set_wallet"
    ADD_ADMIN = "add_admin"
    REMOVE_ADMIN = "remove_admin"
    SET_THRESHOLD = "set_threshold"


@dataclass(frozen=True)
class SetWallet:
    address: str

    tag = KindTag.SET_WALLET

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag.value, "address": self.address}


@dataclass(frozen=True)
class AddAdmin:
    admin: str

    tag = KindTag.ADD_ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag.value, "admin": self.admin}


@dataclass(frozen=True)
class RemoveAdmin:
    admin: str

    tag = KindTag.REMOVE_ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag.value, "admin": self.admin}


@dataclass(frozen=True)
class SetThreshold:
    threshold: int

    tag = KindTag.SET_THRESHOLD

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.tag.value, "threshold": self.threshold}


ProposalKind = Union[SetWallet, AddAdmin, RemoveAdmin, SetThreshold]

_KIND_TYPES = (SetWallet, AddAdmin, RemoveAdmin, SetThreshold)


def _require_str(d: Mapping[str, Any], key: str) -> str:
    v = d.get(key)
    if not isinstance(v, str):
        raise ValueError(f"{key!r} must be a string (got {type(v).__name__})")
    return v


def kind_from_dict(d: Mapping[str, Any]) -> ProposalKind:
    """Instantiate a concrete kind from a dict with a 'kind' discriminator."""
    if not isinstance(d, Mapping):
        raise ValueError("proposal kind must be a mapping")
    try:
        tag = KindTag(d.get("kind"))
    except ValueError:
        raise ValueError(f"unknown proposal kind: {d.get('kind')!r}") from None

    if tag is KindTag.SET_WALLET:
        return SetWallet(address=_require_str(d, "address"))
    if tag is KindTag.ADD_ADMIN:
        return AddAdmin(admin=_require_str(d, "admin"))
    if tag is KindTag.REMOVE_ADMIN:
        return RemoveAdmin(admin=_require_str(d, "admin"))
    if tag is KindTag.SET_THRESHOLD:
        t = d.get("threshold")
        if not isinstance(t, int) or isinstance(t, bool):
            raise ValueError(f"'threshold' must be an int (got {type(t).__name__})")
        return SetThreshold(threshold=t)
    raise ValueError(f"unhandled proposal kind: {tag!r}")


def is_kind(obj: Any) -> bool:
    return isinstance(obj, _KIND_TYPES)


@dataclass(frozen=True)
class Proposal:
    """
    A governance proposal.

    Fields
    ------
    id: positive, strictly increasing identifier.
    kind: the requested change.
    proposer: admin that created it; always the first approval.
    approvals: admins that approved, in approval order, without duplicates.
        Never purged, even when an approver later stops being an admin.
    created_at: logical time of creation.
    expires_at: logical deadline, or None for no expiry.
    executed: set once; never reverts.
    """

    id: int
    kind: ProposalKind
    proposer: str
    approvals: Tuple[str, ...]
    created_at: int
    expires_at: Optional[int] = None
    executed: bool = False

    def with_approval(self, approver: str) -> "Proposal":
        if approver in self.approvals:
            raise ValueError(f"{approver!r} already approved proposal {self.id}")
        return replace(self, approvals=self.approvals + (approver,))

    def mark_executed(self) -> "Proposal":
        return replace(self, executed=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": int(self.id),
            "kind": self.kind.to_dict(),
            "proposer": self.proposer,
            "approvals": list(self.approvals),
            "created_at": int(self.created_at),
            "expires_at": None if self.expires_at is None else int(self.expires_at),
            "executed": bool(self.executed),
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "Proposal":
        exp = d.get("expires_at")
        return Proposal(
            id=int(d["id"]),
            kind=kind_from_dict(d["kind"]),
            proposer=str(d["proposer"]),
            approvals=tuple(str(a) for a in d["approvals"]),
            created_at=int(d["created_at"]),
            expires_at=int(exp) if exp is not None else None,
            executed=bool(d.get("executed", False)),
        )


__all__ = [
    "KindTag",
    "SetWallet",
    "AddAdmin",
    "RemoveAdmin",
    "SetThreshold",
    "ProposalKind",
    "kind_from_dict",
    "is_kind",
    "Proposal",
]
