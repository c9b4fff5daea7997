from __future__ import annotations

"""
Governance event types.

Events are published to the configured sink after the storage batch that
caused them has committed. All events are pure dataclasses with
JSON-serializable fields and small helpers to (de)serialize.

Events:
  - Initialized:       governance was bootstrapped.
  - ProposalCreated:   a proposal was recorded (proposer auto-approved).
  - ProposalApproved:  an admin added an approval.
  - ProposalExecuted:  a proposal's change was applied.
  - AdminAdded / AdminRemoved: the admin set changed.
  - ThresholdUpdated:  the threshold changed (explicitly or by clamping).
  - WalletUpdated:     the payout wallet changed.

`ts` is logical ledger time, as supplied by the engine's clock.
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union


class EventType(str, Enum):
    INITIALIZED = "Initialized"
    PROPOSAL_CREATED = "ProposalCreated"
    PROPOSAL_APPROVED = "ProposalApproved"
    PROPOSAL_EXECUTED = "ProposalExecuted"
    ADMIN_ADDED = "AdminAdded"
    ADMIN_REMOVED = "AdminRemoved"
    THRESHOLD_UPDATED = "ThresholdUpdated"
    WALLET_UPDATED = "WalletUpdated"


# ────────────────────────────────────────────────────────────────────────────────
# Event payloads
# ────────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Initialized:
    etype: EventType
    ts: int
    admins: List[str]
    threshold: int
    wallet: str

    @staticmethod
    def new(ts: int, admins, threshold: int, wallet: str) -> "Initialized":
        return Initialized(EventType.INITIALIZED, int(ts), list(admins), int(threshold), wallet)


@dataclass(frozen=True)
class ProposalCreated:
    etype: EventType
    ts: int
    id: int
    proposer: str
    kind: Dict[str, Any]          # kind.to_dict()
    expires_at: Optional[int] = None

    @staticmethod
    def new(ts: int, id: int, proposer: str, kind: Mapping[str, Any],
            expires_at: Optional[int]) -> "ProposalCreated":
        return ProposalCreated(EventType.PROPOSAL_CREATED, int(ts), int(id), proposer,
                               dict(kind), expires_at)


@dataclass(frozen=True)
class ProposalApproved:
    etype: EventType
    ts: int
    id: int
    approver: str
    approvals: int                # total recorded approvals after this one

    @staticmethod
    def new(ts: int, id: int, approver: str, approvals: int) -> "ProposalApproved":
        return ProposalApproved(EventType.PROPOSAL_APPROVED, int(ts), int(id), approver, int(approvals))


@dataclass(frozen=True)
class ProposalExecuted:
    etype: EventType
    ts: int
    id: int
    executor: str

    @staticmethod
    def new(ts: int, id: int, executor: str) -> "ProposalExecuted":
        return ProposalExecuted(EventType.PROPOSAL_EXECUTED, int(ts), int(id), executor)


@dataclass(frozen=True)
class AdminAdded:
    etype: EventType
    ts: int
    admin: str
    added_by: str

    @staticmethod
    def new(ts: int, admin: str, added_by: str) -> "AdminAdded":
        return AdminAdded(EventType.ADMIN_ADDED, int(ts), admin, added_by)


@dataclass(frozen=True)
class AdminRemoved:
    etype: EventType
    ts: int
    admin: str
    removed_by: str

    @staticmethod
    def new(ts: int, admin: str, removed_by: str) -> "AdminRemoved":
        return AdminRemoved(EventType.ADMIN_REMOVED, int(ts), admin, removed_by)


@dataclass(frozen=True)
class ThresholdUpdated:
    etype: EventType
    ts: int
    old: int
    new: int

    @staticmethod
    def make(ts: int, old: int, new: int) -> "ThresholdUpdated":
        return ThresholdUpdated(EventType.THRESHOLD_UPDATED, int(ts), int(old), int(new))


@dataclass(frozen=True)
class WalletUpdated:
    etype: EventType
    ts: int
    old: Optional[str]
    new: str

    @staticmethod
    def make(ts: int, old: Optional[str], new: str) -> "WalletUpdated":
        return WalletUpdated(EventType.WALLET_UPDATED, int(ts), old, new)


GovEvent = Union[
    Initialized,
    ProposalCreated,
    ProposalApproved,
    ProposalExecuted,
    AdminAdded,
    AdminRemoved,
    ThresholdUpdated,
    WalletUpdated,
]

_BY_TYPE = {
    EventType.INITIALIZED: Initialized,
    EventType.PROPOSAL_CREATED: ProposalCreated,
    EventType.PROPOSAL_APPROVED: ProposalApproved,
    EventType.PROPOSAL_EXECUTED: ProposalExecuted,
    EventType.ADMIN_ADDED: AdminAdded,
    EventType.ADMIN_REMOVED: AdminRemoved,
    EventType.THRESHOLD_UPDATED: ThresholdUpdated,
    EventType.WALLET_UPDATED: WalletUpdated,
}


# ────────────────────────────────────────────────────────────────────────────────
# Generic (de)serialization
# ────────────────────────────────────────────────────────────────────────────────

def serialize_event(ev: GovEvent) -> Dict[str, Any]:
    """Serialize any governance event to a JSON-serializable dict."""
    d = asdict(ev)
    d["etype"] = ev.etype.value
    return d


def deserialize_event(d: Mapping[str, Any]) -> GovEvent:
    """Instantiate a concrete event from a dict with an 'etype' discriminator."""
    etype = EventType(d["etype"])
    cls = _BY_TYPE.get(etype)
    if cls is None:
        raise ValueError(f"Unknown event etype: {etype!r}")
    fields = {k: v for k, v in d.items() if k != "etype"}
    return cls(etype=etype, **fields)  # type: ignore[arg-type]


__all__ = [
    "EventType",
    "Initialized",
    "ProposalCreated",
    "ProposalApproved",
    "ProposalExecuted",
    "AdminAdded",
    "AdminRemoved",
    "ThresholdUpdated",
    "WalletUpdated",
    "GovEvent",
    "serialize_event",
    "deserialize_event",
]
