from __future__ import annotations

"""
Lightweight shared types for multisig governance.

Conventions
-----------
- Principals (admins, proposers, approvers) are opaque, already-authenticated
  strings. Equality is exact string equality.
- Addresses (payout wallet) are opaque strings as well.
- Proposal ids are positive integers, allocated from 1 upward.
- Timestamps are logical ledger time as non-negative ints.
"""

from .config import ConfigChange, MultiSigConfig
from .proposal import (
    AddAdmin,
    KindTag,
    Proposal,
    ProposalKind,
    RemoveAdmin,
    SetThreshold,
    SetWallet,
    kind_from_dict,
)

__all__ = [
    "MultiSigConfig",
    "ConfigChange",
    "KindTag",
    "ProposalKind",
    "SetWallet",
    "AddAdmin",
    "RemoveAdmin",
    "SetThreshold",
    "Proposal",
    "kind_from_dict",
]
