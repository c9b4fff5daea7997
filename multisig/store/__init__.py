"""
Durable governance state on top of a `multisig.db` KV:

- ConfigStore:   admin set, threshold, payout wallet
- ProposalStore: proposals and the active-id index
"""

from .config_store import ConfigStore
from .proposal_store import ProposalStore

__all__ = ["ConfigStore", "ProposalStore"]
