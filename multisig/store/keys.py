from __future__ import annotations

"""
Storage keys for governance records (all under the b"g:" namespace).

- CONFIG       -> MultiSigConfig dict
- WALLET       -> payout wallet address (str)
- PROPOSAL/id  -> Proposal dict, id as be_u64 so scans come back in id order
- ACTIVE       -> ascending list of active (not executed) proposal ids
- NEXT_ID      -> next proposal id to hand out (int, starts at 1)

Values are canonical CBOR (see multisig.store.codec).
"""

from ..db.kv import GOV, be_u64, from_be_u64

CONFIG = GOV.key(b"config")
WALLET = GOV.key(b"wallet")
ACTIVE = GOV.key(b"active")
NEXT_ID = GOV.key(b"next_id")

# Every proposal key starts with this (prefix + len|"proposal").
PROPOSAL_PREFIX = GOV.key(b"proposal")


def proposal_key(proposal_id: int) -> bytes:
    return GOV.key(b"proposal", be_u64(proposal_id))


def proposal_id_from_key(key: bytes) -> int:
    if not key.startswith(PROPOSAL_PREFIX):
        raise ValueError(f"not a proposal key: {key!r}")
    rest = key[len(PROPOSAL_PREFIX):]
    # one length byte (8) followed by the 8-byte id
    if len(rest) != 9 or rest[0] != 8:
        raise ValueError(f"malformed proposal key: {key!r}")
    return from_be_u64(rest[1:])


__all__ = [
    "CONFIG",
    "WALLET",
    "ACTIVE",
    "NEXT_ID",
    "PROPOSAL_PREFIX",
    "proposal_key",
    "proposal_id_from_key",
]
