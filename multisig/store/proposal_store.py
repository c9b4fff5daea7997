from __future__ import annotations

"""
Proposal store: every proposal ever created, plus the active-id index.

- Ids are allocated by `next_id()`, which persists the counter immediately so
  an id is never handed out twice, even if the creating call later fails.
- Proposals are never deleted. Execution removes the id from the active index;
  expiry does not.
"""

from typing import Iterator, Optional, Tuple, Union

from ..db.kv import KV, Batch
from ..errors import NotFound
from ..mtypes.proposal import Proposal
from . import codec, keys


# Ids are stored as big-endian u64 keys.
_ID_LIMIT = 1 << 64


def _is_proposal_id(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value < _ID_LIMIT
_Writer = Union[KV, Batch]


class ProposalStore:
    def __init__(self, kv: KV) -> None:
        self._kv = kv

    def _target(self, batch: Optional[Batch]) -> _Writer:
        return batch if batch is not None else self._kv

    # ---------------------------------------------------------------- ids

    def peek_next_id(self) -> int:
        raw = self._kv.get(keys.NEXT_ID)
        return 1 if raw is None else codec.decode_int(raw)

    def next_id(self) -> int:
        """Reserve and return the next id (strictly increasing, starting at 1)."""
        nid = self.peek_next_id()
        self._kv.put(keys.NEXT_ID, codec.encode_int(nid + 1))
        return nid

    # ---------------------------------------------------------- proposals

    def put(self, proposal: Proposal, *, batch: Optional[Batch] = None) -> None:
        self._target(batch).put(keys.proposal_key(proposal.id), codec.encode_proposal(proposal))

    def find(self, proposal_id: int) -> Optional[Proposal]:
        if not _is_proposal_id(proposal_id):
            return None
        raw = self._kv.get(keys.proposal_key(proposal_id))
        return None if raw is None else codec.decode_proposal(raw)

    def get(self, proposal_id: int) -> Proposal:
        p = self.find(proposal_id)
        if p is None:
            raise NotFound(proposal_id)
        return p

    def iter_all(self) -> Iterator[Proposal]:
        """Every stored proposal in ascending id order."""
        for _k, raw in self._kv.iter_prefix(keys.PROPOSAL_PREFIX):
            yield codec.decode_proposal(raw)

    # ------------------------------------------------------- active index

    def active_ids(self) -> Tuple[int, ...]:
        return codec.decode_ids(self._kv.get(keys.ACTIVE))

    def add_active(self, proposal_id: int, *, batch: Optional[Batch] = None) -> None:
        ids = set(self.active_ids())
        ids.add(proposal_id)
        self._target(batch).put(keys.ACTIVE, codec.encode_ids(ids))

    def remove_active(self, proposal_id: int, *, batch: Optional[Batch] = None) -> None:
        ids = [i for i in self.active_ids() if i != proposal_id]
        self._target(batch).put(keys.ACTIVE, codec.encode_ids(ids))


__all__ = ["ProposalStore"]
