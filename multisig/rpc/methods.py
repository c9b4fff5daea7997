from __future__ import annotations

"""
multisig.rpc.methods
--------------------

JSON-RPC style method implementations for multisig governance.

Exposed methods (bind via `make_methods`):
  • gov.getConfig
  • gov.getWallet
  • gov.isAdmin
  • gov.getProposal
  • gov.listActiveProposals
  • gov.listProposals
  • gov.createProposal
  • gov.approveProposal
  • gov.executeProposal

Design:
  - Transport-agnostic: `make_methods` returns a dict of callables that a
    JSON-RPC dispatcher can register. `build_rest_router` exposes the same
    callables over FastAPI.
  - Failures are `GovernanceError`s; dispatchers map them with
    `multisig.errors.jsonrpc_code_for`, the REST router with `http_status_for`.

Usage:
    from multisig.rpc.methods import make_methods
    methods = make_methods(engine)
    methods["gov.createProposal"](caller="alice", kind={"kind": "add_admin", "admin": "dave"})
"""

from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..engine import GovernanceEngine
from ..errors import GovernanceError, InvalidProposalArgs, Unauthorized, http_status_for
from ..mtypes.config import MultiSigConfig
from ..mtypes.proposal import Proposal
from .. import validation as v


# ---- Views -----------------------------------------------------------------

def config_view(cfg: MultiSigConfig) -> Dict[str, Any]:
    return {"admins": list(cfg.admins), "threshold": cfg.threshold}


def proposal_view(p: Proposal, now: Optional[int] = None) -> Dict[str, Any]:
    out = {
        "id": p.id,
        "kind": p.kind.to_dict(),
        "proposer": p.proposer,
        "approvals": list(p.approvals),
        "createdAt": p.created_at,
        "expiresAt": p.expires_at,
        "executed": p.executed,
    }
    if now is not None:
        out["expired"] = v.is_expired(p.expires_at, now)
    return out


# ---- Request bodies (REST) -------------------------------------------------

class CreateProposalBody(BaseModel):
    model_config = ConfigDict(frozen=True)
    kind: Dict[str, Any]
    ttl: int = Field(default=0, ge=0)


# ---- Helpers ---------------------------------------------------------------

def _coerce_int(value: Any, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool) or value < 0:
        raise InvalidProposalArgs(f"invalid {name}: must be a non-negative integer")
    return value


def _require_caller(caller: Optional[str]) -> str:
    if not caller:
        raise Unauthorized("", message="caller principal is required")
    return caller


# ---- JSON-RPC method factory ----------------------------------------------

def make_methods(engine: GovernanceEngine) -> Dict[str, Callable[..., Any]]:
    """
    Build a mapping of JSON-RPC method name -> callable.
    Each callable returns plain JSON-serializable structures.
    """

    def gov_get_config() -> Dict[str, Any]:
        return config_view(engine.get_config())

    def gov_get_wallet() -> Dict[str, Any]:
        return {"wallet": engine.get_wallet()}

    def gov_is_admin(*, address: str) -> Dict[str, Any]:
        return {"address": address, "isAdmin": engine.is_admin(address)}

    def gov_get_proposal(*, proposalId: Any) -> Dict[str, Any]:
        pid = _coerce_int(proposalId, "proposalId")
        return proposal_view(engine.get_proposal(pid), engine.clock.now())

    def gov_list_active_proposals(*, details: bool = False) -> Dict[str, Any]:
        ids = list(engine.list_active_proposals())
        if not details:
            return {"items": ids}
        now = engine.clock.now()
        return {"items": [proposal_view(engine.get_proposal(i), now) for i in ids]}

    def gov_list_proposals(*, offset: Any = 0, limit: Any = 100) -> Dict[str, Any]:
        off = _coerce_int(offset, "offset")
        lim = _coerce_int(limit, "limit")
        now = engine.clock.now()
        everything = engine.list_proposals()
        items = [proposal_view(p, now) for p in everything[off:off + lim]]
        return {"items": items, "nextOffset": off + len(items), "total": len(everything)}

    def gov_create_proposal(*, caller: str, kind: Dict[str, Any], ttl: Any = 0) -> Dict[str, Any]:
        pid = engine.create_proposal(_require_caller(caller), kind, _coerce_int(ttl, "ttl"))
        return {"proposalId": pid}

    def gov_approve_proposal(*, caller: str, proposalId: Any) -> Dict[str, Any]:
        pid = _coerce_int(proposalId, "proposalId")
        p = engine.approve_proposal(_require_caller(caller), pid)
        return proposal_view(p, engine.clock.now())

    def gov_execute_proposal(*, caller: str, proposalId: Any) -> Dict[str, Any]:
        pid = _coerce_int(proposalId, "proposalId")
        p = engine.execute_proposal(_require_caller(caller), pid)
        return proposal_view(p, engine.clock.now())

    return {
        "gov.getConfig": gov_get_config,
        "gov.getWallet": gov_get_wallet,
        "gov.isAdmin": gov_is_admin,
        "gov.getProposal": gov_get_proposal,
        "gov.listActiveProposals": gov_list_active_proposals,
        "gov.listProposals": gov_list_proposals,
        "gov.createProposal": gov_create_proposal,
        "gov.approveProposal": gov_approve_proposal,
        "gov.executeProposal": gov_execute_proposal,
    }


# ---- REST adapter (FastAPI) ------------------------------------------------

def build_rest_router(engine: GovernanceEngine):
    """
    Return a FastAPI APIRouter over the same callables.
    Mount path suggestion: RPC_PREFIX (from multisig.rpc).

    Mutating endpoints read the caller from the `X-Caller` header.
    """
    from fastapi import APIRouter, Header, HTTPException, Query

    router = APIRouter()
    methods = make_methods(engine)

    def _call(name: str, **kwargs: Any) -> Any:
        try:
            return methods[name](**kwargs)
        except GovernanceError as e:
            raise HTTPException(status_code=http_status_for(e), detail=e.to_dict()) from e

    @router.get("/config")
    def http_get_config():
        return _call("gov.getConfig")

    @router.get("/wallet")
    def http_get_wallet():
        return _call("gov.getWallet")

    @router.get("/admins/{address}")
    def http_is_admin(address: str):
        return _call("gov.isAdmin", address=address)

    @router.get("/proposals")
    def http_list_proposals(
        offset: int = Query(0, ge=0),
        limit: int = Query(100, ge=1, le=500),
    ):
        return _call("gov.listProposals", offset=offset, limit=limit)

    @router.get("/proposals/active")
    def http_list_active(details: bool = False):
        return _call("gov.listActiveProposals", details=details)

    @router.get("/proposals/{proposal_id}")
    def http_get_proposal(proposal_id: int):
        return _call("gov.getProposal", proposalId=proposal_id)

    @router.post("/proposals", status_code=201)
    def http_create_proposal(
        body: CreateProposalBody,
        x_caller: Optional[str] = Header(default=None),
    ):
        return _call("gov.createProposal", caller=x_caller, kind=body.kind, ttl=body.ttl)

    @router.post("/proposals/{proposal_id}/approve")
    def http_approve_proposal(
        proposal_id: int,
        x_caller: Optional[str] = Header(default=None),
    ):
        return _call("gov.approveProposal", caller=x_caller, proposalId=proposal_id)

    @router.post("/proposals/{proposal_id}/execute")
    def http_execute_proposal(
        proposal_id: int,
        x_caller: Optional[str] = Header(default=None),
    ):
        return _call("gov.executeProposal", caller=x_caller, proposalId=proposal_id)

    return router


__all__ = [
    "CreateProposalBody",
    "config_view",
    "proposal_view",
    "make_methods",
    "build_rest_router",
]
