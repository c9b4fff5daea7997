from __future__ import annotations

import json

import pytest

from multisig import errors as E


def test_codes_are_namespaced_and_unique():
    values = [c.value for c in E.GovErrorCode]
    assert len(values) == len(set(values))
    assert all(v.startswith("GOV/") for v in values)


@pytest.mark.parametrize(
    "err,code,status",
    [
        (E.Unauthorized("mallory"), E.GovErrorCode.UNAUTHORIZED, 403),
        (E.NotFound(9), E.GovErrorCode.NOT_FOUND, 404),
        (E.AlreadyExecuted(1), E.GovErrorCode.ALREADY_EXECUTED, 409),
        (E.ProposalExpired(1, 10, 11), E.GovErrorCode.PROPOSAL_EXPIRED, 410),
        (E.AlreadyApproved(1, "bob"), E.GovErrorCode.ALREADY_APPROVED, 409),
        (E.InsufficientApprovals(1, 1, 2), E.GovErrorCode.INSUFFICIENT_APPROVALS, 409),
        (E.InvalidThreshold(0, 3), E.GovErrorCode.INVALID_THRESHOLD, 422),
        (E.AdminAlreadyExists("bob"), E.GovErrorCode.ADMIN_ALREADY_EXISTS, 409),
        (E.AdminNotFound("zed"), E.GovErrorCode.ADMIN_NOT_FOUND, 404),
        (E.CannotRemoveLastAdmin("a"), E.GovErrorCode.CANNOT_REMOVE_LAST_ADMIN, 409),
        (E.InvalidProposalArgs("bad"), E.GovErrorCode.INVALID_PROPOSAL_ARGS, 400),
        (E.InvalidAddress(""), E.GovErrorCode.INVALID_ADDRESS, 400),
        (E.NotInitialized(), E.GovErrorCode.NOT_INITIALIZED, 503),
        (E.AlreadyInitialized(), E.GovErrorCode.ALREADY_INITIALIZED, 409),
        (E.StateInvariant("x"), E.GovErrorCode.STATE_INVARIANT, 500),
        (E.StorageError("x"), E.GovErrorCode.STORAGE, 500),
        (E.CodecError("x"), E.GovErrorCode.CODEC, 500),
    ],
)
def test_each_error_maps_to_code_and_status(err, code, status):
    assert isinstance(err, E.GovernanceError)
    assert err.code is code
    assert E.http_status_for(err) == status
    assert -32099 <= E.jsonrpc_code_for(err) <= -32000
    json.dumps(err.to_dict())


def test_jsonrpc_codes_are_distinct():
    assert len(set(E.JSONRPC_MAP.values())) == len(E.GovErrorCode)


def test_to_dict_shape():
    err = E.InsufficientApprovals(4, 1, 3)
    d = err.to_dict()
    assert d == {
        "code": "GOV/INSUFFICIENT_APPROVALS",
        "message": "not enough approvals from current admins",
        "data": {"proposal_id": 4, "have": 1, "need": 3},
        "severity": int(E.Severity.WARNING),
        "retryable": False,
    }
    assert str(err).startswith("GOV/INSUFFICIENT_APPROVALS")


def test_severity_and_retry_hints():
    assert E.StateInvariant().severity is E.Severity.CRITICAL
    assert E.StorageError().retryable
    assert E.StorageError().severity is E.Severity.ERROR
    assert not E.Unauthorized("x").retryable


def test_with_context_and_cause_keep_subclass():
    base = E.NotFound(3)
    enriched = base.with_context(caller="alice", raw=b"\x01\x02")
    assert isinstance(enriched, E.NotFound)
    assert enriched.data == {"proposal_id": 3, "caller": "alice", "raw": "0102"}
    assert base.data == {"proposal_id": 3}

    boom = RuntimeError("boom")
    caused = base.with_cause(boom)
    assert caused.cause is boom
    assert caused.to_dict(include_cause=True)["cause"] == {"type": "RuntimeError", "message": "boom"}
    assert "cause" not in base.to_dict(include_cause=True)


def test_wrap():
    err = E.wrap(OSError("disk"), path="/tmp/x")
    assert isinstance(err, E.StorageError)
    assert err.data == {"path": "/tmp/x"}
    assert isinstance(err.cause, OSError)

    inner = E.AdminNotFound("zed")
    again = E.wrap(inner, op="execute")
    assert isinstance(again, E.AdminNotFound)
    assert again.data["op"] == "execute"

    codec = E.wrap(ValueError("x"), as_=E.CodecError)
    assert codec.code is E.GovErrorCode.CODEC


def test_invalid_proposal_args_carries_reason():
    err = E.InvalidProposalArgs("admin_not_found", admin="zed")
    assert err.data == {"reason": "admin_not_found", "admin": "zed"}
    assert "admin_not_found" in err.message
