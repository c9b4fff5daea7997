"""
multisig.errors
---------------

A small, consistent error system for the governance engine.

Design goals
------------
- One root `GovernanceError` with a machine-friendly `code` and optional `data`.
- One concrete subclass per failure kind so callers can tell *why* a call
  failed (`except AlreadyApproved:`) without parsing messages.
- Safe JSON representation (`to_dict`) suitable for logs and RPC bridges.
- Governance failures are terminal: the engine never retries, the caller
  decides whether to resubmit.

This module uses only stdlib to avoid import cycles.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

# ---------------------------------------------------------------------------
# Error codes & classes
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Optional severity hint for operators/metrics."""

    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class GovErrorCode(str, Enum):
    # Authorization / lifecycle
    UNAUTHORIZED = "GOV/UNAUTHORIZED"
    NOT_FOUND = "GOV/NOT_FOUND"
    ALREADY_EXECUTED = "GOV/ALREADY_EXECUTED"
    PROPOSAL_EXPIRED = "GOV/PROPOSAL_EXPIRED"
    ALREADY_APPROVED = "GOV/ALREADY_APPROVED"
    INSUFFICIENT_APPROVALS = "GOV/INSUFFICIENT_APPROVALS"

    # Type-specific validation
    INVALID_THRESHOLD = "GOV/INVALID_THRESHOLD"
    ADMIN_ALREADY_EXISTS = "GOV/ADMIN_ALREADY_EXISTS"
    ADMIN_NOT_FOUND = "GOV/ADMIN_NOT_FOUND"
    CANNOT_REMOVE_LAST_ADMIN = "GOV/CANNOT_REMOVE_LAST_ADMIN"
    INVALID_PROPOSAL_ARGS = "GOV/INVALID_PROPOSAL_ARGS"
    INVALID_ADDRESS = "GOV/INVALID_ADDRESS"

    # Bootstrap
    NOT_INITIALIZED = "GOV/NOT_INITIALIZED"
    ALREADY_INITIALIZED = "GOV/ALREADY_INITIALIZED"

    # Internal
    STATE_INVARIANT = "GOV/STATE_INVARIANT"
    STORAGE = "GOV/STORAGE"
    CODEC = "GOV/CODEC"


@dataclass(eq=False)
class GovernanceError(Exception):
    """
    Root error for governance operations.

    Attributes
    ----------
    code: str
        Machine-stable error code (see GovErrorCode).
    message: str
        Human hint suitable for logs.
    data: dict
        Optional machine data (ids, principals, counts). JSON-serializable.
    severity: Severity
        Optional severity hint (default WARNING: most failures are caller errors).
    retryable: bool
        Whether the operation may succeed on retry without changing inputs.
    cause: Optional[BaseException]
        Wrapped original exception; not included in equality comparison.
    """

    code: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    severity: Severity = Severity.WARNING
    retryable: bool = False
    cause: Optional[BaseException] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        super().__init__(f"{self.code}: {self.message}")

    # ---------------- Public API ----------------

    def with_context(self, **ctx: Any) -> "GovernanceError":
        """Return a copy of this error with extra context merged in."""
        err = _clone(self)
        for k, v in ctx.items():
            err.data[k] = _coerce_json(v)
        return err

    def with_cause(self, exc: BaseException) -> "GovernanceError":
        """Attach/replace the causal exception (returns a new instance)."""
        err = _clone(self)
        err.cause = exc
        return err

    def to_dict(self, include_cause: bool = False) -> Dict[str, Any]:
        """JSON-safe shape suitable for logs/RPC bridges."""
        out = {
            "code": str(getattr(self.code, "value", self.code)),
            "message": self.message,
            "data": _coerce_json(self.data),
            "severity": int(self.severity),
            "retryable": self.retryable,
        }
        if include_cause and self.cause is not None:
            out["cause"] = {
                "type": type(self.cause).__name__,
                "message": str(self.cause),
            }
        return out

    def __str__(self) -> str:  # pragma: no cover - human formatting
        code = getattr(self.code, "value", self.code)
        parts = [f"{code}: {self.message}"]
        if self.data:
            preview = ", ".join(f"{k}={_preview(v)}" for k, v in self.data.items())
            parts.append(f"[{preview}]")
        return " ".join(parts)


def _clone(err: GovernanceError) -> GovernanceError:
    # Subclasses have bespoke __init__ signatures; bypass them.
    new = err.__class__.__new__(err.__class__)
    GovernanceError.__init__(
        new,
        code=err.code,
        message=err.message,
        data=dict(err.data),
        severity=err.severity,
        retryable=err.retryable,
        cause=err.cause,
    )
    return new


# Concrete subclasses (thin wrappers for ergonomics)
class Unauthorized(GovernanceError):
    def __init__(self, principal: str, message: str = "caller is not a current admin") -> None:
        super().__init__(
            code=GovErrorCode.UNAUTHORIZED,
            message=message,
            data={"principal": _coerce_json(principal)},
        )


class NotFound(GovernanceError):
    def __init__(self, proposal_id: int, message: str = "proposal not found") -> None:
        super().__init__(
            code=GovErrorCode.NOT_FOUND,
            message=message,
            data={"proposal_id": proposal_id},
        )


class AlreadyExecuted(GovernanceError):
    def __init__(self, proposal_id: int) -> None:
        super().__init__(
            code=GovErrorCode.ALREADY_EXECUTED,
            message="proposal already executed",
            data={"proposal_id": proposal_id},
        )


class ProposalExpired(GovernanceError):
    def __init__(self, proposal_id: int, expires_at: int, now: int) -> None:
        super().__init__(
            code=GovErrorCode.PROPOSAL_EXPIRED,
            message="proposal expired",
            data={"proposal_id": proposal_id, "expires_at": expires_at, "now": now},
        )


class AlreadyApproved(GovernanceError):
    def __init__(self, proposal_id: int, approver: str) -> None:
        super().__init__(
            code=GovErrorCode.ALREADY_APPROVED,
            message="admin already approved this proposal",
            data={"proposal_id": proposal_id, "approver": approver},
        )


class InsufficientApprovals(GovernanceError):
    def __init__(self, proposal_id: int, have: int, need: int) -> None:
        super().__init__(
            code=GovErrorCode.INSUFFICIENT_APPROVALS,
            message="not enough approvals from current admins",
            data={"proposal_id": proposal_id, "have": have, "need": need},
        )


class InvalidThreshold(GovernanceError):
    def __init__(self, threshold: Any, admin_count: int) -> None:
        super().__init__(
            code=GovErrorCode.INVALID_THRESHOLD,
            message="threshold must satisfy 1 <= threshold <= admin count",
            data={"threshold": _coerce_json(threshold), "admin_count": admin_count},
        )


class AdminAlreadyExists(GovernanceError):
    def __init__(self, admin: str) -> None:
        super().__init__(
            code=GovErrorCode.ADMIN_ALREADY_EXISTS,
            message="principal is already an admin",
            data={"admin": admin},
        )


class AdminNotFound(GovernanceError):
    def __init__(self, admin: str) -> None:
        super().__init__(
            code=GovErrorCode.ADMIN_NOT_FOUND,
            message="principal is not an admin",
            data={"admin": admin},
        )


class CannotRemoveLastAdmin(GovernanceError):
    def __init__(self, admin: str) -> None:
        super().__init__(
            code=GovErrorCode.CANNOT_REMOVE_LAST_ADMIN,
            message="removing this admin would leave the admin set empty",
            data={"admin": admin},
        )


class InvalidProposalArgs(GovernanceError):
    def __init__(self, reason: str, **data: Any) -> None:
        super().__init__(
            code=GovErrorCode.INVALID_PROPOSAL_ARGS,
            message=f"invalid proposal arguments: {reason}",
            data={"reason": reason, **_jsonmap(data)},
        )


class InvalidAddress(GovernanceError):
    def __init__(self, address: Any) -> None:
        super().__init__(
            code=GovErrorCode.INVALID_ADDRESS,
            message="address is not well formed",
            data={"address": _coerce_json(address)},
        )


class NotInitialized(GovernanceError):
    def __init__(self) -> None:
        super().__init__(
            code=GovErrorCode.NOT_INITIALIZED,
            message="governance has not been initialized",
        )


class AlreadyInitialized(GovernanceError):
    def __init__(self) -> None:
        super().__init__(
            code=GovErrorCode.ALREADY_INITIALIZED,
            message="governance is already initialized",
        )


class StateInvariant(GovernanceError):
    def __init__(self, message: str = "state invariant broken", **data: Any) -> None:
        super().__init__(
            code=GovErrorCode.STATE_INVARIANT,
            message=message,
            data=_jsonmap(data),
            severity=Severity.CRITICAL,
        )


class StorageError(GovernanceError):
    def __init__(self, message: str = "storage error", retryable: bool = True, **data: Any) -> None:
        super().__init__(
            code=GovErrorCode.STORAGE,
            message=message,
            data=_jsonmap(data),
            severity=Severity.ERROR,
            retryable=retryable,
        )


class CodecError(GovernanceError):
    def __init__(self, message: str = "record codec failure", **data: Any) -> None:
        super().__init__(
            code=GovErrorCode.CODEC,
            message=message,
            data=_jsonmap(data),
            severity=Severity.ERROR,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

T = TypeVar("T", bound=GovernanceError)


def wrap(exc: BaseException, *, as_: Type[T] = StorageError, **ctx: Any) -> GovernanceError:
    """
    Wrap any exception into a GovernanceError subclass, attaching context.
    If `exc` is already a GovernanceError, returns a context-enriched copy.
    """
    if isinstance(exc, GovernanceError):
        return exc.with_context(**ctx)
    err = as_(f"wrapped {type(exc).__name__}", **ctx)  # type: ignore[call-arg]
    return err.with_cause(exc)


def _jsonmap(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: _coerce_json(v) for k, v in data.items()}


def _coerce_json(v: Any) -> Any:
    # Keep JSON primitives; stringify the rest; hex-encode bytes.
    if v is None or isinstance(v, (bool, int, float, str)):
        return v
    if isinstance(v, (list, tuple)):
        return [_coerce_json(i) for i in v]
    if isinstance(v, dict):
        return {str(k): _coerce_json(i) for k, i in v.items()}
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    try:
        return str(v)
    except Exception:
        return "<unprintable>"


def _preview(v: Any, limit: int = 96) -> str:
    s = str(_coerce_json(v))
    return s if len(s) <= limit else s[:limit] + "…"


# ---------------------------------------------------------------------------
# Minimal mapping to HTTP / RPC (opt-in)
# ---------------------------------------------------------------------------

HTTP_MAP = {
    GovErrorCode.UNAUTHORIZED: 403,
    GovErrorCode.NOT_FOUND: 404,
    GovErrorCode.ALREADY_EXECUTED: 409,
    GovErrorCode.PROPOSAL_EXPIRED: 410,
    GovErrorCode.ALREADY_APPROVED: 409,
    GovErrorCode.INSUFFICIENT_APPROVALS: 409,
    GovErrorCode.INVALID_THRESHOLD: 422,
    GovErrorCode.ADMIN_ALREADY_EXISTS: 409,
    GovErrorCode.ADMIN_NOT_FOUND: 404,
    GovErrorCode.CANNOT_REMOVE_LAST_ADMIN: 409,
    GovErrorCode.INVALID_PROPOSAL_ARGS: 400,
    GovErrorCode.INVALID_ADDRESS: 400,
    GovErrorCode.NOT_INITIALIZED: 503,
    GovErrorCode.ALREADY_INITIALIZED: 409,
    GovErrorCode.STATE_INVARIANT: 500,
    GovErrorCode.STORAGE: 500,
    GovErrorCode.CODEC: 500,
}

# JSON-RPC server errors live in -32000..-32099; keep one stable slot per code.
JSONRPC_MAP = {code: -32000 - i for i, code in enumerate(GovErrorCode)}


def http_status_for(err: GovernanceError) -> int:
    """Best-effort HTTP status mapping for REST bridges."""
    try:
        return HTTP_MAP.get(GovErrorCode(err.code), 500)
    except ValueError:
        return 500


def jsonrpc_code_for(err: GovernanceError) -> int:
    try:
        return JSONRPC_MAP[GovErrorCode(err.code)]
    except (KeyError, ValueError):
        return -32603


__all__ = [
    "Severity",
    "GovErrorCode",
    "GovernanceError",
    "Unauthorized",
    "NotFound",
    "AlreadyExecuted",
    "ProposalExpired",
    "AlreadyApproved",
    "InsufficientApprovals",
    "InvalidThreshold",
    "AdminAlreadyExists",
    "AdminNotFound",
    "CannotRemoveLastAdmin",
    "InvalidProposalArgs",
    "InvalidAddress",
    "NotInitialized",
    "AlreadyInitialized",
    "StateInvariant",
    "StorageError",
    "CodecError",
    "wrap",
    "http_status_for",
    "jsonrpc_code_for",
    "HTTP_MAP",
    "JSONRPC_MAP",
]
