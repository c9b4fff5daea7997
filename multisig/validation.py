from __future__ import annotations

"""
Pure validation predicates shared by proposal creation (advisory) and
proposal execution (authoritative).

Nothing here touches storage or raises governance errors; the engine decides
which error a failed predicate maps to.
"""

from typing import Iterable, Optional, Sequence, Tuple

MAX_ADDRESS_LEN = 256


def _is_int(v: object) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def validate_threshold(threshold: object, admin_count: int) -> bool:
    """True iff 1 <= threshold <= admin_count."""
    return _is_int(threshold) and 0 < threshold <= admin_count  # type: ignore[operator]


def is_duplicate_admin(admins: Iterable[str], candidate: str) -> bool:
    return candidate in tuple(admins)


def is_last_admin(admins: Sequence[str], candidate: str) -> bool:
    """True if removing `candidate` would leave the admin set empty."""
    return len(admins) <= 1 and (not admins or candidate in admins)


def is_well_formed_address(address: object, self_address: Optional[str] = None) -> bool:
    """
    Addresses and principals are opaque strings. Well formed means: a str,
    non-empty, no surrounding whitespace, no control characters, bounded
    length, and not the governed contract's own address.
    """
    if not isinstance(address, str):
        return False
    if not address or address != address.strip() or len(address) > MAX_ADDRESS_LEN:
        return False
    if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in address):
        return False
    if self_address is not None and address == self_address:
        return False
    return True


def is_expired(expires_at: Optional[int], now: int) -> bool:
    """Lazy expiry: a deadline of None never expires; otherwise expired once now > expires_at."""
    return expires_at is not None and now > expires_at


def current_approvals(approvals: Iterable[str], admins: Iterable[str]) -> Tuple[str, ...]:
    """Approvals that still count: those from principals that are admins now, in approval order."""
    admin_set = set(admins)
    seen = set()
    out = []
    for a in approvals:
        if a in admin_set and a not in seen:
            seen.add(a)
            out.append(a)
    return tuple(out)


def validate_admin_set(admins: Sequence[str], self_address: Optional[str] = None) -> bool:
    """Non-empty, unique and every member well formed."""
    if len(admins) < 1 or len(set(admins)) != len(admins):
        return False
    return all(is_well_formed_address(a, self_address) for a in admins)


def validate_ttl(ttl: object, max_ttl: int = 0) -> bool:
    """TTL is a non-negative int; 0 means no expiry. `max_ttl` of 0 means unbounded."""
    if not _is_int(ttl) or ttl < 0:  # type: ignore[operator]
        return False
    return max_ttl <= 0 or ttl <= max_ttl  # type: ignore[operator]


def compute_expiry(now: int, ttl: int, ledger_seconds: int = 1) -> Optional[int]:
    if ttl == 0:
        return None
    return now + ttl * ledger_seconds


def clamp_threshold(threshold: int, admin_count: int) -> int:
    return min(threshold, admin_count)


__all__ = [
    "validate_threshold",
    "is_duplicate_admin",
    "is_last_admin",
    "is_well_formed_address",
    "is_expired",
    "current_approvals",
    "validate_admin_set",
    "validate_ttl",
    "compute_expiry",
    "clamp_threshold",
]
