from __future__ import annotations

"""
MultiSigConfig: the current admin set and approval threshold.

This module is pure (no DB/IO). Structural checks raise ValueError; the store
turns violations into `StateInvariant` so a bad record never lands on disk.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple


@dataclass(frozen=True)
class MultiSigConfig:
    """
    Fields
    ------
    admins: unique principals, in insertion order (iteration order only).
    threshold: approvals required to execute; 1 <= threshold <= len(admins).
    """

    admins: Tuple[str, ...]
    threshold: int

    def validate(self) -> None:
        if len(self.admins) < 1:
            raise ValueError("admin set must not be empty")
        if len(set(self.admins)) != len(self.admins):
            raise ValueError("admins must be unique")
        if not isinstance(self.threshold, int) or isinstance(self.threshold, bool):
            raise ValueError("threshold must be an int")
        if not (1 <= self.threshold <= len(self.admins)):
            raise ValueError(
                f"threshold {self.threshold} outside [1, {len(self.admins)}]"
            )

    def is_admin(self, principal: str) -> bool:
        return principal in self.admins

    @property
    def admin_count(self) -> int:
        return len(self.admins)

    def to_dict(self) -> Dict[str, Any]:
        return {"admins": list(self.admins), "threshold": int(self.threshold)}

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "MultiSigConfig":
        return MultiSigConfig(
            admins=tuple(str(a) for a in d["admins"]),
            threshold=int(d["threshold"]),
        )


@dataclass(frozen=True)
class ConfigChange:
    """
    Outcome of applying one executed proposal to the configuration.

    `before`/`after` are full snapshots; wallet fields are only meaningful
    for SetWallet. `clamped` is True when an admin removal lowered the
    threshold to keep it within the new admin count.
    """

    before: MultiSigConfig
    after: MultiSigConfig
    wallet_before: Optional[str] = None
    wallet_after: Optional[str] = None
    added: Tuple[str, ...] = field(default=())
    removed: Tuple[str, ...] = field(default=())
    clamped: bool = False

    @property
    def threshold_changed(self) -> bool:
        return self.before.threshold != self.after.threshold

    @property
    def wallet_changed(self) -> bool:
        return self.wallet_before != self.wallet_after


__all__ = ["MultiSigConfig", "ConfigChange"]
