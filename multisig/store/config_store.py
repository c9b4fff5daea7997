from __future__ import annotations

"""
Config store: the admin set, the approval threshold and the payout wallet.

Every write re-checks the structural invariants (non-empty unique admin set,
1 <= threshold <= len(admins)) and refuses to stage a record that breaks
them. Writes are staged into a caller-supplied batch; the engine commits.
"""

from typing import Iterable, Optional

from .. import validation as v
from ..db.kv import KV, Batch
from ..errors import AlreadyInitialized, NotInitialized, StateInvariant
from ..logging import get_logger
from ..mtypes.config import ConfigChange, MultiSigConfig
from ..mtypes.proposal import AddAdmin, ProposalKind, RemoveAdmin, SetThreshold, SetWallet
from . import codec, keys

log = get_logger("multisig.store.config")


class ConfigStore:
    def __init__(self, kv: KV, *, self_address: Optional[str] = None) -> None:
        self._kv = kv
        self._self_address = self_address

    # ------------------------------------------------------------------ reads

    def is_initialized(self) -> bool:
        return self._kv.has(keys.CONFIG)

    def get_config(self) -> MultiSigConfig:
        """Snapshot of the current config. Raises NotInitialized before bootstrap."""
        raw = self._kv.get(keys.CONFIG)
        if raw is None:
            raise NotInitialized()
        return codec.decode_config(raw)

    def get_wallet(self) -> str:
        raw = self._kv.get(keys.WALLET)
        if raw is None:
            raise NotInitialized()
        return codec.decode_wallet(raw)

    def is_admin(self, principal: str) -> bool:
        raw = self._kv.get(keys.CONFIG)
        if raw is None:
            return False
        return codec.decode_config(raw).is_admin(principal)

    @staticmethod
    def validate_threshold(threshold: int, admin_count: int) -> bool:
        return v.validate_threshold(threshold, admin_count)

    # ----------------------------------------------------------------- writes

    def initialize(
        self,
        admins: Iterable[str],
        threshold: int,
        wallet: str,
        *,
        batch: Batch,
    ) -> MultiSigConfig:
        """Stage the genesis config and wallet. Callers validate arguments first."""
        if self.is_initialized():
            raise AlreadyInitialized()
        cfg = MultiSigConfig(admins=tuple(admins), threshold=threshold)
        self._check(cfg)
        batch.put(keys.CONFIG, codec.encode_config(cfg))
        batch.put(keys.WALLET, codec.encode_wallet(wallet))
        return cfg

    def apply(self, kind: ProposalKind, *, batch: Batch) -> ConfigChange:
        """
        Stage the change described by an already validated proposal kind.

        RemoveAdmin lowers the threshold to the new admin count when it would
        otherwise exceed it. Raises StateInvariant if the resulting record
        would break the invariants, in which case nothing is staged.
        """
        before = self.get_config()

        if isinstance(kind, SetWallet):
            old = self.get_wallet()
            batch.put(keys.WALLET, codec.encode_wallet(kind.address))
            return ConfigChange(before=before, after=before, wallet_before=old,
                                wallet_after=kind.address)

        if isinstance(kind, AddAdmin):
            if before.is_admin(kind.admin):
                raise StateInvariant("admin already present", admin=kind.admin)
            after = MultiSigConfig(admins=before.admins + (kind.admin,),
                                   threshold=before.threshold)
            self._stage(after, batch)
            return ConfigChange(before=before, after=after, added=(kind.admin,))

        if isinstance(kind, RemoveAdmin):
            if not before.is_admin(kind.admin):
                raise StateInvariant("admin not present", admin=kind.admin)
            remaining = tuple(a for a in before.admins if a != kind.admin)
            threshold = v.clamp_threshold(before.threshold, len(remaining))
            after = MultiSigConfig(admins=remaining, threshold=threshold)
            self._stage(after, batch)
            clamped = threshold != before.threshold
            if clamped:
                log.info(
                    "threshold clamped after admin removal",
                    extra={"old": before.threshold, "new": threshold},
                )
            return ConfigChange(before=before, after=after, removed=(kind.admin,),
                                clamped=clamped)

        if isinstance(kind, SetThreshold):
            after = MultiSigConfig(admins=before.admins, threshold=kind.threshold)
            self._stage(after, batch)
            return ConfigChange(before=before, after=after)

        raise StateInvariant("unknown proposal kind", kind=type(kind).__name__)

    # -------------------------------------------------------------- internals

    def _stage(self, cfg: MultiSigConfig, batch: Batch) -> None:
        self._check(cfg)
        batch.put(keys.CONFIG, codec.encode_config(cfg))

    @staticmethod
    def _check(cfg: MultiSigConfig) -> None:
        try:
            cfg.validate()
        except ValueError as e:
            raise StateInvariant(
                str(e), admins=list(cfg.admins), threshold=cfg.threshold
            ) from e


__all__ = ["ConfigStore"]
