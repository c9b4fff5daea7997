from __future__ import annotations

"""
multisig.engine - threshold governance over the admin set, threshold and wallet.

Lifecycle of a proposal:

    create_proposal  ->  approve_proposal*  ->  execute_proposal
       (Created)           (Approving)            (Executed, terminal)

with an orthogonal, lazily evaluated "expired" predicate: once `now` passes
`expires_at` the proposal can no longer be approved or executed, but it stays
in storage and in the active index.

Checks at creation are advisory. Execution re-validates everything against the
*current* admin set and threshold, because both may have changed since the
proposal was created. Only approvals from principals that are admins at
execution time count toward the threshold.

Every public mutation:
  1. takes the engine lock,
  2. reads and validates (no writes yet),
  3. stages all writes in one KV batch and commits,
  4. publishes events to the sink,
  5. updates metrics.
A failure in steps 1-3 leaves storage untouched.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from . import metrics
from . import logging as glog
from . import validation as v
from .clock import Clock, ManualClock
from .config import GovernanceSettings
from .db.kv import KV
from .errors import (AdminAlreadyExists, AdminNotFound, AlreadyApproved,
                     AlreadyExecuted, AlreadyInitialized,
                     CannotRemoveLastAdmin, GovernanceError,
                     InsufficientApprovals, InvalidAddress,
                     InvalidProposalArgs, InvalidThreshold, NotFound,
                     NotInitialized, ProposalExpired, Severity,
                     StateInvariant, Unauthorized)
from .mtypes.config import ConfigChange, MultiSigConfig
from .mtypes.events import (AdminAdded, AdminRemoved, GovEvent, Initialized,
                            ProposalApproved, ProposalCreated,
                            ProposalExecuted, ThresholdUpdated, WalletUpdated)
from .mtypes.proposal import (AddAdmin, Proposal, ProposalKind, RemoveAdmin,
                              SetThreshold, SetWallet, is_kind, kind_from_dict)
from .sinks import EventSink, NullSink
from .store import ConfigStore, ProposalStore

log = glog.get_logger("multisig.engine")

KindLike = Union[ProposalKind, Mapping[str, Any]]


class GovernanceEngine:
    """
    Orchestrates proposal creation, approval and execution.

    The engine holds no governance state of its own: everything lives in the
    KV behind the two stores, so several engines over the same KV (e.g. a CLI
    and a server, one at a time) observe the same state.
    """

    def __init__(
        self,
        kv: KV,
        *,
        clock: Optional[Clock] = None,
        sink: Optional[EventSink] = None,
        settings: Optional[GovernanceSettings] = None,
        config_store: Optional[ConfigStore] = None,
        proposal_store: Optional[ProposalStore] = None,
    ) -> None:
        self._kv = kv
        self._settings = settings if settings is not None else GovernanceSettings()
        self._settings.validate()
        self._clock = clock if clock is not None else ManualClock()
        self._sink = sink if sink is not None else NullSink()
        self.configs = config_store if config_store is not None else ConfigStore(
            kv, self_address=self._settings.self_address)
        self.proposals = proposal_store if proposal_store is not None else ProposalStore(kv)
        self._lock = threading.RLock()

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def settings(self) -> GovernanceSettings:
        return self._settings

    # ------------------------------------------------------------------ plumbing

    @contextmanager
    def _op(self, op: str, caller: Optional[str] = None, **fields: Any) -> Iterator[None]:
        with self._lock, glog.trace_scope(component="engine", caller=caller, **fields), \
                metrics.time_op(op):
            try:
                yield
            except GovernanceError as e:
                metrics.record_rejection(op, getattr(e.code, "value", e.code))
                level = logging.INFO if e.severity <= Severity.WARNING else logging.WARNING
                log.log(level, "%s rejected: %s", op, e.message, extra={"error": e.to_dict()})
                raise

    def _emit(self, events: Iterable[GovEvent]) -> None:
        # Runs after commit: sink failures are logged and counted, never raised.
        for ev in events:
            try:
                self._sink.emit(ev)
            except Exception:
                etype = getattr(ev.etype, "value", ev.etype)
                metrics.record_sink_failure(etype)
                log.exception("event sink failed", extra={"etype": etype})

    def _require_initialized(self) -> MultiSigConfig:
        return self.configs.get_config()

    @staticmethod
    def _require_admin(cfg: MultiSigConfig, principal: str) -> None:
        if not cfg.is_admin(principal):
            raise Unauthorized(principal)

    def _load_open(self, proposal_id: Any, now: int) -> Proposal:
        """Fetch a proposal that is neither executed nor expired."""
        if not isinstance(proposal_id, int) or isinstance(proposal_id, bool):
            raise NotFound(proposal_id)  # type: ignore[arg-type]
        p = self.proposals.get(proposal_id)
        if p.executed:
            raise AlreadyExecuted(p.id)
        if v.is_expired(p.expires_at, now):
            raise ProposalExpired(p.id, p.expires_at, now)  # type: ignore[arg-type]
        return p

    def _refresh_gauges(self, cfg: MultiSigConfig) -> None:
        metrics.set_state(cfg.admin_count, cfg.threshold, len(self.proposals.active_ids()))

    # ------------------------------------------------------------ bootstrap

    def initialize(self, admins: Iterable[str], wallet: str, threshold: int = 1) -> MultiSigConfig:
        """
        Bootstrap governance once with the genesis admin set, payout wallet
        and threshold. Raises AlreadyInitialized on any later call.
        """
        admins = tuple(admins)
        with self._op("initialize"):
            if self.configs.is_initialized():
                raise AlreadyInitialized()
            self_addr = self._settings.self_address
            for a in admins:
                if not v.is_well_formed_address(a, self_addr):
                    raise InvalidAddress(a)
            if not v.validate_admin_set(admins, self_addr):
                raise InvalidProposalArgs("admin set must be non-empty and unique",
                                          admins=list(admins))
            if not self.configs.validate_threshold(threshold, len(admins)):
                raise InvalidThreshold(threshold, len(admins))
            if not v.is_well_formed_address(wallet, self_addr):
                raise InvalidAddress(wallet)

            with self._kv.batch() as b:
                cfg = self.configs.initialize(admins, threshold, wallet, batch=b)

            now = self._clock.now()
            self._emit([Initialized.new(now, cfg.admins, cfg.threshold, wallet)])
            self._refresh_gauges(cfg)
            log.info("governance initialized",
                     extra={"admins": list(cfg.admins), "threshold": cfg.threshold})
            return cfg

    # -------------------------------------------------------------- create

    def create_proposal(self, proposer: str, kind: KindLike, ttl: int = 0) -> int:
        """
        Record a new proposal with the proposer as its first approval.

        `ttl` is measured in ledgers; 0 means the proposal never expires.
        Returns the new proposal id.
        """
        with self._op("create", proposer):
            cfg = self._require_initialized()
            self._require_admin(cfg, proposer)
            kind = self._coerce_kind(kind)
            if not v.validate_ttl(ttl, 0):
                raise InvalidProposalArgs("ttl must be a non-negative integer", ttl=ttl)
            if not v.validate_ttl(ttl, self._settings.max_ttl):
                raise InvalidProposalArgs("ttl exceeds maximum", ttl=ttl,
                                          max_ttl=self._settings.max_ttl)
            self._advise(cfg, kind)

            now = self._clock.now()
            pid = self.proposals.next_id()
            proposal = Proposal(
                id=pid,
                kind=kind,
                proposer=proposer,
                approvals=(proposer,),
                created_at=now,
                expires_at=v.compute_expiry(now, ttl, self._settings.ledger_seconds),
                executed=False,
            )
            with self._kv.batch() as b:
                self.proposals.put(proposal, batch=b)
                self.proposals.add_active(pid, batch=b)

            self._emit([ProposalCreated.new(now, pid, proposer, kind.to_dict(), proposal.expires_at)])
            metrics.record_created(kind.tag.value)
            glog.bind(proposal_id=pid)
            log.info("proposal created",
                     extra={"kind": kind.tag.value, "expires_at": proposal.expires_at})
            return pid

    def propose_set_wallet(self, proposer: str, address: str, ttl: int = 0) -> int:
        return self.create_proposal(proposer, SetWallet(address), ttl)

    def propose_add_admin(self, proposer: str, admin: str, ttl: int = 0) -> int:
        return self.create_proposal(proposer, AddAdmin(admin), ttl)

    def propose_remove_admin(self, proposer: str, admin: str, ttl: int = 0) -> int:
        return self.create_proposal(proposer, RemoveAdmin(admin), ttl)

    def propose_set_threshold(self, proposer: str, threshold: int, ttl: int = 0) -> int:
        return self.create_proposal(proposer, SetThreshold(threshold), ttl)

    @staticmethod
    def _coerce_kind(kind: KindLike) -> ProposalKind:
        if is_kind(kind):
            return kind  # type: ignore[return-value]
        if isinstance(kind, Mapping):
            try:
                return kind_from_dict(kind)
            except ValueError as e:
                raise InvalidProposalArgs(str(e)) from e
        raise InvalidProposalArgs(f"unsupported proposal kind type {type(kind).__name__}")

    def _advise(self, cfg: MultiSigConfig, kind: ProposalKind) -> None:
        """Shallow creation-time checks. Execution re-validates authoritatively."""
        self_addr = self._settings.self_address
        if isinstance(kind, SetWallet):
            if not v.is_well_formed_address(kind.address, self_addr):
                raise InvalidProposalArgs("invalid_address", address=kind.address)
        elif isinstance(kind, AddAdmin):
            if not v.is_well_formed_address(kind.admin, self_addr):
                raise InvalidProposalArgs("invalid_address", admin=kind.admin)
            if v.is_duplicate_admin(cfg.admins, kind.admin):
                raise InvalidProposalArgs("admin_already_exists", admin=kind.admin)
        elif isinstance(kind, RemoveAdmin):
            if not cfg.is_admin(kind.admin):
                raise InvalidProposalArgs("admin_not_found", admin=kind.admin)
        elif isinstance(kind, SetThreshold):
            t = kind.threshold
            if not isinstance(t, int) or isinstance(t, bool) or t <= 0:
                raise InvalidProposalArgs("invalid_threshold", threshold=t)
        else:
            raise InvalidProposalArgs(f"unknown proposal kind {type(kind).__name__}")

    # ------------------------------------------------------------- approve

    def approve_proposal(self, approver: str, proposal_id: int) -> Proposal:
        """Append `approver` to the proposal's approvals. Never executes."""
        with self._op("approve", approver, proposal_id=proposal_id):
            cfg = self._require_initialized()
            now = self._clock.now()
            p = self._load_open(proposal_id, now)
            self._require_admin(cfg, approver)
            if approver in p.approvals:
                raise AlreadyApproved(p.id, approver)

            updated = p.with_approval(approver)
            with self._kv.batch() as b:
                self.proposals.put(updated, batch=b)

            self._emit([ProposalApproved.new(now, p.id, approver, len(updated.approvals))])
            metrics.record_approval()
            log.info("proposal approved", extra={"approvals": len(updated.approvals)})
            return updated

    # ------------------------------------------------------------- execute

    def execute_proposal(self, executor: str, proposal_id: int) -> Proposal:
        """
        Apply an approved proposal atomically.

        Checks, in order: exists, not executed, not expired, executor is an
        admin, enough approvals from current admins, then kind-specific
        validation against current state.
        """
        with self._op("execute", executor, proposal_id=proposal_id):
            cfg = self._require_initialized()
            now = self._clock.now()
            p = self._load_open(proposal_id, now)
            self._require_admin(cfg, executor)

            counted = v.current_approvals(p.approvals, cfg.admins)
            if len(counted) < cfg.threshold:
                raise InsufficientApprovals(p.id, len(counted), cfg.threshold)

            self._authorize_kind(cfg, p.kind)

            executed = p.mark_executed()
            with self._kv.batch() as b:
                change = self.configs.apply(p.kind, batch=b)
                self.proposals.put(executed, batch=b)
                self.proposals.remove_active(p.id, batch=b)

            self._emit(self._change_events(now, p.kind, change, executor))
            self._emit([ProposalExecuted.new(now, p.id, executor)])
            metrics.record_executed(p.kind.tag.value, clamped=change.clamped)
            self._refresh_gauges(change.after)
            log.info("proposal executed",
                     extra={"kind": p.kind.tag.value, "approvals_counted": len(counted)})
            return executed

    def _authorize_kind(self, cfg: MultiSigConfig, kind: ProposalKind) -> None:
        self_addr = self._settings.self_address
        if isinstance(kind, SetWallet):
            if not v.is_well_formed_address(kind.address, self_addr):
                raise InvalidAddress(kind.address)
        elif isinstance(kind, AddAdmin):
            if v.is_duplicate_admin(cfg.admins, kind.admin):
                raise AdminAlreadyExists(kind.admin)
            if not v.is_well_formed_address(kind.admin, self_addr):
                raise InvalidAddress(kind.admin)
        elif isinstance(kind, RemoveAdmin):
            if not cfg.is_admin(kind.admin):
                raise AdminNotFound(kind.admin)
            if v.is_last_admin(cfg.admins, kind.admin):
                raise CannotRemoveLastAdmin(kind.admin)
        elif isinstance(kind, SetThreshold):
            if not self.configs.validate_threshold(kind.threshold, cfg.admin_count):
                raise InvalidThreshold(kind.threshold, cfg.admin_count)
        else:
            raise StateInvariant("unknown proposal kind", kind=type(kind).__name__)

    @staticmethod
    def _change_events(now: int, kind: ProposalKind, change: ConfigChange,
                       executor: str) -> List[GovEvent]:
        out: List[GovEvent] = []
        if isinstance(kind, SetWallet):
            out.append(WalletUpdated.make(now, change.wallet_before, kind.address))
        elif isinstance(kind, AddAdmin):
            out.append(AdminAdded.new(now, kind.admin, executor))
        elif isinstance(kind, RemoveAdmin):
            out.append(AdminRemoved.new(now, kind.admin, executor))
            if change.clamped:
                out.append(ThresholdUpdated.make(now, change.before.threshold,
                                                 change.after.threshold))
        elif isinstance(kind, SetThreshold):
            out.append(ThresholdUpdated.make(now, change.before.threshold,
                                             change.after.threshold))
        return out

    # --------------------------------------------------------------- reads

    def get_config(self) -> MultiSigConfig:
        with self._lock:
            return self.configs.get_config()

    def get_wallet(self) -> str:
        with self._lock:
            return self.configs.get_wallet()

    def is_admin(self, principal: str) -> bool:
        with self._lock:
            return self.configs.is_admin(principal)

    def is_initialized(self) -> bool:
        with self._lock:
            return self.configs.is_initialized()

    def get_proposal(self, proposal_id: int) -> Proposal:
        with self._lock:
            return self.proposals.get(proposal_id)

    def list_active_proposals(self) -> Tuple[int, ...]:
        """Ids not yet executed, ascending. Expired proposals are included."""
        with self._lock:
            return self.proposals.active_ids()

    def list_proposals(self) -> List[Proposal]:
        """Every proposal ever created, in id order."""
        with self._lock:
            return list(self.proposals.iter_all())

    def is_expired(self, proposal_id: int) -> bool:
        with self._lock:
            p = self.proposals.get(proposal_id)
            return v.is_expired(p.expires_at, self._clock.now())

    def counted_approvals(self, proposal_id: int) -> Tuple[str, ...]:
        """Approvals that would count if the proposal were executed now."""
        with self._lock:
            p = self.proposals.get(proposal_id)
            return v.current_approvals(p.approvals, self.configs.get_config().admins)


__all__ = ["GovernanceEngine"]
