from __future__ import annotations

"""
multisig.boot
=============

Wiring helpers: open the configured KV, build the stores and the engine, and
optionally bootstrap governance from the genesis settings.

    from multisig.boot import open_engine
    engine = open_engine()                       # settings from env/file
    engine = open_engine(settings, clock=clk)    # explicit
"""

from typing import Optional

from .clock import Clock, SystemClock
from .config import GenesisSettings, Settings, load
from .db import open_kv
from .engine import GovernanceEngine
from .errors import InvalidProposalArgs
from .logging import get_logger
from .mtypes.config import MultiSigConfig
from .sinks import EventSink, LoggingSink

log = get_logger("multisig.boot")


def open_engine(
    settings: Optional[Settings] = None,
    *,
    clock: Optional[Clock] = None,
    sink: Optional[EventSink] = None,
) -> GovernanceEngine:
    """
    Build a GovernanceEngine over the KV named by `settings.storage.uri`.

    Defaults: settings from `multisig.config.load()`, a SystemClock and a
    LoggingSink.
    """
    cfg = settings if settings is not None else load()
    cfg.validate()
    kv = open_kv(cfg.storage.uri)
    log.debug("opened governance store", extra={"uri": cfg.storage.uri})
    return GovernanceEngine(
        kv,
        clock=clock if clock is not None else SystemClock(),
        sink=sink if sink is not None else LoggingSink(),
        settings=cfg.governance,
    )


def initialize_from_genesis(engine: GovernanceEngine, genesis: GenesisSettings) -> MultiSigConfig:
    """Run `engine.initialize` with the genesis admins, wallet and threshold."""
    if not genesis.admins:
        raise InvalidProposalArgs("genesis admins are not configured")
    if genesis.wallet is None:
        raise InvalidProposalArgs("genesis wallet is not configured")
    return engine.initialize(genesis.admins, genesis.wallet, genesis.threshold)


__all__ = ["open_engine", "initialize_from_genesis"]
