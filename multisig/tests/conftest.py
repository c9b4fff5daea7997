from __future__ import annotations

import pytest

from multisig.clock import ManualClock
from multisig.config import GovernanceSettings
from multisig.db import open_kv
from multisig.engine import GovernanceEngine
from multisig.sinks import MemorySink

ADMINS = ("alice", "bob", "carol")
WALLET = "treasury"
T0 = 1_000


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "MULTISIG_CONFIG_FILE",
        "MULTISIG_DB_URI",
        "MULTISIG_LEDGER_SECONDS",
        "MULTISIG_MAX_TTL",
        "MULTISIG_SELF_ADDRESS",
        "MULTISIG_GENESIS_ADMINS",
        "MULTISIG_GENESIS_THRESHOLD",
        "MULTISIG_GENESIS_WALLET",
        "MULTISIG_LOG_FORMAT",
        "MULTISIG_LOG_LEVEL",
        "MULTISIG_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def kv():
    store = open_kv("memory://")
    yield store
    store.close()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(T0)


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def engine(kv, clock, sink) -> GovernanceEngine:
    """Uninitialized engine over a private in-memory store."""
    return GovernanceEngine(kv, clock=clock, sink=sink, settings=GovernanceSettings())


@pytest.fixture
def gov(engine: GovernanceEngine, sink: MemorySink) -> GovernanceEngine:
    """alice/bob/carol, 2-of-3, wallet 'treasury'. Bootstrap events are cleared."""
    engine.initialize(ADMINS, WALLET, 2)
    sink.clear()
    return engine
