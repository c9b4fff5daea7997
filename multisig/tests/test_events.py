from __future__ import annotations

import json
import logging

import pytest

from multisig.mtypes.events import (AdminAdded, EventType, Initialized, ProposalCreated,
                                    ThresholdUpdated, WalletUpdated, deserialize_event,
                                    serialize_event)
from multisig.sinks import CallbackSink, EventSink, FanoutSink, LoggingSink, MemorySink, NullSink


def test_serialize_is_json_ready_and_reversible(gov, sink):
    pid = gov.propose_set_wallet("alice", "vault", ttl=5)
    gov.approve_proposal("bob", pid)
    gov.execute_proposal("carol", pid)

    assert sink.types() == [
        EventType.PROPOSAL_CREATED,
        EventType.PROPOSAL_APPROVED,
        EventType.WALLET_UPDATED,
        EventType.PROPOSAL_EXECUTED,
    ]
    for ev in sink.events:
        d = serialize_event(ev)
        assert d["etype"] == ev.etype.value
        json.dumps(d)
        assert deserialize_event(json.loads(json.dumps(d))) == ev


def test_event_factories():
    ev = ProposalCreated.new(7, 3, "alice", {"kind": "add_admin", "admin": "dave"}, None)
    assert ev.etype is EventType.PROPOSAL_CREATED
    assert (ev.ts, ev.id, ev.expires_at) == (7, 3, None)

    assert Initialized.new(0, ("a", "b"), 1, "w").admins == ["a", "b"]
    assert ThresholdUpdated.make(1, 3, 2).new == 2
    assert WalletUpdated.make(1, "w0", "w1").old == "w0"


def test_deserialize_unknown_type():
    with pytest.raises(ValueError):
        deserialize_event({"etype": "Minted", "ts": 0})


def test_memory_sink_filters_and_clears():
    s = MemorySink()
    s.emit(AdminAdded.new(1, "dave", "alice"))
    s.emit(ThresholdUpdated.make(2, 2, 3))
    assert len(s) == 2
    assert [e.admin for e in s.of_type(EventType.ADMIN_ADDED)] == ["dave"]
    s.clear()
    assert s.events == []


def test_callback_and_fanout_sinks():
    seen = []
    only_wallet = CallbackSink(seen.append, only=[EventType.WALLET_UPDATED])
    mem = MemorySink()
    fan = FanoutSink([NullSink(), only_wallet])
    fan.add(mem)

    fan.emit(AdminAdded.new(1, "dave", "alice"))
    fan.emit(WalletUpdated.make(2, "w0", "w1"))

    assert [e.etype for e in seen] == [EventType.WALLET_UPDATED]
    assert mem.types() == [EventType.ADMIN_ADDED, EventType.WALLET_UPDATED]
    for s in (fan, mem, only_wallet, NullSink(), LoggingSink()):
        assert isinstance(s, EventSink)


def test_logging_sink_writes_structured_line(caplog):
    caplog.set_level(logging.INFO, logger="multisig.events")
    LoggingSink().emit(AdminAdded.new(4, "dave", "alice"))
    rec = next(r for r in caplog.records if r.name == "multisig.events")
    assert rec.getMessage() == "AdminAdded"
    assert rec.event == {"etype": "AdminAdded", "ts": 4, "admin": "dave", "added_by": "alice"}
