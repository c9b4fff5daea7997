from __future__ import annotations

import io
import json
import logging

import pytest

from multisig import logging as glog
from multisig.config import LogSettings, Settings
from multisig.errors import NotFound


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    glog.clear_context()
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    glog.clear_context()


def test_trace_scope_binds_and_restores():
    glog.bind(component="outer")
    with glog.trace_scope(caller="alice") as tid:
        ctx = glog.context()
        assert ctx["trace_id"] == tid
        assert ctx["caller"] == "alice"
        assert ctx["component"] == "outer"
        with glog.trace_scope(proposal_id=3) as inner:
            assert inner == tid
            assert glog.context()["proposal_id"] == 3
        assert "proposal_id" not in glog.context()
    assert glog.context() == {"component": "outer"}

    glog.unbind("component")
    assert glog.context() == {}


def test_json_lines_carry_context_and_extras():
    buf = io.StringIO()
    glog.configure(json=True, level="DEBUG", stream=buf)
    log = glog.get_logger("multisig.test")
    with glog.trace_scope("t-1", caller="bob"):
        log.info("proposal approved", extra={"approvals": 2, "raw": b"\xff"})
    line = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert line["msg"] == "proposal approved"
    assert line["logger"] == "multisig.test"
    assert line["trace_id"] == "t-1"
    assert line["caller"] == "bob"
    assert line["approvals"] == 2
    assert line["raw"] == "ff"


def test_text_format_and_adapter():
    buf = io.StringIO()
    glog.configure(json=False, level="INFO", stream=buf)
    log = glog.with_fields(glog.get_logger("multisig.test"), component="cli")
    log.debug("hidden")
    log.warning("threshold clamped", extra={"old": 3})
    out = buf.getvalue()
    assert "hidden" not in out
    assert "WARNING" in out and "threshold clamped" in out
    assert "old=3" in out


def test_configure_from_settings(tmp_path, monkeypatch):
    monkeypatch.delenv(glog.ENV_LEVEL, raising=False)
    monkeypatch.delenv(glog.ENV_FORMAT, raising=False)
    target = tmp_path / "logs" / "multisig.jsonl"
    settings = Settings(log=LogSettings(level="WARNING", format="json", file=str(target)))
    glog.configure_from_settings(settings)

    root = logging.getLogger()
    assert root.level == logging.WARNING
    glog.get_logger("multisig.test").warning("written", extra={"proposal_id": 9})
    for h in root.handlers:
        h.flush()
    rec = json.loads(target.read_text(encoding="utf-8").strip().splitlines()[-1])
    assert rec["msg"] == "written"
    assert rec["proposal_id"] == 9


def test_engine_logs_rejections(gov, caplog):
    caplog.set_level(logging.INFO, logger="multisig.engine")
    with pytest.raises(NotFound):
        gov.approve_proposal("mallory", 1)
    rec = next(r for r in caplog.records if "rejected" in r.getMessage())
    assert rec.error["code"] == "GOV/NOT_FOUND"
