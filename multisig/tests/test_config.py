from __future__ import annotations

import json

import pytest

from multisig import config as C


def test_defaults_validate():
    s = C.Settings()
    s.validate()
    assert s.storage.uri == "sqlite:///multisig.db"
    assert s.governance.ledger_seconds == 1
    assert s.governance.max_ttl == 0
    assert s.genesis.admins == ()


def test_from_env(monkeypatch):
    monkeypatch.setenv("MULTISIG_DB_URI", "memory://")
    monkeypatch.setenv("MULTISIG_LEDGER_SECONDS", "5")
    monkeypatch.setenv("MULTISIG_MAX_TTL", "1_000")
    monkeypatch.setenv("MULTISIG_SELF_ADDRESS", "contract")
    monkeypatch.setenv("MULTISIG_GENESIS_ADMINS", "alice, bob ,carol")
    monkeypatch.setenv("MULTISIG_GENESIS_THRESHOLD", "2")
    monkeypatch.setenv("MULTISIG_GENESIS_WALLET", "treasury")
    monkeypatch.setenv("MULTISIG_LOG_FORMAT", "json")

    s = C.from_env()
    assert s.storage.uri == "memory://"
    assert s.governance.ledger_seconds == 5
    assert s.governance.max_ttl == 1000
    assert s.governance.self_address == "contract"
    assert s.genesis.admins == ("alice", "bob", "carol")
    assert s.genesis.threshold == 2
    assert s.genesis.wallet == "treasury"
    assert s.log.format == "json"


@pytest.mark.parametrize(
    "name,value",
    [
        ("MULTISIG_LEDGER_SECONDS", "0"),
        ("MULTISIG_LEDGER_SECONDS", "soon"),
        ("MULTISIG_MAX_TTL", "-1"),
        ("MULTISIG_DB_URI", "postgres://db"),
        ("MULTISIG_LOG_FORMAT", "xml"),
        ("MULTISIG_GENESIS_THRESHOLD", "0"),
    ],
)
def test_from_env_rejects_bad_values(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError):
        C.from_env()


def test_genesis_threshold_must_fit_admins():
    with pytest.raises(ValueError):
        C.GenesisSettings(admins=("a", "b"), threshold=3).validate()
    with pytest.raises(ValueError):
        C.GenesisSettings(admins=("a", "a"), threshold=1).validate()


def test_from_yaml_file(tmp_path):
    p = tmp_path / "multisig.yaml"
    p.write_text(
        "storage:\n"
        "  uri: sqlite:///gov.db\n"
        "governance:\n"
        "  ledger_seconds: 6\n"
        "  max_ttl: 100\n"
        "genesis:\n"
        "  admins: [alice, bob]\n"
        "  threshold: 2\n"
        "  wallet: treasury\n",
        encoding="utf-8",
    )
    s = C.from_file(p)
    assert s.storage.uri == "sqlite:///gov.db"
    assert (s.governance.ledger_seconds, s.governance.max_ttl) == (6, 100)
    assert s.genesis.admins == ("alice", "bob")
    assert s.genesis.wallet == "treasury"


def test_from_json_file_and_errors(tmp_path):
    p = tmp_path / "multisig.json"
    p.write_text(json.dumps({"log": {"level": "DEBUG", "format": "text"}}), encoding="utf-8")
    s = C.from_file(p)
    assert (s.log.level, s.log.format) == ("DEBUG", "text")
    assert s.storage.uri == C.StorageSettings().uri

    with pytest.raises(FileNotFoundError):
        C.from_file(tmp_path / "nope.json")

    bad = tmp_path / "list.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        C.from_file(bad)


def test_load_layers_env_over_file(tmp_path, monkeypatch):
    p = tmp_path / "multisig.json"
    p.write_text(json.dumps({
        "storage": {"uri": "sqlite:///from-file.db"},
        "governance": {"max_ttl": 10},
    }), encoding="utf-8")
    monkeypatch.setenv("MULTISIG_CONFIG_FILE", str(p))
    monkeypatch.setenv("MULTISIG_MAX_TTL", "20")

    s = C.load()
    assert s.storage.uri == "sqlite:///from-file.db"
    assert s.governance.max_ttl == 20


def test_pretty_is_json():
    s = C.Settings(genesis=C.GenesisSettings(admins=("alice",), wallet="w"))
    d = json.loads(C.pretty(s))
    assert d["genesis"]["admins"] == ["alice"]
    assert d["storage"]["uri"] == "sqlite:///multisig.db"
