from __future__ import annotations

import pytest

from multisig.errors import AlreadyInitialized, CodecError, NotFound, NotInitialized, StateInvariant
from multisig.mtypes.config import MultiSigConfig
from multisig.mtypes.proposal import AddAdmin, Proposal, RemoveAdmin, SetThreshold, SetWallet
from multisig.store import ConfigStore, ProposalStore
from multisig.store import codec, keys


@pytest.fixture
def configs(kv) -> ConfigStore:
    return ConfigStore(kv)


@pytest.fixture
def proposals(kv) -> ProposalStore:
    return ProposalStore(kv)


def _init(kv, configs, admins=("alice", "bob", "carol"), threshold=2, wallet="treasury"):
    with kv.batch() as b:
        return configs.initialize(admins, threshold, wallet, batch=b)


def _proposal(pid: int, kind=None, **kw) -> Proposal:
    base = dict(
        id=pid,
        kind=kind or AddAdmin("dave"),
        proposer="alice",
        approvals=("alice",),
        created_at=100,
    )
    base.update(kw)
    return Proposal(**base)


# ---------------------------------------------------------------- config store


def test_uninitialized_reads(configs):
    assert not configs.is_initialized()
    assert not configs.is_admin("alice")
    with pytest.raises(NotInitialized):
        configs.get_config()
    with pytest.raises(NotInitialized):
        configs.get_wallet()


def test_initialize_persists_config_and_wallet(kv, configs):
    cfg = _init(kv, configs)
    assert cfg == MultiSigConfig(admins=("alice", "bob", "carol"), threshold=2)
    assert configs.get_config() == cfg
    assert configs.get_wallet() == "treasury"
    assert configs.is_admin("bob")
    assert not configs.is_admin("dave")

    with pytest.raises(AlreadyInitialized):
        _init(kv, configs)


def test_initialize_refuses_broken_config(kv, configs):
    with pytest.raises(StateInvariant):
        _init(kv, configs, threshold=4)
    assert not configs.is_initialized()


def test_apply_each_kind(kv, configs):
    _init(kv, configs)

    with kv.batch() as b:
        ch = configs.apply(AddAdmin("dave"), batch=b)
    assert ch.added == ("dave",)
    assert configs.get_config().admins == ("alice", "bob", "carol", "dave")

    with kv.batch() as b:
        ch = configs.apply(SetThreshold(4), batch=b)
    assert ch.threshold_changed and (ch.before.threshold, ch.after.threshold) == (2, 4)

    with kv.batch() as b:
        ch = configs.apply(SetWallet("vault"), batch=b)
    assert ch.wallet_changed and (ch.wallet_before, ch.wallet_after) == ("treasury", "vault")
    assert configs.get_wallet() == "vault"


def test_remove_admin_clamps_threshold(kv, configs):
    _init(kv, configs, threshold=3)
    with kv.batch() as b:
        ch = configs.apply(RemoveAdmin("carol"), batch=b)
    assert ch.clamped
    assert ch.removed == ("carol",)
    assert configs.get_config() == MultiSigConfig(admins=("alice", "bob"), threshold=2)


def test_remove_admin_without_clamp(kv, configs):
    _init(kv, configs, threshold=2)
    with kv.batch() as b:
        ch = configs.apply(RemoveAdmin("carol"), batch=b)
    assert not ch.clamped
    assert configs.get_config().threshold == 2


def test_apply_rejects_invariant_breaks_and_stages_nothing(kv, configs):
    _init(kv, configs)
    before = configs.get_config()
    for kind in (SetThreshold(0), SetThreshold(4), AddAdmin("alice"), RemoveAdmin("zed")):
        with pytest.raises(StateInvariant):
            with kv.batch() as b:
                configs.apply(kind, batch=b)
        assert configs.get_config() == before


def test_removing_last_admin_breaks_invariant(kv, configs):
    _init(kv, configs, admins=("alice",), threshold=1)
    with pytest.raises(StateInvariant):
        with kv.batch() as b:
            configs.apply(RemoveAdmin("alice"), batch=b)
    assert configs.get_config().admins == ("alice",)


# -------------------------------------------------------------- proposal store


def test_next_id_is_persisted_and_increasing(kv, proposals):
    assert proposals.peek_next_id() == 1
    assert [proposals.next_id() for _ in range(3)] == [1, 2, 3]
    # a fresh store over the same KV continues the sequence
    assert ProposalStore(kv).next_id() == 4


def test_put_get_find(proposals):
    p = _proposal(1, expires_at=200)
    proposals.put(p)
    assert proposals.get(1) == p
    assert proposals.find(2) is None
    assert proposals.find(0) is None
    with pytest.raises(NotFound):
        proposals.get(2)


def test_iter_all_uses_numeric_order(kv, proposals):
    for pid in (300, 2, 10):
        proposals.put(_proposal(pid))
    assert [p.id for p in proposals.iter_all()] == [2, 10, 300]


def test_active_index(kv, proposals):
    assert proposals.active_ids() == ()
    with kv.batch() as b:
        proposals.add_active(3, batch=b)
        proposals.add_active(1, batch=b)
        proposals.add_active(3, batch=b)
    assert proposals.active_ids() == (1, 3)
    proposals.remove_active(3)
    proposals.remove_active(99)
    assert proposals.active_ids() == (1,)


def test_executed_proposal_survives_storage(proposals):
    p = _proposal(5, kind=SetWallet("vault")).with_approval("bob").mark_executed()
    proposals.put(p)
    got = proposals.get(5)
    assert got.executed
    assert got.approvals == ("alice", "bob")
    assert got.kind == SetWallet("vault")


# ----------------------------------------------------------------------- codec


def test_codec_is_canonical():
    a = _proposal(7, kind=SetThreshold(2), expires_at=None)
    b = Proposal.from_dict(a.to_dict())
    assert codec.encode_proposal(a) == codec.encode_proposal(b)
    assert codec.encode_ids({3, 1, 2}) == codec.encode_ids([1, 2, 3])


def test_codec_errors():
    with pytest.raises(CodecError):
        codec.loads(b"\x83\x01")
    with pytest.raises(CodecError):
        codec.decode_wallet(codec.dumps(5))
    with pytest.raises(CodecError):
        codec.decode_int(codec.dumps("five"))
    with pytest.raises(CodecError):
        codec.decode_ids(codec.dumps({"not": "a list"}))
    with pytest.raises(CodecError):
        codec.decode_proposal(codec.dumps({"id": 1}))
    with pytest.raises(CodecError):
        codec.dumps(object())


def test_proposal_keys_roundtrip():
    k = keys.proposal_key(42)
    assert k.startswith(keys.PROPOSAL_PREFIX)
    assert keys.proposal_id_from_key(k) == 42
    with pytest.raises(ValueError):
        keys.proposal_id_from_key(keys.CONFIG)


def test_validate_threshold_delegates(configs):
    assert configs.validate_threshold(2, 3)
    assert ConfigStore.validate_threshold(3, 3)
    assert not configs.validate_threshold(0, 3)
    assert not configs.validate_threshold(4, 3)
