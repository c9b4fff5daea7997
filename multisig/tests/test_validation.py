import pytest

from multisig import validation as v


@pytest.mark.parametrize(
    "threshold,count,ok",
    [
        (1, 1, True),
        (2, 3, True),
        (3, 3, True),
        (0, 3, False),
        (-1, 3, False),
        (4, 3, False),
        (1, 0, False),
        (True, 3, False),
        ("2", 3, False),
        (2.0, 3, False),
    ],
)
def test_validate_threshold(threshold, count, ok):
    assert v.validate_threshold(threshold, count) is ok


def test_duplicate_and_last_admin():
    admins = ("alice", "bob")
    assert v.is_duplicate_admin(admins, "alice")
    assert not v.is_duplicate_admin(admins, "dave")

    assert not v.is_last_admin(admins, "alice")
    assert v.is_last_admin(("alice",), "alice")
    assert v.is_last_admin((), "alice")


@pytest.mark.parametrize(
    "address,ok",
    [
        ("treasury", True),
        ("GABC123", True),
        ("a" * v.MAX_ADDRESS_LEN, True),
        ("a" * (v.MAX_ADDRESS_LEN + 1), False),
        ("", False),
        (" padded", False),
        ("padded ", False),
        ("tab\there", False),
        ("nul\x00", False),
        ("del\x7f", False),
        (None, False),
        (42, False),
        (b"bytes", False),
    ],
)
def test_is_well_formed_address(address, ok):
    assert v.is_well_formed_address(address) is ok


def test_self_address_is_not_well_formed():
    assert v.is_well_formed_address("contract", None)
    assert not v.is_well_formed_address("contract", "contract")
    assert v.is_well_formed_address("other", "contract")


def test_expiry_boundary_is_inclusive():
    assert not v.is_expired(None, 10**12)
    assert not v.is_expired(100, 99)
    assert not v.is_expired(100, 100)
    assert v.is_expired(100, 101)


def test_current_approvals_filters_and_keeps_order():
    approvals = ("bob", "zed", "alice", "bob")
    assert v.current_approvals(approvals, ("alice", "bob", "carol")) == ("bob", "alice")
    assert v.current_approvals(approvals, ()) == ()
    assert v.current_approvals((), ("alice",)) == ()


def test_validate_admin_set():
    assert v.validate_admin_set(("alice", "bob"))
    assert not v.validate_admin_set(())
    assert not v.validate_admin_set(("alice", "alice"))
    assert not v.validate_admin_set(("alice", ""))
    assert not v.validate_admin_set(("alice", "self"), "self")


def test_ttl_and_expiry_computation():
    assert v.validate_ttl(0)
    assert v.validate_ttl(10)
    assert not v.validate_ttl(-1)
    assert not v.validate_ttl(True)
    assert not v.validate_ttl(1.5)
    # max_ttl of 0 is unbounded
    assert v.validate_ttl(10**9, 0)
    assert v.validate_ttl(5, 5)
    assert not v.validate_ttl(6, 5)

    assert v.compute_expiry(1_000, 0) is None
    assert v.compute_expiry(1_000, 10) == 1_010
    assert v.compute_expiry(1_000, 10, ledger_seconds=5) == 1_050


def test_clamp_threshold():
    assert v.clamp_threshold(3, 2) == 2
    assert v.clamp_threshold(2, 2) == 2
    assert v.clamp_threshold(1, 5) == 1
