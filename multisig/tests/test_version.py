import multisig
from multisig import version


def test_env_override(monkeypatch):
    monkeypatch.setenv("MULTISIG_VERSION", "9.9.9")
    assert version.build_version() == "9.9.9"


def test_git_suffix_is_pep440_local():
    assert version._pep440_local_from_describe("v0.1.0-3-gabc1234") == "git.0.1.0.3.gabc1234"
    assert version._pep440_local_from_describe("abc1234-dirty") == "git.abc1234.dirty"


def test_package_version_and_lazy_modules():
    assert multisig.get_version() == multisig.__version__
    assert multisig.__version__
    assert multisig.engine.GovernanceEngine.__name__ == "GovernanceEngine"
