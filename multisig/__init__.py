from __future__ import annotations
"""
multisig - threshold-authorized governance for platform configuration.

Sensitive settings (the payout wallet, the administrator set and the approval
threshold) change only through proposals that collect N-of-M approvals from
the current administrators. Submodules are lazily imported to keep import time
minimal.

Public surface (lazily loaded):
- config, errors, logging, metrics
- validation, clock, sinks, engine, boot
- mtypes, store, db, rpc, cli
"""


from typing import List

try:
    from .version import __version__  # type: ignore
except Exception:  # pragma: no cover - safe fallback when building incrementally
    __version__ = "0.0.0+local"

__all__: List[str] = [
    "__version__",
    # lazily importable subpackages/modules
    "config",
    "errors",
    "logging",
    "metrics",
    "validation",
    "clock",
    "sinks",
    "engine",
    "boot",
    "mtypes",
    "store",
    "db",
    "rpc",
    "cli",
]

# --- Lazy module loader (PEP 562) -------------------------------------------------
import importlib


_lazy_modules = set(__all__) - {"__version__"}


def __getattr__(name: str):
    if name in _lazy_modules:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(set(globals().keys()) | _lazy_modules)


def get_version() -> str:
    """Return the multisig package version string."""
    return __version__
