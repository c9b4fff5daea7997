from __future__ import annotations

"""
multisig.db
===========

Thin facade for the key-value backend that holds governance state.

URIs
----
- "sqlite:///path/to/multisig.db"   -> SQLite file
- "sqlite:///:memory:"              -> in-memory SQLite (tests)
- "memory://"                       -> alias of "sqlite:///:memory:"
- bare path ending in ".db"         -> SQLite file

Example
-------
>>> from multisig.db import open_kv
>>> kv = open_kv("memory://")
>>> with kv.batch() as b:
...     b.put(b"g:key", b"hello")
>>> kv.get(b"g:key")
b'hello'
"""

from typing import Tuple

from .kv import GOV, KV, Batch, Prefix, ReadOnlyKV, be_u64, from_be_u64
from . import sqlite as _sqlite_backend


def _parse_uri(uri: str) -> Tuple[str, str]:
    """
    Parse a DB URI into (backend, path).

    Returns ("sqlite", path) or ("memory", "").
    """
    u = uri.strip()
    if u.startswith("sqlite:///"):
        return ("sqlite", u[len("sqlite:///") :])
    if u.startswith("memory://"):
        return ("memory", "")
    if u.endswith(".db"):
        return ("sqlite", u)
    raise ValueError(f"Unsupported DB URI: {uri!r}")


def open_kv(uri: str, create: bool = True) -> KV:
    """
    Open a KV database by URI. See module docstring for supported forms.

    Raises:
        ValueError for unsupported URIs.
        FileNotFoundError when `create=False` and the file is missing.
    """
    backend, spec = _parse_uri(uri)
    if backend == "memory":
        return _sqlite_backend.open_sqlite_kv(":memory:", create=True)
    return _sqlite_backend.open_sqlite_kv(spec or ":memory:", create=create)


__all__ = [
    "KV",
    "ReadOnlyKV",
    "Batch",
    "Prefix",
    "GOV",
    "be_u64",
    "from_be_u64",
    "open_kv",
]
