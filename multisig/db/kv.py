from __future__ import annotations

"""
KV interface & namespace prefixes
=================================

Backend-agnostic Key-Value interface used by the governance stores, plus the
canonical namespace for governance records:

- GOV (b"g:") : config, wallet, proposals, active index, id counter

Backends implement this interface and the batch semantics. This file is
*pure interface + helpers* and contains no I/O.

Key building helpers
--------------------
- Prefix(ns=b"g") produces a prefix object:
    GOV.key(b"proposal", be_u64(7)) -> b"g:" + len|data + len|data
- Integers used in keys should be big-endian fixed width (`be_u64`) so that
  lexicographic order equals numeric order.

Batching
--------
`KV.batch()` returns a context manager. Use it to atomically put/delete:

>>> with kv.batch() as b:
...     b.put(GOV.key(b"a"), b"1")
...     b.delete(GOV.key(b"b"))

Reads issued on the same KV while a batch is open observe the batch's
pending writes (read-your-writes).
"""

from typing import Iterable, Iterator, Optional, Protocol, Tuple, Union, runtime_checkable

# ---------------------------------------------------------------------------
# Prefix helpers
# ---------------------------------------------------------------------------

NS_SEP = b":"


class Prefix:
    """
    A logical namespace prefix (e.g., b"g:" for governance).

    .raw gives the raw bytes prefix.
    .key(*parts) builds a composite key: prefix + sum(uvarlen | part_bytes).
    """

    __slots__ = ("_raw",)

    def __init__(self, ns: Union[bytes, bytearray, memoryview, str]) -> None:
        ns_b = ns.encode("ascii") if isinstance(ns, str) else bytes(ns)
        if len(ns_b) == 0:
            raise ValueError("namespace must be non-empty")
        self._raw = ns_b.rstrip(NS_SEP) + NS_SEP

    @property
    def raw(self) -> bytes:
        return self._raw

    def key(self, *parts: Union[bytes, bytearray, memoryview, str, int]) -> bytes:
        """Build a composite key under this prefix."""
        out = bytearray(self._raw)
        for p in parts:
            pb = _part_to_bytes(p)
            out.extend(_uvarint_len(len(pb)))
            out.extend(pb)
        return bytes(out)

    def __repr__(self) -> str:
        return f"Prefix({self._raw!r})"


def _part_to_bytes(p: Union[bytes, bytearray, memoryview, str, int]) -> bytes:
    if isinstance(p, (bytes, bytearray, memoryview)):
        return bytes(p)
    if isinstance(p, str):
        return p.encode("utf-8")
    if isinstance(p, int):
        if p < 0:
            raise ValueError("negative ints not supported in key parts")
        return _int_big_endian_minimal(p)
    raise TypeError(f"unsupported key part type: {type(p)!r}")


def _int_big_endian_minimal(n: int) -> bytes:
    if n == 0:
        return b"\x00"
    return n.to_bytes((n.bit_length() + 7) // 8, "big")


def _uvarint_len(n: int) -> bytes:
    """LEB128-like unsigned length prefix."""
    if n < 0:
        raise ValueError("length must be non-negative")
    out = bytearray()
    while True:
        b = n & 0x7F
        n >>= 7
        if n:
            out.append(0x80 | b)
        else:
            out.append(b)
            break
    return bytes(out)


def be_u64(n: int) -> bytes:
    if not (0 <= n < (1 << 64)):
        raise ValueError("be_u64 out of range")
    return n.to_bytes(8, "big")


def from_be_u64(b: bytes) -> int:
    if len(b) != 8:
        raise ValueError("be_u64 requires exactly 8 bytes")
    return int.from_bytes(b, "big")


GOV = Prefix(b"g")  # governance records


# ---------------------------------------------------------------------------
# KV protocols & Batch
# ---------------------------------------------------------------------------


@runtime_checkable
class ReadOnlyKV(Protocol):
    """Minimal read-only KV surface."""

    def get(self, key: bytes) -> Optional[bytes]:
        """Fetch value or None if missing."""
        ...

    def has(self, key: bytes) -> bool:
        ...

    def iter_prefix(self, prefix: bytes) -> Iterator[Tuple[bytes, bytes]]:
        """
        Iterate over (key, value) pairs whose key begins with `prefix`,
        in lexicographic byte-order of keys.
        """
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class Batch(Protocol):
    """
    A write-batch context manager. Backend guarantees atomicity when exiting
    the context without exception. If an exception escapes, the batch is rolled back.
    """

    def put(self, key: bytes, value: bytes) -> None: ...
    def delete(self, key: bytes) -> None: ...
    def commit(self) -> None: ...
    def rollback(self) -> None: ...

    def __enter__(self) -> "Batch": ...
    def __exit__(self, exc_type, exc, tb) -> Optional[bool]: ...


@runtime_checkable
class KV(ReadOnlyKV, Protocol):
    """Full RW KV surface."""

    def put(self, key: bytes, value: bytes) -> None:
        """Persist (key,value). Overwrites if exists."""
        ...

    def delete(self, key: bytes) -> None:
        """Remove key if present (idempotent)."""
        ...

    def batch(self) -> Batch:
        ...


# ---------------------------------------------------------------------------
# Portable helpers built atop the interface
# ---------------------------------------------------------------------------


def put_many(kv: KV, items: Iterable[Tuple[bytes, bytes]]) -> None:
    """Write many keys using a single batch."""
    with kv.batch() as b:
        for k, v in items:
            b.put(k, v)


# Governance sub-keys (see multisig.store.keys)
# - GOV.key(b"config")                      -> MultiSigConfig CBOR
# - GOV.key(b"wallet")                      -> wallet address CBOR
# - GOV.key(b"proposal", be_u64(id))        -> Proposal CBOR
# - GOV.key(b"active")                      -> sorted list of active ids CBOR
# - GOV.key(b"next_id")                     -> next id CBOR


__all__ = [
    "ReadOnlyKV",
    "KV",
    "Batch",
    "GOV",
    "Prefix",
    "put_many",
    "be_u64",
    "from_be_u64",
]
