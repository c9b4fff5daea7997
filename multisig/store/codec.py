from __future__ import annotations

"""
Record codec: canonical CBOR (cbor2, canonical=True) of each record's dict form.

Equal records encode to identical bytes. Any decode or shape failure
surfaces as `CodecError`.
"""

from typing import Any, Iterable, Optional, Tuple

import cbor2

from ..errors import CodecError
from ..mtypes.config import MultiSigConfig
from ..mtypes.proposal import Proposal


def dumps(obj: Any) -> bytes:
    try:
        return cbor2.dumps(obj, canonical=True)
    except (cbor2.CBOREncodeError, TypeError, ValueError) as e:
        raise CodecError("encode failed", type=type(obj).__name__).with_cause(e) from e


def loads(buf: bytes) -> Any:
    try:
        return cbor2.loads(buf)
    except (cbor2.CBORDecodeError, ValueError) as e:
        raise CodecError("decode failed", size=len(buf)).with_cause(e) from e


# Config -----------------------------------------------------------------------

def encode_config(cfg: MultiSigConfig) -> bytes:
    return dumps(cfg.to_dict())


def decode_config(buf: bytes) -> MultiSigConfig:
    d = loads(buf)
    try:
        return MultiSigConfig.from_dict(d)
    except (KeyError, TypeError, ValueError) as e:
        raise CodecError("bad config record").with_cause(e) from e


# Wallet -----------------------------------------------------------------------

def encode_wallet(address: str) -> bytes:
    return dumps(address)


def decode_wallet(buf: bytes) -> str:
    v = loads(buf)
    if not isinstance(v, str):
        raise CodecError("bad wallet record", got=type(v).__name__)
    return v


# Proposal ---------------------------------------------------------------------

def encode_proposal(p: Proposal) -> bytes:
    return dumps(p.to_dict())


def decode_proposal(buf: bytes) -> Proposal:
    d = loads(buf)
    try:
        return Proposal.from_dict(d)
    except (KeyError, TypeError, ValueError) as e:
        raise CodecError("bad proposal record").with_cause(e) from e


# Id list / counter ------------------------------------------------------------

def encode_ids(ids: Iterable[int]) -> bytes:
    return dumps(sorted(int(i) for i in ids))


def decode_ids(buf: Optional[bytes]) -> Tuple[int, ...]:
    if buf is None:
        return ()
    v = loads(buf)
    if not isinstance(v, list) or not all(isinstance(i, int) for i in v):
        raise CodecError("bad id list record")
    return tuple(v)


def encode_int(n: int) -> bytes:
    return dumps(int(n))


def decode_int(buf: bytes) -> int:
    v = loads(buf)
    if not isinstance(v, int) or isinstance(v, bool):
        raise CodecError("bad integer record", got=type(v).__name__)
    return v


__all__ = [
    "dumps",
    "loads",
    "encode_config",
    "decode_config",
    "encode_wallet",
    "decode_wallet",
    "encode_proposal",
    "decode_proposal",
    "encode_ids",
    "decode_ids",
    "encode_int",
    "decode_int",
]
