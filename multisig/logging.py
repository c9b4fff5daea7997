"""
multisig.logging
----------------

Structured logging for the governance engine:
- JSON or concise colored text formats
- Context-local fields via `contextvars` (trace_id, component, caller, proposal_id)
- Safe JSON serialization (bytes -> hex, Paths -> str, dataclasses -> dict)
- Optional JSON file tee

Usage
-----
    from multisig import logging as glog

    glog.configure(json=False, level="INFO")  # once at process start
    log = glog.get_logger(__name__)

    with glog.trace_scope():
        glog.bind(component="engine", caller="alice")
        log.info("proposal created", extra={"proposal_id": 7})

The engine opens one `trace_scope()` per public call and binds the caller, so
every line emitted while serving that call can be correlated.
"""

from __future__ import annotations

import datetime as _dt
import io
import json
import logging
import os
import sys
import threading
import traceback
import types
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

ENV_FORMAT = "MULTISIG_LOG_FORMAT"
ENV_LEVEL = "MULTISIG_LOG_LEVEL"

# ----------------------------
# Context
# ----------------------------

_LOG_CONTEXT: ContextVar[Dict[str, Any]] = ContextVar("_MULTISIG_LOG_CONTEXT", default={})

DEFAULT_CONTEXT_KEYS = (
    "trace_id",
    "component",
    "caller",
    "proposal_id",
)

# LogRecord attributes that are never treated as structured extras.
_RESERVED = frozenset(
    (
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        "asctime",
    )
)


def context() -> Dict[str, Any]:
    """Return a *copy* of the active logging context."""
    return dict(_LOG_CONTEXT.get())


def bind(**fields: Any) -> None:
    """Merge fields into the active context."""
    cur = dict(_LOG_CONTEXT.get())
    cur.update({k: _coerce_value(v) for k, v in fields.items()})
    _LOG_CONTEXT.set(cur)


def unbind(*keys: str) -> None:
    cur = dict(_LOG_CONTEXT.get())
    for k in keys:
        cur.pop(k, None)
    _LOG_CONTEXT.set(cur)


def clear_context() -> None:
    _LOG_CONTEXT.set({})


@contextmanager
def trace_scope(trace_id: Optional[str] = None, **fields: Any) -> Iterator[str]:
    """
    Ensure a trace_id (and any extra fields) for the duration of the scope.
    Nested scopes keep the outer trace_id unless one is passed explicitly.
    Restores prior context on exit.
    """
    prev = dict(_LOG_CONTEXT.get())
    tid = trace_id or prev.get("trace_id") or short_uuid()
    try:
        bind(trace_id=tid, **fields)
        yield tid
    finally:
        _LOG_CONTEXT.set(prev)


def short_uuid() -> str:
    return uuid.uuid4().hex[:12]


# ----------------------------
# JSON & Text formatters
# ----------------------------


def _utcnow_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat(timespec="milliseconds")


_LEVEL_TO_INT = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

ANSI = types.SimpleNamespace(
    RESET="\x1b[0m",
    BOLD="\x1b[1m",
    FG=types.SimpleNamespace(
        RED="\x1b[31m",
        GREEN="\x1b[32m",
        YELLOW="\x1b[33m",
        MAGENTA="\x1b[35m",
        CYAN="\x1b[36m",
        GREY="\x1b[90m",
        WHITE="\x1b[37m",
    ),
)

_LEVEL_COLOR = {
    logging.DEBUG: ANSI.FG.GREY,
    logging.INFO: ANSI.FG.GREEN,
    logging.WARNING: ANSI.FG.YELLOW,
    logging.ERROR: ANSI.FG.RED,
    logging.CRITICAL: ANSI.BOLD + ANSI.FG.MAGENTA,
}


def _supports_color(stream: Any) -> bool:
    try:
        return stream.isatty() and os.environ.get("NO_COLOR") is None
    except Exception:
        return False


def _coerce_value(v: Any) -> Any:
    if v is None or isinstance(v, (bool, int, float, str, list, dict)):
        return v
    if isinstance(v, tuple):
        return [_coerce_value(i) for i in v]
    if isinstance(v, (bytes, bytearray)):
        return v.hex()
    if isinstance(v, Path):
        return str(v)
    if isinstance(v, _dt.datetime):
        if v.tzinfo is None:
            v = v.replace(tzinfo=_dt.timezone.utc)
        return v.isoformat()
    if is_dataclass(v) and not isinstance(v, type):
        return asdict(v)
    return str(v)


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        k: v
        for k, v in record.__dict__.items()
        if not k.startswith("_") and k not in _RESERVED
    }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utcnow_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": os.getpid(),
            "tid": threading.get_ident(),
        }
        payload.update(context())
        for k, v in _extras(record).items():
            payload.setdefault(k, _coerce_value(v))

        if record.exc_info:
            payload["err"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()

        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(logging.Formatter):
    """
    Human-friendly one-liner:
      2026-01-05T12:34:56.789+00:00 | INFO  | multisig.engine | trace_id=ab12 caller=alice | proposal created
    With colors when supported.
    """

    def __init__(self, stream: Any):
        super().__init__()
        self._color = _supports_color(stream)

    def format(self, record: logging.LogRecord) -> str:
        ts = _utcnow_iso()
        lvl = record.levelname

        ctx = context()
        ctx_str = " ".join(
            f"{k}={ctx[k]}" for k in DEFAULT_CONTEXT_KEYS if ctx.get(k) is not None
        )
        extras = " ".join(
            f"{k}={_coerce_value(v)}"
            for k, v in _extras(record).items()
            if k not in DEFAULT_CONTEXT_KEYS and k not in ctx
        )

        if self._color:
            c = _LEVEL_COLOR.get(record.levelno, ANSI.FG.WHITE)
            lvl_s = f"{c}{lvl:<5}{ANSI.RESET}"
            name_s = f"{ANSI.FG.CYAN}{record.name}{ANSI.RESET}"
            ts_s = f"{ANSI.FG.GREY}{ts}{ANSI.RESET}"
            ctx_s = f"{ANSI.FG.GREY}{ctx_str}{ANSI.RESET}" if ctx_str else ""
        else:
            lvl_s = f"{lvl:<5}"
            name_s = record.name
            ts_s = ts
            ctx_s = ctx_str

        line = f"{ts_s} | {lvl_s} | {name_s}"
        if ctx_s:
            line += f" | {ctx_s}"
        if extras:
            line += f" {extras}"
        line += f" | {record.getMessage()}"

        if record.exc_info:
            line += "\n" + "".join(traceback.format_exception(*record.exc_info)).rstrip()
        return line


# ----------------------------
# Public setup API
# ----------------------------


def configure(
    *,
    json: Optional[bool] = None,
    level: str | int = "INFO",
    stream: io.TextIOBase = sys.stderr,
    file_path: Optional[Path | str] = None,
    propagate_existing: bool = False,
) -> None:
    """
    Configure the root logger.

    Parameters
    ----------
    json : bool | None
        If None, determined by env MULTISIG_LOG_FORMAT=(json|text) and TTY detection.
    level : str | int
        Minimum log level.
    stream : TextIO
        Stream for console handler (default: stderr).
    file_path : Path | str | None
        Optional path to a file that additionally receives JSON logs.
    propagate_existing : bool
        If True, leave existing handlers in place.
    """
    chosen_json = _decide_json(json, stream)
    lvl = _coerce_level(level)

    root = logging.getLogger()
    root.setLevel(lvl)

    if not propagate_existing:
        for h in list(root.handlers):
            root.removeHandler(h)

    console = logging.StreamHandler(stream)
    console.setLevel(lvl)
    console.setFormatter(JSONFormatter() if chosen_json else TextFormatter(stream))
    root.addHandler(console)

    if file_path:
        p = Path(file_path).expanduser()
        p.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(p, encoding="utf-8")
        fh.setLevel(lvl)
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)

    for noisy in ("urllib3", "asyncio", "httpx", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(max(lvl, logging.WARNING))


def configure_from_settings(settings: Any) -> None:
    """Configure logging from a `multisig.config.Settings` instance."""
    log_cfg = settings.log
    fmt = (log_cfg.format or "").strip().lower()
    override = _env_json_override()
    chosen: Optional[bool]
    if override is not None:
        chosen = override
    elif fmt in ("json", "text"):
        chosen = fmt == "json"
    else:
        chosen = None
    configure(
        json=chosen,
        level=os.environ.get(ENV_LEVEL, log_cfg.level),
        file_path=log_cfg.file,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a standard logger. To add constant per-logger fields, use `with_fields`."""
    return logging.getLogger(name or "multisig")


def with_fields(logger: logging.Logger, **fields: Any) -> "ContextAdapter":
    """Return a logger adapter that injects constant fields on each call."""
    return ContextAdapter(logger, extra={k: _coerce_value(v) for k, v in fields.items()})


class ContextAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges its constant fields with call-site `extra`."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = kwargs.get("extra") or {}
        kwargs["extra"] = {**self.extra, **extra} if isinstance(extra, dict) else dict(self.extra)
        return msg, kwargs


# ----------------------------
# Internals
# ----------------------------


def _coerce_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return _LEVEL_TO_INT.get(str(level).upper(), logging.INFO)


def _decide_json(json_flag: Optional[bool], stream: Any) -> bool:
    if json_flag is not None:
        return json_flag
    override = _env_json_override()
    if override is not None:
        return override
    # JSON in non-tty (services), text when interactive
    return not _supports_color(stream)


def _env_json_override() -> Optional[bool]:
    env = os.environ.get(ENV_FORMAT, "").strip().lower()
    if env == "json":
        return True
    if env == "text":
        return False
    return None


__all__ = [
    "DEFAULT_CONTEXT_KEYS",
    "context",
    "bind",
    "unbind",
    "clear_context",
    "trace_scope",
    "short_uuid",
    "JSONFormatter",
    "TextFormatter",
    "configure",
    "configure_from_settings",
    "get_logger",
    "with_fields",
    "ContextAdapter",
]
