from __future__ import annotations

"""
Event sinks.

The engine publishes every governance event to one `EventSink` after the
storage batch commits. An exception from `emit` is logged and counted in
`multisig_sink_failures_total`; it never reaches the caller of the engine
operation, whose state change is already durable.
"""

import threading
from typing import Callable, Iterable, List, Optional, Protocol, Sequence, runtime_checkable

from . import metrics
from .logging import get_logger
from .mtypes.events import EventType, GovEvent, serialize_event

log = get_logger("multisig.sinks")


@runtime_checkable
class EventSink(Protocol):
    def emit(self, event: GovEvent) -> None: ...


class NullSink:
    def emit(self, event: GovEvent) -> None:
        return None


class MemorySink:
    """Keeps every event in order. Handy in tests and for the CLI's output."""

    def __init__(self) -> None:
        self._events: List[GovEvent] = []
        self._lock = threading.Lock()

    def emit(self, event: GovEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[GovEvent]:
        with self._lock:
            return list(self._events)

    def of_type(self, etype: EventType) -> List[GovEvent]:
        return [e for e in self.events if e.etype is etype]

    def types(self) -> List[EventType]:
        return [e.etype for e in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        return len(self.events)


class LoggingSink:
    """Writes each event as one structured INFO line."""

    def __init__(self, logger_name: str = "multisig.events") -> None:
        self._log = get_logger(logger_name)

    def emit(self, event: GovEvent) -> None:
        payload = serialize_event(event)
        self._log.info(payload["etype"], extra={"event": payload})


class CallbackSink:
    """Adapts a plain callable (e.g. a websocket broadcaster) into a sink."""

    def __init__(self, fn: Callable[[GovEvent], None],
                 only: Optional[Sequence[EventType]] = None) -> None:
        self._fn = fn
        self._only = frozenset(only) if only else None

    def emit(self, event: GovEvent) -> None:
        if self._only is None or event.etype in self._only:
            self._fn(event)


class FanoutSink:
    """Emit to several sinks in order."""

    def __init__(self, sinks: Iterable[EventSink]) -> None:
        self._sinks = list(sinks)

    def add(self, sink: EventSink) -> None:
        self._sinks.append(sink)

    def emit(self, event: GovEvent) -> None:
        for s in self._sinks:
            try:
                s.emit(event)
            except Exception:
                etype = getattr(event.etype, "value", event.etype)
                metrics.record_sink_failure(etype)
                log.exception("fanout sink %s failed", type(s).__name__, extra={"etype": etype})


__all__ = [
    "EventSink",
    "NullSink",
    "MemorySink",
    "LoggingSink",
    "CallbackSink",
    "FanoutSink",
]
