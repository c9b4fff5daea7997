from __future__ import annotations

"""
Prometheus metrics for multisig governance.

We expose counters, gauges and a histogram covering:
- proposals: created and executed by kind
- approvals: recorded approvals
- rejections: failed calls by operation and error code
- state: current admin count, threshold and active proposal count
- latency: time spent inside each engine operation

Metrics live on a dedicated registry so embedding apps can choose to merge
or expose it directly (see `mount_fastapi`).
"""


import time
from contextlib import contextmanager
from typing import Iterator, Optional

from prometheus_client import (CONTENT_TYPE_LATEST, CollectorRegistry, Counter,
                               Gauge, Histogram, generate_latest)

REGISTRY = CollectorRegistry()

# ────────────────────────────────────────────────────────────────────────────────
# Label conventions
#   kind: "set_wallet" | "add_admin" | "remove_admin" | "set_threshold"
#   op:   "initialize" | "create" | "approve" | "execute"
#   code: GovErrorCode value, e.g. "GOV/UNAUTHORIZED"
# ────────────────────────────────────────────────────────────────────────────────

PROPOSALS_CREATED = Counter(
    "multisig_proposals_created_total",
    "Total proposals created by kind.",
    labelnames=("kind",),
    registry=REGISTRY,
)

APPROVALS = Counter(
    "multisig_approvals_total",
    "Total approvals recorded (excluding the proposer's implicit approval).",
    registry=REGISTRY,
)

EXECUTIONS = Counter(
    "multisig_proposals_executed_total",
    "Total proposals executed by kind.",
    labelnames=("kind",),
    registry=REGISTRY,
)

THRESHOLD_CLAMPS = Counter(
    "multisig_threshold_clamps_total",
    "Times an admin removal lowered the threshold to the new admin count.",
    registry=REGISTRY,
)

REJECTIONS = Counter(
    "multisig_rejections_total",
    "Failed governance calls by operation and error code.",
    labelnames=("op", "code"),
    registry=REGISTRY,
)

SINK_FAILURES = Counter(
    "multisig_sink_failures_total",
    "Events an event sink failed to accept, by event type.",
    labelnames=("etype",),
    registry=REGISTRY,
)

ADMIN_COUNT = Gauge(
    "multisig_admin_count",
    "Current number of admins.",
    registry=REGISTRY,
)

THRESHOLD = Gauge(
    "multisig_threshold",
    "Current approval threshold.",
    registry=REGISTRY,
)

ACTIVE_PROPOSALS = Gauge(
    "multisig_active_proposals",
    "Proposals not yet executed (expired ones included).",
    registry=REGISTRY,
)

OP_SECONDS = Histogram(
    "multisig_op_seconds",
    "Time spent inside an engine operation.",
    labelnames=("op",),
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
    registry=REGISTRY,
)

# ────────────────────────────────────────────────────────────────────────────────
# Recording helpers
# ────────────────────────────────────────────────────────────────────────────────


def record_created(kind: str) -> None:
    PROPOSALS_CREATED.labels(kind=kind).inc()
    ACTIVE_PROPOSALS.inc()


def record_approval() -> None:
    APPROVALS.inc()


def record_executed(kind: str, clamped: bool = False) -> None:
    EXECUTIONS.labels(kind=kind).inc()
    ACTIVE_PROPOSALS.dec()
    if clamped:
        THRESHOLD_CLAMPS.inc()


def record_rejection(op: str, code: str) -> None:
    """Count a failed call by operation and error code."""
    REJECTIONS.labels(op=op, code=str(code)).inc()


def record_sink_failure(etype: str) -> None:
    SINK_FAILURES.labels(etype=str(etype)).inc()


def set_state(admin_count: int, threshold: int, active: Optional[int] = None) -> None:
    """Snapshot the governance state gauges."""
    ADMIN_COUNT.set(admin_count)
    THRESHOLD.set(threshold)
    if active is not None:
        ACTIVE_PROPOSALS.set(active)


@contextmanager
def time_op(op: str) -> Iterator[None]:
    """Context manager observing the duration of one engine operation."""
    start = time.perf_counter()
    try:
        yield
    finally:
        OP_SECONDS.labels(op=op).observe(time.perf_counter() - start)


# ────────────────────────────────────────────────────────────────────────────────
# Exposition
# ────────────────────────────────────────────────────────────────────────────────


def metrics_text(registry: Optional[CollectorRegistry] = None) -> str:
    """Render the registry in Prometheus text exposition format."""
    return generate_latest(registry or REGISTRY).decode("utf-8")


def mount_fastapi(
    app, path: str = "/metrics", registry: Optional[CollectorRegistry] = None
) -> None:
    """
    Mount a GET {path} endpoint on a FastAPI app to serve metrics.

    Usage:
        from fastapi import FastAPI
        from multisig.metrics import mount_fastapi
        app = FastAPI()
        mount_fastapi(app)
    """
    from fastapi import Response

    reg = registry or REGISTRY

    @app.get(path)
    def _metrics() -> Response:
        return Response(generate_latest(reg), media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "PROPOSALS_CREATED",
    "APPROVALS",
    "EXECUTIONS",
    "THRESHOLD_CLAMPS",
    "REJECTIONS",
    "SINK_FAILURES",
    "ADMIN_COUNT",
    "THRESHOLD",
    "ACTIVE_PROPOSALS",
    "OP_SECONDS",
    "record_created",
    "record_approval",
    "record_executed",
    "record_rejection",
    "record_sink_failure",
    "set_state",
    "time_op",
    "metrics_text",
    "mount_fastapi",
]
