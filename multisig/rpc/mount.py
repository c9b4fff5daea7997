from __future__ import annotations

"""
multisig.rpc.mount
------------------

Helpers to mount the governance surface into an existing FastAPI app and/or
to register the JSON-RPC methods with your dispatcher.

Typical usage (REST):
    from fastapi import FastAPI
    from multisig.rpc.mount import mount_governance
    app = FastAPI()
    mount_governance(app, engine, prefix="/gov")

Typical usage (JSON-RPC):
    from multisig.rpc.mount import register_jsonrpc
    register_jsonrpc(dispatcher, engine)

No hard dependency on a specific JSON-RPC framework: we expect a dispatcher
with a `.add(name, callable)` or `.register(name, callable)` API.
"""

from typing import Any, Protocol

from ..engine import GovernanceEngine
from ..metrics import mount_fastapi as _mount_metrics
from . import GOV_OPENAPI_TAG, RPC_PREFIX
from .methods import build_rest_router, make_methods


class _JsonRpcDispatcherLike(Protocol):
    def add(self, method: str, func: Any) -> None: ...
    def register(self, method: str, func: Any) -> None: ...


def mount_governance(
    app: Any,
    engine: GovernanceEngine,
    *,
    prefix: str = RPC_PREFIX,
    metrics_path: str | None = "/metrics",
) -> None:
    """
    Mount the governance REST endpoints under `prefix` on a FastAPI app and,
    unless `metrics_path` is None, serve Prometheus metrics at `metrics_path`.
    """
    router = build_rest_router(engine)
    app.include_router(router, prefix=prefix, tags=[GOV_OPENAPI_TAG["name"]])
    if metrics_path:
        _mount_metrics(app, path=metrics_path)


def register_jsonrpc(dispatcher: _JsonRpcDispatcherLike, engine: GovernanceEngine) -> None:
    """
    Register JSON-RPC methods on a dispatcher, preferring `.add(name, fn)`
    and falling back to `.register(name, fn)`.
    """
    methods = make_methods(engine)
    adder = getattr(dispatcher, "add", None) or getattr(dispatcher, "register")
    for name, fn in methods.items():
        adder(name, fn)


def create_app(engine: GovernanceEngine) -> Any:
    """Standalone FastAPI app with only the governance surface mounted."""
    from fastapi import FastAPI

    from ..version import __version__

    app = FastAPI(title="multisig governance", version=__version__,
                  openapi_tags=[GOV_OPENAPI_TAG])
    mount_governance(app, engine)
    return app


__all__ = ["mount_governance", "register_jsonrpc", "create_app"]
