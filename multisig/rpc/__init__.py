from __future__ import annotations

"""
multisig.rpc
------------

Transport surfaces for the governance engine:
  • JSON-RPC callables (`methods.make_methods`) for any dispatcher
  • FastAPI REST router (`methods.build_rest_router`) and mounting helpers

The caller principal is taken from the transport (the `caller` param for
JSON-RPC, the `X-Caller` header for REST) and is assumed to be authenticated
by the gateway in front of this service.
"""

from typing import Dict, Final

RPC_PREFIX: Final[str] = "/gov"

GOV_OPENAPI_TAG: Final[Dict[str, str]] = {
    "name": "governance",
    "description": "Multi-signature governance over admins, threshold and payout wallet.",
}

__all__ = [
    "RPC_PREFIX",
    "GOV_OPENAPI_TAG",
]
