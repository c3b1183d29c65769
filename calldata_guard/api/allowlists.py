"""
/api/v1/allowlists - read-only directory surface and calldata validation.

Mutations are driven through the Python API by the owning identity; this
router never changes registry state.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from ..core.abi import method_selector
from ..core.errors import NotFoundError
from ..service.registry import AllowlistRegistry

logger = logging.getLogger("guard.api.allowlists")


class ValidateRequest(BaseModel):
    """Calldata to check against an origin's allowlist."""

    origin: str
    target: str
    calldata: str  # 0x-prefixed hex


class ValidateResponse(BaseModel):
    origin: str
    target: str
    allowed: bool


def create_allowlist_routes(registry: AllowlistRegistry) -> APIRouter:
    """Create FastAPI routes bound to `registry`."""
    router = APIRouter(prefix="/api/v1/allowlists", tags=["allowlists"])

    @router.get("/protocols")
    async def list_protocols():
        """List finalized origins in registration order."""
        return {"protocols": registry.registered_protocols_list()}

    @router.get("/protocols/{origin}")
    def get_protocol(origin: str):
        """Directory entry for one origin. Runs in the threadpool, validity checks may call a node."""
        try:
            entry = registry.entry(origin)
        except NotFoundError:
            raise HTTPException(404, f"Origin not registered: {origin}")

        data: Dict[str, Any] = entry.to_dict()
        data["registered"] = entry.finalized
        data["conditions_valid"] = entry.allowlist.conditions_valid()
        return data

    @router.get("/protocols/{origin}/conditions")
    async def get_conditions(origin: str):
        """Ordered rule set of one origin."""
        try:
            conditions = registry.conditions_by_origin_name(origin)
        except NotFoundError:
            raise HTTPException(404, f"Origin not registered: {origin}")

        return {
            "origin": origin,
            "conditions": [
                dict(c.to_dict(), selector=c.selector_hex) for c in conditions
            ],
        }

    @router.post("/validate", response_model=ValidateResponse)
    def validate(request: ValidateRequest):
        """Check calldata against an origin's allowlist. Runs in the threadpool, providers block on node calls."""
        try:
            allowed = registry.validate_calldata_by_origin(
                request.origin, request.target, request.calldata
            )
        except NotFoundError:
            raise HTTPException(404, f"Origin not registered: {request.origin}")

        logger.info(
            f"Validated call to {request.target} for {request.origin}: "
            f"{'ALLOW' if allowed else 'DENY'}"
        )
        return ValidateResponse(
            origin=request.origin, target=request.target, allowed=allowed
        )

    @router.get("/selector")
    async def selector(signature: str):
        """Selector for a canonical signature like `approve(address,uint256)`."""
        if "(" not in signature or not signature.endswith(")"):
            raise HTTPException(400, f"Not a canonical signature: {signature}")
        return {"signature": signature, "selector": "0x" + method_selector(signature).hex()}

    return router
