from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Liveness check, outside the rate limited prefix.

    Returns:
        dict: ``status`` plus whether rate limiting is on and which counter
            store backs it.
    """

    cfg = request.app.state.settings
    return {
        "status": "ok",
        "rate_limit": {
            "enabled": cfg.rate_limit.enabled,
            "storage": cfg.rate_limit.storage,
        },
    }
