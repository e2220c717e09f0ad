from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from app.core.auth import require_user

router = APIRouter(tags=["Protected"])


@router.get("/protected")
def protected() -> dict:
    """Example endpoint behind the rate limiter.

    Returns:
        dict: A fixed message; useful for checking the X-RateLimit-* headers.
    """

    return {"message": "This is a rate-limited endpoint"}


@router.get("/me")
async def me(user_id: Annotated[str, Depends(require_user)]) -> dict:
    """Return the id of the authenticated caller.

    Raises:
        AuthenticationAppError: 401 when the bearer token is missing or invalid.
    """

    return {"user_id": user_id}
