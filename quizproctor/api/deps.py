from __future__ import annotations

from fastapi import Header, HTTPException


async def get_current_user_id(
    x_user_id: int | None = Header(default=None, alias="X-User-Id", gt=0),
) -> int:
    """Opaque current-user capability; an auth layer overrides this dependency."""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail={"code": "E_UNAUTHENTICATED"})
    return x_user_id
