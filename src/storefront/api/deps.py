"""Request-scoped dependencies."""

from fastapi import Header, HTTPException

from storefront.utils.logging import add_context


def current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Caller identity from the ``X-User-Id`` header set by the auth gateway."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    add_context(user_id=x_user_id)
    return x_user_id
