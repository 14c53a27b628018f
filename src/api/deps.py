"""FastAPI dependencies shared by the API routes."""
from uuid import UUID

from fastapi import Header, HTTPException, status


async def get_company_id(
    x_company_id: str | None = Header(default=None, alias="X-Company-ID"),
) -> UUID:
    """Company the request acts for.

    HR users are authenticated upstream; the gateway forwards the company
    in the ``X-Company-ID`` header.

    Raises:
        HTTPException: 400 if the header is missing or not a UUID
    """
    if not x_company_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Company-ID header is required",
        )
    try:
        return UUID(x_company_id.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Company-ID header must be a UUID",
        ) from None


async def get_actor(
    x_actor_id: str | None = Header(default=None, alias="X-Actor-ID"),
) -> str | None:
    """Identifier of the HR user, recorded in the audit trail when present."""
    if not x_actor_id:
        return None
    return x_actor_id.strip()[:255] or None
