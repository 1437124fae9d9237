import hmac
from dataclasses import dataclass
from datetime import datetime

from fastapi import HTTPException, Header

from dobao.core.config import settings


@dataclass
class AdminContext:
    authenticated_at: datetime


async def require_admin(x_admin_token: str = Header(None)) -> AdminContext:
    """
    Verify the admin token from the request header.
    The token comes from configuration (ADMIN_TOKEN); when it is not set,
    the admin API is closed.
    """
    if not settings.ADMIN_TOKEN:
        raise HTTPException(status_code=503, detail="Admin access is not configured")

    if not x_admin_token or not hmac.compare_digest(x_admin_token.encode(), settings.ADMIN_TOKEN.encode()):
        raise HTTPException(status_code=401, detail="Invalid admin token")

    return AdminContext(authenticated_at=datetime.now())
