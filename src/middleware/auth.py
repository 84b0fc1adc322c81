"""Bearer token authentication dependency."""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..core.exceptions import AuthenticationError
from ..core.security import verify_access_token

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> dict:
    """Resolve the calling principal from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated")
    return verify_access_token(credentials.credentials)
