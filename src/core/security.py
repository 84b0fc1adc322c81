"""Bearer token issuing and verification (identity provider boundary)."""

from datetime import timedelta
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from ..config import settings
from ..utils.helpers import utcnow
from .exceptions import AuthenticationError


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT. The principal id goes in ``sub``."""
    to_encode = data.copy()
    expire = utcnow() + (
        expires_delta or timedelta(minutes=settings.jwt_access_token_expire_minutes)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def verify_access_token(token: str) -> Dict[str, Any]:
    """
    Verify a JWT and return the principal.
    Raises AuthenticationError if the token is invalid, expired or has no subject.
    """
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise AuthenticationError("Could not validate credentials")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationError("Could not validate credentials")

    return {"id": str(subject), "username": payload.get("username")}
