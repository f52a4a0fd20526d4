"""
Authentication dependencies for FastAPI.

Identity is issued elsewhere; this module only verifies the bearer token and
exposes the caller's id so it can be recorded as a version author.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Optional
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated caller."""
    id: uuid.UUID
    email: Optional[str] = None


def decode_access_token(token: str) -> CurrentUser:
    """
    Decode a bearer token into the calling user.

    Raises:
        HTTPException: If the token is invalid or carries no usable subject
    """
    credentials_error = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid authentication credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise credentials_error

    subject = payload.get("sub")
    if not subject:
        raise credentials_error
    try:
        user_id = uuid.UUID(str(subject))
    except ValueError:
        raise credentials_error

    return CurrentUser(id=user_id, email=payload.get("email"))


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    """
    Dependency to get current authenticated user.

    Raises:
        HTTPException: If authentication fails
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = decode_access_token(credentials.credentials)
    logger.debug(f"Authenticated request: user={user.id}, endpoint={request.url.path}, method={request.method}")
    return user
