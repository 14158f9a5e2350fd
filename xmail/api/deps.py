"""
Request authentication.

Accepts "Authorization: Bearer <access token>". When the access token is
rejected, a valid refresh token in "X-Refresh-Token" is accepted instead.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from xmail.database import get_db
from xmail.logging_config import get_logger
from xmail.models.user import User
from xmail.services import auth_service, user_service

logger = get_logger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    authorization: Optional[str] = Header(None),
    x_refresh_token: Optional[str] = Header(None),
    db: Session = Depends(get_db)
) -> User:
    """FastAPI dependency returning the authenticated User row."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise _unauthorized("Unauthorized: No token provided")

    token = authorization.split(" ", 1)[1].strip()
    payload = auth_service.decode_access_token(token)

    if payload is None:
        if not x_refresh_token:
            raise _unauthorized("Unauthorized: Invalid token")
        payload = auth_service.decode_refresh_token(x_refresh_token)
        if payload is None:
            raise _unauthorized("Unauthorized: Invalid refresh token")

    user = None
    if payload.get("uid") is not None:
        user = user_service.get_user_by_id(db, payload["uid"])
    elif payload.get("sub"):
        user = user_service.get_user_by_user_id(db, payload["sub"])
    else:
        raise _unauthorized("Unauthorized: Invalid token payload")

    if not user:
        logger.warning("Token for unknown user: %s", payload.get("sub"))
        raise _unauthorized("Unauthorized: User not found")

    return user
