"""
Password hashing and JWT handling.

Access and refresh tokens are signed with distinct secrets. Refresh
tokens never expire; access tokens expire only when
ACCESS_TOKEN_EXPIRE_MINUTES is set.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from jose import jwt, JWTError

from xmail.config import (
    JWT_SECRET,
    JWT_REFRESH_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=10)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def _token_claims(user_id: str, db_id: int) -> dict:
    return {"sub": user_id, "uid": db_id}


def create_access_token(user_id: str, db_id: int) -> str:
    to_encode = _token_claims(user_id, db_id)
    if ACCESS_TOKEN_EXPIRE_MINUTES > 0:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode["exp"] = expire
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def create_refresh_token(user_id: str, db_id: int) -> str:
    return jwt.encode(_token_claims(user_id, db_id), JWT_REFRESH_SECRET, algorithm=JWT_ALGORITHM)


def generate_tokens(user) -> dict:
    """Return both tokens for a User row."""
    return {
        "accessToken": create_access_token(user.user_id, user.id),
        "refreshToken": create_refresh_token(user.user_id, user.id),
    }


def decode_access_token(token: str) -> Optional[dict]:
    """Return the token payload, or None when the token is invalid or expired."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def decode_refresh_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(
            token,
            JWT_REFRESH_SECRET,
            algorithms=[JWT_ALGORITHM],
            options={"verify_exp": False},
        )
    except JWTError:
        return None
