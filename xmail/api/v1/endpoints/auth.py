"""
Account authentication endpoints.

Flow:
1. POST /auth/register -> creates the account, returns both tokens
2. POST /auth/login -> returns both tokens
3. POST /auth/refresh -> trades a refresh token for a new access token
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from xmail.api.deps import get_current_user
from xmail.config import MAIL_DOMAIN, MAX_ACCOUNT_FIELD_LENGTH, MIN_PASSWORD_LENGTH
from xmail.database import get_db
from xmail.logging_config import get_logger
from xmail.models.user import User
from xmail.services import auth_service, user_service

logger = get_logger(__name__)


# Request Models
class RegisterRequest(BaseModel):
    name: Optional[str] = None
    userId: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    userId: Optional[str] = None
    password: Optional[str] = None


class RefreshRequest(BaseModel):
    refreshToken: Optional[str] = None


# Response Models
class AuthResponse(BaseModel):
    """Successful register/login response."""
    success: bool = True
    message: str
    user: dict
    accessToken: str
    refreshToken: str


class RefreshResponse(BaseModel):
    success: bool = True
    accessToken: str


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(req: RegisterRequest, db: Session = Depends(get_db)):
    """
    Create an account.

    **Returns:**
    - 201: Account created, tokens issued
    - 400: Missing fields, bad address, or short password
    - 409: Address already registered
    """
    if not req.name or not req.userId or not req.password:
        raise HTTPException(status_code=400, detail="All fields required")

    if len(req.name) > MAX_ACCOUNT_FIELD_LENGTH or len(req.userId) > MAX_ACCOUNT_FIELD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Name and User ID must be at most {MAX_ACCOUNT_FIELD_LENGTH} characters"
        )

    if not user_service.is_valid_user_id(req.userId):
        raise HTTPException(status_code=400, detail=f"User ID must end with {MAIL_DOMAIN}")

    if len(req.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    if user_service.get_user_by_user_id(db, req.userId):
        raise HTTPException(status_code=409, detail="User already exists")

    user = user_service.create_user(db, req.name, req.userId, req.password)
    logger.info("Registered %s", user.user_id)

    return AuthResponse(
        message="Registration successful",
        user=user.to_profile_dict(),
        **auth_service.generate_tokens(user)
    )


@router.post("/login", response_model=AuthResponse)
def login(req: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for tokens."""
    if not req.userId or not req.password:
        raise HTTPException(status_code=400, detail="User ID and password required")

    user = user_service.authenticate(db, req.userId, req.password)
    if not user:
        logger.info("Login failed for %s", user_service.normalize_user_id(req.userId))
        raise HTTPException(status_code=400, detail="Invalid credentials")

    return AuthResponse(
        message="Login successful",
        user=user.to_profile_dict(),
        **auth_service.generate_tokens(user)
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(req: RefreshRequest):
    """
    Issue a new access token.

    Refresh tokens never expire, so this works for as long as the
    signing secret is unchanged.
    """
    if not req.refreshToken:
        raise HTTPException(status_code=400, detail="Refresh token is required")

    payload = auth_service.decode_refresh_token(req.refreshToken)
    if payload is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    if not payload.get("sub"):
        raise HTTPException(status_code=403, detail="Invalid refresh token")

    return RefreshResponse(
        accessToken=auth_service.create_access_token(payload["sub"], payload.get("uid"))
    )


@router.get("/auto-login")
def auto_login(user: User = Depends(get_current_user)):
    """Return the profile behind a stored token."""
    return {
        "success": True,
        "message": "Auto login successful",
        "user": user.to_profile_dict(),
    }
