"""
Profile endpoints for the logged-in user.
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from xmail.api.deps import get_current_user
from xmail.config import MAX_ACCOUNT_FIELD_LENGTH, MIN_PASSWORD_LENGTH
from xmail.database import get_db
from xmail.logging_config import get_logger
from xmail.models.user import User
from xmail.services import attachment_service, user_service
from xmail.services.auth_service import verify_password

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


class UsernameUpdate(BaseModel):
    username: Optional[str] = None


class PasswordUpdate(BaseModel):
    oldPassword: Optional[str] = None
    newPassword: Optional[str] = None


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"success": True, "user": user.to_profile_dict()}


@router.post("/profile/pic")
def update_profile_pic(
    profilePic: UploadFile = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Replace the profile picture. The previous file is removed from disk."""
    if profilePic is None or not profilePic.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    if profilePic.content_type and not profilePic.content_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image files are allowed")

    if user.profile_pic:
        attachment_service.delete_public_file(user.profile_pic)

    path = attachment_service.save_profile_pic(profilePic)
    user = user_service.set_profile_pic(db, user, path)

    return {"success": True, "profilePic": user.profile_pic_url}


@router.put("/profile/username")
def update_username(
    req: UsernameUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    username = (req.username or "").strip()
    if not username:
        raise HTTPException(status_code=400, detail="Username required")

    if len(username) > MAX_ACCOUNT_FIELD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Username must be at most {MAX_ACCOUNT_FIELD_LENGTH} characters"
        )

    if user_service.is_username_taken(db, username, exclude_id=user.id):
        raise HTTPException(status_code=409, detail="Username already taken")

    user = user_service.update_username(db, user, username)
    return {"success": True, "username": user.username}


@router.put("/profile/password")
def update_password(
    req: PasswordUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    if not req.oldPassword or not req.newPassword:
        raise HTTPException(status_code=400, detail="Both passwords required")

    if not verify_password(req.oldPassword, user.password_hash):
        raise HTTPException(status_code=400, detail="Old password incorrect")

    if len(req.newPassword) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
        )

    user_service.update_password(db, user, req.newPassword)
    logger.info("Password changed for %s", user.user_id)
    return {"success": True, "message": "Password updated successfully"}
