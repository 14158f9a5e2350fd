"""
Assistant widget settings endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from xmail.api.deps import get_current_user
from xmail.database import get_db
from xmail.models.user import User
from xmail.services import bot_service
from xmail.services.user_service import normalize_user_id

router = APIRouter(prefix="/bot", tags=["Bot"])


class BotSettingsRequest(BaseModel):
    userId: Optional[str] = None
    settings: Optional[dict] = None


def _ensure_self(user: User, user_id: str) -> None:
    if normalize_user_id(user_id) != user.user_id:
        raise HTTPException(status_code=403, detail="Not authorized")


@router.get("/{user_id}")
def get_bot_settings(user_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    _ensure_self(user, user_id)

    settings = bot_service.get_settings(db, user.user_id)
    if settings is None:
        raise HTTPException(status_code=404, detail="No bot settings found")
    return {"settings": settings}


@router.post("")
def save_bot_settings(req: BotSettingsRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not req.userId or req.settings is None:
        raise HTTPException(status_code=400, detail="Missing data")

    _ensure_self(user, req.userId)
    return {"settings": bot_service.save_settings(db, user.user_id, req.settings)}
