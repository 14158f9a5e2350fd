"""
Draft endpoints used by the compose view's auto-save.

Drafts are Mail rows with folder "draft" and is_draft set. Deleting a
draft is the only physical deletion in the API.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from xmail.api.deps import get_current_user
from xmail.api.v1.endpoints.mail import push_new_mail
from xmail.config import MAIL_DOMAIN
from xmail.database import get_db
from xmail.models.mail import Mail
from xmail.models.user import User
from xmail.services import mail_service, user_service

router = APIRouter(prefix="/drafts", tags=["Drafts"])


class DraftCreate(BaseModel):
    to: str = ""
    subject: str = ""
    body: str = ""
    attachments: list[str] = []


class DraftUpdate(BaseModel):
    """Only the fields that are sent are changed."""
    to: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    attachments: Optional[list[str]] = None


def _draft_or_404(db: Session, draft_id: int, user: User) -> Mail:
    draft = mail_service.get_draft(db, draft_id, user.user_id)
    if not draft:
        raise HTTPException(status_code=404, detail="Draft not found")
    return draft


@router.post("", status_code=201)
def create_draft(req: DraftCreate, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """
    Create a draft on the first auto-save.

    A completely empty draft is not stored (204).
    """
    if not req.to.strip() and not req.subject.strip() and not req.body.strip():
        return Response(status_code=204)

    draft = mail_service.create_draft(
        db, user,
        to=req.to, subject=req.subject, body=req.body, attachments=req.attachments
    )
    return draft.to_dict()


@router.put("/{draft_id}")
def update_draft(
    draft_id: int,
    req: DraftUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    draft = _draft_or_404(db, draft_id, user)
    draft = mail_service.update_draft(
        db, draft,
        to=req.to, subject=req.subject, body=req.body, attachments=req.attachments
    )
    return draft.to_dict()


@router.get("")
def list_drafts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [d.to_dict() for d in mail_service.list_drafts(db, user.user_id)]


@router.get("/{draft_id}")
def get_draft(draft_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _draft_or_404(db, draft_id, user).to_dict()


@router.delete("/{draft_id}")
def delete_draft(draft_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mail_service.delete_draft(db, _draft_or_404(db, draft_id, user))
    return {"success": True, "message": "Draft deleted successfully"}


@router.post("/send/{draft_id}")
def send_draft(
    draft_id: int,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Send a draft: it becomes the sender's "sent" copy and an inbox copy
    is delivered to the recipient.
    """
    draft = _draft_or_404(db, draft_id, user)

    to = (draft.recipient or "").strip().lower()
    if not to:
        raise HTTPException(status_code=400, detail="Recipient email required")

    if not to.endswith(MAIL_DOMAIN):
        raise HTTPException(status_code=400, detail=f"Recipient must end with {MAIL_DOMAIN}")

    receiver = user_service.get_user_by_user_id(db, to)
    if not receiver:
        raise HTTPException(status_code=404, detail="Recipient not found.")

    sent, inbox_mail = mail_service.send_draft(db, draft, receiver)
    push_new_mail(background_tasks, inbox_mail)
    return sent.to_dict()
