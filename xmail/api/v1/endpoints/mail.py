"""
Mail endpoints: compose, reply, folders, flags, search, attachments.

Every mail row is scoped to its owner (the mailbox it belongs to);
another user's mail id behaves as if it does not exist.
"""

import os
from typing import Optional

from fastapi import (
    APIRouter, BackgroundTasks, Depends, File,
    HTTPException, Query, UploadFile
)
from fastapi.responses import FileResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from xmail.api.deps import get_current_user
from xmail.api.v1.forms import MailForm, read_mail_form
from xmail.config import MAIL_DOMAIN, MAX_ATTACHMENTS
from xmail.database import get_db
from xmail.logging_config import get_logger
from xmail.models.mail import Mail, MailFolder
from xmail.models.user import User
from xmail.services import attachment_service, mail_service, user_service
from xmail.services.gemini_composer import MailGenerationError, smart_compose
from xmail.services.presence import presence
from xmail.services.speech_service import SpeechToTextError, transcribe
from xmail.services.text_cleaner import make_preview

logger = get_logger(__name__)

router = APIRouter(prefix="/mail", tags=["Mail"])


# ============ Request Schemas ============

class DraftRequest(BaseModel):
    to: str = ""
    subject: str = ""
    body: str = ""


class SmartComposeRequest(BaseModel):
    subject: Optional[str] = None
    context: Optional[str] = None


# ============ HELPERS ============

def new_mail_event(mail: Mail) -> dict:
    """Payload pushed to a recipient who is online."""
    return {
        "type": "newMail",
        "mail": {
            "id": mail.id,
            "from": mail.sender,
            "fromDp": mail.sender_dp,
            "subject": mail.subject,
            "preview": make_preview(mail.body),
            "timestamp": mail.timestamp.isoformat() if mail.timestamp else None,
        },
    }


def push_new_mail(background_tasks: BackgroundTasks, inbox_mail: Optional[Mail]) -> None:
    if inbox_mail is not None:
        background_tasks.add_task(presence.notify, inbox_mail.owner, new_mail_event(inbox_mail))


def _check_attachment_count(form: MailForm) -> None:
    if len(form.files) > MAX_ATTACHMENTS:
        raise HTTPException(
            status_code=400,
            detail=f"At most {MAX_ATTACHMENTS} attachments are allowed"
        )


def _owned_or_404(db: Session, mail_id: int, user: User) -> Mail:
    mail = mail_service.get_owned_mail(db, mail_id, user.user_id)
    if not mail:
        raise HTTPException(status_code=404, detail="Mail not found or not owned by user")
    return mail


def _folder_response(db: Session, user: User, folder: MailFolder) -> dict:
    mails = mail_service.list_folder(db, user.user_id, folder.value)
    return {"success": True, "mails": [m.to_dict() for m in mails]}


# ============ SEND ============

@router.post("/compose", status_code=201)
def compose_mail(
    background_tasks: BackgroundTasks,
    form: MailForm = Depends(read_mail_form),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Send a new mail.

    Writes the sender's "sent" copy and the recipient's "inbox" copy.

    **Returns:**
    - 201: Sent
    - 400: Missing fields, bad recipient address, too many attachments
    - 404: Recipient not found
    """
    to = form.text("to").lower()
    subject = form.text("subject")
    body = form.text("body")

    if not to or not subject or not body:
        raise HTTPException(status_code=400, detail="All fields are required.")

    if not to.endswith(MAIL_DOMAIN):
        raise HTTPException(status_code=400, detail=f"Recipient must end with {MAIL_DOMAIN}")

    _check_attachment_count(form)

    receiver = user_service.get_user_by_user_id(db, to)
    if not receiver:
        raise HTTPException(status_code=404, detail="Recipient not found.")

    attachments = attachment_service.save_attachments(form.files)
    sent_mail, inbox_mail = mail_service.deliver(db, user, receiver, subject, body, attachments)
    push_new_mail(background_tasks, inbox_mail)

    logger.info("Mail %s sent %s -> %s", sent_mail.id, user.user_id, receiver.user_id)
    return {"success": True, "message": "Mail sent successfully.", "mail": sent_mail.to_dict()}


@router.post("/reply/{mail_id}")
def reply_mail(
    mail_id: int,
    background_tasks: BackgroundTasks,
    form: MailForm = Depends(read_mail_form),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Reply to (or forward) one of the caller's mails.

    The reply is embedded on the original and also sent as a new mail
    whose parentMailId points at the original.
    """
    reply_text = form.text("replyText")
    reply_mode = form.text("replyMode") or "reply"

    if not reply_text and not form.files:
        raise HTTPException(status_code=400, detail="Reply text or attachment required.")

    _check_attachment_count(form)

    original = mail_service.get_owned_mail(db, mail_id, user.user_id)
    if not original:
        raise HTTPException(status_code=404, detail="Mail not found.")

    to = form.text("to").lower()
    if reply_mode == "forward" and not to:
        raise HTTPException(status_code=400, detail="Recipient required for forward.")

    receiver = user_service.get_user_by_user_id(db, to or original.sender)
    if not receiver:
        raise HTTPException(status_code=404, detail="Recipient not found.")

    attachments = attachment_service.save_attachments(form.files)
    reply = mail_service.append_reply(db, original, user, reply_text, attachments)

    subject = form.text("subject") or mail_service.reply_subject(original.subject, reply_mode)
    _, inbox_mail = mail_service.deliver(
        db, user, receiver, subject, reply_text, attachments,
        parent_mail_id=original.id
    )
    push_new_mail(background_tasks, inbox_mail)

    return {"success": True, "message": "Reply sent successfully!", "reply": reply}


# ============ FOLDERS ============

@router.get("/home/inbox")
def get_inbox(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _folder_response(db, user, MailFolder.INBOX)


@router.get("/home/sent")
def get_sent(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _folder_response(db, user, MailFolder.SENT)


@router.get("/home/deleted")
def get_deleted(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _folder_response(db, user, MailFolder.DELETED)


@router.get("/home/saved")
def get_saved(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _folder_response(db, user, MailFolder.SAVED)


@router.get("/home/drafts")
def get_drafts(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _folder_response(db, user, MailFolder.DRAFT)


@router.put("/trash/{mail_id}")
def trash_mail(mail_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mail = mail_service.trash(db, _owned_or_404(db, mail_id, user))
    return {"success": True, "message": "Mail moved to deleted folder", "mail": mail.to_dict()}


@router.put("/save/{mail_id}")
def save_mail(mail_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mail = mail_service.save(db, _owned_or_404(db, mail_id, user))
    return {"success": True, "message": "Mail saved successfully", "mail": mail.to_dict()}


@router.put("/restore/{mail_id}")
def restore_mail(mail_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mail = _owned_or_404(db, mail_id, user)

    target = mail_service.restore(db, mail)
    if target is None:
        raise HTTPException(status_code=400, detail="Mail is not in a restorable folder")

    return {"success": True, "message": f"Mail restored to {target}", "mail": mail.to_dict()}


# ============ FLAGS ============

@router.put("/star/{mail_id}")
def toggle_star(mail_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mail = mail_service.get_owned_mail(db, mail_id, user.user_id)
    if not mail:
        raise HTTPException(status_code=404, detail="Mail not found")

    return {"success": True, "isStarred": mail_service.toggle_star(db, mail)}


@router.put("/read/{mail_id}")
def mark_read(mail_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    mail = mail_service.get_mail(db, mail_id)
    if not mail:
        raise HTTPException(status_code=404, detail="Mail not found")

    if mail.owner != user.user_id or mail.folder != MailFolder.INBOX.value:
        raise HTTPException(status_code=403, detail="Not authorized")

    mail_service.mark_read(db, mail)
    return {"success": True, "message": "Mail marked as read"}


# ============ DRAFT / SEARCH / COUNT ============

@router.post("/draft")
def save_draft(req: DraftRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    draft = mail_service.create_draft(db, user, to=req.to, subject=req.subject, body=req.body)
    return {"success": True, "message": "Draft saved successfully", "draft": draft.to_dict()}


@router.get("/search")
def search_mail(
    keyword: str = Query("", description="Matched against subject, body, from and to"),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    mails = mail_service.search(db, user.user_id, keyword)
    return {"success": True, "mails": [m.to_dict() for m in mails]}


@router.get("/new-count")
def new_mail_count(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"success": True, "count": mail_service.count_unread(db, user.user_id)}


# ============ ATTACHMENTS ============

@router.post("/upload")
def upload_attachment(file: UploadFile = File(None), user: User = Depends(get_current_user)):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    filename = attachment_service.save_upload(file)
    return {
        "success": True,
        "fileUrl": f"{attachment_service.PUBLIC_PREFIX}/{filename}",
        "filename": filename,
    }


@router.get("/download/{filename}")
def download_attachment(filename: str, user: User = Depends(get_current_user)):
    path = attachment_service.find_upload(filename)
    if not path:
        raise HTTPException(status_code=404, detail="File not found")

    return FileResponse(
        path,
        filename=os.path.basename(path),
        media_type="application/octet-stream"
    )


# ============ AI ============

@router.post("/smart-compose")
def smart_compose_mail(req: SmartComposeRequest, user: User = Depends(get_current_user)):
    if not req.subject or not req.subject.strip():
        raise HTTPException(status_code=400, detail="Subject required")

    try:
        data = smart_compose(req.subject, req.context)
    except MailGenerationError as e:
        logger.error("SmartCompose failed for %s: %s", user.user_id, e)
        raise HTTPException(status_code=502, detail="AI suggestion failed")

    return {"success": True, **data}


@router.post("/voicemail")
def voice_mail(audio: UploadFile = File(None), user: User = Depends(get_current_user)):
    """
    Transcribe a recorded voice note. The audio is not kept.

    Uploads are checked like /ai/stt: audio only, at most 15MB.
    """
    try:
        public_path = attachment_service.save_audio(audio)
    except attachment_service.UploadRejected as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    try:
        text = transcribe(attachment_service.resolve_public_path(public_path))
    except SpeechToTextError as e:
        logger.error("voiceMail failed for %s: %s", user.user_id, e)
        raise HTTPException(status_code=502, detail="Voice to text failed")
    finally:
        attachment_service.delete_public_file(public_path)

    return {"success": True, "message": "Voice converted to text", "text": text}
