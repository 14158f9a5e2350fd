"""
Mail service layer.

This module owns every write to Mail rows:
- deliver: the two-copy send (sent copy for the sender, inbox copy for the receiver)
- Folder transitions: trash, save, restore
- Flags: star, read
- Drafts: create, update, delete, send
- Queries: folder listings, search, unread count
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from xmail.models.mail import Mail, MailFolder, RESTORABLE_FOLDERS
from xmail.models.user import User


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _newest_first(query):
    return query.order_by(Mail.timestamp.desc(), Mail.id.desc())


# ============ SENDING ============

def deliver(
    db: Session,
    sender: User,
    receiver: User,
    subject: str,
    body: str,
    attachments: list = None,
    parent_mail_id: int = None
) -> tuple[Mail, Optional[Mail]]:
    """
    Write the sent copy and, for a different mailbox, the inbox copy.

    Both rows are committed together. A message to oneself only produces
    the sent copy.

    Returns:
        (sent_mail, inbox_mail or None)
    """
    sent_at = _now()
    attachments = list(attachments or [])

    common = dict(
        sender=sender.user_id,
        sender_dp=sender.profile_pic,
        recipient=receiver.user_id,
        recipient_dp=receiver.profile_pic,
        subject=subject,
        body=body,
        is_draft=False,
        is_sent=True,
        sent_at=sent_at,
        parent_mail_id=parent_mail_id,
    )

    sent_mail = Mail(
        owner=sender.user_id,
        folder=MailFolder.SENT.value,
        is_read=True,
        attachments=list(attachments),
        replies=[],
        **common
    )
    db.add(sent_mail)

    inbox_mail = None
    if sender.user_id != receiver.user_id:
        inbox_mail = Mail(
            owner=receiver.user_id,
            folder=MailFolder.INBOX.value,
            is_read=False,
            attachments=list(attachments),
            replies=[],
            **common
        )
        db.add(inbox_mail)

    db.commit()
    db.refresh(sent_mail)
    if inbox_mail is not None:
        db.refresh(inbox_mail)
    return sent_mail, inbox_mail


def append_reply(db: Session, mail: Mail, sender: User, text: str, attachments: list) -> dict:
    """Embed a reply entry on the mail being replied to."""
    reply = {
        "from": sender.user_id,
        "fromDp": sender.profile_pic,
        "text": (text or "").strip(),
        "attachments": list(attachments or []),
        "timestamp": _now().isoformat(),
    }
    mail.replies.append(reply)
    db.commit()
    db.refresh(mail)
    return reply


def reply_subject(original_subject: str, mode: str = None) -> str:
    prefix = "Fwd" if mode == "forward" else "Re"
    return f"{prefix}: {original_subject or ''}".strip()


# ============ QUERIES ============

def get_mail(db: Session, mail_id: int) -> Optional[Mail]:
    return db.query(Mail).filter(Mail.id == mail_id).first()


def get_owned_mail(db: Session, mail_id: int, owner: str) -> Optional[Mail]:
    return db.query(Mail).filter(Mail.id == mail_id, Mail.owner == owner).first()


def list_folder(db: Session, owner: str, folder: str) -> list[Mail]:
    query = db.query(Mail).filter(Mail.owner == owner, Mail.folder == folder)
    return _newest_first(query).all()


def search(db: Session, owner: str, keyword: str) -> list[Mail]:
    """
    Case-insensitive substring search over subject, body, sender and recipient.

    The keyword is matched literally; LIKE wildcards in it are escaped.
    """
    escaped = (keyword or "").replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"

    query = db.query(Mail).filter(
        Mail.owner == owner,
        or_(
            Mail.subject.ilike(pattern, escape="\\"),
            Mail.body.ilike(pattern, escape="\\"),
            Mail.sender.ilike(pattern, escape="\\"),
            Mail.recipient.ilike(pattern, escape="\\"),
        )
    )
    return _newest_first(query).all()


def count_unread(db: Session, owner: str) -> int:
    return db.query(Mail).filter(
        Mail.owner == owner,
        Mail.folder == MailFolder.INBOX.value,
        Mail.is_read.is_(False)
    ).count()


# ============ FOLDER TRANSITIONS ============

def move_to(db: Session, mail: Mail, folder: MailFolder) -> Mail:
    """
    Move a mail into "deleted" or "saved".

    The folder it came from is remembered for restore, unless it is
    moving between deleted and saved, in which case the earlier origin
    is kept.
    """
    if mail.folder not in RESTORABLE_FOLDERS:
        mail.original_folder = mail.folder
    mail.folder = folder.value
    db.commit()
    db.refresh(mail)
    return mail


def trash(db: Session, mail: Mail) -> Mail:
    return move_to(db, mail, MailFolder.DELETED)


def save(db: Session, mail: Mail) -> Mail:
    return move_to(db, mail, MailFolder.SAVED)


def restore(db: Session, mail: Mail) -> Optional[str]:
    """
    Move a deleted or saved mail back to where it came from.

    Returns:
        The folder restored to, or None if the mail is not restorable.
    """
    if mail.folder not in RESTORABLE_FOLDERS:
        return None

    target = mail.original_folder or MailFolder.INBOX.value
    mail.folder = target
    mail.original_folder = None
    db.commit()
    db.refresh(mail)
    return target


# ============ FLAGS ============

def toggle_star(db: Session, mail: Mail) -> bool:
    mail.is_starred = not mail.is_starred
    db.commit()
    return mail.is_starred


def mark_read(db: Session, mail: Mail) -> Mail:
    mail.is_read = True
    db.commit()
    db.refresh(mail)
    return mail


# ============ DRAFTS ============

def create_draft(
    db: Session,
    owner: User,
    to: str = "",
    subject: str = "",
    body: str = "",
    attachments: list = None
) -> Mail:
    draft = Mail(
        sender=owner.user_id,
        sender_dp=owner.profile_pic,
        recipient=(to or "").strip().lower(),
        subject=subject or "",
        body=body or "",
        attachments=list(attachments or []),
        replies=[],
        owner=owner.user_id,
        folder=MailFolder.DRAFT.value,
        is_draft=True,
        is_sent=False,
    )
    db.add(draft)
    db.commit()
    db.refresh(draft)
    return draft


def get_draft(db: Session, draft_id: int, owner: str) -> Optional[Mail]:
    return db.query(Mail).filter(
        Mail.id == draft_id,
        Mail.owner == owner,
        Mail.is_draft.is_(True),
        Mail.folder == MailFolder.DRAFT.value
    ).first()


def list_drafts(db: Session, owner: str) -> list[Mail]:
    query = db.query(Mail).filter(
        Mail.owner == owner,
        Mail.is_draft.is_(True),
        Mail.folder == MailFolder.DRAFT.value
    )
    return _newest_first(query).all()


def update_draft(db: Session, draft: Mail, **changes) -> Mail:
    """Apply only the fields that were provided (None means untouched)."""
    if changes.get("to") is not None:
        draft.recipient = changes["to"].strip().lower()
    if changes.get("subject") is not None:
        draft.subject = changes["subject"]
    if changes.get("body") is not None:
        draft.body = changes["body"]
    if changes.get("attachments") is not None:
        draft.attachments = list(changes["attachments"])
    db.commit()
    db.refresh(draft)
    return draft


def delete_draft(db: Session, draft: Mail) -> None:
    db.delete(draft)
    db.commit()


def send_draft(db: Session, draft: Mail, receiver: User) -> tuple[Mail, Optional[Mail]]:
    """
    Turn a draft into the sender's sent copy and deliver the inbox copy.

    Returns:
        (sent draft, inbox_mail or None)
    """
    draft.is_draft = False
    draft.is_sent = True
    draft.is_read = True
    draft.folder = MailFolder.SENT.value
    draft.sent_at = _now()
    draft.recipient = receiver.user_id
    draft.recipient_dp = receiver.profile_pic

    inbox_mail = None
    if draft.owner != receiver.user_id:
        inbox_mail = Mail(
            sender=draft.sender,
            sender_dp=draft.sender_dp,
            recipient=receiver.user_id,
            recipient_dp=receiver.profile_pic,
            subject=draft.subject,
            body=draft.body,
            attachments=list(draft.attachments or []),
            replies=[],
            owner=receiver.user_id,
            folder=MailFolder.INBOX.value,
            is_draft=False,
            is_sent=True,
            is_read=False,
            sent_at=draft.sent_at,
        )
        db.add(inbox_mail)

    db.commit()
    db.refresh(draft)
    if inbox_mail is not None:
        db.refresh(inbox_mail)
    return draft, inbox_mail
