"""
Mail model - one mailbox's copy of a message.

Sending a message between two distinct mailboxes writes two rows:
- owner = sender,   folder = "sent"
- owner = receiver, folder = "inbox"

The copies are independent after creation. Replies are embedded on the
mail that was replied to, and follow-up mails point back at it through
parent_mail_id.
"""

import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean,
    DateTime, ForeignKey, Index, JSON
)
from sqlalchemy.ext.mutable import MutableList
from sqlalchemy.sql import func

from xmail.database import Base


class MailFolder(str, enum.Enum):
    """Folder tag that decides which list a mail shows up in."""
    INBOX = "inbox"
    SENT = "sent"
    DELETED = "deleted"
    DRAFT = "draft"
    SAVED = "saved"


# Folders a mail can be restored out of
RESTORABLE_FOLDERS = (MailFolder.DELETED.value, MailFolder.SAVED.value)


class Mail(Base):
    """A single mailbox's copy of a message."""
    __tablename__ = "mails"

    id = Column(Integer, primary_key=True)

    # ============ PARTIES ============
    sender = Column(String(255), nullable=False)
    sender_dp = Column(String(512))  # shown in the Inbox list
    recipient = Column(Text, default="")  # free text while still a draft
    recipient_dp = Column(String(512))  # shown in the Sent list

    # ============ CONTENT ============
    subject = Column(Text, default="")
    body = Column(Text, default="")
    attachments = Column(MutableList.as_mutable(JSON), default=list)

    # ============ FOLDER STATE ============
    folder = Column(String(20), default=MailFolder.DRAFT.value, nullable=False)
    original_folder = Column(String(20))

    # ============ FLAGS ============
    is_draft = Column(Boolean, default=True, nullable=False)
    is_sent = Column(Boolean, default=False, nullable=False)
    is_starred = Column(Boolean, default=False, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    # ============ OWNERSHIP & THREADING ============
    owner = Column(String(255), nullable=False)
    parent_mail_id = Column(Integer, ForeignKey("mails.id"))
    replies = Column(MutableList.as_mutable(JSON), default=list)

    # ============ TIMESTAMPS ============
    sent_at = Column(DateTime)
    timestamp = Column(DateTime, server_default=func.now(), index=True)

    __table_args__ = (
        Index("ix_mails_owner_folder", "owner", "folder"),
        Index("ix_mails_owner_draft", "owner", "is_draft"),
    )

    def __repr__(self):
        return f"<Mail(id={self.id}, owner={self.owner}, folder={self.folder})>"

    def to_dict(self) -> dict:
        """Return the mail in the shape the client renders."""
        return {
            "id": self.id,
            "from": self.sender,
            "fromDp": self.sender_dp,
            "to": self.recipient or "",
            "toDp": self.recipient_dp,
            "subject": self.subject or "",
            "body": self.body or "",
            "attachments": list(self.attachments or []),
            "folder": self.folder,
            "originalFolder": self.original_folder,
            "isDraft": self.is_draft,
            "isSent": self.is_sent,
            "isStarred": self.is_starred,
            "isRead": self.is_read,
            "owner": self.owner,
            "parentMailId": self.parent_mail_id,
            "replies": list(self.replies or []),
            "sentAt": self.sent_at.isoformat() if self.sent_at else None,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
