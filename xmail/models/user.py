"""
User model - one row per Xmail account.

The user_id is the account's address (e.g. "alice@xmail.com"). It is
stored lower-cased and trimmed, and doubles as the mailbox owner key
on Mail rows.
"""

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func

from xmail.config import BACKEND_URL
from xmail.database import Base


class User(Base):
    """Registered Xmail account."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)

    # ============ IDENTITY ============
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    username = Column(String(255), default="", index=True)

    # ============ CREDENTIALS ============
    password_hash = Column(String(255), nullable=False)

    # ============ PROFILE ============
    profile_pic = Column(String(512))  # "/uploads/profilePics/<file>"

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, user_id={self.user_id})>"

    @property
    def profile_pic_url(self):
        """Absolute URL of the profile picture, or None."""
        if not self.profile_pic:
            return None
        return f"{BACKEND_URL}{self.profile_pic}"

    def to_profile_dict(self) -> dict:
        """Return the public profile sent to the client."""
        return {
            "id": self.id,
            "name": self.name,
            "userId": self.user_id,
            "username": self.username or "",
            "profilePic": self.profile_pic_url,
        }
