"""
Account operations: registration, login lookup, and profile updates.
"""

import re
from typing import Optional

from sqlalchemy.orm import Session

from xmail.config import MAIL_DOMAIN
from xmail.models.user import User
from xmail.services.auth_service import hash_password, verify_password

USER_ID_PATTERN = re.compile(r"^[\w.-]+" + re.escape(MAIL_DOMAIN) + r"$")


def normalize_user_id(user_id: str) -> str:
    return (user_id or "").strip().lower()


def is_valid_user_id(user_id: str) -> bool:
    """True for addresses like "alice@xmail.com"."""
    return bool(USER_ID_PATTERN.match(normalize_user_id(user_id)))


def get_user_by_user_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.user_id == normalize_user_id(user_id)).first()


def get_user_by_id(db: Session, db_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == db_id).first()


def create_user(db: Session, name: str, user_id: str, password: str) -> User:
    """Insert a new account. The caller checks for duplicates first."""
    user = User(
        name=name.strip(),
        user_id=normalize_user_id(user_id),
        password_hash=hash_password(password),
        username="",
        profile_pic=None,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def authenticate(db: Session, user_id: str, password: str) -> Optional[User]:
    """Return the user when the password matches, otherwise None."""
    user = get_user_by_user_id(db, user_id)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def is_username_taken(db: Session, username: str, exclude_id: int = None) -> bool:
    query = db.query(User).filter(User.username == username)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return db.query(query.exists()).scalar()


def update_username(db: Session, user: User, username: str) -> User:
    user.username = username.strip()
    db.commit()
    db.refresh(user)
    return user


def update_password(db: Session, user: User, new_password: str) -> User:
    user.password_hash = hash_password(new_password)
    db.commit()
    db.refresh(user)
    return user


def set_profile_pic(db: Session, user: User, path: str) -> User:
    user.profile_pic = path
    db.commit()
    db.refresh(user)
    return user
