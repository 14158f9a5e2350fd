"""
Assistant widget settings, one document per user.
"""

from typing import Optional

from sqlalchemy.orm import Session

from xmail.models.bot_settings import BotSettings, DEFAULT_BOT_SETTINGS


def merge_with_defaults(settings: dict) -> dict:
    """Keep known keys, fill the rest from the defaults."""
    merged = dict(DEFAULT_BOT_SETTINGS)
    for key, value in (settings or {}).items():
        if key in merged and value is not None:
            merged[key] = value
    return merged


def get_settings(db: Session, user_id: str) -> Optional[dict]:
    row = db.query(BotSettings).filter(BotSettings.user_id == user_id).first()
    if not row:
        return None
    return merge_with_defaults(row.settings)


def save_settings(db: Session, user_id: str, settings: dict) -> dict:
    """Upsert the user's settings and return what was stored."""
    merged = merge_with_defaults(settings)

    row = db.query(BotSettings).filter(BotSettings.user_id == user_id).first()
    if row:
        # Reassign so the JSON column is flagged dirty
        row.settings = merged
    else:
        row = BotSettings(user_id=user_id, settings=merged)
        db.add(row)

    db.commit()
    db.refresh(row)
    return dict(row.settings)
