"""
BotSettings model - cosmetic and voice configuration of the assistant widget.
"""

from sqlalchemy import Column, Integer, String, JSON

from xmail.database import Base


DEFAULT_BOT_SETTINGS = {
    "name": "ALBot",
    "avatar": "boy",
    "voice": "male",
    "language": "english",
    "mood": "friendly",
    "color": "#3b82f6",
    "glow": "#60a5fa",
}


class BotSettings(Base):
    """One settings document per user, upserted on save."""
    __tablename__ = "bot_settings"

    id = Column(Integer, primary_key=True)
    user_id = Column(String(255), unique=True, nullable=False, index=True)
    settings = Column(JSON, nullable=False, default=lambda: dict(DEFAULT_BOT_SETTINGS))

    def __repr__(self):
        return f"<BotSettings(user_id={self.user_id})>"
