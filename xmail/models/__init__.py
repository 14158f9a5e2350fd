"""
SQLAlchemy models for Xmail.

This package contains:
- User: Account record, keyed by its @xmail.com address
- Mail: One mailbox's copy of a message, with embedded replies
- BotSettings: Per-user assistant widget configuration

Note: Replies and attachment lists are embedded JSON, not separate tables.
"""

from xmail.models.user import User
from xmail.models.mail import Mail, MailFolder
from xmail.models.bot_settings import BotSettings, DEFAULT_BOT_SETTINGS

__all__ = ["User", "Mail", "MailFolder", "BotSettings", "DEFAULT_BOT_SETTINGS"]
