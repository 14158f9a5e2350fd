"""
Regex-based interpreter for assistant voice commands.

Turns a transcript into an intent the widget can act on:
- compose (optionally with a recipient)
- open_folder (inbox, sent, deleted, saved, drafts)
- action (send, read, regenerate) while a draft is being confirmed
- unknown
"""

import re
from typing import Dict, Any, Optional

from xmail.config import MAIL_DOMAIN

ADDRESS_PATTERN = re.compile(r'([a-z0-9._-]+' + re.escape(MAIL_DOMAIN) + r')', re.IGNORECASE)

# "send mail to bob", "email to bob", "mail bob"
NAME_PATTERN = re.compile(
    r'(?:(?:send\s+)?(?:a\s+)?(?:mail|email|message)\s+(?:to\s+)?|send\s+to\s+|write\s+to\s+)([a-z0-9._-]+)',
    re.IGNORECASE
)

COMPOSE_PATTERN = re.compile(r'\b(?:compose|send\s+(?:a\s+)?mail|new\s+mail|write\s+(?:a\s+)?mail)\b')

# Checked in order; the first match wins
FOLDER_PATTERNS = [
    ("inbox", re.compile(r'\binbox\b')),
    ("sent", re.compile(r'\bsent\b')),
    ("deleted", re.compile(r'\b(?:deleted|trash|bin)\b')),
    ("drafts", re.compile(r'\bdrafts?\b')),
    ("saved", re.compile(r'\bsaved?\b')),
]

ACTION_PATTERNS = [
    ("send", re.compile(r'\b(?:send\s*it|send|yes|ok(?:ay)?|confirm)\b')),
    ("read", re.compile(r'\bread\b')),
    ("regenerate", re.compile(r'\b(?:regenerate|again|change|new\s+one)\b')),
]

# Words that follow "mail to" but are not names
NOT_A_NAME = {"to", "me", "the", "a", "an", "it", "mail", "email", "inbox"}


def extract_recipient(text: str) -> Optional[str]:
    """
    Find the recipient in an utterance.
    
    Common patterns:
    - "send mail to bob@xmail.com" → bob@xmail.com
    - "email alice" → alice@xmail.com
    - "mail to bob dot smith" is not understood; spoken dots need the full address
    """
    if not text:
        return None

    match = ADDRESS_PATTERN.search(text)
    if match:
        return match.group(1).lower()

    match = NAME_PATTERN.search(text)
    if match:
        name = match.group(1).lower().strip('.')
        if name and name not in NOT_A_NAME:
            return f"{name}{MAIL_DOMAIN}"

    return None


def detect_folder(text: str) -> Optional[str]:
    lower = (text or "").lower()
    for folder, pattern in FOLDER_PATTERNS:
        if pattern.search(lower):
            return folder
    return None


def detect_action(text: str) -> Optional[str]:
    lower = (text or "").lower().strip()
    for action, pattern in ACTION_PATTERNS:
        if pattern.search(lower):
            return action
    return None


def parse_command(text: str) -> Dict[str, Any]:
    """
    Interpret one utterance.
    
    Returns:
        Dict with "intent" plus "recipient", "folder" or "action" where relevant
    """
    result = {"intent": "unknown", "recipient": None, "folder": None, "action": None, "text": text or ""}
    lower = (text or "").lower().strip()
    if not lower:
        return result

    recipient = extract_recipient(lower)

    if COMPOSE_PATTERN.search(lower):
        result.update(intent="compose", recipient=recipient)
        return result

    folder = detect_folder(lower)
    if folder:
        result.update(intent="open_folder", folder=folder)
        return result

    if recipient:
        result.update(intent="compose", recipient=recipient)
        return result

    action = detect_action(lower)
    if action:
        result.update(intent="action", action=action)

    return result
