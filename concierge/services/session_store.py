"""In-memory stand-in for the persisted chat-session provider."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

import logging

from concierge.models.chat import ChatMessage
from concierge.models.profile import Profile

logger = logging.getLogger(__name__)

ACTIVE = "active"
ARCHIVED = "archived"


@dataclass
class IntakeSession:
    id: str
    profile: Profile = field(default_factory=Profile)
    has_recapped: bool = False
    refresh_key: int = 0
    locale: str = "en"
    status: str = ACTIVE
    messages: List[ChatMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


_SESSIONS: Dict[str, IntakeSession] = {}


def _new_session() -> IntakeSession:
    session = IntakeSession(id=uuid.uuid4().hex)
    _SESSIONS[session.id] = session
    logger.info("session.created id=%s", session.id)
    return session


def get_session(session_id: str) -> Optional[IntakeSession]:
    return _SESSIONS.get(session_id)


def get_or_create_session(session_id: Optional[str] = None) -> IntakeSession:
    if session_id:
        existing = _SESSIONS.get(session_id)
        if existing:
            if existing.status != ACTIVE:
                existing.status = ACTIVE
                logger.info("session.reactivated id=%s", existing.id)
            return existing
    return _new_session()


def append_message(session: IntakeSession, author: str, content: str) -> ChatMessage:
    message = ChatMessage(
        id=uuid.uuid4().hex,
        author=author,
        content=content,
        created_at=datetime.now(timezone.utc),
    )
    session.messages.append(message)
    return message


def recent_messages(session: IntakeSession, take: int = 12) -> List[ChatMessage]:
    if take <= 0:
        return []
    return list(session.messages[-take:])


def reset_session(session_id: Optional[str] = None) -> IntakeSession:
    """Archive the current session and start an empty one."""
    if session_id and session_id in _SESSIONS:
        _SESSIONS[session_id].status = ARCHIVED
        logger.info("session.archived id=%s", session_id)
    return _new_session()


def clear_sessions() -> None:
    _SESSIONS.clear()
