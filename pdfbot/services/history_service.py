"""
Chat history providers.

History is optional: a deployment picks the database-backed provider or the
no-op one through ``CHAT_HISTORY_ENABLED``. Prompt assembly never reads
history, so switching providers does not change what is sent to the model.
"""

from typing import List, Optional
import logging

from sqlalchemy.orm import Session as OrmSession

from ..config import settings
from ..models import ChatHistoryMessage
from ..utils import credential_fingerprint, log_processing_info
from .db_repositories import ChatUserRepository, ChatSessionRepository, ChatMessageRepository

logger = logging.getLogger(__name__)


class NullHistoryProvider:
    """History provider that stores nothing and always returns an empty history."""

    def history_for(self, db: OrmSession, bot_id: str, credential: str) -> List[ChatHistoryMessage]:
        return []

    def record_turn(self, db: OrmSession, bot_id: str, credential: str,
                    user_message: str, answer: str) -> Optional[str]:
        return None


class DatabaseHistoryProvider:
    """Stores each turn in the latest session for a (bot, end user) pair."""

    def __init__(self):
        self.users = ChatUserRepository()
        self.sessions = ChatSessionRepository()
        self.messages = ChatMessageRepository()

    def history_for(self, db: OrmSession, bot_id: str, credential: str) -> List[ChatHistoryMessage]:
        user = self.users.get_by_fingerprint(db, credential_fingerprint(credential))
        if not user:
            # Unknown key: a new user, not an error
            return []

        session = self.sessions.latest_for(db, bot_id, user.id)
        if not session:
            return []

        return [
            ChatHistoryMessage(id=str(msg.id), role=msg.role, content=msg.content)
            for msg in self.messages.list_for_session(db, session.id)
        ]

    def record_turn(self, db: OrmSession, bot_id: str, credential: str,
                    user_message: str, answer: str) -> Optional[str]:
        fingerprint = credential_fingerprint(credential)
        user, created = self.users.get_or_create(db, fingerprint, username=f"User_{fingerprint[:6]}")
        session = self.sessions.get_or_create(db, bot_id, user.id)

        self.messages.add_turn(db, session_id=session.id, user_message=user_message, answer=answer)

        log_processing_info("Chat turn recorded", {
            "bot_id": bot_id,
            "session_id": session.id,
            "new_user": created
        })
        return session.id


def create_history_provider(enabled: Optional[bool] = None):
    """Pick the history provider for this deployment."""
    if enabled is None:
        enabled = settings.chat_history_enabled
    return DatabaseHistoryProvider() if enabled else NullHistoryProvider()
