"""
End-user registration keyed by a fingerprint of the user's API key.
"""

import logging

from sqlalchemy.orm import Session as OrmSession

from ..models import UserRegisterResponse
from ..utils import credential_fingerprint, log_processing_info
from .db_repositories import ChatUserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Service for registering end users without storing their credentials."""

    def __init__(self):
        self.users = ChatUserRepository()

    def register_user(self, db: OrmSession, username: str, credential: str) -> UserRegisterResponse:
        fingerprint = credential_fingerprint(credential)
        user, created = self.users.get_or_create(db, fingerprint, username=username.strip())

        if not created and user.username != username.strip():
            user.username = username.strip()
            db.commit()
            db.refresh(user)

        log_processing_info("User registered", {
            "user_id": user.id,
            "credential": fingerprint[:8],
            "created": created
        })

        return UserRegisterResponse(user_id=user.id, username=user.username, created=created)
