"""
Bot management service (DB-backed): creation, lookup, cascade deletion and
the default admin bootstrap.
"""

from typing import List, Optional
import logging

from sqlalchemy.orm import Session as OrmSession

from ..config import settings
from ..exceptions import NotFoundError
from ..models import BotResponse, BotDeleteResponse
from ..models_db import Admin, Bot
from ..utils import log_processing_info, handle_processing_error
from .db_repositories import AdminRepository, BotRepository, DocumentRepository
from .file_storage import FileStorage

logger = logging.getLogger(__name__)

DEFAULT_WELCOME_MESSAGE = "Hello! How can I help you?"


class BotService:
    """Service for managing bots and the records that hang off them."""

    def __init__(self, file_storage: Optional[FileStorage] = None):
        self.admins = AdminRepository()
        self.bots = BotRepository()
        self.documents = DocumentRepository()
        self.file_storage = file_storage or FileStorage()

    def ensure_default_admin(self, db: OrmSession) -> Admin:
        """
        Create the well-known admin record if it does not exist yet.

        Safe to run on every process start: an existing admin is returned untouched.
        """
        admin, created = self.admins.get_or_create(
            db,
            settings.default_admin_username,
            email=settings.default_admin_email
        )
        if created:
            log_processing_info("Default admin created", {"username": admin.username})
        return admin

    def to_response(self, db: OrmSession, bot: Bot) -> BotResponse:
        return BotResponse(
            id=bot.id,
            name=bot.name,
            welcome_message=bot.welcome_message,
            system_instruction=bot.system_instruction or "",
            document_count=self.documents.count_for_bot(db, bot.id),
            created_at=bot.created_at
        )

    def create_bot(self, db: OrmSession, name: str, welcome_message: Optional[str] = None,
                   system_instruction: Optional[str] = None) -> BotResponse:
        admin = self.ensure_default_admin(db)
        bot = self.bots.create(
            db,
            admin_id=admin.id,
            name=name,
            welcome_message=welcome_message or DEFAULT_WELCOME_MESSAGE,
            system_instruction=system_instruction or ""
        )
        log_processing_info("Bot created", {"bot_id": bot.id, "name": bot.name})
        return self.to_response(db, bot)

    def list_bots(self, db: OrmSession) -> List[BotResponse]:
        return [self.to_response(db, bot) for bot in self.bots.list_all(db)]

    def get_bot(self, db: OrmSession, bot_id: str) -> Bot:
        bot = self.bots.get(db, bot_id)
        if not bot:
            raise NotFoundError("Bot not found", details={"bot_id": bot_id})
        return bot

    def delete_bot(self, db: OrmSession, bot_id: str) -> BotDeleteResponse:
        """Delete a bot with its documents, stored files and chat sessions."""
        bot = self.get_bot(db, bot_id)
        documents = self.documents.list_for_bot(db, bot_id)
        file_paths = [doc.file_path for doc in documents if doc.file_path]

        try:
            self.bots.delete(db, bot)
        except Exception as e:
            db.rollback()
            handle_processing_error("bot_deletion", e, {"bot_id": bot_id})
            raise

        # Records are gone, now drop the binaries they pointed at
        for path in file_paths:
            self.file_storage.safe_delete(path)
        self.file_storage.delete_bot_files(bot_id)

        log_processing_info("Bot deleted", {
            "bot_id": bot_id,
            "documents_deleted": len(documents)
        })

        return BotDeleteResponse(
            message="Bot deleted successfully",
            bot_id=bot_id,
            documents_deleted=len(documents)
        )
