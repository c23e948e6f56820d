from typing import Optional, List, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError

from ..models_db import Admin, Bot, Document, ChatUser, ChatSession, ChatMessage
from ..utils import generate_id


class AdminRepository:
    def get_by_username(self, db: Session, username: str) -> Optional[Admin]:
        return db.scalars(select(Admin).where(Admin.username == username)).first()

    def get_or_create(self, db: Session, username: str, **kwargs) -> Tuple[Admin, bool]:
        admin = self.get_by_username(db, username)
        if admin:
            return admin, False
        admin = Admin(id=generate_id(), username=username, **kwargs)
        db.add(admin)
        db.commit()
        db.refresh(admin)
        return admin, True


class BotRepository:
    def create(self, db: Session, *, admin_id: str, name: str, welcome_message: str, system_instruction: str) -> Bot:
        bot = Bot(
            id=generate_id(),
            admin_id=admin_id,
            name=name,
            welcome_message=welcome_message,
            system_instruction=system_instruction
        )
        db.add(bot)
        db.commit()
        db.refresh(bot)
        return bot

    def get(self, db: Session, bot_id: str) -> Optional[Bot]:
        return db.get(Bot, bot_id)

    def list_all(self, db: Session) -> List[Bot]:
        return db.scalars(select(Bot).order_by(Bot.created_at.desc())).all()

    def delete(self, db: Session, bot: Bot) -> None:
        db.delete(bot)
        db.commit()


class DocumentRepository:
    def create(self, db: Session, *, id: str, bot_id: str, filename: str, extracted_text: str,
               file_path: Optional[str], file_size: int, file_hash: str, page_count: int) -> Document:
        doc = Document(
            id=id,
            bot_id=bot_id,
            filename=filename,
            file_type="pdf",
            extracted_text=extracted_text,
            file_path=file_path,
            file_size=file_size,
            file_hash=file_hash,
            page_count=page_count
        )
        db.add(doc)
        db.commit()
        db.refresh(doc)
        return doc

    def list_for_bot(self, db: Session, bot_id: str) -> List[Document]:
        return db.scalars(select(Document).where(Document.bot_id == bot_id).order_by(Document.uploaded_at.asc())).all()

    def count_for_bot(self, db: Session, bot_id: str) -> int:
        return db.scalar(select(func.count()).select_from(Document).where(Document.bot_id == bot_id)) or 0

    def get_for_bot(self, db: Session, bot_id: str, document_id: str) -> Optional[Document]:
        doc = db.get(Document, document_id)
        if not doc or doc.bot_id != bot_id:
            return None
        return doc

    def delete(self, db: Session, doc: Document) -> None:
        db.delete(doc)
        db.commit()


class ChatUserRepository:
    def get_by_fingerprint(self, db: Session, fingerprint: str) -> Optional[ChatUser]:
        return db.scalars(select(ChatUser).where(ChatUser.credential_fingerprint == fingerprint)).first()

    def get_or_create(self, db: Session, fingerprint: str, username: str) -> Tuple[ChatUser, bool]:
        user = self.get_by_fingerprint(db, fingerprint)
        if user:
            return user, False
        user = ChatUser(id=generate_id(), username=username, credential_fingerprint=fingerprint)
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Registered concurrently under the same key
            db.rollback()
            existing = self.get_by_fingerprint(db, fingerprint)
            if existing is None:
                raise
            return existing, False
        db.refresh(user)
        return user, True


class ChatSessionRepository:
    def latest_for(self, db: Session, bot_id: str, user_id: str) -> Optional[ChatSession]:
        return db.scalars(
            select(ChatSession)
            .where(ChatSession.bot_id == bot_id, ChatSession.user_id == user_id)
            .order_by(ChatSession.started_at.desc())
        ).first()

    def get_or_create(self, db: Session, bot_id: str, user_id: str) -> ChatSession:
        sess = self.latest_for(db, bot_id, user_id)
        if sess:
            return sess
        sess = ChatSession(id=generate_id(), bot_id=bot_id, user_id=user_id)
        db.add(sess)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            existing = self.latest_for(db, bot_id, user_id)
            if existing is None:
                raise
            return existing
        db.refresh(sess)
        return sess


class ChatMessageRepository:
    def add_turn(self, db: Session, *, session_id: str, user_message: str, answer: str) -> List[ChatMessage]:
        """Store a question and its answer together; neither is kept if either write fails."""
        messages = [
            ChatMessage(session_id=session_id, role="user", content=user_message),
            ChatMessage(session_id=session_id, role="assistant", content=answer),
        ]
        db.add_all(messages)
        db.commit()
        return messages

    def list_for_session(self, db: Session, session_id: str) -> List[ChatMessage]:
        return db.scalars(select(ChatMessage).where(ChatMessage.session_id == session_id).order_by(ChatMessage.id.asc())).all()
