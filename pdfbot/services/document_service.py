"""
Main document service that orchestrates PDF ingestion, blob storage and
chat turns against a bot's documents.
"""

import time
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session as OrmSession

from .pdf_processor import PDFProcessor
from .chat_service import ChatService
from .file_storage import FileStorage
from .history_service import create_history_provider
from .prompt_builder import assemble_context, build_prompt_from_context, resolve_system_instruction
from .db_repositories import DocumentRepository
from ..config import settings
from ..exceptions import DocumentValidationError, MissingCredentialError, NotFoundError, PDFExtractionError
from ..models import ChatResponse, DocumentListResponse, DocumentResponse, FileInfo
from ..models_db import Bot, Document
from ..utils import (
    calculate_file_hash,
    generate_id,
    validate_file_type,
    validate_file_size,
    measure_time,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)


class DocumentService:
    """Main service for document processing and chat functionality."""

    def __init__(self, pdf_processor: Optional[PDFProcessor] = None, chat_service: Optional[ChatService] = None,
                 file_storage: Optional[FileStorage] = None, history_provider=None):
        """Initialize the document service."""
        self.pdf_processor = pdf_processor or PDFProcessor()
        self.chat_service = chat_service or ChatService()
        self.file_storage = file_storage or FileStorage()
        self.history = history_provider or create_history_provider()
        self.documents = DocumentRepository()

    def _validate_file(self, filename: str, content: bytes) -> FileInfo:
        """
        Validate an uploaded file before extraction.

        Raises:
            DocumentValidationError: If the type, size or content is not acceptable
        """
        if not validate_file_type(filename):
            raise DocumentValidationError(
                f"Invalid file type: {filename}. Only PDF files are allowed.",
                details={"filename": filename}
            )

        if not content:
            raise DocumentValidationError(f"File {filename} is empty.", details={"filename": filename})

        if not validate_file_size(len(content)):
            raise DocumentValidationError(
                f"File {filename} is too large: {len(content)/1024/1024:.1f}MB. "
                f"Maximum size is {settings.max_file_size_mb}MB.",
                details={"filename": filename, "file_size": len(content)}
            )

        return FileInfo(filename=filename, content=content, size=len(content))

    def to_response(self, doc: Document) -> DocumentResponse:
        return DocumentResponse(
            id=doc.id,
            bot_id=doc.bot_id,
            filename=doc.filename,
            file_type=doc.file_type,
            file_size=doc.file_size,
            page_count=doc.page_count,
            text_length=len(doc.extracted_text or ""),
            uploaded_at=doc.uploaded_at
        )

    @measure_time
    def upload_document(self, db: OrmSession, bot: Bot, filename: str, content: bytes) -> DocumentResponse:
        """
        Extract text from an uploaded PDF and attach it to a bot.

        Args:
            db: Database session
            bot: Owning bot
            filename: Original filename
            content: Raw PDF bytes

        Returns:
            DocumentResponse describing the stored document
        """
        file_info = self._validate_file(filename, content)

        if not self.pdf_processor.validate_pdf_content(file_info.content, file_info.filename):
            raise PDFExtractionError(
                f"File {filename} is not a readable PDF.",
                details={"filename": filename}
            )

        extracted_text, page_count = self.pdf_processor.extract_text(file_info.content, file_info.filename)

        document_id = generate_id()
        file_path = self.file_storage.save_file(bot.id, document_id, file_info.filename, file_info.content)

        try:
            doc = self.documents.create(
                db,
                id=document_id,
                bot_id=bot.id,
                filename=file_info.filename,
                extracted_text=extracted_text,
                file_path=file_path,
                file_size=file_info.size,
                file_hash=calculate_file_hash(file_info.content),
                page_count=page_count
            )
        except Exception as e:
            db.rollback()
            self.file_storage.safe_delete(file_path)
            handle_processing_error("document_persist", e, {"bot_id": bot.id, "filename": filename})
            raise

        log_processing_info("Document uploaded", {
            "bot_id": bot.id,
            "document_id": doc.id,
            "filename": doc.filename,
            "page_count": page_count,
            "text_length": len(extracted_text)
        })

        return self.to_response(doc)

    def documents_for_bot(self, db: OrmSession, bot_id: str) -> List[Document]:
        """Return every document currently attached to the bot, read fresh on each call."""
        return self.documents.list_for_bot(db, bot_id)

    def list_documents(self, db: OrmSession, bot: Bot) -> DocumentListResponse:
        documents = [self.to_response(doc) for doc in self.documents_for_bot(db, bot.id)]
        return DocumentListResponse(bot_id=bot.id, documents=documents, total_count=len(documents))

    def delete_document(self, db: OrmSession, bot_id: str, document_id: str) -> None:
        doc = self.documents.get_for_bot(db, bot_id, document_id)
        if not doc:
            raise NotFoundError("Document not found", details={"bot_id": bot_id, "document_id": document_id})

        file_path = doc.file_path
        self.documents.delete(db, doc)
        self.file_storage.safe_delete(file_path)

        log_processing_info("Document deleted", {"bot_id": bot_id, "document_id": document_id})

    @measure_time
    def chat_with_bot(self, db: OrmSession, bot: Bot, message: str, credential: Optional[str]) -> ChatResponse:
        """
        Answer one chat message using all of the bot's documents as context.

        Args:
            db: Database session
            bot: Bot to chat with
            message: End user's message
            credential: End user's Gemini API key, used for this call only

        Returns:
            ChatResponse with the answer and the files included in the prompt
        """
        if not credential or not credential.strip():
            raise MissingCredentialError("API Key is required to use this bot.")

        start_time = time.time()
        documents = self.documents_for_bot(db, bot.id)
        context = assemble_context(documents, settings.context_max_chars)
        prompt = build_prompt_from_context(resolve_system_instruction(bot), context.text, message)

        log_processing_info("Chat query started", {
            "bot_id": bot.id,
            "documents_count": len(documents),
            "context_length": len(context.text),
            "context_truncated": context.truncated,
            "question_length": len(message)
        })

        answer = self.chat_service.generate(prompt, credential)

        # Persist chat messages
        session_id = None
        try:
            session_id = self.history.record_turn(db, bot.id, credential, message, answer)
        except Exception as e:
            db.rollback()
            logger.warning(f"Failed to persist chat messages: {e}")

        return ChatResponse(
            content=answer,
            session_id=session_id,
            sources=context.sources,
            processing_time=time.time() - start_time
        )

    def chat_history(self, db: OrmSession, bot: Bot, credential: Optional[str]):
        if not credential or not credential.strip():
            raise MissingCredentialError("API Key required to fetch history")
        return self.history.history_for(db, bot.id, credential)

    def health_check(self, db: OrmSession) -> dict:
        """
        Perform health check on the database and upload directory.

        Returns:
            Dictionary with health status information
        """
        try:
            db.execute(text("SELECT 1"))
            self.file_storage.ensure_base_dir()
            return {"status": "healthy", "history_provider": type(self.history).__name__}
        except Exception as e:
            handle_processing_error("health_check", e)
            return {"status": "unhealthy", "error": str(e)}
