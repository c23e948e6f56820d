"""
Services package for PDF Bot Studio.
"""

from .pdf_processor import PDFProcessor
from .chat_service import ChatService
from .document_service import DocumentService
from .bot_service import BotService
from .user_service import UserService
from .prompt_builder import build_prompt

__all__ = [
    "PDFProcessor",
    "ChatService",
    "DocumentService",
    "BotService",
    "UserService",
    "build_prompt"
]
