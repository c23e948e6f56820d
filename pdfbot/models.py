"""
Pydantic models for request/response validation.
"""

from typing import List, Optional, Literal
from pydantic import BaseModel, Field, field_validator
from datetime import datetime


class BotCreateRequest(BaseModel):
    """Request model for bot creation."""
    name: str = Field(..., min_length=1, max_length=100, description="Display name of the bot")
    welcome_message: Optional[str] = Field(default=None, max_length=1000, description="First message shown to end users")
    system_instruction: Optional[str] = Field(default=None, max_length=20000, description="System prompt used verbatim for every chat turn")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Bot name must not be blank")
        return v.strip()


class BotResponse(BaseModel):
    """Response model for a bot."""
    id: str = Field(..., description="Bot ID")
    name: str = Field(..., description="Display name")
    welcome_message: str = Field(..., description="Welcome message")
    system_instruction: str = Field(default="", description="Configured system instruction, may be empty")
    document_count: int = Field(default=0, description="Number of documents attached to the bot")
    created_at: datetime = Field(..., description="Creation timestamp")


class BotDeleteResponse(BaseModel):
    """Response model for bot deletion."""
    message: str = Field(..., description="Success message")
    bot_id: str = Field(..., description="Deleted bot ID")
    documents_deleted: int = Field(..., description="Number of documents removed with the bot")


class DocumentResponse(BaseModel):
    """Response model for an uploaded document (metadata only)."""
    id: str = Field(..., description="Document ID")
    bot_id: str = Field(..., description="Owning bot ID")
    filename: str = Field(..., description="Original filename")
    file_type: str = Field(default="pdf", description="File type")
    file_size: int = Field(..., description="File size in bytes")
    page_count: int = Field(..., description="Number of pages in the PDF")
    text_length: int = Field(..., description="Length of the extracted text in characters")
    uploaded_at: datetime = Field(..., description="Upload timestamp")


class DocumentListResponse(BaseModel):
    """Response model for listing a bot's documents."""
    bot_id: str = Field(..., description="Bot ID")
    documents: List[DocumentResponse] = Field(default_factory=list, description="Documents attached to the bot")
    total_count: int = Field(..., description="Total number of documents")


class FileInfo(BaseModel):
    """Model for file information."""
    filename: str = Field(..., description="Name of the file")
    content: bytes = Field(..., description="File content as bytes")
    size: int = Field(..., description="File size in bytes")


class ChatRequest(BaseModel):
    """Request model for a chat turn."""
    bot_id: str = Field(..., min_length=1, description="Bot to chat with")
    message: str = Field(..., min_length=1, description="User's message")
    api_key: Optional[str] = Field(default=None, description="End user's Google Gemini API key, used for this request only")


class ChatResponse(BaseModel):
    """Response model for a chat turn."""
    role: Literal["assistant"] = Field(default="assistant", description="Author of the message")
    content: str = Field(..., description="Generated Markdown answer")
    session_id: Optional[str] = Field(default=None, description="Chat session the turn was recorded in, if history is enabled")
    sources: List[str] = Field(default_factory=list, description="Files whose text was included in the prompt")
    processing_time: Optional[float] = Field(default=None, description="Processing time in seconds")


class ChatHistoryMessage(BaseModel):
    """A single message from a stored conversation."""
    id: str = Field(..., description="Message ID")
    role: Literal["user", "assistant"] = Field(..., description="Author of the message")
    content: str = Field(..., description="Message text")


class UserRegisterRequest(BaseModel):
    """Request model for end-user registration."""
    username: str = Field(..., min_length=1, max_length=100, description="Display name of the end user")
    api_key: str = Field(..., min_length=10, description="End user's Google Gemini API key")


class UserRegisterResponse(BaseModel):
    """Response model for end-user registration."""
    user_id: str = Field(..., description="End user ID")
    username: str = Field(..., description="Display name")
    created: bool = Field(..., description="Whether a new user record was created")


class HealthResponse(BaseModel):
    """Response model for health check."""
    status: str = Field(..., description="Health status")
    message: str = Field(..., description="Status message")
    version: str = Field(..., description="Application version")
    timestamp: str = Field(..., description="Current timestamp")


class ErrorResponse(BaseModel):
    """Response model for errors."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(default=None, description="Detailed error information")
    status_code: int = Field(..., description="HTTP status code")
