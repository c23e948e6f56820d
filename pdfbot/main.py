"""
FastAPI application for PDF Bot Studio.
"""

from contextlib import asynccontextmanager
from typing import List, Optional
from fastapi import FastAPI, File, UploadFile, HTTPException, Depends, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session as OrmSession
import logging

from .config import settings, validate_required_settings
from .db import get_db, engine, SessionLocal
from .exceptions import (
    DocumentValidationError,
    GenerationError,
    InvalidCredentialError,
    MissingCredentialError,
    NotFoundError,
    PDFExtractionError,
    QuotaExceededError,
)
from .models import (
    BotCreateRequest, BotResponse, BotDeleteResponse,
    DocumentResponse, DocumentListResponse,
    ChatRequest, ChatResponse, ChatHistoryMessage,
    UserRegisterRequest, UserRegisterResponse,
    HealthResponse, ErrorResponse
)
from .models_db import Base
from .services import BotService, DocumentService, UserService
from .utils import configure_logging, format_timestamp

# Configure logging
configure_logging()
logger = logging.getLogger(__name__)

# Validate required settings on startup
try:
    validate_required_settings()
except ValueError as e:
    logger.error(f"Configuration validation failed: {e}")
    raise

# Initialize services
bot_service = BotService()
document_service = DocumentService(file_storage=bot_service.file_storage)
user_service = UserService()


def get_bot_service() -> BotService:
    return bot_service


def get_document_service() -> DocumentService:
    return document_service


def get_user_service() -> UserService:
    return user_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ensured.")
    bot_service.file_storage.ensure_base_dir()

    db = SessionLocal()
    try:
        bot_service.ensure_default_admin(db)
    finally:
        db.close()
    yield


# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Create chatbots over your PDF documents",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if settings.debug else "An unexpected error occurred",
            status_code=500
        ).model_dump()
    )


def _generation_http_error(error: GenerationError) -> HTTPException:
    """Translate a classified generation failure into an HTTP error."""
    if isinstance(error, InvalidCredentialError):
        return HTTPException(status_code=401, detail=error.message)
    if isinstance(error, QuotaExceededError):
        headers = {"Retry-After": str(error.retry_after)} if error.retry_after else None
        return HTTPException(status_code=429, detail=error.message, headers=headers)
    return HTTPException(status_code=500, detail=error.message)


@app.get("/", response_model=dict)
async def root():
    """Root endpoint."""
    return {
        "message": "PDF Bot Studio API is running. Use /api/bots or /api/chat",
        "version": settings.app_version,
        "timestamp": format_timestamp()
    }


@app.get("/health", response_model=HealthResponse)
def health_check(db: OrmSession = Depends(get_db), documents: DocumentService = Depends(get_document_service)):
    """Health check endpoint."""
    health_info = documents.health_check(db)
    if health_info.get("status") != "healthy":
        raise HTTPException(status_code=503, detail="Service unhealthy")

    return HealthResponse(
        status=health_info["status"],
        message="Service health check completed",
        version=settings.app_version,
        timestamp=format_timestamp()
    )


# ============================================================================
# BOT MANAGEMENT ENDPOINTS
# ============================================================================

@app.get("/api/bots", response_model=List[BotResponse])
def list_bots(db: OrmSession = Depends(get_db), bots: BotService = Depends(get_bot_service)):
    """Get all bots, newest first."""
    try:
        return bots.list_bots(db)
    except Exception as e:
        logger.error(f"Failed to list bots: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to list bots")


@app.get("/api/bots/{bot_id}", response_model=BotResponse)
def get_bot(bot_id: str, db: OrmSession = Depends(get_db), bots: BotService = Depends(get_bot_service)):
    """Get a single bot."""
    try:
        return bots.to_response(db, bots.get_bot(db, bot_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to get bot {bot_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to get bot")


@app.post("/api/bots", response_model=BotResponse, status_code=201)
def create_bot(request: BotCreateRequest, db: OrmSession = Depends(get_db),
               bots: BotService = Depends(get_bot_service)):
    """Create a new bot."""
    try:
        return bots.create_bot(
            db,
            name=request.name,
            welcome_message=request.welcome_message,
            system_instruction=request.system_instruction
        )
    except Exception as e:
        logger.error(f"Failed to create bot: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to create bot")


@app.delete("/api/bots/{bot_id}", response_model=BotDeleteResponse)
def delete_bot(bot_id: str, db: OrmSession = Depends(get_db), bots: BotService = Depends(get_bot_service)):
    """Delete a bot together with its documents, stored files and chat history."""
    try:
        return bots.delete_bot(db, bot_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to delete bot {bot_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete bot")


# ============================================================================
# DOCUMENT ENDPOINTS
# ============================================================================

@app.post("/api/bots/{bot_id}/documents", response_model=DocumentResponse, status_code=201)
async def upload_document(
    bot_id: str,
    file: UploadFile = File(...),
    db: OrmSession = Depends(get_db),
    bots: BotService = Depends(get_bot_service),
    documents: DocumentService = Depends(get_document_service)
):
    """
    Upload a PDF for a bot.

    The text is extracted immediately and stored with the original file.
    """
    try:
        bot = bots.get_bot(db, bot_id)
        content = await file.read()
        return documents.upload_document(db, bot, file.filename or "", content)

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except DocumentValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except PDFExtractionError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except Exception as e:
        logger.error(f"Upload failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to process file")


@app.get("/api/bots/{bot_id}/documents", response_model=DocumentListResponse)
def list_documents(
    bot_id: str,
    db: OrmSession = Depends(get_db),
    bots: BotService = Depends(get_bot_service),
    documents: DocumentService = Depends(get_document_service)
):
    """List the documents attached to a bot."""
    try:
        return documents.list_documents(db, bots.get_bot(db, bot_id))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to list documents for bot {bot_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to retrieve documents")


@app.delete("/api/bots/{bot_id}/documents/{document_id}")
def delete_document(
    bot_id: str,
    document_id: str,
    db: OrmSession = Depends(get_db),
    documents: DocumentService = Depends(get_document_service)
):
    """Delete one document and its stored file."""
    try:
        documents.delete_document(db, bot_id, document_id)
        return {"message": "Document deleted successfully"}
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except Exception as e:
        logger.error(f"Failed to delete document {document_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to delete document")


# ============================================================================
# END-USER ENDPOINTS
# ============================================================================

@app.post("/api/users/register", response_model=UserRegisterResponse)
def register_user(request: UserRegisterRequest, db: OrmSession = Depends(get_db),
                  users: UserService = Depends(get_user_service)):
    """Register an end user by username and API key."""
    try:
        return users.register_user(db, request.username, request.api_key)
    except Exception as e:
        logger.error(f"Failed to register user: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to register user")


@app.post("/api/chat", response_model=ChatResponse)
def chat_with_bot(
    request: ChatRequest,
    db: OrmSession = Depends(get_db),
    bots: BotService = Depends(get_bot_service),
    documents: DocumentService = Depends(get_document_service)
):
    """Chat with a bot's documents using the caller's own Gemini API key."""
    if not request.api_key or not request.api_key.strip():
        raise HTTPException(status_code=400, detail="API Key is required to use this bot.")

    try:
        bot = bots.get_bot(db, request.bot_id)
        return documents.chat_with_bot(db, bot, request.message, request.api_key)

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except MissingCredentialError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except GenerationError as e:
        raise _generation_http_error(e)
    except Exception as e:
        logger.error(f"Chat query failed: {str(e)}")
        raise HTTPException(status_code=500, detail="AI processing failed. Please check your key or try again.")


@app.get("/api/chat/{bot_id}/history", response_model=List[ChatHistoryMessage])
def get_chat_history(
    bot_id: str,
    x_api_key: Optional[str] = Header(default=None),
    db: OrmSession = Depends(get_db),
    bots: BotService = Depends(get_bot_service),
    documents: DocumentService = Depends(get_document_service)
):
    """Fetch the latest conversation between the caller and a bot."""
    try:
        bot = bots.get_bot(db, bot_id)
        return documents.chat_history(db, bot, x_api_key)

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except MissingCredentialError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except Exception as e:
        logger.error(f"History fetch failed: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to fetch chat history")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "pdfbot.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
