"""
Pytest configuration and shared fixtures.

Settings are read once at import time, so the environment is pointed at an
in-memory database and a throwaway upload directory before anything from
``pdfbot`` is imported.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="pdfbot-test-uploads-")
os.environ["CHAT_HISTORY_ENABLED"] = "true"
os.environ["LOG_LEVEL"] = "WARNING"

from collections.abc import Generator

import PyPDF2
import pytest
from fastapi.testclient import TestClient

from pdfbot.db import SessionLocal, engine
from pdfbot.main import app, get_bot_service, get_document_service
from pdfbot.models_db import Base
from pdfbot.services.bot_service import BotService
from pdfbot.services.document_service import DocumentService
from pdfbot.services.file_storage import FileStorage
from pdfbot.services.history_service import DatabaseHistoryProvider
from tests.fakes import FakeChatService, FakePdfReader


@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    """Give every test empty tables."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def fake_pdf_reader(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(PyPDF2, "PdfReader", FakePdfReader)
    return FakePdfReader


@pytest.fixture
def file_storage(tmp_path) -> FileStorage:
    return FileStorage(str(tmp_path / "uploads"))


@pytest.fixture
def fake_chat() -> FakeChatService:
    return FakeChatService()


@pytest.fixture
def bot_service(file_storage: FileStorage) -> BotService:
    return BotService(file_storage=file_storage)


@pytest.fixture
def document_service(fake_chat: FakeChatService, file_storage: FileStorage, fake_pdf_reader) -> DocumentService:
    return DocumentService(
        chat_service=fake_chat,
        file_storage=file_storage,
        history_provider=DatabaseHistoryProvider()
    )


@pytest.fixture
def client(bot_service: BotService, document_service: DocumentService) -> Generator[TestClient, None, None]:
    app.dependency_overrides[get_bot_service] = lambda: bot_service
    app.dependency_overrides[get_document_service] = lambda: document_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
