"""Unit tests for settings validation and helpers."""

from __future__ import annotations

import pytest

from pdfbot import config
from pdfbot.config import Settings, validate_required_settings
from pdfbot.utils import (
    clean_text,
    credential_fingerprint,
    sanitize_filename,
    validate_file_size,
    validate_file_type,
)


@pytest.mark.unit
def test_settings_defaults_hold_no_server_side_key(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GOOGLE_API_KEY", "CONTEXT_MAX_CHARS", "GOOGLE_CHAT_MODEL"):
        monkeypatch.delenv(key, raising=False)

    settings = Settings(_env_file=None)

    assert not hasattr(settings, "google_api_key")
    assert settings.context_max_chars == 1_000_000
    assert settings.google_chat_model == "gemini-2.5-flash"


@pytest.mark.unit
def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CONTEXT_MAX_CHARS", "2500")
    monkeypatch.setenv("chat_history_enabled", "false")

    settings = Settings(_env_file=None)

    assert settings.context_max_chars == 2500
    assert settings.chat_history_enabled is False


@pytest.mark.unit
def test_validate_required_settings_accepts_defaults() -> None:
    validate_required_settings()


@pytest.mark.unit
def test_validate_required_settings_lists_every_problem(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config.settings, "context_max_chars", 0)
    monkeypatch.setattr(config.settings, "log_level", "LOUD")

    with pytest.raises(ValueError) as exc_info:
        validate_required_settings()

    assert "context_max_chars must be positive" in str(exc_info.value)
    assert "log_level 'LOUD'" in str(exc_info.value)


@pytest.mark.unit
def test_credential_fingerprint_is_stable_and_hides_key() -> None:
    fingerprint = credential_fingerprint("  AIzaSecretKey123  ")

    assert fingerprint == credential_fingerprint("AIzaSecretKey123")
    assert "AIzaSecretKey123" not in fingerprint
    assert len(fingerprint) == 64


@pytest.mark.unit
@pytest.mark.parametrize(
    ("filename", "allowed"),
    [("report.pdf", True), ("REPORT.PDF", True), ("notes.txt", False), ("pdf", False), ("", False)],
)
def test_validate_file_type(filename: str, allowed: bool) -> None:
    assert validate_file_type(filename) is allowed


@pytest.mark.unit
def test_validate_file_size_limit(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config.settings, "max_file_size_mb", 1)

    assert validate_file_size(1024 * 1024) is True
    assert validate_file_size(1024 * 1024 + 1) is False


@pytest.mark.unit
def test_sanitize_filename_strips_path_components() -> None:
    assert sanitize_filename("../../etc/passwd.pdf") == "_.._etc_passwd.pdf"
    assert sanitize_filename("...") == "document"


@pytest.mark.unit
def test_clean_text_keeps_line_structure() -> None:
    assert clean_text("  a \t b \r\n\r\n\r\n\n c  ") == "a b\n\nc"
