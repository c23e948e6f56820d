"""
Configuration management for PDF Bot Studio.
Handles environment variables and application settings.
"""

from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from environment
    )

    # API Configuration
    app_name: str = Field(default="PDF Bot Studio")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    cors_origins: List[str] = Field(default=["*"])

    # Google AI Configuration (the API key is supplied by each end user per request)
    google_chat_model: str = Field(default="gemini-2.5-flash")
    google_temperature: float = Field(default=0.1)
    google_max_tokens: int = Field(default=2048)
    google_timeout_seconds: float = Field(default=120.0)

    # Prompt Assembly Configuration
    context_max_chars: int = Field(default=1_000_000)

    # File Processing Configuration
    max_file_size_mb: int = Field(default=50)
    allowed_file_types: List[str] = Field(default=["pdf"])
    upload_dir: str = Field(default="./uploads")

    # Database Configuration
    database_url: str = Field(default="sqlite:///./pdf_bot_studio.db")

    # Bootstrap Configuration
    default_admin_username: str = Field(default="admin")
    default_admin_email: str = Field(default="admin@pdfbotstudio.local")

    # Chat History Configuration
    chat_history_enabled: bool = Field(default=True)


# Global settings instance
settings = Settings()


def validate_required_settings() -> None:
    """Validate that all required settings are present and usable."""
    problems = []

    if settings.context_max_chars <= 0:
        problems.append("context_max_chars must be positive")
    if settings.max_file_size_mb <= 0:
        problems.append("max_file_size_mb must be positive")
    if not settings.allowed_file_types:
        problems.append("allowed_file_types must not be empty")
    if not settings.upload_dir:
        problems.append("upload_dir must be set")
    if not settings.database_url:
        problems.append("database_url must be set")
    if not settings.default_admin_username:
        problems.append("default_admin_username must be set")
    if settings.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        problems.append(f"log_level {settings.log_level!r} is not a valid logging level")

    if problems:
        raise ValueError(
            f"Invalid configuration: {', '.join(problems)}. "
            "Please check your .env file."
        )
