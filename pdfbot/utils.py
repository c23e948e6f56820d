"""
Utility functions for PDF Bot Studio.
"""

import re
import time
import uuid
import hashlib
import functools
from typing import Dict, Any, Optional
from datetime import datetime
import logging

from .config import settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Configure root logging once for the whole process."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def generate_id() -> str:
    """Generate a unique record ID."""
    return str(uuid.uuid4())


def calculate_file_hash(content: bytes) -> str:
    """Calculate SHA-256 hash of file content."""
    return hashlib.sha256(content).hexdigest()


def credential_fingerprint(credential: str) -> str:
    """Derive a stable, non-reversible identifier from an end user's API key."""
    return hashlib.sha256(credential.strip().encode("utf-8")).hexdigest()


def validate_file_type(filename: str) -> bool:
    """Validate if the file type is allowed."""
    if not filename or '.' not in filename:
        return False

    file_extension = filename.lower().rsplit('.', 1)[-1]
    return file_extension in [ext.lower() for ext in settings.allowed_file_types]


def validate_file_size(file_size: int) -> bool:
    """Validate if the file size is within limits."""
    max_size_bytes = settings.max_file_size_mb * 1024 * 1024
    return file_size <= max_size_bytes


def format_timestamp() -> str:
    """Get current timestamp in ISO format."""
    return datetime.utcnow().isoformat()


def measure_time(func):
    """Decorator to measure function execution time."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        end_time = time.time()
        execution_time = end_time - start_time

        logger.info(f"{func.__name__} executed in {execution_time:.2f} seconds")
        return result
    return wrapper


def sanitize_filename(filename: str) -> str:
    """Sanitize filename for safe storage."""
    # Remove or replace dangerous characters
    dangerous_chars = ['/', '\\', ':', '*', '?', '"', '<', '>', '|', '\x00']
    sanitized = filename

    for char in dangerous_chars:
        sanitized = sanitized.replace(char, '_')

    sanitized = sanitized.strip().lstrip('.') or "document"

    # Limit length
    if len(sanitized) > 255:
        name, ext = sanitized.rsplit('.', 1) if '.' in sanitized else (sanitized, '')
        sanitized = name[:255-len(ext)-1] + ('.' + ext if ext else '')

    return sanitized


def clean_text(text: str) -> str:
    """Collapse runs of spaces and blank lines while keeping line structure."""
    if not text:
        return ""

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[ \t\f\v]+', ' ', text)
    text = re.sub(r' *\n *', '\n', text)
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()


def log_processing_info(operation: str, details: Dict[str, Any]) -> None:
    """Log processing information."""
    logger.info(f"{operation}: {details}")


def handle_processing_error(operation: str, error: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Handle and log processing errors."""
    error_info = {
        'operation': operation,
        'error_type': type(error).__name__,
        'error_message': str(error),
        'timestamp': format_timestamp()
    }

    if context:
        error_info.update(context)

    logger.error(f"Processing error: {error_info}")
    return error_info
