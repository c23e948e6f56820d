# Local-disk blob store for the original uploaded files
import os
import shutil
import logging
from typing import Optional

from ..config import settings
from ..utils import sanitize_filename

logger = logging.getLogger(__name__)


class FileStorage:
    """Stores uploaded binaries under ``<upload_dir>/<bot_id>/<document_id>_<filename>``."""

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir or settings.upload_dir

    def ensure_base_dir(self) -> None:
        os.makedirs(self.base_dir, exist_ok=True)

    def bot_dir(self, bot_id: str) -> str:
        return os.path.join(self.base_dir, sanitize_filename(bot_id))

    def save_file(self, bot_id: str, document_id: str, filename: str, content: bytes) -> str:
        file_path = os.path.join(
            self.bot_dir(bot_id),
            f"{document_id}_{sanitize_filename(filename)}"
        )
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "wb") as f:
            f.write(content)
        return file_path

    def read_file(self, file_path: str) -> Optional[bytes]:
        if not file_path or not os.path.exists(file_path):
            return None
        with open(file_path, "rb") as f:
            return f.read()

    def safe_delete(self, file_path: Optional[str]) -> bool:
        try:
            if file_path and os.path.exists(file_path):
                os.remove(file_path)
                return True
            return False
        except OSError as e:
            logger.error(f"File deletion failed: {str(e)}")
            return False

    def delete_bot_files(self, bot_id: str) -> None:
        """Remove the bot's whole upload directory, including stray files."""
        path = self.bot_dir(bot_id)
        if os.path.isdir(path):
            shutil.rmtree(path, ignore_errors=True)
