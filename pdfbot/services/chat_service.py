"""
Chat service for generating responses using the Gemini LLM.

The server holds no Gemini key of its own: every call is made with the
credential the end user supplied for that request, and the client built for
it is discarded afterwards.
"""

from typing import Any, Optional
from langchain_google_genai import ChatGoogleGenerativeAI

from ..config import settings
from ..exceptions import (
    GenerationError,
    InvalidCredentialError,
    MissingCredentialError,
    QuotaExceededError,
)
from ..utils import (
    credential_fingerprint,
    measure_time,
    log_processing_info,
    handle_processing_error
)
import logging

logger = logging.getLogger(__name__)

INVALID_CREDENTIAL_MARKERS = (
    "api key not valid",
    "api_key_invalid",
    "invalid api key",
    "api key expired",
    "permission_denied",
    "permission denied",
    "unauthenticated",
)
QUOTA_MARKERS = (
    "resource_exhausted",
    "resource exhausted",
    "quota",
    "rate limit",
    "ratelimit",
    "too many requests",
)
DEFAULT_RETRY_AFTER_SECONDS = 60


def _status_code(error: Exception) -> Optional[int]:
    """Pull an HTTP-like status code off SDK exceptions, if they carry one."""
    for attr in ("status_code", "code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def classify_generation_error(error: Exception) -> GenerationError:
    """
    Map an exception raised by the generation call onto the error taxonomy.

    Checks the exception and its chained causes, since LangChain wraps the
    underlying SDK error.
    """
    if isinstance(error, GenerationError):
        return error

    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        status = _status_code(current)
        message = str(current).lower()

        if status in (401, 403) or any(marker in message for marker in INVALID_CREDENTIAL_MARKERS):
            return InvalidCredentialError(
                "Invalid Google Gemini API Key provided.",
                status_code=status,
                details={"error_type": type(current).__name__}
            )
        if status == 429 or any(marker in message for marker in QUOTA_MARKERS):
            return QuotaExceededError(
                "The API key has exceeded its quota or rate limit. Please retry later.",
                status_code=status,
                retry_after=DEFAULT_RETRY_AFTER_SECONDS,
                details={"error_type": type(current).__name__}
            )
        current = current.__cause__ or current.__context__

    return GenerationError(
        "AI processing failed. Please check your key or try again.",
        status_code=_status_code(error),
        details={"error_type": type(error).__name__}
    )


def _message_text(content: Any) -> str:
    """Flatten an AIMessage content payload into plain text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for part in content:
            if isinstance(part, str):
                parts.append(part)
            elif isinstance(part, dict) and part.get("type", "text") == "text":
                parts.append(part.get("text", ""))
        return "".join(parts)
    return str(content or "")


class ChatService:
    """Service for generating chat responses using LLM."""

    def __init__(self, model: Optional[str] = None, temperature: Optional[float] = None,
                 max_tokens: Optional[int] = None, timeout: Optional[float] = None):
        """Initialize the chat service."""
        self.model = model or settings.google_chat_model
        self.temperature = settings.google_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.google_max_tokens
        self.timeout = timeout or settings.google_timeout_seconds

    def _create_llm(self, credential: str) -> ChatGoogleGenerativeAI:
        """Build a client bound to one end user's credential."""
        return ChatGoogleGenerativeAI(
            model=self.model,
            api_key=credential,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            timeout=self.timeout,
            max_retries=1  # single attempt, retry policy belongs to the caller
        )

    @measure_time
    def generate(self, prompt: str, credential: Optional[str]) -> str:
        """
        Send one prompt to Gemini and return the answer text.

        Args:
            prompt: Fully assembled prompt
            credential: End user's Gemini API key

        Returns:
            The model's Markdown answer

        Raises:
            MissingCredentialError: If no credential was supplied
            InvalidCredentialError: If Gemini rejected the credential
            QuotaExceededError: If the credential is rate limited or out of quota
            GenerationError: For any other failure
        """
        if not credential or not credential.strip():
            raise MissingCredentialError("API Key is required to use this bot.")

        key_id = credential_fingerprint(credential)[:8]
        try:
            llm = self._create_llm(credential.strip())
            response = llm.invoke(prompt)
        except Exception as e:
            error = classify_generation_error(e)
            handle_processing_error(
                "response_generation",
                e,
                {
                    "credential": key_id,
                    "classified_as": type(error).__name__,
                    "prompt_length": len(prompt)
                }
            )
            raise error from e

        answer = _message_text(response.content)

        log_processing_info("Response generated", {
            "model": self.model,
            "credential": key_id,
            "prompt_length": len(prompt),
            "answer_length": len(answer)
        })

        return answer
