"""Error taxonomy for prediction runs and its user-facing messages."""

from __future__ import annotations

import re
from enum import Enum

TOKEN_LIMIT_RE = re.compile(
    r"context length|context window|token limit|too many tokens|maximum context|too large",
    re.IGNORECASE,
)

REMEDIATION_HINTS = (
    "Try uploading a smaller file or a shorter excerpt.",
    "Ask for fewer questions.",
    "Plain .txt files give the most reliable results.",
)


class PredictorError(Exception):
    """Base class for failures surfaced by a prediction run."""


class FileReadError(PredictorError):
    """The uploaded file could not be read."""


class UnsupportedFileTypeError(FileReadError):
    """The uploaded file's extension is outside the accepted allowlist."""


class EmptyContentError(PredictorError):
    """The uploaded file produced no usable text."""


class PredictionInProgressError(PredictorError):
    """A generation is already running on this orchestrator."""


class ParseError(PredictorError):
    """Model output could not be parsed as a question array."""


class RemoteErrorKind(str, Enum):
    """Sub-kinds of remote failures, each with its own user message."""

    AUTHENTICATION = "authentication"
    RATE_LIMIT = "rate_limit"
    TOKEN_LIMIT = "token_limit"
    CONFIGURATION = "configuration"
    GENERIC = "generic"


class RemoteServiceError(PredictorError):
    """The chat-completion provider failed or returned an error status."""

    def __init__(
        self,
        message: str,
        *,
        kind: RemoteErrorKind = RemoteErrorKind.GENERIC,
        status: int | None = None,
        detail: str = "",
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.detail = detail

    @property
    def retryable(self) -> bool:
        return self.kind not in (RemoteErrorKind.AUTHENTICATION, RemoteErrorKind.CONFIGURATION)


class EmptyResponseError(RemoteServiceError):
    """The provider answered but the completion text was missing or blank."""

    def __init__(self, message: str = "No valid content in the API response.", detail: str = "") -> None:
        super().__init__(message, detail=detail)


def classify_http_error(status: int, detail: str) -> RemoteServiceError:
    """Map a non-2xx provider response to a classified remote error."""
    detail = detail.strip()
    if status in (401, 403):
        return RemoteServiceError(
            "Authentication failed with the model provider. Please check your API key.",
            kind=RemoteErrorKind.AUTHENTICATION,
            status=status,
            detail=detail,
        )
    if status == 429:
        return RemoteServiceError(
            "Rate limit exceeded on the model provider. Please try again later.",
            kind=RemoteErrorKind.RATE_LIMIT,
            status=status,
            detail=detail,
        )
    if status == 413 or TOKEN_LIMIT_RE.search(detail):
        return RemoteServiceError(
            f"Model provider rejected the request size ({status}).",
            kind=RemoteErrorKind.TOKEN_LIMIT,
            status=status,
            detail=detail,
        )
    return RemoteServiceError(
        f"Model provider error ({status}): {detail or 'Unknown error'}",
        status=status,
        detail=detail,
    )


def is_retryable(exc: Exception) -> bool:
    """Return True when repeating the generate call could succeed."""
    return isinstance(exc, RemoteServiceError) and exc.retryable


def user_message(exc: Exception) -> str:
    """Build the sentence shown to the user for a failed prediction."""
    if isinstance(exc, UnsupportedFileTypeError):
        return "Please upload a PDF, DOCX, or TXT file."
    if isinstance(exc, FileReadError):
        return f"The file could not be read: {exc}"
    if isinstance(exc, EmptyContentError):
        return "The uploaded file does not contain any readable text."
    if isinstance(exc, PredictionInProgressError):
        return "A prediction is already running. Wait for it to finish."
    if isinstance(exc, EmptyResponseError):
        return "The AI service returned an empty response. Please try again."
    if isinstance(exc, RemoteServiceError):
        if exc.kind is RemoteErrorKind.AUTHENTICATION:
            return "The AI service rejected our credentials. Check the configured API key."
        if exc.kind is RemoteErrorKind.RATE_LIMIT:
            return "The AI service is rate limiting requests or the quota is used up. Try again later."
        if exc.kind is RemoteErrorKind.TOKEN_LIMIT:
            return "The document is too large for the AI service. Use a smaller file or fewer questions."
        if exc.kind is RemoteErrorKind.CONFIGURATION:
            return "The AI service is not configured. Set OPENROUTER_API_KEY and try again."
        return f"The AI service failed to generate questions: {exc}"
    return "There was an error generating predictions. Please try again."
