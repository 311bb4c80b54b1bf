"""
Error taxonomy for the clustering pipeline.

Failures from configuration, transport or the LLM provider are mapped onto a
small set of user-facing kinds so the UI can pick a recovery prompt
(configure a key, wait and retry, or retry the whole run).
"""

import json
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """User-facing error kinds."""
    MISSING_CREDENTIAL = "MissingCredential"
    INVALID_CREDENTIAL = "InvalidCredential"
    RATE_LIMITED = "RateLimited"
    MALFORMED_RESPONSE = "MalformedResponse"
    UNKNOWN = "Unknown"


MISSING_CREDENTIAL_MESSAGE = (
    "OpenRouter API key not configured. Please set your API key in settings."
)
INVALID_CREDENTIAL_MESSAGE = "Invalid API key. Please check your OpenRouter API key."
RATE_LIMITED_MESSAGE = "Rate limit exceeded. Please try again in a moment."


class MissingCredentialError(Exception):
    """Raised before any network call when no API key is stored."""

    def __init__(self, message: str = MISSING_CREDENTIAL_MESSAGE):
        super().__init__(message)


class ClusteringResponseError(ValueError):
    """The LLM output failed structural validation."""


class ClassifiedError(BaseModel):
    """An error kind plus the message to show the user."""

    kind: ErrorKind
    message: str


class ClusteringError(Exception):
    """A clustering failure that has already been classified.

    Attributes:
        kind: The error kind
        message: Human-readable message
    """

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def classified(self) -> ClassifiedError:
        return ClassifiedError(kind=self.kind, message=self.message)


def _status_code(error: BaseException) -> Optional[int]:
    """Best-effort HTTP status lookup (openai and httpx errors expose one)."""
    status = getattr(error, "status_code", None)
    if status is None:
        status = getattr(error, "status", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def classify_error(error: BaseException) -> ClassifiedError:
    """
    Map a failure onto the error taxonomy.

    Args:
        error: Exception raised by configuration, transport or the provider

    Returns:
        ClassifiedError with the kind and the message to display. Unknown
        errors keep their original message.
    """
    if isinstance(error, ClusteringError):
        return error.classified

    if isinstance(error, MissingCredentialError):
        return ClassifiedError(kind=ErrorKind.MISSING_CREDENTIAL, message=str(error))

    if isinstance(error, (ClusteringResponseError, json.JSONDecodeError)):
        return ClassifiedError(kind=ErrorKind.MALFORMED_RESPONSE, message=str(error))

    status = _status_code(error)
    message = str(error) or type(error).__name__
    lowered = message.lower()

    if status == 401 or "401" in message or "auth" in lowered:
        return ClassifiedError(kind=ErrorKind.INVALID_CREDENTIAL, message=INVALID_CREDENTIAL_MESSAGE)

    if status == 429 or "429" in message or "rate" in lowered:
        return ClassifiedError(kind=ErrorKind.RATE_LIMITED, message=RATE_LIMITED_MESSAGE)

    return ClassifiedError(kind=ErrorKind.UNKNOWN, message=message)
