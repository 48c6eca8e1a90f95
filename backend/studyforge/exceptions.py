"""
StudyForge Backend — Error Taxonomy
=====================================

What:  The closed set of typed failures the generation core can surface.
How:   Every failure the core raises is a ClassifiedError subclass carrying a
       user-facing message, an actionable remediation hint, the HTTP status the
       routing layer should use, and the original provider exception as `cause`.
Who:   Raised by the services; turned into JSON responses by the handlers
       registered in main.py.

Exception Hierarchy:
    StudyForgeError (base)
    ├── ClassifiedError                → taxonomy root (kind + cause + remediation)
    │   ├── ConfigurationError         → 500 (missing / malformed credentials)
    │   ├── AuthenticationError        → 401 (provider rejected the credentials)
    │   ├── ModelUnavailableError      → 500 (single model not found / deprecated)
    │   ├── AllModelsUnavailable       → 500 (every candidate model failed)
    │   ├── RateLimitedError           → 429 (quota exhausted)
    │   ├── ProviderServerError        → 502 (provider 5xx)
    │   ├── NetworkError               → 503 (connection / DNS / timeout)
    │   ├── MalformedGenerationOutput  → 500 (model emitted unparseable JSON)
    │   ├── UnexpectedOutputShape      → 500 (valid JSON, wrong shape)
    │   ├── UnreadableDocument         → 500 (PDF / text could not be read)
    │   ├── EmptyContent               → 500 (nothing to work with)
    │   └── UnknownProviderError       → 500 (anything else, message verbatim)
    ├── UploadValidationError          → 400 (HTTP upload staging)
    └── FileStorageError               → 500 (HTTP upload staging)

The remediation text is data on the error, not a presentation decision: the
routing layer returns it as-is.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of classified failure kinds."""

    CONFIGURATION = "ConfigurationError"
    AUTHENTICATION = "AuthenticationError"
    MODEL_UNAVAILABLE = "ModelUnavailableError"
    ALL_MODELS_UNAVAILABLE = "AllModelsUnavailable"
    RATE_LIMITED = "RateLimitedError"
    PROVIDER_SERVER = "ProviderServerError"
    NETWORK = "NetworkError"
    MALFORMED_OUTPUT = "MalformedGenerationOutput"
    UNEXPECTED_SHAPE = "UnexpectedOutputShape"
    UNREADABLE_DOCUMENT = "UnreadableDocument"
    EMPTY_CONTENT = "EmptyContent"
    UNKNOWN_PROVIDER = "UnknownProviderError"


class StudyForgeError(Exception):
    """
    Base exception for all StudyForge application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ClassifiedError(StudyForgeError):
    """
    A typed, taxonomy-tagged failure distinct from the raw provider exception.

    Subclasses only override the class attributes; instances are always fully
    built in __init__ (never partially constructed).

    Attributes:
        kind:         ErrorKind member identifying the failure class
        status_code:  HTTP status the routing layer should answer with
        remediation:  What the user can do about it
        cause:        The original exception, kept for diagnostics only
    """

    kind: ErrorKind = ErrorKind.UNKNOWN_PROVIDER
    status_code: int = 500
    default_message: str = "The AI provider returned an unexpected error."
    default_remediation: str = "Please try again. If the problem persists, contact support."

    def __init__(
        self,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
        remediation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message or self.default_message, context=context)
        self.cause = cause
        self.remediation = remediation or self.default_remediation
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view for API error bodies (never includes the cause)."""
        return {
            "error": self.kind.value,
            "message": self.message,
            "remediation": self.remediation,
        }


class ConfigurationError(ClassifiedError):
    """Credential missing or malformed, or the candidate list is empty."""

    kind = ErrorKind.CONFIGURATION
    status_code = 500
    default_message = "The AI service is not configured."
    default_remediation = (
        "Set the provider API key in the backend environment (.env file) and restart the server."
    )


class AuthenticationError(ClassifiedError):
    """The provider rejected the credentials (HTTP 401/403 or invalid-key message)."""

    kind = ErrorKind.AUTHENTICATION
    status_code = 401
    default_message = "The AI provider rejected the configured API key."
    default_remediation = (
        "Verify the provider API key in the backend .env file is correct and has access "
        "to the requested models, then restart the server."
    )


class ModelUnavailableError(ClassifiedError):
    """
    A single model is not found, not supported or deprecated.

    This is the only retryable condition: the orchestrator moves on to the
    next candidate, so it reaches callers only when raised outside a fallback
    sequence.
    """

    kind = ErrorKind.MODEL_UNAVAILABLE
    status_code = 500
    default_message = "The requested AI model is not available."
    default_remediation = (
        "Check which models your API key has access to and update the configured model list."
    )


class AllModelsUnavailable(ClassifiedError):
    """Every candidate model in the fallback sequence failed with a retryable condition."""

    kind = ErrorKind.ALL_MODELS_UNAVAILABLE
    status_code = 500
    default_message = "None of the configured AI models are available."
    default_remediation = (
        "Your API key may not have access to these models, or they may not be available "
        "in your region. Check the key's permissions and the configured model list."
    )


class RateLimitedError(ClassifiedError):
    """Quota exhausted or rate limit reached (HTTP 429)."""

    kind = ErrorKind.RATE_LIMITED
    status_code = 429
    default_message = "The AI provider quota was exceeded or its rate limit was reached."
    default_remediation = "Please try again later or upgrade your API plan."

    def __init__(
        self,
        message: Optional[str] = None,
        cause: Optional[BaseException] = None,
        remediation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        retry_after: int = 60,
    ):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, cause=cause, remediation=remediation, context=ctx)
        self.retry_after = retry_after


class ProviderServerError(ClassifiedError):
    """The provider failed internally (HTTP 500/503)."""

    kind = ErrorKind.PROVIDER_SERVER
    status_code = 502
    default_message = "The AI provider had a server error."
    default_remediation = "Please try again in a few moments."


class NetworkError(ClassifiedError):
    """Connection refused, DNS failure or timeout while reaching the provider."""

    kind = ErrorKind.NETWORK
    status_code = 503
    default_message = "Could not connect to the AI provider."
    default_remediation = "Please check the server's internet connection and try again later."


class MalformedGenerationOutput(ClassifiedError):
    """The model answer did not contain parseable JSON."""

    kind = ErrorKind.MALFORMED_OUTPUT
    status_code = 500
    default_message = "Failed to parse the AI response."
    default_remediation = "Try again with a shorter document or less content."


class UnexpectedOutputShape(ClassifiedError):
    """The model answer parsed as JSON but not into the expected structure."""

    kind = ErrorKind.UNEXPECTED_SHAPE
    status_code = 500
    default_message = "The AI returned an unexpected format."
    default_remediation = "Please try again. Shorter, focused content usually gives better results."


class UnreadableDocument(ClassifiedError):
    """The source document could not be decoded into text."""

    kind = ErrorKind.UNREADABLE_DOCUMENT
    status_code = 500
    default_message = "Failed to read the document."
    default_remediation = (
        "Upload a text-based document. PDFs must contain text, not scanned-only images."
    )


class EmptyContent(ClassifiedError):
    """No usable content was found (or it is too short to work with)."""

    kind = ErrorKind.EMPTY_CONTENT
    status_code = 500
    default_message = "No content found. The document may be empty or contain only images without text."
    default_remediation = "Provide more content, or upload a clearer image or a text-based document."


class UnknownProviderError(ClassifiedError):
    """Anything the classifier could not map; the original message is kept verbatim."""

    kind = ErrorKind.UNKNOWN_PROVIDER


# ══════════════════════════════════════════════════════════════════════════
# Upload staging errors (HTTP layer, outside the generation taxonomy)
# ══════════════════════════════════════════════════════════════════════════

class UploadValidationError(StudyForgeError):
    """
    Raised when an uploaded file fails validation.

    HTTP:    400 Bad Request
    When:    Unsupported extension, empty file, size exceeded.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class FileStorageError(StudyForgeError):
    """
    Raised when staging an upload on disk fails.

    HTTP:    500 Internal Server Error
    When:    Disk full, permission denied, directory not writable.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
