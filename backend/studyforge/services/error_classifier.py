"""
StudyForge Backend — Error Classifier
=======================================

What:  Maps heterogeneous raw failures (SDK exceptions, network errors, plain
       exceptions with provider messages) onto the closed ClassifiedError taxonomy.
How:   An ordered rule table walked once. A rule matches on the exception's
       HTTP status or on its exception types or message patterns, and the
       first matching rule wins. Anything unmatched becomes
       UnknownProviderError carrying the original message verbatim.
Who:   The orchestrator (to decide whether to try the next model) and the
       generation service (to wrap every failure it lets through).

Classification is idempotent: an already-classified error is returned as-is.
The raw exception is always kept as `cause`.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple, Type

from studyforge.exceptions import (
    AuthenticationError,
    ClassifiedError,
    ConfigurationError,
    ModelUnavailableError,
    NetworkError,
    ProviderServerError,
    RateLimitedError,
    UnknownProviderError,
)

# provider id → (display name, env var, key URL)
PROVIDER_HINTS: Dict[str, Tuple[str, str, str]] = {
    "gemini": ("Gemini", "GEMINI_API_KEY", "https://aistudio.google.com/app/apikey"),
    "groq": ("Groq", "GROQ_API_KEY", "https://console.groq.com/keys"),
    "openai": ("OpenAI", "OPENAI_API_KEY", "https://platform.openai.com/api-keys"),
}


@dataclass(frozen=True)
class _Rule:
    error_cls: Type[ClassifiedError]
    statuses: FrozenSet[int] = frozenset()
    patterns: Tuple[str, ...] = ()
    types: Tuple[Type[BaseException], ...] = ()
    remediation: Optional[Callable[[Optional[str]], Optional[str]]] = field(default=None)

    def matches_status(self, status: Optional[int]) -> bool:
        return status is not None and status in self.statuses

    def matches_signature(self, exc: BaseException, text: str) -> bool:
        if self.types and isinstance(exc, self.types):
            return True
        return any(pattern in text for pattern in self.patterns)


def _key_remediation(provider: Optional[str]) -> Optional[str]:
    if provider not in PROVIDER_HINTS:
        return None
    display, env_var, url = PROVIDER_HINTS[provider]
    return (
        f"Check {env_var} in the backend .env file. Get a valid {display} API key "
        f"from {url}, then restart the server."
    )


def _quota_remediation(provider: Optional[str]) -> Optional[str]:
    if provider not in PROVIDER_HINTS:
        return None
    display = PROVIDER_HINTS[provider][0]
    return f"The {display} API quota was exceeded. Please try again later or upgrade your API plan."


# Order matters. Each rule matches on status or on its types and patterns;
# the first match wins, so an invalid key reported with a 404 is still auth.
_RULES: Tuple[_Rule, ...] = (
    _Rule(
        ConfigurationError,
        patterns=(
            "api key is not set",
            "api_key is not set",
            "api key not configured",
            "is not configured",
            "missing api key",
            "no api key",
            "api_key client option must be set",
        ),
        remediation=_key_remediation,
    ),
    _Rule(
        AuthenticationError,
        statuses=frozenset({401, 403}),
        patterns=(
            "api key not valid",
            "api_key_invalid",
            "invalid api key",
            "invalid_api_key",
            "incorrect api key",
            "permission denied",
            "permission_denied",
            "unauthorized",
            "unauthenticated",
        ),
        remediation=_key_remediation,
    ),
    _Rule(
        ModelUnavailableError,
        statuses=frozenset({404}),
        patterns=(
            "not found",
            "model_not_found",
            "not supported",
            "decommissioned",
            "does not exist",
        ),
    ),
    _Rule(
        RateLimitedError,
        statuses=frozenset({429}),
        patterns=(
            "quota",
            "rate limit",
            "rate_limit",
            "resource_exhausted",
            "resource exhausted",
            "too many requests",
        ),
        remediation=_quota_remediation,
    ),
    _Rule(
        ProviderServerError,
        statuses=frozenset({500, 502, 503}),
        patterns=(
            "internal error",
            "internal server error",
            "server error",
            "service unavailable",
            "unavailable",
            "overloaded",
        ),
    ),
    _Rule(
        NetworkError,
        types=(ConnectionError, TimeoutError, asyncio.TimeoutError),
        patterns=(
            "econnrefused",
            "connection refused",
            "connection error",
            "enotfound",
            "getaddrinfo",
            "name or service not known",
            "etimedout",
            "timed out",
            "timeout",
            "deadline exceeded",
            "network",
        ),
    ),
)


def status_of(exc: BaseException) -> Optional[int]:
    """HTTP status carried by an SDK exception, if any (integers only)."""
    for attr in ("status_code", "code", "status"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return int(value)
    return None


def classify(exc: BaseException, provider: Optional[str] = None) -> ClassifiedError:
    """
    Map a raw failure onto the error taxonomy.

    Args:
        exc:      Any exception raised while generating.
        provider: Provider id ("gemini", "groq", "openai") for remediation text.

    Returns:
        A ClassifiedError subclass instance with `cause` set to `exc`.
        Already-classified errors are returned unchanged.
    """
    if isinstance(exc, ClassifiedError):
        return exc

    status = status_of(exc)
    raw_message = str(exc) or type(exc).__name__
    text = raw_message.lower()
    context: Dict[str, Any] = {"error_type": type(exc).__name__, "detail": raw_message[:200]}
    if provider:
        context["provider"] = provider
    if status is not None:
        context["status"] = status

    rule = next(
        (r for r in _RULES if r.matches_status(status) or r.matches_signature(exc, text)),
        None,
    )
    if rule is None:
        return UnknownProviderError(message=raw_message, cause=exc, context=context)

    remediation = rule.remediation(provider) if rule.remediation else None
    return rule.error_cls(cause=exc, remediation=remediation, context=context)


def is_retryable(error: ClassifiedError) -> bool:
    """Only an unavailable model is worth retrying (with the next candidate)."""
    return isinstance(error, ModelUnavailableError)
