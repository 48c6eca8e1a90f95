"""
StudyForge Backend — Abstract LLM Provider Interface
======================================================

What:  Abstract base class for the generative-text backends (Gemini, Groq, OpenAI).
Why:   The orchestrator walks a ranked model list without knowing which SDK sits
       behind it. Each provider translates one PromptPayload to its own wire format.
How:   Concrete providers implement _build_client() and generate(). The SDK client
       is built lazily on first use and reused afterwards (read-only handle).
Who:   Constructed by build_providers() and injected into ProviderOrchestrator.
When:  One generate() call per model candidate attempt.

Credential checks happen here, before any network call: a missing key or a key
with the wrong prefix fails with ConfigurationError naming the env variable.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from studyforge.exceptions import ConfigurationError
from studyforge.schemas.generation import PromptPayload, ProviderResponse


class LLMProvider(ABC):
    """
    Contract:
        - generate() returns a ProviderResponse (raw_text may be empty)
        - SDK exceptions propagate unchanged; the orchestrator classifies them
        - ensure_configured() raises ConfigurationError before any network call

    Class attributes set by each implementation:
        name:         provider id used in configuration ("gemini", "groq", "openai")
        display_name: human-readable name for messages
        key_env_var:  the environment variable holding the key
        key_prefix:   expected key prefix, "" to skip the check
        key_url:      where users obtain a key
    """

    name: str = ""
    display_name: str = ""
    key_env_var: str = ""
    key_prefix: str = ""
    key_url: str = ""

    def __init__(self, api_key: str, timeout_seconds: int = 60):
        self._api_key = api_key or ""
        self.timeout_seconds = timeout_seconds
        self._client: Optional[Any] = None

    @property
    def is_configured(self) -> bool:
        """True when a key is present and has the expected prefix."""
        if not self._api_key or self._api_key.startswith("your_"):
            return False
        return not self.key_prefix or self._api_key.startswith(self.key_prefix)

    def ensure_configured(self) -> None:
        """
        Raises:
            ConfigurationError: Key missing, or not shaped like a key for this provider.
        """
        if not self._api_key or self._api_key.startswith("your_"):
            raise ConfigurationError(
                message=f"{self.key_env_var} is not configured.",
                remediation=(
                    f"Set {self.key_env_var} in the backend .env file and restart the server. "
                    f"Get a key at {self.key_url}"
                ),
                context={"provider": self.name},
            )
        if self.key_prefix and not self._api_key.startswith(self.key_prefix):
            raise ConfigurationError(
                message=(
                    f"{self.key_env_var} appears to be invalid. "
                    f"{self.display_name} API keys start with '{self.key_prefix}'."
                ),
                remediation=(
                    f"Copy the full key from {self.key_url} into {self.key_env_var} "
                    "without extra characters, then restart the server."
                ),
                context={"provider": self.name},
            )

    @property
    def client(self) -> Any:
        """The SDK client, built on first access."""
        if self._client is None:
            self.ensure_configured()
            self._client = self._build_client()
        return self._client

    @abstractmethod
    def _build_client(self) -> Any:
        """Create the SDK client handle. Only called once the key is validated."""
        ...

    @abstractmethod
    async def generate(self, model_name: str, payload: PromptPayload) -> ProviderResponse:
        """
        Issue one generation call against one model.

        Args:
            model_name: Provider-specific model id, e.g. "gemini-2.0-flash".
            payload:    Prompt, token budget, temperature and optional image.

        Returns:
            ProviderResponse with the raw text (possibly empty) and the model id.
        """
        ...
