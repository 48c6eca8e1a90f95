"""
StudyForge Backend — Application Configuration
================================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides the app-level `settings` object.
Who:   main.py and the dependency wiring. Services receive a Settings
       instance by injection and never import the module-level object.
When:  Loaded once at module import time; credentials are checked lazily,
       the first time a provider is actually invoked.

Model lists are data, not code: each provider has an ordered list for text
generation and one for vision. The first entry is tried first. Override them
with a JSON list, e.g. GEMINI_MODELS='["gemini-2.0-flash", "gemini-1.5-pro"]'.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development except the provider
    credentials, which must be supplied for the corresponding provider to work.

    Attributes are grouped by concern for readability.
    """

    # ── Provider credentials ──────────────────────────────────────────────
    # Gemini keys start with "AIza": https://aistudio.google.com/app/apikey
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("gemini_api_key", "google_gemini_api_key"),
        description="Google Gemini API key",
    )
    # Groq keys start with "gsk_": https://console.groq.com/keys
    groq_api_key: str = Field(default="", description="Groq API key")
    # OpenAI keys start with "sk-": https://platform.openai.com/api-keys
    openai_api_key: str = Field(default="", description="OpenAI API key")

    @field_validator("gemini_api_key", "groq_api_key", "openai_api_key")
    @classmethod
    def strip_key_quotes(cls, v: str) -> str:
        """Keys pasted into .env files often keep their surrounding quotes."""
        return v.strip().strip("\"'").strip()

    # ── Provider selection ────────────────────────────────────────────────
    default_provider: str = Field(default="gemini")
    vision_provider: str = Field(default="gemini")

    @field_validator("default_provider", "vision_provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return v.strip().lower()

    # ── Ranked model lists ────────────────────────────────────────────────
    gemini_models: List[str] = Field(
        default=[
            "gemini-2.0-flash",
            "gemini-1.5-flash-latest",
            "gemini-1.5-pro-latest",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        ]
    )
    gemini_vision_models: List[str] = Field(
        default=[
            "gemini-2.0-flash",
            "gemini-1.5-flash-latest",
            "gemini-1.5-pro-latest",
            "gemini-1.5-flash",
            "gemini-1.5-pro",
        ]
    )
    groq_models: List[str] = Field(
        default=["llama-3.3-70b-versatile", "llama-3.1-8b-instant"]
    )
    groq_vision_models: List[str] = Field(
        default=["meta-llama/llama-4-scout-17b-16e-instruct"]
    )
    openai_models: List[str] = Field(default=["gpt-4o-mini", "gpt-3.5-turbo"])
    openai_vision_models: List[str] = Field(default=["gpt-4o-mini", "gpt-4o"])

    # ── Timeouts ──────────────────────────────────────────────────────────
    # Per provider call; the SDKs enforce it.
    request_timeout_seconds: int = Field(default=60, ge=5, le=600)
    # Overall budget for one fallback sequence; unset means no deadline.
    generation_deadline_seconds: Optional[float] = Field(default=None, gt=0)

    # ── Content limits ────────────────────────────────────────────────────
    flashcard_content_limit: int = Field(default=10_000, ge=500, le=200_000)
    quiz_content_limit: int = Field(default=15_000, ge=500, le=200_000)

    # ── Upload staging ────────────────────────────────────────────────────
    storage_root: str = Field(default="./storage")
    # 50MB = 50 * 1024 * 1024
    max_file_size: int = Field(default=52_428_800, ge=1_048_576, le=104_857_600)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # GEMINI_API_KEY and gemini_api_key both work
        "extra": "ignore",
    }

    def api_key_for(self, provider: str) -> str:
        """Returns the configured key for a provider id ("" when unknown or unset)."""
        return {
            "gemini": self.gemini_api_key,
            "groq": self.groq_api_key,
            "openai": self.openai_api_key,
        }.get(provider, "")

    def validate_required_for_production(self) -> List[str]:
        """
        What:  Lists configuration problems for the providers in use.
        When:  Called during app startup (lifespan).
        How:   Only the default and vision providers are checked. Problems are
               returned, not raised: the app still starts so /health can report
               them, and each generation call fails with a ConfigurationError.
        """
        env_names = {
            "gemini": "GEMINI_API_KEY",
            "groq": "GROQ_API_KEY",
            "openai": "OPENAI_API_KEY",
        }
        problems = []
        for provider in dict.fromkeys([self.default_provider, self.vision_provider]):
            if provider not in env_names:
                problems.append(f"Unknown provider '{provider}'")
                continue
            key = self.api_key_for(provider)
            if not key or key.startswith("your_"):
                problems.append(f"{env_names[provider]} is not set")
        return problems


# App-level instance; services get Settings injected instead
settings = Settings()
