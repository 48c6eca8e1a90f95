"""
StudyForge Backend — Generation Schemas
========================================

What:  Pydantic models for the generation core and its HTTP contract.
How:   Domain models (requests, candidates, payloads, parsed artifacts) are used
       by the services; API models validate request bodies and shape responses.
Who:   Services, route handlers, and the OpenAPI docs generated from them.

Domain values that come from users (summary type/length, difficulty) are plain
strings on purpose: unknown values are accepted here and defaulted later by the
prompt builder and response parser.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Domain Models — Passed between the core components
# ══════════════════════════════════════════════════════════════════════════

FLASHCARD_DIFFICULTIES = ("easy", "medium", "advanced")
QUIZ_DIFFICULTIES = ("easy", "medium", "hard")


class AdvancedOptions(BaseModel):
    """Optional knobs appended to the summary system prompt."""

    include_examples: bool = False
    include_diagrams: bool = False
    focus_areas: List[str] = Field(default_factory=list)
    custom_instructions: str = ""

    model_config = {"frozen": True}


class GenerationRequest(BaseModel):
    """One summary generation call. Constructed once, never mutated."""

    content: str
    summary_type: str = "key_points"
    summary_length: str = "standard"
    options: AdvancedOptions = Field(default_factory=AdvancedOptions)

    model_config = {"frozen": True}


class ModelCandidate(BaseModel):
    """
    One entry of a provider's ranked model list.

    Lower priority is tried first. Built from configuration by the model
    catalog; never taken from user input.
    """

    provider: str
    model_name: str
    priority: int = Field(ge=0)

    model_config = {"frozen": True}


class ImagePart(BaseModel):
    """Inline image sent alongside the prompt (vision calls only)."""

    mime_type: str
    data_base64: str

    model_config = {"frozen": True}


class PromptPayload(BaseModel):
    """
    Provider-neutral description of a single generation call.

    Each provider translates it to its own wire format: Gemini gets one
    contents list, chat-completion providers get system + user messages.
    """

    system_prompt: str
    user_content: str = ""
    max_output_tokens: int = Field(default=500, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    image: Optional[ImagePart] = None

    model_config = {"frozen": True}


class ProviderResponse(BaseModel):
    raw_text: str
    model_used: str
    tokens_used: Optional[int] = None


class Flashcard(BaseModel):
    question: str
    answer: str
    hint: str = ""
    difficulty: str = "medium"
    subject: str = "General Studies"
    tags: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)


class QuizQuestion(BaseModel):
    question: str
    options: List[str]
    correct_answer: int = Field(ge=0)
    explanation: str = ""
    category: str = ""
    difficulty: str = "medium"
    subject: str = "General Studies"
    tags: List[str] = Field(default_factory=list)
    time_limit: int = 60
    points: int = 10


class FlashcardOptions(BaseModel):
    max_cards: int = Field(default=6, ge=1, le=50)
    subject: str = "General Studies"
    document_title: str = "Study Notes"
    document_tags: List[str] = Field(default_factory=list)
    is_image_source: bool = False


class QuizOptions(BaseModel):
    max_questions: int = Field(default=6, ge=1, le=50)
    subject: str = "General Studies"
    document_title: str = "Study Notes"
    document_tags: List[str] = Field(default_factory=list)
    is_image_source: bool = False


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the client sends
# ══════════════════════════════════════════════════════════════════════════


class SummaryRequest(BaseModel):
    """
    What:  Body of POST /api/summaries/generate.
    Why provider is optional: Most callers use the configured default; the
           field lets a caller pick another configured provider explicitly.
    """
    content: str = Field(min_length=1, description="Note text to summarize")
    summary_type: str = Field(default="key_points", description="key_points, structured, simplified, exam_focus")
    summary_length: str = Field(default="standard", description="brief, standard, detailed")
    advanced_options: AdvancedOptions = Field(default_factory=AdvancedOptions)
    provider: Optional[str] = Field(default=None, description="gemini, groq, openai")


class FlashcardRequest(BaseModel):
    content: str = Field(min_length=1, description="Note text to turn into flashcards")
    options: FlashcardOptions = Field(default_factory=FlashcardOptions)


class QuizRequest(BaseModel):
    content: str = Field(min_length=1, description="Note text to turn into quiz questions")
    options: QuizOptions = Field(default_factory=QuizOptions)


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns
# ══════════════════════════════════════════════════════════════════════════


class SummaryResponse(BaseModel):
    summary: str = Field(description="Generated summary text")
    summary_type: str
    summary_length: str


class FlashcardResponse(BaseModel):
    flashcards: List[Flashcard]
    count: int


class QuizResponse(BaseModel):
    questions: List[QuizQuestion]
    count: int


class ExtractionResponse(BaseModel):
    text: str = Field(description="Text extracted from the uploaded image")
    characters: int


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": "RateLimitedError",
            "message": "The AI provider quota was exceeded or its rate limit was reached.",
            "remediation": "Please try again later or upgrade your API plan.",
            "request_id": "550e8400-e29b-41d4-a716-446655440000"
        }
    """
    error: str = Field(description="Machine-readable error kind")
    message: str = Field(description="Human-readable error description")
    remediation: Optional[str] = Field(default=None, description="What the user can do about it")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response.
    Why providers: A running backend without credentials cannot generate
           anything, so the probe reports whether each provider is configured.
    """
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    providers: Dict[str, str] = Field(description="Per provider: configured, not_configured")
    default_provider: str
    uptime_seconds: float = Field(description="Seconds since service started")
