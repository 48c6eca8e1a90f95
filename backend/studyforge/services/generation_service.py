"""
StudyForge Backend — Study Generation Service
===============================================

What:  The outbound operations of the generation core: summaries (from text or a
       document), flashcards, quiz questions, and image text extraction.
How:   Each operation runs the same pipeline:
           [ContentExtractor] → PromptBuilder → ProviderOrchestrator → [ResponseParser]
       and every failure leaving an operation is a ClassifiedError.
Who:   Route handlers, through the dependency wiring in studyforge.dependencies.
When:  Once per API request; the service itself holds no per-request state.

File ownership:
    Document and image operations read the file they are given but never
    delete it. Upload staging and cleanup belong to FileService and the routes.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import aiofiles

from studyforge.config import Settings
from studyforge.exceptions import ClassifiedError, EmptyContent, UnreadableDocument
from studyforge.schemas.generation import (
    AdvancedOptions,
    Flashcard,
    FlashcardOptions,
    GenerationRequest,
    PromptPayload,
    QuizOptions,
    QuizQuestion,
)
from studyforge.services.content_extractor import ContentExtractor, image_mime_type
from studyforge.services.error_classifier import classify
from studyforge.services.model_catalog import ModelCatalog
from studyforge.services.orchestrator import ProviderOrchestrator
from studyforge.services.prompt_builder import (
    FLASHCARD_MAX_TOKENS,
    FLASHCARD_TEMPERATURE,
    QUIZ_MAX_TOKENS,
    QUIZ_TEMPERATURE,
    SUMMARY_TEMPERATURE,
    build_flashcard_prompt,
    build_flashcard_user_prompt,
    build_quiz_prompt,
    build_quiz_user_prompt,
    build_summary_user_prompt,
    build_system_prompt,
    summary_token_budget,
)
from studyforge.services.response_parser import parse_flashcards, parse_quiz_questions

logger = logging.getLogger(__name__)

MIN_FLASHCARD_CONTENT = 60
MIN_QUIZ_CONTENT = 100


@contextmanager
def _classified_failures(provider: Optional[str] = None) -> Iterator[None]:
    """Re-raise anything that is not yet a ClassifiedError as one."""
    try:
        yield
    except ClassifiedError:
        raise
    except Exception as exc:
        raise classify(exc, provider=provider) from exc


async def _read_file(file_path: str) -> bytes:
    try:
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()
    except FileNotFoundError as exc:
        raise UnreadableDocument(
            message="Document file not found on server.",
            cause=exc,
            context={"file": Path(file_path).name},
        ) from exc
    except OSError as exc:
        raise UnreadableDocument(
            cause=exc,
            context={"file": Path(file_path).name},
        ) from exc


class StudyGenerationService:
    """
    Facade over the generation core.

    Dependencies are injected so tests can swap the orchestrator for a mock
    and routes can share one instance.
    """

    def __init__(
        self,
        orchestrator: ProviderOrchestrator,
        catalog: ModelCatalog,
        extractor: ContentExtractor,
        settings: Settings,
    ):
        self._orchestrator = orchestrator
        self._catalog = catalog
        self._extractor = extractor
        self._settings = settings

    def provider_status(self) -> Dict[str, str]:
        """Per provider id: "configured" or "not_configured". No network calls."""
        return {
            name: "configured" if llm.is_configured else "not_configured"
            for name, llm in self._orchestrator.providers.items()
        }

    async def _complete(self, provider: str, payload: PromptPayload) -> str:
        response = await self._orchestrator.invoke(
            provider,
            self._catalog.candidates_for(provider),
            payload,
        )
        return response.raw_text

    # ══════════════════════════════════════════════════════════════════════
    # Summaries
    # ══════════════════════════════════════════════════════════════════════

    async def generate_summary(
        self,
        content: str,
        summary_type: str = "key_points",
        summary_length: str = "standard",
        advanced_options: Optional[AdvancedOptions] = None,
        provider: Optional[str] = None,
    ) -> str:
        """
        Summarize note text.

        Args:
            content:          The note text.
            summary_type:     key_points, structured, simplified, exam_focus (else generic).
            summary_length:   brief, standard, detailed (else standard).
            advanced_options: Optional prompt clauses.
            provider:         Provider id; defaults to DEFAULT_PROVIDER.

        Returns:
            The summary text, trimmed.

        Raises:
            EmptyContent:    Blank content.
            ClassifiedError: Any provider or configuration failure.
        """
        provider = provider or self._settings.default_provider
        with _classified_failures(provider):
            request = GenerationRequest(
                content=content or "",
                summary_type=summary_type,
                summary_length=summary_length,
                options=advanced_options or AdvancedOptions(),
            )
            if not request.content.strip():
                raise EmptyContent(message="Note content is empty. Nothing to summarize.")

            logger.info(
                "Generating %s/%s summary with %s (%d chars)",
                request.summary_type,
                request.summary_length,
                provider,
                len(request.content),
            )
            payload = PromptPayload(
                system_prompt=build_system_prompt(
                    request.summary_type, request.summary_length, request.options
                ),
                user_content=build_summary_user_prompt(request.content),
                max_output_tokens=summary_token_budget(request.summary_length),
                temperature=SUMMARY_TEMPERATURE,
            )
            summary = await self._complete(provider, payload)
            return summary.strip()

    async def generate_summary_from_document(
        self,
        file_path: str,
        mime_type: str,
        summary_type: str = "key_points",
        summary_length: str = "standard",
        advanced_options: Optional[AdvancedOptions] = None,
        provider: Optional[str] = None,
    ) -> str:
        """Extract the document's text, then summarize it like generate_summary()."""
        provider = provider or self._settings.default_provider
        with _classified_failures(provider):
            source = await _read_file(file_path)
            content = await self._extractor.extract(
                source, mime_type, filename=Path(file_path).name
            )
            return await self.generate_summary(
                content,
                summary_type=summary_type,
                summary_length=summary_length,
                advanced_options=advanced_options,
                provider=provider,
            )

    # ══════════════════════════════════════════════════════════════════════
    # Flashcards & quizzes
    # ══════════════════════════════════════════════════════════════════════

    async def generate_flashcards_from_content(
        self,
        content: str,
        options: Optional[FlashcardOptions] = None,
        provider: Optional[str] = None,
    ) -> List[Flashcard]:
        """
        Generate flashcards from study material.

        Content shorter than 60 characters is rejected; longer content is cut
        to FLASHCARD_CONTENT_LIMIT characters before prompting. Invalid cards
        in the model answer are dropped; at most `options.max_cards` are returned.
        """
        options = options or FlashcardOptions()
        provider = provider or self._settings.default_provider
        with _classified_failures(provider):
            trimmed = (content or "").strip()
            if len(trimmed) < MIN_FLASHCARD_CONTENT:
                raise EmptyContent(message="Document content is too short to generate flashcards.")
            trimmed = trimmed[: self._settings.flashcard_content_limit]

            logger.info(
                "Generating up to %d flashcards with %s (%d chars)",
                options.max_cards,
                provider,
                len(trimmed),
            )
            payload = PromptPayload(
                system_prompt=build_flashcard_prompt(options),
                user_content=build_flashcard_user_prompt(trimmed),
                max_output_tokens=FLASHCARD_MAX_TOKENS,
                temperature=FLASHCARD_TEMPERATURE,
            )
            raw_text = await self._complete(provider, payload)
            cards = parse_flashcards(raw_text, options.subject)[: options.max_cards]
            logger.info("Generated %d flashcards", len(cards))
            return cards

    async def generate_quiz_questions_from_content(
        self,
        content: str,
        options: Optional[QuizOptions] = None,
        provider: Optional[str] = None,
    ) -> List[QuizQuestion]:
        options = options or QuizOptions()
        provider = provider or self._settings.default_provider
        with _classified_failures(provider):
            trimmed = (content or "").strip()
            if len(trimmed) < MIN_QUIZ_CONTENT:
                raise EmptyContent(message="Document content is too short to generate quiz questions.")
            trimmed = trimmed[: self._settings.quiz_content_limit]

            logger.info(
                "Generating up to %d quiz questions with %s (%d chars)",
                options.max_questions,
                provider,
                len(trimmed),
            )
            payload = PromptPayload(
                system_prompt=build_quiz_prompt(options),
                user_content=build_quiz_user_prompt(trimmed),
                max_output_tokens=QUIZ_MAX_TOKENS,
                temperature=QUIZ_TEMPERATURE,
            )
            raw_text = await self._complete(provider, payload)
            questions = parse_quiz_questions(raw_text, options.subject, options.max_questions)
            logger.info("Generated %d quiz questions", len(questions))
            return questions

    # ══════════════════════════════════════════════════════════════════════
    # Image extraction
    # ══════════════════════════════════════════════════════════════════════

    async def extract_text_from_image(self, image_path: str) -> str:
        """
        Extract the text of an image file with the vision provider.

        The MIME type sent to the model comes from the file extension
        (.png .jpg .jpeg .gif .webp .bmp), falling back to image/png.
        """
        provider = self._settings.vision_provider
        with _classified_failures(provider):
            name = Path(image_path).name
            source = await _read_file(image_path)
            logger.info("Extracting text from image %s (%d bytes)", name, len(source))
            return await self._extractor.extract(
                source, image_mime_type(name), filename=name
            )
