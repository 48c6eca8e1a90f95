"""
StudyForge Backend — Provider Fallback Orchestrator
=====================================================

What:  Runs one generation against a provider, walking its ranked model list
       until a model answers.
Why:   Model availability differs per API key, region and over time (models get
       renamed and deprecated). Trying the next model on "not found" keeps the
       service working without a config change.
How:   tenacity's AsyncRetrying drives the loop: one attempt per candidate, no
       wait between attempts, retrying only on ModelUnavailableError. An empty
       answer counts as an unavailable model.
Who:   ContentExtractor (vision) and StudyGenerationService (text).

Fallback rules:
    ┌──────────────────────────────┬──────────────────────────────────────┐
    │ Attempt outcome              │ Orchestrator action                  │
    ├──────────────────────────────┼──────────────────────────────────────┤
    │ non-empty text               │ return it (model_used recorded)      │
    │ empty text                   │ try next candidate                   │
    │ ModelUnavailableError        │ try next candidate                   │
    │ any other classified error   │ raise immediately                    │
    │ candidates exhausted         │ AllModelsUnavailable(cause=last)     │
    │ overall deadline expired     │ AllModelsUnavailable                 │
    └──────────────────────────────┴──────────────────────────────────────┘
"""

import asyncio
import logging
import time
import uuid
from typing import Dict, List, Optional, Sequence

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
)

from studyforge.config import Settings
from studyforge.exceptions import (
    AllModelsUnavailable,
    ClassifiedError,
    ConfigurationError,
    ModelUnavailableError,
)
from studyforge.schemas.generation import ModelCandidate, PromptPayload, ProviderResponse
from studyforge.services.chat_provider import GroqProvider, OpenAIProvider
from studyforge.services.error_classifier import classify, is_retryable
from studyforge.services.gemini_provider import GeminiProvider
from studyforge.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)


def _should_try_next_model(exc: BaseException) -> bool:
    return isinstance(exc, ClassifiedError) and is_retryable(exc)


class ProviderOrchestrator:
    """
    Stateless between calls: the only shared state is the providers' client
    handles, which are read-only once built.
    """

    def __init__(
        self,
        providers: Dict[str, LLMProvider],
        deadline_seconds: Optional[float] = None,
    ):
        self._providers = providers
        self._deadline_seconds = deadline_seconds

    @property
    def providers(self) -> Dict[str, LLMProvider]:
        return dict(self._providers)

    async def invoke(
        self,
        provider: str,
        candidates: Sequence[ModelCandidate],
        payload: PromptPayload,
        deadline: Optional[float] = None,
    ) -> ProviderResponse:
        """
        Generate with the first candidate model that answers.

        Args:
            provider:   Provider id ("gemini", "groq", "openai").
            candidates: Ranked models; tried in ascending priority.
            payload:    Prompt, token budget and temperature for every attempt.
            deadline:   Overall time budget in seconds. Falls back to the
                        configured default; None means unbounded.

        Raises:
            ConfigurationError:   No candidates, unknown provider, or bad credentials.
            AllModelsUnavailable: Every candidate was unavailable, or the deadline expired.
            ClassifiedError:      Any other failure, from the first model that hit it.
        """
        if not candidates:
            raise ConfigurationError(
                message=f"No models are configured for provider '{provider}'.",
                remediation=f"Set {provider.upper()}_MODELS to a non-empty JSON list of model ids.",
                context={"provider": provider},
            )

        llm = self._providers.get(provider)
        if llm is None:
            raise ConfigurationError(
                message=f"Unknown AI provider '{provider}'.",
                remediation=f"Use one of: {', '.join(sorted(self._providers))}.",
                context={"provider": provider},
            )

        llm.ensure_configured()

        request_id = str(uuid.uuid4())[:8]
        ordered = sorted(candidates, key=lambda c: c.priority)
        budget = deadline if deadline is not None else self._deadline_seconds

        logger.info(
            "[%s] Generating with %s (%d candidate models, deadline=%s)",
            request_id,
            provider,
            len(ordered),
            budget,
        )

        if budget is None:
            return await self._run_fallback(llm, ordered, payload, request_id)

        try:
            return await asyncio.wait_for(
                self._run_fallback(llm, ordered, payload, request_id),
                timeout=budget,
            )
        except asyncio.TimeoutError as exc:
            logger.error("[%s] Deadline of %ss expired for %s", request_id, budget, provider)
            raise AllModelsUnavailable(
                message=f"The AI provider did not answer within {budget:g} seconds.",
                cause=exc,
                remediation="Please try again later, or with shorter content.",
                context={"provider": provider, "deadline_seconds": budget},
            ) from exc

    async def _run_fallback(
        self,
        llm: LLMProvider,
        ordered: List[ModelCandidate],
        payload: PromptPayload,
        request_id: str,
    ) -> ProviderResponse:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(len(ordered)),
            retry=retry_if_exception(_should_try_next_model),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=True,
        )

        response: Optional[ProviderResponse] = None
        try:
            async for attempt in retrying:
                candidate = ordered[attempt.retry_state.attempt_number - 1]
                with attempt:
                    response = await self._attempt(llm, candidate, payload, request_id)
        except ModelUnavailableError as exc:
            logger.error(
                "[%s] All %d %s models unavailable; last error: %s",
                request_id,
                len(ordered),
                llm.name,
                exc.message,
            )
            raise AllModelsUnavailable(
                cause=exc,
                context={
                    "provider": llm.name,
                    "models_tried": [c.model_name for c in ordered],
                },
            ) from exc

        return response

    async def _attempt(
        self,
        llm: LLMProvider,
        candidate: ModelCandidate,
        payload: PromptPayload,
        request_id: str,
    ) -> ProviderResponse:
        logger.info("[%s] Trying %s model %s", request_id, llm.name, candidate.model_name)
        start_time = time.time()

        try:
            response = await llm.generate(candidate.model_name, payload)
        except Exception as exc:
            classified = classify(exc, provider=llm.name)
            logger.warning(
                "[%s] %s model %s failed after %.0fms: %s (%s)",
                request_id,
                llm.name,
                candidate.model_name,
                (time.time() - start_time) * 1000,
                classified.kind.value,
                str(exc)[:100],
            )
            if classified is exc:
                raise
            raise classified from exc

        if not response.raw_text.strip():
            logger.warning(
                "[%s] %s model %s returned an empty response",
                request_id,
                llm.name,
                candidate.model_name,
            )
            raise ModelUnavailableError(
                message=f"Model {candidate.model_name} returned an empty response.",
                context={"provider": llm.name, "model": candidate.model_name},
            )

        logger.info(
            "[%s] %s model %s succeeded in %.0fms (%d chars, tokens=%s)",
            request_id,
            llm.name,
            candidate.model_name,
            (time.time() - start_time) * 1000,
            len(response.raw_text),
            response.tokens_used,
        )
        return response


def build_providers(settings: Settings) -> Dict[str, LLMProvider]:
    """One provider per supported id, sharing the configured request timeout."""
    timeout = settings.request_timeout_seconds
    return {
        "gemini": GeminiProvider(settings.gemini_api_key, timeout_seconds=timeout),
        "groq": GroqProvider(settings.groq_api_key, timeout_seconds=timeout),
        "openai": OpenAIProvider(settings.openai_api_key, timeout_seconds=timeout),
    }
