"""
StudyForge Backend — Google Gemini Provider
=============================================

What:  LLMProvider implementation on top of the google-generativeai SDK.
How:   One GenerativeModel per attempted model id. The system prompt and the user
       content are sent as a single text part; vision calls add the image as an
       inline blob part.
Who:   Used by ProviderOrchestrator for the "gemini" provider id.

SDK notes:
    - genai.configure() holds the key in module-level SDK state, so the "client"
      handle is the configured genai module itself, configured exactly once.
    - response.text raises ValueError when the candidate has no text parts
      (safety block, empty finish). That is reported as an empty response,
      which the orchestrator treats like an unavailable model.
"""

import base64
import logging
import time
from typing import Any, List, Optional

import google.generativeai as genai

from studyforge.schemas.generation import PromptPayload, ProviderResponse
from studyforge.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)


class GeminiProvider(LLMProvider):
    name = "gemini"
    display_name = "Gemini"
    key_env_var = "GEMINI_API_KEY"
    key_prefix = "AIza"
    key_url = "https://aistudio.google.com/app/apikey"

    def _build_client(self) -> Any:
        genai.configure(api_key=self._api_key)
        logger.info("Gemini SDK configured")
        return genai

    def _build_contents(self, payload: PromptPayload) -> List[Any]:
        prompt = payload.system_prompt
        if payload.user_content:
            prompt = f"{payload.system_prompt}\n\n{payload.user_content}"
        if payload.image is None:
            return [prompt]
        return [
            prompt,
            {
                "mime_type": payload.image.mime_type,
                "data": base64.b64decode(payload.image.data_base64),
            },
        ]

    async def generate(self, model_name: str, payload: PromptPayload) -> ProviderResponse:
        sdk = self.client
        model = sdk.GenerativeModel(
            model_name,
            generation_config={
                "max_output_tokens": payload.max_output_tokens,
                "temperature": payload.temperature,
            },
        )

        start_time = time.time()
        response = await model.generate_content_async(
            self._build_contents(payload),
            request_options={"timeout": self.timeout_seconds},
        )
        duration_ms = (time.time() - start_time) * 1000

        try:
            text = response.text or ""
        except ValueError:
            # No text parts in the candidate
            text = ""

        tokens_used = self._total_tokens(response)
        logger.debug(
            "Gemini %s answered in %.0fms (%d chars, tokens=%s)",
            model_name,
            duration_ms,
            len(text),
            tokens_used,
        )
        return ProviderResponse(raw_text=text, model_used=model_name, tokens_used=tokens_used)

    @staticmethod
    def _total_tokens(response: Any) -> Optional[int]:
        usage = getattr(response, "usage_metadata", None)
        total = getattr(usage, "total_token_count", None)
        return total if isinstance(total, int) else None
