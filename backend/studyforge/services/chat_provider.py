"""
StudyForge Backend — Chat-Completions Providers (Groq, OpenAI)
================================================================

What:  LLMProvider implementations for the two chat-completions style backends.
How:   Both SDKs expose the same `client.chat.completions.create(...)` surface, so
       the request building lives in ChatCompletionsProvider and the subclasses
       only choose the SDK client and the key metadata.
       The system prompt goes in a "system" message; the user content (and the
       image, as a base64 data URL) goes in a "user" message.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from groq import AsyncGroq
from openai import AsyncOpenAI

from studyforge.schemas.generation import PromptPayload, ProviderResponse
from studyforge.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)


class ChatCompletionsProvider(LLMProvider):
    """Shared request/response handling for chat-completions APIs."""

    def _build_messages(self, payload: PromptPayload) -> List[Dict[str, Any]]:
        messages: List[Dict[str, Any]] = [
            {"role": "system", "content": payload.system_prompt},
        ]
        if payload.image is None:
            messages.append({"role": "user", "content": payload.user_content})
            return messages

        data_url = f"data:{payload.image.mime_type};base64,{payload.image.data_base64}"
        parts: List[Dict[str, Any]] = []
        if payload.user_content:
            parts.append({"type": "text", "text": payload.user_content})
        parts.append({"type": "image_url", "image_url": {"url": data_url}})
        messages.append({"role": "user", "content": parts})
        return messages

    async def generate(self, model_name: str, payload: PromptPayload) -> ProviderResponse:
        client = self.client
        start_time = time.time()
        completion = await client.chat.completions.create(
            model=model_name,
            messages=self._build_messages(payload),
            max_tokens=payload.max_output_tokens,
            temperature=payload.temperature,
        )
        duration_ms = (time.time() - start_time) * 1000

        text = ""
        if completion.choices:
            text = completion.choices[0].message.content or ""

        tokens_used = self._total_tokens(completion)
        logger.debug(
            "%s %s answered in %.0fms (%d chars, tokens=%s)",
            self.display_name,
            model_name,
            duration_ms,
            len(text),
            tokens_used,
        )
        return ProviderResponse(raw_text=text, model_used=model_name, tokens_used=tokens_used)

    @staticmethod
    def _total_tokens(completion: Any) -> Optional[int]:
        usage = getattr(completion, "usage", None)
        total = getattr(usage, "total_tokens", None)
        return total if isinstance(total, int) else None


class GroqProvider(ChatCompletionsProvider):
    name = "groq"
    display_name = "Groq"
    key_env_var = "GROQ_API_KEY"
    key_prefix = "gsk_"
    key_url = "https://console.groq.com/keys"

    def _build_client(self) -> AsyncGroq:
        # SDK-level retries are disabled: fallback happens across models instead
        return AsyncGroq(api_key=self._api_key, timeout=self.timeout_seconds, max_retries=0)


class OpenAIProvider(ChatCompletionsProvider):
    name = "openai"
    display_name = "OpenAI"
    key_env_var = "OPENAI_API_KEY"
    key_prefix = "sk-"
    key_url = "https://platform.openai.com/api-keys"

    def _build_client(self) -> AsyncOpenAI:
        return AsyncOpenAI(api_key=self._api_key, timeout=self.timeout_seconds, max_retries=0)
