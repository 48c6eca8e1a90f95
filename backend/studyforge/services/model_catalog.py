"""
StudyForge Backend — Model Catalog
====================================

What:  Turns the configured model lists into ranked ModelCandidate sequences.
Why:   The fallback order is configuration, not code; callers never choose a
       model directly, only a provider.
"""

from typing import Dict, List, Tuple

from studyforge.config import Settings
from studyforge.schemas.generation import ModelCandidate


class ModelCatalog:
    """Read-only view over the per-provider, per-task model lists."""

    def __init__(self, settings: Settings):
        self._models: Dict[Tuple[str, bool], List[str]] = {
            ("gemini", False): settings.gemini_models,
            ("gemini", True): settings.gemini_vision_models,
            ("groq", False): settings.groq_models,
            ("groq", True): settings.groq_vision_models,
            ("openai", False): settings.openai_models,
            ("openai", True): settings.openai_vision_models,
        }

    def candidates_for(self, provider: str, vision: bool = False) -> List[ModelCandidate]:
        """
        Ranked candidates for a provider, priority 0 first.

        Unknown providers and empty lists both yield []; the orchestrator turns
        that into a ConfigurationError. Duplicate model ids keep their first rank.
        """
        names = self._models.get((provider, vision), [])
        stripped = [name.strip() for name in names if name and name.strip()]
        unique = list(dict.fromkeys(stripped))
        return [
            ModelCandidate(provider=provider, model_name=name, priority=index)
            for index, name in enumerate(unique)
        ]
