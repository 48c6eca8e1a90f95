"""
StudyForge Backend — Services Layer
=====================================

Service Inventory:
    - StudyGenerationService: The outbound operations (summaries, flashcards,
      quizzes, image extraction)
    - ContentExtractor: Image / PDF / text → plain text
    - prompt_builder: Prompt text for every call type (pure functions)
    - ProviderOrchestrator: Ranked model fallback per provider (tenacity)
    - LLMProvider: GeminiProvider, GroqProvider, OpenAIProvider
    - ModelCatalog: Configured model lists → ranked candidates
    - response_parser: JSON-in-free-text → Flashcard / QuizQuestion
    - error_classifier: Raw failures → ClassifiedError taxonomy
    - FileService: Upload staging and cleanup for the HTTP layer
"""
