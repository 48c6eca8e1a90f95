"""
StudyForge Backend — Application Package Initializer
======================================================

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, upload staging
    ├─────────────────────────────────────┤
    │   StudyGenerationService (facade)   │  ← the outbound operations
    ├─────────────────────────────────────┤
    │ Extractor · PromptBuilder · Parser  │  ← pure / stateless components
    ├─────────────────────────────────────┤
    │  ProviderOrchestrator + providers   │  ← model fallback, error classification
    └─────────────────────────────────────┘

    Nothing is persisted: every request is extract → prompt → generate → parse.
"""

__version__ = "1.0.0"
