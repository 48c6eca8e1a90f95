"""
StudyForge Backend — API Routes Package
=========================================

Route Inventory:
    - summaries.py:   POST /api/summaries/generate
                      POST /api/summaries/generate-document   (multipart)
    - flashcards.py:  POST /api/flashcards/generate
    - quiz.py:        POST /api/quiz/generate
    - extract.py:     POST /api/extract/image                 (multipart)
    - health.py:      GET  /health

Routes stay thin: read the request, call StudyGenerationService, shape the
response. Errors are rendered by the handlers registered in main.py.
"""

from studyforge.schemas.generation import ErrorResponse

# OpenAPI documentation of the error statuses every generation route can return
ERROR_RESPONSES = {
    400: {"description": "Invalid upload", "model": ErrorResponse},
    401: {"description": "Provider rejected the API key", "model": ErrorResponse},
    429: {"description": "Provider quota exceeded", "model": ErrorResponse},
    500: {"description": "Configuration or generation failure", "model": ErrorResponse},
    502: {"description": "Provider server error", "model": ErrorResponse},
    503: {"description": "Provider unreachable", "model": ErrorResponse},
}
