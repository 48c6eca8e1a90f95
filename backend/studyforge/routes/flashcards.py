"""
StudyForge Backend — Flashcard Route
======================================

POST /api/flashcards/generate: note text in, validated flashcards out.
Content must be at least 60 characters; anything past the configured limit
is ignored.
"""

from fastapi import APIRouter, Depends

from studyforge.dependencies import get_generation_service
from studyforge.routes import ERROR_RESPONSES
from studyforge.schemas.generation import FlashcardRequest, FlashcardResponse
from studyforge.services.generation_service import StudyGenerationService

router = APIRouter(prefix="/api/flashcards", tags=["Flashcards"])


@router.post(
    "/generate",
    response_model=FlashcardResponse,
    responses=ERROR_RESPONSES,
    summary="Generate flashcards from note text",
)
async def generate_flashcards(
    body: FlashcardRequest,
    service: StudyGenerationService = Depends(get_generation_service),
) -> FlashcardResponse:
    cards = await service.generate_flashcards_from_content(body.content, body.options)
    return FlashcardResponse(flashcards=cards, count=len(cards))
