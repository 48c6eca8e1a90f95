"""
StudyForge Backend — Quiz Route
=================================

POST /api/quiz/generate: note text in, multiple-choice questions out.
"""

from fastapi import APIRouter, Depends

from studyforge.dependencies import get_generation_service
from studyforge.routes import ERROR_RESPONSES
from studyforge.schemas.generation import QuizRequest, QuizResponse
from studyforge.services.generation_service import StudyGenerationService

router = APIRouter(prefix="/api/quiz", tags=["Quiz"])


@router.post(
    "/generate",
    response_model=QuizResponse,
    responses=ERROR_RESPONSES,
    summary="Generate quiz questions from note text",
)
async def generate_quiz(
    body: QuizRequest,
    service: StudyGenerationService = Depends(get_generation_service),
) -> QuizResponse:
    questions = await service.generate_quiz_questions_from_content(body.content, body.options)
    return QuizResponse(questions=questions, count=len(questions))
