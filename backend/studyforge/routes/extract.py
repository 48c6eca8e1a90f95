"""
StudyForge Backend — Image Extraction Route
=============================================

What:  POST /api/extract/image — upload an image, get its text back.
How:   The image is staged, sent to the vision provider's model list by
       StudyGenerationService.extract_text_from_image(), then deleted.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, File, UploadFile

from studyforge.dependencies import get_file_service, get_generation_service
from studyforge.routes import ERROR_RESPONSES
from studyforge.schemas.generation import ExtractionResponse
from studyforge.services.file_service import IMAGE_EXTENSIONS, FileService
from studyforge.services.generation_service import StudyGenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/extract", tags=["Extraction"])


@router.post(
    "/image",
    response_model=ExtractionResponse,
    responses=ERROR_RESPONSES,
    summary="Extract text from an image",
    description="Upload a PNG, JPG, GIF, WebP or BMP image (max 50MB).",
)
async def extract_image_text(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="Image of notes or a document page"),
    service: StudyGenerationService = Depends(get_generation_service),
    file_service: FileService = Depends(get_file_service),
) -> ExtractionResponse:
    try:
        content = await file.read()
    finally:
        await file.close()

    logger.info(
        "Received image extraction request: filename=%s, size=%d bytes",
        file.filename or "unknown",
        len(content),
    )

    path, _ = await file_service.stage_upload(
        file.filename or "",
        content,
        IMAGE_EXTENSIONS,
        content_length=file.size,
    )
    try:
        text = await service.extract_text_from_image(path)
    except Exception:
        await file_service.cleanup_file(path)
        raise

    background_tasks.add_task(file_service.cleanup_file, path)
    return ExtractionResponse(text=text, characters=len(text))
