"""
StudyForge Backend — Summary Routes
=====================================

What:  POST /api/summaries/generate           (JSON body with note text)
       POST /api/summaries/generate-document  (multipart upload: PDF, text or image)
How:   Thin handlers: validate input, call StudyGenerationService, shape the
       response. Failures are ClassifiedErrors turned into JSON by main.py.

Document uploads are staged on disk for the duration of the call. The staged
file is removed right away on failure, or by a background task after a
successful response.
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile

from studyforge.dependencies import get_file_service, get_generation_service
from studyforge.routes import ERROR_RESPONSES
from studyforge.schemas.generation import AdvancedOptions, SummaryRequest, SummaryResponse
from studyforge.services.file_service import DOCUMENT_EXTENSIONS, FileService
from studyforge.services.generation_service import StudyGenerationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/summaries", tags=["Summaries"])


@router.post(
    "/generate",
    response_model=SummaryResponse,
    responses=ERROR_RESPONSES,
    summary="Summarize note text",
)
async def generate_summary(
    body: SummaryRequest,
    service: StudyGenerationService = Depends(get_generation_service),
) -> SummaryResponse:
    summary = await service.generate_summary(
        body.content,
        summary_type=body.summary_type,
        summary_length=body.summary_length,
        advanced_options=body.advanced_options,
        provider=body.provider,
    )
    return SummaryResponse(
        summary=summary,
        summary_type=body.summary_type,
        summary_length=body.summary_length,
    )


@router.post(
    "/generate-document",
    response_model=SummaryResponse,
    responses=ERROR_RESPONSES,
    summary="Summarize an uploaded document",
    description="Upload a PDF, text file or image (max 50MB) and get a summary of its content.",
)
async def generate_summary_from_document(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(..., description="PDF, .txt, .md or image file"),
    summary_type: str = Form(default="key_points"),
    summary_length: str = Form(default="standard"),
    include_examples: bool = Form(default=False),
    include_diagrams: bool = Form(default=False),
    focus_areas: str = Form(default="", description="Comma-separated topics"),
    custom_instructions: str = Form(default=""),
    provider: Optional[str] = Form(default=None),
    service: StudyGenerationService = Depends(get_generation_service),
    file_service: FileService = Depends(get_file_service),
) -> SummaryResponse:
    try:
        content = await file.read()
    finally:
        await file.close()

    logger.info(
        "Received document summary request: filename=%s, size=%d bytes",
        file.filename or "unknown",
        len(content),
    )

    path, mime_type = await file_service.stage_upload(
        file.filename or "",
        content,
        DOCUMENT_EXTENSIONS,
        content_length=file.size,
    )
    options = AdvancedOptions(
        include_examples=include_examples,
        include_diagrams=include_diagrams,
        focus_areas=[area.strip() for area in focus_areas.split(",") if area.strip()],
        custom_instructions=custom_instructions,
    )

    try:
        summary = await service.generate_summary_from_document(
            path,
            mime_type,
            summary_type=summary_type,
            summary_length=summary_length,
            advanced_options=options,
            provider=provider or None,
        )
    except Exception:
        await file_service.cleanup_file(path)
        raise

    background_tasks.add_task(file_service.cleanup_file, path)
    return SummaryResponse(
        summary=summary,
        summary_type=summary_type,
        summary_length=summary_length,
    )
