"""
StudyForge Backend — Content Extractor
========================================

What:  Turns an uploaded source (image, PDF or text file) into plain text.
How:   Dispatch on MIME type / file extension:
         image/*          → vision model via the orchestrator (base64 inline image)
         application/pdf  → pypdf text extraction in a worker thread
         anything else    → UTF-8 decode
Who:   StudyGenerationService, for document summaries and image extraction.

The extractor works on bytes only. Reading and deleting files is the caller's job.
"""

import asyncio
import base64
import io
import logging
from pathlib import Path
from typing import Optional

from pypdf import PdfReader

from studyforge.config import Settings
from studyforge.exceptions import EmptyContent, UnreadableDocument
from studyforge.schemas.generation import ImagePart, PromptPayload
from studyforge.services.model_catalog import ModelCatalog
from studyforge.services.orchestrator import ProviderOrchestrator
from studyforge.services.prompt_builder import (
    EXTRACTION_MAX_TOKENS,
    EXTRACTION_PROMPT,
    EXTRACTION_TEMPERATURE,
)

logger = logging.getLogger(__name__)

# Extension → wire MIME type sent to the vision model
IMAGE_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}
DEFAULT_IMAGE_MIME = "image/png"


def image_mime_type(filename: Optional[str], declared_mime: Optional[str] = None) -> str:
    """Pick the image MIME type: known extension first, then a known declared type, else PNG."""
    if filename:
        ext = Path(filename).suffix.lower()
        if ext in IMAGE_MIME_TYPES:
            return IMAGE_MIME_TYPES[ext]
    declared = (declared_mime or "").lower()
    if declared in IMAGE_MIME_TYPES.values():
        return declared
    return DEFAULT_IMAGE_MIME


def _is_pdf(mime_type: str, filename: Optional[str]) -> bool:
    if mime_type == "application/pdf":
        return True
    return bool(filename) and Path(filename).suffix.lower() == ".pdf"


def _read_pdf_text(source_bytes: bytes) -> str:
    reader = PdfReader(io.BytesIO(source_bytes))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


class ContentExtractor:
    """Stateless; safe to share between concurrent requests."""

    def __init__(
        self,
        orchestrator: ProviderOrchestrator,
        catalog: ModelCatalog,
        settings: Settings,
    ):
        self._orchestrator = orchestrator
        self._catalog = catalog
        self._settings = settings

    async def extract(
        self,
        source_bytes: bytes,
        mime_type: str,
        filename: Optional[str] = None,
    ) -> str:
        """
        Extract plain text from a source document.

        Args:
            source_bytes: Raw file content.
            mime_type:    Declared MIME type (e.g. "image/jpeg", "application/pdf").
            filename:     Original file name; its extension refines the dispatch.

        Returns:
            Trimmed, non-empty text.

        Raises:
            UnreadableDocument: PDF or text decoding failed.
            EmptyContent:       Nothing left after trimming.
            ClassifiedError:    Vision model failures (from the orchestrator).
        """
        mime_type = (mime_type or "").lower()

        if mime_type.startswith("image/"):
            text = await self._extract_image(source_bytes, mime_type, filename)
        elif _is_pdf(mime_type, filename):
            text = await self._extract_pdf(source_bytes)
        else:
            text = self._decode_text(source_bytes)

        text = text.strip()
        if not text:
            raise EmptyContent(context={"mime_type": mime_type})

        logger.info("Extracted %d characters from %s source", len(text), mime_type or "unknown")
        return text

    async def _extract_image(
        self,
        source_bytes: bytes,
        mime_type: str,
        filename: Optional[str],
    ) -> str:
        if not source_bytes:
            raise EmptyContent(message="The image file is empty.")

        provider = self._settings.vision_provider
        payload = PromptPayload(
            system_prompt=EXTRACTION_PROMPT,
            max_output_tokens=EXTRACTION_MAX_TOKENS,
            temperature=EXTRACTION_TEMPERATURE,
            image=ImagePart(
                mime_type=image_mime_type(filename, mime_type),
                data_base64=base64.b64encode(source_bytes).decode("ascii"),
            ),
        )
        response = await self._orchestrator.invoke(
            provider,
            self._catalog.candidates_for(provider, vision=True),
            payload,
        )
        return response.raw_text

    async def _extract_pdf(self, source_bytes: bytes) -> str:
        try:
            return await asyncio.to_thread(_read_pdf_text, source_bytes)
        except Exception as exc:
            logger.warning("PDF text extraction failed: %s", exc)
            raise UnreadableDocument(
                message="Failed to read the PDF document. The PDF must contain text, not scanned-only images.",
                cause=exc,
            ) from exc

    @staticmethod
    def _decode_text(source_bytes: bytes) -> str:
        try:
            return source_bytes.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise UnreadableDocument(
                message="Failed to read the document. Text files must be UTF-8 encoded.",
                cause=exc,
            ) from exc
