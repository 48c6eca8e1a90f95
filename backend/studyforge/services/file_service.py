"""
StudyForge Backend — Upload Staging Service
=============================================

What:  Validates uploaded files and stages them on disk for the generation core.
Why:   The generation operations take a file path; the HTTP layer owns the file's
       lifecycle (write before the call, delete after the response).
How:   Extension allow-list → size check → write under a UUID file name with
       aiofiles. The MIME type handed to the core comes from the extension.
Who:   The document-summary and image-extraction routes.

Staged files live in <STORAGE_ROOT>/staging/ and are removed by a background
task once the response is sent. Nothing is kept between requests.
"""

import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional, Tuple

import aiofiles

from studyforge.exceptions import FileStorageError, UploadValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
IMAGE_EXTENSIONS: Dict[str, str] = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

DOCUMENT_EXTENSIONS: Dict[str, str] = {
    ".pdf": "application/pdf",
    ".txt": "text/plain",
    ".md": "text/markdown",
    **IMAGE_EXTENSIONS,
}


class FileService:
    """
    Lifecycle of an uploaded file:
        1. Route reads the multipart upload → stage_upload()
        2. Extension check against the route's allow-list
        3. Size check (empty and oversized files rejected)
        4. Content written to staging/<uuid><ext>
        5. Route calls the generation core with (path, mime_type)
        6. cleanup_file() runs as a background task after the response
    """

    def __init__(self, storage_root: str, max_file_size: int):
        self.storage_root = Path(storage_root).resolve()
        self.staging_dir = self.storage_root / "staging"
        self.max_file_size = max_file_size
        self.staging_dir.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with staging_dir=%s", self.staging_dir)

    def validate_extension(self, filename: str, allowed: Dict[str, str]) -> Tuple[str, str]:
        """
        Returns:
            (normalized extension, MIME type) for an allowed file name.

        Raises:
            UploadValidationError: Extension not in `allowed`.
        """
        ext = Path(filename or "").suffix.lower()
        if ext not in allowed:
            raise UploadValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(allowed))}"
                ),
                field="file",
                context={"extension": ext, "allowed": sorted(allowed)},
            )
        return ext, allowed[ext]

    def validate_size(self, content_length: Optional[int], actual_size: int) -> None:
        """
        Checks Content-Length first (may be absent or wrong), then the real size.

        Raises:
            UploadValidationError: Empty file, or larger than MAX_FILE_SIZE.
        """
        max_mb = self.max_file_size / (1024 * 1024)

        if content_length and content_length > self.max_file_size:
            raise UploadValidationError(
                message=f"File size exceeds maximum of {max_mb:.0f}MB. Please upload a smaller file.",
                field="file",
                context={"max_size_mb": max_mb, "reported_size": content_length},
            )

        if actual_size == 0:
            raise UploadValidationError(message="The uploaded file is empty.", field="file")

        if actual_size > self.max_file_size:
            raise UploadValidationError(
                message=f"File size ({actual_size / (1024 * 1024):.1f}MB) exceeds maximum of {max_mb:.0f}MB.",
                field="file",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    async def store_file(self, content: bytes, extension: str) -> str:
        """
        Write content to staging/<uuid><ext> and return the absolute path.

        Raises:
            FileStorageError: Directory creation or write failed.
        """
        absolute_path = self.staging_dir / f"{uuid.uuid4()}{extension}"

        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to stage file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save the uploaded file. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File staged: %s (%d bytes)", absolute_path.name, len(content))
        return str(absolute_path)

    async def stage_upload(
        self,
        filename: str,
        content: bytes,
        allowed: Dict[str, str],
        content_length: Optional[int] = None,
    ) -> Tuple[str, str]:
        """
        Validate and stage an upload.

        Args:
            filename:       Client-supplied name (only its extension is used).
            content:        Uploaded bytes.
            allowed:        Extension → MIME map for this route.
            content_length: Content-Length header value, if any.

        Returns:
            (absolute_path, mime_type)
        """
        ext, mime_type = self.validate_extension(filename, allowed)
        self.validate_size(content_length, len(content))
        path = await self.store_file(content, ext)
        return path, mime_type

    async def cleanup_file(self, file_path: str) -> None:
        """
        Remove a staged file. Best-effort: a failed delete is logged, not raised,
        because the response has already been sent.
        """
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))
