"""
StudyForge Backend — API Route Tests
======================================

What:  Integration tests for the HTTP surface with the generation service mocked.
How:   HTTPX AsyncClient over ASGITransport (see conftest.test_client); the
       service is an AsyncMock injected through dependency_overrides.

What we test:
    ✅ Each route's happy path and response shape
    ✅ Request validation (422) and upload validation (400)
    ✅ ClassifiedError → status code, error body, Retry-After
    ✅ Request ID header echoed and included in error bodies
    ✅ Staged uploads are removed after the call
    ✅ Health status
"""

from pathlib import Path

import pytest

from studyforge.exceptions import (
    AllModelsUnavailable,
    AuthenticationError,
    ConfigurationError,
    NetworkError,
    ProviderServerError,
    RateLimitedError,
)
from studyforge.schemas.generation import AdvancedOptions, Flashcard, QuizQuestion

NOTES = "Mitochondria are the powerhouse of the cell and produce ATP through respiration."


class TestSummaryRoutes:
    @pytest.mark.asyncio
    async def test_generate_summary(self, test_client, mock_generation_service):
        response = await test_client.post("/api/summaries/generate", json={
            "content": NOTES,
            "summary_type": "exam_focus",
            "summary_length": "brief",
            "advanced_options": {"include_examples": True, "focus_areas": ["ATP"]},
        })

        assert response.status_code == 200
        assert response.json() == {
            "summary": "A short summary.",
            "summary_type": "exam_focus",
            "summary_length": "brief",
        }
        call = mock_generation_service.generate_summary.call_args
        assert call.args == (NOTES,)
        assert call.kwargs["advanced_options"] == AdvancedOptions(
            include_examples=True, focus_areas=["ATP"],
        )
        assert call.kwargs["provider"] is None

    @pytest.mark.asyncio
    async def test_empty_content_rejected(self, test_client, mock_generation_service):
        response = await test_client.post("/api/summaries/generate", json={"content": ""})

        assert response.status_code == 422
        mock_generation_service.generate_summary.assert_not_called()

    @pytest.mark.asyncio
    async def test_generate_from_document(self, test_client, mock_generation_service, temp_storage):
        response = await test_client.post(
            "/api/summaries/generate-document",
            files={"file": ("notes.txt", NOTES.encode(), "text/plain")},
            data={
                "summary_type": "structured",
                "focus_areas": "ATP, respiration , ",
                "include_diagrams": "true",
                "provider": "groq",
            },
        )

        assert response.status_code == 200
        assert response.json()["summary"] == "A document summary."
        call = mock_generation_service.generate_summary_from_document.call_args
        path, mime_type = call.args
        assert mime_type == "text/plain"
        assert call.kwargs["summary_type"] == "structured"
        assert call.kwargs["advanced_options"].focus_areas == ["ATP", "respiration"]
        assert call.kwargs["advanced_options"].include_diagrams is True
        assert call.kwargs["provider"] == "groq"
        assert list((Path(temp_storage) / "staging").iterdir()) == []

    @pytest.mark.asyncio
    async def test_document_unsupported_type(self, test_client, mock_generation_service):
        response = await test_client.post(
            "/api/summaries/generate-document",
            files={"file": ("essay.docx", b"PK\x03\x04", "application/octet-stream")},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert "not supported" in body["message"]
        mock_generation_service.generate_summary_from_document.assert_not_called()

    @pytest.mark.asyncio
    async def test_document_failure_cleans_up(self, test_client, mock_generation_service, temp_storage):
        mock_generation_service.generate_summary_from_document.side_effect = AllModelsUnavailable()

        response = await test_client.post(
            "/api/summaries/generate-document",
            files={"file": ("notes.md", NOTES.encode(), "text/markdown")},
        )

        assert response.status_code == 500
        assert response.json()["error"] == "AllModelsUnavailable"
        assert list((Path(temp_storage) / "staging").iterdir()) == []


class TestFlashcardAndQuizRoutes:
    @pytest.mark.asyncio
    async def test_generate_flashcards(self, test_client, mock_generation_service):
        mock_generation_service.generate_flashcards_from_content.return_value = [
            Flashcard(question="What produces ATP?", answer="Mitochondria"),
        ]

        response = await test_client.post("/api/flashcards/generate", json={
            "content": NOTES,
            "options": {"max_cards": 3, "subject": "Biology"},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["flashcards"][0]["answer"] == "Mitochondria"
        options = mock_generation_service.generate_flashcards_from_content.call_args.args[1]
        assert options.max_cards == 3
        assert options.subject == "Biology"

    @pytest.mark.asyncio
    async def test_flashcard_count_bounds(self, test_client):
        response = await test_client.post("/api/flashcards/generate", json={
            "content": NOTES,
            "options": {"max_cards": 500},
        })
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_generate_quiz(self, test_client, mock_generation_service):
        mock_generation_service.generate_quiz_questions_from_content.return_value = [
            QuizQuestion(
                question="What do mitochondria produce?",
                options=["ATP", "DNA"],
                correct_answer=0,
            ),
        ]

        response = await test_client.post("/api/quiz/generate", json={"content": NOTES})

        assert response.status_code == 200
        question = response.json()["questions"][0]
        assert question["correct_answer"] == 0
        assert question["points"] == 10


class TestExtractRoute:
    @pytest.mark.asyncio
    async def test_extract_image(self, test_client, mock_generation_service, sample_image_bytes):
        response = await test_client.post(
            "/api/extract/image",
            files={"file": ("board.jpg", sample_image_bytes, "image/jpeg")},
        )

        assert response.status_code == 200
        assert response.json() == {"text": "Extracted text", "characters": 14}
        staged_path = mock_generation_service.extract_text_from_image.call_args.args[0]
        assert staged_path.endswith(".jpg")

    @pytest.mark.asyncio
    async def test_pdf_rejected(self, test_client, sample_pdf_bytes):
        response = await test_client.post(
            "/api/extract/image",
            files={"file": ("notes.pdf", sample_pdf_bytes, "application/pdf")},
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_upload(self, test_client):
        response = await test_client.post(
            "/api/extract/image",
            files={"file": ("blank.png", b"", "image/png")},
        )
        assert response.status_code == 400
        assert "empty" in response.json()["message"]


class TestErrorMapping:
    """ClassifiedError subclasses are rendered by a single handler."""

    @pytest.mark.parametrize("error,status", [
        (ConfigurationError(), 500),
        (AuthenticationError(), 401),
        (RateLimitedError(), 429),
        (ProviderServerError(), 502),
        (NetworkError(), 503),
        (AllModelsUnavailable(), 500),
    ])
    @pytest.mark.asyncio
    async def test_status_codes(self, test_client, mock_generation_service, error, status):
        mock_generation_service.generate_summary.side_effect = error

        response = await test_client.post("/api/summaries/generate", json={"content": NOTES})

        assert response.status_code == status
        body = response.json()
        assert body["error"] == error.kind.value
        assert body["message"] == error.message
        assert body["remediation"] == error.remediation

    @pytest.mark.asyncio
    async def test_retry_after_header(self, test_client, mock_generation_service):
        mock_generation_service.generate_summary.side_effect = RateLimitedError(retry_after=30)

        response = await test_client.post("/api/summaries/generate", json={"content": NOTES})

        assert response.headers["Retry-After"] == "30"

    @pytest.mark.asyncio
    async def test_cause_not_leaked(self, test_client, mock_generation_service):
        mock_generation_service.generate_summary.side_effect = AuthenticationError(
            cause=RuntimeError("API key AIzaSecret123 not valid"),
        )

        response = await test_client.post("/api/summaries/generate", json={"content": NOTES})

        assert "AIzaSecret123" not in response.text

    @pytest.mark.asyncio
    async def test_request_id_in_error_body(self, test_client, mock_generation_service):
        mock_generation_service.generate_summary.side_effect = NetworkError()

        response = await test_client.post(
            "/api/summaries/generate",
            json={"content": NOTES},
            headers={"X-Request-ID": "abc12345"},
        )

        assert response.headers["X-Request-ID"] == "abc12345"
        assert response.json()["request_id"] == "abc12345"


class TestHealth:
    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["providers"]["gemini"] == "configured"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_degraded_without_default_key(self, test_client, mock_generation_service):
        mock_generation_service.provider_status.return_value = {
            "gemini": "not_configured", "groq": "configured", "openai": "configured",
        }

        response = await test_client.get("/health")

        assert response.json()["status"] == "degraded"
