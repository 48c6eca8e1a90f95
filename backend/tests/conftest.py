"""
StudyForge Backend — Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment overrides first (before any studyforge import), then
       fixtures for settings, fake providers, services and the HTTP client.

Fixture Hierarchy:
    Function-scoped:
    ├── test_settings: Settings with fake keys and a temp storage root
    ├── fake_provider_factory: Builds scripted LLMProvider doubles
    ├── mock_orchestrator: AsyncMock orchestrator returning a canned response
    ├── generation_service: StudyGenerationService on top of mock_orchestrator
    ├── temp_storage: Temporary directory for file operations
    ├── sample_image_bytes / sample_pdf_bytes: Upload payloads
    ├── mock_generation_service: AsyncMock service for route tests
    └── test_client: HTTPX AsyncClient with dependency overrides

No test talks to a real provider.
"""

import os
import tempfile

# Override settings for testing BEFORE any studyforge import
os.environ["GEMINI_API_KEY"] = "AIzaTestKeyNotReal"
os.environ["GROQ_API_KEY"] = "gsk_test_key_not_real"
os.environ["OPENAI_API_KEY"] = "sk-test-key-not-real"
os.environ["STORAGE_ROOT"] = tempfile.mkdtemp(prefix="studyforge_test_")
os.environ["LOG_LEVEL"] = "WARNING"

from typing import List, Sequence, Union  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from studyforge.config import Settings  # noqa: E402
from studyforge.schemas.generation import PromptPayload, ProviderResponse  # noqa: E402
from studyforge.services.content_extractor import ContentExtractor  # noqa: E402
from studyforge.services.file_service import FileService  # noqa: E402
from studyforge.services.generation_service import StudyGenerationService  # noqa: E402
from studyforge.services.llm_base import LLMProvider  # noqa: E402
from studyforge.services.model_catalog import ModelCatalog  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeProvider(LLMProvider):
    """
    Scripted provider: each generate() call consumes the next outcome.

    An outcome is either the text to answer with or an exception to raise.
    Calls are recorded as (model_name, payload) tuples.
    """

    name = "fake"
    display_name = "Fake"
    key_env_var = "FAKE_API_KEY"
    key_prefix = "fk-"
    key_url = "https://example.invalid/keys"

    def __init__(self, outcomes: Sequence[Union[str, BaseException]], api_key: str = "fk-valid"):
        super().__init__(api_key)
        self._outcomes = list(outcomes)
        self.calls: List[tuple] = []

    def _build_client(self):
        return object()

    async def generate(self, model_name: str, payload: PromptPayload) -> ProviderResponse:
        _ = self.client
        self.calls.append((model_name, payload))
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return ProviderResponse(raw_text=outcome, model_used=model_name, tokens_used=42)

    @property
    def models_called(self) -> List[str]:
        return [model for model, _ in self.calls]


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def test_settings(temp_storage):
    """Settings with valid-looking keys, short model lists and temp storage."""
    return Settings(
        gemini_api_key="AIzaTestKeyNotReal",
        groq_api_key="gsk_test_key_not_real",
        openai_api_key="sk-test-key-not-real",
        gemini_models=["gemini-a", "gemini-b", "gemini-c"],
        gemini_vision_models=["gemini-vision"],
        storage_root=temp_storage,
    )


@pytest.fixture
def fake_provider_factory():
    """
    Usage:
        provider = fake_provider_factory(["answer"])
        provider = fake_provider_factory([RuntimeError("model not found"), "answer"])
    """
    def _make(outcomes, api_key: str = "fk-valid") -> FakeProvider:
        return FakeProvider(outcomes, api_key=api_key)
    return _make


@pytest.fixture
def mock_orchestrator():
    """AsyncMock orchestrator; set invoke.return_value / side_effect per test."""
    orchestrator = MagicMock()
    orchestrator.invoke = AsyncMock(
        return_value=ProviderResponse(raw_text="Generated text", model_used="gemini-a")
    )
    orchestrator.providers = {}
    return orchestrator


@pytest.fixture
def generation_service(mock_orchestrator, test_settings):
    catalog = ModelCatalog(test_settings)
    extractor = ContentExtractor(mock_orchestrator, catalog, test_settings)
    return StudyGenerationService(mock_orchestrator, catalog, extractor, test_settings)


@pytest.fixture
def sample_image_bytes():
    """Smallest valid JPEG: SOI + JFIF header + EOI. Never sent anywhere real."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


@pytest.fixture
def sample_pdf_bytes():
    """A one-page PDF whose page draws the text 'Photosynthesis converts light'."""
    stream = b"BT /F1 12 Tf 72 712 Td (Photosynthesis converts light) Tj ET"
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Contents 4 0 R /Resources << /Font << /F1 5 0 R >> >> >>",
        b"<< /Length " + str(len(stream)).encode() + b" >>\nstream\n" + stream + b"\nendstream",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    out = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(out))
        out += str(number).encode() + b" 0 obj\n" + body + b"\nendobj\n"
    xref_at = len(out)
    out += b"xref\n0 " + str(len(objects) + 1).encode() + b"\n0000000000 65535 f \n"
    for offset in offsets:
        out += ("%010d 00000 n \n" % offset).encode()
    out += (
        b"trailer\n<< /Size " + str(len(objects) + 1).encode() + b" /Root 1 0 R >>\n"
        b"startxref\n" + str(xref_at).encode() + b"\n%%EOF\n"
    )
    return out


@pytest.fixture
def mock_generation_service():
    """Route-level double: every operation is an AsyncMock."""
    service = MagicMock(spec=StudyGenerationService)
    service.generate_summary = AsyncMock(return_value="A short summary.")
    service.generate_summary_from_document = AsyncMock(return_value="A document summary.")
    service.generate_flashcards_from_content = AsyncMock(return_value=[])
    service.generate_quiz_questions_from_content = AsyncMock(return_value=[])
    service.extract_text_from_image = AsyncMock(return_value="Extracted text")
    service.provider_status = MagicMock(
        return_value={"gemini": "configured", "groq": "configured", "openai": "configured"}
    )
    return service


@pytest_asyncio.fixture
async def test_client(mock_generation_service, temp_storage):
    """
    HTTPX AsyncClient against the real app, with the generation service and
    file service replaced through dependency overrides.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from studyforge.dependencies import get_file_service, get_generation_service
    from studyforge.main import app

    file_service = FileService(temp_storage, max_file_size=1_048_576)
    app.dependency_overrides[get_generation_service] = lambda: mock_generation_service
    app.dependency_overrides[get_file_service] = lambda: file_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
