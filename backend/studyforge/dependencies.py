"""
StudyForge Backend — Dependency Wiring
========================================

What:  Builds the service graph once and hands it to routes via FastAPI Depends.
How:   Cached factory functions. Tests replace them with
       app.dependency_overrides instead of patching module globals.

Service graph:
    Settings
    ├── build_providers() → ProviderOrchestrator
    ├── ModelCatalog
    ├── ContentExtractor(orchestrator, catalog)
    ├── StudyGenerationService(orchestrator, catalog, extractor)
    └── FileService(storage_root, max_file_size)
"""

from functools import lru_cache

from studyforge.config import Settings, settings
from studyforge.services.content_extractor import ContentExtractor
from studyforge.services.file_service import FileService
from studyforge.services.generation_service import StudyGenerationService
from studyforge.services.model_catalog import ModelCatalog
from studyforge.services.orchestrator import ProviderOrchestrator, build_providers


def get_settings() -> Settings:
    return settings


def build_generation_service(config: Settings) -> StudyGenerationService:
    """Assemble the generation core for a given configuration."""
    orchestrator = ProviderOrchestrator(
        build_providers(config),
        deadline_seconds=config.generation_deadline_seconds,
    )
    catalog = ModelCatalog(config)
    extractor = ContentExtractor(orchestrator, catalog, config)
    return StudyGenerationService(orchestrator, catalog, extractor, config)


@lru_cache(maxsize=1)
def get_generation_service() -> StudyGenerationService:
    return build_generation_service(get_settings())


@lru_cache(maxsize=1)
def get_file_service() -> FileService:
    config = get_settings()
    return FileService(config.storage_root, config.max_file_size)
