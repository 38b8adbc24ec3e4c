"""
Fixtures compartilhadas dos testes.
"""
import pytest
from unittest.mock import AsyncMock
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from pbi_wizard.database import get_db, init_db
from pbi_wizard.schemas.profile import AIInsights
from pbi_wizard.services.gemini import SuggestionService, get_suggestion_service
from pbi_wizard.services.pipeline import ProfilingPipeline, get_profiling_pipeline


@pytest.fixture
def session_factory():
    """Banco SQLite em memória compartilhado entre threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def suggestion_service():
    """Serviço de IA com todas as chamadas substituídas por mocks."""
    service = SuggestionService(api_key="test-key")
    service.get_insights = AsyncMock(return_value=AIInsights(
        suggested_kpis=["Receita total", "Ticket médio"],
        data_quality_summary="Poucos valores ausentes.",
    ))
    service.get_cleaning_suggestions = AsyncMock(return_value=[])
    service.get_relationship_suggestions = AsyncMock(return_value=[])
    service.get_dax_formula = AsyncMock()
    return service


@pytest.fixture
def client(session_factory, suggestion_service, tmp_path, monkeypatch):
    monkeypatch.setattr("pbi_wizard.routers.files.UPLOADS_DIR", tmp_path)

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_suggestion_service] = lambda: suggestion_service
    app.dependency_overrides[get_profiling_pipeline] = (
        lambda: ProfilingPipeline(session_factory, suggestion_service)
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
