import io
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")

from typing import List

import pytest
from docx import Document
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from article_analyzer.agents.article_extractor import ArticleExtractorAgent
from article_analyzer.api.dependencies import get_background_service
from article_analyzer.config import settings
from article_analyzer.main import app
from article_analyzer.models.database import get_db, init_db
from article_analyzer.models.schemas import AnalysisResult
from article_analyzer.services import auth_service
from article_analyzer.services.background_tasks import BackgroundTaskService, DatabaseArticleLogSink


@pytest.fixture(autouse=True)
def fast_password_hashing(monkeypatch):
    monkeypatch.setattr(auth_service, "BCRYPT_ROUNDS", 4)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def client(tmp_path, monkeypatch, session_factory):
    monkeypatch.setattr(settings, "storage_path", str(tmp_path))

    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_background_service] = lambda: BackgroundTaskService(
        DatabaseArticleLogSink(session_factory)
    )

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers(client):
    response = client.post(
        "/signup",
        json={"email": "Reader@Example.com", "password": "correct-horse"},
    )
    assert response.status_code == 201
    token = response.json()["session"]["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def provider_calls(monkeypatch) -> List[str]:
    """Stub the language model; records every article text it receives."""
    calls: List[str] = []

    async def _fake(self: ArticleExtractorAgent, document_text: str) -> AnalysisResult:
        calls.append(document_text)
        return AnalysisResult(
            article_summary=["Leaders met in Paris.", "Los líderes se reunieron en París."],
            nationalities=["France", "Germany", "France"],
            organizations=["European Union"],
            people=["Emmanuel Macron"],
        )

    monkeypatch.setattr(ArticleExtractorAgent, "process", _fake)
    return calls


@pytest.fixture()
def make_docx():
    def _make(*paragraphs: str) -> bytes:
        document = Document()
        for paragraph in paragraphs:
            document.add_paragraph(paragraph)
        buffer = io.BytesIO()
        document.save(buffer)
        return buffer.getvalue()

    return _make
