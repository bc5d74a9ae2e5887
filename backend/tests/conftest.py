"""Pytest fixtures for quotematch.

Provides reusable test fixtures for:
- A fresh SQLite database file per test (TEST_DATABASE_URL overrides it)
- Two tenants with a small fastener catalog
- Fake embedding providers (working, failing, slow)
- A FastAPI TestClient bound to the test session

Usage:
    def test_match(matching_service, org_a, fastener_catalog):
        candidates = matching_service.match(org_a, "hx hd cap scr")
        assert candidates
"""

import os
import sys
import time
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["OPENAI_API_KEY"] = ""
os.environ.setdefault("LOG_JSON", "false")

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from typing import Dict, Generator, List, Optional
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from quotematch.config import Settings
from quotematch.database import build_engine, get_db as database_get_db
from quotematch.domain.ai.ports import (
    EmbeddingProviderPort,
    EmbeddingResult,
    EmbeddingServiceError,
)
from quotematch.matching.service import MatchingService
from quotematch.models import Base, CatalogAlias, CatalogEntry


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """Engine for a fresh database; tables created before and dropped after the test."""
    url = os.environ.get("TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'quotematch.db'}"
    engine = build_engine(url, busy_timeout=30.0)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with a small embedding dimension and a short embedding timeout."""
    return Settings(
        DATABASE_URL="sqlite:///:memory:",
        OPENAI_API_KEY=None,
        EMBEDDING_DIMENSION=3,
        EMBEDDING_TIMEOUT_SECONDS=0.5,
    )


@pytest.fixture
def org_a() -> UUID:
    return uuid4()


@pytest.fixture
def org_b() -> UUID:
    return uuid4()


@pytest.fixture
def reviewer() -> UUID:
    return uuid4()


def make_entry(
    db: Session,
    org_id: UUID,
    sku: str,
    name: str,
    embedding: Optional[List[float]] = None,
    active: bool = True,
) -> CatalogEntry:
    """Add a catalog entry and commit."""
    entry = CatalogEntry(org_id=org_id, sku=sku, name=name, embedding=embedding, active=active)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def make_alias(db: Session, entry: CatalogEntry, alias_text: str, alias_norm: Optional[str] = None) -> CatalogAlias:
    """Add a manual alias for an entry and commit."""
    from quotematch.matching.normalizer import normalize_text

    alias = CatalogAlias(
        org_id=entry.org_id,
        catalog_entry_id=entry.id,
        alias_text=alias_text,
        alias_norm=alias_norm if alias_norm is not None else normalize_text(alias_text),
        source="MANUAL",
    )
    db.add(alias)
    db.commit()
    db.refresh(alias)
    return alias


@pytest.fixture
def fastener_catalog(db_session: Session, org_a: UUID, org_b: UUID) -> Dict[str, CatalogEntry]:
    """Small fastener catalog for org A, plus one look-alike entry for org B.

    Embeddings are 3-dimensional so FakeEmbeddingProvider can steer the
    semantic signal.
    """
    return {
        "gr8": make_entry(
            db_session, org_a, "HX-GR8-516-18-212",
            "Grade 8 Hex Head Cap Screw 5/16-18 x 2-1/2", embedding=[1.0, 0.0, 0.0],
        ),
        "gr5": make_entry(
            db_session, org_a, "HX-GR5-516-18-212",
            "Grade 5 Hex Head Cap Screw 5/16-18 x 2-1/2", embedding=[0.8, 0.6, 0.0],
        ),
        "washer": make_entry(
            db_session, org_a, "WSH-FL-516-ZP",
            "Flat Washer 5/16 Zinc Plated", embedding=[0.0, 1.0, 0.0],
        ),
        "nut": make_entry(
            db_session, org_a, "SS-NUT-38-16",
            "Stainless Steel Hex Nut 3/8-16", embedding=[0.0, 0.0, 1.0],
        ),
        "socket": make_entry(
            db_session, org_a, "SOC-CAP-14-20-1",
            "Socket Head Cap Screw 1/4-20 x 1",
        ),
        "retired": make_entry(
            db_session, org_a, "HX-GR8-516-18-212-OLD",
            "Grade 8 Hex Head Cap Screw 5/16-18 x 2-1/2 (retired)", active=False,
        ),
        "other_org": make_entry(
            db_session, org_b, "HX-GR8-516-18-212",
            "Grade 8 Hex Head Cap Screw 5/16-18 x 2-1/2", embedding=[1.0, 0.0, 0.0],
        ),
    }


class FakeEmbeddingProvider(EmbeddingProviderPort):
    """Returns canned vectors; unknown text gets the default vector."""

    def __init__(self, vectors: Optional[Dict[str, List[float]]] = None, default: Optional[List[float]] = None):
        self.vectors = vectors or {}
        self.default = default if default is not None else [1.0, 0.0, 0.0]
        self.calls: List[str] = []

    def embed_text(self, text: str, model: str = "text-embedding-3-small") -> EmbeddingResult:
        self.calls.append(text)
        vector = self.vectors.get(text, self.default)
        return EmbeddingResult(embedding=vector, model=model, dimension=len(vector))


class FailingEmbeddingProvider(EmbeddingProviderPort):
    """Always fails like an unavailable provider."""

    def embed_text(self, text: str, model: str = "text-embedding-3-small") -> EmbeddingResult:
        raise EmbeddingServiceError("provider unavailable")


class SlowEmbeddingProvider(EmbeddingProviderPort):
    """Answers only after the configured delay."""

    def __init__(self, delay_seconds: float = 2.0):
        self.delay_seconds = delay_seconds

    def embed_text(self, text: str, model: str = "text-embedding-3-small") -> EmbeddingResult:
        time.sleep(self.delay_seconds)
        return EmbeddingResult(embedding=[1.0, 0.0, 0.0], model=model, dimension=3)


@pytest.fixture
def matching_service(db_session: Session, test_settings: Settings) -> MatchingService:
    """MatchingService without an embedding provider."""
    return MatchingService(db_session, embedding_provider=None, settings=test_settings)


@pytest.fixture(scope="function")
def client(db_session: Session):
    """Create a test client bound to the test database session."""
    from quotematch.main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def entry_factory(db_session: Session):
    """Callable adding catalog entries: entry_factory(org_id, sku, name, embedding=None, active=True)."""
    def _make(org_id: UUID, sku: str, name: str, embedding=None, active: bool = True) -> CatalogEntry:
        return make_entry(db_session, org_id, sku, name, embedding=embedding, active=active)
    return _make


@pytest.fixture
def alias_factory(db_session: Session):
    """Callable adding aliases: alias_factory(entry, alias_text)."""
    def _make(entry: CatalogEntry, alias_text: str) -> CatalogAlias:
        return make_alias(db_session, entry, alias_text)
    return _make


@pytest.fixture
def fake_embedding_provider() -> FakeEmbeddingProvider:
    return FakeEmbeddingProvider()


@pytest.fixture
def failing_embedding_provider() -> FailingEmbeddingProvider:
    return FailingEmbeddingProvider()


@pytest.fixture
def slow_embedding_provider() -> SlowEmbeddingProvider:
    return SlowEmbeddingProvider(delay_seconds=2.0)
