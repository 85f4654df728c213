"""Pytest fixtures for testing"""

import pytest
from typing import Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from credit_engine.api.main import create_app
from credit_engine.infrastructure.cache import LatestResultCache
from credit_engine.infrastructure.clients.bureau import StaticBureauGateway
from credit_engine.infrastructure.database.models import Base
from credit_engine.infrastructure.database.repositories import EvaluationRepository
from credit_engine.infrastructure.database.session import get_db
from credit_engine.domain.models import BureauSnapshot
from credit_engine.services.evaluation import DecisionOrchestrator
from tests.factories import BLACKLISTED_DOCUMENT, FAILING_DOCUMENT, GOOD_DOCUMENT, FakeClock, clean_snapshot


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def bureau() -> StaticBureauGateway:
    """Deterministic bureau: one clean file, one blacklisted file, one outage"""
    return StaticBureauGateway(
        snapshots={
            GOOD_DOCUMENT: clean_snapshot(),
            BLACKLISTED_DOCUMENT: BureauSnapshot(
                blacklisted=True, historical_score=780, active_credits=0, recent_delinquency=False
            ),
        },
        failing={FAILING_DOCUMENT},
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> LatestResultCache:
    return LatestResultCache(ttl_seconds=300, clock=clock)


@pytest.fixture
def store(db: Session) -> EvaluationRepository:
    return EvaluationRepository(db)


@pytest.fixture
def orchestrator(
    bureau: StaticBureauGateway, store: EvaluationRepository, cache: LatestResultCache, clock: FakeClock
) -> DecisionOrchestrator:
    return DecisionOrchestrator(bureau=bureau, store=store, cache=cache, clock=clock)


@pytest.fixture
def client(db: Session, bureau: StaticBureauGateway, cache: LatestResultCache) -> TestClient:
    """Create FastAPI test client with test database and deterministic bureau"""
    app = create_app(bureau=bureau, cache=cache)

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)
