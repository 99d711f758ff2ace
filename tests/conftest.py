"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date, timedelta
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from dealer_backoffice.api.main import create_app
from dealer_backoffice.infrastructure.database.models import Base
from dealer_backoffice.infrastructure.database.session import get_db
from dealer_backoffice.domain.models import DailyRecord, DelinquencyRecord


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Wednesday; its week starts Monday 2024-03-04
TODAY = date(2024, 3, 6)


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
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def sample_payments() -> List[DailyRecord]:
    """Monday-Saturday collections for four weeks ending today, $1000/day + $50 late fees"""
    start = TODAY - timedelta(days=23)  # Monday 2024-02-12
    records = []
    day = start
    while day <= TODAY:
        if day.weekday() < 6:  # Closed Sundays
            records.append(DailyRecord(date=day, payments=1000.0, late_fees=50.0, boa_portion=300.0))
        day += timedelta(days=1)
    return records


@pytest.fixture
def sample_delinquency() -> List[DelinquencyRecord]:
    """Daily account counts over the same four weeks; 200 open, 20 overdue"""
    start = TODAY - timedelta(days=23)
    return [
        DelinquencyRecord(date=start + timedelta(days=i), open_accounts=200.0, overdue_accounts=20.0)
        for i in range(24)
    ]
