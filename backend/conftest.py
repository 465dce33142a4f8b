"""Shared fixtures: in-memory database, stub reasoning service, API client."""
import json
import threading
import time
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import get_db, init_db
from main import app
from models import Transaction
from services.insight_cache import InsightCache
from services.insights import InsightService
from services.rate_limiter import RateLimiter
from services.reasoning import ReasoningClient

VALID_INSIGHTS = {
    "executiveSummary": "Income covers expenses overall, but rent drives a negative second week.",
    "keyDrivers": ["Rent"],
    "recommendations": [
        {"action": "Build a one-month rent buffer", "impact": "high", "effort": "medium", "timeframe": "3 months"},
        {"action": "Move rent payment after payday", "impact": "medium", "effort": "low", "timeframe": "1 month"},
        {"action": "Review recurring expenses", "impact": "medium", "effort": "low", "timeframe": "2 weeks"},
    ],
    "confidence": 0.8,
    "notes": ["Only two weeks of history are available."],
}

EXAMPLE_CSV = (
    "date,description,amount,type,category\n"
    "2025-01-06,Salary,1000,INCOME,Salary\n"
    "2025-01-08,Monthly rent,400,EXPENSE,Rent\n"
    "2025-01-13,Rent top-up,-200,expense,Rent\n"
)


def txn(day: str, amount: float, type_: str, category: str = "") -> Transaction:
    return Transaction(date=date.fromisoformat(day), amount=amount, type=type_, category=category)


class StubCompletion:
    """Stands in for ``llm_client.chat_completion`` and records every call."""

    def __init__(self, content: str = None, error: Exception = None, delay: float = 0.0):
        self.content = json.dumps(VALID_INSIGHTS) if content is None else content
        self.error = error
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, messages, **kwargs):
        with self._lock:
            self.calls.append({"messages": messages, "at": time.monotonic(), **kwargs})
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.content

    @property
    def count(self) -> int:
        return len(self.calls)


@pytest.fixture
def example_transactions():
    return [
        txn("2025-01-06", 1000, "INCOME", "Salary"),
        txn("2025-01-08", -400, "EXPENSE", "Rent"),
        txn("2025-01-13", -200, "EXPENSE", "Rent"),
    ]


@pytest.fixture
def stub():
    return StubCompletion()


@pytest.fixture
def insight_service(stub):
    client = ReasoningClient(RateLimiter(min_interval=0.0), completion=stub)
    return InsightService(client, InsightCache(ttl_seconds=1800, max_entries=500))


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def client(db_session, insight_service):
    def override_get_db():
        yield db_session

    previous_service = app.state.insight_service
    app.dependency_overrides[get_db] = override_get_db
    app.state.insight_service = insight_service
    yield TestClient(app)
    app.dependency_overrides.clear()
    app.state.insight_service = previous_service
