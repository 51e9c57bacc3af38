# tests/conftest.py
from threading import Event, Lock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.exceptions import RateUnavailableError
from core.interfaces import ConversionRateService
from infra.config import Settings
from infra.db.base import Base
from infra.services import build_service_graph


class FakeRateService(ConversionRateService):
    """Rates keyed by (from, to); unknown pairs raise RateUnavailableError.

    When ``gate`` is set, every lookup blocks until the test releases it.
    """

    def __init__(self, rates=None, *, gate: Event | None = None):
        self.rates = dict(rates or {})
        self.gate = gate
        self.calls: list[tuple[str, str]] = []
        self._lock = Lock()

    def get_rate(self, from_currency, to_currency):
        with self._lock:
            self.calls.append((from_currency, to_currency))
        if self.gate is not None:
            self.gate.wait(timeout=5)
        try:
            return self.rates[(from_currency, to_currency)]
        except KeyError:
            raise RateUnavailableError(
                f"No rate for {from_currency}->{to_currency}", code="RATE_NOT_STORED"
            ) from None


@pytest.fixture
def rate_service():
    return FakeRateService(
        {
            ("USD", "INR"): 80.0,
            ("EUR", "INR"): 90.0,
            ("INR", "USD"): 1 / 80.0,
            ("EUR", "USD"): 1.125,
        }
    )


@pytest.fixture
def session():
    # separate in-memory DB for tests; shared across threads for rate-triggered refreshes
    engine = create_engine(
        "sqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings():
    return Settings(db_url="sqlite:///:memory:", display_currency="INR")


@pytest.fixture
def services(session, settings, rate_service):
    return build_service_graph(session, settings, rate_service=rate_service).as_dict()


@pytest.fixture
def make_rate_service():
    return FakeRateService
