from __future__ import annotations

import os
import threading
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time; pin them before the app is imported.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["MAIL_BACKEND"] = "log"
os.environ.setdefault("JWT_SECRET", "test_jwt_secret_32_chars_minimum")
os.environ.setdefault("REFRESH_TOKEN_PEPPER", "test_refresh_pepper")
os.environ.setdefault("ACCESS_TOKEN_TTL_SECONDS", "900")
os.environ.setdefault("REFRESH_TOKEN_TTL_DAYS", "30")
os.environ.setdefault("ENV", "local")

from eventease.core.clock import get_clock  # noqa: E402
from eventease.db import SessionLocal, engine  # noqa: E402
from eventease.mail import get_mailer  # noqa: E402
from eventease.mail.base import Mailer, OutgoingEmail  # noqa: E402
from eventease.main import app  # noqa: E402
from eventease.models import Base  # noqa: E402

NOW = datetime(2030, 6, 1, 8, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = NOW) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now

    def set(self, now: datetime) -> None:
        self._now = now

    def advance(self, **kwargs) -> None:
        self._now = self._now + timedelta(**kwargs)


class FakeMailer(Mailer):
    """Records every accepted email; can be told to refuse the next N sends."""

    def __init__(self) -> None:
        self.sent: list[OutgoingEmail] = []
        self.attempts = 0
        self.failures_left = 0
        self.always_fail = False
        self._lock = threading.Lock()

    def send(self, to: str, subject: str, html_body: str) -> bool:
        with self._lock:
            self.attempts += 1
            if self.always_fail or self.failures_left > 0:
                self.failures_left = max(0, self.failures_left - 1)
                return False
            self.sent.append(OutgoingEmail(to=to, subject=subject, html_body=html_body))
            return True

    def sent_to(self, email: str) -> list[OutgoingEmail]:
        return [m for m in self.sent if m.to == email]


@pytest.fixture(autouse=True)
def clean_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def client(clock: FixedClock, mailer: FakeMailer) -> TestClient:
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
