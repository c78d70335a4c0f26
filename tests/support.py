"""Shared helpers for tests: in-memory store, fake email transport and clock."""

import re
from datetime import UTC, datetime, timedelta

from pydantic import SecretStr
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import Settings
from app.core.errors import EmailDeliveryError
from app.models import Base

TEST_SECRET = "test-secret-key-with-at-least-32-characters"

RESET_LINK_TOKEN = re.compile(r"reset-password\?token=([0-9a-f]+)")


def make_session_factory() -> sessionmaker:
    """Fresh in-memory SQLite database with the schema created; one shared connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": SecretStr(TEST_SECRET),
        "BCRYPT_ROUNDS": 10,
        "FRONTEND_URL": "http://localhost:3000",
        "APP_ENV": "dev",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeEmailSender:
    """Records messages instead of sending them; can be told to fail."""

    def __init__(self, configured: bool = True, fail: bool = False) -> None:
        self.configured = configured
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def send(self, to: str, subject: str, html_body: str) -> None:
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append((to, subject, html_body))

    def last_token(self) -> str:
        """Token embedded in the most recent reset link."""
        match = RESET_LINK_TOKEN.search(self.sent[-1][2])
        if match is None:
            raise AssertionError("no reset link in last email")
        return match.group(1)


class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)
