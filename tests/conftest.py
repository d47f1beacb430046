from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from app.api.errors import EmailDeliveryError
from app.core.config import get_settings
from app.main import create_app
from app.models.limits import UserLimitsOverride
from app.services.limits import save_limits
from app.services.mailer import EmailClient
from app.storage.database import create_db_engine, create_session_factory, init_db

OWNER = {"X-User-Id": "user-1", "X-User-Email": "owner@example.com"}
OTHER = {"X-User-Id": "user-2", "X-User-Email": "someone@example.com"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Email": "admin@example.com"}


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class StubEmailClient(EmailClient):
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, message):
        if self.fail:
            raise EmailDeliveryError("mailbox unavailable", details={"status_code": 422})
        self.sent.append(message)
        return f"msg-{len(self.sent)}"


@pytest.fixture
def settings_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'ledger.db'}")
    monkeypatch.setenv("SUPER_ADMIN_EMAILS", "Admin@Example.com")
    monkeypatch.setenv("EMAIL_FROM", "billing@ledger.test")
    monkeypatch.setenv("LOG_JSON", "false")
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.delenv("POSTMARK_API_TOKEN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def clock():
    return FrozenClock(datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def app(settings_env):
    return create_app()


@pytest.fixture
def client(app, clock):
    with TestClient(app) as test_client:
        app.state.clock = clock
        yield test_client


@pytest.fixture
def email_client(app, client):
    stub = StubEmailClient()
    app.state.email_client = stub
    return stub


@pytest.fixture
def upgrade(app, client):
    """Lift a user onto a bigger plan so tests are not capped by Free limits."""

    def _upgrade(uid: str = OWNER["X-User-Id"], plan: str = "Advanced") -> None:
        session = app.state.session_factory()
        try:
            save_limits(session, uid, UserLimitsOverride(plan=plan))
        finally:
            session.close()

    return _upgrade


@pytest.fixture
def session_factory(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'services.db'}")
    init_db(engine)
    yield create_session_factory(engine)
    engine.dispose()


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()
