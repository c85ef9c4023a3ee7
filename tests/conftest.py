"""Pytest configuration and fixtures for the unsubscribe service test suite.

Provides:
- Test settings with a known mailing list and manage credentials
- A controllable clock for the expiring store (token TTL tests)
- Recording fake notifiers in place of the webhook sink and mail relay
- A workflow wired from the above, and an app + async client around it
- Disabled admission control (enabled explicitly in its own tests)
"""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from unsubscribe_service.core.config import Settings
from unsubscribe_service.core.errors import NotificationDeliveryFailed
from unsubscribe_service.main import create_app
from unsubscribe_service.services.expiring_store import ExpiringStore
from unsubscribe_service.services.mailing_list import MailingList
from unsubscribe_service.services.template_registry import TemplateRegistry
from unsubscribe_service.services.token_engine import TokenEngine
from unsubscribe_service.services.unsubscribe_service import UnsubscribeWorkflow

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_USERNAME = "manage-user"
TEST_PASSWORD = "manage-pass"
TEMPLATE_ID = "11111111-1111-1111-1111-111111111111"
SUBSCRIBERS = ["jane.doe@gmail.com", "john.smith@gmail.com", "ada.lovelace@gmail.com"]
CONFIRMATION_URL = "https://myservice-x.net/unsubscribe"


def link_timestamp(age: timedelta = timedelta(minutes=5)) -> str:
    """ISO timestamp for a link issued ``age`` ago."""
    return (datetime.now(UTC) - age).isoformat()


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingNotifier:
    """Notifier that records every email and can be told to fail."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.sent: list[str] = []
        self.fail_with: str | None = None

    async def notify(self, email: str) -> None:
        if self.fail_with is not None:
            raise NotificationDeliveryFailed(self.fail_with)
        self.sent.append(email)


# ---------------------------------------------------------------------------
# Settings & workflow
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment's .env file."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        mailing_list=list(SUBSCRIBERS),
        manage_username=TEST_USERNAME,
        manage_password=TEST_PASSWORD,
        confirmation_url=CONFIRMATION_URL,
        webhook_url="https://hooks.example.test/unsubscribe",
        smtp_host="smtp.example.test",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> ExpiringStore:
    return ExpiringStore(clock=clock)


@pytest.fixture
def webhook() -> RecordingNotifier:
    return RecordingNotifier("webhook")


@pytest.fixture
def mailer() -> RecordingNotifier:
    return RecordingNotifier("mail")


@pytest.fixture
def workflow(
    settings: Settings,
    store: ExpiringStore,
    webhook: RecordingNotifier,
    mailer: RecordingNotifier,
) -> UnsubscribeWorkflow:
    return UnsubscribeWorkflow(
        store=store,
        mailing_list=MailingList(settings.mailing_list),
        templates=TemplateRegistry(settings.templates, settings.default_template),
        token_engine=TokenEngine(),
        notifiers=[webhook, mailer],
        cache_key_prefix=settings.unsubscribe_cache_key_prefix,
        token_ttl=timedelta(seconds=settings.token_ttl_seconds),
        max_link_age=timedelta(hours=settings.link_max_age_hours),
        confirmation_url=settings.confirmation_url,
    )


# ---------------------------------------------------------------------------
# App & clients
# ---------------------------------------------------------------------------


@pytest.fixture
def app(settings: Settings, workflow: UnsubscribeWorkflow) -> FastAPI:
    """App wired to the test workflow, with admission control switched off."""
    application = create_app(settings, workflow=workflow)
    application.state.limiter.enabled = False
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client sending valid basic-auth credentials."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        auth=(TEST_USERNAME, TEST_PASSWORD),
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def unauthed_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client without credentials."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
