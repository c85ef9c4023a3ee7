"""Unsubscribe workflow: initiate, confirm-view and confirm-commit legs."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from urllib.parse import urlencode

from unsubscribe_service.core.config import Settings
from unsubscribe_service.core.errors import (
    InvalidOrExpiredToken,
    NotificationDeliveryFailed,
    NotSubscribed,
    TemplateNotFound,
)
from unsubscribe_service.services.expiring_store import ExpiringStore
from unsubscribe_service.services.mailing_list import MailingList
from unsubscribe_service.services.notification_service import Notifier, build_notifiers
from unsubscribe_service.services.template_registry import TemplateRegistry
from unsubscribe_service.services.token_engine import TokenEngine
from unsubscribe_service.services.validation import validate_unsubscribe_request

logger = logging.getLogger(__name__)

CONFIRMATION_PROMPT = "Are you sure you want to unsubscribe {email}? Click here to confirm."


class UnsubscribeState(StrEnum):
    REQUESTED = "requested"
    CONFIRM_PENDING = "confirm_pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class InitiateResult:
    token: str
    redirect_url: str
    state: UnsubscribeState = UnsubscribeState.CONFIRM_PENDING


@dataclass(frozen=True, slots=True)
class ConfirmViewResult:
    email: str
    prompt: str
    state: UnsubscribeState = UnsubscribeState.CONFIRM_PENDING


@dataclass(frozen=True, slots=True)
class CommitResult:
    email: str
    redirect_url: str
    state: UnsubscribeState = UnsubscribeState.CONFIRMED


class UnsubscribeWorkflow:
    """Orchestrates the three legs of an unsubscribe.

    The store and mailing list are shared by every in-flight request and are
    handed in by reference. Only ``confirm_commit`` mutates the list.
    """

    def __init__(
        self,
        store: ExpiringStore,
        mailing_list: MailingList,
        templates: TemplateRegistry,
        token_engine: TokenEngine,
        notifiers: Sequence[Notifier],
        *,
        cache_key_prefix: str = "unsubscribe_",
        token_ttl: timedelta = timedelta(minutes=30),
        max_link_age: timedelta = timedelta(hours=48),
        confirmation_url: str = "https://myservice-x.net/unsubscribe",
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.store = store
        self.mailing_list = mailing_list
        self.templates = templates
        self.token_engine = token_engine
        self.notifiers = list(notifiers)
        self.cache_key_prefix = cache_key_prefix
        self.token_ttl = token_ttl
        self.max_link_age = max_link_age
        self.confirmation_url = confirmation_url
        self._now = now

    def token_key(self, token: str) -> str:
        return f"{self.cache_key_prefix}{token}"

    def _redirect(self, **params: str) -> str:
        return f"{self.confirmation_url}?{urlencode(params)}"

    def initiate(self, email: str | None, template_id: str | None, timestamp: str | None) -> InitiateResult:
        """Validate a link click and issue a confirmation token.

        Read-only with respect to the mailing list.
        """
        valid_email = validate_unsubscribe_request(
            email,
            timestamp,
            self.mailing_list.snapshot(),
            now=self._now(),
            max_age=self.max_link_age,
        )
        if not self.templates.contains(template_id):
            raise TemplateNotFound()

        token = self.token_engine.mint(valid_email)
        self.store.set(self.token_key(token), valid_email, self.token_ttl)
        logger.info("Unsubscribe token issued for %s", valid_email)
        return InitiateResult(token=token, redirect_url=self._redirect(token=token))

    def confirm_view(self, token: str | None) -> ConfirmViewResult:
        """Resolve a token to its email without consuming it or extending its TTL."""
        if not token:
            raise InvalidOrExpiredToken()
        email = self.store.get(self.token_key(token), str)
        if email is None:
            raise InvalidOrExpiredToken()
        return ConfirmViewResult(email=email, prompt=CONFIRMATION_PROMPT.format(email=email))

    def render_confirmation(self, token: str, email: str, template_id: str | None) -> str:
        template = self.templates.get_or_default(template_id)
        return self.templates.render(template, token, email)

    async def confirm_commit(self, token: str | None) -> CommitResult:
        """Consume the token, remove the email and notify collaborators.

        The token is taken out of the store before anything else, so a token
        is spent even when a later step fails and racing commits on the same
        token see it only once. Notification failures are reported after the
        removal; the removal is not rolled back.
        """
        if not token:
            raise InvalidOrExpiredToken()
        email = self.store.pop(self.token_key(token), str)
        if email is None:
            raise InvalidOrExpiredToken()

        if not self.mailing_list.remove(email):
            logger.warning("Token redeemed for %s but the address is no longer subscribed", email)
            raise NotSubscribed()
        logger.info("Unsubscribe confirmed for %s", email)

        await self._dispatch_notifications(email)
        return CommitResult(
            email=email,
            redirect_url=self._redirect(token=token, success="true"),
        )

    async def _dispatch_notifications(self, email: str) -> None:
        failures: list[str] = []
        for notifier in self.notifiers:
            try:
                await notifier.notify(email)
            except NotificationDeliveryFailed as exc:
                failures.append(exc.message)
        if failures:
            raise NotificationDeliveryFailed(" ".join(failures))


def build_workflow(settings: Settings) -> UnsubscribeWorkflow:
    """Construct the workflow and its shared store/list once, at startup."""
    return UnsubscribeWorkflow(
        store=ExpiringStore(),
        mailing_list=MailingList(settings.mailing_list),
        templates=TemplateRegistry(settings.templates, settings.default_template),
        token_engine=TokenEngine(),
        notifiers=build_notifiers(settings),
        cache_key_prefix=settings.unsubscribe_cache_key_prefix,
        token_ttl=timedelta(seconds=settings.token_ttl_seconds),
        max_link_age=timedelta(hours=settings.link_max_age_hours),
        confirmation_url=settings.confirmation_url,
    )
