"""Outbound unsubscribe notifications: webhook sink and mail relay."""

import logging
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Protocol

import aiosmtplib
import httpx

from unsubscribe_service.core.config import Settings
from unsubscribe_service.core.errors import NotificationDeliveryFailed

logger = logging.getLogger(__name__)

UNSUBSCRIBED_STATUS = "Unsubscribed"
CONFIRMATION_SUBJECT = "Unsubscription Confirmation"


class Notifier(Protocol):
    """Something told about a committed unsubscribe."""

    name: str

    async def notify(self, email: str) -> None: ...


class WebhookNotifier:
    """POSTs ``{"Email": ..., "Status": "Unsubscribed"}`` to the configured URL."""

    name = "webhook"

    def __init__(self, url: str, timeout: float = 15.0) -> None:
        self.url = url
        self.timeout = timeout

    async def notify(self, email: str) -> None:
        if not self.url:
            logger.warning("Webhook URL not configured, notification for %s skipped", email)
            return

        payload: dict[str, Any] = {"Email": email, "Status": UNSUBSCRIBED_STATUS}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
        except httpx.HTTPError as exc:
            logger.exception("Error sending webhook notification for %s", email)
            raise NotificationDeliveryFailed(
                f"An error occurred while sending the webhook notification: {exc}"
            ) from exc

        if not response.is_success:
            logger.error(
                "Webhook notification rejected: email=%s status=%s body=%s",
                email,
                response.status_code,
                response.text[:500],
            )
            raise NotificationDeliveryFailed(
                "Failed to send webhook notification. "
                f"Status Code: {response.status_code}, Reason: {response.reason_phrase}"
            )
        logger.info("Webhook notification sent for %s", email)


class MailNotifier:
    """Sends a plain-text confirmation to the unsubscribed address over SMTP."""

    name = "mail"

    def __init__(
        self,
        host: str,
        port: int,
        sender_name: str,
        sender_address: str,
        username: str = "",
        password: str = "",
        start_tls: bool | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.host = host
        self.port = port
        self.sender_name = sender_name
        self.sender_address = sender_address
        self.username = username
        self.password = password
        self.start_tls = start_tls
        self.timeout = timeout

    def build_message(self, email: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.sender_name, self.sender_address))
        message["To"] = formataddr(("User", email))
        message["Subject"] = CONFIRMATION_SUBJECT
        message.set_content(f"Hello,\n\nYou have successfully unsubscribed {email}.\n\n")
        return message

    async def notify(self, email: str) -> None:
        if not self.host:
            logger.warning("SMTP host not configured, confirmation mail to %s skipped", email)
            return

        message = self.build_message(email)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.start_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError) as exc:
            logger.exception("Error sending confirmation mail to %s", email)
            raise NotificationDeliveryFailed(
                f"Failed to send email notification: {exc}"
            ) from exc
        logger.info("Confirmation mail sent to %s", email)


def build_notifiers(settings: Settings) -> list[Notifier]:
    """Notifiers in dispatch order: webhook first, then mail."""
    return [
        WebhookNotifier(settings.webhook_url, timeout=settings.webhook_timeout_seconds),
        MailNotifier(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender_name=settings.mail_sender_name,
            sender_address=settings.mail_sender_address,
            username=settings.smtp_username,
            password=settings.smtp_password,
            start_tls=settings.smtp_start_tls,
            timeout=settings.smtp_timeout_seconds,
        ),
    ]
