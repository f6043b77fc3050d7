from __future__ import annotations

import asyncio
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol

from helpdesk.core.config import Settings
from helpdesk.domain.errors import NotifierError

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Notification:
    """Email ready to be handed to a notifier."""

    to: str
    subject: str
    html: str


class Notifier(Protocol):
    async def send(self, to_email: str, subject: str, body_html: str) -> None:
        ...


class SmtpNotifier:
    """Deliver emails through an SMTP relay configured in settings."""

    def __init__(self, settings: Settings, *, timeout: float = 10.0) -> None:
        self._settings = settings
        self._timeout = timeout

    async def send(self, to_email: str, subject: str, body_html: str) -> None:
        settings = self._settings
        if not settings.smtp_host or not settings.smtp_username or not settings.smtp_password:
            raise NotifierError("SMTP configuration is incomplete; set smtp_host, smtp_username and smtp_password")

        message = EmailMessage()
        message["From"] = settings.sender_address or settings.smtp_username
        message["To"] = to_email
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(body_html, subtype="html")

        try:
            await asyncio.to_thread(self._deliver, message)
        except (OSError, smtplib.SMTPException) as exc:
            raise NotifierError(f"Failed to send email to {to_email}: {exc}") from exc
        logger.info("Email sent to %s (%s)", to_email, subject)

    def _deliver(self, message: EmailMessage) -> None:
        settings = self._settings
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=self._timeout) as client:
            if settings.smtp_use_tls:
                client.starttls()
            client.login(settings.smtp_username, settings.smtp_password)
            client.send_message(message)


class LoggingNotifier:
    """Notifier used when no SMTP relay is configured; emails are only logged."""

    async def send(self, to_email: str, subject: str, body_html: str) -> None:
        logger.info("Email delivery disabled; would send '%s' to %s", subject, to_email)


def build_notifier(settings: Settings) -> Notifier:
    if settings.smtp_host:
        return SmtpNotifier(settings)
    logger.warning("SMTP host not configured; notifications will only be logged")
    return LoggingNotifier()


class NotificationDispatcher:
    """Fire-and-forget delivery of notifications on detached tasks.

    Delivery failures are logged and never reach the operation that queued them.
    """

    def __init__(self, notifier: Notifier) -> None:
        self._notifier = notifier
        self._pending: set[asyncio.Task[None]] = set()

    def dispatch(self, notification: Notification) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._deliver(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def send_now(self, notification: Notification) -> bool:
        """Deliver inline and report success. Failures are logged, not raised."""

        try:
            await self._notifier.send(notification.to, notification.subject, notification.html)
        except Exception:
            logger.exception("Failed to send '%s' to %s", notification.subject, notification.to)
            return False
        return True

    async def drain(self) -> None:
        """Wait for every queued delivery to finish."""

        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver(self, notification: Notification) -> None:
        await self.send_now(notification)
