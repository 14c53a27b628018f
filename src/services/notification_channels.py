"""Notification channels used by the reminder dispatcher.

A channel only has to implement ``async send(notification)`` and raise on
failure; the dispatcher records the outcome.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from src.core.config import Settings, get_settings
from src.core.reminder_catalog import Notification
from src.core.structured_logging import log_json

logger = logging.getLogger(__name__)


class DeliveryError(Exception):
    """Raised by a channel when a notification could not be delivered."""


class NotificationChannel(Protocol):
    async def send(self, notification: Notification) -> None: ...


class LogChannel:
    """Writes notifications to the structured log instead of sending them."""

    async def send(self, notification: Notification) -> None:
        log_json(
            logger,
            logging.INFO,
            "notification_logged",
            reminder_id=notification.reminder_id,
            reminder_type=notification.reminder_type.value,
            priority=notification.priority.value,
            recipients=list(notification.recipients),
            title=notification.title,
            body=notification.body,
        )


class SmtpChannel:
    """Sends notifications as plain-text e-mail over SMTP.

    ``smtplib`` is blocking, so delivery runs in a worker thread.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.from_email = settings.smtp_from
        self.starttls = settings.smtp_starttls
        self.timeout = settings.smtp_timeout_seconds

    def _build_message(self, notification: Notification) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = ", ".join(notification.recipients)
        prefix = "[URGENTE] " if notification.priority.value == "high" else ""
        msg["Subject"] = f"{prefix}{notification.title}"
        msg.set_content(notification.body)
        return msg

    def _send_sync(self, notification: Notification) -> None:
        msg = self._build_message(notification)
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.starttls:
                server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.send_message(msg, from_addr=self.from_email, to_addrs=list(notification.recipients))

    async def send(self, notification: Notification) -> None:
        if not notification.recipients:
            raise DeliveryError("Notification has no recipients")
        try:
            await asyncio.to_thread(self._send_sync, notification)
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"SMTP delivery failed: {exc}") from exc


def get_channel(settings: Settings | None = None) -> NotificationChannel:
    """Channel selected by ``NOTIFICATION_CHANNEL``."""
    settings = settings or get_settings()
    if settings.notification_channel == "smtp":
        return SmtpChannel(settings)
    return LogChannel()
