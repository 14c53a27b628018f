"""Unit tests for notification channels."""
import smtplib

import pytest

from src.core.config import Settings
from src.core.reminder_catalog import Notification
from src.models.enums import ReminderPriority, ReminderType
from src.services import notification_channels
from src.services.notification_channels import DeliveryError, LogChannel, SmtpChannel, get_channel


def _settings(**overrides) -> Settings:
    values = {"database_url": "sqlite+aiosqlite:///:memory:", "smtp_host": "mail.test", "smtp_port": 2525}
    values.update(overrides)
    return Settings(**values)


def _notification(**overrides) -> Notification:
    values = dict(
        reminder_id="r-1",
        reminder_type=ReminderType.HIGH_RISK_ALERT,
        priority=ReminderPriority.HIGH,
        recipients=("rh@empresa.com.br",),
        title="Alerta de Risco Alto",
        body="Corpo",
    )
    values.update(overrides)
    return Notification(**values)


class FakeSMTP:
    instances: list["FakeSMTP"] = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.messages = []
        self.logged_in = None
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        pass

    def login(self, user, password):
        self.logged_in = (user, password)

    def send_message(self, msg, from_addr=None, to_addrs=None):
        if FakeSMTP.fail:
            raise smtplib.SMTPServerDisconnected("gone")
        self.messages.append((msg, from_addr, to_addrs))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail = False
    monkeypatch.setattr(notification_channels.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


class TestSmtpChannel:
    async def test_sends_plain_text_mail(self, fake_smtp):
        channel = SmtpChannel(_settings(smtp_user="u", smtp_password="p"))
        await channel.send(_notification())

        server = fake_smtp.instances[0]
        assert (server.host, server.port) == ("mail.test", 2525)
        assert server.logged_in == ("u", "p")
        msg, _, to_addrs = server.messages[0]
        assert msg["Subject"] == "[URGENTE] Alerta de Risco Alto"
        assert to_addrs == ["rh@empresa.com.br"]

    async def test_medium_priority_has_no_prefix(self, fake_smtp):
        channel = SmtpChannel(_settings())
        await channel.send(
            _notification(reminder_type=ReminderType.ASSESSMENT_DUE, priority=ReminderPriority.MEDIUM, title="T")
        )
        msg, _, _ = fake_smtp.instances[0].messages[0]
        assert msg["Subject"] == "T"

    async def test_smtp_failure_becomes_delivery_error(self, fake_smtp):
        fake_smtp.fail = True
        with pytest.raises(DeliveryError):
            await SmtpChannel(_settings()).send(_notification())

    async def test_no_recipients(self, fake_smtp):
        with pytest.raises(DeliveryError):
            await SmtpChannel(_settings()).send(_notification(recipients=()))


class TestChannelSelection:
    def test_log_by_default(self):
        assert isinstance(get_channel(_settings()), LogChannel)

    def test_smtp_when_configured(self):
        assert isinstance(get_channel(_settings(notification_channel="smtp")), SmtpChannel)

    async def test_log_channel_never_fails(self):
        await LogChannel().send(_notification(recipients=()))
