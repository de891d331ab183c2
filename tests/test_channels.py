"""Tests for the email and SMS channels."""

from datetime import datetime
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services.email import DeletionNotificationData, EmailProvider, EmailService
from app.services.sms.sms_config import TwilioSettings
from app.services.sms.sms_service import SMSService


@pytest.fixture
def email():
    service = EmailService(EmailProvider.SMTP)
    service.send_email = AsyncMock(return_value=True)
    return service


class TestEmailService:
    @pytest.mark.asyncio
    async def test_deletion_code_email(self, email):
        assert await email.send_deletion_code_email("a@b.com", "482913", 5, "Poof") is True

        to, subject, plain, html = email.send_email.call_args.args
        assert to == "a@b.com"
        assert subject == "Poof - Account Deletion Verification Code"
        assert "482913" in plain and "5 minutes" in plain
        assert "482913" in html

    @pytest.mark.asyncio
    async def test_deletion_request_notification(self, email):
        data = DeletionNotificationData(
            account_type="worker",
            account_email="a@b.com",
            request_id="req-1",
            verified_at=datetime(2026, 1, 2, 3, 4, 5),
            deletion_due_at=datetime(2026, 2, 1, 3, 4, 5),
        )

        await email.send_deletion_request_notification("team@thepoofapp.com", data, "Poof")

        to, subject, plain, html = email.send_email.call_args.args
        assert to == "team@thepoofapp.com"
        assert "a@b.com" in subject
        assert "2026-02-01" in plain
        assert "req-1" in html

    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self):
        service = EmailService(EmailProvider.SMTP)

        with patch("app.services.email.email_service.SMTP", side_effect=OSError("no route")):
            assert await service.send_email("a@b.com", "s", "p", "<p>h</p>") is False


class TestSMSService:
    @pytest.mark.asyncio
    async def test_unconfigured_sends_nothing(self):
        service = SMSService(TwilioSettings(ACCOUNT_SID="", AUTH_TOKEN="", FROM_PHONE=""))

        assert await service.send_deletion_code_sms("+15555550100", "123456", 5, "Poof") is False

    @pytest.mark.asyncio
    async def test_sends_through_twilio(self):
        service = SMSService(TwilioSettings(ACCOUNT_SID="AC1", AUTH_TOKEN="t", FROM_PHONE="+15555550199"))
        client = MagicMock()
        client.messages.create.return_value = MagicMock(sid="SM1")
        service._client = client

        assert await service.send_deletion_code_sms("+15555550100", "123456", 5, "Poof") is True

        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["to"] == "+15555550100"
        assert kwargs["from_"] == "+15555550199"
        assert "123456" in kwargs["body"]

    @pytest.mark.asyncio
    async def test_twilio_error_returns_false(self):
        service = SMSService(TwilioSettings(ACCOUNT_SID="AC1", AUTH_TOKEN="t", FROM_PHONE="+15555550199"))
        client = MagicMock()
        client.messages.create.side_effect = RuntimeError("down")
        service._client = client

        assert await service.send_sms("+15555550100", "hi") is False
