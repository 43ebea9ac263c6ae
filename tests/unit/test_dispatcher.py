"""
Tests for message transports, best-effort dispatch and email templates.
"""
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mentwel_auth.services.messaging import email_templates
from mentwel_auth.services.messaging.dispatcher import (
    BestEffortDispatcher,
    LoggingMessageDispatcher,
    SMTPMessageDispatcher,
    create_message_dispatcher,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def message():
    return email_templates.verify_email_message(
        "client@example.com", "Ada", "http://client.test/verify-email/abc"
    )


class TestBestEffortDispatcher:

    @pytest.mark.asyncio
    async def test_send_delegates_to_transport(self, recording_dispatcher, message):
        dispatcher = BestEffortDispatcher(recording_dispatcher)

        assert await dispatcher.send(message) is True
        assert recording_dispatcher.sent[0]["subject"] == message.subject
        assert recording_dispatcher.sent[0]["text_body"] == message.text_body

    @pytest.mark.asyncio
    async def test_best_effort_failure_is_logged_not_raised(self, message):
        transport = MagicMock()
        transport.send = AsyncMock(side_effect=ConnectionError("smtp down"))
        dispatcher = BestEffortDispatcher(transport)

        with patch("mentwel_auth.services.messaging.dispatcher.logger") as mock_logger:
            task = dispatcher.dispatch_best_effort(message)
            await dispatcher.drain()

        assert task.done()
        assert dispatcher.pending_count == 0
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "Background email failed"

    @pytest.mark.asyncio
    async def test_undelivered_message_is_logged(self, recording_dispatcher, message):
        recording_dispatcher.succeed = False
        dispatcher = BestEffortDispatcher(recording_dispatcher)

        with patch("mentwel_auth.services.messaging.dispatcher.logger") as mock_logger:
            dispatcher.dispatch_best_effort(message)
            await dispatcher.drain()

        mock_logger.warning.assert_called_once()

    @pytest.mark.asyncio
    async def test_drain_waits_for_all_pending(self, recording_dispatcher, message):
        dispatcher = BestEffortDispatcher(recording_dispatcher)

        for _ in range(3):
            dispatcher.dispatch_best_effort(message)
        await dispatcher.drain()

        assert len(recording_dispatcher.sent) == 3
        assert dispatcher.pending_count == 0


class TestTransports:

    @pytest.mark.asyncio
    async def test_logging_dispatcher_accepts_everything(self, message):
        transport = LoggingMessageDispatcher()

        assert await transport.send(message.to, message.subject, message.html_body, message.text_body)

    def test_factory_uses_logging_transport_without_smtp(self, test_settings):
        assert isinstance(create_message_dispatcher(test_settings), LoggingMessageDispatcher)

    def test_factory_uses_smtp_when_configured(self, test_settings):
        settings = test_settings.model_copy(update={
            "SMTP_HOST": "smtp.example.com",
            "SMTP_USER": "mailer",
            "SMTP_PASSWORD": "smtp-pass-value",
        })

        assert isinstance(create_message_dispatcher(settings), SMTPMessageDispatcher)

    @pytest.mark.asyncio
    async def test_smtp_failure_returns_false(self, test_settings, message):
        settings = test_settings.model_copy(update={
            "SMTP_HOST": "smtp.example.com",
            "SMTP_USER": "mailer",
            "SMTP_PASSWORD": "smtp-pass-value",
        })
        transport = SMTPMessageDispatcher(settings)

        with patch.object(transport._fast_mail, "send_message", AsyncMock(side_effect=OSError("refused"))):
            assert await transport.send(message.to, message.subject, message.html_body, message.text_body) is False

    @pytest.mark.asyncio
    async def test_smtp_success_returns_true(self, test_settings, message):
        settings = test_settings.model_copy(update={
            "SMTP_HOST": "smtp.example.com",
            "SMTP_USER": "mailer",
            "SMTP_PASSWORD": "smtp-pass-value",
        })
        transport = SMTPMessageDispatcher(settings)

        with patch.object(transport._fast_mail, "send_message", AsyncMock()) as send_message:
            assert await transport.send(message.to, message.subject, message.html_body, message.text_body)

        sent = send_message.call_args.args[0]
        assert sent.subject == message.subject
        assert "client@example.com" in str(sent.recipients[0])


class TestEmailTemplates:

    def test_verify_email_contains_link(self, message):
        assert "http://client.test/verify-email/abc" in message.html_body
        assert "http://client.test/verify-email/abc" in message.text_body
        assert message.subject == "Verify Your Email - MentWel"

    def test_reset_password_states_expiry(self):
        msg = email_templates.reset_password_message(
            "client@example.com", "Ada", "http://client.test/reset-password?token=xyz", 10
        )

        assert "10 minutes" in msg.text_body
        assert "reset-password?token=xyz" in msg.text_body

    def test_names_are_escaped_in_html(self):
        msg = email_templates.welcome_message("client@example.com", "<script>")

        assert "<script>" not in msg.html_body
        assert "&lt;script&gt;" in msg.html_body

    def test_missing_first_name_falls_back(self):
        msg = email_templates.password_changed_message("client@example.com", None)

        assert msg.text_body.startswith("Hi there,")
