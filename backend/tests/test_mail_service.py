"""
Scan Barang Backend — Mail Service Tests
==========================================

What:  Message construction and SMTP error mapping.
How:   aiosmtplib.send is monkeypatched; nothing leaves the process.
"""

from unittest.mock import AsyncMock

import aiosmtplib
import pytest

from scanbarang.exceptions import UpstreamError
from scanbarang.services import mail_service as mail_module
from scanbarang.services.mail_service import (
    RESET_SUBJECT,
    VERIFICATION_SUBJECT,
    MailService,
    render_reset_email,
    render_verification_email,
)


@pytest.fixture
def configured(monkeypatch):
    monkeypatch.setattr(mail_module.settings, "email_user", "noreply@example.com")
    monkeypatch.setattr(mail_module.settings, "email_pass", "app-password")


class TestRendering:
    def test_verification_email_escapes_username(self):
        body = render_verification_email("<b>budi</b>", "https://example.com/verify?x=1&y=2")
        assert "&lt;b&gt;budi&lt;/b&gt;" in body
        assert 'href="https://example.com/verify?x=1&amp;y=2"' in body

    def test_reset_email_contains_link(self):
        assert "https://example.com/reset" in render_reset_email("https://example.com/reset")


class TestSend:

    @pytest.mark.asyncio
    async def test_verification_email_sent_over_starttls(self, configured, monkeypatch):
        send = AsyncMock()
        monkeypatch.setattr(mail_module.aiosmtplib, "send", send)

        await MailService().send_verification_email("a@example.com", "budi", "https://link")

        send.assert_awaited_once()
        msg = send.await_args.args[0]
        assert msg["To"] == "a@example.com"
        assert msg["Subject"] == VERIFICATION_SUBJECT
        assert "noreply@example.com" in msg["From"]
        assert send.await_args.kwargs["start_tls"] is True
        assert send.await_args.kwargs["username"] == "noreply@example.com"

    @pytest.mark.asyncio
    async def test_reset_email_subject(self, configured, monkeypatch):
        send = AsyncMock()
        monkeypatch.setattr(mail_module.aiosmtplib, "send", send)

        await MailService().send_password_reset_email("a@example.com", "https://link")

        assert send.await_args.args[0]["Subject"] == RESET_SUBJECT

    @pytest.mark.asyncio
    async def test_smtp_failure_is_upstream_error(self, configured, monkeypatch):
        monkeypatch.setattr(
            mail_module.aiosmtplib, "send", AsyncMock(side_effect=aiosmtplib.SMTPException("boom"))
        )
        with pytest.raises(UpstreamError, match="Failed to send email"):
            await MailService().send_password_reset_email("a@example.com", "https://link")

    @pytest.mark.asyncio
    async def test_unconfigured_mail_is_upstream_error(self, monkeypatch):
        monkeypatch.setattr(mail_module.settings, "email_user", "")
        send = AsyncMock()
        monkeypatch.setattr(mail_module.aiosmtplib, "send", send)

        with pytest.raises(UpstreamError):
            await MailService().send_password_reset_email("a@example.com", "https://link")
        send.assert_not_awaited()
