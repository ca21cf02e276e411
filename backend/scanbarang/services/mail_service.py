"""
Scan Barang Backend — Outbound Mail Service
=============================================

What:  Sends the account emails (verification link, password reset link).
How:   Builds an HTML EmailMessage and hands it to aiosmtplib over STARTTLS
       using EMAIL_USER / EMAIL_PASS.
Who:   AuthService.

A failed send is reported as UpstreamError (500); nothing is queued or retried.
"""

import html
import logging
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib

from scanbarang.config import settings
from scanbarang.exceptions import UpstreamError

logger = logging.getLogger(__name__)


VERIFICATION_SUBJECT = "Verifikasi Email Anda"
RESET_SUBJECT = "Reset Password Anda"


def render_verification_email(username: str, link: str) -> str:
    name = html.escape(username)
    href = html.escape(link, quote=True)
    return f"""
<p>Halo {name},</p>
<p>Terima kasih telah mendaftar di Aplikasi Scan Barang!</p>
<p>Untuk menyelesaikan proses pendaftaran, silakan klik tautan berikut untuk memverifikasi email Anda:</p>
<p><a href="{href}">Verifikasi Email</a></p>
<p>Jika Anda tidak merasa mendaftar, Anda dapat mengabaikan email ini.</p>
<p>Salam hangat,<br>Tim {html.escape(settings.email_from_name)}</p>
"""


def render_reset_email(link: str) -> str:
    href = html.escape(link, quote=True)
    return f"""
<p>Halo,</p>
<p>Silakan klik tautan berikut untuk mereset kata sandi Anda:</p>
<p><a href="{href}">Reset Password</a></p>
<p>Jika Anda tidak merasa meminta reset password, Anda dapat mengabaikan email ini.</p>
"""


class MailService:
    """Thin async wrapper around aiosmtplib.send."""

    def build_message(self, to_email: str, subject: str, html_body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((settings.email_from_name, settings.email_user))
        msg["To"] = to_email
        msg["Subject"] = subject
        # Plain-text part first, HTML alternative second
        msg.set_content("Buka email ini dengan aplikasi yang mendukung HTML.")
        msg.add_alternative(html_body, subtype="html")
        return msg

    async def send_html(self, to_email: str, subject: str, html_body: str) -> None:
        """
        Send one HTML email.

        Raises:
            UpstreamError: mail is not configured or the SMTP exchange failed.
        """
        if not settings.mail_configured:
            raise UpstreamError(
                message="Failed to send email.",
                context={"missing": "EMAIL_USER/EMAIL_PASS"},
            )

        msg = self.build_message(to_email, subject, html_body)
        try:
            await aiosmtplib.send(
                msg,
                hostname=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.email_user,
                password=settings.email_pass,
                start_tls=True,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Mail to %s failed: %s", to_email, str(e))
            raise UpstreamError(message="Failed to send email.", details=str(e))

        logger.info("Mail sent: subject=%r to=%s", subject, to_email)

    async def send_verification_email(self, to_email: str, username: str, link: str) -> None:
        await self.send_html(to_email, VERIFICATION_SUBJECT, render_verification_email(username, link))

    async def send_password_reset_email(self, to_email: str, link: str) -> None:
        await self.send_html(to_email, RESET_SUBJECT, render_reset_email(link))


# ── Singleton Instance ────────────────────────────────────────────────────
mail_service = MailService()
