"""Outgoing e-mail over SMTP."""

import asyncio
import logging
import re
import smtplib
import ssl
from concurrent.futures import ThreadPoolExecutor
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from functools import partial
from html import escape as html_escape

from audit_api.config import Settings, get_settings

logger = logging.getLogger(__name__)

# Thread pool for non-blocking SMTP operations
_smtp_executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="smtp")


class EmailService:
    """Sends transactional e-mail with the SMTP settings from the environment."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def is_configured(self) -> bool:
        return self.settings.smtp_configured

    def _get_smtp_connection(self) -> smtplib.SMTP | smtplib.SMTP_SSL:
        s = self.settings
        context = ssl.create_default_context()

        if s.smtp_use_tls:
            # STARTTLS (port 587 typically)
            smtp = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30)
            smtp.ehlo()
            smtp.starttls(context=context)
            # EHLO again after STARTTLS as required by RFC 3207
            smtp.ehlo()
        else:
            # Direct SSL connection (port 465 typically)
            smtp = smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=30, context=context)
            smtp.ehlo()

        if s.smtp_username and s.smtp_password:
            smtp.login(s.smtp_username, s.smtp_password)
        return smtp

    def _create_message(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        plain_body: str | None = None,
    ) -> MIMEMultipart:
        s = self.settings
        msg = MIMEMultipart("alternative")

        msg["Subject"] = subject
        msg["From"] = f"{s.smtp_from_name} <{s.smtp_from_email}>"
        msg["To"] = to_email
        msg["Message-ID"] = make_msgid(domain=s.smtp_from_email.split("@")[-1])
        msg["Date"] = formatdate(localtime=True)

        if plain_body is None:
            plain_body = re.sub(r"\s+", " ", re.sub(r"<[^>]+>", "", html_body)).strip()
        msg.attach(MIMEText(plain_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        return msg

    def _send_email_sync(self, to_email: str, msg: MIMEMultipart) -> None:
        """Synchronous send (runs in the thread pool)."""
        smtp = self._get_smtp_connection()
        try:
            smtp.sendmail(self.settings.smtp_from_email, to_email, msg.as_string())
        finally:
            try:
                smtp.quit()
            except smtplib.SMTPException:
                pass

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        plain_body: str | None = None,
    ) -> bool:
        """Send an e-mail without blocking the event loop.

        Returns:
            True if sent successfully, False otherwise
        """
        if not self.is_configured:
            logger.warning("SMTP not configured, cannot send email")
            return False

        msg = self._create_message(to_email, subject, html_body, plain_body)
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(_smtp_executor, partial(self._send_email_sync, to_email, msg))
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending email: %s", e)
            return False

        logger.info("Email sent: %s", subject)
        return True

    async def send_password_reset_email(
        self,
        to_email: str,
        user_name: str | None,
        reset_link: str,
        valid_minutes: int,
    ) -> bool:
        """Send a password recovery link."""
        app_name = self.settings.app_name
        name_display = html_escape(user_name or to_email)
        safe_link = html_escape(reset_link, quote=True)

        subject = f"{app_name}: reset your password"
        html_body = f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
            <h2 style="color: #2563eb;">Reset your password</h2>
            <p>Hello {name_display},</p>
            <p>We received a request to reset the password of your {html_escape(app_name)} account.</p>
            <p style="margin-top: 16px;"><a href="{safe_link}" style="display: inline-block; background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 500;">Choose a new password</a></p>
            <p>This link can be used once and expires in {valid_minutes} minutes.</p>
            <p>If you did not request a reset, you can ignore this e-mail.</p>
        </body>
        </html>
        """
        plain_body = f"""Reset your password

Hello {user_name or to_email},

We received a request to reset the password of your {app_name} account.
Open this link to choose a new password (single use, valid {valid_minutes} minutes):

{reset_link}

If you did not request a reset, you can ignore this e-mail."""

        return await self.send_email(to_email, subject, html_body, plain_body)
