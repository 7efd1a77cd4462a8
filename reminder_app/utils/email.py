from contextlib import contextmanager
from typing import Generator
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

from reminder_app.core.config import settings


class EmailSender:
    """Utility class that provides high-level helpers for application e-mails."""

    @staticmethod
    @contextmanager
    def _smtp_connection() -> Generator[smtplib.SMTP, None, None]:
        """Yields an authenticated, TLS-encrypted SMTP connection.

        The ``with`` block guarantees ``QUIT`` is sent.
        """
        with smtplib.SMTP(
            settings.smtp.smtp_server,
            settings.smtp.smtp_port,
            timeout=settings.smtp.timeout_seconds,
        ) as server:
            if settings.smtp.use_tls:
                server.starttls()
            if settings.smtp.sender_password:
                server.login(settings.smtp.sender_email, settings.smtp.sender_password)
            yield server

    @staticmethod
    def _build_message(recipient: str, subject: str, body: str, subtype: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = settings.smtp.sender_email
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.attach(MIMEText(body.strip(), subtype, "utf-8"))
        return msg

    @classmethod
    def _send(cls, recipient: str, subject: str, body: str, subtype: str = "plain") -> None:
        """Centralised send routine; SMTP errors propagate to the caller."""
        message = cls._build_message(recipient, subject, body, subtype)
        with cls._smtp_connection() as server:
            server.send_message(message)

    @classmethod
    def send_html_email(cls, recipient_email: str, subject: str, html: str) -> None:
        cls._send(recipient_email, subject, html, "html")
