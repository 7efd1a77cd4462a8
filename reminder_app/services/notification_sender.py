"""Reminder notification senders."""

import smtplib
from html import escape

from reminder_app.core.config import NotificationSettings, settings
from reminder_app.domain.interfaces.infrastructure_interfaces import (
    DeliveryResult,
    INotificationSender,
)
from reminder_app.models.event_model import Event
from reminder_app.utils.email import EmailSender
from reminder_app.utils.logger import get_logger

logger = get_logger("notification_sender")


REMINDER_TEMPLATE = """
<html>
  <body style="font-family: Arial, sans-serif; color: #1f2937;">
    <h2 style="color: #2563eb;">{title}</h2>
    <p><strong>Date:</strong> {event_date}</p>
    <p><strong>Reminder time:</strong> {reminder_time} UTC</p>
    <p>{description}</p>
    <hr/>
    <p style="font-size: 12px; color: #6b7280;">
      You receive this email because you scheduled a reminder for this event.
    </p>
  </body>
</html>
"""


def render_reminder_html(event: Event) -> str:
    return REMINDER_TEMPLATE.format(
        title=escape(event.title),
        event_date=event.event_date.isoformat(),
        reminder_time=event.reminder_time.strftime("%Y-%m-%d %H:%M"),
        description=escape(event.description or ""),
    )


class EmailNotificationSender(INotificationSender):
    """Delivers reminders as HTML emails over SMTP."""

    def render(self, event: Event) -> str:
        return render_reminder_html(event)

    def deliver(self, address: str, subject: str, content: str) -> DeliveryResult:
        try:
            EmailSender.send_html_email(address, subject, content)
        except (smtplib.SMTPException, OSError) as exc:
            return DeliveryResult.failure(f"{type(exc).__name__}: {exc}")
        return DeliveryResult.success()


class LogNotificationSender(INotificationSender):
    """Writes reminders to the log; used for local development."""

    def render(self, event: Event) -> str:
        return f"{event.title} ({event.event_date.isoformat()}): {event.description or ''}"

    def deliver(self, address: str, subject: str, content: str) -> DeliveryResult:
        logger.info(f"📧 to={address} subject={subject!r} body={content!r}")
        return DeliveryResult.success()


def build_sender(config: NotificationSettings = settings.notifications) -> INotificationSender:
    if config.backend == "log":
        return LogNotificationSender()
    return EmailNotificationSender()
