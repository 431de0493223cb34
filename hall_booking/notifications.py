# hall_booking/notifications.py
"""
Notification payloads for booking events, and the dispatcher that delivers
them after the state change has been committed.

Building a payload never touches the network. Delivery is best-effort: a
failed send is retried a few times, logged, and dropped.
"""
import logging
import smtplib
import time
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Iterable, Optional

from hall_booking.config import settings

logger = logging.getLogger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
UPDATED = "updated"
CANCELLED = "cancelled"

NOTIFICATION_KINDS = (PENDING, APPROVED, REJECTED, UPDATED, CANCELLED)

_SUBJECTS = {
    PENDING: "Booking Received",
    APPROVED: "Booking Approved",
    REJECTED: "Booking Rejected",
    UPDATED: "Booking Updated",
}

_MESSAGES = {
    PENDING: (
        "Your booking for {hall_name} on {booking_date} has been received.\n"
        "After verification, we will process your request and update the status."
    ),
    APPROVED: "Good news! Your booking for {hall_name} has been approved.",
    REJECTED: "We regret to inform you that your booking for {hall_name} has been rejected.",
    UPDATED: "The details of your booking for {hall_name} have been updated by the administrator.",
}


@dataclass(frozen=True)
class Notification:
    to: str
    subject: str
    body: str


@dataclass(frozen=True)
class NotificationIntent:
    """A notification the lifecycle engine wants sent once its change is committed."""

    kind: str
    booking_id: str
    notification: Notification


def _text(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "year"):
        return value.isoformat()
    if hasattr(value, "hour"):
        return value.strftime("%H:%M")
    return str(value)


def _time_range(booking) -> str:
    start = getattr(booking, "start_time", None)
    end = getattr(booking, "end_time", None)
    if start is not None and end is not None:
        return f"{_text(start)} - {_text(end)}"
    return _text(getattr(booking, "event_time", None))


def build_notification(kind: str, booking, recipient_email: str, reason: Optional[str] = None) -> Notification:
    """
    Render the fixed template for ``kind`` from ``booking``'s fields.

    ``booking`` may be an ORM row or any object with the same attribute
    names; missing attributes render blank. A cancellation uses the
    rejection template with a synthetic reason.
    """
    if kind not in NOTIFICATION_KINDS:
        raise ValueError(f"Unknown notification kind: {kind}")

    template_kind = kind
    if kind == CANCELLED:
        template_kind = REJECTED
        reason = "Booking cancelled by the administrator" + (f": {reason}" if reason else "")
    elif kind == REJECTED and reason is None:
        reason = getattr(booking, "rejection_reason", None)

    hall = getattr(booking, "hall", None)
    user = getattr(booking, "user", None)
    fields = {
        "hall_name": _text(getattr(hall, "name", None)),
        "booking_date": _text(getattr(booking, "booking_date", None)),
    }

    lines = [
        f"Dear {_text(getattr(user, 'full_name', None))},",
        "",
        _MESSAGES[template_kind].format(**fields),
        "",
        "Event Details:",
        f"  Date: {fields['booking_date']}",
        f"  Time: {_time_range(booking)}",
        f"  Hall: {fields['hall_name']}",
        f"  Event: {_text(getattr(booking, 'event_title', None))}",
    ]
    if reason:
        lines.append(f"  Reason: {reason}")
    lines += ["", "Log in to the portal for more details."]

    return Notification(to=recipient_email, subject=_SUBJECTS[template_kind], body="\n".join(lines))


class LogSender:
    """Used when SMTP is not configured: the payload is logged, not sent."""

    def send(self, to: str, subject: str, body: str) -> bool:
        logger.info("Email (not sent, SMTP not configured) to=%s subject=%s\n%s", to, subject, body)
        return True


class SmtpSender:
    def __init__(self, host: str, port: int, username: str, password: str, from_name: str):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_name = from_name

    def send(self, to: str, subject: str, body: str) -> bool:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.username}>'
        msg["To"] = to
        msg.set_content(body)

        with smtplib.SMTP(self.host, self.port) as smtp:
            smtp.starttls()
            smtp.login(self.username, self.password)
            smtp.send_message(msg)
        logger.info("Email sent to %s (%s)", to, subject)
        return True


def default_sender():
    if settings.SMTP_EMAIL and settings.SMTP_PASSWORD:
        return SmtpSender(
            settings.SMTP_HOST,
            settings.SMTP_PORT,
            settings.SMTP_EMAIL,
            settings.SMTP_PASSWORD,
            settings.MAIL_FROM_NAME,
        )
    return LogSender()


class NotificationDispatcher:
    """
    Consumes notification intents outside the request/response cycle.

    Each intent gets up to ``max_attempts`` tries. A sender may signal
    failure by returning False or raising; either way the final failure is
    logged and swallowed.
    """

    def __init__(self, sender=None, max_attempts: int = None, retry_delay: float = None, sleep=time.sleep):
        self.sender = sender or default_sender()
        self.max_attempts = max(1, max_attempts if max_attempts is not None else settings.NOTIFY_MAX_ATTEMPTS)
        self.retry_delay = retry_delay if retry_delay is not None else settings.NOTIFY_RETRY_DELAY_SECONDS
        self.sleep = sleep

    def deliver(self, intent: NotificationIntent) -> bool:
        note = intent.notification
        if not note.to:
            logger.warning("Dropping %s notification for booking %s: no recipient", intent.kind, intent.booking_id)
            return False

        for attempt in range(1, self.max_attempts + 1):
            try:
                if self.sender.send(note.to, note.subject, note.body):
                    return True
                logger.warning(
                    "Sender refused %s notification for booking %s (attempt %d/%d)",
                    intent.kind, intent.booking_id, attempt, self.max_attempts,
                )
            except Exception:
                logger.exception(
                    "Failed to send %s notification for booking %s (attempt %d/%d)",
                    intent.kind, intent.booking_id, attempt, self.max_attempts,
                )
            if attempt < self.max_attempts:
                self.sleep(self.retry_delay * attempt)

        logger.error("Giving up on %s notification for booking %s", intent.kind, intent.booking_id)
        return False

    def dispatch(self, intents: Iterable[NotificationIntent]) -> int:
        """Deliver every intent; return how many were sent."""
        return sum(1 for intent in intents if self.deliver(intent))
