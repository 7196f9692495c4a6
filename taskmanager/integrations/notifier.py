"""Account email notifications.

The API depends on the Notifier interface only. SendGridNotifier delivers
through SendGrid's v3 HTTP API; LoggingNotifier is used when no API key is
configured (dev/tests). Delivery is best-effort: failures are logged and
never fail the request that triggered them.
"""

import os
import logging
from typing import Protocol

import requests
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY", "")
SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"
MAIL_FROM = os.getenv("MAIL_FROM", "no-reply@taskmanager.local")
REQUEST_TIMEOUT_SEC = 10

WELCOME_SUBJECT = "Welcome to the Task Manager"
WELCOME_TEXT = "Welcome to the app, {name}. I hope it's useful!"
CANCELLATION_SUBJECT = "Sorry to see you go, {name}"
CANCELLATION_TEXT = (
    "Thank you for using the Task Manager. If there's anything we can improve "
    "on please let us know, and if we can help in the future please feel free "
    "to re-register."
)


class Notifier(Protocol):
    """Sends account lifecycle emails."""

    def send_welcome_email(self, email: str, name: str) -> None:
        ...

    def send_cancellation_email(self, email: str, name: str) -> None:
        ...


class LoggingNotifier:
    """Notifier that only logs. Used when email delivery is not configured."""

    def send_welcome_email(self, email: str, name: str) -> None:
        logger.info(f"Welcome email (not sent, no mail provider configured) for user {name}")

    def send_cancellation_email(self, email: str, name: str) -> None:
        logger.info(f"Cancellation email (not sent, no mail provider configured) for user {name}")


class SendGridNotifier:
    """Notifier backed by the SendGrid v3 mail/send endpoint."""

    def __init__(self, api_key: str, sender: str = MAIL_FROM):
        self.api_key = api_key
        self.sender = sender

    def _send(self, to: str, subject: str, text: str) -> bool:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender},
            "subject": subject,
            "content": [{"type": "text/plain", "value": text}],
        }
        try:
            resp = requests.post(
                SENDGRID_SEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=REQUEST_TIMEOUT_SEC,
            )
        except requests.RequestException as e:
            logger.warning(f"Email delivery failed: {type(e).__name__}: {str(e)}")
            return False
        if not resp.ok:
            logger.warning(f"Email delivery rejected by SendGrid: HTTP {resp.status_code}")
            return False
        return True

    def send_welcome_email(self, email: str, name: str) -> None:
        self._send(email, WELCOME_SUBJECT, WELCOME_TEXT.format(name=name))

    def send_cancellation_email(self, email: str, name: str) -> None:
        self._send(email, CANCELLATION_SUBJECT.format(name=name), CANCELLATION_TEXT)


def get_notifier() -> Notifier:
    """Notifier dependency (override in tests via app.dependency_overrides)."""
    if SENDGRID_API_KEY:
        return SendGridNotifier(SENDGRID_API_KEY)
    return LoggingNotifier()
