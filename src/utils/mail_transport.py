"""Outbound mail transports.

A transport delivers one message and raises MailTransportError on failure.
When no transport is configured the outbox relay logs messages instead of
sending them.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.text import MIMEText
from typing import Optional

import requests

import config

logger = logging.getLogger(__name__)


class MailTransportError(Exception):
    """Raised when a transport fails to deliver a message."""

    pass


class MailTransport(ABC):
    """Interface of a mail transport."""

    provider = "unknown"

    @abstractmethod
    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message or raise MailTransportError."""


class SendGridTransport(MailTransport):
    """Delivers mail through the SendGrid v3 HTTP API."""

    provider = "sendgrid"

    def __init__(
        self,
        api_key: str,
        sender: str = config.SEND_FROM,
        api_url: str = config.SENDGRID_API_URL,
        timeout: float = config.MAIL_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ValueError("SENDGRID_API_KEY not configured")
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, to: str, subject: str, body: str) -> None:
        payload = {
            "personalizations": [{"to": [{"email": to}]}],
            "from": {"email": self.sender},
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.session.post(
                self.api_url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.Timeout as e:
            raise MailTransportError(f"SendGrid request timed out after {self.timeout}s") from e
        except requests.RequestException as e:
            raise MailTransportError(f"SendGrid request failed: {e}") from e

        if response.status_code >= 300:
            raise MailTransportError(
                f"SendGrid rejected message: HTTP {response.status_code} {response.text[:200]}"
            )


class SmtpTransport(MailTransport):
    """Delivers mail through an SMTP relay."""

    provider = "smtp"

    def __init__(
        self,
        host: str,
        port: int = config.SMTP_PORT,
        username: str = config.SMTP_USER,
        password: str = config.SMTP_PASS,
        use_tls: bool = config.SMTP_USE_TLS,
        sender: str = config.SEND_FROM,
        timeout: float = config.MAIL_TIMEOUT_SECONDS,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.sender = sender
        self.timeout = timeout

    def send(self, to: str, subject: str, body: str) -> None:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = to
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                if self.username:
                    server.login(self.username, self.password)
                server.sendmail(self.sender, [to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise MailTransportError(f"SMTP delivery failed: {e}") from e


def build_transport() -> Optional[MailTransport]:
    """Build the transport selected by configuration.

    Returns:
        SendGridTransport if SENDGRID_API_KEY is set, SmtpTransport if
        SMTP_HOST is set, otherwise None (log-only).
    """
    if config.SENDGRID_API_KEY:
        return SendGridTransport(config.SENDGRID_API_KEY)
    if config.SMTP_HOST:
        return SmtpTransport(config.SMTP_HOST)
    logger.debug("No mail transport configured; outbox messages will be logged")
    return None
