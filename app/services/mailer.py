"""
Outbound mail transports for admin alerts.

Design Rationale:
- Small async interface so the dispatcher does not care about transport
- SMTP delivery runs in a worker thread to keep the event loop free
- Log transport for development and for deployments without SMTP
"""

import asyncio
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from functools import lru_cache
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import DeliveryError
from app.core.logging import get_logger

logger = get_logger(__name__)


class Mailer(ABC):
    """Transport that delivers a plain-text message or raises DeliveryError."""

    @abstractmethod
    async def send(self, recipient: str, subject: str, body: str) -> None:
        """Deliver a message synchronously from the caller's point of view."""
        pass

    @property
    @abstractmethod
    def transport(self) -> str:
        pass


class SMTPMailer(Mailer):
    """Delivers through an SMTP relay with optional STARTTLS and login."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        timeout: float = 10.0
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    @property
    def transport(self) -> str:
        return "smtp"

    def _build_message(self, recipient: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as client:
            if self.use_tls:
                client.starttls()
            if self.username:
                client.login(self.username, self.password or "")
            client.send_message(message)

    async def send(self, recipient: str, subject: str, body: str) -> None:
        message = self._build_message(recipient, subject, body)

        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(
                "SMTP delivery failed",
                host=self.host,
                port=self.port,
                recipient=recipient,
                error=str(e)
            )
            raise DeliveryError("Failed to deliver email", detail=str(e)) from e

        logger.info("Email sent", transport=self.transport, recipient=recipient, subject=subject)


class LogMailer(Mailer):
    """Writes messages to the application log instead of sending them."""

    @property
    def transport(self) -> str:
        return "log"

    async def send(self, recipient: str, subject: str, body: str) -> None:
        logger.info(
            "Email logged",
            transport=self.transport,
            recipient=recipient,
            subject=subject,
            body=body
        )


def build_mailer(settings: Settings) -> Mailer:
    """SMTP when SMTP_HOST is configured, log transport otherwise."""
    if settings.SMTP_HOST:
        return SMTPMailer(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            sender=settings.MAIL_FROM,
            username=settings.SMTP_USERNAME,
            password=settings.SMTP_PASSWORD,
            use_tls=settings.SMTP_USE_TLS,
            timeout=settings.SMTP_TIMEOUT
        )
    return LogMailer()


@lru_cache()
def get_mailer() -> Mailer:
    return build_mailer(get_settings())
