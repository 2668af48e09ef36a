from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import FrozenSet, Optional, Protocol

from ..core.enums import NotificationChannel
from .model import OutgoingMessage

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    """Delivers one message. Raises on failure."""

    channels: FrozenSet[NotificationChannel]

    def send(self, message: OutgoingMessage) -> None:
        raise NotImplementedError


class LoggingNotificationSender:
    """Development sender: writes the message to the log instead of delivering it."""

    channels = frozenset({NotificationChannel.EMAIL, NotificationChannel.SMS, NotificationChannel.WHATSAPP})

    def send(self, message: OutgoingMessage) -> None:
        logger.info(
            "[%s] to %s (member %s): %s",
            message.channel.value,
            message.recipient,
            message.member_id,
            message.subject,
        )


@dataclass(frozen=True)
class SMTPConfig:
    host: str
    port: int = 587
    username: Optional[str] = None
    password: Optional[str] = None
    sender: Optional[str] = None
    use_tls: bool = True
    timeout: float = 30.0


class SMTPNotificationSender:
    channels = frozenset({NotificationChannel.EMAIL})

    def __init__(self, config: SMTPConfig):
        self._config = config

    def send(self, message: OutgoingMessage) -> None:
        if message.channel != NotificationChannel.EMAIL or not message.recipient:
            raise ValueError(f"SMTP cannot deliver {message.channel.value} messages")

        cfg = self._config
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = cfg.sender or cfg.username or ""
        msg["To"] = message.recipient
        msg.set_content(message.body)

        with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout) as server:
            if cfg.use_tls:
                server.starttls()
            if cfg.username and cfg.password:
                server.login(cfg.username, cfg.password)
            server.send_message(msg)
