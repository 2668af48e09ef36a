from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from ..core.enums import NotificationCategory, NotificationChannel, NotificationStatus


@dataclass(frozen=True)
class Notification:
    notification_id: int
    member_id: int
    channel: NotificationChannel
    category: NotificationCategory
    status: NotificationStatus
    created_at: datetime
    cycle_end_date: Optional[date] = None
    subject: Optional[str] = None
    message: Optional[str] = None
    sent_at: Optional[datetime] = None
    error_message: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.notification_id,
            "member_id": self.member_id,
            "type": self.channel.value,
            "category": self.category.value,
            "status": self.status.value,
            "cycle_end_date": self.cycle_end_date.isoformat() if self.cycle_end_date else None,
            "subject": self.subject,
            "message": self.message,
            "sent_at": self.sent_at.strftime("%Y-%m-%d %H:%M:%S") if self.sent_at else None,
            "error_message": self.error_message,
            "created_at": self.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        }


@dataclass(frozen=True)
class OutgoingMessage:
    """What a sender needs to deliver one notification."""

    member_id: int
    member_name: str
    channel: NotificationChannel
    recipient: Optional[str]
    subject: str
    body: str


@dataclass
class DispatchResult:
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"sent": self.sent, "failed": self.failed, "skipped": self.skipped, "errors": list(self.errors)}
