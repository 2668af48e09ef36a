from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from ..common.validators import optional_text
from ..core.enums import BiometricEventType
from ..core.exceptions import ValidationError

RESULT_CHECKED_IN = "checked_in"
RESULT_DUPLICATE = "duplicate"
RESULT_ENROLLED = "enrolled"
RESULT_IGNORED = "ignored"
RESULT_LOGGED = "logged"


@dataclass(frozen=True)
class BiometricEvent:
    """One event pushed by the device helper."""

    event_type: BiometricEventType
    success: bool
    member_id: Optional[int] = None
    message: Optional[str] = None
    timestamp: Optional[str] = None
    device_id: Optional[str] = None
    template_id: Optional[str] = None

    @classmethod
    def parse(cls, data: object) -> "BiometricEvent":
        if not isinstance(data, Mapping):
            raise ValidationError("Invalid event")
        try:
            event_type = BiometricEventType(str(data.get("eventType", "")).upper())
        except ValueError:
            raise ValidationError("Invalid event") from None
        success = data.get("success")
        if not isinstance(success, bool):
            raise ValidationError("Invalid event")

        raw_member = data.get("memberId")
        member_id: Optional[int] = None
        if raw_member not in (None, ""):
            if isinstance(raw_member, bool):
                raise ValidationError("Invalid event")
            try:
                member_id = int(raw_member)
            except (TypeError, ValueError):
                raise ValidationError("Invalid event") from None
            if member_id <= 0:
                raise ValidationError("Invalid event")

        return cls(
            event_type=event_type,
            success=success,
            member_id=member_id,
            message=optional_text(data.get("message")),
            timestamp=optional_text(data.get("timestamp")),
            device_id=optional_text(data.get("deviceId")),
            template_id=optional_text(data.get("templateId")),
        )

    def to_dict(self) -> dict:
        return {
            "eventType": self.event_type.value,
            "success": self.success,
            "memberId": self.member_id,
            "message": self.message,
            "timestamp": self.timestamp,
            "deviceId": self.device_id,
        }


@dataclass(frozen=True)
class ProcessedEvent:
    event: BiometricEvent
    result: str
    received_at: datetime
    session_id: Optional[int] = None
    detail: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            **self.event.to_dict(),
            "result": self.result,
            "receivedAt": self.received_at.strftime("%Y-%m-%d %H:%M:%S"),
            "sessionId": self.session_id,
            "detail": self.detail,
        }
