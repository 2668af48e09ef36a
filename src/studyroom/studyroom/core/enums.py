from __future__ import annotations

from enum import Enum


class MemberStatus(str, Enum):
    """Membership status stored in the members table."""

    ACTIVE = "active"
    EXPIRED = "expired"
    SUSPENDED = "suspended"


class PaymentMode(str, Enum):
    CASH = "cash"
    CARD = "card"
    UPI = "upi"
    BANK_TRANSFER = "bank_transfer"


class AttendanceSource(str, Enum):
    """How a check-in reached the tracker."""

    BIOMETRIC = "biometric"
    MANUAL = "manual"
    CARD = "card"
    QR = "qr"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    WHATSAPP = "whatsapp"
    SMS = "sms"


class NotificationCategory(str, Enum):
    EXPIRY_REMINDER = "expiry_reminder"
    WELCOME = "welcome"


class NotificationStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class BiometricEventType(str, Enum):
    ENROLLMENT = "ENROLLMENT"
    VERIFICATION = "VERIFICATION"
