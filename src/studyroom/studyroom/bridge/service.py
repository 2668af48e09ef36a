from __future__ import annotations

import hmac
import logging
import threading
from collections import deque
from datetime import datetime
from typing import Callable, List, Optional

from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_RECENT_EVENTS
from ..core.enums import AttendanceSource, BiometricEventType
from ..core.exceptions import ConflictError, NotFoundError, Unauthorized
from ..members.service import MembershipService
from .model import (
    RESULT_CHECKED_IN,
    RESULT_DUPLICATE,
    RESULT_ENROLLED,
    RESULT_IGNORED,
    RESULT_LOGGED,
    BiometricEvent,
    ProcessedEvent,
)

logger = logging.getLogger(__name__)

EventListener = Callable[[ProcessedEvent], None]


class BiometricEventHandler:
    """Turns device helper events into attendance and enrollment changes.

    Check-in time is the server clock at receipt; the device timestamp is kept
    only as event metadata. Replayed verification events hit the one-open-
    session rule and are reported as duplicates.
    """

    def __init__(
        self,
        attendance: AttendanceService,
        membership: MembershipService,
        *,
        token: Optional[str],
        clock: Callable[[], datetime] = now_local,
        recent_limit: int = DEFAULT_RECENT_EVENTS,
    ):
        self._attendance = attendance
        self._membership = membership
        self._token = token or ""
        self._clock = clock
        self._recent: deque = deque(maxlen=max(1, int(recent_limit)))
        self._listeners: List[EventListener] = []
        self._lock = threading.Lock()
        if not self._token:
            logger.warning("No bridge token configured; every biometric event will be rejected")

    def authorize(self, authorization_header: Optional[str]) -> None:
        header = authorization_header or ""
        scheme, _, supplied = header.partition(" ")
        if not self._token or scheme.lower() != "bearer":
            raise Unauthorized("Unauthorized")
        if not hmac.compare_digest(supplied.strip().encode("utf-8"), self._token.encode("utf-8")):
            raise Unauthorized("Unauthorized")

    def handle(self, event: BiometricEvent) -> ProcessedEvent:
        received_at = self._clock()
        logger.info(
            "Biometric event %s success=%s member=%s device=%s",
            event.event_type.value,
            event.success,
            event.member_id,
            event.device_id,
        )

        if event.event_type == BiometricEventType.VERIFICATION:
            processed = self._handle_verification(event, received_at)
        else:
            processed = self._handle_enrollment(event, received_at)

        with self._lock:
            self._recent.append(processed)
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(processed)
            except Exception:
                logger.exception("Biometric event listener failed")
        return processed

    def _handle_verification(self, event: BiometricEvent, received_at: datetime) -> ProcessedEvent:
        if not event.success or event.member_id is None:
            logger.info("Verification not accepted: %s", event.message or "no matching member")
            return ProcessedEvent(event=event, result=RESULT_LOGGED, received_at=received_at, detail=event.message)
        try:
            session = self._attendance.check_in(event.member_id, AttendanceSource.BIOMETRIC, now=received_at)
        except ConflictError as e:
            logger.info("Duplicate verification for member %s", event.member_id)
            return ProcessedEvent(event=event, result=RESULT_DUPLICATE, received_at=received_at, detail=str(e))
        except NotFoundError as e:
            logger.warning("Verification for unknown member %s", event.member_id)
            return ProcessedEvent(event=event, result=RESULT_IGNORED, received_at=received_at, detail=str(e))
        return ProcessedEvent(
            event=event, result=RESULT_CHECKED_IN, received_at=received_at, session_id=session.session_id
        )

    def _handle_enrollment(self, event: BiometricEvent, received_at: datetime) -> ProcessedEvent:
        if not event.success or event.member_id is None:
            logger.info("Enrollment not completed: %s", event.message or "no member")
            return ProcessedEvent(event=event, result=RESULT_LOGGED, received_at=received_at, detail=event.message)
        ref = event.template_id or f"{event.device_id or 'device'}:{event.member_id}"
        try:
            self._membership.record_biometric_enrollment(event.member_id, ref, now=received_at)
        except NotFoundError as e:
            logger.warning("Enrollment for unknown member %s", event.member_id)
            return ProcessedEvent(event=event, result=RESULT_IGNORED, received_at=received_at, detail=str(e))
        return ProcessedEvent(event=event, result=RESULT_ENROLLED, received_at=received_at)

    def add_listener(self, listener: EventListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: EventListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def recent(self, limit: Optional[int] = None) -> List[ProcessedEvent]:
        """Most recent first."""

        with self._lock:
            events = list(reversed(self._recent))
        return events[:limit] if limit else events
