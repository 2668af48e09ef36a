from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import coerce_date, now_local
from ..common.validators import optional_int, require_choice, require_non_empty, require_positive_int
from ..core.enums import AttendanceSource
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..database.store import LedgerStore
from .model import AttendanceQuery, AttendanceRow, AttendanceSession
from .qr import render_qr_png

logger = logging.getLogger(__name__)


class AttendanceService:
    """Check-in / check-out tracking.

    A member has at most one open session per calendar day. The day is the
    local date of ``now`` when the session is opened.
    """

    def __init__(self, store: LedgerStore, *, clock: Callable[[], datetime] = now_local):
        self._store = store
        self._clock = clock

    def check_in(
        self,
        member_id: int,
        source: AttendanceSource = AttendanceSource.MANUAL,
        *,
        now: Optional[datetime] = None,
    ) -> AttendanceSession:
        now = now or self._clock()
        member_id = require_positive_int(member_id, "Member")
        source = require_choice(source, AttendanceSource, "Source")
        today = now.date()

        with self._store.transaction() as ledger:
            if not ledger.members.get_by_id(member_id):
                raise NotFoundError("Member not found")
            if ledger.attendance.get_open_session(member_id, today):
                raise ConflictError("Already checked in today")
            session_id = ledger.attendance.create_checkin(member_id=member_id, check_in=now, source=source)

        logger.info("Member %s checked in (%s)", member_id, source.value)
        return AttendanceSession(
            session_id=session_id, member_id=member_id, check_in=now, check_out=None, source=source
        )

    def check_out(self, member_id: int, *, now: Optional[datetime] = None) -> AttendanceSession:
        member_id = require_positive_int(member_id, "Member")
        now = now or self._clock()

        with self._store.transaction() as ledger:
            session = ledger.attendance.get_open_session(member_id, now.date())
            if not session:
                raise NotFoundError("No active check-in found for today")
            if not ledger.attendance.close_session(session_id=session.session_id, check_out=now):
                raise NotFoundError("No active check-in found for today")

        logger.info("Member %s checked out", member_id)
        return AttendanceSession(
            session_id=session.session_id,
            member_id=session.member_id,
            check_in=session.check_in,
            check_out=now,
            source=session.source,
        )

    def check_in_by_qr(self, qr_code: str, *, now: Optional[datetime] = None) -> AttendanceSession:
        qr_code = require_non_empty(qr_code, "QR code")
        with self._store.read() as ledger:
            member = ledger.members.get_by_qr_code(qr_code)
        if not member:
            raise NotFoundError("No member matches this QR code")
        return self.check_in(member.member_id, AttendanceSource.QR, now=now)

    def list_by_date(self, day: date) -> Sequence[AttendanceRow]:
        return self.find(AttendanceQuery(on_date=day))

    def list_by_member(self, member_id: int) -> Sequence[AttendanceRow]:
        member_id = require_positive_int(member_id, "Member")
        return self.find(AttendanceQuery(member_id=member_id))

    def today(self, *, now: Optional[datetime] = None) -> Sequence[AttendanceRow]:
        return self.list_by_date((now or self._clock()).date())

    def find(self, query: AttendanceQuery) -> Sequence[AttendanceRow]:
        if query.date_from and query.date_to and query.date_from > query.date_to:
            raise ValidationError("date_from must not be after date_to")
        with self._store.read() as ledger:
            return ledger.attendance.find(query)

    def member_qr_png(self, member_id: int) -> bytes:
        member_id = require_positive_int(member_id, "Member")
        with self._store.read() as ledger:
            member = ledger.members.get_by_id(member_id)
        if not member:
            raise NotFoundError("Member not found")
        if not member.qr_code:
            raise NotFoundError("Member has no QR code")
        return render_qr_png(member.qr_code)

    @staticmethod
    def parse_query(args: Mapping[str, object]) -> AttendanceQuery:
        return AttendanceQuery(
            on_date=coerce_date(args.get("date"), "date"),
            member_id=optional_int(args.get("member_id", args.get("memberId")), "member_id"),
            date_from=coerce_date(args.get("date_from", args.get("dateFrom")), "date_from"),
            date_to=coerce_date(args.get("date_to", args.get("dateTo")), "date_to"),
        )
