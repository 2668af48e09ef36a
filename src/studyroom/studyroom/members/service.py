from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Callable, Mapping, Optional, Sequence

from ..common.datetime_utils import add_days, coerce_date, format_date, now_local
from ..common.validators import optional_int, optional_text, require_choice, require_non_empty, require_positive_int
from ..core.constants import DEFAULT_TOTAL_SEATS, MEMBER_QR_PREFIX, SETTING_TOTAL_SEATS
from ..core.enums import MemberStatus
from ..core.exceptions import ConflictError, NotFoundError, StateError, ValidationError
from ..database.store import Ledger, LedgerStore
from ..payments.model import PaymentDraft
from ..payments.receipts import ReceiptNumberGenerator
from ..payments.service import insert_payment
from ..settings.service import int_setting
from .model import EnrollmentResult, Member, MemberFilter, NewMember, RenewalResult, SeatUtilization
from .repository import EDITABLE_FIELDS

logger = logging.getLogger(__name__)


def _pick(data: Mapping[str, object], *keys: str):
    for key in keys:
        if key in data:
            return data[key]
    return None


def renewal_end_date(*, today: date, current_end_date: date, duration_days: int) -> date:
    """Plan days are added to the later of today and the current end date.

    Renewing early therefore never loses paid days, and the result is never
    earlier than the current end date.
    """

    return add_days(max(today, current_end_date), duration_days)


class MembershipService:
    """Lifecycle & ledger core: the only path that changes members and payments together."""

    def __init__(
        self,
        store: LedgerStore,
        *,
        receipts: Optional[ReceiptNumberGenerator] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self._store = store
        self._receipts = receipts or ReceiptNumberGenerator()
        self._clock = clock

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def enroll(
        self,
        member_data: Mapping[str, object],
        plan_id: int,
        *,
        payment: Optional[PaymentDraft] = None,
        now: Optional[datetime] = None,
    ) -> EnrollmentResult:
        now = now or self._clock()
        new_member = self._parse_new_member(member_data, today=now.date())
        plan_id = require_positive_int(plan_id, "Plan")

        with self._store.transaction() as ledger:
            plan = ledger.plans.get_by_id(plan_id)
            if not plan:
                raise ValidationError("Selected plan does not exist")
            if new_member.seat_no:
                self._validate_seat_range(ledger, new_member.seat_no)
                self._ensure_seat_free(ledger, new_member.seat_no, member_id=None)

            end_date = add_days(new_member.join_date, plan.duration_days)
            member_id = ledger.members.create(member=new_member, plan_id=plan.plan_id, end_date=end_date, now=now)
            ledger.members.set_qr_code(member_id=member_id, qr_code=f"{MEMBER_QR_PREFIX}{member_id}")

            payment_id = receipt_number = None
            if payment is not None:
                payment_id, receipt_number = insert_payment(
                    ledger,
                    self._receipts,
                    member_id=member_id,
                    amount=plan.price,
                    draft=payment,
                    now=now,
                    plan_id=plan.plan_id,
                    default_note="Membership enrollment",
                )
            member = ledger.members.get_by_id(member_id)

        logger.info("Enrolled member %s on plan %s until %s", member_id, plan.name, format_date(end_date))
        return EnrollmentResult(member=member, payment_id=payment_id, receipt_number=receipt_number)

    def renew(
        self,
        member_id: int,
        plan_id: int,
        payment: Optional[PaymentDraft] = None,
        *,
        now: Optional[datetime] = None,
    ) -> RenewalResult:
        now = now or self._clock()
        payment = payment or PaymentDraft()
        plan_id = require_positive_int(plan_id, "Plan")
        member_id = require_positive_int(member_id, "Member")

        # Read, compute and both writes share one IMMEDIATE transaction.
        with self._store.transaction() as ledger:
            member = ledger.members.get_by_id(member_id)
            if not member:
                raise NotFoundError("Member not found")
            plan = ledger.plans.get_by_id(plan_id)
            if not plan:
                raise NotFoundError("Plan not found")
            if member.status == MemberStatus.SUSPENDED:
                raise StateError("Member is suspended; reactivate the membership before renewing")
            if member.status == MemberStatus.EXPIRED and member.seat_no:
                self._ensure_seat_free(ledger, member.seat_no, member_id=member.member_id)

            new_end_date = renewal_end_date(
                today=now.date(), current_end_date=member.end_date, duration_days=plan.duration_days
            )
            if not ledger.members.apply_renewal(
                member_id=member.member_id, plan_id=plan.plan_id, end_date=new_end_date, now=now
            ):
                raise StateError("Membership could not be renewed in its current state")

            payment_id, receipt_number = insert_payment(
                ledger,
                self._receipts,
                member_id=member.member_id,
                amount=plan.price,
                draft=payment,
                now=now,
                plan_id=plan.plan_id,
                default_note="Membership renewal",
            )

        logger.info(
            "Renewed member %s: %s -> %s (receipt %s)",
            member.member_id,
            format_date(member.end_date),
            format_date(new_end_date),
            receipt_number,
        )
        return RenewalResult(
            member_id=member.member_id,
            plan_id=plan.plan_id,
            previous_end_date=member.end_date,
            new_end_date=new_end_date,
            payment_id=payment_id,
            receipt_number=receipt_number,
            amount=plan.price,
        )

    def suspend(self, member_id: int, *, now: Optional[datetime] = None) -> Member:
        member_id = require_positive_int(member_id, "Member")
        now = now or self._clock()
        with self._store.transaction() as ledger:
            member = ledger.members.get_by_id(member_id)
            if not member:
                raise NotFoundError("Member not found")
            if member.status == MemberStatus.SUSPENDED:
                return member
            ledger.members.set_status(
                member_id=member.member_id, status=MemberStatus.SUSPENDED, from_status=member.status, now=now
            )
            member = ledger.members.get_by_id(member.member_id)

        logger.info("Suspended member %s", member.member_id)
        return member

    def reactivate(self, member_id: int, *, now: Optional[datetime] = None) -> Member:
        """Lift a suspension.

        A member whose paid window ended while suspended comes back as
        ``expired``; only a renewal turns an expired member active.
        """

        now = now or self._clock()
        member_id = require_positive_int(member_id, "Member")
        with self._store.transaction() as ledger:
            member = ledger.members.get_by_id(member_id)
            if not member:
                raise NotFoundError("Member not found")
            if member.status == MemberStatus.ACTIVE:
                return member
            if member.status == MemberStatus.EXPIRED:
                raise StateError("Membership has expired; renew it to reactivate")

            target = MemberStatus.ACTIVE if member.end_date >= now.date() else MemberStatus.EXPIRED
            if target == MemberStatus.ACTIVE and member.seat_no:
                self._ensure_seat_free(ledger, member.seat_no, member_id=member.member_id)
            ledger.members.set_status(
                member_id=member.member_id, status=target, from_status=MemberStatus.SUSPENDED, now=now
            )
            member = ledger.members.get_by_id(member.member_id)

        logger.info("Reactivated member %s as %s", member.member_id, member.status.value)
        return member

    def expire_overdue(self, *, now: Optional[datetime] = None) -> int:
        """Expiry sweep: active members past their end date become expired."""

        now = now or self._clock()
        with self._store.transaction() as ledger:
            changed = ledger.members.expire_overdue(today=now.date(), now=now)
        if changed:
            logger.info("Expiry sweep marked %d member(s) expired", changed)
        return changed

    # ------------------------------------------------------------------
    # Member records
    # ------------------------------------------------------------------
    def get_member(self, member_id: int) -> Member:
        member_id = require_positive_int(member_id, "Member")
        with self._store.read() as ledger:
            member = ledger.members.get_by_id(member_id)
        if not member:
            raise NotFoundError("Member not found")
        return member

    def list_members(self, criteria: Optional[MemberFilter] = None) -> Sequence[Member]:
        with self._store.read() as ledger:
            return ledger.members.find(criteria or MemberFilter())

    def update_member(self, member_id: int, fields: Mapping[str, object], *, now: Optional[datetime] = None) -> Member:
        member_id = require_positive_int(member_id, "Member")
        now = now or self._clock()
        changes = self._parse_member_changes(fields)
        if not changes:
            raise ValidationError("Nothing to update")

        with self._store.transaction() as ledger:
            member = ledger.members.get_by_id(member_id)
            if not member:
                raise NotFoundError("Member not found")
            if "phone" in changes or "email" in changes:
                phone = changes.get("phone", member.phone)
                email = changes.get("email", member.email)
                if not phone and not email:
                    raise ValidationError("Phone or email is required")
            seat = changes.get("seat_no")
            if seat and seat != member.seat_no:
                self._validate_seat_range(ledger, seat)
                if member.status == MemberStatus.ACTIVE:
                    self._ensure_seat_free(ledger, seat, member_id=member.member_id)
            ledger.members.update_fields(member_id=member.member_id, fields=changes, now=now)
            return ledger.members.get_by_id(member.member_id)

    def record_biometric_enrollment(
        self, member_id: int, biometric_ref: Optional[str], *, now: Optional[datetime] = None
    ) -> Member:
        now = now or self._clock()
        member_id = require_positive_int(member_id, "Member")
        with self._store.transaction() as ledger:
            if not ledger.members.set_biometric_ref(member_id=member_id, biometric_ref=biometric_ref, now=now):
                raise NotFoundError("Member not found")
            return ledger.members.get_by_id(member_id)

    def find_by_qr_code(self, qr_code: str) -> Member:
        qr_code = require_non_empty(qr_code, "QR code")
        with self._store.read() as ledger:
            member = ledger.members.get_by_qr_code(qr_code)
        if not member:
            raise NotFoundError("No member matches this QR code")
        return member

    # ------------------------------------------------------------------
    # Seats
    # ------------------------------------------------------------------
    def next_seat_number(self) -> Optional[int]:
        return self.seat_utilization().next_available

    def seat_utilization(self) -> SeatUtilization:
        with self._store.read() as ledger:
            total = int_setting(ledger.settings, SETTING_TOTAL_SEATS, DEFAULT_TOTAL_SEATS)
            seats = list(ledger.members.active_seat_numbers())

        taken = {int(s) for s in seats if str(s).isdigit()}
        next_free = next((n for n in range(1, total + 1) if n not in taken), None)
        occupied = len(seats)
        return SeatUtilization(
            total_seats=total,
            occupied=occupied,
            available=max(0, total - occupied),
            utilization_percent=round(occupied * 100 / total) if total > 0 else 0,
            next_available=next_free,
        )

    @staticmethod
    def _validate_seat_range(ledger: Ledger, seat_no: str) -> None:
        if not seat_no.isdigit():
            return
        total = int_setting(ledger.settings, SETTING_TOTAL_SEATS, DEFAULT_TOTAL_SEATS)
        if not 1 <= int(seat_no) <= total:
            raise ValidationError(f"Seat number must be between 1 and {total}")

    @staticmethod
    def _ensure_seat_free(ledger: Ledger, seat_no: str, *, member_id: Optional[int]) -> None:
        holder = ledger.members.active_seat_holder(seat_no)
        if holder and holder.member_id != member_id:
            raise ConflictError(f"Seat {seat_no} is already assigned to {holder.name}")

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------
    @staticmethod
    def _parse_new_member(data: Mapping[str, object], *, today: date) -> NewMember:
        if not isinstance(data, Mapping):
            raise ValidationError("Member data is required")
        name = require_non_empty(_pick(data, "name"), "Name")
        phone = optional_text(_pick(data, "phone"))
        email = optional_text(_pick(data, "email"))
        if not phone and not email:
            raise ValidationError("Phone or email is required")
        seat = _pick(data, "seat_no", "seatNo")
        return NewMember(
            name=name,
            email=email,
            phone=phone,
            seat_no=optional_text(None if seat is None else str(seat)),
            join_date=coerce_date(_pick(data, "join_date", "joinDate"), "Join date") or today,
            birth_date=coerce_date(_pick(data, "birth_date", "birthDate"), "Birth date"),
            city=optional_text(_pick(data, "city")),
            address=optional_text(_pick(data, "address")),
        )

    @staticmethod
    def _parse_member_changes(fields: Mapping[str, object]) -> dict:
        aliases = {"seatNo": "seat_no", "birthDate": "birth_date"}
        changes: dict = {}
        for key, value in (fields or {}).items():
            column = aliases.get(key, key)
            if column not in EDITABLE_FIELDS:
                continue
            if column == "name":
                changes[column] = require_non_empty(value, "Name")
            elif column == "birth_date":
                parsed = coerce_date(value, "Birth date")
                changes[column] = format_date(parsed) if parsed else None
            else:
                changes[column] = optional_text(None if value is None else str(value))
        return changes

    @staticmethod
    def parse_filter(args: Mapping[str, object]) -> MemberFilter:
        status = args.get("status")
        return MemberFilter(
            status=require_choice(status, MemberStatus, "Status") if status else None,
            search=optional_text(args.get("search")),
            plan_id=optional_int(args.get("plan_id", args.get("planId")), "plan_id"),
            limit=optional_int(args.get("limit"), "limit"),
        )
