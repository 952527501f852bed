"""
Loaders: ORM rows -> engine records.
This is the only billing module that queries the database; the engine itself
never does. Roster loading uses a fixed number of queries per group.
"""
import logging
from collections import defaultdict

from django.conf import settings
from django.utils import timezone

from attendance.models import AttendanceRecord, LessonSession
from groups.services import get_active_students_for_group
from payments.models import Payment
from billing.records import (
    AttendanceMark,
    BillingInput,
    GroupTariff,
    PaymentLedgerEntry,
    SessionRecord,
    StudentRef,
    to_timestamp,
)
from billing.services.status import compute_from_input

logger = logging.getLogger(__name__)


def default_grace_period_days():
    return getattr(settings, "BILLING_DEFAULT_GRACE_PERIOD_DAYS", 30)


def parse_as_of(raw):
    """
    An evaluation instant given by a caller (asOf query param, --as-of option).
    Read like every engine date: naive or bare-date values are UTC, so a bare
    asOf and a bare semester_end mean the same midnight whatever TIME_ZONE is.
    Returns None when empty; raises OrderingError when malformed.
    """
    if raw is None or not str(raw).strip():
        return None
    return to_timestamp(str(raw), "asOf")


def tariff_from_group(group) -> GroupTariff:
    return GroupTariff(
        group_id=group.id,
        name=group.name,
        session_fee=group.session_fee,
        monthly_fee=group.monthly_fee,
        payment_threshold=group.payment_threshold,
        registration_fee=group.registration_fee,
        count_absences=group.count_absences,
        grace_period_days=group.grace_period_days,
        semester_start=group.semester_start,
        semester_end=group.semester_end,
    )


def student_ref(student_profile) -> StudentRef:
    return StudentRef(id=student_profile.id, full_name=student_profile.user.full_name)


def load_sessions(group):
    """Completed sessions of the group, oldest first."""
    rows = LessonSession.objects.filter(
        group=group, status=LessonSession.STATUS_COMPLETED,
    ).order_by("starts_at", "id").values_list("id", "starts_at", "status")
    return [
        SessionRecord(id=session_id, group_id=group.id, date=starts_at, status=status)
        for session_id, starts_at, status in rows
    ]


def load_attendance(group, student_ids):
    """Attendance marks of the given students for the group's completed sessions."""
    rows = AttendanceRecord.objects.filter(
        session__group=group,
        session__status=LessonSession.STATUS_COMPLETED,
        student_profile_id__in=list(student_ids),
    ).values_list("session_id", "student_profile_id", "status")
    return [
        AttendanceMark(session_id=session_id, student_id=student_id, status=status)
        for session_id, student_id, status in rows
    ]


def load_payments(group, student_ids):
    """Ledger entries per student for the group: {student_id: [PaymentLedgerEntry]}."""
    rows = Payment.objects.filter(
        group=group,
        student_profile_id__in=list(student_ids),
        deleted_at__isnull=True,
    ).order_by("id").values_list(
        "id", "student_profile_id", "amount", "type", "status", "due_date", "paid_at",
    )
    by_student = defaultdict(list)
    for payment_id, student_id, amount, payment_type, status, due_date, paid_at in rows:
        by_student[student_id].append(PaymentLedgerEntry(
            id=payment_id,
            student_id=student_id,
            group_id=group.id,
            amount=amount,
            type=payment_type,
            status=status,
            due_date=due_date,
            paid_date=paid_at,
        ))
    return by_student


def build_billing_input(student_profile, group, now=None) -> BillingInput:
    """Everything needed to compute one (student, group) pair."""
    now = now or timezone.now()
    return BillingInput(
        student=student_ref(student_profile),
        group=tariff_from_group(group),
        sessions=tuple(load_sessions(group)),
        attendance=tuple(load_attendance(group, [student_profile.id])),
        payments=tuple(load_payments(group, [student_profile.id]).get(student_profile.id, [])),
        now=now,
        default_grace_period_days=default_grace_period_days(),
    )


def build_roster_inputs(group, now=None):
    """One BillingInput per active member; sessions, marks and payments are loaded once for all."""
    now = now or timezone.now()
    memberships = list(get_active_students_for_group(group))
    students = [m.student_profile for m in memberships]
    student_ids = [sp.id for sp in students]

    tariff = tariff_from_group(group)
    sessions = tuple(load_sessions(group))
    marks_by_student = defaultdict(list)
    for mark in load_attendance(group, student_ids):
        marks_by_student[mark.student_id].append(mark)
    payments_by_student = load_payments(group, student_ids)
    grace = default_grace_period_days()

    logger.info(
        "[billing] loaded roster for group=%s: students=%s sessions=%s",
        group.id, len(students), len(sessions),
    )
    return [
        BillingInput(
            student=student_ref(sp),
            group=tariff,
            sessions=sessions,
            attendance=tuple(marks_by_student.get(sp.id, [])),
            payments=tuple(payments_by_student.get(sp.id, [])),
            now=now,
            default_grace_period_days=grace,
        )
        for sp in students
    ]


def get_billing_status(student_profile, group, now=None):
    """Load and compute one pair. BillingError propagates to the caller."""
    return compute_from_input(build_billing_input(student_profile, group, now=now))
