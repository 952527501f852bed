"""
Roster-wide billing: one compute per (student, group) on a thread pool, plus the
aggregates dashboards show (group stats, teacher-wide stats, a student's overall
status across groups).
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from billing.errors import BillingError, InvalidInputError
from billing.records import (
    CENTS,
    PAYMENT_PAID,
    STATUS_OVERDUE,
    STATUS_PAID,
    STATUS_PRIORITY,
    StudentBillingStatus,
    ZERO,
    quantize_money,
)
from billing.services.status import compute_from_input

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4


def collection_rate(revenue: Decimal, outstanding: Decimal) -> Decimal:
    """Percent of the expected money already collected; 0 when nothing was expected."""
    expected = revenue + outstanding
    if expected <= 0:
        return ZERO
    return (revenue * 100 / expected).quantize(CENTS)


@dataclass(frozen=True)
class RosterEntry:
    """Result for one pair: either a status or the error that made it unknown."""
    student_id: Any
    group_id: Any
    student_name: str = ""
    group_name: str = ""
    status: Optional[StudentBillingStatus] = None
    error: Optional[BillingError] = None
    total_paid: Decimal = ZERO

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GroupBillingSummary:
    group_id: Any
    total_students: int
    status_counts: Dict[str, int]
    unknown_count: int
    session_debt: Decimal
    registration_debt: Decimal
    overdue_amount: Decimal
    total_revenue: Decimal = ZERO
    group_name: str = ""

    @property
    def total_due(self) -> Decimal:
        return self.session_debt + self.registration_debt

    @property
    def collection_rate(self) -> Decimal:
        return collection_rate(self.total_revenue, self.total_due)


@dataclass(frozen=True)
class TeacherBillingSummary:
    """Totals over every group a teacher owns, with the per-group summaries kept alongside."""
    groups: List[GroupBillingSummary]
    total_students: int
    status_counts: Dict[str, int]
    unknown_count: int
    session_debt: Decimal
    registration_debt: Decimal
    overdue_amount: Decimal
    total_revenue: Decimal

    @property
    def total_groups(self) -> int:
        return len(self.groups)

    @property
    def total_due(self) -> Decimal:
        return self.session_debt + self.registration_debt

    @property
    def collection_rate(self) -> Decimal:
        return collection_rate(self.total_revenue, self.total_due)


@dataclass(frozen=True)
class StudentOverview:
    """
    A student's billing across groups. overall_status is the worst group status,
    or None (unknown) as soon as one group could not be computed.
    """
    student_id: Any
    entries: List[RosterEntry] = field(default_factory=list)
    overall_status: Optional[str] = None
    total_due: Decimal = ZERO


def paid_total(billing_input) -> Decimal:
    """Money collected from the pair: every paid ledger entry, cycle or registration."""
    student_id = billing_input.student.id
    group_id = billing_input.group.group_id
    total = ZERO
    for entry in billing_input.payments:
        if entry.status != PAYMENT_PAID or entry.student_id != student_id or entry.group_id != group_id:
            continue
        try:
            total += Decimal(str(entry.amount))
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidInputError(f"Payment {entry.id} has an invalid amount: {entry.amount!r}") from None
    return quantize_money(total)


def _compute_entry(billing_input) -> RosterEntry:
    student = billing_input.student
    group = billing_input.group
    try:
        status = compute_from_input(billing_input)
        total_paid = paid_total(billing_input)
    except BillingError as exc:
        logger.warning(
            "[billing] status unknown for student=%s group=%s: %s (%s)",
            student.id, group.group_id, exc, exc.code,
        )
        return RosterEntry(
            student_id=student.id,
            group_id=group.group_id,
            student_name=student.full_name,
            group_name=group.name,
            error=exc,
        )
    return RosterEntry(
        student_id=student.id,
        group_id=group.group_id,
        student_name=student.full_name,
        group_name=group.name,
        status=status,
        total_paid=total_paid,
    )


def compute_roster(inputs, max_workers=None) -> List[RosterEntry]:
    """
    Compute every BillingInput concurrently; results keep the order of `inputs`.
    Each task reads only its own input, so no locking is involved.
    """
    inputs = list(inputs)
    if not inputs:
        return []
    workers = max(1, min(max_workers or DEFAULT_WORKERS, len(inputs)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="billing") as pool:
        entries = list(pool.map(_compute_entry, inputs))
    failed = sum(1 for e in entries if not e.ok)
    logger.info("[billing] roster computed: %s pairs, %s unknown, workers=%s", len(entries), failed, workers)
    return entries


def summarize_group(group_id, entries, group_name="") -> GroupBillingSummary:
    """Counts per status, debt and revenue totals over a group's roster entries."""
    counts = {status: 0 for status in STATUS_PRIORITY}
    unknown = 0
    session_debt = ZERO
    registration_debt = ZERO
    overdue_amount = ZERO
    revenue = ZERO
    for entry in entries:
        revenue += entry.total_paid
        if not entry.ok:
            unknown += 1
            continue
        status = entry.status
        counts[status.status] += 1
        session_debt += status.amount_due
        registration_debt += status.registration_fee_due
        if status.status == STATUS_OVERDUE:
            overdue_amount += status.amount_due
    return GroupBillingSummary(
        group_id=group_id,
        total_students=len(entries),
        status_counts=counts,
        unknown_count=unknown,
        session_debt=session_debt,
        registration_debt=registration_debt,
        overdue_amount=overdue_amount,
        total_revenue=revenue,
        group_name=group_name,
    )


def summarize_teacher(group_summaries) -> TeacherBillingSummary:
    """Fold per-group summaries into teacher-wide totals."""
    group_summaries = list(group_summaries)
    counts = {status: 0 for status in STATUS_PRIORITY}
    for summary in group_summaries:
        for status, count in summary.status_counts.items():
            counts[status] += count
    return TeacherBillingSummary(
        groups=group_summaries,
        total_students=sum(s.total_students for s in group_summaries),
        status_counts=counts,
        unknown_count=sum(s.unknown_count for s in group_summaries),
        session_debt=sum((s.session_debt for s in group_summaries), ZERO),
        registration_debt=sum((s.registration_debt for s in group_summaries), ZERO),
        overdue_amount=sum((s.overdue_amount for s in group_summaries), ZERO),
        total_revenue=sum((s.total_revenue for s in group_summaries), ZERO),
    )


def overall_status(student_id, entries) -> StudentOverview:
    """Worst status across a student's groups (paid < approaching < due < overdue) and summed debt."""
    entries = list(entries)
    total_due = ZERO
    worst = None
    unknown = False
    for entry in entries:
        if not entry.ok:
            unknown = True
            continue
        total_due += entry.status.total_due
        if worst is None or STATUS_PRIORITY[entry.status.status] > STATUS_PRIORITY[worst]:
            worst = entry.status.status
    if unknown:
        worst = None
    elif worst is None:
        # No groups at all: nothing can be owed
        worst = STATUS_PAID
    return StudentOverview(
        student_id=student_id,
        entries=entries,
        overall_status=worst,
        total_due=total_due,
    )
