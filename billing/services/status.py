"""
Billing status for one (student, group) pair.

compute_billing_status is the single entry point every caller uses: API views,
the roster fan-out and the billing_report command. It is pure; records come in,
a StudentBillingStatus comes out, and any BillingError propagates unchanged.
"""
import logging

from billing.errors import InvalidInputError, NotFoundError, OrderingError
from billing.records import (
    AccrualResult,
    Classification,
    CycleAnchor,
    CycleConfig,
    StudentBillingStatus,
    quantize_money,
    to_timestamp,
)
from billing.services.accrual import walk_sessions
from billing.services.anchor import resolve_cycle_anchor
from billing.services.classifier import classify
from billing.services.tariff import DEFAULT_GRACE_PERIOD_DAYS, resolve_cycle_config

logger = logging.getLogger(__name__)


def assemble_status(student_id, group_id, config: CycleConfig, anchor: CycleAnchor,
                    accrual: AccrualResult, classification: Classification, now) -> StudentBillingStatus:
    """Merge the stage outputs; no decisions are made here."""
    cycle_started_at = anchor.anchor_at if anchor.anchor_at is not None else accrual.first_session_at
    return StudentBillingStatus(
        student_id=student_id,
        group_id=group_id,
        status=classification.status,
        countable_sessions_in_cycle=accrual.countable_sessions,
        attended_sessions_in_cycle=accrual.attended_sessions,
        absent_sessions_in_cycle=accrual.absent_sessions,
        late_sessions_in_cycle=accrual.late_sessions,
        sessions_per_cycle=config.sessions_per_cycle,
        sessions_until_due=classification.sessions_until_due,
        cycles_unpaid=classification.cycles_unpaid,
        cycles_paid=anchor.cycles_already_paid,
        price_per_session=quantize_money(config.price_per_session),
        amount_due=classification.amount_due,
        registration_fee_due=classification.registration_fee_due,
        total_due=classification.amount_due + classification.registration_fee_due,
        due_date=classification.due_date,
        cycle_started_at=cycle_started_at,
        last_session_at=accrual.last_session_at,
        last_payment_at=anchor.last_payment_at,
        computed_at=now,
    )


def _evaluation_instant(now):
    """The caller-supplied instant; missing or malformed is an input error, not a ledger ordering one."""
    if now is None:
        raise InvalidInputError("Evaluation instant (now) was not supplied")
    try:
        return to_timestamp(now, "now")
    except OrderingError as exc:
        raise InvalidInputError(str(exc)) from exc


def compute_billing_status(student, group, sessions, attendance, payments, now,
                           default_grace_period_days=DEFAULT_GRACE_PERIOD_DAYS) -> StudentBillingStatus:
    """
    Compute the billing status of `student` (StudentRef) in `group` (GroupTariff).

    sessions: the group's SessionRecords; attendance: AttendanceMarks (other students'
    marks are ignored); payments: PaymentLedgerEntries for the pair; now: the instant
    to evaluate at, always passed in by the caller.
    Raises ConfigError, OrderingError, NotFoundError or InvalidInputError.
    """
    if student is None:
        raise NotFoundError("Student was not supplied")
    if group is None:
        raise NotFoundError("Group was not supplied")
    now = _evaluation_instant(now)
    sessions = tuple(sessions)

    config = resolve_cycle_config(group, default_grace_period_days=default_grace_period_days)
    anchor = resolve_cycle_anchor(student.id, group.group_id, payments, config, sessions)
    accrual = walk_sessions(student.id, group.group_id, anchor, config, sessions, attendance, now)
    classification = classify(accrual, config, anchor.registration_paid, now)

    status = assemble_status(student.id, group.group_id, config, anchor, accrual, classification, now)
    logger.debug(
        "[billing] student=%s group=%s status=%s cycles_unpaid=%s total_due=%s",
        student.id, group.group_id, status.status, status.cycles_unpaid, status.total_due,
    )
    return status


def compute_from_input(billing_input) -> StudentBillingStatus:
    """compute_billing_status over a BillingInput bundle."""
    return compute_billing_status(
        billing_input.student,
        billing_input.group,
        billing_input.sessions,
        billing_input.attendance,
        billing_input.payments,
        billing_input.now,
        default_grace_period_days=billing_input.default_grace_period_days,
    )
