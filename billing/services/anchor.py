"""
Cycle anchor: where the current (possibly unpaid) cycle starts.
The latest paid session-cycle payment wins; registration payments never anchor.
"""
import logging

from billing.errors import InvalidInputError
from billing.records import (
    CycleAnchor,
    CycleConfig,
    PAYMENT_PAID,
    PAYMENT_REGISTRATION,
    PAYMENT_STATUSES,
    PAYMENT_TYPES,
    SESSION_CANCELLED,
    to_timestamp,
)

logger = logging.getLogger(__name__)


def _earliest_session_at(group_id, sessions):
    earliest = None
    for session in sessions:
        if session.group_id != group_id or session.status == SESSION_CANCELLED:
            continue
        session_at = to_timestamp(session.date, f"Session {session.id}")
        if earliest is None or session_at < earliest:
            earliest = session_at
    return earliest


def resolve_cycle_anchor(student_id, group_id, payments, config: CycleConfig, sessions=()) -> CycleAnchor:
    """
    Find the anchor for (student_id, group_id).

    Paid SESSION_CYCLE entries with a paid_date are counted; the latest paid_date is an
    exclusive anchor. Paid entries without paid_date do not anchor. Without any anchoring
    payment, the cycle starts at semester_start, else at the group's first session
    (both inclusive). Ledger rows of other pairs are skipped.
    """
    latest_paid_at = None
    cycles_paid = 0
    registration_paid = False

    for entry in payments:
        if entry.type not in PAYMENT_TYPES:
            raise InvalidInputError(f"Payment {entry.id} has unknown type {entry.type!r}")
        if entry.status not in PAYMENT_STATUSES:
            raise InvalidInputError(f"Payment {entry.id} has unknown status {entry.status!r}")
        if entry.student_id != student_id or entry.group_id != group_id:
            logger.debug("[billing] payment %s belongs to another student/group, skipped", entry.id)
            continue
        # A non-null date must parse even when the entry cannot anchor
        paid_at = to_timestamp(entry.paid_date, f"Payment {entry.id}") if entry.paid_date is not None else None
        if entry.status != PAYMENT_PAID:
            continue
        if entry.type == PAYMENT_REGISTRATION:
            registration_paid = True
            continue
        if paid_at is None:
            logger.debug("[billing] payment %s is paid but has no paid_date, does not anchor", entry.id)
            continue
        cycles_paid += 1
        if latest_paid_at is None or paid_at > latest_paid_at:
            latest_paid_at = paid_at

    if latest_paid_at is not None:
        anchor = CycleAnchor(
            anchor_at=latest_paid_at,
            inclusive=False,
            cycles_already_paid=cycles_paid,
            last_payment_at=latest_paid_at,
            registration_paid=registration_paid,
        )
    else:
        start = config.semester_start
        if start is None:
            start = _earliest_session_at(group_id, sessions)
        anchor = CycleAnchor(
            anchor_at=start,
            inclusive=True,
            cycles_already_paid=0,
            last_payment_at=None,
            registration_paid=registration_paid,
        )

    logger.debug(
        "[billing] student=%s group=%s anchor=%s inclusive=%s cycles_paid=%s registration_paid=%s",
        student_id, group_id, anchor.anchor_at, anchor.inclusive, anchor.cycles_already_paid,
        anchor.registration_paid,
    )
    return anchor
