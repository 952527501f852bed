"""
Pending payment generation: once a student owes at least one full cycle, put a
pending session-cycle entry on the ledger so it shows up in payment lists.
Idempotent: an existing pending session-cycle entry for the pair blocks a new one.
Pending entries never anchor a cycle, so writing them does not change any status.

Concurrent generators for the same pair are serialized on the membership row;
the payments_one_open_cycle_pending constraint backs this up at the database level.
"""
import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from groups.models import GroupStudent
from payments.models import Payment
from students.models import StudentProfile
from billing.services.loaders import build_roster_inputs, get_billing_status
from billing.services.roster import compute_roster

logger = logging.getLogger(__name__)


def _lock_membership(student_id, group):
    """Row lock on the (group, student) membership; held until the surrounding transaction ends."""
    return GroupStudent.objects.select_for_update().filter(
        group=group, student_profile_id=student_id,
    ).first()


def _open_pending_entry(student_id, group):
    return Payment.objects.filter(
        student_profile_id=student_id,
        group=group,
        type=Payment.TYPE_SESSION_CYCLE,
        status=Payment.STATUS_PENDING,
        deleted_at__isnull=True,
    ).first()


def _create_pending_for_status(student_id, group, status, created_by=None):
    """Create the pending entry for an owing status unless one is already open. Returns Payment or None."""
    if not status.is_owing:
        return None
    try:
        with transaction.atomic():
            _lock_membership(student_id, group)
            existing = _open_pending_entry(student_id, group)
            if existing:
                logger.info(
                    "[billing] pending payment %s already open for student=%s group=%s, skipping",
                    existing.id, student_id, group.id,
                )
                return None
            payment = Payment.objects.create(
                student_profile_id=student_id,
                group=group,
                amount=status.amount_due,
                type=Payment.TYPE_SESSION_CYCLE,
                status=Payment.STATUS_PENDING,
                due_date=status.due_date,
                created_by=created_by,
                note=f"Automatic - {status.cycles_unpaid} cycle(s) of {status.sessions_per_cycle} sessions",
            )
    except IntegrityError:
        logger.info(
            "[billing] pending payment for student=%s group=%s was opened concurrently, skipping",
            student_id, group.id,
        )
        return None
    logger.info(
        "[billing] pending payment %s created: student=%s group=%s amount=%s due=%s",
        payment.id, student_id, group.id, payment.amount, payment.due_date,
    )
    return payment


def create_pending_payment_if_needed(student_profile: StudentProfile, group, now=None, created_by=None):
    """
    Compute the pair's status and open a pending entry if a cycle is owed.
    Returns the created Payment, or None. BillingError propagates.
    """
    status = get_billing_status(student_profile, group, now=now)
    return _create_pending_for_status(student_profile.id, group, status, created_by=created_by)


def generate_pending_payments_for_group(group, now=None, created_by=None, max_workers=None):
    """
    Run create-if-needed over every active member of the group.
    Students whose status cannot be computed are reported, not skipped silently.
    Returns (created_payments, roster_entries).
    """
    now = now or timezone.now()
    workers = max_workers or getattr(settings, "BILLING_ROSTER_WORKERS", None)
    entries = compute_roster(build_roster_inputs(group, now=now), max_workers=workers)
    created = []
    for entry in entries:
        if not entry.ok:
            continue
        payment = _create_pending_for_status(entry.student_id, group, entry.status, created_by=created_by)
        if payment is not None:
            created.append(payment)
    logger.info(
        "[billing] group=%s: %s pending payments generated for %s students",
        group.id, len(created), len(entries),
    )
    return created, entries
