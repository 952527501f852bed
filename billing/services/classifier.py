"""
Status classification: countable sessions vs. sessions per cycle -> status, debt, due date.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from billing.records import (
    AccrualResult,
    Classification,
    CycleConfig,
    STATUS_APPROACHING,
    STATUS_DUE,
    STATUS_OVERDUE,
    STATUS_PAID,
    ZERO,
    quantize_money,
    to_timestamp,
)

logger = logging.getLogger(__name__)


def classify(accrual: AccrualResult, config: CycleConfig, registration_paid: bool, now) -> Classification:
    """
    cycles_unpaid = C // N; the Nth countable session completes its cycle.

    Nothing owed: approaching once C >= N - 1, else paid.
    Owed: amount = cycles_unpaid * N * price; due date = date of countable session
    number cycles_unpaid * N plus the grace period; overdue strictly after it.
    An unpaid registration fee is reported on its own and never changes the status.
    """
    now = to_timestamp(now, "now")
    n = config.sessions_per_cycle
    countable = accrual.countable_sessions
    cycles_unpaid = countable // n

    registration_fee_due = ZERO
    if config.registration_fee > 0 and not registration_paid:
        registration_fee_due = quantize_money(config.registration_fee)

    if cycles_unpaid == 0:
        status = STATUS_APPROACHING if countable >= n - 1 else STATUS_PAID
        return Classification(
            status=status,
            cycles_unpaid=0,
            amount_due=ZERO,
            registration_fee_due=registration_fee_due,
            due_date=None,
            sessions_until_due=n - countable,
        )

    crossed_at = accrual.countable_dates[cycles_unpaid * n - 1]
    due_date = crossed_at + timedelta(days=config.grace_period_days)
    amount_due = quantize_money(Decimal(cycles_unpaid * n) * config.price_per_session)
    status = STATUS_OVERDUE if now > due_date else STATUS_DUE

    logger.debug(
        "[billing] C=%s N=%s cycles_unpaid=%s amount_due=%s due_date=%s status=%s",
        countable, n, cycles_unpaid, amount_due, due_date, status,
    )
    return Classification(
        status=status,
        cycles_unpaid=cycles_unpaid,
        amount_due=amount_due,
        registration_fee_due=registration_fee_due,
        due_date=due_date,
        sessions_until_due=n - countable % n,
    )
