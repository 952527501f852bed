"""
Tariff resolution: raw group fields -> CycleConfig.
Legacy groups store only monthly_fee; newer ones store session_fee + payment_threshold.
This is the only place that knows about both shapes.
"""
import logging
from decimal import Decimal, InvalidOperation

from billing.errors import ConfigError, InvalidInputError, NotFoundError, OrderingError
from billing.records import CycleConfig, GroupTariff, ZERO, end_of_day, to_timestamp

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FEE_THRESHOLD = 8
DEFAULT_MONTHLY_FEE_THRESHOLD = 4
DEFAULT_GRACE_PERIOD_DAYS = 30


def _money(value, field_name):
    """Parse an optional fee; None/'' -> None, negative or non-numeric -> InvalidInputError."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"{field_name} is not a number: {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{field_name} is not a number: {value!r}") from None
    if not amount.is_finite():
        raise InvalidInputError(f"{field_name} is not a number: {value!r}")
    if amount < 0:
        raise InvalidInputError(f"{field_name} cannot be negative: {amount}")
    return amount


def _whole_number(value, field_name):
    if isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be a whole number: {value!r}")
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{field_name} must be a whole number: {value!r}") from None
    if not number.is_finite() or number != number.to_integral_value():
        raise InvalidInputError(f"{field_name} must be a whole number: {value!r}")
    return int(number)


def _threshold(value, default):
    """Sessions per cycle: missing or 0 falls back to the default, negative is rejected."""
    if value is None or value == "":
        return default
    threshold = _whole_number(value, "payment_threshold")
    if threshold < 0:
        raise InvalidInputError(f"payment_threshold cannot be negative: {threshold}")
    return threshold or default


def _grace_period(value, default):
    if value is None or value == "":
        return default
    days = _whole_number(value, "grace_period_days")
    if days < 0:
        raise InvalidInputError(f"grace_period_days cannot be negative: {days}")
    return days


def resolve_cycle_config(tariff: GroupTariff, default_grace_period_days: int = DEFAULT_GRACE_PERIOD_DAYS) -> CycleConfig:
    """
    Normalize a group's tariff into one CycleConfig.

    - session_fee > 0: price = session_fee, N = payment_threshold (default 8).
    - otherwise monthly_fee > 0: N = payment_threshold (default 4), price = monthly_fee / N.
    - neither: ConfigError.
    The per-session price keeps full precision; amounts are rounded when reported.
    """
    if tariff is None:
        raise NotFoundError("Group tariff was not supplied")

    session_fee = _money(tariff.session_fee, "session_fee")
    monthly_fee = _money(tariff.monthly_fee, "monthly_fee")
    registration_fee = _money(tariff.registration_fee, "registration_fee") or ZERO

    if session_fee:
        sessions_per_cycle = _threshold(tariff.payment_threshold, DEFAULT_SESSION_FEE_THRESHOLD)
        price_per_session = session_fee
    elif monthly_fee:
        sessions_per_cycle = _threshold(tariff.payment_threshold, DEFAULT_MONTHLY_FEE_THRESHOLD)
        price_per_session = monthly_fee / Decimal(sessions_per_cycle)
    else:
        raise ConfigError(
            f"Group {tariff.group_id}: neither session_fee nor monthly_fee is set, cannot derive a session price"
        )

    if sessions_per_cycle <= 0:
        raise ConfigError(f"Group {tariff.group_id}: sessions per cycle must be at least 1")
    if price_per_session <= 0:
        raise ConfigError(f"Group {tariff.group_id}: session price must be positive")

    try:
        semester_start = (
            to_timestamp(tariff.semester_start, "semester_start")
            if tariff.semester_start not in (None, "") else None
        )
        semester_end = (
            end_of_day(tariff.semester_end, "semester_end")
            if tariff.semester_end not in (None, "") else None
        )
    except OrderingError as exc:
        raise ConfigError(f"Group {tariff.group_id}: {exc}") from exc
    if semester_start and semester_end and semester_end < semester_start:
        raise ConfigError(f"Group {tariff.group_id}: semester_end is before semester_start")

    config = CycleConfig(
        sessions_per_cycle=sessions_per_cycle,
        price_per_session=price_per_session,
        registration_fee=registration_fee,
        grace_period_days=_grace_period(tariff.grace_period_days, default_grace_period_days),
        count_absences=bool(tariff.count_absences),
        semester_start=semester_start,
        semester_end=semester_end,
    )
    logger.debug(
        "[billing] group=%s config: N=%s price=%s registration=%s grace=%s count_absences=%s",
        tariff.group_id, config.sessions_per_cycle, config.price_per_session,
        config.registration_fee, config.grace_period_days, config.count_absences,
    )
    return config
