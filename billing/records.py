"""
Plain records consumed and produced by the billing engine.
Nothing here touches the ORM; billing.services.loaders builds these from model rows.
Status strings mirror the choices on LessonSession, AttendanceRecord and Payment.
"""
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, time, timezone as dt_timezone
from decimal import Decimal
from typing import Any, Optional, Sequence, Tuple

from billing.errors import OrderingError

# Session lifecycle
SESSION_SCHEDULED = "scheduled"
SESSION_COMPLETED = "completed"
SESSION_CANCELLED = "cancelled"
SESSION_STATUSES = frozenset({SESSION_SCHEDULED, SESSION_COMPLETED, SESSION_CANCELLED})

# Attendance marks; late counts as present
MARK_PRESENT = "present"
MARK_ABSENT = "absent"
MARK_LATE = "late"
MARK_STATUSES = frozenset({MARK_PRESENT, MARK_ABSENT, MARK_LATE})
ATTENDED_MARKS = frozenset({MARK_PRESENT, MARK_LATE})

# Payment ledger
PAYMENT_SESSION_CYCLE = "session_cycle"
PAYMENT_REGISTRATION = "registration"
PAYMENT_TYPES = frozenset({PAYMENT_SESSION_CYCLE, PAYMENT_REGISTRATION})
PAYMENT_PENDING = "pending"
PAYMENT_PAID = "paid"
PAYMENT_CANCELLED = "cancelled"
PAYMENT_STATUSES = frozenset({PAYMENT_PENDING, PAYMENT_PAID, PAYMENT_CANCELLED})

# Billing status, in escalating order
STATUS_PAID = "paid"
STATUS_APPROACHING = "approaching"
STATUS_DUE = "due"
STATUS_OVERDUE = "overdue"
STATUS_PRIORITY = {
    STATUS_PAID: 0,
    STATUS_APPROACHING: 1,
    STATUS_DUE: 2,
    STATUS_OVERDUE: 3,
}

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_money(amount: Decimal) -> Decimal:
    """Round a currency amount to cents."""
    return Decimal(amount).quantize(CENTS)


def to_timestamp(value, what: str) -> datetime:
    """
    Normalize a date/datetime/ISO string to an aware datetime.
    Naive values are read as UTC; a bare date means the start of that day.
    Raises OrderingError for None or anything unparseable, never falls back to "now".
    """
    if value is None:
        raise OrderingError(f"{what} has no date")
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise OrderingError(f"{what} has an unparseable date: {value!r}") from None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=dt_timezone.utc)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=dt_timezone.utc)
    raise OrderingError(f"{what} has an unparseable date: {value!r}")


def end_of_day(value, what: str) -> datetime:
    """Like to_timestamp, but a bare date covers the whole day."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max, tzinfo=dt_timezone.utc)
    return to_timestamp(value, what)


@dataclass(frozen=True)
class StudentRef:
    id: Any
    full_name: str = ""


@dataclass(frozen=True)
class GroupTariff:
    """Raw tariff fields of a group, exactly as stored (any of them may be missing)."""
    group_id: Any
    name: str = ""
    session_fee: Any = None
    monthly_fee: Any = None
    payment_threshold: Any = None
    registration_fee: Any = None
    count_absences: Optional[bool] = None
    grace_period_days: Any = None
    semester_start: Any = None
    semester_end: Any = None


@dataclass(frozen=True)
class SessionRecord:
    id: Any
    group_id: Any
    date: Any
    status: str = SESSION_COMPLETED


@dataclass(frozen=True)
class AttendanceMark:
    session_id: Any
    student_id: Any
    status: str


@dataclass(frozen=True)
class PaymentLedgerEntry:
    id: Any
    student_id: Any
    group_id: Any
    amount: Decimal
    type: str
    status: str
    due_date: Any = None
    paid_date: Any = None


@dataclass(frozen=True)
class CycleConfig:
    """Canonical per-group billing parameters; nothing downstream looks at raw tariff fields."""
    sessions_per_cycle: int
    price_per_session: Decimal
    registration_fee: Decimal = ZERO
    grace_period_days: int = 30
    count_absences: bool = False
    semester_start: Optional[datetime] = None
    semester_end: Optional[datetime] = None

    @property
    def cycle_price(self) -> Decimal:
        return quantize_money(self.price_per_session * self.sessions_per_cycle)


@dataclass(frozen=True)
class CycleAnchor:
    """
    Lower bound of the current cycle.
    inclusive is False after a payment (sessions at the payment instant are already paid)
    and True for the semester start / first-session fallback. anchor_at None means
    there is no lower bound at all.
    """
    anchor_at: Optional[datetime]
    inclusive: bool
    cycles_already_paid: int = 0
    last_payment_at: Optional[datetime] = None
    registration_paid: bool = False

    def admits(self, moment: datetime) -> bool:
        if self.anchor_at is None:
            return True
        if self.inclusive:
            return moment >= self.anchor_at
        return moment > self.anchor_at


@dataclass(frozen=True)
class AccrualResult:
    countable_sessions: int
    attended_sessions: int
    absent_sessions: int
    late_sessions: int
    walked_sessions: int
    countable_dates: Tuple[datetime, ...] = ()
    first_session_at: Optional[datetime] = None
    last_session_at: Optional[datetime] = None


@dataclass(frozen=True)
class Classification:
    status: str
    cycles_unpaid: int
    amount_due: Decimal
    registration_fee_due: Decimal
    due_date: Optional[datetime]
    sessions_until_due: int


@dataclass(frozen=True)
class StudentBillingStatus:
    """Billing status of one student in one group, as served to dashboards and APIs."""
    student_id: Any
    group_id: Any
    status: str
    countable_sessions_in_cycle: int
    attended_sessions_in_cycle: int
    absent_sessions_in_cycle: int
    late_sessions_in_cycle: int
    sessions_per_cycle: int
    sessions_until_due: int
    cycles_unpaid: int
    cycles_paid: int
    price_per_session: Decimal
    amount_due: Decimal
    registration_fee_due: Decimal
    total_due: Decimal
    due_date: Optional[datetime]
    cycle_started_at: Optional[datetime]
    last_session_at: Optional[datetime]
    last_payment_at: Optional[datetime]
    computed_at: datetime

    @property
    def is_owing(self) -> bool:
        return self.cycles_unpaid > 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class BillingInput:
    """Everything one compute_billing_status call needs; built by the loaders."""
    student: StudentRef
    group: GroupTariff
    sessions: Sequence[SessionRecord] = field(default_factory=tuple)
    attendance: Sequence[AttendanceMark] = field(default_factory=tuple)
    payments: Sequence[PaymentLedgerEntry] = field(default_factory=tuple)
    now: Any = None
    default_grace_period_days: int = 30
