"""
Roster fan-out and aggregates: order, per-pair failures, group stats, overall status.
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from billing.errors import ConfigError
from billing.records import (
    AttendanceMark,
    BillingInput,
    GroupTariff,
    PaymentLedgerEntry,
    SessionRecord,
    StudentRef,
    MARK_PRESENT,
    PAYMENT_PENDING,
    PAYMENT_REGISTRATION,
    STATUS_APPROACHING,
    STATUS_DUE,
    STATUS_OVERDUE,
    STATUS_PAID,
)
from billing.services.roster import (
    collection_rate,
    compute_roster,
    overall_status,
    summarize_group,
    summarize_teacher,
)

UTC = dt_timezone.utc
START = datetime(2026, 2, 2, 15, 0, tzinfo=UTC)
GROUP = GroupTariff(group_id=1, name="Algebra", session_fee=Decimal("10.00"), payment_threshold=8,
                    registration_fee=Decimal("20.00"))
SESSIONS = tuple(
    SessionRecord(id=i + 1, group_id=1, date=START + timedelta(days=3 * i)) for i in range(10)
)


def _input(student_id, attended, group=GROUP, now=None, payments=()):
    marks = tuple(
        AttendanceMark(session_id=s.id, student_id=student_id, status=MARK_PRESENT)
        for s in SESSIONS[:attended]
    )
    return BillingInput(
        student=StudentRef(id=student_id, full_name=f"Student {student_id}"),
        group=group,
        sessions=SESSIONS,
        attendance=marks,
        payments=payments,
        now=now or SESSIONS[-1].date + timedelta(days=1),
    )


def _registration_paid(student_id):
    return (PaymentLedgerEntry(
        id=100 + student_id, student_id=student_id, group_id=1, amount=Decimal("20.00"),
        type=PAYMENT_REGISTRATION, status="paid", paid_date=START,
    ),)


class ComputeRosterTests(SimpleTestCase):

    def test_results_follow_input_order(self):
        inputs = [_input(student_id, attended) for student_id, attended in ((5, 2), (3, 9), (9, 7), (1, 0))]
        entries = compute_roster(inputs, max_workers=3)
        self.assertEqual([e.student_id for e in entries], [5, 3, 9, 1])
        self.assertEqual(
            [e.status.status for e in entries],
            [STATUS_PAID, STATUS_DUE, STATUS_APPROACHING, STATUS_PAID],
        )
        self.assertEqual(entries[1].student_name, "Student 3")
        self.assertEqual(entries[1].group_name, "Algebra")

    def test_matches_sequential_computation(self):
        inputs = [_input(i, i) for i in range(1, 11)]
        parallel = compute_roster(inputs, max_workers=4)
        sequential = compute_roster(inputs, max_workers=1)
        self.assertEqual([e.status for e in parallel], [e.status for e in sequential])

    def test_one_bad_pair_does_not_fail_the_roster(self):
        broken = GroupTariff(group_id=1, name="Algebra")
        entries = compute_roster([_input(1, 9), _input(2, 3, group=broken), _input(3, 1)])
        self.assertTrue(entries[0].ok)
        self.assertFalse(entries[1].ok)
        self.assertIsInstance(entries[1].error, ConfigError)
        self.assertIsNone(entries[1].status)
        self.assertTrue(entries[2].ok)

    def test_empty_roster(self):
        self.assertEqual(compute_roster([]), [])


class SummarizeGroupTests(SimpleTestCase):

    def test_counts_and_debt(self):
        late = SESSIONS[7].date + timedelta(days=31)
        inputs = [
            _input(1, 9, payments=_registration_paid(1)),   # due, 80
            _input(2, 2),                                   # paid, registration 20 owed
            _input(3, 8, now=late, payments=_registration_paid(3)),  # overdue, 80
            _input(4, 3, group=GroupTariff(group_id=1, name="Algebra")),  # unknown
        ]
        summary = summarize_group(1, compute_roster(inputs))
        self.assertEqual(summary.total_students, 4)
        self.assertEqual(summary.unknown_count, 1)
        self.assertEqual(summary.status_counts, {
            STATUS_PAID: 1, STATUS_APPROACHING: 0, STATUS_DUE: 1, STATUS_OVERDUE: 1,
        })
        self.assertEqual(summary.session_debt, Decimal("160.00"))
        self.assertEqual(summary.registration_debt, Decimal("20.00"))
        self.assertEqual(summary.overdue_amount, Decimal("80.00"))
        self.assertEqual(summary.total_due, Decimal("180.00"))
        # Registration fees paid by students 1 and 3
        self.assertEqual(summary.total_revenue, Decimal("40.00"))
        self.assertEqual(summary.collection_rate, Decimal("18.18"))


class OverallStatusTests(SimpleTestCase):

    def test_worst_status_wins(self):
        other = GroupTariff(group_id=2, name="Physics", monthly_fee=Decimal("100"))
        entries = compute_roster([
            _input(1, 7, payments=_registration_paid(1)),
            BillingInput(
                student=StudentRef(id=1), group=other,
                sessions=tuple(SessionRecord(id=50 + i, group_id=2, date=START + timedelta(days=i)) for i in range(4)),
                attendance=tuple(AttendanceMark(session_id=50 + i, student_id=1, status=MARK_PRESENT) for i in range(4)),
                payments=(PaymentLedgerEntry(
                    id=1, student_id=1, group_id=2, amount=Decimal("100"),
                    type="session_cycle", status=PAYMENT_PENDING,
                ),),
                now=START + timedelta(days=10),
            ),
        ])
        overview = overall_status(1, entries)
        self.assertEqual(overview.overall_status, STATUS_DUE)
        self.assertEqual(overview.total_due, Decimal("100.00"))
        self.assertEqual(len(overview.entries), 2)

    def test_unknown_group_makes_overall_unknown(self):
        entries = compute_roster([_input(1, 2), _input(1, 2, group=GroupTariff(group_id=1))])
        self.assertIsNone(overall_status(1, entries).overall_status)

    def test_no_groups_is_paid(self):
        overview = overall_status(1, [])
        self.assertEqual(overview.overall_status, STATUS_PAID)
        self.assertEqual(overview.total_due, Decimal("0.00"))


class RevenueTests(SimpleTestCase):

    def test_total_paid_counts_paid_entries_of_the_pair_only(self):
        payments = _registration_paid(1) + (
            PaymentLedgerEntry(id=1, student_id=1, group_id=1, amount=Decimal("80.00"),
                               type="session_cycle", status="paid", paid_date=START + timedelta(hours=1)),
            PaymentLedgerEntry(id=2, student_id=1, group_id=1, amount=Decimal("80.00"),
                               type="session_cycle", status=PAYMENT_PENDING),
            PaymentLedgerEntry(id=3, student_id=1, group_id=2, amount=Decimal("55.00"),
                               type="session_cycle", status="paid", paid_date=START),
        )
        entry = compute_roster([_input(1, 3, payments=payments)])[0]
        self.assertEqual(entry.total_paid, Decimal("100.00"))

    def test_collection_rate(self):
        self.assertEqual(collection_rate(Decimal("300"), Decimal("100")), Decimal("75.00"))
        self.assertEqual(collection_rate(Decimal("0"), Decimal("0")), Decimal("0.00"))
        self.assertEqual(collection_rate(Decimal("50"), Decimal("0")), Decimal("100.00"))

    def test_teacher_totals_fold_group_summaries(self):
        algebra = summarize_group(1, compute_roster([
            _input(1, 9, payments=_registration_paid(1)),
            _input(2, 2),
        ]), group_name="Algebra")
        other = GroupTariff(group_id=2, name="Physics", session_fee=Decimal("5.00"), payment_threshold=4)
        physics_sessions = tuple(SessionRecord(id=60 + i, group_id=2, date=START + timedelta(days=i)) for i in range(4))
        physics = summarize_group(2, compute_roster([BillingInput(
            student=StudentRef(id=1), group=other, sessions=physics_sessions,
            attendance=tuple(AttendanceMark(session_id=s.id, student_id=1, status=MARK_PRESENT) for s in physics_sessions),
            now=START + timedelta(days=5),
        )]), group_name="Physics")

        totals = summarize_teacher([algebra, physics])
        self.assertEqual(totals.total_groups, 2)
        self.assertEqual(totals.total_students, 3)
        self.assertEqual(totals.status_counts[STATUS_DUE], 2)
        self.assertEqual(totals.status_counts[STATUS_PAID], 1)
        self.assertEqual(totals.session_debt, Decimal("100.00"))
        self.assertEqual(totals.registration_debt, Decimal("20.00"))
        self.assertEqual(totals.total_revenue, Decimal("20.00"))
        self.assertEqual(totals.collection_rate, Decimal("14.29"))
        self.assertEqual([g.group_name for g in totals.groups], ["Algebra", "Physics"])

    def test_no_groups(self):
        totals = summarize_teacher([])
        self.assertEqual(totals.total_groups, 0)
        self.assertEqual(totals.total_due, Decimal("0.00"))
        self.assertEqual(totals.collection_rate, Decimal("0.00"))
