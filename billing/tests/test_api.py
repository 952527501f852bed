"""
Teacher billing API:
- status of one student in one group (due, overdue, paid after payment)
- validation (groupId, asOf), ownership and membership checks, engine errors -> 422
- group summaries and stats, student overview across groups
- pending payment generation (idempotent)
- RBAC: anonymous 401, student 403
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from urllib.parse import urlencode

from django.test import TestCase, override_settings
from django.urls import reverse
from django.utils.dateparse import parse_datetime
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from accounts.models import User
from payments.models import Payment
from billing.tests.helpers import AS_OF, START, BillingFixturesMixin


class BillingApiTestBase(BillingFixturesMixin, TestCase):

    def setUp(self):
        self.client = APIClient()
        self.teacher = self.make_user("teacher@test.az", "Teacher", User.ROLE_TEACHER)
        self.other_teacher = self.make_user("other@test.az", "Other Teacher", User.ROLE_TEACHER)

        self.alice = self.make_student("alice@test.az", "Alice")
        self.bob = self.make_student("bob@test.az", "Bob")
        self.outsider = self.make_student("outsider@test.az", "Outsider")

        self.group = self.make_group(self.teacher)
        self.enroll(self.group, self.alice)
        self.enroll(self.group, self.bob)
        self.sessions = self.add_sessions(self.group, 10)
        self.mark(self.sessions[:9], self.alice)
        self.mark(self.sessions[:2], self.bob)

        self.client.credentials(**self._auth_header(self.teacher))

    def _auth_header(self, user):
        token = str(AccessToken.for_user(user))
        return {"HTTP_AUTHORIZATION": f"Bearer {token}"}

    def _status(self, student, group=None, as_of=AS_OF):
        url = reverse("billing-student-status", args=[student.id])
        return self.client.get(url, {"groupId": (group or self.group).id, "asOf": as_of.isoformat()})


class StudentStatusApiTests(BillingApiTestBase):

    def test_owing_student_is_due(self):
        response = self._status(self.alice)
        self.assertEqual(response.status_code, 200, response.data)
        data = response.json()
        self.assertEqual(data["status"], "due")
        self.assertEqual(data["countableSessionsInCycle"], 9)
        self.assertEqual(data["cyclesUnpaid"], 1)
        self.assertEqual(data["amountDue"], 80.0)
        self.assertEqual(data["sessionsUntilDue"], 7)
        self.assertEqual(parse_datetime(data["dueDate"]), START + timedelta(days=51))
        self.assertEqual(parse_datetime(data["computedAt"]), AS_OF)
        self.assertEqual(data["lateSessionsInCycle"], 0)
        self.assertEqual(parse_datetime(data["lastSessionAt"]), self.sessions[9].starts_at)

    def test_past_grace_is_overdue(self):
        response = self._status(self.alice, as_of=START + timedelta(days=60))
        self.assertEqual(response.json()["status"], "overdue")

    def test_light_attendance_is_paid(self):
        data = self._status(self.bob).json()
        self.assertEqual(data["status"], "paid")
        self.assertEqual(data["amountDue"], 0.0)
        self.assertIsNone(data["dueDate"])

    def test_payment_starts_a_new_cycle(self):
        paid_at = START + timedelta(days=22)
        Payment.objects.create(
            student_profile=self.alice, group=self.group, amount=Decimal("80.00"),
            status=Payment.STATUS_PAID, paid_at=paid_at,
        )
        data = self._status(self.alice).json()
        self.assertEqual(data["status"], "paid")
        self.assertEqual(data["countableSessionsInCycle"], 1)
        self.assertEqual(data["cyclesPaid"], 1)
        self.assertEqual(parse_datetime(data["lastPaymentAt"]), paid_at)

    def test_soft_deleted_payment_is_ignored(self):
        Payment.objects.create(
            student_profile=self.alice, group=self.group, amount=Decimal("80.00"),
            status=Payment.STATUS_PAID, paid_at=START + timedelta(days=22), deleted_at=START + timedelta(days=23),
        )
        self.assertEqual(self._status(self.alice).json()["cyclesUnpaid"], 1)

    def test_group_id_is_required(self):
        url = reverse("billing-student-status", args=[self.alice.id])
        for params in ({}, {"groupId": "abc"}):
            response = self.client.get(url, params)
            self.assertEqual(response.status_code, 400)
            self.assertEqual(response.data["code"], "validation_error")

    def test_invalid_as_of(self):
        url = reverse("billing-student-status", args=[self.alice.id])
        response = self.client.get(url, {"groupId": self.group.id, "asOf": "next tuesday"})
        self.assertEqual(response.status_code, 400)

    @override_settings(TIME_ZONE="Asia/Baku")
    def test_bare_as_of_is_utc_midnight(self):
        url = reverse("billing-student-status", args=[self.alice.id])
        data = self.client.get(url, {"groupId": self.group.id, "asOf": "2026-03-02"}).json()
        self.assertEqual(parse_datetime(data["computedAt"]), datetime(2026, 3, 2, tzinfo=dt_timezone.utc))

    def test_late_marks_are_reported(self):
        self.mark(self.sessions[9:], self.alice, status="late")
        data = self._status(self.alice).json()
        self.assertEqual(data["lateSessionsInCycle"], 1)
        self.assertEqual(data["countableSessionsInCycle"], 10)

    def test_other_teachers_group_is_not_found(self):
        foreign = self.make_group(self.other_teacher, name="Foreign")
        self.enroll(foreign, self.alice)
        response = self._status(self.alice, group=foreign)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["code"], "not_found")

    def test_non_member_is_not_found(self):
        self.assertEqual(self._status(self.outsider).status_code, 404)

    def test_unknown_student_is_not_found(self):
        url = reverse("billing-student-status", args=[999999])
        response = self.client.get(url, {"groupId": self.group.id})
        self.assertEqual(response.status_code, 404)

    def test_group_without_tariff_is_unprocessable(self):
        bare = self.make_group(self.teacher, name="No tariff", session_fee=None, payment_threshold=None)
        self.enroll(bare, self.alice)
        response = self._status(self.alice, group=bare)
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.data["code"], "config_error")


class GroupBillingApiTests(BillingApiTestBase):

    def test_summaries_list_every_active_member(self):
        url = reverse("billing-group-summaries", args=[self.group.id])
        response = self.client.get(url, {"asOf": AS_OF.isoformat()})
        self.assertEqual(response.status_code, 200, response.data)
        rows = response.json()
        self.assertEqual([row["studentId"] for row in rows], [self.alice.id, self.bob.id])
        self.assertEqual(rows[0]["studentName"], "Alice")
        self.assertEqual(rows[0]["billing"]["status"], "due")
        self.assertEqual(rows[1]["billing"]["status"], "paid")
        self.assertIsNone(rows[0]["error"])

    def test_summaries_skip_students_who_left(self):
        self.group.group_students.filter(student_profile=self.bob).update(active=False, left_at=AS_OF)
        url = reverse("billing-group-summaries", args=[self.group.id])
        rows = self.client.get(url, {"asOf": AS_OF.isoformat()}).json()
        self.assertEqual([row["studentId"] for row in rows], [self.alice.id])

    def test_summaries_report_unknown_rows(self):
        self.group.session_fee = None
        self.group.save()
        url = reverse("billing-group-summaries", args=[self.group.id])
        response = self.client.get(url, {"asOf": AS_OF.isoformat()})
        self.assertEqual(response.status_code, 200)
        for row in response.json():
            self.assertIsNone(row["billing"])
            self.assertEqual(row["error"]["code"], "config_error")

    def test_stats(self):
        url = reverse("billing-group-stats", args=[self.group.id])
        data = self.client.get(url, {"asOf": AS_OF.isoformat()}).json()
        self.assertEqual(data["groupName"], "Algebra")
        self.assertEqual(data["totalStudents"], 2)
        self.assertEqual(data["statusCounts"], {"paid": 1, "approaching": 0, "due": 1, "overdue": 0})
        self.assertEqual(data["sessionDebt"], 80.0)
        self.assertEqual(data["overdueAmount"], 0.0)
        self.assertEqual(data["unknownCount"], 0)
        self.assertEqual(data["totalRevenue"], 0.0)
        self.assertEqual(data["collectionRate"], 0.0)

    def test_stats_include_revenue(self):
        Payment.objects.create(
            student_profile=self.bob, group=self.group, amount=Decimal("20.00"),
            type=Payment.TYPE_REGISTRATION, status=Payment.STATUS_PAID, paid_at=START,
        )
        Payment.objects.create(
            student_profile=self.bob, group=self.group, amount=Decimal("80.00"),
            status=Payment.STATUS_PENDING,
        )
        url = reverse("billing-group-stats", args=[self.group.id])
        data = self.client.get(url, {"asOf": AS_OF.isoformat()}).json()
        self.assertEqual(data["totalRevenue"], 20.0)
        self.assertEqual(data["totalDue"], 80.0)
        self.assertEqual(data["collectionRate"], 20.0)

        url = reverse("billing-group-summaries", args=[self.group.id])
        rows = self.client.get(url, {"asOf": AS_OF.isoformat()}).json()
        self.assertEqual([row["totalPaid"] for row in rows], [0.0, 20.0])

    def test_other_teachers_group_is_not_found(self):
        foreign = self.make_group(self.other_teacher, name="Foreign")
        url = reverse("billing-group-stats", args=[foreign.id])
        self.assertEqual(self.client.get(url).status_code, 404)

    def test_student_overview_takes_worst_status(self):
        physics = self.make_group(self.teacher, name="Physics", session_fee=None, monthly_fee=Decimal("100.00"),
                                  payment_threshold=None)
        self.enroll(physics, self.alice)
        physics_sessions = self.add_sessions(physics, 2, start=START + timedelta(hours=2))
        self.mark(physics_sessions, self.alice)
        foreign = self.make_group(self.other_teacher, name="Foreign")
        self.enroll(foreign, self.alice)

        url = reverse("billing-student-overview", args=[self.alice.id])
        data = self.client.get(url, {"asOf": AS_OF.isoformat()}).json()
        self.assertEqual(data["overallStatus"], "due")
        self.assertEqual(data["totalDue"], 80.0)
        self.assertEqual([g["groupName"] for g in data["groups"]], ["Algebra", "Physics"])
        self.assertEqual(data["groups"][1]["billing"]["status"], "paid")


class TeacherStatsApiTests(BillingApiTestBase):

    def test_totals_cover_only_own_active_groups(self):
        physics = self.make_group(self.teacher, name="Physics", payment_threshold=4)
        self.enroll(physics, self.bob)
        physics_sessions = self.add_sessions(physics, 4, start=START + timedelta(hours=2))
        self.mark(physics_sessions, self.bob)
        Payment.objects.create(
            student_profile=self.alice, group=self.group, amount=Decimal("80.00"),
            status=Payment.STATUS_PAID, paid_at=START + timedelta(days=22),
        )
        archived = self.make_group(self.teacher, name="Archived", is_active=False)
        self.enroll(archived, self.alice)
        foreign = self.make_group(self.other_teacher, name="Foreign")
        self.enroll(foreign, self.outsider)

        response = self.client.get(reverse("billing-teacher-stats"), {"asOf": AS_OF.isoformat()})
        self.assertEqual(response.status_code, 200, response.data)
        data = response.json()
        self.assertEqual(data["totalGroups"], 2)
        self.assertEqual([g["groupName"] for g in data["groups"]], ["Algebra", "Physics"])
        self.assertEqual(data["totalStudents"], 3)
        self.assertEqual(data["statusCounts"], {"paid": 2, "approaching": 0, "due": 1, "overdue": 0})
        self.assertEqual(data["sessionDebt"], 40.0)
        self.assertEqual(data["totalRevenue"], 80.0)
        self.assertEqual(data["collectionRate"], 66.67)
        self.assertEqual(data["groups"][1]["sessionDebt"], 40.0)

    def test_teacher_without_groups(self):
        self.client.credentials(**self._auth_header(self.other_teacher))
        data = self.client.get(reverse("billing-teacher-stats")).json()
        self.assertEqual(data["totalGroups"], 0)
        self.assertEqual(data["groups"], [])
        self.assertEqual(data["collectionRate"], 0.0)

    def test_invalid_as_of(self):
        response = self.client.get(reverse("billing-teacher-stats"), {"asOf": "someday"})
        self.assertEqual(response.status_code, 400)

    def test_student_token_is_forbidden(self):
        self.client.credentials(**self._auth_header(self.alice.user))
        self.assertEqual(self.client.get(reverse("billing-teacher-stats")).status_code, 403)


class GeneratePendingApiTests(BillingApiTestBase):

    def _generate(self):
        url = reverse("billing-generate-pending", args=[self.group.id])
        return self.client.post(f"{url}?{urlencode({'asOf': AS_OF.isoformat()})}")

    def test_generates_once_per_owing_student(self):
        response = self._generate()
        self.assertEqual(response.status_code, 200, response.data)
        data = response.json()
        self.assertEqual(data["generatedCount"], 1)
        self.assertEqual(data["totalStudents"], 2)
        self.assertEqual(data["payments"][0]["studentId"], self.alice.id)
        self.assertEqual(data["payments"][0]["amount"], 80.0)
        self.assertEqual(data["payments"][0]["status"], "pending")
        self.assertEqual(data["errors"], [])

        payment = Payment.objects.get(student_profile=self.alice)
        self.assertEqual(payment.created_by, self.teacher)
        self.assertEqual(payment.due_date, START + timedelta(days=51))

        self.assertEqual(self._generate().json()["generatedCount"], 0)
        self.assertEqual(Payment.objects.count(), 1)

    def test_pending_payment_does_not_change_status(self):
        self._generate()
        self.assertEqual(self._status(self.alice).json()["status"], "due")


class BillingPermissionTests(BillingApiTestBase):

    def test_anonymous_is_rejected(self):
        self.client.credentials()
        url = reverse("billing-group-stats", args=[self.group.id])
        self.assertEqual(self.client.get(url).status_code, 401)

    def test_student_token_is_forbidden(self):
        self.client.credentials(**self._auth_header(self.alice.user))
        url = reverse("billing-group-stats", args=[self.group.id])
        self.assertEqual(self.client.get(url).status_code, 403)
