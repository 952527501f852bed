"""
Shared database fixtures for billing tests.
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from accounts.models import User
from attendance.models import AttendanceRecord, LessonSession
from groups.models import Group, GroupStudent
from students.models import StudentProfile

START = datetime(2026, 2, 2, 15, 0, tzinfo=dt_timezone.utc)
# Ten sessions every third day: session 8 is on START + 21d, session 10 on START + 27d
AS_OF = START + timedelta(days=28)


class BillingFixturesMixin:

    def make_user(self, email, full_name, role):
        return User.objects.create_user(email=email, password="pass123", full_name=full_name, role=role)

    def make_student(self, email, full_name):
        user = self.make_user(email, full_name, User.ROLE_STUDENT)
        return StudentProfile.objects.create(user=user, grade="10")

    def make_group(self, teacher, name="Algebra", **tariff):
        fields = {"session_fee": Decimal("10.00"), "payment_threshold": 8, "grace_period_days": 30}
        fields.update(tariff)
        return Group.objects.create(name=name, created_by=teacher, **fields)

    def enroll(self, group, student_profile, **extra):
        fields = {"active": True, **extra}
        return GroupStudent.objects.create(group=group, student_profile=student_profile, **fields)

    def add_sessions(self, group, count, start=START, step_days=3, status=LessonSession.STATUS_COMPLETED):
        return [
            LessonSession.objects.create(group=group, starts_at=start + timedelta(days=step_days * i), status=status)
            for i in range(count)
        ]

    def mark(self, sessions, student_profile, status=AttendanceRecord.STATUS_PRESENT):
        for session in sessions:
            AttendanceRecord.objects.create(session=session, student_profile=student_profile, status=status)
