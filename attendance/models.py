"""
Lesson sessions and per-student attendance.
One LessonSession per scheduled meeting of a group; one AttendanceRecord per
(session, student). Unmarked students are treated as absent by billing.
"""
from django.db import models
from students.models import StudentProfile


class LessonSession(models.Model):
    """
    A scheduled or completed class meeting of a group.
    Becomes billable once status is completed and starts_at is in the past.
    """
    STATUS_SCHEDULED = "scheduled"
    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    group = models.ForeignKey(
        "groups.Group",
        on_delete=models.CASCADE,
        related_name="lesson_sessions",
        db_index=True,
    )
    starts_at = models.DateTimeField(db_index=True)
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_SCHEDULED,
        db_index=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "lesson_sessions"
        verbose_name = "Lesson Session"
        verbose_name_plural = "Lesson Sessions"
        ordering = ["starts_at", "id"]
        indexes = [
            models.Index(fields=["group", "starts_at"], name="lesson_session_group_start_idx"),
        ]

    def __str__(self):
        return f"{self.group.name} - {self.starts_at:%Y-%m-%d %H:%M} - {self.status}"


class AttendanceRecord(models.Model):
    """
    One student's presence record for one session.
    Unique: (session, student_profile).
    """
    STATUS_PRESENT = "present"
    STATUS_ABSENT = "absent"
    STATUS_LATE = "late"

    STATUS_CHOICES = [
        (STATUS_PRESENT, "Present"),
        (STATUS_ABSENT, "Absent"),
        (STATUS_LATE, "Late"),
    ]

    session = models.ForeignKey(
        LessonSession,
        on_delete=models.CASCADE,
        related_name="attendance_records",
    )
    student_profile = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name="attendance_records",
    )
    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PRESENT,
    )
    marked_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "attendance_records"
        verbose_name = "Attendance Record"
        verbose_name_plural = "Attendance Records"
        ordering = ["session__starts_at", "student_profile"]
        constraints = [
            models.UniqueConstraint(
                fields=["session", "student_profile"],
                name="unique_session_student_attendance",
            ),
        ]
        indexes = [
            models.Index(fields=["student_profile", "session"], name="attendance_student_session_idx"),
        ]

    def __str__(self):
        return f"{self.student_profile.user.full_name} - {self.session_id} - {self.status}"
