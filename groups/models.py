"""
Group and Group-Student relationship (ERD: group, group_membership).
Tariff fields: legacy groups carry a flat monthly_fee; newer groups carry
session_fee + payment_threshold. billing.services.tariff resolves both.
"""
from django.db import models
from accounts.models import User
from students.models import StudentProfile


class Group(models.Model):
    """
    Group: a teacher's class group with its billing tariff.
    """
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='created_groups',
        limit_choices_to={'role': 'teacher'},
        db_column='teacher_id',
    )
    name = models.CharField(max_length=255)
    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    # Tariff
    monthly_fee = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, default=None,
        help_text="Legacy flat fee per cycle; per-session price = monthly_fee / payment_threshold",
    )
    session_fee = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, default=None,
        help_text="Price of one session; takes precedence over monthly_fee when > 0",
    )
    payment_threshold = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="Sessions per payment cycle (default 8 with session_fee, 4 with monthly_fee)",
    )
    registration_fee = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, default=None,
        help_text="One-time registration fee",
    )
    count_absences = models.BooleanField(
        default=False,
        help_text="If True, absences consume a cycle slot like attended sessions",
    )
    grace_period_days = models.PositiveIntegerField(
        null=True, blank=True,
        help_text="Days after a cycle completes before payment is overdue (default 30)",
    )
    semester_start = models.DateField(null=True, blank=True)
    semester_end = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'groups'
        verbose_name = 'Group'
        verbose_name_plural = 'Groups'
        ordering = ['name']

    def __str__(self):
        return self.name


class GroupStudent(models.Model):
    """
    Group membership (ERD: group_membership). left_at for history.
    """
    group = models.ForeignKey(
        Group,
        on_delete=models.CASCADE,
        related_name='group_students',
    )
    student_profile = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='group_memberships',
    )
    joined_at = models.DateTimeField(auto_now_add=True)
    left_at = models.DateTimeField(null=True, blank=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'group_students'
        verbose_name = 'Group Student'
        verbose_name_plural = 'Group Students'
        unique_together = [['group', 'student_profile']]
        ordering = ['-joined_at']

    def __str__(self):
        return f"{self.group.name} - {self.student_profile.user.full_name}"
