"""
Payment models
"""
from django.db import models
from django.core.validators import MinValueValidator
from accounts.models import User
from students.models import StudentProfile
from groups.models import Group
import uuid


class Payment(models.Model):
    """
    Payment ledger entry for a (student, group) pair.
    Only paid entries with paid_at set move the billing cycle forward.
    """
    TYPE_SESSION_CYCLE = 'session_cycle'
    TYPE_REGISTRATION = 'registration'

    TYPE_CHOICES = [
        (TYPE_SESSION_CYCLE, 'Session cycle'),
        (TYPE_REGISTRATION, 'Registration'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_PAID = 'paid'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PAID, 'Paid'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    METHOD_CHOICES = [
        ('cash', 'Cash'),
        ('card', 'Card'),
        ('bank', 'Bank Transfer'),
    ]

    student_profile = models.ForeignKey(
        StudentProfile,
        on_delete=models.CASCADE,
        related_name='payments',
    )
    group = models.ForeignKey(
        Group,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='payments',
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0.01)],
    )
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_SESSION_CYCLE)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    due_date = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True, db_index=True)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES, default='cash')
    note = models.TextField(blank=True, null=True)
    receipt_no = models.CharField(max_length=50, unique=True, blank=True, null=True)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_payments',
        limit_choices_to={'role': 'teacher'},
        db_column='created_by_id',
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        db_table = 'payments'
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['student_profile', 'group', 'status'], name='payments_student_group_idx'),
        ]
        constraints = [
            # At most one open automatic cycle charge per (student, group)
            models.UniqueConstraint(
                fields=['student_profile', 'group'],
                condition=models.Q(status='pending', type='session_cycle', deleted_at__isnull=True),
                name='payments_one_open_cycle_pending',
            ),
        ]

    def __str__(self):
        return f"Payment {self.receipt_no or self.id} - {self.student_profile.user.full_name} - {self.amount}"

    def save(self, *args, **kwargs):
        """Generate receipt number if not provided"""
        if not self.receipt_no:
            self.receipt_no = f"PAY-{uuid.uuid4().hex[:8].upper()}"
        super().save(*args, **kwargs)
