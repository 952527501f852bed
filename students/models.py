"""
Student Profile.
ERD: student_profile (deleted_at).
"""
from django.db import models
from accounts.models import User


class StudentProfile(models.Model):
    """
    Student Profile: OneToOne with User (role=student).
    Soft delete: deleted_at set instead of row delete.
    """
    user = models.OneToOneField(
        User,
        on_delete=models.CASCADE,
        related_name='student_profile',
        limit_choices_to={'role': 'student'},
    )
    grade = models.CharField(max_length=50, blank=True, null=True, help_text="Class/Grade e.g. 10, 5A")
    notes = models.TextField(blank=True, null=True)
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_profiles'
        verbose_name = 'Student Profile'
        verbose_name_plural = 'Student Profiles'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.user.full_name} ({self.user.email})"

    def save(self, *args, **kwargs):
        self.is_deleted = self.deleted_at is not None
        super().save(*args, **kwargs)

    @property
    def full_name(self):
        return self.user.full_name

    @property
    def email(self):
        return self.user.email
