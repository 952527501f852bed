"""
Group services - single source of truth for group membership queries.
"""
from .models import GroupStudent


def get_active_students_for_group(group):
    """
    Canonical queryset: students in group (active membership only).
    Use GroupStudent as source of truth; active=True and left_at__isnull=True.
    """
    return GroupStudent.objects.filter(
        group=group,
        active=True,
        left_at__isnull=True,
        student_profile__is_deleted=False,
    ).select_related('student_profile__user').order_by('student_profile_id')


def get_active_groups_for_student(student_profile):
    """
    Canonical queryset: groups the student belongs to (active membership).
    """
    return GroupStudent.objects.filter(
        student_profile=student_profile,
        active=True,
        left_at__isnull=True,
        group__is_active=True,
        group__deleted_at__isnull=True,
    ).select_related('group').order_by('group_id')
