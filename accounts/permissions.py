"""
Role-based access for the billing API.
"""
from rest_framework import permissions


class IsTeacher(permissions.BasePermission):
    """Only tutors may read or generate billing data."""
    message = 'Billing is available to teachers only.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and getattr(user, 'is_teacher', False))
