"""
Admin configuration for attendance app
"""
from django.contrib import admin
from .models import LessonSession, AttendanceRecord


@admin.register(LessonSession)
class LessonSessionAdmin(admin.ModelAdmin):
    """Lesson Session Admin"""
    list_display = ['group', 'starts_at', 'status', 'created_at']
    list_filter = ['status', 'starts_at']
    search_fields = ['group__name']
    ordering = ['-starts_at']


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(admin.ModelAdmin):
    """Attendance Record Admin"""
    list_display = ['session', 'student_profile', 'status', 'marked_at']
    list_filter = ['status']
    search_fields = ['student_profile__user__full_name', 'session__group__name']
