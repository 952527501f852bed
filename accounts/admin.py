"""
Admin configuration for accounts app
"""
from django.contrib import admin
from .models import User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    """Accounts of tutors, students and parents"""
    list_display = ['email', 'full_name', 'role', 'phone', 'is_active', 'date_joined']
    list_filter = ['role', 'is_active']
    search_fields = ['email', 'full_name']
    readonly_fields = ['date_joined', 'updated_at', 'last_login']
    ordering = ['-date_joined']
