"""
Admin configuration for payments app
"""
from django.contrib import admin
from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """Payment Admin"""
    list_display = ['receipt_no', 'student_profile', 'group', 'amount', 'type', 'status', 'due_date', 'paid_at']
    list_filter = ['status', 'type', 'method', 'paid_at', 'created_at']
    search_fields = ['receipt_no', 'student_profile__user__email', 'student_profile__user__full_name']
    readonly_fields = ['receipt_no', 'created_at', 'updated_at']
    ordering = ['-created_at']
