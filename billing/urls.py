"""
Teacher billing URLs, mounted at /api/teacher/billing/
"""
from django.urls import path

from billing import views

urlpatterns = [
    path('stats', views.billing_teacher_stats_view, name='billing-teacher-stats'),
    path('students/<int:student_id>/status', views.billing_student_status_view, name='billing-student-status'),
    path('students/<int:student_id>/overview', views.billing_student_overview_view, name='billing-student-overview'),
    path('groups/<int:group_id>/summaries', views.billing_group_summaries_view, name='billing-group-summaries'),
    path('groups/<int:group_id>/stats', views.billing_group_stats_view, name='billing-group-stats'),
    path('groups/<int:group_id>/generate-pending', views.billing_generate_pending_view, name='billing-generate-pending'),
]
