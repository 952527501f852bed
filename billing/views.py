"""
Teacher billing API.
Endpoints:
- GET  /billing/students/{student_id}/status?groupId=&asOf=   One student's status in one group
- GET  /billing/students/{student_id}/overview?asOf=          Status in every active group + overall
- GET  /billing/groups/{group_id}/summaries?asOf=             Status of every active member
- GET  /billing/groups/{group_id}/stats?asOf=                 Counts per status and debt totals
- GET  /billing/stats?asOf=                                  Teacher-wide totals over every active group
- POST /billing/groups/{group_id}/generate-pending            Open pending payments for owing students
BillingError raised by the engine is rendered by config.exceptions.custom_exception_handler.
"""
import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsTeacher
from groups.models import Group, GroupStudent
from groups.services import get_active_groups_for_student
from payments.serializers import PaymentSerializer
from students.models import StudentProfile
from billing.errors import OrderingError
from billing.serializers import (
    BillingStatusSerializer,
    GroupSummarySerializer,
    RosterEntrySerializer,
    StudentOverviewSerializer,
    TeacherSummarySerializer,
)
from billing.services.loaders import build_billing_input, build_roster_inputs, get_billing_status, parse_as_of
from billing.services.pending import generate_pending_payments_for_group
from billing.services.roster import compute_roster, overall_status, summarize_group, summarize_teacher

logger = logging.getLogger(__name__)


def _request_now(request):
    """(now, error_response) for the request; now defaults to the current time."""
    try:
        as_of = parse_as_of(request.query_params.get("asOf"))
    except OrderingError:
        return None, Response(
            {"detail": "Invalid asOf (expected ISO date or datetime)", "code": "validation_error"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    return as_of or timezone.now(), None


def _teacher_group(request, group_id):
    try:
        return Group.objects.get(id=group_id, created_by=request.user, deleted_at__isnull=True)
    except Group.DoesNotExist:
        return None


def _roster_workers():
    return getattr(settings, "BILLING_ROSTER_WORKERS", None)


@api_view(["GET"])
@permission_classes([IsAuthenticated, IsTeacher])
def billing_student_status_view(request, student_id):
    """
    GET /api/teacher/billing/students/{student_id}/status?groupId=5
    Billing status of the student in one of the teacher's groups.
    """
    group_id = (request.query_params.get("groupId") or "").strip()
    if not group_id.isdigit():
        return Response(
            {"detail": "groupId query param required", "code": "validation_error"},
            status=status.HTTP_400_BAD_REQUEST,
        )
    now, error = _request_now(request)
    if error:
        return error

    try:
        student = StudentProfile.objects.select_related("user").get(id=student_id, is_deleted=False)
    except StudentProfile.DoesNotExist:
        return Response({"detail": "Student not found", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)
    group = _teacher_group(request, group_id)
    if group is None:
        return Response({"detail": "Group not found", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)
    if not GroupStudent.objects.filter(group=group, student_profile=student).exists():
        return Response(
            {"detail": "Student is not a member of this group", "code": "not_found"},
            status=status.HTTP_404_NOT_FOUND,
        )

    billing_status = get_billing_status(student, group, now=now)
    return Response(BillingStatusSerializer(billing_status).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated, IsTeacher])
def billing_student_overview_view(request, student_id):
    """
    GET /api/teacher/billing/students/{student_id}/overview
    Status in each of the student's active groups owned by the teacher, plus the overall status.
    """
    now, error = _request_now(request)
    if error:
        return error
    try:
        student = StudentProfile.objects.select_related("user").get(id=student_id, is_deleted=False)
    except StudentProfile.DoesNotExist:
        return Response({"detail": "Student not found", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)

    memberships = get_active_groups_for_student(student).filter(group__created_by=request.user)
    inputs = [build_billing_input(student, m.group, now=now) for m in memberships]
    entries = compute_roster(inputs, max_workers=_roster_workers())
    overview = overall_status(student.id, entries)
    return Response(StudentOverviewSerializer(overview).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated, IsTeacher])
def billing_group_summaries_view(request, group_id):
    """
    GET /api/teacher/billing/groups/{group_id}/summaries
    One row per active member; rows whose status is unknown carry an error instead.
    """
    now, error = _request_now(request)
    if error:
        return error
    group = _teacher_group(request, group_id)
    if group is None:
        return Response({"detail": "Group not found", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)

    entries = compute_roster(build_roster_inputs(group, now=now), max_workers=_roster_workers())
    return Response(RosterEntrySerializer(entries, many=True).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated, IsTeacher])
def billing_group_stats_view(request, group_id):
    """
    GET /api/teacher/billing/groups/{group_id}/stats
    Student counts per status and debt totals for the group.
    """
    now, error = _request_now(request)
    if error:
        return error
    group = _teacher_group(request, group_id)
    if group is None:
        return Response({"detail": "Group not found", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)

    entries = compute_roster(build_roster_inputs(group, now=now), max_workers=_roster_workers())
    return Response(GroupSummarySerializer(summarize_group(group.id, entries, group_name=group.name)).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated, IsTeacher])
def billing_teacher_stats_view(request):
    """
    GET /api/teacher/billing/stats
    Totals across every active group of the teacher, plus one summary per group.
    All rosters go through a single thread pool.
    """
    now, error = _request_now(request)
    if error:
        return error
    groups = list(
        Group.objects.filter(created_by=request.user, is_active=True, deleted_at__isnull=True).order_by("id")
    )
    inputs = []
    for group in groups:
        inputs.extend(build_roster_inputs(group, now=now))
    entries = compute_roster(inputs, max_workers=_roster_workers())

    summaries = [
        summarize_group(group.id, [e for e in entries if e.group_id == group.id], group_name=group.name)
        for group in groups
    ]
    return Response(TeacherSummarySerializer(summarize_teacher(summaries)).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated, IsTeacher])
def billing_generate_pending_view(request, group_id):
    """
    POST /api/teacher/billing/groups/{group_id}/generate-pending
    Opens a pending session-cycle payment for every member owing a cycle (idempotent).
    """
    now, error = _request_now(request)
    if error:
        return error
    group = _teacher_group(request, group_id)
    if group is None:
        return Response({"detail": "Group not found", "code": "not_found"}, status=status.HTTP_404_NOT_FOUND)

    created, entries = generate_pending_payments_for_group(
        group, now=now, created_by=request.user, max_workers=_roster_workers(),
    )
    logger.info("[billing] generate-pending by user=%s group=%s created=%s", request.user.id, group.id, len(created))
    return Response({
        "generatedCount": len(created),
        "totalStudents": len(entries),
        "payments": PaymentSerializer(created, many=True).data,
        "errors": [
            RosterEntrySerializer(entry).data for entry in entries if not entry.ok
        ],
    })
