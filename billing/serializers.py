"""
Serializers for billing results (read-only, frontend camelCase format).
Amounts go out as floats; timestamps as ISO-8601.
"""
from rest_framework import serializers


class BillingStatusSerializer(serializers.Serializer):
    """StudentBillingStatus -> JSON."""
    studentId = serializers.IntegerField(source='student_id')
    groupId = serializers.IntegerField(source='group_id')
    status = serializers.CharField()
    countableSessionsInCycle = serializers.IntegerField(source='countable_sessions_in_cycle')
    attendedSessionsInCycle = serializers.IntegerField(source='attended_sessions_in_cycle')
    absentSessionsInCycle = serializers.IntegerField(source='absent_sessions_in_cycle')
    lateSessionsInCycle = serializers.IntegerField(source='late_sessions_in_cycle')
    sessionsPerCycle = serializers.IntegerField(source='sessions_per_cycle')
    sessionsUntilDue = serializers.IntegerField(source='sessions_until_due')
    cyclesUnpaid = serializers.IntegerField(source='cycles_unpaid')
    cyclesPaid = serializers.IntegerField(source='cycles_paid')
    pricePerSession = serializers.FloatField(source='price_per_session')
    amountDue = serializers.FloatField(source='amount_due')
    registrationFeeDue = serializers.FloatField(source='registration_fee_due')
    totalDue = serializers.FloatField(source='total_due')
    dueDate = serializers.DateTimeField(source='due_date', allow_null=True)
    cycleStartedAt = serializers.DateTimeField(source='cycle_started_at', allow_null=True)
    lastSessionAt = serializers.DateTimeField(source='last_session_at', allow_null=True)
    lastPaymentAt = serializers.DateTimeField(source='last_payment_at', allow_null=True)
    computedAt = serializers.DateTimeField(source='computed_at')


def error_payload(exc):
    """BillingError -> the same {detail, code} shape the exception handler returns."""
    return {'detail': str(exc), 'code': exc.code}


class RosterEntrySerializer(serializers.Serializer):
    """One roster row; `billing` is null and `error` set when the status is unknown."""
    studentId = serializers.IntegerField(source='student_id')
    studentName = serializers.CharField(source='student_name')
    groupId = serializers.IntegerField(source='group_id')
    groupName = serializers.CharField(source='group_name')
    totalPaid = serializers.FloatField(source='total_paid')

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['billing'] = BillingStatusSerializer(instance.status).data if instance.ok else None
        data['error'] = None if instance.ok else error_payload(instance.error)
        return data


class GroupSummarySerializer(serializers.Serializer):
    """GroupBillingSummary -> JSON; collectionRate is a percentage."""
    groupId = serializers.IntegerField(source='group_id')
    groupName = serializers.CharField(source='group_name')
    totalStudents = serializers.IntegerField(source='total_students')
    statusCounts = serializers.DictField(source='status_counts', child=serializers.IntegerField())
    unknownCount = serializers.IntegerField(source='unknown_count')
    sessionDebt = serializers.FloatField(source='session_debt')
    registrationDebt = serializers.FloatField(source='registration_debt')
    overdueAmount = serializers.FloatField(source='overdue_amount')
    totalDue = serializers.FloatField(source='total_due')
    totalRevenue = serializers.FloatField(source='total_revenue')
    collectionRate = serializers.FloatField(source='collection_rate')


class TeacherSummarySerializer(serializers.Serializer):
    """TeacherBillingSummary -> JSON: teacher-wide totals plus one row per group."""
    totalGroups = serializers.IntegerField(source='total_groups')
    totalStudents = serializers.IntegerField(source='total_students')
    statusCounts = serializers.DictField(source='status_counts', child=serializers.IntegerField())
    unknownCount = serializers.IntegerField(source='unknown_count')
    sessionDebt = serializers.FloatField(source='session_debt')
    registrationDebt = serializers.FloatField(source='registration_debt')
    overdueAmount = serializers.FloatField(source='overdue_amount')
    totalDue = serializers.FloatField(source='total_due')
    totalRevenue = serializers.FloatField(source='total_revenue')
    collectionRate = serializers.FloatField(source='collection_rate')
    groups = GroupSummarySerializer(many=True)


class StudentOverviewSerializer(serializers.Serializer):
    """StudentOverview -> JSON; overallStatus is null when any group is unknown."""
    studentId = serializers.IntegerField(source='student_id')
    overallStatus = serializers.CharField(source='overall_status', allow_null=True)
    totalDue = serializers.FloatField(source='total_due')
    groups = RosterEntrySerializer(source='entries', many=True)
