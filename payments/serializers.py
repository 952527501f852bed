"""
Serializers for payments app
"""
from rest_framework import serializers
from .models import Payment


class PaymentSerializer(serializers.ModelSerializer):
    """Payment ledger entry in frontend format."""
    studentId = serializers.IntegerField(source='student_profile.id', read_only=True)
    studentName = serializers.CharField(source='student_profile.user.full_name', read_only=True)
    groupId = serializers.IntegerField(source='group.id', read_only=True, allow_null=True)
    groupName = serializers.CharField(source='group.name', read_only=True, allow_null=True)
    paymentNumber = serializers.CharField(source='receipt_no', read_only=True)
    dueDate = serializers.DateTimeField(source='due_date', read_only=True)
    paidAt = serializers.DateTimeField(source='paid_at', read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id', 'studentId', 'studentName', 'groupId', 'groupName',
            'amount', 'type', 'status', 'dueDate', 'paidAt', 'method', 'note', 'paymentNumber',
        ]
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        if 'amount' in data and data['amount'] is not None:
            data['amount'] = float(data['amount'])
        return data
