from rest_framework import serializers

from .fields import CleanCharField


class BillCreateSerializer(serializers.Serializer):
    patientId = serializers.IntegerField()
    appointmentId = serializers.IntegerField(required=False, allow_null=True)
    service = CleanCharField(max_length=255)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    date = serializers.DateField(required=False)
    dueDate = serializers.DateField()

    def validate(self, attrs):
        if attrs.get('date') and attrs['dueDate'] < attrs['date']:
            raise serializers.ValidationError('Due date cannot be before the bill date')
        return attrs


class PayBillsSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(), required=False)
