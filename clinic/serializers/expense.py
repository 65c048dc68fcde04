from django.conf import settings
from rest_framework import serializers

from .fields import CleanCharField

CATEGORIES = ['medicine', 'marketing', 'equipment', 'utilities', 'staff', 'other']
PAYMENT_METHODS = ['cash', 'credit', 'bank', 'upi', 'other']
STATUSES = ['pending', 'completed', 'rejected']


class ExpenseSerializer(serializers.Serializer):
    category = serializers.ChoiceField(choices=CATEGORIES)
    amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    description = CleanCharField(required=False, allow_blank=True)
    date = serializers.DateField()
    vendorName = CleanCharField(max_length=255, required=False, allow_blank=True)
    paymentMethod = serializers.ChoiceField(choices=PAYMENT_METHODS, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    hospitalId = serializers.IntegerField(required=False, allow_null=True)
    billImage = serializers.FileField(required=False, allow_null=True)

    def validate_billImage(self, f):
        if f is None:
            return f
        max_mb = getattr(settings, 'UPLOAD_MAX_MB', 15)
        if f.size > max_mb * 1024 * 1024:
            raise serializers.ValidationError(f'File is larger than {max_mb} MB')
        allowed = getattr(settings, 'ALLOWED_UPLOAD_TYPES', [])
        content_type = getattr(f, 'content_type', '') or ''
        if allowed and not any(content_type.startswith(t) for t in allowed):
            raise serializers.ValidationError('Unsupported file type')
        return f


class ExpenseListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    category = serializers.ChoiceField(choices=CATEGORIES, required=False)
    hospitalId = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    to = serializers.DateField(required=False)
    sortBy = serializers.ChoiceField(choices=['date', 'amount'], required=False)
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], required=False)

    def get_fields(self):
        fields = super().get_fields()
        fields['from'] = serializers.DateField(required=False)
        return fields
