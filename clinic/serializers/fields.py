import bleach
from rest_framework import serializers


def clean_text(value: str) -> str:
    return bleach.clean((value or '').strip(), tags=[], strip=True)


class CleanCharField(serializers.CharField):
    """CharField that strips any markup from the submitted text."""

    def to_internal_value(self, data):
        return clean_text(super().to_internal_value(data))


class EmergencyContactSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255, required=False, allow_blank=True)
    relationship = CleanCharField(max_length=64, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)


def json_ready(value):
    """Convert dates nested in validated data so it can go into a JSONField."""
    if isinstance(value, list):
        return [json_ready(v) for v in value]
    if isinstance(value, dict):
        return {k: json_ready(v) for k, v in value.items()}
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return value
