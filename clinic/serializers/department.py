from rest_framework import serializers

from .fields import CleanCharField


class DepartmentSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    description = CleanCharField(required=False, allow_blank=True)
    hospitalId = serializers.IntegerField()

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Department name must be at least 2 characters')
        return v


class DepartmentListQuerySerializer(serializers.Serializer):
    hospitalId = serializers.IntegerField(required=False)
