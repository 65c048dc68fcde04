from rest_framework import serializers

from .fields import CleanCharField


class HospitalSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    address = CleanCharField(max_length=500, required=False, allow_blank=True)
    contact = serializers.CharField(max_length=50, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    specialties = serializers.ListField(child=CleanCharField(max_length=100), required=False)
    description = CleanCharField(required=False, allow_blank=True)
    image = serializers.URLField(max_length=500, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['active', 'inactive'], required=False)

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Hospital name must be at least 2 characters')
        return v


class HospitalListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    specialty = serializers.CharField(max_length=100, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['all', 'active', 'inactive'], required=False)
    sortBy = serializers.ChoiceField(choices=['name', 'doctorsCount', 'patientCount'], required=False)
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], required=False)
