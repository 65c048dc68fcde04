from rest_framework import serializers

from .fields import CleanCharField


class DoctorCreateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)
    hospitalId = serializers.IntegerField(required=False, allow_null=True)
    specialization = CleanCharField(max_length=255)
    experience = serializers.IntegerField(min_value=0, max_value=80, required=False)
    fees = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    qualification = CleanCharField(max_length=255, required=False, allow_blank=True)


class DoctorUpdateSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255, required=False)
    hospitalId = serializers.IntegerField(required=False, allow_null=True)
    specialization = CleanCharField(max_length=255, required=False)
    experience = serializers.IntegerField(min_value=0, max_value=80, required=False)
    fees = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    qualification = CleanCharField(max_length=255, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['active', 'inactive'], required=False)


class DoctorListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['all', 'active', 'inactive'], required=False)
    specialization = serializers.CharField(max_length=255, required=False, allow_blank=True)
    hospitalId = serializers.IntegerField(required=False)
