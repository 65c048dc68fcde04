from rest_framework import serializers

from .fields import CleanCharField, EmergencyContactSerializer


class AddressSerializer(serializers.Serializer):
    street = CleanCharField(max_length=255, required=False, allow_blank=True)
    city = CleanCharField(max_length=100, required=False, allow_blank=True)
    state = CleanCharField(max_length=100, required=False, allow_blank=True)
    postalCode = serializers.CharField(max_length=20, required=False, allow_blank=True)
    country = CleanCharField(max_length=100, required=False, allow_blank=True)


class QualificationSerializer(serializers.Serializer):
    degree = CleanCharField(max_length=255)
    institution = CleanCharField(max_length=255)
    year = serializers.IntegerField(min_value=1900, max_value=2100)


class ExperienceSerializer(serializers.Serializer):
    organization = CleanCharField(max_length=255)
    position = CleanCharField(max_length=255)
    startDate = serializers.DateField(required=False, allow_null=True)
    endDate = serializers.DateField(required=False, allow_null=True)
    description = CleanCharField(required=False, allow_blank=True)


class StaffProfileFieldsSerializer(serializers.Serializer):
    """Fields shared by create, admin update and self update."""
    department = CleanCharField(max_length=255, required=False, allow_blank=True)
    shift = serializers.ChoiceField(choices=['morning', 'afternoon', 'night'], required=False)
    emergencyContact = EmergencyContactSerializer(required=False)
    address = AddressSerializer(required=False)
    qualifications = QualificationSerializer(many=True, required=False)
    experience = ExperienceSerializer(many=True, required=False)
    skills = serializers.ListField(child=CleanCharField(max_length=100), required=False)


class StaffCreateSerializer(StaffProfileFieldsSerializer):
    name = CleanCharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)
    hospital = serializers.IntegerField()
    department = CleanCharField(max_length=255)
    shift = serializers.ChoiceField(choices=['morning', 'afternoon', 'night'])
    emergencyContact = EmergencyContactSerializer()
    joiningDate = serializers.DateField(required=False, allow_null=True)


class StaffUpdateSerializer(StaffProfileFieldsSerializer):
    name = CleanCharField(max_length=255, required=False)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)
    hospital = serializers.IntegerField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=['active', 'on-leave', 'terminated'], required=False)
    leaveBalance = serializers.DictField(child=serializers.IntegerField(min_value=0), required=False)


class StaffSelfUpdateSerializer(StaffProfileFieldsSerializer):
    name = CleanCharField(max_length=255, required=False)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)


class TaskStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['pending', 'in-progress', 'completed'])
