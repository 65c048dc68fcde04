from rest_framework import serializers

from .fields import CleanCharField, EmergencyContactSerializer


class MedicalHistorySerializer(serializers.Serializer):
    condition = CleanCharField(max_length=255)
    diagnosedDate = serializers.DateField(required=False, allow_null=True)
    medications = serializers.ListField(child=CleanCharField(max_length=255), required=False)
    notes = CleanCharField(required=False, allow_blank=True)


class PatientSerializer(serializers.Serializer):
    name = CleanCharField(max_length=255)
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, required=False, allow_blank=True)
    hospitalId = serializers.IntegerField(required=False, allow_null=True)
    doctorId = serializers.IntegerField(required=False, allow_null=True)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    dateOfBirth = serializers.DateField(required=False, allow_null=True)
    gender = serializers.CharField(max_length=20, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    bloodGroup = serializers.ChoiceField(
        choices=['', 'A+', 'A-', 'B+', 'B-', 'AB+', 'AB-', 'O+', 'O-'], required=False
    )
    allergies = serializers.ListField(child=CleanCharField(max_length=100), required=False)
    medicalHistory = MedicalHistorySerializer(many=True, required=False)
    emergencyContact = EmergencyContactSerializer(required=False)
    status = serializers.ChoiceField(choices=['active', 'inactive'], required=False)

    def validate_name(self, v):
        if len(v) < 2:
            raise serializers.ValidationError('Name must be at least 2 characters')
        return v


class PatientListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False, allow_blank=True)
    query = serializers.CharField(max_length=64, required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=['all', 'active', 'inactive'], required=False)
    hospitalId = serializers.IntegerField(required=False)
