from rest_framework import serializers

from clinic.services.calendar import TIME_SLOTS
from .fields import CleanCharField

STATUSES = ['pending', 'confirmed', 'in-progress', 'completed', 'cancelled']


class BookAppointmentSerializer(serializers.Serializer):
    doctorId = serializers.IntegerField()
    patientId = serializers.IntegerField(required=False)
    appointmentDate = serializers.DateField()
    timeSlot = serializers.ChoiceField(choices=list(TIME_SLOTS))
    type = CleanCharField(max_length=50, required=False, allow_blank=True)
    symptoms = CleanCharField(required=False, allow_blank=True)
    notes = CleanCharField(required=False, allow_blank=True)
    isFollowUp = serializers.BooleanField(required=False)


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=STATUSES)


class AppointmentListQuerySerializer(serializers.Serializer):
    hospitalId = serializers.IntegerField(required=False)
    doctorId = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    # ``from`` is a keyword, so the field is declared below
    to = serializers.DateField(required=False)

    def get_fields(self):
        fields = super().get_fields()
        fields['from'] = serializers.DateField(required=False)
        return fields


class AvailabilityQuerySerializer(serializers.Serializer):
    doctorId = serializers.IntegerField()
    date = serializers.DateField()


class CalendarQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    doctorId = serializers.IntegerField(required=False)


class FollowUpCreateSerializer(serializers.Serializer):
    date = serializers.DateField()
    timeSlot = serializers.ChoiceField(choices=list(TIME_SLOTS), required=False, allow_blank=True)
    notes = CleanCharField(required=False, allow_blank=True)


class FollowUpUpdateSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    timeSlot = serializers.ChoiceField(choices=list(TIME_SLOTS), required=False)
    reminderSent = serializers.BooleanField(required=False)
    notes = CleanCharField(required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Nothing to update')
        return attrs


class FollowUpQuerySerializer(serializers.Serializer):
    doctorId = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=STATUSES, required=False)
    search = serializers.CharField(required=False, allow_blank=True)
    # allow_null keeps an absent flag as None instead of False
    needsTimeSlot = serializers.BooleanField(required=False, allow_null=True)
    today = serializers.BooleanField(required=False, allow_null=True)
    upcoming = serializers.BooleanField(required=False, allow_null=True)
