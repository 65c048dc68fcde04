"""
Appointment endpoints.

Listing is scoped by role (see :func:`clinic.services.appointments.scoped_appointments`).
Booking is open to staff, administrators and patients booking for
themselves; a slot already taken for the doctor answers 409.
"""
from __future__ import annotations

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Appointment
from ..permissions import HasRole, require_role
from ..serializers.appointment import (
    AppointmentListQuerySerializer, AppointmentStatusSerializer, AvailabilityQuerySerializer,
    BookAppointmentSerializer, CalendarQuerySerializer, FollowUpCreateSerializer, FollowUpQuerySerializer,
    FollowUpUpdateSerializer,
)
from ..services import appointments as svc
from ..services.audit import log_action


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    if request.method == 'POST':
        require_role(request, 'admin', 'staff', 'patient')
        s = BookAppointmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appointment = svc.book(request.user, s.validated_data)
        log_action(user=request.user, action='appointment_book', object_type='appointment',
                   object_id=appointment.id)
        return Response(svc.format_appointment(appointment), status=201)

    q = AppointmentListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.filter_appointments(
        svc.scoped_appointments(request.user),
        hospital_id=vd.get('hospitalId'), doctor_id=vd.get('doctorId'), status=vd.get('status'),
        date_from=vd.get('from'), date_to=vd.get('to'),
    )
    return Response([svc.format_appointment(a) for a in qs])


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_detail(request, appointment_id: int):
    return Response(svc.format_appointment(svc.get_visible(request.user, appointment_id)))


@api_view(['PUT'])
@permission_classes([IsAuthenticated, HasRole.of('admin', 'staff', 'doctor')])
def appointment_status(request, appointment_id: int):
    s = AppointmentStatusSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.get_visible(request.user, appointment_id)
    previous = appointment.status
    appointment = svc.set_status(request.user, appointment, s.validated_data['status'])
    log_action(user=request.user, action='appointment_status', object_type='appointment',
               object_id=appointment.id, detail={'from': previous, 'to': appointment.status})
    return Response(svc.format_appointment(appointment))


@api_view(['PUT'])
@permission_classes([IsAuthenticated])
def appointment_cancel(request, appointment_id: int):
    appointment = svc.cancel(request.user, svc.get_visible(request.user, appointment_id))
    log_action(user=request.user, action='appointment_cancel', object_type='appointment',
               object_id=appointment.id)
    return Response(svc.format_appointment(appointment))


@api_view(['PATCH'])
@permission_classes([IsAuthenticated, HasRole.of('admin', 'staff')])
def appointment_check_in(request, appointment_id: int):
    appointment = svc.check_in(request.user, svc.get_visible(request.user, appointment_id))
    log_action(user=request.user, action='appointment_check_in', object_type='appointment',
               object_id=appointment.id)
    return Response(svc.format_appointment(appointment))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def doctor_availability(request):
    q = AvailabilityQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response(svc.availability(q.validated_data['doctorId'], q.validated_data['date']))


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole.of('admin', 'staff', 'doctor')])
def appointment_calendar(request):
    q = CalendarQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    day = q.validated_data.get('date') or timezone.localdate()
    return Response(svc.week_calendar(request.user, day, q.validated_data.get('doctorId')))


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole.of('admin', 'staff')])
def appointment_dashboard(request):
    return Response(svc.dashboard(request.user))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def appointment_count(request):
    qs = svc.scoped_appointments(request.user).exclude(status=Appointment.STATUS_CANCELLED)
    doctor_id = request.query_params.get('doctorId')
    if doctor_id:
        if not doctor_id.isdigit():
            raise ValidationError({'doctorId': 'A valid integer is required.'})
        qs = qs.filter(doctor_id=doctor_id)
    return Response({'count': qs.count()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_appointments(request, patient_id: int):
    return Response([svc.format_appointment(a) for a in svc.for_patient(request.user, patient_id)])


@api_view(['GET'])
@permission_classes([IsAuthenticated, HasRole.of('admin', 'staff', 'doctor')])
def follow_ups(request):
    q = FollowUpQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.follow_ups(
        request.user,
        doctor_id=vd.get('doctorId'), status=vd.get('status'), search=vd.get('search'),
        needs_time_slot=vd.get('needsTimeSlot'), today=bool(vd.get('today')),
        upcoming=bool(vd.get('upcoming')),
    )
    return Response([svc.format_appointment(a) for a in qs])


@api_view(['POST', 'PUT'])
@permission_classes([IsAuthenticated, HasRole.of('admin', 'staff', 'doctor')])
def appointment_follow_up(request, appointment_id: int):
    """POST schedules a follow-up of this appointment, PUT edits a follow-up."""
    appointment = svc.get_visible(request.user, appointment_id)
    if request.method == 'POST':
        s = FollowUpCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        follow_up = svc.schedule_follow_up(request.user, appointment, s.validated_data)
        log_action(user=request.user, action='appointment_follow_up', object_type='appointment',
                   object_id=follow_up.id, detail={'original': appointment.id})
        return Response(svc.format_appointment(follow_up), status=201)

    s = FollowUpUpdateSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    appointment = svc.update_follow_up(request.user, appointment, s.validated_data)
    log_action(user=request.user, action='follow_up_update', object_type='appointment',
               object_id=appointment.id, detail={'fields': sorted(s.validated_data)})
    return Response(svc.format_appointment(appointment))
