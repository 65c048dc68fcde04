"""
Administrative dashboard endpoint.

Totals across the whole system for the admin landing page: users by
role, hospitals, appointments by status and the sum of expenses.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ..models import Appointment, Expense, Hospital
from ..permissions import IsAdmin

User = get_user_model()


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdmin])
def admin_dashboard(request):
    users = {role: 0 for role, _ in User.ROLE_CHOICES}
    for row in User.objects.values('role').annotate(n=Count('id')):
        users[row['role']] = row['n']
    appointments = {status: 0 for status, _ in Appointment.STATUS_CHOICES}
    for row in Appointment.objects.values('status').annotate(n=Count('id')):
        appointments[row['status']] = row['n']
    expenses_total = Expense.objects.aggregate(total=Sum('amount'))['total'] or 0
    return Response({
        'users': users,
        'totalUsers': sum(users.values()),
        'hospitals': Hospital.objects.count(),
        'activeHospitals': Hospital.objects.filter(status=Hospital.STATUS_ACTIVE).count(),
        'appointments': appointments,
        'todayAppointments': Appointment.objects.filter(appointment_date=timezone.localdate()).count(),
        'expensesTotal': round(float(expenses_total), 2),
    })
