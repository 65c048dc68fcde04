"""
URL mappings for the hospital management API.

Paths follow the front end's service modules (``/api/appointments``,
``/api/staff/profile`` ...).  Trailing slashes are deliberately omitted.
"""
from django.urls import path, include

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view, register_view, verify_view
from .views import (
    appointments, billing, departments, doctors, expenses, health, hospitals, patients, staff, users,
)
from .views.dashboard import admin_dashboard

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),

    # auth
    path('api/users/login', login_view, name='login'),
    path('api/users/register', register_view, name='register'),
    path('api/users/verify', verify_view, name='verify'),
    path('api/auth/refresh', jwt_refresh_view, name='token-refresh'),
    path('api/auth/logout', jwt_logout_view, name='logout'),

    # users
    path('api/users', users.list_users, name='users'),
    path('api/users/profile', users.my_profile, name='my-profile'),
    path('api/users/update-profile', users.update_profile, name='update-profile'),
    path('api/users/change-password', users.change_password, name='change-password'),
    path('api/users/<int:user_id>', users.user_detail, name='user-detail'),

    # hospitals
    path('api/hospitals', hospitals.hospitals, name='hospitals'),
    path('api/hospitals/<int:hospital_id>', hospitals.hospital_detail, name='hospital-detail'),
    path('api/hospitals/<int:hospital_id>/stats', hospitals.hospital_stats_view, name='hospital-stats'),
    path('api/hospitals/<int:hospital_id>/staff', hospitals.hospital_staff, name='hospital-staff'),

    # departments
    path('api/departments', departments.departments, name='departments'),
    path('api/departments/hospital/<int:hospital_id>', departments.departments_by_hospital,
         name='departments-by-hospital'),
    path('api/departments/<int:department_id>', departments.department_detail, name='department-detail'),

    # doctors
    path('api/doctors', doctors.doctors, name='doctors'),
    path('api/doctors/grouped', doctors.doctors_grouped, name='doctors-grouped'),
    path('api/doctors/profile', doctors.doctor_profile, name='doctor-profile'),
    path('api/doctors/dashboard', doctors.doctor_dashboard, name='doctor-dashboard'),
    path('api/doctors/stats', doctors.doctor_stats, name='doctor-stats'),
    path('api/doctors/hospital/<int:hospital_id>', doctors.doctors_by_hospital, name='doctors-by-hospital'),
    path('api/doctors/<int:doctor_id>', doctors.doctor_detail, name='doctor-detail'),

    # patients
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/search', patients.patients_search, name='patients-search'),
    path('api/patients/grouped', patients.patients_grouped, name='patients-grouped'),
    path('api/patients/count', patients.patient_count, name='patient-count'),
    path('api/patients/hospital/<int:hospital_id>', patients.patients_by_hospital, name='patients-by-hospital'),
    path('api/patients/doctor/<int:doctor_id>', patients.patients_by_doctor, name='patients-by-doctor'),
    path('api/patients/<int:patient_id>', patients.patient_detail, name='patient-detail'),

    # staff
    path('api/staff', staff.staff_list, name='staff'),
    path('api/staff/grouped', staff.staff_grouped, name='staff-grouped'),
    path('api/staff/profile', staff.staff_profile, name='staff-profile'),
    path('api/staff/hospital', staff.own_hospital_staff, name='staff-own-hospital'),
    path('api/staff/hospital/<int:hospital_id>', staff.staff_by_hospital, name='staff-by-hospital'),
    path('api/staff/dashboard/stats', staff.dashboard_stats, name='staff-dashboard-stats'),
    path('api/staff/tasks', staff.tasks, name='staff-tasks'),
    path('api/staff/tasks/<int:task_id>/status', staff.task_status, name='staff-task-status'),
    path('api/staff/notifications', staff.staff_notifications, name='staff-notifications'),
    path('api/staff/notifications/<int:notification_id>/read', staff.notification_read,
         name='staff-notification-read'),
    path('api/staff/<int:staff_id>', staff.staff_detail, name='staff-detail'),

    # appointments
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/appointments/doctor-availability', appointments.doctor_availability,
         name='doctor-availability'),
    path('api/appointments/calendar', appointments.appointment_calendar, name='appointment-calendar'),
    path('api/appointments/dashboard', appointments.appointment_dashboard, name='appointment-dashboard'),
    path('api/appointments/count', appointments.appointment_count, name='appointment-count'),
    path('api/appointments/follow-ups', appointments.follow_ups, name='follow-ups'),
    path('api/appointments/patient/<int:patient_id>', appointments.patient_appointments,
         name='patient-appointments'),
    path('api/appointments/<int:appointment_id>', appointments.appointment_detail, name='appointment-detail'),
    path('api/appointments/<int:appointment_id>/status', appointments.appointment_status,
         name='appointment-status'),
    path('api/appointments/<int:appointment_id>/cancel', appointments.appointment_cancel,
         name='appointment-cancel'),
    path('api/appointments/<int:appointment_id>/check-in', appointments.appointment_check_in,
         name='appointment-check-in'),
    path('api/appointments/<int:appointment_id>/follow-up', appointments.appointment_follow_up,
         name='appointment-follow-up'),

    # expenses
    path('api/expenses', expenses.expenses, name='expenses'),
    path('api/expenses/summary', expenses.expense_summary, name='expense-summary'),
    path('api/expenses/export', expenses.expense_export, name='expense-export'),
    path('api/expenses/<int:expense_id>', expenses.expense_detail, name='expense-detail'),

    # billing
    path('api/bills', billing.bills, name='bills'),
    path('api/bills/pay', billing.pay_bills, name='bills-pay'),
    path('api/bills/<int:bill_id>', billing.bill_detail, name='bill-detail'),

    path('api/admin/dashboard', admin_dashboard, name='admin-dashboard'),
]
