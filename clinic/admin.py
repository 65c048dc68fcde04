"""
Django admin registrations for the clinic models.

Superusers can inspect and correct data through ``/admin/``; the
dashboards themselves go through the REST API.
"""

from django.contrib import admin

from .models import (
    Appointment,
    AuditEvent,
    Bill,
    Department,
    DoctorProfile,
    Expense,
    Hospital,
    Notification,
    PatientProfile,
    StaffProfile,
    StaffTask,
    User,
)


@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'contact', 'status', 'created_at')
    list_filter = ('status',)
    search_fields = ('name', 'address', 'email')


@admin.register(Department)
class DepartmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'hospital', 'created_at')
    list_filter = ('hospital',)
    search_fields = ('name',)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'email', 'name', 'role', 'status', 'hospital', 'is_superuser')
    list_filter = ('role', 'status', 'hospital')
    search_fields = ('username', 'email', 'name')


@admin.register(DoctorProfile)
class DoctorProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'hospital', 'specialization', 'experience', 'fees')
    list_filter = ('hospital', 'specialization')
    search_fields = ('user__name', 'user__email', 'specialization')


@admin.register(PatientProfile)
class PatientProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'hospital', 'doctor', 'age', 'gender', 'status')
    list_filter = ('hospital', 'status')
    search_fields = ('user__name', 'user__email', 'phone')


@admin.register(StaffProfile)
class StaffProfileAdmin(admin.ModelAdmin):
    list_display = ('employee_id', 'user', 'hospital', 'department', 'shift', 'status')
    list_filter = ('hospital', 'shift', 'status')
    search_fields = ('employee_id', 'user__name', 'user__email')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'appointment_date', 'time_slot', 'doctor', 'patient', 'hospital', 'status')
    list_filter = ('status', 'hospital', 'appointment_date')
    search_fields = ('doctor__user__name', 'patient__user__name')


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ('id', 'date', 'category', 'amount', 'hospital', 'status')
    list_filter = ('category', 'status', 'hospital')
    search_fields = ('description', 'vendor_name')


@admin.register(Bill)
class BillAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'service', 'amount', 'due_date', 'status')
    list_filter = ('status', 'hospital')


@admin.register(StaffTask)
class StaffTaskAdmin(admin.ModelAdmin):
    list_display = ('id', 'title', 'staff', 'priority', 'status', 'due_date')
    list_filter = ('status', 'priority')


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'recipient', 'title', 'kind', 'read', 'created_at')
    list_filter = ('read', 'kind')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('id', 'action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id',)
