"""
Database models for the hospital management portal.

These models capture the entities the dashboards work with: hospitals,
users with a role, the doctor/patient/staff profiles hanging off a
user, appointments, expenses and bills.  Field names are snake_case
here; the JSON layer (see :mod:`clinic.serializers`) exposes them in
the camelCase shape the front end expects.
"""
from __future__ import annotations

import datetime
import os
import uuid

from django.contrib.auth.models import AbstractUser
from django.db import models


def _default_leave_balance() -> dict:
    return {'sick': 10, 'casual': 10, 'annual': 20}


class Hospital(models.Model):
    """A hospital that doctors, staff and patients are bound to."""
    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_CHOICES = ((STATUS_ACTIVE, 'Active'), (STATUS_INACTIVE, 'Inactive'))

    name = models.CharField(max_length=255)
    address = models.CharField(max_length=500, blank=True)
    contact = models.CharField(max_length=50, blank=True)
    email = models.EmailField(blank=True)
    specialties = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True)
    image = models.URLField(max_length=500, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return self.name


class Department(models.Model):
    """A named unit inside one hospital (Cardiology, Reception ...).

    Staff and doctors are not linked by key: a staff member's
    ``department`` text and a doctor's ``specialization`` are matched
    against the name, case-insensitively.
    """
    hospital = models.ForeignKey(Hospital, on_delete=models.CASCADE, related_name='departments')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        constraints = [
            models.UniqueConstraint(fields=['hospital', 'name'], name='dept_hospital_name_uniq'),
        ]

    def __str__(self) -> str:
        return f"{self.name} @ {self.hospital_id}"


class User(AbstractUser):
    """Custom user model with a role and optional hospital binding.

    Roles mirror the dashboards of the front end: 'admin', 'doctor',
    'staff' and 'patient'.  Users sign in with their email address; the
    username is kept for Django's admin and generated when missing.
    """
    ROLE_ADMIN = 'admin'
    ROLE_DOCTOR = 'doctor'
    ROLE_STAFF = 'staff'
    ROLE_PATIENT = 'patient'
    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_STAFF, 'Staff'),
        (ROLE_PATIENT, 'Patient'),
    ]
    STATUS_CHOICES = [('active', 'Active'), ('inactive', 'Inactive')]

    name = models.CharField(max_length=255, blank=True)
    gender = models.CharField(max_length=20, blank=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_PATIENT, db_index=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.username} ({self.role})"


class DoctorProfile(models.Model):
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='doctor_profile')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors'
    )
    specialization = models.CharField(max_length=255, blank=True, db_index=True)
    experience = models.PositiveIntegerField(default=0)
    fees = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    qualification = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Dr. {self.user.display_name} ({self.specialization})"


class PatientProfile(models.Model):
    """Stores patient specific information separate from the User model."""
    STATUS_CHOICES = [('active', 'Active'), ('inactive', 'Inactive')]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='patient_profile')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients'
    )
    doctor = models.ForeignKey(
        DoctorProfile, null=True, blank=True, on_delete=models.SET_NULL, related_name='assigned_patients'
    )
    age = models.PositiveIntegerField(null=True, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=20, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    blood_group = models.CharField(max_length=5, blank=True)
    allergies = models.JSONField(default=list, blank=True)
    medical_history = models.JSONField(default=list, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='active', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return self.user.display_name


class StaffProfile(models.Model):
    SHIFT_CHOICES = [('morning', 'Morning'), ('afternoon', 'Afternoon'), ('night', 'Night')]
    STATUS_CHOICES = [('active', 'Active'), ('on-leave', 'On leave'), ('terminated', 'Terminated')]

    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='staff_profile')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='staff'
    )
    department = models.CharField(max_length=255, blank=True)
    shift = models.CharField(max_length=10, choices=SHIFT_CHOICES, default='morning')
    employee_id = models.CharField(max_length=32, blank=True, db_index=True)
    joining_date = models.DateField(null=True, blank=True)
    emergency_contact = models.JSONField(default=dict, blank=True)
    address = models.JSONField(default=dict, blank=True)
    qualifications = models.JSONField(default=list, blank=True)
    experience = models.JSONField(default=list, blank=True)
    skills = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='active', db_index=True)
    leave_balance = models.JSONField(default=_default_leave_balance, blank=True)

    def save(self, *args, **kwargs):
        super().save(*args, **kwargs)
        if not self.employee_id:
            self.employee_id = f"EMP{self.pk:05d}"
            super().save(update_fields=['employee_id'])

    def __str__(self) -> str:
        return f"{self.employee_id} {self.user.display_name}"


class Appointment(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_IN_PROGRESS = 'in-progress'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_CONFIRMED, 'Confirmed'),
        (STATUS_IN_PROGRESS, 'In progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]
    TERMINAL_STATUSES = (STATUS_COMPLETED, STATUS_CANCELLED)

    doctor = models.ForeignKey(DoctorProfile, on_delete=models.CASCADE, related_name='appointments')
    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name='appointments')
    staff = models.ForeignKey(
        StaffProfile, null=True, blank=True, on_delete=models.SET_NULL, related_name='booked_appointments'
    )
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments'
    )
    appointment_date = models.DateField(db_index=True)
    # blank only for a follow-up still waiting for staff to pick a slot
    time_slot = models.CharField(max_length=5, blank=True)
    type = models.CharField(max_length=50, default='consultation')
    symptoms = models.TextField(blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    checked_in_at = models.DateTimeField(null=True, blank=True)
    is_follow_up = models.BooleanField(default=False, db_index=True)
    original_appointment = models.ForeignKey(
        'self', null=True, blank=True, on_delete=models.SET_NULL, related_name='follow_ups'
    )
    needs_time_slot = models.BooleanField(default=False)
    time_slot_confirmed = models.BooleanField(default=False)
    reminder_sent = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['appointment_date', 'time_slot']
        indexes = [
            models.Index(fields=['doctor', 'appointment_date', 'time_slot'], name='appt_doctor_slot_idx'),
            models.Index(fields=['hospital', 'appointment_date'], name='appt_hospital_date_idx'),
        ]
        constraints = [
            # one live appointment per doctor, date and slot
            models.UniqueConstraint(
                fields=['doctor', 'appointment_date', 'time_slot'],
                condition=~models.Q(status='cancelled') & ~models.Q(time_slot=''),
                name='appt_live_slot_uniq',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.appointment_date} {self.time_slot} d={self.doctor_id} p={self.patient_id}"


def _bill_upload(instance, filename: str) -> str:
    ext = os.path.splitext(filename)[1]
    return f"expenses/{datetime.date.today().strftime('%Y/%m')}/{uuid.uuid4().hex}{ext}"


class Expense(models.Model):
    CATEGORY_CHOICES = [
        ('medicine', 'Medicine'),
        ('marketing', 'Marketing'),
        ('equipment', 'Equipment'),
        ('utilities', 'Utilities'),
        ('staff', 'Staff'),
        ('other', 'Other'),
    ]
    PAYMENT_CHOICES = [
        ('cash', 'Cash'),
        ('credit', 'Credit'),
        ('bank', 'Bank'),
        ('upi', 'UPI'),
        ('other', 'Other'),
    ]
    STATUS_CHOICES = [('pending', 'Pending'), ('completed', 'Completed'), ('rejected', 'Rejected')]

    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='expenses'
    )
    category = models.CharField(max_length=12, choices=CATEGORY_CHOICES, db_index=True)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.TextField(blank=True)
    date = models.DateField(db_index=True)
    vendor_name = models.CharField(max_length=255, blank=True)
    payment_method = models.CharField(max_length=10, choices=PAYMENT_CHOICES, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='pending', db_index=True)
    bill_image = models.FileField(upload_to=_bill_upload, max_length=512, blank=True)
    created_by = models.ForeignKey(User, null=True, blank=True, on_delete=models.SET_NULL, related_name='expenses')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-date', '-id']

    def __str__(self) -> str:
        return f"{self.category} {self.amount} @ {self.date}"


class Bill(models.Model):
    STATUS_PAID = 'paid'
    STATUS_PENDING = 'pending'
    STATUS_OVERDUE = 'overdue'
    STATUS_CHOICES = [(STATUS_PAID, 'Paid'), (STATUS_PENDING, 'Pending'), (STATUS_OVERDUE, 'Overdue')]

    patient = models.ForeignKey(PatientProfile, on_delete=models.CASCADE, related_name='bills')
    hospital = models.ForeignKey(
        Hospital, null=True, blank=True, on_delete=models.SET_NULL, related_name='bills'
    )
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='bills'
    )
    service = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    date = models.DateField()
    due_date = models.DateField()
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ['-date', '-id']

    def __str__(self) -> str:
        return f"{self.service} {self.amount} ({self.status})"


class StaffTask(models.Model):
    STATUS_CHOICES = [('pending', 'Pending'), ('in-progress', 'In progress'), ('completed', 'Completed')]
    PRIORITY_CHOICES = [('low', 'Low'), ('medium', 'Medium'), ('high', 'High')]

    staff = models.ForeignKey(StaffProfile, on_delete=models.CASCADE, related_name='tasks')
    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    due_date = models.DateField(null=True, blank=True)
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='medium')
    status = models.CharField(max_length=12, choices=STATUS_CHOICES, default='pending', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.title} (#{self.id})"


class Notification(models.Model):
    recipient = models.ForeignKey(User, on_delete=models.CASCADE, related_name='notifications')
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True)
    kind = models.CharField(max_length=32, default='info')
    read = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [models.Index(fields=['recipient', 'read', 'created_at'], name='notif_recipient_read_idx')]

    def __str__(self) -> str:
        return f"{self.title} -> {self.recipient_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
