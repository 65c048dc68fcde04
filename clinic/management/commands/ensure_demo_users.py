from django.core.management.base import BaseCommand
from django.db import transaction

from clinic.models import DoctorProfile, Hospital, PatientProfile, StaffProfile, User

DEMO_PASSWORD = "Demo@12345"
DEMO_SET = [
    ("admin@hms.local", "Admin User", "admin"),
    ("doctor@hms.local", "Dr. Demo", "doctor"),
    ("staff@hms.local", "Front Desk", "staff"),
    ("patient@hms.local", "Demo Patient", "patient"),
]


class Command(BaseCommand):
    help = f"Ensure one demo user per role exists with password={DEMO_PASSWORD} (idempotent)."

    @transaction.atomic
    def handle(self, *args, **opts):
        hospital, _ = Hospital.objects.get_or_create(name="Demo General Hospital")
        for email, name, role in DEMO_SET:
            user = User.objects.filter(email__iexact=email).first()
            if user is None:
                user = User(username=email.split("@")[0], email=email)
            user.name = name
            user.role = role
            user.status = "active"
            user.is_active = True
            user.is_staff = user.is_superuser = role == "admin"
            user.hospital = None if role == "admin" else hospital
            user.set_password(DEMO_PASSWORD)
            user.save()

            if role == "doctor":
                DoctorProfile.objects.get_or_create(
                    user=user, defaults={"hospital": hospital, "specialization": "General Medicine"}
                )
            elif role == "staff":
                StaffProfile.objects.get_or_create(
                    user=user, defaults={"hospital": hospital, "department": "Reception"}
                )
            elif role == "patient":
                PatientProfile.objects.get_or_create(user=user, defaults={"hospital": hospital})
            self.stdout.write(self.style.SUCCESS(f"ok: {email} ({role})"))
        self.stdout.write(self.style.SUCCESS("All demo users ensured."))
