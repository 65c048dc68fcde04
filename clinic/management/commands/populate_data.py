"""
Management command to populate the database with sample data.

Creates a few hospitals with doctors, staff and patients, then a spread
of appointments, expenses, bills and staff tasks.  Running it twice
reuses the existing hospitals and accounts.
"""
import random
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.utils import timezone

from clinic.models import (
    Appointment, Bill, Department, DoctorProfile, Expense, Hospital, PatientProfile, StaffProfile, StaffTask, User,
)
from clinic.services.calendar import TIME_SLOTS

PASSWORD = 'Demo@12345'


class Command(BaseCommand):
    help = 'Populate database with sample data'

    def add_arguments(self, parser):
        parser.add_argument('--seed', type=int, default=None, help='random seed for repeatable data')

    def handle(self, *args, **options):
        if options.get('seed') is not None:
            random.seed(options['seed'])
        self.password = make_password(PASSWORD)
        self.stdout.write('Creating sample data...')

        hospitals = self.create_hospitals()
        self.create_departments(hospitals)
        doctors = self.create_doctors(hospitals)
        staff = self.create_staff(hospitals)
        patients = self.create_patients(hospitals, doctors)
        appointments = self.create_appointments(doctors, patients, staff)
        self.create_expenses(hospitals, staff)
        self.create_bills(appointments)
        self.create_tasks(staff)

        self.stdout.write(self.style.SUCCESS('Sample data created.'))

    def _user(self, email, name, role, hospital=None, gender=''):
        user, _ = User.objects.get_or_create(
            email=email,
            defaults={
                'username': email.split('@')[0],
                'password': self.password,
                'name': name,
                'role': role,
                'gender': gender,
                'hospital': hospital,
            },
        )
        return user

    def create_hospitals(self):
        hospitals_data = [
            {'name': 'City General Hospital', 'address': '12 Main Street', 'contact': '555-0100',
             'specialties': ['Cardiology', 'General Medicine', 'Orthopedics']},
            {'name': 'Riverside Medical Center', 'address': '48 River Road', 'contact': '555-0200',
             'specialties': ['Pediatrics', 'Dermatology']},
            {'name': 'Hillview Clinic', 'address': '7 Hill Avenue', 'contact': '555-0300',
             'specialties': ['General Medicine', 'Neurology']},
        ]
        hospitals = []
        for data in hospitals_data:
            hospital, _ = Hospital.objects.get_or_create(name=data['name'], defaults=data)
            hospitals.append(hospital)
            self.stdout.write(f'hospital: {hospital.name}')
        return hospitals

    def create_departments(self, hospitals):
        for hospital in hospitals:
            for name in [*hospital.specialties, 'Reception']:
                Department.objects.get_or_create(
                    hospital=hospital, name=name, defaults={'description': f'{name} at {hospital.name}'},
                )

    def create_doctors(self, hospitals):
        doctors = []
        for i, hospital in enumerate(hospitals):
            for j, specialty in enumerate(hospital.specialties):
                n = i * 10 + j + 1
                user = self._user(f'doctor{n}@hms.local', f'Doctor {n}', 'doctor', hospital,
                                  random.choice(['male', 'female']))
                doctor, _ = DoctorProfile.objects.get_or_create(
                    user=user,
                    defaults={
                        'hospital': hospital,
                        'specialization': specialty,
                        'experience': random.randint(1, 30),
                        'fees': Decimal(random.choice([300, 500, 800, 1200])),
                        'qualification': 'MBBS',
                    },
                )
                doctors.append(doctor)
        self.stdout.write(f'doctors: {len(doctors)}')
        return doctors

    def create_staff(self, hospitals):
        members = []
        for i, hospital in enumerate(hospitals):
            user = self._user(f'staff{i + 1}@hms.local', f'Staff {i + 1}', 'staff', hospital)
            member, _ = StaffProfile.objects.get_or_create(
                user=user,
                defaults={
                    'hospital': hospital,
                    'department': 'Reception',
                    'shift': random.choice(['morning', 'afternoon', 'night']),
                    'joining_date': timezone.localdate() - timedelta(days=random.randint(30, 900)),
                    'emergency_contact': {'name': 'Contact', 'relationship': 'Spouse', 'phone': '555-0199'},
                },
            )
            members.append(member)
        self.stdout.write(f'staff: {len(members)}')
        return members

    def create_patients(self, hospitals, doctors):
        patients = []
        for n in range(1, 13):
            hospital = hospitals[n % len(hospitals)]
            user = self._user(f'patient{n}@hms.local', f'Patient {n}', 'patient', hospital,
                              random.choice(['male', 'female']))
            candidates = [d for d in doctors if d.hospital_id == hospital.id]
            patient, _ = PatientProfile.objects.get_or_create(
                user=user,
                defaults={
                    'hospital': hospital,
                    'doctor': random.choice(candidates) if candidates else None,
                    'age': random.randint(5, 85),
                    'gender': user.gender,
                    'phone': f'555{random.randint(1000000, 9999999)}',
                    'blood_group': random.choice(['A+', 'B+', 'O+', 'AB-', 'O-']),
                    'allergies': random.sample(['Penicillin', 'Peanuts', 'Dust', 'Latex'], k=random.randint(0, 2)),
                },
            )
            patients.append(patient)
        self.stdout.write(f'patients: {len(patients)}')
        return patients

    def create_appointments(self, doctors, patients, staff):
        today = timezone.localdate()
        created = []
        for patient in patients:
            candidates = [d for d in doctors if d.hospital_id == patient.hospital_id] or doctors
            for _ in range(2):
                doctor = random.choice(candidates)
                day = today + timedelta(days=random.randint(-7, 14))
                slot = random.choice(TIME_SLOTS)
                taken = Appointment.objects.filter(
                    doctor=doctor, appointment_date=day, time_slot=slot
                ).exclude(status=Appointment.STATUS_CANCELLED).exists()
                if taken:
                    continue
                if day < today:
                    status = random.choice([Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELLED])
                else:
                    status = random.choice([Appointment.STATUS_PENDING, Appointment.STATUS_CONFIRMED])
                booker = next((s for s in staff if s.hospital_id == doctor.hospital_id), None)
                created.append(Appointment.objects.create(
                    doctor=doctor, patient=patient, staff=booker, hospital_id=doctor.hospital_id,
                    appointment_date=day, time_slot=slot, status=status,
                    symptoms=random.choice(['Fever', 'Headache', 'Back pain', 'Cough', '']),
                ))
        self.stdout.write(f'appointments: {len(created)}')
        return created

    def create_expenses(self, hospitals, staff):
        today = timezone.localdate()
        categories = [c for c, _ in Expense.CATEGORY_CHOICES]
        methods = [m for m, _ in Expense.PAYMENT_CHOICES]
        for hospital in hospitals:
            creator = next((s.user for s in staff if s.hospital_id == hospital.id), None)
            for _ in range(6):
                Expense.objects.create(
                    hospital=hospital,
                    category=random.choice(categories),
                    amount=Decimal(random.randint(500, 50000)) / 100,
                    description='Sample expense',
                    date=today - timedelta(days=random.randint(0, 60)),
                    vendor_name=random.choice(['MedSupply Co', 'City Power', 'AdWorks', '']),
                    payment_method=random.choice(methods),
                    status=random.choice(['pending', 'completed']),
                    created_by=creator,
                )
        self.stdout.write('expenses created')

    def create_bills(self, appointments):
        for a in appointments:
            if a.status == Appointment.STATUS_CANCELLED:
                continue
            Bill.objects.get_or_create(
                appointment=a,
                defaults={
                    'patient': a.patient,
                    'hospital_id': a.hospital_id,
                    'service': f'{a.type.title()} with {a.doctor.user.display_name}',
                    'amount': a.doctor.fees,
                    'date': a.appointment_date,
                    'due_date': a.appointment_date + timedelta(days=14),
                    'status': Bill.STATUS_PAID if a.status == Appointment.STATUS_COMPLETED else Bill.STATUS_PENDING,
                },
            )
        self.stdout.write('bills created')

    def create_tasks(self, staff):
        titles = ['Verify insurance documents', 'Restock reception supplies', 'Call back pending patients']
        for member in staff:
            for title in titles:
                StaffTask.objects.get_or_create(
                    staff=member, title=title,
                    defaults={
                        'priority': random.choice(['low', 'medium', 'high']),
                        'due_date': timezone.localdate() + timedelta(days=random.randint(0, 7)),
                    },
                )
        self.stdout.write('staff tasks created')
