"""
Management command to populate the database with demo data.
"""
import random
from datetime import timedelta

from django.core.management.base import BaseCommand
from django.utils import timezone

from dashboard.models import Appointment, Clinic, Doctor, Feedback, Patient, Profile, Reminder, User


class Command(BaseCommand):
    help = 'Populate database with demo data'

    def add_arguments(self, parser):
        parser.add_argument('--seed', type=int, default=None, help='Random seed for repeatable data.')

    def handle(self, *args, **options):
        self.rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')

        clinic = self.create_clinic()
        self.create_users(clinic)
        doctors = self.create_doctors(clinic)
        patients = self.create_patients(clinic)
        appointments = self.create_appointments(clinic, patients, doctors)
        self.create_reminders(appointments)
        self.create_feedback(clinic, appointments)

        self.stdout.write(self.style.SUCCESS('Demo data created.'))

    def create_clinic(self):
        clinic, _ = Clinic.objects.get_or_create(
            name='Riverside Family Clinic',
            defaults={'email': 'front-desk@riverside.example', 'phone': '+1 555 0100', 'address': '12 River Rd'},
        )
        self.stdout.write(f'Clinic: {clinic.name}')
        return clinic

    def create_users(self, clinic):
        for email, role, name in [
            ('admin@riverside.example', User.ROLE_ADMIN, 'Alex Admin'),
            ('staff@riverside.example', User.ROLE_STAFF, 'Sam Staff'),
        ]:
            user = User.objects.filter(email=email).first()
            if user is None:
                user = User.objects.create_user(email=email, password='Demo-pass-123', first_name=name.split()[0],
                                                last_name=name.split()[1], role=role, clinic=clinic,
                                                email_confirmed_at=timezone.now())
                Profile.objects.create(user=user, email=email, full_name=name)
            self.stdout.write(f'User: {user.email} ({user.role})')

    def create_doctors(self, clinic):
        specs = [
            ('Maya Chen', 'Cardiology'), ('Omar Haddad', 'Pediatrics'),
            ('Lena Novak', 'Dermatology'), ('Raj Patel', 'General Practice'),
        ]
        doctors = []
        for name, spec in specs:
            email = name.lower().replace(' ', '.') + '@riverside.example'
            doctor, _ = Doctor.objects.get_or_create(
                email=email, defaults={'name': name, 'specialization': spec, 'clinic': clinic}
            )
            doctors.append(doctor)
        self.stdout.write(f'Doctors: {len(doctors)}')
        return doctors

    def create_patients(self, clinic):
        names = ['Ana Lopez', 'Ben Carter', 'Chloe Kim', 'David Osei', 'Elif Yilmaz',
                 'Farah Aziz', 'George Moss', 'Hana Sato', 'Ivan Petrov', 'Julia Rossi']
        patients = []
        for i, name in enumerate(names):
            patient, _ = Patient.objects.get_or_create(
                name=name,
                defaults={
                    'clinic': clinic,
                    'phone': f'+1 555 01{i:02d}',
                    'email': name.lower().replace(' ', '.') + '@mail.example',
                    'medical_record_number': f'MRN-{1000 + i}',
                },
            )
            patients.append(patient)
        self.stdout.write(f'Patients: {len(patients)}')
        return patients

    def create_appointments(self, clinic, patients, doctors):
        now = timezone.now().replace(minute=0, second=0, microsecond=0)
        appointments = []
        for i, patient in enumerate(patients):
            when = now + timedelta(days=self.rng.randint(-6, 6), hours=self.rng.randint(-4, 4))
            appt = Appointment.objects.create(patient=patient, clinic=clinic, appointment_date=when)
            if when < now:
                appt.doctor = self.rng.choice(doctors)
                appt.status = Appointment.STATUS_CONFIRMED
                appt.attendance_status = self.rng.choice([
                    Appointment.ATTENDANCE_COMPLETED, Appointment.ATTENDANCE_COMPLETED,
                    Appointment.ATTENDANCE_CHECKED_IN, Appointment.ATTENDANCE_NO_SHOW,
                ])
                if appt.attendance_status == Appointment.ATTENDANCE_COMPLETED:
                    appt.completed_at = when + timedelta(minutes=30)
                appt.save()
            elif i % 3 == 0:
                appt.doctor = self.rng.choice(doctors)
                appt.status = Appointment.STATUS_CONFIRMED
                appt.save()
            appointments.append(appt)
        self.stdout.write(f'Appointments: {len(appointments)}')
        return appointments

    def create_reminders(self, appointments):
        count = 0
        for appt in appointments:
            due = appt.appointment_date - timedelta(hours=24)
            reminder = Reminder(
                appointment=appt,
                reminder_type=self.rng.choice([c for c, _ in Reminder.TYPE_CHOICES]),
                message=f'Hi {appt.patient.name}, this is a reminder of your appointment.',
                reminder_time=due,
            )
            if due < timezone.now():
                reminder.status = Reminder.STATUS_SENT
                reminder.sent_at = due
                reminder.delivery_status = (
                    Reminder.DELIVERY_FAILED if self.rng.random() < 0.1 else Reminder.DELIVERY_DELIVERED
                )
            reminder.save()
            count += 1
        self.stdout.write(f'Reminders: {count}')

    def create_feedback(self, clinic, appointments):
        comments = ['Great care', 'Short wait', 'Friendly staff', 'Long wait time', 'Very thorough']
        done = [a for a in appointments if a.attendance_status == Appointment.ATTENDANCE_COMPLETED]
        for appt in done:
            Feedback.objects.create(
                appointment=appt, patient=appt.patient, clinic=clinic,
                rating=self.rng.randint(2, 5), feedback_text=self.rng.choice(comments), feedback_type='visit',
            )
        self.stdout.write(f'Feedback: {len(done)}')
