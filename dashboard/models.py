"""
Database models for the clinic backend.

These models capture the relations the dashboard reads and writes:
clinics, staff users and their profiles, patients, doctors,
appointments, reminders and feedback.  Primary keys are UUIDs so that
identifiers handed to the front-end are opaque and stable across
environments.
"""
from __future__ import annotations

import uuid
from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class Clinic(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=32, blank=True, null=True)
    address = models.TextField(blank=True, null=True)
    subscription_tier = models.CharField(max_length=32, default='basic', blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class ClinicUserManager(UserManager):
    """Users sign in with their email; the username mirrors it."""

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        username = username or email
        return super().create_user(username, email, password, **extra_fields)


class User(AbstractUser):
    """Dashboard operator account.

    ``role`` separates clinic staff from administrators who may run
    bulk operations and trigger on-demand health checks.  A user can be
    bound to a clinic; unbound users see every clinic's data.
    """
    ROLE_STAFF = 'staff'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_STAFF, 'Staff'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STAFF)
    clinic = models.ForeignKey(
        Clinic, null=True, blank=True, on_delete=models.SET_NULL, related_name='users'
    )
    email_confirmed_at = models.DateTimeField(null=True, blank=True)

    objects = ClinicUserManager()

    @property
    def email_confirmed(self) -> bool:
        return self.email_confirmed_at is not None

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"


class Profile(models.Model):
    """Public profile row created for every signed-up user."""
    user = models.OneToOneField(User, primary_key=True, on_delete=models.CASCADE, related_name='profile')
    email = models.EmailField(blank=True, null=True)
    full_name = models.CharField(max_length=255, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'profiles'

    def __str__(self) -> str:
        return self.full_name or self.email or str(self.user_id)


class Patient(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic = models.ForeignKey(Clinic, null=True, blank=True, on_delete=models.SET_NULL, related_name='patients')
    name = models.CharField(max_length=255)
    phone = models.CharField(max_length=32)
    email = models.EmailField(blank=True, null=True)
    date_of_birth = models.DateField(blank=True, null=True)
    medical_record_number = models.CharField(max_length=64, blank=True, null=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return self.name


class Doctor(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    clinic = models.ForeignKey(Clinic, null=True, blank=True, on_delete=models.SET_NULL, related_name='doctors')
    name = models.CharField(max_length=255)
    email = models.EmailField()
    phone = models.CharField(max_length=32, blank=True, null=True)
    specialization = models.CharField(max_length=128, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"Dr. {self.name}"


class Appointment(models.Model):
    STATUS_SCHEDULED = 'scheduled'
    STATUS_CONFIRMED = 'confirmed'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = (
        (STATUS_SCHEDULED, 'scheduled'),
        (STATUS_CONFIRMED, 'confirmed'),
        (STATUS_COMPLETED, 'completed'),
        (STATUS_CANCELLED, 'cancelled'),
    )

    ATTENDANCE_PENDING = 'pending'
    ATTENDANCE_CHECKED_IN = 'checked_in'
    ATTENDANCE_COMPLETED = 'completed'
    ATTENDANCE_NO_SHOW = 'no_show'
    ATTENDANCE_CHOICES = (
        (ATTENDANCE_PENDING, 'pending'),
        (ATTENDANCE_CHECKED_IN, 'checked_in'),
        (ATTENDANCE_COMPLETED, 'completed'),
        (ATTENDANCE_NO_SHOW, 'no_show'),
    )
    ATTENDED = (ATTENDANCE_CHECKED_IN, ATTENDANCE_COMPLETED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.CASCADE, related_name='appointments')
    doctor = models.ForeignKey(Doctor, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments')
    clinic = models.ForeignKey(Clinic, null=True, blank=True, on_delete=models.SET_NULL, related_name='appointments')
    appointment_date = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_SCHEDULED, db_index=True)
    attendance_status = models.CharField(
        max_length=16, choices=ATTENDANCE_CHOICES, default=ATTENDANCE_PENDING, db_index=True
    )
    completed_at = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True, null=True)
    follow_up_required = models.BooleanField(default=False)
    follow_up_date = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'appointment_date'], name='appt_status_date_idx'),
            models.Index(fields=['doctor', 'appointment_date'], name='appt_doctor_date_idx'),
        ]

    def __str__(self) -> str:
        return f"appt {self.id} p={self.patient_id} d={self.doctor_id} @ {self.appointment_date:%F %T}"


class Reminder(models.Model):
    TYPE_SMS = 'sms'
    TYPE_WHATSAPP = 'whatsapp'
    TYPE_EMAIL = 'email'
    TYPE_CHOICES = ((TYPE_SMS, 'SMS'), (TYPE_WHATSAPP, 'WhatsApp'), (TYPE_EMAIL, 'Email'))

    STATUS_PENDING = 'pending'
    STATUS_SENT = 'sent'
    STATUS_CANCELLED = 'cancelled'
    STATUS_CHOICES = ((STATUS_PENDING, 'pending'), (STATUS_SENT, 'sent'), (STATUS_CANCELLED, 'cancelled'))

    DELIVERY_DELIVERED = 'delivered'
    DELIVERY_FAILED = 'failed'
    DELIVERY_CHOICES = ((DELIVERY_DELIVERED, 'delivered'), (DELIVERY_FAILED, 'failed'))

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.CASCADE, related_name='reminders'
    )
    reminder_type = models.CharField(max_length=16, choices=TYPE_CHOICES)
    message = models.TextField()
    reminder_time = models.DateTimeField(db_index=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    delivery_status = models.CharField(max_length=16, choices=DELIVERY_CHOICES, blank=True, null=True)
    sent_at = models.DateTimeField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self) -> str:
        return f"{self.reminder_type} reminder {self.status} @ {self.reminder_time:%F %T}"


class Feedback(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    appointment = models.ForeignKey(
        Appointment, null=True, blank=True, on_delete=models.SET_NULL, related_name='feedback'
    )
    patient = models.ForeignKey(Patient, null=True, blank=True, on_delete=models.SET_NULL, related_name='feedback')
    clinic = models.ForeignKey(Clinic, null=True, blank=True, on_delete=models.SET_NULL, related_name='feedback')
    rating = models.PositiveSmallIntegerField(
        blank=True, null=True, validators=[MinValueValidator(1), MaxValueValidator(5)]
    )
    feedback_text = models.TextField(blank=True, null=True)
    feedback_type = models.CharField(max_length=32, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name_plural = 'feedback'

    def __str__(self) -> str:
        return f"feedback {self.rating}/5 p={self.patient_id}"


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.CharField(max_length=64, blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"
