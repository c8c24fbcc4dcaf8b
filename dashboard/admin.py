"""
Django admin registrations for the dashboard models.

Minimal list displays so that operators can inspect and correct data
through ``/admin/`` during development.
"""
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import Appointment, AuditEvent, Clinic, Doctor, Feedback, Patient, Profile, Reminder, User


@admin.register(Clinic)
class ClinicAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'phone', 'subscription_tier', 'created_at')
    search_fields = ('name', 'email')


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ('email', 'role', 'clinic', 'email_confirmed_at', 'is_staff')
    list_filter = ('role', 'clinic', 'is_staff')
    search_fields = ('email', 'username', 'first_name', 'last_name')
    ordering = ('email',)
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Clinic', {'fields': ('role', 'clinic', 'email_confirmed_at')}),
    )


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ('user', 'full_name', 'email', 'created_at')
    search_fields = ('full_name', 'email')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('name', 'phone', 'email', 'clinic', 'medical_record_number')
    list_filter = ('clinic',)
    search_fields = ('name', 'phone', 'email', 'medical_record_number')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'specialization', 'clinic')
    list_filter = ('clinic', 'specialization')
    search_fields = ('name', 'email', 'specialization')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('appointment_date', 'patient', 'doctor', 'status', 'attendance_status')
    list_filter = ('status', 'attendance_status', 'clinic')
    search_fields = ('patient__name', 'doctor__name')
    date_hierarchy = 'appointment_date'


@admin.register(Reminder)
class ReminderAdmin(admin.ModelAdmin):
    list_display = ('reminder_time', 'reminder_type', 'status', 'delivery_status', 'appointment')
    list_filter = ('reminder_type', 'status', 'delivery_status')


@admin.register(Feedback)
class FeedbackAdmin(admin.ModelAdmin):
    list_display = ('patient', 'rating', 'feedback_type', 'created_at')
    list_filter = ('rating', 'feedback_type')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'user', 'object_type', 'object_id')
    list_filter = ('action', 'object_type')
    search_fields = ('object_id', 'user__email')
