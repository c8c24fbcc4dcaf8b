"""
Appointment workflow: doctor assignment and attendance.

Assignment flips a scheduled appointment to ``confirmed`` and emails the
doctor.  The email is best effort: a provider failure is logged and
reported back, but the assignment stands.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from dashboard.models import Appointment, Doctor
from dashboard.services.audit import try_log_action
from dashboard.services.directory import scope_to_clinic
from dashboard.services.notifications import send_doctor_notification

logger = logging.getLogger(__name__)


@dataclass
class Assignment:
    appointment: Appointment
    notification_sent: bool
    notification_error: Optional[str] = None


def day_bounds(day: Optional[date] = None) -> tuple[datetime, datetime]:
    """Aware [start, end) datetimes of ``day`` in the current time zone."""
    day = day or timezone.localdate()
    start = timezone.make_aware(datetime.combine(day, time.min))
    return start, start + timedelta(days=1)


def appointments_queryset(user=None):
    return scope_to_clinic(Appointment.objects.select_related('patient', 'doctor', 'clinic'), user)


def list_appointments(*, day: Optional[date] = None, status: Optional[str] = None, unassigned: bool = False,
                      user=None):
    qs = appointments_queryset(user)
    if day:
        start, end = day_bounds(day)
        qs = qs.filter(appointment_date__gte=start, appointment_date__lt=end)
    if status:
        qs = qs.filter(status=status)
    if unassigned:
        qs = qs.filter(doctor__isnull=True)
    return qs.order_by('appointment_date')


def unassigned_scheduled(user=None):
    return list_appointments(status=Appointment.STATUS_SCHEDULED, unassigned=True, user=user)


def get_appointment(appointment_id, user=None) -> Appointment:
    appt = appointments_queryset(user).filter(id=appointment_id).first()
    if appt is None:
        raise NotFound('appointment not found')
    return appt


def same_clinic(doctor: Doctor, appointment: Appointment) -> bool:
    # rows without a clinic are shared
    if not (doctor.clinic_id and appointment.clinic_id):
        return True
    return doctor.clinic_id == appointment.clinic_id


def assign_doctor(appointment: Appointment, doctor: Doctor, *, user=None, notify: bool = True) -> Assignment:
    if appointment.status in (Appointment.STATUS_COMPLETED, Appointment.STATUS_CANCELLED):
        raise ValidationError({'status': [f'cannot assign a doctor to a {appointment.status} appointment']})
    if not same_clinic(doctor, appointment):
        raise ValidationError({'doctorId': ['doctor belongs to another clinic']})
    with transaction.atomic():
        appointment.doctor = doctor
        appointment.status = Appointment.STATUS_CONFIRMED
        appointment.save(update_fields=['doctor', 'status', 'updated_at'])

    sent, error = False, None
    if notify:
        result = send_doctor_notification(
            doctor_email=doctor.email,
            doctor_name=doctor.name,
            patient_name=appointment.patient.name if appointment.patient else 'Patient',
            appointment_date=timezone.localtime(appointment.appointment_date).strftime('%Y-%m-%d %H:%M'),
        )
        sent, error = result.sent, result.error
    try_log_action(user=user, action='assign_doctor', object_type='appointment', object_id=appointment.id,
                   detail={'doctorId': str(doctor.id), 'notificationSent': sent, 'error': error})
    return Assignment(appointment=appointment, notification_sent=sent, notification_error=error)


def doctor_pool(user=None) -> list[Doctor]:
    return list(scope_to_clinic(Doctor.objects.order_by('name'), user))


def assign_random_doctor(appointment: Appointment, *, user=None, rng: Optional[random.Random] = None) -> Assignment:
    doctors = [d for d in doctor_pool(user) if same_clinic(d, appointment)]
    if not doctors:
        raise ValidationError({'doctor': ['no doctors available']})
    return assign_doctor(appointment, (rng or random).choice(doctors), user=user)


def bulk_random_assign(*, user=None, rng: Optional[random.Random] = None) -> list[Assignment]:
    """Give every unassigned scheduled appointment a random doctor."""
    doctors = doctor_pool(user)
    pending = list(unassigned_scheduled(user))
    if not doctors or not pending:
        return []
    rng = rng or random
    assignments = []
    for appt in pending:
        candidates = [d for d in doctors if same_clinic(d, appt)]
        if candidates:
            assignments.append(assign_doctor(appt, rng.choice(candidates), user=user))
    logger.info('bulk assigned %d appointments across %d doctors', len(assignments), len(doctors))
    return assignments


# ---------------------------------------------------------------------
# Attendance
# ---------------------------------------------------------------------
def attended_for_day(day: Optional[date] = None, q: Optional[str] = None, *, user=None):
    start, end = day_bounds(day)
    qs = appointments_queryset(user).filter(
        attendance_status__in=Appointment.ATTENDED,
        appointment_date__gte=start,
        appointment_date__lt=end,
    )
    if q:
        qs = qs.filter(Q(patient__name__icontains=q) | Q(doctor__name__icontains=q))
    return qs.order_by('-appointment_date')


def check_in(appointment: Appointment, *, user=None) -> Appointment:
    if appointment.status == Appointment.STATUS_CANCELLED:
        raise ValidationError({'status': ['cannot check in a cancelled appointment']})
    if appointment.attendance_status == Appointment.ATTENDANCE_COMPLETED:
        raise ValidationError({'attendance_status': ['appointment already completed']})
    appointment.attendance_status = Appointment.ATTENDANCE_CHECKED_IN
    appointment.save(update_fields=['attendance_status', 'updated_at'])
    try_log_action(user=user, action='check_in', object_type='appointment', object_id=appointment.id)
    return appointment


def mark_completed(appointment: Appointment, *, user=None, notes=None, follow_up_required=None,
                   follow_up_date=None) -> Appointment:
    if appointment.status == Appointment.STATUS_CANCELLED:
        raise ValidationError({'status': ['cannot complete a cancelled appointment']})
    appointment.attendance_status = Appointment.ATTENDANCE_COMPLETED
    appointment.completed_at = timezone.now()
    fields = ['attendance_status', 'completed_at', 'updated_at']
    if notes is not None:
        appointment.notes = notes
        fields.append('notes')
    if follow_up_required is not None:
        appointment.follow_up_required = follow_up_required
        fields.append('follow_up_required')
    if follow_up_date is not None:
        appointment.follow_up_date = follow_up_date
        fields.append('follow_up_date')
    appointment.save(update_fields=fields)
    try_log_action(user=user, action='complete', object_type='appointment', object_id=appointment.id)
    return appointment


def attendance_stats(day: Optional[date] = None, *, user=None) -> dict:
    start, end = day_bounds(day)
    appointments = scope_to_clinic(Appointment.objects.all(), user)
    attended = appointments.filter(attendance_status__in=Appointment.ATTENDED).count()
    scheduled = appointments.count()
    completed_today = appointments.filter(
        attendance_status=Appointment.ATTENDANCE_COMPLETED,
        appointment_date__gte=start,
        appointment_date__lt=end,
    ).count()
    return {
        'totalAttended': attended,
        'totalScheduled': scheduled,
        'attendanceRate': round(attended / scheduled * 100, 1) if scheduled else 0,
        'completedToday': completed_today,
    }
