"""
Reminder scheduling.

Reminders are rows with a due time; delivering them to SMS, WhatsApp or
email providers is outside this backend.  Rules are evaluated on demand
against upcoming appointments.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from dashboard.models import Appointment, Reminder
from dashboard.services.audit import try_log_action
from dashboard.services.directory import scope_to_clinic

logger = logging.getLogger(__name__)

DEFAULT_BULK_MESSAGE = 'Reminder: you have an appointment on {appointmentTime}. Reply to confirm.'


def reminders_queryset(user=None):
    qs = Reminder.objects.select_related('appointment', 'appointment__patient')
    return scope_to_clinic(qs, user, field='appointment__clinic')


def list_reminders(kind: str = 'all', *, user=None):
    qs = reminders_queryset(user).order_by('-reminder_time')
    if kind == 'pending':
        return qs.filter(status=Reminder.STATUS_PENDING)
    if kind == 'sent':
        return qs.filter(status=Reminder.STATUS_SENT)
    if kind == 'failed':
        return qs.filter(delivery_status=Reminder.DELIVERY_FAILED)
    return qs


def reminder_stats(*, user=None) -> dict:
    agg = reminders_queryset(user).aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=Reminder.STATUS_PENDING)),
        sent=Count('id', filter=Q(status=Reminder.STATUS_SENT)),
        failed=Count('id', filter=Q(delivery_status=Reminder.DELIVERY_FAILED)),
    )
    return agg


def render_message(template: str, appointment: Appointment) -> str:
    when = timezone.localtime(appointment.appointment_date)
    values = {
        '{patientName}': appointment.patient.name if appointment.patient else 'Patient',
        '{appointmentTime}': when.strftime('%Y-%m-%d %H:%M'),
        '{doctorName}': appointment.doctor.name if appointment.doctor else 'your doctor',
    }
    for placeholder, value in values.items():
        template = template.replace(placeholder, value)
    return template


def upcoming_appointments(now: Optional[datetime] = None, *, user=None):
    now = now or timezone.now()
    return (
        scope_to_clinic(Appointment.objects.select_related('patient', 'doctor'), user)
        .filter(appointment_date__gte=now)
        .exclude(status=Appointment.STATUS_CANCELLED)
        .order_by('appointment_date')
    )


def schedule_from_rule(*, trigger_hours: int, reminder_type: str, message_template: str,
                       now: Optional[datetime] = None, user=None) -> list[Reminder]:
    """Create pending reminders ``trigger_hours`` before each upcoming appointment.

    Appointments whose reminder time has already passed are skipped, as
    are appointments that already have a reminder of this type at the
    same time.  ``user`` limits the rule to that user's clinic.
    """
    now = now or timezone.now()
    offset = timedelta(hours=trigger_hours)
    created: list[Reminder] = []
    with transaction.atomic():
        for appt in upcoming_appointments(now, user=user):
            due = appt.appointment_date - offset
            if due <= now:
                continue
            if Reminder.objects.filter(appointment=appt, reminder_type=reminder_type, reminder_time=due).exists():
                continue
            created.append(Reminder.objects.create(
                appointment=appt,
                reminder_type=reminder_type,
                reminder_time=due,
                message=render_message(message_template, appt),
                status=Reminder.STATUS_PENDING,
            ))
    logger.info('scheduled %d %s reminders %dh before appointments', len(created), reminder_type, trigger_hours)
    try_log_action(user=user, action='schedule_reminders', object_type='reminder',
                   detail={'count': len(created), 'triggerHours': trigger_hours, 'type': reminder_type})
    return created


def bulk_remind(*, reminder_type: str = Reminder.TYPE_SMS, message: Optional[str] = None,
                now: Optional[datetime] = None, user=None) -> list[Reminder]:
    """Queue an immediate reminder for every upcoming appointment without one."""
    now = now or timezone.now()
    template = message or DEFAULT_BULK_MESSAGE
    created: list[Reminder] = []
    with transaction.atomic():
        pending = upcoming_appointments(now, user=user).exclude(reminders__status=Reminder.STATUS_PENDING)
        for appt in pending.distinct():
            created.append(Reminder.objects.create(
                appointment=appt,
                reminder_type=reminder_type,
                reminder_time=now,
                message=render_message(template, appt),
                status=Reminder.STATUS_PENDING,
            ))
    try_log_action(user=user, action='bulk_reminders', object_type='reminder', detail={'count': len(created)})
    return created
