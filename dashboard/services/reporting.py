from datetime import datetime, timedelta
from typing import Optional

from django.db.models import Avg, Count, Q
from django.utils import timezone

from dashboard.models import Appointment, Feedback, Patient, Reminder
from dashboard.services.directory import scope_to_clinic
from dashboard.services.scheduling import day_bounds


def _pct(part: int, whole: int) -> float:
    return round(part / whole * 100, 1) if whole else 0


def _appointments(user):
    return scope_to_clinic(Appointment.objects.all(), user)


def _reminders(user):
    return scope_to_clinic(Reminder.objects.all(), user, field='appointment__clinic')


def dashboard_metrics(day=None, *, user=None) -> dict:
    start, end = day_bounds(day)
    appointments = _appointments(user)
    total = appointments.count()
    completed = appointments.filter(attendance_status=Appointment.ATTENDANCE_COMPLETED).count()
    return {
        'todayAppointments': appointments.filter(appointment_date__gte=start, appointment_date__lt=end).count(),
        'activePatients': scope_to_clinic(Patient.objects.all(), user).count(),
        'remindersSent': _reminders(user).filter(status=Reminder.STATUS_SENT).count(),
        'successRate': _pct(completed, total),
    }


def feedback_stats(*, user=None) -> dict:
    agg = scope_to_clinic(Feedback.objects.all(), user).aggregate(
        total=Count('id'),
        average=Avg('rating'),
        positive=Count('id', filter=Q(rating__gte=4)),
        negative=Count('id', filter=Q(rating__lte=2)),
    )
    return {
        'total': agg['total'],
        'averageRating': round(agg['average'], 1) if agg['average'] is not None else 0,
        'positive': agg['positive'],
        'negative': agg['negative'],
    }


def channel_stats(*, user=None) -> list[dict]:
    rows = []
    for code, label in Reminder.TYPE_CHOICES:
        agg = _reminders(user).filter(reminder_type=code).aggregate(
            sent=Count('id', filter=Q(status=Reminder.STATUS_SENT)),
            delivered=Count('id', filter=Q(delivery_status=Reminder.DELIVERY_DELIVERED)),
            failed=Count('id', filter=Q(delivery_status=Reminder.DELIVERY_FAILED)),
        )
        rows.append({'type': label, **agg, 'rate': _pct(agg['delivered'], agg['sent'])})
    return rows


def weekly_series(today=None, *, user=None) -> list[dict]:
    """Reminders sent and appointments confirmed for each of the last seven days."""
    today = today or timezone.localdate()
    series = []
    for offset in range(6, -1, -1):
        day = today - timedelta(days=offset)
        start, end = day_bounds(day)
        series.append({
            'day': day.strftime('%a'),
            'date': day.isoformat(),
            'reminders': _reminders(user).filter(sent_at__gte=start, sent_at__lt=end).count(),
            'confirmations': _appointments(user).filter(
                status__in=[Appointment.STATUS_CONFIRMED, Appointment.STATUS_COMPLETED],
                appointment_date__gte=start, appointment_date__lt=end,
            ).count(),
        })
    return series


def analytics(now: Optional[datetime] = None, *, user=None) -> dict:
    now = now or timezone.now()
    active = _appointments(user).exclude(status=Appointment.STATUS_CANCELLED)
    past = active.filter(appointment_date__lt=now)
    confirmed = active.filter(status__in=[Appointment.STATUS_CONFIRMED, Appointment.STATUS_COMPLETED]).count()
    reminders = _reminders(user)
    sent = reminders.filter(status=Reminder.STATUS_SENT).count()
    delivered = reminders.filter(delivery_status=Reminder.DELIVERY_DELIVERED).count()
    return {
        'totalReminders': reminders.count(),
        'successRate': _pct(delivered, sent),
        'channels': channel_stats(user=user),
        'weekly': weekly_series(timezone.localdate(now), user=user),
        'noShowRate': _pct(past.filter(attendance_status=Appointment.ATTENDANCE_NO_SHOW).count(), past.count()),
        'confirmationRate': _pct(confirmed, active.count()),
        'averageRating': feedback_stats(user=user)['averageRating'],
    }
