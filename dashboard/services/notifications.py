"""
Doctor assignment notifications.

Emails are sent through the Resend HTTP API.  Callers get back a
:class:`NotificationResult` rather than an exception so that an
unavailable provider never rolls back the assignment that triggered
the email.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from html import escape
from typing import Any, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

SUBJECT = 'New Appointment Assignment'

EMAIL_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #2563eb;">New Appointment Assignment</h2>
  <p>Dear Dr. {doctor_name},</p>
  <p>You have been assigned a new appointment:</p>
  <div style="background-color: #f3f4f6; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <p><strong>Patient:</strong> {patient_name}</p>
    <p><strong>Date &amp; Time:</strong> {appointment_date}</p>
    <p><strong>Status:</strong> Confirmed</p>
  </div>
  <p>Please review the appointment details in your dashboard and prepare accordingly.</p>
  <p>Best regards,<br>Medical Dashboard Team</p>
</div>
"""


class NotificationError(Exception):
    pass


@dataclass
class NotificationResult:
    sent: bool
    response: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


def render_doctor_email(*, doctor_name: str, patient_name: str, appointment_date: str) -> str:
    return EMAIL_TEMPLATE.format(
        doctor_name=escape(doctor_name),
        patient_name=escape(patient_name),
        appointment_date=escape(appointment_date),
    )


def _post_email(payload: dict) -> dict:
    if not settings.RESEND_API_KEY:
        raise NotificationError('RESEND_API_KEY is not configured')
    try:
        resp = requests.post(
            settings.RESEND_API_URL,
            json=payload,
            headers={'Authorization': f'Bearer {settings.RESEND_API_KEY}'},
            timeout=settings.NOTIFY_TIMEOUT,
        )
    except requests.RequestException as e:
        raise NotificationError(f'email provider unreachable: {e}') from e
    try:
        data = resp.json()
    except ValueError:
        data = {'raw': resp.text[:500]}
    if not resp.ok:
        message = data.get('message') if isinstance(data, dict) else None
        raise NotificationError(message or f'email provider returned HTTP {resp.status_code}')
    return data


def send_doctor_notification(*, doctor_email: str, doctor_name: str, patient_name: str,
                             appointment_date: str) -> NotificationResult:
    payload = {
        'from': settings.NOTIFY_FROM_EMAIL,
        'to': [doctor_email],
        'subject': SUBJECT,
        'html': render_doctor_email(
            doctor_name=doctor_name, patient_name=patient_name, appointment_date=appointment_date
        ),
    }
    try:
        data = _post_email(payload)
    except NotificationError as e:
        logger.warning('doctor notification to %s failed: %s', doctor_email, e)
        return NotificationResult(sent=False, error=str(e))
    logger.info('doctor notification sent to %s (id=%s)', doctor_email, data.get('id'))
    return NotificationResult(sent=True, response=data)
