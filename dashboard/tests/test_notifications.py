import pytest
import requests
from django.urls import reverse
from rest_framework.test import APIClient

from dashboard.services import notifications

pytestmark = pytest.mark.django_db

PAYLOAD = {
    'doctorEmail': 'maya@clinic.example',
    'doctorName': 'Maya Chen',
    'patientName': 'Ana <script>x</script>Lopez',
    'appointmentDate': '2026-03-02 09:30',
}


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self.ok = status_code < 400
        self._payload = payload
        self.text = ''

    def json(self):
        return self._payload


def test_render_escapes_user_values():
    html = notifications.render_doctor_email(doctor_name='A&B', patient_name='<b>x</b>', appointment_date='today')
    assert 'Dear Dr. A&amp;B' in html
    assert '&lt;b&gt;x&lt;/b&gt;' in html


def test_send_returns_provider_json(staff_client, settings, monkeypatch):
    settings.RESEND_API_KEY = 're_test'
    settings.RESEND_API_URL = 'https://resend.test/emails'
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append((url, json, headers, timeout))
        return FakeResponse(200, {'id': 'email_42'})

    monkeypatch.setattr(notifications.requests, 'post', fake_post)
    r = staff_client.post(reverse('send_doctor_notification'), PAYLOAD, format='json')
    assert r.status_code == 200
    assert r.data == {'id': 'email_42'}
    url, body, headers, timeout = calls[0]
    assert url == 'https://resend.test/emails'
    assert headers['Authorization'] == 'Bearer re_test'
    assert body['subject'] == 'New Appointment Assignment'
    assert body['to'] == ['maya@clinic.example']
    assert '<script>' not in body['html']
    assert timeout == settings.NOTIFY_TIMEOUT


def test_missing_fields_are_rejected_before_sending(staff_client, monkeypatch):
    monkeypatch.setattr(notifications.requests, 'post', lambda *a, **kw: pytest.fail('should not send'))
    r = staff_client.post(reverse('send_doctor_notification'), {'doctorEmail': 'maya@clinic.example'}, format='json')
    assert r.status_code == 400
    assert set(r.data['error']['message']) == {'doctorName', 'patientName', 'appointmentDate'}


def test_provider_failure_is_500_with_error(staff_client, settings, monkeypatch):
    settings.RESEND_API_KEY = 're_test'

    def boom(*a, **kw):
        raise requests.ConnectionError('dns failure')

    monkeypatch.setattr(notifications.requests, 'post', boom)
    r = staff_client.post(reverse('send_doctor_notification'), PAYLOAD, format='json')
    assert r.status_code == 500
    assert 'dns failure' in r.data['error']


def test_unconfigured_provider_is_reported(settings):
    settings.RESEND_API_KEY = ''
    result = notifications.send_doctor_notification(
        doctor_email='maya@clinic.example', doctor_name='Maya', patient_name='Ana', appointment_date='now'
    )
    assert result.sent is False
    assert 'RESEND_API_KEY' in result.error


def test_requires_authentication():
    assert APIClient().post(reverse('send_doctor_notification'), PAYLOAD, format='json').status_code == 401
