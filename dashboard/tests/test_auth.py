import re

import pytest
from django.core import mail
from django.urls import reverse
from django.utils import timezone
from rest_framework.test import APIClient

from dashboard.models import AuditEvent, Profile, User

pytestmark = pytest.mark.django_db

PASSWORD = 'Corr3ct-Horse-Battery'


def signup(client, email='nina@clinic.example', password=PASSWORD, **extra):
    return client.post(reverse('signup_view'), {'email': email, 'password': password, **extra}, format='json')


def confirmation_token(message) -> str:
    return re.search(r'token=(\S+)', message.body).group(1)


def test_signup_creates_user_profile_and_sends_confirmation():
    client = APIClient()
    r = signup(client, fullName='Nina <b>Rao</b>')
    assert r.status_code == 201
    user = User.objects.get(email='nina@clinic.example')
    assert user.role == User.ROLE_STAFF
    assert not user.email_confirmed
    assert Profile.objects.get(user=user).full_name == 'Nina Rao'
    assert len(mail.outbox) == 1
    assert mail.outbox[0].to == ['nina@clinic.example']


def test_signup_rejects_duplicates_and_weak_passwords():
    client = APIClient()
    assert signup(client).status_code == 201
    dup = signup(client, email='NINA@clinic.example')
    assert dup.status_code == 400
    assert dup.data['ok'] is False
    weak = signup(client, email='other@clinic.example', password='123')
    assert weak.status_code == 400
    assert 'password' in weak.data['error']['message']


def test_signin_requires_confirmed_email():
    client = APIClient()
    signup(client)
    r = client.post(reverse('signin_view'), {'email': 'nina@clinic.example', 'password': PASSWORD}, format='json')
    assert r.status_code == 401
    assert r.data['error']['message'] == 'Email not confirmed'
    assert AuditEvent.objects.filter(action='signin', detail__result='fail').exists()


def test_confirm_then_signin_returns_jwt_and_legacy_token():
    client = APIClient()
    signup(client)
    token = confirmation_token(mail.outbox[0])
    r = client.post(reverse('confirm_view'), {'token': token}, format='json')
    assert r.status_code == 200
    assert r.data['user']['emailConfirmedAt']

    r = client.post(reverse('signin_view'), {'email': 'nina@clinic.example', 'password': PASSWORD}, format='json')
    assert r.status_code == 200
    assert r.data['jwt_access'] and r.data['jwt_refresh'] and r.data['token']

    jwt_client = APIClient()
    jwt_client.credentials(HTTP_AUTHORIZATION=f"Bearer {r.data['jwt_access']}")
    me = jwt_client.get(reverse('current_user_view'))
    assert me.status_code == 200
    assert me.data['user']['email'] == 'nina@clinic.example'

    legacy = APIClient()
    legacy.credentials(HTTP_AUTHORIZATION=f"Token {r.data['token']}")
    assert legacy.get(reverse('current_user_view')).status_code == 200

    refreshed = client.post(reverse('jwt_refresh_view'), {'refresh': r.data['jwt_refresh']}, format='json')
    assert refreshed.status_code == 200
    assert refreshed.data['jwt_access']


def test_wrong_password_is_rejected():
    client = APIClient()
    signup(client)
    User.objects.filter(email='nina@clinic.example').update(email_confirmed_at=timezone.now())
    r = client.post(reverse('signin_view'), {'email': 'nina@clinic.example', 'password': 'nope'}, format='json')
    assert r.status_code == 401
    assert r.data['error']['message'] == 'Invalid login credentials'


def test_bad_confirmation_token():
    r = APIClient().post(reverse('confirm_view'), {'token': 'forged:token'}, format='json')
    assert r.status_code == 400


def test_resend_only_mails_unconfirmed_addresses():
    client = APIClient()
    signup(client)
    r = client.post(reverse('resend_view'), {'email': 'nina@clinic.example'}, format='json')
    assert r.status_code == 200
    assert len(mail.outbox) == 2
    r = client.post(reverse('resend_view'), {'email': 'ghost@clinic.example'}, format='json')
    assert r.status_code == 200
    assert len(mail.outbox) == 2


def test_current_user_without_session_is_401():
    r = APIClient().get(reverse('current_user_view'))
    assert r.status_code == 401
    assert r.data['ok'] is False
