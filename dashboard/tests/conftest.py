import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from dashboard.models import Profile, User
from dashboard.services import health


@pytest.fixture(autouse=True)
def _isolate_process_state():
    cache.clear()
    health.reset_monitor()
    yield
    health.reset_monitor()
    cache.clear()


@pytest.fixture
def staff_user(db):
    user = User.objects.create_user(email='staff@northside.example', password='Sup3r-secret-pw',
                                    role=User.ROLE_STAFF, email_confirmed_at=timezone.now())
    Profile.objects.create(user=user, email=user.email, full_name='Staff')
    return user


@pytest.fixture
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client
