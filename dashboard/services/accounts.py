"""
Account lifecycle: sign-up, email confirmation and sign-in.

Confirmation links carry a token signed with Django's signing
framework; nothing is stored server side until the user confirms.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth import authenticate, get_user_model
from django.core import signing
from django.core.mail import send_mail
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import AuthenticationFailed, ValidationError

from dashboard.models import Profile

User = get_user_model()
logger = logging.getLogger(__name__)

CONFIRM_SALT = 'dashboard.email-confirm'


def make_confirmation_token(user) -> str:
    return signing.dumps({'uid': str(user.pk), 'email': user.email}, salt=CONFIRM_SALT)


def send_confirmation_email(user) -> None:
    token = make_confirmation_token(user)
    link = settings.EMAIL_CONFIRM_URL.format(token=token)
    send_mail(
        subject='Confirm your email',
        message=f'Welcome to the Medical Dashboard.\n\nConfirm your email address: {link}\n',
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[user.email],
    )
    logger.info('confirmation email sent to %s', user.email)


def sign_up(*, email: str, password: str, full_name: str = '') -> User:
    if User.objects.filter(email__iexact=email).exists():
        raise ValidationError({'email': ['User already registered']})
    with transaction.atomic():
        user = User.objects.create_user(email=email, password=password, first_name=full_name[:150])
        Profile.objects.create(user=user, email=email, full_name=full_name or None)
    send_confirmation_email(user)
    return user


def confirm_email(token: str) -> User:
    try:
        data = signing.loads(token, salt=CONFIRM_SALT, max_age=settings.EMAIL_CONFIRM_MAX_AGE)
    except signing.SignatureExpired:
        raise ValidationError({'token': ['Confirmation link has expired']})
    except signing.BadSignature:
        raise ValidationError({'token': ['Invalid confirmation link']})
    user = User.objects.filter(pk=data.get('uid'), email=data.get('email')).first()
    if user is None:
        raise ValidationError({'token': ['Invalid confirmation link']})
    if user.email_confirmed_at is None:
        user.email_confirmed_at = timezone.now()
        user.save(update_fields=['email_confirmed_at'])
    return user


def resend_confirmation(email: str) -> bool:
    """Send another confirmation email; silent for unknown or confirmed addresses."""
    user = User.objects.filter(email__iexact=email, email_confirmed_at__isnull=True).first()
    if user is None:
        return False
    send_confirmation_email(user)
    return True


def sign_in(request, *, email: str, password: str) -> User:
    user = authenticate(request, username=email, password=password)
    if user is None:
        raise AuthenticationFailed('Invalid login credentials')
    if not user.email_confirmed:
        raise AuthenticationFailed('Email not confirmed')
    return user
