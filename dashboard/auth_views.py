"""
Authentication views.

Sign-up, email confirmation, sign-in and the "who am I" endpoint used
by the front-end (and by the health monitor's API connectivity probe).
Sign-in returns a JWT pair plus a legacy DRF token.
"""
from __future__ import annotations

from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from dashboard.serializers.auth import (
    ConfirmEmailSerializer,
    ResendConfirmationSerializer,
    SigninSerializer,
    SignupSerializer,
)
from dashboard.services import accounts
from dashboard.services.audit import try_log_action
from dashboard.throttling import ResendRateThrottle, SigninRateThrottle, SignupRateThrottle


def user_payload(user) -> dict:
    profile = getattr(user, 'profile', None)
    return {
        'id': str(user.id),
        'email': user.email,
        'fullName': (profile.full_name if profile else None) or user.get_full_name() or None,
        'role': user.role,
        'clinicId': str(user.clinic_id) if user.clinic_id else None,
        'emailConfirmedAt': user.email_confirmed_at.isoformat() if user.email_confirmed_at else None,
    }


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([SignupRateThrottle])
def signup_view(request):
    s = SignupSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    user = accounts.sign_up(email=vd['email'], password=vd['password'], full_name=vd.get('fullName') or '')
    try_log_action(user=user, action='signup', object_type='user', object_id=user.id,
                   detail={'ip': request.META.get('REMOTE_ADDR')})
    return Response({'ok': True, 'user': user_payload(user), 'confirmationSent': True}, status=201)

@api_view(['POST'])
@permission_classes([AllowAny])
def confirm_view(request):
    s = ConfirmEmailSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = accounts.confirm_email(s.validated_data['token'])
    return Response({'ok': True, 'user': user_payload(user)})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ResendRateThrottle])
def resend_view(request):
    s = ResendConfirmationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    accounts.resend_confirmation(s.validated_data['email'])
    # same answer whether or not the address exists
    return Response({'ok': True})

@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([SigninRateThrottle])
def signin_view(request):
    s = SigninSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    email = s.validated_data['email']
    ip = request.META.get('REMOTE_ADDR')
    try:
        user = accounts.sign_in(request, email=email, password=s.validated_data['password'])
    except AuthenticationFailed as e:
        try_log_action(user=None, action='signin', object_type='user',
                       detail={'result': 'fail', 'email': email, 'reason': str(e.detail), 'ip': ip})
        raise
    try_log_action(user=user, action='signin', object_type='user', object_id=user.id,
                   detail={'result': 'ok', 'ip': ip})

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'user': user_payload(user),
    })

@api_view(['GET'])
@permission_classes([IsAuthenticated])
def current_user_view(request):
    return Response({'ok': True, 'user': user_payload(request.user)})


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from refresh token."""
    resp = TokenRefreshView.as_view()(request._request)
    data = dict(resp.data)
    if 'access' in data and 'jwt_access' not in data:
        data['jwt_access'] = data.pop('access')
    if 'refresh' in data and 'jwt_refresh' not in data:
        data['jwt_refresh'] = data.pop('refresh')
    return Response(data, status=resp.status_code)
