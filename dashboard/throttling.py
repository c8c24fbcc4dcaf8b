"""Per-endpoint rate limits for the unauthenticated auth endpoints."""
from rest_framework.throttling import AnonRateThrottle


class SigninRateThrottle(AnonRateThrottle):
    scope = 'signin'


class SignupRateThrottle(AnonRateThrottle):
    scope = 'signup'


class ResendRateThrottle(AnonRateThrottle):
    scope = 'resend'
