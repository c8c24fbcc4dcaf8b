"""
Dashboard overview and analytics endpoints.

Both are read heavy and tolerate slightly stale numbers, so results are
cached for a minute, per clinic.
"""
from __future__ import annotations

from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.services.directory import clinic_cache_suffix
from dashboard.services.reporting import analytics as build_analytics
from dashboard.services.reporting import dashboard_metrics

CACHE_TTL = 60


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def metrics(request):
    ck = f'dashboard:metrics:{clinic_cache_suffix(request.user)}'
    cached = cache.get(ck)
    if cached:
        return Response(cached)
    payload = {'ok': True, 'data': dashboard_metrics(user=request.user)}
    cache.set(ck, payload, CACHE_TTL)
    return Response(payload)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def analytics(request):
    ck = f'dashboard:analytics:{clinic_cache_suffix(request.user)}'
    cached = cache.get(ck)
    if cached:
        return Response(cached)
    payload = {'ok': True, 'data': build_analytics(user=request.user)}
    cache.set(ck, payload, CACHE_TTL)
    return Response(payload)
