"""
System status endpoints backed by the service health monitor.

``GET`` never probes anything; it returns the last published snapshot.
``refresh`` lets administrators force a cycle without waiting for the
next tick.
"""
from django.db import DatabaseError, connections
from django.http import JsonResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.permissions import IsAdminRole
from dashboard.services.audit import try_log_action
from dashboard.services.health import current_status, get_monitor


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def system_status(request):
    return Response({'ok': True, 'data': current_status()})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def refresh_system_status(request):
    snapshot = get_monitor().run_cycle()
    if snapshot is None:
        return Response({'ok': False, 'error': {'code': 'busy', 'message': 'a health check is already running'}},
                        status=status.HTTP_409_CONFLICT)
    try_log_action(user=request.user, action='health_refresh', object_type='system',
                   detail={'overall': snapshot.overall.value})
    return Response({'ok': True, 'data': snapshot.to_dict()})


def healthz(request):
    """Liveness check for load balancers; touches only the database."""
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
        return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1)})
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'error': str(e)}, status=500)
