"""
Appointment views: listing, booking and doctor assignment.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.permissions import IsAdminRole
from dashboard.serializers.appointments import (
    AppointmentListQuerySerializer,
    AppointmentSerializer,
    AssignDoctorSerializer,
)
from dashboard.services import scheduling
from dashboard.services.audit import try_log_action


def _assignment_payload(assignment: scheduling.Assignment) -> dict:
    return {
        'ok': True,
        'data': AppointmentSerializer(assignment.appointment).data,
        'notificationSent': assignment.notification_sent,
        'notificationError': assignment.notification_error,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def appointments(request):
    """Query params: ``date`` (YYYY-MM-DD), ``status``, ``unassigned`` (1|0)."""
    if request.method == 'GET':
        q = AppointmentListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        vd = q.validated_data
        qs = scheduling.list_appointments(day=vd.get('date'), status=vd.get('status'), unassigned=vd['unassigned'],
                                          user=request.user)
        return Response({'ok': True, 'data': AppointmentSerializer(qs, many=True).data})

    s = AppointmentSerializer(data=request.data, context={'request': request})
    s.is_valid(raise_exception=True)
    clinic = s.validated_data.get('clinic') or request.user.clinic
    appt = s.save(clinic=clinic)
    try_log_action(user=request.user, action='appointment_create', object_type='appointment', object_id=appt.id)
    return Response({'ok': True, 'data': AppointmentSerializer(appt).data}, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def assign_doctor(request, appointment_id):
    appt = scheduling.get_appointment(appointment_id, user=request.user)
    s = AssignDoctorSerializer(data=request.data, context={'request': request})
    s.is_valid(raise_exception=True)
    assignment = scheduling.assign_doctor(appt, s.validated_data['doctor'], user=request.user)
    return Response(_assignment_payload(assignment))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def assign_random_doctor(request, appointment_id):
    appt = scheduling.get_appointment(appointment_id, user=request.user)
    assignment = scheduling.assign_random_doctor(appt, user=request.user)
    return Response(_assignment_payload(assignment))


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def bulk_random_assign(request):
    assignments = scheduling.bulk_random_assign(user=request.user)
    return Response({
        'ok': True,
        'assigned': len(assignments),
        'notificationsSent': sum(1 for a in assignments if a.notification_sent),
        'data': [AppointmentSerializer(a.appointment).data for a in assignments],
    })
