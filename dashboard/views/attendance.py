from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.serializers.appointments import (
    AppointmentSerializer,
    AttendanceQuerySerializer,
    CompleteAppointmentSerializer,
)
from dashboard.services import scheduling


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def attended(request):
    q = AttendanceQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    search = (q.validated_data.get('q') or '').strip() or None
    qs = scheduling.attended_for_day(q.validated_data.get('date'), search, user=request.user)
    return Response({'ok': True, 'data': AppointmentSerializer(qs, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def attendance_stats(request):
    q = AttendanceQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': scheduling.attendance_stats(q.validated_data.get('date'), user=request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def check_in(request, appointment_id):
    appt = scheduling.check_in(scheduling.get_appointment(appointment_id, user=request.user), user=request.user)
    return Response({'ok': True, 'data': AppointmentSerializer(appt).data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def complete(request, appointment_id):
    s = CompleteAppointmentSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    appt = scheduling.mark_completed(
        scheduling.get_appointment(appointment_id, user=request.user),
        user=request.user,
        notes=vd.get('notes'),
        follow_up_required=vd.get('followUpRequired'),
        follow_up_date=vd.get('followUpDate'),
    )
    return Response({'ok': True, 'data': AppointmentSerializer(appt).data})
