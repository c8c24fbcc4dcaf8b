from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.serializers.notifications import DoctorNotificationSerializer
from dashboard.services.audit import try_log_action
from dashboard.services.notifications import send_doctor_notification as notify_doctor


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def send_doctor_notification(request):
    """Email a doctor about a new appointment; returns the provider's JSON."""
    s = DoctorNotificationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    result = notify_doctor(
        doctor_email=vd['doctorEmail'],
        doctor_name=vd['doctorName'],
        patient_name=vd['patientName'],
        appointment_date=vd['appointmentDate'],
    )
    try_log_action(user=request.user, action='doctor_notification', object_type='doctor',
                   detail={'to': vd['doctorEmail'], 'sent': result.sent})
    if not result.sent:
        return Response({'error': result.error}, status=500)
    return Response(result.response, status=200)
