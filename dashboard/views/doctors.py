from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.serializers.doctors import DoctorSerializer
from dashboard.services.audit import try_log_action
from dashboard.services.directory import search_doctors


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def doctors(request):
    """List doctors (``q`` matches name, email, specialization or clinic) or add one."""
    if request.method == 'GET':
        q = (request.query_params.get('q') or '').strip() or None
        return Response({'ok': True, 'data': DoctorSerializer(search_doctors(q, user=request.user), many=True).data})

    s = DoctorSerializer(data=request.data, context={'request': request})
    s.is_valid(raise_exception=True)
    doctor = s.save(clinic=s.validated_data.get('clinic') or request.user.clinic)
    try_log_action(user=request.user, action='doctor_create', object_type='doctor', object_id=doctor.id)
    return Response({'ok': True, 'data': DoctorSerializer(doctor).data}, status=status.HTTP_201_CREATED)
