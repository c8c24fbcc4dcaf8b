from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.serializers.clinics import ClinicSerializer
from dashboard.services.audit import try_log_action
from dashboard.services.directory import list_clinics


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def clinics(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': ClinicSerializer(list_clinics(request.user), many=True).data})
    s = ClinicSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    clinic = s.save()
    try_log_action(user=request.user, action='clinic_create', object_type='clinic', object_id=clinic.id)
    return Response({'ok': True, 'data': ClinicSerializer(clinic).data}, status=status.HTTP_201_CREATED)
