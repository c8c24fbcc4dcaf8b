"""
Patient management views.

Staff list, register and edit patients.  Users bound to a clinic only
see and create patients of that clinic.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import NotFound
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.serializers.patients import PatientListQuerySerializer, PatientSerializer
from dashboard.services.audit import try_log_action
from dashboard.services.directory import search_patients


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patients(request):
    if request.method == 'GET':
        q = PatientListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        qs = search_patients((q.validated_data.get('q') or '').strip() or None, user=request.user)
        return Response({'ok': True, 'data': PatientSerializer(qs, many=True).data})

    s = PatientSerializer(data=request.data, context={'request': request})
    s.is_valid(raise_exception=True)
    clinic = s.validated_data.get('clinic') or request.user.clinic
    patient = s.save(clinic=clinic)
    try_log_action(user=request.user, action='patient_create', object_type='patient', object_id=patient.id)
    return Response({'ok': True, 'data': PatientSerializer(patient).data}, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'PUT'])
@permission_classes([IsAuthenticated])
def patient_detail(request, patient_id):
    patient = search_patients(user=request.user).filter(id=patient_id).first()
    if patient is None:
        raise NotFound('patient not found')
    if request.method == 'GET':
        return Response({'ok': True, 'data': PatientSerializer(patient).data})
    s = PatientSerializer(patient, data=request.data, partial=request.method == 'PATCH', context={'request': request})
    s.is_valid(raise_exception=True)
    patient = s.save()
    try_log_action(user=request.user, action='patient_update', object_type='patient', object_id=patient.id,
                   detail={'fields': sorted(s.validated_data)})
    return Response({'ok': True, 'data': PatientSerializer(patient).data})
