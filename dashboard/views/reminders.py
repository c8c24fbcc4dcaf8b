"""
Reminder views.

Listing and stats back the reminders tab; ``schedule`` applies an
automation rule to the upcoming appointments and ``bulk`` queues an
immediate reminder for each of them.
"""
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.permissions import IsAdminRole
from dashboard.serializers.reminders import (
    BulkReminderSerializer,
    ReminderListQuerySerializer,
    ReminderRuleSerializer,
    ReminderSerializer,
)
from dashboard.services import reminders as reminder_service


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reminders(request):
    q = ReminderListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    qs = reminder_service.list_reminders(q.validated_data['filter'], user=request.user)
    return Response({'ok': True, 'data': ReminderSerializer(qs, many=True).data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reminder_stats(request):
    return Response({'ok': True, 'data': reminder_service.reminder_stats(user=request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def schedule_reminders(request):
    s = ReminderRuleSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    created = reminder_service.schedule_from_rule(
        trigger_hours=vd['triggerHours'],
        reminder_type=vd['reminderType'],
        message_template=vd['messageTemplate'],
        user=request.user,
    )
    return Response({'ok': True, 'scheduled': len(created), 'data': ReminderSerializer(created, many=True).data},
                    status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def bulk_reminders(request):
    s = BulkReminderSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    created = reminder_service.bulk_remind(
        reminder_type=s.validated_data['reminderType'],
        message=s.validated_data.get('message') or None,
        user=request.user,
    )
    return Response({'ok': True, 'queued': len(created)}, status=status.HTTP_201_CREATED)
