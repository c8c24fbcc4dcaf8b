from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from dashboard.models import Feedback
from dashboard.serializers.feedback import FeedbackSerializer
from dashboard.services.directory import scope_to_clinic
from dashboard.services.reporting import feedback_stats


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def feedback(request):
    if request.method == 'GET':
        qs = scope_to_clinic(Feedback.objects.select_related('patient'), request.user).order_by('-created_at')
        return Response({'ok': True, 'data': FeedbackSerializer(qs, many=True).data})
    s = FeedbackSerializer(data=request.data, context={'request': request})
    s.is_valid(raise_exception=True)
    item = s.save(clinic=s.validated_data.get('clinic') or request.user.clinic)
    return Response({'ok': True, 'data': FeedbackSerializer(item).data}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def stats(request):
    return Response({'ok': True, 'data': feedback_stats(user=request.user)})
