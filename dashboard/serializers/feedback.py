from rest_framework import serializers

from dashboard.models import Feedback
from dashboard.serializers.common import ClinicScopedMixin, clean_text


class FeedbackSerializer(ClinicScopedMixin, serializers.ModelSerializer):
    clinic_scoped_fields = {'appointment': 'clinic', 'patient': 'clinic', 'clinic': 'pk'}
    patient_name = serializers.CharField(source='patient.name', read_only=True, default=None)
    rating = serializers.IntegerField(min_value=1, max_value=5)

    class Meta:
        model = Feedback
        fields = [
            'id', 'appointment', 'patient', 'patient_name', 'clinic', 'rating',
            'feedback_text', 'feedback_type', 'created_at',
        ]
        read_only_fields = ['id', 'created_at']

    def validate_feedback_text(self, v):
        return clean_text(v)
