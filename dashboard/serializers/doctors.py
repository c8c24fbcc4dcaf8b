from rest_framework import serializers

from dashboard.models import Doctor
from dashboard.serializers.common import ClinicScopedMixin, clean_text


class DoctorSerializer(ClinicScopedMixin, serializers.ModelSerializer):
    clinic_scoped_fields = {'clinic': 'pk'}
    clinic_name = serializers.CharField(source='clinic.name', read_only=True, default=None)

    class Meta:
        model = Doctor
        fields = ['id', 'clinic', 'clinic_name', 'name', 'email', 'phone', 'specialization', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_specialization(self, v):
        return clean_text(v) or None
