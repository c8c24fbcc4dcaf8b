from rest_framework import serializers

from dashboard.models import Patient
from dashboard.serializers.common import ClinicScopedMixin, clean_text


class PatientSerializer(ClinicScopedMixin, serializers.ModelSerializer):
    clinic_scoped_fields = {'clinic': 'pk'}
    class Meta:
        model = Patient
        fields = [
            'id', 'clinic', 'name', 'phone', 'email', 'date_of_birth',
            'medical_record_number', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_phone(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('phone is required')
        return v

    def validate_medical_record_number(self, v):
        return clean_text(v) or None


class PatientListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True, max_length=100)
