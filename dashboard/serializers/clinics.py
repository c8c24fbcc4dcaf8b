from rest_framework import serializers

from dashboard.models import Clinic
from dashboard.serializers.common import clean_text


class ClinicSerializer(serializers.ModelSerializer):
    class Meta:
        model = Clinic
        fields = ['id', 'name', 'email', 'phone', 'address', 'subscription_tier', 'created_at', 'updated_at']
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('name is required')
        return v

    def validate_address(self, v):
        return clean_text(v)
