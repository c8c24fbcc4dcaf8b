from rest_framework import serializers

from dashboard.serializers.common import clean_text


class DoctorNotificationSerializer(serializers.Serializer):
    doctorEmail = serializers.EmailField()
    doctorName = serializers.CharField(max_length=255)
    patientName = serializers.CharField(max_length=255)
    appointmentDate = serializers.CharField(max_length=64)

    def validate_doctorName(self, v):
        return clean_text(v)

    def validate_patientName(self, v):
        return clean_text(v)

    def validate_appointmentDate(self, v):
        return clean_text(v)
