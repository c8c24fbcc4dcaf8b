from rest_framework import serializers

from dashboard.models import Appointment, Doctor
from dashboard.serializers.common import ClinicScopedMixin, clean_text


class AppointmentSerializer(ClinicScopedMixin, serializers.ModelSerializer):
    clinic_scoped_fields = {'patient': 'clinic', 'doctor': 'clinic', 'clinic': 'pk'}
    patient_name = serializers.CharField(source='patient.name', read_only=True, default=None)
    patient_phone = serializers.CharField(source='patient.phone', read_only=True, default=None)
    doctor_name = serializers.CharField(source='doctor.name', read_only=True, default=None)
    doctor_specialization = serializers.CharField(source='doctor.specialization', read_only=True, default=None)

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient', 'patient_name', 'patient_phone', 'doctor', 'doctor_name',
            'doctor_specialization', 'clinic', 'appointment_date', 'status', 'attendance_status',
            'completed_at', 'notes', 'follow_up_required', 'follow_up_date', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'status', 'attendance_status', 'completed_at', 'created_at', 'updated_at']
        extra_kwargs = {'patient': {'required': True, 'allow_null': False}}

    def validate_notes(self, v):
        return clean_text(v)


class AppointmentListQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES], required=False)
    unassigned = serializers.BooleanField(required=False, default=False)


class AssignDoctorSerializer(ClinicScopedMixin, serializers.Serializer):
    clinic_scoped_fields = {'doctorId': 'clinic'}
    doctorId = serializers.PrimaryKeyRelatedField(queryset=Doctor.objects.all(), source='doctor')


class AttendanceQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)
    q = serializers.CharField(required=False, allow_blank=True, max_length=100)


class CompleteAppointmentSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)
    followUpRequired = serializers.BooleanField(required=False)
    followUpDate = serializers.DateTimeField(required=False, allow_null=True)

    def validate_notes(self, v):
        return clean_text(v)
