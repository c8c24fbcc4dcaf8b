from rest_framework import serializers

from dashboard.models import Reminder
from dashboard.serializers.common import clean_text


class ReminderSerializer(serializers.ModelSerializer):
    patient_name = serializers.CharField(source='appointment.patient.name', read_only=True, default=None)
    appointment_date = serializers.DateTimeField(source='appointment.appointment_date', read_only=True, default=None)

    class Meta:
        model = Reminder
        fields = [
            'id', 'appointment', 'patient_name', 'appointment_date', 'reminder_type', 'message',
            'reminder_time', 'status', 'delivery_status', 'sent_at', 'created_at',
        ]
        read_only_fields = fields


class ReminderListQuerySerializer(serializers.Serializer):
    filter = serializers.ChoiceField(choices=['all', 'pending', 'sent', 'failed'], required=False, default='all')


class ReminderRuleSerializer(serializers.Serializer):
    """Timing rule for automated reminders, e.g. 24h before by SMS."""
    triggerHours = serializers.IntegerField(min_value=1, max_value=24 * 30)
    reminderType = serializers.ChoiceField(choices=[c for c, _ in Reminder.TYPE_CHOICES])
    messageTemplate = serializers.CharField(max_length=1000)

    def validate_messageTemplate(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('message template is required')
        return v


class BulkReminderSerializer(serializers.Serializer):
    reminderType = serializers.ChoiceField(choices=[c for c, _ in Reminder.TYPE_CHOICES], required=False,
                                           default=Reminder.TYPE_SMS)
    message = serializers.CharField(required=False, allow_blank=True, max_length=1000)

    def validate_message(self, v):
        return clean_text(v)
