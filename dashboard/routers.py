"""
URL mappings for the clinic dashboard API.

Paths carry no trailing slash, matching what the front-end calls.
"""
from django.urls import include, path

from .auth_views import (
    confirm_view,
    current_user_view,
    jwt_refresh_view,
    resend_view,
    signin_view,
    signup_view,
)
from .views import appointments, attendance, clinics, dashboard, doctors, feedback, functions, patients, reminders
from .views.system_status import healthz, refresh_system_status, system_status

urlpatterns = [
    # auth
    path('api/auth/signup', signup_view, name='signup_view'),
    path('api/auth/confirm', confirm_view, name='confirm_view'),
    path('api/auth/resend', resend_view, name='resend_view'),
    path('api/auth/signin', signin_view, name='signin_view'),
    path('api/auth/user', current_user_view, name='current_user_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),

    # directory
    path('api/clinics', clinics.clinics, name='clinics'),
    path('api/patients', patients.patients, name='patients'),
    path('api/patients/<uuid:patient_id>', patients.patient_detail, name='patient_detail'),
    path('api/doctors', doctors.doctors, name='doctors'),

    # appointments
    path('api/appointments', appointments.appointments, name='appointments'),
    path('api/appointments/bulk-assign', appointments.bulk_random_assign, name='bulk_random_assign'),
    path('api/appointments/<uuid:appointment_id>/assign', appointments.assign_doctor, name='assign_doctor'),
    path('api/appointments/<uuid:appointment_id>/assign-random', appointments.assign_random_doctor,
         name='assign_random_doctor'),
    path('api/appointments/<uuid:appointment_id>/check-in', attendance.check_in, name='check_in'),
    path('api/appointments/<uuid:appointment_id>/complete', attendance.complete, name='complete'),
    path('api/attendance', attendance.attended, name='attended'),
    path('api/attendance/stats', attendance.attendance_stats, name='attendance_stats'),

    # reminders
    path('api/reminders', reminders.reminders, name='reminders'),
    path('api/reminders/stats', reminders.reminder_stats, name='reminder_stats'),
    path('api/reminders/schedule', reminders.schedule_reminders, name='schedule_reminders'),
    path('api/reminders/bulk', reminders.bulk_reminders, name='bulk_reminders'),

    # feedback
    path('api/feedback', feedback.feedback, name='feedback'),
    path('api/feedback/stats', feedback.stats, name='feedback_stats'),

    # dashboard
    path('api/dashboard/metrics', dashboard.metrics, name='dashboard_metrics'),
    path('api/dashboard/analytics', dashboard.analytics, name='dashboard_analytics'),

    # system health
    path('api/system/status', system_status, name='system_status'),
    path('api/system/status/refresh', refresh_system_status, name='refresh_system_status'),

    # callable functions
    path('api/functions/send-doctor-notification', functions.send_doctor_notification,
         name='send_doctor_notification'),

    # ops
    path('healthz', healthz, name='healthz'),
    path('', include('django_prometheus.urls')),
]
