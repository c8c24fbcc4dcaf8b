"""
Root URLconf: admin, the dashboard API and its OpenAPI docs.

API docs live at ``/swagger/`` and ``/redoc/``; Prometheus metrics are
mounted by ``dashboard.routers``.
"""
from django.contrib import admin
from django.urls import include, path
from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

api_info = openapi.Info(
    title="Clinic Dashboard API",
    default_version='v1',
    description="Patients, appointments, reminders, feedback and live service health for the clinic dashboard.",
    contact=openapi.Contact(email="ops@clinic.example"),
)

docs_view = get_schema_view(api_info, public=True, permission_classes=(permissions.AllowAny,))

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('dashboard.routers')),
    path('swagger/', docs_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', docs_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
    path('openapi.json', docs_view.without_ui(cache_timeout=0), name='schema-json'),
]
