"""WSGI entrypoint (gunicorn ``clinic.wsgi:application``); no WebSockets here."""
import os

from django.core.wsgi import get_wsgi_application  # type: ignore

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'clinic.settings')

application = get_wsgi_application()
