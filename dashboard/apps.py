import logging
import os
import sys

from django.apps import AppConfig
from django.conf import settings

logger = logging.getLogger(__name__)

# management commands that serve requests in this process
SERVING_COMMANDS = {'runserver'}


def should_autostart(argv, environ) -> bool:
    """True when this process serves requests and should own the monitor loop.

    Other management commands (migrate, shell, health_monitor...) never start
    it.  Under the runserver autoreloader only the child process does, which
    is the one with ``RUN_MAIN`` set.
    """
    if not argv or os.path.basename(argv[0]) not in ('manage.py', 'django-admin'):
        # ASGI/WSGI servers (daphne, uvicorn, gunicorn) import the app directly
        return True
    command = argv[1] if len(argv) > 1 else None
    if command not in SERVING_COMMANDS:
        return False
    if command == 'runserver' and '--noreload' not in argv:
        return environ.get('RUN_MAIN') == 'true'
    return True


class DashboardConfig(AppConfig):
    name = 'dashboard'
    verbose_name = 'Clinic dashboard'
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):
        if not getattr(settings, 'HEALTH_MONITOR_AUTOSTART', False):
            return
        if not should_autostart(sys.argv, os.environ):
            return
        from dashboard.services.health import get_monitor

        logger.info('autostarting service health monitor')
        get_monitor().start()
