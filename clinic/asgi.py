"""
ASGI entrypoint: Django for HTTP, Channels for the system status socket.

``django.setup()`` must run before the consumer module is imported
because it pulls in models and simplejwt.
"""
import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clinic.settings")

import django  # noqa: E402

django.setup()

from channels.auth import AuthMiddlewareStack  # noqa: E402
from channels.routing import ProtocolTypeRouter, URLRouter  # noqa: E402
from django.core.asgi import get_asgi_application  # noqa: E402
from django.urls import path  # noqa: E402

from dashboard.realtime.consumers import SystemStatusConsumer  # noqa: E402

websocket_urlpatterns = [
    path("ws/system-status/", SystemStatusConsumer.as_asgi()),
]

application = ProtocolTypeRouter({
    "http": get_asgi_application(),
    # session cookie auth; the consumer also accepts ?token=<jwt>
    "websocket": AuthMiddlewareStack(URLRouter(websocket_urlpatterns)),
})
