import json
import logging
from urllib.parse import parse_qs

from asgiref.sync import sync_to_async
from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

from dashboard.services.health import STATUS_GROUP, current_status

logger = logging.getLogger(__name__)


@database_sync_to_async
def _user_from_token(raw: str):
    auth = JWTAuthentication()
    try:
        return auth.get_user(auth.get_validated_token(raw))
    except (InvalidToken, TokenError):
        return None


class SystemStatusConsumer(AsyncWebsocketConsumer):
    """Push service health snapshots to the system status panel.

    Browsers cannot set headers on a WebSocket, so besides the session
    user a JWT access token is accepted as ``?token=...``.
    """
    GROUP = STATUS_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            raw = parse_qs(self.scope.get("query_string", b"").decode()).get("token", [None])[0]
            user = await _user_from_token(raw) if raw else None
        if not (user and user.is_active):
            await self.close(code=4401)
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        snapshot = await sync_to_async(current_status)()
        await self.send(json.dumps({"type": "system.status", "snapshot": snapshot}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def system_status(self, event):
        # event: {"type": "system.status", "snapshot": {...}}
        await self.send(json.dumps(event))
