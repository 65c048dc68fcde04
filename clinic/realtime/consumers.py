import json

from channels.generic.websocket import AsyncWebsocketConsumer

from clinic.services.notifications import user_group


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Pushes a user's new notifications as they are created."""

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated):
            await self.close(code=4001)
            return
        self.group_name = user_group(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def notify(self, event):
        # event: {"type": "notify", "payload": {...}}
        await self.send(json.dumps({"type": "notification", "notification": event["payload"]}))
