"""
Websocket consumer for the realtime channel router.

Frames are JSON objects in both directions::

    {"event": "<name>", "data": <payload>}

Consumed events: joinUser, joinGroup, leaveGroup, sendMessage.
Produced events: whatever is published on a subscribed channel, plus
``error`` frames for malformed input.

A connection may subscribe to any channel it names. Membership is not
checked here; only the HTTP API enforces it.
"""

import uuid

import structlog
from asgiref.sync import async_to_sync
from channels.generic.websocket import JsonWebsocketConsumer
from django.utils import timezone

from apps.accounts.services import get_user_by_id, UserNotFoundError

from .router import (
    NEW_MESSAGE,
    group_channel_name,
    user_channel_name,
    publish_to_group,
)

logger = structlog.get_logger(__name__)

UNKNOWN_SENDER = 'Unknown'


def _parse_id(value):
    """Return the canonical string form of a UUID, or None if invalid."""
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        return None


class RealtimeConsumer(JsonWebsocketConsumer):
    """One live connection and the channels it has joined."""

    def connect(self):
        self.subscriptions = set()
        self.accept()

    def disconnect(self, code):
        for name in getattr(self, 'subscriptions', ()):
            async_to_sync(self.channel_layer.group_discard)(name, self.channel_name)
        self.subscriptions = set()

    def receive(self, text_data=None, bytes_data=None, **kwargs):
        if text_data is None:
            self.send_error("Frames must be JSON text")
            return
        try:
            content = self.decode_json(text_data)
        except ValueError:
            self.send_error("Frames must be valid JSON")
            return
        self.receive_json(content, **kwargs)

    def receive_json(self, content, **kwargs):
        if not isinstance(content, dict):
            self.send_error("Frames must be JSON objects")
            return

        event = content.get('event')
        data = content.get('data')

        handlers = {
            'joinUser': self.join_user,
            'joinGroup': self.join_group,
            'leaveGroup': self.leave_group,
            'sendMessage': self.send_message,
        }
        handler = handlers.get(event)
        if handler is None:
            self.send_error(f"Unknown event: {event}")
            return

        handler(data)

    # -- subscriptions -----------------------------------------------------

    def _subscribe(self, name):
        if name in self.subscriptions:
            return
        async_to_sync(self.channel_layer.group_add)(name, self.channel_name)
        self.subscriptions.add(name)

    def join_user(self, user_id):
        parsed = _parse_id(user_id)
        if parsed is None:
            self.send_error("joinUser requires a user id")
            return
        self._subscribe(user_channel_name(parsed))

    def join_group(self, group_id):
        parsed = _parse_id(group_id)
        if parsed is None:
            self.send_error("joinGroup requires a group id")
            return
        self._subscribe(group_channel_name(parsed))
        logger.debug("group_joined", channel=self.channel_name, group=group_channel_name(parsed))

    def leave_group(self, group_id):
        parsed = _parse_id(group_id)
        if parsed is None:
            self.send_error("leaveGroup requires a group id")
            return
        name = group_channel_name(parsed)
        if name in self.subscriptions:
            async_to_sync(self.channel_layer.group_discard)(name, self.channel_name)
            self.subscriptions.discard(name)

    # -- transient chat ----------------------------------------------------

    def send_message(self, data):
        """
        Rebroadcast a chat message to a group without storing it.

        Only the legacy flat shape is produced; the message never reaches
        the group's persisted log.
        """
        if not isinstance(data, dict):
            self.send_error("sendMessage requires an object payload")
            return

        group_id = _parse_id(data.get('groupId'))
        if group_id is None:
            self.send_error("sendMessage requires a groupId")
            return

        user_id = data.get('userId') or None
        user_name = UNKNOWN_SENDER
        if user_id:
            try:
                user_name = get_user_by_id(user_id=user_id).get_display_name()
            except UserNotFoundError:
                logger.debug("unknown_sender", user_id=user_id)

        publish_to_group(group_id, NEW_MESSAGE, {
            'user': user_name,
            'userId': str(user_id) if user_id else None,
            'message': data.get('message'),
            'time': timezone.now().isoformat(),
        })

    # -- outbound ----------------------------------------------------------

    def realtime_event(self, event):
        """Forward a published event to this connection."""
        self.send_json({
            'event': event['event'],
            'data': event['payload'],
        })

    def send_error(self, message):
        self.send_json({
            'event': 'error',
            'data': {'message': message},
        })
