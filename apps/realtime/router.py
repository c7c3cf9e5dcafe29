"""
Realtime channel router.

Maps users and groups to broadcast channels on the Channels layer and
publishes events to them. Subscriptions live only in the channel layer, so
they vanish on restart and nothing is replayed to late subscribers.

Channel kinds:
    user_<id>   private channel for direct notifications
    group_<id>  shared channel for group broadcasts
"""

import structlog
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = structlog.get_logger(__name__)

# Event names produced for clients
EXPENSE_ADDED = 'expenseAdded'
NEW_MESSAGE = 'newMessage'
GROUP_JOINED = 'groupJoined'

# Handler type the consumer implements (``realtime.event`` -> realtime_event)
DISPATCH_TYPE = 'realtime.event'


def user_channel_name(user_id) -> str:
    return f'user_{user_id}'


def group_channel_name(group_id) -> str:
    return f'group_{group_id}'


def _publish(channel_name: str, event_name: str, payload: dict) -> bool:
    """
    Fire-and-forget delivery to everyone currently on a channel.

    Returns False when the channel layer is missing or failed; the failure is
    logged and never raised to the caller.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.warning(
            "publish_dropped",
            reason="no channel layer",
            event_name=event_name,
            channel=channel_name,
        )
        return False

    try:
        async_to_sync(channel_layer.group_send)(
            channel_name,
            {
                'type': DISPATCH_TYPE,
                'event': event_name,
                'payload': payload,
            }
        )
    except Exception as e:
        # Log error but don't fail the write that triggered the event
        logger.warning("publish_failed", event_name=event_name, channel=channel_name, error=str(e))
        return False

    return True


def publish_to_group(group_id, event_name: str, payload: dict) -> bool:
    """Deliver payload to every connection subscribed to the group's channel."""
    return _publish(group_channel_name(group_id), event_name, payload)


def publish_to_user(user_id, event_name: str, payload: dict) -> bool:
    """Deliver payload to every connection subscribed to the user's channel."""
    return _publish(user_channel_name(user_id), event_name, payload)
