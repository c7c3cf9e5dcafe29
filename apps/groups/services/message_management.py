"""
Message management service.

The persisted chat path: messages are appended to the group's log and then
broadcast on the group channel.
"""

from typing import List
from uuid import UUID

from django.db import transaction

from apps.accounts.models import User
from apps.groups.models import GroupMessage
from apps.realtime.router import publish_to_group, NEW_MESSAGE

from .access import get_group_for_member, translate_store_errors
from .exceptions import InvalidMessageError


def build_message_event(message: GroupMessage) -> dict:
    """
    Build the ``newMessage`` payload for a persisted message.

    Carries the structured form and the legacy flat form side by side so
    older clients keep working.
    """
    sender = message.sender
    sender_name = sender.get_display_name()
    created_at = message.created_at.isoformat()

    return {
        # Structured form
        'id': str(message.id),
        'content': message.content,
        'sender': {
            'id': str(sender.id),
            'name': sender_name,
            'email': sender.email,
        },
        'createdAt': created_at,
        # Legacy flat form
        'user': sender_name,
        'userId': str(sender.id),
        'message': message.content,
        'time': created_at,
    }


@translate_store_errors
@transaction.atomic
def post_message(*, group_id: UUID, user: User, content: str) -> GroupMessage:
    """
    Append a message to a group's log and broadcast it.

    Args:
        group_id: UUID of the group
        user: Sender (must be a member)
        content: Message text, surrounding whitespace is stripped

    Returns:
        Created GroupMessage

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InvalidMessageError: If content is blank
    """
    group = get_group_for_member(group_id=group_id, user=user)

    content = (content or '').strip()
    if not content:
        raise InvalidMessageError("Message content is required")

    message = GroupMessage.objects.create(group=group, sender=user, content=content)

    event = build_message_event(message)
    transaction.on_commit(lambda: publish_to_group(group.id, NEW_MESSAGE, event))

    return message


@translate_store_errors
def list_messages(*, group_id: UUID, user: User) -> List[GroupMessage]:
    """
    Return the group's persisted message log, oldest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_for_member(group_id=group_id, user=user)
    return list(group.messages.select_related('sender').order_by('created_at'))
