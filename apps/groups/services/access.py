"""
Shared lookups and guards for group services.

Every mutating group operation starts here: load the group, then check the
caller's membership before any other validation.
"""

import functools
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import DatabaseError

from apps.accounts.models import User
from apps.groups.models import Group

from .exceptions import (
    GroupNotFoundError,
    NotMemberError,
    InsufficientPermissionsError,
    PersistenceError,
)

logger = structlog.get_logger(__name__)


def translate_store_errors(func):
    """Re-raise database failures from a service call as PersistenceError."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except DatabaseError as e:
            logger.exception("store_failure", operation=func.__name__)
            raise PersistenceError(f"Store unavailable: {e}") from e

    return wrapper


def get_group(*, group_id: UUID, for_update: bool = False) -> Group:
    """
    Load a group by id.

    Args:
        group_id: UUID of the group
        for_update: Lock the row for the rest of the transaction

    Raises:
        GroupNotFoundError: If group doesn't exist
    """
    queryset = Group.objects.select_related('created_by')
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(id=group_id)
    except (Group.DoesNotExist, ValidationError):
        raise GroupNotFoundError(f"Group with ID {group_id} not found")


def get_group_for_member(*, group_id: UUID, user: User, for_update: bool = False) -> Group:
    """
    Load a group and require the caller to be one of its members.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group(group_id=group_id, for_update=for_update)
    if not group.has_member(user):
        raise NotMemberError(f"You are not a member of {group.name}")
    return group


@translate_store_errors
def require_membership(*, group_id: UUID, user: User) -> Group:
    """
    Membership guard for endpoints that validate request input afterwards.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    return get_group_for_member(group_id=group_id, user=user)


def require_creator(group: Group, user: User, action: str) -> None:
    """Raise InsufficientPermissionsError unless user created the group."""
    if not group.is_creator(user):
        raise InsufficientPermissionsError(f"Only the group creator can {action}")
