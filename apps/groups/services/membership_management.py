"""
Membership management service.

Handles the member side of the invite state machine:

    not-invited -> invited (EmailInvite) -> member (GroupMembership)

or straight to member when the email already belongs to a registered user.
"""

from typing import Union
from uuid import UUID

import structlog
from django.db import transaction, IntegrityError
from django.db.models import QuerySet

from apps.accounts.models import User, normalize_email_address
from apps.groups.models import GroupMembership, EmailInvite
from apps.realtime.router import publish_to_user, GROUP_JOINED

from .access import get_group_for_member, require_creator, translate_store_errors
from .exceptions import (
    AlreadyMemberError,
    AlreadyInvitedError,
    CreatorCannotLeaveError,
    CannotRemoveCreatorError,
)

logger = structlog.get_logger(__name__)


def _find_registered_user(email):
    # Inactive accounts included: their email can never be claimed by an invite
    return User.objects.filter(email=email).first()


@translate_store_errors
@transaction.atomic
def add_member(
    *,
    group_id: UUID,
    email: str,
    added_by: User,
    display_name: str = ''
) -> Union[GroupMembership, EmailInvite]:
    """
    Add a member by email, or invite the email if nobody registered with it.

    Any current member may add. The group row is locked so concurrent adds
    for the same group are serialized.

    Args:
        group_id: UUID of the group
        email: Email address to add
        added_by: Member performing the add
        display_name: Name to show for a pending invite (defaults to the
            local part of the email)

    Returns:
        GroupMembership when a registered user was added,
        EmailInvite when an invite was recorded

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If added_by is not a member
        AlreadyMemberError: If the registered user is already a member
        AlreadyInvitedError: If the email already has a pending invite
    """
    group = get_group_for_member(group_id=group_id, user=added_by, for_update=True)
    email = normalize_email_address(email)

    existing_user = _find_registered_user(email)

    if existing_user is None:
        if group.email_invites.filter(email=email).exists():
            raise AlreadyInvitedError(f"{email} is already invited to {group.name}")

        try:
            invite = EmailInvite.objects.create(
                group=group,
                email=email,
                display_name=display_name or email.split('@')[0],
                invited_by=added_by,
            )
        except IntegrityError:
            raise AlreadyInvitedError(f"{email} is already invited to {group.name}")

        logger.info("member_invited", email=email, group_id=str(group.id))
        return invite

    if group.has_member(existing_user):
        raise AlreadyMemberError(f"{email} is already a member of {group.name}")

    try:
        membership = GroupMembership.objects.create(user=existing_user, group=group)
    except IntegrityError:
        raise AlreadyMemberError(f"{email} is already a member of {group.name}")

    # An email lives in either the invite list or the member set, never both
    group.email_invites.filter(email=email).delete()

    payload = {
        'groupId': str(group.id),
        'groupName': group.name,
        'addedBy': {
            'id': str(added_by.id),
            'name': added_by.get_display_name(),
        },
    }
    transaction.on_commit(
        lambda: publish_to_user(existing_user.id, GROUP_JOINED, payload)
    )

    logger.info("member_added", user_id=str(existing_user.id), group_id=str(group.id))
    return membership


@translate_store_errors
@transaction.atomic
def remove_member(
    *,
    group_id: UUID,
    email: str,
    removed_by: User
) -> None:
    """
    Remove a member or pending invite by email (creator only).

    The pending invite for the email is purged whether or not the email
    resolves to a registered user. Removing an unknown email is a no-op.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If removed_by is not a member
        InsufficientPermissionsError: If removed_by is not the creator
        CannotRemoveCreatorError: If the email belongs to the creator
    """
    group = get_group_for_member(group_id=group_id, user=removed_by, for_update=True)
    require_creator(group, removed_by, 'remove members')

    email = normalize_email_address(email)
    user_to_remove = _find_registered_user(email)

    if user_to_remove is not None:
        if group.is_creator(user_to_remove):
            raise CannotRemoveCreatorError("Cannot remove the group creator")
        GroupMembership.objects.filter(group=group, user=user_to_remove).delete()

    group.email_invites.filter(email=email).delete()


@translate_store_errors
@transaction.atomic
def leave_group(*, group_id: UUID, user: User) -> None:
    """
    Leave a group.

    Any member except the creator may leave. The creator stays a member for
    the life of the group (see "Can the creator leave or be removed?" in
    DESIGN.md) and deletes the group instead.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        CreatorCannotLeaveError: If user is the creator
    """
    group = get_group_for_member(group_id=group_id, user=user, for_update=True)

    if group.is_creator(user):
        raise CreatorCannotLeaveError(
            "Group creator cannot leave. Delete the group instead."
        )

    GroupMembership.objects.filter(group=group, user=user).delete()


@translate_store_errors
def get_group_members(*, group_id: UUID, user: User) -> QuerySet[GroupMembership]:
    """
    Get all members of a group.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_for_member(group_id=group_id, user=user)

    return (
        GroupMembership.objects
        .filter(group=group)
        .select_related('user')
        .order_by('joined_at')
    )
