"""
Invite management service.

Handles pending email invites: listing, cancelling and turning them into
memberships once the invited email registers.
"""

from typing import List
from uuid import UUID

import structlog
from django.db import transaction

from apps.accounts.models import User, normalize_email_address
from apps.groups.models import Group, GroupMembership, EmailInvite

from .access import get_group_for_member, require_creator, translate_store_errors

logger = structlog.get_logger(__name__)


@translate_store_errors
@transaction.atomic
def cancel_invite(*, group_id: UUID, email: str, user: User) -> bool:
    """
    Cancel a pending invite (creator only).

    Args:
        group_id: UUID of the group
        email: Invited email address
        user: User cancelling (must be the creator)

    Returns:
        True if an invite was removed, False if there was none

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
        InsufficientPermissionsError: If user is not the creator
    """
    group = get_group_for_member(group_id=group_id, user=user, for_update=True)
    require_creator(group, user, 'cancel invites')

    deleted, _ = group.email_invites.filter(email=normalize_email_address(email)).delete()
    return deleted > 0


@translate_store_errors
def list_invites(*, group_id: UUID, user: User) -> List[EmailInvite]:
    """
    List a group's pending invites.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_for_member(group_id=group_id, user=user)
    return list(group.email_invites.select_related('invited_by'))


@transaction.atomic
def claim_pending_invites(*, user: User) -> List[Group]:
    """
    Turn every pending invite for the user's email into a membership.

    Called when a new account is registered. Invites are removed as they
    are claimed.

    Returns:
        Groups the user joined
    """
    invites = list(
        EmailInvite.objects
        .select_related('group')
        .filter(email=normalize_email_address(user.email))
    )
    if not invites:
        return []

    groups = [invite.group for invite in invites]
    GroupMembership.objects.bulk_create(
        [GroupMembership(user=user, group=group) for group in groups],
        ignore_conflicts=True,
    )
    EmailInvite.objects.filter(id__in=[invite.id for invite in invites]).delete()

    logger.info("invites_claimed", email=user.email, count=len(invites))
    return groups
