"""
Group management service.

Handles group creation, lookup, detail assembly and deletion.
"""

from typing import Iterable, List
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.expenses.models import Expense
from apps.expenses.services.balance_engine import (
    build_expense_snapshots,
    compute_balances,
    round_balances,
)
from apps.groups.models import Group, GroupMembership

from .access import get_group, get_group_for_member, require_creator, translate_store_errors
from .exceptions import UserNotFoundError

logger = structlog.get_logger(__name__)


@translate_store_errors
@transaction.atomic
def create_group(
    *,
    name: str,
    creator: User,
    member_ids: Iterable[UUID] = ()
) -> Group:
    """
    Create a new group with the creator as its first member.

    Args:
        name: Group name
        creator: User who creates (and always belongs to) the group
        member_ids: Optional ids of registered users to add straight away

    Returns:
        Created Group instance

    Raises:
        UserNotFoundError: If any member id is not a registered user
    """
    extra_ids = {member_id for member_id in member_ids if member_id != creator.id}
    extra_members = list(User.objects.filter(id__in=extra_ids, is_active=True))
    if len(extra_members) != len(extra_ids):
        found = {user.id for user in extra_members}
        missing = sorted(str(member_id) for member_id in extra_ids - found)
        raise UserNotFoundError(f"Unknown users: {', '.join(missing)}")

    group = Group.objects.create(name=name, created_by=creator)

    GroupMembership.objects.bulk_create([
        GroupMembership(user=user, group=group)
        for user in [creator, *extra_members]
    ])

    logger.info(
        "group_created",
        group_id=str(group.id),
        creator_id=str(creator.id),
        members=len(extra_members) + 1,
    )
    return group


def list_user_groups(*, user: User) -> QuerySet[Group]:
    """Return groups where user is a member, newest first."""
    return (
        Group.objects
        .filter(memberships__user=user)
        .select_related('created_by')
        .prefetch_related('memberships__user')
        .distinct()
    )


def _group_expenses(group: Group) -> List[Expense]:
    return list(
        Expense.objects
        .filter(group=group)
        .select_related('paid_by')
        .prefetch_related('split_among')
        .order_by('created_at')
    )


def _balances_for(member_ids, expenses):
    return round_balances(compute_balances(
        member_ids=member_ids,
        expenses=build_expense_snapshots(expenses),
    ))


@translate_store_errors
def get_group_detail(*, group_id: UUID, user: User) -> dict:
    """
    Assemble the full group view, including freshly computed balances.

    Balances are recomputed from the complete expense history on every call
    and never cached.

    Args:
        group_id: UUID of the group
        user: User requesting the view (must be a member)

    Returns:
        dict with keys ``group``, ``members``, ``email_invites``,
        ``expenses``, ``messages`` and ``balances``

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_for_member(group_id=group_id, user=user)

    members = [
        membership.user
        for membership in group.memberships.select_related('user')
    ]
    expenses = _group_expenses(group)

    return {
        'group': group,
        'members': members,
        'email_invites': list(group.email_invites.all()),
        'expenses': expenses,
        'messages': list(group.messages.select_related('sender')),
        'balances': _balances_for([member.id for member in members], expenses),
    }


@translate_store_errors
def get_group_balances(*, group_id: UUID, user: User) -> dict:
    """
    Compute per-member balances for a group.

    Positive amounts are owed by the member, negative amounts are owed to them.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_for_member(group_id=group_id, user=user)
    return _balances_for(group.member_ids(), _group_expenses(group))


@translate_store_errors
@transaction.atomic
def delete_group(*, group_id: UUID, user: User) -> None:
    """
    Delete a group (creator only).

    Memberships, invites and the message log go with the group. Expenses
    stay behind with their group reference cleared.

    Args:
        group_id: UUID of the group
        user: User requesting deletion (must be the creator)

    Raises:
        GroupNotFoundError: If group doesn't exist
        InsufficientPermissionsError: If user is not the creator
    """
    group = get_group(group_id=group_id, for_update=True)

    require_creator(group, user, 'delete the group')

    group.delete()
    logger.info("group_deleted", group_id=str(group_id), user_id=str(user.id))
