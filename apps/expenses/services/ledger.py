"""
Expense Ledger
==============

Records immutable expenses against a group and announces them on the
group's realtime channel.

Splitting:
    The payer is always part of the split, whether or not the caller listed
    them. Each participant's share is ``amount / len(split)`` rounded half-up
    to cents. Shares are not rebalanced, so for amounts that do not divide
    evenly the shares may sum to a cent or so more or less than ``amount``::

        >>> compute_individual_share(Decimal('100.00'), 3)
        Decimal('33.33')
"""

from decimal import Decimal
from typing import Iterable, List
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from apps.accounts.models import User
from apps.expenses.models import Expense
from apps.groups.services.access import get_group_for_member, translate_store_errors
from apps.groups.services.exceptions import NotMemberError
from apps.realtime.router import publish_to_group, EXPENSE_ADDED

from .balance_engine import round_money
from .exceptions import InvalidSplitError, ExpenseNotFoundError

logger = structlog.get_logger(__name__)


def compute_individual_share(amount, participant_count: int) -> Decimal:
    """Split amount evenly and round half-up to cents."""
    if participant_count < 1:
        raise InvalidSplitError(
            "At least one participant required",
            {'split_among': 'At least one participant required'},
        )
    return round_money(Decimal(amount) / participant_count)


def build_expense_event(expense: Expense, participants: Iterable[User]) -> dict:
    """Serialize an expense for the ``expenseAdded`` broadcast."""
    payer = expense.paid_by
    return {
        'id': str(expense.id),
        'description': expense.description,
        'amount': str(expense.amount),
        'paidBy': {
            'id': str(payer.id),
            'name': payer.get_display_name(),
            'email': payer.email,
        },
        'group': str(expense.group_id),
        'splitAmong': [str(user.id) for user in participants],
        'individualShare': str(expense.individual_share),
        # Stamped at publish time, not taken from the stored record
        'createdAt': timezone.now().isoformat(),
    }


@translate_store_errors
def record_expense(
    *,
    group_id: UUID,
    description: str,
    amount,
    paid_by: User,
    split_among: Iterable[UUID]
) -> Expense:
    """
    Record an expense and attach it to its group.

    The expense row, its split set and the group link are written in one
    transaction. After commit an ``expenseAdded`` event goes out on the
    group channel.

    Args:
        group_id: UUID of the owning group
        description: What the money was spent on
        amount: Positive amount (Decimal or anything Decimal accepts)
        paid_by: Member who paid
        split_among: Ids of members sharing the cost; the payer is added
            if missing

    Returns:
        Created Expense with ``split_among`` populated

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If paid_by is not a member
        InvalidSplitError: If split_among is empty, the amount is not
            positive, or a participant is not a member
        PersistenceError: If the store fails
    """
    requested = list(split_among or [])

    with transaction.atomic():
        group = get_group_for_member(group_id=group_id, user=paid_by)

        if not requested:
            raise InvalidSplitError(
                "split_among must be a non-empty list of member IDs",
                {'split_among': 'At least one member is required'},
            )

        amount = Decimal(amount)
        if amount <= 0:
            raise InvalidSplitError(
                "amount must be positive",
                {'amount': 'Amount must be greater than zero'},
            )

        # Union, not overwrite: the payer always shares the cost
        split_ids = {str(user_id) for user_id in requested}
        split_ids.add(str(paid_by.id))

        member_ids = {str(member_id) for member_id in group.member_ids()}
        outsiders = sorted(split_ids - member_ids)
        if outsiders:
            raise InvalidSplitError(
                "split_among contains users who are not group members",
                {'split_among': f"Not group members: {', '.join(outsiders)}"},
            )

        participants = list(User.objects.filter(id__in=split_ids))

        expense = Expense.objects.create(
            description=description,
            amount=amount,
            paid_by=paid_by,
            group=group,
            individual_share=compute_individual_share(amount, len(participants)),
        )
        expense.split_among.set(participants)

        event = build_expense_event(expense, participants)
        transaction.on_commit(lambda: publish_to_group(group.id, EXPENSE_ADDED, event))

    logger.info(
        "expense_recorded",
        expense_id=str(expense.id),
        amount=str(expense.amount),
        group_id=str(group.id),
        paid_by=str(paid_by.id),
    )
    return expense


@translate_store_errors
def list_group_expenses(*, group_id: UUID, user: User) -> List[Expense]:
    """
    List a group's expenses, newest first.

    Raises:
        GroupNotFoundError: If group doesn't exist
        NotMemberError: If user is not a member
    """
    group = get_group_for_member(group_id=group_id, user=user)
    return list(
        Expense.objects
        .filter(group=group)
        .select_related('paid_by')
        .prefetch_related('split_among')
        .order_by('-created_at')
    )


@translate_store_errors
def get_expense(*, expense_id: UUID, user: User) -> Expense:
    """
    Get a single expense visible to the user.

    Expenses whose group was deleted are no longer reachable.

    Raises:
        ExpenseNotFoundError: If the expense doesn't exist or has no group
        NotMemberError: If user is not a member of the expense's group
    """
    try:
        expense = (
            Expense.objects
            .select_related('paid_by', 'group')
            .prefetch_related('split_among')
            .get(id=expense_id, group__isnull=False)
        )
    except (Expense.DoesNotExist, ValidationError):
        raise ExpenseNotFoundError(f"Expense with ID {expense_id} not found")

    if not expense.group.has_member(user):
        raise NotMemberError(f"You are not a member of {expense.group.name}")

    return expense
