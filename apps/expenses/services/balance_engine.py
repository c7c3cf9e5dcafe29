"""
Balance Engine
==============

Derives each member's net position in a group from its expense history.

The engine is a pure function over already-resolved data: it never touches
the database, so callers fetch members and expenses first and hand over
:class:`ExpenseSnapshot` values.

Sign convention:
    A positive balance means the member owes money to the group.
    A negative balance means the group owes money to the member.

Example:
    Members A, B and C; A pays 30 split among all three::

        >>> compute_balances(
        ...     member_ids=['a', 'b', 'c'],
        ...     expenses=[ExpenseSnapshot('a', Decimal('30'), ('a', 'b', 'c'))],
        ... )
        {'a': Decimal('-20'), 'b': Decimal('10'), 'c': Decimal('10')}

No settlement step is applied: the result is the aggregate per-member
imbalance, not a list of transfers.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, NamedTuple, Tuple

CENT = Decimal('0.01')
ZERO = Decimal('0')


class ExpenseSnapshot(NamedTuple):
    """The parts of an expense the engine needs."""

    payer_id: object
    amount: Decimal
    participant_ids: Tuple


def round_money(value) -> Decimal:
    """Round half away from zero to two decimal places."""
    rounded = Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
    # Normalise -0.00 to 0.00
    return rounded + Decimal('0.00')


def build_expense_snapshots(expenses) -> List[ExpenseSnapshot]:
    """
    Convert Expense model instances into engine input.

    Expects ``split_among`` to be prefetched; otherwise each expense costs
    one extra query.
    """
    return [
        ExpenseSnapshot(
            payer_id=expense.paid_by_id,
            amount=expense.amount,
            participant_ids=tuple(user.id for user in expense.split_among.all()),
        )
        for expense in expenses
    ]


def compute_balances(
    *,
    member_ids: Iterable,
    expenses: Iterable[ExpenseSnapshot]
) -> Dict[str, Decimal]:
    """
    Compute unrounded balances keyed by stringified user id.

    Algorithm:
        1. Every member starts at 0.
        2. For each expense, ``per_head = amount / len(participants)``.
        3. Each participant other than the payer owes ``per_head`` more,
           and the payer is owed ``per_head`` more for each of them.

    Ids that appear only in expenses (e.g. a payer who has since left the
    group) still receive an entry.

    Args:
        member_ids: Current member ids of the group.
        expenses: Snapshots of the group's full expense history.

    Returns:
        dict mapping ``str(user_id)`` to a Decimal balance. The values sum to
        zero up to Decimal precision.
    """
    balances = {str(member_id): ZERO for member_id in member_ids}

    for expense in expenses:
        participants = [str(participant) for participant in expense.participant_ids]
        if not participants:
            continue

        per_head = Decimal(expense.amount) / len(participants)
        payer = str(expense.payer_id)
        balances.setdefault(payer, ZERO)

        for participant in participants:
            if participant == payer:
                continue
            balances[participant] = balances.get(participant, ZERO) + per_head
            balances[payer] -= per_head

    return balances


def round_balances(balances: Dict[str, Decimal]) -> Dict[str, Decimal]:
    """Round every balance to cents for presentation."""
    return {user_id: round_money(amount) for user_id, amount in balances.items()}
