"""
Expenses app services layer.

The ledger records expenses; the balance engine turns an expense history
into per-member positions without touching the database.
"""

from .exceptions import (
    ExpensesServiceError,
    InvalidSplitError,
    ExpenseNotFoundError,
)

from .balance_engine import (
    ExpenseSnapshot,
    build_expense_snapshots,
    compute_balances,
    round_balances,
    round_money,
)

from .ledger import (
    record_expense,
    list_group_expenses,
    get_expense,
    compute_individual_share,
    build_expense_event,
)


__all__ = [
    # Exceptions
    'ExpensesServiceError',
    'InvalidSplitError',
    'ExpenseNotFoundError',

    # Balance Engine
    'ExpenseSnapshot',
    'build_expense_snapshots',
    'compute_balances',
    'round_balances',
    'round_money',

    # Ledger
    'record_expense',
    'list_group_expenses',
    'get_expense',
    'compute_individual_share',
    'build_expense_event',
]
