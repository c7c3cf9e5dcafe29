"""
Domain exceptions for expenses app.

Membership and lookup failures reuse the groups hierarchy
(GroupNotFoundError, NotMemberError, PersistenceError) so views can map
them the same way everywhere.
"""


class ExpensesServiceError(Exception):
    """Base exception for expense service errors."""
    pass


class InvalidSplitError(ExpensesServiceError):
    """
    Raised when an expense cannot be split as requested.

    ``field_errors`` maps field names to messages for the API response.
    """

    def __init__(self, message, field_errors=None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class ExpenseNotFoundError(ExpensesServiceError):
    """Raised when an expense does not exist or its group is gone."""
    pass
