"""
Domain-specific exceptions for groups app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class GroupsServiceError(Exception):
    """Base exception for all groups service errors."""
    pass


class GroupNotFoundError(GroupsServiceError):
    """Raised when a group does not exist."""
    pass


class UserNotFoundError(GroupsServiceError):
    """Raised when a referenced user is not registered."""
    pass


class AlreadyMemberError(GroupsServiceError):
    """Raised when adding a user who is already a member."""
    pass


class AlreadyInvitedError(GroupsServiceError):
    """Raised when inviting an email that already has a pending invite."""
    pass


class NotMemberError(GroupsServiceError):
    """Raised when a user tries to perform an action requiring membership."""
    pass


class CreatorCannotLeaveError(GroupsServiceError):
    """Raised when the group creator tries to leave their group."""
    pass


class CannotRemoveCreatorError(GroupsServiceError):
    """Raised when attempting to remove the group creator."""
    pass


class InsufficientPermissionsError(GroupsServiceError):
    """Raised when a member lacks the creator identity an action requires."""
    pass


class InvalidMessageError(GroupsServiceError):
    """Raised when a chat message has no content."""
    pass


class PersistenceError(GroupsServiceError):
    """Raised when the backing store fails to read or write."""
    pass
