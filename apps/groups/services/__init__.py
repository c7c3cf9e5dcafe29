"""
Groups app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations run in transactions and lock the group row.
"""

from .exceptions import (
    GroupsServiceError,
    GroupNotFoundError,
    UserNotFoundError,
    AlreadyMemberError,
    AlreadyInvitedError,
    NotMemberError,
    CreatorCannotLeaveError,
    CannotRemoveCreatorError,
    InsufficientPermissionsError,
    InvalidMessageError,
    PersistenceError,
)

from .access import require_membership

from .group_management import (
    create_group,
    list_user_groups,
    get_group_detail,
    get_group_balances,
    delete_group,
)

from .membership_management import (
    add_member,
    remove_member,
    leave_group,
    get_group_members,
)

from .invite_management import (
    cancel_invite,
    list_invites,
    claim_pending_invites,
)

from .message_management import (
    post_message,
    list_messages,
    build_message_event,
)


__all__ = [
    # Exceptions
    'GroupsServiceError',
    'GroupNotFoundError',
    'UserNotFoundError',
    'AlreadyMemberError',
    'AlreadyInvitedError',
    'NotMemberError',
    'CreatorCannotLeaveError',
    'CannotRemoveCreatorError',
    'InsufficientPermissionsError',
    'InvalidMessageError',
    'PersistenceError',

    # Guards
    'require_membership',

    # Group Management
    'create_group',
    'list_user_groups',
    'get_group_detail',
    'get_group_balances',
    'delete_group',

    # Membership Management
    'add_member',
    'remove_member',
    'leave_group',
    'get_group_members',

    # Invite Management
    'cancel_invite',
    'list_invites',
    'claim_pending_invites',

    # Messages
    'post_message',
    'list_messages',
    'build_message_event',
]
