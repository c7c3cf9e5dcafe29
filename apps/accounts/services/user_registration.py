"""User registration service."""

import structlog
from django.db import transaction, IntegrityError
from django.contrib.auth import get_user_model

from apps.groups.services.invite_management import claim_pending_invites

from .exceptions import UserRegistrationError

User = get_user_model()

logger = structlog.get_logger(__name__)


@transaction.atomic
def register_user(
    *,
    email: str,
    password: str,
    name: str = ""
) -> User:
    """
    Register a new user and turn any pending group invites into memberships.

    Args:
        email: User's email address
        password: User's password (will be hashed)
        name: Optional display name

    Returns:
        Created User instance

    Raises:
        UserRegistrationError: If the email is already registered
    """
    try:
        user = User.objects.create_user(
            email=email,
            password=password,
            name=name
        )
    except IntegrityError:
        raise UserRegistrationError(f"Registration failed: {email} is already registered")

    joined = claim_pending_invites(user=user)
    if joined:
        logger.info("invites_claimed_on_register", user_id=str(user.id), groups=len(joined))

    return user
