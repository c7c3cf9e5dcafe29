"""User authentication service."""

from django.db import transaction
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.accounts.models import normalize_email_address

from .exceptions import InvalidCredentialsError, InactiveAccountError, UserNotFoundError

User = get_user_model()


@transaction.atomic
def authenticate_user(*, email: str, password: str) -> User:
    """
    Authenticate user with email and password.

    Uses select_for_update() to prevent race conditions when updating last_login.

    Args:
        email: User's email
        password: User's password

    Returns:
        Authenticated User instance

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveAccountError: If account is deactivated
    """
    try:
        user = (
            User.objects
            .select_for_update()
            .get(email=normalize_email_address(email))
        )
    except User.DoesNotExist:
        raise InvalidCredentialsError("Invalid email or password")

    if not user.check_password(password):
        raise InvalidCredentialsError("Invalid email or password")

    if not user.is_active:
        raise InactiveAccountError("Account is deactivated")

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])

    return user


def get_user_by_id(*, user_id) -> User:
    """
    Resolve a user id to an active user.

    Raises:
        UserNotFoundError: If no active user has this id
    """
    try:
        return User.objects.get(id=user_id, is_active=True)
    except (User.DoesNotExist, ValidationError):
        raise UserNotFoundError(f"User with ID {user_id} not found")
