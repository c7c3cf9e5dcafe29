"""
Service layer unit tests for accounts app.
"""

import pytest
from uuid import uuid4

from apps.accounts.models import User
from apps.accounts.services import (
    register_user,
    authenticate_user,
    get_user_by_id,
    UserRegistrationError,
    InvalidCredentialsError,
    InactiveAccountError,
    UserNotFoundError,
)
from apps.groups.models import Group, GroupMembership, EmailInvite


@pytest.mark.django_db
class TestRegisterUser:
    """Tests for user_registration.py"""

    def test_register_creates_user(self):
        user = register_user(email='Alice@Example.com', password='SecurePass123!', name='Alice')

        assert user.email == 'alice@example.com'
        assert user.name == 'Alice'
        assert user.check_password('SecurePass123!')

    def test_register_duplicate_raises(self, user):
        with pytest.raises(UserRegistrationError):
            register_user(email=user.email, password='SecurePass123!')

    def test_register_claims_every_pending_invite(self, other_user):
        """Invites in several groups all turn into memberships."""
        groups = []
        for name in ('Trip', 'Flat'):
            group = Group.objects.create(name=name, created_by=other_user)
            GroupMembership.objects.create(user=other_user, group=group)
            EmailInvite.objects.create(group=group, email='bob@example.com', invited_by=other_user)
            groups.append(group)

        bob = register_user(email='BOB@example.com', password='SecurePass123!')

        for group in groups:
            assert group.has_member(bob)
        assert EmailInvite.objects.filter(email='bob@example.com').count() == 0


@pytest.mark.django_db
class TestAuthenticateUser:
    """Tests for user_authentication.py"""

    def test_authenticate_success(self, user):
        authenticated = authenticate_user(email='TESTUSER@example.com', password='TestPass123!')

        assert authenticated.id == user.id
        assert authenticated.last_login is not None

    def test_authenticate_wrong_password(self, user):
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(email=user.email, password='nope')

    def test_authenticate_unknown_email(self, db):
        with pytest.raises(InvalidCredentialsError):
            authenticate_user(email='ghost@example.com', password='nope')

    def test_authenticate_inactive(self, user_inactive):
        with pytest.raises(InactiveAccountError):
            authenticate_user(email=user_inactive.email, password='TestPass123!')

    def test_get_user_by_id(self, user):
        assert get_user_by_id(user_id=user.id) == user

    @pytest.mark.parametrize('user_id', [uuid4(), 'not-a-uuid'])
    def test_get_user_by_id_not_found(self, db, user_id):
        with pytest.raises(UserNotFoundError):
            get_user_by_id(user_id=user_id)

    def test_get_user_by_id_inactive(self, user_inactive):
        with pytest.raises(UserNotFoundError):
            get_user_by_id(user_id=user_inactive.id)
