import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, EmailInvite


def authenticate(client, user):
    """Attach a bearer token for user to client."""
    refresh = RefreshToken.for_user(user)
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def creator(db):
    """Create and return the user who creates the test group."""
    return User.objects.create_user(
        email='alice@example.com',
        password='TestPass123!',
        name='Alice',
    )


@pytest.fixture
def member_user(db):
    """Create and return a plain group member."""
    return User.objects.create_user(
        email='bob@example.com',
        password='TestPass123!',
        name='Bob',
    )


@pytest.fixture
def carol(db):
    """Create and return a registered user outside the group."""
    return User.objects.create_user(
        email='carol@example.com',
        password='TestPass123!',
        name='Carol',
    )


@pytest.fixture
def outsider(db):
    """Create and return a user not in any group."""
    return User.objects.create_user(
        email='mallory@example.com',
        password='TestPass123!',
        name='Mallory',
    )


@pytest.fixture
def group(db, creator):
    """Create and return a test group with creator membership."""
    group = Group.objects.create(name='Ski Trip', created_by=creator)
    GroupMembership.objects.create(user=creator, group=group)
    return group


@pytest.fixture
def group_with_members(group, member_user):
    """Group with creator and one member."""
    GroupMembership.objects.create(user=member_user, group=group)
    return group


@pytest.fixture
def pending_invite(group, creator):
    """Pending invite for an unregistered email."""
    return EmailInvite.objects.create(
        group=group,
        email='dave@example.com',
        display_name='dave',
        invited_by=creator,
    )


@pytest.fixture
def creator_client(api_client, creator):
    """Return API client authenticated as the group creator."""
    return authenticate(api_client, creator)


@pytest.fixture
def member_client(api_client, member_user):
    """Return API client authenticated as a group member."""
    return authenticate(api_client, member_user)


@pytest.fixture
def outsider_client(api_client, outsider):
    """Return API client authenticated as a non-member."""
    return authenticate(api_client, outsider)
