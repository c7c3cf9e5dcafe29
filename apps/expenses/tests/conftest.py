import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership


def make_user(email, name):
    return User.objects.create_user(email=email, password='TestPass123!', name=name)


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def alice(db):
    return make_user('alice@example.com', 'Alice')


@pytest.fixture
def bob(db):
    return make_user('bob@example.com', 'Bob')


@pytest.fixture
def carol(db):
    return make_user('carol@example.com', 'Carol')


@pytest.fixture
def outsider(db):
    """Registered user outside the group."""
    return make_user('mallory@example.com', 'Mallory')


@pytest.fixture
def group(db, alice, bob, carol):
    """Group of Alice (creator), Bob and Carol."""
    group = Group.objects.create(name='Cabin Weekend', created_by=alice)
    for user in (alice, bob, carol):
        GroupMembership.objects.create(user=user, group=group)
    return group


@pytest.fixture
def alice_client(api_client, alice):
    """Return API client authenticated as Alice."""
    refresh = RefreshToken.for_user(alice)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client


@pytest.fixture
def outsider_client(api_client, outsider):
    """Return API client authenticated as a non-member."""
    refresh = RefreshToken.for_user(outsider)
    api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
    return api_client
