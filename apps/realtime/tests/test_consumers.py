"""
Websocket consumer tests over the in-memory channel layer.
"""

import pytest
from uuid import uuid4

from channels.db import database_sync_to_async
from channels.layers import get_channel_layer

from apps.accounts.models import User
from apps.groups.models import Group, GroupMembership, GroupMessage
from apps.groups.services import post_message, list_messages
from apps.realtime.router import DISPATCH_TYPE, group_channel_name, user_channel_name

from .utils import make_communicator, settle


@database_sync_to_async
def create_group_with_member():
    user = User.objects.create_user(email='alice@example.com', password='TestPass123!', name='Alice')
    group = Group.objects.create(name='Choir', created_by=user)
    GroupMembership.objects.create(user=user, group=group)
    return user, group


async def broadcast(channel_name, event, payload):
    await get_channel_layer().group_send(channel_name, {
        'type': DISPATCH_TYPE,
        'event': event,
        'payload': payload,
    })


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestSubscriptions:

    async def test_connect(self):
        communicator = make_communicator()
        connected, _ = await communicator.connect()

        assert connected
        await communicator.disconnect()

    async def test_join_group_receives_broadcast(self):
        group_id = str(uuid4())
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinGroup', 'data': group_id})
        await settle(communicator)
        await broadcast(group_channel_name(group_id), 'expenseAdded', {'id': 'e1'})

        frame = await communicator.receive_json_from()
        assert frame == {'event': 'expenseAdded', 'data': {'id': 'e1'}}
        await communicator.disconnect()

    async def test_join_user_receives_private_events(self):
        user_id = str(uuid4())
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinUser', 'data': user_id})
        await settle(communicator)
        await broadcast(user_channel_name(user_id), 'groupJoined', {'groupId': 'g'})

        frame = await communicator.receive_json_from()
        assert frame['event'] == 'groupJoined'
        await communicator.disconnect()

    async def test_other_groups_not_delivered(self):
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinGroup', 'data': str(uuid4())})
        await settle(communicator)
        await broadcast(group_channel_name(uuid4()), 'newMessage', {})

        assert await communicator.receive_nothing()
        await communicator.disconnect()

    async def test_leave_group_stops_delivery(self):
        group_id = str(uuid4())
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinGroup', 'data': group_id})
        await communicator.send_json_to({'event': 'leaveGroup', 'data': group_id})
        await settle(communicator)
        await broadcast(group_channel_name(group_id), 'newMessage', {})

        assert await communicator.receive_nothing()
        await communicator.disconnect()

    async def test_unknown_event(self):
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'dance', 'data': None})

        frame = await communicator.receive_json_from()
        assert frame['event'] == 'error'
        assert 'dance' in frame['data']['message']
        await communicator.disconnect()

    async def test_non_object_frame(self):
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to(['joinGroup'])

        frame = await communicator.receive_json_from()
        assert frame['event'] == 'error'
        await communicator.disconnect()

    async def test_invalid_json_keeps_connection_open(self):
        communicator = make_communicator()
        await communicator.connect()
        group_id = str(uuid4())

        await communicator.send_to(text_data='{"event": "joinGroup"')

        frame = await communicator.receive_json_from()
        assert frame['event'] == 'error'
        assert frame['data']['message'] == 'Frames must be valid JSON'

        await communicator.send_json_to({'event': 'joinGroup', 'data': group_id})
        await settle(communicator)
        await broadcast(group_channel_name(group_id), 'expenseAdded', {'id': 'e1'})

        frame = await communicator.receive_json_from()
        assert frame == {'event': 'expenseAdded', 'data': {'id': 'e1'}}
        await communicator.disconnect()

    async def test_binary_frame(self):
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_to(bytes_data=b'\x00\x01')

        frame = await communicator.receive_json_from()
        assert frame['event'] == 'error'
        await communicator.disconnect()


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestChatPaths:

    async def test_send_message_is_transient(self):
        """Direct-socket messages reach subscribers but never the stored log."""
        user, group = await create_group_with_member()
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinGroup', 'data': str(group.id)})
        await communicator.send_json_to({
            'event': 'sendMessage',
            'data': {'groupId': str(group.id), 'userId': str(user.id), 'message': 'on my way'},
        })

        frame = await communicator.receive_json_from()
        assert frame['event'] == 'newMessage'
        assert frame['data']['user'] == 'Alice'
        assert frame['data']['userId'] == str(user.id)
        assert frame['data']['message'] == 'on my way'
        assert 'time' in frame['data']

        stored = await database_sync_to_async(GroupMessage.objects.filter(group=group).count)()
        assert stored == 0
        await communicator.disconnect()

    async def test_send_message_unknown_sender(self):
        group_id = str(uuid4())
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinGroup', 'data': group_id})
        await communicator.send_json_to({
            'event': 'sendMessage',
            'data': {'groupId': group_id, 'userId': str(uuid4()), 'message': 'hi'},
        })

        frame = await communicator.receive_json_from()
        assert frame['data']['user'] == 'Unknown'
        await communicator.disconnect()

    async def test_persisted_and_socket_messages(self):
        """Only the persisted message shows up in list_messages; both are broadcast."""
        user, group = await create_group_with_member()
        communicator = make_communicator()
        await communicator.connect()

        await communicator.send_json_to({'event': 'joinGroup', 'data': str(group.id)})
        await settle(communicator)

        await database_sync_to_async(post_message)(group_id=group.id, user=user, content='persisted')
        persisted_frame = await communicator.receive_json_from()

        await communicator.send_json_to({
            'event': 'sendMessage',
            'data': {'groupId': str(group.id), 'userId': str(user.id), 'message': 'transient'},
        })
        socket_frame = await communicator.receive_json_from()

        assert persisted_frame['data']['content'] == 'persisted'
        assert persisted_frame['data']['sender']['name'] == 'Alice'
        assert persisted_frame['data']['message'] == 'persisted'
        assert socket_frame['data']['message'] == 'transient'

        messages = await database_sync_to_async(list_messages)(group_id=group.id, user=user)
        assert [message.content for message in messages] == ['persisted']
        await communicator.disconnect()
