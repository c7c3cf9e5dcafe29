from channels.testing import WebsocketCommunicator

from apps.realtime.consumers import RealtimeConsumer


def make_communicator():
    return WebsocketCommunicator(RealtimeConsumer.as_asgi(), '/ws/realtime/')


async def settle(communicator):
    """
    Wait until every frame sent so far has been handled.

    Frames are handled in order, so once the error for a malformed frame
    comes back the earlier ones are done.
    """
    await communicator.send_json_to({'event': 'joinGroup', 'data': None})
    reply = await communicator.receive_json_from()
    assert reply['event'] == 'error'
