import pytest
from channels.layers import channel_layers


@pytest.fixture(autouse=True)
def fresh_channel_layer():
    """Each test gets its own in-memory layer bound to its own event loop."""
    channel_layers.backends.clear()
    yield
    channel_layers.backends.clear()
