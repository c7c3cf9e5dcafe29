from django.urls import path

from . import consumers

websocket_urlpatterns = [
    # ws://<host>/ws/realtime/
    path('ws/realtime/', consumers.RealtimeConsumer.as_asgi()),
]
