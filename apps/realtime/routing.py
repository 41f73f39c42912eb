from django.urls import path

from .consumers import TrackingConsumer

websocket_urlpatterns = [
    path("ws/", TrackingConsumer.as_asgi()),
]
