"""
SmartHome Dashboard - Websocket Routing

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from django.urls import path

from .consumers import DashboardConsumer

websocket_urlpatterns = [
    path("ws/home/", DashboardConsumer.as_asgi(), name="home-socket"),
]
