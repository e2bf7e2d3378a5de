"""
SmartHome Dashboard - Root URL Configuration

This module defines the root URL routing for the Django project:
    - /admin/ - Django admin interface
    - /api/ - JSON API endpoints (auth, devices, rooms)
    - /health - Health check endpoint

The websocket endpoint (ws/home/) is routed in config/asgi.py.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file

For URL routing reference:
    https://docs.djangoproject.com/en/5.2/topics/http/urls/
"""

from django.contrib import admin
from django.urls import include, path

from .views import health

urlpatterns = [
    path("admin/", admin.site.urls),
    path("health", health, name="health"),
    path("api/", include("apps.smarthome.urls")),
]
