from django.urls import path, re_path
from . import views

urlpatterns = [
    # Auth
    path("auth/register", views.register_user, name="register-user"),
    path("auth/login", views.login_user, name="login-user"),
    path("auth/me", views.current_user, name="current-user"),

    # Devices
    path("devices", views.devices_collection, name="devices"),
    path("devices/room/<int:room_id>/toggle", views.room_devices_toggle, name="room-devices-toggle"),
    path("devices/room/<int:room_id>/control", views.room_devices_control, name="room-devices-control"),
    path("devices/<int:device_id>", views.device_detail, name="device-detail"),
    path("devices/<int:device_id>/toggle", views.device_toggle, name="device-toggle"),
    path("devices/<int:device_id>/status", views.device_status, name="device-status"),
    path("devices/<int:device_id>/light", views.device_light, name="device-light"),
    path("devices/<int:device_id>/thermostat", views.device_thermostat, name="device-thermostat"),
    path("devices/<int:device_id>/camera", views.device_camera, name="device-camera"),

    # Rooms
    path("rooms", views.rooms_collection, name="rooms"),
    path("rooms/category/<slug:category>", views.rooms_by_category, name="rooms-by-category"),
    path("rooms/<int:room_id>", views.room_detail, name="room-detail"),
    path("rooms/<int:room_id>/stats", views.room_stats, name="room-stats"),
    path("rooms/<int:room_id>/temperature", views.room_temperature, name="room-temperature"),
    path("rooms/<int:room_id>/lighting", views.room_lighting, name="room-lighting"),
    path("rooms/<int:room_id>/occupancy", views.room_occupancy, name="room-occupancy"),

    # Automation (stub)
    path("automation", views.automation, name="automation"),

    re_path(r"^.*$", views.route_not_found, name="api-not-found"),
]
