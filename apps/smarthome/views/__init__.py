"""
Views package for the home app.

This module re-exports all views for use in urls.py.
Views are organized into submodules:
  - helpers: Envelope, token-auth decorator and request parsing
  - auth: JSON registration and login (token issuing)
  - devices: Device CRUD, single-device control and room bulk control
  - rooms: Room CRUD, ambient targets, occupancy and statistics
  - misc: Automation stub and the API 404 fallback
"""

# Re-export from auth
from .auth import current_user, login_user, register_user

# Re-export from devices
from .devices import (
    device_camera,
    device_detail,
    device_light,
    device_status,
    device_thermostat,
    device_toggle,
    devices_collection,
    room_devices_control,
    room_devices_toggle,
)

# Re-export from rooms
from .rooms import (
    room_detail,
    room_lighting,
    room_occupancy,
    room_stats,
    room_temperature,
    rooms_by_category,
    rooms_collection,
)

# Re-export from misc
from .misc import automation, route_not_found

# Re-export ratelimited_error from ratelimits (used by RATELIMIT_VIEW)
from ..ratelimits import ratelimited_error

__all__ = [
    # Auth
    "current_user",
    "login_user",
    "register_user",
    # Devices
    "device_camera",
    "device_detail",
    "device_light",
    "device_status",
    "device_thermostat",
    "device_toggle",
    "devices_collection",
    "room_devices_control",
    "room_devices_toggle",
    # Rooms
    "room_detail",
    "room_lighting",
    "room_occupancy",
    "room_stats",
    "room_temperature",
    "rooms_by_category",
    "rooms_collection",
    # Misc
    "automation",
    "route_not_found",
    # Ratelimits
    "ratelimited_error",
]
