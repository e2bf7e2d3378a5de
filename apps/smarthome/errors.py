"""
SmartHome Dashboard - Error Types

Every failure the home services can report is a SmartHomeError carrying a
human-readable message and the HTTP status it maps to. The HTTP views and
the websocket consumer both translate these into their own envelopes.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""


class SmartHomeError(Exception):
    """Base class for errors that are safe to show to the client."""

    status = 500
    default_message = "Internal server error"

    def __init__(self, message=None, status=None):
        self.message = message or self.default_message
        if status is not None:
            self.status = status
        super().__init__(self.message)


class ValidationError(SmartHomeError):
    status = 400
    default_message = "Invalid request"


class AuthenticationError(SmartHomeError):
    status = 401
    default_message = "Access token required"


class AccessDenied(SmartHomeError):
    status = 403
    default_message = "Access denied to this device"


class NotFound(SmartHomeError):
    status = 404
    default_message = "Not found"


class InvalidDeviceType(SmartHomeError):
    status = 400
    default_message = "Action not supported for this device type"


class RoomNotEmpty(ValidationError):
    def __init__(self, device_count):
        self.device_count = device_count
        super().__init__(f"Cannot delete room with {device_count} active devices")


class InternalError(SmartHomeError):
    status = 500
