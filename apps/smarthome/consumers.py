"""
SmartHome Dashboard - Realtime Consumer

Websocket endpoint for live dashboards. A connection authenticates once at
connect time with the same bearer token as the REST API (``?token=`` or an
``Authorization`` header), then exchanges JSON messages of the form:

    {"event": "device-control", "data": {"deviceId": 7, "action": "toggle"}}

Handled events:
    - join-rooms: subscribe to the rooms the user has devices in
    - device-status-update: merge a partial status into a device
    - device-control: run one control action on a device
    - room-control: bulk control every eligible device of a room
    - monitor-device / stop-monitor-device: follow a single device

Errors are reported only to the connection that caused them, as an
``error`` event; a bad message never closes the socket.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

import json
import logging
from urllib.parse import parse_qs

from channels.generic.websocket import JsonWebsocketConsumer

from . import permissions
from .errors import AuthenticationError, NotFound, SmartHomeError, ValidationError
from .models import Device
from .permissions import AccessLevel
from .services import DeviceControlService, RoomControlOrchestrator, get_hub
from .services.broadcast import device_group, room_group
from .services.rooms import rooms_for_user
from .tokens import resolve_token, token_from_header

logger = logging.getLogger(__name__)

# Close code sent when the handshake token is rejected
CLOSE_UNAUTHORIZED = 4401

# Client-facing message per event when something unexpected fails
FAILURE_MESSAGES = {
    "join-rooms": "Failed to join rooms",
    "device-status-update": "Failed to update device status",
    "device-control": "Failed to control device",
    "room-control": "Failed to control room",
    "monitor-device": "Failed to start monitoring",
    "stop-monitor-device": "Failed to stop monitoring",
}


def _required_id(data, key):
    value = data.get(key) if isinstance(data, dict) else data
    if isinstance(value, bool) or value in (None, ""):
        raise ValidationError(f"'{key}' is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"'{key}' must be an integer id")


class DashboardConsumer(JsonWebsocketConsumer):

    user = None
    connection_id = None

    def __init__(self, *args, hub=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.hub = hub or get_hub()
        self.control = DeviceControlService(self.hub)
        self.orchestrator = RoomControlOrchestrator(self.control, self.hub)
        self.handlers = {
            "join-rooms": self.join_rooms,
            "device-status-update": self.device_status_update,
            "device-control": self.device_control,
            "room-control": self.room_control,
            "monitor-device": self.monitor_device,
            "stop-monitor-device": self.stop_monitor_device,
        }

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def _handshake_token(self):
        query = parse_qs(self.scope.get("query_string", b"").decode("latin-1"))
        if query.get("token"):
            return query["token"][0]
        for name, value in self.scope.get("headers", []):
            if name == b"authorization":
                return token_from_header(value.decode("latin-1"))
        return None

    def connect(self):
        try:
            self.user = resolve_token(self._handshake_token())
        except AuthenticationError as exc:
            logger.warning("Rejected websocket connection: %s", exc.message)
            # Close codes only reach the client after the handshake completes
            self.accept()
            self.close(code=CLOSE_UNAUTHORIZED)
            return

        self.connection_id = self.channel_name
        self.hub.connect(self.connection_id, self.channel_name, self.user.pk)
        self.accept()
        logger.info("User %s connected (%s)", self.user.pk, self.connection_id)

    def disconnect(self, code):
        if self.connection_id is not None:
            self.hub.disconnect(self.connection_id)
            logger.info("Connection %s closed (%s)", self.connection_id, code)

    # ------------------------------------------------------------------
    # Inbound messages
    # ------------------------------------------------------------------

    def receive(self, text_data=None, bytes_data=None, **kwargs):
        try:
            content = json.loads(text_data or "")
        except (TypeError, ValueError):
            self.emit("error", {"message": "Messages must be JSON"})
            return
        self.receive_json(content, **kwargs)

    def receive_json(self, content, **kwargs):
        event = content.get("event") if isinstance(content, dict) else None
        handler = self.handlers.get(event)
        if handler is None:
            self.emit("error", {"message": f"Unknown event '{event}'"})
            return

        data = content.get("data")
        try:
            handler(data if data is not None else {})
        except SmartHomeError as exc:
            logger.warning("%s rejected for user %s: %s", event, self.user.pk, exc.message)
            self.emit("error", {"message": exc.message, "event": event})
        except Exception:
            logger.exception("%s failed for user %s", event, self.user.pk)
            self.emit("error", {"message": FAILURE_MESSAGES[event], "event": event})

    def join_rooms(self, data):
        room_ids = []
        for room in rooms_for_user(self.user):
            self.hub.join(self.connection_id, room_group(room.id))
            room_ids.append(room.id)
        self.emit("rooms-joined", {"success": True, "rooms": room_ids})

    def device_status_update(self, data):
        device_id = _required_id(data, "deviceId")
        device = self.control.set_status(device_id, data.get("status") or {}, self.user)
        self.emit("status-update-success", {"deviceId": device.id})

    def device_control(self, data):
        device_id = _required_id(data, "deviceId")
        action = data.get("action")
        value = data.get("value")

        device = self.control.control(device_id, action, value, self.user)
        self.hub.device_changed(
            device,
            "device-controlled",
            {
                "deviceId": device.id,
                "action": action,
                "value": value,
                "roomId": device.room_id,
            },
            actor=self.user,
        )
        self.emit("control-success", {"deviceId": device.id})

    def room_control(self, data):
        room_id = _required_id(data, "roomId")
        report = self.orchestrator.run(room_id, data.get("action"), data.get("value"), self.user)
        self.emit(
            "room-control-success",
            {"roomId": report["roomId"], "toggledCount": report["toggledCount"]},
        )

    def monitor_device(self, data):
        device_id = _required_id(data, "deviceId")
        device = Device.objects.filter(pk=device_id, is_active=True).first()
        if device is None:
            raise NotFound("Device not found")
        permissions.require(device, self.user, AccessLevel.READ)

        self.hub.join(self.connection_id, device_group(device.id))
        self.emit("monitoring-started", {"deviceId": device.id})

    def stop_monitor_device(self, data):
        device_id = _required_id(data, "deviceId")
        self.hub.leave(self.connection_id, device_group(device_id))
        self.emit("monitoring-stopped", {"deviceId": device_id})

    # ------------------------------------------------------------------
    # Outbound messages
    # ------------------------------------------------------------------

    def emit(self, event, data):
        self.send_json({"event": event, "data": data})

    def hub_event(self, message):
        """Channel layer handler for events published by the BroadcastHub."""
        self.emit(message["event"], message["data"])
