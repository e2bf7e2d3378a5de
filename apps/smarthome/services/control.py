"""
Device control service.

Applies exactly one control operation to exactly one device. Every
operation is a read-modify-write done inside one transaction holding the
device row lock, so the status fields and the type-specific payload of a
device change together; a failed operation rolls back and leaves the record
as it was.

After a successful commit the new state is published to the device's room
and device subscription groups and to the actor's own sessions.
"""

import logging
from contextlib import contextmanager

from django.db import IntegrityError, transaction
from django.utils import timezone

from .. import permissions
from ..errors import InvalidDeviceType, NotFound, ValidationError
from ..models import Device, Room
from ..payloads import (
    CameraState,
    LightState,
    ThermostatState,
    build_payload,
    expect_variant,
)
from ..permissions import AccessLevel
from .broadcast import get_hub

logger = logging.getLogger(__name__)

# Status keys a client may set directly; lastSeen is always server time.
STATUS_FIELDS = {
    "isOnline": "is_online",
    "isOn": "is_on",
    "batteryLevel": "battery_level",
    "signalStrength": "signal_strength",
}

# Plain fields accepted by the generic update and by create().
DEVICE_FIELDS = {
    "name": "name",
    "icon": "icon",
    "manufacturer": "manufacturer",
    "hardwareModel": "hardware_model",
    "serialNumber": "serial_number",
    "firmwareVersion": "firmware_version",
    "notes": "notes",
}

CONTROL_ACTIONS = (
    "toggle",
    "turnOn",
    "turnOff",
    "setBrightness",
    "setColor",
    "setTemperature",
    "setMode",
    "setFanSpeed",
    "startRecording",
    "stopRecording",
)


def _status_changes(status: dict) -> dict:
    if not isinstance(status, dict):
        raise ValidationError("'status' must be an object")
    unknown = sorted(set(status) - set(STATUS_FIELDS) - {"lastSeen"})
    if unknown:
        raise ValidationError(f"Unknown status field(s): {', '.join(unknown)}")

    changes = {}
    for key, attr in STATUS_FIELDS.items():
        if key not in status:
            continue
        value = status[key]
        if attr in ("is_online", "is_on"):
            if not isinstance(value, bool):
                raise ValidationError(f"'{key}' must be a boolean")
        elif value is not None:
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not 0 <= value <= 100:
                raise ValidationError(f"'{key}' must be a number between 0 and 100")
            value = int(value)
        changes[attr] = value
    return changes


def _text_fields(data: dict) -> dict:
    changes = {}
    for key, attr in DEVICE_FIELDS.items():
        if key not in data:
            continue
        value = data[key]
        if value is None and attr == "serial_number":
            changes[attr] = None
            continue
        if not isinstance(value, str):
            raise ValidationError(f"'{key}' must be a string")
        value = value.strip()
        if attr in ("name", "icon") and not value:
            raise ValidationError(f"'{key}' cannot be empty")
        changes[attr] = value or (None if attr == "serial_number" else "")
    if "tags" in data:
        tags = data["tags"]
        if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
            raise ValidationError("'tags' must be a list of strings")
        changes["tags"] = tags
    return changes


def _room_id(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("'room' must be a room id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    raise ValidationError("'room' must be a room id")


def _active_room(room_id) -> Room:
    room = Room.objects.filter(pk=_room_id(room_id), is_active=True).first()
    if room is None:
        raise NotFound("Room not found")
    return room


class DeviceControlService:
    """Single-device control operations."""

    def __init__(self, hub=None):
        self.hub = hub or get_hub()

    # ------------------------------------------------------------------
    # Locking and persistence
    # ------------------------------------------------------------------

    @contextmanager
    def locked(self, device_id, actor=None, minimum=AccessLevel.WRITE):
        """
        Lock an active device for the duration of the block.

        NotFound is raised before the permission check, so callers cannot
        discover which ids exist on devices they may not touch.
        """
        with transaction.atomic():
            device = (
                Device.objects.select_for_update()
                .filter(pk=device_id, is_active=True)
                .first()
            )
            if device is None:
                raise NotFound("Device not found")
            if actor is not None:
                permissions.require(device, actor, minimum)
            yield device

    def commit(self, device, fields):
        """Persist ``fields`` of a locked device and bump its version."""
        device.version += 1
        device.save(update_fields=sorted(set(fields) | {"version", "updated_at"}))

    def _publish(self, device, actor, event="device-updated"):
        self.hub.device_changed(
            device,
            event,
            {
                "deviceId": device.id,
                "roomId": device.room_id,
                "version": device.version,
                "status": device.status_dict(),
                "device": device.to_dict(),
            },
            actor=actor,
        )

    def _run(self, device_id, actor, mutate, minimum=AccessLevel.WRITE):
        """Lock, mutate, save the fields ``mutate`` returns, then publish."""
        with self.locked(device_id, actor, minimum) as device:
            fields = mutate(device)
            if fields:
                self.commit(device, fields)
        if fields:
            self._publish(device, actor)
        return device

    # ------------------------------------------------------------------
    # Control operations
    # ------------------------------------------------------------------

    def toggle(self, device_id, actor=None) -> Device:
        def mutate(device):
            device.is_on = not device.is_on
            device.last_seen = timezone.now()
            return ["is_on", "last_seen"]

        device = self._run(device_id, actor, mutate)
        logger.info("Device %s turned %s", device.id, "on" if device.is_on else "off")
        return device

    def set_power(self, device, turn_on: bool) -> list:
        """Set power on a locked device. Returns the changed fields."""
        if device.is_on == turn_on:
            return []
        device.is_on = turn_on
        device.last_seen = timezone.now()
        return ["is_on", "last_seen"]

    def set_status(self, device_id, status, actor=None) -> Device:
        changes = _status_changes(status)

        def mutate(device):
            for attr, value in changes.items():
                setattr(device, attr, value)
            device.last_seen = timezone.now()
            return list(changes) + ["last_seen"]

        return self._run(device_id, actor, mutate)

    def set_light(self, device_id, changes, actor=None) -> Device:
        def mutate(device):
            light = expect_variant(device.state, LightState, "Device is not a light")
            device.state = light.updated(changes)
            return ["payload"]

        return self._run(device_id, actor, mutate)

    def set_thermostat(self, device_id, changes, actor=None) -> Device:
        def mutate(device):
            thermostat = expect_variant(device.state, ThermostatState, "Device is not a thermostat")
            device.state = thermostat.updated(changes)
            return ["payload"]

        return self._run(device_id, actor, mutate)

    def set_camera(self, device_id, changes, actor=None) -> Device:
        def mutate(device):
            camera = expect_variant(device.state, CameraState, "Device is not a camera")
            device.state = camera.updated(changes)
            return ["payload"]

        return self._run(device_id, actor, mutate)

    def control(self, device_id, action, value=None, actor=None) -> Device:
        """
        Dispatch a realtime control action.

        Supported actions are listed in CONTROL_ACTIONS; actions that do not
        fit the device's type raise InvalidDeviceType.
        """
        if action not in CONTROL_ACTIONS:
            raise ValidationError(f"Unknown action '{action}'")

        if action == "toggle":
            return self.toggle(device_id, actor)
        if action in ("turnOn", "turnOff"):
            return self._run(device_id, actor, lambda d: self.set_power(d, action == "turnOn"))
        if action == "setBrightness":
            if value is None:
                raise ValidationError("'value' is required for setBrightness")
            return self.set_light(device_id, {"brightness": value}, actor)
        if action == "setColor":
            return self.set_light(device_id, {"color": value}, actor)
        if action == "setTemperature":
            return self.set_thermostat(device_id, {"targetTemp": value}, actor)
        if action == "setMode":
            return self.set_thermostat(device_id, {"mode": value}, actor)
        if action == "setFanSpeed":
            return self.set_thermostat(device_id, {"fanSpeed": value}, actor)
        return self.set_camera(device_id, {"isRecording": action == "startRecording"}, actor)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create(self, data, creator) -> Device:
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        device_type = data.get("type")
        missing = [key for key in ("name", "type", "icon", "room") if not data.get(key)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        payload = build_payload(device_type, data.get(device_type))
        fields = _text_fields(data)
        status = _status_changes(data.get("status") or {})
        room = _active_room(data["room"])

        try:
            with transaction.atomic():
                device = Device(type=device_type, room=room, **fields, **status)
                device.state = payload
                device.save()
                permissions.grant(device, creator, AccessLevel.ADMIN)
        except IntegrityError:
            raise ValidationError("A device with this serial number already exists")

        logger.info("Device %s (%s) created in room %s by %s", device.id, device.type, room.id, creator)
        self._publish(device, creator, event="device-created")
        return device

    def update(self, device_id, data, actor=None) -> Device:
        """Generic field update: names, metadata, room and the device's own payload."""
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        fields = _text_fields(data)
        room = _active_room(data["room"]) if "room" in data else None
        moved_from = []

        def mutate(device):
            if "type" in data and data["type"] != device.type:
                raise ValidationError("Device type cannot be changed")
            foreign = [key for key in ("light", "plug", "thermostat", "camera", "sensor")
                       if key in data and key != device.type]
            if foreign:
                raise InvalidDeviceType(f"Device is not a {foreign[0]}")

            changed = list(fields)
            for attr, value in fields.items():
                setattr(device, attr, value)
            if room is not None and room.id != device.room_id:
                moved_from.append(device.room_id)
                device.room = room
                changed.append("room")
            if device.type in data:
                state = device.state
                if state is None:
                    raise InvalidDeviceType(f"A {device.type} device has no settings")
                device.state = state.updated(data[device.type])
                changed.append("payload")
            return changed

        try:
            device = self._run(device_id, actor, mutate)
        except IntegrityError:
            raise ValidationError("A device with this serial number already exists")

        # Dashboards on the previous room drop the device
        for old_room_id in moved_from:
            self.hub.room_changed(
                old_room_id,
                "device-removed",
                {"deviceId": device.id, "roomId": old_room_id, "movedTo": device.room_id},
            )
        return device

    def deactivate(self, device_id, actor=None) -> Device:
        """Soft delete; the record stays because rooms and permissions reference it."""
        with self.locked(device_id, actor, AccessLevel.ADMIN) as device:
            device.is_active = False
            self.commit(device, ["is_active"])
        logger.info("Device %s deactivated", device.id)
        self._publish(device, actor, event="device-removed")
        return device
