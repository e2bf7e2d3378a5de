"""
Room services: bulk control and room maintenance.

RoomControlOrchestrator applies one coarse action (turnOn, turnOff,
setBrightness) to every eligible device of a room. Each device is locked,
checked and written on its own, and its outcome is recorded; one device
failing never stops the rest. A single room-level event carrying the whole
report is broadcast at the end.

The module-level functions cover the rest of the room lifecycle: creating
and updating rooms, ambient targets, occupancy, statistics and the guarded
deactivation.
"""

import logging

from django.db import DatabaseError, transaction
from django.utils import timezone

from .. import permissions
from ..errors import InvalidDeviceType, NotFound, RoomNotEmpty, SmartHomeError, ValidationError
from ..models import Device, Role, Room, RoomCategory
from ..payloads import LIGHT_COLORS, ThermostatState, clamp_brightness
from .broadcast import get_hub
from .control import DeviceControlService

logger = logging.getLogger(__name__)

BULK_ACTIONS = ("turnOn", "turnOff", "setBrightness")

# Device types taking part in each bulk action.
ELIGIBLE_TYPES = {
    "turnOn": ("light", "plug", "thermostat"),
    "turnOff": ("light", "plug", "thermostat"),
    "setBrightness": ("light", "plug"),
}


def get_room(room_id) -> Room:
    room = Room.objects.filter(pk=room_id, is_active=True).first()
    if room is None:
        raise NotFound("Room not found")
    return room


# ---------------------------------------------------------------------------
# Bulk control
# ---------------------------------------------------------------------------

class RoomControlOrchestrator:

    def __init__(self, control=None, hub=None):
        self.hub = hub or get_hub()
        self.control = control or DeviceControlService(self.hub)

    @staticmethod
    def _validate(action, value):
        if action not in BULK_ACTIONS:
            raise ValidationError(f"Unknown room action '{action}'")
        if action == "setBrightness":
            if value is None:
                raise ValidationError("'value' is required for setBrightness")
            return clamp_brightness(value)
        if action == "turnOn" and value is not None:
            return clamp_brightness(value)
        return None

    def _apply(self, device, action, value) -> list:
        """Mutate a locked device for ``action``; returns the changed fields."""
        if device.type == "thermostat":
            return self._apply_thermostat(device, action == "turnOn")

        if device.type not in ("light", "plug"):
            raise InvalidDeviceType(f"A {device.type} cannot be bulk controlled")

        if action == "setBrightness":
            fields = self.control.set_power(device, value > 0)
        else:
            fields = self.control.set_power(device, action == "turnOn")

        if device.type == "light" and value is not None:
            light = device.state
            if light.brightness != value:
                device.state = light.updated({"brightness": value})
                fields.append("payload")
        return fields

    def _apply_thermostat(self, device, turn_on) -> list:
        thermostat = device.state
        if not isinstance(thermostat, ThermostatState):
            raise InvalidDeviceType("Device is not a thermostat")

        # heat/cool survive a turnOn; only "off" is switched to "auto"
        if turn_on:
            mode = "auto" if thermostat.mode == "off" else thermostat.mode
        else:
            mode = "off"

        fields = []
        if mode != thermostat.mode:
            device.state = thermostat.updated({"mode": mode})
            fields.append("payload")
        fields += self.control.set_power(device, turn_on)
        return fields

    def run(self, room_id, action, value=None, actor=None) -> dict:
        """
        Apply ``action`` to every eligible device in the room.

        Returns the aggregate report:
        {
            "roomId": 3, "action": "turnOff", "value": None,
            "results": [{"deviceId", "name", "type", "success", "changed", "error"?}],
            "devices": [...changed device states...],
            "toggledCount": 2, "failedCount": 0
        }

        Raises NotFound when the room is missing or has no eligible devices.
        """
        value = self._validate(action, value)
        if actor is not None:
            permissions.require_role(actor, Role.ADMIN, Role.USER)
        room = get_room(room_id)

        devices = list(
            Device.objects.filter(
                room=room,
                is_active=True,
                type__in=ELIGIBLE_TYPES[action],
            ).order_by("id")
        )
        if not devices:
            raise NotFound("No toggleable devices found in this room")

        results = []
        changed_devices = []
        for candidate in devices:
            outcome = {
                "deviceId": candidate.id,
                "name": candidate.name,
                "type": candidate.type,
            }
            try:
                with self.control.locked(candidate.id, actor) as device:
                    fields = self._apply(device, action, value)
                    if fields:
                        self.control.commit(device, fields)
            except SmartHomeError as exc:
                outcome.update(success=False, changed=False, error=exc.message)
            except DatabaseError:
                logger.exception("Bulk %s failed for device %s", action, candidate.id)
                outcome.update(success=False, changed=False, error="Failed to update device")
            else:
                outcome.update(success=True, changed=bool(fields))
                if fields:
                    changed_devices.append(device.to_dict())
            results.append(outcome)

        failed = sum(1 for r in results if not r["success"])
        report = {
            "roomId": room.id,
            "action": action,
            "value": value,
            "results": results,
            "devices": changed_devices,
            "toggledCount": len(changed_devices),
            "failedCount": failed,
        }

        logger.info(
            "Room %s %s: %d device(s), %d changed, %d failed",
            room.id, action, len(results), len(changed_devices), failed,
        )
        self.hub.room_changed(room.id, "room-controlled", report, actor=actor)
        return report


# ---------------------------------------------------------------------------
# Room maintenance
# ---------------------------------------------------------------------------

def _number(name, value, minimum=None, maximum=None):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{name}' must be a number")
    if minimum is not None and value < minimum:
        raise ValidationError(f"'{name}' must be at least {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"'{name}' must be at most {maximum}")
    return value


def _flag(name, value):
    if not isinstance(value, bool):
        raise ValidationError(f"'{name}' must be a boolean")
    return value


def _string(name, value, required=False):
    if not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string")
    value = value.strip()
    if required and not value:
        raise ValidationError(f"'{name}' cannot be empty")
    return value


def _section(data, name):
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValidationError(f"'{name}' must be an object")
    return section


def _temperature_changes(section):
    changes = {}
    if "current" in section:
        changes["temperature_current"] = _number("temperature.current", section["current"])
    if "target" in section:
        changes["temperature_target"] = _number("temperature.target", section["target"])
    if section.get("unit"):
        if section["unit"] not in ("celsius", "fahrenheit"):
            raise ValidationError("'temperature.unit' must be celsius or fahrenheit")
        changes["temperature_unit"] = section["unit"]
    return changes


def _lighting_changes(section):
    changes = {}
    if "brightness" in section:
        changes["lighting_brightness"] = int(_number("lighting.brightness", section["brightness"], 0, 100))
    if section.get("color"):
        if section["color"] not in LIGHT_COLORS:
            raise ValidationError(f"'lighting.color' must be one of: {', '.join(LIGHT_COLORS)}")
        changes["lighting_color"] = section["color"]
    return changes


def _room_changes(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    changes = {}
    if "name" in data:
        changes["name"] = _string("name", data["name"], required=True)
    if "icon" in data:
        changes["icon"] = _string("icon", data["icon"], required=True)
    if "category" in data:
        if data["category"] not in RoomCategory.values:
            raise ValidationError(f"'category' must be one of: {', '.join(RoomCategory.values)}")
        changes["category"] = data["category"]
    if "description" in data:
        changes["description"] = _string("description", data["description"])
    if "floor" in data:
        changes["floor"] = int(_number("floor", data["floor"]))
    if "area" in data:
        changes["area"] = None if data["area"] is None else _number("area", data["area"], 0)

    changes.update(_temperature_changes(_section(data, "temperature")))
    humidity = _section(data, "humidity")
    for key in ("current", "target"):
        if key in humidity:
            changes[f"humidity_{key}"] = _number(f"humidity.{key}", humidity[key], 0, 100)
    changes.update(_lighting_changes(_section(data, "lighting")))

    settings = _section(data, "settings")
    for key, attr in (("autoLighting", "auto_lighting"),
                      ("autoClimate", "auto_climate"),
                      ("privacyMode", "privacy_mode")):
        if key in settings:
            changes[attr] = _flag(f"settings.{key}", settings[key])
    return changes


def _save_room(room, changes, actor=None, event="room-updated"):
    for attr, value in changes.items():
        setattr(room, attr, value)
    room.save()
    get_hub().room_changed(room.id, event, {"roomId": room.id, "room": room.to_dict()}, actor=actor)
    return room


def create_room(data, actor=None) -> Room:
    changes = _room_changes(data)
    missing = [key for key in ("name", "icon", "category") if key not in changes]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    room = Room.objects.create(**changes)
    logger.info("Room %s (%s) created", room.id, room.name)
    get_hub().home_changed("room-created", {"roomId": room.id, "room": room.to_dict()})
    return room


def update_room(room_id, data, actor=None) -> Room:
    changes = _room_changes(data)
    with transaction.atomic():
        room = get_room(room_id)
        return _save_room(room, changes, actor)


def set_temperature(room_id, data, actor=None) -> Room:
    with transaction.atomic():
        room = get_room(room_id)
        return _save_room(room, _temperature_changes(data or {}), actor)


def set_lighting(room_id, data, actor=None) -> Room:
    with transaction.atomic():
        room = get_room(room_id)
        return _save_room(room, _lighting_changes(data or {}), actor)


def set_occupancy(room_id, data, actor=None) -> Room:
    data = data or {}
    if "isOccupied" not in data:
        raise ValidationError("'isOccupied' is required")
    changes = {
        "is_occupied": _flag("isOccupied", data["isOccupied"]),
        "occupancy_last_detected": timezone.now(),
    }
    if data.get("sensorId"):
        changes["occupancy_sensor_id"] = _string("sensorId", data["sensorId"])

    with transaction.atomic():
        room = get_room(room_id)
        return _save_room(room, changes, actor)


def deactivate_room(room_id, actor=None) -> Room:
    """
    Soft delete a room. Rejected while the room still owns active devices.
    """
    if actor is not None:
        permissions.require_role(actor, Role.ADMIN)

    with transaction.atomic():
        room = Room.objects.select_for_update().filter(pk=room_id, is_active=True).first()
        if room is None:
            raise NotFound("Room not found")
        device_count = Device.objects.filter(room=room, is_active=True).count()
        if device_count > 0:
            raise RoomNotEmpty(device_count)
        room.is_active = False
        room.save(update_fields=["is_active", "updated_at"])

    logger.info("Room %s deactivated", room.id)
    get_hub().room_changed(room.id, "room-removed", {"roomId": room.id}, actor=actor)
    return room


def room_stats(room_id) -> dict:
    room = get_room(room_id)
    devices = list(Device.objects.filter(room=room, is_active=True))

    device_types = {}
    for device in devices:
        device_types[device.type] = device_types.get(device.type, 0) + 1

    thermostats = [d.state for d in devices if d.type == "thermostat"]
    power = sum(d.state.power for d in devices if d.type == "plug")

    return {
        "totalDevices": len(devices),
        "onlineDevices": sum(1 for d in devices if d.is_online),
        "activeDevices": sum(1 for d in devices if d.is_on),
        "deviceTypes": device_types,
        "totalPowerConsumption": power,
        "averageTemperature": (
            sum(t.current_temp for t in thermostats) / max(len(thermostats), 1)
        ),
    }


def rooms_for_user(user):
    """
    Active rooms a user's dashboard should follow: every room for admins,
    otherwise the rooms holding active devices the user has a permission on.
    """
    rooms = Room.objects.filter(is_active=True)
    if permissions.is_admin(user):
        return rooms.order_by("name")
    return rooms.filter(
        devices__is_active=True,
        devices__permission_entries__user=user,
    ).distinct().order_by("name")
