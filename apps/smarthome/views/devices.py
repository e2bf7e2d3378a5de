"""
SmartHome Dashboard - Device Endpoints

This module provides the JSON endpoints for devices:
    - devices_collection: list (filtered, paginated) and create
    - device_detail: read, generic update and soft delete
    - device_toggle / device_status / device_light / device_thermostat /
      device_camera: single-device control
    - room_devices_toggle / room_devices_control: room bulk control

Device-scoped routes resolve the caller's permission on the device
(read, write or admin). Routes without a device id are role-scoped.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from .. import permissions
from ..errors import NotFound, ValidationError
from ..models import Device, DeviceType, Role
from ..permissions import AccessLevel
from ..ratelimits import ratelimit_control
from ..services import DeviceControlService, RoomControlOrchestrator
from .helpers import api_endpoint, ok, page_params, paginate, parse_json

STATUS_FILTERS = {
    "online": {"is_online": True},
    "offline": {"is_online": False},
    "on": {"is_on": True},
    "off": {"is_on": False},
}


def _readable_device(device_id, user) -> Device:
    device = (
        Device.objects.select_related("room")
        .filter(pk=device_id, is_active=True)
        .first()
    )
    if device is None:
        raise NotFound("Device not found")
    permissions.require(device, user, AccessLevel.READ)
    return device


def list_devices(request):
    """
    GET /api/devices?room=&type=&status=&page=&limit=

    Admins see every active device; everyone else sees the devices they
    hold a permission entry on, matching the READ check of device_detail.
    """
    page, limit = page_params(request)

    qs = Device.objects.filter(is_active=True).select_related("room")
    if not permissions.is_admin(request.user):
        qs = qs.filter(permission_entries__user=request.user)
    room = request.GET.get("room")
    if room:
        if not room.isdigit():
            raise ValidationError("'room' must be a room id")
        qs = qs.filter(room_id=int(room))
    device_type = request.GET.get("type")
    if device_type:
        if device_type not in DeviceType.values:
            raise ValidationError(f"'type' must be one of: {', '.join(DeviceType.values)}")
        qs = qs.filter(type=device_type)
    status = request.GET.get("status")
    if status:
        if status not in STATUS_FILTERS:
            raise ValidationError(f"'status' must be one of: {', '.join(STATUS_FILTERS)}")
        qs = qs.filter(**STATUS_FILTERS[status])

    qs = qs.order_by("-created_at", "-id")
    return ok(paginate(qs, page, limit, lambda d: d.to_dict(include_room=True)))


def create_device(request):
    """
    POST /api/devices

    Role-scoped (admin or user). The creator is granted admin permission
    on the new device.
    """
    permissions.require_role(request.user, Role.ADMIN, Role.USER)
    device = DeviceControlService().create(parse_json(request), request.user)
    return ok(
        {"device": device.to_dict(include_permissions=True)},
        message="Device created successfully",
        status=201,
    )


@ratelimit_control
@api_endpoint("GET", "POST")
def devices_collection(request):
    if request.method == "POST":
        return create_device(request)
    return list_devices(request)


@ratelimit_control
@api_endpoint("GET", "PUT", "DELETE")
def device_detail(request, device_id):
    """
    GET    /api/devices/<id>   (read)
    PUT    /api/devices/<id>   (write) generic field update
    DELETE /api/devices/<id>   (admin) soft delete
    """
    if request.method == "GET":
        device = _readable_device(device_id, request.user)
        return ok({"device": device.to_dict(include_room=True, include_permissions=True)})

    service = DeviceControlService()
    if request.method == "PUT":
        device = service.update(device_id, parse_json(request), request.user)
        return ok({"device": device.to_dict()}, message="Device updated successfully")

    service.deactivate(device_id, request.user)
    return ok(message="Device deactivated successfully")


@ratelimit_control
@api_endpoint("POST")
def device_toggle(request, device_id):
    device = DeviceControlService().toggle(device_id, request.user)
    state = "turned on" if device.is_on else "turned off"
    return ok({"device": device.to_dict()}, message=f"Device {state} successfully")


@ratelimit_control
@api_endpoint("POST")
def device_status(request, device_id):
    device = DeviceControlService().set_status(device_id, parse_json(request), request.user)
    return ok({"device": device.to_dict()}, message="Device status updated successfully")


@ratelimit_control
@api_endpoint("POST")
def device_light(request, device_id):
    """
    POST /api/devices/<id>/light

    Body (any subset):
    {"brightness": 80, "color": "warm", "colorTemperature": 3000,
     "rgb": {"red": 255, "green": 200, "blue": 150}}
    """
    device = DeviceControlService().set_light(device_id, parse_json(request), request.user)
    return ok({"device": device.to_dict()}, message="Light settings updated successfully")


@ratelimit_control
@api_endpoint("POST")
def device_thermostat(request, device_id):
    """
    POST /api/devices/<id>/thermostat

    Body (any subset): {"targetTemp": 21.5, "mode": "heat", "fanSpeed": "low"}
    """
    device = DeviceControlService().set_thermostat(device_id, parse_json(request), request.user)
    return ok({"device": device.to_dict()}, message="Thermostat settings updated successfully")


@ratelimit_control
@api_endpoint("POST")
def device_camera(request, device_id):
    device = DeviceControlService().set_camera(device_id, parse_json(request), request.user)
    return ok({"device": device.to_dict()}, message="Camera settings updated successfully")


@ratelimit_control
@api_endpoint("POST")
def room_devices_toggle(request, room_id):
    """
    POST /api/devices/room/<room_id>/toggle

    Body: {"turnOn": true}

    Turns every light, plug and thermostat of the room on or off. Devices
    that fail are reported per device; the call still answers 200.
    """
    payload = parse_json(request)
    turn_on = payload.get("turnOn")
    if not isinstance(turn_on, bool):
        raise ValidationError("turnOn parameter is required and must be a boolean")

    report = RoomControlOrchestrator().run(
        room_id,
        "turnOn" if turn_on else "turnOff",
        actor=request.user,
    )
    verb = "turned on" if turn_on else "turned off"
    return ok(
        report,
        message=f"Successfully {verb} {report['toggledCount']} devices in room",
    )


@ratelimit_control
@api_endpoint("POST")
def room_devices_control(request, room_id):
    """
    POST /api/devices/room/<room_id>/control

    Body: {"action": "turnOn" | "turnOff" | "setBrightness", "value": 60}
    """
    payload = parse_json(request)
    report = RoomControlOrchestrator().run(
        room_id,
        payload.get("action"),
        payload.get("value"),
        actor=request.user,
    )
    return ok(report, message=f"Room {report['action']} applied to {report['toggledCount']} devices")
