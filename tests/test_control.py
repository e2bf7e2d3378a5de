import threading
import time

import pytest
from django.db import connection

from apps.smarthome.errors import AccessDenied, InvalidDeviceType, NotFound, ValidationError
from apps.smarthome.models import Device
from apps.smarthome.permissions import AccessLevel
from apps.smarthome.services import DeviceControlService
from apps.smarthome.services.broadcast import device_group, room_group

from .conftest import make_device, make_room


@pytest.fixture
def service(hub):
    return DeviceControlService(hub)


def snapshot(device):
    fresh = Device.objects.get(pk=device.pk)
    return (fresh.is_on, fresh.is_online, fresh.payload, fresh.version, fresh.name)


def test_desk_lamp_brightness_does_not_power_on(service, user):
    office = make_room("Office")
    lamp = service.create(
        {"name": "Desk Lamp", "type": "light", "icon": "lamp", "room": office.id,
         "light": {"brightness": 0}},
        user,
    )
    assert lamp.is_on is False

    updated = service.set_light(lamp.id, {"brightness": 80}, user)
    data = updated.to_dict()
    assert data["light"]["brightness"] == 80
    assert data["status"]["isOn"] is False


def test_toggle_twice_restores_power(service, light, user):
    first = service.toggle(light.id, user)
    assert first.is_on is True
    second = service.toggle(light.id, user)
    assert second.is_on is False
    assert second.version == light.version + 2


@pytest.mark.parametrize("operation, changes", [
    ("set_light", {"brightness": 10}),
    ("set_camera", {"isRecording": True}),
])
def test_type_mismatch_leaves_record_unchanged(service, thermostat, user, operation, changes):
    before = snapshot(thermostat)
    with pytest.raises(InvalidDeviceType):
        getattr(service, operation)(thermostat.id, changes, user)
    assert snapshot(thermostat) == before


def test_set_thermostat_on_light_rejected(service, light, user):
    before = snapshot(light)
    with pytest.raises(InvalidDeviceType, match="Device is not a thermostat"):
        service.set_thermostat(light.id, {"targetTemp": 19}, user)
    assert snapshot(light) == before


def test_invalid_value_leaves_record_unchanged(service, light, user):
    before = snapshot(light)
    with pytest.raises(ValidationError):
        service.set_light(light.id, {"color": "ultraviolet"}, user)
    assert snapshot(light) == before


def test_no_permission_is_denied_and_unchanged(service, light, other_user):
    before = snapshot(light)
    with pytest.raises(AccessDenied):
        service.toggle(light.id, other_user)
    assert snapshot(light) == before


def test_read_permission_cannot_write(service, room, other_user):
    lamp = make_device(room, "light", owner=other_user, level=AccessLevel.READ)
    with pytest.raises(AccessDenied):
        service.set_light(lamp.id, {"brightness": 30}, other_user)


def test_admin_role_bypasses_entries(service, light, admin_user):
    assert service.toggle(light.id, admin_user).is_on is True


def test_missing_or_inactive_device(service, light, user):
    with pytest.raises(NotFound):
        service.toggle(999999, user)
    Device.objects.filter(pk=light.pk).update(is_active=False)
    with pytest.raises(NotFound):
        service.toggle(light.id, user)


def test_set_status_merges_fields(service, light, user):
    device = service.set_status(light.id, {"isOnline": False, "batteryLevel": 40}, user)
    assert (device.is_online, device.battery_level, device.is_on) == (False, 40, False)

    with pytest.raises(ValidationError):
        service.set_status(light.id, {"batteryLevel": 140}, user)
    with pytest.raises(ValidationError, match="Unknown status field"):
        service.set_status(light.id, {"colour": "red"}, user)


def test_set_thermostat(service, thermostat, user):
    device = service.set_thermostat(thermostat.id, {"targetTemp": 23.5, "fanSpeed": "high"}, user)
    state = device.state
    assert (state.target_temp, state.fan_speed, state.mode) == (23.5, "high", "heat")


def test_set_camera(service, room, user):
    camera = make_device(room, "camera", owner=user)
    device = service.set_camera(camera.id, {"isRecording": True, "nightVision": False}, user)
    assert device.state.is_recording is True
    assert device.state.night_vision is False


@pytest.mark.parametrize("action, value, check", [
    ("turnOn", None, lambda d: d.is_on),
    ("setBrightness", 150, lambda d: d.state.brightness == 100),
    ("setColor", "cool", lambda d: d.state.color == "cool"),
])
def test_control_actions_on_light(service, light, user, action, value, check):
    assert check(service.control(light.id, action, value, user))


def test_control_thermostat_actions(service, thermostat, user):
    service.control(thermostat.id, "setTemperature", 18, user)
    device = service.control(thermostat.id, "setMode", "cool", user)
    assert (device.state.target_temp, device.state.mode) == (18, "cool")


def test_control_rejects_unknown_and_mismatched(service, light, user):
    with pytest.raises(ValidationError, match="Unknown action"):
        service.control(light.id, "explode", None, user)
    with pytest.raises(InvalidDeviceType):
        service.control(light.id, "startRecording", None, user)


def test_turn_on_already_on_is_a_no_op(service, room, user, layer):
    lamp = make_device(room, "light", is_on=True, owner=user)
    device = service.control(lamp.id, "turnOn", None, user)
    assert device.version == lamp.version
    assert layer.sent == []


def test_create_grants_admin_and_validates(service, room, user):
    plug = service.create(
        {"name": "Kettle", "type": "plug", "icon": "plug", "room": room.id,
         "serialNumber": "KT-1", "plug": {"power": 1500}},
        user,
    )
    assert plug.permission_entries.get().level == "admin"
    assert plug.state.power == 1500

    with pytest.raises(ValidationError, match="Missing required fields"):
        service.create({"name": "x", "type": "plug"}, user)
    with pytest.raises(ValidationError, match="serial number"):
        service.create(
            {"name": "Toaster", "type": "plug", "icon": "plug", "room": room.id,
             "serialNumber": "KT-1"},
            user,
        )
    with pytest.raises(NotFound):
        service.create({"name": "Fan", "type": "switch", "icon": "fan", "room": 424242}, user)


def test_update_fields_and_payload(service, light, user):
    device = service.update(light.id, {"name": "Reading Lamp", "light": {"color": "white"}}, user)
    assert device.name == "Reading Lamp"
    assert device.state.color == "white"
    assert device.state.brightness == 50


def test_update_cannot_change_type_or_foreign_payload(service, light, user):
    before = snapshot(light)
    with pytest.raises(ValidationError, match="Device type cannot be changed"):
        service.update(light.id, {"type": "plug"}, user)
    with pytest.raises(InvalidDeviceType):
        service.update(light.id, {"name": "Oops", "thermostat": {"mode": "off"}}, user)
    assert snapshot(light) == before


def test_deactivate_requires_admin_level(service, room, user, other_user):
    lamp = make_device(room, "light", owner=other_user, level=AccessLevel.WRITE)
    with pytest.raises(AccessDenied):
        service.deactivate(lamp.id, other_user)

    owned = make_device(room, "light", owner=user)
    assert service.deactivate(owned.id, user).is_active is False


def test_changes_are_published_to_room_and_device(service, light, user, hub, layer):
    hub.connect("room-watcher", "chan-room")
    hub.join("room-watcher", room_group(light.room_id))
    hub.connect("device-watcher", "chan-device")
    hub.join("device-watcher", device_group(light.id))
    hub.connect("elsewhere", "chan-other")
    hub.join("elsewhere", room_group(light.room_id + 1000))

    device = service.toggle(light.id, user)

    assert layer.events("chan-room") == ["device-updated"]
    assert layer.events("chan-device") == ["device-updated"]
    assert layer.events("chan-other") == []
    payload = layer.sent[0][1]["data"]
    assert payload["deviceId"] == device.id
    assert payload["version"] == device.version
    assert payload["status"]["isOn"] is True


def test_moving_a_device_tells_the_old_room(service, light, user, layer, hub):
    kitchen = make_room("Kitchen")
    old_room_id = light.room_id
    hub.connect("old-room", "chan-old")
    hub.join("old-room", room_group(old_room_id))
    hub.connect("new-room", "chan-new")
    hub.join("new-room", room_group(kitchen.id))

    device = service.update(light.id, {"room": kitchen.id}, user)

    assert device.room_id == kitchen.id
    assert layer.events("chan-old") == ["device-removed"]
    assert layer.events("chan-new") == ["device-updated"]
    removed = next(message["data"] for name, message in layer.sent if name == "chan-old")
    assert removed == {"deviceId": light.id, "roomId": old_room_id, "movedTo": kitchen.id}


def test_update_in_same_room_sends_no_removal(service, light, user, layer, hub):
    hub.connect("old-room", "chan-old")
    hub.join("old-room", room_group(light.room_id))

    service.update(light.id, {"room": light.room_id, "name": "Lamp"}, user)
    assert layer.events("chan-old") == ["device-updated"]


@pytest.mark.parametrize("room_value", ["abc", [1], {"id": 1}, True, "1.5"])
def test_malformed_room_id_is_a_validation_error(service, light, user, room_value):
    before = snapshot(light)
    with pytest.raises(ValidationError, match="'room' must be a room id"):
        service.update(light.id, {"room": room_value}, user)
    with pytest.raises(ValidationError, match="'room' must be a room id"):
        service.create({"name": "Fan", "type": "switch", "icon": "fan", "room": room_value}, user)
    assert snapshot(light) == before


def test_room_id_may_be_a_numeric_string(service, light, user):
    kitchen = make_room("Kitchen")
    assert service.update(light.id, {"room": str(kitchen.id)}, user).room_id == kitchen.id


@pytest.mark.django_db(transaction=True)
def test_concurrent_writers_on_one_device_both_land(light, user, hub):
    start = Device.objects.get(pk=light.pk).version
    entered = threading.Event()
    errors = []

    def slow_brightness():
        try:
            service = DeviceControlService(hub)
            with service.locked(light.id, user) as device:
                entered.set()
                time.sleep(0.2)
                device.state = device.state.updated({"brightness": 80})
                service.commit(device, ["payload"])
        except Exception as exc:
            errors.append(exc)
        finally:
            entered.set()
            connection.close()

    def color_change():
        try:
            entered.wait(5)
            DeviceControlService(hub).set_light(light.id, {"color": "cool"}, user)
        except Exception as exc:
            errors.append(exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=slow_brightness), threading.Thread(target=color_change)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(30)

    assert errors == []
    device = Device.objects.get(pk=light.pk)
    assert (device.state.brightness, device.state.color) == (80, "cool")
    assert device.version == start + 2
