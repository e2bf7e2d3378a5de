import pytest

from apps.smarthome.errors import AccessDenied, NotFound, RoomNotEmpty, ValidationError
from apps.smarthome.models import Device, Room
from apps.smarthome.permissions import AccessLevel
from apps.smarthome.services import DeviceControlService, RoomControlOrchestrator
from apps.smarthome.services import rooms as room_service
from apps.smarthome.services.broadcast import room_group

from .conftest import make_device, make_room


@pytest.fixture
def orchestrator(hub):
    return RoomControlOrchestrator(DeviceControlService(hub), hub)


@pytest.fixture
def office(user):
    office = make_room("Office")
    make_device(office, "light", "Lamp A", is_on=True, owner=user)
    make_device(office, "light", "Lamp B", is_on=True, owner=user)
    make_device(office, "light", "Lamp C", is_on=False, owner=user)
    make_device(office, "thermostat", "Office Thermostat", is_on=True,
                payload={"mode": "auto"}, owner=user)
    make_device(office, "camera", "Office Camera", is_on=True, owner=user)
    make_device(office, "switch", "Fan Switch", is_on=True, owner=user)
    return office


def test_turn_off_counts_changed_devices(orchestrator, office, user):
    report = orchestrator.run(office.id, "turnOff", actor=user)

    assert report["toggledCount"] == 3
    assert report["failedCount"] == 0
    assert len(report["results"]) == 4

    for device in Device.objects.filter(room=office, type__in=["light", "thermostat"]):
        assert device.is_on is False
    thermostat = Device.objects.get(room=office, type="thermostat")
    assert thermostat.state.mode == "off"
    # Excluded types are left alone
    assert Device.objects.get(room=office, type="camera").is_on is True
    assert Device.objects.get(room=office, type="switch").is_on is True


def test_turn_on_twice_is_idempotent(orchestrator, office, user):
    first = orchestrator.run(office.id, "turnOn", actor=user)
    states = list(Device.objects.filter(room=office).order_by("id").values_list("is_on", "payload"))

    second = orchestrator.run(office.id, "turnOn", actor=user)

    assert first["toggledCount"] == 1
    assert second["toggledCount"] == 0
    assert all(r["success"] and not r["changed"] for r in second["results"])
    assert list(Device.objects.filter(room=office).order_by("id").values_list("is_on", "payload")) == states


def test_turn_on_keeps_heat_and_cool_modes(orchestrator, room, user):
    heating = make_device(room, "thermostat", payload={"mode": "heat"}, owner=user)
    idle = make_device(room, "thermostat", payload={"mode": "off"}, owner=user)

    orchestrator.run(room.id, "turnOn", actor=user)

    heating.refresh_from_db()
    idle.refresh_from_db()
    assert (heating.state.mode, heating.is_on) == ("heat", True)
    assert (idle.state.mode, idle.is_on) == ("auto", True)


def test_set_brightness_applies_to_lights_and_plugs(orchestrator, room, user):
    lamp = make_device(room, "light", payload={"brightness": 10}, owner=user)
    plug = make_device(room, "plug", owner=user)
    heater = make_device(room, "thermostat", payload={"mode": "off"}, owner=user)

    report = orchestrator.run(room.id, "setBrightness", 250, actor=user)

    assert report["value"] == 100
    assert {r["deviceId"] for r in report["results"]} == {lamp.id, plug.id}
    lamp.refresh_from_db()
    plug.refresh_from_db()
    heater.refresh_from_db()
    assert (lamp.state.brightness, lamp.is_on, plug.is_on) == (100, True, True)
    assert heater.state.mode == "off"

    orchestrator.run(room.id, "setBrightness", 0, actor=user)
    lamp.refresh_from_db()
    assert (lamp.state.brightness, lamp.is_on) == (0, False)


def test_partial_failure_does_not_stop_the_batch(orchestrator, room, user, other_user):
    mine = make_device(room, "light", "Mine", owner=user)
    theirs = make_device(room, "light", "Theirs", owner=other_user)
    also_mine = make_device(room, "plug", "Also Mine", owner=user)

    report = orchestrator.run(room.id, "turnOn", actor=user)

    outcomes = {r["deviceId"]: r for r in report["results"]}
    assert len(outcomes) == 3
    assert outcomes[theirs.id]["success"] is False
    assert outcomes[theirs.id]["error"] == "Access denied to this device"
    assert outcomes[mine.id]["success"] and outcomes[also_mine.id]["success"]
    assert (report["toggledCount"], report["failedCount"]) == (2, 1)

    theirs.refresh_from_db()
    assert theirs.is_on is False


def test_bulk_control_publishes_one_room_event(orchestrator, office, user, hub, layer):
    hub.connect("dashboard", "chan-dash")
    hub.join("dashboard", room_group(office.id))

    report = orchestrator.run(office.id, "turnOff", actor=user)

    assert layer.events("chan-dash") == ["room-controlled"]
    assert layer.sent[0][1]["data"]["toggledCount"] == report["toggledCount"]


@pytest.mark.parametrize("action, value", [("explode", None), ("setBrightness", None)])
def test_invalid_bulk_requests(orchestrator, office, user, action, value):
    with pytest.raises(ValidationError):
        orchestrator.run(office.id, action, value, actor=user)


def test_nothing_eligible_or_missing_room(orchestrator, room, user):
    make_device(room, "camera", owner=user)
    with pytest.raises(NotFound, match="No toggleable devices"):
        orchestrator.run(room.id, "turnOn", actor=user)
    with pytest.raises(NotFound, match="Room not found"):
        orchestrator.run(987654, "turnOn", actor=user)


def test_guests_cannot_bulk_control(orchestrator, office, guest):
    with pytest.raises(AccessDenied, match="Insufficient permissions"):
        orchestrator.run(office.id, "turnOn", actor=guest)


# ---------------------------------------------------------------------------
# Room maintenance
# ---------------------------------------------------------------------------

def test_room_deletion_blocked_until_devices_are_gone(room, admin_user, hub):
    lamp = make_device(room, "light", owner=admin_user, level=AccessLevel.ADMIN)

    with pytest.raises(RoomNotEmpty, match="Cannot delete room with 1 active devices"):
        room_service.deactivate_room(room.id, admin_user)
    assert Room.objects.get(pk=room.id).is_active is True

    DeviceControlService(hub).deactivate(lamp.id, admin_user)
    assert room_service.deactivate_room(room.id, admin_user).is_active is False


def test_room_deletion_requires_admin_role(room, user):
    with pytest.raises(AccessDenied):
        room_service.deactivate_room(room.id, user)


def test_create_and_update_room(user):
    room = room_service.create_room(
        {"name": "Studio", "icon": "easel", "category": "living-areas",
         "temperature": {"target": 21}, "settings": {"privacyMode": True}},
        user,
    )
    assert (room.temperature_target, room.privacy_mode) == (21, True)

    updated = room_service.update_room(room.id, {"floor": 2, "lighting": {"brightness": 40}}, user)
    assert (updated.floor, updated.lighting_brightness) == (2, 40)

    with pytest.raises(ValidationError, match="Missing required fields"):
        room_service.create_room({"name": "Nowhere"}, user)
    with pytest.raises(ValidationError):
        room_service.update_room(room.id, {"category": "attic"}, user)


def test_ambient_targets_and_occupancy(room, user, hub, layer):
    hub.connect("dashboard", "chan-dash")
    hub.join("dashboard", room_group(room.id))

    room_service.set_temperature(room.id, {"target": 19.5, "unit": "fahrenheit"}, user)
    room_service.set_lighting(room.id, {"brightness": 75, "color": "cool"}, user)
    occupied = room_service.set_occupancy(room.id, {"isOccupied": True, "sensorId": "pir-1"}, user)

    data = occupied.to_dict()
    assert data["temperature"] == {"current": 22, "target": 19.5, "unit": "fahrenheit"}
    assert data["lighting"] == {"brightness": 75, "color": "cool"}
    assert data["occupancy"]["isOccupied"] is True
    assert data["occupancy"]["lastDetected"] is not None
    assert layer.events("chan-dash") == ["room-updated"] * 3

    with pytest.raises(ValidationError):
        room_service.set_occupancy(room.id, {}, user)


def test_room_stats(room, user):
    make_device(room, "plug", is_on=True, payload={"power": 60}, owner=user)
    make_device(room, "plug", payload={"power": 15}, is_online=False, owner=user)
    make_device(room, "thermostat", payload={"currentTemp": 20}, owner=user)
    make_device(room, "thermostat", payload={"currentTemp": 24}, owner=user)

    stats = room_service.room_stats(room.id)

    assert stats["totalDevices"] == 4
    assert stats["onlineDevices"] == 3
    assert stats["activeDevices"] == 1
    assert stats["deviceTypes"] == {"plug": 2, "thermostat": 2}
    assert stats["totalPowerConsumption"] == 75
    assert stats["averageTemperature"] == 22


def test_rooms_for_user(room, user, other_user, admin_user):
    make_device(room, "light", owner=user)
    make_room("Garage", "utility")

    assert [r.name for r in room_service.rooms_for_user(user)] == ["Living Room"]
    assert list(room_service.rooms_for_user(other_user)) == []
    assert [r.name for r in room_service.rooms_for_user(admin_user)] == ["Garage", "Living Room"]
