"""
SmartHome Dashboard - Demo Data Command

Replaces all rooms, devices and permissions with a small demo home and
creates (or resets) an admin account to log in with.

Usage:
    python manage.py seed_home
    python manage.py seed_home --username demo --password secret123

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from apps.smarthome import permissions
from apps.smarthome.models import Device, DevicePermission, Role, Room, UserProfile
from apps.smarthome.payloads import build_payload
from apps.smarthome.permissions import AccessLevel

ROOMS = [
    {"name": "Living Room", "icon": "sofa", "category": "living-areas", "floor": 1, "area": 25,
     "temperature_current": 22, "temperature_target": 22, "humidity_current": 45,
     "lighting_brightness": 60, "lighting_color": "warm", "is_occupied": True},
    {"name": "Kitchen", "icon": "kitchen", "category": "living-areas", "floor": 1, "area": 18,
     "temperature_current": 24, "temperature_target": 22, "humidity_current": 55,
     "lighting_brightness": 80, "lighting_color": "white"},
    {"name": "Master Bedroom", "icon": "bed", "category": "bedrooms", "floor": 2, "area": 20,
     "temperature_current": 21, "temperature_target": 20, "lighting_brightness": 30,
     "privacy_mode": True},
    {"name": "Bathroom", "icon": "shower", "category": "bathrooms", "floor": 2, "area": 8,
     "temperature_current": 25, "temperature_target": 24, "humidity_current": 65,
     "humidity_target": 60, "lighting_brightness": 70, "lighting_color": "white"},
    {"name": "Garage", "icon": "car", "category": "utility", "floor": 0, "area": 30,
     "temperature_current": 15, "temperature_target": 18, "auto_climate": False},
    {"name": "Security", "icon": "lock", "category": "security", "floor": 1, "area": 8,
     "auto_lighting": False, "privacy_mode": True},
]

# (room name, device name, type, is_on, payload, serial)
DEVICES = [
    ("Living Room", "Main Light", "light", True,
     {"brightness": 80, "color": "warm", "colorTemperature": 2700}, "LR-LIGHT-001"),
    ("Living Room", "Floor Lamp", "light", False,
     {"brightness": 40, "color": "warm", "colorTemperature": 2700}, "LR-LIGHT-002"),
    ("Living Room", "TV Plug", "plug", True,
     {"power": 95, "voltage": 120, "current": 0.8}, "LR-PLUG-001"),
    ("Living Room", "Thermostat", "thermostat", True,
     {"currentTemp": 22, "targetTemp": 22, "mode": "auto"}, "LR-THERM-001"),
    ("Kitchen", "Ceiling Light", "light", True,
     {"brightness": 90, "color": "white"}, "KT-LIGHT-001"),
    ("Kitchen", "Coffee Maker", "plug", False, {"power": 0}, "KT-PLUG-001"),
    ("Master Bedroom", "Bedside Lamp", "light", False,
     {"brightness": 20, "color": "warm"}, "MB-LIGHT-001"),
    ("Master Bedroom", "Bedroom Thermostat", "thermostat", False,
     {"currentTemp": 21, "targetTemp": 20, "mode": "off"}, "MB-THERM-001"),
    ("Bathroom", "Humidity Sensor", "sensor", True,
     {"sensorType": "humidity", "value": 65, "unit": "%", "threshold": 70}, "BT-SENS-001"),
    ("Bathroom", "Fan Switch", "switch", False, None, "BT-SW-001"),
    ("Garage", "Garage Light", "light", False,
     {"brightness": 60, "color": "white"}, "GR-LIGHT-001"),
    ("Garage", "Door Switch", "switch", False, None, "GR-SW-001"),
    ("Security", "Front Door Camera", "camera", True,
     {"isRecording": True, "resolution": "1080p", "nightVision": True}, "SC-CAM-001"),
    ("Security", "Hallway Motion", "sensor", True,
     {"sensorType": "motion", "isTriggered": False}, "SC-SENS-001"),
]


class Command(BaseCommand):
    help = "Replace all home data with a demo home and an admin account"

    def add_arguments(self, parser):
        parser.add_argument("--username", default="admin")
        parser.add_argument("--password", default="password123")

    @transaction.atomic
    def handle(self, *args, **options):
        User = get_user_model()

        DevicePermission.objects.all().delete()
        Device.objects.all().delete()
        Room.objects.all().delete()

        user, created = User.objects.get_or_create(
            username=options["username"],
            defaults={"email": f"{options['username']}@example.com"},
        )
        user.set_password(options["password"])
        user.save()
        UserProfile.objects.update_or_create(user=user, defaults={"role": Role.ADMIN})

        rooms = {fields["name"]: Room.objects.create(**fields) for fields in ROOMS}

        for room_name, name, device_type, is_on, payload, serial in DEVICES:
            device = Device(
                name=name,
                type=device_type,
                icon=device_type,
                room=rooms[room_name],
                is_on=is_on,
                serial_number=serial,
            )
            device.state = build_payload(device_type, payload)
            device.save()
            permissions.grant(device, user, AccessLevel.ADMIN)

        verb = "Created" if created else "Reset"
        self.stdout.write(self.style.SUCCESS(
            f"{verb} admin '{user.username}'; seeded {len(rooms)} rooms and {len(DEVICES)} devices"
        ))
