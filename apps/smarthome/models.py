"""
SmartHome Dashboard - Database Models

This module defines the data models for the SmartHome dashboard:
    - UserProfile: Per-user global role (admin / user / guest)
    - Room: Physical space with ambient targets and occupancy
    - Device: Smart-home unit of a fixed type, owned by a room
    - DevicePermission: Per-device, per-user access level

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from .errors import InvalidDeviceType
from .payloads import BARE_TYPES, PAYLOAD_TYPES


def _iso(value):
    return value.isoformat() if value else None


# ============================================================================
# USERS
# ============================================================================

class Role(models.TextChoices):
    ADMIN = "admin", "Admin"
    USER = "user", "User"
    GUEST = "guest", "Guest"


class UserProfile(models.Model):
    """
    Global role of a dashboard user. Admins bypass device-level permissions.
    """
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="home_profile",
    )
    role = models.CharField(max_length=10, choices=Role.choices, default=Role.USER)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "User Profile"
        verbose_name_plural = "User Profiles"

    def __str__(self):
        return f"{self.user.username} - {self.get_role_display()}"


# ============================================================================
# ROOMS
# ============================================================================

class RoomCategory(models.TextChoices):
    LIVING_AREAS = "living-areas", "Living areas"
    BEDROOMS = "bedrooms", "Bedrooms"
    BATHROOMS = "bathrooms", "Bathrooms"
    UTILITY = "utility", "Utility"
    OUTDOOR = "outdoor", "Outdoor"
    SECURITY = "security", "Security"


class Room(models.Model):
    name = models.CharField(max_length=100)
    icon = models.CharField(max_length=32)
    category = models.CharField(max_length=20, choices=RoomCategory.choices)
    description = models.TextField(blank=True)
    floor = models.IntegerField(default=1)
    area = models.FloatField(null=True, blank=True)  # m²

    # Climate targets
    temperature_current = models.FloatField(default=22)
    temperature_target = models.FloatField(default=22)
    temperature_unit = models.CharField(
        max_length=12,
        choices=[("celsius", "Celsius"), ("fahrenheit", "Fahrenheit")],
        default="celsius",
    )
    humidity_current = models.FloatField(default=50)
    humidity_target = models.FloatField(default=50)

    # Lighting target
    lighting_brightness = models.IntegerField(default=0)
    lighting_color = models.CharField(max_length=8, default="warm")

    # Occupancy
    is_occupied = models.BooleanField(default=False)
    occupancy_last_detected = models.DateTimeField(null=True, blank=True)
    occupancy_sensor_id = models.CharField(max_length=64, blank=True)

    # Automation preferences
    auto_lighting = models.BooleanField(default=True)
    auto_climate = models.BooleanField(default=True)
    privacy_mode = models.BooleanField(default=False)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["category", "is_active"], name="room_category_active_idx"),
            models.Index(fields=["name"], name="room_name_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.category})"

    def summary(self):
        """Short form embedded in device listings."""
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "category": self.category,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "category": self.category,
            "description": self.description,
            "floor": self.floor,
            "area": self.area,
            "temperature": {
                "current": self.temperature_current,
                "target": self.temperature_target,
                "unit": self.temperature_unit,
            },
            "humidity": {
                "current": self.humidity_current,
                "target": self.humidity_target,
            },
            "lighting": {
                "brightness": self.lighting_brightness,
                "color": self.lighting_color,
            },
            "occupancy": {
                "isOccupied": self.is_occupied,
                "lastDetected": _iso(self.occupancy_last_detected),
                "sensorId": self.occupancy_sensor_id or None,
            },
            "settings": {
                "autoLighting": self.auto_lighting,
                "autoClimate": self.auto_climate,
                "privacyMode": self.privacy_mode,
            },
            "isActive": self.is_active,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


# ============================================================================
# DEVICES
# ============================================================================

class DeviceType(models.TextChoices):
    LIGHT = "light", "Light"
    PLUG = "plug", "Plug"
    THERMOSTAT = "thermostat", "Thermostat"
    CAMERA = "camera", "Camera"
    SENSOR = "sensor", "Sensor"
    SWITCH = "switch", "Switch"


class Device(models.Model):
    name = models.CharField(max_length=100)
    type = models.CharField(max_length=16, choices=DeviceType.choices)
    icon = models.CharField(max_length=32)
    room = models.ForeignKey(Room, related_name="devices", on_delete=models.PROTECT)

    manufacturer = models.CharField(max_length=100, blank=True)
    hardware_model = models.CharField(max_length=100, blank=True)
    serial_number = models.CharField(max_length=64, unique=True, null=True, blank=True)
    firmware_version = models.CharField(max_length=32, blank=True)

    # Status
    is_online = models.BooleanField(default=True)
    is_on = models.BooleanField(default=False)
    last_seen = models.DateTimeField(default=timezone.now)
    battery_level = models.IntegerField(null=True, blank=True)
    signal_strength = models.IntegerField(null=True, blank=True)

    # Type-specific block, stored in wire format; see payloads.py
    payload = models.JSONField(default=dict, blank=True)

    tags = models.JSONField(default=list, blank=True)
    notes = models.TextField(blank=True)

    is_active = models.BooleanField(default=True)

    # Bumped on every write so clients can order the updates they receive
    version = models.PositiveIntegerField(default=1)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["room", "type", "is_active"], name="device_room_type_active_idx"),
            models.Index(fields=["is_online"], name="device_online_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.type})"

    @property
    def state(self):
        """The typed payload for this device, or None for bare types."""
        variant = PAYLOAD_TYPES.get(self.type)
        if variant is None:
            return None
        return variant.from_dict(self.payload)

    @state.setter
    def state(self, value):
        if self.type in BARE_TYPES:
            if value is not None:
                raise InvalidDeviceType(f"A {self.type} device has no settings")
            self.payload = {}
            return
        if value is None or value.kind != self.type:
            raise InvalidDeviceType(f"Device is not a {getattr(value, 'kind', 'payload-less device')}")
        self.payload = value.to_dict()

    def status_dict(self):
        return {
            "isOnline": self.is_online,
            "isOn": self.is_on,
            "lastSeen": _iso(self.last_seen),
            "batteryLevel": self.battery_level,
            "signalStrength": self.signal_strength,
        }

    def permission_list(self):
        return [
            {
                "user": entry.user_id,
                "username": entry.user.username,
                "level": entry.level,
            }
            for entry in self.permission_entries.select_related("user").order_by("id")
        ]

    def to_dict(self, include_room=False, include_permissions=False):
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "icon": self.icon,
            "room": self.room.summary() if include_room else self.room_id,
            "manufacturer": self.manufacturer or None,
            "hardwareModel": self.hardware_model or None,
            "serialNumber": self.serial_number,
            "firmwareVersion": self.firmware_version or None,
            "status": self.status_dict(),
            "tags": list(self.tags or []),
            "notes": self.notes,
            "isActive": self.is_active,
            "version": self.version,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }
        state = self.state
        if state is not None:
            data[self.type] = state.to_dict()
        if include_permissions:
            data["permissions"] = {"users": self.permission_list()}
        return data


class AccessLevelChoice(models.TextChoices):
    READ = "read", "Read"
    WRITE = "write", "Write"
    ADMIN = "admin", "Admin"


class DevicePermission(models.Model):
    device = models.ForeignKey(
        Device,
        on_delete=models.CASCADE,
        related_name="permission_entries",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="device_permissions",
    )
    level = models.CharField(
        max_length=8,
        choices=AccessLevelChoice.choices,
        default=AccessLevelChoice.READ,
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.UniqueConstraint(fields=["device", "user"], name="unique_device_user_permission"),
        ]

    def __str__(self):
        return f"{self.user} -> {self.device.name} ({self.level})"
