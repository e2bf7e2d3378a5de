"""
SmartHome Dashboard - Device Payload Variants

Each device type carries its own state block (brightness for lights,
setpoint for thermostats, ...). The blocks are modelled as one dataclass per
type; a device holds exactly one of them, keyed by its ``type``. Switches
have no payload.

Payloads are immutable: ``updated()`` validates a partial change set and
returns a complete new payload, so a control operation always writes the
whole block at once.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from dataclasses import asdict, dataclass, field, replace
from typing import ClassVar, Optional

from .errors import InvalidDeviceType, ValidationError


LIGHT_COLORS = ("warm", "cool", "white")
THERMOSTAT_MODES = ("heat", "cool", "auto", "off")
FAN_SPEEDS = ("low", "medium", "high", "auto")
SENSOR_TYPES = ("motion", "temperature", "humidity", "light", "smoke", "co2")


# ---------------------------------------------------------------------------
# Field coercion helpers
# ---------------------------------------------------------------------------

def _number(name, value, minimum=None, maximum=None, clamp=False):
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"'{name}' must be a number")
    if clamp:
        if minimum is not None:
            value = max(minimum, value)
        if maximum is not None:
            value = min(maximum, value)
        return value
    if minimum is not None and value < minimum:
        raise ValidationError(f"'{name}' must be at least {minimum}")
    if maximum is not None and value > maximum:
        raise ValidationError(f"'{name}' must be at most {maximum}")
    return value


def _choice(name, value, choices):
    if value not in choices:
        raise ValidationError(f"'{name}' must be one of: {', '.join(choices)}")
    return value


def _flag(name, value):
    if not isinstance(value, bool):
        raise ValidationError(f"'{name}' must be a boolean")
    return value


def _text(name, value):
    if not isinstance(value, str):
        raise ValidationError(f"'{name}' must be a string")
    return value


def clamp_brightness(value):
    """Coerce a brightness value into the 0-100 range."""
    return int(round(_number("brightness", value, 0, 100, clamp=True)))


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------

class DevicePayload:
    """Common behaviour for the per-type payload dataclasses."""

    kind: ClassVar[str] = ""

    # camelCase wire key -> (attribute, coercer)
    FIELDS: ClassVar[dict] = {}

    @classmethod
    def coerce(cls, changes: dict) -> dict:
        """Validate a wire-format change set, returning attribute kwargs."""
        if not isinstance(changes, dict):
            raise ValidationError(f"'{cls.kind}' settings must be an object")
        unknown = sorted(set(changes) - set(cls.FIELDS))
        if unknown:
            raise ValidationError(
                f"Unknown {cls.kind} field(s): {', '.join(unknown)}"
            )
        kwargs = {}
        for key, value in changes.items():
            attr, coercer = cls.FIELDS[key]
            kwargs[attr] = None if value is None and attr in cls.OPTIONAL else coercer(key, value)
        return kwargs

    OPTIONAL: ClassVar[tuple] = ()

    @classmethod
    def from_dict(cls, data: Optional[dict]):
        return cls(**cls.coerce(data or {}))

    def updated(self, changes: dict):
        return replace(self, **self.coerce(changes))

    def to_dict(self) -> dict:
        raw = asdict(self)
        return {key: raw[attr] for key, (attr, _) in self.FIELDS.items()}


def _rgb(name, value):
    if not isinstance(value, dict):
        raise ValidationError(f"'{name}' must be an object with red, green and blue")
    unknown = sorted(set(value) - {"red", "green", "blue"})
    if unknown:
        raise ValidationError(f"Unknown rgb channel(s): {', '.join(unknown)}")
    return {
        channel: int(_number(f"rgb.{channel}", value.get(channel, 255), 0, 255))
        for channel in ("red", "green", "blue")
    }


@dataclass(frozen=True)
class LightState(DevicePayload):
    kind: ClassVar[str] = "light"
    FIELDS: ClassVar[dict] = {
        "brightness": ("brightness", lambda n, v: clamp_brightness(v)),
        "color": ("color", lambda n, v: _choice(n, v, LIGHT_COLORS)),
        "colorTemperature": ("color_temperature", lambda n, v: int(_number(n, v, 2000, 6500))),
        "rgb": ("rgb", _rgb),
    }
    OPTIONAL: ClassVar[tuple] = ("color_temperature",)

    brightness: int = 0
    color: str = "warm"
    color_temperature: Optional[int] = None
    rgb: dict = field(default_factory=lambda: {"red": 255, "green": 255, "blue": 255})


@dataclass(frozen=True)
class PlugState(DevicePayload):
    kind: ClassVar[str] = "plug"
    FIELDS: ClassVar[dict] = {
        "power": ("power", lambda n, v: _number(n, v, 0)),
        "voltage": ("voltage", lambda n, v: _number(n, v, 0)),
        "current": ("current", lambda n, v: _number(n, v, 0)),
        "energyConsumption": ("energy_consumption", lambda n, v: _number(n, v, 0)),
    }

    power: float = 0
    voltage: float = 120
    current: float = 0
    energy_consumption: float = 0


@dataclass(frozen=True)
class ThermostatState(DevicePayload):
    kind: ClassVar[str] = "thermostat"
    FIELDS: ClassVar[dict] = {
        "currentTemp": ("current_temp", _number),
        "targetTemp": ("target_temp", _number),
        "mode": ("mode", lambda n, v: _choice(n, v, THERMOSTAT_MODES)),
        "fanSpeed": ("fan_speed", lambda n, v: _choice(n, v, FAN_SPEEDS)),
    }

    current_temp: float = 22
    target_temp: float = 22
    mode: str = "auto"
    fan_speed: str = "auto"


@dataclass(frozen=True)
class CameraState(DevicePayload):
    kind: ClassVar[str] = "camera"
    FIELDS: ClassVar[dict] = {
        "isRecording": ("is_recording", _flag),
        "isMotion": ("is_motion", _flag),
        "resolution": ("resolution", _text),
        "nightVision": ("night_vision", _flag),
        "recordingPath": ("recording_path", _text),
    }
    OPTIONAL: ClassVar[tuple] = ("recording_path",)

    is_recording: bool = False
    is_motion: bool = False
    resolution: str = "1080p"
    night_vision: bool = True
    recording_path: Optional[str] = None


@dataclass(frozen=True)
class SensorState(DevicePayload):
    kind: ClassVar[str] = "sensor"
    FIELDS: ClassVar[dict] = {
        "sensorType": ("sensor_type", lambda n, v: _choice(n, v, SENSOR_TYPES)),
        "value": ("value", _number),
        "unit": ("unit", _text),
        "threshold": ("threshold", _number),
        "isTriggered": ("is_triggered", _flag),
    }
    OPTIONAL: ClassVar[tuple] = ("sensor_type", "value", "unit", "threshold")

    sensor_type: Optional[str] = None
    value: Optional[float] = None
    unit: Optional[str] = None
    threshold: Optional[float] = None
    is_triggered: bool = False


PAYLOAD_TYPES = {
    variant.kind: variant
    for variant in (LightState, PlugState, ThermostatState, CameraState, SensorState)
}

DEVICE_TYPES = ("light", "plug", "thermostat", "camera", "sensor", "switch")

# Device types that carry no payload block.
BARE_TYPES = ("switch",)


def build_payload(device_type: str, data: Optional[dict] = None):
    """
    Build the payload for a device type from wire data.

    Returns None for bare types. Raises ValidationError for an unknown type
    or for payload data given to a bare type.
    """
    if device_type in PAYLOAD_TYPES:
        return PAYLOAD_TYPES[device_type].from_dict(data)
    if device_type in BARE_TYPES:
        if data:
            raise ValidationError(f"A {device_type} device has no '{device_type}' settings")
        return None
    raise ValidationError(f"'type' must be one of: {', '.join(DEVICE_TYPES)}")


def expect_variant(payload, variant, message):
    """
    Return ``payload`` when it is an instance of ``variant``.

    Raises InvalidDeviceType otherwise, so callers never fall through on a
    mismatched device.
    """
    if isinstance(payload, variant):
        return payload
    raise InvalidDeviceType(message)
