"""
Shared fixtures: users with each role, a small home, API clients and a
broadcast hub wired to a recording channel layer.
"""

import json

import pytest
from django.contrib.auth import get_user_model

from apps.smarthome import permissions
from apps.smarthome.models import Device, Role, Room, UserProfile
from apps.smarthome.payloads import build_payload
from apps.smarthome.permissions import AccessLevel
from apps.smarthome.services import broadcast
from apps.smarthome.services.broadcast import BroadcastHub
from apps.smarthome.tokens import issue_token


class RecordingLayer:
    """Channel layer stand-in that keeps every message it is asked to send."""

    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    async def send(self, channel, message):
        if channel in self.fail_for:
            raise ConnectionError(f"channel {channel} is gone")
        self.sent.append((channel, message))

    def events(self, channel=None):
        return [
            message["event"]
            for name, message in self.sent
            if channel is None or name == channel
        ]


@pytest.fixture(autouse=True)
def _no_ratelimit(settings):
    settings.RATELIMIT_ENABLE = False


@pytest.fixture
def layer():
    return RecordingLayer()


@pytest.fixture(autouse=True)
def hub(layer, monkeypatch):
    """Fresh process hub per test, so HTTP views publish into ``layer``."""
    fresh = BroadcastHub(channel_layer=layer)
    monkeypatch.setattr(broadcast, "_hub", fresh)
    return fresh


def make_user(username, role=Role.USER):
    user = get_user_model().objects.create_user(username=username, password="secret123")
    UserProfile.objects.create(user=user, role=role)
    return user


@pytest.fixture
def admin_user(db):
    return make_user("admin", Role.ADMIN)


@pytest.fixture
def user(db):
    return make_user("alex")


@pytest.fixture
def other_user(db):
    return make_user("sam")


@pytest.fixture
def guest(db):
    return make_user("visitor", Role.GUEST)


def make_room(name="Living Room", category="living-areas", **fields):
    return Room.objects.create(name=name, icon="sofa", category=category, **fields)


def make_device(room, device_type, name=None, is_on=False, payload=None, owner=None,
                level=AccessLevel.ADMIN, **fields):
    device = Device(
        name=name or f"{device_type} {room.name}",
        type=device_type,
        icon=device_type,
        room=room,
        is_on=is_on,
        **fields,
    )
    device.state = build_payload(device_type, payload)
    device.save()
    if owner is not None:
        permissions.grant(device, owner, level)
    return device


@pytest.fixture
def room(db):
    return make_room()


@pytest.fixture
def light(room, user):
    return make_device(room, "light", "Desk Lamp", payload={"brightness": 50}, owner=user)


@pytest.fixture
def thermostat(room, user):
    return make_device(
        room, "thermostat", "Hall Thermostat",
        payload={"currentTemp": 20, "targetTemp": 21, "mode": "heat"},
        owner=user,
    )


class ApiClient:
    """Thin JSON wrapper over Django's test client with a bearer token."""

    def __init__(self, client, user=None):
        self.client = client
        self.headers = {}
        if user is not None:
            self.headers["HTTP_AUTHORIZATION"] = f"Bearer {issue_token(user)}"

    def _send(self, method, path, body=None):
        kwargs = dict(self.headers)
        if body is not None:
            kwargs["data"] = json.dumps(body)
            kwargs["content_type"] = "application/json"
        response = getattr(self.client, method)(path, **kwargs)
        return response.status_code, response.json()

    def get(self, path):
        return self._send("get", path)

    def post(self, path, body=None):
        return self._send("post", path, body if body is not None else {})

    def put(self, path, body=None):
        return self._send("put", path, body if body is not None else {})

    def delete(self, path):
        return self._send("delete", path)


@pytest.fixture
def api(client, user):
    return ApiClient(client, user)


@pytest.fixture
def admin_api(client, admin_user):
    return ApiClient(client, admin_user)


@pytest.fixture
def anonymous_api(client):
    return ApiClient(client)
