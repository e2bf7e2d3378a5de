"""
Realtime broadcast hub.

Keeps an explicit registry of live websocket connections and the
subscription groups they joined (per room, per device, per user), and fans
state-change events out to every member of the targeted groups.

Delivery goes through the Channels layer, one message per connection, and
is at-most-once: a failed send is logged and dropped. There is no event log
and no replay; a client that reconnects re-fetches state over HTTP.
"""

import logging
import threading
from dataclasses import dataclass, field

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

# Message type handled by DashboardConsumer.hub_event
HUB_MESSAGE_TYPE = "hub.event"

# Every signed-in dashboard; home-wide events such as new rooms go here
HOME_GROUP = "home"


def room_group(room_id) -> str:
    return f"room-{room_id}"


def device_group(device_id) -> str:
    return f"device-{device_id}"


def user_group(user_id) -> str:
    return f"user-{user_id}"


@dataclass
class Connection:
    connection_id: str
    channel_name: str
    user_id: int | None = None
    groups: set = field(default_factory=set)


class SubscriptionRegistry:
    """
    Connection id -> groups, and group -> connection ids.

    join/leave are idempotent; drop() removes a connection from every group
    it belonged to.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: dict[str, Connection] = {}
        self._groups: dict[str, set] = {}

    def register(self, connection_id, channel_name, user_id=None) -> Connection:
        with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None:
                conn = Connection(connection_id, channel_name, user_id)
                self._connections[connection_id] = conn
            return conn

    def join(self, connection_id, group) -> bool:
        """Add a connection to a group. Returns False if it was already a member."""
        with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None:
                raise KeyError(f"Unknown connection {connection_id}")
            if group in conn.groups:
                return False
            conn.groups.add(group)
            self._groups.setdefault(group, set()).add(connection_id)
            return True

    def leave(self, connection_id, group) -> bool:
        with self._lock:
            conn = self._connections.get(connection_id)
            if conn is None or group not in conn.groups:
                return False
            conn.groups.discard(group)
            self._discard_member(group, connection_id)
            return True

    def drop(self, connection_id) -> set:
        """Forget a connection. Returns the groups it was removed from."""
        with self._lock:
            conn = self._connections.pop(connection_id, None)
            if conn is None:
                return set()
            for group in conn.groups:
                self._discard_member(group, connection_id)
            return set(conn.groups)

    def _discard_member(self, group, connection_id):
        members = self._groups.get(group)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._groups[group]

    def groups_of(self, connection_id) -> set:
        with self._lock:
            conn = self._connections.get(connection_id)
            return set(conn.groups) if conn else set()

    def members(self, *groups) -> set:
        """Connection ids subscribed to any of ``groups``."""
        with self._lock:
            result = set()
            for group in groups:
                result |= self._groups.get(group, set())
            return result

    def channels_for(self, *groups) -> list:
        """Channel names of the connections in any of ``groups``, each once."""
        with self._lock:
            ids = set()
            for group in groups:
                ids |= self._groups.get(group, set())
            return sorted(self._connections[cid].channel_name for cid in ids)

    def __len__(self):
        with self._lock:
            return len(self._connections)


class BroadcastHub:
    """Fans events out to the connections subscribed to their groups."""

    def __init__(self, registry=None, channel_layer=None):
        self.registry = registry or SubscriptionRegistry()
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        if self._channel_layer is None:
            self._channel_layer = get_channel_layer()
        return self._channel_layer

    # -- subscriptions -----------------------------------------------------

    def connect(self, connection_id, channel_name, user_id=None):
        self.registry.register(connection_id, channel_name, user_id)
        if user_id is not None:
            self.registry.join(connection_id, HOME_GROUP)
            self.registry.join(connection_id, user_group(user_id))

    def join(self, connection_id, group) -> bool:
        return self.registry.join(connection_id, group)

    def leave(self, connection_id, group) -> bool:
        return self.registry.leave(connection_id, group)

    def disconnect(self, connection_id):
        groups = self.registry.drop(connection_id)
        logger.debug("Connection %s dropped from %d group(s)", connection_id, len(groups))

    # -- delivery ------------------------------------------------------------

    def publish(self, groups, event, payload) -> int:
        """
        Send ``event`` to every connection in ``groups``.

        A connection subscribed to several of the groups gets the event once.
        Returns the number of connections the event was handed to.
        """
        channels = self.registry.channels_for(*groups)
        if not channels:
            return 0

        layer = self.channel_layer
        if layer is None:
            logger.warning("No channel layer configured, dropping '%s' event", event)
            return 0

        message = {"type": HUB_MESSAGE_TYPE, "event": event, "data": payload}
        delivered = 0
        for channel_name in channels:
            try:
                async_to_sync(layer.send)(channel_name, message)
                delivered += 1
            except Exception:
                logger.warning(
                    "Dropped '%s' event for channel %s", event, channel_name, exc_info=True
                )
        return delivered

    def device_changed(self, device, event, payload, actor=None) -> int:
        groups = [room_group(device.room_id), device_group(device.id)]
        if actor is not None:
            groups.append(user_group(actor.pk))
        return self.publish(groups, event, payload)

    def room_changed(self, room_id, event, payload, actor=None) -> int:
        groups = [room_group(room_id)]
        if actor is not None:
            groups.append(user_group(actor.pk))
        return self.publish(groups, event, payload)

    def home_changed(self, event, payload) -> int:
        return self.publish([HOME_GROUP], event, payload)


_hub = None
_hub_lock = threading.Lock()


def get_hub() -> BroadcastHub:
    """Process-wide hub shared by the HTTP views and the websocket consumer."""
    global _hub
    with _hub_lock:
        if _hub is None:
            _hub = BroadcastHub()
        return _hub
