"""
Home services: device control, room bulk control and realtime broadcast.
"""

from .broadcast import BroadcastHub, SubscriptionRegistry, get_hub
from .control import DeviceControlService
from .rooms import RoomControlOrchestrator

__all__ = [
    "BroadcastHub",
    "DeviceControlService",
    "RoomControlOrchestrator",
    "SubscriptionRegistry",
    "get_hub",
]
