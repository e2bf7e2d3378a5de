"""
SmartHome Dashboard - Permission Resolver

Resolves what an acting user may do with a device:
    - users with the global admin role always resolve to ADMIN
    - everyone else gets the level of their per-device entry, or NONE

Routes that carry no device id (listing, creating, room bulk control) do
not go through resolve(); they declare a role requirement instead.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from enum import IntEnum

from .errors import AccessDenied
from .models import DevicePermission, Role, UserProfile


class AccessLevel(IntEnum):
    NONE = 0
    READ = 1
    WRITE = 2
    ADMIN = 3

    @classmethod
    def from_name(cls, name: str) -> "AccessLevel":
        return cls[name.upper()]


def role_for(user) -> str:
    """Global role of a user; superusers are always admins."""
    if user is None or not user.is_authenticated:
        return Role.GUEST
    if user.is_superuser:
        return Role.ADMIN
    try:
        return user.home_profile.role
    except UserProfile.DoesNotExist:
        return Role.USER


def is_admin(user) -> bool:
    return role_for(user) == Role.ADMIN


def resolve(device, user) -> AccessLevel:
    if is_admin(user):
        return AccessLevel.ADMIN
    entry = DevicePermission.objects.filter(device=device, user=user).only("level").first()
    if entry is None:
        return AccessLevel.NONE
    return AccessLevel.from_name(entry.level)


def require(device, user, minimum: AccessLevel) -> AccessLevel:
    """Return the resolved level, raising AccessDenied below ``minimum``."""
    level = resolve(device, user)
    if level < minimum:
        raise AccessDenied("Access denied to this device")
    return level


def require_role(user, *roles):
    if role_for(user) not in roles:
        raise AccessDenied("Insufficient permissions")


def grant(device, user, level: AccessLevel) -> DevicePermission:
    """Create or change the permission entry of ``user`` on ``device``."""
    entry, _ = DevicePermission.objects.update_or_create(
        device=device,
        user=user,
        defaults={"level": level.name.lower()},
    )
    return entry
