"""
Room endpoints - CRUD, ambient targets, occupancy and statistics.
"""

from .. import permissions
from ..errors import ValidationError
from ..models import Device, Role, Room, RoomCategory
from ..ratelimits import ratelimit_control
from ..services import rooms as room_service
from .helpers import api_endpoint, ok, page_params, paginate, parse_json


@ratelimit_control
@api_endpoint("GET", "POST")
def rooms_collection(request):
    """
    GET  /api/rooms?category=&floor=&page=&limit=
    POST /api/rooms
    """
    if request.method == "POST":
        permissions.require_role(request.user, Role.ADMIN, Role.USER)
        room = room_service.create_room(parse_json(request), request.user)
        return ok({"room": room.to_dict()}, message="Room created successfully", status=201)

    page, limit = page_params(request)
    qs = Room.objects.filter(is_active=True)

    category = request.GET.get("category")
    if category:
        qs = qs.filter(category=category)
    floor = request.GET.get("floor")
    if floor:
        try:
            qs = qs.filter(floor=int(floor))
        except ValueError:
            raise ValidationError("'floor' must be an integer")

    return ok(paginate(qs.order_by("name", "id"), page, limit, Room.to_dict))


@ratelimit_control
@api_endpoint("GET", "PUT", "DELETE")
def room_detail(request, room_id):
    if request.method == "GET":
        room = room_service.get_room(room_id)
        devices = Device.objects.filter(room=room, is_active=True).order_by("name")
        return ok({
            "room": room.to_dict(),
            "devices": [d.to_dict() for d in devices],
        })

    if request.method == "PUT":
        permissions.require_role(request.user, Role.ADMIN, Role.USER)
        room = room_service.update_room(room_id, parse_json(request), request.user)
        return ok({"room": room.to_dict()}, message="Room updated successfully")

    room_service.deactivate_room(room_id, request.user)
    return ok(message="Room deleted successfully")


@api_endpoint("GET")
def rooms_by_category(request, category):
    if category not in RoomCategory.values:
        raise ValidationError(f"'category' must be one of: {', '.join(RoomCategory.values)}")
    rooms = Room.objects.filter(category=category, is_active=True).order_by("name")
    return ok({"rooms": [r.to_dict() for r in rooms]})


@api_endpoint("GET")
def room_stats(request, room_id):
    return ok(room_service.room_stats(room_id))


@ratelimit_control
@api_endpoint("PUT")
def room_temperature(request, room_id):
    """PUT /api/rooms/<id>/temperature  {"current"?, "target"?, "unit"?}"""
    permissions.require_role(request.user, Role.ADMIN, Role.USER)
    room = room_service.set_temperature(room_id, parse_json(request), request.user)
    return ok({"room": room.to_dict()}, message="Room temperature updated successfully")


@ratelimit_control
@api_endpoint("PUT")
def room_lighting(request, room_id):
    """PUT /api/rooms/<id>/lighting  {"brightness"?, "color"?}"""
    permissions.require_role(request.user, Role.ADMIN, Role.USER)
    room = room_service.set_lighting(room_id, parse_json(request), request.user)
    return ok({"room": room.to_dict()}, message="Room lighting updated successfully")


@ratelimit_control
@api_endpoint("PUT")
def room_occupancy(request, room_id):
    """PUT /api/rooms/<id>/occupancy  {"isOccupied": true, "sensorId"?}"""
    permissions.require_role(request.user, Role.ADMIN, Role.USER)
    room = room_service.set_occupancy(room_id, parse_json(request), request.user)
    return ok({"room": room.to_dict()}, message="Room occupancy updated successfully")
