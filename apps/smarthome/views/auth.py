"""
Authentication endpoints - JSON registration and login issuing API tokens.
"""

from django.contrib.auth import authenticate, get_user_model

from ..errors import AuthenticationError, ValidationError
from ..models import Role, UserProfile
from ..permissions import role_for
from ..ratelimits import ratelimit_login, ratelimit_register
from ..tokens import issue_token
from .helpers import api_endpoint, ok, parse_json

User = get_user_model()


def _user_dict(user):
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "role": role_for(user),
    }


@ratelimit_register
@api_endpoint("POST", auth=False)
def register_user(request):
    """
    JSON registration endpoint.

    Body:
    {
        "username": "alex",
        "password": "secret123",
        "email": "optional@example.com"
    }

    On success (201):
    - Creates a new user with the "user" role
    - Returns basic user info and a bearer token
    """
    payload = parse_json(request)

    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""
    email = (payload.get("email") or "").strip()

    if not username or not password:
        raise ValidationError("Fields 'username' and 'password' are required")
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters long")

    if User.objects.filter(username=username).exists():
        raise ValidationError("User with this username already exists")

    user = User.objects.create_user(
        username=username,
        password=password,
        email=email,
        first_name=(payload.get("firstName") or "").strip(),
        last_name=(payload.get("lastName") or "").strip(),
    )
    UserProfile.objects.create(user=user, role=Role.USER)

    return ok(
        {"user": _user_dict(user), "token": issue_token(user)},
        message="User registered successfully",
        status=201,
    )


@ratelimit_login
@api_endpoint("POST", auth=False)
def login_user(request):
    """
    JSON login endpoint.

    Body:
    {
        "username": "alex",
        "password": "secret123"
    }

    On success returns the user and a bearer token for the API and the
    websocket endpoint.
    """
    payload = parse_json(request)

    username = (payload.get("username") or "").strip()
    password = payload.get("password") or ""

    if not username or not password:
        raise ValidationError("Fields 'username' and 'password' are required")

    user = authenticate(request, username=username, password=password)
    if user is None:
        raise AuthenticationError("Invalid credentials")

    return ok(
        {"user": _user_dict(user), "token": issue_token(user)},
        message="Login successful",
    )


@api_endpoint("GET")
def current_user(request):
    return ok({"user": _user_dict(request.user)})
