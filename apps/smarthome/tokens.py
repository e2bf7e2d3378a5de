"""
SmartHome Dashboard - API Tokens

Bearer tokens for the REST API and the websocket endpoint. Uses Django's
built-in signing module: a token is a signed, timestamped payload holding
the user id, so nothing has to be stored server-side.

Functions:
    issue_token: Create a signed token for a user
    resolve_token: Validate a token and return its active user
    token_from_header: Extract the token from an Authorization header

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing

from .errors import AuthenticationError

# Salt ensures tokens for different purposes can't be swapped
API_TOKEN_SALT = "smarthome-api-token"

User = get_user_model()


def issue_token(user) -> str:
    """
    Encode a user id into a signed, timestamped bearer token.

    Example:
        user 42 -> "eyJ1aWQiOjQyfQ:1tK2Xm:abc123..."
    """
    return signing.dumps({"uid": user.pk}, salt=API_TOKEN_SALT)


def resolve_token(token: str):
    """
    Decode a token back to its user.

    Raises AuthenticationError when the token is missing, expired, tampered
    with, or belongs to an inactive user.
    """
    if not token:
        raise AuthenticationError("Access token required")

    try:
        data = signing.loads(
            token,
            salt=API_TOKEN_SALT,
            max_age=settings.API_TOKEN_MAX_AGE,
        )
    except signing.SignatureExpired:
        raise AuthenticationError("Token expired")
    except signing.BadSignature:
        raise AuthenticationError("Invalid token", status=403)

    user = User.objects.filter(pk=data.get("uid")).first()
    if user is None or not user.is_active:
        raise AuthenticationError("Invalid or inactive user")
    return user


def token_from_header(header: str) -> str | None:
    """Return the token of a ``Bearer <token>`` header, or None."""
    parts = (header or "").strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None
