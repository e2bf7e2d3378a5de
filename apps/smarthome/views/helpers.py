"""
Shared helper functions, decorators, and utilities for views.
"""

import json
import logging
from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django_ratelimit.exceptions import Ratelimited

from ..errors import SmartHomeError, ValidationError
from ..tokens import resolve_token, token_from_header

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


# ---------------------------------------------------------------------------
# Response envelope
# ---------------------------------------------------------------------------

def ok(data=None, message=None, status=200):
    body = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    return JsonResponse(body, status=status)


def fail(message, status):
    return JsonResponse({"success": False, "message": message}, status=status)


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------

def api_endpoint(*methods, auth=True):
    """
    Decorator for JSON API views.

    - rejects methods not listed with a 405 envelope
    - authenticates ``Authorization: Bearer <token>`` (unless auth=False)
      and sets request.user
    - maps SmartHomeError to its status and message; anything else is
      logged and answered with a generic 500
    """
    def decorator(view_func):
        @csrf_exempt
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if methods and request.method not in methods:
                return fail(f"Method {request.method} not allowed", 405)
            try:
                if auth:
                    token = token_from_header(request.META.get("HTTP_AUTHORIZATION", ""))
                    request.user = resolve_token(token)
                return view_func(request, *args, **kwargs)
            except SmartHomeError as exc:
                return fail(exc.message, exc.status)
            except Ratelimited:
                raise
            except Exception:
                logger.exception("Unhandled error in %s", view_func.__name__)
                return fail("Internal server error", 500)
        return _wrapped
    return decorator


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------

def parse_json(request) -> dict:
    """Decode a JSON object body; an empty body is an empty object."""
    try:
        payload = json.loads(request.body.decode("utf-8") or "{}")
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError("Invalid JSON")
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def page_params(request):
    """Return (page, limit) from the query string, with defaults and caps."""
    try:
        page = max(1, int(request.GET.get("page", 1)))
        limit = int(request.GET.get("limit", DEFAULT_PAGE_SIZE))
    except ValueError:
        raise ValidationError("'page' and 'limit' must be integers")
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    return page, limit


def paginate(queryset, page, limit, serialize):
    total = queryset.count()
    offset = (page - 1) * limit
    items = [serialize(obj) for obj in queryset[offset:offset + limit]]
    return {
        "data": items,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }
