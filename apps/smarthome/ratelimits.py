"""
SmartHome Dashboard - Rate Limiting Decorators

This module provides rate limiting decorators to protect API endpoints
from abuse and brute-force attacks:
    - ratelimit_login: 5 attempts per minute per IP
    - ratelimit_register: 3 registrations per hour per IP
    - ratelimit_control: 120 control requests per minute per user

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

from django.conf import settings
from django.http import JsonResponse
from django_ratelimit.decorators import ratelimit

from .tokens import token_from_header


def get_client_ip(request):
    """Extract client IP from request, handling proxies."""
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def get_token_key(group, request):
    """Rate limit per bearer token, falling back to the client IP."""
    token = token_from_header(request.META.get("HTTP_AUTHORIZATION", ""))
    return token or get_client_ip(request)


def ratelimit_login(view_func):
    """Rate limit: 5 attempts per minute for login."""
    return ratelimit(
        key="ip",
        rate=getattr(settings, "RATELIMIT_LOGIN", "5/m"),
        method=["POST"],
        block=True,
    )(view_func)


def ratelimit_register(view_func):
    """Rate limit: 3 registrations per hour per IP."""
    return ratelimit(
        key="ip",
        rate=getattr(settings, "RATELIMIT_REGISTER", "3/h"),
        method=["POST"],
        block=True,
    )(view_func)


def ratelimit_control(view_func):
    """Rate limit: 120 device/room control requests per minute per token."""
    return ratelimit(
        key=get_token_key,
        rate=getattr(settings, "RATELIMIT_CONTROL", "120/m"),
        method=["POST", "PUT", "DELETE"],
        block=True,
    )(view_func)


def ratelimited_error(request, exception=None):
    """Custom view for rate limit exceeded errors."""
    return JsonResponse(
        {
            "success": False,
            "message": "Too many requests, please try again later.",
        },
        status=429,
    )
