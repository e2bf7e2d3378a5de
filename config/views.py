"""
SmartHome Dashboard - Root Views

This module provides root-level views for the Django project.

Author:     Gonzalo Patino
Created:    2025
Course:     Southern New Hampshire University
License:    Academic Use Only - See LICENSE file
"""

import time

from django.conf import settings
from django.http import JsonResponse
from django.utils import timezone

# Process start, for the uptime figure
STARTED_AT = time.monotonic()


def health(request):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
        JsonResponse: Status OK, server time, uptime in seconds and the
        environment name.
    """
    return JsonResponse(
        {
            "status": "OK",
            "timestamp": timezone.now().isoformat(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
            "environment": settings.APP_ENV,
        }
    )
