"""
Placeholder and fallback endpoints.
"""

from .helpers import api_endpoint, fail, ok


@api_endpoint("GET")
def automation(request):
    """Automation routes are not implemented yet."""
    return ok([], message="Automation routes coming soon")


def route_not_found(request, *args, **kwargs):
    return fail("Route not found", 404)
