"""
Endpoint subpackage for API v1.

Each module defines an APIRouter for one domain (users, leaders,
ratings, polls, notifications, settings, support).  The routers are
aggregated in ``router.py`` and mounted by the application.
"""
