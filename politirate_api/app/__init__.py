"""
Application package.

Holds the FastAPI entrypoint and the layers behind it: ``core`` for
configuration, database access and logging, ``schemas`` for the
pydantic models, ``services`` for data access per domain (users,
leaders, polls, notifications, settings, support) and ``api`` for the
versioned HTTP routers.
"""

from .main import app  # noqa: F401
