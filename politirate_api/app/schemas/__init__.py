"""
Pydantic schema definitions for service results and API payloads.

Each domain (users, leaders, polls, etc.) defines its own Pydantic
models.  Database rows use snake_case columns; most models expose the
same fields in camelCase on the wire through ``CamelModel``.
"""

from .base import CamelModel  # noqa: F401
